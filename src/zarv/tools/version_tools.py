"""Schema version history and diff MCP tools."""

from typing import Any

from zarv.exceptions import NotFoundError, StorageError, ValidationError
from zarv.models.diff import DiffDisplayOptions
from zarv.models.version import SchemaVersion
from zarv.services.diff_service import DiffService, DiffView
from zarv.services.version_service import VersionService
from zarv.tools import create_error_response, storage_error_response
from zarv.utils.validators import validate_diff_mode


def _version_to_dict(version: SchemaVersion) -> dict[str, Any]:
    return {
        "id": version.id,
        "schema_id": version.schema_id,
        "name": version.name,
        "description": version.description,
        "endpoint_url": version.endpoint_url,
        "http_method": version.http_method,
        "definition": version.definition,
        "actor_id": version.actor_id,
        "change_note": version.change_note,
        "captured_at": version.captured_at.isoformat(),
    }


def _view_to_dict(view: DiffView, include_patch: bool) -> dict[str, Any]:
    response = view.render()
    changes = view.field_changes()
    response["field_changes"] = (
        [change.model_dump(mode="json") for change in changes] if changes is not None else None
    )
    if include_patch:
        response["patch"] = view.to_patch()
    return response


async def schema_version_history(
    service: VersionService,
    schema_id: str,
    limit: int | None = None,
) -> dict[str, Any]:
    """Get the version history of a schema.

    Args:
        service: Version service instance
        schema_id: Schema ID
        limit: Maximum versions to return

    Returns:
        Versions newest first, numbered from the oldest
    """
    try:
        history = await service.get_history(schema_id, limit)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)

    return {
        "schema_id": history.schema_id,
        "total_versions": history.total_versions,
        "versions": [
            {
                "id": entry.version.id,
                "number": entry.number,
                "label": entry.label,
                "is_latest": entry.is_latest,
                "summary": entry.summary,
                "actor_id": entry.version.actor_id,
                "definition_preview": entry.version.definition[:200]
                + ("..." if len(entry.version.definition) > 200 else ""),
                "captured_at": entry.version.captured_at.isoformat(),
            }
            for entry in history.entries
        ],
    }


async def schema_version_get(
    service: VersionService,
    version_id: str,
) -> dict[str, Any]:
    """Get a recorded version.

    Args:
        service: Version service instance
        version_id: Version ID

    Returns:
        Version snapshot or error if not found
    """
    try:
        version = await service.get_version(version_id)
    except StorageError as e:
        return storage_error_response(e)

    if not version:
        return create_error_response(
            message=f"Version not found: {version_id}",
            error_type="NotFoundError",
        )
    return _version_to_dict(version)


async def schema_version_diff(
    service: VersionService,
    version_id: str,
    compare_to: str | None = None,
    mode: str | None = None,
    include_patch: bool = False,
) -> dict[str, Any]:
    """Diff a version against the current schema or another version.

    Args:
        service: Version service instance
        version_id: Version shown on the old side
        compare_to: Version shown on the new side (None = current schema)
        mode: "unified" or "split"
        include_patch: Add a unified patch text for export

    Returns:
        Rendered diff with line counts and field-level changes
    """
    try:
        diff_mode = validate_diff_mode(mode) if mode else None
        if compare_to:
            view = await service.compare_versions(version_id, compare_to, diff_mode)
        else:
            view = await service.compare_with_current(version_id, diff_mode)
    except NotFoundError as e:
        return create_error_response(message=str(e), error_type="NotFoundError")
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)

    return _view_to_dict(view, include_patch)


async def schema_diff_text(
    service: DiffService,
    old_text: str,
    new_text: str,
    mode: str = "unified",
    title: str | None = None,
    old_label: str | None = None,
    new_label: str | None = None,
    filename: str | None = None,
    include_patch: bool = False,
) -> dict[str, Any]:
    """Diff two arbitrary texts.

    Args:
        service: Diff service instance
        old_text: Previous text
        new_text: Current text
        mode: "unified" or "split"
        title: Header title
        old_label: Label of the old side
        new_label: Label of the new side
        filename: Filename shown in the header
        include_patch: Add a unified patch text for export

    Returns:
        Rendered diff with line counts and field-level changes
    """
    try:
        diff_mode = validate_diff_mode(mode)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")

    overrides = {
        "title": title,
        "old_label": old_label,
        "new_label": new_label,
        "filename": filename,
    }
    options = DiffDisplayOptions(
        mode=diff_mode,
        **{key: value for key, value in overrides.items() if value is not None},
    )
    view = service.build_view(old_text, new_text, options)
    return _view_to_dict(view, include_patch)
