"""Schema MCP tools."""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from zarv.exceptions import StorageError, ValidationError, ZodParseError
from zarv.models.schema import SchemaEntity, SchemaUpdate, SchemaWriteResult
from zarv.services.schema_service import SchemaService
from zarv.tools import create_error_response, storage_error_response
from zarv.utils.zod_parser import flatten_fields, parse_schema


def _schema_to_dict(schema: SchemaEntity) -> dict[str, Any]:
    return {
        "id": schema.id,
        "project_id": schema.project_id,
        "name": schema.name,
        "description": schema.description,
        "endpoint_url": schema.endpoint_url,
        "http_method": schema.http_method.value if schema.http_method else None,
        "definition": schema.definition,
        "last_request_body": schema.last_request_body,
        "created_at": schema.created_at.isoformat(),
        "updated_at": schema.updated_at.isoformat(),
    }


def _write_result_to_dict(result: SchemaWriteResult) -> dict[str, Any]:
    response = _schema_to_dict(result.entity)
    response["changed"] = result.changed
    response["version_id"] = result.version.id if result.version else None
    if result.warning:
        response["warning"] = result.warning
    return response


async def schema_create(
    service: SchemaService,
    project_id: str,
    name: str,
    definition: str,
    description: str | None = None,
    endpoint_url: str | None = None,
    http_method: str | None = None,
    actor_id: str | None = None,
) -> dict[str, Any]:
    """Create a schema and record its initial version.

    Args:
        service: Schema service instance
        project_id: Owning project ID
        name: Schema name
        definition: Validator definition text
        description: Optional description
        endpoint_url: Endpoint validated by the schema
        http_method: HTTP method of the endpoint
        actor_id: Who created the schema

    Returns:
        Created schema, with `warning` if history could not be recorded
    """
    try:
        result = await service.create_schema(
            project_id=project_id,
            name=name,
            definition=definition,
            description=description,
            endpoint_url=endpoint_url,
            http_method=http_method,
            actor_id=actor_id,
        )
        return _write_result_to_dict(result)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)


async def schema_get(
    service: SchemaService,
    schema_id: str,
) -> dict[str, Any]:
    """Get a schema by ID.

    Args:
        service: Schema service instance
        schema_id: Schema ID

    Returns:
        Schema or error if not found
    """
    try:
        schema = await service.get_schema(schema_id)
    except StorageError as e:
        return storage_error_response(e)

    if not schema:
        return create_error_response(
            message=f"Schema not found: {schema_id}",
            error_type="NotFoundError",
        )
    return _schema_to_dict(schema)


async def schema_list(
    service: SchemaService,
    project_id: str,
) -> dict[str, Any]:
    """List the schemas of a project.

    Args:
        service: Schema service instance
        project_id: Project ID

    Returns:
        Schemas and their count
    """
    try:
        schemas = await service.list_schemas(project_id)
    except StorageError as e:
        return storage_error_response(e)

    return {
        "schemas": [_schema_to_dict(s) for s in schemas],
        "total": len(schemas),
    }


async def schema_update(
    service: SchemaService,
    schema_id: str,
    changes: dict[str, Any],
    actor_id: str | None = None,
    change_note: str | None = None,
) -> dict[str, Any]:
    """Update a schema's fields and record the new version.

    Args:
        service: Schema service instance
        schema_id: Schema ID
        changes: Fields to change (name, description, endpoint_url,
            http_method, definition)
        actor_id: Who made the edit
        change_note: Description of the edit

    Returns:
        Updated schema; `warning` is present when the edit was saved but
        its version could not be recorded
    """
    try:
        update = SchemaUpdate(**changes)
    except PydanticValidationError as e:
        return create_error_response(
            message="Invalid schema changes",
            error_type="ValidationError",
            details={"errors": [err["msg"] for err in e.errors()]},
        )

    try:
        result = await service.update_schema(schema_id, update, actor_id, change_note)
        return _write_result_to_dict(result)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)


async def schema_delete(
    service: SchemaService,
    schema_id: str,
) -> dict[str, Any]:
    """Delete a schema and its version history.

    Args:
        service: Schema service instance
        schema_id: Schema ID

    Returns:
        Deletion status
    """
    try:
        deleted = await service.delete_schema(schema_id)
    except StorageError as e:
        return storage_error_response(e)

    if not deleted:
        return create_error_response(
            message=f"Schema not found: {schema_id}",
            error_type="NotFoundError",
        )
    return {"deleted": True, "id": schema_id}


async def schema_duplicate(
    service: SchemaService,
    schema_id: str,
    actor_id: str | None = None,
) -> dict[str, Any]:
    """Copy a schema within its project.

    Args:
        service: Schema service instance
        schema_id: Source schema ID
        actor_id: Who made the copy

    Returns:
        The new schema
    """
    try:
        result = await service.duplicate_schema(schema_id, actor_id)
        return _write_result_to_dict(result)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)


async def schema_structure(definition: str) -> dict[str, Any]:
    """Parse a validator definition and list its fields.

    Args:
        definition: Validator definition text

    Returns:
        Root type and field signatures keyed by path
    """
    try:
        root = parse_schema(definition)
    except ZodParseError as e:
        return create_error_response(
            message=str(e),
            error_type="ValidationError",
            details={"line": e.line, "column": e.column},
        )

    fields = flatten_fields(root)
    return {
        "root_type": root.type_name,
        "fields": {
            path: {"type": signature.type_name, "optional": signature.optional}
            for path, signature in fields.items()
        },
        "total": len(fields),
    }
