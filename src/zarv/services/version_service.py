"""Service for schema version history and comparisons."""

import logging

from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository
from zarv.exceptions import NotFoundError, ValidationError
from zarv.models.diff import DiffDisplayOptions, DiffMode
from zarv.models.version import SchemaVersion, VersionEntry, VersionHistory
from zarv.services.diff_service import DiffService, DiffView
from zarv.utils.validators import validate_positive_int

logger = logging.getLogger(__name__)

COMPARISON_TITLE = "Schema Comparison"
CURRENT_VERSION_LABEL = "Current Version"


class VersionService:
    """Service for browsing and comparing schema versions."""

    DEFAULT_HISTORY_LIMIT = 100

    def __init__(
        self,
        version_repository: VersionRepository,
        schema_repository: SchemaRepository,
        diff_service: DiffService,
        default_mode: DiffMode = DiffMode.UNIFIED,
        filename_extension: str = ".js",
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """Initialize version service.

        Args:
            version_repository: Version repository
            schema_repository: Schema repository
            diff_service: Diff service
            default_mode: Mode used when a comparison names none
            filename_extension: Extension of the filename shown in diff headers
            history_limit: Maximum history entries returned
        """
        self.version_repository = version_repository
        self.schema_repository = schema_repository
        self.diff_service = diff_service
        self.default_mode = default_mode
        self.filename_extension = filename_extension
        self.history_limit = history_limit

    async def get_history(self, schema_id: str, limit: int | None = None) -> VersionHistory:
        """Get the version history of a schema, newest first.

        Versions are numbered from the oldest (Version 1). An unknown schema
        has an empty history.

        Args:
            schema_id: Schema ID
            limit: Maximum entries (defaults to the configured history limit)

        Returns:
            VersionHistory object

        Raises:
            ValidationError: If limit is out of range
        """
        if limit is None:
            limit = self.history_limit
        limit = validate_positive_int(limit, "limit", max_value=self.history_limit)

        versions = await self.version_repository.list_versions(schema_id)
        total = len(versions)
        entries = [
            VersionEntry(number=total - index, is_latest=index == 0, version=version)
            for index, version in enumerate(versions[:limit])
        ]
        return VersionHistory(schema_id=schema_id, total_versions=total, entries=entries)

    async def get_version(self, version_id: str) -> SchemaVersion | None:
        """Get a version by ID; None if it does not exist."""
        return await self.version_repository.get_version(version_id)

    async def _require_version(self, version_id: str) -> SchemaVersion:
        version = await self.version_repository.get_version(version_id)
        if not version:
            raise NotFoundError(f"Version not found: {version_id}")
        return version

    async def _version_numbers(self, schema_id: str) -> dict[str, int]:
        """Map version IDs of a schema to their numbers (oldest = 1)."""
        versions = await self.version_repository.list_versions(schema_id)
        return {v.id: len(versions) - index for index, v in enumerate(versions)}

    def _filename(self, schema_name: str) -> str:
        return f"{schema_name}{self.filename_extension}"

    async def compare_with_current(
        self, version_id: str, mode: DiffMode | None = None
    ) -> DiffView:
        """Diff a recorded version's definition against the current one.

        Args:
            version_id: Version ID
            mode: Rendering mode

        Returns:
            DiffView labelled "Version N" / "Current Version"

        Raises:
            NotFoundError: If the version or its schema does not exist
        """
        version = await self._require_version(version_id)
        schema = await self.schema_repository.find_by_id(version.schema_id)
        if not schema:
            raise NotFoundError(f"Schema not found: {version.schema_id}")

        numbers = await self._version_numbers(version.schema_id)
        options = DiffDisplayOptions(
            title=COMPARISON_TITLE,
            old_label=f"Version {numbers[version.id]}",
            new_label=CURRENT_VERSION_LABEL,
            filename=self._filename(schema.name),
            mode=mode or self.default_mode,
        )
        return self.diff_service.build_view(version.definition, schema.definition, options)

    async def compare_versions(
        self,
        old_version_id: str,
        new_version_id: str,
        mode: DiffMode | None = None,
    ) -> DiffView:
        """Diff two recorded versions of the same schema.

        Args:
            old_version_id: Version shown on the old side
            new_version_id: Version shown on the new side
            mode: Rendering mode

        Returns:
            DiffView labelled with both version numbers

        Raises:
            NotFoundError: If either version does not exist
            ValidationError: If the versions belong to different schemas
        """
        old = await self._require_version(old_version_id)
        new = await self._require_version(new_version_id)
        if old.schema_id != new.schema_id:
            raise ValidationError("Versions belong to different schemas")

        numbers = await self._version_numbers(old.schema_id)
        options = DiffDisplayOptions(
            title=COMPARISON_TITLE,
            old_label=f"Version {numbers[old.id]}",
            new_label=f"Version {numbers[new.id]}",
            filename=self._filename(new.name),
            mode=mode or self.default_mode,
        )
        return self.diff_service.build_view(old.definition, new.definition, options)
