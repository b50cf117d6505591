"""Schema service: current-state CRUD plus history capture."""

import logging
from typing import Any

from zarv.db.repositories.project_repository import ProjectRepository
from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository
from zarv.exceptions import QuotaExceededError, ValidationError
from zarv.models.schema import (
    VERSIONED_FIELDS,
    HttpMethod,
    SchemaEntity,
    SchemaUpdate,
    SchemaWriteResult,
)
from zarv.models.version import SchemaSnapshot, SchemaVersion
from zarv.utils.validators import (
    validate_definition,
    validate_http_method,
    validate_required,
)

logger = logging.getLogger(__name__)

HISTORY_UNAVAILABLE_WARNING = "Schema saved, but version history is unavailable for this change"


class SchemaService:
    """Service for schema operations.

    Every successful create or edit of a versioned field records a snapshot
    of the resulting state. A snapshot that does not fit in storage does
    not block the edit: the edit commits and the result carries a warning.
    """

    def __init__(
        self,
        repository: SchemaRepository,
        version_repository: VersionRepository,
        project_repository: ProjectRepository,
    ) -> None:
        """Initialize schema service.

        Args:
            repository: Schema repository
            version_repository: Version repository
            project_repository: Project repository
        """
        self.repository = repository
        self.version_repository = version_repository
        self.project_repository = project_repository
        self.db = repository.db

    async def _capture(
        self,
        schema_id: str,
        snapshots: list[tuple[SchemaSnapshot, str | None]],
        actor_id: str | None,
    ) -> tuple[SchemaVersion | None, str | None]:
        """Record snapshots inside a savepoint of the open transaction.

        Returns:
            The last recorded version and no warning, or no version and a
            warning when storage is full
        """
        version: SchemaVersion | None = None
        try:
            async with self.db.savepoint("capture_version"):
                for snapshot, change_note in snapshots:
                    version = await self.version_repository.append(
                        schema_id, snapshot, actor_id=actor_id, change_note=change_note
                    )
        except QuotaExceededError as e:
            logger.warning("Version history unavailable for schema %s: %s", schema_id, e)
            return None, HISTORY_UNAVAILABLE_WARNING
        return version, None

    async def create_schema(
        self,
        project_id: str,
        name: str,
        definition: str,
        description: str | None = None,
        endpoint_url: str | None = None,
        http_method: str | HttpMethod | None = None,
        actor_id: str | None = None,
        change_note: str | None = None,
    ) -> SchemaWriteResult:
        """Create a schema and record its initial version.

        Args:
            project_id: Owning project ID
            name: Schema name
            definition: Validator definition text
            description: Optional description
            endpoint_url: Endpoint the schema validates responses of
            http_method: HTTP method for the endpoint
            actor_id: Who created the schema
            change_note: Note for the initial version

        Returns:
            SchemaWriteResult with the created schema

        Raises:
            ValidationError: If the project does not exist or input is invalid
        """
        name = validate_required(name, "name")
        definition = validate_definition(definition)
        method = validate_http_method(http_method)

        project = await self.project_repository.find_by_id(project_id)
        if not project:
            raise ValidationError(f"Project not found: {project_id}")

        schema = SchemaEntity(
            project_id=project_id,
            name=name,
            description=description,
            endpoint_url=endpoint_url,
            http_method=method,
            definition=definition,
        )

        async with self.db.transaction():
            await self.repository.create(schema)
            version, warning = await self._capture(
                schema.id, [(schema.snapshot(), change_note)], actor_id
            )

        logger.info("Created schema %s in project %s", schema.id, project_id)
        return SchemaWriteResult(entity=schema, version=version, warning=warning)

    def _validated_changes(self, changes: SchemaUpdate) -> dict[str, Any]:
        updates: dict[str, Any] = {}
        for field in changes.model_fields_set:
            value = getattr(changes, field)
            if field == "name":
                value = validate_required(value, "name")
            elif field == "definition":
                value = validate_definition(value)
            updates[field] = value
        return updates

    async def update_schema(
        self,
        schema_id: str,
        changes: SchemaUpdate,
        actor_id: str | None = None,
        change_note: str | None = None,
    ) -> SchemaWriteResult:
        """Apply an edit to a schema and record the resulting version.

        Fields absent from `changes` are left alone. When no versioned field
        actually changes, nothing is written.

        The entity update and the version append share one transaction;
        the append runs in a savepoint so that a full database only drops
        the history entry. If the newest recorded version does not match
        the pre-edit state (an earlier capture was lost), the pre-edit state
        is recorded first.

        Args:
            schema_id: Schema ID
            changes: Fields to change
            actor_id: Who made the edit
            change_note: Free-text description of the edit

        Returns:
            SchemaWriteResult; `warning` is set when history was not captured

        Raises:
            ValidationError: If the schema does not exist or input is invalid
            StorageUnavailableError: If storage is not available
        """
        current = await self.repository.find_by_id(schema_id)
        if not current:
            raise ValidationError(f"Schema not found: {schema_id}")

        updates = {
            field: value
            for field, value in self._validated_changes(changes).items()
            if field in VERSIONED_FIELDS and getattr(current, field) != value
        }
        if not updates:
            return SchemaWriteResult(entity=current, changed=False)

        edited = current.model_copy(update=updates)

        async with self.db.transaction():
            latest = await self.version_repository.latest_version(schema_id)
            pending: list[tuple[SchemaSnapshot, str | None]] = []
            if latest is None or latest.snapshot() != current.snapshot():
                pending.append((current.snapshot(), None))
            pending.append((edited.snapshot(), change_note))

            version, warning = await self._capture(schema_id, pending, actor_id)
            entity = await self.repository.update(schema_id, updates)

        if entity is None:
            raise ValidationError(f"Schema not found: {schema_id}")

        logger.info("Updated schema %s (%s)", schema_id, ", ".join(sorted(updates)))
        return SchemaWriteResult(entity=entity, version=version, warning=warning)

    async def remember_request_body(self, schema_id: str, body: str | None) -> SchemaEntity:
        """Store the last request body used to test a schema's endpoint.

        This is not a versioned field and never creates a version.

        Raises:
            ValidationError: If the schema does not exist
        """
        entity = await self.repository.update(schema_id, {"last_request_body": body})
        if entity is None:
            raise ValidationError(f"Schema not found: {schema_id}")
        return entity

    async def get_schema(self, schema_id: str) -> SchemaEntity | None:
        """Get a schema by ID."""
        return await self.repository.find_by_id(schema_id)

    async def list_schemas(self, project_id: str) -> list[SchemaEntity]:
        """List the schemas of a project."""
        return await self.repository.find_by_project(project_id)

    async def duplicate_schema(
        self, schema_id: str, actor_id: str | None = None
    ) -> SchemaWriteResult:
        """Copy a schema into the same project as "<name> (Copy)".

        The copy starts its own history; versions of the source are not
        copied.

        Raises:
            ValidationError: If the source schema does not exist
        """
        source = await self.repository.find_by_id(schema_id)
        if not source:
            raise ValidationError(f"Schema not found: {schema_id}")

        return await self.create_schema(
            project_id=source.project_id,
            name=f"{source.name} (Copy)",
            definition=source.definition,
            description=source.description,
            endpoint_url=source.endpoint_url,
            http_method=source.http_method,
            actor_id=actor_id,
            change_note=f"Duplicated from {source.name}",
        )

    async def delete_schema(self, schema_id: str) -> bool:
        """Delete a schema together with its version history.

        Args:
            schema_id: Schema ID

        Returns:
            True if deleted, False if not found
        """
        async with self.db.transaction():
            removed_versions = await self.version_repository.delete_versions_for_schema(schema_id)
            deleted = await self.repository.delete(schema_id)

        if deleted:
            logger.info("Deleted schema %s and %d versions", schema_id, removed_versions)
        return deleted
