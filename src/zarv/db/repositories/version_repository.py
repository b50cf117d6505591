"""Append-only store of schema version snapshots."""

import logging
from datetime import datetime
from typing import Any

from zarv.db.database import Database
from zarv.exceptions import ValidationError
from zarv.models.version import SchemaSnapshot, SchemaVersion

logger = logging.getLogger(__name__)


class VersionRepository:
    """Repository for the `schema_versions` table.

    Rows are only ever inserted or bulk-deleted with their schema; there is
    deliberately no update path.
    """

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def append(
        self,
        schema_id: str,
        snapshot: SchemaSnapshot,
        actor_id: str | None = None,
        change_note: str | None = None,
        captured_at: datetime | None = None,
    ) -> SchemaVersion:
        """Append a version row for a schema.

        Joins the caller's transaction when one is open.

        Args:
            schema_id: Owning schema ID
            snapshot: Versioned field values to record
            actor_id: Who made the edit
            change_note: Free-text description of the change
            captured_at: Capture time (defaults to now, UTC)

        Returns:
            The recorded version, including its sequence number

        Raises:
            ValidationError: If schema_id is empty or names no schema
            QuotaExceededError: If the row does not fit in storage
        """
        if not schema_id:
            raise ValidationError("schema_id is required to record a version")

        version = SchemaVersion(
            schema_id=schema_id,
            name=snapshot.name,
            description=snapshot.description,
            endpoint_url=snapshot.endpoint_url,
            http_method=snapshot.http_method,
            definition=snapshot.definition,
            actor_id=actor_id,
            change_note=change_note,
            **({"captured_at": captured_at} if captured_at else {}),
        )

        async with self.db.transaction():
            cursor = await self.db.execute("SELECT 1 FROM schemas WHERE id = ?", (schema_id,))
            if await cursor.fetchone() is None:
                raise ValidationError(f"Cannot record version: schema not found: {schema_id}")

            cursor = await self.db.execute(
                """
                INSERT INTO schema_versions (
                    id, schema_id, name, description, endpoint_url, http_method,
                    definition, actor_id, change_note, captured_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    version.id,
                    version.schema_id,
                    version.name,
                    version.description,
                    version.endpoint_url,
                    version.http_method,
                    version.definition,
                    version.actor_id,
                    version.change_note,
                    version.captured_at.isoformat(),
                ),
            )

        logger.debug("Recorded version %s for schema %s", version.id, schema_id)
        return version.model_copy(update={"sequence": cursor.lastrowid})

    async def record_version(
        self,
        schema_id: str,
        snapshot: SchemaSnapshot,
        actor_id: str | None = None,
        change_note: str | None = None,
    ) -> str:
        """Append a version row and return its ID.

        Args:
            schema_id: Owning schema ID
            snapshot: Versioned field values to record
            actor_id: Who made the edit
            change_note: Free-text description of the change

        Returns:
            The new version ID
        """
        version = await self.append(schema_id, snapshot, actor_id, change_note)
        return version.id

    async def list_versions(self, schema_id: str, limit: int | None = None) -> list[SchemaVersion]:
        """List the versions of a schema, newest first.

        Ordered by capture time; versions captured at the same instant are
        ordered by insertion, the later insertion first.

        Args:
            schema_id: Schema ID
            limit: Maximum number of versions

        Returns:
            Versions (empty for an unknown schema)
        """
        sql = (
            "SELECT * FROM schema_versions WHERE schema_id = ? "
            "ORDER BY captured_at DESC, sequence DESC"
        )
        params: tuple[Any, ...] = (schema_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (schema_id, limit)

        cursor = await self.db.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_version(row) for row in rows]

    async def latest_version(self, schema_id: str) -> SchemaVersion | None:
        """Get the newest version of a schema."""
        versions = await self.list_versions(schema_id, limit=1)
        return versions[0] if versions else None

    async def get_version(self, version_id: str) -> SchemaVersion | None:
        """Get a version by ID.

        Args:
            version_id: Version ID

        Returns:
            SchemaVersion or None if not found
        """
        cursor = await self.db.execute(
            "SELECT * FROM schema_versions WHERE id = ?", (version_id,)
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return self._row_to_version(row)

    async def count_versions(self, schema_id: str) -> int:
        """Count the versions of a schema."""
        cursor = await self.db.execute(
            "SELECT COUNT(*) FROM schema_versions WHERE schema_id = ?", (schema_id,)
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def delete_versions_for_schema(self, schema_id: str) -> int:
        """Delete every version of a schema.

        Deleting an already-empty history succeeds and returns 0.

        Args:
            schema_id: Schema ID

        Returns:
            Number of deleted versions
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM schema_versions WHERE schema_id = ?", (schema_id,)
            )
        return cursor.rowcount

    def _row_to_version(self, row: Any) -> SchemaVersion:
        return SchemaVersion(
            id=row["id"],
            schema_id=row["schema_id"],
            sequence=row["sequence"],
            name=row["name"],
            description=row["description"],
            endpoint_url=row["endpoint_url"],
            http_method=row["http_method"],
            definition=row["definition"],
            actor_id=row["actor_id"],
            change_note=row["change_note"],
            captured_at=datetime.fromisoformat(row["captured_at"]),
        )
