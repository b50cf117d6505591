"""Schema repository for database operations."""

from datetime import datetime, timezone
from typing import Any

from zarv.db.database import Database
from zarv.models.schema import HttpMethod, SchemaEntity


class SchemaRepository:
    """Repository for the current-state `schemas` table."""

    # Whitelist of updatable columns to prevent SQL injection
    UPDATABLE_COLUMNS = frozenset(
        {"name", "description", "endpoint_url", "http_method", "definition", "last_request_body"}
    )

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def create(self, schema: SchemaEntity) -> SchemaEntity:
        """Insert a schema row.

        Joins the caller's transaction when one is open.

        Args:
            schema: Schema to insert

        Returns:
            The inserted schema
        """
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO schemas (
                    id, project_id, name, description, endpoint_url, http_method,
                    definition, last_request_body, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    schema.id,
                    schema.project_id,
                    schema.name,
                    schema.description,
                    schema.endpoint_url,
                    schema.http_method.value if schema.http_method else None,
                    schema.definition,
                    schema.last_request_body,
                    schema.created_at.isoformat(),
                    schema.updated_at.isoformat(),
                ),
            )
        return schema

    async def find_by_id(self, schema_id: str) -> SchemaEntity | None:
        """Find schema by ID.

        Args:
            schema_id: Schema ID

        Returns:
            SchemaEntity or None if not found
        """
        cursor = await self.db.execute("SELECT * FROM schemas WHERE id = ?", (schema_id,))
        row = await cursor.fetchone()

        if not row:
            return None

        return self._row_to_schema(row)

    async def exists(self, schema_id: str) -> bool:
        """Check whether a schema row exists."""
        cursor = await self.db.execute("SELECT 1 FROM schemas WHERE id = ?", (schema_id,))
        return await cursor.fetchone() is not None

    async def find_by_project(self, project_id: str) -> list[SchemaEntity]:
        """List the schemas of a project.

        Args:
            project_id: Project ID

        Returns:
            Schemas ordered by creation time
        """
        cursor = await self.db.execute(
            "SELECT * FROM schemas WHERE project_id = ? ORDER BY created_at, name",
            (project_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_schema(row) for row in rows]

    async def update(self, schema_id: str, updates: dict[str, Any]) -> SchemaEntity | None:
        """Update columns of a schema row and bump `updated_at`.

        Args:
            schema_id: Schema ID
            updates: Column values keyed by column name

        Returns:
            Updated schema or None if not found
        """
        set_clauses = []
        params: list[Any] = []

        for column, value in updates.items():
            if column not in self.UPDATABLE_COLUMNS:
                raise ValueError(f"Invalid column: {column}")
            if isinstance(value, HttpMethod):
                value = value.value
            set_clauses.append(f"{column} = ?")
            params.append(value)

        if not set_clauses:
            return await self.find_by_id(schema_id)

        set_clauses.append("updated_at = ?")
        params.append(datetime.now(timezone.utc).isoformat())
        params.append(schema_id)

        async with self.db.transaction():
            cursor = await self.db.execute(
                f"UPDATE schemas SET {', '.join(set_clauses)} WHERE id = ?", tuple(params)
            )
        if cursor.rowcount == 0:
            return None

        return await self.find_by_id(schema_id)

    async def delete(self, schema_id: str) -> bool:
        """Delete a schema row.

        Args:
            schema_id: Schema ID

        Returns:
            True if deleted, False if not found
        """
        async with self.db.transaction():
            cursor = await self.db.execute("DELETE FROM schemas WHERE id = ?", (schema_id,))
        return cursor.rowcount > 0

    def _row_to_schema(self, row: Any) -> SchemaEntity:
        """Convert database row to SchemaEntity.

        Args:
            row: Database row

        Returns:
            SchemaEntity object
        """
        return SchemaEntity(
            id=row["id"],
            project_id=row["project_id"],
            name=row["name"],
            description=row["description"],
            endpoint_url=row["endpoint_url"],
            http_method=HttpMethod(row["http_method"]) if row["http_method"] else None,
            definition=row["definition"],
            last_request_body=row["last_request_body"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
