"""Project repository for database operations."""

from datetime import datetime
from typing import Any

from zarv.db.database import Database
from zarv.models.project import Project


class ProjectRepository:
    """Repository for project operations."""

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def create(self, project: Project) -> Project:
        """Create a new project.

        Args:
            project: Project object to create

        Returns:
            Created project object
        """
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO projects (id, owner_id, name, description, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    project.id,
                    project.owner_id,
                    project.name,
                    project.description,
                    project.created_at.isoformat(),
                    project.updated_at.isoformat(),
                ),
            )
        return project

    async def find_by_id(self, project_id: str) -> Project | None:
        """Find project by ID.

        Args:
            project_id: Project ID

        Returns:
            Project object or None if not found
        """
        cursor = await self.db.execute("SELECT * FROM projects WHERE id = ?", (project_id,))
        row = await cursor.fetchone()

        if not row:
            return None

        return self._row_to_project(row)

    async def find_all(self, owner_id: str | None = None) -> list[Project]:
        """List projects, optionally only those of one owner.

        Args:
            owner_id: Owner filter

        Returns:
            Projects ordered by creation time
        """
        if owner_id is None:
            cursor = await self.db.execute("SELECT * FROM projects ORDER BY created_at")
        else:
            cursor = await self.db.execute(
                "SELECT * FROM projects WHERE owner_id = ? ORDER BY created_at",
                (owner_id,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_project(row) for row in rows]

    async def delete(self, project_id: str) -> bool:
        """Delete a project row.

        Schemas must be removed first; see ProjectService.delete_project.

        Args:
            project_id: Project ID

        Returns:
            True if deleted, False if not found
        """
        async with self.db.transaction():
            cursor = await self.db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        return cursor.rowcount > 0

    def _row_to_project(self, row: Any) -> Project:
        return Project(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
