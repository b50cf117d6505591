"""Project service for business logic."""

import logging

from zarv.db.repositories.project_repository import ProjectRepository
from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository
from zarv.models.project import Project
from zarv.utils.validators import validate_required

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project operations."""

    def __init__(
        self,
        repository: ProjectRepository,
        schema_repository: SchemaRepository,
        version_repository: VersionRepository,
    ) -> None:
        """Initialize project service.

        Args:
            repository: Project repository
            schema_repository: Schema repository
            version_repository: Version repository
        """
        self.repository = repository
        self.schema_repository = schema_repository
        self.version_repository = version_repository

    async def create_project(
        self,
        name: str,
        description: str | None = None,
        owner_id: str | None = None,
    ) -> Project:
        """Create a new project.

        Args:
            name: Project name
            description: Project description
            owner_id: Opaque owner identifier

        Returns:
            Created project

        Raises:
            ValidationError: If the name is empty
        """
        project = Project(
            name=validate_required(name, "name"),
            description=description,
            owner_id=owner_id,
        )
        return await self.repository.create(project)

    async def get_project(self, project_id: str) -> Project | None:
        return await self.repository.find_by_id(project_id)

    async def list_projects(self, owner_id: str | None = None) -> list[Project]:
        return await self.repository.find_all(owner_id)

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project with all of its schemas and their histories.

        Args:
            project_id: Project ID

        Returns:
            True if deleted, False if not found
        """
        async with self.repository.db.transaction():
            schemas = await self.schema_repository.find_by_project(project_id)
            for schema in schemas:
                await self.version_repository.delete_versions_for_schema(schema.id)
                await self.schema_repository.delete(schema.id)
            deleted = await self.repository.delete(project_id)

        if deleted:
            logger.info("Deleted project %s with %d schemas", project_id, len(schemas))
        return deleted
