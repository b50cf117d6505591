"""Repository modules for data access."""

from zarv.db.repositories.project_repository import ProjectRepository
from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository

__all__ = ["ProjectRepository", "SchemaRepository", "VersionRepository"]
