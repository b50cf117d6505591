"""Service layer for business logic."""

from zarv.services.diff_service import DiffService, DiffView
from zarv.services.project_service import ProjectService
from zarv.services.schema_service import SchemaService
from zarv.services.version_service import VersionService

__all__ = ["DiffService", "DiffView", "ProjectService", "SchemaService", "VersionService"]
