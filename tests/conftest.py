"""Pytest configuration and fixtures for zarv tests."""

import os
import tempfile
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from zarv.config.settings import Settings
from zarv.db.database import Database
from zarv.db.repositories.project_repository import ProjectRepository
from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository
from zarv.models.project import Project
from zarv.services.diff_service import DiffService
from zarv.services.project_service import ProjectService
from zarv.services.schema_service import SchemaService
from zarv.services.version_service import VersionService

@pytest.fixture
def test_settings() -> Settings:
    """Test configuration settings."""
    return Settings(
        database_path=":memory:",
        history_limit=50,
        default_diff_mode="unified",
        log_level="INFO",
    )


@pytest_asyncio.fixture
async def temp_db_path() -> AsyncIterator[str]:
    """Create temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database for fast tests."""
    db = Database(database_path=":memory:")
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def project_repository(memory_db: Database) -> ProjectRepository:
    """Project repository."""
    return ProjectRepository(db=memory_db)


@pytest_asyncio.fixture
async def schema_repository(memory_db: Database) -> SchemaRepository:
    """Schema repository."""
    return SchemaRepository(db=memory_db)


@pytest_asyncio.fixture
async def version_repository(memory_db: Database) -> VersionRepository:
    """Version repository."""
    return VersionRepository(db=memory_db)


@pytest_asyncio.fixture
async def project_service(
    project_repository: ProjectRepository,
    schema_repository: SchemaRepository,
    version_repository: VersionRepository,
) -> ProjectService:
    """Project service."""
    return ProjectService(
        repository=project_repository,
        schema_repository=schema_repository,
        version_repository=version_repository,
    )


@pytest_asyncio.fixture
async def schema_service(
    schema_repository: SchemaRepository,
    version_repository: VersionRepository,
    project_repository: ProjectRepository,
) -> SchemaService:
    """Schema service."""
    return SchemaService(
        repository=schema_repository,
        version_repository=version_repository,
        project_repository=project_repository,
    )


@pytest.fixture
def diff_service() -> DiffService:
    """Diff service."""
    return DiffService()


@pytest_asyncio.fixture
async def version_service(
    version_repository: VersionRepository,
    schema_repository: SchemaRepository,
    diff_service: DiffService,
) -> VersionService:
    """Version service."""
    return VersionService(
        version_repository=version_repository,
        schema_repository=schema_repository,
        diff_service=diff_service,
    )


@pytest_asyncio.fixture
async def project(project_service: ProjectService) -> Project:
    """A stored project."""
    return await project_service.create_project(name="Storefront API", owner_id="user-1")
