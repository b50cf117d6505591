"""MCP server implementation for zarv."""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from zarv.config import get_settings
from zarv.config.settings import Settings
from zarv.db.database import Database
from zarv.db.repositories.project_repository import ProjectRepository
from zarv.db.repositories.schema_repository import SchemaRepository
from zarv.db.repositories.version_repository import VersionRepository
from zarv.models.diff import DiffMode
from zarv.services.diff_service import DiffService
from zarv.services.project_service import ProjectService
from zarv.services.schema_service import SchemaService
from zarv.services.version_service import VersionService
from zarv.tools import project_tools, schema_tools, version_tools

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("zarv")

# Global service instances (initialized in main)
project_service: ProjectService | None = None
schema_service: SchemaService | None = None
version_service: VersionService | None = None
diff_service: DiffService | None = None
db: Database | None = None


async def initialize_services(settings: Settings | None = None) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings (the global settings when omitted)
    """
    global project_service, schema_service, version_service, diff_service, db

    settings = settings or get_settings()

    # Initialize database
    db = Database(settings.database_path, settings.max_page_count)
    await db.connect()
    await db.migrate()

    # Initialize repositories
    project_repo = ProjectRepository(db)
    schema_repo = SchemaRepository(db)
    version_repo = VersionRepository(db)

    # Initialize services
    diff_service = DiffService()
    project_service = ProjectService(project_repo, schema_repo, version_repo)
    schema_service = SchemaService(schema_repo, version_repo, project_repo)
    version_service = VersionService(
        version_repo,
        schema_repo,
        diff_service,
        default_mode=DiffMode(settings.default_diff_mode),
        filename_extension=settings.diff_filename_extension,
        history_limit=settings.history_limit,
    )

    logger.info("Services initialized (database: %s)", settings.database_path)


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    global db
    if db:
        await db.close()
        db = None


# Project Tools
@mcp.tool()
async def project_create(
    name: str,
    description: str | None = None,
    owner_id: str | None = None,
) -> dict[str, Any]:
    """Create a project to group schemas.

    Args:
        name: Project name
        description: Optional description
        owner_id: Optional owner identifier

    Returns:
        The created project
    """
    if not project_service:
        raise RuntimeError("Services not initialized")
    return await project_tools.project_create(project_service, name, description, owner_id)


@mcp.tool()
async def project_list(owner_id: str | None = None) -> dict[str, Any]:
    """List projects.

    Args:
        owner_id: Only list projects of this owner

    Returns:
        Projects and their count
    """
    if not project_service:
        raise RuntimeError("Services not initialized")
    return await project_tools.project_list(project_service, owner_id)


@mcp.tool()
async def project_delete(project_id: str) -> dict[str, Any]:
    """Delete a project, its schemas, and their version histories.

    Args:
        project_id: Project ID

    Returns:
        Deletion status
    """
    if not project_service:
        raise RuntimeError("Services not initialized")
    return await project_tools.project_delete(project_service, project_id)


# Schema Tools
@mcp.tool()
async def schema_create(
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
        project_id: Owning project ID
        name: Schema name
        definition: Zod validator definition, e.g. z.object({ id: z.number() })
        description: Optional description
        endpoint_url: Endpoint whose responses the schema validates
        http_method: GET, POST, PUT, PATCH or DELETE
        actor_id: Who created the schema

    Returns:
        The created schema
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_create(
        schema_service,
        project_id,
        name,
        definition,
        description,
        endpoint_url,
        http_method,
        actor_id,
    )


@mcp.tool()
async def schema_get(schema_id: str) -> dict[str, Any]:
    """Get a schema by ID.

    Args:
        schema_id: Schema ID

    Returns:
        The schema's current state
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_get(schema_service, schema_id)


@mcp.tool()
async def schema_list(project_id: str) -> dict[str, Any]:
    """List the schemas of a project.

    Args:
        project_id: Project ID

    Returns:
        Schemas and their count
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_list(schema_service, project_id)


@mcp.tool()
async def schema_update(
    schema_id: str,
    changes: dict[str, Any],
    actor_id: str | None = None,
    change_note: str | None = None,
) -> dict[str, Any]:
    """Update a schema and record the new version.

    If the edit is saved but history cannot be recorded (storage full),
    the response carries a `warning` instead of an error.

    Args:
        schema_id: Schema ID
        changes: Fields to change: name, description, endpoint_url,
            http_method, definition
        actor_id: Who made the edit
        change_note: Description of the edit

    Returns:
        The updated schema
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_update(
        schema_service, schema_id, changes, actor_id, change_note
    )


@mcp.tool()
async def schema_delete(schema_id: str) -> dict[str, Any]:
    """Delete a schema and its version history.

    Args:
        schema_id: Schema ID

    Returns:
        Deletion status
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_delete(schema_service, schema_id)


@mcp.tool()
async def schema_duplicate(schema_id: str, actor_id: str | None = None) -> dict[str, Any]:
    """Copy a schema as "<name> (Copy)" in the same project.

    Args:
        schema_id: Source schema ID
        actor_id: Who made the copy

    Returns:
        The new schema
    """
    if not schema_service:
        raise RuntimeError("Services not initialized")
    return await schema_tools.schema_duplicate(schema_service, schema_id, actor_id)


@mcp.tool()
async def schema_structure(definition: str) -> dict[str, Any]:
    """Parse a zod definition and list its fields with their types.

    Args:
        definition: Zod validator definition

    Returns:
        Field paths with type and optionality
    """
    return await schema_tools.schema_structure(definition)


# Version Tools
@mcp.tool()
async def schema_version_history(schema_id: str, limit: int | None = None) -> dict[str, Any]:
    """Get the version history of a schema, newest first.

    Args:
        schema_id: Schema ID
        limit: Maximum versions to return

    Returns:
        Versions numbered from the oldest (Version 1)
    """
    if not version_service:
        raise RuntimeError("Services not initialized")
    return await version_tools.schema_version_history(version_service, schema_id, limit)


@mcp.tool()
async def schema_version_get(version_id: str) -> dict[str, Any]:
    """Get a recorded schema version.

    Args:
        version_id: Version ID

    Returns:
        The version snapshot
    """
    if not version_service:
        raise RuntimeError("Services not initialized")
    return await version_tools.schema_version_get(version_service, version_id)


@mcp.tool()
async def schema_version_diff(
    version_id: str,
    compare_to: str | None = None,
    mode: str | None = None,
    include_patch: bool = False,
) -> dict[str, Any]:
    """Diff a version against the current schema or another version.

    Args:
        version_id: Version on the old side
        compare_to: Version on the new side (omit to compare with current)
        mode: "unified" or "split"
        include_patch: Include a unified patch for export

    Returns:
        Diff rows, line counts, and field-level changes
    """
    if not version_service:
        raise RuntimeError("Services not initialized")
    return await version_tools.schema_version_diff(
        version_service, version_id, compare_to, mode, include_patch
    )


@mcp.tool()
async def schema_diff_text(
    old_text: str,
    new_text: str,
    mode: str = "unified",
    title: str | None = None,
    old_label: str | None = None,
    new_label: str | None = None,
    filename: str | None = None,
    include_patch: bool = False,
) -> dict[str, Any]:
    """Diff two texts line by line.

    Args:
        old_text: Previous text
        new_text: Current text
        mode: "unified" or "split"
        title: Header title
        old_label: Label of the old side
        new_label: Label of the new side
        filename: Filename shown in the header
        include_patch: Include a unified patch for export

    Returns:
        Diff rows and line counts
    """
    if not diff_service:
        raise RuntimeError("Services not initialized")
    return await version_tools.schema_diff_text(
        diff_service,
        old_text,
        new_text,
        mode,
        title,
        old_label,
        new_label,
        filename,
        include_patch,
    )


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp
