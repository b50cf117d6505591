"""Project MCP tools."""

from typing import Any

from zarv.exceptions import StorageError, ValidationError
from zarv.models.project import Project
from zarv.services.project_service import ProjectService
from zarv.tools import create_error_response, storage_error_response


def _project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "id": project.id,
        "owner_id": project.owner_id,
        "name": project.name,
        "description": project.description,
        "created_at": project.created_at.isoformat(),
        "updated_at": project.updated_at.isoformat(),
    }


async def project_create(
    service: ProjectService,
    name: str,
    description: str | None = None,
    owner_id: str | None = None,
) -> dict[str, Any]:
    """Create a project.

    Args:
        service: Project service instance
        name: Project name
        description: Optional description
        owner_id: Optional owner identifier

    Returns:
        Created project
    """
    try:
        project = await service.create_project(name, description, owner_id)
        return _project_to_dict(project)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except StorageError as e:
        return storage_error_response(e)


async def project_list(
    service: ProjectService,
    owner_id: str | None = None,
) -> dict[str, Any]:
    """List projects, optionally those of one owner.

    Args:
        service: Project service instance
        owner_id: Owner filter

    Returns:
        Projects and their count
    """
    try:
        projects = await service.list_projects(owner_id)
    except StorageError as e:
        return storage_error_response(e)

    return {
        "projects": [_project_to_dict(p) for p in projects],
        "total": len(projects),
    }


async def project_delete(
    service: ProjectService,
    project_id: str,
) -> dict[str, Any]:
    """Delete a project with its schemas and their version histories.

    Args:
        service: Project service instance
        project_id: Project ID

    Returns:
        Deletion status
    """
    try:
        deleted = await service.delete_project(project_id)
    except StorageError as e:
        return storage_error_response(e)

    if not deleted:
        return create_error_response(
            message=f"Project not found: {project_id}",
            error_type="NotFoundError",
        )
    return {"deleted": True, "id": project_id}
