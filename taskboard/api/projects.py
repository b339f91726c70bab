# =============================================================================
# Project API Routes
# =============================================================================
#
# Endpoints:
#   GET    /projects        - List projects with members and tasks
#   POST   /projects        - Create (Admin, ProjectManager)
#   GET    /projects/{id}   - Read one
#   PUT    /projects/{id}   - Sparse update (Admin, ProjectManager)
#   DELETE /projects/{id}   - Delete with its tasks (Admin)
#
# =============================================================================

from typing import Any

from fastapi import APIRouter, Body, Depends

from taskboard.api.deps import get_project_service
from taskboard.auth.context import Principal
from taskboard.auth.policies import get_principal
from taskboard.services import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(
    principal: Principal | None = Depends(get_principal),
    projects: ProjectService = Depends(get_project_service),
):
    return {"projects": await projects.list_projects(principal)}


@router.post("", status_code=201)
async def create_project(
    payload: Any = Body(default=None),
    principal: Principal | None = Depends(get_principal),
    projects: ProjectService = Depends(get_project_service),
):
    project = await projects.create_project(principal, payload)
    return {"project": project, "message": "Project created successfully"}


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    principal: Principal | None = Depends(get_principal),
    projects: ProjectService = Depends(get_project_service),
):
    return {"project": await projects.get_project(principal, project_id)}


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    payload: Any = Body(default=None),
    principal: Principal | None = Depends(get_principal),
    projects: ProjectService = Depends(get_project_service),
):
    project = await projects.update_project(principal, project_id, payload)
    return {"project": project, "message": "Project updated successfully"}


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    principal: Principal | None = Depends(get_principal),
    projects: ProjectService = Depends(get_project_service),
):
    await projects.delete_project(principal, project_id)
    return {"message": "Project deleted successfully"}
