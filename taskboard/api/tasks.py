# =============================================================================
# Task API Routes
# =============================================================================
#
# Endpoints:
#   GET    /tasks?projectId=  - List a project's tasks
#   POST   /tasks             - Create (Admin, ProjectManager)
#   GET    /tasks/{id}        - Read one, with assignee and project
#   PUT    /tasks/{id}        - Sparse update (Admin, ProjectManager, assignee)
#   DELETE /tasks/{id}        - Delete (Admin, ProjectManager)
#
# =============================================================================

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from taskboard.api.deps import get_task_service
from taskboard.auth.context import Principal
from taskboard.auth.policies import get_principal
from taskboard.services import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    project_id: str | None = Query(default=None, alias="projectId"),
    principal: Principal | None = Depends(get_principal),
    tasks: TaskService = Depends(get_task_service),
):
    return {"tasks": await tasks.list_tasks(principal, project_id)}


@router.post("", status_code=201)
async def create_task(
    payload: Any = Body(default=None),
    principal: Principal | None = Depends(get_principal),
    tasks: TaskService = Depends(get_task_service),
):
    task = await tasks.create_task(principal, payload)
    return {"task": task, "message": "Task created successfully"}


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    principal: Principal | None = Depends(get_principal),
    tasks: TaskService = Depends(get_task_service),
):
    return {"task": await tasks.get_task(principal, task_id)}


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    payload: Any = Body(default=None),
    principal: Principal | None = Depends(get_principal),
    tasks: TaskService = Depends(get_task_service),
):
    task = await tasks.update_task(principal, task_id, payload)
    return {"task": task, "message": "Task updated successfully"}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    principal: Principal | None = Depends(get_principal),
    tasks: TaskService = Depends(get_task_service),
):
    await tasks.delete_task(principal, task_id)
    return {"message": "Task deleted successfully"}
