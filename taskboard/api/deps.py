"""
Dependencies shared by the routers.

Everything lives on `app.state` (set up by `create_app`), so tests can
build an app around their own storage.
"""

from __future__ import annotations

from fastapi import Request

from taskboard.services import ProjectService, TaskService, UserService


def get_user_service(request: Request) -> UserService:
    return request.app.state.users


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.projects


def get_task_service(request: Request) -> TaskService:
    return request.app.state.tasks
