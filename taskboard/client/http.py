# =============================================================================
# Taskboard HTTP Client
# =============================================================================
#
# Thin async wrapper over the REST surface. Each method returns the
# unwrapped payload (`{"project": {...}}` -> `{...}`) or raises ApiError.
#
# Usage:
#   async with TaskboardClient("http://localhost:8000") as api:
#       await api.login("ada@example.com", "secret1")
#       projects = await api.list_projects()
#
# Tests pass their own httpx.AsyncClient (e.g. over ASGITransport).
#
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from taskboard.config import get_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    A non-2xx response.

    `message` is whatever the server put in `{"message": ...}`: a string,
    or a list of `{"path", "message"}` issues for validation failures.
    """

    def __init__(self, status_code: int, message: Any):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def issues(self) -> list[dict[str, Any]]:
        return self.message if isinstance(self.message, list) else []


class TaskboardClient:
    """Async client for the Taskboard API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url or get_settings().api_url
        self.token = token
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=self.base_url)

    async def __aenter__(self) -> TaskboardClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self._http.request(
            method, path, json=json, params=params, headers=self._headers(),
        )

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body

        message = body.get("message") if isinstance(body, dict) else None
        if message is None:
            message = response.reason_phrase or "Something went wrong"
        logger.debug("%s %s failed with %d: %s", method, path, response.status_code, message)
        raise ApiError(response.status_code, message)

    # =========================================================================
    # Sessions
    # =========================================================================

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and keep the access token for subsequent requests."""
        tokens = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = tokens["access_token"]
        return tokens

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        tokens = await self.request("POST", "/auth/refresh", json={"refresh_token": refresh_token})
        self.token = tokens["access_token"]
        return tokens

    async def me(self) -> dict[str, Any]:
        return (await self.request("GET", "/user/me"))["user"]

    # =========================================================================
    # Users
    # =========================================================================

    async def signup(self, username: str, email: str, password: str) -> dict[str, Any]:
        body = {"username": username, "email": email, "password": password}
        return (await self.request("POST", "/user", json=body))["user"]

    async def list_users(self) -> list[dict[str, Any]]:
        return (await self.request("GET", "/user"))["users"]

    async def update_user_role(self, user_id: str, role: str | None) -> dict[str, Any]:
        return (await self.request("PATCH", f"/user/{user_id}", json={"role": role}))["user"]

    async def delete_user(self, user_id: str) -> None:
        await self.request("DELETE", f"/user/{user_id}")

    # =========================================================================
    # Projects
    # =========================================================================

    async def list_projects(self) -> list[dict[str, Any]]:
        return (await self.request("GET", "/projects"))["projects"]

    async def get_project(self, project_id: str) -> dict[str, Any]:
        return (await self.request("GET", f"/projects/{project_id}"))["project"]

    async def create_project(self, data: dict[str, Any]) -> dict[str, Any]:
        return (await self.request("POST", "/projects", json=data))["project"]

    async def update_project(self, project_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        return (await self.request("PUT", f"/projects/{project_id}", json=patch))["project"]

    async def delete_project(self, project_id: str) -> None:
        await self.request("DELETE", f"/projects/{project_id}")

    # =========================================================================
    # Tasks
    # =========================================================================

    async def list_tasks(self, project_id: str) -> list[dict[str, Any]]:
        return (await self.request("GET", "/tasks", params={"projectId": project_id}))["tasks"]

    async def get_task(self, task_id: str) -> dict[str, Any]:
        return (await self.request("GET", f"/tasks/{task_id}"))["task"]

    async def create_task(self, data: dict[str, Any]) -> dict[str, Any]:
        return (await self.request("POST", "/tasks", json=data))["task"]

    async def update_task(self, task_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        return (await self.request("PUT", f"/tasks/{task_id}", json=patch))["task"]

    async def delete_task(self, task_id: str) -> None:
        await self.request("DELETE", f"/tasks/{task_id}")
