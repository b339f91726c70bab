# =============================================================================
# Client Mutations
# =============================================================================
#
# Every mutating UI action goes through here:
#   success -> invalidate the affected query keys, return the server data
#   failure -> return the server's message, leave the cache alone
#
# Nothing is applied to the cache before the server acknowledges it; the
# next read refetches.
#
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import httpx

from taskboard.client.cache import QueryCache, QueryKey
from taskboard.client.forms import ProjectDraft, SignupDraft, TaskDraft
from taskboard.client.http import ApiError, TaskboardClient
from taskboard.core.errors import ValidationFailed
from taskboard.core.schemas import parse_date, validate

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Something went wrong, please try again"


# =============================================================================
# Results
# =============================================================================


@dataclass
class MutationResult:
    """Outcome of one mutation (or one bulk batch)."""

    ok: bool
    data: Any = None
    error: Any = None  # str, or a list of {"path", "message"} issues
    status_code: int | None = None

    @property
    def error_text(self) -> str:
        """The error as a user-facing notice, one issue per line."""
        if self.error is None:
            return ""
        if isinstance(self.error, list):
            return "\n".join(
                f"{'.'.join(str(p) for p in issue.get('path', []))}: {issue.get('message')}"
                for issue in self.error
            )
        return str(self.error)


@dataclass
class BulkResult:
    """Aggregate outcome of N independent requests."""

    results: list[MutationResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


# =============================================================================
# Mutations
# =============================================================================


class Mutations:
    """
    Mutation wrappers bound to one API client and one query cache.

    Drafts are validated locally first; a draft that fails never reaches
    the server.
    """

    def __init__(self, api: TaskboardClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def _run(
        self,
        call: Callable[[], Awaitable[Any]],
        invalidates: list[QueryKey],
    ) -> MutationResult:
        try:
            data = await call()
        except ApiError as e:
            return MutationResult(ok=False, error=e.message, status_code=e.status_code)
        except httpx.HTTPError as e:
            logger.warning("Request failed: %s", e)
            return MutationResult(ok=False, error=NETWORK_ERROR)

        for key in invalidates:
            self.cache.invalidate(key)
        return MutationResult(ok=True, data=data)

    @staticmethod
    def _rejected(error: ValidationFailed) -> MutationResult:
        return MutationResult(ok=False, error=error.issues, status_code=None)

    # =========================================================================
    # Users
    # =========================================================================

    async def signup(self, data: dict[str, Any]) -> MutationResult:
        try:
            draft = validate(SignupDraft, data)
        except ValidationFailed as e:
            return self._rejected(e)
        return await self._run(
            lambda: self.api.signup(draft.username, draft.email, draft.password),
            [("users",)],
        )

    async def update_user_role(self, user_id: str, role: str | None) -> MutationResult:
        return await self._run(lambda: self.api.update_user_role(user_id, role), [("users",)])

    async def delete_user(self, user_id: str) -> MutationResult:
        # Memberships and assignments change too
        return await self._run(
            lambda: self.api.delete_user(user_id),
            [("users",), ("projects",), ("project",), ("tasks",)],
        )

    # =========================================================================
    # Projects
    # =========================================================================

    async def create_project(self, data: dict[str, Any]) -> MutationResult:
        try:
            draft = validate(ProjectDraft, data)
        except ValidationFailed as e:
            return self._rejected(e)
        return await self._run(lambda: self.api.create_project(draft.to_payload()), [("projects",)])

    async def update_project(self, project_id: str, patch: dict[str, Any]) -> MutationResult:
        return await self._run(
            lambda: self.api.update_project(project_id, patch),
            [("projects",), ("project", project_id)],
        )

    async def update_project_field(
        self,
        project_id: str,
        field_name: str,
        value: Any,
        current: dict[str, Any] | None = None,
    ) -> MutationResult:
        """
        Inline cell edit: send a single field.

        `current` is the project as displayed; it is used to keep start and
        end dates in order.
        """
        try:
            formatted = format_field(field_name, value, current or {})
        except ValueError as e:
            return MutationResult(ok=False, error=[{"path": [field_name], "message": str(e)}])
        return await self.update_project(project_id, {field_name: formatted})

    async def delete_project(self, project_id: str) -> MutationResult:
        return await self._run(
            lambda: self.api.delete_project(project_id),
            [("projects",), ("project", project_id), ("tasks", project_id)],
        )

    # =========================================================================
    # Tasks
    # =========================================================================

    def _task_keys(self, project_id: str) -> list[QueryKey]:
        return [("tasks", project_id), ("project", project_id)]

    async def create_task(self, data: dict[str, Any]) -> MutationResult:
        try:
            draft = validate(TaskDraft, data)
        except ValidationFailed as e:
            return self._rejected(e)
        return await self._run(
            lambda: self.api.create_task(draft.to_payload()),
            self._task_keys(draft.project_id),
        )

    async def update_task(self, project_id: str, task_id: str, patch: dict[str, Any]) -> MutationResult:
        return await self._run(lambda: self.api.update_task(task_id, patch), self._task_keys(project_id))

    async def delete_task(self, project_id: str, task_id: str) -> MutationResult:
        return await self._run(lambda: self.api.delete_task(task_id), self._task_keys(project_id))

    async def bulk_update_tasks(
        self, project_id: str, task_ids: list[str], patch: dict[str, Any],
    ) -> BulkResult:
        """
        Apply one patch to many tasks. Requests are independent: a failure
        leaves the others applied. The cache is invalidated only when every
        request succeeded.
        """
        results = await asyncio.gather(*(
            self._run(lambda tid=tid: self.api.update_task(tid, patch), [])
            for tid in task_ids
        ))
        return self._settle_bulk(project_id, list(results))

    async def bulk_delete_tasks(self, project_id: str, task_ids: list[str]) -> BulkResult:
        results = await asyncio.gather(*(
            self._run(lambda tid=tid: self.api.delete_task(tid), [])
            for tid in task_ids
        ))
        return self._settle_bulk(project_id, list(results))

    def _settle_bulk(self, project_id: str, results: list[MutationResult]) -> BulkResult:
        bulk = BulkResult(results)
        if bulk.ok:
            for key in self._task_keys(project_id):
                self.cache.invalidate(key)
        else:
            logger.info(
                "Bulk task operation on %s: %d succeeded, %d failed",
                project_id, bulk.succeeded, bulk.failed,
            )
        return bulk


# =============================================================================
# Inline edit formatting
# =============================================================================


def _noon_utc(value: Any, label: str) -> datetime:
    parsed = parse_date(value, label).astimezone(timezone.utc)
    return parsed.replace(hour=12, minute=0, second=0, microsecond=0)


def format_field(field_name: str, value: Any, current: dict[str, Any]) -> Any:
    """
    Coerce an inline-edited value to what the API expects.

    Dates are pinned to 12:00 UTC so a date never shifts across time zones.

    Raises:
        ValueError: with the message shown next to the cell
    """
    if field_name in ("progress", "budget"):
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{field_name} must be a valid number") from None
        if field_name == "progress" and not 0 <= number <= 100:
            raise ValueError("Progress must be between 0 and 100")
        if field_name == "budget" and number < 0:
            raise ValueError("Budget cannot be negative")
        return number

    if field_name in ("startDate", "endDate"):
        date = _noon_utc(value, field_name)
        if field_name == "endDate" and current.get("startDate"):
            if date < _noon_utc(current["startDate"], "startDate"):
                raise ValueError("End date cannot be before start date")
        if field_name == "startDate" and current.get("endDate"):
            if date > _noon_utc(current["endDate"], "endDate"):
                raise ValueError("Start date cannot be after end date")
        return date.isoformat().replace("+00:00", "Z")

    if field_name in ("name", "status"):
        return str(value)

    return value
