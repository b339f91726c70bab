"""
Task handlers.

Creation and deletion are for Admins and ProjectManagers; updates are
also open to the task's current assignee. Every successful mutation is
published on the event bus so websocket subscribers of the project hear
about it.
"""

from __future__ import annotations

import logging
from typing import Any

from taskboard.auth.capabilities import Action, Entity
from taskboard.auth.context import Principal
from taskboard.auth.policies import allowed_by_role, authorize
from taskboard.core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    BadRequest,
    NotFound,
    ValidationFailed,
)
from taskboard.core.events import task_deleted, task_updated
from taskboard.core.models import Project, Task, User, UserSummary
from taskboard.core.schemas import TaskCreate, TaskUpdate, validate
from taskboard.core.utils import utc_now
from taskboard.services.base import ResourceService
from taskboard.storage.base import Collections

logger = logging.getLogger(__name__)


def task_payload(task: Task, assignee: User | None) -> dict[str, Any]:
    """A task with its assignee summary expanded."""
    data = task.model_dump(mode="json", by_alias=True)
    data["assignedTo"] = (
        UserSummary.from_user(assignee).model_dump(mode="json", by_alias=True)
        if assignee else None
    )
    return data


class TaskService(ResourceService):

    async def _assignee(self, task: Task) -> User | None:
        if not task.assigned_to_id:
            return None
        return await self.find_user(task.assigned_to_id)

    async def _project_summary(self, project: Project) -> dict[str, Any]:
        members = await self.db.query(Collections.PROJECT_MEMBERS, {"project_id": project.id})
        users = await self.users_by_id([m["user_id"] for m in members])
        return {
            "id": project.id,
            "name": project.name,
            "status": project.status.value,
            "members": [self.dump(UserSummary.from_user(u)) for u in users.values()],
        }

    async def expand(self, task: Task, include_project: bool = False) -> dict[str, Any]:
        data = task_payload(task, await self._assignee(task))
        if include_project:
            project = await self.find_project(task.project_id)
            data["project"] = await self._project_summary(project) if project else None
        return data

    async def _check_assignee(self, user_id: str) -> None:
        if await self.find_user(user_id) is None:
            raise ValidationFailed.single("assignedToId", "User not found")

    async def tasks_for_project(self, project_id: str) -> list[Task]:
        records = await self.db.query(Collections.TASKS, {"project_id": project_id})
        return [Task.from_record(r) for r in records]

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_tasks(self, principal: Principal | None, project_id: str | None) -> list[dict[str, Any]]:
        authorize(principal, Entity.TASK, Action.LIST)
        if not project_id:
            raise BadRequest("Project ID is required")
        return [await self.expand(t) for t in await self.tasks_for_project(project_id)]

    async def get_task(self, principal: Principal | None, task_id: str) -> dict[str, Any]:
        authorize(principal, Entity.TASK, Action.READ)
        return await self.expand(await self.load_task(task_id), include_project=True)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_task(self, principal: Principal | None, payload: Any) -> dict[str, Any]:
        authorize(principal, Entity.TASK, Action.CREATE)
        data = validate(TaskCreate, payload)

        if await self.find_project(data.project_id) is None:
            raise ValidationFailed.single("projectId", "Project not found")
        if data.assigned_to_id:
            await self._check_assignee(data.assigned_to_id)

        task = Task(
            title=data.title,
            description=data.description,
            priority=data.priority,
            status=data.status,
            assigned_to_id=data.assigned_to_id or None,
            project_id=data.project_id,
        )
        await self.db.save(Collections.TASKS, task.id, task.to_record())
        logger.info("User %s created task %s in project %s", principal.id, task.id, task.project_id)

        shaped = await self.expand(task)
        await self.bus.publish(task_updated(task.project_id, task.id, shaped, actor_id=principal.id))
        return shaped

    async def update_task(self, principal: Principal | None, task_id: str, payload: Any) -> dict[str, Any]:
        """
        Apply a sparse patch.

        `assignedToId` with an id connects that user, an explicit null
        disconnects, and leaving it out keeps the current assignee.
        """
        if principal is None:
            raise AuthenticationRequired()

        task = await self.find_task(task_id)
        if task is None:
            # Only reveal existence to callers who could have updated it
            if allowed_by_role(principal, Entity.TASK, Action.UPDATE):
                raise NotFound("Task not found")
            raise AuthorizationDenied()

        authorize(principal, Entity.TASK, Action.UPDATE, resource=task)
        patch = validate(TaskUpdate, payload).patch()

        if (
            self.settings.assignee_status_only
            and not allowed_by_role(principal, Entity.TASK, Action.UPDATE)
            and set(patch) - {"status"}
        ):
            raise AuthorizationDenied("Assignees may only change the task status")

        if patch.get("assigned_to_id"):
            await self._check_assignee(patch["assigned_to_id"])

        for key, value in patch.items():
            setattr(task, key, value)
        task.updated_at = utc_now()

        await self.db.save(Collections.TASKS, task.id, task.to_record())
        logger.info("User %s updated task %s: %s", principal.id, task.id, sorted(patch))

        shaped = await self.expand(task, include_project=True)
        await self.bus.publish(task_updated(task.project_id, task.id, shaped, actor_id=principal.id))
        return shaped

    async def delete_task(self, principal: Principal | None, task_id: str) -> None:
        authorize(principal, Entity.TASK, Action.DELETE)
        task = await self.load_task(task_id)

        await self.db.delete(Collections.TASKS, task.id)
        logger.info("User %s deleted task %s", principal.id, task.id)
        await self.bus.publish(task_deleted(task.project_id, task.id, actor_id=principal.id))
