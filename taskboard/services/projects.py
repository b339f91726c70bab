"""
Project handlers.

Reads are open to any authenticated user; create/update need Admin or
ProjectManager; delete needs Admin. Reads expand members and tasks so a
dashboard needs a single round trip.
"""

from __future__ import annotations

import logging
from typing import Any

from taskboard.auth.capabilities import Action, Entity
from taskboard.auth.context import Principal
from taskboard.auth.policies import authorize
from taskboard.core.errors import ValidationFailed
from taskboard.core.events import task_deleted
from taskboard.core.models import Project, ProjectMember, Task, UserSummary, membership_id
from taskboard.core.schemas import ProjectCreate, ProjectUpdate, validate
from taskboard.core.utils import utc_now
from taskboard.services.base import ResourceService
from taskboard.services.tasks import task_payload
from taskboard.storage.base import Collections

logger = logging.getLogger(__name__)


class ProjectService(ResourceService):

    # =========================================================================
    # Members
    # =========================================================================

    async def member_ids(self, project_id: str) -> list[str]:
        records = await self.db.query(Collections.PROJECT_MEMBERS, {"project_id": project_id})
        return [r["user_id"] for r in records]

    async def _resolve_members(self, member_ids: list[str]) -> list[str]:
        """
        Check every id names a user; duplicates collapse.

        Raises:
            ValidationFailed: one issue per unknown id, at its list index
        """
        found = await self.users_by_id(member_ids)
        issues = [
            {"path": ["memberIds", index], "message": "User not found"}
            for index, user_id in enumerate(member_ids)
            if user_id not in found
        ]
        if issues:
            raise ValidationFailed(issues)
        return list(dict.fromkeys(member_ids))

    async def _set_members(self, project_id: str, member_ids: list[str]) -> None:
        """Replace the member set (one write per added/removed membership)."""
        current = set(await self.member_ids(project_id))
        wanted = set(member_ids)

        for user_id in current - wanted:
            await self.db.delete(Collections.PROJECT_MEMBERS, membership_id(project_id, user_id))
        for user_id in member_ids:
            if user_id not in current:
                member = ProjectMember(project_id=project_id, user_id=user_id)
                await self.db.save(Collections.PROJECT_MEMBERS, member.id, member.to_record())

    # =========================================================================
    # Shaping
    # =========================================================================

    async def expand(self, project: Project) -> dict[str, Any]:
        """Project with members and tasks (tasks carry their assignee)."""
        data = self.dump(project)

        members = await self.users_by_id(await self.member_ids(project.id))
        data["members"] = [self.dump(UserSummary.from_user(u)) for u in members.values()]

        task_records = await self.db.query(Collections.TASKS, {"project_id": project.id})
        tasks = [Task.from_record(r) for r in task_records]
        assignees = await self.users_by_id([t.assigned_to_id for t in tasks if t.assigned_to_id])
        data["tasks"] = [task_payload(t, assignees.get(t.assigned_to_id or "")) for t in tasks]
        return data

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_projects(self, principal: Principal | None) -> list[dict[str, Any]]:
        authorize(principal, Entity.PROJECT, Action.LIST)
        records = await self.db.query(Collections.PROJECTS)
        return [await self.expand(Project.from_record(r)) for r in records]

    async def get_project(self, principal: Principal | None, project_id: str) -> dict[str, Any]:
        authorize(principal, Entity.PROJECT, Action.READ)
        return await self.expand(await self.load_project(project_id))

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_project(self, principal: Principal | None, payload: Any) -> dict[str, Any]:
        authorize(principal, Entity.PROJECT, Action.CREATE)
        data = validate(ProjectCreate, payload)
        member_ids = await self._resolve_members(data.member_ids)

        project = Project(
            name=data.name,
            status=data.status,
            start_date=data.start_date,
            end_date=data.end_date,
            progress=data.progress,
            budget=data.budget,
        )
        await self.db.save(Collections.PROJECTS, project.id, project.to_record())
        await self._set_members(project.id, member_ids)

        logger.info("User %s created project %s", principal.id, project.id)
        return await self.expand(project)

    async def update_project(self, principal: Principal | None, project_id: str, payload: Any) -> dict[str, Any]:
        """
        Sparse patch. `memberIds` replaces the member set only when it is
        a non-empty list; an empty list leaves membership untouched.
        """
        authorize(principal, Entity.PROJECT, Action.UPDATE)
        project = await self.load_project(project_id)
        patch = validate(ProjectUpdate, payload).patch()

        member_ids = patch.pop("member_ids", None)
        if member_ids:
            member_ids = await self._resolve_members(member_ids)

        for key, value in patch.items():
            setattr(project, key, value)
        project.updated_at = utc_now()

        await self.db.save(Collections.PROJECTS, project.id, project.to_record())
        if member_ids:
            await self._set_members(project.id, member_ids)

        logger.info("User %s updated project %s: %s", principal.id, project.id, sorted(patch))
        return await self.expand(project)

    async def delete_project(self, principal: Principal | None, project_id: str) -> None:
        """Delete a project with its tasks and memberships."""
        authorize(principal, Entity.PROJECT, Action.DELETE)
        project = await self.load_project(project_id)

        for record in await self.db.query(Collections.TASKS, {"project_id": project.id}):
            await self.db.delete(Collections.TASKS, record["id"])
            await self.bus.publish(task_deleted(project.id, record["id"], actor_id=principal.id))

        for user_id in await self.member_ids(project.id):
            await self.db.delete(Collections.PROJECT_MEMBERS, membership_id(project.id, user_id))

        await self.db.delete(Collections.PROJECTS, project.id)
        logger.info("User %s deleted project %s", principal.id, project.id)
