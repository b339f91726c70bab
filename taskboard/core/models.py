"""
Core data models for the taskboard backend.

These are the records held in storage: Users, Projects, project
memberships and Tasks. Storage keeps them in snake_case via
`model_dump(mode="json")`; the API speaks camelCase through the aliases.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskboard.core.utils import generate_id, utc_now


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Platform-wide role. A user without a role has no elevated capability."""

    ADMIN = "Admin"
    PROJECT_MANAGER = "ProjectManager"
    DEVELOPER = "Developer"


class ProjectStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"


# =============================================================================
# Base
# =============================================================================


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_record(self) -> dict[str, Any]:
        """Serialize for storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, data: dict[str, Any]):
        """Rebuild from a storage document (storage adds `_`-prefixed keys)."""
        return cls.model_validate({k: v for k, v in data.items() if not k.startswith("_")})


# =============================================================================
# User
# =============================================================================


class User(ApiModel):
    """A user as stored. Never returned directly: see `UserResponse`."""

    id: str = Field(default_factory=lambda: generate_id("user"))
    username: str
    email: str
    password_hash: str
    role: Role | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class UserResponse(ApiModel):
    """User data returned to clients (no password field)."""

    id: str
    username: str
    email: str
    role: Role | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(ApiModel):
    """The slice of a user embedded in project and task payloads."""

    id: str
    username: str
    email: str
    role: Role | None = None

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)


# =============================================================================
# Project
# =============================================================================


class Project(ApiModel):
    """
    A project. Members live in the `project_members` collection and tasks
    point back at their project, so neither is stored on this record.
    """

    id: str = Field(default_factory=lambda: generate_id("proj"))
    name: str
    status: ProjectStatus = ProjectStatus.NOT_STARTED
    start_date: datetime
    end_date: datetime
    progress: float = 0
    budget: float = 0

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProjectMember(ApiModel):
    """Join record between a project and a user."""

    project_id: str
    user_id: str

    @property
    def id(self) -> str:
        return membership_id(self.project_id, self.user_id)


def membership_id(project_id: str, user_id: str) -> str:
    return f"{project_id}:{user_id}"


# =============================================================================
# Task
# =============================================================================


class Task(ApiModel):
    """A task. `project_id` is fixed at creation."""

    id: str = Field(default_factory=lambda: generate_id("task"))
    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    assigned_to_id: str | None = None
    project_id: str

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
