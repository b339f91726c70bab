"""
Client-side form validation.

Drafts are checked before any request is sent, with the messages a form
shows next to its fields. They are looser in some places than the API
(task priority offers "Critical", which the server rejects) and stricter
in others (a project's start date must not be after its end date, and it
needs at least one member).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import EmailStr, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from taskboard.core.models import TaskStatus
from taskboard.core.schemas import InputSchema, parse_date


class DraftProjectStatus(str, Enum):
    """Statuses the project form offers (no "Cancelled")."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class DraftTaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


def _required(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", message)
    return value


class Draft(InputSchema):
    """Base for form drafts; `to_payload()` is the request body."""

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Projects
# =============================================================================


class ProjectDraft(Draft):
    name: str
    status: DraftProjectStatus = DraftProjectStatus.NOT_STARTED
    start_date: datetime
    end_date: datetime
    progress: float = Field(default=0, ge=0, le=100)
    budget: float = Field(default=0, ge=0)
    member_ids: list[str]

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Any:
        return _required(value, "Name is required")

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_date(cls, value: Any) -> datetime:
        _required(value, "Start date is required")
        try:
            return parse_date(value, "start date")
        except ValueError as e:
            raise PydanticCustomError("date", str(e)) from None

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_date(cls, value: Any) -> datetime:
        _required(value, "End date is required")
        try:
            return parse_date(value, "end date")
        except ValueError as e:
            raise PydanticCustomError("date", str(e)) from None

    @field_validator("member_ids")
    @classmethod
    def _members(cls, value: list[str]) -> list[str]:
        if not value:
            raise PydanticCustomError("members", "At least one member is required")
        return value

    @model_validator(mode="after")
    def _date_order(self) -> ProjectDraft:
        if self.start_date > self.end_date:
            raise PydanticCustomError("date_order", "End date must be on or after the start date")
        return self


# =============================================================================
# Tasks
# =============================================================================


class TaskDraft(Draft):
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: DraftTaskPriority = DraftTaskPriority.MEDIUM
    assigned_to_id: str | None = None
    project_id: str

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Any:
        return _required(value, "Title is required")

    @field_validator("assigned_to_id", mode="before")
    @classmethod
    def _unassigned(cls, value: Any) -> Any:
        # The assignee picker yields "" for "nobody"
        return value or None


# =============================================================================
# Signup
# =============================================================================


class SignupDraft(Draft):
    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def _username(cls, value: str) -> str:
        if len(value) < 3:
            raise PydanticCustomError("username", "Username must be at least 3 characters")
        return value

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if len(value) < 6:
            raise PydanticCustomError("password", "Password must be at least 6 characters")
        return value
