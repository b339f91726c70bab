"""
Validation schemas for untrusted request bodies.

Each entity has a creation schema (required fields strict) and an update
schema (every field optional, applied as a sparse patch). `validate()`
turns pydantic errors into the `{path, message}` issue list carried by
`ValidationFailed`.

Dates are only checked for parseability here; start/end ordering is a
client-side form concern (see `taskboard.client.forms`).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from taskboard.core.errors import ValidationFailed
from taskboard.core.models import ProjectStatus, Role, TaskPriority, TaskStatus

SchemaT = TypeVar("SchemaT", bound=BaseModel)

NonEmptyId = Annotated[str, Field(min_length=1)]


# =============================================================================
# Helpers
# =============================================================================


def issues_from_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Reduce pydantic error dicts to the public issue shape."""
    return [{"path": list(err.get("loc", ())), "message": err.get("msg", "Invalid value")} for err in errors]


def validate(schema: type[SchemaT], payload: Any) -> SchemaT:
    """
    Validate a payload against a schema.

    Raises:
        ValidationFailed: with one issue per failing field
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(issues_from_errors(e.errors())) from e


def parse_date(value: Any, label: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime string.

    Naive values are taken as UTC so stored dates are always comparable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"Invalid {label}") from None
    else:
        raise ValueError(f"Invalid {label}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class InputSchema(BaseModel):
    """Accepts camelCase (wire) or snake_case keys; unknown keys are dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PatchSchema(InputSchema):
    """
    An update schema. Only keys present in the payload and not null are
    written; `nullable_fields` may be explicitly nulled (disconnect).
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def patch(self) -> dict[str, Any]:
        present = self.model_dump(exclude_unset=True)
        return {
            key: value
            for key, value in present.items()
            if value is not None or key in self.nullable_fields
        }


# =============================================================================
# Users
# =============================================================================


class UserCreate(InputSchema):
    """Signup data."""

    username: str = Field(min_length=3, max_length=10)
    email: EmailStr
    password: str = Field(min_length=6)


class UserRoleUpdate(InputSchema):
    """Role change; `role` must be present, null clears it."""

    role: Role | None


class LoginRequest(InputSchema):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(InputSchema):
    refresh_token: str


# =============================================================================
# Projects
# =============================================================================


class ProjectCreate(InputSchema):
    name: str = Field(min_length=3)
    status: ProjectStatus
    start_date: datetime
    end_date: datetime
    progress: float = Field(ge=0, le=100)
    budget: float = Field(ge=0)
    member_ids: list[NonEmptyId]

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_date(cls, value: Any) -> datetime:
        return parse_date(value, "start date")

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_date(cls, value: Any) -> datetime:
        return parse_date(value, "end date")


class ProjectUpdate(PatchSchema):
    name: str | None = Field(default=None, min_length=3)
    status: ProjectStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    progress: float | None = Field(default=None, ge=0, le=100)
    budget: float | None = Field(default=None, ge=0)
    member_ids: list[NonEmptyId] | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_date(cls, value: Any) -> datetime | None:
        return None if value is None else parse_date(value, "start date")

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_date(cls, value: Any) -> datetime | None:
        return None if value is None else parse_date(value, "end date")


# =============================================================================
# Tasks
# =============================================================================


class TaskCreate(InputSchema):
    title: str = Field(min_length=3)
    description: str | None = None
    priority: TaskPriority
    status: TaskStatus
    assigned_to_id: str | None = None
    project_id: NonEmptyId

    @field_validator("assigned_to_id", mode="before")
    @classmethod
    def _unassigned(cls, value: Any) -> Any:
        return value or None


class TaskUpdate(PatchSchema):
    """
    Sparse task patch. There is no `project_id`: a task never moves
    between projects, so the key is ignored if sent.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"assigned_to_id"})

    title: str | None = Field(default=None, min_length=3)
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    assigned_to_id: str | None = None

    @field_validator("assigned_to_id", mode="before")
    @classmethod
    def _unassigned(cls, value: Any) -> Any:
        # "" from an assignee picker means nobody
        return value or None
