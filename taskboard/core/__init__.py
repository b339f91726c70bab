"""
Core module - data models and infrastructure.

This module contains:
- models: Stored records (User, Project, ProjectMember, Task) and enums
- schemas: Create/update validation schemas for untrusted input
- errors: The error taxonomy handlers map failures onto
- events: In-process event bus for task change notifications
- utils: Shared utility functions
"""

from taskboard.core.models import (
    Role,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    User,
    UserResponse,
    UserSummary,
    Project,
    ProjectMember,
    Task,
)

from taskboard.core.errors import (
    TaskboardError,
    AuthenticationRequired,
    AuthorizationDenied,
    ValidationFailed,
    BadRequest,
    NotFound,
    Conflict,
)

from taskboard.core.events import (
    Event,
    EventBus,
)

from taskboard.core.utils import (
    generate_id,
    utc_now,
)

__all__ = [
    # Models
    "Role",
    "ProjectStatus",
    "TaskPriority",
    "TaskStatus",
    "User",
    "UserResponse",
    "UserSummary",
    "Project",
    "ProjectMember",
    "Task",
    # Errors
    "TaskboardError",
    "AuthenticationRequired",
    "AuthorizationDenied",
    "ValidationFailed",
    "BadRequest",
    "NotFound",
    "Conflict",
    # Events
    "Event",
    "EventBus",
    # Utils
    "generate_id",
    "utc_now",
]
