"""
Error taxonomy.

Every handler failure ends up as one of these. The API layer turns them
into `{"message": ...}` bodies with the matching status code; anything
else is treated as unhandled (500, generic message, logged).
"""

from __future__ import annotations

from typing import Any


class TaskboardError(Exception):
    """Base class for errors that map onto an HTTP outcome."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Any = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message if isinstance(self.message, str) else self.default_message)

    def to_body(self) -> dict[str, Any]:
        return {"message": self.message}


class AuthenticationRequired(TaskboardError):
    """No valid session on the request."""

    status_code = 401
    default_message = "You must be logged in to perform this action"


class AuthorizationDenied(TaskboardError):
    """Authenticated, but the policy table says no."""

    status_code = 403
    default_message = "You are not authorized to perform this action"


class ValidationFailed(TaskboardError):
    """
    Input rejected by a schema.

    `issues` is a list of {"path": [...], "message": str}; the response
    body carries the list itself as `message`.
    """

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, issues: list[dict[str, Any]]):
        self.issues = issues
        super().__init__(issues)

    @classmethod
    def single(cls, path: str | list[Any], message: str) -> ValidationFailed:
        loc = path if isinstance(path, list) else [path]
        return cls([{"path": loc, "message": message}])


class BadRequest(TaskboardError):
    """Malformed request that is not a schema failure (missing query param...)."""

    status_code = 400
    default_message = "Bad request"


class NotFound(TaskboardError):
    status_code = 404
    default_message = "Not found"


class Conflict(TaskboardError):
    """Uniqueness violation."""

    status_code = 409
    default_message = "Resource already exists"
