"""
The principal - who is making the request.

This is the lightweight object handlers receive from the session
resolver. It carries everything the policy table needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from taskboard.core.models import Role, User


@dataclass(frozen=True)
class Principal:
    """
    Authenticated identity derived from a session.

    A principal with `role=None` is authenticated but has no elevated
    capability anywhere.
    """

    id: str
    username: str
    email: str
    role: Role | None = None

    def has_role(self, *roles: Role) -> bool:
        return self.role is not None and self.role in roles

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value if self.role else None,
        }

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)
