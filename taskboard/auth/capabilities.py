"""
Entities, actions and the policy table.

This defines WHO may do WHAT, not HOW we check it.
The actual checking happens in policies.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from taskboard.core.models import Role


class Entity(str, Enum):
    USER = "user"
    PROJECT = "project"
    TASK = "task"


class Action(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_ROLE = "update_role"
    DELETE = "delete"


class RuleKind(str, Enum):
    """How a rule decides."""

    PUBLIC = "public"                        # No session needed
    AUTHENTICATED = "authenticated"          # Any principal, role or not
    ROLES = "roles"                          # Principal's role in `roles`
    ROLES_OR_ASSIGNEE = "roles_or_assignee"  # ROLES, or assignee of the resource


@dataclass(frozen=True)
class Rule:
    kind: RuleKind
    roles: frozenset[Role] = frozenset()

    @classmethod
    def public(cls) -> Rule:
        return cls(RuleKind.PUBLIC)

    @classmethod
    def authenticated(cls) -> Rule:
        return cls(RuleKind.AUTHENTICATED)

    @classmethod
    def roles_in(cls, *roles: Role) -> Rule:
        return cls(RuleKind.ROLES, frozenset(roles))

    @classmethod
    def roles_or_assignee(cls, *roles: Role) -> Rule:
        return cls(RuleKind.ROLES_OR_ASSIGNEE, frozenset(roles))


# =============================================================================
# Policy Table
# =============================================================================

ADMIN = Role.ADMIN
MANAGER = Role.PROJECT_MANAGER

# (entity, action) pairs missing from the table are denied.
POLICY_TABLE: dict[tuple[Entity, Action], Rule] = {
    # Users
    (Entity.USER, Action.CREATE): Rule.public(),
    (Entity.USER, Action.LIST): Rule.roles_in(ADMIN),
    (Entity.USER, Action.READ): Rule.roles_in(ADMIN),
    (Entity.USER, Action.UPDATE_ROLE): Rule.roles_in(ADMIN),
    (Entity.USER, Action.DELETE): Rule.roles_in(ADMIN),
    # Projects
    (Entity.PROJECT, Action.LIST): Rule.authenticated(),
    (Entity.PROJECT, Action.READ): Rule.authenticated(),
    (Entity.PROJECT, Action.CREATE): Rule.roles_in(ADMIN, MANAGER),
    (Entity.PROJECT, Action.UPDATE): Rule.roles_in(ADMIN, MANAGER),
    (Entity.PROJECT, Action.DELETE): Rule.roles_in(ADMIN),
    # Tasks
    (Entity.TASK, Action.LIST): Rule.authenticated(),
    (Entity.TASK, Action.READ): Rule.authenticated(),
    (Entity.TASK, Action.CREATE): Rule.roles_in(ADMIN, MANAGER),
    (Entity.TASK, Action.UPDATE): Rule.roles_or_assignee(ADMIN, MANAGER),
    (Entity.TASK, Action.DELETE): Rule.roles_in(ADMIN, MANAGER),
}


def get_rule(entity: Entity, action: Action) -> Rule | None:
    return POLICY_TABLE.get((entity, action))
