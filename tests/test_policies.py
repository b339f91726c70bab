"""
Tests for the authorization policy.

Core principle: every (entity, action) pair has exactly one rule, and a
principal without a role is never more than "authenticated".
"""

from types import SimpleNamespace

import pytest

from taskboard.auth.capabilities import POLICY_TABLE, Action, Entity, RuleKind
from taskboard.auth.context import Principal
from taskboard.auth.policies import allowed_by_role, authorize, is_allowed
from taskboard.core.errors import AuthenticationRequired, AuthorizationDenied
from taskboard.core.models import Role


def principal(role: Role | None, id: str = "user_1") -> Principal:
    return Principal(id=id, username="someone", email="someone@example.com", role=role)


ADMIN = principal(Role.ADMIN)
MANAGER = principal(Role.PROJECT_MANAGER)
DEVELOPER = principal(Role.DEVELOPER)
NO_ROLE = principal(None)


# =============================================================================
# Policy Table
# =============================================================================


class TestPolicyTable:
    @pytest.mark.parametrize("entity,action,allowed", [
        (Entity.USER, Action.LIST, {Role.ADMIN}),
        (Entity.USER, Action.READ, {Role.ADMIN}),
        (Entity.USER, Action.UPDATE_ROLE, {Role.ADMIN}),
        (Entity.USER, Action.DELETE, {Role.ADMIN}),
        (Entity.PROJECT, Action.CREATE, {Role.ADMIN, Role.PROJECT_MANAGER}),
        (Entity.PROJECT, Action.UPDATE, {Role.ADMIN, Role.PROJECT_MANAGER}),
        (Entity.PROJECT, Action.DELETE, {Role.ADMIN}),
        (Entity.TASK, Action.CREATE, {Role.ADMIN, Role.PROJECT_MANAGER}),
        (Entity.TASK, Action.DELETE, {Role.ADMIN, Role.PROJECT_MANAGER}),
    ])
    def test_role_gated_actions(self, entity, action, allowed):
        for role in Role:
            assert is_allowed(principal(role), entity, action) == (role in allowed), role
        assert not is_allowed(NO_ROLE, entity, action)
        assert not is_allowed(None, entity, action)

    @pytest.mark.parametrize("entity,action", [
        (Entity.PROJECT, Action.LIST),
        (Entity.PROJECT, Action.READ),
        (Entity.TASK, Action.LIST),
        (Entity.TASK, Action.READ),
    ])
    def test_reads_need_only_a_session(self, entity, action):
        assert is_allowed(NO_ROLE, entity, action)
        assert is_allowed(DEVELOPER, entity, action)
        assert not is_allowed(None, entity, action)

    def test_signup_is_public(self):
        assert is_allowed(None, Entity.USER, Action.CREATE)

    def test_missing_pair_is_denied(self):
        assert (Entity.USER, Action.UPDATE) not in POLICY_TABLE
        assert not is_allowed(ADMIN, Entity.USER, Action.UPDATE)

    def test_task_update_is_the_only_assignee_rule(self):
        assignee_rules = [k for k, r in POLICY_TABLE.items() if r.kind == RuleKind.ROLES_OR_ASSIGNEE]
        assert assignee_rules == [(Entity.TASK, Action.UPDATE)]


# =============================================================================
# Assignee Rule
# =============================================================================


class TestAssigneeRule:
    def test_assignee_may_update(self):
        task = SimpleNamespace(assigned_to_id=DEVELOPER.id)
        assert is_allowed(DEVELOPER, Entity.TASK, Action.UPDATE, resource=task)

    def test_role_less_assignee_may_update(self):
        task = SimpleNamespace(assigned_to_id=NO_ROLE.id)
        assert is_allowed(NO_ROLE, Entity.TASK, Action.UPDATE, resource=task)

    def test_non_assignee_developer_denied(self):
        task = SimpleNamespace(assigned_to_id="user_other")
        assert not is_allowed(DEVELOPER, Entity.TASK, Action.UPDATE, resource=task)

    def test_unassigned_task_denied_to_developer(self):
        task = SimpleNamespace(assigned_to_id=None)
        assert not is_allowed(DEVELOPER, Entity.TASK, Action.UPDATE, resource=task)

    def test_managers_do_not_need_assignment(self):
        task = SimpleNamespace(assigned_to_id="user_other")
        assert is_allowed(MANAGER, Entity.TASK, Action.UPDATE, resource=task)
        assert allowed_by_role(MANAGER, Entity.TASK, Action.UPDATE)
        assert not allowed_by_role(DEVELOPER, Entity.TASK, Action.UPDATE)


# =============================================================================
# authorize()
# =============================================================================


class TestAuthorize:
    def test_returns_principal_when_allowed(self):
        assert authorize(ADMIN, Entity.USER, Action.LIST) is ADMIN

    def test_anonymous_gets_authentication_required(self):
        with pytest.raises(AuthenticationRequired) as exc:
            authorize(None, Entity.PROJECT, Action.READ)
        assert exc.value.status_code == 401

    def test_wrong_role_gets_fixed_denial(self):
        with pytest.raises(AuthorizationDenied) as exc:
            authorize(DEVELOPER, Entity.PROJECT, Action.CREATE)
        assert exc.value.status_code == 403
        assert exc.value.message == "You are not authorized to perform this action"

    def test_public_rule_allows_anonymous(self):
        assert authorize(None, Entity.USER, Action.CREATE) is None
