"""
Policies - session resolution and the authorization check.

Handlers get the principal through `Depends(get_principal)` and call
`authorize()` before touching storage:

    principal = Depends(get_principal)
    authorize(principal, Entity.PROJECT, Action.CREATE)

Design:
- `resolve_session()` never raises: no token, a bad token or a deleted
  user all resolve to None
- `is_allowed()` is a pure lookup in the policy table
- `authorize()` raises 401 for None principals, 403 on denial
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.requests import HTTPConnection

from taskboard.auth.capabilities import Action, Entity, RuleKind, get_rule
from taskboard.auth.context import Principal
from taskboard.auth.jwt import TokenError, decode_token
from taskboard.core.errors import AuthenticationRequired, AuthorizationDenied
from taskboard.core.models import User
from taskboard.storage.base import Collections, StorageProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Session Resolution
# =============================================================================


def _extract_token(conn: HTTPConnection) -> str | None:
    """
    Bearer token from the Authorization header.

    Browsers cannot set headers on websocket handshakes, so websocket
    connections may pass the token as `?token=` instead.
    """
    header = conn.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    if conn.scope.get("type") == "websocket":
        return conn.query_params.get("token") or None

    return None


async def principal_from_token(token: str, storage: StorageProvider) -> Principal | None:
    """Decode an access token and load the user it names."""
    try:
        payload = decode_token(token, expected_type="access")
    except TokenError as e:
        logger.debug("Rejected session token: %s", e)
        return None

    try:
        record = await storage.metadata.get(Collections.USERS, payload.sub)
    except Exception:
        logger.exception("Session lookup failed for %s", payload.sub)
        return None

    if not record:
        return None
    return Principal.from_user(User.from_record(record))


async def resolve_session(conn: HTTPConnection) -> Principal | None:
    """
    Resolve the authenticated principal for a request or websocket.

    Returns None when the connection is unauthenticated.
    """
    token = _extract_token(conn)
    if not token:
        return None

    storage: StorageProvider | None = getattr(conn.app.state, "storage", None)
    if storage is None:
        logger.error("No storage configured on app state; cannot resolve sessions")
        return None

    return await principal_from_token(token, storage)


# =============================================================================
# Authorization
# =============================================================================


def is_allowed(
    principal: Principal | None,
    entity: Entity,
    action: Action,
    resource: Any = None,
) -> bool:
    """
    Check the policy table.

    `resource` is only consulted by assignee rules; it must expose
    `assigned_to_id`.
    """
    rule = get_rule(entity, action)
    if rule is None:
        return False

    if rule.kind == RuleKind.PUBLIC:
        return True
    if principal is None:
        return False
    if rule.kind == RuleKind.AUTHENTICATED:
        return True
    if principal.has_role(*rule.roles):
        return True
    if rule.kind == RuleKind.ROLES_OR_ASSIGNEE and resource is not None:
        assignee = getattr(resource, "assigned_to_id", None)
        return assignee is not None and assignee == principal.id

    return False


def allowed_by_role(principal: Principal | None, entity: Entity, action: Action) -> bool:
    """True when the principal passes without relying on the assignee rule."""
    return is_allowed(principal, entity, action, resource=None)


def authorize(
    principal: Principal | None,
    entity: Entity,
    action: Action,
    resource: Any = None,
) -> Principal | None:
    """
    Raise unless the policy allows the action.

    Raises:
        AuthenticationRequired: no principal and the rule is not public
        AuthorizationDenied: principal present but not allowed
    """
    if is_allowed(principal, entity, action, resource):
        return principal

    if principal is None:
        raise AuthenticationRequired()

    logger.info(
        "Denied %s %s for user %s (role=%s)",
        action.value, entity.value, principal.id,
        principal.role.value if principal.role else None,
    )
    raise AuthorizationDenied()


# =============================================================================
# FastAPI Dependencies
# =============================================================================


async def get_principal(conn: HTTPConnection) -> Principal | None:
    """Dependency: the principal, or None for anonymous requests."""
    return await resolve_session(conn)
