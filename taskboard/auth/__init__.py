"""
Authorization - who is calling, and may they do this.

Design principles:
1. One policy table maps (entity, action) to a rule
2. Sessions resolve to a Principal or None, never an exception
3. Handlers call `authorize()` before any storage access

The HTTP routes (`taskboard.auth.routes`) are mounted by the app factory
and are not re-exported here.
"""

from taskboard.auth.capabilities import (
    Action,
    Entity,
    Rule,
    RuleKind,
    POLICY_TABLE,
    get_rule,
)
from taskboard.auth.context import Principal
from taskboard.auth.jwt import (
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    TokenPair,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)
from taskboard.auth.policies import (
    allowed_by_role,
    authorize,
    get_principal,
    is_allowed,
    resolve_session,
)

__all__ = [
    # Policy table
    "Action",
    "Entity",
    "Rule",
    "RuleKind",
    "POLICY_TABLE",
    "get_rule",
    # Sessions
    "Principal",
    "resolve_session",
    "get_principal",
    # Checks
    "is_allowed",
    "allowed_by_role",
    "authorize",
    # JWT
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenPair",
    "create_token_pair",
    "decode_token",
    "hash_password",
    "verify_password",
]
