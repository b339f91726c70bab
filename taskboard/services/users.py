"""
User handlers: signup, admin user management, login and token refresh.

Every user payload that leaves this module goes through `UserResponse`,
which has no password field.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from taskboard.auth.capabilities import Action, Entity
from taskboard.auth.context import Principal
from taskboard.auth.jwt import (
    TokenExpiredError,
    TokenInvalidError,
    TokenPair,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)
from taskboard.auth.policies import authorize
from taskboard.core.errors import AuthenticationRequired, Conflict
from taskboard.core.events import task_updated
from taskboard.core.models import User, UserResponse, membership_id
from taskboard.core.schemas import (
    LoginRequest,
    RefreshRequest,
    UserCreate,
    UserRoleUpdate,
    validate,
)
from taskboard.core.utils import utc_now
from taskboard.services.base import ResourceService
from taskboard.storage.base import Collections

logger = logging.getLogger(__name__)


class UserService(ResourceService):
    """Users: signup is public, everything else is Admin-only or self."""

    def public(self, user: User) -> dict[str, Any]:
        return self.dump(UserResponse.from_user(user))

    async def find_by_email(self, email: str) -> User | None:
        record = await self.db.find_one(Collections.USERS, {"email": email.lower()})
        return User.from_record(record) if record else None

    async def find_by_username(self, username: str) -> User | None:
        record = await self.db.find_one(Collections.USERS, {"username": username})
        return User.from_record(record) if record else None

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_users(self, principal: Principal | None) -> list[dict[str, Any]]:
        authorize(principal, Entity.USER, Action.LIST)
        records = await self.db.query(Collections.USERS)
        return [self.public(User.from_record(r)) for r in records]

    async def get_user(self, principal: Principal | None, user_id: str) -> dict[str, Any]:
        authorize(principal, Entity.USER, Action.READ)
        return self.public(await self.load_user(user_id))

    async def me(self, principal: Principal | None) -> dict[str, Any]:
        """The caller's own session identity."""
        if principal is None:
            raise AuthenticationRequired("Unauthorized")
        return principal.to_dict()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def signup(self, payload: Any) -> dict[str, Any]:
        """
        Create an account with no role.

        Raises:
            ValidationFailed: bad username/email/password
            Conflict: email or username already taken
        """
        authorize(None, Entity.USER, Action.CREATE)
        data = validate(UserCreate, payload)
        email = data.email.lower()

        if await self.find_by_email(email):
            raise Conflict("User with this email already exists")
        if await self.find_by_username(data.username):
            raise Conflict("User with this username already exists")

        user = User(
            username=data.username,
            email=email,
            password_hash=await asyncio.to_thread(hash_password, data.password),
        )
        await self.db.save(Collections.USERS, user.id, user.to_record())
        logger.info("Created user %s (%s)", user.id, user.username)
        return self.public(user)

    async def update_role(self, principal: Principal | None, user_id: str, payload: Any) -> dict[str, Any]:
        authorize(principal, Entity.USER, Action.UPDATE_ROLE)
        user = await self.load_user(user_id)
        data = validate(UserRoleUpdate, payload)

        user.role = data.role
        user.updated_at = utc_now()
        await self.db.update(Collections.USERS, user.id, {
            "role": user.role.value if user.role else None,
            "updated_at": user.updated_at.isoformat(),
        })
        logger.info("User %s set role of %s to %s", principal.id, user.id, data.role)
        return self.public(user)

    async def delete_user(self, principal: Principal | None, user_id: str) -> None:
        """
        Delete a user, their project memberships, and their task
        assignments. Each step is a separate write.
        """
        authorize(principal, Entity.USER, Action.DELETE)
        user = await self.load_user(user_id)

        for membership in await self.db.query(Collections.PROJECT_MEMBERS, {"user_id": user.id}):
            key = membership_id(membership["project_id"], membership["user_id"])
            await self.db.delete(Collections.PROJECT_MEMBERS, key)

        for record in await self.db.query(Collections.TASKS, {"assigned_to_id": user.id}):
            await self.db.update(Collections.TASKS, record["id"], {"assigned_to_id": None})
            await self.bus.publish(task_updated(record["project_id"], record["id"], actor_id=principal.id))

        await self.db.delete(Collections.USERS, user.id)
        logger.info("User %s deleted user %s", principal.id, user.id)

    # =========================================================================
    # Sessions
    # =========================================================================

    async def login(self, payload: Any) -> TokenPair:
        """Exchange email + password for a token pair."""
        data = validate(LoginRequest, payload)
        user = await self.find_by_email(data.email)
        if user is None or not await asyncio.to_thread(verify_password, data.password, user.password_hash):
            raise AuthenticationRequired("Invalid email or password")
        return create_token_pair(user)

    async def refresh(self, payload: Any) -> TokenPair:
        """Use a refresh token to get a fresh pair (with current role claims)."""
        data = validate(RefreshRequest, payload)
        try:
            token = decode_token(data.refresh_token, expected_type="refresh")
        except TokenExpiredError:
            raise AuthenticationRequired("Refresh token expired, please login again")
        except TokenInvalidError as e:
            raise AuthenticationRequired(str(e))

        user = await self.find_user(token.sub)
        if user is None:
            raise AuthenticationRequired("User no longer exists")
        return create_token_pair(user)
