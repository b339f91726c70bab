# =============================================================================
# User API Routes
# =============================================================================
#
# Endpoints:
#   GET    /user        - List users (Admin)
#   POST   /user        - Sign up (public)
#   GET    /user/me     - Current session identity
#   GET    /user/{id}   - Read a user (Admin)
#   PATCH  /user/{id}   - Change role (Admin)
#   DELETE /user/{id}   - Delete user (Admin)
#
# =============================================================================

from typing import Any

from fastapi import APIRouter, Body, Depends

from taskboard.api.deps import get_user_service
from taskboard.auth.context import Principal
from taskboard.auth.policies import get_principal
from taskboard.services import UserService

router = APIRouter(prefix="/user", tags=["users"])


@router.get("")
async def list_users(
    principal: Principal | None = Depends(get_principal),
    users: UserService = Depends(get_user_service),
):
    return {"users": await users.list_users(principal)}


@router.post("", status_code=201)
async def signup(
    payload: Any = Body(default=None),
    users: UserService = Depends(get_user_service),
):
    """Create an account. The new user has no role until an Admin sets one."""
    user = await users.signup(payload)
    return {"user": user, "message": "User created successfully"}


@router.get("/me")
async def get_current_user(
    principal: Principal | None = Depends(get_principal),
    users: UserService = Depends(get_user_service),
):
    return {"user": await users.me(principal)}


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    principal: Principal | None = Depends(get_principal),
    users: UserService = Depends(get_user_service),
):
    return {"user": await users.get_user(principal, user_id)}


@router.patch("/{user_id}")
async def update_user_role(
    user_id: str,
    payload: Any = Body(default=None),
    principal: Principal | None = Depends(get_principal),
    users: UserService = Depends(get_user_service),
):
    user = await users.update_role(principal, user_id, payload)
    return {"user": user, "message": "User role updated successfully"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    principal: Principal | None = Depends(get_principal),
    users: UserService = Depends(get_user_service),
):
    await users.delete_user(principal, user_id)
    return {"message": "User deleted successfully"}
