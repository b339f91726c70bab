# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/login    - Exchange email + password for tokens
#   POST /auth/refresh  - Exchange a refresh token for a new pair
#
# Account creation lives at POST /user (see taskboard/api/users.py).
#
# =============================================================================

from typing import Any

from fastapi import APIRouter, Body, Depends

from taskboard.api.deps import get_user_service
from taskboard.auth.jwt import TokenPair
from taskboard.services import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenPair)
async def login(
    payload: Any = Body(default=None),
    users: UserService = Depends(get_user_service),
):
    """
    Authenticate and get tokens.
    """
    return await users.login(payload)


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    payload: Any = Body(default=None),
    users: UserService = Depends(get_user_service),
):
    """
    Use refresh token to get new access token.

    The new access token carries the user's current role.
    """
    return await users.refresh(payload)
