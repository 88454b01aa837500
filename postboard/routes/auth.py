"""
Postboard Backend — Auth Route Handlers
=========================================

What:  Registration, login and "who am I" for bearer-token clients.
Who:   Called by the frontend sign-up / sign-in forms and on page load.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.dependencies import get_db_session, get_user_service, require_user_id
from postboard.schemas.common import ErrorResponse
from postboard.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserProfile
from postboard.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields or login already taken", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    return await user_service.register(
        db=db,
        login=body.login,
        password=body.password,
        full_name=body.full_name,
        avatar_url=body.avatar_url,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Wrong password", "model": ErrorResponse},
        404: {"description": "Unknown login", "model": ErrorResponse},
    },
    summary="Sign in with login and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    return await user_service.login(db=db, login=body.login, password=body.password)


@router.get(
    "/me",
    response_model=UserProfile,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "User no longer exists", "model": ErrorResponse},
    },
    summary="Profile of the authenticated user",
)
async def get_me(
    user_id: uuid.UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    user_service: UserService = Depends(get_user_service),
) -> UserProfile:
    return await user_service.get_me(db=db, user_id=user_id)
