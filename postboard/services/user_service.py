"""
Postboard Backend — User Service
==================================

What:  Registration, login and current-user lookup.
How:   Receives the request's AsyncSession on every call; holds only the
       Settings it was built with (bcrypt cost factor, JWT secret/expiry).
Who:   Called by the /auth route handlers.

Flows:
    register:  duplicate check → bcrypt hash → INSERT → token + profile
    login:     SELECT by login → bcrypt verify → token + profile
    get_me:    SELECT by id → profile

bcrypt runs in Starlette's threadpool so hashing never blocks the event loop.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from postboard.config import Settings
from postboard.exceptions import (
    DatabaseError,
    NotFoundError,
    PostboardError,
    UnauthorizedError,
    ValidationError,
)
from postboard.models.user import User
from postboard.schemas.user import AuthResponse, UserProfile
from postboard.security import hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for user accounts.

    Error Handling Strategy:
        Typed application errors (ValidationError, NotFoundError,
        UnauthorizedError) propagate unchanged. Anything else raised by the
        store is logged and wrapped in DatabaseError.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _auth_response(self, user: User) -> AuthResponse:
        profile = UserProfile.model_validate(user)
        return AuthResponse(**profile.model_dump(), token=issue_token(user.id, self.settings))

    async def register(
        self,
        db: AsyncSession,
        login: str,
        password: str,
        full_name: str,
        avatar_url: Optional[str] = None,
    ) -> AuthResponse:
        """
        Create a user and sign them in.

        Raises:
            ValidationError: `login` is already registered (field="login")
            DatabaseError:   the INSERT failed for any other reason
        """
        try:
            result = await db.execute(select(User.id).where(User.login == login))
            if result.scalar_one_or_none() is not None:
                raise ValidationError(
                    message=f"Login '{login}' is already registered",
                    field="login",
                )

            password_hash = await run_in_threadpool(
                hash_password, password, self.settings.bcrypt_rounds
            )
            user = User(
                login=login,
                full_name=full_name,
                password_hash=password_hash,
                avatar_url=avatar_url,
            )
            db.add(user)
            await db.flush()

        except PostboardError:
            raise
        except IntegrityError:
            # Concurrent registration won the unique index race
            raise ValidationError(
                message=f"Login '{login}' is already registered",
                field="login",
            )
        except Exception as e:
            logger.error("Database error registering %s: %s", login, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not register the user. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered user %s (%s)", user.login, user.id)
        return self._auth_response(user)

    async def login(self, db: AsyncSession, login: str, password: str) -> AuthResponse:
        """
        Authenticate by login and password.

        Raises:
            NotFoundError:     no user has this login
            UnauthorizedError: password does not match
        """
        try:
            result = await db.execute(select(User).where(User.login == login))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error looking up %s: %s", login, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not sign in. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if user is None:
            raise NotFoundError(resource="user", context={"login": login})

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.warning("Failed login for %s: password mismatch", login)
            raise UnauthorizedError(message="Invalid login or password")

        logger.info("User %s signed in", user.id)
        return self._auth_response(user)

    async def get_me(self, db: AsyncSession, user_id: uuid.UUID) -> UserProfile:
        """Public profile of the authenticated user; NotFoundError if gone."""
        try:
            user = await db.get(User, user_id)
        except Exception as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id)},
            )

        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        return UserProfile.model_validate(user)
