"""
Postboard Backend — Request Dependencies (Auth Gate and Wiring)
=================================================================

What:  FastAPI dependencies that hand each request its settings, database
       session and services, plus the bearer-token auth gate.
How:   Everything is read from `request.app.state`, populated once by
       `create_app()`. No module-level globals are consulted at request time.
Who:   Every route handler, via Depends().

Interceptor order on protected routes:
    require_user_id (auth) → body validation → handler
    FastAPI resolves `Depends(...)` parameters before validating the body,
    so an unauthenticated request is rejected with 401 before its body is
    validated and before the handler runs.

Session scope:
    Routes declare `Depends(get_db_session, scope="function")`. With that
    scope the code after `yield` (commit or rollback) runs as soon as the
    handler returns, before the response is sent. With the default
    "request" scope it would run after the client already has its 200.
"""

import logging
import uuid
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.config import Settings
from postboard.exceptions import UnauthorizedError
from postboard.security import decode_token
from postboard.services.file_service import FileService
from postboard.services.post_service import PostService
from postboard.services.user_service import UserService

logger = logging.getLogger(__name__)

# auto_error=False: a missing/non-bearer header yields None so the gate can
# raise our own UnauthorizedError (401) instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Session-per-request: commit on success, rollback on error.

    Must be declared with scope="function" so the commit happens before
    the response goes out; a failed commit then surfaces as a 500 instead
    of a silently lost write behind a 200.

    Example usage in a route:
        @router.get("/posts")
        async def get_all(db: AsyncSession = Depends(get_db_session, scope="function")):
            ...
    """
    async with request.app.state.database.session() as session:
        yield session


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


async def require_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> uuid.UUID:
    """
    Auth gate: verify the bearer token and expose the caller's user id.

    What:  Turns `Authorization: Bearer <jwt>` into the caller's UUID.
    Who:   Declared first on POST/PATCH/DELETE /posts, POST /upload and
           GET /auth/me.
    When:  Before body validation, before a database session is opened,
           and before the handler.

    How it works:
        1. No header, or a scheme other than Bearer → 401
        2. decode_token checks signature, expiry and the `sub` claim → 401
        3. The id is stored on `request.state.user_id` and returned

    The token is trusted as-is: no user lookup happens here. A signed
    token for a deleted user passes the gate, and writes that reference
    it fail on the posts.user_id foreign key (see PostService).
    """
    if credentials is None:
        raise UnauthorizedError(message="Not authenticated")

    try:
        user_id = decode_token(credentials.credentials, settings)
    except UnauthorizedError as e:
        logger.warning("Rejected token on %s %s: %s", request.method, request.url.path, e.message)
        raise

    request.state.user_id = user_id
    return user_id
