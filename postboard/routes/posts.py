"""
Postboard Backend — Post Route Handlers
=========================================

What:  Post listing, detail (counts a view), recent tags, and the
       authenticated write operations.

Auth:
    Reads (GET) are public. POST/PATCH/DELETE resolve `require_user_id`
    before anything else, so a bad token is rejected with 401 before the
    body is validated or a database session is opened.

Route order:
    /posts/tags is registered before /posts/{post_id}; the latter only
    accepts UUIDs.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.dependencies import get_db_session, get_post_service, require_user_id
from postboard.schemas.common import ErrorResponse, SuccessResponse
from postboard.schemas.post import PostResponse, PostWriteRequest
from postboard.services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


@router.get(
    "/tags",
    response_model=List[str],
    summary="Most recent tags",
)
@router.get(
    "/posts/tags",
    response_model=List[str],
    summary="Most recent tags (alias of /tags)",
)
async def get_last_tags(
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> List[str]:
    """Up to 5 tags drawn from the 5 newest posts."""
    return await post_service.get_last_tags(db=db)


@router.get(
    "/posts",
    response_model=List[PostResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all posts",
)
async def get_all(
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await post_service.get_all(db=db)


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Malformed post id", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Get a post and count the view",
)
async def get_one(
    post_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await post_service.get_one(db=db, post_id=post_id)


@router.post(
    "/posts",
    response_model=PostResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Token user no longer exists", "model": ErrorResponse},
    },
    summary="Create a post",
)
async def create(
    body: PostWriteRequest,
    user_id: uuid.UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await post_service.create(
        db=db,
        author_id=user_id,
        title=body.title,
        text=body.text,
        image_url=body.image_url,
        tags_csv=body.tags,
    )


@router.patch(
    "/posts/{post_id}",
    response_model=SuccessResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Token user no longer exists", "model": ErrorResponse},
    },
    summary="Replace a post's content",
)
async def update(
    post_id: uuid.UUID,
    body: PostWriteRequest,
    user_id: uuid.UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> SuccessResponse:
    return await post_service.update(
        db=db,
        post_id=post_id,
        author_id=user_id,
        title=body.title,
        text=body.text,
        image_url=body.image_url,
        tags_csv=body.tags,
    )


@router.delete(
    "/posts/{post_id}",
    response_model=SuccessResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Delete a post",
)
async def remove(
    post_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    post_service: PostService = Depends(get_post_service),
) -> SuccessResponse:
    logger.info("User %s deleting post %s", user_id, post_id)
    return await post_service.remove(db=db, post_id=post_id)
