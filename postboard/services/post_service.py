"""
Postboard Backend — Post Service
==================================

What:  Listing, reading, tagging and writing posts.
How:   Stateless; receives the request's AsyncSession on every call.
Who:   Called by the /posts and /tags route handlers.

View counting:
    get_one issues a single
        UPDATE posts SET views_count = views_count + 1 WHERE id = :id
    so the read-modify-write happens inside the store. Concurrent fetches of
    the same post can never lose an increment. The post is then re-read
    (populate_existing) to return the counter as stored.

Tags:
    Clients send "a,b,c"; it is split on "," with no trimming or dedup, so
    "a, b" yields ["a", " b"] and "" yields [""].
    get_last_tags concatenates the tag lists of the 5 newest posts and keeps
    the first 5 tags of that concatenation (5 total, not 5 per post).

Ownership:
    update rewrites title/text/imageUrl/tags and sets the owner to the caller
    without checking who owned the post before. An id matching no post is
    still acknowledged with success. The caller must exist: a token for a
    user that is no longer stored gets NotFoundError (posts.user_id FK).
"""

import logging
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.exceptions import DatabaseError, NotFoundError, PostboardError
from postboard.models.post import Post
from postboard.schemas.common import SuccessResponse
from postboard.schemas.post import PostResponse

logger = logging.getLogger(__name__)

LAST_TAGS_POST_COUNT = 5
LAST_TAGS_LIMIT = 5


def split_tags(tags_csv: str) -> List[str]:
    return tags_csv.split(",")


def collect_last_tags(tag_lists: Iterable[List[str]], limit: int = LAST_TAGS_LIMIT) -> List[str]:
    """Flatten tag lists in order and keep the first `limit` tags."""
    flat = [tag for tags in tag_lists for tag in (tags or [])]
    return flat[:limit]


class PostService:
    """
    Business logic layer for post operations.

    Error Handling Strategy:
        NotFoundError propagates unchanged; every other store failure is
        logged and wrapped in DatabaseError (generic 500 for the client).
    """

    async def get_all(self, db: AsyncSession) -> List[PostResponse]:
        """All posts, oldest first, each with its owner's profile."""
        try:
            result = await db.execute(select(Post).order_by(Post.created_at.asc()))
            posts = result.scalars().all()
        except Exception as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [PostResponse.model_validate(post) for post in posts]

    async def get_one(self, db: AsyncSession, post_id: uuid.UUID) -> PostResponse:
        """
        Count a view and return the post.

        What:  The only read that writes; every call adds exactly one view.
        How:
            1. UPDATE ... SET views_count = views_count + 1 (one statement)
            2. rowcount 0 → NotFoundError, nothing was touched
            3. SELECT the row again with populate_existing, overwriting any
               stale copy already in this session's identity map
        Why not read-then-write in Python:
            Two concurrent requests would both read N and both write N+1.
            The store evaluates `views_count + 1` under its own row lock, so
            N concurrent calls always add N.

        Raises:
            NotFoundError: no post has this id (nothing is incremented)
        """
        try:
            # synchronize_session=False: the ORM must not try to apply the
            # expression to loaded objects; step 3 refreshes them instead
            result = await db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(views_count=Post.views_count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="post", resource_id=str(post_id))

            result = await db.execute(
                select(Post)
                .where(Post.id == post_id)
                .execution_options(populate_existing=True)
            )
            post = result.scalar_one()

        except PostboardError:
            raise
        except Exception as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(post_id)},
            )

        return PostResponse.model_validate(post)

    async def get_last_tags(self, db: AsyncSession) -> List[str]:
        """Up to 5 tags taken from the 5 most recently created posts."""
        try:
            result = await db.execute(
                select(Post.tags)
                .order_by(Post.created_at.desc())
                .limit(LAST_TAGS_POST_COUNT)
            )
            tag_lists = result.scalars().all()
        except Exception as e:
            logger.error("Database error reading tags: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve tags. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return collect_last_tags(tag_lists)

    async def create(
        self,
        db: AsyncSession,
        author_id: uuid.UUID,
        title: str,
        text: str,
        image_url: Optional[str],
        tags_csv: str,
    ) -> PostResponse:
        """
        Persist a new post owned by `author_id` and return it.

        Raises:
            NotFoundError: `author_id` names no existing user
        """
        try:
            post = Post(
                title=title,
                text=text,
                image_url=image_url,
                tags=split_tags(tags_csv),
                user_id=author_id,
            )
            db.add(post)
            await db.flush()
            await db.refresh(post, attribute_names=["user"])
        except IntegrityError:
            # posts.user_id FK: the token was valid but its user is gone
            logger.warning("Post create rejected: author %s does not exist", author_id)
            raise NotFoundError(resource="user", resource_id=str(author_id))
        except Exception as e:
            logger.error("Database error creating post for %s: %s", author_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the post. Please try again.",
                context={"author_id": str(author_id)},
            )

        logger.info("Post %s created by %s", post.id, author_id)
        return PostResponse.model_validate(post)

    async def update(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        author_id: uuid.UUID,
        title: str,
        text: str,
        image_url: Optional[str],
        tags_csv: str,
    ) -> SuccessResponse:
        """
        Replace every mutable field of the post (no ownership check).

        Raises:
            NotFoundError: `author_id` names no existing user (the post is
                           left unchanged)
        """
        try:
            result = await db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(
                    title=title,
                    text=text,
                    image_url=image_url,
                    tags=split_tags(tags_csv),
                    user_id=author_id,
                )
                .execution_options(synchronize_session=False)
            )
        except IntegrityError:
            logger.warning("Post %s update rejected: author %s does not exist", post_id, author_id)
            raise NotFoundError(resource="user", resource_id=str(author_id))
        except Exception as e:
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": str(post_id)},
            )

        if result.rowcount == 0:
            logger.warning("Update of post %s matched no rows", post_id)
        else:
            logger.info("Post %s updated by %s", post_id, author_id)
        return SuccessResponse()

    async def remove(self, db: AsyncSession, post_id: uuid.UUID) -> SuccessResponse:
        """Delete the post; NotFoundError if it does not exist."""
        try:
            result = await db.execute(
                delete(Post)
                .where(Post.id == post_id)
                .execution_options(synchronize_session=False)
            )
        except Exception as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": str(post_id)},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="post", resource_id=str(post_id))

        logger.info("Post %s deleted", post_id)
        return SuccessResponse()
