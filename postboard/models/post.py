"""
Postboard Backend — Post SQLAlchemy Model
===========================================

What:  ORM model for the `posts` table (the post store).
Who:   Used by PostService for every post operation and by Alembic.

Table Design:
    - tags: JSON array of strings; order is insertion order and an update
      replaces the whole list.
    - views_count: only ever changed by `views_count = views_count + 1`
      issued as a single UPDATE statement (see PostService.get_one).
    - user_id: many-to-one reference to the owning User.

Query Patterns:
    - All posts with owners: SELECT ... ORDER BY created_at ASC
      (owner loaded with selectin)
    - Last tags: SELECT tags ... ORDER BY created_at DESC LIMIT 5
      → Uses idx_posts_created_at
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postboard.database import Base
from postboard.models.user import User, utcnow


class Post(Base):
    """A blog post owned by a User."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    views_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user: Mapped[User] = relationship(back_populates="posts", lazy="selectin")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_posts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', views={self.views_count})>"
