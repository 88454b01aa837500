"""
Postboard Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table (the credential store).
Who:   Used by UserService for registration, login and profile lookups, by
       Post for the owner relationship, and by Alembic for schema management.

Lifecycle:
    Created on registration; never updated or deleted by this system.
    `password_hash` is never serialized to clients (see schemas/user.py).
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postboard.database import Base

if TYPE_CHECKING:
    from postboard.models.post import Post


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered author."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Unique index backs the duplicate-login check in UserService.register
    login: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # bcrypt hash ("$2b$10$...")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

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

    posts: Mapped[List["Post"]] = relationship(back_populates="user", lazy="raise")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login='{self.login}')>"
