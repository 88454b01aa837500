"""SQLAlchemy ORM models. Both are imported here so the User ↔ Post relationship always resolves."""

from postboard.models.user import User
from postboard.models.post import Post

__all__ = ["User", "Post"]
