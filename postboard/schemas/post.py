"""
Postboard Backend — Post Schemas
==================================

What:  Request body shared by create and update, and the post representation
       returned by the read endpoints.

Tags travel in two shapes: clients send a comma-separated string
(`"python,fastapi"`), responses carry the stored list (`["python", "fastapi"]`).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from postboard.schemas.common import CamelModel
from postboard.schemas.user import UserProfile


class PostWriteRequest(CamelModel):
    """Body of POST /posts and PATCH /posts/{id}."""
    title: str = Field(min_length=1, max_length=255)
    text: str = Field(min_length=1)
    image_url: Optional[str] = Field(default=None)
    tags: str = Field(description="Comma-separated tag list, split literally on ','")


class PostResponse(CamelModel):
    """A post with its owner's public profile."""
    id: uuid.UUID
    title: str
    text: str
    image_url: Optional[str] = None
    tags: List[str]
    views_count: int
    user: UserProfile
    created_at: datetime
    updated_at: datetime


class UploadResponse(CamelModel):
    url: str = Field(description="Public path of the stored image, e.g. /uploads/cat.png")
