"""Feed post model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class FeedFilter(str, Enum):
    """Feed variants.

    OFFRECORD shows anonymous text-only posts, FLEXU shows named posts
    with an image. TRENDING is the FLEXU selection ranked by likes.
    """

    ALL = "all"
    OFFRECORD = "offrecord"
    FLEXU = "flexu"
    TRENDING = "trending"


class Post(TypedDict):
    """posts table row representation."""

    id: UUID
    user_id: UUID
    university_id: UUID
    content: str
    image_url: str | None
    tags: list[str] | None
    is_anonymous: bool | None
    likes_count: int | None
    comments_count: int | None
    created_at: datetime
    updated_at: datetime


class PostComment(TypedDict):
    """post_comments table row representation."""

    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    is_anonymous: bool | None
    created_at: datetime
