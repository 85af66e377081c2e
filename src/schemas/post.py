"""Feed Pydantic schemas for posts, likes and comments."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from src.schemas.profile import ProfileSummary


class PostCreate(BaseModel):
    """Schema for creating a feed post."""

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., min_length=1, max_length=5000, description="Post text")
    image_url: str | None = Field(default=None, description="Optional image URL")
    tags: list[str] = Field(default_factory=list, description="Hashtags")
    is_anonymous: bool = Field(default=False, description="Post without revealing the author")


class PostResponse(BaseModel):
    """Feed post with its author (hidden for anonymous posts)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Post identifier")
    content: str = Field(description="Post text")
    image_url: str | None = Field(default=None, description="Image URL")
    tags: list[str] = Field(default_factory=list, description="Hashtags")
    is_anonymous: bool = Field(default=False, description="Anonymous post")
    likes_count: int = Field(default=0, description="Number of likes")
    comments_count: int = Field(default=0, description="Number of comments")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    author: ProfileSummary | None = Field(default=None, description="Author profile")
    liked_by_me: bool = Field(default=False, description="Whether the caller liked the post")

    @field_validator("tags", "likes_count", "comments_count", "is_anonymous", mode="before")
    @classmethod
    def null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Nullable columns fall back to the field default."""
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class FeedResponse(BaseModel):
    """Most recent posts of the caller's university."""

    model_config = ConfigDict(from_attributes=True)

    posts: list[PostResponse] = Field(description="Posts, newest first")


class LikeResponse(BaseModel):
    """State of the caller's like after a toggle."""

    model_config = ConfigDict(from_attributes=True)

    liked: bool = Field(description="Whether the post is now liked")


class CommentCreate(BaseModel):
    """Schema for adding a comment."""

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., max_length=2000, description="Comment text")
    is_anonymous: bool = Field(default=False, description="Comment anonymously")


class CommentResponse(BaseModel):
    """Comment with its author (hidden for anonymous comments)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Comment identifier")
    post_id: UUID = Field(description="Parent post")
    content: str = Field(description="Comment text")
    is_anonymous: bool | None = Field(default=False, description="Anonymous comment")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    author: ProfileSummary | None = Field(default=None, description="Author profile")
