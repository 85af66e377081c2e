"""Campus feed business logic: posts, likes and comments."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    ValidationError,
    backend_error_message,
)
from src.core.supabase import get_supabase_client
from src.models.conversation import PROFILE_SUMMARY_COLUMNS
from src.models.post import FeedFilter
from src.schemas.post import CommentCreate, PostCreate

logger = logging.getLogger(__name__)


class PostService:
    """Service for the university feed."""

    FEED_LIMIT = 50
    TRENDING_LIMIT = 20

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    async def get_feed(
        self,
        user_id: UUID | str,
        university_id: UUID | str | None,
        feed_filter: FeedFilter = FeedFilter.ALL,
    ) -> list[dict[str, Any]]:
        """Load the most recent posts of the university, or the most liked
        photo posts for the trending feed.

        Anonymous posts never carry their author. Each post is flagged
        with whether the viewer liked it.

        Returns:
            list: Posts newest first (most liked first when trending); empty
            on read failure.
        """
        if not university_id:
            return []

        query = self.client.table("posts").select("*").eq("university_id", str(university_id))
        if feed_filter == FeedFilter.TRENDING:
            query = query.order("likes_count", desc=True).limit(self.TRENDING_LIMIT)
        else:
            query = query.order("created_at", desc=True).limit(self.FEED_LIMIT)

        if feed_filter == FeedFilter.OFFRECORD:
            query = query.eq("is_anonymous", True).is_("image_url", "null")
        elif feed_filter in (FeedFilter.FLEXU, FeedFilter.TRENDING):
            query = query.eq("is_anonymous", False).not_.is_("image_url", "null")

        try:
            posts = query.execute().data or []
        except Exception as e:
            logger.warning("Failed to load feed of %s: %s", university_id, e)
            return []

        if not posts:
            return []

        authors = await self._profiles({p["user_id"] for p in posts if not p.get("is_anonymous")})
        liked = await self._liked_post_ids(user_id)

        return [
            {
                **post,
                "author": None if post.get("is_anonymous") else authors.get(str(post["user_id"])),
                "liked_by_me": str(post["id"]) in liked,
            }
            for post in posts
        ]

    async def create_post(
        self,
        user_id: UUID | str,
        university_id: UUID | str | None,
        data: PostCreate,
    ) -> dict[str, Any]:
        """Publish a post to the user's university feed.

        Raises:
            ValidationError: If the content is blank or the user has no university.
            BackendError: If the insert is rejected.
        """
        content = data.content.strip()
        if not content:
            raise ValidationError("Post content cannot be empty")
        if not university_id:
            raise ValidationError("Complete your profile before posting")

        row = {
            "user_id": str(user_id),
            "university_id": str(university_id),
            "content": content,
            "image_url": data.image_url,
            "tags": [tag.strip().lstrip("#") for tag in data.tags if tag.strip()],
            "is_anonymous": data.is_anonymous,
        }
        try:
            response = self.client.table("posts").insert(row).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        created = response.data[0] if response.data else row
        logger.info("Post %s created by %s", created.get("id"), user_id)
        return created

    async def delete_post(self, post_id: UUID | str, user_id: UUID | str) -> None:
        """Delete one of the user's own posts."""
        response = (
            self.client.table("posts")
            .select("id, user_id")
            .eq("id", str(post_id))
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            raise NotFoundError("Post not found")
        if str(response.data["user_id"]) != str(user_id):
            raise AuthorizationError("You can only delete your own posts")

        try:
            self.client.table("posts").delete().eq("id", str(post_id)).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

    async def toggle_like(self, post_id: UUID | str, user_id: UUID | str) -> bool:
        """Like the post, or remove the like if already liked.

        Returns:
            bool: True if the post is now liked by the user.
        """
        existing = (
            self.client.table("post_likes")
            .select("id")
            .eq("post_id", str(post_id))
            .eq("user_id", str(user_id))
            .maybe_single()
            .execute()
        )
        liked = bool(existing and existing.data)

        try:
            if liked:
                (
                    self.client.table("post_likes")
                    .delete()
                    .eq("post_id", str(post_id))
                    .eq("user_id", str(user_id))
                    .execute()
                )
            else:
                self.client.table("post_likes").insert(
                    {"post_id": str(post_id), "user_id": str(user_id)}
                ).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        return not liked

    async def list_comments(self, post_id: UUID | str) -> list[dict[str, Any]]:
        """List the comments of a post, oldest first."""
        try:
            response = (
                self.client.table("post_comments")
                .select("*")
                .eq("post_id", str(post_id))
                .order("created_at", desc=False)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load comments of %s: %s", post_id, e)
            return []

        comments = response.data or []
        authors = await self._profiles({c["user_id"] for c in comments if not c.get("is_anonymous")})
        return [
            {**c, "author": None if c.get("is_anonymous") else authors.get(str(c["user_id"]))}
            for c in comments
        ]

    async def add_comment(self, post_id: UUID | str, user_id: UUID | str, data: CommentCreate) -> dict[str, Any]:
        """Comment on a post.

        Raises:
            ValidationError: If the comment is blank.
            BackendError: If the insert is rejected.
        """
        content = data.content.strip()
        if not content:
            raise ValidationError("Comment cannot be empty")

        try:
            response = (
                self.client.table("post_comments")
                .insert(
                    {
                        "post_id": str(post_id),
                        "user_id": str(user_id),
                        "content": content,
                        "is_anonymous": data.is_anonymous,
                    }
                )
                .execute()
            )
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        return response.data[0] if response.data else {}

    async def _profiles(self, user_ids: set[Any]) -> dict[str, dict[str, Any]]:
        ids = sorted(str(i) for i in user_ids)
        if not ids:
            return {}
        try:
            response = self.client.table("profiles").select(PROFILE_SUMMARY_COLUMNS).in_("id", ids).execute()
        except Exception as e:
            logger.warning("Failed to load post authors: %s", e)
            return {}
        return {str(p["id"]): p for p in response.data or []}

    async def _liked_post_ids(self, user_id: UUID | str) -> set[str]:
        try:
            response = (
                self.client.table("post_likes")
                .select("post_id")
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load likes of %s: %s", user_id, e)
            return set()
        return {str(row["post_id"]) for row in response.data or []}
