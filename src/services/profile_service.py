"""Profile business logic service."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import BackendError, NotFoundError, ValidationError, backend_error_message
from src.core.config import Settings, get_settings
from src.core.storage import ALLOWED_DOCUMENT_TYPES, ALLOWED_IMAGE_TYPES, file_extension, upload_public_file
from src.core.supabase import get_supabase_client
from src.models.conversation import PROFILE_SUMMARY_COLUMNS
from src.models.profile import VerificationStatus
from src.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)

DIRECTORY_COLUMNS = "id, full_name, avatar_url, bio, branch, year_of_study, is_verified"
SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20


class ProfileService:
    """Service for user profiles, roles and the follow graph."""

    def __init__(self, client: Client | None = None, settings: Settings | None = None) -> None:
        """Initialize profile service with Supabase client."""
        self.client = client or get_supabase_client()
        self.settings = settings or get_settings()

    async def get_profile(self, user_id: UUID | str) -> dict[str, Any] | None:
        """Get a profile by user ID.

        Args:
            user_id: The auth user ID (equals the profile ID).

        Returns:
            dict | None: The profile data or None if not found.
        """
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", str(user_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_role(self, user_id: UUID | str) -> str | None:
        """Get the community role assigned to a user."""
        response = (
            self.client.table("user_roles")
            .select("role")
            .eq("user_id", str(user_id))
            .maybe_single()
            .execute()
        )

        return response.data["role"] if response and response.data else None

    async def get_session_profile(self, user_id: UUID | str) -> dict[str, Any] | None:
        """Get the profile with its role and university resolved.

        Returns:
            dict | None: Profile data with ``role`` and ``university`` keys,
            or None if the user has no profile yet.
        """
        profile = await self.get_profile(user_id)
        if not profile:
            return None

        role = await self.get_role(user_id)

        university = None
        if profile.get("university_id"):
            try:
                response = (
                    self.client.table("universities")
                    .select("id, name, short_name")
                    .eq("id", str(profile["university_id"]))
                    .maybe_single()
                    .execute()
                )
                university = response.data if response and response.data else None
            except Exception as e:
                logger.warning("Failed to load university of %s: %s", user_id, e)

        return {**profile, "role": role, "university": university}

    async def update_profile(self, user_id: UUID | str, data: ProfileUpdate | dict[str, Any]) -> dict[str, Any]:
        """Update the user's own profile.

        Args:
            user_id: The auth user ID.
            data: The fields to update.

        Returns:
            dict: The updated profile data.

        Raises:
            BackendError: If the update is rejected.
            NotFoundError: If the profile does not exist.
        """
        if isinstance(data, ProfileUpdate):
            update_data = data.model_dump(exclude_unset=True)
        else:
            update_data = dict(data)

        if not update_data:
            profile = await self.get_profile(user_id)
            if not profile:
                raise NotFoundError("Profile not found")
            return profile

        try:
            response = (
                self.client.table("profiles")
                .update(update_data)
                .eq("id", str(user_id))
                .execute()
            )
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        if not response.data:
            raise NotFoundError("Profile not found")

        logger.info("Profile %s updated: %s", user_id, sorted(update_data))
        return response.data[0]

    async def upload_avatar(
        self,
        user_id: UUID | str,
        filename: str | None,
        content: bytes,
        content_type: str,
    ) -> str:
        """Store a new avatar and point the profile at it.

        Returns:
            str: Public URL of the avatar.
        """
        path = f"{user_id}/avatar.{file_extension(filename, default='png')}"
        url = upload_public_file(
            self.settings.avatar_bucket,
            path,
            content,
            content_type,
            allowed_types=ALLOWED_IMAGE_TYPES,
            client=self.client,
        )
        await self.update_profile(user_id, {"avatar_url": url})
        return url

    async def upload_verification_document(
        self,
        user_id: UUID | str,
        filename: str | None,
        content: bytes,
        content_type: str,
    ) -> str:
        """Store a student ID document and mark the profile pending review.

        Returns:
            str: Public URL of the document.
        """
        path = f"{user_id}/verification-doc.{file_extension(filename, default='pdf')}"
        url = upload_public_file(
            self.settings.verification_bucket,
            path,
            content,
            content_type,
            allowed_types=ALLOWED_DOCUMENT_TYPES,
            client=self.client,
        )
        await self.update_profile(
            user_id,
            {
                "verification_document_url": url,
                "verification_status": VerificationStatus.PENDING.value,
            },
        )
        return url

    async def get_public_profile(self, profile_id: UUID | str) -> dict[str, Any]:
        """Get the public projection of another user's profile.

        Raises:
            NotFoundError: If no such profile exists.
        """
        response = self.client.rpc("get_public_profile", {"profile_id": str(profile_id)}).execute()

        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise NotFoundError("Profile not found")
        return data

    async def search_public_profiles(self, term: str) -> list[dict[str, Any]]:
        """Public profiles whose name or bio contains ``term``, case-insensitively.

        Terms shorter than two characters match nothing. A failed read is
        logged and yields no results.
        """
        needle = term.strip().lower()
        if len(needle) < SEARCH_MIN_LENGTH:
            return []

        try:
            response = self.client.rpc("get_public_profiles", {}).execute()
        except Exception as e:
            logger.warning("Failed to search profiles: %s", e)
            return []

        matches = [
            profile for profile in (response.data or [])
            if needle in (profile.get("full_name") or "").lower()
            or needle in (profile.get("bio") or "").lower()
        ]
        return matches[:SEARCH_LIMIT]

    async def get_directory(self, user_id: UUID | str, university_id: UUID | str | None) -> list[dict[str, Any]]:
        """List the other members of the user's university with their roles."""
        if not university_id:
            return []

        try:
            response = (
                self.client.table("profiles")
                .select(DIRECTORY_COLUMNS)
                .eq("university_id", str(university_id))
                .neq("id", str(user_id))
                .order("full_name")
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load directory of %s: %s", university_id, e)
            return []

        members = response.data or []
        if not members:
            return []

        roles: dict[str, str] = {}
        try:
            roles_response = (
                self.client.table("user_roles")
                .select("user_id, role")
                .in_("user_id", [str(m["id"]) for m in members])
                .execute()
            )
            roles = {str(r["user_id"]): r["role"] for r in roles_response.data or []}
        except Exception as e:
            logger.warning("Failed to load directory roles: %s", e)

        return [{**member, "role": roles.get(str(member["id"]))} for member in members]

    # Follow graph

    async def is_following(self, follower_id: UUID | str, following_id: UUID | str) -> bool:
        response = (
            self.client.table("follows")
            .select("id")
            .eq("follower_id", str(follower_id))
            .eq("following_id", str(following_id))
            .maybe_single()
            .execute()
        )
        return bool(response and response.data)

    async def get_follow_stats(self, profile_id: UUID | str, viewer_id: UUID | str | None = None) -> dict[str, Any]:
        """Count followers and followed profiles, and whether the viewer follows."""
        followers = (
            self.client.table("follows")
            .select("id", count="exact")
            .eq("following_id", str(profile_id))
            .execute()
        )
        following = (
            self.client.table("follows")
            .select("id", count="exact")
            .eq("follower_id", str(profile_id))
            .execute()
        )

        is_following = False
        if viewer_id and str(viewer_id) != str(profile_id):
            is_following = await self.is_following(viewer_id, profile_id)

        return {
            "followers_count": followers.count or 0,
            "following_count": following.count or 0,
            "is_following": is_following,
        }

    async def toggle_follow(self, follower_id: UUID | str, following_id: UUID | str) -> bool:
        """Follow the profile, or unfollow it if already followed.

        Returns:
            bool: True if the viewer now follows the profile.

        Raises:
            ValidationError: If a user tries to follow themselves.
            BackendError: If the write is rejected.
        """
        if str(follower_id) == str(following_id):
            raise ValidationError("You cannot follow yourself")

        currently_following = await self.is_following(follower_id, following_id)
        try:
            if currently_following:
                (
                    self.client.table("follows")
                    .delete()
                    .eq("follower_id", str(follower_id))
                    .eq("following_id", str(following_id))
                    .execute()
                )
            else:
                self.client.table("follows").insert(
                    {"follower_id": str(follower_id), "following_id": str(following_id)}
                ).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        return not currently_following

    async def list_follow_profiles(self, profile_id: UUID | str, direction: str) -> list[dict[str, Any]]:
        """List follower or followed profiles.

        Args:
            profile_id: The profile whose graph is listed.
            direction: "followers" or "following".
        """
        if direction == "followers":
            match_column, id_column = "following_id", "follower_id"
        elif direction == "following":
            match_column, id_column = "follower_id", "following_id"
        else:
            raise ValidationError(f"Unknown follow direction: {direction}")

        try:
            response = (
                self.client.table("follows")
                .select(id_column)
                .eq(match_column, str(profile_id))
                .execute()
            )
            ids = [str(row[id_column]) for row in response.data or []]
            if not ids:
                return []
            profiles = (
                self.client.table("profiles")
                .select(PROFILE_SUMMARY_COLUMNS)
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load %s of %s: %s", direction, profile_id, e)
            return []

        return profiles.data or []
