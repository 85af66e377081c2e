"""Conversation and message business logic service."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client

from src.api.middleware.error_handler import (
    BackendError,
    ValidationError,
    backend_error_code,
    backend_error_message,
)
from src.core.config import Settings, get_settings
from src.core.supabase import get_supabase_client
from src.models.conversation import PROFILE_SUMMARY_COLUMNS, ConversationView, direct_pair_key
from src.models.message import MessageView

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def find_direct_conversation(
    conversations: Iterable[ConversationView],
    target_user_id: str,
) -> ConversationView | None:
    """Return the loaded one-to-one conversation whose counterpart is the target."""
    target = str(target_user_id)
    for conversation in conversations:
        if conversation.get("is_group"):
            continue
        other = conversation.get("other_participant") or {}
        if str(other.get("id")) == target:
            return conversation
    return None


class ConversationService:
    """Service for one-to-one conversations and their messages.

    Reads degrade to empty or partial results and are logged. Writes raise
    BackendError carrying the backend message.
    """

    def __init__(self, client: Client | None = None, settings: Settings | None = None) -> None:
        """Initialize conversation service with Supabase client."""
        self.client = client or get_supabase_client()
        self.settings = settings or get_settings()

    # Profiles

    async def get_profile_summary(self, user_id: str | UUID) -> dict[str, Any] | None:
        """Fetch the display projection of one profile."""
        try:
            response = (
                self.client.table("profiles")
                .select(PROFILE_SUMMARY_COLUMNS)
                .eq("id", str(user_id))
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to fetch profile %s: %s", user_id, e)
            return None

        return response.data if response and response.data else None

    async def get_profile_summaries(self, user_ids: Iterable[str | UUID]) -> dict[str, dict[str, Any]]:
        """Fetch display projections for many profiles with one query.

        Returns:
            dict: Profiles keyed by id. Missing profiles are simply absent.
        """
        ids = sorted({str(user_id) for user_id in user_ids})
        if not ids:
            return {}

        try:
            response = (
                self.client.table("profiles")
                .select(PROFILE_SUMMARY_COLUMNS)
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to fetch %d sender profiles: %s", len(ids), e)
            return {}

        return {str(row["id"]): row for row in response.data or []}

    # Conversation list

    async def list_conversations(self, user_id: str | UUID | None) -> list[ConversationView]:
        """Load every conversation the user participates in.

        Most recently active first. One-to-one conversations get the
        counterpart's profile attached as other_participant.

        Args:
            user_id: The current user, or None when nobody is signed in.

        Returns:
            list: Conversation view-models; empty on read failure.
        """
        if not user_id:
            return []

        try:
            participations = (
                self.client.table("conversation_participants")
                .select("conversation_id")
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load participations for %s: %s", user_id, e)
            return []

        conversation_ids = list(dict.fromkeys(row["conversation_id"] for row in participations.data or []))
        if not conversation_ids:
            return []

        try:
            response = (
                self.client.table("conversations")
                .select("*")
                .in_("id", conversation_ids)
                .order("updated_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load conversations for %s: %s", user_id, e)
            return []

        conversations: list[ConversationView] = []
        for row in response.data or []:
            view: ConversationView = dict(row)  # type: ignore[assignment]
            if not row.get("is_group"):
                other_id = await self._get_other_participant_id(row["id"], user_id)
                if other_id:
                    view["other_participant"] = await self.get_profile_summary(other_id)
            conversations.append(view)

        return conversations

    async def _get_other_participant_id(self, conversation_id: str, user_id: str | UUID) -> str | None:
        try:
            response = (
                self.client.table("conversation_participants")
                .select("user_id")
                .eq("conversation_id", str(conversation_id))
                .neq("user_id", str(user_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load counterpart of conversation %s: %s", conversation_id, e)
            return None

        rows = response.data or []
        return str(rows[0]["user_id"]) if rows else None

    # Find or create

    async def create_direct_conversation(
        self,
        current_user_id: str | UUID,
        target_user_id: str | UUID,
        university_id: str | UUID,
    ) -> tuple[ConversationView, bool] | None:
        """Create a one-to-one conversation with the target user.

        Inserts the conversation, then the current user's participant row,
        then the target's, then attaches the target's profile.

        With direct conversation keys enabled, a unique violation on the
        pair key means the conversation already exists; it is fetched and
        returned instead, without participant inserts.

        Returns:
            tuple | None: (conversation, created) or None if a write failed.
        """
        current = str(current_user_id)
        target = str(target_user_id)
        conversation_data: dict[str, Any] = {
            "created_by": current,
            "university_id": str(university_id),
            "is_group": False,
        }
        pair_key = None
        if self.settings.direct_conversation_key_enabled:
            pair_key = direct_pair_key(current, target)
            conversation_data["direct_key"] = pair_key

        try:
            response = self.client.table("conversations").insert(conversation_data).execute()
        except PostgrestAPIError as e:
            if pair_key and backend_error_code(e) == UNIQUE_VIOLATION:
                existing = await self.get_conversation_by_key(pair_key)
                if existing is not None:
                    existing["other_participant"] = await self.get_profile_summary(target)
                    return existing, False
            logger.error("Failed to create conversation with %s: %s", target, backend_error_message(e))
            return None
        except Exception as e:
            logger.error("Failed to create conversation with %s: %s", target, e)
            return None

        if not response.data:
            logger.error("Conversation insert with %s returned no row", target)
            return None

        conversation: ConversationView = dict(response.data[0])  # type: ignore[assignment]

        for participant_id in (current, target):
            try:
                self.client.table("conversation_participants").insert(
                    {"conversation_id": str(conversation["id"]), "user_id": participant_id}
                ).execute()
            except Exception as e:
                logger.error(
                    "Failed to add participant %s to conversation %s: %s",
                    participant_id,
                    conversation["id"],
                    backend_error_message(e),
                )
                return None

        conversation["other_participant"] = await self.get_profile_summary(target)
        logger.info("Conversation %s created between %s and %s", conversation["id"], current, target)
        return conversation, True

    async def get_conversation_by_key(self, pair_key: str) -> ConversationView | None:
        """Fetch a one-to-one conversation by its participant-pair key."""
        try:
            response = (
                self.client.table("conversations")
                .select("*")
                .eq("direct_key", pair_key)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to fetch conversation %s: %s", pair_key, e)
            return None

        return dict(response.data) if response and response.data else None  # type: ignore[return-value]

    async def start_direct_conversation(
        self,
        current_user_id: str | UUID,
        target_user_id: str | UUID,
        university_id: str | UUID | None,
        conversations: list[ConversationView] | None = None,
    ) -> tuple[ConversationView, bool] | None:
        """Find the existing one-to-one conversation with the target or create it.

        Args:
            current_user_id: The signed-in user.
            target_user_id: The user to message.
            university_id: The signed-in user's university.
            conversations: Already loaded conversation list; loaded when omitted.

        Returns:
            tuple | None: (conversation, created) or None if creation failed.

        Raises:
            ValidationError: If the target is the current user or the
                current user has no university.
        """
        if str(current_user_id) == str(target_user_id):
            raise ValidationError("You cannot start a conversation with yourself")
        if not university_id:
            raise ValidationError("Complete your profile before messaging")

        if conversations is None:
            conversations = await self.list_conversations(current_user_id)

        existing = find_direct_conversation(conversations, str(target_user_id))
        if existing is not None:
            return existing, False

        return await self.create_direct_conversation(current_user_id, target_user_id, university_id)

    # Messages

    async def get_messages(self, conversation_id: str | UUID) -> tuple[list[MessageView], dict[str, dict[str, Any]]]:
        """Load the full message history of a conversation, oldest first.

        Sender profiles are fetched with a single batched query.

        Returns:
            tuple: (messages with sender attached, sender profiles by id)
        """
        try:
            response = (
                self.client.table("messages")
                .select("*")
                .eq("conversation_id", str(conversation_id))
                .order("created_at", desc=False)
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load messages of conversation %s: %s", conversation_id, e)
            return [], {}

        rows = response.data or []
        profiles = await self.get_profile_summaries(row["sender_id"] for row in rows)
        messages: list[MessageView] = [
            {**row, "sender": profiles.get(str(row["sender_id"]))}  # type: ignore[typeddict-item]
            for row in rows
        ]
        return messages, profiles

    async def send_message(
        self,
        conversation_id: str | UUID,
        sender_id: str | UUID,
        content: str,
    ) -> dict[str, Any] | None:
        """Persist a message and bump the conversation's last activity.

        The message is not returned to the local view; the sender sees it
        through the realtime echo like every other participant.

        Args:
            conversation_id: Target conversation.
            sender_id: The signed-in user.
            content: Raw message text; surrounding whitespace is trimmed.

        Returns:
            dict | None: The stored message row, or None for empty input.

        Raises:
            ValidationError: If the message is too long.
            BackendError: If the message insert fails.
        """
        text = (content or "").strip()
        if not text:
            return None
        if len(text) > self.settings.max_message_length:
            raise ValidationError(f"Message is longer than {self.settings.max_message_length} characters")

        if self.settings.atomic_message_send:
            return await self._send_message_atomic(conversation_id, sender_id, text)

        try:
            response = (
                self.client.table("messages")
                .insert(
                    {
                        "conversation_id": str(conversation_id),
                        "sender_id": str(sender_id),
                        "content": text,
                    }
                )
                .execute()
            )
        except Exception as e:
            message = backend_error_message(e)
            logger.error("Failed to send message to %s: %s", conversation_id, message)
            raise BackendError(message) from e

        try:
            self.client.table("conversations").update(
                {"updated_at": datetime.now(timezone.utc).isoformat()}
            ).eq("id", str(conversation_id)).execute()
        except Exception as e:
            logger.warning("Failed to bump updated_at of conversation %s: %s", conversation_id, e)

        return response.data[0] if response.data else None

    async def _send_message_atomic(self, conversation_id: str | UUID, sender_id: str | UUID, text: str) -> dict[str, Any] | None:
        try:
            response = self.client.rpc(
                "send_message",
                {
                    "_conversation_id": str(conversation_id),
                    "_sender_id": str(sender_id),
                    "_content": text,
                },
            ).execute()
        except Exception as e:
            message = backend_error_message(e)
            logger.error("Failed to send message to %s: %s", conversation_id, message)
            raise BackendError(message) from e

        data = response.data
        if isinstance(data, list):
            return data[0] if data else None
        if isinstance(data, dict):
            return data
        return {"id": data} if data else None

    async def is_participant(self, conversation_id: str | UUID, user_id: str | UUID) -> bool:
        """Check conversation membership through is_conversation_participant()."""
        try:
            response = self.client.rpc(
                "is_conversation_participant",
                {"_conversation_id": str(conversation_id), "_user_id": str(user_id)},
            ).execute()
        except Exception as e:
            logger.warning("Participant check for %s failed: %s", conversation_id, e)
            return False

        return response.data is True
