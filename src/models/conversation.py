"""Conversation model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID

from src.models.profile import ProfileSummary

PROFILE_SUMMARY_COLUMNS = "id, full_name, avatar_url, is_verified"


class Conversation(TypedDict):
    """conversations table row representation.

    name is only meaningful for group conversations. updated_at is the
    last-activity marker bumped on every new message.
    """

    id: UUID
    name: str | None
    is_group: bool
    university_id: UUID
    created_by: UUID
    created_at: datetime
    updated_at: datetime


class ConversationParticipant(TypedDict):
    """conversation_participants table row representation.

    A user appears at most once per conversation; a one-to-one
    conversation has exactly two participant rows.
    """

    id: UUID
    conversation_id: UUID
    user_id: UUID
    joined_at: datetime | None
    last_read_at: datetime | None


class ConversationView(Conversation, total=False):
    """Conversation enriched with the counterpart profile for display."""

    other_participant: ProfileSummary | None


def direct_pair_key(user_a: str, user_b: str) -> str:
    """Deterministic key for the unordered pair of one-to-one participants."""
    first, second = sorted((str(user_a), str(user_b)))
    return f"{first}:{second}"
