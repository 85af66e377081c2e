"""Message model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID

from src.models.profile import ProfileSummary


class Message(TypedDict):
    """messages table row representation.

    Messages are immutable once created and belong to exactly one
    conversation.
    """

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime


class MessageCreate(TypedDict):
    """Data required to create a new message."""

    conversation_id: str
    sender_id: str
    content: str


class MessageView(Message, total=False):
    """Message with its sender profile attached for display."""

    sender: ProfileSummary | None
