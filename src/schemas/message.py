"""Message Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.profile import ProfileSummary


class MessageCreate(BaseModel):
    """Schema for sending a message.

    Whitespace-only content is rejected by the service before any write.
    """

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., max_length=10000, description="Message content")


class MessageResponse(BaseModel):
    """Message with its sender profile attached."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Message unique identifier")
    conversation_id: UUID = Field(description="Parent conversation ID")
    sender_id: UUID = Field(description="Sender user ID")
    content: str = Field(description="Message content")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    sender: ProfileSummary | None = Field(default=None, description="Sender profile")


class MessageListResponse(BaseModel):
    """Full message history of a conversation in creation order."""

    model_config = ConfigDict(from_attributes=True)

    messages: list[MessageResponse] = Field(description="List of messages")


class SendMessageResponse(BaseModel):
    """Acknowledgement of a send.

    The message itself reaches the sender through the realtime echo.
    """

    model_config = ConfigDict(from_attributes=True)

    sent: bool = Field(description="Whether the message was persisted")
    message_id: UUID | None = Field(default=None, description="Identifier of the stored message")
