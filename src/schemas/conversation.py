"""Conversation Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.profile import ProfileSummary


class DirectConversationRequest(BaseModel):
    """Start (or reopen) a one-to-one conversation with another user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="The user to message")


class ConversationResponse(BaseModel):
    """Conversation view-model ready for rendering."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Conversation unique identifier")
    name: str | None = Field(default=None, description="Group name (group conversations only)")
    is_group: bool = Field(default=False, description="Whether this is a group conversation")
    updated_at: datetime | None = Field(default=None, description="Last activity timestamp")
    other_participant: ProfileSummary | None = Field(
        default=None, description="Counterpart profile for one-to-one conversations"
    )

    @property
    def display_name(self) -> str:
        """Name shown in the conversation list."""
        if self.is_group:
            return self.name or "Group"
        if self.other_participant and self.other_participant.full_name:
            return self.other_participant.full_name
        return "Unknown"


class ConversationListResponse(BaseModel):
    """All conversations of the current user, most recent first."""

    model_config = ConfigDict(from_attributes=True)

    conversations: list[ConversationResponse] = Field(description="List of conversations")


class DirectConversationResponse(BaseModel):
    """Result of the find-or-create one-to-one conversation operation."""

    model_config = ConfigDict(from_attributes=True)

    conversation: ConversationResponse = Field(description="The selected conversation")
    is_new: bool = Field(description="True if the conversation was created by this call")
