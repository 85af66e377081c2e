"""Admin moderation Pydantic schemas."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.profile import AppRole
from src.models.university import RequestStatus


class VerificationDecision(BaseModel):
    """Verify or reject a pending student."""

    model_config = ConfigDict(from_attributes=True)

    status: Literal["verified", "rejected"] = Field(description="Decision")


class ServiceDecision(BaseModel):
    """Approve (publish) or reject (remove) a pending local service."""

    model_config = ConfigDict(from_attributes=True)

    approved: bool = Field(description="True to publish, False to delete the listing")


class RoleAssignment(BaseModel):
    """Assign a community role to a user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Target user")
    role: AppRole = Field(description="Role to assign")


class RequestDecision(BaseModel):
    """Approve or reject a university request or partner application."""

    model_config = ConfigDict(from_attributes=True)

    status: RequestStatus = Field(description="New status")
    admin_notes: str | None = Field(default=None, max_length=2000, description="Reviewer notes")
