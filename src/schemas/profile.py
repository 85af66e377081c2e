"""Profile Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.profile import AppRole, VerificationStatus


class ProfileSummary(BaseModel):
    """Display projection of a profile (conversation, message, listing authors)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile identifier (equals the auth user id)")
    full_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    is_verified: bool | None = Field(default=None, description="Verified student badge")


class UniversitySummary(BaseModel):
    """University fields embedded in the session profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="University identifier")
    name: str = Field(description="University name")
    short_name: str | None = Field(default=None, description="Short name")


class ProfileUpdate(BaseModel):
    """Schema for updating a profile.

    All fields are optional for partial updates.
    """

    model_config = ConfigDict(from_attributes=True)

    full_name: str | None = Field(default=None, max_length=255, description="New display name")
    bio: str | None = Field(default=None, max_length=1000, description="Short biography")
    branch: str | None = Field(default=None, max_length=255, description="Study branch")
    year_of_study: str | None = Field(default=None, max_length=50, description="Year of study")
    phone: str | None = Field(default=None, max_length=50, description="Phone number")
    roll_number: str | None = Field(default=None, max_length=100, description="University roll number")


class ProfileResponse(BaseModel):
    """Full profile of the signed-in user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile identifier")
    email: str | None = Field(default=None, description="Email address")
    full_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    bio: str | None = Field(default=None, description="Biography")
    branch: str | None = Field(default=None, description="Study branch")
    year_of_study: str | None = Field(default=None, description="Year of study")
    phone: str | None = Field(default=None, description="Phone number")
    roll_number: str | None = Field(default=None, description="Roll number")
    university_id: UUID | None = Field(default=None, description="University identifier")
    is_verified: bool | None = Field(default=None, description="Verified student badge")
    verification_status: VerificationStatus | None = Field(default=None, description="Verification state")
    verification_document_url: str | None = Field(default=None, description="Uploaded verification document")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class SessionProfileResponse(ProfileResponse):
    """Profile with the role and university resolved for the session."""

    role: AppRole | None = Field(default=None, description="Community role")
    university: UniversitySummary | None = Field(default=None, description="University summary")


class PublicProfileResponse(BaseModel):
    """Public projection returned by get_public_profile()."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile identifier")
    full_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    bio: str | None = Field(default=None, description="Biography")
    branch: str | None = Field(default=None, description="Study branch")
    year_of_study: str | None = Field(default=None, description="Year of study")
    university_id: UUID | None = Field(default=None, description="University identifier")
    is_verified: bool | None = Field(default=None, description="Verified student badge")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class DirectoryEntry(ProfileSummary):
    """Community directory row: a profile plus its role."""

    branch: str | None = Field(default=None, description="Study branch")
    year_of_study: str | None = Field(default=None, description="Year of study")
    role: AppRole | None = Field(default=None, description="Community role")


class FollowStats(BaseModel):
    """Follow relationship summary for a profile."""

    model_config = ConfigDict(from_attributes=True)

    followers_count: int = Field(default=0, description="Number of followers")
    following_count: int = Field(default=0, description="Number of followed profiles")
    is_following: bool = Field(default=False, description="Whether the caller follows this profile")


class UploadResponse(BaseModel):
    """Public URL of an uploaded file."""

    model_config = ConfigDict(from_attributes=True)

    url: str = Field(description="Public URL of the stored file")
