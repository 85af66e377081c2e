"""Profile model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class AppRole(str, Enum):
    """Community roles matching the app_role database enum."""

    STUDENT = "student"
    SENIOR = "senior"
    ALUMNI = "alumni"
    STAFF = "staff"
    SERVICE_PROVIDER = "service_provider"
    PARTNER_VENDOR = "partner_vendor"


class VerificationStatus(str, Enum):
    """Student verification states matching the verification_status enum."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Profile(TypedDict):
    """Profile table row representation.

    The profile id equals the auth user id.
    """

    id: UUID
    email: str
    full_name: str | None
    avatar_url: str | None
    bio: str | None
    branch: str | None
    phone: str | None
    roll_number: str | None
    year_of_study: str | None
    university_id: UUID | None
    is_verified: bool | None
    verification_status: VerificationStatus | None
    verification_document_url: str | None
    created_at: datetime
    updated_at: datetime


class ProfileSummary(TypedDict, total=False):
    """Display projection joined into conversations, messages and listings."""

    id: UUID
    full_name: str | None
    avatar_url: str | None
    is_verified: bool | None


class UserRole(TypedDict):
    """user_roles table row representation."""

    id: UUID
    user_id: UUID
    role: AppRole
    created_at: datetime


class Follow(TypedDict):
    """follows table row representation."""

    id: UUID
    follower_id: UUID
    following_id: UUID
    created_at: datetime
