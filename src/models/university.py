"""University model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class RequestStatus(str, Enum):
    """Review states for university requests and partner applications."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class University(TypedDict):
    """universities table row representation."""

    id: UUID
    name: str
    short_name: str | None
    slug: str | None
    domain: str | None
    location: str | None
    logo_url: str | None
    banner_url: str | None
    theme_primary: str | None
    theme_gradient: str | None
    is_active: bool | None
    created_at: datetime
    updated_at: datetime
