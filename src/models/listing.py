"""Listing model type definitions shared by the listing domains."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class ListingStatus(str, Enum):
    """Listing lifecycle values matching the listing_status enum."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"
    RENTED = "rented"


class ListingRow(TypedDict, total=False):
    """Columns common to every listing table.

    Each domain table adds its own columns on top of these.
    """

    id: UUID
    title: str
    description: str | None
    price: float | None
    images: list[str] | None
    status: ListingStatus | None
    university_id: UUID
    user_id: UUID | None
    created_at: datetime
    updated_at: datetime
