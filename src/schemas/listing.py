"""Listing Pydantic schemas for the housing, marketplace, jobs, services,
academic resources and roommate domains."""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.listing import ListingStatus
from src.schemas.common import ActionResult


class ListingCreateBase(BaseModel):
    """Fields shared by every listing creation form."""

    model_config = ConfigDict(from_attributes=True, extra="forbid")

    description: str | None = Field(default=None, max_length=5000, description="Free text description")
    images: list[str] | None = Field(default=None, description="Image URLs previously uploaded")

    @field_validator("description")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        """Store empty descriptions as NULL."""
        if value is None:
            return None
        value = value.strip()
        return value or None


class TitledListingCreate(ListingCreateBase):
    """Listing forms that carry a title."""

    title: str = Field(..., min_length=1, max_length=255, description="Listing title")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a title")
        return value


class HousingListingCreate(TitledListingCreate):
    """New housing listing."""

    listing_type: str = Field(default="pg", max_length=50, description="pg, flat, hostel, ...")
    location: str | None = Field(default=None, max_length=255, description="Area or locality")
    address: str | None = Field(default=None, max_length=500, description="Street address")
    price: float | None = Field(default=None, ge=0, description="Monthly rent")
    room_type: str | None = Field(default=None, max_length=50, description="single, double, shared, ...")
    gender_preference: str | None = Field(default=None, max_length=50, description="Tenant preference")
    amenities: list[str] = Field(default_factory=list, description="Amenities offered")
    contact_phone: str | None = Field(default=None, max_length=50, description="Contact phone")


class MarketplacePostCreate(TitledListingCreate):
    """New marketplace item."""

    category: str = Field(default="books", max_length=50, description="Item category")
    condition: str | None = Field(default="good", max_length=50, description="Item condition")
    price: float | None = Field(default=None, ge=0, description="Asking price")


class JobListingCreate(TitledListingCreate):
    """New job listing, posted by an approved partner."""

    company: str | None = Field(default=None, max_length=255, description="Hiring company")
    job_type: str | None = Field(default=None, max_length=50, description="part-time, internship, ...")
    location: str | None = Field(default=None, max_length=255, description="Job location")
    pay: str | None = Field(default=None, max_length=100, description="Compensation")
    contact_email: str | None = Field(default=None, max_length=255, description="Contact email")
    contact_phone: str | None = Field(default=None, max_length=50, description="Contact phone")
    university_id: UUID | None = Field(default=None, description="Served university; defaults to the poster's")


class LocalServiceCreate(ListingCreateBase):
    """New local service; visible only after admin approval."""

    name: str = Field(..., min_length=1, max_length=255, description="Service name")
    category: str = Field(..., min_length=1, max_length=50, description="Service category")
    address: str | None = Field(default=None, max_length=500, description="Address")
    phone: str | None = Field(default=None, max_length=50, description="Phone")
    website: str | None = Field(default=None, max_length=500, description="Website")


class AcademicResourceCreate(TitledListingCreate):
    """New academic resource (books, notes, equipment) for sale."""

    resource_type: str = Field(default="book", max_length=50, description="Resource type")
    subject: str | None = Field(default=None, max_length=255, description="Subject")
    condition: str | None = Field(default=None, max_length=50, description="Condition")
    price: float | None = Field(default=None, ge=0, description="Asking price")


class RoommateRequestCreate(ListingCreateBase):
    """New roommate search request."""

    budget_min: float | None = Field(default=None, ge=0, description="Minimum budget")
    budget_max: float | None = Field(default=None, ge=0, description="Maximum budget")
    gender_preference: str | None = Field(default=None, max_length=50, description="Roommate preference")
    location_preference: str | None = Field(default=None, max_length=255, description="Preferred area")
    move_in_date: date | None = Field(default=None, description="Desired move-in date")


class ListingStatusUpdate(BaseModel):
    """Owner status change (mark sold, rented, inactive)."""

    model_config = ConfigDict(from_attributes=True)

    status: ListingStatus = Field(description="New listing status")


class ListingResponse(BaseModel):
    """A listing row of any kind with its author attached.

    Domain columns are carried through untouched in ``data``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Listing identifier")
    kind: str = Field(description="Listing kind")
    data: dict[str, Any] = Field(default_factory=dict, description="Row columns")
    author: dict[str, Any] | None = Field(default=None, description="Author profile or partner")


class ListingListResponse(BaseModel):
    """Listings of one kind."""

    model_config = ConfigDict(from_attributes=True)

    kind: str = Field(description="Listing kind")
    listings: list[ListingResponse] = Field(description="Listings")


class ListingCreatedResponse(BaseModel):
    """The stored listing with the notification shown to its author."""

    model_config = ConfigDict(from_attributes=True)

    listing: ListingResponse = Field(description="Created listing")
    notice: ActionResult = Field(description="Confirmation shown to the author")
