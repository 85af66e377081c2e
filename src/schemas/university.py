"""University, university request and report schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UniversityResponse(BaseModel):
    """Public university record used for signup and theming."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="University identifier")
    name: str = Field(description="University name")
    short_name: str | None = Field(default=None, description="Short name")
    slug: str | None = Field(default=None, description="URL slug")
    domain: str | None = Field(default=None, description="Email domain")
    location: str | None = Field(default=None, description="City")
    logo_url: str | None = Field(default=None, description="Logo URL")
    banner_url: str | None = Field(default=None, description="Banner URL")
    theme_primary: str | None = Field(default=None, description="Primary theme colour")
    theme_gradient: str | None = Field(default=None, description="Theme gradient")


class UniversityRequestCreate(BaseModel):
    """"Bring us to my university" form."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=255, description="Requester name")
    email: str = Field(..., min_length=3, max_length=255, description="Requester email")
    phone: str | None = Field(default=None, max_length=50, description="Requester phone")
    role: str = Field(..., max_length=50, description="Requester role at the university")
    department: str | None = Field(default=None, max_length=255, description="Department")
    university_name: str = Field(..., min_length=1, max_length=255, description="University name")
    city: str = Field(..., max_length=255, description="City")
    state: str = Field(..., max_length=255, description="State")
    country: str = Field(..., max_length=255, description="Country")
    interest_count: str | None = Field(default=None, max_length=50, description="Expected interested students")
    reason: str | None = Field(default=None, max_length=2000, description="Why the university should join")


class ReportCreate(BaseModel):
    """Report a post, comment, profile or listing."""

    model_config = ConfigDict(from_attributes=True)

    reported_type: str = Field(..., max_length=50, description="Type of the reported object")
    reported_id: UUID = Field(description="Identifier of the reported object")
    reason: str = Field(..., min_length=1, max_length=50, description="Reason code")
    description: str | None = Field(default=None, max_length=2000, description="Optional details")
