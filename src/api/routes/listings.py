"""Listing API routes shared by every listing kind.

Paths are parametrised by kind: housing, marketplace, jobs, services,
resources and roommates.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, File, Request, Response, UploadFile, status

from src.api.deps import CurrentSession, CurrentUser
from src.schemas.common import ActionResult
from src.schemas.listing import (
    ListingCreatedResponse,
    ListingListResponse,
    ListingResponse,
    ListingStatusUpdate,
)
from src.schemas.profile import UploadResponse
from src.services.listing_service import ListingResource, get_listing_kind

router = APIRouter(prefix="/listings", tags=["listings"])


def to_listing_response(kind: str, row: dict[str, Any]) -> ListingResponse:
    data = {key: value for key, value in row.items() if key != "author"}
    return ListingResponse(id=row["id"], kind=kind, data=data, author=row.get("author"))


@router.get(
    "/{kind}",
    response_model=ListingListResponse,
    summary="List listings",
    description="Visible listings of one kind. Query parameters matching the kind's filters narrow the list.",
)
async def list_listings(kind: str, request: Request, session: CurrentSession) -> ListingListResponse:
    resource = ListingResource(get_listing_kind(kind))
    rows = await resource.list_visible(session.university_id, dict(request.query_params))
    return ListingListResponse(kind=kind, listings=[to_listing_response(kind, row) for row in rows])


@router.post(
    "/{kind}",
    response_model=ListingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Create a listing of the given kind owned by the current user.",
)
async def create_listing(
    kind: str,
    session: CurrentSession,
    data: dict[str, Any] = Body(..., description="Listing form fields"),
) -> ListingCreatedResponse:
    listing_kind = get_listing_kind(kind)
    resource = ListingResource(listing_kind)
    row = await resource.create(session.user_id, session.university_id, data)
    return ListingCreatedResponse(
        listing=to_listing_response(kind, {**row, "author": session.profile_summary}),
        notice=ActionResult(title=listing_kind.created_title, description=listing_kind.created_description),
    )


@router.post(
    "/{kind}/images",
    response_model=UploadResponse,
    summary="Upload listing image",
    description="Upload a photo to attach to a listing of the given kind.",
)
async def upload_listing_image(
    kind: str,
    user: CurrentUser,
    file: UploadFile = File(..., description="Listing photo (JPEG, PNG, WebP or GIF)"),
) -> UploadResponse:
    resource = ListingResource(get_listing_kind(kind))
    content = await file.read()
    url = await resource.upload_image(user.user_id, file.filename, content, file.content_type or "")
    return UploadResponse(url=url)


@router.get(
    "/{kind}/{listing_id}",
    response_model=ListingResponse,
    summary="Get listing",
)
async def get_listing(kind: str, listing_id: UUID, user: CurrentUser) -> ListingResponse:
    resource = ListingResource(get_listing_kind(kind))
    row = await resource.get(listing_id)
    return to_listing_response(kind, row)


@router.patch(
    "/{kind}/{listing_id}/status",
    response_model=ListingResponse,
    summary="Update listing status",
    description="Mark the current user's listing as sold, rented, inactive or active again.",
)
async def update_listing_status(
    kind: str,
    listing_id: UUID,
    data: ListingStatusUpdate,
    user: CurrentUser,
) -> ListingResponse:
    resource = ListingResource(get_listing_kind(kind))
    row = await resource.update_status(listing_id, user.user_id, data.status)
    return to_listing_response(kind, row)


@router.delete(
    "/{kind}/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
)
async def delete_listing(kind: str, listing_id: UUID, user: CurrentUser) -> Response:
    resource = ListingResource(get_listing_kind(kind))
    await resource.delete(listing_id, user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
