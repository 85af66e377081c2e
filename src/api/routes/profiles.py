"""Profile, directory and follow API routes."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status

from src.api.deps import CurrentSession, CurrentUser
from src.schemas.profile import (
    DirectoryEntry,
    FollowStats,
    ProfileResponse,
    ProfileSummary,
    ProfileUpdate,
    PublicProfileResponse,
    SessionProfileResponse,
    UploadResponse,
)
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=SessionProfileResponse,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile with role and university.",
)
async def get_my_profile(session: CurrentSession) -> SessionProfileResponse:
    """Get the authenticated user's profile.

    Raises:
        HTTPException: 404 if the user has no profile yet.
    """
    if not session.profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    return SessionProfileResponse(**session.profile)


@router.put(
    "/me",
    response_model=ProfileResponse,
    summary="Update current user's profile",
    description="Updates the authenticated user's profile with provided fields.",
)
async def update_my_profile(data: ProfileUpdate, user: CurrentUser) -> ProfileResponse:
    service = ProfileService()
    profile = await service.update_profile(user.user_id, data)
    return ProfileResponse(**profile)


@router.post(
    "/me/avatar",
    response_model=UploadResponse,
    summary="Upload avatar",
    description="Replace the profile picture of the authenticated user.",
)
async def upload_avatar(
    user: CurrentUser,
    file: UploadFile = File(..., description="Avatar image (JPEG, PNG, WebP or GIF)"),
) -> UploadResponse:
    service = ProfileService()
    content = await file.read()
    url = await service.upload_avatar(user.user_id, file.filename, content, file.content_type or "")
    return UploadResponse(url=url)


@router.post(
    "/me/verification-document",
    response_model=UploadResponse,
    summary="Upload verification document",
    description="Upload a student ID card or letter; the profile becomes pending review.",
)
async def upload_verification_document(
    user: CurrentUser,
    file: UploadFile = File(..., description="Student ID image or PDF"),
) -> UploadResponse:
    service = ProfileService()
    content = await file.read()
    url = await service.upload_verification_document(
        user.user_id, file.filename, content, file.content_type or ""
    )
    return UploadResponse(url=url)


@router.get(
    "/directory",
    response_model=list[DirectoryEntry],
    summary="Community directory",
    description="Other members of the user's university, ordered by name.",
)
async def get_directory(session: CurrentSession) -> list[DirectoryEntry]:
    service = ProfileService()
    members = await service.get_directory(session.user_id, session.university_id)
    return [DirectoryEntry(**member) for member in members]


@router.get(
    "/search",
    response_model=list[PublicProfileResponse],
    summary="Search users",
    description="Public profiles whose name or bio contains the term. Terms under two characters match nothing.",
)
async def search_profiles(
    user: CurrentUser,
    q: str = Query("", max_length=100, description="Search term"),
) -> list[PublicProfileResponse]:
    service = ProfileService()
    profiles = await service.search_public_profiles(q)
    return [PublicProfileResponse(**profile) for profile in profiles]


@router.get(
    "/{profile_id}",
    response_model=PublicProfileResponse,
    summary="Get public profile",
    description="Public projection of another user's profile.",
)
async def get_public_profile(profile_id: UUID, user: CurrentUser) -> PublicProfileResponse:
    service = ProfileService()
    profile = await service.get_public_profile(profile_id)
    return PublicProfileResponse(**profile)


@router.get(
    "/{profile_id}/follow",
    response_model=FollowStats,
    summary="Follow stats",
    description="Follower and following counts, and whether the caller follows this profile.",
)
async def get_follow_stats(profile_id: UUID, user: CurrentUser) -> FollowStats:
    service = ProfileService()
    stats = await service.get_follow_stats(profile_id, viewer_id=user.user_id)
    return FollowStats(**stats)


@router.post(
    "/{profile_id}/follow",
    response_model=FollowStats,
    summary="Toggle follow",
    description="Follow the profile, or unfollow it if already followed.",
)
async def toggle_follow(profile_id: UUID, user: CurrentUser) -> FollowStats:
    service = ProfileService()
    await service.toggle_follow(user.user_id, profile_id)
    stats = await service.get_follow_stats(profile_id, viewer_id=user.user_id)
    return FollowStats(**stats)


@router.get(
    "/{profile_id}/{direction}",
    response_model=list[ProfileSummary],
    summary="Followers or following",
    description="Profiles following, or followed by, this profile.",
)
async def list_follow_profiles(
    profile_id: UUID,
    direction: Literal["followers", "following"],
    user: CurrentUser,
) -> list[ProfileSummary]:
    service = ProfileService()
    profiles = await service.list_follow_profiles(profile_id, direction)
    return [ProfileSummary(**p) for p in profiles]
