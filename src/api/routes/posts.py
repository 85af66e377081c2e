"""Campus feed API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from src.api.deps import CurrentSession, CurrentUser
from src.models.post import FeedFilter
from src.schemas.post import (
    CommentCreate,
    CommentResponse,
    FeedResponse,
    LikeResponse,
    PostCreate,
    PostResponse,
)
from src.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get(
    "",
    response_model=FeedResponse,
    summary="Get feed",
    description="The 50 most recent posts of the user's university, or its 20 most liked photo posts when trending.",
)
async def get_feed(
    session: CurrentSession,
    feed: FeedFilter = Query(default=FeedFilter.ALL, description="all, offrecord, flexu or trending"),
) -> FeedResponse:
    service = PostService()
    posts = await service.get_feed(session.user_id, session.university_id, feed)
    return FeedResponse(posts=[PostResponse(**post) for post in posts])


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(data: PostCreate, session: CurrentSession) -> PostResponse:
    service = PostService()
    post = await service.create_post(session.user_id, session.university_id, data)
    author = None if data.is_anonymous else session.profile_summary
    return PostResponse(**{**post, "author": author})


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own post",
)
async def delete_post(post_id: UUID, user: CurrentUser) -> Response:
    service = PostService()
    await service.delete_post(post_id, user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{post_id}/like",
    response_model=LikeResponse,
    summary="Toggle like",
)
async def toggle_like(post_id: UUID, user: CurrentUser) -> LikeResponse:
    service = PostService()
    liked = await service.toggle_like(post_id, user.user_id)
    return LikeResponse(liked=liked)


@router.get(
    "/{post_id}/comments",
    response_model=list[CommentResponse],
    summary="List comments",
)
async def list_comments(post_id: UUID, user: CurrentUser) -> list[CommentResponse]:
    service = PostService()
    comments = await service.list_comments(post_id)
    return [CommentResponse(**comment) for comment in comments]


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
async def add_comment(post_id: UUID, data: CommentCreate, session: CurrentSession) -> CommentResponse:
    service = PostService()
    comment = await service.add_comment(post_id, session.user_id, data)
    author = None if data.is_anonymous else session.profile_summary
    return CommentResponse(**{**comment, "author": author})
