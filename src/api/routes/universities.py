"""University catalogue, university request and report API routes."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser, FormRateLimit
from src.schemas.common import ActionResult
from src.schemas.university import ReportCreate, UniversityRequestCreate, UniversityResponse
from src.services.report_service import ReportService
from src.services.university_service import UniversityService

router = APIRouter(tags=["universities"])


@router.get(
    "/universities",
    response_model=list[UniversityResponse],
    summary="List universities",
    description="Universities open for signup, by name. No authentication required.",
)
async def list_universities() -> list[UniversityResponse]:
    service = UniversityService()
    return [UniversityResponse(**u) for u in await service.list_active()]


@router.get(
    "/universities/{slug}",
    response_model=UniversityResponse,
    summary="Get university by slug",
)
async def get_university(slug: str) -> UniversityResponse:
    service = UniversityService()
    return UniversityResponse(**await service.get_by_slug(slug))


@router.post(
    "/university-requests",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Request a university",
    description="Ask for the platform to be brought to a new university.",
)
async def request_university(data: UniversityRequestCreate, _rate_limit: FormRateLimit) -> ActionResult:
    service = UniversityService()
    await service.submit_request(data)
    return ActionResult(
        title="Request submitted",
        description="We'll review your request and get back to you soon.",
    )


@router.post(
    "/reports",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Report content",
)
async def submit_report(data: ReportCreate, user: CurrentUser) -> ActionResult:
    service = ReportService()
    await service.submit(user.user_id, data)
    return ActionResult(
        title="Report submitted",
        description="Thank you for helping keep our community safe.",
    )
