"""Probes for the deployment platform plus a staff-only latency view."""

import time

from fastapi import APIRouter, Response, status

from src.api.deps import AdminSession, CurrentUser
from src.api.middleware.latency_logging import get_latency_stats
from src.core.supabase import check_database_connection
from src.schemas.auth import AuthenticatedResponse
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, LatencyReport, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health_check() -> HealthResponse:
    """The process is up. Supabase is not contacted."""
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Queries Supabase once. Responds 503 when the database cannot be reached.",
    responses={503: {"description": "Supabase unreachable"}},
)
async def readiness_check(response: Response) -> ReadinessResponse:
    started = time.perf_counter()
    database = await check_database_connection()
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    checks = [
        CheckResult(name="database", healthy=database["healthy"], latency_ms=elapsed_ms, error=database.get("error")),
    ]
    ready = all(check.healthy for check in checks)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(status=HealthStatus.HEALTHY if ready else HealthStatus.UNHEALTHY, checks=checks)


@router.get(
    "/health/auth",
    response_model=AuthenticatedResponse,
    summary="Token check",
    description="Echo the claims of the caller's access token. 401 when the token is missing or invalid.",
)
async def authenticated_check(user: CurrentUser) -> AuthenticatedResponse:
    return AuthenticatedResponse(user_id=str(user.user_id), email=user.email, role=user.role)


@router.get(
    "/health/latency",
    response_model=LatencyReport,
    summary="Request latency statistics",
    description="Latency of recent requests, overall and per endpoint. Staff only.",
)
async def latency_report(admin: AdminSession) -> LatencyReport:
    stats = get_latency_stats()
    return LatencyReport(overall=stats.get_stats(), by_path=stats.get_stats_by_path())
