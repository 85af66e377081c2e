"""Response shapes shared by every router: probes, notices and errors."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    status: HealthStatus
    timestamp: datetime = Field(default_factory=utc_now)
    version: str = "0.1.0"


class CheckResult(BaseModel):
    """One dependency probed by /health/ready."""

    name: str
    healthy: bool
    latency_ms: float | None = None
    error: str | None = None


class ReadinessResponse(BaseModel):
    status: HealthStatus
    timestamp: datetime = Field(default_factory=utc_now)
    checks: list[CheckResult] = Field(default_factory=list)


class LatencyReport(BaseModel):
    """Rolling request latency statistics."""

    overall: dict[str, float] = Field(description="Count, average and percentiles across all endpoints")
    by_path: dict[str, dict[str, float]] = Field(description="Count, average and max per endpoint")


class ActionResult(BaseModel):
    """The toast shown after posting, sending or submitting a form."""

    success: bool = True
    title: str = Field(description="Toast title, e.g. 'Listing created!'")
    description: str | None = Field(default=None, description="Toast body")


class ErrorDetail(BaseModel):
    loc: list[str] | None = Field(default=None, description="Field path, when the error is about one field")
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Body of every error rendered by the error middleware."""

    error: str = Field(description="Machine readable kind, e.g. backend_error")
    message: str = Field(description="Text to show the user")
    details: list[ErrorDetail] | None = None
    request_id: str | None = Field(default=None, description="Echo of X-Request-ID")
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        items = [
            ErrorDetail(loc=d.get("loc"), msg=d.get("msg", str(d)), type=d.get("type", "error"))
            for d in details or []
        ]
        return cls(error=error_type, message=message, details=items or None, request_id=request_id)
