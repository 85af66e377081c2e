"""Universities and "bring us to my university" requests."""

import logging
from typing import Any

from supabase import Client

from src.api.middleware.error_handler import (
    BackendError,
    NotFoundError,
    RateLimitError,
    backend_error_message,
)
from src.core.supabase import get_supabase_client
from src.models.university import RequestStatus
from src.schemas.university import UniversityRequestCreate

logger = logging.getLogger(__name__)


class UniversityService:
    """Service for the university catalogue."""

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    async def list_active(self) -> list[dict[str, Any]]:
        """List universities open for signup, by name."""
        try:
            response = (
                self.client.table("universities")
                .select("*")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load universities: %s", e)
            return []
        return response.data or []

    async def get_by_slug(self, slug: str) -> dict[str, Any]:
        """Get a university by its URL slug.

        Raises:
            NotFoundError: If no university has this slug.
        """
        response = (
            self.client.table("universities")
            .select("*")
            .eq("slug", slug)
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            raise NotFoundError("University not found")
        return response.data

    async def submit_request(self, data: UniversityRequestCreate) -> dict[str, Any]:
        """Record a request to bring the platform to a new university.

        The backend limits how often one email may submit through
        check_request_rate_limit().

        Raises:
            RateLimitError: If the email submitted too many requests.
            BackendError: If the insert is rejected.
        """
        email = data.email.strip().lower()
        try:
            allowed = self.client.rpc("check_request_rate_limit", {"submitter_email": email}).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e
        if allowed.data is False:
            raise RateLimitError("Too many requests from this email. Please try again later.", retry_after=3600)

        row = {
            "name": data.name.strip(),
            "email": email,
            "phone": (data.phone or "").strip() or None,
            "role": data.role,
            "department": (data.department or "").strip() or None,
            "university_name": data.university_name.strip(),
            "city": data.city.strip(),
            "state": data.state,
            "country": data.country,
            "interest_count": data.interest_count or None,
            "reason": (data.reason or "").strip() or None,
            "status": RequestStatus.PENDING.value,
        }
        try:
            response = self.client.table("university_requests").insert(row).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        logger.info("University request submitted for %s", row["university_name"])
        return response.data[0] if response.data else row
