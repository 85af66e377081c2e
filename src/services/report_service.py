"""Content reports raised by users."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import BackendError, backend_error_message
from src.core.supabase import get_supabase_client
from src.schemas.university import ReportCreate

logger = logging.getLogger(__name__)


class ReportService:
    """Service for reporting posts, comments, profiles and listings."""

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    async def submit(self, reporter_id: UUID | str, data: ReportCreate) -> dict[str, Any]:
        """Store a report for moderators.

        Raises:
            BackendError: If the insert is rejected.
        """
        row = {
            "reporter_id": str(reporter_id),
            "reported_type": data.reported_type,
            "reported_id": str(data.reported_id),
            "reason": data.reason,
            "description": (data.description or "").strip() or None,
        }
        try:
            response = self.client.table("reports").insert(row).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        logger.info("Report on %s %s by %s", data.reported_type, data.reported_id, reporter_id)
        return response.data[0] if response.data else row
