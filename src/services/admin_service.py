"""Admin moderation service: verifications, services, roles, requests and partners."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import BackendError, NotFoundError, backend_error_message
from src.core.config import Settings, get_settings
from src.core.supabase import get_supabase_client
from src.models.profile import AppRole, VerificationStatus
from src.models.university import RequestStatus

logger = logging.getLogger(__name__)


def _ilike_any(columns: tuple[str, ...], term: str) -> str:
    """PostgREST or() filter matching ``term`` anywhere in any of ``columns``.

    The pattern is double-quoted so commas, dots and parentheses in the term
    stay part of the value instead of the filter grammar.
    """
    pattern = term.replace("\\", "\\\\").replace('"', '\\"')
    return ",".join(f'{column}.ilike."%{pattern}%"' for column in columns)


class AdminService:
    """Moderation operations available to staff.

    Callers must check is_admin() first; the service itself does not
    repeat the capability check.
    """

    SEARCH_LIMIT = 50

    def __init__(self, client: Client | None = None, settings: Settings | None = None) -> None:
        self.client = client or get_supabase_client()
        self.settings = settings or get_settings()

    async def is_admin(self, user_id: UUID | str) -> bool:
        """Check the admin capability through has_role().

        Errors count as "not an admin".
        """
        try:
            response = self.client.rpc(
                "has_role",
                {"_user_id": str(user_id), "_role": self.settings.admin_role},
            ).execute()
        except Exception as e:
            logger.warning("Admin check for %s failed: %s", user_id, e)
            return False
        return response.data is True

    # Verifications

    async def list_pending_verifications(self) -> list[dict[str, Any]]:
        return self._select(
            self.client.table("profiles")
            .select("*")
            .eq("verification_status", VerificationStatus.PENDING.value)
            .order("created_at", desc=True),
            "pending verifications",
        )

    async def search_users(self, term: str | None = None) -> list[dict[str, Any]]:
        """Search profiles by name or email, newest first."""
        query = self.client.table("profiles").select("*").order("created_at", desc=True)
        term = (term or "").strip()
        if term:
            query = query.or_(_ilike_any(("full_name", "email"), term))
        return self._select(query.limit(self.SEARCH_LIMIT), "user search")

    async def set_verification(self, user_id: UUID | str, status: VerificationStatus | str) -> dict[str, Any]:
        """Verify or reject a student; is_verified follows the decision."""
        value = VerificationStatus(status)
        return self._update_one(
            "profiles",
            user_id,
            {
                "verification_status": value.value,
                "is_verified": value == VerificationStatus.VERIFIED,
            },
            "User",
        )

    # Local services

    async def list_pending_services(self) -> list[dict[str, Any]]:
        return self._select(
            self.client.table("local_services")
            .select("*")
            .eq("is_admin_approved", False)
            .order("created_at", desc=True),
            "pending services",
        )

    async def decide_service(self, service_id: UUID | str, approved: bool) -> None:
        """Publish an approved service; a rejected one is deleted."""
        try:
            if approved:
                response = (
                    self.client.table("local_services")
                    .update({"is_admin_approved": True})
                    .eq("id", str(service_id))
                    .execute()
                )
                if not response.data:
                    raise NotFoundError("Service not found")
            else:
                self.client.table("local_services").delete().eq("id", str(service_id)).execute()
        except NotFoundError:
            raise
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        logger.info("Service %s %s", service_id, "approved" if approved else "rejected")

    # Roles

    async def assign_role(self, user_id: UUID | str, role: AppRole | str) -> None:
        """Assign a community role through admin_assign_role()."""
        new_role = AppRole(role)
        try:
            self.client.rpc(
                "admin_assign_role",
                {"target_user_id": str(user_id), "new_role": new_role.value},
            ).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        logger.info("Role %s assigned to %s", new_role.value, user_id)

    # University requests and partners

    async def list_university_requests(self) -> list[dict[str, Any]]:
        return self._select(
            self.client.table("university_requests").select("*").order("created_at", desc=True),
            "university requests",
        )

    async def decide_university_request(
        self,
        request_id: UUID | str,
        status: RequestStatus | str,
        admin_notes: str | None = None,
    ) -> dict[str, Any]:
        return self._update_one(
            "university_requests",
            request_id,
            {"status": RequestStatus(status).value, "admin_notes": admin_notes},
            "Request",
        )

    async def set_university_active(self, university_id: UUID | str, is_active: bool) -> dict[str, Any]:
        return self._update_one("universities", university_id, {"is_active": is_active}, "University")

    async def list_partners(self, term: str | None = None) -> list[dict[str, Any]]:
        """List partner applications, optionally filtered by name or category."""
        query = self.client.table("partners").select("*").order("created_at", desc=True)
        term = (term or "").strip()
        if term:
            query = query.or_(_ilike_any(("business_name", "category"), term))
        return self._select(query, "partners")

    async def decide_partner(self, partner_id: UUID | str, status: RequestStatus | str) -> dict[str, Any]:
        return self._update_one("partners", partner_id, {"status": RequestStatus(status).value}, "Partner")

    # Helpers

    def _select(self, query: Any, label: str) -> list[dict[str, Any]]:
        try:
            return query.execute().data or []
        except Exception as e:
            logger.warning("Failed to load %s: %s", label, e)
            return []

    def _update_one(self, table: str, row_id: UUID | str, values: dict[str, Any], label: str) -> dict[str, Any]:
        try:
            response = self.client.table(table).update(values).eq("id", str(row_id)).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        if not response.data:
            raise NotFoundError(f"{label} not found")
        logger.info("%s %s updated: %s", label, row_id, values)
        return response.data[0]
