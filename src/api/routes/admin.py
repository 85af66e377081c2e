"""Admin moderation API routes.

Every route requires the admin role; other users get 403.
"""

from uuid import UUID

from fastapi import APIRouter, Query

from src.api.deps import AdminSession
from src.schemas.admin import RequestDecision, RoleAssignment, ServiceDecision, VerificationDecision
from src.schemas.common import ActionResult
from src.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/verifications", summary="Pending verifications")
async def list_pending_verifications(admin: AdminSession) -> list[dict]:
    service = AdminService()
    return await service.list_pending_verifications()


@router.get("/users", summary="Search users")
async def search_users(
    admin: AdminSession,
    q: str | None = Query(default=None, description="Name or email fragment"),
) -> list[dict]:
    service = AdminService()
    return await service.search_users(q)


@router.post("/users/{user_id}/verification", response_model=ActionResult, summary="Verify or reject a user")
async def decide_verification(user_id: UUID, data: VerificationDecision, admin: AdminSession) -> ActionResult:
    service = AdminService()
    await service.set_verification(user_id, data.status)
    title = "User verified" if data.status == "verified" else "Verification rejected"
    return ActionResult(title=title)


@router.post("/roles", response_model=ActionResult, summary="Assign role")
async def assign_role(data: RoleAssignment, admin: AdminSession) -> ActionResult:
    service = AdminService()
    await service.assign_role(data.user_id, data.role)
    return ActionResult(title="Role updated", description=f"User is now {data.role.value}")


@router.get("/services", summary="Pending local services")
async def list_pending_services(admin: AdminSession) -> list[dict]:
    service = AdminService()
    return await service.list_pending_services()


@router.post("/services/{service_id}", response_model=ActionResult, summary="Approve or reject a service")
async def decide_service(service_id: UUID, data: ServiceDecision, admin: AdminSession) -> ActionResult:
    service = AdminService()
    await service.decide_service(service_id, data.approved)
    return ActionResult(title="Service approved" if data.approved else "Service rejected")


@router.get("/university-requests", summary="University requests")
async def list_university_requests(admin: AdminSession) -> list[dict]:
    service = AdminService()
    return await service.list_university_requests()


@router.post("/university-requests/{request_id}", response_model=ActionResult, summary="Resolve university request")
async def decide_university_request(request_id: UUID, data: RequestDecision, admin: AdminSession) -> ActionResult:
    service = AdminService()
    await service.decide_university_request(request_id, data.status, data.admin_notes)
    return ActionResult(title="Request updated")


@router.post("/universities/{university_id}/active", response_model=ActionResult, summary="Open or close a university")
async def set_university_active(
    university_id: UUID,
    admin: AdminSession,
    active: bool = Query(..., description="Whether signups are open"),
) -> ActionResult:
    service = AdminService()
    await service.set_university_active(university_id, active)
    return ActionResult(title="University status updated")


@router.get("/partners", summary="Partner applications")
async def list_partners(
    admin: AdminSession,
    q: str | None = Query(default=None, description="Business name or category fragment"),
) -> list[dict]:
    service = AdminService()
    return await service.list_partners(q)


@router.post("/partners/{partner_id}", response_model=ActionResult, summary="Resolve partner application")
async def decide_partner(partner_id: UUID, data: RequestDecision, admin: AdminSession) -> ActionResult:
    service = AdminService()
    await service.decide_partner(partner_id, data.status)
    return ActionResult(title="Status Updated", description=f"Partner has been {data.status.value}")
