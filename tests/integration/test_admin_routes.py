"""Integration tests for admin moderation routes."""

import pytest
from fastapi.testclient import TestClient

from tests.fakes import OTHER_USER_ID, THIRD_USER_ID, UNIVERSITY_ID, USER_ID, FakeSupabase, auth_headers

SERVICE_ID = "c10e8400-e29b-41d4-a716-446655440000"
REQUEST_ID = "c20e8400-e29b-41d4-a716-446655440000"
PARTNER_ID = "c30e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def admin_db(fake_supabase: FakeSupabase) -> FakeSupabase:
    """USER_ID holds the staff role; nobody else does."""
    fake_supabase.rpc_handlers["has_role"] = lambda params: params["_user_id"] == USER_ID
    return fake_supabase


class TestAdminAccess:
    def test_non_admin_forbidden(self, client: TestClient, admin_db: FakeSupabase) -> None:
        response = client.get("/api/v1/admin/verifications", headers=auth_headers(OTHER_USER_ID))

        assert response.status_code == 403
        assert response.json()["error"] == "authorization_error"

    def test_failed_role_check_forbidden(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.fail("rpc:has_role", "select")

        assert client.get("/api/v1/admin/verifications", headers=auth_headers(USER_ID)).status_code == 403


class TestVerificationRoutes:
    def test_list_and_verify(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.tables["profiles"][2].update(verification_status="pending", is_verified=False)

        pending = client.get("/api/v1/admin/verifications", headers=auth_headers(USER_ID))
        decided = client.post(
            f"/api/v1/admin/users/{THIRD_USER_ID}/verification",
            json={"status": "verified"},
            headers=auth_headers(USER_ID),
        )

        assert [p["id"] for p in pending.json()] == [THIRD_USER_ID]
        assert decided.json()["title"] == "User verified"
        assert admin_db.tables["profiles"][2]["is_verified"] is True

    def test_search(self, client: TestClient, admin_db: FakeSupabase) -> None:
        response = client.get("/api/v1/admin/users?q=chen", headers=auth_headers(USER_ID))

        assert [u["id"] for u in response.json()] == [THIRD_USER_ID]

    def test_assign_role(self, client: TestClient, admin_db: FakeSupabase) -> None:
        response = client.post(
            "/api/v1/admin/roles",
            json={"user_id": OTHER_USER_ID, "role": "alumni"},
            headers=auth_headers(USER_ID),
        )

        assert response.json()["description"] == "User is now alumni"
        assert ("admin_assign_role", {"target_user_id": OTHER_USER_ID, "new_role": "alumni"}) in admin_db.rpc_calls


class TestServiceRoutes:
    def test_approve(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.tables["local_services"] = [{"id": SERVICE_ID, "name": "Xerox", "is_admin_approved": False}]

        listed = client.get("/api/v1/admin/services", headers=auth_headers(USER_ID))
        decided = client.post(
            f"/api/v1/admin/services/{SERVICE_ID}", json={"approved": True}, headers=auth_headers(USER_ID)
        )

        assert len(listed.json()) == 1
        assert decided.json()["title"] == "Service approved"
        assert admin_db.tables["local_services"][0]["is_admin_approved"] is True

    def test_reject(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.tables["local_services"] = [{"id": SERVICE_ID, "is_admin_approved": False}]

        response = client.post(
            f"/api/v1/admin/services/{SERVICE_ID}", json={"approved": False}, headers=auth_headers(USER_ID)
        )

        assert response.json()["title"] == "Service rejected"
        assert admin_db.tables["local_services"] == []


class TestRequestAndPartnerRoutes:
    def test_resolve_university_request(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.tables["university_requests"] = [{"id": REQUEST_ID, "status": "pending"}]

        response = client.post(
            f"/api/v1/admin/university-requests/{REQUEST_ID}",
            json={"status": "approved", "admin_notes": "Onboarding next term"},
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 200
        assert admin_db.tables["university_requests"][0]["admin_notes"] == "Onboarding next term"

    def test_missing_request(self, client: TestClient, admin_db: FakeSupabase) -> None:
        response = client.post(
            f"/api/v1/admin/university-requests/{REQUEST_ID}",
            json={"status": "approved"},
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 404

    def test_close_university(self, client: TestClient, admin_db: FakeSupabase) -> None:
        response = client.post(
            f"/api/v1/admin/universities/{UNIVERSITY_ID}/active?active=false", headers=auth_headers(USER_ID)
        )

        assert response.status_code == 200
        assert admin_db.tables["universities"][0]["is_active"] is False

    def test_partner_decision(self, client: TestClient, admin_db: FakeSupabase) -> None:
        admin_db.tables["partners"] = [
            {"id": PARTNER_ID, "business_name": "Campus Cafe", "category": "food", "status": "pending"}
        ]

        listed = client.get("/api/v1/admin/partners?q=cafe", headers=auth_headers(USER_ID))
        decided = client.post(
            f"/api/v1/admin/partners/{PARTNER_ID}", json={"status": "approved"}, headers=auth_headers(USER_ID)
        )

        assert [p["id"] for p in listed.json()] == [PARTNER_ID]
        assert decided.json() == {
            "success": True,
            "title": "Status Updated",
            "description": "Partner has been approved",
        }
