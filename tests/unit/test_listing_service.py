"""Unit tests for the generic ListingResource."""

import pytest

from src.api.middleware.error_handler import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    ValidationError,
)
from src.core.config import get_settings
from src.models.listing import ListingStatus
from src.services.listing_service import LISTING_KINDS, ListingResource, get_listing_kind
from tests.fakes import OTHER_USER_ID, UNIVERSITY_ID, USER_ID, FakeSupabase

OTHER_UNIVERSITY_ID = "120e8400-e29b-41d4-a716-446655440000"
PARTNER_ID = "990e8400-e29b-41d4-a716-446655440000"


def _resource(kind: str, db: FakeSupabase) -> ListingResource:
    return ListingResource(kind, client=db, settings=get_settings())


class TestListingKinds:
    def test_all_kinds_registered(self) -> None:
        assert set(LISTING_KINDS) == {"housing", "marketplace", "jobs", "services", "resources", "roommates"}

    def test_unknown_kind(self) -> None:
        with pytest.raises(NotFoundError):
            get_listing_kind("boats")

    def test_jobs_are_posted_by_partners(self) -> None:
        assert LISTING_KINDS["jobs"].posted_by_partner
        assert not LISTING_KINDS["marketplace"].posted_by_partner


class TestListVisible:
    """Tests for listing queries."""

    @pytest.mark.asyncio
    async def test_marketplace_scoped_to_university_and_active(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["marketplace_posts"] = [
            {"id": "m1", "title": "Calculus book", "status": "active", "university_id": UNIVERSITY_ID,
             "user_id": OTHER_USER_ID, "created_at": "2024-01-02"},
            {"id": "m2", "title": "Old lamp", "status": "sold", "university_id": UNIVERSITY_ID,
             "user_id": OTHER_USER_ID, "created_at": "2024-01-03"},
            {"id": "m3", "title": "Bike", "status": "active", "university_id": OTHER_UNIVERSITY_ID,
             "user_id": OTHER_USER_ID, "created_at": "2024-01-04"},
        ]

        rows = await _resource("marketplace", fake_supabase).list_visible(UNIVERSITY_ID)

        assert [r["id"] for r in rows] == ["m1"]
        assert rows[0]["author"]["full_name"] == "Ben Okafor"

    @pytest.mark.asyncio
    async def test_newest_first(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["roommate_requests"] = [
            {"id": "r1", "status": "active", "university_id": UNIVERSITY_ID, "user_id": USER_ID, "created_at": "2024-01-01"},
            {"id": "r2", "status": "active", "university_id": UNIVERSITY_ID, "user_id": USER_ID, "created_at": "2024-03-01"},
        ]

        rows = await _resource("roommates", fake_supabase).list_visible(UNIVERSITY_ID)

        assert [r["id"] for r in rows] == ["r2", "r1"]

    @pytest.mark.asyncio
    async def test_only_allowed_filters_applied(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["marketplace_posts"] = [
            {"id": "m1", "category": "books", "status": "active", "university_id": UNIVERSITY_ID, "user_id": USER_ID},
            {"id": "m2", "category": "electronics", "status": "active", "university_id": UNIVERSITY_ID, "user_id": USER_ID},
        ]

        rows = await _resource("marketplace", fake_supabase).list_visible(
            UNIVERSITY_ID, {"category": "books", "user_id": OTHER_USER_ID, "condition": "all"}
        )

        assert [r["id"] for r in rows] == ["m1"]
        query = fake_supabase.executed("marketplace_posts")[0]
        assert ("eq", "user_id", OTHER_USER_ID) not in query.filter_log
        assert all(column != "condition" for _, column, _ in query.filter_log)

    @pytest.mark.asyncio
    async def test_housing_reads_through_safe_rpc(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.rpc_handlers["get_housing_listings_safe"] = lambda params: [
            {"id": "h1", "status": "active", "user_id": OTHER_USER_ID, "created_at": "2024-01-01"},
        ]

        rows = await _resource("housing", fake_supabase).list_visible(UNIVERSITY_ID)

        assert fake_supabase.rpc_calls == [("get_housing_listings_safe", {"university_filter": UNIVERSITY_ID})]
        assert [r["id"] for r in rows] == ["h1"]
        assert fake_supabase.executed("housing_listings") == []

    @pytest.mark.asyncio
    async def test_services_need_admin_approval(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["local_services"] = [
            {"id": "s1", "name": "Print shop", "is_admin_approved": True, "rating": 4.5},
            {"id": "s2", "name": "Laundry", "is_admin_approved": False, "rating": 5.0},
            {"id": "s3", "name": "Cafe", "is_admin_approved": True, "rating": 4.8},
        ]

        rows = await _resource("services", fake_supabase).list_visible(None)

        assert [r["id"] for r in rows] == ["s3", "s1"]
        assert all(r["author"] is None for r in rows)

    @pytest.mark.asyncio
    async def test_jobs_only_from_approved_partners(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["partners"] = [
            {"id": PARTNER_ID, "user_id": OTHER_USER_ID, "business_name": "Campus Cafe", "status": "approved"},
            {"id": "p-pending", "user_id": USER_ID, "business_name": "Startup", "status": "pending"},
        ]
        fake_supabase.tables["job_listings"] = [
            {"id": "j1", "status": "active", "university_id": UNIVERSITY_ID, "partner_id": PARTNER_ID},
            {"id": "j2", "status": "active", "university_id": UNIVERSITY_ID, "partner_id": "p-pending"},
        ]

        rows = await _resource("jobs", fake_supabase).list_visible(UNIVERSITY_ID)

        assert [r["id"] for r in rows] == ["j1"]
        assert rows[0]["author"]["business_name"] == "Campus Cafe"

    @pytest.mark.asyncio
    async def test_no_university_means_no_query(self, fake_supabase: FakeSupabase) -> None:
        rows = await _resource("marketplace", fake_supabase).list_visible(None)

        assert rows == []
        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_read_failure_returns_empty(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("marketplace_posts", "select")

        assert await _resource("marketplace", fake_supabase).list_visible(UNIVERSITY_ID) == []


class TestCreate:
    """Tests for listing creation."""

    @pytest.mark.asyncio
    async def test_marketplace_item_owned_by_user(self, fake_supabase: FakeSupabase) -> None:
        row = await _resource("marketplace", fake_supabase).create(
            USER_ID, UNIVERSITY_ID, {"title": "  Desk lamp ", "price": 12.5, "description": " "}
        )

        assert row["title"] == "Desk lamp"
        assert row["user_id"] == USER_ID
        assert row["university_id"] == UNIVERSITY_ID
        assert row["status"] == "active"
        assert "description" not in row

    @pytest.mark.asyncio
    async def test_service_starts_unapproved(self, fake_supabase: FakeSupabase) -> None:
        row = await _resource("services", fake_supabase).create(
            USER_ID, UNIVERSITY_ID, {"name": "Tutoring", "category": "education"}
        )

        assert row["is_admin_approved"] is False
        assert "status" not in row

    @pytest.mark.asyncio
    async def test_invalid_form_rejected(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _resource("marketplace", fake_supabase).create(USER_ID, UNIVERSITY_ID, {"price": 10})

        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _resource("marketplace", fake_supabase).create(
                USER_ID, UNIVERSITY_ID, {"title": "Desk", "is_featured": True}
            )

    @pytest.mark.asyncio
    async def test_requires_university(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError, match="Complete your profile"):
            await _resource("roommates", fake_supabase).create(USER_ID, None, {"budget_max": 500})

    @pytest.mark.asyncio
    async def test_job_requires_approved_partner(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["partners"] = [{"id": PARTNER_ID, "user_id": USER_ID, "status": "pending"}]

        with pytest.raises(AuthorizationError):
            await _resource("jobs", fake_supabase).create(USER_ID, UNIVERSITY_ID, {"title": "Barista"})

        assert fake_supabase.executed("job_listings") == []

    @pytest.mark.asyncio
    async def test_job_posted_as_partner(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["partners"] = [{"id": PARTNER_ID, "user_id": USER_ID, "status": "approved"}]

        row = await _resource("jobs", fake_supabase).create(
            USER_ID, UNIVERSITY_ID, {"title": "Barista", "university_id": OTHER_UNIVERSITY_ID}
        )

        assert row["partner_id"] == PARTNER_ID
        assert "user_id" not in row
        assert row["university_id"] == OTHER_UNIVERSITY_ID

    @pytest.mark.asyncio
    async def test_backend_rejection(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("marketplace_posts", "insert", message="new row violates row-level security policy")

        with pytest.raises(BackendError, match="row-level security"):
            await _resource("marketplace", fake_supabase).create(USER_ID, UNIVERSITY_ID, {"title": "Desk"})


class TestOwnerActions:
    """Tests for status changes and deletion."""

    @pytest.mark.asyncio
    async def test_mark_sold(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["marketplace_posts"] = [{"id": "m1", "status": "active", "user_id": USER_ID}]

        row = await _resource("marketplace", fake_supabase).update_status("m1", USER_ID, ListingStatus.SOLD)

        assert row["status"] == "sold"

    @pytest.mark.asyncio
    async def test_only_owner_can_update(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["marketplace_posts"] = [{"id": "m1", "status": "active", "user_id": OTHER_USER_ID}]

        with pytest.raises(AuthorizationError):
            await _resource("marketplace", fake_supabase).update_status("m1", USER_ID, "sold")

        assert fake_supabase.executed("marketplace_posts", "update") == []

    @pytest.mark.asyncio
    async def test_services_have_no_status(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _resource("services", fake_supabase).update_status("s1", USER_ID, "sold")

    @pytest.mark.asyncio
    async def test_delete_own_listing(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["housing_listings"] = [{"id": "h1", "user_id": USER_ID}]

        await _resource("housing", fake_supabase).delete("h1", USER_ID)

        assert fake_supabase.tables["housing_listings"] == []

    @pytest.mark.asyncio
    async def test_delete_missing_listing(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(NotFoundError):
            await _resource("housing", fake_supabase).delete("missing", USER_ID)


class TestUploadImage:
    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self, fake_supabase: FakeSupabase) -> None:
        url = await _resource("marketplace", fake_supabase).upload_image(USER_ID, "lamp.PNG", b"\x89PNG", "image/png")

        bucket, path, content, options = fake_supabase.uploads[0]
        assert bucket == get_settings().listing_image_bucket
        assert path.startswith(f"marketplace/{USER_ID}/") and path.endswith(".png")
        assert options["content-type"] == "image/png"
        assert url.endswith(path)

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _resource("marketplace", fake_supabase).upload_image(USER_ID, "notes.pdf", b"%PDF", "application/pdf")

        assert fake_supabase.uploads == []
