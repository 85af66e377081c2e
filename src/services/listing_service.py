"""Generic listing resource shared by the housing, marketplace, jobs,
local services, academic resources and roommate domains.

Each domain is one ListingKind entry; ListingResource implements the
list / get / create / status / delete flow once for all of them.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    ValidationError,
    backend_error_message,
)
from src.core.config import Settings, get_settings
from src.core.storage import ALLOWED_IMAGE_TYPES, file_extension, upload_public_file
from src.core.supabase import get_supabase_client
from src.models.conversation import PROFILE_SUMMARY_COLUMNS
from src.models.listing import ListingStatus
from src.models.university import RequestStatus
from src.schemas.listing import (
    AcademicResourceCreate,
    HousingListingCreate,
    JobListingCreate,
    ListingCreateBase,
    LocalServiceCreate,
    MarketplacePostCreate,
    RoommateRequestCreate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingKind:
    """Description of one listing domain."""

    name: str
    table: str
    create_schema: type[ListingCreateBase]
    visibility: dict[str, Any] = field(default_factory=lambda: {"status": ListingStatus.ACTIVE.value})
    order_column: str = "created_at"
    university_scoped: bool = True
    filters: tuple[str, ...] = ()
    owner_column: str = "user_id"
    author_source: str | None = "profiles"
    read_rpc: str | None = None
    create_defaults: dict[str, Any] = field(default_factory=dict)
    created_title: str = "Listing created"
    created_description: str | None = None

    @property
    def posted_by_partner(self) -> bool:
        return self.owner_column == "partner_id"


LISTING_KINDS: dict[str, ListingKind] = {
    kind.name: kind
    for kind in (
        ListingKind(
            name="housing",
            table="housing_listings",
            create_schema=HousingListingCreate,
            filters=("listing_type", "room_type", "gender_preference"),
            read_rpc="get_housing_listings_safe",
            create_defaults={"status": ListingStatus.ACTIVE.value},
            created_title="Listing created",
            created_description="Your housing listing is now live.",
        ),
        ListingKind(
            name="marketplace",
            table="marketplace_posts",
            create_schema=MarketplacePostCreate,
            filters=("category", "condition"),
            create_defaults={"status": ListingStatus.ACTIVE.value},
            created_title="Item listed",
            created_description="Your item is now visible in the marketplace.",
        ),
        ListingKind(
            name="jobs",
            table="job_listings",
            create_schema=JobListingCreate,
            filters=("job_type",),
            owner_column="partner_id",
            author_source="partners",
            create_defaults={"status": ListingStatus.ACTIVE.value},
            created_title="Job posted",
            created_description="Your job listing is now live.",
        ),
        ListingKind(
            name="services",
            table="local_services",
            create_schema=LocalServiceCreate,
            visibility={"is_admin_approved": True},
            order_column="rating",
            university_scoped=False,
            filters=("category",),
            author_source=None,
            create_defaults={"is_admin_approved": False},
            created_title="Service submitted",
            created_description="Your service listing is pending admin approval.",
        ),
        ListingKind(
            name="resources",
            table="academic_resources",
            create_schema=AcademicResourceCreate,
            university_scoped=False,
            filters=("resource_type", "subject"),
            create_defaults={"status": ListingStatus.ACTIVE.value},
            created_title="Resource listed",
        ),
        ListingKind(
            name="roommates",
            table="roommate_requests",
            create_schema=RoommateRequestCreate,
            filters=("gender_preference",),
            create_defaults={"status": ListingStatus.ACTIVE.value},
            created_title="Request posted",
            created_description="Your roommate request is now visible.",
        ),
    )
}


def get_listing_kind(name: str) -> ListingKind:
    """Look up a listing kind by name.

    Raises:
        NotFoundError: If the kind does not exist.
    """
    try:
        return LISTING_KINDS[name]
    except KeyError:
        raise NotFoundError(f"Unknown listing type: {name}") from None


class ListingResource:
    """List, read, create and manage the listings of one kind."""

    def __init__(
        self,
        kind: ListingKind | str,
        client: Client | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.kind = get_listing_kind(kind) if isinstance(kind, str) else kind
        self.client = client or get_supabase_client()
        self.settings = settings or get_settings()

    async def list_visible(
        self,
        university_id: UUID | str | None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """List the visible listings, newest (or best rated) first.

        Args:
            university_id: The viewer's university.
            filters: Equality filters; keys outside the kind's allowed
                filters and empty or "all" values are ignored.

        Returns:
            list: Listing rows with an ``author`` key; empty on read failure.
        """
        kind = self.kind
        if kind.university_scoped and not university_id:
            return []

        try:
            if kind.read_rpc:
                query = self.client.rpc(kind.read_rpc, {"university_filter": str(university_id)})
            else:
                query = self.client.table(kind.table).select("*")
                if kind.university_scoped:
                    query = query.eq("university_id", str(university_id))

            for column, value in kind.visibility.items():
                query = query.eq(column, value)
            for column, value in (filters or {}).items():
                if column in kind.filters and value not in (None, "", "all"):
                    query = query.eq(column, value)

            response = query.order(kind.order_column, desc=True).execute()
        except Exception as e:
            logger.warning("Failed to load %s listings: %s", kind.name, e)
            return []

        return await self._attach_authors(response.data or [])

    async def get(self, listing_id: UUID | str) -> dict[str, Any]:
        """Get one listing with its author.

        Raises:
            NotFoundError: If the listing does not exist.
        """
        row = await self._get_row(listing_id)
        enriched = await self._attach_authors([row], require_approved=False)
        return enriched[0]

    async def create(
        self,
        user_id: UUID | str,
        university_id: UUID | str | None,
        data: ListingCreateBase | dict[str, Any],
    ) -> dict[str, Any]:
        """Create a listing owned by the user.

        Args:
            user_id: The signed-in user.
            university_id: The user's university.
            data: Form data, validated against the kind's create schema.

        Returns:
            dict: The stored row.

        Raises:
            ValidationError: If the form is invalid or the user has no university.
            AuthorizationError: If a job is posted by someone who is not an
                approved partner.
            BackendError: If the insert is rejected.
        """
        kind = self.kind
        if isinstance(data, dict):
            try:
                data = kind.create_schema.model_validate(data)
            except Exception as e:
                raise ValidationError(str(e)) from e
        elif not isinstance(data, kind.create_schema):
            raise ValidationError(f"Invalid form for {kind.name} listings")

        payload = data.model_dump(mode="json", exclude_none=True)
        target_university = payload.pop("university_id", None) or university_id
        if not target_university:
            raise ValidationError("Complete your profile before posting")

        row: dict[str, Any] = {
            **kind.create_defaults,
            **payload,
            "university_id": str(target_university),
        }
        if kind.posted_by_partner:
            row["partner_id"] = await self._approved_partner_id(user_id)
        else:
            row["user_id"] = str(user_id)

        try:
            response = self.client.table(kind.table).insert(row).execute()
        except Exception as e:
            message = backend_error_message(e)
            logger.error("Failed to create %s listing: %s", kind.name, message)
            raise BackendError(message) from e

        created = response.data[0] if response.data else row
        logger.info("Created %s listing %s", kind.name, created.get("id"))
        return created

    async def update_status(
        self,
        listing_id: UUID | str,
        user_id: UUID | str,
        status: ListingStatus | str,
    ) -> dict[str, Any]:
        """Change the status of the user's own listing (sold, rented, ...)."""
        if "status" not in self.kind.visibility:
            raise ValidationError(f"{self.kind.name} listings have no status")

        value = status.value if isinstance(status, ListingStatus) else ListingStatus(status).value
        await self._check_owner(listing_id, user_id)

        try:
            response = (
                self.client.table(self.kind.table)
                .update({"status": value})
                .eq("id", str(listing_id))
                .execute()
            )
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        if not response.data:
            raise NotFoundError("Listing not found")
        return response.data[0]

    async def delete(self, listing_id: UUID | str, user_id: UUID | str) -> None:
        """Delete the user's own listing."""
        await self._check_owner(listing_id, user_id)

        try:
            self.client.table(self.kind.table).delete().eq("id", str(listing_id)).execute()
        except Exception as e:
            raise BackendError(backend_error_message(e)) from e

        logger.info("Deleted %s listing %s", self.kind.name, listing_id)

    async def upload_image(
        self,
        user_id: UUID | str,
        filename: str | None,
        content: bytes,
        content_type: str,
    ) -> str:
        """Upload a listing photo and return its public URL."""
        path = f"{self.kind.name}/{user_id}/{uuid.uuid4().hex}.{file_extension(filename, default='jpg')}"
        return upload_public_file(
            self.settings.listing_image_bucket,
            path,
            content,
            content_type,
            allowed_types=ALLOWED_IMAGE_TYPES,
            client=self.client,
        )

    # Internals

    async def _get_row(self, listing_id: UUID | str) -> dict[str, Any]:
        response = (
            self.client.table(self.kind.table)
            .select("*")
            .eq("id", str(listing_id))
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            raise NotFoundError("Listing not found")
        return response.data

    async def _check_owner(self, listing_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        row = await self._get_row(listing_id)
        if self.kind.posted_by_partner:
            partner = await self._partner_of(user_id)
            owner = partner["id"] if partner else None
        else:
            owner = user_id
        if owner is None or str(row.get(self.kind.owner_column)) != str(owner):
            raise AuthorizationError("You can only manage your own listings")
        return row

    async def _partner_of(self, user_id: UUID | str) -> dict[str, Any] | None:
        response = (
            self.client.table("partners")
            .select("id, status")
            .eq("user_id", str(user_id))
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def _approved_partner_id(self, user_id: UUID | str) -> str:
        partner = await self._partner_of(user_id)
        if not partner or partner.get("status") != RequestStatus.APPROVED.value:
            raise AuthorizationError("Only approved partners can post jobs")
        return str(partner["id"])

    async def _attach_authors(
        self,
        rows: list[dict[str, Any]],
        require_approved: bool = True,
    ) -> list[dict[str, Any]]:
        """Attach the author of every row with one batched query.

        Jobs are attached to their partner business and, in lists, only
        jobs of approved partners are kept.
        """
        source = self.kind.author_source
        if not rows or source is None:
            return [{**row, "author": None} for row in rows]

        if source == "partners":
            key, columns = "partner_id", "id, business_name, status"
        else:
            key, columns = "user_id", PROFILE_SUMMARY_COLUMNS

        ids = sorted({str(row[key]) for row in rows if row.get(key)})
        authors: dict[str, dict[str, Any]] = {}
        if ids:
            try:
                response = self.client.table(source).select(columns).in_("id", ids).execute()
                authors = {str(a["id"]): a for a in response.data or []}
            except Exception as e:
                logger.warning("Failed to load %s authors: %s", self.kind.name, e)

        enriched = []
        for row in rows:
            author = authors.get(str(row.get(key)))
            if source == "partners" and require_approved:
                if not author or author.get("status") != RequestStatus.APPROVED.value:
                    continue
            enriched.append({**row, "author": author})
        return enriched
