# =============================================================================
# core/services/startup_service.py - Startup Business Logic
# =============================================================================
# Handles startups and their milestones.
#
# Private startups are only visible to their owner. Every startup with a
# website carries its favicon candidate set so the client can render the
# icon without another round trip.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.config import settings
from core.models.common import ActionResponse, AppErrorCode, UserSummary
from core.models.startup import (
    MilestoneCreate,
    SlugAvailability,
    StartupCreate,
    StartupMilestone,
    StartupUpdate,
    StartupWithDetails,
    is_valid_slug,
)
from lib.favicon import get_domain_from_url, get_favicon_with_fallback
from lib.supabase_client import USER_SUMMARY_COLUMNS, SupabaseClient, embedded_count
from lib.utils import normalize_uuid, parse_timestamp, to_float

logger = logging.getLogger(__name__)

STARTUP_COLUMNS = f"*, user:users!user_id({USER_SUMMARY_COLUMNS}), milestones(count)"


def _to_startup(row: dict[str, Any]) -> StartupWithDetails:
    website = row.get("website")
    startup = StartupWithDetails(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        description=row.get("description"),
        tagline=row.get("tagline"),
        tag=row.get("tag"),
        website=website,
        logo=row.get("logo"),
        status=row.get("status") or "IDEA",
        stage=row.get("stage") or "PRE_SEED",
        founded_at=parse_timestamp(row.get("founded_at")),
        revenue=to_float(row.get("revenue")),
        employees=row.get("employees"),
        funding=to_float(row.get("funding")),
        valuation=to_float(row.get("valuation")),
        twitter_handle=row.get("twitter_handle"),
        linkedin_url=row.get("linkedin_url"),
        github_repo=row.get("github_repo"),
        industry=row.get("industry"),
        tech_stack=row.get("tech_stack") or [],
        is_public=row.get("is_public", True),
        is_featured=row.get("is_featured", False),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        user=UserSummary(**row["user"]),
        milestones_count=embedded_count(row, "milestones"),
        favicon_url=row.get("favicon_url"),
    )

    if website:
        startup.domain = get_domain_from_url(website)
        startup.favicon = get_favicon_with_fallback(website, settings.FAVICON_SIZE_DEFAULT).to_dict()

    return startup


def _to_milestone(row: dict[str, Any]) -> StartupMilestone:
    return StartupMilestone(
        id=row["id"],
        startup_id=row["startup_id"],
        title=row["title"],
        description=row.get("description"),
        type=row["type"],
        value=to_float(row.get("value")),
        unit=row.get("unit"),
        achieved_at=parse_timestamp(row.get("achieved_at")),
        is_public=row.get("is_public", True),
    )


class StartupService:
    """Service for startup and milestone operations."""

    @staticmethod
    def _ensure_owner(startup_id: str, user_id: str) -> ActionResponse[None] | None:
        startup = SupabaseClient.fetch_one("startups", "id, user_id", id=startup_id)
        if startup is None:
            return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Startup not found")
        if startup["user_id"] != user_id:
            return ActionResponse.fail(AppErrorCode.UNAUTHORIZED, "change this startup")
        return None

    @staticmethod
    def _slug_taken(slug: str, exclude_id: str | None = None) -> bool:
        existing = SupabaseClient.fetch_one("startups", "id", slug=slug)
        return existing is not None and existing["id"] != exclude_id

    # -------------------------------------------------------------------------
    # Create / Update / Delete
    # -------------------------------------------------------------------------

    @staticmethod
    def create_startup(user_id: str | UUID, data: StartupCreate) -> ActionResponse[StartupWithDetails]:
        """
        Create a startup owned by user_id.

        Returns:
            ActionResponse with the startup, CONFLICT if the slug is taken
        """
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            if SupabaseClient.fetch_user(user_id_str, columns="id") is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            if StartupService._slug_taken(data.slug):
                return ActionResponse.fail(AppErrorCode.CONFLICT, f"Slug is already taken: {data.slug}")

            payload = data.model_dump(exclude_none=True, mode="json")
            payload["user_id"] = user_id_str

            response = client.table("startups").insert(payload).execute()
            startup_id = response.data[0]["id"]
            logger.info(f"Created startup: {data.slug} ({startup_id})")

        except Exception as e:
            logger.error(f"Error creating startup: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        return StartupService.get_startup(startup_id, viewer_id=user_id_str)

    @staticmethod
    def update_startup(
        user_id: str | UUID,
        startup_id: str,
        data: StartupUpdate,
    ) -> ActionResponse[StartupWithDetails]:
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            denied = StartupService._ensure_owner(startup_id, user_id_str)
            if denied:
                return denied

            if data.slug and StartupService._slug_taken(data.slug, exclude_id=startup_id):
                return ActionResponse.fail(AppErrorCode.CONFLICT, f"Slug is already taken: {data.slug}")

            payload = data.model_dump(exclude_unset=True, mode="json")
            if "website" in payload:
                # Force the favicon worker to pick again for the new site
                payload["favicon_url"] = None
            payload["updated_at"] = datetime.now(timezone.utc).isoformat()

            client.table("startups").update(payload).eq("id", startup_id).execute()
            logger.info(f"Updated startup: {startup_id}")

        except Exception as e:
            logger.error(f"Error updating startup: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        return StartupService.get_startup(startup_id, viewer_id=user_id_str)

    @staticmethod
    def delete_startup(user_id: str | UUID, startup_id: str) -> ActionResponse[bool]:
        """Delete a startup; milestones cascade."""
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            denied = StartupService._ensure_owner(startup_id, user_id_str)
            if denied:
                return denied

            client.table("startups").delete().eq("id", startup_id).execute()
            logger.info(f"Deleted startup: {startup_id}")
            return ActionResponse.ok(True)

        except Exception as e:
            logger.error(f"Error deleting startup: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def set_favicon_url(startup_id: str, favicon_url: str | None) -> ActionResponse[bool]:
        """Store the icon source the favicon worker resolved."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("startups")
                .update({"favicon_url": favicon_url})
                .eq("id", startup_id)
                .execute()
            )
            if not response.data:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Startup not found")
            return ActionResponse.ok(True)

        except Exception as e:
            logger.error(f"Error storing favicon for startup {startup_id}: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get_startup(startup_id: str, viewer_id: str | None = None) -> ActionResponse[StartupWithDetails]:
        return StartupService._get_visible("id", startup_id, viewer_id)

    @staticmethod
    def get_startup_by_slug(slug: str, viewer_id: str | None = None) -> ActionResponse[StartupWithDetails]:
        """
        Get a startup by slug.

        Private startups return UNAUTHORIZED to anyone but their owner.
        """
        return StartupService._get_visible("slug", slug, viewer_id)

    @staticmethod
    def _get_visible(column: str, value: str, viewer_id: str | None) -> ActionResponse[StartupWithDetails]:
        try:
            row = SupabaseClient.fetch_one("startups", STARTUP_COLUMNS, **{column: value})
            if row is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Startup not found")

            if not row.get("is_public", True) and row.get("user_id") != viewer_id:
                return ActionResponse.fail(AppErrorCode.UNAUTHORIZED, "view this startup")

            return ActionResponse.ok(_to_startup(row))

        except Exception as e:
            logger.error(f"Error fetching startup by {column}: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    @staticmethod
    def get_startups_by_user(
        user_id: str | UUID,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[StartupWithDetails]]:
        """A user's startups, newest first. Private ones only for the owner."""
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            query = client.table("startups").select(STARTUP_COLUMNS).eq("user_id", user_id_str)
            if viewer_id != user_id_str:
                query = query.eq("is_public", True)

            response = query.order("created_at", desc=True).execute()
            return ActionResponse.ok([_to_startup(row) for row in response.data or []])

        except Exception as e:
            logger.error(f"Error fetching startups by user: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_my_startups(user_id: str | UUID) -> ActionResponse[list[StartupWithDetails]]:
        user_id_str = normalize_uuid(user_id)
        return StartupService.get_startups_by_user(user_id_str, viewer_id=user_id_str)

    @staticmethod
    def check_slug_availability(slug: str) -> ActionResponse[SlugAvailability]:
        if not is_valid_slug(slug):
            return ActionResponse.ok(SlugAvailability(slug=slug, available=False))

        try:
            return ActionResponse.ok(
                SlugAvailability(slug=slug, available=not StartupService._slug_taken(slug))
            )
        except Exception as e:
            logger.error(f"Error checking slug availability: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    # -------------------------------------------------------------------------
    # Milestones
    # -------------------------------------------------------------------------

    @staticmethod
    def add_milestone(
        user_id: str | UUID,
        startup_id: str,
        data: MilestoneCreate,
    ) -> ActionResponse[StartupMilestone]:
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            denied = StartupService._ensure_owner(startup_id, user_id_str)
            if denied:
                return denied

            payload = data.model_dump(exclude_none=True, mode="json")
            payload["startup_id"] = startup_id
            payload.setdefault("achieved_at", datetime.now(timezone.utc).isoformat())

            response = client.table("milestones").insert(payload).execute()
            logger.info(f"Added milestone to startup {startup_id}")
            return ActionResponse.ok(_to_milestone(response.data[0]))

        except Exception as e:
            logger.error(f"Error adding milestone: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_startup_milestones(startup_id: str) -> ActionResponse[list[StartupMilestone]]:
        """Public milestones, most recent achievement first."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("milestones")
                .select("*")
                .eq("startup_id", startup_id)
                .eq("is_public", True)
                .order("achieved_at", desc=True)
                .execute()
            )
            return ActionResponse.ok([_to_milestone(row) for row in response.data or []])

        except Exception as e:
            logger.error(f"Error fetching milestones: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def delete_milestone(user_id: str | UUID, milestone_id: str) -> ActionResponse[bool]:
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            milestone = SupabaseClient.fetch_one(
                "milestones", "id, startup:startups(user_id)", id=milestone_id
            )
            if milestone is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Milestone not found")
            if (milestone.get("startup") or {}).get("user_id") != user_id_str:
                return ActionResponse.fail(AppErrorCode.UNAUTHORIZED, "delete this milestone")

            client.table("milestones").delete().eq("id", milestone_id).execute()
            return ActionResponse.ok(True)

        except Exception as e:
            logger.error(f"Error deleting milestone: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)
