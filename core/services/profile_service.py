# =============================================================================
# core/services/profile_service.py - Profile Business Logic
# =============================================================================
# Handles builder profiles, username checks, daily activity streaks and the
# builders directory. Separates HTTP concerns from database/business logic.
#
# All public methods return ActionResponse envelopes; they never raise for
# missing rows or bad input.
# =============================================================================

import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from app.auth.models import AuthUser
from core.models.common import ActionResponse, AppErrorCode, Pagination
from core.models.profile import (
    ActivityType,
    Builder,
    BuilderSort,
    ProfileStats,
    ProfileUpdate,
    UserProfile,
    UsernameAvailability,
    is_valid_username,
)
from lib.supabase_client import SupabaseClient, embedded_count, is_no_rows_error
from lib.utils import normalize_uuid, parse_timestamp, to_float

logger = logging.getLogger(__name__)

# daily_streaks column set for each activity type
ACTIVITY_FLAGS = {
    ActivityType.POST: "has_posted",
    ActivityType.COMMIT: "has_committed",
    ActivityType.REVENUE: "has_revenue",
    ActivityType.ACHIEVEMENT: "has_achievement",
}

# Longest streak window we look back over
STREAK_LOOKBACK_DAYS = 365

BUILDER_COLUMNS = (
    "id, username, name, avatar, bio, website, verified, current_streak, joined_at, "
    "posts(count), followers:follows!following_id(count)"
)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def calculate_streak(active_dates: Iterable[date], today: date) -> int:
    """
    Count consecutive active days ending today.

    A gap of one day resets the streak. If today isn't active the streak is 0.

    Example:
        calculate_streak([date(2024, 5, 3), date(2024, 5, 2)], date(2024, 5, 3))  # 2
    """
    days = set(active_dates)
    streak = 0
    current = today
    while current in days:
        streak += 1
        current = date.fromordinal(current.toordinal() - 1)
    return streak


def filter_builders(
    builders: list[Builder],
    search: str | None = None,
    sort: BuilderSort = BuilderSort.ACTIVITY,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Builder], Pagination]:
    """
    Search, sort and paginate the builders directory in memory.

    Args:
        builders: Builders in activity order (as returned by get_builders_data)
        search: Case-insensitive match on name, username or bio
        sort: streak | joined | verified | activity (keeps input order)
        page: 1-indexed page number
        limit: Page size

    Returns:
        Tuple of (page of builders, pagination info)
    """
    results = list(builders)

    if search:
        needle = search.lower()
        results = [
            b for b in results
            if needle in (b.name or "").lower()
            or needle in (b.username or "").lower()
            or needle in (b.bio or "").lower()
        ]

    if sort == BuilderSort.STREAK:
        results.sort(key=lambda b: b.current_streak, reverse=True)
    elif sort == BuilderSort.JOINED:
        results.sort(
            key=lambda b: b.joined_at.timestamp() if b.joined_at else 0,
            reverse=True,
        )
    elif sort == BuilderSort.VERIFIED:
        results.sort(key=lambda b: b.verified, reverse=True)

    start = (page - 1) * limit
    end = start + limit

    return results[start:end], Pagination(
        page=page,
        limit=limit,
        total=len(results),
        has_more=end < len(results),
    )


class ProfileService:
    """
    Service for profile operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _profile_counts(user_id: str) -> dict[str, int]:
        return {
            "followers_count": SupabaseClient.count_rows("follows", following_id=user_id),
            "following_count": SupabaseClient.count_rows("follows", follower_id=user_id),
            "posts_count": SupabaseClient.count_rows("posts", author_id=user_id),
        }

    @staticmethod
    def _to_profile(row: dict[str, Any], include_email: bool = True) -> UserProfile:
        counts = ProfileService._profile_counts(row["id"])
        return UserProfile(
            id=row["id"],
            email=(row.get("email") or "") if include_email else "",
            username=row.get("username"),
            name=row.get("name"),
            bio=row.get("bio"),
            avatar=row.get("avatar"),
            website=row.get("website"),
            location=row.get("location"),
            joined_at=parse_timestamp(row.get("joined_at")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            is_public=row.get("is_public", True),
            verified=row.get("verified", False),
            current_streak=row.get("current_streak") or 0,
            longest_streak=row.get("longest_streak") or 0,
            last_activity_date=parse_timestamp(row.get("last_activity_date")),
            github_username=row.get("github_username"),
            github_sync_enabled=row.get("github_sync_enabled", True),
            x_username=row.get("x_username"),
            x_sync_enabled=row.get("x_sync_enabled", True),
            **counts,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def create_user_from_identity(auth_user: AuthUser) -> dict[str, Any]:
        """
        Insert the local profile row for a newly signed-in user.

        Seeds name/avatar from the identity provider's claims. The username is
        left empty for the user to claim later.

        Raises:
            Exception: If the insert fails
        """
        client = SupabaseClient.get_client()
        data = {
            "id": str(auth_user.id),
            "email": auth_user.email,
            "name": auth_user.name,
            "avatar": auth_user.avatar_url,
            "username": None,
            "is_public": True,
            "verified": False,
            "current_streak": 0,
            "longest_streak": 0,
            "github_sync_enabled": True,
            "x_sync_enabled": True,
        }

        response = client.table("users").insert(data).execute()
        if not response.data:
            raise Exception("Insert returned no data")

        logger.info(f"Created profile for user: {auth_user.id}")
        return response.data[0]

    @staticmethod
    def get_user_profile(
        auth_user: AuthUser,
        user_id: str | UUID | None = None,
    ) -> ActionResponse[UserProfile]:
        """
        Get the signed-in user's profile, or another user's by id.

        The signed-in user's row is created on first access.

        Args:
            auth_user: The authenticated user
            user_id: Optional other user to fetch

        Returns:
            ActionResponse with UserProfile, or NOT_FOUND for unknown users
        """
        target_id = normalize_uuid(user_id) if user_id else str(auth_user.id)

        try:
            row = SupabaseClient.fetch_user(target_id)

            if row is None:
                if target_id != str(auth_user.id):
                    return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")
                row = ProfileService.create_user_from_identity(auth_user)

            return ActionResponse.ok(ProfileService._to_profile(row))

        except Exception as e:
            logger.error(f"Error fetching user profile: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    @staticmethod
    def get_public_profile(username: str) -> ActionResponse[UserProfile]:
        """
        Get a public profile by username, without the email address.

        Returns:
            ActionResponse with UserProfile, or NOT_FOUND if the user doesn't
            exist or their profile is private
        """
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("users")
                .select("*")
                .eq("username", username)
                .eq("is_public", True)
                .single()
                .execute()
            )
            row = response.data

        except Exception as e:
            if is_no_rows_error(e):
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Profile not found")
            logger.error(f"Error fetching public profile: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

        if not row:
            return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Profile not found")

        try:
            return ActionResponse.ok(ProfileService._to_profile(row, include_email=False))
        except Exception as e:
            logger.error(f"Error counting profile relations: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    @staticmethod
    def check_username_availability(username: str) -> ActionResponse[UsernameAvailability]:
        """
        Check whether a username can be claimed.

        Badly formatted usernames are reported as unavailable.
        """
        if not is_valid_username(username):
            return ActionResponse.ok(UsernameAvailability(username=username, available=False))

        try:
            existing = SupabaseClient.fetch_user_by_username(username, columns="id")
            return ActionResponse.ok(
                UsernameAvailability(username=username, available=existing is None)
            )
        except Exception as e:
            logger.error(f"Error checking username availability: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    def update_user_profile(
        user_id: str | UUID,
        update: ProfileUpdate,
    ) -> ActionResponse[UserProfile]:
        """
        Update the signed-in user's profile.

        Args:
            user_id: The profile owner
            update: Fields to change (unset fields are left alone)

        Returns:
            ActionResponse with the updated UserProfile, CONFLICT if the
            username belongs to someone else
        """
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()
        data = update.model_dump(exclude_unset=True)

        try:
            if data.get("username"):
                taken = (
                    client.table("users")
                    .select("id")
                    .eq("username", data["username"])
                    .neq("id", user_id_str)
                    .limit(1)
                    .execute()
                )
                if taken.data:
                    return ActionResponse.fail(AppErrorCode.CONFLICT, "Username is already taken")

            data["updated_at"] = datetime.now(timezone.utc).isoformat()

            response = (
                client.table("users")
                .update(data)
                .eq("id", user_id_str)
                .execute()
            )

            if not response.data:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            logger.info(f"Updated profile: {user_id_str}")
            return ActionResponse.ok(ProfileService._to_profile(response.data[0]))

        except Exception as e:
            logger.error(f"Failed to update profile: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def update_user_activity(
        user_id: str | UUID,
        activity: ActivityType,
        today: date | None = None,
    ) -> ActionResponse[int]:
        """
        Mark today as active for a user and recompute their streak.

        Args:
            user_id: The user who did something
            activity: What they did (post, commit, revenue, achievement)
            today: Override for the current UTC date (tests)

        Returns:
            ActionResponse with the new current streak
        """
        user_id_str = normalize_uuid(user_id)
        today = today or _utc_today()
        client = SupabaseClient.get_client()

        try:
            client.table("daily_streaks").upsert(
                {
                    "user_id": user_id_str,
                    "date": today.isoformat(),
                    ACTIVITY_FLAGS[activity]: True,
                    "is_active_day": True,
                },
                on_conflict="user_id,date",
            ).execute()

            streak = ProfileService._update_user_streak(user_id_str, today)
            return ActionResponse.ok(streak)

        except Exception as e:
            logger.error(f"Error updating user activity: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def _update_user_streak(user_id: str, today: date) -> int:
        client = SupabaseClient.get_client()

        user = SupabaseClient.fetch_user(user_id, columns="current_streak, longest_streak")
        if user is None:
            return 0

        response = (
            client.table("daily_streaks")
            .select("date")
            .eq("user_id", user_id)
            .eq("is_active_day", True)
            .order("date", desc=True)
            .limit(STREAK_LOOKBACK_DAYS)
            .execute()
        )
        active_dates = [date.fromisoformat(str(r["date"])[:10]) for r in response.data or []]

        current = calculate_streak(active_dates, today)
        longest = max(current, user.get("longest_streak") or 0)

        client.table("users").update({
            "current_streak": current,
            "longest_streak": longest,
            "last_activity_date": datetime.now(timezone.utc).isoformat(),
        }).eq("id", user_id).execute()

        logger.debug(f"Streak for {user_id}: current={current}, longest={longest}")
        return current

    # -------------------------------------------------------------------------
    # Stats & Directory
    # -------------------------------------------------------------------------

    @staticmethod
    def get_profile_stats(
        user_id: str | UUID | None = None,
        username: str | None = None,
        today: date | None = None,
    ) -> ActionResponse[ProfileStats]:
        """
        Aggregate a user's posts into profile stats.

        Revenue comes from REVENUE posts, commits from this month's posts,
        achievements from ACHIEVEMENT posts.

        Args:
            user_id: User to aggregate (takes precedence)
            username: Alternative lookup by username
        """
        today = today or _utc_today()
        month_start = today.replace(day=1)

        try:
            if user_id:
                user = SupabaseClient.fetch_user(user_id)
            elif username:
                user = SupabaseClient.fetch_user_by_username(username)
            else:
                return ActionResponse.fail(AppErrorCode.VALIDATION_ERROR, "user_id or username is required")

            if user is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            client = SupabaseClient.get_client()
            response = (
                client.table("posts")
                .select("type, revenue_amount, commits_count, created_at")
                .eq("author_id", user["id"])
                .execute()
            )
            posts = response.data or []

            stats = ProfileStats(
                current_streak=user.get("current_streak") or 0,
                longest_streak=user.get("longest_streak") or 0,
                last_activity_date=parse_timestamp(user.get("last_activity_date")),
                total_posts=len(posts),
            )

            for post in posts:
                created = parse_timestamp(post.get("created_at"))
                this_month = created is not None and created.date() >= month_start

                if post.get("type") == "REVENUE":
                    amount = to_float(post.get("revenue_amount")) or 0.0
                    stats.revenue_total += amount
                    if this_month:
                        stats.revenue_monthly += amount
                elif post.get("type") == "ACHIEVEMENT":
                    stats.achievements_count += 1

                if this_month:
                    stats.github_commits += post.get("commits_count") or 0

            return ActionResponse.ok(stats)

        except Exception as e:
            logger.error(f"Error fetching profile stats: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    @staticmethod
    def get_builders_data(limit: int = 50) -> ActionResponse[list[Builder]]:
        """
        Public builders with a username, most active first.

        Activity order is current streak, then number of posts.
        """
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("users")
                .select(BUILDER_COLUMNS)
                .eq("is_public", True)
                .filter("username", "not.is", "null")
                .order("current_streak", desc=True)
                .limit(limit)
                .execute()
            )

            builders = [
                Builder(
                    id=row["id"],
                    username=row.get("username"),
                    name=row.get("name"),
                    avatar=row.get("avatar"),
                    bio=row.get("bio"),
                    website=row.get("website"),
                    verified=row.get("verified", False),
                    current_streak=row.get("current_streak") or 0,
                    joined_at=parse_timestamp(row.get("joined_at")),
                    posts_count=embedded_count(row, "posts"),
                    followers_count=embedded_count(row, "followers"),
                )
                for row in response.data or []
            ]
            builders.sort(key=lambda b: (b.current_streak, b.posts_count), reverse=True)

            return ActionResponse.ok(builders)

        except Exception as e:
            logger.error(f"Error fetching builders: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)
