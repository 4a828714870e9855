# =============================================================================
# core/services/follow_service.py - Follow Graph Business Logic
# =============================================================================
# Follow/unfollow, follower and following lists, follow stats and
# "who to follow" suggestions.
#
# Rows live in follows(follower_id, following_id), unique per pair.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from core.models.common import ActionResponse, AppErrorCode
from core.models.follow import FollowResult, FollowStats, FollowUser
from lib.supabase_client import SupabaseClient, embedded_count
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

FOLLOW_USER_COLUMNS = (
    "id, username, name, avatar, bio, verified, current_streak, "
    "followers:follows!following_id(count), following:follows!follower_id(count)"
)

# Suggestion score weights
POSTS_WEIGHT = 2
FOLLOWERS_WEIGHT = 1
STREAK_WEIGHT = 3
VERIFIED_BONUS = 50
MUTUAL_WEIGHT = 10


def suggestion_score(
    posts_count: int,
    followers_count: int,
    current_streak: int,
    verified: bool,
    mutual_followers: int,
) -> int:
    """
    Rank a potential follow by activity and shared connections.

    Example:
        suggestion_score(10, 5, 3, True, 1)  # 20 + 5 + 9 + 50 + 10 = 94
    """
    return (
        posts_count * POSTS_WEIGHT
        + followers_count * FOLLOWERS_WEIGHT
        + current_streak * STREAK_WEIGHT
        + (VERIFIED_BONUS if verified else 0)
        + mutual_followers * MUTUAL_WEIGHT
    )


def _to_follow_user(row: dict[str, Any], is_following: bool | None = None) -> FollowUser:
    return FollowUser(
        id=row["id"],
        username=row.get("username"),
        name=row.get("name"),
        avatar=row.get("avatar"),
        bio=row.get("bio"),
        verified=row.get("verified", False),
        current_streak=row.get("current_streak") or 0,
        followers_count=embedded_count(row, "followers"),
        following_count=embedded_count(row, "following"),
        is_following=is_following,
    )


class FollowService:
    """Service for the follow graph."""

    @staticmethod
    def _following_ids(user_id: str) -> set[str]:
        client = SupabaseClient.get_client()
        response = (
            client.table("follows")
            .select("following_id")
            .eq("follower_id", user_id)
            .execute()
        )
        return {r["following_id"] for r in response.data or []}

    @staticmethod
    def _follower_ids(user_id: str) -> set[str]:
        client = SupabaseClient.get_client()
        response = (
            client.table("follows")
            .select("follower_id")
            .eq("following_id", user_id)
            .execute()
        )
        return {r["follower_id"] for r in response.data or []}

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    @staticmethod
    def toggle_follow(
        follower_id: str | UUID,
        target_id: str | UUID,
    ) -> ActionResponse[FollowResult]:
        """
        Follow a user, or unfollow if already following.

        Returns:
            ActionResponse with the new state and the target's follower
            count. VALIDATION_ERROR when following yourself.
        """
        follower = normalize_uuid(follower_id)
        target = normalize_uuid(target_id)

        if follower == target:
            return ActionResponse.fail(AppErrorCode.VALIDATION_ERROR, "You cannot follow yourself")

        client = SupabaseClient.get_client()

        try:
            if SupabaseClient.fetch_user(target, columns="id") is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            existing = (
                client.table("follows")
                .select("id")
                .eq("follower_id", follower)
                .eq("following_id", target)
                .limit(1)
                .execute()
            )

            if existing.data:
                client.table("follows").delete().eq("id", existing.data[0]["id"]).execute()
                is_following = False
                logger.info(f"{follower} unfollowed {target}")
            else:
                client.table("follows").insert({
                    "follower_id": follower,
                    "following_id": target,
                }).execute()
                is_following = True
                logger.info(f"{follower} followed {target}")

            followers_count = SupabaseClient.count_rows("follows", following_id=target)
            return ActionResponse.ok(
                FollowResult(is_following=is_following, followers_count=followers_count)
            )

        except Exception as e:
            logger.error(f"Error toggling follow: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    @staticmethod
    def _list_edge(
        user_id: str | UUID,
        user_column: str,
        match_column: str,
        limit: int,
        offset: int,
        viewer_id: str | None,
    ) -> list[FollowUser]:
        client = SupabaseClient.get_client()
        response = (
            client.table("follows")
            .select(f"user:users!{user_column}({FOLLOW_USER_COLUMNS})")
            .eq(match_column, normalize_uuid(user_id))
            .order("id", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )

        viewer_following = FollowService._following_ids(viewer_id) if viewer_id else None
        users = []
        for row in response.data or []:
            user = row["user"]
            is_following = user["id"] in viewer_following if viewer_following is not None else None
            users.append(_to_follow_user(user, is_following))
        return users

    @staticmethod
    def get_followers(
        user_id: str | UUID,
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[FollowUser]]:
        """People who follow user_id, most recent first."""
        try:
            return ActionResponse.ok(FollowService._list_edge(
                user_id, "follower_id", "following_id", limit, offset, viewer_id
            ))
        except Exception as e:
            logger.error(f"Error fetching followers: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_following(
        user_id: str | UUID,
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[FollowUser]]:
        """People user_id follows, most recent first."""
        try:
            return ActionResponse.ok(FollowService._list_edge(
                user_id, "following_id", "follower_id", limit, offset, viewer_id
            ))
        except Exception as e:
            logger.error(f"Error fetching following: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def check_follow_status(follower_id: str | UUID, target_id: str | UUID) -> ActionResponse[bool]:
        try:
            return ActionResponse.ok(SupabaseClient.exists(
                "follows",
                follower_id=normalize_uuid(follower_id),
                following_id=normalize_uuid(target_id),
            ))
        except Exception as e:
            logger.error(f"Error checking follow status: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_follow_stats(
        user_id: str | UUID,
        viewer_id: str | None = None,
    ) -> ActionResponse[FollowStats]:
        """
        Follower/following counts, plus how many of the people user_id
        follows are also followed by the viewer.
        """
        user_id_str = normalize_uuid(user_id)

        try:
            stats = FollowStats(
                followers_count=SupabaseClient.count_rows("follows", following_id=user_id_str),
                following_count=SupabaseClient.count_rows("follows", follower_id=user_id_str),
            )

            if viewer_id and viewer_id != user_id_str:
                shared = FollowService._following_ids(user_id_str) & FollowService._following_ids(viewer_id)
                stats.mutual_follows_count = len(shared)

            return ActionResponse.ok(stats)

        except Exception as e:
            logger.error(f"Error fetching follow stats: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_mutual_followers(
        viewer_id: str | UUID,
        target_id: str | UUID,
        limit: int = 10,
    ) -> ActionResponse[list[FollowUser]]:
        """Users who follow both the viewer and the target."""
        viewer = normalize_uuid(viewer_id)
        target = normalize_uuid(target_id)

        if viewer == target:
            return ActionResponse.ok([])

        client = SupabaseClient.get_client()

        try:
            ids = (FollowService._follower_ids(viewer) & FollowService._follower_ids(target)) - {viewer, target}
            if not ids:
                return ActionResponse.ok([])

            response = (
                client.table("users")
                .select(FOLLOW_USER_COLUMNS)
                .in_("id", sorted(ids))
                .limit(limit)
                .execute()
            )
            return ActionResponse.ok([_to_follow_user(row, True) for row in response.data or []])

        except Exception as e:
            logger.error(f"Error fetching mutual followers: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    @staticmethod
    def get_suggested_users(user_id: str | UUID, limit: int = 10) -> ActionResponse[list[FollowUser]]:
        """
        Public users the viewer doesn't follow yet, ranked by suggestion_score.

        Twice `limit` candidates are pre-sorted by verified and streak in
        the database, then scored here with mutual follower counts.
        """
        viewer = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            viewer_following = FollowService._following_ids(viewer)
            excluded = sorted(viewer_following | {viewer})

            response = (
                client.table("users")
                .select(f"{FOLLOW_USER_COLUMNS}, posts(count)")
                .eq("is_public", True)
                .filter("username", "not.is", "null")
                .filter("id", "not.in", f"({','.join(excluded)})")
                .order("verified", desc=True)
                .order("current_streak", desc=True)
                .order("created_at", desc=True)
                .limit(limit * 2)
                .execute()
            )
            candidates = response.data or []
            if not candidates:
                return ActionResponse.ok([])

            edges = (
                client.table("follows")
                .select("follower_id, following_id")
                .in_("following_id", [c["id"] for c in candidates])
                .execute()
            )
            mutuals: dict[str, int] = {}
            for edge in edges.data or []:
                if edge["follower_id"] in viewer_following:
                    mutuals[edge["following_id"]] = mutuals.get(edge["following_id"], 0) + 1

            scored = sorted(
                candidates,
                key=lambda c: suggestion_score(
                    embedded_count(c, "posts"),
                    embedded_count(c, "followers"),
                    c.get("current_streak") or 0,
                    bool(c.get("verified")),
                    mutuals.get(c["id"], 0),
                ),
                reverse=True,
            )
            return ActionResponse.ok([_to_follow_user(c, False) for c in scored[:limit]])

        except Exception as e:
            logger.error(f"Error fetching suggested users: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)
