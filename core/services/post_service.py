# =============================================================================
# core/services/post_service.py - Post Business Logic
# =============================================================================
# Handles the feed: posts, tags, likes, shares and comments.
#
# Posts are read with their author, like/comment counts and tag names
# embedded in one PostgREST select, then normalized into PostWithDetails.
# Only the author may edit or delete a post or comment.
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from core.models.common import ActionResponse, AppErrorCode, UserSummary
from core.models.post import (
    CommentCreate,
    LikeResult,
    PopularTag,
    PostComment,
    PostCreate,
    PostType,
    PostUpdate,
    PostWithDetails,
    ShareResult,
)
from core.models.profile import ActivityType
from core.services.profile_service import ProfileService
from lib.supabase_client import USER_SUMMARY_COLUMNS, SupabaseClient, embedded_count
from lib.utils import normalize_uuid, parse_timestamp, to_float

logger = logging.getLogger(__name__)

POST_COLUMNS = (
    f"*, author:users!author_id({USER_SUMMARY_COLUMNS}), "
    "likes(count), comments(count), post_tags(tags(name))"
)
COMMENT_COLUMNS = f"*, user:users!user_id({USER_SUMMARY_COLUMNS})"

TRENDING_WINDOW = timedelta(days=7)

# Recent posts considered when ranking trending posts
TRENDING_CANDIDATES = 200


def _tag_names(row: dict[str, Any]) -> list[str]:
    names = []
    for link in row.get("post_tags") or []:
        tag = link.get("tags") or {}
        if tag.get("name"):
            names.append(tag["name"])
    return names


def _to_post(row: dict[str, Any], liked_ids: set[str] | None = None) -> PostWithDetails:
    return PostWithDetails(
        id=row["id"],
        content=row["content"],
        type=row.get("type") or PostType.COMMITMENT,
        goal=row.get("goal"),
        deadline=parse_timestamp(row.get("deadline")),
        stake_amount=to_float(row.get("stake_amount")),
        stake_currency=row.get("stake_currency"),
        stake_description=row.get("stake_description"),
        stake_recipient=row.get("stake_recipient"),
        progress_percentage=row.get("progress_percentage"),
        progress_notes=row.get("progress_notes"),
        revenue_amount=to_float(row.get("revenue_amount")),
        currency=row.get("currency"),
        commits_count=row.get("commits_count"),
        repo_url=row.get("repo_url"),
        shares_count=row.get("shares_count") or 0,
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        author=UserSummary(**row["author"]),
        tags=_tag_names(row),
        likes_count=embedded_count(row, "likes"),
        comments_count=embedded_count(row, "comments"),
        is_liked=row["id"] in (liked_ids or set()),
    )


def _to_comment(row: dict[str, Any], user: dict[str, Any] | None = None) -> PostComment:
    return PostComment(
        id=row["id"],
        post_id=row["post_id"],
        content=row["content"],
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        user=UserSummary(**(user or row["user"])),
    )


class PostService:
    """
    Service for feed operations.

    All methods return ActionResponse; the optional viewer_id is used only
    to fill in is_liked.
    """

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _liked_post_ids(viewer_id: str | None, post_ids: list[str]) -> set[str]:
        if not viewer_id or not post_ids:
            return set()

        client = SupabaseClient.get_client()
        response = (
            client.table("likes")
            .select("post_id")
            .eq("user_id", viewer_id)
            .in_("post_id", post_ids)
            .execute()
        )
        return {r["post_id"] for r in response.data or []}

    @staticmethod
    def _hydrate(rows: list[dict[str, Any]], viewer_id: str | None) -> list[PostWithDetails]:
        liked = PostService._liked_post_ids(viewer_id, [r["id"] for r in rows])
        return [_to_post(row, liked) for row in rows]

    @staticmethod
    def _attach_tags(post_id: str, tag_names: list[str]) -> None:
        """Get-or-create each tag and link it to the post."""
        if not tag_names:
            return

        client = SupabaseClient.get_client()
        links = []
        for name in tag_names:
            response = (
                client.table("tags")
                .upsert({"name": name}, on_conflict="name")
                .execute()
            )
            links.append({"post_id": post_id, "tag_id": response.data[0]["id"]})

        client.table("post_tags").insert(links).execute()

    @staticmethod
    def _ensure_author(post_id: str, user_id: str) -> ActionResponse[None] | None:
        """Return a failed envelope unless the post exists and user wrote it."""
        post = SupabaseClient.fetch_one("posts", "id, author_id", id=post_id)
        if post is None:
            return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Post not found")
        if post["author_id"] != user_id:
            return ActionResponse.fail(AppErrorCode.UNAUTHORIZED, "edit this post")
        return None

    # -------------------------------------------------------------------------
    # Create / Update / Delete
    # -------------------------------------------------------------------------

    @staticmethod
    def create_post(user_id: str | UUID, data: PostCreate) -> ActionResponse[PostWithDetails]:
        """
        Create a post and count it towards today's streak.

        Args:
            user_id: The author
            data: Validated post body

        Returns:
            ActionResponse with the created post
        """
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            if SupabaseClient.fetch_user(user_id_str, columns="id") is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            payload = data.model_dump(exclude={"tags"}, exclude_none=True, mode="json")
            payload["author_id"] = user_id_str

            response = client.table("posts").insert(payload).execute()
            if not response.data:
                return ActionResponse.fail(AppErrorCode.DATABASE_ERROR, "Insert returned no data")

            post_id = response.data[0]["id"]
            PostService._attach_tags(post_id, data.tags)
            logger.info(f"Created post: {post_id} by {user_id_str}")

        except Exception as e:
            logger.error(f"Error creating post: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        activity = ProfileService.update_user_activity(user_id_str, ActivityType.POST)
        if not activity.success:
            logger.warning(f"Could not update streak after post {post_id}")

        return PostService.get_post(post_id, viewer_id=user_id_str)

    @staticmethod
    def update_post(
        user_id: str | UUID,
        post_id: str,
        data: PostUpdate,
    ) -> ActionResponse[PostWithDetails]:
        """Edit a post. Tags, when given, replace the existing set."""
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            denied = PostService._ensure_author(post_id, user_id_str)
            if denied:
                return denied

            payload = data.model_dump(exclude_unset=True, exclude={"tags"}, mode="json")
            payload["updated_at"] = datetime.now(timezone.utc).isoformat()
            client.table("posts").update(payload).eq("id", post_id).execute()

            if data.tags is not None:
                client.table("post_tags").delete().eq("post_id", post_id).execute()
                PostService._attach_tags(post_id, data.tags)

            logger.info(f"Updated post: {post_id}")

        except Exception as e:
            logger.error(f"Error updating post: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        return PostService.get_post(post_id, viewer_id=user_id_str)

    @staticmethod
    def delete_post(user_id: str | UUID, post_id: str) -> ActionResponse[bool]:
        """Delete a post (likes, comments and tag links cascade)."""
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            denied = PostService._ensure_author(post_id, user_id_str)
            if denied:
                return denied

            client.table("posts").delete().eq("id", post_id).execute()
            logger.info(f"Deleted post: {post_id}")
            return ActionResponse.ok(True)

        except Exception as e:
            logger.error(f"Error deleting post: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get_post(post_id: str, viewer_id: str | None = None) -> ActionResponse[PostWithDetails]:
        try:
            row = SupabaseClient.fetch_one("posts", POST_COLUMNS, id=post_id)
            if row is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Post not found")

            return ActionResponse.ok(PostService._hydrate([row], viewer_id)[0])

        except Exception as e:
            logger.error(f"Error fetching post: {e}")
            return ActionResponse.fail(AppErrorCode.UNEXPECTED_ERROR)

    @staticmethod
    def get_posts(
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
        author_id: str | None = None,
        post_type: PostType | None = None,
    ) -> ActionResponse[list[PostWithDetails]]:
        """
        Newest posts first, optionally for one author or of one type.

        Args:
            limit: Page size
            offset: Rows to skip
            viewer_id: Signed-in user (fills is_liked)
            author_id: Only this author's posts
            post_type: Only posts of this type
        """
        client = SupabaseClient.get_client()

        try:
            query = client.table("posts").select(POST_COLUMNS)
            if author_id:
                query = query.eq("author_id", author_id)
            if post_type:
                query = query.eq("type", post_type.value)

            response = (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return ActionResponse.ok(PostService._hydrate(response.data or [], viewer_id))

        except Exception as e:
            logger.error(f"Error fetching posts: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_posts_by_username(
        username: str,
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[PostWithDetails]]:
        try:
            user = SupabaseClient.fetch_user_by_username(username, columns="id")
        except Exception as e:
            logger.error(f"Error fetching user for posts: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        if user is None:
            return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

        return PostService.get_posts(limit, offset, viewer_id, author_id=user["id"])

    @staticmethod
    def get_feed(
        user_id: str | UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> ActionResponse[list[PostWithDetails]]:
        """Posts from the people a user follows, plus their own."""
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            follows = (
                client.table("follows")
                .select("following_id")
                .eq("follower_id", user_id_str)
                .execute()
            )
            author_ids = [r["following_id"] for r in follows.data or []] + [user_id_str]

            response = (
                client.table("posts")
                .select(POST_COLUMNS)
                .in_("author_id", author_ids)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return ActionResponse.ok(PostService._hydrate(response.data or [], user_id_str))

        except Exception as e:
            logger.error(f"Error fetching feed: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_trending_posts(
        limit: int = 20,
        viewer_id: str | None = None,
        now: datetime | None = None,
    ) -> ActionResponse[list[PostWithDetails]]:
        """
        Most liked posts of the last 7 days.

        Ties are broken by comment count, then by recency.
        """
        now = now or datetime.now(timezone.utc)
        since = (now - TRENDING_WINDOW).isoformat()
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("posts")
                .select(POST_COLUMNS)
                .gte("created_at", since)
                .order("created_at", desc=True)
                .limit(TRENDING_CANDIDATES)
                .execute()
            )
            posts = PostService._hydrate(response.data or [], viewer_id)
            posts.sort(
                key=lambda p: (
                    p.likes_count,
                    p.comments_count,
                    p.created_at.timestamp() if p.created_at else 0,
                ),
                reverse=True,
            )
            return ActionResponse.ok(posts[:limit])

        except Exception as e:
            logger.error(f"Error fetching trending posts: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def search_posts(
        query: str,
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[PostWithDetails]]:
        """Case-insensitive content search, newest first. Blank queries match nothing."""
        term = (query or "").strip()
        if not term:
            return ActionResponse.ok([])

        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("posts")
                .select(POST_COLUMNS)
                .ilike("content", f"%{term}%")
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return ActionResponse.ok(PostService._hydrate(response.data or [], viewer_id))

        except Exception as e:
            logger.error(f"Error searching posts: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    @staticmethod
    def get_posts_by_tag(
        tag_name: str,
        limit: int = 20,
        offset: int = 0,
        viewer_id: str | None = None,
    ) -> ActionResponse[list[PostWithDetails]]:
        client = SupabaseClient.get_client()

        try:
            tag = SupabaseClient.fetch_one("tags", "id", name=tag_name.strip().lower())
            if tag is None:
                return ActionResponse.ok([])

            links = (
                client.table("post_tags")
                .select("post_id")
                .eq("tag_id", tag["id"])
                .execute()
            )
            post_ids = [r["post_id"] for r in links.data or []]
            if not post_ids:
                return ActionResponse.ok([])

            response = (
                client.table("posts")
                .select(POST_COLUMNS)
                .in_("id", post_ids)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return ActionResponse.ok(PostService._hydrate(response.data or [], viewer_id))

        except Exception as e:
            logger.error(f"Error fetching posts by tag: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_popular_tags(limit: int = 10) -> ActionResponse[list[PopularTag]]:
        client = SupabaseClient.get_client()

        try:
            response = client.table("tags").select("name, post_tags(count)").execute()
            tags = [
                PopularTag(name=row["name"], count=embedded_count(row, "post_tags"))
                for row in response.data or []
            ]
            tags.sort(key=lambda t: t.count, reverse=True)
            return ActionResponse.ok(tags[:limit])

        except Exception as e:
            logger.error(f"Error fetching popular tags: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Likes & Shares
    # -------------------------------------------------------------------------

    @staticmethod
    def toggle_like(user_id: str | UUID, post_id: str) -> ActionResponse[LikeResult]:
        """
        Like a post, or remove the like if it's already there.

        Returns:
            ActionResponse with the new like state and count
        """
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            if SupabaseClient.fetch_one("posts", "id", id=post_id) is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Post not found")

            existing = (
                client.table("likes")
                .select("id")
                .eq("post_id", post_id)
                .eq("user_id", user_id_str)
                .limit(1)
                .execute()
            )

            if existing.data:
                client.table("likes").delete().eq("id", existing.data[0]["id"]).execute()
                is_liked = False
            else:
                client.table("likes").insert({"post_id": post_id, "user_id": user_id_str}).execute()
                is_liked = True

            likes_count = SupabaseClient.count_rows("likes", post_id=post_id)
            return ActionResponse.ok(LikeResult(is_liked=is_liked, likes_count=likes_count))

        except Exception as e:
            logger.error(f"Error toggling like: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def share_post(post_id: str) -> ActionResponse[ShareResult]:
        client = SupabaseClient.get_client()

        try:
            post = SupabaseClient.fetch_one("posts", "id, shares_count", id=post_id)
            if post is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Post not found")

            shares = (post.get("shares_count") or 0) + 1
            client.table("posts").update({"shares_count": shares}).eq("id", post_id).execute()
            return ActionResponse.ok(ShareResult(shares_count=shares))

        except Exception as e:
            logger.error(f"Error sharing post: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    @staticmethod
    def add_comment(
        user_id: str | UUID,
        post_id: str,
        data: CommentCreate,
    ) -> ActionResponse[PostComment]:
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            if SupabaseClient.fetch_one("posts", "id", id=post_id) is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Post not found")

            user = SupabaseClient.fetch_user(user_id_str, columns=USER_SUMMARY_COLUMNS)
            if user is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "User not found")

            response = (
                client.table("comments")
                .insert({"post_id": post_id, "user_id": user_id_str, "content": data.content})
                .execute()
            )
            logger.info(f"Comment added to post {post_id}")
            return ActionResponse.ok(_to_comment(response.data[0], user))

        except Exception as e:
            logger.error(f"Error adding comment: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def get_post_comments(
        post_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> ActionResponse[list[PostComment]]:
        """Comments oldest first."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("comments")
                .select(COMMENT_COLUMNS)
                .eq("post_id", post_id)
                .order("created_at")
                .range(offset, offset + limit - 1)
                .execute()
            )
            return ActionResponse.ok([_to_comment(row) for row in response.data or []])

        except Exception as e:
            logger.error(f"Error fetching comments: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    @staticmethod
    def delete_comment(user_id: str | UUID, comment_id: str) -> ActionResponse[bool]:
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            comment = SupabaseClient.fetch_one("comments", "id, user_id", id=comment_id)
            if comment is None:
                return ActionResponse.fail(AppErrorCode.NOT_FOUND, "Comment not found")
            if comment["user_id"] != user_id_str:
                return ActionResponse.fail(AppErrorCode.UNAUTHORIZED, "delete this comment")

            client.table("comments").delete().eq("id", comment_id).execute()
            return ActionResponse.ok(True)

        except Exception as e:
            logger.error(f"Error deleting comment: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)
