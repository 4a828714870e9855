# =============================================================================
# app/routers/posts.py - Feed Endpoints
# =============================================================================
# Posts, likes, shares, comments, tags, trending and search.
# Reads are public (the viewer, if signed in, gets is_liked filled in);
# writes require authentication.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import unwrap
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
from core.services.post_service import PostService

router = APIRouter()

Limit = Annotated[int, Query(ge=1, le=100)]
Offset = Annotated[int, Query(ge=0)]


def _viewer_id(viewer: AuthUser | None) -> str | None:
    return str(viewer.id) if viewer else None


# =============================================================================
# Lists
# =============================================================================

@router.get("", response_model=list[PostWithDetails])
async def list_posts(
    limit: Limit = 20,
    offset: Offset = 0,
    type: PostType | None = None,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    """Newest posts first, optionally of a single type."""
    return unwrap(
        PostService.get_posts(limit, offset, _viewer_id(viewer), post_type=type),
        "Posts",
    )


@router.get("/feed", response_model=list[PostWithDetails])
async def get_feed(
    limit: Limit = 20,
    offset: Offset = 0,
    user: AuthUser = Depends(get_current_user),
):
    """Posts from the people you follow, plus your own."""
    return unwrap(PostService.get_feed(user.id, limit, offset), "Posts")


@router.get("/trending", response_model=list[PostWithDetails])
async def get_trending(
    limit: Limit = 20,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    """Most liked posts of the last 7 days."""
    return unwrap(PostService.get_trending_posts(limit, _viewer_id(viewer)), "Posts")


@router.get("/search", response_model=list[PostWithDetails])
async def search_posts(
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Limit = 20,
    offset: Offset = 0,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    """Search post content. An empty query returns an empty list."""
    return unwrap(PostService.search_posts(q, limit, offset, _viewer_id(viewer)), "Posts")


@router.get("/tags/popular", response_model=list[PopularTag])
async def get_popular_tags(limit: Annotated[int, Query(ge=1, le=50)] = 10):
    return unwrap(PostService.get_popular_tags(limit), "Tags")


@router.get("/tags/{tag}", response_model=list[PostWithDetails])
async def get_posts_by_tag(
    tag: str,
    limit: Limit = 20,
    offset: Offset = 0,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    return unwrap(PostService.get_posts_by_tag(tag, limit, offset, _viewer_id(viewer)), "Tag", tag)


# =============================================================================
# Single Post
# =============================================================================

@router.post("", response_model=PostWithDetails, status_code=status.HTTP_201_CREATED)
async def create_post(
    post: PostCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a post.

    Posting counts as activity for today's streak.
    """
    return unwrap(PostService.create_post(user.id, post), "User", str(user.id))


@router.get("/{post_id}", response_model=PostWithDetails)
async def get_post(
    post_id: str,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    return unwrap(PostService.get_post(post_id, _viewer_id(viewer)), "Post", post_id)


@router.patch("/{post_id}", response_model=PostWithDetails)
async def update_post(
    post_id: str,
    update: PostUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Edit your own post. Returns 403 for someone else's."""
    return unwrap(PostService.update_post(user.id, post_id, update), "Post", post_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    user: AuthUser = Depends(get_current_user),
):
    unwrap(PostService.delete_post(user.id, post_id), "Post", post_id)


@router.post("/{post_id}/like", response_model=LikeResult)
async def toggle_like(
    post_id: str,
    user: AuthUser = Depends(get_current_user),
):
    """Like the post, or remove your like."""
    return unwrap(PostService.toggle_like(user.id, post_id), "Post", post_id)


@router.post("/{post_id}/share", response_model=ShareResult)
async def share_post(post_id: str):
    return unwrap(PostService.share_post(post_id), "Post", post_id)


# =============================================================================
# Comments
# =============================================================================

@router.get("/{post_id}/comments", response_model=list[PostComment])
async def get_comments(
    post_id: str,
    limit: Limit = 20,
    offset: Offset = 0,
):
    return unwrap(PostService.get_post_comments(post_id, limit, offset), "Post", post_id)


@router.post(
    "/{post_id}/comments",
    response_model=PostComment,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: str,
    comment: CommentCreate,
    user: AuthUser = Depends(get_current_user),
):
    return unwrap(PostService.add_comment(user.id, post_id, comment), "Post", post_id)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    user: AuthUser = Depends(get_current_user),
):
    """Delete your own comment."""
    unwrap(PostService.delete_comment(user.id, comment_id), "Comment", comment_id)
