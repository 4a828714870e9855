# =============================================================================
# app/routers/follows.py - Follow Graph Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import unwrap
from core.models.follow import FollowResult, FollowStats, FollowUser
from core.services.follow_service import FollowService

router = APIRouter()

Limit = Annotated[int, Query(ge=1, le=100)]
Offset = Annotated[int, Query(ge=0)]


@router.get("/suggestions", response_model=list[FollowUser])
async def get_suggestions(
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    user: AuthUser = Depends(get_current_user),
):
    """People you might want to follow, best matches first."""
    return unwrap(FollowService.get_suggested_users(user.id, limit), "Users")


@router.post("/{user_id}", response_model=FollowResult)
async def toggle_follow(
    user_id: str,
    user: AuthUser = Depends(get_current_user),
):
    """
    Follow a user, or unfollow if you already do.

    Returns 422 when trying to follow yourself.
    """
    return unwrap(FollowService.toggle_follow(user.id, user_id), "User", user_id)


@router.get("/{user_id}/status")
async def get_follow_status(
    user_id: str,
    user: AuthUser = Depends(get_current_user),
) -> dict:
    return {"is_following": unwrap(FollowService.check_follow_status(user.id, user_id), "User", user_id)}


@router.get("/{user_id}/stats", response_model=FollowStats)
async def get_follow_stats(
    user_id: str,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(FollowService.get_follow_stats(user_id, viewer_id), "User", user_id)


@router.get("/{user_id}/followers", response_model=list[FollowUser])
async def get_followers(
    user_id: str,
    limit: Limit = 20,
    offset: Offset = 0,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(FollowService.get_followers(user_id, limit, offset, viewer_id), "User", user_id)


@router.get("/{user_id}/following", response_model=list[FollowUser])
async def get_following(
    user_id: str,
    limit: Limit = 20,
    offset: Offset = 0,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(FollowService.get_following(user_id, limit, offset, viewer_id), "User", user_id)


@router.get("/{user_id}/mutual", response_model=list[FollowUser])
async def get_mutual_followers(
    user_id: str,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    user: AuthUser = Depends(get_current_user),
):
    """People who follow both you and this user."""
    return unwrap(FollowService.get_mutual_followers(user.id, user_id, limit), "User", user_id)
