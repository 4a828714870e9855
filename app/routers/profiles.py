# =============================================================================
# app/routers/profiles.py - Profile & Builders Endpoints
# =============================================================================
# Profile reads/updates, username checks, stats and the public builders
# directory. Routes under /me require authentication; the rest are public.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import unwrap
from core.models.common import Pagination
from core.models.post import PostWithDetails
from core.models.profile import (
    ActivityType,
    Builder,
    BuilderSort,
    ProfileStats,
    ProfileUpdate,
    UserProfile,
    UsernameAvailability,
)
from core.models.startup import StartupWithDetails
from core.services.post_service import PostService
from core.services.profile_service import ProfileService, filter_builders
from core.services.startup_service import StartupService

router = APIRouter()
builders_router = APIRouter()

# Upper bound on builders loaded before search/sort/paging
BUILDERS_FETCH_LIMIT = 500


# =============================================================================
# Request/Response Models
# =============================================================================

class ActivityRequest(BaseModel):
    """Mark today as active for the signed-in user."""
    type: ActivityType = Field(..., examples=["commit"])


class ActivityResponse(BaseModel):
    current_streak: int


class BuildersPage(BaseModel):
    builders: list[Builder]
    pagination: Pagination


# =============================================================================
# Own Profile
# =============================================================================

@router.get("/me", response_model=UserProfile)
async def get_my_profile(user: AuthUser = Depends(get_current_user)):
    """Get the signed-in user's profile, creating it on first access."""
    return unwrap(ProfileService.get_user_profile(user), "User", str(user.id))


@router.patch("/me", response_model=UserProfile)
async def update_my_profile(
    update: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update the signed-in user's profile.

    Returns 409 if the requested username belongs to someone else.
    """
    return unwrap(ProfileService.update_user_profile(user.id, update), "User", str(user.id))


@router.post("/me/activity", response_model=ActivityResponse)
async def record_activity(
    request: ActivityRequest,
    user: AuthUser = Depends(get_current_user),
):
    """Record an activity for today and return the recomputed streak."""
    streak = unwrap(ProfileService.update_user_activity(user.id, request.type), "User")
    return ActivityResponse(current_streak=streak)


# =============================================================================
# Public Profiles
# =============================================================================

@router.get("/username-availability", response_model=UsernameAvailability)
async def check_username(
    username: Annotated[str, Query(min_length=1, max_length=100)],
):
    """Check whether a username is well-formed and unclaimed."""
    return unwrap(ProfileService.check_username_availability(username), "Username")


@router.get("/{username}", response_model=UserProfile)
async def get_profile(username: str):
    """Get a public profile by username (email is never included)."""
    return unwrap(ProfileService.get_public_profile(username), "Profile", username)


@router.get("/{username}/stats", response_model=ProfileStats)
async def get_profile_stats(username: str):
    return unwrap(ProfileService.get_profile_stats(username=username), "Profile", username)


@router.get("/{username}/posts", response_model=list[PostWithDetails])
async def get_profile_posts(
    username: str,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(
        PostService.get_posts_by_username(username, limit, offset, viewer_id),
        "Profile",
        username,
    )


@router.get("/{username}/startups", response_model=list[StartupWithDetails])
async def get_profile_startups(
    username: str,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    """A builder's startups. Private ones are included only for the owner."""
    profile = unwrap(ProfileService.get_public_profile(username), "Profile", username)
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(StartupService.get_startups_by_user(profile.id, viewer_id), "Startup")


# =============================================================================
# Builders Directory
# =============================================================================

@builders_router.get("", response_model=BuildersPage)
async def list_builders(
    search: Annotated[str | None, Query(max_length=100)] = None,
    sort: BuilderSort = BuilderSort.ACTIVITY,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
):
    """
    Public builders, most active first.

    Supports search over name/username/bio and sorting by streak,
    join date or verification.
    """
    builders = unwrap(ProfileService.get_builders_data(BUILDERS_FETCH_LIMIT), "Builders")
    results, pagination = filter_builders(builders, search, sort, page, limit)
    return BuildersPage(builders=results, pagination=pagination)
