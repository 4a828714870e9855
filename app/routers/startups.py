# =============================================================================
# app/routers/startups.py - Startup Endpoints
# =============================================================================
# Startup CRUD, slug checks and milestones. Creating a startup with a
# website (or changing the website) queues a favicon resolution task.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import unwrap
from core.models.startup import (
    MilestoneCreate,
    SlugAvailability,
    StartupCreate,
    StartupMilestone,
    StartupUpdate,
    StartupWithDetails,
)
from core.services.startup_service import StartupService

logger = logging.getLogger(__name__)

router = APIRouter()


def _queue_favicon(startup_id: str) -> None:
    """Hand favicon resolution to the worker. Failure to queue is not fatal."""
    try:
        from workers.tasks import resolve_startup_favicon

        result = resolve_startup_favicon.delay(startup_id)
        logger.info(f"Queued favicon resolution for {startup_id}: {result.id}")
    except Exception as e:
        logger.exception(f"Failed to queue favicon resolution (is Redis running?): {e}")


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=StartupWithDetails, status_code=status.HTTP_201_CREATED)
async def create_startup(
    data: StartupCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a startup.

    Returns 409 if the slug is already taken.
    """
    startup = unwrap(StartupService.create_startup(user.id, data), "Startup")
    if startup.website:
        _queue_favicon(startup.id)
    return startup


@router.get("/me", response_model=list[StartupWithDetails])
async def get_my_startups(user: AuthUser = Depends(get_current_user)):
    """All of your startups, private ones included."""
    return unwrap(StartupService.get_my_startups(user.id), "Startup")


@router.get("/check-slug", response_model=SlugAvailability)
async def check_slug(slug: Annotated[str, Query(min_length=1, max_length=100)]):
    return unwrap(StartupService.check_slug_availability(slug), "Slug", slug)


@router.get("/{slug}", response_model=StartupWithDetails)
async def get_startup_by_slug(
    slug: str,
    viewer: AuthUser | None = Depends(get_current_user_optional),
):
    viewer_id = str(viewer.id) if viewer else None
    return unwrap(StartupService.get_startup_by_slug(slug, viewer_id), "Startup", slug)


@router.patch("/{startup_id}", response_model=StartupWithDetails)
async def update_startup(
    startup_id: str,
    data: StartupUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Update your startup. A new website re-resolves its favicon."""
    startup = unwrap(StartupService.update_startup(user.id, startup_id, data), "Startup", startup_id)
    if "website" in data.model_fields_set and startup.website:
        _queue_favicon(startup.id)
    return startup


@router.delete("/{startup_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_startup(
    startup_id: str,
    user: AuthUser = Depends(get_current_user),
):
    unwrap(StartupService.delete_startup(user.id, startup_id), "Startup", startup_id)


# =============================================================================
# Milestones
# =============================================================================

@router.get("/{startup_id}/milestones", response_model=list[StartupMilestone])
async def get_milestones(startup_id: str):
    return unwrap(StartupService.get_startup_milestones(startup_id), "Startup", startup_id)


@router.post(
    "/{startup_id}/milestones",
    response_model=StartupMilestone,
    status_code=status.HTTP_201_CREATED,
)
async def add_milestone(
    startup_id: str,
    data: MilestoneCreate,
    user: AuthUser = Depends(get_current_user),
):
    return unwrap(StartupService.add_milestone(user.id, startup_id, data), "Startup", startup_id)


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_milestone(
    milestone_id: str,
    user: AuthUser = Depends(get_current_user),
):
    unwrap(StartupService.delete_milestone(user.id, milestone_id), "Milestone", milestone_id)
