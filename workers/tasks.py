# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks that call out to third-party hosts so API
# requests never wait on them.
#
# Tasks:
# - resolve_startup_favicon: Walk a startup website's favicon fallback chain
#   and store the source that loaded
# - sync_github_contributions: Count today's GitHub contributions towards
#   the user's streak
# =============================================================================

import logging
from datetime import date
from typing import Any

from celery import shared_task, current_task

logger = logging.getLogger(__name__)

# Outcomes are shared by every task run in this worker process
_favicon_cache = None


def _get_favicon_cache():
    global _favicon_cache
    if _favicon_cache is None:
        from lib.favicon import FaviconOutcomeCache
        _favicon_cache = FaviconOutcomeCache()
    return _favicon_cache


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
            }
        )


# =============================================================================
# Favicon Resolution Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.resolve_startup_favicon")
def resolve_startup_favicon(self, startup_id: str) -> dict[str, Any]:
    """
    Resolve and store the favicon for a startup's website.

    Candidates are tried in order (primary, then each fallback). If every
    remote candidate fails, the local placeholder is stored so the front
    end stops retrying. The process cache is bypassed so every run probes
    the network again.

    Args:
        startup_id: The startup UUID

    Returns:
        Dict with:
        - success: bool
        - favicon_url: Stored source (if successful)
        - is_local_fallback: True when no remote candidate loaded
    """
    logger.info(f"Resolving favicon for startup {startup_id}")

    try:
        from core.services.favicon_service import FaviconProber
        from core.services.startup_service import StartupService
        from lib.supabase_client import SupabaseClient

        update_progress(1, 3, "Loading startup...")
        startup = SupabaseClient.fetch_one("startups", "id, website", id=startup_id)
        if startup is None:
            return {"success": False, "error": "Startup not found"}
        if not startup.get("website"):
            return {"success": False, "error": "Startup has no website"}

        update_progress(2, 3, "Probing favicon sources...")
        with FaviconProber(_get_favicon_cache()) as prober:
            result = prober.probe(startup["website"], use_cache=False)

        update_progress(3, 3, "Saving...")
        stored = StartupService.set_favicon_url(startup_id, result.source)
        if not stored.success:
            return {"success": False, "error": stored.message or stored.error.value}

        return {
            "success": True,
            "favicon_url": result.source,
            "is_local_fallback": result.is_local_fallback,
        }

    except Exception as e:
        logger.exception(f"Favicon resolution failed: {e}")
        return {"success": False, "error": str(e)}


# =============================================================================
# GitHub Activity Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.sync_github_contributions")
def sync_github_contributions(self, user_id: str, today: str | None = None) -> dict[str, Any]:
    """
    Mark today as active if the user's GitHub calendar shows contributions.

    Generated calendars (no token, or GitHub unavailable) never count.

    Args:
        user_id: The user UUID
        today: ISO date override (defaults to the current date)

    Returns:
        Dict with:
        - success: bool
        - active: Whether today counted
        - current_streak: Recomputed streak (when active)
    """
    logger.info(f"Syncing GitHub contributions for user {user_id}")

    try:
        from core.models.profile import ActivityType
        from core.services.github_service import GitHubService
        from core.services.profile_service import ProfileService
        from lib.supabase_client import SupabaseClient

        user = SupabaseClient.fetch_user(user_id, columns="id, github_username")
        if user is None:
            return {"success": False, "error": "User not found"}
        if not user.get("github_username"):
            return {"success": False, "error": "No GitHub username"}

        result = GitHubService.fetch_github_contributions(user["github_username"])
        if not result.success:
            return {"success": False, "error": result.message}

        calendar = result.data
        if calendar.is_generated:
            return {"success": True, "active": False}

        day = today or date.today().isoformat()
        contributed = any(c.date == day and c.count > 0 for c in calendar.contributions)
        if not contributed:
            return {"success": True, "active": False}

        streak = ProfileService.update_user_activity(
            user_id, ActivityType.COMMIT, today=date.fromisoformat(day)
        )
        if not streak.success:
            return {"success": False, "error": streak.message or streak.error.value}

        return {"success": True, "active": True, "current_streak": streak.data}

    except Exception as e:
        logger.exception(f"GitHub sync failed: {e}")
        return {"success": False, "error": str(e)}
