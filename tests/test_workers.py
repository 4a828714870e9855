# =============================================================================
# tests/test_workers.py - Celery Task Tests
# =============================================================================
# Tasks are executed in-process through .run(), with the database and
# outbound HTTP replaced by fakes. No broker is needed.
# =============================================================================

from datetime import date
from unittest.mock import patch

from core.models.common import ActionResponse
from core.models.github import GitHubContribution, GitHubContributionData
from core.services.favicon_service import FaviconProbeResult
from workers.config import CeleryConfig
from workers.tasks import resolve_startup_favicon, sync_github_contributions


def _calendar(day: str, count: int, generated: bool = False) -> GitHubContributionData:
    return GitHubContributionData(
        contributions=[GitHubContribution(date=day, count=count)],
        total_contributions=count,
        is_generated=generated,
    )


class TestCeleryConfig:
    """Test task routing."""

    def test_routes(self):
        assert CeleryConfig.task_routes["workers.tasks.resolve_startup_favicon"]["queue"] == "favicon"
        assert CeleryConfig.task_routes["workers.tasks.sync_github_contributions"]["queue"] == "github"


class TestResolveStartupFavicon:
    """Test the favicon worker."""

    def test_stores_resolved_source(self, fake_db):
        fake_db.queue("startups", {"id": "startup-1", "website": "https://acme.dev"})
        fake_db.queue("startups", [{"id": "startup-1"}])
        probed = FaviconProbeResult(
            url="https://acme.dev",
            source="https://acme.dev/favicon.ico",
            is_local_fallback=False,
        )

        with patch("core.services.favicon_service.FaviconProber") as prober_cls:
            probe = prober_cls.return_value.__enter__.return_value.probe
            probe.return_value = probed
            result = resolve_startup_favicon.run("startup-1")

        probe.assert_called_once_with("https://acme.dev", use_cache=False)

        assert result == {
            "success": True,
            "favicon_url": "https://acme.dev/favicon.ico",
            "is_local_fallback": False,
        }
        assert fake_db.ops("startups", "update")[0][0][0] == {"favicon_url": "https://acme.dev/favicon.ico"}

    def test_missing_startup(self, fake_db):
        fake_db.queue_missing("startups")

        result = resolve_startup_favicon.run("ghost")

        assert result == {"success": False, "error": "Startup not found"}

    def test_no_website(self, fake_db):
        fake_db.queue("startups", {"id": "startup-1", "website": None})
        assert resolve_startup_favicon.run("startup-1")["error"] == "Startup has no website"


class TestSyncGitHubContributions:
    """Test the GitHub streak worker."""

    def test_active_today_updates_streak(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id, "github_username": "ada"})

        with patch("core.services.github_service.GitHubService.fetch_github_contributions") as fetch, \
             patch("core.services.profile_service.ProfileService.update_user_activity") as activity:
            fetch.return_value = ActionResponse.ok(_calendar("2024-05-03", 4))
            activity.return_value = ActionResponse.ok(6)
            result = sync_github_contributions.run(user_id, today="2024-05-03")

        assert result == {"success": True, "active": True, "current_streak": 6}
        assert activity.call_args.kwargs["today"] == date(2024, 5, 3)

    def test_generated_calendar_never_counts(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id, "github_username": "ada"})

        with patch("core.services.github_service.GitHubService.fetch_github_contributions") as fetch, \
             patch("core.services.profile_service.ProfileService.update_user_activity") as activity:
            fetch.return_value = ActionResponse.ok(_calendar("2024-05-03", 9, generated=True))
            result = sync_github_contributions.run(user_id, today="2024-05-03")

        assert result == {"success": True, "active": False}
        activity.assert_not_called()

    def test_quiet_day(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id, "github_username": "ada"})

        with patch("core.services.github_service.GitHubService.fetch_github_contributions") as fetch:
            fetch.return_value = ActionResponse.ok(_calendar("2024-05-03", 0))
            result = sync_github_contributions.run(user_id, today="2024-05-03")

        assert result["active"] is False

    def test_no_github_username(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id, "github_username": None})
        assert sync_github_contributions.run(user_id)["error"] == "No GitHub username"
