# =============================================================================
# tests/test_startup_service.py - Startup Service Tests
# =============================================================================
# This module contains tests for:
# - Startup responses carrying favicon candidates and display domain
# - Slug uniqueness and availability
# - Visibility of private startups
# - Owner-only updates and milestone deletes
# =============================================================================

from core.models.common import AppErrorCode
from core.models.startup import MilestoneCreate, StartupCreate, StartupUpdate
from core.services.startup_service import StartupService, _to_startup


class TestToStartup:
    """Test row normalization."""

    def test_website_adds_domain_and_favicon(self, sample_startup_row):
        startup = _to_startup(sample_startup_row)

        assert startup.domain == "acme.dev"
        assert startup.favicon["primary"].startswith("https://www.google.com/s2/favicons?domain=www.acme.dev")
        assert startup.favicon["localFallback"].startswith("data:image/svg+xml,")
        assert len(startup.favicon["fallbacks"]) == 2

    def test_no_website(self, sample_startup_row):
        startup = _to_startup({**sample_startup_row, "website": None})

        assert startup.domain is None
        assert startup.favicon is None


class TestCreateStartup:
    """Test startup creation."""

    def test_slug_conflict(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id})
        fake_db.queue("startups", {"id": "other-startup"})

        result = StartupService.create_startup(user_id, StartupCreate(name="Acme", slug="acme"))

        assert result.error == AppErrorCode.CONFLICT
        assert fake_db.ops("startups", "insert") == []

    def test_create(self, fake_db, user_id, sample_startup_row):
        fake_db.queue("users", {"id": user_id})
        fake_db.queue_missing("startups")
        fake_db.queue("startups", [{"id": "startup-1"}])
        fake_db.queue("startups", sample_startup_row)

        data = StartupCreate(name="Acme", slug="acme", website="https://www.acme.dev")
        result = StartupService.create_startup(user_id, data)

        assert result.success
        assert result.data.slug == "acme"
        payload = fake_db.ops("startups", "insert")[0][0][0]
        assert payload["user_id"] == user_id
        assert payload["website"] == "https://www.acme.dev"
        assert "description" not in payload


class TestVisibility:
    """Private startups are only visible to their owner."""

    def test_private_hidden_from_others(self, fake_db, sample_startup_row, other_user_id):
        fake_db.queue("startups", {**sample_startup_row, "is_public": False})

        result = StartupService.get_startup_by_slug("acme", viewer_id=other_user_id)

        assert result.error == AppErrorCode.UNAUTHORIZED

    def test_private_visible_to_owner(self, fake_db, sample_startup_row, user_id):
        fake_db.queue("startups", {**sample_startup_row, "is_public": False})
        assert StartupService.get_startup_by_slug("acme", viewer_id=user_id).success

    def test_missing(self, fake_db):
        fake_db.queue_missing("startups")
        assert StartupService.get_startup_by_slug("ghost").error == AppErrorCode.NOT_FOUND

    def test_list_filters_public_for_others(self, fake_db, user_id, other_user_id):
        StartupService.get_startups_by_user(user_id, viewer_id=other_user_id)
        assert (("is_public", True), {}) in fake_db.ops("startups", "eq")

    def test_list_includes_private_for_owner(self, fake_db, user_id):
        StartupService.get_my_startups(user_id)
        assert (("is_public", True), {}) not in fake_db.ops("startups", "eq")


class TestSlugAvailability:
    """Test slug checks."""

    def test_invalid_slug(self, fake_db):
        assert StartupService.check_slug_availability("Not Valid").data.available is False
        assert fake_db.executed == []

    def test_available(self, fake_db):
        fake_db.queue_missing("startups")
        assert StartupService.check_slug_availability("fresh").data.available is True


class TestUpdateStartup:
    """Test owner-only updates."""

    def test_not_owner(self, fake_db, other_user_id):
        fake_db.queue("startups", {"id": "startup-1", "user_id": "someone-else"})

        result = StartupService.update_startup(other_user_id, "startup-1", StartupUpdate(name="Mine"))

        assert result.error == AppErrorCode.UNAUTHORIZED

    def test_website_change_resets_favicon(self, fake_db, user_id, sample_startup_row):
        fake_db.queue("startups", {"id": "startup-1", "user_id": user_id})
        fake_db.queue("startups", [])
        fake_db.queue("startups", sample_startup_row)

        StartupService.update_startup(user_id, "startup-1", StartupUpdate(website="https://new.dev"))

        payload = fake_db.ops("startups", "update")[0][0][0]
        assert payload["website"] == "https://new.dev"
        assert payload["favicon_url"] is None

    def test_set_favicon_url(self, fake_db):
        fake_db.queue("startups", [{"id": "startup-1"}])

        assert StartupService.set_favicon_url("startup-1", "https://acme.dev/favicon.ico").data is True
        assert fake_db.ops("startups", "update")[0][0][0] == {"favicon_url": "https://acme.dev/favicon.ico"}


class TestMilestones:
    """Test milestone operations."""

    def test_add_milestone(self, fake_db, user_id):
        fake_db.queue("startups", {"id": "startup-1", "user_id": user_id})
        fake_db.queue("milestones", [{
            "id": "m-1", "startup_id": "startup-1", "title": "Launched", "type": "LAUNCH",
            "achieved_at": "2024-05-01T00:00:00Z",
        }])

        result = StartupService.add_milestone(user_id, "startup-1", MilestoneCreate(title="Launched", type="LAUNCH"))

        assert result.data.title == "Launched"
        assert "achieved_at" in fake_db.ops("milestones", "insert")[0][0][0]

    def test_delete_milestone_not_owner(self, fake_db, user_id):
        fake_db.queue("milestones", {"id": "m-1", "startup": {"user_id": "someone-else"}})

        result = StartupService.delete_milestone(user_id, "m-1")

        assert result.error == AppErrorCode.UNAUTHORIZED
        assert fake_db.ops("milestones", "delete") == []
