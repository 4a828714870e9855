# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the request/response models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Normalization (tags, contribution levels) happens at the boundary
# - Sponsor plans expose the right Polar product per environment
# =============================================================================

import pytest
from pydantic import ValidationError

from core.models import (
    CommentCreate,
    ContributorTier,
    FaviconOutcomeReport,
    GitHubContribution,
    MilestoneCreate,
    PostCreate,
    PostType,
    PostUpdate,
    ProfileUpdate,
    StartupCreate,
    get_all_sponsor_plans,
    get_sponsor_plan,
)
from core.models.github import level_for_count
from core.models.profile import is_valid_username
from core.models.startup import is_valid_slug


# =============================================================================
# Profile Model Tests
# =============================================================================

class TestProfileUpdate:
    """Tests for ProfileUpdate model."""

    def test_valid_update(self):
        update = ProfileUpdate(username="ada_l", bio="Shipping daily", website="https://ada.dev")
        assert update.username == "ada_l"

    def test_empty_website_clears(self):
        assert ProfileUpdate(website="").website == ""

    def test_relative_website_rejected(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(website="ada.dev")

    @pytest.mark.parametrize("username", ["ab", "has space", "dash-name", "x" * 31])
    def test_invalid_usernames(self, username):
        with pytest.raises(ValidationError):
            ProfileUpdate(username=username)

    def test_is_valid_username(self):
        assert is_valid_username("ada_99")
        assert not is_valid_username("ad")


# =============================================================================
# Post Model Tests
# =============================================================================

class TestPostCreate:
    """Tests for PostCreate model."""

    def test_defaults_to_commitment(self):
        post = PostCreate(content="Shipping by Friday")
        assert post.type == PostType.COMMITMENT
        assert post.tags == []

    def test_tags_normalized(self):
        post = PostCreate(content="x", tags=[" SaaS ", "saas", "Pricing", ""])
        assert post.tags == ["saas", "pricing"]

    def test_too_many_tags(self):
        with pytest.raises(ValidationError):
            PostCreate(content="x", tags=["a", "b", "c", "d", "e", "f"])

    def test_content_length(self):
        with pytest.raises(ValidationError):
            PostCreate(content="")
        with pytest.raises(ValidationError):
            PostCreate(content="x" * 2001)

    def test_progress_percentage_bounds(self):
        with pytest.raises(ValidationError):
            PostCreate(content="x", type=PostType.UPDATE, progress_percentage=101)

    def test_stake_must_be_positive(self):
        with pytest.raises(ValidationError):
            PostCreate(content="x", stake_amount=0)

    def test_repo_url_must_be_absolute(self):
        with pytest.raises(ValidationError):
            PostCreate(content="x", repo_url="github.com/ada/repo")

    def test_update_leaves_tags_unset(self):
        update = PostUpdate(content="edited")
        assert update.tags is None
        assert "tags" not in update.model_fields_set

    def test_comment_length(self):
        with pytest.raises(ValidationError):
            CommentCreate(content="x" * 1001)


# =============================================================================
# Startup Model Tests
# =============================================================================

class TestStartupCreate:
    """Tests for StartupCreate model."""

    def test_valid_startup(self):
        startup = StartupCreate(name="Acme", slug="acme-2", website="https://acme.dev")
        assert startup.status.value == "IDEA"
        assert startup.is_public is True

    @pytest.mark.parametrize("slug", ["Acme", "acme_inc", "acme inc", ""])
    def test_invalid_slug(self, slug):
        with pytest.raises(ValidationError):
            StartupCreate(name="Acme", slug=slug)

    def test_tech_stack_limit(self):
        with pytest.raises(ValidationError):
            StartupCreate(name="Acme", slug="acme", tech_stack=[f"t{i}" for i in range(21)])

    def test_website_must_be_absolute(self):
        with pytest.raises(ValidationError):
            StartupCreate(name="Acme", slug="acme", website="acme.dev")

    def test_is_valid_slug(self):
        assert is_valid_slug("my-startup-1")
        assert not is_valid_slug("My-Startup")

    def test_milestone_type_required(self):
        with pytest.raises(ValidationError):
            MilestoneCreate(title="Launched")
        assert MilestoneCreate(title="Launched", type="LAUNCH").type.value == "LAUNCH"


# =============================================================================
# GitHub Model Tests
# =============================================================================

class TestGitHubModels:
    """Tests for contribution parsing helpers."""

    def test_level_from_graphql_enum(self):
        day = GitHubContribution(date="2024-01-15", count=4, level="SECOND_QUARTILE")
        assert day.level == 2

    @pytest.mark.parametrize("count,level", [(0, 0), (1, 1), (3, 2), (7, 3), (10, 4), (15, 4)])
    def test_level_for_count(self, count, level):
        assert level_for_count(count) == level

    @pytest.mark.parametrize(
        "contributions,tier",
        [(50, ContributorTier.GOLD), (10, ContributorTier.SILVER), (9, ContributorTier.BRONZE)],
    )
    def test_contributor_tier(self, contributions, tier):
        assert ContributorTier.for_contributions(contributions) == tier


# =============================================================================
# Favicon & Sponsor Model Tests
# =============================================================================

class TestFaviconOutcomeReport:
    """Tests for client outcome reports."""

    def test_success_requires_source(self):
        with pytest.raises(ValidationError):
            FaviconOutcomeReport(url="https://acme.dev", outcome="success")

    def test_failure_without_source(self):
        report = FaviconOutcomeReport(url="https://acme.dev", outcome="failure")
        assert report.source is None


class TestSponsorPlans:
    """Tests for the sponsor plan catalogue."""

    def test_all_plans(self):
        plans = {p.id: p for p in get_all_sponsor_plans()}
        assert set(plans) == {"monthly", "annual", "lifetime"}
        assert plans["monthly"].price == 9
        assert plans["annual"].price == 90
        assert plans["lifetime"].price == 199

    def test_unknown_plan(self):
        assert get_sponsor_plan("weekly") is None

    def test_product_id_per_environment(self):
        plan = get_sponsor_plan("monthly")
        assert plan.polar_product_id(production=False) != plan.polar_product_id(production=True)

    def test_product_ids_not_serialized(self):
        data = get_sponsor_plan("lifetime").model_dump()
        assert "sandbox_product_id" not in data
        assert "production_product_id" not in data
