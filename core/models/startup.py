# =============================================================================
# core/models/startup.py - Startup & Milestone Schemas
# =============================================================================
# These models define the API contract for the startups a builder runs:
# - StartupCreate / StartupUpdate: validated input
# - StartupWithDetails: a startup row with owner, milestone count and the
#   favicon candidates for its website
# - MilestoneCreate / StartupMilestone: dated achievements
#
# Rows live in startups and milestones (cascade delete on startup).
# =============================================================================

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from core.models.common import UserSummary
from lib.utils import is_http_url

SLUG_PATTERN = r"^[a-z0-9-]+$"
MAX_TECH_STACK = 20


def is_valid_slug(slug: str) -> bool:
    """1-100 characters of lowercase letters, digits and hyphens."""
    return 1 <= len(slug) <= 100 and bool(re.match(SLUG_PATTERN, slug))


class StartupStatus(str, Enum):
    IDEA = "IDEA"
    BUILDING = "BUILDING"
    LAUNCHED = "LAUNCHED"
    GROWING = "GROWING"
    ACQUIRED = "ACQUIRED"
    SHUTDOWN = "SHUTDOWN"


class StartupStage(str, Enum):
    PRE_SEED = "PRE_SEED"
    SEED = "SEED"
    SERIES_A = "SERIES_A"
    SERIES_B = "SERIES_B"
    SERIES_C = "SERIES_C"
    LATER_STAGE = "LATER_STAGE"
    BOOTSTRAPPED = "BOOTSTRAPPED"
    PROFITABLE = "PROFITABLE"


class MilestoneType(str, Enum):
    LAUNCH = "LAUNCH"
    REVENUE = "REVENUE"
    USERS = "USERS"
    FUNDING = "FUNDING"
    FEATURE = "FEATURE"
    PARTNERSHIP = "PARTNERSHIP"
    OTHER = "OTHER"


def _check_url(value: str | None) -> str | None:
    if value is not None and not is_http_url(value):
        raise ValueError("must be an absolute http(s) URL")
    return value


class StartupFields(BaseModel):
    """Optional startup fields shared by create and update."""
    description: str | None = Field(default=None, max_length=1000)
    tagline: str | None = Field(default=None, max_length=150)
    tag: str | None = Field(default=None, max_length=50)
    website: str | None = None
    founded_at: datetime | None = None
    revenue: float | None = Field(default=None, ge=0)
    employees: int | None = Field(default=None, ge=1)
    funding: float | None = Field(default=None, ge=0)
    valuation: float | None = Field(default=None, ge=0)
    twitter_handle: str | None = Field(default=None, max_length=50)
    linkedin_url: str | None = None
    github_repo: str | None = Field(default=None, max_length=200)
    industry: str | None = Field(default=None, max_length=100)

    @field_validator("website", "linkedin_url")
    @classmethod
    def urls_are_absolute(cls, value: str | None) -> str | None:
        return _check_url(value)


class StartupCreate(StartupFields):
    """
    Request body for creating a startup.

    Example:
        {
            "name": "Acme",
            "slug": "acme",
            "website": "https://acme.dev",
            "tech_stack": ["fastapi", "postgres"]
        }
    """
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: StartupStatus = StartupStatus.IDEA
    stage: StartupStage = StartupStage.PRE_SEED
    tech_stack: list[str] = Field(default_factory=list, max_length=MAX_TECH_STACK)
    is_public: bool = True


class StartupUpdate(StartupFields):
    """Request body for editing a startup. Omitted fields are left unchanged."""
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: StartupStatus | None = None
    stage: StartupStage | None = None
    tech_stack: list[str] | None = Field(default=None, max_length=MAX_TECH_STACK)
    is_public: bool | None = None


class StartupWithDetails(BaseModel):
    """A startup as shown on profiles and its own page."""
    id: str
    name: str
    slug: str
    description: str | None = None
    tagline: str | None = None
    tag: str | None = None
    website: str | None = None
    logo: str | None = None
    status: StartupStatus = StartupStatus.IDEA
    stage: StartupStage = StartupStage.PRE_SEED
    founded_at: datetime | None = None
    revenue: float | None = None
    employees: int | None = None
    funding: float | None = None
    valuation: float | None = None
    twitter_handle: str | None = None
    linkedin_url: str | None = None
    github_repo: str | None = None
    industry: str | None = None
    tech_stack: list[str] = Field(default_factory=list)
    is_public: bool = True
    is_featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    user: UserSummary
    milestones_count: int = 0

    # Known-good icon picked by the favicon worker
    favicon_url: str | None = None

    # Derived from website
    domain: str | None = None
    favicon: dict[str, object] | None = Field(
        default=None,
        description="Candidate favicon sources (primary, fallbacks, localFallback)"
    )


class MilestoneCreate(BaseModel):
    """Request body for adding a milestone to a startup."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    type: MilestoneType
    value: float | None = Field(default=None, ge=0)
    unit: str | None = Field(default=None, max_length=50)
    achieved_at: datetime | None = None
    is_public: bool = True


class StartupMilestone(BaseModel):
    id: str
    startup_id: str
    title: str
    description: str | None = None
    type: MilestoneType
    value: float | None = None
    unit: str | None = None
    achieved_at: datetime | None = None
    is_public: bool = True


class SlugAvailability(BaseModel):
    slug: str
    available: bool
