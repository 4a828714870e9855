# =============================================================================
# core/models/github.py - GitHub Activity Schemas
# =============================================================================
# Fixed shapes for data pulled from the GitHub APIs. Responses are validated
# into these models at the boundary so the rest of the app never touches raw
# GitHub JSON.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field, field_validator

# GraphQL ContributionLevel -> 0-4 intensity
CONTRIBUTION_LEVELS = {
    "NONE": 0,
    "FIRST_QUARTILE": 1,
    "SECOND_QUARTILE": 2,
    "THIRD_QUARTILE": 3,
    "FOURTH_QUARTILE": 4,
}


def level_for_count(count: int) -> int:
    """Intensity level for a day's contribution count."""
    if count <= 0:
        return 0
    if count >= 10:
        return 4
    if count >= 7:
        return 3
    if count >= 3:
        return 2
    return 1


class GitHubContribution(BaseModel):
    """One day of the contribution calendar."""
    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    count: int = Field(default=0, ge=0)
    level: int = Field(default=0, ge=0, le=4)

    @field_validator("level", mode="before")
    @classmethod
    def level_from_enum(cls, value: object) -> object:
        if isinstance(value, str):
            return CONTRIBUTION_LEVELS.get(value.upper(), 0)
        return value


class GitHubContributionData(BaseModel):
    contributions: list[GitHubContribution] = Field(default_factory=list)
    total_contributions: int = 0
    is_generated: bool = Field(
        default=False,
        description="True when GitHub was unavailable and the calendar is synthetic"
    )


class ContributorTier(str, Enum):
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"

    @classmethod
    def for_contributions(cls, contributions: int) -> "ContributorTier":
        if contributions >= 50:
            return cls.GOLD
        if contributions >= 10:
            return cls.SILVER
        return cls.BRONZE


class GitHubContributor(BaseModel):
    """A repository contributor from the REST API, plus a display tier."""
    id: int
    login: str
    avatar_url: str | None = None
    html_url: str | None = None
    contributions: int = 0
    type: str = "User"
    tier: ContributorTier = ContributorTier.BRONZE
