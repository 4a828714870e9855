# =============================================================================
# app/routers/github.py - GitHub Endpoints
# =============================================================================

from fastapi import APIRouter

from app.dependencies import unwrap
from core.models.github import GitHubContributionData, GitHubContributor
from core.services.github_service import GitHubService

router = APIRouter()


@router.get("/contributors", response_model=list[GitHubContributor])
async def get_contributors():
    """Contributors to the project repository, with tiers."""
    return unwrap(GitHubService.get_github_contributors(), "GitHub contributors")


@router.get("/{username}/contributions", response_model=GitHubContributionData)
async def get_contributions(username: str):
    """
    Last year's contribution calendar for a GitHub user.

    Falls back to generated data (is_generated=true) when GitHub is not
    configured or unavailable.
    """
    return unwrap(GitHubService.fetch_github_contributions(username), "GitHub user", username)
