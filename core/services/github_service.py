# =============================================================================
# core/services/github_service.py - GitHub Activity
# =============================================================================
# Pulls a builder's contribution calendar (GraphQL) and the project's
# contributor list (REST) from GitHub.
#
# The contribution calendar never fails for a valid username: without a
# GITHUB_TOKEN, or when GitHub errors, a generated calendar is returned and
# flagged with is_generated=True so the UI still has something to draw.
# =============================================================================

import logging
import random
from datetime import date, timedelta
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import settings
from core.models.common import ActionResponse, AppErrorCode
from core.models.github import (
    ContributorTier,
    GitHubContribution,
    GitHubContributionData,
    GitHubContributor,
    level_for_count,
)
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_API_URL = "https://api.github.com"
GITHUB_TIMEOUT = 10.0

CALENDAR_DAYS = 365
ACTIVE_DAY_PROBABILITY = 0.3
MAX_GENERATED_COUNT = 15

CONTRIBUTIONS_QUERY = """
query($username: String!) {
  user(login: $username) {
    contributionsCollection {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
            contributionLevel
          }
        }
      }
    }
  }
}
"""


class GitHubAPIError(ApplicationError):
    """GitHub returned an error status or an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message,
            code="GITHUB_API_ERROR",
            suggestion="Check GITHUB_TOKEN and the GitHub status page",
            details={"status_code": status_code} if status_code else None,
        )


def generate_contribution_data(
    today: date | None = None,
    rng: random.Random | None = None,
) -> GitHubContributionData:
    """
    Build a plausible contribution calendar for the last 365 days.

    About 30% of days are active with 1-15 contributions.

    Args:
        today: Last day of the calendar (defaults to today)
        rng: Random source (tests pass a seeded one)
    """
    today = today or date.today()
    rng = rng or random.Random()

    contributions = []
    for offset in range(CALENDAR_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        count = 0
        if rng.random() > 1 - ACTIVE_DAY_PROBABILITY:
            count = rng.randint(1, MAX_GENERATED_COUNT)
        contributions.append(
            GitHubContribution(date=day.isoformat(), count=count, level=level_for_count(count))
        )

    return GitHubContributionData(
        contributions=contributions,
        total_contributions=sum(c.count for c in contributions),
        is_generated=True,
    )


def parse_contribution_calendar(payload: dict[str, Any]) -> GitHubContributionData:
    """
    Validate a GraphQL response into GitHubContributionData.

    Raises:
        GitHubAPIError: If the payload has errors or no user
    """
    if payload.get("errors"):
        raise GitHubAPIError(f"GraphQL errors: {payload['errors']}")

    user = (payload.get("data") or {}).get("user")
    if not user:
        raise GitHubAPIError("GitHub user not found")

    try:
        calendar = user["contributionsCollection"]["contributionCalendar"]
        contributions = [
            GitHubContribution(
                date=day["date"],
                count=day["contributionCount"],
                level=day["contributionLevel"],
            )
            for week in calendar["weeks"]
            for day in week["contributionDays"]
        ]
    except (KeyError, TypeError, ValidationError) as e:
        raise GitHubAPIError(f"Unexpected calendar payload: {e}")

    return GitHubContributionData(
        contributions=contributions,
        total_contributions=calendar.get("totalContributions", 0),
    )


class GitHubService:
    """Service for GitHub API calls."""

    @staticmethod
    def _client(client: httpx.Client | None) -> httpx.Client:
        return client or httpx.Client(timeout=GITHUB_TIMEOUT)

    @staticmethod
    def fetch_github_contributions(
        username: str,
        client: httpx.Client | None = None,
    ) -> ActionResponse[GitHubContributionData]:
        """
        Fetch the last year of contributions for a GitHub user.

        Args:
            username: GitHub login
            client: Optional httpx client (tests inject a MockTransport)

        Returns:
            ActionResponse with the calendar. VALIDATION_ERROR only for an
            empty username; GitHub failures fall back to generated data.
        """
        if not username or not username.strip():
            return ActionResponse.fail(AppErrorCode.VALIDATION_ERROR, "GitHub username is required")

        if not settings.GITHUB_TOKEN:
            logger.info(f"No GitHub token, using generated data for: {username}")
            return ActionResponse.ok(generate_contribution_data())

        http = GitHubService._client(client)
        try:
            response = http.post(
                GITHUB_GRAPHQL_URL,
                json={"query": CONTRIBUTIONS_QUERY, "variables": {"username": username}},
                headers={"Authorization": f"Bearer {settings.GITHUB_TOKEN}"},
            )
            if response.status_code != 200:
                raise GitHubAPIError("GraphQL request failed", response.status_code)

            data = parse_contribution_calendar(response.json())
            logger.info(
                f"GitHub data fetched for {username}: {data.total_contributions} contributions"
            )
            return ActionResponse.ok(data)

        except (httpx.HTTPError, ValueError, GitHubAPIError) as e:
            logger.warning(f"GitHub fetch failed for {username}, using generated data: {e}")
            return ActionResponse.ok(generate_contribution_data())

        finally:
            if client is None:
                http.close()

    @staticmethod
    def get_github_contributors(
        client: httpx.Client | None = None,
    ) -> ActionResponse[list[GitHubContributor]]:
        """
        Contributors of the configured repository, bots removed, most
        contributions first, each with a Gold/Silver/Bronze tier.
        """
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "lockedin-app",
        }
        if settings.GITHUB_TOKEN:
            headers["Authorization"] = f"token {settings.GITHUB_TOKEN}"

        url = f"{GITHUB_API_URL}/repos/{settings.GITHUB_CONTRIBUTORS_REPO}/contributors"

        http = GitHubService._client(client)
        try:
            response = http.get(url, headers=headers)
            if response.status_code != 200:
                logger.error(f"GitHub API error: {response.status_code}")
                return ActionResponse.fail(
                    AppErrorCode.EXTERNAL_ERROR, f"GitHub returned {response.status_code}"
                )

            contributors = [
                GitHubContributor(
                    **row,
                    tier=ContributorTier.for_contributions(row.get("contributions", 0)),
                )
                for row in response.json()
                if row.get("type") != "Bot"
            ]
            contributors.sort(key=lambda c: c.contributions, reverse=True)
            return ActionResponse.ok(contributors)

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching GitHub contributors: {e}")
            return ActionResponse.fail(AppErrorCode.EXTERNAL_ERROR, str(e))

        finally:
            if client is None:
                http.close()
