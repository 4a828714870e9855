# =============================================================================
# core/models/profile.py - User Profile Schemas
# =============================================================================
# These models define the API contract for builder profiles:
# - UserProfile: A user row plus follower/following/post counts
# - ProfileUpdate: Editable fields with validation
# - ProfileStats: Aggregates shown on the profile page
# - Builder: Compact card for the builders directory
#
# Profile rows live in public.users. The id matches the Supabase Auth user.
# =============================================================================

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from lib.utils import is_http_url

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30


def is_valid_username(username: str) -> bool:
    """3-30 characters of letters, digits and underscores."""
    return (
        USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
        and bool(USERNAME_PATTERN.match(username))
    )


class ActivityType(str, Enum):
    """Kinds of activity that count towards a daily streak."""
    POST = "post"
    COMMIT = "commit"
    REVENUE = "revenue"
    ACHIEVEMENT = "achievement"


class UserProfile(BaseModel):
    """
    Full profile returned to the owner and, minus email, to the public.

    Example:
        {
            "id": "550e8400-...",
            "username": "ada",
            "current_streak": 12,
            "followers_count": 40,
            ...
        }
    """
    id: str
    email: str = ""
    username: str | None = None
    name: str | None = None
    bio: str | None = None
    avatar: str | None = None
    website: str | None = None
    location: str | None = None
    joined_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_public: bool = True
    verified: bool = False
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: datetime | None = None
    github_username: str | None = None
    github_sync_enabled: bool = True
    x_username: str | None = None
    x_sync_enabled: bool = True

    # Computed counts
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0


class ProfileUpdate(BaseModel):
    """
    Editable profile fields. Omitted fields are left unchanged.

    Example:
        {"username": "ada_l", "bio": "Shipping daily", "website": ""}
    """
    username: str | None = Field(
        default=None,
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        pattern=r"^[a-zA-Z0-9_]+$",
    )
    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    website: str | None = Field(
        default=None,
        description="Absolute http(s) URL, or empty string to clear"
    )
    location: str | None = Field(default=None, max_length=100)
    github_username: str | None = Field(default=None, max_length=50)
    x_username: str | None = Field(default=None, max_length=50)
    github_sync_enabled: bool | None = None
    x_sync_enabled: bool | None = None
    is_public: bool | None = None

    @field_validator("website")
    @classmethod
    def website_is_url_or_empty(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return value
        if not is_http_url(value):
            raise ValueError("website must be an absolute http(s) URL")
        return value


class ProfileStats(BaseModel):
    """Aggregates for the profile stats strip."""
    revenue_total: float = 0.0
    revenue_monthly: float = 0.0
    github_commits: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_posts: int = 0
    achievements_count: int = 0
    last_activity_date: datetime | None = None


class UsernameAvailability(BaseModel):
    username: str
    available: bool


class BuilderSort(str, Enum):
    """Sort orders for the builders directory."""
    ACTIVITY = "activity"
    STREAK = "streak"
    JOINED = "joined"
    VERIFIED = "verified"


class Builder(BaseModel):
    """Compact public profile card used in the builders directory."""
    id: str
    username: str | None = None
    name: str | None = None
    avatar: str | None = None
    bio: str | None = None
    website: str | None = None
    verified: bool = False
    current_streak: int = 0
    joined_at: datetime | None = None
    posts_count: int = 0
    followers_count: int = 0
