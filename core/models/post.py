# =============================================================================
# core/models/post.py - Post, Comment and Like Schemas
# =============================================================================
# These models define the API contract for the feed:
# - PostCreate / PostUpdate: what a builder can write
# - PostWithDetails: a post row joined with author, counts and tags
# - PostComment / CommentCreate: threaded-free comments
# - LikeResult: outcome of toggling a like
#
# Rows live in posts, tags, post_tags, likes and comments.
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from core.models.common import UserSummary
from lib.utils import is_http_url

MAX_TAGS_PER_POST = 5
POST_CONTENT_MAX_LENGTH = 2000
COMMENT_CONTENT_MAX_LENGTH = 1000


def _normalize_tags(tags: list[str]) -> list[str]:
    cleaned: list[str] = []
    for tag in tags:
        name = tag.strip().lower()
        if name and name not in cleaned:
            cleaned.append(name)
    if len(cleaned) > MAX_TAGS_PER_POST:
        raise ValueError(f"A post can have at most {MAX_TAGS_PER_POST} tags")
    return cleaned


class PostType(str, Enum):
    """
    What kind of update a post is.

    COMMITMENT is a public goal with an optional deadline and stake;
    the others are progress updates of a specific flavour.
    """
    COMMITMENT = "COMMITMENT"
    UPDATE = "UPDATE"
    REVENUE = "REVENUE"
    ACHIEVEMENT = "ACHIEVEMENT"
    STREAK = "STREAK"
    GITHUB = "GITHUB"
    MILESTONE = "MILESTONE"


class PostBase(BaseModel):
    """Fields shared by create and update."""
    goal: str | None = Field(default=None, min_length=1, max_length=200)
    deadline: datetime | None = None
    stake_amount: float | None = Field(default=None, gt=0)
    stake_currency: str | None = Field(default=None, min_length=3, max_length=3)
    stake_description: str | None = Field(default=None, min_length=1, max_length=200)
    stake_recipient: str | None = Field(default=None, min_length=1, max_length=100)
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    progress_notes: str | None = Field(default=None, max_length=1000)

    # Legacy update fields
    revenue_amount: float | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    commits_count: int | None = Field(default=None, ge=0)
    repo_url: str | None = None

    @field_validator("repo_url")
    @classmethod
    def repo_url_is_absolute(cls, value: str | None) -> str | None:
        if value is not None and not is_http_url(value):
            raise ValueError("repo_url must be an absolute http(s) URL")
        return value


class PostCreate(PostBase):
    """
    Request body for creating a post.

    Tags are trimmed, lowercased and de-duplicated.

    Example:
        {
            "content": "Shipping the pricing page by Friday",
            "type": "COMMITMENT",
            "deadline": "2024-05-10T00:00:00Z",
            "tags": ["SaaS", "pricing"]
        }
    """
    content: str = Field(..., min_length=1, max_length=POST_CONTENT_MAX_LENGTH)
    type: PostType = PostType.COMMITMENT
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, tags: list[str]) -> list[str]:
        return _normalize_tags(tags)


class PostUpdate(PostBase):
    """Request body for editing a post. Omitted fields are left unchanged."""
    content: str | None = Field(default=None, min_length=1, max_length=POST_CONTENT_MAX_LENGTH)
    type: PostType | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, tags: list[str] | None) -> list[str] | None:
        return None if tags is None else _normalize_tags(tags)


class PostWithDetails(BaseModel):
    """A post as shown in the feed."""
    id: str
    content: str
    type: PostType = PostType.COMMITMENT
    goal: str | None = None
    deadline: datetime | None = None
    stake_amount: float | None = None
    stake_currency: str | None = None
    stake_description: str | None = None
    stake_recipient: str | None = None
    progress_percentage: int | None = None
    progress_notes: str | None = None
    revenue_amount: float | None = None
    currency: str | None = None
    commits_count: int | None = None
    repo_url: str | None = None
    shares_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    author: UserSummary
    tags: list[str] = Field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=COMMENT_CONTENT_MAX_LENGTH)


class PostComment(BaseModel):
    """A comment with its author."""
    id: str
    post_id: str
    content: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: UserSummary


class LikeResult(BaseModel):
    is_liked: bool
    likes_count: int


class ShareResult(BaseModel):
    shares_count: int


class PopularTag(BaseModel):
    name: str
    count: int
