# =============================================================================
# core/models/common.py - Shared Response Envelope
# =============================================================================
# Every data-access function returns an ActionResponse instead of raising for
# expected failures (missing row, bad input, not the owner). Routers unwrap
# the envelope and map error codes to HTTP exceptions.
#
# Example:
#   result = PostService.get_post(post_id)
#   if not result.success:
#       ...  # result.error is an AppErrorCode
# =============================================================================

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class AppErrorCode(str, Enum):
    """Machine-readable failure reasons shared by all services."""
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_ERROR = "EXTERNAL_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ActionResponse(BaseModel, Generic[T]):
    """
    Uniform success/error envelope.

    Exactly one of `data` (on success) or `error` (on failure) is meaningful.
    `message` carries optional human-readable context for the error.
    """
    success: bool
    data: T | None = None
    error: AppErrorCode | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ActionResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: AppErrorCode, message: str | None = None) -> "ActionResponse[T]":
        return cls(success=False, error=error, message=message)


class Pagination(BaseModel):
    """Page metadata for list endpoints (1-indexed pages)."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    total: int = Field(default=0, ge=0)
    has_more: bool = False


class UserSummary(BaseModel):
    """Author/user fields embedded in posts, comments and startups."""
    id: str
    username: str | None = None
    name: str | None = None
    avatar: str | None = None
    verified: bool = False
