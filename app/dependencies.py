# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Also hosts unwrap(), which turns a failed ActionResponse from a service
# into the matching LockedInException so routers stay one-liners.
#
# Usage:
#   @router.get("/posts/{post_id}")
#   async def get_post(post_id: str) -> PostWithDetails:
#       return unwrap(PostService.get_post(post_id), "Post", post_id)
# =============================================================================

from typing import Annotated, TypeVar

from fastapi import Depends, Request

from app.exceptions import (
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    ForbiddenError,
    LockedInException,
    NotFoundError,
    ValidationFailedError,
)
from core.models.common import ActionResponse, AppErrorCode
from lib.favicon import FaviconOutcomeCache
from lib.supabase_client import SupabaseClient

T = TypeVar("T")


def get_supabase_client() -> type[SupabaseClient]:
    """
    Get Supabase client instance.

    Returns the singleton client wrapper.
    """
    return SupabaseClient


def get_favicon_cache(request: Request) -> FaviconOutcomeCache:
    """
    Get the application-scoped favicon outcome cache.

    Created once in the lifespan handler (app/main.py).
    """
    return request.app.state.favicon_cache


# Type aliases for dependency injection
SupabaseDep = Annotated[type[SupabaseClient], Depends(get_supabase_client)]
FaviconCacheDep = Annotated[FaviconOutcomeCache, Depends(get_favicon_cache)]


def unwrap(result: ActionResponse[T], resource: str = "Resource", identifier: str | None = None) -> T:
    """
    Return the envelope's data or raise the matching API exception.

    Args:
        result: Envelope returned by a service
        resource: Name used in 404 messages ("Post", "Startup")
        identifier: Optional id/slug used in 404 messages

    Raises:
        LockedInException subclass chosen from result.error
    """
    if result.success:
        return result.data

    error = result.error
    message = result.message

    if error == AppErrorCode.NOT_FOUND:
        raise NotFoundError(resource, identifier)
    if error == AppErrorCode.UNAUTHORIZED:
        raise ForbiddenError(message or f"modify this {resource.lower()}")
    if error == AppErrorCode.VALIDATION_ERROR:
        raise ValidationFailedError(message or "Invalid input")
    if error == AppErrorCode.CONFLICT:
        raise ConflictError(message or f"{resource} already exists")
    if error == AppErrorCode.EXTERNAL_ERROR:
        raise ExternalServiceError(resource, message or "request failed")
    if error == AppErrorCode.DATABASE_ERROR:
        raise DatabaseError(message or "Database operation failed")

    raise LockedInException(
        message=message or "An unexpected error occurred",
        code=AppErrorCode.UNEXPECTED_ERROR.value,
        status_code=500,
    )


__all__ = [
    "FaviconCacheDep",
    "SupabaseDep",
    "get_favicon_cache",
    "get_supabase_client",
    "unwrap",
]
