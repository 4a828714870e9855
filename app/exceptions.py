# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Services return ActionResponse envelopes; routers turn failed envelopes
# into these exceptions via app.dependencies.unwrap().
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class LockedInException(Exception):
    """
    Base exception for the LockedIn API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "LOCKEDIN_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Resource Exceptions
# =============================================================================

class NotFoundError(LockedInException):
    """Raised when a profile, post, startup or other resource doesn't exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found" + (f": {identifier}" if identifier else "")
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {resource.lower()} exists and is public",
            details={"resource": resource, "id": identifier} if identifier else {"resource": resource},
        )


class ForbiddenError(LockedInException):
    """Raised when the caller doesn't own the resource they're changing."""

    def __init__(self, action: str = "perform this action"):
        super().__init__(
            message=f"You are not allowed to {action}",
            code="UNAUTHORIZED",
            status_code=403,
            suggestion="Only the owner can change this resource",
        )


class ValidationFailedError(LockedInException):
    """Raised when input passes schema checks but breaks a business rule."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            suggestion="Fix the highlighted fields and try again",
            details=details,
        )


class ConflictError(LockedInException):
    """Raised when a unique value (username, slug) is already taken."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            suggestion=f"Choose a different {field}" if field else "Choose a different value",
            details={"field": field} if field else None,
        )


class DatabaseError(LockedInException):
    """Raised when the database query fails."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


class ExternalServiceError(LockedInException):
    """Raised when GitHub or Polar returns an error we can't recover from."""

    def __init__(self, service: str, error: str):
        super().__init__(
            message=f"{service} request failed: {error}",
            code="EXTERNAL_ERROR",
            status_code=502,
            suggestion=f"{service} may be unavailable, try again later",
            details={"service": service, "error": error},
        )


class WebhookVerificationError(LockedInException):
    """Raised when a webhook signature doesn't match."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid webhook: {reason}",
            code="WEBHOOK_INVALID",
            status_code=403,
            suggestion="Check that POLAR_WEBHOOK_SECRET matches the Polar dashboard",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def lockedin_exception_handler(
    request: Request,
    exc: LockedInException
) -> JSONResponse:
    """
    Convert LockedInException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
