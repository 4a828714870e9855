# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from app.dependencies import unwrap
from core.models.profile import UserProfile
from core.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserProfile)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserProfile:
    """
    Get the current authenticated user's profile.

    The profile row is created from the identity claims the first time a
    new user calls this.

    Raises:
        401: If not authenticated
    """
    return unwrap(ProfileService.get_user_profile(user), "User", str(user.id))


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Returns:
        dict: Confirmation with user_id

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
