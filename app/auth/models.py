# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. `name` and `avatar_url` come from the
    identity provider's user_metadata and seed the profile row on first use.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_claims(cls, user_id: UUID, payload: dict[str, Any]) -> "AuthUser":
        """Build an AuthUser from verified JWT claims."""
        metadata = payload.get("user_metadata") or {}
        name = metadata.get("full_name") or metadata.get("name")
        if not name and metadata.get("first_name"):
            name = f"{metadata['first_name']} {metadata.get('last_name') or ''}".strip()

        return cls(
            id=user_id,
            email=payload.get("email"),
            name=name or None,
            avatar_url=metadata.get("avatar_url") or metadata.get("picture"),
        )
