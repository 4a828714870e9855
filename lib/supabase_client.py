# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for the lookups every service repeats:
# - Users by id, username or email
# - Row counts (followers, likes, comments)
# - Embedded aggregate counts returned by PostgREST ("likes(count)")
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   user = SupabaseClient.fetch_user_by_username("ada")
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"

# Columns embedded wherever a post, comment or startup shows its author
USER_SUMMARY_COLUMNS = "id, username, name, avatar, verified"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def is_no_rows_error(error: Exception) -> bool:
    """True if the error is PostgREST's "no rows returned" for .single()."""
    return NO_ROWS_CODE in str(error)


def embedded_count(row: dict[str, Any], relation: str) -> int:
    """
    Read an aggregate count embedded by PostgREST.

    `select("*, likes(count)")` returns {"likes": [{"count": 3}]}; older
    PostgREST versions and hand-built fixtures may return a plain int.
    """
    value = row.get(relation)
    if isinstance(value, int):
        return value
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return int(value[0].get("count", 0) or 0)
    return 0


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        user = SupabaseClient.fetch_user(user_id)
        followers = SupabaseClient.count_rows("follows", following_id=user_id)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership checks happen in the service layer instead.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @classmethod
    def _fetch_user_where(
        cls,
        column: str,
        value: str,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        client = cls.get_client()

        try:
            response = (
                client.table("users")
                .select(columns)
                .eq(column, value)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch user: {e}",
                code="FETCH_USER_FAILED",
                suggestion="Check that the users table is accessible",
                details={column: value}
            )

    @classmethod
    def fetch_user(cls, user_id: str | UUID, columns: str = "*") -> dict[str, Any] | None:
        """
        Fetch a user row by ID.

        Args:
            user_id: The user UUID (same as the Supabase Auth user id)
            columns: PostgREST select string

        Returns:
            User dict, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        return cls._fetch_user_where("id", cls._normalize_uuid(user_id), columns)

    @classmethod
    def fetch_user_by_username(cls, username: str, columns: str = "*") -> dict[str, Any] | None:
        """Fetch a user row by username, or None."""
        return cls._fetch_user_where("username", username, columns)

    @classmethod
    def fetch_user_by_email(cls, email: str, columns: str = "*") -> dict[str, Any] | None:
        """Fetch a user row by email, or None."""
        return cls._fetch_user_where("email", email, columns)

    # -------------------------------------------------------------------------
    # Generic Lookups
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_one(cls, table: str, columns: str = "*", **filters: Any) -> dict[str, Any] | None:
        """
        Fetch a single row matching equality filters.

        Example:
            post = SupabaseClient.fetch_one("posts", "id, author_id", id=post_id)

        Returns:
            Row dict, or None if no row matches

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, cls._normalize_uuid(value))
            response = query.single().execute()
            return response.data

        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                details={"table": table, **{k: str(v) for k, v in filters.items()}}
            )

    # -------------------------------------------------------------------------
    # Counting
    # -------------------------------------------------------------------------

    @classmethod
    def count_rows(cls, table: str, **filters: Any) -> int:
        """
        Count rows in a table matching equality filters.

        Example:
            SupabaseClient.count_rows("likes", post_id=post_id)

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select("id", count="exact")
            for column, value in filters.items():
                query = query.eq(column, cls._normalize_uuid(value))
            response = query.limit(1).execute()
            return response.count or 0

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count {table}: {e}",
                code="COUNT_FAILED",
                details={"table": table, **{k: str(v) for k, v in filters.items()}}
            )

    @classmethod
    def exists(cls, table: str, **filters: Any) -> bool:
        """True if at least one row matches the equality filters."""
        return cls.count_rows(table, **filters) > 0
