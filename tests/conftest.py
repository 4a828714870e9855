# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: a stand-in for the supabase-py client that replays
#   queued responses per table and records every query it sees
# - Sample rows for users, posts and startups
# =============================================================================

import os
from types import SimpleNamespace
from typing import Any

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-1234")
os.environ.setdefault("POLAR_WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("GITHUB_TOKEN", "")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from lib.supabase_client import SupabaseClient


# =============================================================================
# Fake Supabase Client
# =============================================================================

class FakeQuery:
    """
    Chainable query builder.

    Every builder method (select, eq, order, insert, ...) is recorded and
    returns the query itself. execute() pops the next queued response for
    the table: a dict/list becomes `.data`, an Exception is raised.
    """

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.calls: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        if name.startswith("__"):
            raise AttributeError(name)

        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def called(self, name: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    def execute(self):
        self.db.executed.append(self)
        queue = self.db.responses.get(self.table) or []
        if not queue:
            return SimpleNamespace(data=[], count=0)

        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeSupabase:
    """In-memory replacement for supabase.Client used by the services."""

    def __init__(self):
        self.responses: dict[str, list[Any]] = {}
        self.executed: list[FakeQuery] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def queue(self, table: str, data: Any = None, count: int | None = None) -> "FakeSupabase":
        """Queue the next response for `table`."""
        self.responses.setdefault(table, []).append(SimpleNamespace(data=data, count=count))
        return self

    def queue_error(self, table: str, error: Exception) -> "FakeSupabase":
        self.responses.setdefault(table, []).append(error)
        return self

    def queue_missing(self, table: str) -> "FakeSupabase":
        """Queue PostgREST's "no rows" error for a .single() query."""
        return self.queue_error(table, Exception("PGRST116: JSON object requested, multiple (or no) rows returned"))

    def queries(self, table: str) -> list[FakeQuery]:
        return [q for q in self.executed if q.table == table]

    def ops(self, table: str, name: str) -> list[tuple[tuple, dict]]:
        """Every call to builder method `name` across executed queries on `table`."""
        return [call for q in self.queries(table) for call in q.called(name)]


@pytest.fixture
def fake_db():
    """Install a FakeSupabase as the SupabaseClient singleton."""
    fake = FakeSupabase()
    previous = SupabaseClient._instance
    SupabaseClient._instance = fake
    yield fake
    SupabaseClient._instance = previous


# =============================================================================
# Sample Rows
# =============================================================================

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def other_user_id():
    return OTHER_USER_ID


@pytest.fixture
def sample_user_row():
    """A users row as returned by select("*")."""
    return {
        "id": USER_ID,
        "email": "ada@lockedin.dev",
        "name": "Ada Builder",
        "username": "ada",
        "avatar": None,
        "bio": "Shipping every day",
        "location": "Lagos",
        "website": "https://ada.dev",
        "github_username": "ada",
        "twitter_username": None,
        "linkedin_url": None,
        "verified": True,
        "is_public": True,
        "current_streak": 3,
        "longest_streak": 10,
        "created_at": "2024-01-15T10:00:00Z",
        "updated_at": "2024-01-15T10:00:00Z",
    }


@pytest.fixture
def sample_author():
    return {"id": USER_ID, "username": "ada", "name": "Ada Builder", "avatar": None, "verified": True}


@pytest.fixture
def sample_post_row(sample_author):
    """A posts row with embedded author, counts and tags."""
    return {
        "id": "post-1",
        "author_id": USER_ID,
        "content": "Shipping the landing page by Friday",
        "type": "COMMITMENT",
        "shares_count": 0,
        "created_at": "2024-01-15T10:30:00Z",
        "updated_at": "2024-01-15T10:30:00Z",
        "author": sample_author,
        "likes": [{"count": 2}],
        "comments": [{"count": 1}],
        "post_tags": [{"tags": {"name": "launch"}}],
    }


@pytest.fixture
def sample_startup_row(sample_author):
    """A startups row with embedded owner and milestone count."""
    return {
        "id": "startup-1",
        "user_id": USER_ID,
        "name": "Acme",
        "slug": "acme",
        "tagline": "Rockets for everyone",
        "description": None,
        "website": "https://www.acme.dev",
        "is_public": True,
        "status": "BUILDING",
        "stage": "PRE_SEED",
        "tech_stack": ["python"],
        "favicon_url": None,
        "created_at": "2024-01-15T10:00:00Z",
        "updated_at": "2024-01-15T10:00:00Z",
        "user": sample_author,
        "milestones": [{"count": 0}],
    }
