# =============================================================================
# tests/test_api.py - API Endpoint Tests
# =============================================================================
# Exercises the FastAPI app end to end with TestClient:
# - Health and root endpoints
# - Favicon candidates, outcome reports and server-side resolution
# - Auth-required routes
# - Sponsors, checkout plans and the Polar webhook receiver
# - Startup creation queueing favicon resolution
#
# The TestClient is used as a context manager so the lifespan handler runs
# and app.state.favicon_cache exists.
# =============================================================================

import json
import time
from unittest.mock import patch
from uuid import UUID

import httpx
import pytest
from fastapi.testclient import TestClient

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.main import app
from app.routers.favicons import get_favicon_prober
from core.services.billing_service import sign_webhook
from core.services.favicon_service import FaviconProber
from tests.conftest import USER_ID

GOOGLE_ACME = "https://www.google.com/s2/favicons?domain=acme.dev&sz=64"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    """Client whose requests are authenticated as USER_ID."""
    app.dependency_overrides[get_current_user] = lambda: AuthUser(
        id=UUID(USER_ID), email="ada@lockedin.dev"
    )
    return client


def _use_prober(handler):
    """Route server-side probing through a MockTransport."""
    def override():
        cache = app.state.favicon_cache
        with FaviconProber(cache, client=httpx.Client(transport=httpx.MockTransport(handler))) as prober:
            yield prober

    app.dependency_overrides[get_favicon_prober] = override


# =============================================================================
# Health Tests
# =============================================================================

class TestHealth:
    """Test health endpoints."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_ready_degraded(self, client, fake_db):
        fake_db.queue_error("users", Exception("connection refused"))

        body = client.get("/api/v1/health/ready").json()

        assert body["status"] == "degraded"
        assert body["checks"]["database"].startswith("unhealthy")

    def test_root(self, client):
        assert client.get("/").json()["name"] == "LockedIn API"


# =============================================================================
# Favicon Tests
# =============================================================================

class TestFaviconEndpoints:
    """Test the favicon endpoints."""

    def test_candidates(self, client):
        response = client.get("/api/v1/favicons", params={"url": "https://acme.dev/pricing"})

        assert response.status_code == 200
        body = response.json()
        assert body["domain"] == "acme.dev"
        assert body["size"] == 64
        assert body["candidates"]["primary"] == GOOGLE_ACME
        assert body["candidates"]["fallbacks"] == [
            "https://icons.duckduckgo.com/ip3/acme.dev.ico",
            "https://acme.dev/favicon.ico",
        ]
        assert body["candidates"]["localFallback"].startswith("data:image/svg+xml,")
        assert body["cached"] is None

    def test_custom_size(self, client):
        body = client.get("/api/v1/favicons", params={"url": "https://acme.dev", "size": 32}).json()
        assert body["candidates"]["primary"].endswith("&sz=32")

    def test_invalid_size(self, client):
        response = client.get("/api/v1/favicons", params={"url": "https://acme.dev", "size": 0})
        assert response.status_code == 422

    def test_unparseable_url_uses_placeholder_domain(self, client):
        body = client.get("/api/v1/favicons", params={"url": "not a url"}).json()

        assert body["domain"] == "not a url"
        assert "domain=example.com" in body["candidates"]["primary"]

    def test_outcome_is_remembered(self, client):
        source = "https://acme.dev/favicon.ico"
        response = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
            "source": source,
        })

        assert response.status_code == 200
        assert response.json()["cached"] == {"source": source, "failed": False}

        lookup = client.get("/api/v1/favicons", params={"url": "https://acme.dev"}).json()
        assert lookup["cached"]["source"] == source

    def test_foreign_source_rejected(self, client):
        """Only the website's own remote candidates can be recorded as known-good."""
        response = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
            "source": "https://evil.example/track.gif",
        })

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

        lookup = client.get("/api/v1/favicons", params={"url": "https://acme.dev"}).json()
        assert lookup["cached"] is None

        _use_prober(lambda request: httpx.Response(404))
        resolved = client.post("/api/v1/favicons/resolve", json={"url": "https://acme.dev"}).json()
        assert resolved["from_cache"] is False
        assert "evil.example" not in resolved["source"]

    def test_placeholder_is_not_a_success_source(self, client):
        body = client.get("/api/v1/favicons", params={"url": "https://acme.dev"}).json()

        response = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
            "source": body["candidates"]["localFallback"],
        })

        assert response.status_code == 422

    def test_source_checked_against_reported_size(self, client):
        source = "https://www.google.com/s2/favicons?domain=acme.dev&sz=32"

        wrong_size = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
            "source": source,
        })
        assert wrong_size.status_code == 422

        response = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
            "source": source,
            "size": 32,
        })

        assert response.status_code == 200
        assert response.json()["size"] == 32
        assert response.json()["cached"] == {"source": source, "failed": False}

    def test_success_requires_source(self, client):
        response = client.post("/api/v1/favicons/outcomes", json={
            "url": "https://acme.dev",
            "outcome": "success",
        })
        assert response.status_code == 422

    def test_resolve_uses_first_image(self, client):
        def handler(request):
            if request.url.host == "www.google.com":
                return httpx.Response(404)
            return httpx.Response(200, headers={"content-type": "image/x-icon"}, content=b"\x00")

        _use_prober(handler)
        body = client.post("/api/v1/favicons/resolve", json={"url": "https://acme.dev"}).json()

        assert body["source"] == "https://icons.duckduckgo.com/ip3/acme.dev.ico"
        assert body["is_local_fallback"] is False
        assert body["from_cache"] is False
        assert body["attempts"][0] == GOOGLE_ACME

    def test_resolve_all_fail_then_cached(self, client):
        _use_prober(lambda request: httpx.Response(200, headers={"content-type": "text/html"}))

        first = client.post("/api/v1/favicons/resolve", json={"url": "https://dead.dev"}).json()
        assert first["is_local_fallback"] is True
        assert first["source"].startswith("data:image/svg+xml,")

        second = client.post("/api/v1/favicons/resolve", json={"url": "https://dead.dev"}).json()
        assert second["from_cache"] is True
        assert second["is_local_fallback"] is True


# =============================================================================
# Auth Tests
# =============================================================================

class TestAuthRequired:
    """Protected routes reject anonymous requests."""

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/profiles/me"),
        ("get", "/api/v1/posts/feed"),
        ("post", "/api/v1/startups"),
        ("get", "/api/v1/portal"),
        ("get", "/api/v1/auth/verify"),
    ])
    def test_requires_token(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code in (401, 403)

    def test_bad_token(self, client):
        response = client.get("/api/v1/auth/verify", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_verify(self, auth_client):
        body = auth_client.get("/api/v1/auth/verify").json()
        assert body == {"valid": True, "user_id": USER_ID, "email": "ada@lockedin.dev"}


# =============================================================================
# Sponsor Tests
# =============================================================================

class TestSponsorEndpoints:
    """Test sponsor endpoints."""

    def test_plans(self, client):
        plans = client.get("/api/v1/sponsors/plans").json()

        assert [p["id"] for p in plans] == ["monthly", "lifetime", "annual"]
        assert "sandbox_product_id" not in plans[0]

    def test_unknown_plan(self, client):
        response = client.get("/api/v1/sponsors/plans/platinum")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_sponsors(self, client, fake_db):
        fake_db.queue("sponsor_subscriptions", [
            {"id": "s-1", "plan_type": "MONTHLY", "custom_badge": "Monthly Sponsor",
             "startup": {"name": "Acme", "website": "https://acme.dev"}},
        ])

        body = client.get("/api/v1/sponsors").json()

        assert body["count"] == 1
        assert body["sponsors"][0]["tier"] == "Monthly Sponsor"

    def test_webhook_bad_signature(self, client, fake_db):
        response = client.post(
            "/api/v1/webhook/polar",
            content=b'{"type": "order.paid"}',
            headers={
                "webhook-id": "msg_1",
                "webhook-timestamp": str(int(time.time())),
                "webhook-signature": "v1,Zm9yZ2Vk",
            },
        )

        assert response.status_code == 403
        assert response.json()["code"] == "WEBHOOK_INVALID"
        assert fake_db.executed == []

    def test_webhook_signed(self, client, fake_db):
        body = json.dumps({"type": "subscription.canceled", "data": {"id": "polar_sub_1"}}).encode()
        timestamp = int(time.time())

        response = client.post(
            "/api/v1/webhook/polar",
            content=body,
            headers={
                "webhook-id": "msg_2",
                "webhook-timestamp": str(timestamp),
                "webhook-signature": sign_webhook(settings.POLAR_WEBHOOK_SECRET, "msg_2", timestamp, body),
            },
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert fake_db.ops("sponsor_subscriptions", "update")[0][0][0] == {"status": "CANCELLED"}

    def test_portal_without_subscription(self, auth_client, fake_db):
        response = auth_client.get("/api/v1/portal")
        assert response.status_code == 404


# =============================================================================
# Startup & Builder Tests
# =============================================================================

class TestStartupEndpoints:
    """Test startup endpoints."""

    def test_create_queues_favicon(self, auth_client, fake_db, sample_startup_row):
        fake_db.queue("users", {"id": USER_ID})
        fake_db.queue_missing("startups")
        fake_db.queue("startups", [{"id": "startup-1"}])
        fake_db.queue("startups", sample_startup_row)

        with patch("workers.tasks.resolve_startup_favicon") as task:
            response = auth_client.post("/api/v1/startups", json={
                "name": "Acme",
                "slug": "acme",
                "website": "https://www.acme.dev",
            })

        assert response.status_code == 201
        assert response.json()["domain"] == "acme.dev"
        task.delay.assert_called_once_with("startup-1")

    def test_create_without_website_skips_queue(self, auth_client, fake_db, sample_startup_row):
        fake_db.queue("users", {"id": USER_ID})
        fake_db.queue_missing("startups")
        fake_db.queue("startups", [{"id": "startup-1"}])
        fake_db.queue("startups", {**sample_startup_row, "website": None})

        with patch("workers.tasks.resolve_startup_favicon") as task:
            response = auth_client.post("/api/v1/startups", json={"name": "Acme", "slug": "acme"})

        assert response.status_code == 201
        task.delay.assert_not_called()

    def test_duplicate_slug(self, auth_client, fake_db):
        fake_db.queue("users", {"id": USER_ID})
        fake_db.queue("startups", {"id": "other"})

        response = auth_client.post("/api/v1/startups", json={"name": "Acme", "slug": "acme"})

        assert response.status_code == 409

    def test_create_reports_startup_when_reload_fails(self, auth_client, fake_db):
        fake_db.queue("users", {"id": USER_ID})
        fake_db.queue_missing("startups")
        fake_db.queue("startups", [{"id": "startup-1"}])
        fake_db.queue_missing("startups")

        with patch("workers.tasks.resolve_startup_favicon"):
            response = auth_client.post("/api/v1/startups", json={"name": "Acme", "slug": "acme"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Startup not found"
        assert response.json()["details"] == {"resource": "Startup"}

    def test_missing_startup(self, client, fake_db):
        fake_db.queue_missing("startups")
        assert client.get("/api/v1/startups/ghost").status_code == 404


class TestBuildersEndpoint:
    """Test the builders directory."""

    def test_search_and_paginate(self, client, fake_db):
        fake_db.queue("users", [
            {"id": "1", "username": "ada", "name": "Ada", "current_streak": 9, "posts": [{"count": 3}]},
            {"id": "2", "username": "grace", "name": "Grace", "bio": "compilers", "current_streak": 2},
            {"id": "3", "username": "linus", "name": "Linus", "current_streak": 12},
        ])

        body = client.get("/api/v1/builders", params={"limit": 2}).json()

        assert [b["username"] for b in body["builders"]] == ["linus", "ada"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "has_more": True}

    def test_search(self, client, fake_db):
        fake_db.queue("users", [
            {"id": "1", "username": "ada", "current_streak": 9},
            {"id": "2", "username": "grace", "bio": "compilers", "current_streak": 2},
        ])

        body = client.get("/api/v1/builders", params={"search": "compil"}).json()

        assert [b["username"] for b in body["builders"]] == ["grace"]
