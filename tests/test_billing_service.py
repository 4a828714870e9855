# =============================================================================
# tests/test_billing_service.py - Sponsorship Billing Tests
# =============================================================================
# This module contains tests for:
# - Standard Webhooks signature verification
# - Sponsor display mapping
# - Polar webhook handling (order.paid, subscription.*)
# - Checkout session creation against a mocked Polar API
# =============================================================================

import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from app.config import settings
from app.exceptions import WebhookVerificationError
from core.models.common import AppErrorCode
from core.models.sponsor import PlanType
from core.services.billing_service import (
    BillingService,
    _to_sponsor,
    plan_type_from_metadata,
    sign_webhook,
    sponsor_initials,
    verify_webhook,
)

SECRET = "test-webhook-secret"
NOW = 1_700_000_000


def _headers(body: bytes, secret: str = SECRET, timestamp: int = NOW, msg_id: str = "msg_1"):
    return {
        "webhook-id": msg_id,
        "webhook-timestamp": str(timestamp),
        "webhook-signature": sign_webhook(secret, msg_id, timestamp, body),
    }


# =============================================================================
# Signature Tests
# =============================================================================

class TestVerifyWebhook:
    """Test webhook signature checks."""

    def test_valid_signature(self):
        body = json.dumps({"type": "order.paid", "data": {}}).encode()

        event = verify_webhook(body, _headers(body), secret=SECRET, now=NOW)

        assert event["type"] == "order.paid"

    def test_tampered_body(self):
        body = b'{"type": "order.paid"}'
        headers = _headers(body)

        with pytest.raises(WebhookVerificationError):
            verify_webhook(b'{"type": "order.refunded"}', headers, secret=SECRET, now=NOW)

    def test_wrong_secret(self):
        body = b'{"type": "order.paid"}'
        with pytest.raises(WebhookVerificationError):
            verify_webhook(body, _headers(body, secret="other"), secret=SECRET, now=NOW)

    def test_stale_timestamp(self):
        body = b'{"type": "order.paid"}'
        with pytest.raises(WebhookVerificationError):
            verify_webhook(body, _headers(body), secret=SECRET, now=NOW + 301)

    def test_missing_headers(self):
        with pytest.raises(WebhookVerificationError):
            verify_webhook(b"{}", {"webhook-id": "msg_1"}, secret=SECRET, now=NOW)

    def test_rotated_signatures(self):
        body = b'{"type": "order.paid"}'
        headers = _headers(body)
        headers["webhook-signature"] = "v1,bm9wZQ== " + headers["webhook-signature"]

        assert verify_webhook(body, headers, secret=SECRET, now=NOW)["type"] == "order.paid"

    def test_whsec_secret(self):
        secret = "whsec_" + base64.b64encode(b"raw-secret-bytes").decode()
        body = b'{"type": "order.paid"}'

        event = verify_webhook(body, _headers(body, secret=secret), secret=secret, now=NOW)

        assert event["type"] == "order.paid"

    def test_non_object_body(self):
        body = b"[1, 2]"
        with pytest.raises(WebhookVerificationError):
            verify_webhook(body, _headers(body), secret=SECRET, now=NOW)

    def test_unconfigured_secret(self):
        with pytest.raises(WebhookVerificationError):
            verify_webhook(b"{}", {}, secret="")


# =============================================================================
# Mapping Tests
# =============================================================================

class TestSponsorMapping:
    """Test sponsor display fields."""

    def test_plan_type_from_metadata(self):
        assert plan_type_from_metadata("monthly") == PlanType.MONTHLY
        assert plan_type_from_metadata("LIFETIME") == PlanType.LIFETIME
        assert plan_type_from_metadata("annual") == PlanType.ANNUAL
        assert plan_type_from_metadata(None) == PlanType.MONTHLY

    def test_initials(self):
        assert sponsor_initials("acme") == "AC"

    def test_startup_takes_precedence(self):
        sponsor = _to_sponsor({
            "id": "s-1",
            "plan_type": "ANNUAL",
            "custom_badge": None,
            "user": {"name": "Ada", "avatar": "https://img/ada.png", "website": "https://ada.dev"},
            "startup": {"id": "st-1", "name": "Acme", "slug": "acme", "website": "https://acme.dev"},
        })

        assert sponsor.name == "Acme"
        assert sponsor.logo == "AC"
        assert sponsor.url == "https://acme.dev"
        assert sponsor.tier == "ANNUAL Sponsor"
        assert sponsor.logo_url == "https://img/ada.png"
        assert sponsor.startup_slug == "acme"

    def test_user_only(self):
        sponsor = _to_sponsor({
            "id": "s-2",
            "plan_type": "LIFETIME",
            "custom_badge": "Founding Sponsor",
            "user": {"username": "grace"},
        })

        assert sponsor.name == "grace"
        assert sponsor.url == "#"
        assert sponsor.tier == "Founding Sponsor"


# =============================================================================
# Webhook Handling Tests
# =============================================================================

class TestWebhookEvents:
    """Test Polar event handling."""

    def _order(self, plan_type="monthly"):
        return {
            "id": "order_1",
            "total_amount": 900,
            "currency": "usd",
            "customer": {"id": "cus_1", "email": "ada@acme.dev", "name": "Ada"},
            "metadata": {"planId": plan_type, "planType": plan_type, "startupId": "startup-1"},
        }

    def test_order_paid_existing_user(self, fake_db, user_id):
        fake_db.queue("users", {"id": user_id})
        fake_db.queue("sponsor_subscriptions", [{"id": "sub-row-1"}])
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)

        result = BillingService._on_order_paid(self._order(), now=now)

        assert result.data == "subscription_created"
        row = fake_db.ops("sponsor_subscriptions", "insert")[0][0][0]
        assert row["user_id"] == user_id
        assert row["plan_type"] == "MONTHLY"
        assert row["billing_interval"] == "month"
        assert row["next_billing_date"].startswith("2024-05-31")
        assert row["custom_badge"] == "Monthly Sponsor"
        assert row["currency"] == "USD"
        assert row["amount"] == 900
        assert row["startup_id"] == "startup-1"
        assert fake_db.ops("users", "insert") == []

    def test_order_paid_lifetime_creates_user(self, fake_db):
        fake_db.queue_missing("users")
        fake_db.queue("users", [{"id": "new-user"}])
        fake_db.queue("sponsor_subscriptions", [{"id": "sub-row-2"}])

        result = BillingService.handle_webhook_event({"type": "order.paid", "data": self._order("lifetime")})

        assert result.success
        assert fake_db.ops("users", "insert")[0][0][0] == {
            "email": "ada@acme.dev",
            "name": "Ada",
            "username": "ada",
        }
        row = fake_db.ops("sponsor_subscriptions", "insert")[0][0][0]
        assert row["plan_type"] == "LIFETIME"
        assert row["next_billing_date"] is None

    def test_order_without_email(self, fake_db):
        result = BillingService.handle_webhook_event({"type": "order.paid", "data": {"customer": {}}})
        assert result.error == AppErrorCode.VALIDATION_ERROR

    def test_subscription_canceled(self, fake_db):
        result = BillingService.handle_webhook_event({
            "type": "subscription.canceled",
            "data": {"id": "polar_sub_1"},
        })

        assert result.data == "subscription_cancelled"
        assert fake_db.ops("sponsor_subscriptions", "update")[0][0][0] == {"status": "CANCELLED"}
        assert (("polar_subscription_id", "polar_sub_1"), {}) in fake_db.ops("sponsor_subscriptions", "eq")

    def test_subscription_created_unknown_customer(self, fake_db):
        fake_db.queue_missing("users")

        result = BillingService.handle_webhook_event({
            "type": "subscription.created",
            "data": {"id": "polar_sub_1", "customer": {"id": "cus_1", "email": "x@y.z"}},
        })

        assert result.data == "ignored"
        assert fake_db.ops("sponsor_subscriptions", "update") == []

    def test_unknown_event_ignored(self, fake_db):
        assert BillingService.handle_webhook_event({"type": "checkout.updated"}).data == "ignored"

    def test_database_error(self, fake_db):
        fake_db.queue_error("sponsor_subscriptions", Exception("connection refused"))
        result = BillingService.handle_webhook_event({"type": "subscription.canceled", "data": {"id": "x"}})
        assert result.error == AppErrorCode.DATABASE_ERROR


class TestActiveSponsors:
    """Test the sponsors list."""

    def test_orders_by_priority(self, fake_db):
        fake_db.queue("sponsor_subscriptions", [
            {"id": "s-1", "plan_type": "MONTHLY", "startup": {"name": "Acme"}},
        ])

        result = BillingService.get_active_sponsors()

        assert [s.name for s in result.data] == ["Acme"]
        assert (("status", "ACTIVE"), {}) in fake_db.ops("sponsor_subscriptions", "eq")
        assert fake_db.ops("sponsor_subscriptions", "order")[0] == (("priority_order",), {})


# =============================================================================
# Polar API Tests
# =============================================================================

class TestCheckout:
    """Test checkout and portal sessions."""

    def test_unknown_plan(self):
        assert BillingService.create_checkout("platinum").error == AppErrorCode.NOT_FOUND

    def test_missing_token(self, monkeypatch):
        monkeypatch.setattr(settings, "POLAR_ACCESS_TOKEN", "")
        assert BillingService.create_checkout("monthly").error == AppErrorCode.EXTERNAL_ERROR

    def test_create_checkout(self, monkeypatch):
        monkeypatch.setattr(settings, "POLAR_ACCESS_TOKEN", "polar_test")
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "chk_1", "url": "https://polar.sh/checkout/chk_1"})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        result = BillingService.create_checkout(
            "annual", customer_email="ada@acme.dev", startup_id="startup-1", client=client
        )

        assert result.data.url == "https://polar.sh/checkout/chk_1"
        assert seen["url"].startswith("https://sandbox-api.polar.sh/v1/checkouts")
        assert seen["auth"] == "Bearer polar_test"
        assert seen["body"]["metadata"] == {"planId": "annual", "planType": "annual", "startupId": "startup-1"}
        assert seen["body"]["customer_email"] == "ada@acme.dev"
        assert seen["body"]["success_url"].endswith("/sponsor/success")

    def test_polar_error(self, monkeypatch):
        monkeypatch.setattr(settings, "POLAR_ACCESS_TOKEN", "polar_test")
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(422, text="bad")))

        result = BillingService.create_checkout("monthly", client=client)

        assert result.error == AppErrorCode.EXTERNAL_ERROR

    def test_portal(self, monkeypatch):
        monkeypatch.setattr(settings, "POLAR_ACCESS_TOKEN", "polar_test")
        client = httpx.Client(transport=httpx.MockTransport(
            lambda r: httpx.Response(201, json={"customer_portal_url": "https://polar.sh/portal/x"})
        ))

        result = BillingService.create_customer_portal("cus_1", client=client)

        assert result.data.url == "https://polar.sh/portal/x"

    def test_portal_requires_customer(self):
        assert BillingService.create_customer_portal("").error == AppErrorCode.VALIDATION_ERROR
