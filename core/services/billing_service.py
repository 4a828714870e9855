# =============================================================================
# core/services/billing_service.py - Sponsorship Billing (Polar)
# =============================================================================
# Sponsor checkout and customer portal sessions via the Polar REST API, the
# Polar webhook receiver, and the active sponsors list.
#
# Webhooks follow the Standard Webhooks scheme:
#   signed payload = "{webhook-id}.{webhook-timestamp}.{raw body}"
#   signature      = base64(HMAC-SHA256(secret, signed payload))
#   header         = "v1,<signature>" (space separated when rotated)
#
# Usage:
#   event = verify_webhook(body, request.headers)
#   BillingService.handle_webhook_event(event)
# =============================================================================

import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import httpx

from app.config import settings
from app.exceptions import WebhookVerificationError
from core.models.common import ActionResponse, AppErrorCode
from core.models.sponsor import (
    CheckoutSession,
    PlanType,
    PortalSession,
    Sponsor,
    SubscriptionStatus,
    get_sponsor_plan,
)
from lib.supabase_client import SupabaseClient
from lib.utils import ApplicationError, normalize_uuid, parse_timestamp

logger = logging.getLogger(__name__)

POLAR_TIMEOUT = 15.0

# Reject webhooks whose timestamp is further than this from now
WEBHOOK_TOLERANCE_SECONDS = 5 * 60

SPONSOR_COLUMNS = (
    "*, user:users!user_id(id, name, username, avatar, website), "
    "startup:startups(id, name, slug, website, logo, tagline)"
)

# plan type -> (billing interval, days until next bill, badge)
PLAN_BILLING = {
    PlanType.MONTHLY: ("month", 30, "Monthly Sponsor"),
    PlanType.ANNUAL: ("year", 365, "Annual Sponsor"),
    PlanType.LIFETIME: ("lifetime", None, "Lifetime Sponsor"),
}


class BillingError(ApplicationError):
    """Polar rejected a request or billing isn't configured."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message,
            code="BILLING_ERROR",
            suggestion="Check POLAR_ACCESS_TOKEN and POLAR_SERVER",
            details={"status_code": status_code} if status_code else None,
        )


# =============================================================================
# Webhook Signatures
# =============================================================================

def _secret_key(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        return base64.b64decode(secret[len("whsec_"):])
    return secret.encode()


def sign_webhook(secret: str, msg_id: str, timestamp: int | str, body: bytes) -> str:
    """
    Compute the "v1,<signature>" value for a webhook payload.

    Example:
        header = sign_webhook("s3cret", "msg_1", 1700000000, b'{"type": "x"}')
    """
    signed = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(_secret_key(secret), signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode()


def verify_webhook(
    body: bytes,
    headers: Mapping[str, str],
    secret: str | None = None,
    now: float | None = None,
) -> dict[str, Any]:
    """
    Verify a Polar webhook and return the parsed event.

    Args:
        body: Raw request body, exactly as received
        headers: Request headers (webhook-id, webhook-timestamp, webhook-signature)
        secret: Webhook secret (defaults to POLAR_WEBHOOK_SECRET)
        now: Current unix time (tests)

    Raises:
        WebhookVerificationError: Missing headers, stale timestamp, bad
            signature or a body that isn't a JSON object
    """
    secret = secret if secret is not None else settings.POLAR_WEBHOOK_SECRET
    if not secret:
        raise WebhookVerificationError("webhook secret is not configured")

    msg_id = headers.get("webhook-id")
    timestamp = headers.get("webhook-timestamp")
    signatures = headers.get("webhook-signature")
    if not (msg_id and timestamp and signatures):
        raise WebhookVerificationError("missing webhook headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookVerificationError("invalid timestamp")

    now = time.time() if now is None else now
    if abs(now - sent_at) > WEBHOOK_TOLERANCE_SECONDS:
        raise WebhookVerificationError("timestamp outside tolerance")

    expected = sign_webhook(secret, msg_id, timestamp, body)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures.split()):
        raise WebhookVerificationError("signature mismatch")

    try:
        event = json.loads(body)
    except ValueError:
        raise WebhookVerificationError("body is not valid JSON")

    if not isinstance(event, dict):
        raise WebhookVerificationError("body is not a JSON object")

    return event


# =============================================================================
# Display Helpers
# =============================================================================

def sponsor_initials(name: str) -> str:
    return name[:2].upper()


def _to_sponsor(row: dict[str, Any]) -> Sponsor:
    user = row.get("user") or {}
    startup = row.get("startup") or {}

    name = startup.get("name") or user.get("name") or user.get("username") or "Anonymous"
    plan_type = PlanType(row["plan_type"])

    return Sponsor(
        id=row["id"],
        name=name,
        logo=sponsor_initials(name),
        logo_url=startup.get("logo") or user.get("avatar"),
        tier=row.get("custom_badge") or f"{plan_type.value} Sponsor",
        url=startup.get("website") or user.get("website") or "#",
        plan_type=plan_type,
        custom_badge=row.get("custom_badge"),
        startup_id=startup.get("id"),
        startup_slug=startup.get("slug"),
        startup_name=startup.get("name"),
        startup_website=startup.get("website"),
        startup_logo=startup.get("logo"),
        startup_tagline=startup.get("tagline"),
        created_at=parse_timestamp(row.get("created_at")),
    )


def plan_type_from_metadata(value: str | None) -> PlanType:
    """Map checkout metadata ("monthly" | "annual" | "lifetime") to PlanType."""
    value = (value or "monthly").lower()
    if value == "monthly":
        return PlanType.MONTHLY
    if value == "lifetime":
        return PlanType.LIFETIME
    return PlanType.ANNUAL


class BillingService:
    """Service for Polar checkout, portal, webhooks and sponsor listing."""

    # -------------------------------------------------------------------------
    # Polar API
    # -------------------------------------------------------------------------

    @staticmethod
    def _polar_post(path: str, payload: dict[str, Any], client: httpx.Client | None) -> dict[str, Any]:
        if not settings.POLAR_ACCESS_TOKEN:
            raise BillingError("POLAR_ACCESS_TOKEN is not configured")

        http = client or httpx.Client(timeout=POLAR_TIMEOUT)
        try:
            response = http.post(
                f"{settings.polar_api_url}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {settings.POLAR_ACCESS_TOKEN}"},
            )
            if response.status_code >= 400:
                raise BillingError(f"Polar returned {response.status_code}: {response.text}", response.status_code)
            return response.json()
        except httpx.HTTPError as e:
            raise BillingError(f"Polar request failed: {e}")
        finally:
            if client is None:
                http.close()

    @staticmethod
    def create_checkout(
        plan_id: str,
        customer_email: str | None = None,
        startup_id: str | None = None,
        user_id: str | None = None,
        client: httpx.Client | None = None,
    ) -> ActionResponse[CheckoutSession]:
        """
        Start a Polar checkout for a sponsor plan.

        The plan and startup travel in the checkout metadata so the
        order.paid webhook can create the right subscription.

        Returns:
            ActionResponse with the checkout id and hosted URL
        """
        plan = get_sponsor_plan(plan_id)
        if plan is None:
            return ActionResponse.fail(AppErrorCode.NOT_FOUND, f"Unknown plan: {plan_id}")

        metadata = {"planId": plan.id, "planType": plan.type}
        if startup_id:
            metadata["startupId"] = startup_id
        if user_id:
            metadata["userId"] = user_id

        payload: dict[str, Any] = {
            "products": [plan.polar_product_id(production=settings.POLAR_SERVER == "production")],
            "success_url": settings.checkout_success_url,
            "metadata": metadata,
        }
        if customer_email:
            payload["customer_email"] = customer_email

        try:
            data = BillingService._polar_post("/v1/checkouts/", payload, client)
            logger.info(f"Created checkout {data.get('id')} for plan {plan.id}")
            return ActionResponse.ok(CheckoutSession(id=data["id"], url=data["url"]))
        except (BillingError, KeyError) as e:
            logger.error(f"Checkout failed: {e}")
            return ActionResponse.fail(AppErrorCode.EXTERNAL_ERROR, str(e))

    @staticmethod
    def create_customer_portal(
        customer_id: str,
        client: httpx.Client | None = None,
    ) -> ActionResponse[PortalSession]:
        """Create a Polar customer session and return its portal URL."""
        if not customer_id:
            return ActionResponse.fail(AppErrorCode.VALIDATION_ERROR, "customer_id is required")

        try:
            data = BillingService._polar_post("/v1/customer-sessions/", {"customer_id": customer_id}, client)
            return ActionResponse.ok(PortalSession(url=data["customer_portal_url"]))
        except (BillingError, KeyError) as e:
            logger.error(f"Customer portal failed: {e}")
            return ActionResponse.fail(AppErrorCode.EXTERNAL_ERROR, str(e))

    @staticmethod
    def get_customer_id_for_user(user_id: str) -> str | None:
        """Polar customer id from the user's most recent subscription."""
        client = SupabaseClient.get_client()
        response = (
            client.table("sponsor_subscriptions")
            .select("polar_customer_id")
            .eq("user_id", normalize_uuid(user_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("polar_customer_id")

    # -------------------------------------------------------------------------
    # Sponsors
    # -------------------------------------------------------------------------

    @staticmethod
    def get_active_sponsors() -> ActionResponse[list[Sponsor]]:
        """Active sponsors by priority (ascending), newest first within a priority."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("sponsor_subscriptions")
                .select(SPONSOR_COLUMNS)
                .eq("status", SubscriptionStatus.ACTIVE.value)
                .order("priority_order")
                .order("created_at", desc=True)
                .execute()
            )
            return ActionResponse.ok([_to_sponsor(row) for row in response.data or []])

        except Exception as e:
            logger.error(f"Error fetching sponsors: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    @staticmethod
    def handle_webhook_event(event: dict[str, Any]) -> ActionResponse[str]:
        """
        Apply a verified Polar event.

        Returns:
            ActionResponse with a short description of what was done
        """
        event_type = event.get("type", "")
        data = event.get("data") or {}

        try:
            if event_type == "order.paid":
                return BillingService._on_order_paid(data)
            if event_type == "subscription.created":
                return BillingService._on_subscription_created(data)
            if event_type == "subscription.canceled":
                return BillingService._on_subscription_canceled(data)

        except Exception as e:
            logger.error(f"Error processing {event_type} webhook: {e}")
            return ActionResponse.fail(AppErrorCode.DATABASE_ERROR)

        logger.info(f"Webhook received: {event_type}")
        return ActionResponse.ok("ignored")

    @staticmethod
    def _find_or_create_user(email: str, name: str | None) -> dict[str, Any]:
        user = SupabaseClient.fetch_user_by_email(email, columns="id")
        if user is not None:
            return user

        prefix = email.split("@")[0]
        client = SupabaseClient.get_client()
        response = client.table("users").insert({
            "email": email,
            "name": name or prefix,
            "username": prefix,
        }).execute()
        logger.info(f"Created user for sponsor: {email}")
        return response.data[0]

    @staticmethod
    def _on_order_paid(order: dict[str, Any], now: datetime | None = None) -> ActionResponse[str]:
        customer = order.get("customer") or {}
        email = customer.get("email")
        if not email:
            return ActionResponse.fail(AppErrorCode.VALIDATION_ERROR, "order has no customer email")

        metadata = order.get("metadata") or {}
        plan_type = plan_type_from_metadata(metadata.get("planType"))
        interval, days, badge = PLAN_BILLING[plan_type]
        now = now or datetime.now(timezone.utc)

        user = BillingService._find_or_create_user(email, customer.get("name"))

        row = {
            "user_id": user["id"],
            "startup_id": metadata.get("startupId") or None,
            "polar_customer_id": customer.get("id"),
            "polar_order_id": order.get("id"),
            "plan_type": plan_type.value,
            "status": SubscriptionStatus.ACTIVE.value,
            "amount": order.get("total_amount", order.get("amount", 0)) or 0,
            "currency": (order.get("currency") or "USD").upper(),
            "billing_interval": interval,
            "next_billing_date": (now + timedelta(days=days)).isoformat() if days else None,
            "is_featured": True,
            "priority_order": 0,
            "custom_badge": badge,
        }

        client = SupabaseClient.get_client()
        response = client.table("sponsor_subscriptions").insert(row).execute()
        logger.info(f"Sponsor subscription created: {response.data[0]['id']} ({plan_type.value})")
        return ActionResponse.ok("subscription_created")

    @staticmethod
    def _on_subscription_created(subscription: dict[str, Any]) -> ActionResponse[str]:
        customer = subscription.get("customer") or {}
        user = SupabaseClient.fetch_user_by_email(customer.get("email", ""), columns="id")
        if user is None:
            logger.warning(f"Subscription {subscription.get('id')} for unknown customer")
            return ActionResponse.ok("ignored")

        client = SupabaseClient.get_client()
        (
            client.table("sponsor_subscriptions")
            .update({
                "polar_subscription_id": subscription.get("id"),
                "status": SubscriptionStatus.ACTIVE.value,
            })
            .eq("user_id", user["id"])
            .eq("polar_customer_id", customer.get("id"))
            .execute()
        )
        return ActionResponse.ok("subscription_linked")

    @staticmethod
    def _on_subscription_canceled(subscription: dict[str, Any]) -> ActionResponse[str]:
        client = SupabaseClient.get_client()
        (
            client.table("sponsor_subscriptions")
            .update({"status": SubscriptionStatus.CANCELLED.value})
            .eq("polar_subscription_id", subscription.get("id"))
            .execute()
        )
        logger.info(f"Sponsor subscription cancelled: {subscription.get('id')}")
        return ActionResponse.ok("subscription_cancelled")
