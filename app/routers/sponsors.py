# =============================================================================
# app/routers/sponsors.py - Sponsorship Endpoints
# =============================================================================
# Mounted at the API root (not under /sponsors) because Polar is configured
# with /checkout, /portal and /webhook/polar paths.
#
# - GET  /sponsors                 active sponsors for the sidebar
# - GET  /sponsors/plans           available sponsor plans
# - GET  /sponsors/plans/{id}      a single plan
# - POST /checkout                 start a Polar checkout
# - GET  /portal                   Polar customer portal for the signed-in user
# - POST /webhook/polar            Polar webhook receiver (signature verified)
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Request

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import unwrap
from app.exceptions import NotFoundError
from core.models.sponsor import (
    CheckoutRequest,
    CheckoutSession,
    PortalSession,
    SponsorList,
    SponsorPlan,
    get_all_sponsor_plans,
    get_sponsor_plan,
)
from core.services.billing_service import BillingService, verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Sponsors & Plans
# =============================================================================

@router.get("/sponsors", response_model=SponsorList)
async def list_sponsors():
    sponsors = unwrap(BillingService.get_active_sponsors(), "Sponsors")
    return SponsorList(sponsors=sponsors, count=len(sponsors))


@router.get("/sponsors/plans", response_model=list[SponsorPlan])
async def list_plans():
    return get_all_sponsor_plans()


@router.get("/sponsors/plans/{plan_id}", response_model=SponsorPlan)
async def get_plan(plan_id: str):
    plan = get_sponsor_plan(plan_id)
    if plan is None:
        raise NotFoundError("Plan", plan_id)
    return plan


# =============================================================================
# Polar
# =============================================================================

@router.post("/checkout", response_model=CheckoutSession)
async def create_checkout(
    request: CheckoutRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Start a sponsor checkout.

    Anonymous visitors can sponsor too; signed-in users have their id and
    email attached so the subscription links to their account.
    """
    result = BillingService.create_checkout(
        plan_id=request.plan_id,
        customer_email=request.customer_email or (user.email if user else None),
        startup_id=request.startup_id,
        user_id=str(user.id) if user else None,
    )
    return unwrap(result, "Plan", request.plan_id)


@router.get("/portal", response_model=PortalSession)
async def customer_portal(user: AuthUser = Depends(get_current_user)):
    """Portal for managing your sponsorship. 404 if you never sponsored."""
    customer_id = BillingService.get_customer_id_for_user(str(user.id))
    if not customer_id:
        raise NotFoundError("Sponsor subscription")
    return unwrap(BillingService.create_customer_portal(customer_id), "Polar")


@router.post("/webhook/polar")
async def polar_webhook(request: Request) -> dict:
    """
    Receive a Polar event.

    The raw body is verified before parsing; bad signatures get a 403.
    """
    body = await request.body()
    event = verify_webhook(body, request.headers)

    outcome = unwrap(BillingService.handle_webhook_event(event), "Webhook")
    logger.info(f"Polar webhook {event.get('type')}: {outcome}")
    return {"received": True}
