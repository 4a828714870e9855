# =============================================================================
# core/models/sponsor.py - Sponsorship Schemas
# =============================================================================
# Sponsor plans sold through Polar, the subscription rows created from
# Polar webhooks, and the display model for the sponsors sidebar.
#
# Usage:
#   from core.models.sponsor import get_sponsor_plan
#   plan = get_sponsor_plan("monthly")
#   product_id = plan.polar_product_id(production=settings.is_production)
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class PlanType(str, Enum):
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"
    LIFETIME = "LIFETIME"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    PAST_DUE = "PAST_DUE"
    EXPIRED = "EXPIRED"


class SponsorPlan(BaseModel):
    """A sponsor plan as shown on the pricing page."""
    id: str
    name: str
    description: str
    price: int = Field(..., description="Price in whole currency units")
    currency: str = "USD"
    type: str
    trial_days: int = 0
    features: list[str] = Field(default_factory=list)
    color: str
    icon: str
    sandbox_product_id: str = Field(..., exclude=True)
    production_product_id: str = Field(..., exclude=True)

    def polar_product_id(self, production: bool) -> str:
        return self.production_product_id if production else self.sandbox_product_id


SPONSOR_PLANS: dict[str, SponsorPlan] = {
    "monthly": SponsorPlan(
        id="monthly",
        name="Startup Sponsor",
        description="Showcase your startup in our sidebar",
        price=9,
        type="monthly",
        features=[
            "Featured placement in sidebar",
            "Direct link to your startup",
            "Custom sponsor badge",
            "Cancel anytime",
        ],
        color="bg-blue-500",
        icon="Star",
        sandbox_product_id="c053485a-5989-4dfb-8ffe-878b70b67d99",
        production_product_id="d9fb9a87-a44e-493b-9be6-130eca83ae99",
    ),
    "lifetime": SponsorPlan(
        id="lifetime",
        name="Lifetime Sponsor",
        description="One-time payment, lifetime benefits",
        price=199,
        type="lifetime",
        features=[
            "Featured placement in sidebar",
            "Priority in sponsor grid",
            "Custom sponsor badge",
            "Lifetime access",
            "Direct link to your startup",
        ],
        color="bg-primary",
        icon="Crown",
        sandbox_product_id="95c62088-bd93-4cb3-9bb9-4556240d0273",
        production_product_id="4207dcfa-3828-4c18-b270-a6acbf054d00",
    ),
    "annual": SponsorPlan(
        id="annual",
        name="Annual Sponsor",
        description="Yearly recurring with 2 months free",
        price=90,
        type="annual",
        features=[
            "Featured placement in sidebar",
            "Priority in sponsor grid",
            "Custom sponsor badge",
            "2 months free vs monthly",
            "Direct link to your startup",
        ],
        color="bg-indigo-500",
        icon="Zap",
        sandbox_product_id="00ff744a-21b8-42df-af78-d1f8eb73f838",
        production_product_id="c77e5efc-b97b-49c1-a8fe-36270e3c9cd4",
    ),
}


def get_sponsor_plan(plan_id: str) -> SponsorPlan | None:
    return SPONSOR_PLANS.get(plan_id)


def get_all_sponsor_plans() -> list[SponsorPlan]:
    return list(SPONSOR_PLANS.values())


class CheckoutRequest(BaseModel):
    """
    Request body for starting a sponsor checkout.

    Example:
        {"plan_id": "monthly", "customer_email": "ada@acme.dev", "startup_id": "..."}
    """
    plan_id: str
    customer_email: str | None = None
    startup_id: str | None = None


class CheckoutSession(BaseModel):
    id: str
    url: str


class PortalSession(BaseModel):
    url: str


class Sponsor(BaseModel):
    """An active sponsor as shown in the sidebar."""
    id: str
    name: str
    logo: str = Field(..., description="Two-letter initials")
    logo_url: str | None = None
    tier: str
    url: str = "#"
    plan_type: PlanType
    custom_badge: str | None = None

    startup_id: str | None = None
    startup_slug: str | None = None
    startup_name: str | None = None
    startup_website: str | None = None
    startup_logo: str | None = None
    startup_tagline: str | None = None
    created_at: datetime | None = None


class SponsorList(BaseModel):
    sponsors: list[Sponsor] = Field(default_factory=list)
    count: int = 0
