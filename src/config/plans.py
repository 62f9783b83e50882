# src/config/plans.py - v1
"""Subscription plans and the capabilities each one unlocks.

The scan policy only reads the ``web_search`` entitlement; the other limits
are enforced by the surrounding application (content creation, daily quota,
automatic takedowns).
"""

from __future__ import annotations

import math

from pydantic import BaseModel


class PlanLimits(BaseModel):
    """Per-plan quotas and entitlements."""

    protected_content: float
    scans_per_day: float
    auto_takedowns: bool
    web_search: bool


class Plan(BaseModel):
    """Subscription plan definition."""

    slug: str
    name: str
    monthly_price: int
    limits: PlanLimits


PLANS: dict[str, Plan] = {
    "free": Plan(
        slug="free",
        name="Free",
        monthly_price=0,
        limits=PlanLimits(
            protected_content=1, scans_per_day=10,
            auto_takedowns=False, web_search=False,
        ),
    ),
    "starter": Plan(
        slug="starter",
        name="Starter",
        monthly_price=5,
        limits=PlanLimits(
            protected_content=3, scans_per_day=50,
            auto_takedowns=False, web_search=True,
        ),
    ),
    "pro": Plan(
        slug="pro",
        name="Pro",
        monthly_price=15,
        limits=PlanLimits(
            protected_content=15, scans_per_day=500,
            auto_takedowns=True, web_search=True,
        ),
    ),
    "enterprise": Plan(
        slug="enterprise",
        name="Enterprise",
        monthly_price=39,
        limits=PlanLimits(
            protected_content=math.inf, scans_per_day=math.inf,
            auto_takedowns=True, web_search=True,
        ),
    ),
}

DEFAULT_PLAN = "free"


def get_plan(slug: str | None) -> Plan:
    """Return the plan for ``slug``; unknown or missing slugs map to free."""
    return PLANS.get((slug or "").lower(), PLANS[DEFAULT_PLAN])


def get_plan_limits(slug: str | None) -> PlanLimits:
    return get_plan(slug).limits


def has_web_search(slug: str | None) -> bool:
    """Whether the plan includes search-engine scanning."""
    return get_plan_limits(slug).web_search
