"""
app/services/subscription_service.py

Purpose: Subscription plans, usage and limits

- Plan catalogue and per-plan feature flags
- Current usage against the plan's limits
- Invoice creation gate (expired paid plans, monthly limit)
- Trial start and plan recommendation from usage
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from pydantic.alias_generators import to_camel, to_snake

from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from app.db.mongo import (
    get_businesses_collection,
    get_customers_collection,
    get_invoices_collection,
    get_purchases_collection,
    get_suppliers_collection,
)
from utils.constants import SUBSCRIPTION_PLANS, TRIAL_DAYS
from utils.time_utils import month_bounds

logger = get_logger(__name__)

DEFAULT_PLAN = "trial"


def get_plan(plan_id: Optional[str]) -> Dict[str, Any]:
    """Unknown or missing plan ids fall back to the trial plan."""
    return SUBSCRIPTION_PLANS.get(plan_id or DEFAULT_PLAN, SUBSCRIPTION_PLANS[DEFAULT_PLAN])


def plan_id_of(business: Dict[str, Any]) -> str:
    plan_id = business.get("subscription_plan")
    return plan_id if plan_id in SUBSCRIPTION_PLANS else DEFAULT_PLAN


def check_limit(plan_id: str, limit_key: str, current: int) -> Dict[str, Any]:
    limit = get_plan(plan_id)["limits"].get(limit_key)
    if limit is None:
        return {"exceeded": False, "limit": None, "remaining": None, "unlimited": True, "current": current}
    return {
        "exceeded": current >= limit,
        "limit": limit,
        "remaining": max(0, limit - current),
        "unlimited": False,
        "current": current,
    }


def recommend_plan(invoices_per_month: int, purchases_per_month: int) -> str:
    busiest = max(invoices_per_month, purchases_per_month)
    if busiest > 500:
        return "enterprise"
    if busiest > 100:
        return "professional"
    if busiest > 10:
        return "starter"
    return "trial"


def is_expired(business: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    valid_until = business.get("subscription_valid_until")
    return bool(valid_until and valid_until < (now or datetime.utcnow()))


def plan_summary(plan_id: str) -> Dict[str, Any]:
    plan = SUBSCRIPTION_PLANS[plan_id]
    summary = {
        "id": plan_id,
        "name": plan["name"],
        "price": plan["price"],
        "annualPrice": plan["annual_price"],
        "currency": "INR",
        "billingCycle": plan["billing_cycle"],
        "description": plan["description"],
        "recommended": plan["recommended"],
        "limits": {to_camel(key): value for key, value in plan["limits"].items()},
        "features": {to_camel(key): value for key, value in plan["features"].items()},
    }
    if "trial_days" in plan:
        summary["trialDays"] = plan["trial_days"]
    return summary


def list_plans() -> list:
    return [plan_summary(plan_id) for plan_id in SUBSCRIPTION_PLANS]


async def _usage(business_id: str, now: datetime) -> Dict[str, int]:
    start, end = month_bounds(now.year, now.month)
    this_month = {"business_id": business_id, "created_at": {"$gte": start, "$lt": end}}
    active = {"business_id": business_id, "is_active": True}
    return {
        "invoices_per_month": await get_invoices_collection().count_documents(this_month),
        "purchases_per_month": await get_purchases_collection().count_documents(this_month),
        "customers_total": await get_customers_collection().count_documents(active),
        "suppliers_total": await get_suppliers_collection().count_documents(active),
    }


async def subscription_status(business: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    plan_id = plan_id_of(business)
    plan = get_plan(plan_id)
    expired = is_expired(business, now)
    status = business.get("subscription_status", "inactive")

    usage = await _usage(business["id"], now)
    return {
        "subscription": {
            "planId": plan_id,
            "planName": plan["name"],
            "status": status,
            "validUntil": business.get("subscription_valid_until"),
            "isExpired": expired,
            "isActive": status in ("trial", "active") and not expired,
        },
        "usage": {
            to_camel(key): check_limit(plan_id, key, count) for key, count in usage.items()
        },
        "features": {to_camel(key): value for key, value in plan["features"].items()},
    }


async def count_invoices_this_month(business_id: str, now: datetime) -> int:
    """
    Counts invoices created this calendar month, deleted ones included, so
    deleting an invoice does not hand back quota.
    """
    start, end = month_bounds(now.year, now.month)
    return await get_invoices_collection().count_documents(
        {"business_id": business_id, "created_at": {"$gte": start, "$lt": end}}
    )


async def invoice_limit_status(business: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Whether the business may raise another invoice right now.

    An expired paid subscription blocks creation outright. A lapsed trial
    keeps working within the trial plan's own monthly limit.
    """
    now = now or datetime.utcnow()
    plan_id = plan_id_of(business)

    if is_expired(business, now) and business.get("subscription_status") != "trial":
        return {
            "allowed": False,
            "reason": "subscription_expired",
            "message": "Your subscription has expired. Please renew to continue.",
        }

    used = await count_invoices_this_month(business["id"], now)
    check = check_limit(plan_id, "invoices_per_month", used)
    if check["exceeded"]:
        return {
            "allowed": False,
            "reason": "limit_exceeded",
            "message": f"Monthly invoice limit reached for the {plan_id} plan ({check['limit']} invoices)",
            "limit": check["limit"],
            "current": used,
            "remaining": 0,
        }
    return {"allowed": True, "limit": check["limit"], "current": used, "remaining": check["remaining"]}


def has_feature(business: Dict[str, Any], feature: str) -> Dict[str, Any]:
    """
    Accepts camelCase or snake_case feature names.

    Raises:
        ResourceNotFoundError: no plan defines the feature
    """
    key = to_snake(feature)
    features = get_plan(plan_id_of(business))["features"]
    if key not in features:
        raise ResourceNotFoundError(f"Unknown feature: {feature}")
    return {"feature": to_camel(key), "hasAccess": features[key], "planId": plan_id_of(business)}


async def recommendation(business: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    usage = await _usage(business["id"], now or datetime.utcnow())
    recommended = recommend_plan(usage["invoices_per_month"], usage["purchases_per_month"])
    current = plan_id_of(business)
    return {
        "currentPlan": current,
        "recommendedPlan": recommended,
        "shouldUpgrade": list(SUBSCRIPTION_PLANS).index(recommended) > list(SUBSCRIPTION_PLANS).index(current),
        "usage": {to_camel(key): value for key, value in usage.items()},
        "plan": plan_summary(recommended),
    }


async def start_trial(business: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Raises:
        ConflictError: a trial was already started or a plan is active
    """
    if business.get("subscription_status", "inactive") != "inactive":
        raise ConflictError("Trial already started or subscription is active")

    now = now or datetime.utcnow()
    valid_until = now + timedelta(days=TRIAL_DAYS)
    await get_businesses_collection().update_one(
        {"id": business["id"]},
        {"$set": {
            "subscription_plan": DEFAULT_PLAN,
            "subscription_status": "trial",
            "subscription_valid_until": valid_until,
            "updated_at": now,
        }},
    )

    with LogContext(business_id=business["id"]):
        logger.info(f"Trial started, valid until {valid_until.date()}")

    return {
        "planId": DEFAULT_PLAN,
        "status": "trial",
        "validUntil": valid_until,
        "trialDays": TRIAL_DAYS,
    }
