"""
app/api/subscription.py

Purpose: Subscription endpoints (business-scoped, bearer token required)
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends

from app.api.deps import get_current_business
from app.services import subscription_service

router = APIRouter(prefix="/subscription")


@router.get("/status")
async def status(business: Dict[str, Any] = Depends(get_current_business)):
    data = await subscription_service.subscription_status(business)
    return {"success": True, "message": "Subscription status retrieved successfully", "data": data}


@router.get("/plans")
async def plans():
    return {"success": True, "message": "Plans retrieved successfully", "data": subscription_service.list_plans()}


@router.get("/recommendation")
async def recommendation(business: Dict[str, Any] = Depends(get_current_business)):
    data = await subscription_service.recommendation(business)
    return {"success": True, "message": "Plan recommendation retrieved successfully", "data": data}


@router.post("/start-trial")
async def start_trial(business: Dict[str, Any] = Depends(get_current_business)):
    data = await subscription_service.start_trial(business)
    return {"success": True, "message": f"Trial started successfully. Valid for {data['trialDays']} days.", "data": data}


@router.get("/check-feature/{feature}")
async def check_feature(feature: str, business: Dict[str, Any] = Depends(get_current_business)):
    data = subscription_service.has_feature(business, feature)
    return {"success": True, "data": data}


@router.get("/check-limit/invoices")
async def check_invoice_limit(business: Dict[str, Any] = Depends(get_current_business)):
    data = await subscription_service.invoice_limit_status(business)
    return {"success": True, "data": data}
