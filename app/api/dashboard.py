"""
app/api/dashboard.py

Purpose: Dashboard endpoints (business-scoped, bearer token required)
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_business
from app.services import dashboard_service
from utils.time_utils import current_month_year

router = APIRouter(prefix="/dashboard")


@router.get("/overview")
async def overview(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2017, le=2100),
    business: Dict[str, Any] = Depends(get_current_business),
):
    current_month, current_year = current_month_year()
    data = await dashboard_service.overview(business, month or current_month, year or current_year)
    return {"success": True, "message": "Dashboard overview retrieved successfully", "data": data}


@router.get("/top-customers")
async def top_customers(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2017, le=2100),
    limit: int = Query(10, ge=1, le=50),
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await dashboard_service.top_customers(business, month, year, limit)
    return {"success": True, "message": "Top customers retrieved successfully", "data": data}


@router.get("/top-suppliers")
async def top_suppliers(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2017, le=2100),
    limit: int = Query(10, ge=1, le=50),
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await dashboard_service.top_suppliers(business, month, year, limit)
    return {"success": True, "message": "Top suppliers retrieved successfully", "data": data}


@router.get("/revenue-trend")
async def revenue_trend(business: Dict[str, Any] = Depends(get_current_business)):
    data = await dashboard_service.revenue_trend(business)
    return {"success": True, "message": "Revenue trend retrieved successfully", "data": data}


@router.get("/deadlines")
async def deadlines(business: Dict[str, Any] = Depends(get_current_business)):
    data = await dashboard_service.deadlines(business)
    return {"success": True, "message": "GST deadlines retrieved successfully", "data": data}


@router.get("/quick-stats")
async def quick_stats(business: Dict[str, Any] = Depends(get_current_business)):
    data = await dashboard_service.quick_stats(business)
    return {"success": True, "message": "Quick stats retrieved successfully", "data": data}
