"""
app/api/purchases.py

Purpose: Purchase and ITC endpoints (business-scoped, bearer token required)
"""

from datetime import date
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Path, Query

from app.api.deps import get_current_business
from app.schemas.purchase import PurchaseCreate, PurchaseUpdate
from app.schemas.response import MessageResponse
from app.services import purchase_service

router = APIRouter(prefix="/purchases")


@router.post("", status_code=201)
async def create_purchase(
    payload: PurchaseCreate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    purchase = await purchase_service.create_purchase(business, payload)
    return {"success": True, "message": "Purchase created successfully", "data": purchase}


@router.get("")
async def list_purchases(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    purchase_type: Optional[str] = Query(None, alias="purchaseType"),
    is_itc_eligible: Optional[bool] = Query(None, alias="isItcEligible"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return await purchase_service.list_purchases(
        business, page, limit, supplier_id, purchase_type, is_itc_eligible, start_date, end_date
    )


@router.get("/stats")
async def purchase_stats(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2017, le=2100),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    business: Dict[str, Any] = Depends(get_current_business),
):
    stats = await purchase_service.purchase_stats(business, month, year, start_date, end_date)
    return {"success": True, "data": stats}


@router.get("/itc/{year}/{month}")
async def itc_for_period(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return {"success": True, "data": await purchase_service.itc_for_period(business, month, year)}


@router.get("/{purchase_id}")
async def get_purchase(purchase_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "data": await purchase_service.get_purchase(business, purchase_id)}


@router.put("/{purchase_id}")
async def update_purchase(
    purchase_id: str,
    payload: PurchaseUpdate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    purchase = await purchase_service.update_purchase(business, purchase_id, payload)
    return {"success": True, "message": "Purchase updated successfully", "data": purchase}


@router.delete("/{purchase_id}", response_model=MessageResponse)
async def delete_purchase(purchase_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    await purchase_service.delete_purchase(business, purchase_id)
    return MessageResponse(message="Purchase deleted successfully")
