"""
app/api/suppliers.py

Purpose: Supplier endpoints (business-scoped, bearer token required)
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_business
from app.schemas.supplier import SupplierCreate, SupplierUpdate
from app.schemas.response import MessageResponse
from app.services import supplier_service

router = APIRouter(prefix="/suppliers")


@router.post("", status_code=201)
async def create_supplier(
    payload: SupplierCreate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    supplier = await supplier_service.create_supplier(business, payload)
    return {"success": True, "message": "Supplier created successfully", "data": supplier}


@router.get("")
async def list_suppliers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    supplier_type: Optional[str] = Query(None, alias="supplierType"),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return await supplier_service.list_suppliers(business, page, limit, search, supplier_type)


@router.get("/stats")
async def supplier_stats(business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "data": await supplier_service.supplier_stats(business)}


@router.get("/{supplier_id}")
async def get_supplier(supplier_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "data": await supplier_service.get_supplier(business, supplier_id)}


@router.put("/{supplier_id}")
async def update_supplier(
    supplier_id: str,
    payload: SupplierUpdate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    supplier = await supplier_service.update_supplier(business, supplier_id, payload)
    return {"success": True, "message": "Supplier updated successfully", "data": supplier}


@router.delete("/{supplier_id}", response_model=MessageResponse)
async def delete_supplier(supplier_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    await supplier_service.delete_supplier(business, supplier_id)
    return MessageResponse(message="Supplier deleted successfully")
