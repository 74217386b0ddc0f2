"""
app/api/customers.py

Purpose: Customer endpoints (business-scoped, bearer token required)
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_business
from app.schemas.customer import CustomerCreate, CustomerUpdate
from app.schemas.response import MessageResponse
from app.services import customer_service

router = APIRouter(prefix="/customers")


@router.post("", status_code=201)
async def create_customer(
    payload: CustomerCreate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    customer = await customer_service.create_customer(business, payload)
    return {"success": True, "message": "Customer created successfully", "customer": customer}


@router.get("")
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    customer_type: Optional[str] = Query(None, alias="customerType"),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return await customer_service.list_customers(business, page, limit, search, customer_type)


@router.get("/stats")
async def customer_stats(business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "stats": await customer_service.customer_stats(business)}


@router.get("/{customer_id}")
async def get_customer(customer_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "customer": await customer_service.get_customer(business, customer_id)}


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    customer = await customer_service.update_customer(business, customer_id, payload)
    return {"success": True, "message": "Customer updated successfully", "customer": customer}


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(customer_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    await customer_service.delete_customer(business, customer_id)
    return MessageResponse(message="Customer deleted successfully")
