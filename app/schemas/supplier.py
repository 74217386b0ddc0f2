"""
app/schemas/supplier.py

Purpose: Supplier request/response models
"""

from datetime import datetime
from typing import ClassVar, Literal, Optional, Tuple

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


SupplierType = Literal["registered", "unregistered", "composition"]


def _upper_or_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    return v or None


class SupplierCreate(CamelModel):
    supplier_name: str = Field(..., min_length=1, max_length=200)
    supplier_type: SupplierType = "registered"
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = "India"
    payment_terms: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("gstin", "pan")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        return _upper_or_none(v)


class SupplierUpdate(CamelModel):
    not_nullable: ClassVar[Tuple[str, ...]] = (
        "supplier_name", "supplier_type", "billing_address", "city", "state", "pincode", "country",
    )

    supplier_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    supplier_type: Optional[SupplierType] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    payment_terms: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("gstin", "pan")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        return _upper_or_none(v)


class SupplierOut(CamelModel):
    id: str
    business_id: str
    supplier_name: str
    supplier_type: str
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    payment_terms: Optional[int] = None
    notes: Optional[str] = None
    is_active: bool = True
    purchase_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
