"""
app/schemas/customer.py

Purpose: Customer request/response models
"""

from datetime import datetime
from typing import ClassVar, Literal, Optional, Tuple

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


CustomerType = Literal["b2b", "b2c", "export", "sez"]


class CustomerCreate(CamelModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_type: CustomerType = "b2b"
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: str = Field(..., min_length=1)
    shipping_address: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = "India"
    credit_limit: Optional[float] = Field(default=None, ge=0)
    credit_days: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("gstin", "pan")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        return v or None


class CustomerUpdate(CamelModel):
    not_nullable: ClassVar[Tuple[str, ...]] = (
        "customer_name", "customer_type", "billing_address", "city", "state", "pincode", "country",
    )

    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    customer_type: Optional[CustomerType] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[str] = None
    shipping_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    credit_limit: Optional[float] = Field(default=None, ge=0)
    credit_days: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("gstin", "pan")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        return v or None


class CustomerOut(CamelModel):
    id: str
    business_id: str
    customer_name: str
    customer_type: str
    gstin: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[str] = None
    shipping_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    credit_limit: Optional[float] = None
    credit_days: Optional[int] = None
    notes: Optional[str] = None
    is_active: bool = True
    invoice_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
