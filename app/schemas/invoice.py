"""
app/schemas/invoice.py

Purpose: Sales invoice request/response models

- Line items carry quantity, price, discount, GST and cess rates
- Totals and the tax split are always computed server-side
"""

from datetime import date, datetime
from typing import ClassVar, List, Optional, Tuple

from pydantic import Field, field_validator

from app.schemas.base import CamelModel
from utils.validation_utils import validate_email, validate_gst_rate


class InvoiceItemIn(CamelModel):
    item_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    sac_code: Optional[str] = None
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit: str = "NOS"
    unit_price: float = Field(..., ge=0, allow_inf_nan=False)
    discount_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    gst_rate: float = Field(..., allow_inf_nan=False)
    cess_rate: float = Field(default=0, ge=0, allow_inf_nan=False)

    @field_validator("gst_rate")
    @classmethod
    def check_rate(cls, v: float) -> float:
        if not validate_gst_rate(v):
            raise ValueError("GST rate must be one of 0, 0.25, 3, 5, 18, 40")
        return v


class InvoiceCreate(CamelModel):
    customer_id: str
    invoice_date: date
    due_date: Optional[date] = None
    place_of_supply: Optional[str] = None
    reverse_charge: bool = False
    discount_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    items: List[InvoiceItemIn] = Field(..., min_length=1)


class InvoiceUpdate(CamelModel):
    not_nullable: ClassVar[Tuple[str, ...]] = ("invoice_date", "reverse_charge", "discount_amount", "items")

    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    place_of_supply: Optional[str] = None
    reverse_charge: Optional[bool] = None
    discount_amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    items: Optional[List[InvoiceItemIn]] = Field(default=None, min_length=1)


class PartySnapshot(CamelModel):
    """Customer or supplier details frozen onto the document at creation."""
    id: str
    name: str
    gstin: Optional[str] = None
    party_type: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    billing_address: Optional[str] = None
    city: Optional[str] = None


class InvoiceItemOut(CamelModel):
    item_name: str
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    sac_code: Optional[str] = None
    quantity: float
    unit: Optional[str] = None
    unit_price: float
    discount_amount: float = 0
    subtotal: float
    taxable_amount: float
    gst_rate: float
    cgst_rate: float = 0
    sgst_rate: float = 0
    igst_rate: float = 0
    cess_rate: float = 0
    cgst_amount: float = 0
    sgst_amount: float = 0
    igst_amount: float = 0
    cess_amount: float = 0
    total_tax_amount: float = 0
    total_amount: float = 0


class InvoiceOut(CamelModel):
    id: str
    business_id: str
    customer_id: str
    invoice_number: str
    invoice_date: datetime
    due_date: Optional[datetime] = None
    invoice_type: str
    seller_state_code: Optional[str] = None
    buyer_state_code: Optional[str] = None
    place_of_supply: Optional[str] = None
    reverse_charge: bool = False
    subtotal: float
    discount_amount: float = 0
    taxable_amount: float
    cgst_amount: float = 0
    sgst_amount: float = 0
    igst_amount: float = 0
    cess_amount: float = 0
    total_tax_amount: float = 0
    total_amount: float
    round_off_amount: float = 0
    final_amount: float
    tax_type: Optional[str] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    filed_in_gstr1: bool = False
    pdf_generated: bool = False
    pdf_generated_at: Optional[datetime] = None
    email_sent: bool = False
    email_sent_to: Optional[str] = None
    email_sent_at: Optional[datetime] = None
    customer: Optional[PartySnapshot] = None
    business: Optional[dict] = None
    items: List[InvoiceItemOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InvoiceEmailRequest(CamelModel):
    """Recipient defaults to the customer's email, subject to a standard line."""
    to: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=200)
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("to")
    @classmethod
    def check_recipient(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_email(v):
            raise ValueError("Invalid recipient email address")
        return v


class EmailCheckRequest(CamelModel):
    to: str

    @field_validator("to")
    @classmethod
    def check_recipient(cls, v: str) -> str:
        if not validate_email(v):
            raise ValueError("Invalid recipient email address")
        return v
