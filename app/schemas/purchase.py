"""
app/schemas/purchase.py

Purpose: Purchase bill request/response models

- Line items mirror invoice items plus a per-line ITC flag
- ITC amounts are derived, never accepted from the client
"""

from datetime import date, datetime
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.invoice import InvoiceItemIn, InvoiceItemOut, PartySnapshot


PurchaseType = Literal["goods", "services", "capital_goods", "import"]
ItcClaimType = Literal["full", "partial", "none"]


class PurchaseItemIn(InvoiceItemIn):
    is_itc_eligible: bool = True


class PurchaseCreate(CamelModel):
    supplier_id: str
    supplier_invoice_number: str = Field(..., min_length=1)
    supplier_invoice_date: date
    purchase_type: PurchaseType = "goods"
    reverse_charge: bool = False
    is_itc_eligible: bool = True
    place_of_supply: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseItemIn] = Field(..., min_length=1)


class PurchaseUpdate(CamelModel):
    not_nullable: ClassVar[Tuple[str, ...]] = ("is_paid", "is_itc_eligible")

    notes: Optional[str] = None
    is_paid: Optional[bool] = None
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    is_itc_eligible: Optional[bool] = None
    itc_claim_type: Optional[ItcClaimType] = None


class PurchaseItemOut(InvoiceItemOut):
    is_itc_eligible: bool = True
    itc_amount: float = 0


class PurchaseOut(CamelModel):
    id: str
    business_id: str
    supplier_id: str
    supplier_invoice_number: str
    supplier_invoice_date: datetime
    purchase_type: str
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
    is_itc_eligible: bool = True
    itc_claim_type: Optional[str] = None
    itc_amount: float = 0
    is_paid: bool = False
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    filed_in_gstr2: bool = False
    supplier: Optional[PartySnapshot] = None
    items: List[PurchaseItemOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
