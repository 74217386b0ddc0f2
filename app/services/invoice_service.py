"""
app/services/invoice_service.py

Purpose: Sales invoices

- Creation with GST computed from seller/buyer states
- INV-YYYYMM-NNNN numbering per business and month
- Monthly invoice limits per subscription plan
- Listing, update and soft delete (locked once filed in GSTR-1)
- Period statistics
"""

import uuid
from datetime import datetime, date
from typing import Dict, Any, Optional, List

from pymongo.errors import DuplicateKeyError

from app.core.exceptions import (
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_customers_collection, get_invoices_collection, NO_OBJECT_ID
from app.schemas.invoice import InvoiceCreate, InvoiceUpdate, InvoiceOut
from app.services.common import paginate, pagination, search_filter, check_item_codes
from app.services import subscription_service
from utils.constants import B2C_LARGE_THRESHOLD, INVOICE_TYPES
from utils.gst_utils import calculate_invoice_gst, round_money, state_code_for_name
from utils.invoice_utils import month_key, format_invoice_number
from utils.time_utils import month_bounds, to_datetime, end_of_day

logger = get_logger(__name__)

NUMBERING_ATTEMPTS = 5

BUSINESS_FIELDS_ON_INVOICE = (
    "business_name", "gstin", "pan", "address_line1", "address_line2",
    "city", "state", "state_code", "pincode", "phone", "email",
)


def classify_invoice_type(customer_type: str, total_amount: float) -> str:
    """
    B2C invoices split on the ₹2.5 lakh GSTR-1 threshold; the rest follow
    the customer type.
    """
    if customer_type == "b2c":
        return "b2c_large" if total_amount > B2C_LARGE_THRESHOLD else "b2c_small"
    return customer_type


def buyer_state_for(customer: Dict[str, Any], business: Dict[str, Any], place_of_supply: Optional[str] = None) -> str:
    return (
        place_of_supply
        or customer.get("state_code")
        or state_code_for_name(customer.get("state"))
        or business["state_code"]
    )


def customer_snapshot(customer: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": customer["id"],
        "name": customer["customer_name"],
        "gstin": customer.get("gstin"),
        "party_type": customer["customer_type"],
        "state": customer.get("state"),
        "state_code": customer.get("state_code"),
        "billing_address": customer.get("billing_address"),
        "city": customer.get("city"),
    }


def compute_totals(
    items: List[Dict[str, Any]],
    business: Dict[str, Any],
    customer_type: str,
    buyer_state_code: str,
    discount_amount: float = 0,
) -> Dict[str, Any]:
    """
    Runs the GST calculator and settles the invoice type.

    Raises:
        ValidationError: calculator rejected an item or the discount
    """
    check_item_codes(items)
    # B2C lines are taxed the same whether small or large
    calc_type = "b2b" if customer_type == "b2c" else customer_type
    try:
        calc = calculate_invoice_gst(
            items=items,
            seller_state_code=business["state_code"],
            buyer_state_code=buyer_state_code,
            invoice_type=calc_type,
            discount_amount=discount_amount,
        )
    except ValueError as e:
        raise ValidationError(str(e))

    calc["invoice_type"] = classify_invoice_type(customer_type, calc["total_amount"])
    return calc


async def check_invoice_limit(business: Dict[str, Any], now: Optional[datetime] = None) -> None:
    """
    Raises:
        PermissionDeniedError: the subscription has expired or this month's invoices are used up
    """
    gate = await subscription_service.invoice_limit_status(business, now)
    if gate["allowed"]:
        return
    if gate["reason"] == "subscription_expired":
        raise PermissionDeniedError(
            gate["message"], code="SUBSCRIPTION_EXPIRED", details={"action": "renew_plan"}
        )
    raise PermissionDeniedError(
        gate["message"],
        code="INVOICE_LIMIT_EXCEEDED",
        details={"limit": gate["limit"], "current": gate["current"], "action": "upgrade_plan"},
    )


async def _next_sequence(business_id: str, invoice_month: str) -> int:
    cursor = (
        get_invoices_collection()
        .find({"business_id": business_id, "invoice_month": invoice_month}, NO_OBJECT_ID)
        .sort("invoice_sequence", -1)
        .limit(1)
    )
    last = await cursor.to_list(length=1)
    return last[0]["invoice_sequence"] + 1 if last else 1


async def _insert_with_number(invoice: Dict[str, Any], invoice_date: date) -> None:
    """
    Allocates the next number and inserts; a concurrent insert that wins the
    same number trips the unique index and the allocation is retried.
    """
    invoices = get_invoices_collection()
    invoice_month = month_key(invoice_date.year, invoice_date.month)

    for attempt in range(1, NUMBERING_ATTEMPTS + 1):
        sequence = await _next_sequence(invoice["business_id"], invoice_month)
        invoice["invoice_month"] = invoice_month
        invoice["invoice_sequence"] = sequence
        invoice["invoice_number"] = format_invoice_number(invoice_date.year, invoice_date.month, sequence)
        try:
            await invoices.insert_one(dict(invoice))
            return
        except DuplicateKeyError:
            logger.warning(
                f"Invoice number {invoice['invoice_number']} taken, retrying ({attempt}/{NUMBERING_ATTEMPTS})"
            )

    raise ValidationError("Could not allocate an invoice number, please retry")


async def _find_invoice(business_id: str, invoice_id: str) -> Dict[str, Any]:
    invoice = await get_invoices_collection().find_one(
        {"id": invoice_id, "business_id": business_id, "is_active": True}, NO_OBJECT_ID
    )
    if not invoice:
        raise ResourceNotFoundError("Invoice not found")
    return invoice


async def create_invoice(business: Dict[str, Any], payload: InvoiceCreate) -> Dict[str, Any]:
    """
    Raises:
        ResourceNotFoundError: customer missing or belongs to another business
        PermissionDeniedError: plan limit reached
        ValidationError: bad line items
    """
    customer = await get_customers_collection().find_one(
        {"id": payload.customer_id, "business_id": business["id"], "is_active": True}, NO_OBJECT_ID
    )
    if not customer:
        raise ResourceNotFoundError("Customer not found")

    await check_invoice_limit(business)

    buyer_state_code = buyer_state_for(customer, business, payload.place_of_supply)
    items = [item.model_dump() for item in payload.items]
    calc = compute_totals(items, business, customer["customer_type"], buyer_state_code, payload.discount_amount)

    now = datetime.utcnow()
    invoice = {
        "id": str(uuid.uuid4()),
        "business_id": business["id"],
        "customer_id": customer["id"],
        "invoice_date": to_datetime(payload.invoice_date),
        "due_date": to_datetime(payload.due_date),
        "seller_state_code": business["state_code"],
        "buyer_state_code": buyer_state_code,
        "place_of_supply": buyer_state_code,
        "reverse_charge": payload.reverse_charge,
        "notes": payload.notes,
        "terms_and_conditions": payload.terms_and_conditions,
        "filed_in_gstr1": False,
        "customer": customer_snapshot(customer),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
        **calc,
    }

    with LogContext(business_id=business["id"]):
        await _insert_with_number(invoice, payload.invoice_date)
        logger.info(
            f"🧾 Invoice {invoice['invoice_number']} created for {customer['customer_name']}: "
            f"{invoice['invoice_type']} ₹{invoice['total_amount']}"
        )

    return InvoiceOut.from_doc(invoice)


async def list_invoices(
    business: Dict[str, Any],
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    invoice_type: Optional[str] = None,
    customer_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    filed_in_gstr1: Optional[bool] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business["id"], "is_active": True}
    if invoice_type:
        if invoice_type not in INVOICE_TYPES:
            raise ValidationError(f"Invoice type must be one of {', '.join(INVOICE_TYPES)}")
        query["invoice_type"] = invoice_type
    if customer_id:
        query["customer_id"] = customer_id
    if filed_in_gstr1 is not None:
        query["filed_in_gstr1"] = filed_in_gstr1
    if start_date or end_date:
        date_range = {}
        if start_date:
            date_range["$gte"] = to_datetime(start_date)
        if end_date:
            date_range["$lt"] = end_of_day(end_date)
        query["invoice_date"] = date_range
    if search:
        query.update(search_filter(search, ("invoice_number", "customer.name")))

    invoices, total = await paginate(
        get_invoices_collection(), query, page, limit,
        sort=(("invoice_date", -1), ("invoice_sequence", -1)),
    )

    return {
        "success": True,
        "invoices": [InvoiceOut.from_doc(i) for i in invoices],
        "pagination": pagination(total, page, limit),
    }


async def get_invoice(business: Dict[str, Any], invoice_id: str) -> Dict[str, Any]:
    invoice = await _find_invoice(business["id"], invoice_id)
    invoice["business"] = {field: business.get(field) for field in BUSINESS_FIELDS_ON_INVOICE}
    return InvoiceOut.from_doc(invoice)


async def update_invoice(business: Dict[str, Any], invoice_id: str, payload: InvoiceUpdate) -> Dict[str, Any]:
    """
    Editable until filed. New items, a new discount or a new place of supply
    recompute every total. Any edit marks a generated PDF as stale.

    Raises:
        ValidationError: invoice already filed in GSTR-1, or bad items
    """
    existing = await _find_invoice(business["id"], invoice_id)
    if existing.get("filed_in_gstr1"):
        raise ValidationError("Cannot update invoice that has been filed in GSTR-1")

    changes = payload.model_dump(exclude_unset=True, exclude={"items"})
    for field in ("invoice_date", "due_date"):
        if field in changes:
            changes[field] = to_datetime(changes[field])

    if payload.invoice_date and payload.invoice_date.strftime("%Y%m") != existing["invoice_month"]:
        raise ValidationError("Invoice date cannot move to a different month than its number")

    if payload.items is not None or "discount_amount" in changes or "place_of_supply" in changes:
        items = (
            [item.model_dump() for item in payload.items]
            if payload.items is not None
            else [_input_fields(item) for item in existing["items"]]
        )
        customer_type = existing["customer"]["party_type"]
        buyer_state_code = changes.get("place_of_supply") or existing["buyer_state_code"]
        calc = compute_totals(
            items, business, customer_type, buyer_state_code,
            changes.get("discount_amount", existing.get("discount_amount", 0)),
        )
        changes.update(calc)
        changes["buyer_state_code"] = buyer_state_code
        changes["place_of_supply"] = buyer_state_code

    if existing.get("pdf_generated"):
        # the stored PDF no longer matches; it must be generated again
        changes["pdf_generated"] = False

    changes["updated_at"] = datetime.utcnow()
    await get_invoices_collection().update_one({"id": invoice_id}, {"$set": changes})
    existing.update(changes)

    logger.info(f"Invoice updated: {existing['invoice_number']}")
    return InvoiceOut.from_doc(existing)


def _input_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    keys = (
        "item_name", "description", "hsn_code", "sac_code", "quantity",
        "unit", "unit_price", "discount_amount", "gst_rate", "cess_rate",
    )
    return {key: item.get(key) for key in keys}


async def delete_invoice(business: Dict[str, Any], invoice_id: str) -> None:
    invoice = await _find_invoice(business["id"], invoice_id)
    if invoice.get("filed_in_gstr1"):
        raise ValidationError("Cannot delete invoice that has been filed in GSTR-1")

    await get_invoices_collection().update_one(
        {"id": invoice_id},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}},
    )
    logger.info(f"Invoice deleted: {invoice['invoice_number']}")


async def invoice_stats(
    business: Dict[str, Any],
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business["id"], "is_active": True}
    if month and year:
        start, end = month_bounds(year, month)
        query["invoice_date"] = {"$gte": start, "$lt": end}

    invoices = await get_invoices_collection().find(query, NO_OBJECT_ID).to_list(length=None)

    by_type: Dict[str, Dict[str, Any]] = {}
    for invoice in invoices:
        bucket = by_type.setdefault(invoice["invoice_type"], {"count": 0, "totalAmount": 0.0})
        bucket["count"] += 1
        bucket["totalAmount"] = round_money(bucket["totalAmount"] + invoice["total_amount"])

    return {
        "totalInvoices": len(invoices),
        "totalAmount": round_money(sum(i["total_amount"] for i in invoices)),
        "totalTaxAmount": round_money(sum(i["total_tax_amount"] for i in invoices)),
        "totalTaxableAmount": round_money(sum(i["taxable_amount"] for i in invoices)),
        "byType": by_type,
    }
