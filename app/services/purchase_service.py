"""
app/services/purchase_service.py

Purpose: Purchase bills and input tax credit (ITC)

- GST per line with the supplier as seller and the business as buyer
- ITC per line when both the line and the bill are eligible
- Duplicate supplier invoice numbers rejected
- Payment / ITC updates, soft delete (locked once filed in GSTR-2)
- Period statistics and ITC breakdown
"""

import uuid
from datetime import datetime, date
from typing import Dict, Any, Optional, List

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_purchases_collection, NO_OBJECT_ID
from app.schemas.purchase import PurchaseCreate, PurchaseUpdate, PurchaseOut
from app.services.common import paginate, pagination, check_item_codes
from app.services.supplier_service import find_supplier
from utils.constants import PURCHASE_TYPES
from utils.gst_utils import calculate_invoice_gst, round_money
from utils.time_utils import month_bounds, to_datetime, end_of_day, filing_period

logger = get_logger(__name__)

ITC_HEADS = ("cgst", "sgst", "igst", "cess")


def supplier_snapshot(supplier: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": supplier["id"],
        "name": supplier["supplier_name"],
        "gstin": supplier.get("gstin"),
        "party_type": supplier["supplier_type"],
        "state": supplier.get("state"),
        "state_code": supplier.get("state_code"),
        "billing_address": supplier.get("billing_address"),
        "city": supplier.get("city"),
    }


def apply_itc(items: List[Dict[str, Any]], is_itc_eligible: bool) -> Dict[str, Any]:
    """
    Sets each line's claimable credit and returns the bill's ITC fields.

    A line keeps its own eligibility flag; it is claimed only while the bill
    as a whole is eligible, so toggling the bill restores the same credit.
    """
    itc = {head: 0.0 for head in ITC_HEADS}
    for item in items:
        line_eligible = bool(item.get("is_itc_eligible", True))
        claimable = line_eligible and is_itc_eligible
        item["is_itc_eligible"] = line_eligible
        item["itc_amount"] = item["total_tax_amount"] if claimable else 0.0
        if claimable:
            for head in ITC_HEADS:
                itc[head] += item.get(f"{head}_amount", 0)

    fields: Dict[str, Any] = {f"itc_{head}": round_money(value) for head, value in itc.items()}
    fields["itc_amount"] = round_money(sum(itc.values()))
    return fields


def compute_purchase(
    items: List[Dict[str, Any]],
    seller_state_code: Optional[str],
    buyer_state_code: Optional[str],
    is_itc_eligible: bool,
) -> Dict[str, Any]:
    """
    Totals a purchase bill and works out claimable credit per tax head.

    Raises:
        ValidationError: missing state codes or lines the calculator rejects
    """
    if not seller_state_code:
        raise ValidationError("Supplier does not have a state code. Add a GSTIN or a valid state.")
    if not buyer_state_code:
        raise ValidationError("Business does not have a state code")

    check_item_codes(items)
    try:
        calc = calculate_invoice_gst(
            items=items,
            seller_state_code=seller_state_code,
            buyer_state_code=buyer_state_code,
            invoice_type="b2b",
        )
    except ValueError as e:
        raise ValidationError(str(e))

    calc.update(apply_itc(calc["items"], is_itc_eligible))
    # Purchases are recorded at their exact value
    calc.pop("round_off_amount", None)
    calc.pop("final_amount", None)
    return calc


async def _find_purchase(business_id: str, purchase_id: str) -> Dict[str, Any]:
    purchase = await get_purchases_collection().find_one(
        {"id": purchase_id, "business_id": business_id, "is_active": True}, NO_OBJECT_ID
    )
    if not purchase:
        raise ResourceNotFoundError("Purchase not found")
    return purchase


async def create_purchase(business: Dict[str, Any], payload: PurchaseCreate) -> Dict[str, Any]:
    """
    Raises:
        ResourceNotFoundError: supplier missing or belongs to another business
        ConflictError: this supplier invoice number was already recorded
        ValidationError: bad line items or missing state codes
    """
    supplier = await find_supplier(business["id"], payload.supplier_id)
    purchases = get_purchases_collection()

    duplicate = await purchases.find_one(
        {
            "business_id": business["id"],
            "supplier_id": supplier["id"],
            "supplier_invoice_number": payload.supplier_invoice_number,
            "is_active": True,
        },
        NO_OBJECT_ID,
    )
    if duplicate:
        raise ConflictError(
            f"Purchase invoice {payload.supplier_invoice_number} already exists for this supplier"
        )

    items = [item.model_dump() for item in payload.items]
    calc = compute_purchase(items, supplier.get("state_code"), business.get("state_code"), payload.is_itc_eligible)

    now = datetime.utcnow()
    purchase = {
        "id": str(uuid.uuid4()),
        "business_id": business["id"],
        "supplier_id": supplier["id"],
        "supplier_invoice_number": payload.supplier_invoice_number,
        "supplier_invoice_date": to_datetime(payload.supplier_invoice_date),
        "purchase_type": payload.purchase_type,
        "seller_state_code": supplier.get("state_code"),
        "buyer_state_code": business.get("state_code"),
        "place_of_supply": payload.place_of_supply or business.get("state"),
        "reverse_charge": payload.reverse_charge,
        "is_itc_eligible": payload.is_itc_eligible,
        "itc_claim_type": "full" if payload.is_itc_eligible else "none",
        "is_paid": False,
        "payment_date": None,
        "payment_method": None,
        "notes": payload.notes,
        "filed_in_gstr2": False,
        "supplier": supplier_snapshot(supplier),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
        **calc,
    }

    await purchases.insert_one(dict(purchase))

    with LogContext(business_id=business["id"]):
        logger.info(
            f"📥 Purchase {payload.supplier_invoice_number} from {supplier['supplier_name']}: "
            f"₹{purchase['total_amount']} (ITC ₹{purchase['itc_amount']})"
        )

    return PurchaseOut.from_doc(purchase)


def _period_query(
    business_id: str,
    month: Optional[int] = None,
    year: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business_id, "is_active": True}
    if month and year:
        start, end = month_bounds(year, month)
        query["supplier_invoice_date"] = {"$gte": start, "$lt": end}
    elif start_date or end_date:
        date_range = {}
        if start_date:
            date_range["$gte"] = to_datetime(start_date)
        if end_date:
            date_range["$lt"] = end_of_day(end_date)
        query["supplier_invoice_date"] = date_range
    return query


async def list_purchases(
    business: Dict[str, Any],
    page: int = 1,
    limit: int = 20,
    supplier_id: Optional[str] = None,
    purchase_type: Optional[str] = None,
    is_itc_eligible: Optional[bool] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[str, Any]:
    query = _period_query(business["id"], start_date=start_date, end_date=end_date)
    if supplier_id:
        query["supplier_id"] = supplier_id
    if purchase_type:
        if purchase_type not in PURCHASE_TYPES:
            raise ValidationError(f"Purchase type must be one of {', '.join(PURCHASE_TYPES)}")
        query["purchase_type"] = purchase_type
    if is_itc_eligible is not None:
        query["is_itc_eligible"] = is_itc_eligible

    purchases, total = await paginate(
        get_purchases_collection(), query, page, limit,
        sort=(("supplier_invoice_date", -1), ("created_at", -1)),
    )

    return {
        "success": True,
        "data": [PurchaseOut.from_doc(p) for p in purchases],
        "pagination": pagination(total, page, limit),
    }


async def get_purchase(business: Dict[str, Any], purchase_id: str) -> Dict[str, Any]:
    return PurchaseOut.from_doc(await _find_purchase(business["id"], purchase_id))


async def update_purchase(business: Dict[str, Any], purchase_id: str, payload: PurchaseUpdate) -> Dict[str, Any]:
    """
    Only payment details, notes and ITC eligibility are editable. Changing
    eligibility recomputes the claimable credit from the lines.

    Raises:
        ValidationError: purchase already filed in GSTR-2
    """
    existing = await _find_purchase(business["id"], purchase_id)
    if existing.get("filed_in_gstr2"):
        raise ValidationError("Cannot update purchase: already filed in GSTR-2")

    changes = payload.to_doc()
    if "payment_date" in changes:
        changes["payment_date"] = to_datetime(changes["payment_date"])

    if "is_itc_eligible" in changes:
        eligible = changes["is_itc_eligible"]
        items = [dict(item) for item in existing.get("items", [])]
        changes.update(apply_itc(items, eligible))
        changes["items"] = items
        changes["itc_claim_type"] = changes.get("itc_claim_type") or ("full" if eligible else "none")

    changes["updated_at"] = datetime.utcnow()
    await get_purchases_collection().update_one({"id": purchase_id}, {"$set": changes})
    existing.update(changes)

    logger.info(f"Purchase updated: {existing['supplier_invoice_number']}")
    return PurchaseOut.from_doc(existing)


async def delete_purchase(business: Dict[str, Any], purchase_id: str) -> None:
    purchase = await _find_purchase(business["id"], purchase_id)
    if purchase.get("filed_in_gstr2"):
        raise ValidationError("Cannot delete purchase: already filed in GSTR-2")

    now = datetime.utcnow()
    await get_purchases_collection().update_one(
        {"id": purchase_id},
        {"$set": {"is_active": False, "deleted_at": now, "updated_at": now}},
    )
    logger.info(f"Purchase deleted: {purchase['supplier_invoice_number']}")


async def purchase_stats(
    business: Dict[str, Any],
    month: Optional[int] = None,
    year: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[str, Any]:
    query = _period_query(business["id"], month, year, start_date, end_date)
    purchases = await get_purchases_collection().find(query, NO_OBJECT_ID).to_list(length=None)

    by_type: Dict[str, Dict[str, Any]] = {}
    for purchase in purchases:
        bucket = by_type.setdefault(
            purchase["purchase_type"],
            {"purchaseType": purchase["purchase_type"], "count": 0, "totalAmount": 0.0, "itcAmount": 0.0},
        )
        bucket["count"] += 1
        bucket["totalAmount"] = round_money(bucket["totalAmount"] + purchase["total_amount"])
        bucket["itcAmount"] = round_money(bucket["itcAmount"] + purchase.get("itc_amount", 0))

    eligible = [p for p in purchases if p.get("is_itc_eligible")]
    return {
        "totalPurchases": len(purchases),
        "totalPurchaseAmount": round_money(sum(p["total_amount"] for p in purchases)),
        "totalItcAvailable": round_money(sum(p.get("itc_amount", 0) for p in eligible)),
        "itcEligiblePurchases": len(eligible),
        "purchasesByType": list(by_type.values()),
    }


async def itc_for_period(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    """
    Claimable credit for the month, split by tax head and purchase type.
    """
    query = _period_query(business["id"], month, year)
    query["is_itc_eligible"] = True
    purchases = await get_purchases_collection().find(query, NO_OBJECT_ID).to_list(length=None)

    breakdown: Dict[str, Any] = {
        "totalItc": 0.0,
        "cgstItc": 0.0,
        "sgstItc": 0.0,
        "igstItc": 0.0,
        "cessItc": 0.0,
        "byPurchaseType": {},
    }
    for purchase in purchases:
        breakdown["totalItc"] = round_money(breakdown["totalItc"] + purchase.get("itc_amount", 0))
        for head in ITC_HEADS:
            key = f"{head}Itc"
            breakdown[key] = round_money(breakdown[key] + purchase.get(f"itc_{head}", 0))

        bucket = breakdown["byPurchaseType"].setdefault(purchase["purchase_type"], {"totalItc": 0.0, "count": 0})
        bucket["totalItc"] = round_money(bucket["totalItc"] + purchase.get("itc_amount", 0))
        bucket["count"] += 1

    return {
        "month": month,
        "year": year,
        "period": filing_period(year, month),
        "itcBreakdown": breakdown,
        "purchaseCount": len(purchases),
    }
