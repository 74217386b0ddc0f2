"""
app/services/gstr3b_service.py

Purpose: GSTR-3B (monthly summary return) generation

- 3.1 outward supplies from the period's invoices
- 4 eligible ITC from the period's purchases
- Tax payable after ITC set-off (excess IGST credit covers CGST, then SGST)
- Late fee when generated after the 20th of the following month
"""

from datetime import date, datetime
from typing import Dict, Any, List, Optional

from app.core.logging import get_logger, LogContext
from app.db.mongo import get_invoices_collection, get_purchases_collection, NO_OBJECT_ID
from app.services import return_store
from utils.constants import GSTR3B_DUE_DAY, LATE_FEE_CAP, LATE_FEE_PER_DAY, ZERO_RATED_INVOICE_TYPES
from utils.gst_utils import round_money
from utils.time_utils import month_bounds, filing_period, due_date

logger = get_logger(__name__)

HEADS = ("igst", "cgst", "sgst", "cess")


def _zero_heads() -> Dict[str, float]:
    return {head: 0.0 for head in HEADS}


def _heads_of(doc: Dict[str, Any], prefix: str = "", suffix: str = "_amount") -> Dict[str, float]:
    return {head: doc.get(f"{prefix}{head}{suffix}", 0) or 0 for head in HEADS}


def _add(target: Dict[str, float], amounts: Dict[str, float]) -> None:
    for head in HEADS:
        target[head] = round_money(target[head] + amounts[head])


def _portal_amounts(heads: Dict[str, float], txval: Optional[float] = None) -> Dict[str, float]:
    amounts = {"iamt": heads["igst"], "camt": heads["cgst"], "samt": heads["sgst"], "csamt": heads["cess"]}
    if txval is not None:
        amounts = {"txval": txval, **amounts}
    return amounts


def outward_supplies(invoices: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Splits sales into regular taxable, zero rated, nil rated and reverse charge.
    """
    regular, reverse = _zero_heads(), _zero_heads()
    taxable_value = zero_rated_value = nil_value = reverse_value = 0.0

    for invoice in invoices:
        taxable = invoice.get("taxable_amount", 0)
        if invoice["invoice_type"] in ZERO_RATED_INVOICE_TYPES:
            zero_rated_value = round_money(zero_rated_value + taxable)
        elif invoice.get("reverse_charge"):
            reverse_value = round_money(reverse_value + taxable)
            _add(reverse, _heads_of(invoice))
        elif invoice.get("total_tax_amount", 0) == 0:
            nil_value = round_money(nil_value + taxable)
        else:
            taxable_value = round_money(taxable_value + taxable)
            _add(regular, _heads_of(invoice))

    return {
        "taxable_value": taxable_value,
        "regular": regular,
        "zero_rated_value": zero_rated_value,
        "nil_value": nil_value,
        "reverse_value": reverse_value,
        "reverse": reverse,
        "total_tax": round_money(sum(regular.values()) + sum(reverse.values())),
    }


def input_tax_credit(purchases: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Buckets claimable credit into the GSTR-3B table 4 rows.
    """
    buckets = {"IMPG": _zero_heads(), "IMPS": _zero_heads(), "ISRC": _zero_heads(), "ISD": _zero_heads(), "OTH": _zero_heads()}

    for purchase in purchases:
        credit = _heads_of(purchase, prefix="itc_", suffix="")
        if purchase["purchase_type"] == "import":
            _add(buckets["IMPG"], credit)
        elif purchase.get("reverse_charge"):
            _add(buckets["ISRC"], credit)
        else:
            _add(buckets["OTH"], credit)

    total = _zero_heads()
    for bucket in buckets.values():
        _add(total, bucket)

    return {"buckets": buckets, "total": total, "total_amount": round_money(sum(total.values()))}


def tax_payable(output: Dict[str, float], credit: Dict[str, float]) -> Dict[str, float]:
    """
    Sets credit off against output tax head by head. IGST credit left over
    after IGST is used against CGST first, then SGST.
    """
    payable = {head: output[head] - credit[head] for head in HEADS}

    if payable["igst"] < 0:
        excess = -payable["igst"]
        payable["igst"] = 0.0
        for head in ("cgst", "sgst"):
            if payable[head] > 0 and excess > 0:
                used = min(payable[head], excess)
                payable[head] -= used
                excess -= used

    payable = {head: round_money(max(0.0, value)) for head, value in payable.items()}
    payable["total"] = round_money(sum(payable[head] for head in HEADS))
    return payable


def late_fee(year: int, month: int, today: date) -> float:
    """
    Fee per tax head for filing after the 20th of the next month.
    """
    days_late = (today - due_date(year, month, GSTR3B_DUE_DAY)).days
    if days_late <= 0:
        return 0.0
    return float(min(days_late * LATE_FEE_PER_DAY, LATE_FEE_CAP))


async def _period_documents(business_id: str, year: int, month: int):
    start, end = month_bounds(year, month)
    invoices = await get_invoices_collection().find(
        {"business_id": business_id, "is_active": True, "invoice_date": {"$gte": start, "$lt": end}},
        NO_OBJECT_ID,
    ).to_list(length=None)
    purchases = await get_purchases_collection().find(
        {
            "business_id": business_id,
            "is_active": True,
            "is_itc_eligible": True,
            "supplier_invoice_date": {"$gte": start, "$lt": end},
        },
        NO_OBJECT_ID,
    ).to_list(length=None)
    return invoices, purchases


async def generate_gstr3b(
    business: Dict[str, Any],
    month: int,
    year: int,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Builds and stores the GSTR-3B payload for the month.

    Args:
        today: date the return is considered generated on (late fee reference)
    """
    return_store.check_period(month, year)
    today = today or datetime.utcnow().date()

    invoices, purchases = await _period_documents(business["id"], year, month)
    sales = outward_supplies(invoices)
    itc = input_tax_credit(purchases)

    output_tax = _zero_heads()
    _add(output_tax, sales["regular"])
    _add(output_tax, sales["reverse"])
    payable = tax_payable(output_tax, itc["total"])

    fee = late_fee(year, month, today)
    zero = _zero_heads()

    return_data = {
        "gstin": business["gstin"],
        "fp": filing_period(year, month),
        "sup_details": {
            "osup_det": _portal_amounts(sales["regular"], sales["taxable_value"]),
            "osup_zero": _portal_amounts(zero, sales["zero_rated_value"]),
            "osup_nil_exmp": _portal_amounts(zero, sales["nil_value"]),
            "isup_rev": _portal_amounts(sales["reverse"], sales["reverse_value"]),
            "osup_nongst": _portal_amounts(zero, 0.0),
        },
        "itc_elg": {
            "itc_avl": [
                {"ty": kind, **_portal_amounts(bucket)}
                for kind, bucket in itc["buckets"].items()
            ],
            "itc_rev": [{"ty": "OTH", **_portal_amounts(zero)}],
            "itc_net": _portal_amounts(itc["total"]),
        },
        "inward_sup": {
            "isup_details": [
                {
                    "ty": "GST",
                    "inter": itc["total"]["igst"],
                    "intra": round_money(itc["total"]["cgst"] + itc["total"]["sgst"]),
                }
            ]
        },
        "intr_ltfee": {
            "intr_details": _portal_amounts(zero),
            "ltfee_details": {"iamt": fee, "camt": fee, "samt": fee, "csamt": 0.0},
        },
        "tax_payable": payable,
    }

    total_late_fee = round_money(fee * 3)
    summary = {
        "outputTax": sales["total_tax"],
        "itcAvailable": itc["total_amount"],
        "netTaxPayable": payable["total"],
        "lateFees": total_late_fee,
        "totalPayable": round_money(payable["total"] + total_late_fee),
    }
    return_data["summary"] = summary

    with LogContext(business_id=business["id"], gstin=business["gstin"]):
        stored = await return_store.save_return(
            business["id"], "gstr3b", year, month, return_data, payable["total"]
        )
        logger.info(
            f"📊 GSTR-3B {return_data['fp']}: output ₹{summary['outputTax']}, "
            f"ITC ₹{summary['itcAvailable']}, payable ₹{summary['totalPayable']}"
        )

    return {
        "returnId": stored["id"],
        "businessName": business["business_name"],
        "gstin": business["gstin"],
        "filingPeriod": stored["filing_period"],
        "financialYear": stored["financial_year"],
        "status": stored["status"],
        "generatedAt": stored["generated_at"].isoformat(),
        "summary": summary,
        "data": return_data,
    }


async def get_gstr3b(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    return_store.check_period(month, year)
    return return_store.public_return(await return_store.get_return(business["id"], "gstr3b", year, month))
