"""
app/services/gstr1_service.py

Purpose: GSTR-1 (outward supplies) generation

- b2b: registered recipients, grouped by recipient GSTIN
- b2cl: large B2C invoices (> ₹2.5 lakh), invoice-wise
- b2cs: small B2C supplies aggregated by place of supply and rate
- exp: exports (WOPAY) and SEZ supplies (WPAY)
- hsn: HSN/SAC-wise summary
- Persists the payload and marks invoices filed when the return is filed
"""

from datetime import datetime
from typing import Dict, Any, List

from app.core.logging import get_logger, LogContext
from app.db.mongo import get_invoices_collection, NO_OBJECT_ID
from app.services import return_store
from utils.gst_utils import round_money
from utils.time_utils import month_bounds, filing_period, format_gst_date

logger = get_logger(__name__)

TAX_KEYS = ("txval", "iamt", "camt", "samt", "csamt")


def _item_tax(item: Dict[str, Any]) -> Dict[str, float]:
    return {
        "txval": item.get("taxable_amount", 0),
        "iamt": item.get("igst_amount", 0),
        "camt": item.get("cgst_amount", 0),
        "samt": item.get("sgst_amount", 0),
        "csamt": item.get("cess_amount", 0),
    }


def _accumulate(target: Dict[str, Any], amounts: Dict[str, float]) -> None:
    for key in TAX_KEYS:
        target[key] = round_money(target.get(key, 0) + amounts[key])


def group_items_by_rate(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Collapses invoice lines into one `itm_det` entry per GST rate.
    """
    groups: Dict[float, Dict[str, Any]] = {}
    for item in items:
        rate = float(item["gst_rate"])
        if rate not in groups:
            groups[rate] = {"num": len(groups) + 1, "itm_det": {"rt": rate}}
        _accumulate(groups[rate]["itm_det"], _item_tax(item))
    return list(groups.values())


def _invoice_entry(invoice: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "inum": invoice["invoice_number"],
        "idt": format_gst_date(invoice["invoice_date"]),
        "val": invoice["total_amount"],
        "itms": group_items_by_rate(invoice["items"]),
    }


def build_b2b(invoices: List[Dict[str, Any]]) -> Dict[str, Any]:
    selected = [
        inv for inv in invoices
        if inv["invoice_type"] == "b2b" and (inv.get("customer") or {}).get("gstin")
    ]
    recipients: Dict[str, Dict[str, Any]] = {}
    for invoice in selected:
        ctin = invoice["customer"]["gstin"]
        recipient = recipients.setdefault(
            ctin, {"ctin": ctin, "cname": invoice["customer"].get("name"), "inv": []}
        )
        entry = _invoice_entry(invoice)
        entry.update({
            "pos": invoice.get("buyer_state_code"),
            "rchrg": "Y" if invoice.get("reverse_charge") else "N",
            "inv_typ": "R",
        })
        recipient["inv"].append(entry)
    return {"data": list(recipients.values()), "count": len(selected)}


def build_b2cl(invoices: List[Dict[str, Any]], business: Dict[str, Any]) -> Dict[str, Any]:
    selected = [
        inv for inv in invoices
        if inv["invoice_type"] == "b2c_large" and not (inv.get("customer") or {}).get("gstin")
    ]
    data = [
        {"pos": inv.get("buyer_state_code") or business["state_code"], "inv": [_invoice_entry(inv)]}
        for inv in selected
    ]
    return {"data": data, "count": len(selected)}


def build_b2cs(invoices: List[Dict[str, Any]], business: Dict[str, Any]) -> Dict[str, Any]:
    selected = [
        inv for inv in invoices
        if inv["invoice_type"] == "b2c_small" and not (inv.get("customer") or {}).get("gstin")
    ]
    aggregates: Dict[tuple, Dict[str, Any]] = {}
    for invoice in selected:
        pos = invoice.get("buyer_state_code") or business["state_code"]
        supply_type = "INTRA" if invoice.get("seller_state_code") == pos else "INTER"
        for item in invoice["items"]:
            rate = float(item["gst_rate"])
            bucket = aggregates.setdefault(
                (pos, rate, supply_type),
                {"pos": pos, "sply_ty": supply_type, "rt": rate, "typ": "OE"},
            )
            _accumulate(bucket, _item_tax(item))
    return {"data": list(aggregates.values()), "count": len(selected)}


def build_exp(invoices: List[Dict[str, Any]]) -> Dict[str, Any]:
    selected = [inv for inv in invoices if inv["invoice_type"] in ("export", "sez")]
    data = []
    for invoice in selected:
        entry = _invoice_entry(invoice)
        entry.update({"sbpcode": "", "sbnum": "", "sbdt": ""})
        data.append({
            "exp_typ": "WPAY" if invoice["invoice_type"] == "sez" else "WOPAY",
            "inv": [entry],
        })
    return {"data": data, "count": len(selected)}


def build_hsn(invoices: List[Dict[str, Any]]) -> Dict[str, Any]:
    aggregates: Dict[tuple, Dict[str, Any]] = {}
    for invoice in invoices:
        for item in invoice["items"]:
            code = item.get("hsn_code") or item.get("sac_code") or "NA"
            rate = float(item["gst_rate"])
            bucket = aggregates.setdefault((code, rate), {
                "hsn_sc": code,
                "desc": item.get("item_name"),
                "uqc": item.get("unit") or "NOS",
                "qty": 0.0,
                "val": 0.0,
                "rt": rate,
            })
            bucket["qty"] = round_money(bucket["qty"] + item.get("quantity", 0))
            bucket["val"] = round_money(bucket["val"] + item.get("total_amount", 0))
            _accumulate(bucket, _item_tax(item))

    rows = [{"num": index, **row} for index, row in enumerate(aggregates.values(), start=1)]
    return {"data": {"data": rows}, "count": len(rows)}


def summarize(invoices: List[Dict[str, Any]]) -> Dict[str, float]:
    def total(field: str) -> float:
        return round_money(sum(inv.get(field, 0) for inv in invoices))

    cgst, sgst, igst, cess = total("cgst_amount"), total("sgst_amount"), total("igst_amount"), total("cess_amount")
    invoice_value = total("total_amount")
    return {
        "totalTaxableValue": total("taxable_amount"),
        "totalCGST": cgst,
        "totalSGST": sgst,
        "totalIGST": igst,
        "totalCess": cess,
        "totalTax": round_money(cgst + sgst + igst + cess),
        "totalInvoiceValue": invoice_value,
        "grossTurnover": invoice_value,
    }


async def _period_invoices(business_id: str, year: int, month: int) -> List[Dict[str, Any]]:
    start, end = month_bounds(year, month)
    cursor = get_invoices_collection().find(
        {"business_id": business_id, "is_active": True, "invoice_date": {"$gte": start, "$lt": end}},
        NO_OBJECT_ID,
    ).sort([("invoice_date", 1), ("invoice_sequence", 1)])
    return await cursor.to_list(length=None)


async def generate_gstr1(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    """
    Builds and stores the GSTR-1 payload for the month.

    Raises:
        ValidationError: month/year out of range
    """
    return_store.check_period(month, year)
    invoices = await _period_invoices(business["id"], year, month)

    b2b = build_b2b(invoices)
    b2cl = build_b2cl(invoices, business)
    b2cs = build_b2cs(invoices, business)
    exp = build_exp(invoices)
    hsn = build_hsn(invoices)
    summary = summarize(invoices)

    return_data = {
        "gstin": business["gstin"],
        "fp": filing_period(year, month),
        "gt": summary["grossTurnover"],
        "cur_gt": summary["grossTurnover"],
        "b2b": b2b["data"],
        "b2cl": b2cl["data"],
        "b2cs": b2cs["data"],
        "exp": exp["data"],
        "hsn": hsn["data"],
        "summary": {
            "totalInvoices": len(invoices),
            "b2bInvoices": b2b["count"],
            "b2clInvoices": b2cl["count"],
            "b2csInvoices": b2cs["count"],
            "exportInvoices": exp["count"],
            **{k: v for k, v in summary.items() if k != "grossTurnover"},
        },
    }

    with LogContext(business_id=business["id"], gstin=business["gstin"]):
        stored = await return_store.save_return(
            business["id"], "gstr1", year, month, return_data, summary["totalTax"]
        )
        logger.info(f"📊 GSTR-1 {return_data['fp']}: {len(invoices)} invoice(s), tax ₹{summary['totalTax']}")

    return {
        "returnId": stored["id"],
        "businessName": business["business_name"],
        "gstin": business["gstin"],
        "filingPeriod": stored["filing_period"],
        "financialYear": stored["financial_year"],
        "status": stored["status"],
        "generatedAt": stored["generated_at"].isoformat(),
        "data": return_data,
    }


async def get_gstr1(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    return_store.check_period(month, year)
    return return_store.public_return(await return_store.get_return(business["id"], "gstr1", year, month))


async def mark_gstr1_filed(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    """
    Flags the stored return as filed and locks the period's invoices.
    """
    return_store.check_period(month, year)
    stored = await return_store.mark_filed(business["id"], "gstr1", year, month)

    start, end = month_bounds(year, month)
    result = await get_invoices_collection().update_many(
        {"business_id": business["id"], "is_active": True, "invoice_date": {"$gte": start, "$lt": end}},
        {"$set": {"filed_in_gstr1": True, "updated_at": datetime.utcnow()}},
    )

    logger.info(f"✅ GSTR-1 {stored['filing_period']} filed, {result.modified_count} invoice(s) locked")
    public = return_store.public_return(stored)
    public["invoicesLocked"] = result.modified_count
    return public
