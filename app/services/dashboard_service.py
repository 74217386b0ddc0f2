"""
app/services/dashboard_service.py

Purpose: Dashboard figures for a business

- Monthly overview (sales, purchases, tax position, counts)
- Top customers / suppliers by value
- Six month revenue trend
- Upcoming GST filing deadlines
"""

import calendar
from datetime import date, datetime
from typing import Dict, Any, List, Optional

from app.db.mongo import (
    get_customers_collection,
    get_suppliers_collection,
    get_invoices_collection,
    get_purchases_collection,
    get_gst_returns_collection,
    NO_OBJECT_ID,
)
from app.core.logging import get_logger
from utils.constants import (
    GSTR1_DUE_DAY,
    GSTR1_QUARTERLY_DUE_DAY,
    GSTR3B_DUE_DAY,
    RETURN_STATUS_FILED,
)
from utils.gst_utils import round_money
from utils.time_utils import add_months, month_bounds, due_date, filing_period, current_month_year

logger = get_logger(__name__)

TAX_HEADS = ("cgst", "sgst", "igst", "cess")
TREND_MONTHS = 6
DEADLINE_WARNING_DAYS = 7


def _sum(docs: List[Dict[str, Any]], field: str) -> float:
    return round_money(sum(doc.get(field, 0) or 0 for doc in docs))


async def _month_invoices(business_id: str, year: int, month: int) -> List[Dict[str, Any]]:
    start, end = month_bounds(year, month)
    return await get_invoices_collection().find(
        {"business_id": business_id, "is_active": True, "invoice_date": {"$gte": start, "$lt": end}},
        NO_OBJECT_ID,
    ).to_list(length=None)


async def _month_purchases(business_id: str, year: int, month: int) -> List[Dict[str, Any]]:
    start, end = month_bounds(year, month)
    return await get_purchases_collection().find(
        {"business_id": business_id, "is_active": True, "supplier_invoice_date": {"$gte": start, "$lt": end}},
        NO_OBJECT_ID,
    ).to_list(length=None)


async def overview(business: Dict[str, Any], month: int, year: int) -> Dict[str, Any]:
    """
    Sales and purchase totals for one month, with the resulting tax position.

    Purchase totals only count ITC-eligible bills; the purchase count covers
    every bill in the month.
    """
    business_id = business["id"]
    invoices = await _month_invoices(business_id, year, month)
    purchases = await _month_purchases(business_id, year, month)
    eligible = [p for p in purchases if p.get("is_itc_eligible")]

    customer_count = await get_customers_collection().count_documents({"business_id": business_id, "is_active": True})
    supplier_count = await get_suppliers_collection().count_documents({"business_id": business_id, "is_active": True})

    logger.debug(f"Dashboard overview {filing_period(year, month)}: {len(invoices)} invoice(s), {len(purchases)} purchase(s)")

    output_tax = _sum(invoices, "total_tax_amount")
    itc_available = _sum(eligible, "itc_amount")
    net = round_money(output_tax - itc_available)

    return {
        "period": {"month": month, "year": year, "monthName": calendar.month_name[month]},
        "sales": {
            "totalRevenue": _sum(invoices, "total_amount"),
            "taxableAmount": _sum(invoices, "taxable_amount"),
            "totalTax": output_tax,
            **{head: _sum(invoices, f"{head}_amount") for head in TAX_HEADS},
            "invoiceCount": len(invoices),
        },
        "purchases": {
            "totalExpenditure": _sum(eligible, "total_amount"),
            "taxableAmount": _sum(eligible, "taxable_amount"),
            "totalItc": itc_available,
            **{head: _sum(eligible, f"{head}_amount") for head in TAX_HEADS},
            "purchaseCount": len(purchases),
        },
        "tax": {
            "outputTax": output_tax,
            "inputTaxCredit": itc_available,
            "netTaxPayable": net if net > 0 else 0.0,
            "refundDue": -net if net < 0 else 0.0,
        },
        "counts": {
            "totalCustomers": customer_count,
            "totalSuppliers": supplier_count,
            "invoicesThisMonth": len(invoices),
            "purchasesThisMonth": len(purchases),
        },
    }


def _period_query(business_id: str, date_field: str, month: Optional[int], year: Optional[int]) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business_id, "is_active": True}
    if month and year:
        start, end = month_bounds(year, month)
        query[date_field] = {"$gte": start, "$lt": end}
    return query


def _rank(docs: List[Dict[str, Any]], key: str, amount_field: str, limit: int) -> List[Dict[str, Any]]:
    groups: Dict[str, Dict[str, Any]] = {}
    for doc in docs:
        group = groups.setdefault(doc[key], {"id": doc[key], "total": 0.0, "tax": 0.0, "count": 0})
        group["total"] = round_money(group["total"] + doc.get("total_amount", 0))
        group["tax"] = round_money(group["tax"] + (doc.get(amount_field, 0) or 0))
        group["count"] += 1
    return sorted(groups.values(), key=lambda g: g["total"], reverse=True)[:limit]


async def top_customers(
    business: Dict[str, Any],
    month: Optional[int] = None,
    year: Optional[int] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    invoices = await get_invoices_collection().find(
        _period_query(business["id"], "invoice_date", month, year), NO_OBJECT_ID
    ).to_list(length=None)
    ranked = _rank(invoices, "customer_id", "total_tax_amount", limit)

    customers = await get_customers_collection().find(
        {"id": {"$in": [r["id"] for r in ranked]}},
        {"_id": 0, "id": 1, "customer_name": 1, "customer_type": 1, "state": 1},
    ).to_list(length=None)
    by_id = {c["id"]: c for c in customers}

    return [
        {
            "customer": {
                "id": r["id"],
                "customerName": by_id.get(r["id"], {}).get("customer_name"),
                "customerType": by_id.get(r["id"], {}).get("customer_type"),
                "state": by_id.get(r["id"], {}).get("state"),
            },
            "totalRevenue": r["total"],
            "totalTax": r["tax"],
            "invoiceCount": r["count"],
        }
        for r in ranked
    ]


async def top_suppliers(
    business: Dict[str, Any],
    month: Optional[int] = None,
    year: Optional[int] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    purchases = await get_purchases_collection().find(
        _period_query(business["id"], "supplier_invoice_date", month, year), NO_OBJECT_ID
    ).to_list(length=None)
    ranked = _rank(purchases, "supplier_id", "itc_amount", limit)

    suppliers = await get_suppliers_collection().find(
        {"id": {"$in": [r["id"] for r in ranked]}},
        {"_id": 0, "id": 1, "supplier_name": 1, "supplier_type": 1, "state": 1},
    ).to_list(length=None)
    by_id = {s["id"]: s for s in suppliers}

    return [
        {
            "supplier": {
                "id": r["id"],
                "supplierName": by_id.get(r["id"], {}).get("supplier_name"),
                "supplierType": by_id.get(r["id"], {}).get("supplier_type"),
                "state": by_id.get(r["id"], {}).get("state"),
            },
            "totalExpenditure": r["total"],
            "totalItc": r["tax"],
            "purchaseCount": r["count"],
        }
        for r in ranked
    ]


async def revenue_trend(business: Dict[str, Any], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Revenue and output tax for the last six months, oldest first, ending
    with the current month.
    """
    month, year = current_month_year(today)
    trend = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        trend_year, trend_month = add_months(year, month, -offset)
        invoices = await _month_invoices(business["id"], trend_year, trend_month)
        trend.append({
            "month": trend_month,
            "year": trend_year,
            "monthName": calendar.month_abbr[trend_month],
            "revenue": _sum(invoices, "total_amount"),
            "tax": _sum(invoices, "total_tax_amount"),
        })
    return trend


def _deadline(
    return_type: str,
    description: str,
    period_year: int,
    period_month: int,
    due: date,
    today: date,
    filed: bool,
) -> Dict[str, Any]:
    days_remaining = (due - today).days
    overdue = not filed and days_remaining < 0
    if overdue:
        priority = "high"
    elif not filed and days_remaining < DEADLINE_WARNING_DAYS:
        priority = "medium"
    else:
        priority = "normal"

    return {
        "returnType": return_type,
        "description": description,
        "forPeriod": f"{period_month:02d}/{period_year}",
        "dueDate": due.isoformat(),
        "status": RETURN_STATUS_FILED if filed else "pending",
        "daysRemaining": days_remaining,
        "isOverdue": overdue,
        "priority": priority,
    }


async def _filed_periods(business_id: str, return_type: str) -> set:
    filed = await get_gst_returns_collection().find(
        {"business_id": business_id, "return_type": return_type, "status": RETURN_STATUS_FILED},
        {"_id": 0, "filing_period": 1},
    ).to_list(length=None)
    return {r["filing_period"] for r in filed}


async def deadlines(business: Dict[str, Any], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Deadlines for the most recent completed period.

    The previous month's GSTR-1 is due on the 11th and GSTR-3B on the 20th of
    the current month. Quarterly filers also get the GSTR-1 for the last
    completed quarter, due on the 13th of the month after it.
    """
    today = today or datetime.utcnow().date()
    period_year, period_month = add_months(today.year, today.month, -1)
    period = filing_period(period_year, period_month)

    gstr1_filed = await _filed_periods(business["id"], "gstr1")
    gstr3b_filed = await _filed_periods(business["id"], "gstr3b")

    items = [
        _deadline(
            "GSTR-1", "Details of outward supplies (sales)",
            period_year, period_month, due_date(period_year, period_month, GSTR1_DUE_DAY),
            today, period in gstr1_filed,
        ),
        _deadline(
            "GSTR-3B", "Summary return with tax payment",
            period_year, period_month, due_date(period_year, period_month, GSTR3B_DUE_DAY),
            today, period in gstr3b_filed,
        ),
    ]

    if business.get("filing_frequency") == "quarterly":
        quarter_year, quarter_month = period_year, period_month - (period_month % 3)
        if quarter_month == 0:
            quarter_year, quarter_month = period_year - 1, 12
        items.append(_deadline(
            "GSTR-1 (Quarterly)", "Quarterly details of outward supplies",
            quarter_year, quarter_month,
            due_date(quarter_year, quarter_month, GSTR1_QUARTERLY_DUE_DAY),
            today, filing_period(quarter_year, quarter_month) in gstr1_filed,
        ))

    return items


async def quick_stats(business: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    month, year = current_month_year(today)
    current = await overview(business, month, year)
    upcoming = await deadlines(business, today)

    return {
        "currentMonth": {
            "revenue": current["sales"]["totalRevenue"],
            "expenses": current["purchases"]["totalExpenditure"],
            "taxLiability": current["tax"]["outputTax"],
            "itcAvailable": current["tax"]["inputTaxCredit"],
            "netTaxPayable": current["tax"]["netTaxPayable"],
        },
        "counts": current["counts"],
        "alerts": {
            "overdueReturns": sum(1 for d in upcoming if d["isOverdue"]),
            "upcomingDeadlines": sum(1 for d in upcoming if d["status"] != RETURN_STATUS_FILED),
        },
    }
