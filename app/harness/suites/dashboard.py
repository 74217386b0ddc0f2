"""
app/harness/suites/dashboard.py

Purpose: Dashboard suite
"""

from datetime import date

from app.harness.client import ApiClient
from app.harness.console import log
from app.harness.context import SuiteContext
from app.harness.results import Step, expect
from app.harness.runner import Suite


def quick_stats(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/dashboard/quick-stats")["data"]
    current, counts = data["currentMonth"], data["counts"]
    log("   Current Month:", "blue")
    log(f"     Revenue: ₹{current['revenue']}", "green")
    log(f"     Expenses: ₹{current['expenses']}", "green")
    log(f"     Tax Liability: ₹{current['taxLiability']}", "green")
    log(f"     ITC Available: ₹{current['itcAvailable']}", "green")
    log(f"     Net Tax Payable: ₹{current['netTaxPayable']}", "green")
    log(f"   Customers {counts['totalCustomers']} | Suppliers {counts['totalSuppliers']}", "green")
    log(f"   Upcoming Deadlines: {data['alerts']['upcomingDeadlines']}", "green")
    return True


def overview(ctx: SuiteContext, api: ApiClient) -> bool:
    today = date.today()
    data = api.get("/api/dashboard/overview", params={"month": today.month, "year": today.year})["data"]
    expect(data["period"]["month"] == today.month, "overview for the wrong month")
    tax = data["tax"]
    expect(
        tax["netTaxPayable"] == 0 or tax["refundDue"] == 0,
        "net payable and refund due are both non-zero",
    )
    log(f"   {data['period']['monthName']} {today.year}: sales ₹{data['sales']['totalRevenue']}, "
        f"output tax ₹{tax['outputTax']}, ITC ₹{tax['inputTaxCredit']}")
    return True


def top_customers(ctx: SuiteContext, api: ApiClient) -> bool:
    ranked = api.get("/api/dashboard/top-customers", params={"limit": 5})["data"]
    expect(len(ranked) <= 5, "limit not applied")
    revenues = [entry["totalRevenue"] for entry in ranked]
    expect(revenues == sorted(revenues, reverse=True), "customers not ranked by revenue")
    for index, entry in enumerate(ranked, start=1):
        log(f"   {index}. {entry['customer']['customerName']}: ₹{entry['totalRevenue']}")
    return True


def top_suppliers(ctx: SuiteContext, api: ApiClient) -> bool:
    ranked = api.get("/api/dashboard/top-suppliers", params={"limit": 5})["data"]
    spend = [entry["totalExpenditure"] for entry in ranked]
    expect(spend == sorted(spend, reverse=True), "suppliers not ranked by spend")
    for index, entry in enumerate(ranked, start=1):
        log(f"   {index}. {entry['supplier']['supplierName']}: ₹{entry['totalExpenditure']}")
    return True


def revenue_trend(ctx: SuiteContext, api: ApiClient) -> bool:
    trend = api.get("/api/dashboard/revenue-trend")["data"]
    expect(len(trend) == 6, f"expected 6 months, got {len(trend)}")
    today = date.today()
    expect((trend[-1]["year"], trend[-1]["month"]) == (today.year, today.month), "trend does not end this month")
    for point in trend:
        log(f"   {point['monthName']} {point['year']}: ₹{point['revenue']}")
    return True


def deadlines(ctx: SuiteContext, api: ApiClient) -> bool:
    items = api.get("/api/dashboard/deadlines")["data"]
    types = {item["returnType"] for item in items}
    expect({"GSTR-1", "GSTR-3B"} <= types, f"missing deadlines: {types}")
    for item in items:
        color = "red" if item["isOverdue"] else "green"
        log(f"   {item['returnType']} ({item['forPeriod']}): due {item['dueDate']}, "
            f"{item['daysRemaining']} day(s) left [{item['priority']}]", color)
    return True


SUITE = Suite(
    name="dashboard",
    title="Dashboard API Tests",
    steps=[
        Step("QUICK_STATS", quick_stats),
        Step("OVERVIEW", overview),
        Step("TOP_CUSTOMERS", top_customers),
        Step("TOP_SUPPLIERS", top_suppliers),
        Step("REVENUE_TREND", revenue_trend),
        Step("DEADLINES", deadlines),
    ],
)
