"""
app/harness/suites/gstr_returns.py

Purpose: GSTR-1 / GSTR-3B suite

Generates both returns for the current month, reads them back, downloads
the JSON exports and finally marks GSTR-1 filed.
"""

from datetime import date

from app.harness.client import ApiClient
from app.harness.console import log
from app.harness.context import SuiteContext
from app.harness.results import Step, expect, expect_status
from app.harness.runner import Suite


def _period():
    today = date.today()
    return today.year, today.month


def generate_gstr1(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    data = api.post("/api/gstr1/generate", json={"month": month, "year": year})["data"]
    expect(data["filingPeriod"] == f"{year}-{month:02d}", f"filing period {data['filingPeriod']}")
    expect(data["status"] == "generated", f"status {data['status']}")
    summary = data["data"]["summary"]
    log(f"   {summary['totalInvoices']} invoice(s), tax ₹{summary['totalTax']} (FY {data['financialYear']})")
    log(f"   B2B {summary['b2bInvoices']} | B2CL {summary['b2clInvoices']} | "
        f"B2CS {summary['b2csInvoices']} | EXP {summary['exportInvoices']}")
    return True


def get_gstr1(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    stored = api.get(f"/api/gstr1/{year}/{month}")["data"]
    expect(stored["returnType"] == "gstr1", "wrong return type")
    expect("b2b" in stored["data"] and "hsn" in stored["data"], "return payload incomplete")
    return True


def export_gstr1(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    response = api.request("GET", f"/api/gstr1/{year}/{month}/export/json")
    disposition = response.headers.get("content-disposition", "")
    expect("attachment" in disposition and ".json" in disposition, f"unexpected disposition {disposition!r}")
    expect(response.json()["fp"] == f"{year}-{month:02d}", "export period mismatch")
    log(f"   {disposition}")
    return True


def reject_invalid_period(ctx: SuiteContext, api: ApiClient) -> bool:
    expect_status(lambda: api.post("/api/gstr1/generate", json={"month": 13, "year": 2024}), 422)
    expect_status(lambda: api.get("/api/gstr3b/2017/7"), 404)
    return True


def generate_gstr3b(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    data = api.post("/api/gstr3b/generate", json={"month": month, "year": year})["data"]
    summary = data["summary"]
    expect(summary["lateFees"] == 0, f"late fee on a current-month return: {summary['lateFees']}")
    log(f"   Output ₹{summary['outputTax']} | ITC ₹{summary['itcAvailable']} | "
        f"Net ₹{summary['netTaxPayable']} | Total ₹{summary['totalPayable']}")
    return True


def get_gstr3b(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    stored = api.get(f"/api/gstr3b/{year}/{month}")["data"]
    expect("sup_details" in stored["data"] and "itc_elg" in stored["data"], "return payload incomplete")
    return True


def export_gstr3b(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    response = api.request("GET", f"/api/gstr3b/{year}/{month}/export/json")
    expect("tax_payable" in response.json(), "export missing tax payable")
    return True


def mark_gstr1_filed(ctx: SuiteContext, api: ApiClient) -> bool:
    year, month = _period()
    data = api.post(f"/api/gstr1/{year}/{month}/mark-filed")["data"]
    expect(data["status"] == "filed", f"status {data['status']}")
    log(f"   {data['invoicesLocked']} invoice(s) locked")
    return True


SUITE = Suite(
    name="gstr-returns",
    title="GSTR-1 & GSTR-3B Return Tests",
    steps=[
        Step("GENERATE_GSTR1", generate_gstr1, fatal=True),
        Step("GET_GSTR1", get_gstr1),
        Step("EXPORT_GSTR1_JSON", export_gstr1),
        Step("REJECT_INVALID_PERIOD", reject_invalid_period),
        Step("GENERATE_GSTR3B", generate_gstr3b),
        Step("GET_GSTR3B", get_gstr3b),
        Step("EXPORT_GSTR3B_JSON", export_gstr3b),
        Step("MARK_GSTR1_FILED", mark_gstr1_filed),
    ],
)
