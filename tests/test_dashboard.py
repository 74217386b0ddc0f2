import asyncio
from datetime import date

import pytest

from app.services import dashboard_service


def _post(client, headers, path, payload):
    response = client.post(path, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    body = response.json()
    return body.get("customer") or body.get("invoice") or body["data"]


def _item(unit_price, **extra):
    return {"itemName": "Goods", "quantity": 1, "unitPrice": unit_price, "gstRate": 18, **extra}


@pytest.fixture
def activity(client, auth_headers):
    """January 2024: two sales, one eligible and one ineligible purchase. February: a purchase only."""
    acme = _post(client, auth_headers, "/api/customers", {
        "customerName": "Acme Traders", "gstin": "29AABCT1332L1ZD",
        "billingAddress": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "pincode": "560001",
    })
    retail = _post(client, auth_headers, "/api/customers", {
        "customerName": "Walk-in Buyer", "customerType": "b2c",
        "billingAddress": "4 Link Road", "city": "Mumbai", "state": "Maharashtra", "pincode": "400058",
    })
    gujarat = _post(client, auth_headers, "/api/suppliers", {
        "supplierName": "Gujarat Raw Materials", "gstin": "24AAACR5055K1Z5",
        "billingAddress": "Plot 7 GIDC", "city": "Ahmedabad", "state": "Gujarat", "pincode": "380001",
    })
    local = _post(client, auth_headers, "/api/suppliers", {
        "supplierName": "Local Services", "supplierType": "unregistered",
        "billingAddress": "2 FC Road", "city": "Pune", "state": "Maharashtra", "pincode": "411001",
    })

    _post(client, auth_headers, "/api/invoices", {
        "customerId": acme["id"], "invoiceDate": "2024-01-15", "items": [_item(100000)],
    })
    _post(client, auth_headers, "/api/invoices", {
        "customerId": retail["id"], "invoiceDate": "2024-01-18", "items": [_item(10000)],
    })
    _post(client, auth_headers, "/api/purchases", {
        "supplierId": gujarat["id"], "supplierInvoiceNumber": "GRM-001",
        "supplierInvoiceDate": "2024-01-10", "items": [_item(10000)],
    })
    _post(client, auth_headers, "/api/purchases", {
        "supplierId": local["id"], "supplierInvoiceNumber": "LS-1", "supplierInvoiceDate": "2024-01-12",
        "purchaseType": "services", "isItcEligible": False, "items": [_item(5000)],
    })
    _post(client, auth_headers, "/api/purchases", {
        "supplierId": gujarat["id"], "supplierInvoiceNumber": "GRM-002",
        "supplierInvoiceDate": "2024-02-05", "items": [_item(10000)],
    })


def test_overview(client, auth_headers, activity):
    response = client.get("/api/dashboard/overview", params={"month": 1, "year": 2024}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["period"] == {"month": 1, "year": 2024, "monthName": "January"}
    assert data["sales"]["totalRevenue"] == 129800
    assert data["sales"]["totalTax"] == 19800
    assert data["sales"]["igst"] == 18000
    assert data["sales"]["cgst"] == 900
    assert data["sales"]["invoiceCount"] == 2

    # ineligible bill left out of the totals but counted
    assert data["purchases"]["totalExpenditure"] == 11800
    assert data["purchases"]["totalItc"] == 1800
    assert data["purchases"]["purchaseCount"] == 2

    assert data["tax"] == {"outputTax": 19800, "inputTaxCredit": 1800, "netTaxPayable": 18000, "refundDue": 0}
    assert data["counts"]["totalCustomers"] == 2
    assert data["counts"]["totalSuppliers"] == 2


def test_overview_refund_when_credit_exceeds_output(client, auth_headers, activity):
    data = client.get(
        "/api/dashboard/overview", params={"month": 2, "year": 2024}, headers=auth_headers
    ).json()["data"]
    assert data["tax"]["netTaxPayable"] == 0
    assert data["tax"]["refundDue"] == 1800


def test_top_customers(client, auth_headers, activity):
    ranked = client.get(
        "/api/dashboard/top-customers", params={"month": 1, "year": 2024}, headers=auth_headers
    ).json()["data"]
    assert [r["customer"]["customerName"] for r in ranked] == ["Acme Traders", "Walk-in Buyer"]
    assert ranked[0]["totalRevenue"] == 118000
    assert ranked[0]["totalTax"] == 18000
    assert ranked[0]["invoiceCount"] == 1

    limited = client.get("/api/dashboard/top-customers", params={"limit": 1}, headers=auth_headers).json()["data"]
    assert len(limited) == 1


def test_top_suppliers(client, auth_headers, activity):
    ranked = client.get("/api/dashboard/top-suppliers", headers=auth_headers).json()["data"]
    assert [r["supplier"]["supplierName"] for r in ranked] == ["Gujarat Raw Materials", "Local Services"]
    assert ranked[0]["totalExpenditure"] == 23600
    assert ranked[0]["totalItc"] == 3600
    assert ranked[0]["purchaseCount"] == 2
    assert ranked[1]["totalItc"] == 0


def test_top_limit_bounds(client, auth_headers):
    response = client.get("/api/dashboard/top-customers", params={"limit": 51}, headers=auth_headers)
    assert response.status_code == 422


def test_revenue_trend(business, activity):
    trend = asyncio.run(dashboard_service.revenue_trend(business, today=date(2024, 3, 15)))
    assert [(p["year"], p["month"]) for p in trend] == [
        (2023, 10), (2023, 11), (2023, 12), (2024, 1), (2024, 2), (2024, 3),
    ]
    january = trend[3]
    assert january["monthName"] == "Jan"
    assert january["revenue"] == 129800
    assert january["tax"] == 19800
    assert trend[4]["revenue"] == 0


def test_revenue_trend_endpoint(client, auth_headers):
    trend = client.get("/api/dashboard/revenue-trend", headers=auth_headers).json()["data"]
    assert len(trend) == 6


def test_deadlines_monthly(business):
    items = asyncio.run(dashboard_service.deadlines(business, today=date(2024, 3, 15)))
    by_type = {item["returnType"]: item for item in items}
    assert set(by_type) == {"GSTR-1", "GSTR-3B"}

    gstr1 = by_type["GSTR-1"]
    assert gstr1["forPeriod"] == "02/2024"
    assert gstr1["dueDate"] == "2024-03-11"
    assert gstr1["daysRemaining"] == -4
    assert gstr1["isOverdue"] is True
    assert gstr1["priority"] == "high"
    assert gstr1["status"] == "pending"

    gstr3b = by_type["GSTR-3B"]
    assert gstr3b["dueDate"] == "2024-03-20"
    assert gstr3b["daysRemaining"] == 5
    assert gstr3b["isOverdue"] is False
    assert gstr3b["priority"] == "medium"


def test_deadlines_quarterly(business):
    quarterly = {**business, "filing_frequency": "quarterly"}
    items = asyncio.run(dashboard_service.deadlines(quarterly, today=date(2024, 3, 15)))
    quarter = items[-1]
    assert quarter["returnType"] == "GSTR-1 (Quarterly)"
    assert quarter["forPeriod"] == "12/2023"
    assert quarter["dueDate"] == "2024-01-13"

    items = asyncio.run(dashboard_service.deadlines(quarterly, today=date(2024, 4, 2)))
    assert items[-1]["forPeriod"] == "03/2024"
    assert items[-1]["dueDate"] == "2024-04-13"
    assert items[-1]["priority"] == "normal"


def test_filed_return_is_not_overdue(business, database):
    asyncio.run(database["gst_returns"].insert_one({
        "id": "r1",
        "business_id": business["id"],
        "return_type": "gstr1",
        "filing_period": "2024-02",
        "status": "filed",
    }))
    items = asyncio.run(dashboard_service.deadlines(business, today=date(2024, 3, 15)))
    gstr1 = items[0]
    assert gstr1["status"] == "filed"
    assert gstr1["isOverdue"] is False
    assert gstr1["priority"] == "normal"


def test_quick_stats(business, activity):
    stats = asyncio.run(dashboard_service.quick_stats(business, today=date(2024, 1, 20)))
    assert stats["currentMonth"] == {
        "revenue": 129800,
        "expenses": 11800,
        "taxLiability": 19800,
        "itcAvailable": 1800,
        "netTaxPayable": 18000,
    }
    # December 2023: GSTR-1 overdue, GSTR-3B due today
    assert stats["alerts"] == {"overdueReturns": 1, "upcomingDeadlines": 2}


def test_quick_stats_endpoint(client, auth_headers):
    data = client.get("/api/dashboard/quick-stats", headers=auth_headers).json()["data"]
    assert data["counts"]["totalCustomers"] == 0
    assert set(data["currentMonth"]) == {"revenue", "expenses", "taxLiability", "itcAvailable", "netTaxPayable"}


def test_dashboard_requires_business(client):
    assert client.get("/api/dashboard/overview").status_code == 401
