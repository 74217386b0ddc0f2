"""
app/harness/suites/customer_invoice.py

Purpose: Customer and invoice suite

- B2B (other state) and B2C (home state) customers
- Inter-state invoice (IGST) and intra-state invoice (CGST + SGST)
- Invoice numbering, listing, update and stats
"""

import re
from datetime import date

from app.harness.client import ApiClient
from app.harness.console import log
from app.harness.context import SuiteContext
from app.harness.results import Step, expect, expect_status
from app.harness.runner import Suite

INVOICE_NUMBER = re.compile(r"^INV-\d{6}-\d{4}$")


def create_b2b_customer(ctx: SuiteContext, api: ApiClient) -> bool:
    gstin = ctx.party_gstin("29", 1)
    data = api.post("/api/customers", json={
        "customerName": "ABC Enterprises Pvt Ltd",
        "customerType": "b2b",
        "gstin": gstin,
        "pan": gstin[2:12],
        "billingAddress": "123 MG Road, Bengaluru",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "email": "contact@abc-enterprises.com",
        "phone": "9876543210",
    })
    customer = data["customer"]
    expect(customer["stateCode"] == "29", f"expected state code 29, got {customer['stateCode']}")
    ctx.ids["customer_b2b"] = customer["id"]
    log(f"   Customer: {customer['customerName']} ({customer['gstin']})")
    return True


def create_b2c_customer(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post("/api/customers", json={
        "customerName": "Rajesh Kumar",
        "customerType": "b2c",
        "billingAddress": "456 Retail Street, Mumbai",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400001",
        "phone": "9123456789",
    })
    customer = data["customer"]
    expect(customer["gstin"] is None, "B2C customer should not carry a GSTIN")
    ctx.ids["customer_b2c"] = customer["id"]
    log(f"   Customer: {customer['customerName']} (state code {customer['stateCode']})")
    return True


def reject_b2b_without_gstin(ctx: SuiteContext, api: ApiClient) -> bool:
    response = expect_status(lambda: api.post("/api/customers", json={
        "customerName": "No GSTIN Traders",
        "customerType": "b2b",
        "billingAddress": "1 Nowhere Lane",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }), 400)
    log(f"   Error message: {response.json().get('error')}")
    return True


def list_customers(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/customers", params={"page": 1, "limit": 10})
    total = data["pagination"]["total"]
    expect(total >= 2, f"expected at least 2 customers, got {total}")
    log(f"   {total} customer(s)")
    return True


def get_customer(ctx: SuiteContext, api: ApiClient) -> bool:
    customer = api.get(f"/api/customers/{ctx.ids['customer_b2b']}")["customer"]
    expect(customer["id"] == ctx.ids["customer_b2b"], "wrong customer returned")
    return True


def create_interstate_invoice(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post("/api/invoices", json={
        "customerId": ctx.ids["customer_b2b"],
        "invoiceDate": date.today().isoformat(),
        "items": [{
            "itemName": "Laptop",
            "hsnCode": "8471",
            "quantity": 2,
            "unitPrice": 50000,
            "gstRate": 18,
        }],
        "notes": "Inter-state supply",
    })
    invoice = data["invoice"]
    expect(invoice["taxableAmount"] == 100000, f"taxable amount {invoice['taxableAmount']}")
    expect(invoice["igstAmount"] == 18000, f"IGST {invoice['igstAmount']}")
    expect(invoice["cgstAmount"] == 0 and invoice["sgstAmount"] == 0, "inter-state invoice charged CGST/SGST")
    ctx.ids["invoice_interstate"] = invoice["id"]
    log(f"   {invoice['invoiceNumber']}: ₹{invoice['totalAmount']} (IGST ₹{invoice['igstAmount']})")
    return True


def create_intrastate_invoice(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post("/api/invoices", json={
        "customerId": ctx.ids["customer_b2c"],
        "invoiceDate": date.today().isoformat(),
        "items": [{
            "itemName": "Consulting",
            "sacCode": "998314",
            "quantity": 1,
            "unitPrice": 10000,
            "gstRate": 18,
        }],
    })
    invoice = data["invoice"]
    expect(invoice["cgstAmount"] == 900 and invoice["sgstAmount"] == 900, "expected ₹900 CGST and SGST")
    expect(invoice["igstAmount"] == 0, "intra-state invoice charged IGST")
    expect(invoice["invoiceType"] == "b2c_small", f"invoice type {invoice['invoiceType']}")
    ctx.ids["invoice_intrastate"] = invoice["id"]
    log(f"   {invoice['invoiceNumber']}: ₹{invoice['totalAmount']} (CGST ₹900 + SGST ₹900)")
    return True


def get_invoice(ctx: SuiteContext, api: ApiClient) -> bool:
    invoice = api.get(f"/api/invoices/{ctx.ids['invoice_interstate']}")["invoice"]
    expect(bool(INVOICE_NUMBER.match(invoice["invoiceNumber"])), f"bad invoice number {invoice['invoiceNumber']}")
    expect(len(invoice["items"]) == 1, "expected one line item")
    return True


def list_invoices(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/invoices", params={"limit": 10})
    expect(data["pagination"]["total"] >= 2, "expected at least 2 invoices")
    log(f"   {data['pagination']['total']} invoice(s)")
    return True


def update_invoice(ctx: SuiteContext, api: ApiClient) -> bool:
    invoice = api.put(
        f"/api/invoices/{ctx.ids['invoice_interstate']}",
        json={"notes": "Updated by the API test suite"},
    )["invoice"]
    expect(invoice["notes"] == "Updated by the API test suite", "notes not updated")
    expect(invoice["igstAmount"] == 18000, "update changed the tax")
    return True


def invoice_stats(ctx: SuiteContext, api: ApiClient) -> bool:
    today = date.today()
    stats = api.get("/api/invoices/stats", params={"month": today.month, "year": today.year})["stats"]
    expect(stats["totalInvoices"] >= 2, "stats missing this run's invoices")
    log(f"   {stats['totalInvoices']} invoice(s), ₹{stats['totalAmount']} total")
    return True


def reject_customer_delete_with_invoices(ctx: SuiteContext, api: ApiClient) -> bool:
    response = expect_status(lambda: api.delete(f"/api/customers/{ctx.ids['customer_b2c']}"), 400)
    log(f"   Error message: {response.json().get('error')}")
    return True


SUITE = Suite(
    name="customer-invoice",
    title="Customer & Invoice API Tests",
    steps=[
        Step("CREATE_B2B_CUSTOMER", create_b2b_customer, fatal=True),
        Step("CREATE_B2C_CUSTOMER", create_b2c_customer, fatal=True),
        Step("REJECT_B2B_WITHOUT_GSTIN", reject_b2b_without_gstin),
        Step("LIST_CUSTOMERS", list_customers),
        Step("GET_CUSTOMER", get_customer),
        Step("CREATE_INTERSTATE_INVOICE", create_interstate_invoice, fatal=True),
        Step("CREATE_INTRASTATE_INVOICE", create_intrastate_invoice),
        Step("GET_INVOICE", get_invoice),
        Step("LIST_INVOICES", list_invoices),
        Step("UPDATE_INVOICE", update_invoice),
        Step("INVOICE_STATS", invoice_stats),
        Step("REJECT_CUSTOMER_DELETE_WITH_INVOICES", reject_customer_delete_with_invoices),
    ],
)
