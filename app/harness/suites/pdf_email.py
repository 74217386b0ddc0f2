"""
app/harness/suites/pdf_email.py

Purpose: Invoice PDF and email suite

- Generate, download and regenerate an invoice PDF
- Check the SMTP configuration; send the invoice only when one is set up
"""

from datetime import date

from app.harness.client import ApiClient
from app.harness.console import log
from app.harness.context import SuiteContext
from app.harness.results import Step, expect, expect_status
from app.harness.runner import Suite


def create_customer(ctx: SuiteContext, api: ApiClient) -> bool:
    gstin = ctx.party_gstin("29", 21)
    customer = api.post("/api/customers", json={
        "customerName": "PDF Test Customer Pvt Ltd",
        "customerType": "b2b",
        "gstin": gstin,
        "billingAddress": "789 Brigade Road, Bengaluru",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560025",
        "email": "customer@pdftest.com",
    })["customer"]
    ctx.ids["customer"] = customer["id"]
    log(f"   Customer: {customer['customerName']}")
    return True


def create_invoice(ctx: SuiteContext, api: ApiClient) -> bool:
    invoice = api.post("/api/invoices", json={
        "customerId": ctx.ids["customer"],
        "invoiceDate": date.today().isoformat(),
        "notes": "Test invoice for PDF and email",
        "termsAndConditions": "Payment due within 30 days",
        "items": [
            {"itemName": "Web Development Services", "sacCode": "998314",
             "quantity": 1, "unitPrice": 50000, "gstRate": 18},
            {"itemName": "Domain Registration", "sacCode": "998315",
             "quantity": 1, "unitPrice": 1000, "gstRate": 18},
        ],
    })["invoice"]
    ctx.ids["invoice"] = invoice["id"]
    ctx.ids["invoice_number"] = invoice["invoiceNumber"]
    log(f"   Invoice: {invoice['invoiceNumber']} for ₹{invoice['finalAmount']}")
    return True


def generate_pdf(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post(f"/api/invoices/{ctx.ids['invoice']}/generate-pdf")["data"]
    expect(data["size"] > 0, "empty PDF")
    log(f"   {data['fileName']} ({data['size']} bytes)")
    return True


def download_pdf(ctx: SuiteContext, api: ApiClient) -> bool:
    response = api.request("GET", f"/api/invoices/{ctx.ids['invoice']}/download-pdf")
    expect(response.headers.get("content-type") == "application/pdf",
           f"unexpected content type {response.headers.get('content-type')}")
    expect(response.content.startswith(b"%PDF"), "download is not a PDF")
    log(f"   Downloaded {len(response.content)} bytes")
    return True


def regenerate_pdf(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post(f"/api/invoices/{ctx.ids['invoice']}/generate-pdf")["data"]
    expect(data["invoiceNumber"] == ctx.ids["invoice_number"], "regenerated the wrong invoice")
    return True


def verify_email_config(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/invoices/verify-email-config")["data"]
    ctx.ids["email_state"] = "ready" if data["valid"] else ("invalid" if data["configured"] else "missing")
    color = "green" if data["valid"] else "yellow"
    log(f"   {data['message']}", color)
    if not data["configured"]:
        log("   Set SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD and EMAIL_FROM to send emails", "yellow")
    return True


def send_invoice_email(ctx: SuiteContext, api: ApiClient) -> bool:
    path = f"/api/invoices/{ctx.ids['invoice']}/send-email"
    state = ctx.ids.get("email_state")
    if state == "missing":
        response = expect_status(lambda: api.post(path), 503)
        log(f"   Not sent: {response.json().get('error')}", "yellow")
        return True
    if state != "ready":
        log("   Skipped: the SMTP relay rejected the configuration", "yellow")
        return True

    data = api.post(path, json={"message": "Please find your invoice attached."})["data"]
    expect(data["to"] == "customer@pdftest.com", f"sent to {data['to']}")
    invoice = api.get(f"/api/invoices/{ctx.ids['invoice']}")["invoice"]
    expect(invoice["emailSent"], "invoice not marked as emailed")
    log(f"   Sent to {data['to']}: {data['subject']}")
    return True


SUITE = Suite(
    name="pdf-email",
    title="PDF & Email API Tests",
    steps=[
        Step("CREATE_CUSTOMER", create_customer, fatal=True),
        Step("CREATE_INVOICE", create_invoice, fatal=True),
        Step("GENERATE_PDF", generate_pdf, fatal=True),
        Step("DOWNLOAD_PDF", download_pdf),
        Step("REGENERATE_PDF", regenerate_pdf),
        Step("VERIFY_EMAIL_CONFIG", verify_email_config),
        Step("SEND_INVOICE_EMAIL", send_invoice_email),
    ],
)
