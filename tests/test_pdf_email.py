import os
import re
import smtplib
from email import message_from_bytes

import pytest

from app.core.config import settings
from app.services.pdf_service import render_invoice_pdf
from utils.invoice_utils import amount_in_words

KARNATAKA_GSTIN = "29AABCT1332L1ZD"


def create_customer(client, headers, **overrides):
    payload = {
        "customerName": "Acme Traders",
        "customerType": "b2b",
        "gstin": KARNATAKA_GSTIN,
        "billingAddress": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "email": "accounts@acme.example.com",
    }
    payload.update(overrides)
    response = client.post("/api/customers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["customer"]


@pytest.fixture
def invoice(client, auth_headers):
    customer = create_customer(client, auth_headers)
    payload = {
        "customerId": customer["id"],
        "invoiceDate": "2024-01-15",
        "notes": "Thank you for your business",
        "items": [
            {"itemName": "Laptop", "hsnCode": "8471", "quantity": 2, "unitPrice": 50000, "gstRate": 18},
            {"itemName": "Installation", "sacCode": "998713", "quantity": 1, "unitPrice": 2500, "gstRate": 18},
        ],
    }
    response = client.post("/api/invoices", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()["invoice"]


class Outbox(list):
    smtp = None


@pytest.fixture
def mail(monkeypatch):
    """Configures SMTP and swaps the client for one that records sent messages."""
    sent = Outbox()

    class RecordingSMTP:
        fail_with = None

        def __init__(self, host, port, timeout=None):
            self.host = host
            self.port = port

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            pass

        def login(self, username, password):
            pass

        def noop(self):
            return 250, b"OK"

        def close(self):
            pass

        def send_message(self, msg):
            if RecordingSMTP.fail_with:
                raise RecordingSMTP.fail_with
            sent.append(message_from_bytes(msg.as_bytes()))

    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_PORT", 2525)
    monkeypatch.setattr(settings, "EMAIL_FROM", "billing@example.com")
    sent.smtp = RecordingSMTP
    return sent


def generate(client, headers, invoice_id):
    return client.post(f"/api/invoices/{invoice_id}/generate-pdf", headers=headers)


# ---------------------------------------------------------------- pdf

def test_generate_pdf(client, auth_headers, invoice, pdf_storage):
    response = generate(client, auth_headers, invoice["id"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fileName"] == f"Invoice_{invoice['invoiceNumber']}.pdf"
    assert data["size"] > 1000

    files = [name for _, _, names in os.walk(pdf_storage) for name in names]
    assert files == [data["fileName"]]

    fetched = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["invoice"]
    assert fetched["pdfGenerated"] is True
    assert fetched["pdfGeneratedAt"]
    assert "pdfFilePath" not in fetched


def test_download_pdf(client, auth_headers, invoice):
    generate(client, auth_headers, invoice["id"])
    response = client.get(f"/api/invoices/{invoice['id']}/download-pdf", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert invoice["invoiceNumber"] in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_download_before_generating(client, auth_headers, invoice):
    response = client.get(f"/api/invoices/{invoice['id']}/download-pdf", headers=auth_headers)
    assert response.status_code == 404
    assert "generate PDF first" in response.json()["error"]


def test_download_when_file_removed(client, auth_headers, invoice, pdf_storage):
    generate(client, auth_headers, invoice["id"])
    for root, _, names in os.walk(pdf_storage):
        for name in names:
            os.remove(os.path.join(root, name))
    response = client.get(f"/api/invoices/{invoice['id']}/download-pdf", headers=auth_headers)
    assert response.status_code == 404


def test_regenerate_pdf(client, auth_headers, invoice):
    assert generate(client, auth_headers, invoice["id"]).status_code == 200
    assert generate(client, auth_headers, invoice["id"]).status_code == 200


def test_generate_pdf_for_missing_or_deleted_invoice(client, auth_headers, invoice):
    assert generate(client, auth_headers, "missing").status_code == 404
    client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers)
    assert generate(client, auth_headers, invoice["id"]).status_code == 404


def test_edit_marks_pdf_stale(client, auth_headers, invoice):
    generate(client, auth_headers, invoice["id"])
    response = client.put(f"/api/invoices/{invoice['id']}", json={"notes": "Revised"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["invoice"]["pdfGenerated"] is False
    assert client.get(f"/api/invoices/{invoice['id']}/download-pdf", headers=auth_headers).status_code == 404


def test_pdf_routes_require_token(client, invoice):
    assert client.post(f"/api/invoices/{invoice['id']}/generate-pdf").status_code == 401
    assert client.get(f"/api/invoices/{invoice['id']}/download-pdf").status_code == 401


def test_long_invoice_spans_pages():
    item = {
        "item_name": "Steel bolt M8 x 40 galvanised", "hsn_code": "7318", "quantity": 100,
        "unit_price": 4.5, "taxable_amount": 450, "gst_rate": 18, "total_amount": 531,
    }
    invoice = {
        "invoice_number": "INV-202401-0007",
        "invoice_date": None,
        "customer": {"name": "Acme Traders", "state": "Karnataka"},
        "items": [item] * 120,
        "subtotal": 54000, "taxable_amount": 54000, "igst_amount": 9720,
        "total_amount": 63720, "final_amount": 63720,
    }
    pdf = render_invoice_pdf(invoice, {"business_name": "Test Business", "gstin": "27AAPFU0939F1ZV"})
    assert pdf.startswith(b"%PDF")
    pages = int(re.search(rb"/Count (\d+)", pdf).group(1))
    assert pages > 1


@pytest.mark.parametrize("amount, words", [
    (0, "Zero Rupees"),
    (7, "Seven Rupees"),
    (118000, "One Lakh Eighteen Thousand Rupees"),
    (1234.5, "One Thousand Two Hundred Thirty Four Rupees and Fifty Paise"),
    (25000000, "Two Crore Fifty Lakh Rupees"),
    (99.999, "One Hundred Rupees"),
])
def test_amount_in_words(amount, words):
    assert amount_in_words(amount) == words


# ---------------------------------------------------------------- email

def test_send_invoice_email_to_customer(client, auth_headers, invoice, mail):
    generate(client, auth_headers, invoice["id"])
    response = client.post(f"/api/invoices/{invoice['id']}/send-email", headers=auth_headers)
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["to"] == "accounts@acme.example.com"
    assert data["subject"] == f"Invoice {invoice['invoiceNumber']} from Test Business Pvt Ltd"

    assert len(mail) == 1
    message = mail[0]
    assert message["To"] == "accounts@acme.example.com"
    assert "billing@example.com" in message["From"]
    attachments = [part for part in message.walk() if part.get_filename()]
    assert [part.get_filename() for part in attachments] == [f"Invoice_{invoice['invoiceNumber']}.pdf"]
    assert attachments[0].get_payload(decode=True).startswith(b"%PDF")

    fetched = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["invoice"]
    assert fetched["emailSent"] is True
    assert fetched["emailSentTo"] == "accounts@acme.example.com"


def test_send_invoice_email_with_overrides(client, auth_headers, invoice, mail):
    generate(client, auth_headers, invoice["id"])
    body = {"to": "cfo@acme.example.com", "subject": "Your January invoice", "message": "Payment due in 15 days."}
    response = client.post(f"/api/invoices/{invoice['id']}/send-email", json=body, headers=auth_headers)
    assert response.status_code == 200
    message = mail[0]
    assert message["To"] == "cfo@acme.example.com"
    assert message["Subject"] == "Your January invoice"
    text = next(part for part in message.walk() if part.get_content_type() == "text/plain")
    assert "Payment due in 15 days." in text.get_payload(decode=True).decode()


def test_send_email_requires_pdf(client, auth_headers, invoice, mail):
    response = client.post(f"/api/invoices/{invoice['id']}/send-email", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Invoice PDF not generated. Please generate PDF first."
    assert mail == []


def test_send_email_without_recipient(client, auth_headers, mail):
    customer = create_customer(client, auth_headers, email=None)
    invoice = client.post("/api/invoices", headers=auth_headers, json={
        "customerId": customer["id"],
        "invoiceDate": "2024-01-15",
        "items": [{"itemName": "Laptop", "hsnCode": "8471", "quantity": 1, "unitPrice": 50000, "gstRate": 18}],
    }).json()["invoice"]
    generate(client, auth_headers, invoice["id"])

    response = client.post(f"/api/invoices/{invoice['id']}/send-email", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No recipient email address provided"


def test_send_email_rejects_bad_address(client, auth_headers, invoice, mail):
    generate(client, auth_headers, invoice["id"])
    response = client.post(
        f"/api/invoices/{invoice['id']}/send-email", json={"to": "not-an-email"}, headers=auth_headers
    )
    assert response.status_code == 422


def test_send_email_when_not_configured(client, auth_headers, invoice):
    generate(client, auth_headers, invoice["id"])
    response = client.post(f"/api/invoices/{invoice['id']}/send-email", headers=auth_headers)
    assert response.status_code == 503
    assert response.json()["code"] == "EMAIL_NOT_CONFIGURED"


def test_send_email_relay_failure(client, auth_headers, invoice, mail):
    generate(client, auth_headers, invoice["id"])
    mail.smtp.fail_with = smtplib.SMTPException("relay down")

    response = client.post(f"/api/invoices/{invoice['id']}/send-email", headers=auth_headers)
    assert response.status_code == 502
    assert response.json()["code"] == "EMAIL_DELIVERY_FAILED"
    fetched = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["invoice"]
    assert fetched["emailSent"] is False


def test_verify_email_config_unconfigured(client, auth_headers):
    response = client.get("/api/invoices/verify-email-config", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["configured"] is False
    assert data["valid"] is False


def test_verify_email_config(client, auth_headers, mail):
    data = client.get("/api/invoices/verify-email-config", headers=auth_headers).json()["data"]
    assert data == {
        "configured": True,
        "valid": True,
        "message": "Email configuration is valid and ready to send emails",
        "host": "smtp.example.com",
        "port": 2525,
        "from": "billing@example.com",
    }


def test_verify_email_config_unreachable(client, auth_headers, mail, monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    data = client.get("/api/invoices/verify-email-config", headers=auth_headers).json()["data"]
    assert data["configured"] is True
    assert data["valid"] is False
    assert "connection refused" in data["message"]


def test_send_test_email(client, auth_headers, mail):
    response = client.post("/api/invoices/test-email", json={"to": "me@example.com"}, headers=auth_headers)
    assert response.status_code == 200
    assert mail[0]["To"] == "me@example.com"

    bad = client.post("/api/invoices/test-email", json={"to": "nope"}, headers=auth_headers)
    assert bad.status_code == 422
