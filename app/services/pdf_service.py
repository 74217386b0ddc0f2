"""
app/services/pdf_service.py

Purpose: Printable tax invoices

- Renders an invoice to an A4 PDF (seller, buyer, HSN/SAC lines, GST split,
  amount in words, signatory block)
- Stores the file under PDF_STORAGE_PATH and records it on the invoice
- Resolves the stored file for download and email attachment
"""

import os
from datetime import datetime
from io import BytesIO
from typing import Dict, Any, Optional

from fastapi.concurrency import run_in_threadpool
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_customers_collection, get_invoices_collection, NO_OBJECT_ID
from utils.gst_utils import get_state_name
from utils.invoice_utils import amount_in_words
from utils.time_utils import format_gst_date

logger = get_logger(__name__)

W, H = A4
MARGIN = 50
CONTENT_W = W - 2 * MARGIN

NAVY = HexColor("#1B2A4A")
CHARCOAL = HexColor("#2D3748")
SLATE = HexColor("#64748B")
SLATE_PALE = HexColor("#F1F5F9")
WHITE = HexColor("#FFFFFF")

# (header, x offset from the margin, width); amounts are right-aligned
ITEM_COLUMNS = (
    ("#", 0, 20),
    ("Item", 22, 150),
    ("HSN/SAC", 175, 55),
    ("Qty", 232, 40),
    ("Rate", 275, 55),
    ("Taxable", 333, 60),
    ("GST %", 396, 35),
    ("Amount", 433, 62),
)
RIGHT_ALIGNED = {"Qty", "Rate", "Taxable", "GST %", "Amount"}
ROW_HEIGHT = 18


def money(value) -> str:
    return f"{float(value or 0):,.2f}"


class InvoicePDF:
    """Draws one invoice onto a reportlab canvas, adding pages as the item table grows."""

    def __init__(self, target, invoice: Dict[str, Any], business: Dict[str, Any], customer: Dict[str, Any]):
        self.invoice = invoice
        self.business = business
        self.customer = customer
        self.c = canvas.Canvas(target, pagesize=A4)
        self.c.setTitle(f"Tax Invoice {invoice['invoice_number']}")
        self.c.setAuthor(business.get("business_name") or "")
        self.y = H - MARGIN

    def text(self, value, x, y, font="Helvetica", size=9, color=CHARCOAL, align="left"):
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        value = "" if value is None else str(value)
        if align == "right":
            self.c.drawRightString(x, y, value)
        elif align == "center":
            self.c.drawCentredString(x, y, value)
        else:
            self.c.drawString(x, y, value)

    def rule(self, y, color=SLATE, width=0.5):
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        self.c.line(MARGIN, y, W - MARGIN, y)

    def new_page(self):
        self.c.showPage()
        self.y = H - MARGIN
        self.text(f"{self.invoice['invoice_number']} (continued)", MARGIN, self.y, size=8, color=SLATE)
        self.y -= 20

    def check_space(self, needed):
        if self.y - needed < MARGIN + 20:
            self.new_page()
            return True
        return False

    def draw_header(self):
        business = self.business
        self.text("TAX INVOICE", W / 2, self.y, font="Helvetica-Bold", size=20, color=NAVY, align="center")
        self.y -= 32

        top = self.y
        self.text(business.get("business_name"), MARGIN, self.y, font="Helvetica-Bold", size=12, color=NAVY)
        self.y -= 14
        for line in (
            business.get("address_line1"),
            business.get("address_line2"),
            ", ".join(part for part in (business.get("city"), business.get("state")) if part)
            + (f" - {business['pincode']}" if business.get("pincode") else ""),
            f"GSTIN: {business.get('gstin')}",
            f"PAN: {business.get('pan')}" if business.get("pan") else None,
            f"Phone: {business['phone']}" if business.get("phone") else None,
            f"Email: {business['email']}" if business.get("email") else None,
        ):
            if line:
                self.text(line, MARGIN, self.y)
                self.y -= 12

        invoice = self.invoice
        place = invoice.get("place_of_supply")
        right_x = W - MARGIN
        right_y = top
        for label, value in (
            ("Invoice No", invoice["invoice_number"]),
            ("Invoice Date", format_gst_date(invoice.get("invoice_date"))),
            ("Due Date", format_gst_date(invoice.get("due_date"))),
            ("Place of Supply", f"{get_state_name(place) or ''} ({place})" if place else ""),
            ("Reverse Charge", "Yes" if invoice.get("reverse_charge") else "No"),
        ):
            if value:
                self.text(f"{label}: {value}", right_x, right_y, align="right")
                right_y -= 12

        self.y = min(self.y, right_y) - 6
        self.rule(self.y)
        self.y -= 18

    def draw_buyer(self):
        snapshot = self.invoice.get("customer") or {}
        customer = self.customer
        self.text("BILL TO", MARGIN, self.y, font="Helvetica-Bold", size=10, color=NAVY)
        self.y -= 14
        self.text(snapshot.get("name") or customer.get("customer_name"), MARGIN, self.y, font="Helvetica-Bold", size=10)
        self.y -= 12
        city_line = ", ".join(part for part in (snapshot.get("city"), snapshot.get("state")) if part)
        if customer.get("pincode"):
            city_line += f" - {customer['pincode']}"
        for line in (
            snapshot.get("billing_address"),
            city_line,
            f"GSTIN: {snapshot['gstin']}" if snapshot.get("gstin") else None,
            f"Phone: {customer['phone']}" if customer.get("phone") else None,
            f"Email: {customer['email']}" if customer.get("email") else None,
        ):
            if line:
                self.text(line, MARGIN, self.y)
                self.y -= 12
        self.y -= 10

    def draw_table_header(self):
        self.c.setFillColor(NAVY)
        self.c.rect(MARGIN, self.y - 6, CONTENT_W, ROW_HEIGHT + 2, fill=1, stroke=0)
        for header, offset, width in ITEM_COLUMNS:
            if header in RIGHT_ALIGNED:
                self.text(header, MARGIN + offset + width, self.y, font="Helvetica-Bold", color=WHITE, align="right")
            else:
                self.text(header, MARGIN + offset, self.y, font="Helvetica-Bold", color=WHITE)
        self.y -= ROW_HEIGHT + 2

    def draw_items(self):
        self.draw_table_header()
        for index, item in enumerate(self.invoice.get("items", []), start=1):
            if self.check_space(ROW_HEIGHT):
                self.draw_table_header()
            if index % 2 == 0:
                self.c.setFillColor(SLATE_PALE)
                self.c.rect(MARGIN, self.y - 5, CONTENT_W, ROW_HEIGHT, fill=1, stroke=0)
            name = item.get("item_name") or ""
            values = {
                "#": index,
                "Item": name if len(name) <= 30 else name[:29] + "…",
                "HSN/SAC": item.get("hsn_code") or item.get("sac_code") or "",
                "Qty": f"{float(item.get('quantity', 0)):g}",
                "Rate": money(item.get("unit_price")),
                "Taxable": money(item.get("taxable_amount")),
                "GST %": f"{float(item.get('gst_rate', 0)):g}%",
                "Amount": money(item.get("total_amount")),
            }
            for header, offset, width in ITEM_COLUMNS:
                if header in RIGHT_ALIGNED:
                    self.text(values[header], MARGIN + offset + width, self.y, align="right")
                else:
                    self.text(values[header], MARGIN + offset, self.y)
            self.y -= ROW_HEIGHT
        self.rule(self.y + 8)
        self.y -= 10

    def draw_totals(self):
        invoice = self.invoice
        rows = [("Subtotal", invoice.get("subtotal"))]
        if invoice.get("discount_amount"):
            rows.append(("Discount", -float(invoice["discount_amount"])))
        rows.append(("Taxable Value", invoice.get("taxable_amount")))
        for label, field in (("CGST", "cgst_amount"), ("SGST", "sgst_amount"), ("IGST", "igst_amount"), ("Cess", "cess_amount")):
            if invoice.get(field):
                rows.append((label, invoice[field]))
        if invoice.get("round_off_amount"):
            rows.append(("Round Off", invoice["round_off_amount"]))

        self.check_space(ROW_HEIGHT * (len(rows) + 3))
        label_x = W - MARGIN - 170
        for label, value in rows:
            self.text(f"{label}:", label_x, self.y)
            self.text(money(value), W - MARGIN, self.y, align="right")
            self.y -= 14

        self.rule(self.y + 8, color=NAVY, width=1)
        self.y -= 6
        total = invoice.get("final_amount", invoice.get("total_amount"))
        self.text("Total (Rs.):", label_x, self.y, font="Helvetica-Bold", size=11, color=NAVY)
        self.text(money(total), W - MARGIN, self.y, font="Helvetica-Bold", size=11, color=NAVY, align="right")
        self.y -= 22

        self.text(f"Amount in words: {amount_in_words(total)} Only", MARGIN, self.y, font="Helvetica-Oblique")
        self.y -= 20

    def draw_footer(self):
        invoice = self.invoice
        for title, body in (("Terms & Conditions", invoice.get("terms_and_conditions")), ("Notes", invoice.get("notes"))):
            if body:
                self.check_space(40)
                self.text(title, MARGIN, self.y, font="Helvetica-Bold")
                self.y -= 12
                for line in str(body).splitlines()[:6]:
                    self.text(line[:110], MARGIN, self.y, size=8)
                    self.y -= 11
                self.y -= 6

        self.check_space(80)
        sign_x = W - MARGIN
        self.text(f"For {self.business.get('business_name')}", sign_x, self.y, font="Helvetica-Bold", align="right")
        self.text("Authorized Signatory", sign_x, self.y - 45, size=8, color=SLATE, align="right")
        self.text(
            "This is a computer-generated invoice and does not require a signature.",
            W / 2, MARGIN - 20, size=7, color=SLATE, align="center",
        )

    def render(self):
        self.draw_header()
        self.draw_buyer()
        self.draw_items()
        self.draw_totals()
        self.draw_footer()
        self.c.save()


def render_invoice_pdf(invoice: Dict[str, Any], business: Dict[str, Any], customer: Optional[Dict[str, Any]] = None) -> bytes:
    buffer = BytesIO()
    InvoicePDF(buffer, invoice, business, customer or {}).render()
    return buffer.getvalue()


def pdf_file_name(invoice_number: str) -> str:
    return f"Invoice_{invoice_number.replace('/', '-')}.pdf"


def _write_file(path: str, content: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)


async def find_invoice(business_id: str, invoice_id: str) -> Dict[str, Any]:
    invoice = await get_invoices_collection().find_one(
        {"id": invoice_id, "business_id": business_id, "is_active": True}, NO_OBJECT_ID
    )
    if not invoice:
        raise ResourceNotFoundError("Invoice not found")
    return invoice


async def generate_invoice_pdf(business: Dict[str, Any], invoice_id: str) -> Dict[str, Any]:
    """
    Renders the invoice and overwrites any earlier file for it.

    Raises:
        ResourceNotFoundError: invoice missing or deleted
    """
    invoice = await find_invoice(business["id"], invoice_id)
    customer = await get_customers_collection().find_one({"id": invoice["customer_id"]}, NO_OBJECT_ID) or {}

    content = await run_in_threadpool(render_invoice_pdf, invoice, business, customer)
    path = os.path.join(settings.PDF_STORAGE_PATH, business["id"], pdf_file_name(invoice["invoice_number"]))
    await run_in_threadpool(_write_file, path, content)

    now = datetime.utcnow()
    await get_invoices_collection().update_one(
        {"id": invoice_id},
        {"$set": {"pdf_generated": True, "pdf_file_path": path, "pdf_generated_at": now, "updated_at": now}},
    )

    with LogContext(business_id=business["id"]):
        logger.info(f"📄 PDF generated for invoice {invoice['invoice_number']} ({len(content)} bytes)")

    return {
        "invoiceId": invoice_id,
        "invoiceNumber": invoice["invoice_number"],
        "fileName": pdf_file_name(invoice["invoice_number"]),
        "size": len(content),
        "generatedAt": now,
    }


async def get_invoice_pdf(business: Dict[str, Any], invoice_id: str) -> Dict[str, Any]:
    """
    Returns the invoice document together with its stored PDF path.

    Raises:
        ResourceNotFoundError: invoice missing, PDF never generated, or file gone from disk
    """
    invoice = await find_invoice(business["id"], invoice_id)
    path = invoice.get("pdf_file_path")
    if not invoice.get("pdf_generated") or not path:
        raise ResourceNotFoundError("PDF not generated for this invoice. Please generate PDF first.")
    if not os.path.isfile(path):
        raise ResourceNotFoundError("PDF file not found on disk. Please generate it again.")
    return invoice
