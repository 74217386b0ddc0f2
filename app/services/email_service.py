"""
app/services/email_service.py

Purpose: Invoice delivery by email

- SMTP sender built from settings (implicit TLS or STARTTLS)
- Sends a generated invoice PDF to the customer or a given address
- Test message and connection check for the configured relay
"""

import html
import smtplib
from datetime import datetime
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Dict, Any, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import ExternalServiceError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_customers_collection, get_invoices_collection, NO_OBJECT_ID
from app.schemas.invoice import InvoiceEmailRequest
from app.services import pdf_service
from utils.time_utils import format_gst_date

logger = get_logger(__name__)

Attachment = Tuple[str, bytes]


class EmailSender:
    """Blocking SMTP client; callers run it in a worker thread."""

    def __init__(self, smtp_server: str, smtp_port: int, smtp_username: str, smtp_password: str,
                 sender_email: str, sender_name: str = "", use_ssl: bool = False, timeout: float = 30.0):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, timeout=self.timeout)
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            return server

        server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)
        # STARTTLS and login only when credentials are set; local relays run without either
        if self.smtp_username and self.smtp_password:
            try:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
            except smtplib.SMTPException:
                server.close()
                raise
        return server

    def build_message(self, to_email: str, subject: str, body: str, html_body: Optional[str] = None,
                      attachments: Optional[List[Attachment]] = None) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["From"] = formataddr((self.sender_name, self.sender_email))
        msg["To"] = to_email
        msg["Subject"] = subject

        text = MIMEMultipart("alternative")
        text.attach(MIMEText(body, "plain"))
        if html_body:
            text.attach(MIMEText(html_body, "html"))
        msg.attach(text)

        for filename, content in attachments or []:
            part = MIMEApplication(content, _subtype="pdf")
            part.add_header("Content-Disposition", "attachment", filename=filename)
            msg.attach(part)
        return msg

    def send(self, to_email: str, subject: str, body: str, html_body: Optional[str] = None,
             attachments: Optional[List[Attachment]] = None) -> None:
        msg = self.build_message(to_email, subject, body, html_body, attachments)
        with self._connect() as server:
            server.send_message(msg)
        logger.info(f"✉️ Email sent to {to_email}: {subject}")

    def verify(self) -> None:
        with self._connect() as server:
            server.noop()


def sender_from_settings() -> Optional[EmailSender]:
    """
    None until SMTP_HOST and EMAIL_FROM are set; username and password stay
    optional for relays that accept unauthenticated mail.
    """
    if not settings.SMTP_HOST or not settings.EMAIL_FROM:
        return None
    return EmailSender(
        smtp_server=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_username=settings.SMTP_USERNAME,
        smtp_password=settings.SMTP_PASSWORD,
        sender_email=settings.EMAIL_FROM,
        sender_name=settings.EMAIL_FROM_NAME,
        use_ssl=settings.SMTP_USE_SSL,
        timeout=settings.SMTP_TIMEOUT,
    )


def require_sender() -> EmailSender:
    sender = sender_from_settings()
    if sender is None:
        raise ExternalServiceError(
            "Email is not configured. Set SMTP_HOST and EMAIL_FROM to send emails.",
            code="EMAIL_NOT_CONFIGURED",
            status_code=503,
        )
    return sender


async def _deliver(sender: EmailSender, to_email: str, subject: str, body: str,
                   html_body: Optional[str] = None, attachments: Optional[List[Attachment]] = None) -> None:
    try:
        await run_in_threadpool(sender.send, to_email, subject, body, html_body, attachments)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ Email to {to_email} failed: {e}")
        raise ExternalServiceError(f"Failed to send email: {e}", code="EMAIL_DELIVERY_FAILED")


def invoice_email_bodies(invoice: Dict[str, Any], business: Dict[str, Any], message: Optional[str]) -> Tuple[str, str]:
    customer_name = (invoice.get("customer") or {}).get("name") or "Customer"
    amount = f"Rs. {float(invoice.get('final_amount', invoice.get('total_amount', 0))):,.2f}"
    invoice_date = format_gst_date(invoice.get("invoice_date"))
    intro = message or "Please find attached the tax invoice for your recent purchase."

    body = (
        f"Dear {customer_name},\n\n"
        f"{intro}\n\n"
        f"Invoice number: {invoice['invoice_number']}\n"
        f"Invoice date: {invoice_date}\n"
        f"Amount: {amount}\n\n"
        f"Regards,\n{business.get('business_name')}\nGSTIN: {business.get('gstin')}\n"
    )
    html_body = f"""
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6;">
    <p>Dear {html.escape(customer_name)},</p>
    <p>{html.escape(intro)}</p>
    <table style="border-collapse: collapse;">
        <tr><td><strong>Invoice number</strong></td><td>{html.escape(invoice['invoice_number'])}</td></tr>
        <tr><td><strong>Invoice date</strong></td><td>{invoice_date}</td></tr>
        <tr><td><strong>Amount</strong></td><td>{amount}</td></tr>
    </table>
    <p>Regards,<br>{html.escape(business.get('business_name') or '')}<br>GSTIN: {html.escape(business.get('gstin') or '')}</p>
</body>
</html>
"""
    return body, html_body


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def send_invoice_email(business: Dict[str, Any], invoice_id: str, request: InvoiceEmailRequest) -> Dict[str, Any]:
    """
    Raises:
        ResourceNotFoundError: invoice missing
        ValidationError: PDF not generated yet, or no recipient address
        ExternalServiceError: email not configured (503) or the relay refused (502)
    """
    invoice = await pdf_service.find_invoice(business["id"], invoice_id)
    if not invoice.get("pdf_generated") or not invoice.get("pdf_file_path"):
        raise ValidationError("Invoice PDF not generated. Please generate PDF first.")

    to_email = request.to
    if not to_email:
        customer = await get_customers_collection().find_one({"id": invoice["customer_id"]}, NO_OBJECT_ID) or {}
        to_email = customer.get("email")
    if not to_email:
        raise ValidationError("No recipient email address provided")

    sender = require_sender()
    try:
        content = await run_in_threadpool(_read_file, invoice["pdf_file_path"])
    except FileNotFoundError:
        raise ValidationError("Invoice PDF file not found on disk. Please generate it again.")

    subject = request.subject or f"Invoice {invoice['invoice_number']} from {business.get('business_name')}"
    body, html_body = invoice_email_bodies(invoice, business, request.message)

    with LogContext(business_id=business["id"]):
        await _deliver(
            sender, to_email, subject, body, html_body,
            [(pdf_service.pdf_file_name(invoice["invoice_number"]), content)],
        )

    now = datetime.utcnow()
    await get_invoices_collection().update_one(
        {"id": invoice_id},
        {"$set": {
            "email_sent": True,
            "email_sent_to": to_email,
            "email_sent_at": now,
            "email_subject": subject,
            "updated_at": now,
        }},
    )
    return {"to": to_email, "subject": subject, "invoiceNumber": invoice["invoice_number"], "sentAt": now}


async def send_test_email(to_email: str) -> Dict[str, Any]:
    sender = require_sender()
    body = (
        "This is a test email from the GST Compliance API.\n\n"
        "If you received it, invoice emails can be sent.\n\n"
        f"Host: {sender.smtp_server}:{sender.smtp_port}\nFrom: {sender.sender_email}\n"
    )
    await _deliver(sender, to_email, "Test Email from GST Compliance", body)
    return {"to": to_email}


async def verify_email_config() -> Dict[str, Any]:
    """
    Never raises: an unusable configuration is reported in the result.
    """
    sender = sender_from_settings()
    if sender is None:
        return {"configured": False, "valid": False, "message": "Email is not configured. Set SMTP_HOST and EMAIL_FROM."}

    details = {"host": sender.smtp_server, "port": sender.smtp_port, "from": sender.sender_email}
    try:
        await run_in_threadpool(sender.verify)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Email configuration check failed: {e}")
        return {"configured": True, "valid": False, "message": f"Email configuration error: {e}", **details}
    return {"configured": True, "valid": True, "message": "Email configuration is valid and ready to send emails", **details}
