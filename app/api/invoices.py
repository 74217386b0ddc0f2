"""
app/api/invoices.py

Purpose: Sales invoice endpoints (business-scoped, bearer token required)
"""

from datetime import date
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from app.api.deps import get_current_business
from app.schemas.invoice import EmailCheckRequest, InvoiceCreate, InvoiceEmailRequest, InvoiceUpdate
from app.schemas.response import MessageResponse
from app.services import email_service, invoice_service, pdf_service

router = APIRouter(prefix="/invoices")


@router.post("", status_code=201)
async def create_invoice(
    payload: InvoiceCreate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    invoice = await invoice_service.create_invoice(business, payload)
    return {"success": True, "message": "Invoice created successfully", "invoice": invoice}


@router.get("")
async def list_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    invoice_type: Optional[str] = Query(None, alias="invoiceType"),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    filed_in_gstr1: Optional[bool] = Query(None, alias="filedInGstr1"),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return await invoice_service.list_invoices(
        business, page, limit, search, invoice_type, customer_id, start_date, end_date, filed_in_gstr1
    )


@router.get("/stats")
async def invoice_stats(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2017, le=2100),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return {"success": True, "stats": await invoice_service.invoice_stats(business, month, year)}


@router.get("/verify-email-config")
async def verify_email_config(business: Dict[str, Any] = Depends(get_current_business)):
    data = await email_service.verify_email_config()
    return {"success": True, "message": data["message"], "data": data}


@router.post("/test-email")
async def send_test_email(
    payload: EmailCheckRequest,
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await email_service.send_test_email(payload.to)
    return {"success": True, "message": f"Test email sent to {payload.to}", "data": data}


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    return {"success": True, "invoice": await invoice_service.get_invoice(business, invoice_id)}


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    business: Dict[str, Any] = Depends(get_current_business),
):
    invoice = await invoice_service.update_invoice(business, invoice_id, payload)
    return {"success": True, "message": "Invoice updated successfully", "invoice": invoice}


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(invoice_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    await invoice_service.delete_invoice(business, invoice_id)
    return MessageResponse(message="Invoice deleted successfully")


@router.post("/{invoice_id}/generate-pdf")
async def generate_pdf(invoice_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    data = await pdf_service.generate_invoice_pdf(business, invoice_id)
    return {"success": True, "message": "PDF generated successfully", "data": data}


@router.get("/{invoice_id}/download-pdf")
async def download_pdf(invoice_id: str, business: Dict[str, Any] = Depends(get_current_business)):
    invoice = await pdf_service.get_invoice_pdf(business, invoice_id)
    return FileResponse(
        invoice["pdf_file_path"],
        media_type="application/pdf",
        filename=pdf_service.pdf_file_name(invoice["invoice_number"]),
    )


@router.post("/{invoice_id}/send-email")
async def send_invoice_email(
    invoice_id: str,
    payload: Optional[InvoiceEmailRequest] = None,
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await email_service.send_invoice_email(business, invoice_id, payload or InvoiceEmailRequest())
    return {"success": True, "message": f"Invoice emailed to {data['to']}", "data": data}
