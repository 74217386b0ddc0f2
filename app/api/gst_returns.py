"""
app/api/gst_returns.py

Purpose: GST return endpoints

- /gstr1: generate, fetch, export JSON, mark filed
- /gstr3b: generate, fetch, export JSON
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends, Path
from fastapi.responses import Response

from app.api.deps import get_current_business
from app.schemas.gst_return import GenerateReturnRequest
from app.services import gstr1_service, gstr3b_service, return_store

gstr1_router = APIRouter(prefix="/gstr1")
gstr3b_router = APIRouter(prefix="/gstr3b")


def _json_download(return_type: str, business: Dict[str, Any], stored: Dict[str, Any], year: int, month: int) -> Response:
    filename = return_store.export_filename(return_type, business["gstin"], year, month)
    return Response(
        content=return_store.export_json(stored["return_data"]),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ==============================================
# GSTR-1
# ==============================================

@gstr1_router.post("/generate")
async def generate_gstr1(
    payload: GenerateReturnRequest,
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await gstr1_service.generate_gstr1(business, payload.month, payload.year)
    return {"success": True, "message": "GSTR-1 generated successfully", "data": data}


@gstr1_router.get("/{year}/{month}")
async def get_gstr1(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return {"success": True, "data": await gstr1_service.get_gstr1(business, month, year)}


@gstr1_router.get("/{year}/{month}/export/json")
async def export_gstr1(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    stored = await return_store.get_return(business["id"], "gstr1", year, month)
    return _json_download("gstr1", business, stored, year, month)


@gstr1_router.post("/{year}/{month}/mark-filed")
async def mark_gstr1_filed(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await gstr1_service.mark_gstr1_filed(business, month, year)
    return {"success": True, "message": "GSTR-1 marked as filed", "data": data}


# ==============================================
# GSTR-3B
# ==============================================

@gstr3b_router.post("/generate")
async def generate_gstr3b(
    payload: GenerateReturnRequest,
    business: Dict[str, Any] = Depends(get_current_business),
):
    data = await gstr3b_service.generate_gstr3b(business, payload.month, payload.year)
    return {"success": True, "message": "GSTR-3B generated successfully", "data": data}


@gstr3b_router.get("/{year}/{month}")
async def get_gstr3b(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    return {"success": True, "data": await gstr3b_service.get_gstr3b(business, month, year)}


@gstr3b_router.get("/{year}/{month}/export/json")
async def export_gstr3b(
    year: int = Path(..., ge=2017, le=2100),
    month: int = Path(..., ge=1, le=12),
    business: Dict[str, Any] = Depends(get_current_business),
):
    stored = await return_store.get_return(business["id"], "gstr3b", year, month)
    return _json_download("gstr3b", business, stored, year, month)
