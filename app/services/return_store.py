"""
app/services/return_store.py

Purpose: Persistence for generated GST returns

- One stored return per business, return type and filing period
- Re-generation overwrites the payload and resets status to "generated"
- Marking a return filed
"""

import json
import uuid
from datetime import datetime
from typing import Dict, Any

from pymongo import ReturnDocument

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.mongo import get_gst_returns_collection, NO_OBJECT_ID
from utils.constants import RETURN_STATUS_GENERATED, RETURN_STATUS_FILED
from utils.time_utils import filing_period, financial_year, validate_month

logger = get_logger(__name__)

RETURN_LABELS = {"gstr1": "GSTR-1", "gstr3b": "GSTR-3B"}


def check_period(month: int, year: int) -> None:
    try:
        validate_month(month, year)
    except ValueError as e:
        raise ValidationError(str(e))


def public_return(stored: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": stored["id"],
        "returnType": stored["return_type"],
        "filingPeriod": stored["filing_period"],
        "financialYear": stored["financial_year"],
        "status": stored["status"],
        "totalTaxLiability": stored.get("total_tax_liability", 0),
        "generatedAt": stored["generated_at"].isoformat() if stored.get("generated_at") else None,
        "filedAt": stored["filed_at"].isoformat() if stored.get("filed_at") else None,
        "data": stored["return_data"],
    }


async def save_return(
    business_id: str,
    return_type: str,
    year: int,
    month: int,
    return_data: Dict[str, Any],
    total_tax_liability: float,
) -> Dict[str, Any]:
    """
    Upserts the stored return for the period.

    Returns:
        The stored document after the write
    """
    now = datetime.utcnow()
    stored = await get_gst_returns_collection().find_one_and_update(
        {"business_id": business_id, "return_type": return_type, "filing_period": filing_period(year, month)},
        {
            "$set": {
                "financial_year": financial_year(year, month),
                "month": month,
                "year": year,
                "return_data": return_data,
                "total_tax_liability": total_tax_liability,
                "status": RETURN_STATUS_GENERATED,
                "generated_at": now,
                "filed_at": None,
                "updated_at": now,
            },
            "$setOnInsert": {"id": str(uuid.uuid4()), "created_at": now},
        },
        projection=NO_OBJECT_ID,
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    logger.info(f"💾 Saved {RETURN_LABELS[return_type]} for {filing_period(year, month)}")
    return stored


async def get_return(business_id: str, return_type: str, year: int, month: int) -> Dict[str, Any]:
    """
    Raises:
        ResourceNotFoundError: nothing generated for the period yet
    """
    period = filing_period(year, month)
    stored = await get_gst_returns_collection().find_one(
        {"business_id": business_id, "return_type": return_type, "filing_period": period},
        NO_OBJECT_ID,
    )
    if not stored:
        raise ResourceNotFoundError(
            f"{RETURN_LABELS[return_type]} not found for period {period}. Please generate it first."
        )
    return stored


async def mark_filed(business_id: str, return_type: str, year: int, month: int) -> Dict[str, Any]:
    stored = await get_return(business_id, return_type, year, month)
    now = datetime.utcnow()
    await get_gst_returns_collection().update_one(
        {"id": stored["id"]},
        {"$set": {"status": RETURN_STATUS_FILED, "filed_at": now, "updated_at": now}},
    )
    stored.update({"status": RETURN_STATUS_FILED, "filed_at": now})
    return stored


def export_json(return_data: Dict[str, Any]) -> str:
    return json.dumps(return_data, indent=2)


def export_filename(return_type: str, gstin: str, year: int, month: int) -> str:
    return f"{return_type.upper()}_{gstin}_{year}{month:02d}.json"
