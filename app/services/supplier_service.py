"""
app/services/supplier_service.py

Purpose: Supplier management

- Registered / unregistered / composition suppliers
- Optional GSTIN, validated when present
- Soft delete, refused while purchases reference the supplier
"""

import uuid
from datetime import datetime
from typing import Dict, Any, Optional

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.mongo import get_suppliers_collection, get_purchases_collection, NO_OBJECT_ID
from app.schemas.supplier import SupplierCreate, SupplierUpdate, SupplierOut
from app.services.common import paginate, pagination, search_filter
from utils.constants import SUPPLIER_TYPES
from utils.gst_utils import state_code_for_name
from utils.validation_utils import validate_gstin, validate_pan, validate_email

logger = get_logger(__name__)


def _check_codes(gstin: Optional[str], pan: Optional[str], email: Optional[str]) -> None:
    if gstin:
        check = validate_gstin(gstin)
        if not check:
            raise ValidationError(f"Invalid GSTIN: {check.message}")
    if pan:
        check = validate_pan(pan)
        if not check:
            raise ValidationError(f"Invalid PAN: {check.message}")
    if email and not validate_email(email):
        raise ValidationError("Invalid email format")


async def _ensure_gstin_free(business_id: str, gstin: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not gstin:
        return
    query = {"business_id": business_id, "gstin": gstin, "is_active": True}
    if exclude_id:
        query["id"] = {"$ne": exclude_id}
    if await get_suppliers_collection().find_one(query, NO_OBJECT_ID):
        raise ConflictError("Supplier with this GSTIN already exists")


async def find_supplier(business_id: str, supplier_id: str) -> Dict[str, Any]:
    supplier = await get_suppliers_collection().find_one(
        {"id": supplier_id, "business_id": business_id, "is_active": True}, NO_OBJECT_ID
    )
    if not supplier:
        raise ResourceNotFoundError("Supplier not found")
    return supplier


async def create_supplier(business: Dict[str, Any], payload: SupplierCreate) -> Dict[str, Any]:
    _check_codes(payload.gstin, payload.pan, payload.email)
    await _ensure_gstin_free(business["id"], payload.gstin)

    now = datetime.utcnow()
    supplier = payload.to_doc()
    supplier.update({
        "id": str(uuid.uuid4()),
        "business_id": business["id"],
        "supplier_type": payload.supplier_type,
        "country": payload.country,
        "state_code": payload.gstin[:2] if payload.gstin else state_code_for_name(payload.state),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    })

    await get_suppliers_collection().insert_one(dict(supplier))
    logger.info(f"Supplier created: {supplier['supplier_name']} ({supplier['supplier_type']})")

    return SupplierOut.from_doc(supplier)


async def list_suppliers(
    business: Dict[str, Any],
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    supplier_type: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business["id"], "is_active": True}
    if supplier_type:
        if supplier_type not in SUPPLIER_TYPES:
            raise ValidationError(f"Supplier type must be one of {', '.join(SUPPLIER_TYPES)}")
        query["supplier_type"] = supplier_type
    if search:
        query.update(search_filter(search, ("supplier_name", "gstin", "email", "phone")))

    suppliers, total = await paginate(
        get_suppliers_collection(), query, page, limit, sort=(("supplier_name", 1),)
    )

    return {
        "success": True,
        "data": [SupplierOut.from_doc(s) for s in suppliers],
        "pagination": pagination(total, page, limit),
    }


async def get_supplier(business: Dict[str, Any], supplier_id: str) -> Dict[str, Any]:
    supplier = await find_supplier(business["id"], supplier_id)
    supplier["purchase_count"] = await get_purchases_collection().count_documents(
        {"supplier_id": supplier_id, "is_active": True}
    )
    return SupplierOut.from_doc(supplier)


async def update_supplier(business: Dict[str, Any], supplier_id: str, payload: SupplierUpdate) -> Dict[str, Any]:
    existing = await find_supplier(business["id"], supplier_id)
    changes = payload.to_doc()

    gstin = changes["gstin"] if "gstin" in changes else existing.get("gstin")
    _check_codes(gstin, changes.get("pan"), changes.get("email"))
    if gstin and gstin != existing.get("gstin"):
        await _ensure_gstin_free(business["id"], gstin, exclude_id=supplier_id)

    if "gstin" in changes or "state" in changes:
        changes["state_code"] = gstin[:2] if gstin else state_code_for_name(
            changes.get("state", existing.get("state"))
        )
    changes["updated_at"] = datetime.utcnow()

    await get_suppliers_collection().update_one({"id": supplier_id}, {"$set": changes})
    existing.update(changes)

    logger.info(f"Supplier updated: {supplier_id}")
    return SupplierOut.from_doc(existing)


async def delete_supplier(business: Dict[str, Any], supplier_id: str) -> None:
    """
    Soft delete.

    Raises:
        ValidationError: the supplier still has purchases
    """
    await find_supplier(business["id"], supplier_id)

    purchase_count = await get_purchases_collection().count_documents(
        {"supplier_id": supplier_id, "is_active": True}
    )
    if purchase_count:
        raise ValidationError(
            f"Cannot delete supplier with {purchase_count} existing purchase(s)",
            details={"purchaseCount": purchase_count},
        )

    await get_suppliers_collection().update_one(
        {"id": supplier_id},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}},
    )
    logger.info(f"Supplier deleted: {supplier_id}")


async def supplier_stats(business: Dict[str, Any]) -> Dict[str, int]:
    suppliers = get_suppliers_collection()
    base = {"business_id": business["id"], "is_active": True}

    return {
        "totalSuppliers": await suppliers.count_documents(base),
        "registeredSuppliers": await suppliers.count_documents({**base, "supplier_type": "registered"}),
        "unregisteredSuppliers": await suppliers.count_documents({**base, "supplier_type": "unregistered"}),
        "compositionSuppliers": await suppliers.count_documents({**base, "supplier_type": "composition"}),
    }
