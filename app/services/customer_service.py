"""
app/services/customer_service.py

Purpose: Customer management

- Create / update with GSTIN rules per customer type
- Paginated listing with search
- Soft delete, refused while invoices reference the customer
- Counts by customer type
"""

import uuid
from datetime import datetime
from typing import Dict, Any, Optional

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_customers_collection, get_invoices_collection, NO_OBJECT_ID
from app.schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut
from app.services.common import paginate, pagination, search_filter
from utils.constants import (
    CUSTOMER_TYPES,
    CUSTOMER_TYPES_REQUIRING_GSTIN,
    EXPORT_STATE_CODE,
)
from utils.gst_utils import state_code_for_name
from utils.validation_utils import validate_gstin, validate_pan, validate_email

logger = get_logger(__name__)


def resolve_customer_state_code(customer_type: str, gstin: Optional[str], state: Optional[str]) -> Optional[str]:
    """
    Place-of-supply code for a customer: exports use 96, registered
    customers take it from their GSTIN, everyone else from the state name.
    """
    if customer_type == "export":
        return EXPORT_STATE_CODE
    if gstin:
        return gstin[:2]
    return state_code_for_name(state)


def _check_party_codes(customer_type: str, gstin: Optional[str], pan: Optional[str], email: Optional[str]) -> None:
    if customer_type in CUSTOMER_TYPES_REQUIRING_GSTIN and not gstin:
        raise ValidationError(f"GSTIN is required for {customer_type.upper()} customers")

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
    if await get_customers_collection().find_one(query, NO_OBJECT_ID):
        raise ConflictError("Customer with this GSTIN already exists")


async def _find_customer(business_id: str, customer_id: str) -> Dict[str, Any]:
    customer = await get_customers_collection().find_one(
        {"id": customer_id, "business_id": business_id, "is_active": True}, NO_OBJECT_ID
    )
    if not customer:
        raise ResourceNotFoundError("Customer not found")
    return customer


async def create_customer(business: Dict[str, Any], payload: CustomerCreate) -> Dict[str, Any]:
    """
    Raises:
        ValidationError: missing/invalid GSTIN for B2B or SEZ, bad PAN or email
        ConflictError: another active customer of this business has the GSTIN
    """
    _check_party_codes(payload.customer_type, payload.gstin, payload.pan, payload.email)
    await _ensure_gstin_free(business["id"], payload.gstin)

    now = datetime.utcnow()
    customer = payload.to_doc()
    customer.update({
        "id": str(uuid.uuid4()),
        "business_id": business["id"],
        "customer_type": payload.customer_type,
        "country": payload.country,
        "shipping_address": payload.shipping_address or payload.billing_address,
        "state_code": resolve_customer_state_code(payload.customer_type, payload.gstin, payload.state),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    })

    await get_customers_collection().insert_one(dict(customer))

    with LogContext(business_id=business["id"]):
        logger.info(f"Customer created: {customer['customer_name']} ({customer['customer_type']})")

    return CustomerOut.from_doc(customer)


async def list_customers(
    business: Dict[str, Any],
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    customer_type: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"business_id": business["id"], "is_active": True}
    if customer_type:
        if customer_type not in CUSTOMER_TYPES:
            raise ValidationError(f"Customer type must be one of {', '.join(CUSTOMER_TYPES)}")
        query["customer_type"] = customer_type
    if search:
        query.update(search_filter(search, ("customer_name", "gstin", "email", "phone")))

    customers, total = await paginate(get_customers_collection(), query, page, limit)

    return {
        "success": True,
        "customers": [CustomerOut.from_doc(c) for c in customers],
        "pagination": pagination(total, page, limit),
    }


async def get_customer(business: Dict[str, Any], customer_id: str) -> Dict[str, Any]:
    customer = await _find_customer(business["id"], customer_id)
    customer["invoice_count"] = await get_invoices_collection().count_documents(
        {"customer_id": customer_id, "is_active": True}
    )
    return CustomerOut.from_doc(customer)


async def update_customer(business: Dict[str, Any], customer_id: str, payload: CustomerUpdate) -> Dict[str, Any]:
    existing = await _find_customer(business["id"], customer_id)
    changes = payload.to_doc()

    customer_type = changes.get("customer_type", existing["customer_type"])
    gstin = changes["gstin"] if "gstin" in changes else existing.get("gstin")
    pan = changes["pan"] if "pan" in changes else existing.get("pan")
    email = changes["email"] if "email" in changes else existing.get("email")

    _check_party_codes(customer_type, gstin, pan, email)
    if gstin and gstin != existing.get("gstin"):
        await _ensure_gstin_free(business["id"], gstin, exclude_id=customer_id)

    changes["state_code"] = resolve_customer_state_code(
        customer_type, gstin, changes.get("state", existing.get("state"))
    )
    changes["updated_at"] = datetime.utcnow()

    await get_customers_collection().update_one({"id": customer_id}, {"$set": changes})
    existing.update(changes)

    logger.info(f"Customer updated: {customer_id}")
    return CustomerOut.from_doc(existing)


async def delete_customer(business: Dict[str, Any], customer_id: str) -> None:
    """
    Soft delete.

    Raises:
        ValidationError: the customer still has invoices
    """
    await _find_customer(business["id"], customer_id)

    invoice_count = await get_invoices_collection().count_documents(
        {"customer_id": customer_id, "is_active": True}
    )
    if invoice_count:
        raise ValidationError(
            f"Cannot delete customer with {invoice_count} existing invoice(s)",
            details={"invoiceCount": invoice_count},
        )

    await get_customers_collection().update_one(
        {"id": customer_id},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}},
    )
    logger.info(f"Customer deleted: {customer_id}")


async def customer_stats(business: Dict[str, Any]) -> Dict[str, int]:
    customers = get_customers_collection()
    base = {"business_id": business["id"], "is_active": True}

    stats = {"total": await customers.count_documents(base)}
    for customer_type in CUSTOMER_TYPES:
        stats[customer_type] = await customers.count_documents({**base, "customer_type": customer_type})
    return stats
