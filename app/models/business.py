"""
app/models/business.py

Purpose: Business document shape

Stored in the `businesses` collection, owned by one user:
- id, user_id
- business_name, gstin (unique), pan
- state, state_code (first two GSTIN digits)
- address_line1, address_line2, city, pincode
- business_type, phone, email
- filing_frequency ("monthly" | "quarterly")
- subscription_plan (key into SUBSCRIPTION_PLANS)
- subscription_status ("inactive" until a trial starts), subscription_valid_until
- is_active, created_at, updated_at
"""

import uuid
from datetime import datetime
from typing import Dict, Any, Optional

from app.core.config import settings


def new_business_document(
    user_id: str,
    business_name: str,
    gstin: str,
    pan: str,
    state: str,
    state_code: str,
    email: str,
    address_line1: Optional[str] = None,
    address_line2: Optional[str] = None,
    city: Optional[str] = None,
    pincode: Optional[str] = None,
    business_type: Optional[str] = None,
    phone: Optional[str] = None,
    filing_frequency: Optional[str] = None,
) -> Dict[str, Any]:
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "business_name": business_name.strip(),
        "gstin": gstin,
        "pan": pan,
        "state": state,
        "state_code": state_code,
        "address_line1": address_line1,
        "address_line2": address_line2,
        "city": city,
        "pincode": pincode,
        "business_type": business_type or "Proprietorship",
        "phone": phone,
        "email": email,
        "filing_frequency": filing_frequency or "monthly",
        "subscription_plan": settings.DEFAULT_SUBSCRIPTION_PLAN,
        "subscription_status": "inactive",
        "subscription_valid_until": None,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
