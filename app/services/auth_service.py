"""
app/services/auth_service.py

Purpose: Account lifecycle

- Registration (user + first business, rolled back together on failure)
- Login with bcrypt verification and JWT issuance
- Profile lookup and password change
"""

from datetime import datetime
from typing import Dict, Any, List

from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.core.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    hash_password,
    password_too_long,
    verify_password,
)
from app.db.mongo import get_users_collection, get_businesses_collection, NO_OBJECT_ID
from app.models.user import new_user_document
from app.models.business import new_business_document
from app.schemas.auth import RegisterRequest, UserOut, BusinessOut
from utils.constants import (
    FILING_FREQUENCIES,
    MSG_ACCOUNT_DEACTIVATED,
    MSG_EMAIL_TAKEN,
    MSG_GSTIN_TAKEN,
    MSG_INVALID_CREDENTIALS,
)
from utils.validation_utils import validate_email, validate_gstin, validate_pan, normalize_code

logger = get_logger(__name__)

REQUIRED_REGISTRATION_FIELDS = ("email", "password", "business_name", "gstin", "pan", "state")


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return UserOut.from_doc(user)


async def list_user_businesses(user_id: str) -> List[Dict[str, Any]]:
    cursor = get_businesses_collection().find(
        {"user_id": user_id, "is_active": True}, NO_OBJECT_ID
    ).sort("created_at", 1)
    return await cursor.to_list(length=None)


def _check_registration(payload: RegisterRequest) -> Dict[str, Any]:
    """
    Applies registration rules in order; the first failure wins.

    Returns:
        Normalized GSTIN validation details
    """
    missing = [name for name in REQUIRED_REGISTRATION_FIELDS if not getattr(payload, name)]
    if not (payload.address_line1 or payload.address):
        missing.append("address_line1")
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})

    if not validate_email(payload.email):
        raise ValidationError("Invalid email format")

    if len(payload.password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )
    if password_too_long(payload.password):
        raise ValidationError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

    gstin_check = validate_gstin(payload.gstin)
    if not gstin_check:
        raise ValidationError(f"Invalid GSTIN: {gstin_check.message}")

    pan_check = validate_pan(payload.pan)
    if not pan_check:
        raise ValidationError(f"Invalid PAN: {pan_check.message}")

    if payload.business_email and not validate_email(payload.business_email):
        raise ValidationError("Invalid business email format")

    if payload.filing_frequency and payload.filing_frequency not in FILING_FREQUENCIES:
        raise ValidationError("Filing frequency must be monthly or quarterly")

    return gstin_check.details


async def register(payload: RegisterRequest) -> Dict[str, Any]:
    """
    Creates a user and its first business.

    Nothing is persisted unless every rule passes. If the business insert
    fails after the user was written, the user is deleted again.

    Raises:
        ValidationError: missing field, bad email, short password, bad GSTIN/PAN
        ConflictError: email or GSTIN already registered
    """
    gstin_details = _check_registration(payload)
    email = payload.email.strip().lower()
    gstin = gstin_details["gstin"]

    users = get_users_collection()
    businesses = get_businesses_collection()

    if await users.find_one({"email": email}, NO_OBJECT_ID):
        raise ConflictError(MSG_EMAIL_TAKEN)

    if await businesses.find_one({"gstin": gstin}, NO_OBJECT_ID):
        raise ConflictError(MSG_GSTIN_TAKEN)

    user = new_user_document(email, hash_password(payload.password))
    business = new_business_document(
        user_id=user["id"],
        business_name=payload.business_name,
        gstin=gstin,
        pan=normalize_code(payload.pan),
        state=payload.state.strip(),
        state_code=gstin_details["state_code"],
        email=(payload.business_email or email).strip().lower(),
        address_line1=payload.address_line1 or payload.address,
        address_line2=payload.address_line2,
        city=payload.city,
        pincode=payload.pincode,
        business_type=payload.business_type,
        phone=payload.phone,
        filing_frequency=payload.filing_frequency,
    )

    with LogContext(user_id=user["id"], gstin=gstin):
        try:
            await users.insert_one(dict(user))
        except DuplicateKeyError:
            raise ConflictError(MSG_EMAIL_TAKEN)

        try:
            await businesses.insert_one(dict(business))
        except Exception as e:
            logger.warning(f"Business insert failed, rolling back user {user['id']}: {e}")
            await users.delete_one({"id": user["id"]})
            if isinstance(e, DuplicateKeyError):
                raise ConflictError(MSG_GSTIN_TAKEN)
            raise

        logger.info(f"✅ Registered {email} with business {business['business_name']}")

    return {
        "success": True,
        "message": "Registration successful",
        "token": create_access_token(user["id"], user["email"], user["role"]),
        "user": _public_user(user),
        "business": BusinessOut.from_doc(business),
    }


async def login(email: str, password: str) -> Dict[str, Any]:
    """
    Verifies credentials and issues a token.

    Raises:
        AuthenticationError: unknown email, wrong password or inactive account
    """
    users = get_users_collection()
    user = await users.find_one({"email": email.strip().lower()}, NO_OBJECT_ID)

    # Same message for unknown email and wrong password
    if not user or not verify_password(password, user.get("password_hash")):
        logger.info(f"Failed login attempt for {email}")
        raise AuthenticationError(MSG_INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")

    if not user.get("is_active", True):
        raise AuthenticationError(MSG_ACCOUNT_DEACTIVATED, code="ACCOUNT_DEACTIVATED")

    now = datetime.utcnow()
    await users.update_one({"id": user["id"]}, {"$set": {"last_login": now}})
    user["last_login"] = now

    businesses = await list_user_businesses(user["id"])

    with LogContext(user_id=user["id"]):
        logger.info(f"🔑 {user['email']} logged in")

    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(user["id"], user["email"], user["role"]),
        "user": _public_user(user),
        "businesses": [BusinessOut.from_doc(b) for b in businesses],
    }


async def get_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    businesses = await list_user_businesses(user["id"])
    profile = _public_user(user)
    profile["businesses"] = [BusinessOut.from_doc(b) for b in businesses]
    return {"success": True, "user": profile}


async def change_password(user: Dict[str, Any], old_password: str, new_password: str) -> None:
    """
    Replaces the password hash after checking the current password.

    Raises:
        ValidationError: current password wrong, new password too short or too long
    """
    if not verify_password(old_password, user.get("password_hash")):
        raise ValidationError("Current password is incorrect")

    if len(new_password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"New password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )
    if password_too_long(new_password):
        raise ValidationError(f"New password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

    await get_users_collection().update_one(
        {"id": user["id"]},
        {"$set": {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()}},
    )

    with LogContext(user_id=user["id"]):
        logger.info("Password changed")
