"""
utils/validation_utils.py

Purpose: Input validation

- GSTIN and PAN format validation
- HSN / SAC code validation
- Email, phone and pincode checks
- Input sanitization
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from utils.constants import STATE_CODES, GSTIN_STATE_CODES, VALID_GST_RATES


GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]{1}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
HSN_PATTERN = re.compile(r"^(\d{4}|\d{6}|\d{8})$")
SAC_PATTERN = re.compile(r"^\d{6}$")
PINCODE_PATTERN = re.compile(r"^[1-9][0-9]{5}$")


@dataclass
class CodeValidation:
    """Outcome of a format check, with a user-facing message."""
    valid: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.valid


def normalize_code(value: Optional[str]) -> str:
    """Strips whitespace and upper-cases an identifier."""
    if not value:
        return ""
    return re.sub(r"\s", "", str(value)).upper()


def validate_gstin(gstin: Optional[str]) -> CodeValidation:
    """
    Validates GSTIN format and state code.

    Format: 2 digits (state) + 10 chars (PAN) + 1 entity char + 'Z' + 1 checksum char
    Example: 27AAPFU0939F1ZV

    Args:
        gstin: GSTIN string to validate

    Returns:
        CodeValidation; details carry state code, PAN, entity number and state name
    """
    if not gstin:
        return CodeValidation(False, "GSTIN is required")

    gstin = normalize_code(gstin)

    if len(gstin) != 15:
        return CodeValidation(False, "GSTIN must be exactly 15 characters")

    if not GSTIN_PATTERN.match(gstin):
        return CodeValidation(False, "Invalid GSTIN format")

    state_code = gstin[:2]
    if state_code not in GSTIN_STATE_CODES:
        return CodeValidation(False, f"Invalid state code in GSTIN: {state_code}")

    return CodeValidation(
        True,
        "Valid GSTIN",
        {
            "gstin": gstin,
            "state_code": state_code,
            "state_name": STATE_CODES[state_code],
            "pan": gstin[2:12],
            "entity_number": gstin[12],
            "checksum": gstin[14],
        },
    )


GSTIN_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def gstin_check_digit(body: str) -> str:
    """
    Check character for the first 14 characters of a GSTIN (mod 36,
    alternating weights 1 and 2).
    """
    body = normalize_code(body)
    if len(body) != 14 or any(c not in GSTIN_CHARSET for c in body):
        raise ValueError("GSTIN body must be 14 alphanumeric characters")

    total = 0
    for index, char in enumerate(body):
        product = GSTIN_CHARSET.index(char) * (2 if index % 2 else 1)
        total += product // 36 + product % 36
    return GSTIN_CHARSET[(36 - total % 36) % 36]


def validate_pan(pan: Optional[str]) -> CodeValidation:
    """
    Validates PAN format (AAAAA9999A).
    """
    if not pan:
        return CodeValidation(False, "PAN is required")

    pan = normalize_code(pan)

    if len(pan) != 10:
        return CodeValidation(False, "PAN must be exactly 10 characters")

    if not PAN_PATTERN.match(pan):
        return CodeValidation(False, "Invalid PAN format")

    return CodeValidation(True, "Valid PAN", {"pan": pan, "holder_type": pan[3]})


def extract_state_code(gstin: Optional[str]) -> Optional[str]:
    gstin = normalize_code(gstin)
    if len(gstin) < 2:
        return None
    return gstin[:2]


def extract_pan(gstin: Optional[str]) -> Optional[str]:
    gstin = normalize_code(gstin)
    if len(gstin) != 15:
        return None
    return gstin[2:12]


def validate_hsn(hsn_code: Optional[str]) -> CodeValidation:
    """HSN codes are 4, 6 or 8 digits."""
    if not hsn_code:
        return CodeValidation(False, "HSN code is required")
    hsn = normalize_code(hsn_code)
    if not HSN_PATTERN.match(hsn):
        return CodeValidation(False, "HSN code must be 4, 6, or 8 digits")
    return CodeValidation(True, "Valid HSN code", {"hsn": hsn, "length": len(hsn)})


def validate_sac(sac_code: Optional[str]) -> CodeValidation:
    """SAC codes are exactly 6 digits."""
    if not sac_code:
        return CodeValidation(False, "SAC code is required")
    sac = normalize_code(sac_code)
    if not SAC_PATTERN.match(sac):
        return CodeValidation(False, "SAC code must be 6 digits")
    return CodeValidation(True, "Valid SAC code", {"sac": sac, "length": len(sac)})


def validate_gst_rate(rate) -> bool:
    try:
        return float(rate) in VALID_GST_RATES
    except (TypeError, ValueError):
        return False


def validate_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_pincode(pincode: Optional[str]) -> bool:
    if not pincode:
        return False
    return bool(PINCODE_PATTERN.match(str(pincode).strip()))


def validate_phone_number(phone: Optional[str]) -> bool:
    """
    Validates Indian phone number format.

    Args:
        phone: Phone number string

    Returns:
        True if valid Indian mobile number
    """
    if not phone:
        return False

    # Remove common separators and spaces
    phone = re.sub(r"[\s\-\(\)\+]", "", phone)

    # Remove country code if present
    if len(phone) == 12 and phone.startswith("91"):
        phone = phone[2:]

    return bool(re.match(r"^[6-9]\d{9}$", phone))


def sanitize_input(text: Optional[str], max_length: int = 500) -> str:
    """
    Trims and collapses whitespace, and truncates to max_length.
    """
    if not text:
        return ""

    text = re.sub(r"\s+", " ", text.strip())
    return text[:max_length]
