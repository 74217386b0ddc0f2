"""
app/harness/context.py

Purpose: Per-run state for the API test suites

- Test account credentials and registration payload
- Token, user id and ids of records created along the way
- Run-unique emails and GSTINs so repeated runs never collide
"""

import time
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional

from app.harness.results import SuiteResults
from utils.validation_utils import gstin_check_digit

DEFAULT_EMAIL = "test@gstcompliance.com"
DEFAULT_PASSWORD = "Test@1234"
DEFAULT_GSTIN = "27AAPFU0939F1ZV"
DEFAULT_PAN = "AAPFU0939F"


def run_stamp() -> int:
    return int(time.time() * 1000)


def make_pan(stamp: int, holder_type: str = "F") -> str:
    """Syntactically valid PAN whose digits come from the stamp."""
    letters = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    prefix = "".join(letters[(stamp // 26 ** i) % 26] for i in range(3))
    return f"{prefix}{holder_type}T{stamp % 10000:04d}{letters[(stamp // 10000) % 26]}"


def make_gstin(state_code: str, pan: str, entity: str = "1") -> str:
    body = f"{state_code}{pan}{entity}Z"
    return body + gstin_check_digit(body)


@dataclass
class Credentials:
    email: str
    password: str
    business_name: str = "Test Business Pvt Ltd"
    gstin: str = DEFAULT_GSTIN
    pan: str = DEFAULT_PAN
    state: str = "Maharashtra"
    address_line1: str = "123 Test Street"
    address_line2: str = "Andheri West"
    city: str = "Mumbai"
    pincode: str = "400058"
    business_type: str = "Private Limited"
    phone: str = "9876543210"
    business_email: str = "business@testcompany.com"

    def login_payload(self) -> Dict[str, str]:
        return {"email": self.email, "password": self.password}

    def registration_payload(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "password": self.password,
            "businessName": self.business_name,
            "gstin": self.gstin,
            "pan": self.pan,
            "state": self.state,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "pincode": self.pincode,
            "businessType": self.business_type,
            "phone": self.phone,
            "businessEmail": self.business_email,
        }


def default_credentials() -> Credentials:
    """The shared test account."""
    return Credentials(email=DEFAULT_EMAIL, password=DEFAULT_PASSWORD)


def unique_credentials(stamp: Optional[int] = None) -> Credentials:
    """A fresh Maharashtra business with its own email, PAN and GSTIN."""
    stamp = stamp if stamp is not None else run_stamp()
    pan = make_pan(stamp)
    return Credentials(
        email=f"test-{stamp}@gstcompliance.com",
        password="SecurePassword123",
        gstin=make_gstin("27", pan),
        pan=pan,
    )


@dataclass
class SuiteContext:
    credentials: Credentials
    stamp: int = field(default_factory=run_stamp)
    token: Optional[str] = None
    user_id: Optional[str] = None
    ids: Dict[str, str] = field(default_factory=dict)
    results: SuiteResults = field(default_factory=SuiteResults)

    def fresh(self) -> "SuiteContext":
        """Same account, cleared ids and tally for the next suite."""
        return replace(self, ids={}, results=SuiteResults())

    def party_gstin(self, state_code: str, offset: int) -> str:
        """Run-unique GSTIN for a customer or supplier."""
        return make_gstin(state_code, make_pan(self.stamp + offset, holder_type="C"))
