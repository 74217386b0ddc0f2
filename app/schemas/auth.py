"""
app/schemas/auth.py

Purpose: Authentication payloads

- Registration, login and password change requests
- Public user / business shapes (never carry password hashes)
"""

from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    """
    Sign-up form: creates the login and its first business together.
    Format rules (email, GSTIN, PAN, password length) are checked by the
    auth service so they surface as 400s with a readable message.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    business_name: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    state: Optional[str] = None
    address_line1: Optional[str] = None
    address: Optional[str] = Field(default=None, description="Legacy alias of addressLine1")
    address_line2: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    business_type: Optional[str] = None
    phone: Optional[str] = None
    business_email: Optional[str] = None
    filing_frequency: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@example.com",
                "password": "Test@1234",
                "businessName": "Test Business Pvt Ltd",
                "gstin": "27AAPFU0939F1ZV",
                "pan": "AAPFU0939F",
                "state": "Maharashtra",
                "addressLine1": "123 Test Street",
                "city": "Mumbai",
                "pincode": "400001",
            }
        }


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str


class UserOut(CamelModel):
    id: str
    email: str
    role: str
    email_verified: bool = False
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BusinessOut(CamelModel):
    id: str
    business_name: str
    gstin: str
    pan: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    business_type: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    filing_frequency: str = "monthly"
    subscription_plan: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_valid_until: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class ProfileOut(UserOut):
    businesses: List[BusinessOut] = []
