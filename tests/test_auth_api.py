import asyncio
from datetime import datetime, timedelta

import jwt
import pytest

from app.core.config import settings


def test_register_returns_token_user_and_business(register):
    response = register()
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["user"]["email"] == "owner@example.com"
    assert data["user"]["role"] == "owner"
    assert "passwordHash" not in data["user"]
    business = data["business"]
    assert business["gstin"] == "27AAPFU0939F1ZV"
    assert business["stateCode"] == "27"
    assert business["filingFrequency"] == "monthly"
    assert business["subscriptionPlan"] == "trial"


def test_register_normalizes_codes(register):
    response = register(gstin="27aapfu0939f1zv", pan="aapfu0939f", email="Owner@Example.com")
    assert response.status_code == 201
    data = response.json()
    assert data["business"]["gstin"] == "27AAPFU0939F1ZV"
    assert data["user"]["email"] == "owner@example.com"


@pytest.mark.parametrize("overrides, error", [
    ({"gstin": None}, "Missing required fields"),
    ({"email": "not-an-email"}, "Invalid email format"),
    ({"password": "short"}, "Password must be at least 8 characters long"),
    ({"password": "p" * 100}, "Password cannot be longer than 72 bytes"),
    ({"gstin": "27AAPFU0939F1Z"}, "Invalid GSTIN: GSTIN must be exactly 15 characters"),
    ({"pan": "AAPF0939F"}, "Invalid PAN: PAN must be exactly 10 characters"),
    ({"filingFrequency": "yearly"}, "Filing frequency must be monthly or quarterly"),
])
def test_register_rejects_bad_input(register, client, overrides, error):
    response = register(**overrides)
    assert response.status_code == 400
    assert response.json()["error"] == error

    # nothing persisted
    login = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "Test@1234"})
    assert login.status_code == 401


def test_missing_fields_are_listed(register):
    response = register(gstin=None, addressLine1=None)
    details = response.json()["details"]
    assert "gstin" in details["missing"]
    assert "address_line1" in details["missing"]


def test_legacy_address_field_accepted(register):
    response = register(addressLine1=None, address="1 Legacy Road")
    assert response.status_code == 201
    assert response.json()["business"]["addressLine1"] == "1 Legacy Road"


def test_duplicate_email_and_gstin(register):
    assert register().status_code == 201

    response = register(gstin="27AAPFU0939F2ZU")
    assert response.status_code == 409
    assert response.json()["error"] == "User with this email already exists"

    response = register(email="other@example.com")
    assert response.status_code == 409
    assert response.json()["error"] == "Business with this GSTIN already registered"


def test_login(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": " OWNER@example.com ", "password": "Test@1234"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["lastLogin"] is not None
    assert [b["gstin"] for b in data["businesses"]] == ["27AAPFU0939F1ZV"]


@pytest.mark.parametrize("email, password", [
    ("owner@example.com", "wrong-password"),
    ("nobody@example.com", "Test@1234"),
    ("owner@example.com", "p" * 100),
])
def test_login_failures_share_message(client, register, email, password):
    register()
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"
    assert response.json()["error"] == "Invalid email or password"


def test_deactivated_account_cannot_log_in(client, register, database):
    register()
    asyncio.run(database["users"].update_one({"email": "owner@example.com"}, {"$set": {"is_active": False}}))
    response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "Test@1234"})
    assert response.status_code == 401
    assert response.json()["code"] == "ACCOUNT_DEACTIVATED"


def test_profile(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == "owner@example.com"
    assert user["businesses"][0]["businessName"] == "Test Business Pvt Ltd"


def test_expired_token(client, auth_headers):
    token = jwt.encode(
        {"userId": "someone", "exp": datetime.utcnow() - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_EXPIRED"


def test_token_for_unknown_user(client):
    token = jwt.encode(
        {"userId": "ghost", "exp": datetime.utcnow() + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_logout(client, auth_headers):
    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_change_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "wrong-password", "newPassword": "NewSecurePassword456"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Current password is incorrect"

    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "Test@1234", "newPassword": "short"},
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "Test@1234", "newPassword": "NewSecurePassword456"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    old = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "Test@1234"})
    new = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "NewSecurePassword456"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_change_password_rejects_overlong_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "Test@1234", "newPassword": "ü" * 40},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "New password cannot be longer than 72 bytes"

    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "x" * 200, "newPassword": "NewSecurePassword456"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Current password is incorrect"
