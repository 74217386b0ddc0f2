import asyncio
import os

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.config import settings
from app.db import mongo
from app.db.indexes import create_indexes
from app.main import app

BUSINESS = {
    "email": "owner@example.com",
    "password": "Test@1234",
    "businessName": "Test Business Pvt Ltd",
    "gstin": "27AAPFU0939F1ZV",
    "pan": "AAPFU0939F",
    "state": "Maharashtra",
    "addressLine1": "123 Test Street",
    "city": "Mumbai",
    "pincode": "400058",
}


@pytest.fixture(autouse=True)
def database(monkeypatch):
    """Fresh in-memory database per test."""
    db = AsyncMongoMockClient()["gst_compliance_test"]
    monkeypatch.setattr(mongo, "_database", db)
    asyncio.run(create_indexes())
    return db


@pytest.fixture(autouse=True)
def pdf_storage(tmp_path, monkeypatch):
    """Generated invoice PDFs land in a per-test directory."""
    monkeypatch.setattr(settings, "PDF_STORAGE_PATH", str(tmp_path / "invoices"))
    return tmp_path / "invoices"


@pytest.fixture
def client():
    # no context manager: the lifespan would connect to a real MongoDB
    return TestClient(app)


@pytest.fixture
def register(client):
    """Posts the default registration form with field overrides."""
    def _register(**overrides):
        return client.post("/api/auth/register", json={**BUSINESS, **overrides})
    return _register


@pytest.fixture
def auth_headers(register):
    response = register()
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def business(client, auth_headers):
    """The registered business document as stored."""
    db = mongo.get_database()
    return asyncio.run(db["businesses"].find_one({"gstin": BUSINESS["gstin"]}, {"_id": 0}))
