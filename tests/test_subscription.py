import asyncio
import uuid
from datetime import datetime, timedelta

import pytest

from app.services.subscription_service import check_limit, recommend_plan

KARNATAKA_GSTIN = "29AABCT1332L1ZD"


def create_customer(client, headers):
    payload = {
        "customerName": "Acme Traders",
        "customerType": "b2b",
        "gstin": KARNATAKA_GSTIN,
        "billingAddress": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }
    response = client.post("/api/customers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["customer"]


def create_invoice(client, headers, customer_id):
    payload = {
        "customerId": customer_id,
        "invoiceDate": "2024-01-15",
        "items": [{"itemName": "Laptop", "hsnCode": "8471", "quantity": 1, "unitPrice": 1000, "gstRate": 18}],
    }
    return client.post("/api/invoices", json=payload, headers=headers)


def set_subscription(database, business, **fields):
    asyncio.run(database["businesses"].update_one({"id": business["id"]}, {"$set": fields}))


def seed_invoices(database, business, count):
    now = datetime.utcnow()
    asyncio.run(database["invoices"].insert_many([
        {"id": str(uuid.uuid4()), "business_id": business["id"], "is_active": True, "created_at": now}
        for _ in range(count)
    ]))


def test_plans_are_public(client):
    response = client.get("/api/subscription/plans")
    assert response.status_code == 200
    plans = {plan["id"]: plan for plan in response.json()["data"]}
    assert list(plans) == ["trial", "starter", "professional", "enterprise"]
    assert plans["trial"]["trialDays"] == 14
    assert plans["trial"]["limits"]["invoicesPerMonth"] == 10
    assert plans["starter"]["price"] == 999
    assert plans["starter"]["recommended"] is True
    assert plans["enterprise"]["limits"]["invoicesPerMonth"] is None
    assert plans["professional"]["features"]["bulkOperations"] is True


def test_status_requires_token(client):
    response = client.get("/api/subscription/status")
    assert response.status_code == 401


def test_status_of_new_business(client, auth_headers):
    response = client.get("/api/subscription/status", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["subscription"]["planId"] == "trial"
    assert data["subscription"]["status"] == "inactive"
    assert data["subscription"]["isActive"] is False
    assert data["subscription"]["isExpired"] is False
    assert data["usage"]["invoicesPerMonth"] == {
        "exceeded": False, "limit": 10, "remaining": 10, "unlimited": False, "current": 0,
    }
    assert data["features"]["gstrFiling"] is True
    assert data["features"]["apiAccess"] is False


def test_status_counts_usage(client, auth_headers):
    customer = create_customer(client, auth_headers)
    assert create_invoice(client, auth_headers, customer["id"]).status_code == 201

    usage = client.get("/api/subscription/status", headers=auth_headers).json()["data"]["usage"]
    assert usage["invoicesPerMonth"]["current"] == 1
    assert usage["invoicesPerMonth"]["remaining"] == 9
    assert usage["customersTotal"]["current"] == 1
    assert usage["suppliersTotal"]["current"] == 0


def test_start_trial_once(client, auth_headers):
    response = client.post("/api/subscription/start-trial", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "trial"
    valid_until = datetime.fromisoformat(data["validUntil"])
    assert timedelta(days=13) < valid_until - datetime.utcnow() <= timedelta(days=14)

    subscription = client.get("/api/subscription/status", headers=auth_headers).json()["data"]["subscription"]
    assert subscription["status"] == "trial"
    assert subscription["isActive"] is True

    again = client.post("/api/subscription/start-trial", headers=auth_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "CONFLICT"


def test_check_invoice_limit(client, auth_headers, business, database):
    response = client.get("/api/subscription/check-limit/invoices", headers=auth_headers)
    assert response.json()["data"] == {"allowed": True, "limit": 10, "current": 0, "remaining": 10}

    seed_invoices(database, business, 10)
    data = client.get("/api/subscription/check-limit/invoices", headers=auth_headers).json()["data"]
    assert data["allowed"] is False
    assert data["reason"] == "limit_exceeded"
    assert data["current"] == 10


def test_unlimited_plan_limit(client, auth_headers, business, database):
    set_subscription(database, business, subscription_plan="enterprise", subscription_status="active")
    seed_invoices(database, business, 600)
    data = client.get("/api/subscription/check-limit/invoices", headers=auth_headers).json()["data"]
    assert data["allowed"] is True
    assert data["limit"] is None
    assert data["current"] == 600


def test_expired_paid_plan_blocks_invoices(client, auth_headers, business, database):
    set_subscription(
        database, business,
        subscription_plan="starter",
        subscription_status="active",
        subscription_valid_until=datetime.utcnow() - timedelta(days=1),
    )
    data = client.get("/api/subscription/check-limit/invoices", headers=auth_headers).json()["data"]
    assert data["allowed"] is False
    assert data["reason"] == "subscription_expired"

    customer = create_customer(client, auth_headers)
    response = create_invoice(client, auth_headers, customer["id"])
    assert response.status_code == 403
    assert response.json()["code"] == "SUBSCRIPTION_EXPIRED"


def test_lapsed_trial_keeps_trial_limit(client, auth_headers, business, database):
    set_subscription(
        database, business,
        subscription_status="trial",
        subscription_valid_until=datetime.utcnow() - timedelta(days=1),
    )
    status = client.get("/api/subscription/status", headers=auth_headers).json()["data"]["subscription"]
    assert status["isExpired"] is True
    assert status["isActive"] is False

    customer = create_customer(client, auth_headers)
    assert create_invoice(client, auth_headers, customer["id"]).status_code == 201


@pytest.mark.parametrize("feature, plan, expected", [
    ("bulkOperations", "trial", False),
    ("bulkOperations", "professional", True),
    ("api_access", "enterprise", True),
    ("pdfGeneration", "starter", True),
])
def test_check_feature(client, auth_headers, business, database, feature, plan, expected):
    set_subscription(database, business, subscription_plan=plan)
    response = client.get(f"/api/subscription/check-feature/{feature}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["hasAccess"] is expected


def test_check_unknown_feature(client, auth_headers):
    response = client.get("/api/subscription/check-feature/teleportation", headers=auth_headers)
    assert response.status_code == 404


def test_recommendation_follows_usage(client, auth_headers, business, database):
    data = client.get("/api/subscription/recommendation", headers=auth_headers).json()["data"]
    assert data["recommendedPlan"] == "trial"
    assert data["shouldUpgrade"] is False

    seed_invoices(database, business, 11)
    data = client.get("/api/subscription/recommendation", headers=auth_headers).json()["data"]
    assert data["recommendedPlan"] == "starter"
    assert data["shouldUpgrade"] is True
    assert data["usage"]["invoicesPerMonth"] == 11


@pytest.mark.parametrize("invoices, purchases, plan", [
    (0, 0, "trial"),
    (10, 0, "trial"),
    (11, 0, "starter"),
    (0, 101, "professional"),
    (501, 0, "enterprise"),
])
def test_recommend_plan(invoices, purchases, plan):
    assert recommend_plan(invoices, purchases) == plan


def test_check_limit():
    assert check_limit("starter", "customers_total", 50)["exceeded"] is True
    assert check_limit("starter", "customers_total", 49)["remaining"] == 1
    assert check_limit("enterprise", "customers_total", 5000)["unlimited"] is True
    # unknown plans fall back to the trial plan
    assert check_limit("gold", "invoices_per_month", 3)["limit"] == 10
