from fastapi.testclient import TestClient
from app.main import app
import pytest

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "HTTP_ERROR"
    assert "error" in data


def test_422_validation_error(auth_headers):
    # items must not be empty and gstRate must be a GST slab
    response = client.post(
        "/api/invoices",
        json={"customerId": "x", "invoiceDate": "2024-01-15", "items": []},
        headers=auth_headers,
    )
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert len(data["details"]) > 0


def test_validation_error_structure():
    from pydantic import BaseModel

    class Item(BaseModel):
        name: str
        price: int

    @app.post("/test-validation")
    def create_item(item: Item):
        return item

    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["details"][0]["loc"] == ["body", "price"]


def test_custom_exception():
    from app.core.exceptions import ResourceNotFoundError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise ResourceNotFoundError(message="Item not found")

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_conflict_exception_carries_details():
    from app.core.exceptions import ConflictError

    @app.get("/test-conflict")
    def trigger_conflict():
        raise ConflictError("Already exists", details={"field": "gstin"})

    response = client.get("/test-conflict")
    assert response.status_code == 409
    assert response.json()["details"] == {"field": "gstin"}


def test_unhandled_exception_returns_500():
    @app.get("/test-crash")
    def crash():
        raise RuntimeError("boom")

    safe_client = TestClient(app, raise_server_exceptions=False)
    response = safe_client.get("/test-crash")
    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "INTERNAL_ERROR"
    # development mode shows the message
    assert data["error"] == "boom"


@pytest.mark.parametrize("headers, code", [
    ({}, "NO_TOKEN"),
    ({"Authorization": "Bearer not-a-jwt"}, "INVALID_TOKEN"),
])
def test_protected_route_rejects_bad_tokens(headers, code):
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["code"] == code
