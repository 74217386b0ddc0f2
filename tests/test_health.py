def test_root(client):
    data = client.get("/").json()
    assert data["name"] == "GST Compliance API"
    assert data["status"] == "running"


def test_liveness(client):
    assert client.get("/live").json() == {"status": "alive"}


def test_process_time_header(client):
    response = client.get("/live")
    assert float(response.headers["X-Process-Time"]) >= 0


def test_request_id_header(client):
    generated = client.get("/live").headers["X-Request-ID"]
    assert len(generated) == 12

    response = client.get("/live", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
