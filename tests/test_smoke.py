from fastapi.testclient import TestClient
from backend.main import app

app_client = TestClient(app)

def test_public_version():
    r = app_client.get("/public/version")
    assert r.status_code == 200
    assert r.json()["name"] == "item-request-tracker-api"

def test_metrics_exposed():
    r = app_client.get("/metrics")
    assert r.status_code == 200
    assert "item_requests_created_total" in r.text

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["requests_count"] == 0

def test_list_requests_ok(client):
    r = client.get("/api/request")
    assert r.status_code == 200
    assert r.json() == {"requests": [], "totalCount": 0, "page": 1}
