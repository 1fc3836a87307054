"""
Tests for health endpoints
"""


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.json()["service"] == "Prompt Hub"


def test_health_detailed(client):
    r = client.get("/health/detailed")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["components"]["database"]["status"] == "healthy"


def test_api_root(client):
    r = client.get("/api")
    assert r.status_code == 200
    assert r.json()["status"] == "running"
