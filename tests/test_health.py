from fastapi.testclient import TestClient
from wcpilot.main import app

client = TestClient(app)


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "WCPilot API"


def test_live():
    assert client.get("/live").json() == {"status": "alive"}


def test_health_without_database_is_503():
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "unhealthy"


def test_ready_without_database_is_503():
    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_process_time_header():
    assert "X-Process-Time" in client.get("/live").headers
