from fastapi.testclient import TestClient
from wcpilot.main import app

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "HTTP_ERROR"


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
    assert len(data["details"]) > 0


def test_custom_exception():
    from wcpilot.core.exceptions import ResourceNotFoundError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise ResourceNotFoundError(message="Item not found")

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_partial_update_error_code():
    from wcpilot.core.exceptions import PartialUpdateError

    @app.get("/test-partial-error")
    def trigger_partial_error():
        raise PartialUpdateError(details=[{"type": "profilePicture", "success": False}])

    response = client.get("/test-partial-error")
    assert response.status_code == 502
    data = response.json()
    assert data["code"] == "PARTIAL_UPDATE_FAILED"
    assert data["details"][0]["type"] == "profilePicture"


def test_missing_token_is_401():
    response = client.get("/api/instances")
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"
