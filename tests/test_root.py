"""Application-level smoke tests."""

from fastapi.testclient import TestClient


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_api_requires_bearer_token(client: TestClient) -> None:
    response = client.get("/api/v1/orders")
    assert response.status_code in (401, 403)
