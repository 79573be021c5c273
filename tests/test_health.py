"""Health check and landing page tests."""

from fastapi.testclient import TestClient


def test_health_check(client: TestClient) -> None:
    """Test health check endpoint returns OK status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["name"] == "HaloSuite API"
    assert "version" in data
    assert "timestamp" in data


def test_root_endpoint(client: TestClient) -> None:
    """Test root endpoint returns the HTML landing page."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"] == "text/html; charset=utf-8"
    html_content = response.text
    assert "HaloSuite API" in html_content
    assert "<!DOCTYPE html>" in html_content


def test_openapi_docs(client: TestClient) -> None:
    response = client.get("/api/docs")
    assert response.status_code == 200


def test_redoc_docs(client: TestClient) -> None:
    response = client.get("/api/redoc")
    assert response.status_code == 200


def test_unknown_route_uses_failure_envelope(client: TestClient) -> None:
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_missing_token_is_401(client: TestClient) -> None:
    response = client.get("/api/documents")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authenticated"}
