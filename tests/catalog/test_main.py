from fastapi.testclient import TestClient

from catalog.main import app

client = TestClient(app)


def test_health_endpoint():
    """Test that the /health endpoint returns the correct response."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"

    data = response.json()
    assert data == {"status": "healthy", "service": "asset_catalog_backend"}


def test_protected_routes_require_a_bearer_token():
    """Test that catalog routes reject anonymous requests."""
    for path in ("/api/intake", "/api/assets", "/api/taxonomy/facets", "/api/admin/bulk-fix/options"):
        response = client.get(path)
        assert response.status_code in (401, 403), path


def test_invalid_bearer_token_is_rejected():
    """Test that a malformed token gives 401."""
    response = client.get("/api/assets", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"
