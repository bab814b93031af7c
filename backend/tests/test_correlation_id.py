"""Tests for correlation ID header on all responses."""

from fastapi.testclient import TestClient

from burnlink.main import app


def test_correlation_id_on_success(client):
    """Test that correlation ID is included on successful responses."""
    response = client.get("/health")
    assert response.status_code == 200
    assert "X-Correlation-ID" in response.headers
    assert len(response.headers["X-Correlation-ID"]) == 8  # 4 bytes as hex


def test_correlation_id_on_404_error(client):
    """Test that correlation ID is included on lifecycle error responses."""
    response = client.get("/api/v1/secrets/unknown")
    assert response.status_code == 404
    assert "X-Correlation-ID" in response.headers
    assert len(response.headers["X-Correlation-ID"]) == 8


def test_correlation_id_on_validation_error(client):
    """Test that correlation ID is included on validation error (422) responses."""
    response = client.post("/api/v1/secrets", json={"ciphertext": "tooshort!", "iv": ""})
    assert response.status_code == 422
    assert "X-Correlation-ID" in response.headers
    assert len(response.headers["X-Correlation-ID"]) == 8


def test_correlation_id_on_unhandled_exception(client, monkeypatch):
    """Test that correlation ID is included on 500 responses from unhandled exceptions."""
    from burnlink.services.secret_service import SecretLifecycleManager

    def raise_error(*args, **kwargs):
        raise RuntimeError("Unexpected database error")

    monkeypatch.setattr(SecretLifecycleManager, "fetch", raise_error)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/api/v1/secrets/anything")

    assert response.status_code == 500
    assert "X-Correlation-ID" in response.headers
    assert len(response.headers["X-Correlation-ID"]) == 8
    assert response.json()["detail"] == "Internal Server Error"


def test_correlation_ids_unique_across_requests(client):
    """Test that each request gets a unique correlation ID."""
    response1 = client.get("/health")
    response2 = client.get("/health")

    corr_id_1 = response1.headers.get("X-Correlation-ID")
    corr_id_2 = response2.headers.get("X-Correlation-ID")

    assert corr_id_1 != corr_id_2, "Correlation IDs should be unique across requests"
