"""Tests for the signed download router."""

from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient


def test_signed_url_serves_object_without_bearer(test_client: TestClient, temp_storage):
    """Test downloading through a signed URL."""
    temp_storage.upload("intake", "op/item/notes.txt", b"hello")

    response = test_client.get(temp_storage.create_signed_url("intake", "op/item/notes.txt", 60))

    assert response.status_code == 200
    assert response.content == b"hello"
    assert response.headers["content-type"].startswith("text/plain")
    assert "notes.txt" in response.headers["content-disposition"]


def test_tampered_signature_is_forbidden(test_client: TestClient, temp_storage):
    """Test that a wrong signature is rejected."""
    temp_storage.upload("intake", "op/item/notes.txt", b"hello")
    url = temp_storage.create_signed_url("intake", "op/item/notes.txt", 60)
    parsed = urlparse(url)
    expires = parse_qs(parsed.query)["expires"][0]

    response = test_client.get(parsed.path, params={"expires": expires, "signature": "0" * 64})

    assert response.status_code == 403


def test_missing_object_returns_404(test_client: TestClient, temp_storage):
    """Test a valid signature for an object that was removed."""
    temp_storage.upload("intake", "op/item/notes.txt", b"hello")
    url = temp_storage.create_signed_url("intake", "op/item/notes.txt", 60)
    temp_storage.remove("intake", ["op/item/notes.txt"])

    response = test_client.get(url)

    assert response.status_code == 404


def test_missing_signature_is_a_validation_error(test_client: TestClient):
    """Test that expires and signature are required."""
    response = test_client.get("/api/storage/intake/op/item/notes.txt")

    assert response.status_code == 422


def test_signed_url_serves_content_type_given_at_upload(test_client: TestClient, temp_storage):
    """Test that the stored content type wins over the file name."""
    temp_storage.upload("intake", "op/scan", b"%PDF-1.7", content_type="application/pdf")

    response = test_client.get(temp_storage.create_signed_url("intake", "op/scan", 60))

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7"
    assert response.headers["content-type"] == "application/pdf"


def test_signed_url_without_stored_type_falls_back_to_octet_stream(test_client: TestClient, temp_storage):
    """Test an object with no content type and no telling extension."""
    temp_storage.upload("intake", "op/blob", b"\x00\x01")

    response = test_client.get(temp_storage.create_signed_url("intake", "op/blob", 60))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/octet-stream"
