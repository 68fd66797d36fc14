"""Tests for the intake router."""

import inspect
from uuid import uuid4

from fastapi.testclient import TestClient

from catalog.core.dependencies import get_http_client
from catalog.main import app
from catalog.models.asset import Asset, AssetFile
from catalog.models.intake import IntakeFile, IntakeItem
from catalog.routers.intake import promote_item


def test_upload_creates_unsorted_item(test_client: TestClient, auth_headers, test_db_session):
    """Test uploading files into intake."""
    response = test_client.post(
        "/api/intake",
        files=[
            ("files", ("photo.jpg", b"jpeg-bytes", "image/jpeg")),
            ("files", ("side.png", b"png-bytes", "image/png")),
        ],
        data={"source": "Patreon"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "unsorted"
    assert data["editable"] is True
    assert data["raw_name"].startswith("Upload ")
    assert [f["file_name"] for f in data["files"]] == ["photo.jpg", "side.png"]
    assert data["files"][0]["mime_type"] == "image/jpeg"
    assert data["files"][0]["size_bytes"] == len(b"jpeg-bytes")

    assert test_db_session.query(IntakeFile).count() == 2


def test_upload_without_files_is_rejected(test_client: TestClient, auth_headers):
    """Test that an upload needs at least one file."""
    response = test_client.post("/api/intake", data={"raw_name": "Empty"}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["detail"] == "Select one or more files to upload."


def test_queue_lists_unsorted_items(test_client: TestClient, auth_headers, create_intake_item):
    """Test the unsorted queue."""
    waiting = create_intake_item(raw_name="Waiting")
    create_intake_item(raw_name="Done", status="promoted")

    response = test_client.get("/api/intake", headers=auth_headers)

    assert response.status_code == 200
    assert [i["id"] for i in response.json()] == [str(waiting.id)]


def test_get_item_suggests_name_from_first_file(test_client: TestClient, auth_headers, create_intake_item):
    """Test that an unnamed item suggests its first file name."""
    item = create_intake_item(raw_name=None, files=[("photo.jpg", b"jpeg", "image/jpeg")])

    response = test_client.get(f"/api/intake/{item.id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["suggested_name"] == "photo"


def test_get_unknown_item_returns_404(test_client: TestClient, auth_headers):
    """Test fetching a missing item."""
    response = test_client.get(f"/api/intake/{uuid4()}", headers=auth_headers)

    assert response.status_code == 404


def test_save_applies_pick_or_add_new(test_client: TestClient, auth_headers, create_intake_item):
    """Test saving taxonomy choices and tags."""
    item = create_intake_item(category="Armor", property="Helmet", sub_property="Visor")

    response = test_client.patch(
        f"/api/intake/{item.id}",
        json={
            "category": {"kind": "add_new", "text": " Weapons "},
            "property": {"kind": "selected", "value": "Sword"},
            "tags": "steel, , knight ",
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "Weapons"
    assert data["property"] == "Sword"
    assert data["sub_property"] is None
    assert data["tags"] == ["steel", "knight"]
    assert data["raw_name"] == "Helmet render"


def test_save_accepts_plain_strings(test_client: TestClient, auth_headers, create_intake_item):
    """Test that a bare string is treated as a selection."""
    item = create_intake_item()

    response = test_client.patch(f"/api/intake/{item.id}", json={"category": "Armor"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["category"] == "Armor"


def test_save_on_promoted_item_is_locked(test_client: TestClient, auth_headers, create_intake_item):
    """Test that terminal items cannot be edited."""
    item = create_intake_item(status="promoted")

    response = test_client.patch(f"/api/intake/{item.id}", json={"raw_name": "Changed"}, headers=auth_headers)

    assert response.status_code == 409
    detail = test_client.get(f"/api/intake/{item.id}", headers=auth_headers).json()
    assert detail["editable"] is False
    assert detail["raw_name"] == "Helmet render"


def test_file_url_is_served_by_storage_route(test_client: TestClient, auth_headers, create_intake_item):
    """Test opening a staged file through its signed URL."""
    item = create_intake_item(files=[("photo.jpg", b"jpeg-bytes", "image/jpeg")])
    file_id = test_client.get(f"/api/intake/{item.id}", headers=auth_headers).json()["files"][0]["id"]

    response = test_client.get(f"/api/intake/{item.id}/files/{file_id}/url", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["expires_in"] == 600
    download = test_client.get(data["url"])
    assert download.status_code == 200
    assert download.content == b"jpeg-bytes"


def test_promote_moves_files_into_catalog(test_client: TestClient, auth_headers, create_intake_item, test_db_session):
    """Test the full promote flow."""
    item = create_intake_item(
        raw_name="",
        category="Armor",
        property="Helmet",
        files=[("photo.jpg", b"jpeg", "image/jpeg"), ("side.png", b"png", "image/png")],
    )

    response = test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["already_promoted"] is False
    assert data["promoted_files"] == 2
    assert data["deleted_intake_files"] == 2
    assert data["finalize"] is True
    assert data["message"] == "File addition complete. Promoted 2 file(s) to Assets and removed Intake originals."

    asset = test_db_session.query(Asset).one()
    assert str(asset.id) == data["asset_id"]
    assert asset.title == "photo"
    assert test_db_session.query(AssetFile).count() == 2
    assert test_db_session.query(IntakeFile).count() == 0
    assert test_db_session.get(IntakeItem, item.id).status == "promoted"


def test_promote_uses_unsaved_edits(test_client: TestClient, auth_headers, create_intake_item, test_db_session):
    """Test that edits sent with promote override stored values."""
    item = create_intake_item(raw_name="Stored")

    response = test_client.post(
        f"/api/intake/{item.id}/promote",
        json={
            "raw_name": "Edited",
            "category": {"kind": "add_new", "text": "Armor"},
            "property": "Helmet",
            "tags": ["steel"],
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    asset = test_db_session.query(Asset).one()
    assert (asset.title, asset.category, asset.property, asset.tags) == ("Edited", "Armor", "Helmet", ["steel"])


def test_promote_twice_reports_already_promoted(
    test_client: TestClient, auth_headers, create_intake_item, test_db_session
):
    """Test that a second promote creates no second asset."""
    item = create_intake_item(category="Armor", property="Helmet")
    test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    response = test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["already_promoted"] is True
    assert data["asset_id"] is None
    assert data["message"] == "Already promoted. You can finalize this intake item."
    assert test_db_session.query(Asset).count() == 1


def test_promote_without_category_is_rejected(
    test_client: TestClient, auth_headers, create_intake_item, test_db_session
):
    """Test promote validation."""
    item = create_intake_item(property="Helmet")

    response = test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["detail"] == "Category is required before promoting."
    assert test_db_session.query(Asset).count() == 0


def test_promote_without_files_is_rejected(test_client: TestClient, auth_headers, create_intake_item, test_db_session):
    """Test that an item without files creates no asset."""
    item = create_intake_item(category="Armor", property="Helmet", files=[])

    response = test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["detail"] == "No files found to promote."
    assert test_db_session.query(Asset).count() == 0


def test_promote_unknown_item_returns_404(test_client: TestClient, auth_headers):
    """Test promoting a missing item."""
    response = test_client.post(f"/api/intake/{uuid4()}/promote", headers=auth_headers)

    assert response.status_code == 404


def test_promote_download_failure_returns_502(test_client: TestClient, auth_headers, create_intake_item, temp_storage):
    """Test that a failed copy is reported as a collaborator failure."""
    item = create_intake_item(category="Armor", property="Helmet", files=[("photo.jpg", b"jpeg", "image/jpeg")])
    staged = test_client.get(f"/api/intake/{item.id}", headers=auth_headers).json()["files"][0]
    temp_storage.remove("intake", [staged["object_path"]])

    response = test_client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 502


def test_promote_endpoint_runs_in_threadpool():
    """Test that promote is a sync endpoint so its blocking downloads stay off the event loop."""
    assert not inspect.iscoroutinefunction(promote_item)


def test_promote_fetches_files_through_storage_route(auth_headers, create_intake_item, test_client, test_db_session):
    """Test promoting while signed URLs are served by this app on a shared event loop."""
    item = create_intake_item(
        category="Armor",
        property="Helmet",
        files=[("photo.jpg", b"jpeg", "image/jpeg"), ("scan.pdf", b"%PDF", "application/pdf")],
    )

    # test_client installs the database override; this client replaces its MockTransport
    with TestClient(app) as client:
        app.dependency_overrides[get_http_client] = lambda: client

        response = client.post(f"/api/intake/{item.id}/promote", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["promoted_files"] == 2
    assert data["deleted_intake_files"] == 2

    files = test_db_session.query(AssetFile).order_by(AssetFile.file_name).all()
    assert [f.file_name for f in files] == ["photo.jpg", "scan.pdf"]
    assert [f.mime_type for f in files] == ["image/jpeg", "application/pdf"]
    assert test_db_session.query(IntakeFile).count() == 0
    assert test_db_session.get(IntakeItem, item.id).status == "promoted"
