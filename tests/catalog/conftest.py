"""Pytest fixtures for catalog tests."""

import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_PUBLIC_URL", "http://testserver")

import shutil
from pathlib import Path
from typing import Callable, Generator
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from catalog.core.auth import Operator, create_operator_token
from catalog.core.dependencies import get_http_client
from catalog.core.storage import (
    STORAGE_ROUTE_PREFIX,
    LocalStorage,
    ObjectNotFoundError,
    SignedUrlError,
)
from catalog.database import Base, engine_options, get_db
from catalog.main import app
from catalog.models.asset import Asset
from catalog.models.intake import IntakeBatch, IntakeFile, IntakeItem, IntakeStatus


@pytest.fixture(scope="function")
def test_db_engine():
    """Create an isolated database engine for testing.

    Uses TEST_DATABASE_URL when set, otherwise a fresh in-memory SQLite database.
    """
    test_db_url = os.getenv("TEST_DATABASE_URL", "sqlite://")

    engine = create_engine(test_db_url, **engine_options(test_db_url))

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup: drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create a database session for testing with automatic rollback."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine,
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def operator() -> Operator:
    """The operator requests are made as."""
    return Operator(id=uuid4(), email="ops@example.com")


@pytest.fixture(scope="function")
def auth_headers(operator: Operator) -> dict[str, str]:
    """Bearer headers for the test operator."""
    token = create_operator_token(operator.id, email=operator.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def temp_storage(tmp_path: Path) -> Generator[LocalStorage, None, None]:
    """Create a temporary object store and install it as the global store.

    Args:
        tmp_path: Pytest temporary directory fixture

    Yields:
        LocalStorage: Storage instance using temporary directory
    """
    storage_dir = tmp_path / "test_storage"
    storage = LocalStorage(base_path=storage_dir, public_url="http://testserver")

    # Override the global storage instance
    import catalog.core.storage as storage_module

    original_storage = getattr(storage_module, "_storage", None)
    storage_module._storage = storage

    try:
        yield storage
    finally:
        storage_module._storage = original_storage
        if storage_dir.exists():
            shutil.rmtree(storage_dir, ignore_errors=True)


def serve_signed_urls(storage: LocalStorage) -> Callable[[httpx.Request], httpx.Response]:
    """Build a MockTransport handler that answers signed URLs from storage."""

    def handler(request: httpx.Request) -> httpx.Response:
        prefix = f"{STORAGE_ROUTE_PREFIX}/"
        if not request.url.path.startswith(prefix):
            return httpx.Response(404)
        bucket, _, object_path = request.url.path[len(prefix) :].partition("/")
        try:
            stored = storage.read_signed(
                bucket,
                object_path,
                int(request.url.params["expires"]),
                request.url.params["signature"],
            )
        except SignedUrlError:
            return httpx.Response(403)
        except ObjectNotFoundError:
            return httpx.Response(404)
        headers = {"content-type": stored.content_type} if stored.content_type else {}
        return httpx.Response(200, content=stored.content, headers=headers)

    return handler


@pytest.fixture(scope="function")
def storage_http_client(temp_storage: LocalStorage) -> Generator[httpx.Client, None, None]:
    """HTTP client whose requests for signed URLs are served from temp_storage."""
    with httpx.Client(transport=httpx.MockTransport(serve_signed_urls(temp_storage))) as client:
        yield client


@pytest.fixture(scope="function")
def test_client(
    test_db_session: Session,
    temp_storage: LocalStorage,
    storage_http_client: httpx.Client,
) -> Generator[TestClient, None, None]:
    """Create a test client with database and HTTP client dependency overrides."""

    def override_get_db() -> Generator[Session, None, None]:
        """Override get_db dependency to use test database session."""
        try:
            yield test_db_session
        finally:
            pass

    def override_get_http_client() -> httpx.Client:
        return storage_http_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client

    client = TestClient(app)

    try:
        yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def create_intake_item(test_db_session: Session, temp_storage: LocalStorage, operator: Operator) -> Callable:
    """Factory function to stage an intake item with files directly in the database.

    Example:
        ```python
        def test_example(create_intake_item):
            item = create_intake_item(raw_name="", files=[("photo.jpg", b"jpeg", "image/jpeg")])
            assert item.status == "unsorted"
        ```
    """

    def _create_intake_item(
        raw_name: str | None = "Helmet render",
        category: str | None = None,
        property: str | None = None,
        sub_property: str | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
        status: str = IntakeStatus.UNSORTED.value,
        files: list[tuple[str, bytes, str | None]] | None = None,
    ) -> IntakeItem:
        """Create a batch, an item and its staged objects.

        Args:
            files: (file_name, content, mime_type) tuples, defaults to one JPEG

        Returns:
            The created IntakeItem
        """
        if files is None:
            files = [("render.jpg", b"jpeg-bytes", "image/jpeg")]

        batch = IntakeBatch(month="2026-10", source="test", created_by=operator.id)
        test_db_session.add(batch)
        test_db_session.commit()

        item = IntakeItem(
            batch_id=batch.id,
            uploader=operator.id,
            status=status,
            raw_name=raw_name,
            category=category,
            property=property,
            sub_property=sub_property,
            tags=tags or [],
            notes=notes,
        )
        test_db_session.add(item)
        test_db_session.commit()
        test_db_session.refresh(item)

        for file_name, content, mime_type in files:
            object_path = f"{operator.id}/2026-10/{item.id}/{uuid4()}-{file_name}"
            temp_storage.upload("intake", object_path, content, content_type=mime_type)
            test_db_session.add(
                IntakeFile(
                    intake_item_id=item.id,
                    bucket="intake",
                    object_path=object_path,
                    file_name=file_name,
                    mime_type=mime_type,
                    size_bytes=len(content),
                )
            )
        test_db_session.commit()
        test_db_session.refresh(item)
        return item

    return _create_intake_item


@pytest.fixture(scope="function")
def create_asset(test_db_session: Session, operator: Operator) -> Callable:
    """Factory function to create catalog assets directly in the database."""

    def _create_asset(
        title: str = "Asset",
        category: str | None = None,
        property: str | None = None,
        sub_property: str | None = None,
        tags: list[str] | None = None,
    ) -> Asset:
        asset = Asset(
            title=title,
            name=title,
            category=category,
            property=property,
            sub_property=sub_property,
            tags=tags or [],
            created_by=operator.id,
        )
        test_db_session.add(asset)
        test_db_session.commit()
        test_db_session.refresh(asset)
        return asset

    return _create_asset
