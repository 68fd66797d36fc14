"""Bucketed object storage with signed download URLs."""

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlencode

from catalog.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

STORAGE_ROUTE_PREFIX = "/api/storage"

# Per-object metadata lives outside the buckets; bucket names may not start with "."
METADATA_DIR = ".metadata"


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class ObjectNotFoundError(StorageError):
    """Raised when an object is not found in storage."""

    pass


class ObjectExistsError(StorageError):
    """Raised when an upload would overwrite an existing object."""

    pass


class SignedUrlError(StorageError):
    """Raised when a signed URL is malformed, tampered with or expired."""

    pass


@dataclass
class StoredObject:
    """Object bytes with the content type given at upload."""

    content: bytes
    content_type: str | None = None


def sanitize_object_name(filename: str) -> str:
    """Make a client-supplied file name safe to embed in an object path.

    Args:
        filename: Original file name

    Returns:
        str: The name with "/" replaced by "_"
    """
    return filename.replace("/", "_")


class ObjectStore:
    """Abstract object store: buckets of objects addressed by path."""

    def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> str:
        """Store an object.

        Args:
            bucket: Target bucket
            path: Object path inside the bucket
            content: Object bytes
            content_type: Optional MIME type
            upsert: Overwrite an existing object instead of failing

        Returns:
            str: The object path

        Raises:
            ObjectExistsError: If the object exists and upsert is False
            StorageError: If the object cannot be stored
        """
        raise NotImplementedError

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Issue a download URL valid for expires_in seconds.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        raise NotImplementedError

    def read_signed(self, bucket: str, path: str, expires: int, signature: str) -> StoredObject:
        """Return the object and its content type after checking a signed URL's parameters.

        Raises:
            SignedUrlError: If the signature is invalid or expired
            ObjectNotFoundError: If the object does not exist
        """
        raise NotImplementedError

    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        """Delete objects. Missing objects are skipped.

        Returns:
            list[str]: Paths that were actually removed

        Raises:
            StorageError: If an existing object cannot be removed
        """
        raise NotImplementedError

    def exists(self, bucket: str, path: str) -> bool:
        """Check if an object exists."""
        raise NotImplementedError


class LocalStorage(ObjectStore):
    """Object store backed by the local file system.

    Buckets are directories below base_path. Signed URLs point at the
    storage download route and carry an HMAC over bucket, path and expiry.
    """

    def __init__(
        self,
        base_path: str | Path | None = None,
        public_url: str | None = None,
        signing_key: str | None = None,
    ):
        """Initialize local storage.

        Args:
            base_path: Base directory for buckets. Defaults to 'storage' in project root.
            public_url: Base URL that signed URLs are built on
            signing_key: Key for URL signatures. Defaults to the app secret key.
        """
        if base_path is None:
            project_root = Path(__file__).resolve().parent.parent.parent
            base_path = project_root / "storage"
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_url = (public_url or settings.storage_public_url).rstrip("/")
        self._signing_key = (signing_key or settings.secret_key).encode("utf-8")

    def _get_object_path(self, bucket: str, path: str) -> Path:
        """Resolve bucket/path to a file below base_path.

        Raises:
            StorageError: If the bucket name or path escapes the store
        """
        if not bucket or "/" in bucket or "\\" in bucket or bucket.startswith("."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        if not path or "\x00" in path:
            raise StorageError(f"Invalid object path: {path!r}")

        bucket_dir = self.base_path / bucket
        file_path = (bucket_dir / path).resolve()
        if bucket_dir.resolve() not in file_path.parents:
            raise StorageError(f"Object path escapes bucket: {path!r}")
        return file_path

    def _get_metadata_path(self, bucket: str, path: str) -> Path:
        """Sidecar file holding an object's metadata, mirrored under METADATA_DIR."""
        relative = self._get_object_path(bucket, path).relative_to((self.base_path / bucket).resolve())
        return self.base_path / METADATA_DIR / bucket / f"{relative}.json"

    def _sign(self, bucket: str, path: str, expires: int) -> str:
        message = f"{bucket}/{path}:{expires}".encode("utf-8")
        return hmac.new(self._signing_key, message, hashlib.sha256).hexdigest()

    def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> str:
        """Write an object to disk. See ObjectStore.upload."""
        file_path = self._get_object_path(bucket, path)

        if file_path.exists() and not upsert:
            raise ObjectExistsError(f"The resource already exists: {bucket}/{path}")

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
            metadata_path = self._get_metadata_path(bucket, path)
            if content_type:
                metadata_path.parent.mkdir(parents=True, exist_ok=True)
                metadata_path.write_text(json.dumps({"content_type": content_type}), encoding="utf-8")
            elif metadata_path.exists():
                metadata_path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to save object: {e}") from e

        logger.debug(f"Stored {len(content)} bytes at {bucket}/{path} ({content_type or 'unknown type'})")
        return path

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Build a signed download URL. See ObjectStore.create_signed_url."""
        if not self._get_object_path(bucket, path).exists():
            raise ObjectNotFoundError(f"Object not found: {bucket}/{path}")

        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "signature": self._sign(bucket, path, expires)})
        return f"{self.public_url}{STORAGE_ROUTE_PREFIX}/{quote(bucket)}/{quote(path)}?{query}"

    def read_signed(self, bucket: str, path: str, expires: int, signature: str) -> StoredObject:
        """Verify a signed URL and read the object with its content type. See ObjectStore.read_signed."""
        expected = self._sign(bucket, path, expires)
        if not hmac.compare_digest(expected, signature):
            raise SignedUrlError("Invalid signature")
        if expires < int(time.time()):
            raise SignedUrlError("Signed URL has expired")

        file_path = self._get_object_path(bucket, path)
        if not file_path.exists():
            raise ObjectNotFoundError(f"Object not found: {bucket}/{path}")

        try:
            content = file_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read object: {e}") from e
        return StoredObject(content=content, content_type=self._read_content_type(bucket, path))

    def _read_content_type(self, bucket: str, path: str) -> str | None:
        metadata_path = self._get_metadata_path(bucket, path)
        if not metadata_path.exists():
            return None
        try:
            metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable metadata of {bucket}/{path}: {e}")
            return None
        return metadata.get("content_type")

    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        """Delete objects from disk. See ObjectStore.remove."""
        removed = []
        for path in paths:
            file_path = self._get_object_path(bucket, path)
            if not file_path.exists():
                logger.debug(f"Skipping missing object {bucket}/{path}")
                continue
            try:
                file_path.unlink()
            except OSError as e:
                raise StorageError(f"Failed to delete object {path}: {e}") from e
            metadata_path = self._get_metadata_path(bucket, path)
            if metadata_path.exists():
                try:
                    metadata_path.unlink()
                except OSError as e:
                    raise StorageError(f"Failed to delete metadata of {path}: {e}") from e
                self._prune_empty_dirs(metadata_path.parent, self.base_path / METADATA_DIR / bucket)
            removed.append(path)
            self._prune_empty_dirs(file_path.parent, self.base_path / bucket)
        return removed

    @staticmethod
    def _prune_empty_dirs(directory: Path, stop: Path) -> None:
        stop = stop.resolve()
        while directory != stop and stop in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                # Not empty
                return
            directory = directory.parent

    def exists(self, bucket: str, path: str) -> bool:
        """Check if an object exists on disk."""
        return self._get_object_path(bucket, path).exists()


# Global storage instance
_storage: ObjectStore | None = None


def get_storage() -> ObjectStore:
    """Get object store instance.

    Returns:
        ObjectStore: Object store instance (singleton)

    Example:
        ```python
        from catalog.core.storage import get_storage

        storage = get_storage()
        storage.upload("intake", "user/2026-10/item/abc-photo.jpg", content)
        ```
    """
    global _storage
    if _storage is None:
        if settings.storage_path:
            _storage = LocalStorage(base_path=Path(settings.storage_path))
        else:
            _storage = LocalStorage()
    return _storage
