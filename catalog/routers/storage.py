"""Signed download router."""

import mimetypes
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from catalog.core.dependencies import get_object_store
from catalog.core.storage import STORAGE_ROUTE_PREFIX, ObjectNotFoundError, ObjectStore, SignedUrlError, StorageError

router = APIRouter(prefix=STORAGE_ROUTE_PREFIX, tags=["storage"])


@router.get("/{bucket}/{object_path:path}")
async def download_object(
    bucket: str,
    object_path: str,
    storage: Annotated[ObjectStore, Depends(get_object_store)],
    expires: int = Query(..., description="Expiry as a Unix timestamp"),
    signature: str = Query(..., description="URL signature"),
) -> Response:
    """Serve an object through a signed URL. No bearer token is needed.

    Raises:
        HTTPException: 403 if the signature is invalid or expired, 404 if the object is missing
    """
    try:
        stored = storage.read_signed(bucket, object_path, expires, signature)
    except SignedUrlError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from e
    except ObjectNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Object not found",
        ) from e
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    filename = object_path.rsplit("/", 1)[-1]
    media_type = stored.content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return Response(
        content=stored.content,
        media_type=media_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(filename)}"},
    )
