"""Asset router."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.core.auth import Operator
from catalog.core.catalog import (
    CatalogError,
    CatalogValidationError,
    get_asset,
    get_asset_file,
    list_assets,
    update_asset_metadata,
)
from catalog.core.dependencies import get_current_operator, get_object_store
from catalog.core.storage import ObjectNotFoundError, ObjectStore, StorageError
from catalog.database import get_db
from catalog.models.asset import Asset
from catalog.schemas.asset import AssetDetailResponse, AssetResponse, AssetUpdate
from catalog.schemas.intake import SignedUrlResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assets", tags=["assets"])


def _get_asset_or_404(db: Session, asset_id: UUID) -> Asset:
    asset = get_asset(db, asset_id)
    if not asset:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Asset not found",
        )
    return asset


@router.get("", response_model=list[AssetResponse])
async def list_catalog(
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> list[AssetResponse]:
    """List the most recent assets (at most 200).

    Args:
        current_operator: The authenticated operator
        db: Database session

    Returns:
        list[AssetResponse]: Assets, newest first
    """
    return [AssetResponse.model_validate(asset) for asset in list_assets(db)]


@router.get("/{asset_id}", response_model=AssetDetailResponse)
async def get_asset_detail(
    asset_id: UUID,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> AssetDetailResponse:
    """Get an asset with its files.

    Raises:
        HTTPException: If the asset is not found
    """
    asset = _get_asset_or_404(db, asset_id)
    return AssetDetailResponse.model_validate(asset)


@router.patch("/{asset_id}", response_model=AssetDetailResponse)
async def update_asset(
    asset_id: UUID,
    asset_data: AssetUpdate,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> AssetDetailResponse:
    """Edit asset metadata.

    Args:
        asset_id: ID of the asset to update
        asset_data: Fields to change
        current_operator: The authenticated operator
        db: Database session

    Returns:
        AssetDetailResponse: The updated asset

    Raises:
        HTTPException: 404 if not found, 422 if the title is empty
    """
    asset = _get_asset_or_404(db, asset_id)

    try:
        asset = update_asset_metadata(db, asset, asset_data.model_dump(exclude_unset=True), current_operator)
    except CatalogValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except CatalogError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    return AssetDetailResponse.model_validate(asset)


@router.get("/{asset_id}/files/{file_id}/url", response_model=SignedUrlResponse)
async def open_asset_file(
    asset_id: UUID,
    file_id: UUID,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStore, Depends(get_object_store)],
) -> SignedUrlResponse:
    """Issue a signed URL for an asset file.

    Raises:
        HTTPException: If the file or its object is not found
    """
    asset_file = get_asset_file(db, asset_id, file_id)
    if not asset_file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    try:
        url = storage.create_signed_url(asset_file.bucket, asset_file.object_path, settings.signed_url_expire_seconds)
    except ObjectNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found in storage",
        ) from e
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    return SignedUrlResponse(url=url, expires_in=settings.signed_url_expire_seconds)
