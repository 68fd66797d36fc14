"""Intake router."""

import logging
from typing import Annotated, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.core.auth import Operator
from catalog.core.dependencies import get_current_operator, get_http_client, get_object_store
from catalog.core.intake import (
    IntakeError,
    IntakeLockedError,
    IntakeValidationError,
    UploadedFile,
    get_intake_file,
    get_intake_item,
    is_editable,
    list_unsorted_queue,
    save_intake_metadata,
    suggested_name,
    upload_to_intake,
)
from catalog.core.promotion import (
    IntakeItemNotFoundError,
    PromotionEdits,
    PromotionError,
    PromotionValidationError,
    list_intake_files,
    promote_intake_item,
)
from catalog.core.storage import ObjectNotFoundError, ObjectStore, StorageError
from catalog.database import get_db
from catalog.models.intake import IntakeItem
from catalog.schemas.intake import (
    IntakeFileResponse,
    IntakeItemDetailResponse,
    IntakeItemResponse,
    IntakeItemUpdate,
    PromotionRequest,
    PromotionResponse,
    SignedUrlResponse,
)
from catalog.schemas.taxonomy import to_choice

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intake", tags=["intake"])

TAXONOMY_KEYS = ("category", "property", "sub_property")


def _item_response(item: IntakeItem) -> IntakeItemResponse:
    return IntakeItemResponse(
        id=item.id,
        batch_id=item.batch_id,
        uploader=item.uploader,
        status=item.status,
        raw_name=item.raw_name,
        category=item.category,
        property=item.property,
        sub_property=item.sub_property,
        notes=item.notes,
        tags=list(item.tags or []),
        created_at=item.created_at,
        editable=is_editable(item),
    )


def _detail_response(db: Session, item: IntakeItem) -> IntakeItemDetailResponse:
    files = list_intake_files(db, item.id)
    return IntakeItemDetailResponse(
        **_item_response(item).model_dump(),
        suggested_name=suggested_name(item, files),
        files=[IntakeFileResponse.model_validate(f) for f in files],
    )


def _split_edits(data: IntakeItemUpdate) -> tuple[dict, dict]:
    """Separate taxonomy choices from plain field updates, keeping only fields the client sent."""
    update_data = data.model_dump(exclude_unset=True)
    taxonomy = {key: to_choice(getattr(data, key)) for key in TAXONOMY_KEYS if key in update_data}
    plain = {key: value for key, value in update_data.items() if key not in TAXONOMY_KEYS}
    return plain, taxonomy


def _get_item_or_404(db: Session, intake_item_id: UUID) -> IntakeItem:
    item = get_intake_item(db, intake_item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intake item not found",
        )
    return item


@router.post("", response_model=IntakeItemDetailResponse, status_code=status.HTTP_201_CREATED)
async def upload_intake(
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStore, Depends(get_object_store)],
    files: Optional[list[UploadFile]] = File(None),
    raw_name: Optional[str] = Form(None),
    source: Optional[str] = Form(None),
) -> IntakeItemDetailResponse:
    """Upload files into intake as one new unsorted item.

    Args:
        current_operator: The authenticated operator
        db: Database session
        storage: Object store
        files: Files to stage
        raw_name: Optional item name
        source: Optional origin of the files (e.g. "Patreon")

    Returns:
        IntakeItemDetailResponse: The new intake item with its files

    Raises:
        HTTPException: 422 if no files were sent, 500 if storing fails
    """
    uploads = []
    for f in files or []:
        if not f.filename or not f.filename.strip():
            continue
        try:
            content = await f.read()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to read file: {str(e)}",
            ) from e
        uploads.append(UploadedFile(file_name=f.filename.strip(), content=content, mime_type=f.content_type))

    try:
        item = upload_to_intake(db, storage, current_operator, uploads, raw_name=raw_name, source=source)
    except IntakeValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except IntakeError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    return _detail_response(db, item)


@router.get("", response_model=list[IntakeItemResponse])
async def list_queue(
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> list[IntakeItemResponse]:
    """List the unsorted intake queue, newest first (at most 50 items)."""
    return [_item_response(item) for item in list_unsorted_queue(db)]


@router.get("/{intake_item_id}", response_model=IntakeItemDetailResponse)
async def get_item(
    intake_item_id: UUID,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> IntakeItemDetailResponse:
    """Get an intake item with its staged files.

    Raises:
        HTTPException: If the item is not found
    """
    item = _get_item_or_404(db, intake_item_id)
    return _detail_response(db, item)


@router.patch("/{intake_item_id}", response_model=IntakeItemDetailResponse)
async def save_item(
    intake_item_id: UUID,
    item_data: IntakeItemUpdate,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> IntakeItemDetailResponse:
    """Save intake metadata.

    Args:
        intake_item_id: ID of the intake item
        item_data: Fields to change
        current_operator: The authenticated operator
        db: Database session

    Returns:
        IntakeItemDetailResponse: The updated item

    Raises:
        HTTPException: 404 if not found, 409 if the item is no longer unsorted
    """
    item = _get_item_or_404(db, intake_item_id)
    plain, taxonomy = _split_edits(item_data)

    try:
        item = save_intake_metadata(db, item, plain, taxonomy)
    except IntakeLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    except IntakeError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    return _detail_response(db, item)


@router.get("/{intake_item_id}/files/{file_id}/url", response_model=SignedUrlResponse)
async def open_intake_file(
    intake_item_id: UUID,
    file_id: UUID,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStore, Depends(get_object_store)],
) -> SignedUrlResponse:
    """Issue a signed URL for a staged file.

    Raises:
        HTTPException: If the file or its object is not found
    """
    intake_file = get_intake_file(db, intake_item_id, file_id)
    if not intake_file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    try:
        url = storage.create_signed_url(
            intake_file.bucket, intake_file.object_path, settings.signed_url_expire_seconds
        )
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


@router.post("/{intake_item_id}/promote", response_model=PromotionResponse)
def promote_item(
    intake_item_id: UUID,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStore, Depends(get_object_store)],
    http_client: Annotated[httpx.Client, Depends(get_http_client)],
    promotion_data: Optional[PromotionRequest] = None,
) -> PromotionResponse:
    """Promote an intake item to the asset catalog.

    Copies the staged files into the assets bucket, marks the item promoted
    and deletes the staged originals. Promoting an item that is no longer
    unsorted reports already_promoted instead of failing.

    Runs in the threadpool. Signed URLs may point back at this app, so the
    event loop must stay free while files are fetched.

    Args:
        intake_item_id: ID of the intake item
        current_operator: The authenticated operator
        db: Database session
        storage: Object store
        http_client: Client for fetching signed URLs
        promotion_data: Unsaved edits to use instead of the stored values

    Returns:
        PromotionResponse: The new asset id and file counts

    Raises:
        HTTPException: 404 if not found, 422 if required fields or files are
            missing, 502 if a store or storage call fails
    """
    edits = PromotionEdits()
    if promotion_data is not None:
        plain, taxonomy = _split_edits(promotion_data)
        edits = PromotionEdits(
            name=plain.get("raw_name"),
            taxonomy=taxonomy,
            tags=plain.get("tags"),
            notes=plain.get("notes"),
        )

    try:
        result = promote_intake_item(db, storage, http_client, intake_item_id, current_operator, edits)
    except IntakeItemNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except PromotionValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except PromotionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e

    return PromotionResponse(
        intake_item_id=result.intake_item_id,
        asset_id=result.asset_id,
        already_promoted=result.already_promoted,
        promoted_files=result.promoted_files,
        deleted_intake_files=result.deleted_intake_files,
        message=result.message,
    )
