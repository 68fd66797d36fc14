"""Promotion of intake items into the asset catalog."""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.core.audit import try_append_audit
from catalog.core.auth import Operator
from catalog.core.storage import ObjectStore, StorageError, sanitize_object_name
from catalog.core.taxonomy import TaxonomyChoice, TaxonomySelection
from catalog.models.asset import Asset, AssetFile
from catalog.models.intake import IntakeFile, IntakeItem, IntakeStatus

logger = logging.getLogger(__name__)

ALREADY_PROMOTED_MESSAGE = "Already promoted. You can finalize this intake item."


class PromotionError(Exception):
    """Raised when a promotion step fails. The message is shown to the operator as-is."""

    pass


class PromotionValidationError(PromotionError):
    """Raised when required fields or files are missing. Nothing has been written."""

    pass


class IntakeItemNotFoundError(PromotionError):
    """Raised when the intake item does not exist."""

    pass


@dataclass
class PromotionEdits:
    """Operator edits made on the intake page before promoting.

    Anything left unset falls back to the item's stored value.
    """

    name: str | None = None
    taxonomy: dict[str, TaxonomyChoice | None] = field(default_factory=dict)
    tags: list[str] | None = None
    notes: str | None = None


@dataclass
class PromotionResult:
    """Outcome of a promotion request."""

    intake_item_id: UUID
    asset_id: UUID | None
    already_promoted: bool
    promoted_files: int = 0
    deleted_intake_files: int = 0
    message: str = ""


def strip_extension(filename: str) -> str:
    """Drop the last extension. Dot-files and names without a dot are kept whole."""
    i = filename.rfind(".")
    if i <= 0:
        return filename
    return filename[:i]


def resolve_name(edited_name: str | None, stored_name: str | None, files: list[IntakeFile]) -> str:
    """Resolve the asset name: edited name, else stored name, else first file name sans extension."""
    name = (edited_name or stored_name or "").strip()
    if not name and files:
        name = strip_extension(files[0].file_name).strip()
    return name


def list_intake_files(db: Session, intake_item_id: UUID) -> list[IntakeFile]:
    """Current staged files of an item, ordered by file name."""
    return (
        db.query(IntakeFile)
        .filter(IntakeFile.intake_item_id == intake_item_id)
        .order_by(IntakeFile.file_name.asc())
        .all()
    )


def delete_intake_originals(db: Session, storage: ObjectStore, intake_item_id: UUID) -> int:
    """Remove an item's staged objects and file rows.

    Objects are removed with one call per bucket before the rows are deleted.

    Returns:
        int: Number of staged files deleted (0 if none were left)

    Raises:
        PromotionError: If storage or the database rejects the delete
    """
    intake_files = db.query(IntakeFile).filter(IntakeFile.intake_item_id == intake_item_id).all()
    if not intake_files:
        return 0

    by_bucket: dict[str, list[str]] = {}
    for f in intake_files:
        by_bucket.setdefault(f.bucket or settings.intake_bucket, []).append(f.object_path)

    for bucket, paths in by_bucket.items():
        try:
            storage.remove(bucket, paths)
        except StorageError as e:
            raise PromotionError(f"Storage delete failed ({bucket}): {e}") from e

    try:
        db.query(IntakeFile).filter(IntakeFile.intake_item_id == intake_item_id).delete(
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PromotionError(str(e)) from e

    return len(intake_files)


def _copy_file_to_assets(
    storage: ObjectStore,
    http_client: httpx.Client,
    asset_id: UUID,
    intake_file: IntakeFile,
) -> dict[str, Any]:
    """Copy one staged file into the assets bucket and describe the new AssetFile row."""
    from_bucket = intake_file.bucket or settings.intake_bucket
    original_name = intake_file.file_name

    try:
        signed_url = storage.create_signed_url(
            from_bucket, intake_file.object_path, settings.signed_url_expire_seconds
        )
    except StorageError as e:
        raise PromotionError(str(e)) from e

    try:
        response = http_client.get(signed_url)
    except httpx.HTTPError as e:
        raise PromotionError(f'Failed to download "{original_name}" from intake: {e}') from e
    if not response.is_success:
        raise PromotionError(
            f'Failed to download "{original_name}" from intake (HTTP {response.status_code}).'
        )

    content = response.content
    mime_type = intake_file.mime_type or response.headers.get("content-type") or None
    to_path = f"{asset_id}/{uuid4()}-{sanitize_object_name(original_name)}"

    try:
        storage.upload(settings.assets_bucket, to_path, content, content_type=mime_type, upsert=False)
    except StorageError as e:
        raise PromotionError(str(e)) from e

    size_bytes = intake_file.size_bytes if intake_file.size_bytes is not None else len(content)
    return {
        "asset_id": asset_id,
        "bucket": settings.assets_bucket,
        "object_path": to_path,
        "file_name": original_name,
        "mime_type": mime_type,
        "size_bytes": size_bytes,
    }


def promote_intake_item(
    db: Session,
    storage: ObjectStore,
    http_client: httpx.Client,
    intake_item_id: UUID,
    operator: Operator,
    edits: PromotionEdits | None = None,
) -> PromotionResult:
    """Turn an unsorted intake item into a catalog asset.

    Steps run strictly in order and each commits on its own:
    1. Re-read the item's files
    2. Create the asset
    3. Copy each file to the assets bucket through a signed URL
    4. Record the asset files
    5. Mark the item promoted
    6. Delete the staged originals
    7. Write an audit entry (best-effort)

    A failure in steps 2-6 stops the sequence and leaves earlier steps in
    place; the error names the asset so it can be reconciled by hand.

    Args:
        db: Database session
        storage: Object store holding both buckets
        http_client: Client used to fetch signed URLs
        intake_item_id: Item to promote
        operator: Acting operator, recorded as creator and audit actor
        edits: Unsaved edits from the intake page

    Returns:
        PromotionResult: The new asset id, or already_promoted for terminal items

    Raises:
        IntakeItemNotFoundError: If the item does not exist
        PromotionValidationError: If name, category, property or files are missing
        PromotionError: If a store or storage call fails
    """
    edits = edits or PromotionEdits()

    item = db.query(IntakeItem).filter(IntakeItem.id == intake_item_id).first()
    if not item:
        raise IntakeItemNotFoundError("Intake item not found")

    if item.status != IntakeStatus.UNSORTED.value:
        logger.info(f"Intake item {intake_item_id} already {item.status}, nothing to promote")
        return PromotionResult(
            intake_item_id=intake_item_id,
            asset_id=None,
            already_promoted=True,
            message=ALREADY_PROMOTED_MESSAGE,
        )

    # Step 1: fresh file list
    try:
        intake_files = list_intake_files(db, intake_item_id)
    except SQLAlchemyError as e:
        raise PromotionError(str(e)) from e

    selection = TaxonomySelection.from_values(item.category, item.property, item.sub_property)
    selection.apply(edits.taxonomy)

    final_name = resolve_name(edits.name, item.raw_name, intake_files)
    final_category = selection.effective_category()
    final_property = selection.effective_property()

    if not final_name:
        raise PromotionValidationError("Name is required before promoting.")
    if not final_category:
        raise PromotionValidationError("Category is required before promoting.")
    if not final_property:
        raise PromotionValidationError("Property is required before promoting.")
    if not intake_files:
        raise PromotionValidationError("No files found to promote.")

    tags = edits.tags if edits.tags is not None else list(item.tags or [])
    notes = edits.notes if edits.notes is not None else item.notes

    logger.info(f"Promoting intake item {intake_item_id} with {len(intake_files)} file(s) as '{final_name}'")

    # Step 2: create the asset
    asset = Asset(
        title=final_name,
        name=final_name,
        category=final_category,
        property=final_property,
        sub_property=selection.effective_sub_property(),
        tags=tags,
        notes=(notes or "").strip() or None,
        created_by=operator.id,
    )
    try:
        db.add(asset)
        db.commit()
        db.refresh(asset)
    except SQLAlchemyError as e:
        db.rollback()
        raise PromotionError(str(e)) from e

    asset_id = asset.id

    try:
        # Step 3: copy files, one at a time; the first failure stops the rest
        new_asset_files = [
            _copy_file_to_assets(storage, http_client, asset_id, f) for f in intake_files
        ]

        # Step 4: record the copies
        try:
            db.add_all([AssetFile(**row) for row in new_asset_files])
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PromotionError(str(e)) from e

        # Step 5: mark promoted, only if nobody else did in the meantime
        try:
            updated = (
                db.query(IntakeItem)
                .filter(
                    IntakeItem.id == intake_item_id,
                    IntakeItem.status == IntakeStatus.UNSORTED.value,
                )
                .update({"status": IntakeStatus.PROMOTED.value}, synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PromotionError(str(e)) from e
        if updated == 0:
            raise PromotionError(
                f"Intake item was promoted concurrently; reconcile asset {asset_id} manually."
            )

        # Step 6: remove the staged originals
        deleted_count = delete_intake_originals(db, storage, intake_item_id)
    except PromotionError:
        logger.error(f"Promotion of intake item {intake_item_id} aborted after creating asset {asset_id}")
        raise

    db.expire(item)

    # Step 7: audit, best-effort
    try_append_audit(
        db,
        actor=operator.id,
        action="intake_promote_and_cleanup",
        target_type="asset",
        target_id=asset_id,
        details={
            "intake_item_id": str(intake_item_id),
            "file_count": len(intake_files),
            "deleted_intake_files": deleted_count,
        },
    )

    logger.info(f"Promoted intake item {intake_item_id} to asset {asset_id}")
    return PromotionResult(
        intake_item_id=intake_item_id,
        asset_id=asset_id,
        already_promoted=False,
        promoted_files=len(new_asset_files),
        deleted_intake_files=deleted_count,
        message=(
            f"File addition complete. Promoted {len(new_asset_files)} file(s) to Assets "
            "and removed Intake originals."
        ),
    )
