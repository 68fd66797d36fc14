"""Intake staging: upload, queue and metadata edits."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.core.audit import try_append_audit
from catalog.core.auth import Operator
from catalog.core.promotion import strip_extension
from catalog.core.storage import ObjectStore, StorageError, sanitize_object_name
from catalog.core.taxonomy import TaxonomyChoice, TaxonomySelection
from catalog.models.intake import IntakeBatch, IntakeFile, IntakeItem, IntakeStatus

logger = logging.getLogger(__name__)

QUEUE_LIMIT = 50


class IntakeError(Exception):
    """Raised when an intake operation fails."""

    pass


class IntakeValidationError(IntakeError):
    """Raised when an intake request is incomplete."""

    pass


class IntakeLockedError(IntakeError):
    """Raised when editing an item that is no longer unsorted."""

    pass


@dataclass
class UploadedFile:
    """A file received from the operator."""

    file_name: str
    content: bytes
    mime_type: str | None = None


def current_month() -> str:
    """Batch month in YYYY-MM, UTC."""
    return datetime.now(timezone.utc).strftime("%Y-%m")


def suggested_name(item: IntakeItem, files: list[IntakeFile]) -> str:
    """Name shown in the editor: stored name, else first file name without extension."""
    name = (item.raw_name or "").strip()
    if not name and files:
        name = strip_extension(files[0].file_name)
    return name


def is_editable(item: IntakeItem) -> bool:
    """Metadata may only change while the item is unsorted."""
    return item.status == IntakeStatus.UNSORTED.value


def upload_to_intake(
    db: Session,
    storage: ObjectStore,
    operator: Operator,
    files: list[UploadedFile],
    raw_name: str | None = None,
    source: str | None = None,
) -> IntakeItem:
    """Stage uploaded files as one new unsorted intake item.

    Creates the batch and the item, stores each file in the intake bucket and
    records the file rows. Fails fast: a storage error leaves the batch and
    item in place without files.

    Raises:
        IntakeValidationError: If no files were given
        IntakeError: If the store or storage rejects a write
    """
    if not files:
        raise IntakeValidationError("Select one or more files to upload.")

    month = current_month()
    source = (source or "").strip() or None
    item_name = (raw_name or "").strip() or f"Upload {datetime.now(timezone.utc):%Y-%m-%d %H:%M:%S} UTC"

    try:
        batch = IntakeBatch(month=month, source=source, created_by=operator.id)
        db.add(batch)
        db.commit()
        db.refresh(batch)

        item = IntakeItem(
            batch_id=batch.id,
            uploader=operator.id,
            status=IntakeStatus.UNSORTED.value,
            raw_name=item_name,
            tags=[],
        )
        db.add(item)
        db.commit()
        db.refresh(item)
    except SQLAlchemyError as e:
        db.rollback()
        raise IntakeError(str(e)) from e

    uploaded: list[dict[str, Any]] = []
    for f in files:
        object_path = f"{operator.id}/{month}/{item.id}/{uuid4()}-{sanitize_object_name(f.file_name)}"
        try:
            storage.upload(settings.intake_bucket, object_path, f.content, content_type=f.mime_type, upsert=False)
        except StorageError as e:
            logger.error(f"Upload of {f.file_name} into intake item {item.id} failed: {e}")
            raise IntakeError(str(e)) from e
        uploaded.append(
            {
                "intake_item_id": item.id,
                "bucket": settings.intake_bucket,
                "object_path": object_path,
                "file_name": f.file_name,
                "mime_type": f.mime_type or None,
                "size_bytes": len(f.content),
            }
        )

    try:
        db.add_all([IntakeFile(**row) for row in uploaded])
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise IntakeError(str(e)) from e

    try_append_audit(
        db,
        actor=operator.id,
        action="intake_upload",
        target_type="intake_item",
        target_id=item.id,
        details={"month": month, "source": source, "file_count": len(files)},
    )

    logger.info(f"Uploaded {len(files)} file(s) into intake item {item.id}")
    db.refresh(item)
    return item


def list_unsorted_queue(db: Session, limit: int = QUEUE_LIMIT) -> list[IntakeItem]:
    """Unsorted intake items, newest first."""
    return (
        db.query(IntakeItem)
        .filter(IntakeItem.status == IntakeStatus.UNSORTED.value)
        .order_by(IntakeItem.created_at.desc())
        .limit(limit)
        .all()
    )


def get_intake_item(db: Session, intake_item_id: UUID) -> IntakeItem | None:
    return db.query(IntakeItem).filter(IntakeItem.id == intake_item_id).first()


def save_intake_metadata(
    db: Session,
    item: IntakeItem,
    updates: dict[str, Any],
    taxonomy: dict[str, TaxonomyChoice | None],
) -> IntakeItem:
    """Save metadata edits on an unsorted item.

    Args:
        db: Database session
        item: Item to edit
        updates: Plain fields to set (raw_name, notes, tags); empty strings become None
        taxonomy: Taxonomy choices, applied parent-first

    Raises:
        IntakeLockedError: If the item is promoted or archived
        IntakeError: If the store rejects the update
    """
    if not is_editable(item):
        raise IntakeLockedError("Intake item is locked after promotion or archival")

    selection = TaxonomySelection.from_values(item.category, item.property, item.sub_property)
    selection.apply(taxonomy)
    for key, value in selection.effective().items():
        setattr(item, key, value)

    for key, value in updates.items():
        if isinstance(value, str):
            value = value.strip() or None
        if key == "tags" and value is None:
            value = []
        setattr(item, key, value)

    try:
        db.commit()
        db.refresh(item)
    except SQLAlchemyError as e:
        db.rollback()
        raise IntakeError(str(e)) from e

    return item


def get_intake_file(db: Session, intake_item_id: UUID, file_id: UUID) -> IntakeFile | None:
    return (
        db.query(IntakeFile)
        .filter(IntakeFile.id == file_id, IntakeFile.intake_item_id == intake_item_id)
        .first()
    )

