"""Asset catalog reads and metadata edits."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.core.audit import try_append_audit
from catalog.core.auth import Operator
from catalog.models.asset import Asset, AssetFile

logger = logging.getLogger(__name__)

LIST_LIMIT = 200


class CatalogError(Exception):
    """Raised when a catalog update fails."""

    pass


class CatalogValidationError(CatalogError):
    """Raised when an edit is missing a required field."""

    pass


def list_assets(db: Session, limit: int = LIST_LIMIT) -> list[Asset]:
    """Most recent assets first."""
    return db.query(Asset).order_by(Asset.created_at.desc()).limit(limit).all()


def get_asset(db: Session, asset_id: UUID) -> Asset | None:
    return db.query(Asset).filter(Asset.id == asset_id).first()


def get_asset_file(db: Session, asset_id: UUID, file_id: UUID) -> AssetFile | None:
    return db.query(AssetFile).filter(AssetFile.id == file_id, AssetFile.asset_id == asset_id).first()


def update_asset_metadata(db: Session, asset: Asset, updates: dict[str, Any], operator: Operator) -> Asset:
    """Apply metadata edits to an asset.

    The title is required and the name follows it. Optional text fields are
    trimmed and stored as None when empty.

    Raises:
        CatalogValidationError: If the title would be empty
        CatalogError: If the store rejects the update
    """
    if "title" in updates and not (updates["title"] or "").strip():
        raise CatalogValidationError("Title is required.")

    for key, value in updates.items():
        if isinstance(value, str):
            value = value.strip() or None
        if key == "title":
            asset.name = value
        if key == "tags" and value is None:
            value = []
        setattr(asset, key, value)

    try:
        db.commit()
        db.refresh(asset)
    except SQLAlchemyError as e:
        db.rollback()
        raise CatalogError(str(e)) from e

    try_append_audit(
        db,
        actor=operator.id,
        action="asset_update_metadata",
        target_type="asset",
        target_id=asset.id,
        details={
            "title": asset.title,
            "category": asset.category,
            "property": asset.property,
            "sub_property": asset.sub_property,
            "tags": list(asset.tags or []),
        },
    )
    logger.info(f"Updated metadata of asset {asset.id}")
    return asset
