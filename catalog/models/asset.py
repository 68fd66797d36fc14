"""Catalog models: assets and their permanent files."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from catalog.database import Base
from catalog.models.types import JSONType


class Asset(Base):
    """A cataloged asset created by promoting an intake item."""

    __tablename__ = "assets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(255), nullable=True, index=True)
    property = Column(String(255), nullable=True, index=True)
    sub_property = Column(String(255), nullable=True, index=True)
    tags = Column(JSONType, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid(as_uuid=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    # Relationships
    files = relationship("AssetFile", backref="asset", order_by="AssetFile.file_name")

    def __repr__(self) -> str:
        """String representation of Asset."""
        return f"<Asset(id={self.id}, title={self.title}, category={self.category})>"


class AssetFile(Base):
    """A file copied into permanent storage during promotion."""

    __tablename__ = "asset_files"
    __table_args__ = (UniqueConstraint("bucket", "object_path", name="uq_asset_files_bucket_path"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    asset_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("assets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bucket = Column(String(63), nullable=False, default="assets")
    object_path = Column(String(1024), nullable=False)
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size_bytes = Column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        """String representation of AssetFile."""
        return f"<AssetFile(id={self.id}, asset_id={self.asset_id}, object_path={self.object_path})>"
