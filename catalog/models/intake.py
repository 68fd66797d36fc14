"""Intake staging models: batches, items and their staged files."""

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from catalog.database import Base
from catalog.models.types import JSONType


class IntakeStatus(str, enum.Enum):
    """Lifecycle of an intake item. Anything but UNSORTED is terminal."""

    UNSORTED = "unsorted"
    PROMOTED = "promoted"
    ARCHIVED = "archived"


class IntakeBatch(Base):
    """One upload action. Written once and never read by the workflows."""

    __tablename__ = "intake_batches"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    month = Column(String(7), nullable=False, index=True)  # YYYY-MM
    source = Column(String(255), nullable=True)
    created_by = Column(Uuid(as_uuid=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of IntakeBatch."""
        return f"<IntakeBatch(id={self.id}, month={self.month}, created_by={self.created_by})>"


class IntakeItem(Base):
    """A staged upload awaiting taxonomy assignment and promotion."""

    __tablename__ = "intake_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    batch_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("intake_batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploader = Column(Uuid(as_uuid=True), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=IntakeStatus.UNSORTED.value,
        index=True,
    )
    raw_name = Column(String(255), nullable=True)
    category = Column(String(255), nullable=True, index=True)
    property = Column(String(255), nullable=True, index=True)
    sub_property = Column(String(255), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    batch = relationship("IntakeBatch", backref="items")

    def __repr__(self) -> str:
        """String representation of IntakeItem."""
        return f"<IntakeItem(id={self.id}, status={self.status}, raw_name={self.raw_name})>"


class IntakeFile(Base):
    """One staged file of an intake item. Deleted when the item is promoted."""

    __tablename__ = "intake_files"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    intake_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("intake_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bucket = Column(String(63), nullable=False, default="intake")
    object_path = Column(String(1024), nullable=False)
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size_bytes = Column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        """String representation of IntakeFile."""
        return f"<IntakeFile(id={self.id}, file_name={self.file_name}, bucket={self.bucket})>"
