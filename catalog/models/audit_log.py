"""Audit log model."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Uuid

from catalog.database import Base
from catalog.models.types import JSONType


class AuditLogEntry(Base):
    """Append-only record of operator actions. Writes are best-effort."""

    __tablename__ = "audit_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    actor = Column(Uuid(as_uuid=True), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(50), nullable=False)
    target_id = Column(String(64), nullable=True)
    details = Column(JSONType, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of AuditLogEntry."""
        return f"<AuditLogEntry(id={self.id}, action={self.action}, target_id={self.target_id})>"
