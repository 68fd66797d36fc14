"""Best-effort audit logging."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.models.audit_log import AuditLogEntry

logger = logging.getLogger(__name__)


def try_append_audit(
    db: Session,
    actor: UUID,
    action: str,
    target_type: str,
    target_id: UUID | str | None,
    details: dict[str, Any] | None = None,
) -> bool:
    """Append one audit entry, ignoring store failures.

    Audit writes never block or fail the operation being audited. The entry
    is committed on its own; on a database error the session is rolled back
    and False is returned.

    Args:
        db: Database session
        actor: Operator performing the action
        action: Action name, e.g. "intake_promote_and_cleanup"
        target_type: Kind of record acted on ("asset", "intake_item", "assets")
        target_id: Record id, or None for bulk actions
        details: JSON-serializable payload

    Returns:
        bool: True if the entry was written
    """
    entry = AuditLogEntry(
        actor=actor,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        details=details,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Audit entry {action} for {target_type} {target_id} was not written: {e}")
        return False
    return True
