"""Guarded bulk rename of taxonomy values across the catalog.

A bulk fix replaces every occurrence of one category, property or
sub-property value with another. It runs as a small state machine:

    Idle --preview--> Previewed --apply--> Applying --> Idle

Changing any parameter drops a Previewed session back to Idle, so an
apply always acts on the parameters the operator last previewed.
"""

import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.core.audit import try_append_audit
from catalog.core.auth import Operator
from catalog.core.taxonomy import TAXONOMY_FIELDS, FacetRow, TaxonomyField, field_values, load_facet_rows
from catalog.models.asset import Asset
from catalog.models.intake import IntakeItem, IntakeStatus

logger = logging.getLogger(__name__)

CONFIRMATION_WORD = "APPLY"
PREVIEW_SAMPLE_SIZE = 12
PREVIEW_TOKEN_TTL = timedelta(minutes=15)
PREVIEW_TOKEN_PURPOSE = "bulk_fix_preview"


class BulkFixError(Exception):
    """Raised when a bulk fix cannot run or a store update fails."""

    pass


class BulkFixValidationError(BulkFixError):
    """Raised when preview input is incomplete."""

    pass


class BulkFixGuardError(BulkFixError):
    """Raised when apply is attempted while one of its guards is unmet."""

    pass


class BulkFixBusyError(BulkFixError):
    """Raised when the session is already applying."""

    pass


class BulkFixState(str, enum.Enum):
    IDLE = "idle"
    PREVIEWED = "previewed"
    APPLYING = "applying"


@dataclass(frozen=True)
class BulkFixParams:
    """What to rename, and whether unsorted intake items are included."""

    field: TaxonomyField = "category"
    from_value: str = ""
    to_value: str = ""
    include_intake: bool = False

    def __post_init__(self) -> None:
        if self.field not in TAXONOMY_FIELDS:
            raise BulkFixValidationError(f"Unknown field: {self.field}")

    @property
    def from_trimmed(self) -> str:
        return self.from_value.strip()

    @property
    def to_trimmed(self) -> str:
        return self.to_value.strip()


@dataclass
class BulkFixPreview:
    """Impact of a bulk fix as counted at preview time."""

    asset_count: int
    intake_count: int | None = None
    sample_asset_ids: list[UUID] = field(default_factory=list)

    @property
    def records_affected(self) -> int:
        return self.asset_count + (self.intake_count or 0)


@dataclass
class BulkFixOutcome:
    """Result of an applied bulk fix."""

    field: str
    from_value: str
    to_value: str
    assets_updated: int
    intake_updated: int | None
    preview: BulkFixPreview
    audited: bool


class BulkFixSession:
    """One operator's bulk-fix form: parameters, preview, confirmation and state."""

    def __init__(self, params: BulkFixParams | None = None):
        self.params = params or BulkFixParams()
        self.state = BulkFixState.IDLE
        self.preview_result: BulkFixPreview | None = None
        self.confirmation = ""
        self.facet_rows: list[FacetRow] = []

    @classmethod
    def restore(cls, params: BulkFixParams, preview: BulkFixPreview) -> "BulkFixSession":
        """Rebuild a Previewed session, e.g. from a preview token."""
        session = cls(params)
        session.preview_result = preview
        session.state = BulkFixState.PREVIEWED
        return session

    def _ensure_not_applying(self) -> None:
        if self.state == BulkFixState.APPLYING:
            raise BulkFixBusyError("A bulk fix is already being applied.")

    def reset_preview(self) -> None:
        self.state = BulkFixState.IDLE
        self.preview_result = None

    def set_params(self, params: BulkFixParams) -> None:
        """Replace the parameters. Any change invalidates the preview and confirmation."""
        self._ensure_not_applying()
        if params != self.params:
            self.params = params
            self.reset_preview()
            self.confirmation = ""

    def confirm(self, text: str) -> None:
        self.confirmation = text or ""

    def refresh_facets(self, db: Session) -> None:
        self.facet_rows = load_facet_rows(db)

    def options(self) -> list[str]:
        """Existing values of the selected field, for the FROM list and TO suggestions."""
        return field_values(self.facet_rows, self.params.field)

    def preview(self, db: Session) -> BulkFixPreview:
        """Count what an apply would touch.

        Raises:
            BulkFixValidationError: If no FROM value is set
            BulkFixError: If a count query fails
        """
        self._ensure_not_applying()
        self.reset_preview()

        from_value = self.params.from_trimmed
        if not from_value:
            raise BulkFixValidationError("Pick a FROM value to preview.")

        asset_column = getattr(Asset, self.params.field)
        try:
            asset_count = db.query(func.count(Asset.id)).filter(asset_column == from_value).scalar() or 0
            sample_rows = (
                db.query(Asset.id)
                .filter(asset_column == from_value)
                .order_by(Asset.created_at.desc())
                .limit(PREVIEW_SAMPLE_SIZE)
                .all()
            )

            intake_count = None
            if self.params.include_intake:
                intake_column = getattr(IntakeItem, self.params.field)
                intake_count = (
                    db.query(func.count(IntakeItem.id))
                    .filter(
                        intake_column == from_value,
                        IntakeItem.status == IntakeStatus.UNSORTED.value,
                    )
                    .scalar()
                    or 0
                )
        except SQLAlchemyError as e:
            raise BulkFixError(str(e)) from e

        self.preview_result = BulkFixPreview(
            asset_count=asset_count,
            intake_count=intake_count,
            sample_asset_ids=[row[0] for row in sample_rows],
        )
        self.state = BulkFixState.PREVIEWED
        logger.info(
            f"Bulk fix preview {self.params.field}={from_value!r}: "
            f"{asset_count} asset(s), {intake_count} intake item(s)"
        )
        return self.preview_result

    def blocked_reason(self) -> str | None:
        """The first unmet apply guard, or None when apply is allowed."""
        if self.state == BulkFixState.APPLYING:
            return "A bulk fix is already being applied."
        if self.state != BulkFixState.PREVIEWED or self.preview_result is None:
            return "Run Preview first (Apply is disabled until preview completes)."
        if not self.params.from_trimmed:
            return "FROM value is required."
        if not self.params.to_trimmed:
            return "TO value is required."
        if self.params.from_trimmed == self.params.to_trimmed:
            return "FROM and TO cannot be the same."
        if self.preview_result.asset_count <= 0:
            return "Preview shows 0 matching assets. Nothing to apply."
        if self.confirmation.strip().upper() != CONFIRMATION_WORD:
            return f"Type {CONFIRMATION_WORD} in the confirmation box to run the bulk update."
        return None

    @property
    def can_apply(self) -> bool:
        return self.blocked_reason() is None

    def apply(self, db: Session, operator: Operator) -> BulkFixOutcome:
        """Rename the value on all matching assets, then on unsorted intake items if included.

        The two updates commit separately. If the intake update fails the
        asset update stays applied.

        Raises:
            BulkFixBusyError: If already applying
            BulkFixGuardError: If a guard is unmet
            BulkFixError: If an update fails
        """
        self._ensure_not_applying()
        reason = self.blocked_reason()
        if reason:
            raise BulkFixGuardError(reason)

        params = self.params
        preview = self.preview_result
        from_value = params.from_trimmed
        to_value = params.to_trimmed
        self.state = BulkFixState.APPLYING

        try:
            assets_updated = (
                db.query(Asset)
                .filter(getattr(Asset, params.field) == from_value)
                .update({params.field: to_value}, synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self.state = BulkFixState.PREVIEWED
            logger.error(f"Bulk fix on assets {params.field}={from_value!r} failed: {e}")
            raise BulkFixError(f"Assets update failed: {e}") from e

        intake_updated = None
        if params.include_intake:
            try:
                intake_updated = (
                    db.query(IntakeItem)
                    .filter(
                        getattr(IntakeItem, params.field) == from_value,
                        IntakeItem.status == IntakeStatus.UNSORTED.value,
                    )
                    .update({params.field: to_value}, synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                self.reset_preview()
                logger.error(
                    f"Bulk fix on intake items {params.field}={from_value!r} failed after "
                    f"{assets_updated} asset(s) were updated: {e}"
                )
                raise BulkFixError(f"Intake update failed: {e}") from e

        audited = try_append_audit(
            db,
            actor=operator.id,
            action="bulk_fix_metadata",
            target_type="assets",
            target_id=None,
            details={
                "field": params.field,
                "from": from_value,
                "to": to_value,
                "include_intake_unsorted": params.include_intake,
                "preview_assets": preview.asset_count,
                "preview_intake": preview.intake_count,
            },
        )

        logger.info(
            f"Bulk fix applied {params.field}: {from_value!r} -> {to_value!r} "
            f"({assets_updated} asset(s), {intake_updated} intake item(s))"
        )

        self.reset_preview()
        self.confirmation = ""
        self.params = replace(params, from_value="", to_value="")
        self.refresh_facets(db)

        return BulkFixOutcome(
            field=params.field,
            from_value=from_value,
            to_value=to_value,
            assets_updated=assets_updated,
            intake_updated=intake_updated,
            preview=preview,
            audited=audited,
        )


def encode_preview_token(params: BulkFixParams, preview: BulkFixPreview) -> str:
    """Sign the previewed parameters and counts so a later apply can be checked against them."""
    claims: dict[str, Any] = {
        "purpose": PREVIEW_TOKEN_PURPOSE,
        "field": params.field,
        "from": params.from_value,
        "to": params.to_value,
        "include_intake": params.include_intake,
        "asset_count": preview.asset_count,
        "intake_count": preview.intake_count,
        "sample_asset_ids": [str(i) for i in preview.sample_asset_ids],
        "exp": datetime.now(timezone.utc) + PREVIEW_TOKEN_TTL,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def session_from_token(token: str | None) -> BulkFixSession:
    """Restore the session a preview token describes.

    A missing, expired or tampered token yields an Idle session, so apply
    reports that a preview is required.
    """
    if not token:
        return BulkFixSession()

    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        logger.info("Rejected bulk fix preview token")
        return BulkFixSession()
    if claims.get("purpose") != PREVIEW_TOKEN_PURPOSE:
        return BulkFixSession()

    try:
        params = BulkFixParams(
            field=claims["field"],
            from_value=claims["from"],
            to_value=claims["to"],
            include_intake=bool(claims["include_intake"]),
        )
        preview = BulkFixPreview(
            asset_count=int(claims["asset_count"]),
            intake_count=claims.get("intake_count"),
            sample_asset_ids=[UUID(i) for i in claims.get("sample_asset_ids", [])],
        )
    except (KeyError, TypeError, ValueError, BulkFixValidationError):
        return BulkFixSession()

    return BulkFixSession.restore(params, preview)
