"""Admin bulk fix router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from catalog.core.auth import Operator
from catalog.core.bulk_fix import (
    BulkFixBusyError,
    BulkFixError,
    BulkFixGuardError,
    BulkFixParams,
    BulkFixSession,
    BulkFixValidationError,
    encode_preview_token,
    session_from_token,
)
from catalog.core.dependencies import get_current_operator
from catalog.database import get_db
from catalog.schemas.bulk_fix import (
    BulkFixApplyRequest,
    BulkFixApplyResponse,
    BulkFixOptionsResponse,
    BulkFixPreviewRequest,
    BulkFixPreviewResponse,
    TaxonomyFieldName,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/bulk-fix", tags=["admin"])


def _params(request: BulkFixPreviewRequest) -> BulkFixParams:
    return BulkFixParams(
        field=request.field,
        from_value=request.from_value,
        to_value=request.to_value,
        include_intake=request.include_intake,
    )


@router.get("/options", response_model=BulkFixOptionsResponse)
async def list_options(
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    field: TaxonomyFieldName = Query("category", description="Taxonomy field"),
) -> BulkFixOptionsResponse:
    """Existing values of a field across the sampled catalog."""
    session = BulkFixSession(BulkFixParams(field=field))
    session.refresh_facets(db)
    return BulkFixOptionsResponse(field=field, values=session.options(), sample_size=len(session.facet_rows))


@router.post("/preview", response_model=BulkFixPreviewResponse)
async def preview_bulk_fix(
    preview_data: BulkFixPreviewRequest,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> BulkFixPreviewResponse:
    """Count the records a bulk fix would change.

    The returned preview_token binds these parameters and counts. Apply
    accepts it only with identical parameters.

    Raises:
        HTTPException: 422 if no FROM value is given, 502 if a count fails
    """
    session = BulkFixSession(_params(preview_data))
    try:
        preview = session.preview(db)
    except BulkFixValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except BulkFixError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e

    # Confirmation is typed later; report every other guard now
    session.confirm("APPLY")
    blocked_reason = session.blocked_reason()

    return BulkFixPreviewResponse(
        field=preview_data.field,
        from_value=preview_data.from_value,
        to_value=preview_data.to_value,
        include_intake=preview_data.include_intake,
        asset_count=preview.asset_count,
        intake_count=preview.intake_count,
        sample_asset_ids=preview.sample_asset_ids,
        records_affected=preview.records_affected,
        can_apply=blocked_reason is None,
        blocked_reason=blocked_reason,
        preview_token=encode_preview_token(session.params, preview),
    )


@router.post("/apply", response_model=BulkFixApplyResponse)
async def apply_bulk_fix(
    apply_data: BulkFixApplyRequest,
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
) -> BulkFixApplyResponse:
    """Apply a previewed bulk fix.

    Requires the preview token for exactly these parameters, a TO value that
    differs from FROM, at least one previewed asset and the confirmation
    word APPLY.

    Raises:
        HTTPException: 409 if a guard is unmet, 502 if an update fails
    """
    session = session_from_token(apply_data.preview_token)
    session.set_params(_params(apply_data))
    session.confirm(apply_data.confirmation)

    try:
        outcome = session.apply(db, current_operator)
    except (BulkFixGuardError, BulkFixBusyError) as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    except BulkFixError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e

    return BulkFixApplyResponse(
        field=outcome.field,
        from_value=outcome.from_value,
        to_value=outcome.to_value,
        assets_updated=outcome.assets_updated,
        intake_updated=outcome.intake_updated,
        preview_assets=outcome.preview.asset_count,
        preview_intake=outcome.preview.intake_count,
        message=f'Applied bulk fix: {outcome.field} "{outcome.from_value}" -> "{outcome.to_value}".',
        options=session.options(),
    )
