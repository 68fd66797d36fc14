"""Taxonomy router."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from catalog.core.auth import Operator
from catalog.core.dependencies import get_current_operator
from catalog.core.taxonomy import TaxonomySelection, facets_for_selection, load_facet_rows
from catalog.database import get_db
from catalog.schemas.taxonomy import FacetsResponse

router = APIRouter(prefix="/api/taxonomy", tags=["taxonomy"])


@router.get("/facets", response_model=FacetsResponse)
async def get_facets(
    current_operator: Annotated[Operator, Depends(get_current_operator)],
    db: Annotated[Session, Depends(get_db)],
    category: Optional[str] = Query(None, description="Effective category to narrow properties by"),
    property: Optional[str] = Query(None, description="Effective property to narrow sub-properties by"),
) -> FacetsResponse:
    """Candidate values for the category, property and sub-property pickers.

    Derived from a sample of catalog rows; values added moments ago may be
    missing until the next request that samples them.
    """
    selection = TaxonomySelection.from_values(category, property, None)
    facets = facets_for_selection(load_facet_rows(db), selection)
    return FacetsResponse(
        categories=facets.categories,
        properties=facets.properties,
        sub_properties=facets.sub_properties,
        sample_size=facets.sample_size,
    )
