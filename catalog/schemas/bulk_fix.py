"""Bulk fix schemas."""

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

TaxonomyFieldName = Literal["category", "property", "sub_property"]


class BulkFixPreviewRequest(BaseModel):
    """Parameters of a bulk fix. Preview and apply must send the same values."""

    field: TaxonomyFieldName = Field("category", description="Taxonomy field to rename")
    from_value: str = Field("", description="Existing value to replace")
    to_value: str = Field("", description="Replacement value")
    include_intake: bool = Field(False, description="Also rename on unsorted intake items")

    @field_validator("from_value", "to_value", mode="before")
    @classmethod
    def normalize_value(cls, v: Optional[str]) -> str:
        """Strip whitespace; treat null as empty."""
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class BulkFixPreviewResponse(BaseModel):
    """Counts shown before applying, plus the token that unlocks apply."""

    field: TaxonomyFieldName
    from_value: str
    to_value: str
    include_intake: bool
    asset_count: int = Field(..., description="Assets whose field equals from_value")
    intake_count: Optional[int] = Field(None, description="Matching unsorted intake items, if included")
    sample_asset_ids: list[UUID] = Field(default_factory=list, description="Up to 12 newest matching assets")
    records_affected: int = Field(..., description="Records an apply would update")
    can_apply: bool = Field(..., description="Whether apply is allowed once confirmed")
    blocked_reason: Optional[str] = Field(None, description="Why apply is blocked, ignoring confirmation")
    preview_token: str = Field(..., description="Send back with apply")


class BulkFixApplyRequest(BulkFixPreviewRequest):
    """Apply request: the previewed parameters, the token and the typed confirmation."""

    preview_token: Optional[str] = Field(None, description="Token from the preview response")
    confirmation: str = Field("", description="Must read APPLY")


class BulkFixApplyResponse(BaseModel):
    """Result of an applied bulk fix."""

    field: TaxonomyFieldName
    from_value: str
    to_value: str
    assets_updated: int
    intake_updated: Optional[int] = None
    preview_assets: int
    preview_intake: Optional[int] = None
    message: str
    options: list[str] = Field(default_factory=list, description="Refreshed values of the field")


class BulkFixOptionsResponse(BaseModel):
    """Existing values of a field, for the FROM list and TO suggestions."""

    field: TaxonomyFieldName
    values: list[str] = Field(default_factory=list)
    sample_size: int
