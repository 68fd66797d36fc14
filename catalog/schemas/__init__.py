"""Pydantic schemas package."""

from catalog.schemas.asset import AssetDetailResponse, AssetFileResponse, AssetResponse, AssetUpdate
from catalog.schemas.bulk_fix import (
    BulkFixApplyRequest,
    BulkFixApplyResponse,
    BulkFixOptionsResponse,
    BulkFixPreviewRequest,
    BulkFixPreviewResponse,
)
from catalog.schemas.intake import (
    IntakeFileResponse,
    IntakeItemDetailResponse,
    IntakeItemResponse,
    IntakeItemUpdate,
    PromotionRequest,
    PromotionResponse,
    SignedUrlResponse,
)
from catalog.schemas.taxonomy import AddNewChoiceIn, FacetsResponse, SelectedChoiceIn

__all__ = [
    "AddNewChoiceIn",
    "AssetDetailResponse",
    "AssetFileResponse",
    "AssetResponse",
    "AssetUpdate",
    "BulkFixApplyRequest",
    "BulkFixApplyResponse",
    "BulkFixOptionsResponse",
    "BulkFixPreviewRequest",
    "BulkFixPreviewResponse",
    "FacetsResponse",
    "IntakeFileResponse",
    "IntakeItemDetailResponse",
    "IntakeItemResponse",
    "IntakeItemUpdate",
    "PromotionRequest",
    "PromotionResponse",
    "SelectedChoiceIn",
]
