"""Intake schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.schemas.taxonomy import TaxonomyChoiceIn, normalize_tags


class IntakeFileResponse(BaseModel):
    """Schema for returning a staged file."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique identifier of the file")
    intake_item_id: UUID = Field(..., description="ID of the intake item the file belongs to")
    bucket: str = Field(..., description="Storage bucket")
    object_path: str = Field(..., description="Path of the object inside the bucket")
    file_name: str = Field(..., description="Original file name")
    mime_type: Optional[str] = Field(None, description="MIME type reported at upload")
    size_bytes: Optional[int] = Field(None, description="Size in bytes")


class IntakeItemResponse(BaseModel):
    """Schema for returning an intake item."""

    id: UUID = Field(..., description="Unique identifier of the intake item")
    batch_id: UUID = Field(..., description="Upload batch the item was created in")
    uploader: UUID = Field(..., description="Operator who uploaded the item")
    status: str = Field(..., description="unsorted, promoted or archived")
    raw_name: Optional[str] = Field(None, description="Working name of the item")
    category: Optional[str] = None
    property: Optional[str] = None
    sub_property: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(..., description="Timestamp when the item was uploaded")
    editable: bool = Field(..., description="Whether metadata can still be saved")


class IntakeItemDetailResponse(IntakeItemResponse):
    """Intake item with its staged files."""

    suggested_name: str = Field(..., description="Name to prefill: stored name, else first file name")
    files: list[IntakeFileResponse] = Field(default_factory=list)


class IntakeItemUpdate(BaseModel):
    """Schema for saving intake metadata. Unset fields are left unchanged."""

    raw_name: Optional[str] = Field(None, max_length=255, description="Working name")
    category: TaxonomyChoiceIn = Field(None, description="Category selection or new value")
    property: TaxonomyChoiceIn = Field(None, description="Property selection or new value")
    sub_property: TaxonomyChoiceIn = Field(None, description="Sub-property selection or new value")
    notes: Optional[str] = Field(None, description="Free-form notes")
    tags: Optional[list[str]] = Field(None, description="Tags, as a list or comma-separated string")

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tag_list(cls, v: object) -> object:
        """Split and trim tags."""
        return normalize_tags(v)


class PromotionRequest(IntakeItemUpdate):
    """Unsaved edits to apply while promoting. Unset fields use the stored values."""


class PromotionResponse(BaseModel):
    """Schema for the promote endpoint response."""

    intake_item_id: UUID = Field(..., description="ID of the promoted intake item")
    asset_id: Optional[UUID] = Field(None, description="ID of the new asset (absent if already promoted)")
    already_promoted: bool = Field(..., description="True if the item was not unsorted")
    promoted_files: int = Field(0, description="Files copied into the assets bucket")
    deleted_intake_files: int = Field(0, description="Staged files removed")
    message: str = Field(..., description="Status message")
    finalize: bool = Field(True, description="The item is done; offer the return-to-queue action")
    queue_url: str = Field("/api/intake", description="Where the return-to-queue action leads")


class SignedUrlResponse(BaseModel):
    """Schema for a time-limited download URL."""

    url: str = Field(..., description="Signed download URL")
    expires_in: int = Field(..., description="Seconds until the URL expires")
