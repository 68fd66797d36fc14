"""Asset schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.schemas.taxonomy import normalize_tags


class AssetFileResponse(BaseModel):
    """Schema for returning an asset file."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique identifier of the file")
    asset_id: UUID = Field(..., description="ID of the asset the file belongs to")
    bucket: str = Field(..., description="Storage bucket")
    object_path: str = Field(..., description="Path of the object inside the bucket")
    file_name: str = Field(..., description="Original file name")
    mime_type: Optional[str] = Field(None, description="MIME type")
    size_bytes: Optional[int] = Field(None, description="Size in bytes")


class AssetResponse(BaseModel):
    """Schema for returning asset information."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique identifier of the asset")
    title: str = Field(..., description="Display title")
    name: str = Field(..., description="Asset name, kept equal to the title")
    category: Optional[str] = None
    property: Optional[str] = None
    sub_property: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_by: UUID = Field(..., description="Operator who promoted the asset")
    created_at: datetime = Field(..., description="Timestamp when the asset was created")

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: object) -> object:
        """Treat a missing tag list as empty."""
        return [] if v is None else v


class AssetDetailResponse(AssetResponse):
    """Asset with its files."""

    files: list[AssetFileResponse] = Field(default_factory=list)


class AssetUpdate(BaseModel):
    """Schema for editing asset metadata. Unset fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=255, description="New title (also used as name)")
    category: Optional[str] = Field(None, max_length=255)
    property: Optional[str] = Field(None, max_length=255)
    sub_property: Optional[str] = Field(None, max_length=255)
    tags: Optional[list[str]] = Field(None, description="Tags, as a list or comma-separated string")
    notes: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tag_list(cls, v: object) -> object:
        """Split and trim tags."""
        return normalize_tags(v)
