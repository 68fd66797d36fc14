"""Taxonomy schemas."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from catalog.core.taxonomy import AddNew, Selected, TaxonomyChoice


class SelectedChoiceIn(BaseModel):
    """An existing value picked from the candidate list."""

    kind: Literal["selected"] = "selected"
    value: str = Field(..., description="The picked value")


class AddNewChoiceIn(BaseModel):
    """A value typed in through the 'add new' option."""

    kind: Literal["add_new"] = "add_new"
    text: str = Field(..., description="The new value")


# A bare string is treated as a selection
TaxonomyChoiceIn = Optional[Union[SelectedChoiceIn, AddNewChoiceIn, str]]


def to_choice(value: TaxonomyChoiceIn) -> TaxonomyChoice | None:
    """Convert a request value to the core choice type."""
    if value is None:
        return None
    if isinstance(value, AddNewChoiceIn):
        return AddNew(value.text)
    if isinstance(value, SelectedChoiceIn):
        return Selected(value.value)
    return Selected(value)


def normalize_tags(v: object) -> object:
    """Accept a list or a comma-separated string; trim items and drop empties."""
    if v is None:
        return None
    if isinstance(v, str):
        v = v.split(",")
    if isinstance(v, list):
        return [t.strip() for t in v if isinstance(t, str) and t.strip()]
    return v


class FacetsResponse(BaseModel):
    """Candidate values for the taxonomy pickers."""

    categories: list[str] = Field(default_factory=list, description="Distinct categories")
    properties: list[str] = Field(default_factory=list, description="Properties within the given category")
    sub_properties: list[str] = Field(
        default_factory=list, description="Sub-properties within the given category and property"
    )
    sample_size: int = Field(..., description="Number of asset rows the lists were derived from")
