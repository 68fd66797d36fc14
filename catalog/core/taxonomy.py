"""Taxonomy field resolution and facet derivation.

Category, property and sub-property are picked either from values already
present in the catalog or entered as a new value. Candidate lists are
derived at read time from a bounded sample of asset rows, narrowing
property by category and sub-property by category and property.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping, Union, get_args

from sqlalchemy.orm import Session

from catalog.config import settings
from catalog.models.asset import Asset

logger = logging.getLogger(__name__)

TaxonomyField = Literal["category", "property", "sub_property"]
TAXONOMY_FIELDS: tuple[str, ...] = get_args(TaxonomyField)


@dataclass(frozen=True)
class Selected:
    """An existing value picked from the candidate list."""

    value: str


@dataclass(frozen=True)
class AddNew:
    """A new value typed by the operator."""

    text: str


TaxonomyChoice = Union[Selected, AddNew]


def effective_value(choice: TaxonomyChoice | None) -> str | None:
    """Resolve a choice to its trimmed value, or None when empty."""
    if choice is None:
        return None
    raw = choice.text if isinstance(choice, AddNew) else choice.value
    value = (raw or "").strip()
    return value or None


@dataclass
class TaxonomySelection:
    """Category / property / sub-property choices with parent-first narrowing.

    Changing a parent field invalidates its children: a new category clears
    property and sub-property, a new property clears sub-property. Children
    never affect their parents.
    """

    category: TaxonomyChoice | None = None
    property: TaxonomyChoice | None = None
    sub_property: TaxonomyChoice | None = None

    @classmethod
    def from_values(
        cls,
        category: str | None,
        property: str | None,
        sub_property: str | None,
    ) -> "TaxonomySelection":
        """Start from stored values, e.g. an intake item's current taxonomy."""

        def _wrap(value: str | None) -> TaxonomyChoice | None:
            return Selected(value) if value and value.strip() else None

        return cls(category=_wrap(category), property=_wrap(property), sub_property=_wrap(sub_property))

    def effective_category(self) -> str | None:
        return effective_value(self.category)

    def effective_property(self) -> str | None:
        return effective_value(self.property)

    def effective_sub_property(self) -> str | None:
        return effective_value(self.sub_property)

    def select_category(self, choice: TaxonomyChoice | None) -> None:
        if effective_value(choice) != self.effective_category():
            self.property = None
            self.sub_property = None
        self.category = choice

    def select_property(self, choice: TaxonomyChoice | None) -> None:
        if effective_value(choice) != self.effective_property():
            self.sub_property = None
        self.property = choice

    def select_sub_property(self, choice: TaxonomyChoice | None) -> None:
        self.sub_property = choice

    def apply(self, choices: Mapping[str, TaxonomyChoice | None]) -> None:
        """Apply supplied choices parent-first. Fields absent from choices are left alone."""
        if "category" in choices:
            self.select_category(choices["category"])
        if "property" in choices:
            self.select_property(choices["property"])
        if "sub_property" in choices:
            self.select_sub_property(choices["sub_property"])

    def effective(self) -> dict[str, str | None]:
        return {
            "category": self.effective_category(),
            "property": self.effective_property(),
            "sub_property": self.effective_sub_property(),
        }


@dataclass(frozen=True)
class FacetRow:
    """The taxonomy columns of one catalog row."""

    category: str | None
    property: str | None
    sub_property: str | None


@dataclass
class FacetOptions:
    """Candidate values for each taxonomy field."""

    categories: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    sub_properties: list[str] = field(default_factory=list)
    sample_size: int = 0


def _clean(value: str | None) -> str:
    return (value or "").strip()


def unique_sorted(values: Iterable[str | None]) -> list[str]:
    """Distinct trimmed non-empty values, sorted case-insensitively."""
    distinct = {_clean(v) for v in values} - {""}
    return sorted(distinct, key=lambda v: (v.casefold(), v))


def load_facet_rows(db: Session, limit: int | None = None) -> list[FacetRow]:
    """Read the taxonomy columns of up to limit asset rows.

    This is a sample, not a distinct query: values outside the sample are
    invisible until the catalog shrinks or the limit grows.
    """
    limit = limit or settings.facet_sample_limit
    rows = db.query(Asset.category, Asset.property, Asset.sub_property).limit(limit).all()
    return [FacetRow(category=r[0], property=r[1], sub_property=r[2]) for r in rows]


def field_values(rows: Iterable[FacetRow], field_name: TaxonomyField) -> list[str]:
    """Distinct values of one taxonomy field across rows, without narrowing."""
    if field_name not in TAXONOMY_FIELDS:
        raise ValueError(f"Unknown taxonomy field: {field_name}")
    return unique_sorted(getattr(row, field_name) for row in rows)


def derive_facets(
    rows: list[FacetRow],
    category: str | None = None,
    property: str | None = None,
) -> FacetOptions:
    """Derive candidate lists, narrowed by the effective parent values.

    Args:
        rows: Sampled catalog rows
        category: Effective category, restricts properties and sub-properties
        property: Effective property, further restricts sub-properties

    Returns:
        FacetOptions: Sorted candidate values per field
    """
    category = _clean(category)
    property = _clean(property)

    in_category = [r for r in rows if _clean(r.category) == category] if category else rows
    in_property = [r for r in in_category if _clean(r.property) == property] if property else in_category

    return FacetOptions(
        categories=unique_sorted(r.category for r in rows),
        properties=unique_sorted(r.property for r in in_category),
        sub_properties=unique_sorted(r.sub_property for r in in_property),
        sample_size=len(rows),
    )


def facets_for_selection(rows: list[FacetRow], selection: TaxonomySelection) -> FacetOptions:
    """Candidate lists for the current state of a selection."""
    return derive_facets(rows, category=selection.effective_category(), property=selection.effective_property())
