"""
Destination forms - Safari destinations with attractions, chip lists and package tree.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import ClassVar, Optional, Union
import re

from .common import AdminForm, ImageRef, UploadedFile


def slugify(title: str) -> str:
    """'Masai Mara & Beyond' -> 'masai-mara-beyond'."""
    return re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")


def parse_list(value: Union[str, list, None]) -> list[str]:
    """Normalize a list input: lists keep truthy items, strings split on newlines and commas."""
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item]
    parts = re.split(r"[\n,]", value)
    return [part.strip() for part in parts if part.strip()]


def add_chip(items: list[str], value: str) -> list[str]:
    """Add a trimmed chip unless it is blank or already present."""
    value = (value or "").strip()
    if not value or value in items:
        return list(items)
    return [*items, value]


def chip_list(value: Union[str, list, None]) -> list[str]:
    """Chips from raw input, added one by one."""
    chips: list[str] = []
    for item in parse_list(value):
        chips = add_chip(chips, str(item))
    return chips


class Attraction(BaseModel):
    """Named attraction with its own images."""
    name: str = ""
    description: str = ""
    images: list[Union[UploadedFile, ImageRef, str]] = Field(default_factory=list)


# Chip-list fields on the destination form
LIST_FIELDS = (
    "wildlife_types",
    "featured_species",
    "key_highlights",
    "category_tags",
    "best_visit_months",
)


class DestinationForm(AdminForm):
    """Destination create/edit form."""
    required_fields: ClassVar[tuple[str, ...]] = ("title", "description", "location")

    title: str = ""
    slug: str = ""
    description: str = ""
    location: str = ""
    duration_min: Optional[int] = Field(None, ge=0)
    duration_max: Optional[int] = Field(None, ge=0)
    duration_display: str = Field("", description="e.g. '3-5 days'")
    best_time: str = ""

    wildlife_types: list[str] = Field(default_factory=list)
    featured_species: list[str] = Field(default_factory=list)
    key_highlights: list[str] = Field(default_factory=list)
    category_tags: list[str] = Field(default_factory=list)
    best_visit_months: list[str] = Field(default_factory=list)
    attractions: list[Attraction] = Field(default_factory=list)

    is_active: bool = True
    sort_order: int = 0
    hero_image: Optional[str] = None
    gallery_images: list[str] = Field(
        default_factory=list,
        description="Stored gallery paths to keep"
    )

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def normalize_chips(cls, v):
        return chip_list(v)

    @field_validator("duration_min", "duration_max", mode="before")
    @classmethod
    def empty_duration(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def default_slug(self):
        if not self.slug.strip() and self.title:
            self.slug = slugify(self.title)
        return self
