"""
Tour package forms - Bookable safari packages and their day-by-day route stages.
"""
from pydantic import BaseModel, Field, field_validator
from typing import ClassVar, Optional, Union

from .common import AdminForm, is_blank


class TourPackageForm(AdminForm):
    """Package create/edit form."""
    required_fields: ClassVar[tuple[str, ...]] = (
        "title", "description", "duration", "price", "group_size"
    )

    title: str = ""
    description: str = ""
    duration: str = Field("", description="e.g. '7 Days / 6 Nights'")
    price: str = ""
    price_per_person: str = Field("", alias="pricePerPerson")
    group_size: str = Field("", alias="groupSize")
    type: str = "All-inclusive"
    rating: float = Field(0, ge=0, le=5)
    highlights: list[str] = Field(default_factory=list)
    included: list[str] = Field(default_factory=list)
    is_active: bool = Field(True, alias="isActive")

    model_config = {"populate_by_name": True}

    @field_validator("price", "price_per_person", "group_size", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return ""
        return str(v)

    @field_validator("rating", mode="before")
    @classmethod
    def default_rating(cls, v):
        if v in (None, ""):
            return 0
        return v

    @field_validator("highlights", "included", mode="before")
    @classmethod
    def drop_blank_items(cls, v):
        if v is None:
            return []
        return [item.strip() for item in v if item and item.strip()]


class RouteStage(BaseModel):
    """One stop of a package itinerary."""
    id: Optional[Union[int, str]] = Field(None, description="Backend id once saved")
    stage: int = Field(..., ge=1, description="1-based stage number")
    name: str = ""
    description: str = ""
    duration: str = Field("", description="e.g. '2 nights'")
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    activities: list[str] = Field(default_factory=list)
    accommodation: Optional[str] = None
    meals: Optional[str] = None
    transportation: Optional[str] = None
    highlights: list[str] = Field(default_factory=list)
    tips: Optional[str] = None
    wildlife: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("activities", "highlights", "wildlife", "images", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    def get_missing_fields(self) -> list[str]:
        """Return required stage fields that are still blank."""
        return [
            name for name in ("name", "description", "duration")
            if is_blank(getattr(self, name))
        ]

    def is_complete(self) -> bool:
        return len(self.get_missing_fields()) == 0
