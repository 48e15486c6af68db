"""
Lodge forms - Camps and lodges attached to destinations.
"""
from pydantic import Field, field_validator
from typing import ClassVar

from .common import AdminForm


MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class LodgeForm(AdminForm):
    required_fields: ClassVar[tuple[str, ...]] = ("name", "location", "destination", "description")

    name: str = ""
    location: str = ""
    destination: str = ""
    description: str = ""
    camp_type: list[str] = Field(default_factory=list, alias="campType")
    open_months: list[str] = Field(default_factory=list, alias="openMonths")
    latitude: str = ""
    longitude: str = ""
    why_you_love_it: list[str] = Field(default_factory=list, alias="whyYouLoveIt")
    highlights: list[str] = Field(default_factory=list)
    day_at_camp: list[str] = Field(default_factory=list, alias="dayAtCamp")
    essentials: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        if v is None:
            return ""
        return str(v)

    @field_validator("open_months", mode="before")
    @classmethod
    def known_unique_months(cls, v):
        """Months in the order given, each once; unknown names are rejected."""
        months = list(dict.fromkeys(v or []))
        unknown = [month for month in months if month not in MONTHS]
        if unknown:
            raise ValueError(f"Unknown month: {', '.join(unknown)}")
        return months
