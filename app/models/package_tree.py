"""
Package tree models - Destination categories, safari packages and pricing tiers.
"""
from pydantic import BaseModel, Field
from typing import Union

from .common import ImageRef, UploadedFile


# Predefined category names offered per country
CATEGORY_PRESETS: dict[str, list[str]] = {
    "Uganda": [
        "CLASSIC UGANDA SAFARI TOURS",
        "PRIMATE SAFARIS",
        "ADVENTURE & NATURE EXPERIENCES",
        "COMBINED SAFARI & PRIMATE HOLIDAYS",
        "SPECIAL INTEREST & SLOW TRAVEL",
    ],
    "Kenya": [
        "SAFARI TOURS",
        "CLIMB MOUNT KENYA PACKAGES",
        "BEACH EXTENSION PACKAGES",
        "COMBINED SAFARI & BEACH HOLIDAYS",
        "SPECIAL INTEREST SAFARI",
    ],
    "Tanzania": [
        "NORTHERN CIRCUIT SAFARI TOURS",
        "SOUTHERN & WESTERN CIRCUIT SAFARIS",
        "MOUNT KILIMANJARO CLIMBS",
        "ZANZIBAR BEACH EXTENSIONS",
        "COMBINED SAFARI & BEACH HOLIDAYS",
    ],
}

# Flat list for the category picker, duplicates removed in first-seen order
PACKAGE_CATEGORIES: list[str] = list(dict.fromkeys(
    name for names in CATEGORY_PRESETS.values() for name in names
))


GalleryItem = Union[UploadedFile, ImageRef, str]


class PricingTier(BaseModel):
    """Price band of a package, e.g. 'Mid-range' / '$2,400 - $3,100'."""
    tier: str = ""
    price_range: str = ""


class SafariPackage(BaseModel):
    """A numbered package inside a destination category."""
    number: int = Field(..., ge=1, description="1-based position in the category")
    title: str = ""
    short_description: str = ""
    highlights: list[str] = Field(default_factory=list)
    pricing_tiers: list[PricingTier] = Field(default_factory=list)
    gallery: list[GalleryItem] = Field(
        default_factory=list,
        description="Stored image references and files waiting to be uploaded"
    )

    def stored_gallery(self) -> list[str]:
        """Gallery references already saved on the backend."""
        paths = []
        for item in self.gallery:
            if isinstance(item, ImageRef):
                paths.append(item.path)
            elif isinstance(item, str):
                paths.append(item)
        return paths

    def pending_uploads(self) -> list[UploadedFile]:
        """Gallery files not yet uploaded."""
        return [item for item in self.gallery if isinstance(item, UploadedFile)]


class PackageCategory(BaseModel):
    """A named, ordered group of packages on a destination."""
    category_name: str = ""
    category_order: int = Field(..., ge=1)
    packages: list[SafariPackage] = Field(default_factory=list)
