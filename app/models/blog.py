"""
Blog, member and gallery forms.
"""
from pydantic import BaseModel, Field, field_validator
from typing import ClassVar, Optional
from enum import Enum

from .common import AdminForm


class BlogForm(AdminForm):
    """Blog article with author card and call to action."""
    required_fields: ClassVar[tuple[str, ...]] = ("slug", "title", "content")

    slug: str = ""
    title: str = ""
    excerpt: str = ""
    content: str = ""
    category: str = ""
    tags: str = Field("", description="Comma separated tags")
    featured: bool = False
    priority: int = 0
    author_name: str = Field("", alias="authorName")
    read_time: str = Field("", alias="readTime")
    publish_date: str = Field("", alias="publishDate")
    status: str = "draft"
    cta_text: str = Field("", alias="ctaText")
    cta_url: str = Field("", alias="ctaUrl")

    model_config = {"populate_by_name": True}

    def tag_list(self) -> list[str]:
        return split_tags(self.tags)


class MemberStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


MEMBER_STATUS_TABS = ["all"] + [status.value for status in MemberStatus]


class MemberStatusUpdate(BaseModel):
    status: MemberStatus


class GalleryCategory(str, Enum):
    WILDLIFE = "wildlife"
    LANDSCAPES = "landscapes"
    SAFARI = "safari"
    CULTURE = "culture"
    ACCOMMODATION = "accommodation"
    ACTIVITIES = "activities"
    GENERAL = "general"


class GalleryForm(AdminForm):
    """Gallery media item metadata."""
    required_fields: ClassVar[tuple[str, ...]] = ("title",)

    title: str = ""
    description: str = ""
    category: GalleryCategory = GalleryCategory.GENERAL
    tags: str = ""
    location: str = ""
    is_active: bool = Field(True, alias="isActive")
    is_featured: bool = Field(False, alias="isFeatured")
    priority: int = 0
    alt_text: str = Field("", alias="altText")
    package_id: Optional[str] = Field(None, alias="packageId")
    destination_id: Optional[str] = Field(None, alias="destinationId")

    model_config = {"populate_by_name": True}

    @field_validator("package_id", "destination_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if v in (None, ""):
            return None
        return str(v)

    def tag_list(self) -> list[str]:
        return split_tags(self.tags)


def split_tags(raw: str) -> list[str]:
    """Split a comma separated tag string, dropping blanks."""
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]
