"""
Post forms - News articles and events.
"""
from pydantic import model_validator
from typing import ClassVar, Optional
from enum import Enum

from .common import AdminForm, is_blank


class PostType(str, Enum):
    NEWS = "news"
    EVENT = "event"


# Statuses offered per post type; the first is the default
POST_STATUSES = {
    PostType.NEWS: ("draft", "published", "archived"),
    PostType.EVENT: ("upcoming", "ongoing", "completed", "cancelled"),
}


class PostForm(AdminForm):
    """News or event post."""
    required_fields: ClassVar[tuple[str, ...]] = ("title", "content")

    type: PostType = PostType.NEWS
    title: str = ""
    content: str = ""
    status: Optional[str] = None
    start_date: str = ""
    end_date: str = ""
    location: str = ""

    @model_validator(mode="after")
    def status_for_type(self):
        """A missing status, or one left over from the other type, resets to the type's default."""
        if self.status not in POST_STATUSES[self.type]:
            self.status = POST_STATUSES[self.type][0]
        return self

    def get_missing_fields(self) -> list[str]:
        missing = super().get_missing_fields()
        if self.type == PostType.EVENT and is_blank(self.start_date):
            missing.append("start_date")
        return missing
