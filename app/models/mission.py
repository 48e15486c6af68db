"""
Mission category forms.
"""
from pydantic import Field
from typing import ClassVar
from enum import Enum

from .common import AdminForm


class MissionFocus(str, Enum):
    """Focus area of a mission category."""
    EDUCATIONAL_SUPPORT = "educational_support"
    MENTAL_HEALTH_AWARENESS = "mental_health_awareness"
    POVERTY_ALLEVIATION = "poverty_alleviation"
    COMMUNITY_EMPOWERMENT = "community_empowerment"
    HEALTHCARE_ACCESS = "healthcare_access"
    YOUTH_DEVELOPMENT = "youth_development"


class MissionCategoryForm(AdminForm):
    required_fields: ClassVar[tuple[str, ...]] = ("title", "description")

    title: str = ""
    description: str = ""
    category: MissionFocus = MissionFocus.EDUCATIONAL_SUPPORT
    impact: list[str] = Field(default_factory=list, description="Impact statements")

    def clean_impact(self) -> list[str]:
        """Impact statements with blanks dropped and whitespace trimmed."""
        return [item.strip() for item in self.impact if item and item.strip()]
