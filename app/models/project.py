"""
Project forms - Foundation projects with location, schedule and progress.
"""
from pydantic import Field, field_validator
from typing import ClassVar
from enum import Enum

from .common import AdminForm


class ProjectCategory(str, Enum):
    """Project categories."""
    VOLUNTEER = "volunteer"
    EDUCATION = "education"
    MENTAL_HEALTH = "mental_health"
    COMMUNITY = "community"
    DONATION = "donation"
    PARTNERSHIP = "partnership"


class ProjectStatus(str, Enum):
    """Project lifecycle status."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


# Status tabs on the project list, in display order
PROJECT_STATUS_TABS = ["all"] + [status.value for status in ProjectStatus]


class ProjectForm(AdminForm):
    """New project form."""
    required_fields: ClassVar[tuple[str, ...]] = ("name", "description", "category", "county")

    name: str = ""
    description: str = ""
    category: ProjectCategory = ProjectCategory.VOLUNTEER
    county: str = ""
    subcounty: str = ""
    target_individual: str = Field("", description="Who the project serves")
    start_date: str = ""
    end_date: str = ""
    latitude: str = ""
    longitude: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, v):
        """Keep only the YYYY-MM-DD part of ISO timestamps."""
        if v is None:
            return ""
        return str(v).split("T")[0]

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        if v is None:
            return ""
        return str(v)


class ProjectEditForm(ProjectForm):
    """Edit form for an existing project, including progress tracking."""
    required_fields: ClassVar[tuple[str, ...]] = ("name", "county", "start_date")

    status: ProjectStatus = ProjectStatus.PENDING
    progress: int = Field(0, ge=0, le=100, description="Completion percentage")
    assigned_to: str = ""
    progress_description: str = Field("", description="Note for this progress update")
    existing_images: list[str] = Field(
        default_factory=list,
        description="Stored image paths to keep"
    )

    @field_validator("assigned_to", mode="before")
    @classmethod
    def coerce_assignee(cls, v):
        if v is None:
            return ""
        return str(v)

    @field_validator("progress", mode="before")
    @classmethod
    def coerce_progress(cls, v):
        if v in (None, ""):
            return 0
        return v
