"""
Inquiry models - Issues submitted through the public contact forms.
"""
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class InquiryStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class InquiryUpdate(BaseModel):
    """Fields an admin can change on an inquiry."""
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    message: str = Field(..., min_length=1)
    category: Optional[str] = None
    status: InquiryStatus = InquiryStatus.PENDING


def humanize(value: Optional[str]) -> str:
    """'in_progress' -> 'In Progress'."""
    if not value:
        return ""
    return " ".join(word.capitalize() for word in value.replace("-", "_").split("_") if word)
