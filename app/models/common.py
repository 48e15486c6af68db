"""
Shared models - Uploaded files, image references, list results and the form base.
"""
from pydantic import BaseModel, Field
from typing import Any, ClassVar, Optional, Union


class UploadedFile(BaseModel):
    """A file received from the admin browser, held in memory until submitted."""
    filename: str = Field(..., description="Original file name")
    content_type: str = Field(
        default="application/octet-stream",
        description="MIME type reported by the browser"
    )
    data: bytes = Field(default=b"", repr=False, description="Raw file content")

    @property
    def size(self) -> int:
        return len(self.data)

    def as_part(self) -> tuple[str, bytes, str]:
        """Return the (filename, content, content_type) tuple httpx expects."""
        return (self.filename, self.data, self.content_type)


class ImageRef(BaseModel):
    """Stored image reference as some endpoints return it."""
    path: str


# Stored images come back either as plain paths or as {path} objects
StoredImage = Union[str, ImageRef]


class ListResult(BaseModel):
    """One page of a paginated backend list."""
    items: list[dict] = Field(default_factory=list)
    total: int = Field(default=0, description="Total items across all pages")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)


def is_blank(value: Any) -> bool:
    """True for None, empty or whitespace-only strings and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class AdminForm(BaseModel):
    """
    Base for console forms.
    Subclasses list the fields that must be non-blank before submission.
    """
    required_fields: ClassVar[tuple[str, ...]] = ()

    def get_missing_fields(self) -> list[str]:
        """Return required field names that are still blank."""
        return [name for name in self.required_fields if is_blank(getattr(self, name))]

    def is_complete(self) -> bool:
        """Check if all required fields are filled."""
        return len(self.get_missing_fields()) == 0


def image_path(ref: Optional[StoredImage]) -> Optional[str]:
    """Extract the stored path from a string or {path} reference."""
    if ref is None:
        return None
    if isinstance(ref, ImageRef):
        return ref.path
    if isinstance(ref, dict):
        return ref.get("path")
    return ref
