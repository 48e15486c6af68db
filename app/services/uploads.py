"""
Upload handling - File validation, image URLs and multipart payload building.
"""
from typing import Iterable, Optional, Union
import json
import logging

from ..config import settings
from ..models.common import ImageRef, StoredImage, UploadedFile, image_path
from .errors import FormValidationError

logger = logging.getLogger(__name__)

IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
VIDEO_TYPES = {
    "video/mp4", "video/avi", "video/mov", "video/wmv", "video/webm", "video/mkv",
    "video/quicktime", "video/x-msvideo", "video/x-ms-wmv", "video/x-matroska",
}


def _megabytes(limit: int) -> int:
    return limit // (1024 * 1024)


def image_error(file: UploadedFile, max_bytes: Optional[int] = None) -> Optional[str]:
    """Return why a file is not an acceptable image, or None."""
    max_bytes = max_bytes or settings.max_image_bytes
    if not file.content_type.startswith("image/"):
        return f"{file.filename} is not an image file"
    if file.size > max_bytes:
        return f"{file.filename} is larger than {_megabytes(max_bytes)}MB"
    return None


def validate_image(file: UploadedFile, max_bytes: Optional[int] = None) -> UploadedFile:
    """Raise FormValidationError unless the file is an image within the size limit."""
    error = image_error(file, max_bytes)
    if error:
        raise FormValidationError([error])
    return file


def validate_images(files: Iterable[UploadedFile], max_bytes: Optional[int] = None) -> list[UploadedFile]:
    """Validate every file, reporting all failures together."""
    files = list(files)
    errors = [e for e in (image_error(f, max_bytes) for f in files) if e]
    if errors:
        raise FormValidationError(errors)
    return files


def filter_images(files: Iterable[UploadedFile], max_bytes: Optional[int] = None) -> list[UploadedFile]:
    """Keep only acceptable images, logging the rest."""
    kept = []
    for file in files:
        error = image_error(file, max_bytes)
        if error:
            logger.warning(f"Skipping upload: {error}")
            continue
        kept.append(file)
    return kept


def validate_gallery_media(file: UploadedFile) -> UploadedFile:
    """Gallery accepts common image and video types up to the media limit."""
    if file.content_type not in IMAGE_TYPES | VIDEO_TYPES:
        raise FormValidationError([
            "Please select a valid image (JPEG, PNG, GIF, WebP) or video "
            "(MP4, AVI, MOV, WMV, WebM, MKV) file"
        ])
    if file.size > settings.max_media_bytes:
        raise FormValidationError([
            f"File size must be less than {_megabytes(settings.max_media_bytes)}MB"
        ])
    return file


def build_image_url(path: Optional[StoredImage]) -> Optional[str]:
    """Turn a stored path into a URL the browser can load."""
    path = image_path(path)
    if not path:
        return None
    if path.startswith("blob:"):
        return None
    if path.startswith("http") or path.startswith("/"):
        return path
    return f"/{path}"


def normalize_image_ref(ref: Union[StoredImage, dict, None]) -> Optional[str]:
    """Stored reference as a plain path string."""
    if isinstance(ref, dict):
        ref = ImageRef(**ref)
    return image_path(ref)


FieldValue = Union[str, int, float, bool]


def _to_text(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class MultipartPayload:
    """
    Ordered multipart form body.
    Keys may repeat; list fields are sent either as repeated keys or JSON text.
    """

    def __init__(self):
        self.fields: list[tuple[str, str]] = []
        self.files: list[tuple[str, UploadedFile]] = []

    def add(self, key: str, value: Optional[FieldValue], skip_blank: bool = False) -> "MultipartPayload":
        """Append a text field. None is always skipped."""
        if value is None:
            return self
        text = _to_text(value)
        if skip_blank and not text.strip():
            return self
        self.fields.append((key, text))
        return self

    def add_json(self, key: str, value) -> "MultipartPayload":
        self.fields.append((key, json.dumps(value)))
        return self

    def add_list(self, key: str, values: Iterable[FieldValue]) -> "MultipartPayload":
        """Append each value under the same key."""
        for value in values:
            self.add(key, value)
        return self

    def add_file(self, key: str, file: UploadedFile) -> "MultipartPayload":
        self.files.append((key, file))
        return self

    def add_files(self, key: str, files: Iterable[UploadedFile]) -> "MultipartPayload":
        for file in files:
            self.add_file(key, file)
        return self

    def get(self, key: str) -> list[str]:
        """All text values sent under a key."""
        return [value for name, value in self.fields if name == key]

    def file_keys(self) -> list[str]:
        return [name for name, _ in self.files]

    def to_httpx(self) -> list[tuple]:
        """Parts for httpx's `files=` argument."""
        # Text fields go as filename-less parts so the body is always multipart
        parts: list[tuple] = [(name, (None, value)) for name, value in self.fields]
        parts.extend((name, file.as_part()) for name, file in self.files)
        return parts

    def __len__(self) -> int:
        return len(self.fields) + len(self.files)
