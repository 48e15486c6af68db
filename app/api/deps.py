"""
Shared API dependencies - Session lookup, form parsing and service error translation.
"""
from contextlib import contextmanager
from typing import Optional, Type, TypeVar
import json
import logging
import re

from fastapi import Header, HTTPException, Request, UploadFile
from pydantic import BaseModel, ValidationError

from ..models.common import UploadedFile
from ..models.destination import DestinationForm
from ..models.session import AdminSession, session_store
from ..services.errors import (
    AuthenticationRequired,
    BackendError,
    FormValidationError,
    SubmissionInProgress,
)

logger = logging.getLogger(__name__)

FormT = TypeVar("FormT", bound=BaseModel)

ATTRACTION_FILE_KEY = re.compile(r"^attraction_images_(\d+)$")


async def get_session(x_session_id: Optional[str] = Header(None)) -> AdminSession:
    """Resolve the console session from the X-Session-ID header."""
    if not x_session_id:
        raise HTTPException(status_code=401, detail="No authentication token found. Please login again.")
    session = session_store.get(x_session_id)
    if not session:
        raise HTTPException(status_code=401, detail="Session not found. Please login again.")
    return session


def parse_form(model: Type[FormT], raw: str) -> FormT:
    """Parse a JSON-encoded form sent alongside file parts."""
    try:
        return model.model_validate_json(raw or "{}")
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json()))


def parse_string_list(raw: Optional[str]) -> list[str]:
    """JSON array of strings from a form field; blank means empty."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=422, detail="Expected a JSON array of strings")
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise HTTPException(status_code=422, detail="Expected a JSON array of strings")
    return value


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    if file is None or not file.filename:
        return None
    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        data=await file.read()
    )


async def read_uploads(files: Optional[list[UploadFile]]) -> list[UploadedFile]:
    uploads = []
    for file in files or []:
        upload = await read_upload(file)
        if upload is not None:
            uploads.append(upload)
    return uploads


async def attach_attraction_uploads(request: Request, form: DestinationForm) -> DestinationForm:
    """Append attraction_images_<n> file parts to the n-th attraction of the form."""
    data = await request.form()
    for key in data.keys():
        match = ATTRACTION_FILE_KEY.match(key)
        if not match:
            continue
        index = int(match.group(1))
        if index >= len(form.attractions):
            raise HTTPException(status_code=422, detail=f"No attraction at index {index}")
        files = [item for item in data.getlist(key) if not isinstance(item, str)]
        form.attractions[index].images.extend(await read_uploads(files))
    return form


@contextmanager
def service_errors():
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except FormValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=e.message)
    except BackendError as e:
        status = e.status_code if e.status_code < 500 else 502
        if e.status_code == 504:
            status = 504
        if status >= 500:
            logger.error(f"Backend failure ({e.status_code}): {e.message}")
        raise HTTPException(status_code=status, detail=e.message)
    except SubmissionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
