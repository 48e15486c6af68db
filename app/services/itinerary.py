"""
Route stage editing - Local stage list handling and the route-stage endpoints.
"""
from typing import Optional, Union
import logging

from ..models.common import UploadedFile
from ..models.tour import RouteStage
from .api_client import BackendClient
from .errors import FormValidationError
from .uploads import MultipartPayload, build_image_url, validate_images

logger = logging.getLogger(__name__)

OPTIONAL_TEXT = ("accommodation", "meals", "transportation", "tips")


def next_stage_number(stages: list[RouteStage]) -> int:
    """One past the highest stage number, 1 for an empty itinerary."""
    return max([0, *(stage.stage for stage in stages)]) + 1


def validate_stage(stage: RouteStage) -> RouteStage:
    missing = stage.get_missing_fields()
    if missing:
        raise FormValidationError([f"{name} is required" for name in missing])
    return stage


def upsert_stage(
    stages: list[RouteStage],
    stage: RouteStage,
    index: Optional[int] = None
) -> list[RouteStage]:
    """Add a stage, or replace the one at index, keeping the list sorted by stage number."""
    validate_stage(stage)
    updated = list(stages)
    if index is None:
        updated.append(stage)
    else:
        if index < 0 or index >= len(updated):
            raise IndexError(f"Stage {index} does not exist")
        updated[index] = stage
    return sorted(updated, key=lambda s: s.stage)


def remove_stage(stages: list[RouteStage], index: int) -> list[RouteStage]:
    if index < 0 or index >= len(stages):
        raise IndexError(f"Stage {index} does not exist")
    return [stage for i, stage in enumerate(stages) if i != index]


def parse_coordinate(value: Optional[str]) -> Optional[float]:
    """Float coordinate, or None when empty or unparsable."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def stage_images(stage: RouteStage) -> list[str]:
    """Stage image URLs, dropping blanks and browser-local blob URLs."""
    return [url for url in (build_image_url(img) for img in stage.images) if url]


def bulk_stage_body(stage: RouteStage) -> dict:
    """A stage as sent in a bulk create: every key present, empty optionals as null."""
    body = {
        "stage": stage.stage,
        "name": stage.name,
        "description": stage.description,
        "duration": stage.duration,
        "longitude": parse_coordinate(stage.longitude),
        "latitude": parse_coordinate(stage.latitude),
        "activities": stage.activities,
        "highlights": stage.highlights,
        "wildlife": stage.wildlife or None,
        "images": stage.images or [],
    }
    for key in OPTIONAL_TEXT:
        body[key] = getattr(stage, key) or None
    return body


def single_stage_body(package_id: Union[int, str], stage: RouteStage) -> dict:
    """A stage as sent on its own: trimmed, optional keys only when set."""
    body = {
        "packageId": package_id,
        "stage": int(stage.stage),
        "name": stage.name.strip(),
        "description": stage.description.strip(),
        "duration": stage.duration.strip(),
        "activities": stage.activities,
        "highlights": stage.highlights,
        "images": stage.images,
    }
    longitude = parse_coordinate(stage.longitude)
    latitude = parse_coordinate(stage.latitude)
    if longitude is not None:
        body["longitude"] = longitude
    if latitude is not None:
        body["latitude"] = latitude
    for key in OPTIONAL_TEXT:
        value = getattr(stage, key)
        if value and value.strip():
            body[key] = value.strip()
    if stage.wildlife:
        body["wildlife"] = stage.wildlife
    return body


def bulk_success_message(count: int) -> str:
    plural = "s" if count > 1 else ""
    return f"Route stages created successfully! {count} stage{plural} added to the package."


class RouteStageService:
    """Route stage endpoints for one backend."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def package_stages(self, token: str, package_id: Union[int, str]) -> list[RouteStage]:
        """Stages of a package, sorted by stage number."""
        body = await self.client.get(f"/api/packages/{package_id}", token)
        raw = (body.get("data") or {}).get("routeStages") or []
        return sorted((RouteStage(**stage) for stage in raw), key=lambda s: s.stage)

    async def bulk_create(
        self, token: str, package_id: Union[int, str], stages: list[RouteStage]
    ) -> tuple[list[dict], str]:
        """Create every stage of a new package in one request."""
        if not stages:
            raise FormValidationError(["Add at least one route stage"])
        for stage in stages:
            validate_stage(stage)
        ordered = sorted(stages, key=lambda s: s.stage)
        body = await self.client.post(
            "/api/route-stages/bulk",
            token,
            json={"packageId": package_id, "stages": [bulk_stage_body(s) for s in ordered]}
        )
        created = body.get("data") or []
        logger.info(f"Created {len(created)} route stages for package {package_id}")
        return created, bulk_success_message(len(created))

    async def save_stage(self, token: str, package_id: Union[int, str], stage: RouteStage) -> dict:
        """Create or update a single stage, then reload the package's stage list."""
        validate_stage(stage)
        body = single_stage_body(package_id, stage)
        if stage.id is not None:
            result = await self.client.put(f"/api/route-stages/{stage.id}", token, json=body)
        else:
            result = await self.client.post("/api/route-stages", token, json=body)
        return {
            "stage": result.get("data") or {},
            "stages": await self.package_stages(token, package_id),
        }

    async def delete_stage(self, token: str, stage_id: Union[int, str]) -> dict:
        return await self.client.delete(f"/api/route-stages/{stage_id}", token)

    async def upload_images(self, token: str, files: list[UploadedFile]) -> list[str]:
        """Upload stage photos and return their permanent URLs."""
        validate_images(files)
        payload = MultipartPayload().add_files("stage_images", files)
        body = await self.client.post("/api/uploads/stage-images", token, payload=payload)
        return (body.get("data") or {}).get("urls") or []
