"""
Tour services - Destinations, tour packages and lodges.
"""
from typing import Optional, Union
import json
import logging

from ..models.common import ImageRef, UploadedFile
from ..models.destination import DestinationForm, LIST_FIELDS, slugify
from ..models.lodge import LodgeForm
from ..models.package_tree import PackageCategory
from ..models.tour import TourPackageForm
from .api_client import BackendClient
from .content import require_complete
from .errors import FormValidationError
from .package_tree import serialize_tree, tree_from_backend
from .resources import ResourceService
from .uploads import MultipartPayload, filter_images, normalize_image_ref, validate_image

logger = logging.getLogger(__name__)

ItemId = Union[int, str]


# Destinations

def _attractions_json(form: DestinationForm) -> list[dict]:
    """Attractions with stored image paths only; new files travel as separate parts."""
    attractions = []
    for index, attraction in enumerate(form.attractions):
        attractions.append({
            "name": attraction.name,
            "description": attraction.description,
            "images": [
                normalize_image_ref(img) for img in attraction.images
                if isinstance(img, (str, ImageRef))
            ],
            "index": index,
        })
    return attractions


def _attraction_files(form: DestinationForm, payload: MultipartPayload):
    for index, attraction in enumerate(form.attractions):
        new_files = [img for img in attraction.images if isinstance(img, UploadedFile)]
        payload.add_files(f"attraction_images_{index}", filter_images(new_files))


def _add_travel_fields(form: DestinationForm, payload: MultipartPayload):
    payload.add("duration_min", form.duration_min)
    payload.add("duration_max", form.duration_max)
    payload.add("duration_display", form.duration_display, skip_blank=True)
    payload.add("best_time", form.best_time, skip_blank=True)


def build_destination_payload(
    form: DestinationForm,
    gallery_files: list[UploadedFile],
    tree: Optional[list[PackageCategory]] = None
) -> MultipartPayload:
    """New destination: lists as repeated keys, first gallery file becomes the hero image."""
    require_complete(form)
    gallery_files = filter_images(gallery_files)

    payload = MultipartPayload()
    payload.add("title", form.title)
    payload.add("slug", form.slug or slugify(form.title))
    payload.add("description", form.description)
    payload.add("location", form.location)
    for key in LIST_FIELDS:
        payload.add_list(key, getattr(form, key))
    payload.add_json("attractions", _attractions_json(form))
    payload.add("is_active", form.is_active)
    payload.add("sort_order", form.sort_order)
    _add_travel_fields(form, payload)

    if gallery_files:
        payload.add_file("hero_image", gallery_files[0])
        payload.add_files("gallery_images", gallery_files[1:])
    _attraction_files(form, payload)
    if tree is not None:
        serialize_tree(tree, payload)
    return payload


def build_destination_update_payload(
    form: DestinationForm,
    gallery_files: list[UploadedFile],
    tree: Optional[list[PackageCategory]] = None
) -> MultipartPayload:
    """Destination edit: lists JSON-encoded, stored gallery kept alongside new files."""
    require_complete(form)

    payload = MultipartPayload()
    payload.add("title", form.title)
    payload.add("slug", form.slug or slugify(form.title))
    payload.add("description", form.description)
    payload.add("location", form.location)
    payload.add("hero_image", form.hero_image or "")
    _add_travel_fields(form, payload)
    for key in LIST_FIELDS:
        payload.add_json(key, getattr(form, key))
    payload.add_json("attractions", _attractions_json(form))
    payload.add("is_active", form.is_active)
    payload.add("sort_order", form.sort_order)
    payload.add_json("gallery_images", form.gallery_images)
    payload.add_files("gallery_images", filter_images(gallery_files))
    _attraction_files(form, payload)
    if tree is not None:
        serialize_tree(tree, payload)
    return payload


def destination_form_from_backend(data: dict) -> DestinationForm:
    """Prefill an edit form from a stored destination."""
    fields = {key: data.get(key) for key in DestinationForm.model_fields if data.get(key) is not None}
    for key in LIST_FIELDS:
        fields[key] = _decode_list(data.get(key))
    fields["attractions"] = _decode_list(data.get("attractions"))
    fields["gallery_images"] = [
        path for path in (normalize_image_ref(ref) for ref in _decode_list(data.get("gallery_images")))
        if path
    ]
    fields["hero_image"] = normalize_image_ref(data.get("hero_image"))
    return DestinationForm(**fields)


def _decode_list(value) -> list:
    if not value:
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        return decoded if isinstance(decoded, list) else [decoded]
    return list(value)


class DestinationService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "destinations")

    async def create_destination(
        self,
        token: str,
        form: DestinationForm,
        gallery_files: list[UploadedFile],
        tree: Optional[list[PackageCategory]] = None
    ) -> dict:
        return await self.create(token, build_destination_payload(form, gallery_files, tree))

    async def update_destination(
        self,
        token: str,
        destination_id: ItemId,
        form: DestinationForm,
        gallery_files: list[UploadedFile],
        tree: Optional[list[PackageCategory]] = None
    ) -> dict:
        payload = build_destination_update_payload(form, gallery_files, tree)
        return await self.update(token, destination_id, payload)

    async def load_tree(self, token: str, destination_id: ItemId) -> list[PackageCategory]:
        """Package tree stored on a destination."""
        data = await self.get(token, destination_id)
        return tree_from_backend(data.get("packages"))


# Tour packages

def build_tour_package_payload(form: TourPackageForm, image: Optional[UploadedFile]) -> MultipartPayload:
    require_complete(form)
    payload = MultipartPayload()
    payload.add("title", form.title)
    payload.add("description", form.description)
    payload.add("duration", form.duration)
    payload.add("price", form.price)
    payload.add("pricePerPerson", form.price_per_person)
    payload.add("groupSize", form.group_size)
    payload.add("type", form.type)
    payload.add("rating", form.rating or 0)
    payload.add("isActive", form.is_active)
    if form.highlights:
        payload.add_json("highlights", form.highlights)
    if form.included:
        payload.add_json("included", form.included)
    if image is not None:
        payload.add_file("image", validate_image(image))
    return payload


class TourPackageService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "packages")

    async def create_package(self, token: str, form: TourPackageForm, image: Optional[UploadedFile]) -> dict:
        """Create a package; the returned id unlocks route stage editing."""
        body = await self.create(token, build_tour_package_payload(form, image))
        data = body.get("data") or {}
        if data.get("id") is None:
            raise FormValidationError(["Package was created without an id"])
        logger.info(f"Created package {data['id']}")
        return data

    async def update_package(
        self, token: str, package_id: ItemId, form: TourPackageForm, image: Optional[UploadedFile]
    ) -> dict:
        body = await self.update(token, package_id, build_tour_package_payload(form, image))
        return body.get("data") or {}


# Lodges

LODGE_LIST_FIELDS = {
    "campType": "camp_type",
    "openMonths": "open_months",
    "whyYouLoveIt": "why_you_love_it",
    "highlights": "highlights",
    "dayAtCamp": "day_at_camp",
    "essentials": "essentials",
    "amenities": "amenities",
}


def build_lodge_payload(
    form: LodgeForm,
    gallery_files: list[UploadedFile],
    existing_images: Optional[list[str]] = None
) -> MultipartPayload:
    """Lodge body: lists as repeated keys, coordinates only when set, photos under lodge_gallery."""
    require_complete(form)
    payload = MultipartPayload()
    payload.add("name", form.name)
    payload.add("location", form.location)
    payload.add("destination", form.destination)
    payload.add("description", form.description)
    if existing_images is not None:
        payload.add_json("images", existing_images)
    for key, attr in LODGE_LIST_FIELDS.items():
        payload.add_list(key, getattr(form, attr))
    payload.add("latitude", form.latitude, skip_blank=True)
    payload.add("longitude", form.longitude, skip_blank=True)
    payload.add_files("lodge_gallery", filter_images(gallery_files))
    return payload


class LodgeService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "lodges")
