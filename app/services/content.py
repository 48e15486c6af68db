"""
Content services - Projects, posts, mission categories, inquiries, members, blogs and gallery.
Each service turns a validated form into the body its backend endpoint expects.
"""
from typing import Optional, Union
import logging

from ..models.blog import BlogForm, GalleryForm, MemberStatus, MEMBER_STATUS_TABS
from ..models.common import UploadedFile
from ..models.inquiry import InquiryUpdate, humanize
from ..models.mission import MissionCategoryForm
from ..models.post import PostForm, PostType
from ..models.project import ProjectEditForm, ProjectForm, PROJECT_STATUS_TABS
from .api_client import BackendClient
from .errors import FormValidationError
from .resources import ResourceService
from .uploads import MultipartPayload, validate_gallery_media, validate_images

logger = logging.getLogger(__name__)

ItemId = Union[int, str]


def require_complete(form) -> None:
    """Raise FormValidationError naming every missing required field."""
    missing = form.get_missing_fields()
    if missing:
        raise FormValidationError([f"{name} is required" for name in missing])


# Projects

PROJECT_FIELDS = (
    "name", "description", "category", "county", "subcounty", "target_individual",
    "start_date", "end_date", "latitude", "longitude",
)
PROJECT_EDIT_FIELDS = PROJECT_FIELDS + ("status", "progress", "assigned_to")


def build_project_payload(form: ProjectForm, images: list[UploadedFile]) -> MultipartPayload:
    """New project body: only non-empty fields, new images under update_images."""
    require_complete(form)
    validate_images(images)
    payload = MultipartPayload()
    for key in PROJECT_FIELDS:
        payload.add(key, _plain(getattr(form, key)), skip_blank=True)
    payload.add_files("update_images", images)
    return payload


def build_project_update_payload(form: ProjectEditForm, images: list[UploadedFile]) -> MultipartPayload:
    """Project edit body with progress note and the stored images to keep."""
    require_complete(form)
    validate_images(images)
    payload = MultipartPayload()
    for key in PROJECT_EDIT_FIELDS:
        payload.add(key, _plain(getattr(form, key)), skip_blank=True)
    payload.add("progress_description", form.progress_description.strip(), skip_blank=True)
    payload.add_list("existing_images", form.existing_images)
    payload.add_files("update_images", images)
    return payload


class ProjectService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "projects")

    async def tab_counts(self, token: str) -> dict[str, int]:
        return await self.status_counts(token, PROJECT_STATUS_TABS)

    async def create_project(self, token: str, form: ProjectForm, images: list[UploadedFile]) -> dict:
        return await self.create(token, build_project_payload(form, images))

    async def update_project(
        self, token: str, project_id: ItemId, form: ProjectEditForm, images: list[UploadedFile]
    ) -> dict:
        return await self.update(token, project_id, build_project_update_payload(form, images))

    async def delete_document(self, token: str, document_id: ItemId) -> dict:
        """Remove a document attached to a project."""
        return await self.client.delete(f"/api/documents/{document_id}", token)

    async def admin_users(self, token: str) -> list[dict]:
        """Admins a project can be assigned to."""
        body = await self.client.get("/api/admin-users", token)
        return body.get("data") or []


# Posts

def build_post_payload(
    form: PostForm,
    images: list[UploadedFile],
    banner: Optional[UploadedFile] = None,
    existing_images: Optional[list[str]] = None,
    existing_banner: Optional[str] = None,
    include_type: bool = True
) -> MultipartPayload:
    """News posts carry post_images; events carry a post_banner plus dates and location."""
    require_complete(form)
    payload = MultipartPayload()
    if include_type:
        payload.add("type", form.type.value)
    payload.add("title", form.title)
    payload.add("content", form.content)
    payload.add("status", form.status)

    if form.type == PostType.NEWS:
        payload.add_list("existing_images", existing_images or [])
        payload.add_files("post_images", validate_images(images))
    else:
        if banner is not None:
            payload.add_file("post_banner", validate_images([banner])[0])
        elif existing_banner:
            payload.add("banner", existing_banner)
        payload.add("start_date", form.start_date, skip_blank=True)
        payload.add("end_date", form.end_date, skip_blank=True)
        payload.add("location", form.location, skip_blank=True)
    return payload


class PostService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "posts")

    async def list_posts(
        self,
        token: str,
        page: int = 1,
        limit: int = 10,
        post_type: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None
    ):
        return await self.list_page(token, page, limit, {"type": post_type, "status": status, "search": search})


# Mission categories

def build_mission_payload(
    form: MissionCategoryForm,
    images: list[UploadedFile],
    existing_images: Optional[list[str]] = None
) -> MultipartPayload:
    require_complete(form)
    validate_images(images)
    payload = MultipartPayload()
    payload.add("title", form.title)
    payload.add("description", form.description)
    payload.add("category", form.category.value)
    impact = form.clean_impact()
    if impact:
        payload.add_json("impact", impact)
    payload.add_list("existing_images", existing_images or [])
    payload.add_files("images", images)
    return payload


class MissionCategoryService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "mission-categories")


# Inquiries

def with_labels(inquiry: dict) -> dict:
    """Inquiry with display labels for its status and category."""
    return {
        **inquiry,
        "status_label": humanize(inquiry.get("status")),
        "category_label": humanize(inquiry.get("category")),
    }


class InquiryService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "inquiries")

    async def list_inquiries(self, token: str, page: int = 1, limit: int = 10, status: Optional[str] = None):
        result = await self.list_page(token, page, limit, {"status": status})
        result.items = [with_labels(item) for item in result.items]
        return result

    async def update_inquiry(self, token: str, inquiry_id: ItemId, update: InquiryUpdate) -> dict:
        return await self.update(token, inquiry_id, update.model_dump(mode="json"))


# Members

class MemberService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "members")

    async def tab_counts(self, token: str) -> dict[str, int]:
        return await self.status_counts(token, MEMBER_STATUS_TABS)

    async def set_status(self, token: str, member_id: ItemId, status: MemberStatus) -> dict:
        return await self.client.put(
            f"{self.path}/{member_id}/status", token, json={"status": status.value}
        )


# Blogs

def build_blog_payload(
    form: BlogForm,
    blog_image: Optional[UploadedFile] = None,
    author_image: Optional[UploadedFile] = None
) -> MultipartPayload:
    require_complete(form)
    payload = MultipartPayload()
    payload.add("slug", form.slug)
    payload.add("title", form.title)
    payload.add("excerpt", form.excerpt)
    payload.add("content", form.content)
    payload.add("category", form.category, skip_blank=True)
    tags = form.tag_list()
    if tags:
        payload.add_json("tags", tags)
    payload.add("featured", form.featured)
    payload.add("priority", form.priority or 0)
    payload.add("authorName", form.author_name, skip_blank=True)
    payload.add("readTime", form.read_time, skip_blank=True)
    payload.add("publishDate", form.publish_date, skip_blank=True)
    payload.add("status", form.status, skip_blank=True)
    payload.add("ctaText", form.cta_text, skip_blank=True)
    payload.add("ctaUrl", form.cta_url, skip_blank=True)
    if blog_image is not None:
        payload.add_file("blog_image", validate_images([blog_image])[0])
    if author_image is not None:
        payload.add_file("author_image", validate_images([author_image])[0])
    return payload


class BlogService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "blogs")


# Gallery

def build_gallery_payload(
    form: GalleryForm,
    media: Optional[UploadedFile],
    edit: bool = False
) -> MultipartPayload:
    """Upload needs a media file; edits send tags as a JSON list."""
    require_complete(form)
    if media is None and not edit:
        raise FormValidationError(["Please select a media file"])

    payload = MultipartPayload()
    payload.add("title", form.title)
    payload.add("description", form.description)
    payload.add("category", form.category.value)
    if edit:
        payload.add_json("tags", form.tag_list())
    else:
        payload.add("tags", form.tags)
    payload.add("location", form.location)
    payload.add("isActive", form.is_active)
    payload.add("isFeatured", form.is_featured)
    payload.add("priority", form.priority)
    payload.add("altText", form.alt_text, skip_blank=edit)
    payload.add("packageId", form.package_id, skip_blank=True)
    payload.add("destinationId", form.destination_id, skip_blank=True)
    if media is not None:
        payload.add_file("gallery_media", validate_gallery_media(media))
    return payload


class GalleryService(ResourceService):

    def __init__(self, client: BackendClient):
        super().__init__(client, "gallery")

    async def upload(self, token: str, form: GalleryForm, media: Optional[UploadedFile]) -> dict:
        return await self.create(token, build_gallery_payload(form, media), path=f"{self.path}/upload")

    async def stats(self, token: str) -> dict:
        body = await self.client.get(f"{self.path}/stats", token)
        return body.get("data") or {}


def _plain(value):
    """Enum members as their values."""
    return getattr(value, "value", value)
