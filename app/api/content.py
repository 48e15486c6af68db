"""
Content routes - Projects, posts, mission categories, inquiries, members, blogs and gallery.

Multipart endpoints take the form as a JSON string in the `form` field plus
file parts, so one request carries both the data and its images.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import Optional

from ..models.blog import BlogForm, GalleryForm, MemberStatusUpdate
from ..models.common import ListResult
from ..models.inquiry import InquiryUpdate
from ..models.mission import MissionCategoryForm
from ..models.post import PostForm
from ..models.project import ProjectEditForm, ProjectForm
from ..models.session import AdminSession
from ..services.api_client import get_backend_client
from ..services.content import (
    BlogService,
    GalleryService,
    InquiryService,
    MemberService,
    MissionCategoryService,
    PostService,
    ProjectService,
    build_blog_payload,
    build_gallery_payload,
    build_mission_payload,
    build_post_payload,
)
from ..services.submission import get_submission_guard
from .deps import get_session, parse_form, parse_string_list, read_upload, read_uploads, service_errors


router = APIRouter(prefix="/api", tags=["content"])


# Projects

@router.get("/projects", response_model=ListResult)
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status: Optional[str] = None,
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await ProjectService(get_backend_client()).list_page(
            session.token, page, limit, {"status": status, "search": search}
        )


@router.get("/projects/counts")
async def project_counts(session: AdminSession = Depends(get_session)):
    """Item counts for the status tabs."""
    with service_errors():
        return await ProjectService(get_backend_client()).tab_counts(session.token)


@router.get("/projects/{project_id}")
async def get_project(project_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await ProjectService(get_backend_client()).get(session.token, project_id)


@router.post("/projects")
async def create_project(
    form: str = Form(...),
    images: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Create a project with its images."""
    project_form = parse_form(ProjectForm, form)
    uploads = await read_uploads(images)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, "projects:create"):
            return await ProjectService(get_backend_client()).create_project(
                session.token, project_form, uploads
            )


@router.put("/projects/{project_id}")
async def update_project(
    project_id: str,
    form: str = Form(...),
    images: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Update a project, its progress and images."""
    project_form = parse_form(ProjectEditForm, form)
    uploads = await read_uploads(images)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"projects:{project_id}"):
            return await ProjectService(get_backend_client()).update_project(
                session.token, project_id, project_form, uploads
            )


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await ProjectService(get_backend_client()).delete(session.token, project_id)


@router.delete("/projects/documents/{document_id}")
async def delete_project_document(document_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await ProjectService(get_backend_client()).delete_document(session.token, document_id)


@router.get("/admin-users")
async def list_admin_users(session: AdminSession = Depends(get_session)):
    """Admins available for project assignment."""
    with service_errors():
        return await ProjectService(get_backend_client()).admin_users(session.token)


# Posts

@router.get("/posts", response_model=ListResult)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    type: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await PostService(get_backend_client()).list_posts(
            session.token, page, limit, type, status, search
        )


@router.get("/posts/{post_id}")
async def get_post(post_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await PostService(get_backend_client()).get(session.token, post_id)


@router.post("/posts")
async def create_post(
    form: str = Form(...),
    images: Optional[list[UploadFile]] = File(None),
    banner: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Create a news post (images) or an event (banner)."""
    post_form = parse_form(PostForm, form)
    uploads = await read_uploads(images)
    banner_upload = await read_upload(banner)
    with service_errors():
        payload = build_post_payload(post_form, uploads, banner_upload)
        async with get_submission_guard().hold(session.session_id, "posts:create"):
            return await PostService(get_backend_client()).create(session.token, payload)


@router.put("/posts/{post_id}")
async def update_post(
    post_id: str,
    form: str = Form(...),
    existing_images: Optional[str] = Form(None),
    existing_banner: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = File(None),
    banner: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    post_form = parse_form(PostForm, form)
    kept = parse_string_list(existing_images)
    uploads = await read_uploads(images)
    banner_upload = await read_upload(banner)
    with service_errors():
        payload = build_post_payload(
            post_form, uploads, banner_upload,
            existing_images=kept, existing_banner=existing_banner, include_type=False
        )
        async with get_submission_guard().hold(session.session_id, f"posts:{post_id}"):
            return await PostService(get_backend_client()).update(session.token, post_id, payload)


@router.delete("/posts/{post_id}")
async def delete_post(post_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await PostService(get_backend_client()).delete(session.token, post_id)


# Mission categories

@router.get("/mission-categories", response_model=ListResult)
async def list_mission_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await MissionCategoryService(get_backend_client()).list_page(
            session.token, page, limit, {"search": search}
        )


@router.get("/mission-categories/{category_id}")
async def get_mission_category(category_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await MissionCategoryService(get_backend_client()).get(session.token, category_id)


@router.post("/mission-categories")
async def create_mission_category(
    form: str = Form(...),
    images: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    mission_form = parse_form(MissionCategoryForm, form)
    uploads = await read_uploads(images)
    with service_errors():
        payload = build_mission_payload(mission_form, uploads)
        async with get_submission_guard().hold(session.session_id, "mission-categories:create"):
            return await MissionCategoryService(get_backend_client()).create(session.token, payload)


@router.put("/mission-categories/{category_id}")
async def update_mission_category(
    category_id: str,
    form: str = Form(...),
    existing_images: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    mission_form = parse_form(MissionCategoryForm, form)
    kept = parse_string_list(existing_images)
    uploads = await read_uploads(images)
    with service_errors():
        payload = build_mission_payload(mission_form, uploads, existing_images=kept)
        async with get_submission_guard().hold(session.session_id, f"mission-categories:{category_id}"):
            return await MissionCategoryService(get_backend_client()).update(
                session.token, category_id, payload
            )


@router.delete("/mission-categories/{category_id}")
async def delete_mission_category(category_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await MissionCategoryService(get_backend_client()).delete(session.token, category_id)


# Inquiries

@router.get("/inquiries", response_model=ListResult)
async def list_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await InquiryService(get_backend_client()).list_inquiries(
            session.token, page, limit, status
        )


@router.get("/inquiries/{inquiry_id}")
async def get_inquiry(inquiry_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await InquiryService(get_backend_client()).get(session.token, inquiry_id)


@router.put("/inquiries/{inquiry_id}")
async def update_inquiry(
    inquiry_id: str,
    update: InquiryUpdate,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"inquiries:{inquiry_id}"):
            return await InquiryService(get_backend_client()).update_inquiry(
                session.token, inquiry_id, update
            )


@router.delete("/inquiries/{inquiry_id}")
async def delete_inquiry(inquiry_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await InquiryService(get_backend_client()).delete(session.token, inquiry_id)


# Members

@router.get("/members", response_model=ListResult)
async def list_members(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await MemberService(get_backend_client()).list_page(
            session.token, page, limit, {"status": status}
        )


@router.get("/members/counts")
async def member_counts(session: AdminSession = Depends(get_session)):
    with service_errors():
        return await MemberService(get_backend_client()).tab_counts(session.token)


@router.put("/members/{member_id}/status")
async def update_member_status(
    member_id: str,
    update: MemberStatusUpdate,
    session: AdminSession = Depends(get_session)
):
    """Approve or reject a membership application."""
    with service_errors():
        return await MemberService(get_backend_client()).set_status(session.token, member_id, update.status)


@router.put("/members/{member_id}")
async def update_member(member_id: str, update: dict, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await MemberService(get_backend_client()).update(session.token, member_id, update)


@router.delete("/members/{member_id}")
async def delete_member(member_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await MemberService(get_backend_client()).delete(session.token, member_id)


# Blogs

@router.get("/blogs", response_model=ListResult)
async def list_blogs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status: Optional[str] = None,
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await BlogService(get_backend_client()).list_page(
            session.token, page, limit, {"status": status, "search": search}
        )


@router.get("/blogs/{blog_id}")
async def get_blog(blog_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await BlogService(get_backend_client()).get(session.token, blog_id)


@router.post("/blogs")
async def create_blog(
    form: str = Form(...),
    blog_image: Optional[UploadFile] = File(None),
    author_image: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    blog_form = parse_form(BlogForm, form)
    featured = await read_upload(blog_image)
    author = await read_upload(author_image)
    with service_errors():
        payload = build_blog_payload(blog_form, featured, author)
        async with get_submission_guard().hold(session.session_id, "blogs:create"):
            return await BlogService(get_backend_client()).create(session.token, payload)


@router.put("/blogs/{blog_id}")
async def update_blog(
    blog_id: str,
    form: str = Form(...),
    blog_image: Optional[UploadFile] = File(None),
    author_image: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    blog_form = parse_form(BlogForm, form)
    featured = await read_upload(blog_image)
    author = await read_upload(author_image)
    with service_errors():
        payload = build_blog_payload(blog_form, featured, author)
        async with get_submission_guard().hold(session.session_id, f"blogs:{blog_id}"):
            return await BlogService(get_backend_client()).update(session.token, blog_id, payload)


@router.delete("/blogs/{blog_id}")
async def delete_blog(blog_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await BlogService(get_backend_client()).delete(session.token, blog_id)


# Gallery

@router.get("/gallery", response_model=ListResult)
async def list_gallery(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    category: Optional[str] = None,
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await GalleryService(get_backend_client()).list_page(
            session.token, page, limit, {"category": category, "search": search}
        )


@router.get("/gallery/stats")
async def gallery_stats(session: AdminSession = Depends(get_session)):
    with service_errors():
        return await GalleryService(get_backend_client()).stats(session.token)


@router.get("/gallery/{item_id}")
async def get_gallery_item(item_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await GalleryService(get_backend_client()).get(session.token, item_id)


@router.post("/gallery/upload")
async def upload_gallery_item(
    form: str = Form(...),
    media: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Upload one image or video with its metadata."""
    gallery_form = parse_form(GalleryForm, form)
    upload = await read_upload(media)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, "gallery:upload"):
            return await GalleryService(get_backend_client()).upload(session.token, gallery_form, upload)


@router.put("/gallery/{item_id}")
async def update_gallery_item(
    item_id: str,
    form: str = Form(...),
    media: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    gallery_form = parse_form(GalleryForm, form)
    upload = await read_upload(media)
    with service_errors():
        payload = build_gallery_payload(gallery_form, upload, edit=True)
        async with get_submission_guard().hold(session.session_id, f"gallery:{item_id}"):
            return await GalleryService(get_backend_client()).update(session.token, item_id, payload)


@router.delete("/gallery/{item_id}")
async def delete_gallery_item(item_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await GalleryService(get_backend_client()).delete(session.token, item_id)
