"""
Tour routes - Destinations and their package tree, tour packages with route stages, and lodges.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from pydantic import BaseModel, Field
from typing import Optional

from ..models.common import ListResult
from ..models.destination import DestinationForm
from ..models.lodge import LodgeForm
from ..models.package_tree import CATEGORY_PRESETS, PACKAGE_CATEGORIES
from ..models.session import AdminSession, DestinationDraft
from ..models.tour import RouteStage, TourPackageForm
from ..services import package_tree
from ..services.api_client import get_backend_client
from ..services.itinerary import (
    RouteStageService,
    next_stage_number,
    remove_stage,
    stage_images,
    upsert_stage,
)
from ..services.submission import get_submission_guard
from ..services.tours import (
    DestinationService,
    LodgeService,
    TourPackageService,
    build_lodge_payload,
    destination_form_from_backend,
)
from .deps import (
    attach_attraction_uploads,
    get_session,
    parse_form,
    parse_string_list,
    read_upload,
    read_uploads,
    service_errors,
)


router = APIRouter(prefix="/api", tags=["tours"])


# Request/Response Models
class DraftRequest(BaseModel):
    destination_id: Optional[str] = Field(None, description="Load the tree of this destination")


class DraftResponse(BaseModel):
    draft_id: str
    destination_id: Optional[str] = None
    tree: list[dict]


class CategoryUpdate(BaseModel):
    category_name: Optional[str] = None
    category_order: Optional[int] = Field(None, ge=1)


class NewCategory(BaseModel):
    category_name: str = ""


class PackageUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    title: Optional[str] = None
    short_description: Optional[str] = None


class HighlightUpdate(BaseModel):
    value: str


class PricingTierUpdate(BaseModel):
    tier: Optional[str] = None
    price_range: Optional[str] = None


class BulkStagesRequest(BaseModel):
    stages: list[RouteStage]


class StagePreviewRequest(BaseModel):
    stages: list[RouteStage] = Field(default_factory=list)
    stage: Optional[RouteStage] = None
    index: Optional[int] = Field(None, description="Replace this position instead of appending")
    remove: Optional[int] = Field(None, description="Remove this position")


class StageView(RouteStage):
    image_urls: list[str] = Field(default_factory=list, description="Loadable image URLs")


def _stage_views(stages: list[RouteStage]) -> list[StageView]:
    return [StageView(**stage.model_dump(), image_urls=stage_images(stage)) for stage in stages]


def _draft_response(draft: DestinationDraft) -> DraftResponse:
    return DraftResponse(
        draft_id=draft.draft_id,
        destination_id=draft.destination_id,
        tree=package_tree.tree_to_view(draft.tree)
    )


def _draft(session: AdminSession, draft_id: str) -> DestinationDraft:
    draft = session.get_draft(draft_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


def _apply(session: AdminSession, draft_id: str, edit, *args, **kwargs) -> DraftResponse:
    """Run a tree edit against a draft and store the result."""
    draft = _draft(session, draft_id)
    with service_errors():
        try:
            tree = edit(draft.tree, *args, **kwargs)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    session.set_draft_tree(draft_id, tree)
    return _draft_response(session.get_draft(draft_id))


# Destinations

@router.get("/destinations", response_model=ListResult)
async def list_destinations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await DestinationService(get_backend_client()).list_page(
            session.token, page, limit, {"search": search}
        )


@router.get("/package-categories")
async def package_categories():
    """Predefined category names, flat and grouped by country."""
    return {"categories": PACKAGE_CATEGORIES, "by_country": CATEGORY_PRESETS}


@router.post("/destinations/drafts", response_model=DraftResponse)
async def open_draft(request: DraftRequest, session: AdminSession = Depends(get_session)):
    """Start editing a package tree, empty or loaded from a destination."""
    tree = []
    if request.destination_id:
        with service_errors():
            tree = await DestinationService(get_backend_client()).load_tree(
                session.token, request.destination_id
            )
    draft = session.open_draft(tree, request.destination_id)
    return _draft_response(draft)


@router.get("/destinations/drafts/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: str, session: AdminSession = Depends(get_session)):
    return _draft_response(_draft(session, draft_id))


@router.delete("/destinations/drafts/{draft_id}")
async def discard_draft(draft_id: str, session: AdminSession = Depends(get_session)):
    _draft(session, draft_id)
    session.close_draft(draft_id)
    return {"message": "Draft discarded"}


@router.post("/destinations/drafts/{draft_id}/categories", response_model=DraftResponse)
async def add_category(draft_id: str, request: NewCategory, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.add_category, request.category_name)


@router.put("/destinations/drafts/{draft_id}/categories/{cat}", response_model=DraftResponse)
async def update_category(
    draft_id: str, cat: int, request: CategoryUpdate, session: AdminSession = Depends(get_session)
):
    return _apply(
        session, draft_id, package_tree.update_category, cat,
        request.category_name, request.category_order
    )


@router.delete("/destinations/drafts/{draft_id}/categories/{cat}", response_model=DraftResponse)
async def delete_category(draft_id: str, cat: int, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.delete_category, cat)


@router.post("/destinations/drafts/{draft_id}/categories/{cat}/packages", response_model=DraftResponse)
async def add_package(draft_id: str, cat: int, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.add_package, cat)


@router.put("/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}", response_model=DraftResponse)
async def update_package(
    draft_id: str, cat: int, pkg: int, request: PackageUpdate, session: AdminSession = Depends(get_session)
):
    return _apply(
        session, draft_id, package_tree.update_package, cat, pkg,
        **request.model_dump(exclude_none=True)
    )


@router.delete("/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}", response_model=DraftResponse)
async def delete_package(draft_id: str, cat: int, pkg: int, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.delete_package, cat, pkg)


@router.post(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/highlights",
    response_model=DraftResponse
)
async def add_highlight(draft_id: str, cat: int, pkg: int, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.add_highlight, cat, pkg)


@router.put(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/highlights/{index}",
    response_model=DraftResponse
)
async def update_highlight(
    draft_id: str, cat: int, pkg: int, index: int, request: HighlightUpdate,
    session: AdminSession = Depends(get_session)
):
    return _apply(session, draft_id, package_tree.update_highlight, cat, pkg, index, request.value)


@router.delete(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/highlights/{index}",
    response_model=DraftResponse
)
async def remove_highlight(
    draft_id: str, cat: int, pkg: int, index: int, session: AdminSession = Depends(get_session)
):
    return _apply(session, draft_id, package_tree.remove_highlight, cat, pkg, index)


@router.post(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/pricing-tiers",
    response_model=DraftResponse
)
async def add_pricing_tier(draft_id: str, cat: int, pkg: int, session: AdminSession = Depends(get_session)):
    return _apply(session, draft_id, package_tree.add_pricing_tier, cat, pkg)


@router.put(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/pricing-tiers/{index}",
    response_model=DraftResponse
)
async def update_pricing_tier(
    draft_id: str, cat: int, pkg: int, index: int, request: PricingTierUpdate,
    session: AdminSession = Depends(get_session)
):
    return _apply(
        session, draft_id, package_tree.update_pricing_tier, cat, pkg, index,
        request.tier, request.price_range
    )


@router.delete(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/pricing-tiers/{index}",
    response_model=DraftResponse
)
async def remove_pricing_tier(
    draft_id: str, cat: int, pkg: int, index: int, session: AdminSession = Depends(get_session)
):
    return _apply(session, draft_id, package_tree.remove_pricing_tier, cat, pkg, index)


@router.post(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/gallery",
    response_model=DraftResponse
)
async def add_gallery_images(
    draft_id: str, cat: int, pkg: int,
    files: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Queue gallery images; they upload with the destination."""
    uploads = await read_uploads(files)
    return _apply(session, draft_id, package_tree.add_gallery_files, cat, pkg, uploads)


@router.delete(
    "/destinations/drafts/{draft_id}/categories/{cat}/packages/{pkg}/gallery/{index}",
    response_model=DraftResponse
)
async def remove_gallery_image(
    draft_id: str, cat: int, pkg: int, index: int, session: AdminSession = Depends(get_session)
):
    return _apply(session, draft_id, package_tree.remove_gallery_image, cat, pkg, index)


@router.get("/destinations/{destination_id}")
async def get_destination(destination_id: str, session: AdminSession = Depends(get_session)):
    """Stored destination plus the edit form prefilled from it."""
    with service_errors():
        data = await DestinationService(get_backend_client()).get(session.token, destination_id)
    return {"destination": data, "form": destination_form_from_backend(data)}


@router.post("/destinations")
async def create_destination(
    request: Request,
    form: str = Form(...),
    draft_id: Optional[str] = Form(None),
    gallery: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Create a destination; the first gallery image becomes the hero image.

    New attraction images arrive as attraction_images_<index> file parts.
    """
    destination_form = await attach_attraction_uploads(request, parse_form(DestinationForm, form))
    tree = _draft(session, draft_id).tree if draft_id else None
    uploads = await read_uploads(gallery)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, "destinations:create"):
            result = await DestinationService(get_backend_client()).create_destination(
                session.token, destination_form, uploads, tree
            )
    if draft_id:
        session.close_draft(draft_id)
    return result


@router.put("/destinations/{destination_id}")
async def update_destination(
    request: Request,
    destination_id: str,
    form: str = Form(...),
    draft_id: Optional[str] = Form(None),
    gallery: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    destination_form = await attach_attraction_uploads(request, parse_form(DestinationForm, form))
    tree = _draft(session, draft_id).tree if draft_id else None
    uploads = await read_uploads(gallery)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"destinations:{destination_id}"):
            result = await DestinationService(get_backend_client()).update_destination(
                session.token, destination_id, destination_form, uploads, tree
            )
    if draft_id:
        session.close_draft(draft_id)
    return result


@router.delete("/destinations/{destination_id}")
async def delete_destination(destination_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await DestinationService(get_backend_client()).delete(session.token, destination_id)


# Tour packages

@router.get("/packages", response_model=ListResult)
async def list_packages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await TourPackageService(get_backend_client()).list_page(
            session.token, page, limit, {"search": search}
        )


@router.get("/packages/{package_id}")
async def get_package(package_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await TourPackageService(get_backend_client()).get(session.token, package_id)


@router.post("/packages")
async def create_package(
    form: str = Form(...),
    image: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Create a package. Route stages can be added once it has an id."""
    package_form = parse_form(TourPackageForm, form)
    featured = await read_upload(image)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, "packages:create"):
            return await TourPackageService(get_backend_client()).create_package(
                session.token, package_form, featured
            )


@router.put("/packages/{package_id}")
async def update_package_details(
    package_id: str,
    form: str = Form(...),
    image: Optional[UploadFile] = File(None),
    session: AdminSession = Depends(get_session)
):
    package_form = parse_form(TourPackageForm, form)
    featured = await read_upload(image)
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"packages:{package_id}"):
            return await TourPackageService(get_backend_client()).update_package(
                session.token, package_id, package_form, featured
            )


@router.delete("/packages/{package_id}")
async def delete_tour_package(package_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await TourPackageService(get_backend_client()).delete(session.token, package_id)


# Route stages

@router.get("/packages/{package_id}/stages", response_model=list[StageView])
async def list_stages(package_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        stages = await RouteStageService(get_backend_client()).package_stages(session.token, package_id)
    return _stage_views(stages)


@router.get("/packages/{package_id}/stages/next-number")
async def stage_next_number(package_id: str, session: AdminSession = Depends(get_session)):
    """Stage number a new stage should default to."""
    with service_errors():
        stages = await RouteStageService(get_backend_client()).package_stages(session.token, package_id)
    return {"stage": next_stage_number(stages)}


@router.post("/packages/{package_id}/stages/bulk")
async def bulk_create_stages(
    package_id: str, request: BulkStagesRequest, session: AdminSession = Depends(get_session)
):
    """Create all stages of a freshly created package."""
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"stages:{package_id}"):
            created, message = await RouteStageService(get_backend_client()).bulk_create(
                session.token, package_id, request.stages
            )
    return {"data": created, "message": message}


@router.post("/packages/{package_id}/stages")
async def create_stage(package_id: str, stage: RouteStage, session: AdminSession = Depends(get_session)):
    """Save a new stage; returns it with the reloaded stage list."""
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"stages:{package_id}"):
            saved = await RouteStageService(get_backend_client()).save_stage(
                session.token, package_id, stage.model_copy(update={"id": None})
            )
    return {"stage": saved["stage"], "stages": _stage_views(saved["stages"])}


@router.put("/packages/{package_id}/stages/{stage_id}")
async def update_stage(
    package_id: str, stage_id: str, stage: RouteStage, session: AdminSession = Depends(get_session)
):
    with service_errors():
        async with get_submission_guard().hold(session.session_id, f"stages:{package_id}"):
            saved = await RouteStageService(get_backend_client()).save_stage(
                session.token, package_id, stage.model_copy(update={"id": stage_id})
            )
    return {"stage": saved["stage"], "stages": _stage_views(saved["stages"])}


@router.delete("/route-stages/{stage_id}")
async def delete_stage(stage_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await RouteStageService(get_backend_client()).delete_stage(session.token, stage_id)


@router.post("/route-stages/preview", response_model=list[RouteStage])
async def preview_stages(request: StagePreviewRequest):
    """Apply a local add, replace or remove to an unsaved stage list."""
    with service_errors():
        stages = request.stages
        if request.remove is not None:
            stages = remove_stage(stages, request.remove)
        if request.stage is not None:
            stages = upsert_stage(stages, request.stage, request.index)
    return stages


@router.post("/route-stages/images")
async def upload_stage_images(
    files: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    """Upload stage photos and return their permanent URLs."""
    uploads = await read_uploads(files)
    with service_errors():
        urls = await RouteStageService(get_backend_client()).upload_images(session.token, uploads)
    return {"urls": urls}


# Lodges

@router.get("/lodges", response_model=ListResult)
async def list_lodges(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    search: Optional[str] = None,
    session: AdminSession = Depends(get_session)
):
    with service_errors():
        return await LodgeService(get_backend_client()).list_page(session.token, page, limit, {"search": search})


@router.get("/lodges/{lodge_id}")
async def get_lodge(lodge_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await LodgeService(get_backend_client()).get(session.token, lodge_id)


@router.post("/lodges")
async def create_lodge(
    form: str = Form(...),
    gallery: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    lodge_form = parse_form(LodgeForm, form)
    uploads = await read_uploads(gallery)
    with service_errors():
        payload = build_lodge_payload(lodge_form, uploads)
        async with get_submission_guard().hold(session.session_id, "lodges:create"):
            return await LodgeService(get_backend_client()).create(session.token, payload)


@router.put("/lodges/{lodge_id}")
async def update_lodge(
    lodge_id: str,
    form: str = Form(...),
    existing_images: Optional[str] = Form(None),
    gallery: Optional[list[UploadFile]] = File(None),
    session: AdminSession = Depends(get_session)
):
    lodge_form = parse_form(LodgeForm, form)
    kept = parse_string_list(existing_images)
    uploads = await read_uploads(gallery)
    with service_errors():
        payload = build_lodge_payload(lodge_form, uploads, existing_images=kept)
        async with get_submission_guard().hold(session.session_id, f"lodges:{lodge_id}"):
            return await LodgeService(get_backend_client()).update(session.token, lodge_id, payload)


@router.delete("/lodges/{lodge_id}")
async def delete_lodge(lodge_id: str, session: AdminSession = Depends(get_session)):
    with service_errors():
        return await LodgeService(get_backend_client()).delete(session.token, lodge_id)
