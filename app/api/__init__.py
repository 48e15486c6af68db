"""API routers for the admin console."""
from fastapi import APIRouter

from .content import router as content_router
from .routes import router as console_router
from .tours import router as tours_router

router = APIRouter()
router.include_router(console_router)
router.include_router(content_router)
router.include_router(tours_router)

__all__ = ["router"]
