"""Data models for the admin console."""
from .common import UploadedFile, ImageRef, ListResult, AdminForm
from .destination import DestinationForm, Attraction
from .package_tree import PackageCategory, SafariPackage, PricingTier, PACKAGE_CATEGORIES
from .project import ProjectForm, ProjectEditForm
from .post import PostForm, PostType
from .tour import TourPackageForm, RouteStage
from .session import AdminSession, SessionStore

__all__ = [
    "UploadedFile",
    "ImageRef",
    "ListResult",
    "AdminForm",
    "DestinationForm",
    "Attraction",
    "PackageCategory",
    "SafariPackage",
    "PricingTier",
    "PACKAGE_CATEGORIES",
    "ProjectForm",
    "ProjectEditForm",
    "PostForm",
    "PostType",
    "TourPackageForm",
    "RouteStage",
    "AdminSession",
    "SessionStore",
]
