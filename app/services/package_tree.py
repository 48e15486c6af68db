"""
Package tree editor - Pure edits over destination categories and their packages.

Every operation takes the current tree and returns a new one; the input tree
is left untouched so a failed edit never corrupts the draft being edited.
"""
from typing import Optional
import json

from ..models.common import UploadedFile
from ..models.package_tree import PackageCategory, PricingTier, SafariPackage
from .errors import TreeIndexError
from .uploads import MultipartPayload, build_image_url, filter_images, normalize_image_ref

Tree = list[PackageCategory]


def _copy(tree: Tree) -> Tree:
    return [category.model_copy(deep=True) for category in tree]


def _at(items: list, index: int, what: str):
    if index < 0 or index >= len(items):
        raise TreeIndexError(f"{what} {index} does not exist")
    return items[index]


def _package(tree: Tree, cat_index: int, pkg_index: int) -> SafariPackage:
    category = _at(tree, cat_index, "Category")
    return _at(category.packages, pkg_index, "Package")


# Categories

def add_category(tree: Tree, name: str = "") -> Tree:
    """Append an empty category ordered after the existing ones."""
    new_tree = _copy(tree)
    new_tree.append(PackageCategory(category_name=name, category_order=len(tree) + 1))
    return new_tree


def update_category(
    tree: Tree,
    cat_index: int,
    category_name: Optional[str] = None,
    category_order: Optional[int] = None
) -> Tree:
    new_tree = _copy(tree)
    category = _at(new_tree, cat_index, "Category")
    if category_name is not None:
        category.category_name = category_name
    if category_order is not None:
        category.category_order = category_order
    return new_tree


def delete_category(tree: Tree, cat_index: int) -> Tree:
    new_tree = _copy(tree)
    _at(new_tree, cat_index, "Category")
    del new_tree[cat_index]
    return new_tree


# Packages

def add_package(tree: Tree, cat_index: int) -> Tree:
    """Append an empty package numbered after the category's existing ones."""
    new_tree = _copy(tree)
    category = _at(new_tree, cat_index, "Category")
    category.packages.append(SafariPackage(number=len(category.packages) + 1))
    return new_tree


def update_package(tree: Tree, cat_index: int, pkg_index: int, **changes) -> Tree:
    """Set scalar package fields: number, title, short_description."""
    allowed = {"number", "title", "short_description"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Cannot update package fields: {sorted(unknown)}")
    new_tree = _copy(tree)
    package = _package(new_tree, cat_index, pkg_index)
    for key, value in changes.items():
        if value is not None:
            setattr(package, key, value)
    return new_tree


def delete_package(tree: Tree, cat_index: int, pkg_index: int) -> Tree:
    new_tree = _copy(tree)
    category = _at(new_tree, cat_index, "Category")
    _at(category.packages, pkg_index, "Package")
    del category.packages[pkg_index]
    return new_tree


# Highlights

def add_highlight(tree: Tree, cat_index: int, pkg_index: int) -> Tree:
    new_tree = _copy(tree)
    _package(new_tree, cat_index, pkg_index).highlights.append("")
    return new_tree


def update_highlight(tree: Tree, cat_index: int, pkg_index: int, index: int, value: str) -> Tree:
    new_tree = _copy(tree)
    highlights = _package(new_tree, cat_index, pkg_index).highlights
    _at(highlights, index, "Highlight")
    highlights[index] = value
    return new_tree


def remove_highlight(tree: Tree, cat_index: int, pkg_index: int, index: int) -> Tree:
    new_tree = _copy(tree)
    highlights = _package(new_tree, cat_index, pkg_index).highlights
    _at(highlights, index, "Highlight")
    del highlights[index]
    return new_tree


# Pricing tiers

def add_pricing_tier(tree: Tree, cat_index: int, pkg_index: int) -> Tree:
    new_tree = _copy(tree)
    _package(new_tree, cat_index, pkg_index).pricing_tiers.append(PricingTier())
    return new_tree


def update_pricing_tier(
    tree: Tree,
    cat_index: int,
    pkg_index: int,
    index: int,
    tier: Optional[str] = None,
    price_range: Optional[str] = None
) -> Tree:
    new_tree = _copy(tree)
    tiers = _package(new_tree, cat_index, pkg_index).pricing_tiers
    pricing = _at(tiers, index, "Pricing tier")
    if tier is not None:
        pricing.tier = tier
    if price_range is not None:
        pricing.price_range = price_range
    return new_tree


def remove_pricing_tier(tree: Tree, cat_index: int, pkg_index: int, index: int) -> Tree:
    new_tree = _copy(tree)
    tiers = _package(new_tree, cat_index, pkg_index).pricing_tiers
    _at(tiers, index, "Pricing tier")
    del tiers[index]
    return new_tree


# Gallery

def add_gallery_files(tree: Tree, cat_index: int, pkg_index: int, files: list[UploadedFile]) -> Tree:
    """Queue images for upload; non-images and oversized files are dropped."""
    new_tree = _copy(tree)
    _package(new_tree, cat_index, pkg_index).gallery.extend(filter_images(files))
    return new_tree


def remove_gallery_image(tree: Tree, cat_index: int, pkg_index: int, index: int) -> Tree:
    new_tree = _copy(tree)
    gallery = _package(new_tree, cat_index, pkg_index).gallery
    _at(gallery, index, "Gallery image")
    del gallery[index]
    return new_tree


# Serialization

def gallery_field(cat_index: int, pkg_index: int) -> str:
    return f"package_gallery_{cat_index}_{pkg_index}"


def tree_to_json(tree: Tree) -> list[dict]:
    """Tree as sent to the backend: galleries keep only stored references."""
    categories = []
    for category in tree:
        packages = []
        for package in category.packages:
            data = package.model_dump(exclude={"gallery"})
            data["gallery"] = package.stored_gallery()
            packages.append(data)
        categories.append({
            "category_name": category.category_name,
            "category_order": category.category_order,
            "packages": packages,
        })
    return categories


def serialize_tree(tree: Tree, payload: MultipartPayload) -> MultipartPayload:
    """Add the tree JSON and each pending gallery file to a destination payload."""
    payload.add("packages", json.dumps(tree_to_json(tree)))
    for cat_index, category in enumerate(tree):
        for pkg_index, package in enumerate(category.packages):
            payload.add_files(gallery_field(cat_index, pkg_index), package.pending_uploads())
    return payload


def tree_to_view(tree: Tree) -> list[dict]:
    """Tree for display: stored images resolved to URLs, queued files summarized."""
    view = tree_to_json(tree)
    for cat_index, category in enumerate(tree):
        for pkg_index, package in enumerate(category.packages):
            gallery = []
            for item in package.gallery:
                if isinstance(item, UploadedFile):
                    gallery.append({"filename": item.filename, "size": item.size, "pending": True})
                else:
                    path = normalize_image_ref(item)
                    gallery.append({"path": path, "url": build_image_url(path), "pending": False})
            view[cat_index]["packages"][pkg_index]["gallery"] = gallery
    return view


def tree_from_backend(raw) -> Tree:
    """Parse the packages field of a destination, tolerating JSON text and missing parts."""
    if not raw:
        return []
    if isinstance(raw, str):
        raw = json.loads(raw)

    tree = []
    for cat_position, category in enumerate(raw, start=1):
        packages = []
        for pkg_position, package in enumerate(category.get("packages") or [], start=1):
            packages.append(SafariPackage(
                number=package.get("number") or pkg_position,
                title=package.get("title") or "",
                short_description=package.get("short_description") or "",
                highlights=package.get("highlights") or [],
                pricing_tiers=package.get("pricing_tiers") or [],
                gallery=[
                    path for path in (normalize_image_ref(ref) for ref in package.get("gallery") or [])
                    if path
                ],
            ))
        tree.append(PackageCategory(
            category_name=category.get("category_name") or "",
            category_order=category.get("category_order") or cat_position,
            packages=packages,
        ))
    return tree
