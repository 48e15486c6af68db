"""Tests for the request bodies built from console forms."""
import json
import pytest

from app.models.blog import BlogForm, GalleryForm
from app.models.common import ImageRef, UploadedFile
from app.models.destination import Attraction, DestinationForm
from app.models.lodge import LodgeForm
from app.models.mission import MissionCategoryForm
from app.models.post import PostForm
from app.models.project import ProjectEditForm, ProjectForm
from app.models.tour import TourPackageForm
from app.services import package_tree as pt
from app.services.content import (
    build_blog_payload,
    build_gallery_payload,
    build_mission_payload,
    build_post_payload,
    build_project_payload,
    build_project_update_payload,
)
from app.services.errors import FormValidationError
from app.services.tours import (
    build_destination_payload,
    build_destination_update_payload,
    build_lodge_payload,
    build_tour_package_payload,
    destination_form_from_backend,
)


def image(name="photo.jpg", content_type="image/jpeg"):
    return UploadedFile(filename=name, content_type=content_type, data=b"img")


def fields(payload):
    return [name for name, _ in payload.fields]


class TestProjectPayloads:
    """Test project create/edit bodies."""

    def test_create_skips_empty_fields(self):
        """Blank optional fields are left out of a new project."""
        form = ProjectForm(name="Borehole", description="Water", category="community", county="Kitui")
        payload = build_project_payload(form, [image()])
        assert payload.get("category") == ["community"]
        assert "subcounty" not in fields(payload)
        assert payload.file_keys() == ["update_images"]

    def test_create_requires_fields(self):
        """Missing required fields are all reported."""
        with pytest.raises(FormValidationError) as exc:
            build_project_payload(ProjectForm(name="Borehole"), [])
        assert exc.value.errors == ["description is required", "county is required"]

    def test_create_rejects_non_images(self):
        """Project images must be images."""
        form = ProjectForm(name="Borehole", description="Water", county="Kitui")
        with pytest.raises(FormValidationError):
            build_project_payload(form, [image("plan.pdf", "application/pdf")])

    def test_update_keeps_existing_images(self):
        """Edits send the kept images and a trimmed progress note."""
        form = ProjectEditForm(
            name="Library",
            county="Nakuru",
            start_date="2025-01-10T00:00:00Z",
            status="in_progress",
            progress=40,
            progress_description="  Roof done  ",
            existing_images=["uploads/a.jpg", "uploads/b.jpg"],
        )
        payload = build_project_update_payload(form, [])
        assert payload.get("start_date") == ["2025-01-10"]
        assert payload.get("status") == ["in_progress"]
        assert payload.get("progress") == ["40"]
        assert payload.get("progress_description") == ["Roof done"]
        assert payload.get("existing_images") == ["uploads/a.jpg", "uploads/b.jpg"]


class TestPostPayloads:
    """Test news and event bodies."""

    def test_news(self):
        """News posts send images and the kept ones."""
        form = PostForm(type="news", title="Update", content="Text")
        payload = build_post_payload(form, [image()], existing_images=["uploads/old.jpg"])
        assert payload.get("type") == ["news"]
        assert payload.get("status") == ["draft"]
        assert payload.get("existing_images") == ["uploads/old.jpg"]
        assert payload.file_keys() == ["post_images"]
        assert "start_date" not in fields(payload)

    def test_event_with_new_banner(self):
        """Events send a new banner and only the dates that are set."""
        form = PostForm(type="event", title="Gala", content="Dinner", start_date="2025-05-01", location="Nairobi")
        payload = build_post_payload(form, [], banner=image("banner.png", "image/png"), include_type=False)
        assert "type" not in fields(payload)
        assert payload.file_keys() == ["post_banner"]
        assert payload.get("start_date") == ["2025-05-01"]
        assert "end_date" not in fields(payload)
        assert payload.get("location") == ["Nairobi"]

    def test_event_keeps_existing_banner(self):
        """Without a new file the stored banner is kept."""
        form = PostForm(type="event", title="Gala", content="Dinner", start_date="2025-05-01")
        payload = build_post_payload(form, [], existing_banner="uploads/banner.png")
        assert payload.get("banner") == ["uploads/banner.png"]
        assert payload.file_keys() == []


class TestOtherContentPayloads:
    """Mission categories, blogs and gallery."""

    def test_mission_impact_json(self):
        """Impact lines go out as a JSON list."""
        form = MissionCategoryForm(title="Books", description="Reading", impact=["500 pupils", " "])
        payload = build_mission_payload(form, [], existing_images=["uploads/m.jpg"])
        assert json.loads(payload.get("impact")[0]) == ["500 pupils"]
        assert payload.get("category") == ["educational_support"]
        assert payload.get("existing_images") == ["uploads/m.jpg"]

    def test_mission_without_impact(self):
        """Empty impact is not sent."""
        form = MissionCategoryForm(title="Books", description="Reading", impact=[""])
        assert "impact" not in fields(build_mission_payload(form, []))

    def test_blog(self):
        """Blog tags go out as JSON and unset links are skipped."""
        form = BlogForm(slug="great-migration", title="Migration", content="...", tags="kenya, wildlife",
                        authorName="Amina", featured=True)
        payload = build_blog_payload(form, blog_image=image())
        assert json.loads(payload.get("tags")[0]) == ["kenya", "wildlife"]
        assert payload.get("featured") == ["true"]
        assert payload.get("authorName") == ["Amina"]
        assert "ctaUrl" not in fields(payload)
        assert payload.file_keys() == ["blog_image"]

    def test_gallery_upload_requires_media(self):
        """Uploads need a media file."""
        with pytest.raises(FormValidationError) as exc:
            build_gallery_payload(GalleryForm(title="Lions"), None)
        assert exc.value.errors == ["Please select a media file"]

    def test_gallery_upload_accepts_video(self):
        """Videos are valid gallery media."""
        video = UploadedFile(filename="herd.mp4", content_type="video/mp4", data=b"mp4")
        payload = build_gallery_payload(GalleryForm(title="Herd", tags="a, b"), video)
        assert payload.get("tags") == ["a, b"]
        assert payload.get("isActive") == ["true"]
        assert payload.file_keys() == ["gallery_media"]

    def test_gallery_rejects_other_media(self):
        """Non-image, non-video files are rejected."""
        doc = UploadedFile(filename="notes.txt", content_type="text/plain", data=b"x")
        with pytest.raises(FormValidationError):
            build_gallery_payload(GalleryForm(title="Notes"), doc)

    def test_gallery_edit_sends_tag_list(self):
        """Gallery edits send tags as a JSON list."""
        payload = build_gallery_payload(GalleryForm(title="Lions", tags="big cats, mara"), None, edit=True)
        assert json.loads(payload.get("tags")[0]) == ["big cats", "mara"]
        assert "altText" not in fields(payload)
        assert payload.file_keys() == []


class TestDestinationPayloads:
    """Test destination create/edit bodies."""

    def make_form(self, **kwargs):
        data = {
            "title": "Masai Mara",
            "description": "Great migration",
            "location": "Kenya",
            "wildlife_types": ["Lion", "Wildebeest"],
            "attractions": [Attraction(name="Mara River", images=[ImageRef(path="uploads/r.jpg"), image("r2.jpg")])],
        }
        data.update(kwargs)
        return DestinationForm(**data)

    def test_create_repeats_list_keys(self):
        """New destinations repeat list keys and split hero from gallery."""
        payload = build_destination_payload(self.make_form(), [image("hero.jpg"), image("g1.jpg")])
        assert payload.get("slug") == ["masai-mara"]
        assert payload.get("wildlife_types") == ["Lion", "Wildebeest"]
        attractions = json.loads(payload.get("attractions")[0])
        assert attractions == [{"name": "Mara River", "description": "", "images": ["uploads/r.jpg"], "index": 0}]
        assert payload.file_keys() == ["hero_image", "gallery_images", "attraction_images_0"]
        assert "duration_min" not in fields(payload)

    def test_create_with_package_tree(self):
        """The package tree travels with a new destination."""
        tree = pt.add_package(pt.add_category([], "SAFARI TOURS"), 0)
        tree = pt.add_gallery_files(tree, 0, 0, [image("p.jpg")])
        payload = build_destination_payload(self.make_form(), [], tree)
        assert json.loads(payload.get("packages")[0])[0]["category_name"] == "SAFARI TOURS"
        assert "package_gallery_0_0" in payload.file_keys()
        assert "hero_image" not in payload.file_keys()

    def test_update_encodes_lists_as_json(self):
        """Destination edits JSON-encode their lists."""
        form = self.make_form(gallery_images=["uploads/g1.jpg"], hero_image=None, duration_min=3)
        payload = build_destination_update_payload(form, [image("g2.jpg")])
        assert json.loads(payload.get("wildlife_types")[0]) == ["Lion", "Wildebeest"]
        assert payload.get("hero_image") == [""]
        assert payload.get("duration_min") == ["3"]
        assert json.loads(payload.get("gallery_images")[0]) == ["uploads/g1.jpg"]
        assert payload.file_keys() == ["gallery_images", "attraction_images_0"]

    def test_prefill_from_backend(self):
        """Stored destinations prefill the edit form."""
        form = destination_form_from_backend({
            "id": 4,
            "title": "Amboseli",
            "description": "Elephants",
            "location": "Kenya",
            "wildlife_types": '["Elephant"]',
            "featured_species": None,
            "attractions": '[{"name": "Observation Hill", "images": ["uploads/h.jpg"]}]',
            "gallery_images": [{"path": "uploads/g.jpg"}, "uploads/g2.jpg"],
            "hero_image": {"path": "uploads/hero.jpg"},
        })
        assert form.slug == "amboseli"
        assert form.wildlife_types == ["Elephant"]
        assert form.featured_species == []
        assert form.attractions[0].name == "Observation Hill"
        assert form.gallery_images == ["uploads/g.jpg", "uploads/g2.jpg"]
        assert form.hero_image == "uploads/hero.jpg"


class TestTourAndLodgePayloads:
    """Test package and lodge bodies."""

    def test_tour_package(self):
        """Package lists are JSON-encoded only when set."""
        form = TourPackageForm(
            title="Big Five", description="Classic", duration="7 days", price="2400",
            groupSize="2-6", highlights=["Game drives"]
        )
        payload = build_tour_package_payload(form, image())
        assert payload.get("groupSize") == ["2-6"]
        assert payload.get("isActive") == ["true"]
        assert json.loads(payload.get("highlights")[0]) == ["Game drives"]
        assert "included" not in fields(payload)
        assert payload.file_keys() == ["image"]

    def test_tour_package_image_must_be_image(self):
        """The featured package image must be an image."""
        form = TourPackageForm(title="t", description="d", duration="1", price="1", groupSize="1")
        with pytest.raises(FormValidationError):
            build_tour_package_payload(form, image("x.pdf", "application/pdf"))

    def test_lodge(self):
        """Lodge lists repeat keys and non-images are dropped."""
        form = LodgeForm(
            name="Mara Camp", location="Narok", destination="Masai Mara", description="Tented camp",
            openMonths=["June", "July"], campType=["Tented"], latitude="",
        )
        payload = build_lodge_payload(form, [image(), image("doc.pdf", "application/pdf")], existing_images=[])
        assert payload.get("openMonths") == ["June", "July"]
        assert payload.get("campType") == ["Tented"]
        assert json.loads(payload.get("images")[0]) == []
        assert "latitude" not in fields(payload)
        assert payload.file_keys() == ["lodge_gallery"]
