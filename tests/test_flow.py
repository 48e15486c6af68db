"""Tests for console sessions, login and the API flow."""
import json
import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.session import AdminSession, SessionStore, session_store
from app.services.api_client import BackendClient, set_backend_client
from app.services.auth import AuthService, validate_email, validate_password
from app.services.errors import FormValidationError, SubmissionInProgress
from app.services.geocoding import LocationSearchService, set_location_search
from app.services.submission import SubmissionGuard


class FakeBackend:
    """Backend transport answering from a (method, path) route table."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        status, body = answer
        return httpx.Response(status, json=body)

    def client(self):
        return BackendClient(base_url="http://backend", transport=httpx.MockTransport(self))


LOGIN_OK = (200, {
    "success": True,
    "message": "Login successful",
    "data": {"token": "jwt-123", "admin": {"id": 1, "name": "Wanjiru", "email": "admin@akira.org", "role": "super-admin"}},
})


@pytest.fixture
def backend():
    fake = FakeBackend({("POST", "/api/admin-users/login"): LOGIN_OK})
    set_backend_client(fake.client())
    yield fake
    set_backend_client(None)
    session_store.clear()


@pytest.fixture
def api(backend):
    return TestClient(app)


@pytest.fixture
def headers(api):
    response = api.post("/api/auth/login", json={"email": "Admin@Akira.org ", "password": "secret1"})
    return {"X-Session-ID": response.json()["session_id"]}


class TestSession:
    """Test session management."""

    def test_session_creation(self):
        """A created session is stored with the admin profile."""
        store = SessionStore()
        session = store.create("tok", {"id": 3, "role": "editor"})
        assert store.get(session.session_id) is session
        assert session.role == "editor"
        assert session.drafts == {}

    def test_drafts(self):
        """Drafts open on a session and close again."""
        session = AdminSession(token="tok")
        draft = session.open_draft(destination_id="9")
        assert session.get_draft(draft.draft_id).destination_id == "9"
        session.close_draft(draft.draft_id)
        assert session.get_draft(draft.draft_id) is None

    def test_delete(self):
        """Deleted sessions can no longer be looked up."""
        store = SessionStore()
        session = store.create("tok")
        store.delete(session.session_id)
        assert store.get(session.session_id) is None


class TestSubmissionGuard:
    """Test double-submit protection."""

    @pytest.mark.asyncio
    async def test_second_submit_rejected(self):
        """A second submit of the same form waits for the first."""
        guard = SubmissionGuard()
        async with guard.hold("s1", "projects:create"):
            assert guard.is_busy("s1", "projects:create")
            assert not guard.is_busy("s2", "projects:create")
            with pytest.raises(SubmissionInProgress):
                async with guard.hold("s1", "projects:create"):
                    pass
        assert not guard.is_busy("s1", "projects:create")

    @pytest.mark.asyncio
    async def test_released_after_failure(self):
        """The guard is released when the submit raises."""
        guard = SubmissionGuard()
        with pytest.raises(RuntimeError):
            async with guard.hold("s1", "posts:create"):
                raise RuntimeError("backend down")
        assert not guard.is_busy("s1", "posts:create")


class TestAuth:
    """Test credential checks and login."""

    def test_email_and_password_rules(self):
        """Email shape and minimum password length."""
        assert validate_email("admin@akira.org")
        assert not validate_email("admin@akira")
        assert not validate_email("")
        assert validate_password("secret")
        assert not validate_password("12345")

    @pytest.mark.asyncio
    async def test_login_opens_session(self):
        """Login normalizes the email and stores the returned token."""
        fake = FakeBackend({("POST", "/api/admin-users/login"): LOGIN_OK})
        store = SessionStore()
        session, message = await AuthService(fake.client(), store).login(" ADMIN@akira.org", "secret1")
        assert message == "Login successful"
        assert session.token == "jwt-123"
        assert store.get(session.session_id) is session
        sent = json.loads(fake.requests[0].content)
        assert sent == {"email": "admin@akira.org", "password": "secret1"}
        assert "authorization" not in fake.requests[0].headers

    @pytest.mark.asyncio
    async def test_invalid_credentials_never_sent(self):
        """Invalid credentials are rejected locally."""
        fake = FakeBackend()
        service = AuthService(fake.client(), SessionStore())
        with pytest.raises(FormValidationError) as exc:
            await service.login("not-an-email", "secret1")
        assert exc.value.errors == ["Please enter a valid email address"]
        with pytest.raises(FormValidationError) as exc:
            await service.login("admin@akira.org", "123")
        assert exc.value.errors == ["Password must be at least 6 characters"]
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_forgot_password(self):
        """Forgot-password posts the email and relays the message."""
        fake = FakeBackend({("POST", "/api/auth/forgot"): (200, {"success": True, "message": "Email sent"})})
        message = await AuthService(fake.client(), SessionStore()).forgot_password("admin@akira.org")
        assert message == "Email sent"
        assert json.loads(fake.requests[0].content) == {"Email": "admin@akira.org"}


class TestApi:
    """End-to-end console requests against a fake backend."""

    def test_health_and_no_index_page(self, api):
        """Only the JSON API and the health check are served."""
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert api.get("/").status_code == 404

    def test_login_and_session(self, api, headers):
        """Login returns a session id that resolves to the admin."""
        response = api.get("/api/session", headers=headers)
        assert response.status_code == 200
        assert response.json()["role"] == "super-admin"

    def test_requires_session(self, api):
        """Protected routes need a known session id."""
        assert api.get("/api/projects").status_code == 401
        assert api.get("/api/projects", headers={"X-Session-ID": "nope"}).status_code == 401

    def test_login_validation(self, api):
        """Login validation errors come back as a 400 list."""
        response = api.post("/api/auth/login", json={"email": "bad", "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["detail"] == ["Please enter a valid email address"]

    def test_logout(self, api, headers):
        """Logout ends the session."""
        assert api.post("/api/auth/logout", headers=headers).status_code == 200
        assert api.get("/api/session", headers=headers).status_code == 401

    def test_list_projects_forwards_token(self, api, backend, headers):
        """Listing forwards the bearer token and drops 'all' filters."""
        backend.routes[("GET", "/api/projects")] = (200, {
            "success": True, "data": [{"id": 1, "name": "Borehole"}], "pagination": {"total": 1},
        })
        response = api.get("/api/projects?status=all&search=bore", headers=headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1
        request = backend.requests[-1]
        assert request.headers["authorization"] == "Bearer jwt-123"
        assert "status" not in request.url.params

    def test_create_project(self, api, backend, headers):
        """Project create forwards images as update_images."""
        backend.routes[("POST", "/api/projects")] = (201, {"success": True, "data": {"id": 5}})
        form = {"name": "Borehole", "description": "Water", "category": "community", "county": "Kitui"}
        response = api.post(
            "/api/projects",
            data={"form": json.dumps(form)},
            files=[("images", ("well.jpg", b"jpg", "image/jpeg"))],
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"id": 5}
        assert b'name="update_images"' in backend.requests[-1].content

    def test_create_project_missing_fields(self, api, backend, headers):
        """Missing required fields stop the request with a 400."""
        response = api.post("/api/projects", data={"form": json.dumps({"name": "Borehole"})}, headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == ["description is required", "county is required"]
        assert backend.requests[-1].url.path == "/api/admin-users/login"

    def test_malformed_form_json(self, api, headers):
        """A form that fails model validation is a 422."""
        response = api.post("/api/projects", data={"form": json.dumps({"category": "space"})}, headers=headers)
        assert response.status_code == 422

    def test_inquiries_get_labels(self, api, backend, headers):
        """Inquiry list items carry display labels."""
        backend.routes[("GET", "/api/inquiries")] = (200, {
            "success": True,
            "data": [{"id": 3, "status": "in_progress", "category": "volunteer"}],
            "pagination": {"total": 1},
        })
        item = api.get("/api/inquiries?status=in_progress", headers=headers).json()["items"][0]
        assert item["status_label"] == "In Progress"
        assert item["category_label"] == "Volunteer"
        assert backend.requests[-1].url.params["status"] == "in_progress"

    def test_backend_errors_translated(self, api, backend, headers):
        """Backend 404 passes through and 5xx becomes 502."""
        assert api.get("/api/posts/77", headers=headers).status_code == 404
        backend.routes[("GET", "/api/posts/78")] = (500, {"message": "db down"})
        response = api.get("/api/posts/78", headers=headers)
        assert response.status_code == 502
        assert response.json()["detail"] == "db down"

    def test_package_tree_draft(self, api, backend, headers):
        """Package tree edits on a draft are sent with the destination."""
        draft = api.post("/api/destinations/drafts", json={}, headers=headers).json()
        base = f"/api/destinations/drafts/{draft['draft_id']}"

        api.post(f"{base}/categories", json={"category_name": "SAFARI TOURS"}, headers=headers)
        api.post(f"{base}/categories/0/packages", headers=headers)
        api.put(f"{base}/categories/0/packages/0", json={"title": "Mara Explorer"}, headers=headers)
        tree = api.post(
            f"{base}/categories/0/packages/0/gallery",
            files=[("files", ("m.jpg", b"jpg", "image/jpeg")), ("files", ("m.txt", b"txt", "text/plain"))],
            headers=headers,
        ).json()["tree"]
        package = tree[0]["packages"][0]
        assert package["title"] == "Mara Explorer"
        assert [g["filename"] for g in package["gallery"]] == ["m.jpg"]

        missing = api.delete(f"{base}/categories/3", headers=headers)
        assert missing.status_code == 404

        backend.routes[("POST", "/api/destinations")] = (201, {"success": True, "data": {"id": 12}})
        form = {"title": "Masai Mara", "description": "Migration", "location": "Kenya"}
        response = api.post(
            "/api/destinations",
            data={"form": json.dumps(form), "draft_id": draft["draft_id"]},
            headers=headers,
        )
        assert response.status_code == 200
        body = backend.requests[-1].content
        assert b'name="package_gallery_0_0"' in body
        assert b"Mara Explorer" in body
        assert api.get(base, headers=headers).status_code == 404

    def test_destination_attraction_images(self, api, backend, headers):
        """Attraction file parts are forwarded under their attraction index."""
        backend.routes[("PUT", "/api/destinations/1")] = (200, {"success": True, "data": {"id": 1}})
        form = {
            "title": "Amboseli", "description": "Elephants", "location": "Kenya",
            "attractions": [{"name": "Observation Hill", "images": ["uploads/h.jpg"]}],
        }
        response = api.put(
            "/api/destinations/1",
            data={"form": json.dumps(form)},
            files=[("attraction_images_0", ("hill.jpg", b"jpg", "image/jpeg"))],
            headers=headers,
        )
        assert response.status_code == 200
        body = backend.requests[-1].content
        assert b'name="attraction_images_0"; filename="hill.jpg"' in body
        assert b"uploads/h.jpg" in body

    def test_destination_attraction_index_out_of_range(self, api, backend, headers):
        """Files for an attraction that is not on the form are rejected."""
        form = {"title": "Amboseli", "description": "Elephants", "location": "Kenya"}
        response = api.put(
            "/api/destinations/1",
            data={"form": json.dumps(form)},
            files=[("attraction_images_2", ("hill.jpg", b"jpg", "image/jpeg"))],
            headers=headers,
        )
        assert response.status_code == 422
        assert backend.requests[-1].url.path == "/api/admin-users/login"

    def test_save_stage_returns_reloaded_list(self, api, backend, headers):
        """Saving a stage answers with the stage list reloaded from the package."""
        backend.routes[("POST", "/api/route-stages")] = (201, {"success": True, "data": {"id": 21}})
        backend.routes[("GET", "/api/packages/4")] = (200, {"success": True, "data": {"routeStages": [
            {"id": 21, "stage": 2, "name": "Mara", "images": ["uploads/m.jpg", "blob:http://x/1"]},
            {"id": 20, "stage": 1, "name": "Nairobi"},
        ]}})
        stage = {"stage": 2, "name": "Mara", "description": "Game drives", "duration": "2 nights"}
        response = api.post("/api/packages/4/stages", json=stage, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["stage"] == {"id": 21}
        assert [s["name"] for s in body["stages"]] == ["Nairobi", "Mara"]
        assert body["stages"][1]["image_urls"] == ["/uploads/m.jpg"]

    def test_stage_preview(self, api):
        """Preview sorts stages and rejects incomplete ones."""
        stages = [{"stage": 2, "name": "B", "description": "d", "duration": "1 night"}]
        new = {"stage": 1, "name": "A", "description": "d", "duration": "2 nights"}
        response = api.post("/api/route-stages/preview", json={"stages": stages, "stage": new})
        assert [s["name"] for s in response.json()] == ["A", "B"]

        incomplete = api.post("/api/route-stages/preview", json={"stage": {"stage": 1, "name": "A"}})
        assert incomplete.status_code == 400

    def test_location_search_and_picker(self, api, headers):
        """Search results drive the per-session picker."""
        def geocoder(request):
            return httpx.Response(200, json=[{
                "display_name": "Arusha, Tanzania", "lat": "-3.37", "lon": "36.68",
                "type": "city", "importance": 0.6,
            }])

        set_location_search(LocationSearchService(transport=httpx.MockTransport(geocoder), retry_delay=0))
        try:
            options = api.get("/api/locations/search?q=Arusha").json()
            assert options[0]["label"] == "Arusha, Tanzania"

            response = api.post("/api/locations/picker/select", json=options[0], headers=headers).json()
            assert response["coordinates"] == {"latitude": "-3.37", "longitude": "36.68"}
            assert response["state"]["zoom"] == 13

            clicked = api.post("/api/locations/picker/click", json={"lat": -1.29, "lon": 36.82}, headers=headers).json()
            assert clicked["coordinates"] == {"latitude": "-1.29", "longitude": "36.82"}
            ignored = api.post("/api/locations/picker/click", json={"lat": 0, "lon": 0}, headers=headers).json()
            assert ignored["coordinates"] is None
            assert ignored["state"]["marker"] == [-1.29, 36.82]

            assert api.delete("/api/locations/picker", headers=headers).status_code == 200
            assert api.delete("/api/locations/picker", headers=headers).status_code == 404
        finally:
            set_location_search(None)
