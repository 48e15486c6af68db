"""
API Routes for the admin console - Auth, analytics, reports and location search.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Optional
from datetime import date

from ..models.analytics import AnalyticsSnapshot, DashboardView
from ..models.location import Coordinates, LocationOption, MapView, PickerState
from ..models.session import AdminSession
from ..services.analytics import AnalyticsService, default_date_range
from ..services.api_client import get_backend_client
from ..services.auth import AuthService
from ..services.geocoding import LocationPicker, get_location_search
from ..services.reports import ReportService, ReportType
from .deps import get_session, service_errors


router = APIRouter(prefix="/api", tags=["admin-console"])


# Request/Response Models
class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    session_id: str
    message: str
    admin: dict
    role: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str


class MessageResponse(BaseModel):
    message: str


class PickerInput(BaseModel):
    value: str
    reason: str = "input"


class PickerClick(BaseModel):
    lat: float
    lon: float


class PickerSync(BaseModel):
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class PickerViewRequest(BaseModel):
    map_view: MapView


class PickerResponse(BaseModel):
    state: PickerState
    coordinates: Optional[Coordinates] = None


# Map pickers per console session
_pickers: dict[str, LocationPicker] = {}


def _picker(session: AdminSession) -> LocationPicker:
    picker = _pickers.get(session.session_id)
    if picker is None:
        picker = LocationPicker(get_location_search())
        _pickers[session.session_id] = picker
    return picker


# Endpoints

@router.post("/auth/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """Log in with admin credentials and open a console session."""
    with service_errors():
        session, message = await AuthService(get_backend_client()).login(request.email, request.password)
    return LoginResponse(
        session_id=session.session_id,
        message=message,
        admin=session.admin.model_dump(exclude_none=True),
        role=session.role
    )


@router.post("/auth/forgot", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest):
    """Request a password reset email."""
    with service_errors():
        message = await AuthService(get_backend_client()).forgot_password(request.email)
    return MessageResponse(message=message)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(session: AdminSession = Depends(get_session)):
    """End the console session."""
    AuthService(get_backend_client()).logout(session.session_id)
    _pickers.pop(session.session_id, None)
    return MessageResponse(message="Logged out")


@router.get("/session")
async def current_session(session: AdminSession = Depends(get_session)):
    """Who is logged in."""
    return {
        "session_id": session.session_id,
        "admin": session.admin.model_dump(exclude_none=True),
        "role": session.role,
        "open_drafts": list(session.drafts),
    }


@router.get("/analytics", response_model=AnalyticsSnapshot)
async def analytics_snapshot(session: AdminSession = Depends(get_session)):
    """Raw analytics aggregates."""
    with service_errors():
        return await AnalyticsService(get_backend_client()).snapshot(session.token)


@router.get("/analytics/dashboard", response_model=DashboardView)
async def analytics_dashboard(session: AdminSession = Depends(get_session)):
    """Overview cards and chart series for the dashboard."""
    with service_errors():
        return await AnalyticsService(get_backend_client()).dashboard(session.token)


@router.get("/analytics/date-range")
async def analytics_date_range():
    """Default dashboard date range: the current year."""
    start, end = default_date_range()
    return {"startDate": start.isoformat(), "endDate": end.isoformat()}


def _report_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    default_start, default_end = default_date_range()
    return start or default_start, end or default_end


@router.get("/reports/data")
async def report_preview(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    report_type: ReportType = Query(ReportType.ALL, alias="reportType"),
    session: AdminSession = Depends(get_session)
):
    """Preview report data for a date range."""
    start, end = _report_range(start_date, end_date)
    with service_errors():
        return await ReportService(get_backend_client()).preview(session.token, start, end, report_type)


@router.get("/reports/word")
async def report_word(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    report_type: ReportType = Query(ReportType.ALL, alias="reportType"),
    session: AdminSession = Depends(get_session)
):
    """Download the Word report."""
    start, end = _report_range(start_date, end_date)
    with service_errors():
        download = await ReportService(get_backend_client()).export_word(
            session.token, start, end, report_type
        )
    return Response(
        content=download.content,
        media_type=download.content_type,
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'}
    )


@router.get("/locations/search", response_model=list[LocationOption])
async def search_locations(q: str = Query("", description="Free-text place query")):
    """Ranked geocoder matches for a query."""
    return await get_location_search().search(q)


@router.get("/locations/picker", response_model=PickerResponse)
async def get_picker(session: AdminSession = Depends(get_session)):
    return PickerResponse(state=_picker(session).state)


@router.post("/locations/picker/input", response_model=PickerResponse)
async def picker_input(request: PickerInput, session: AdminSession = Depends(get_session)):
    """Feed autocomplete input; typed text is debounced before searching."""
    state = await _picker(session).on_input(request.value, request.reason)
    return PickerResponse(state=state)


@router.post("/locations/picker/select", response_model=PickerResponse)
async def picker_select(option: LocationOption, session: AdminSession = Depends(get_session)):
    picker = _picker(session)
    coordinates = picker.select(option)
    return PickerResponse(state=picker.state, coordinates=coordinates)


@router.post("/locations/picker/click", response_model=PickerResponse)
async def picker_click(request: PickerClick, session: AdminSession = Depends(get_session)):
    picker = _picker(session)
    coordinates = picker.click(request.lat, request.lon)
    return PickerResponse(state=picker.state, coordinates=coordinates)


@router.post("/locations/picker/sync", response_model=PickerResponse)
async def picker_sync(request: PickerSync, session: AdminSession = Depends(get_session)):
    """Follow coordinates typed into the form."""
    return PickerResponse(state=_picker(session).sync(request.latitude, request.longitude))


@router.put("/locations/picker/view", response_model=PickerResponse)
async def picker_view(request: PickerViewRequest, session: AdminSession = Depends(get_session)):
    return PickerResponse(state=_picker(session).set_map_view(request.map_view))


@router.delete("/locations/picker", response_model=MessageResponse)
async def reset_picker(session: AdminSession = Depends(get_session)):
    """Discard the picker so the next form starts from the world view."""
    picker = _pickers.pop(session.session_id, None)
    if picker is None:
        raise HTTPException(status_code=404, detail="No location picker open")
    picker.debouncer.cancel()
    return MessageResponse(message="Picker reset")
