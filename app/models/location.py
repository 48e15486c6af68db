"""
Location models - Geocoder options and map picker state.
"""
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class MapView(str, Enum):
    """Base map layers offered by the picker."""
    OSM = "osm"
    SATELLITE = "satellite"
    TERRAIN = "terrain"


DEFAULT_CENTER = (0.0, 0.0)
DEFAULT_ZOOM = 2
SELECTED_ZOOM = 13


class LocationOption(BaseModel):
    """A ranked geocoder result offered in the autocomplete."""
    label: str
    value: str
    lat: float
    lon: float
    type: Optional[str] = None
    importance: float = 0.0
    category: Optional[str] = None
    address: dict = Field(default_factory=dict)


class Coordinates(BaseModel):
    """Coordinates emitted to the owning form, as strings."""
    latitude: str
    longitude: str


class PickerState(BaseModel):
    """Map center, marker and autocomplete state."""
    center: tuple[float, float] = DEFAULT_CENTER
    zoom: int = DEFAULT_ZOOM
    marker: Optional[tuple[float, float]] = None
    query: str = ""
    options: list[LocationOption] = Field(default_factory=list)
    loading: bool = False
    map_view: MapView = MapView.OSM
    selected: Optional[LocationOption] = None
