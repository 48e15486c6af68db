"""
Location Search Service.
Queries Nominatim with several strategies, then dedupes and ranks the results
for the map picker.
"""
import httpx
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import settings
from ..models.location import (
    Coordinates,
    LocationOption,
    MapView,
    PickerState,
    SELECTED_ZOOM,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_OPTIONS = 8
DUPLICATE_DISTANCE = 0.001
MIN_IMPORTANCE = 0.05

SAFARI_KEYWORDS = ("safari", "kenya", "tanzania", "africa")
LANDMARK_KEYWORDS = ("national park", "reserve", "mountain", "lake", "river")

ALWAYS_KEPT_TYPES = {"city", "town", "village", "national_park", "park", "nature_reserve"}
ALWAYS_KEPT_CATEGORIES = {"natural", "landuse"}

TYPE_SCORES = {
    "city": 5,
    "town": 4,
    "village": 3,
    "national_park": 6,
    "park": 6,
    "nature_reserve": 6,
    "mountain": 6,
    "lake": 6,
    "river": 6,
}


class GeocoderUnavailable(Exception):
    """Every search strategy failed."""


def search_strategies(query: str) -> list[dict]:
    """Query parameter sets to try for a search, in order."""
    lowered = query.lower()
    strategies = [{
        "q": query,
        "format": "json",
        "limit": 6,
        "addressdetails": 1,
        "extratags": 1,
        "namedetails": 1,
        "dedupe": 1,
    }]
    if any(word in lowered for word in SAFARI_KEYWORDS):
        strategies.append({
            "q": query,
            "format": "json",
            "limit": 4,
            "addressdetails": 1,
            "extratags": 1,
            "countrycodes": "KE,TZ,UG",
        })
    if any(word in lowered for word in LANDMARK_KEYWORDS):
        strategies.append({
            "q": query,
            "format": "json",
            "limit": 4,
            "addressdetails": 1,
            "extratags": 1,
            "featuretype": "landuse,natural",
        })
    return strategies


def _coord(item: dict, key: str) -> Optional[float]:
    try:
        return float(item.get(key))
    except (TypeError, ValueError):
        return None


def _importance(item: dict) -> float:
    try:
        return float(item.get("importance") or 0)
    except (TypeError, ValueError):
        return 0.0


def dedupe_results(results: list[dict]) -> list[dict]:
    """Drop results within 0.001 degrees on both axes of any earlier result."""
    seen: list[tuple[float, float]] = []
    unique: list[dict] = []
    for item in results:
        lat, lon = _coord(item, "lat"), _coord(item, "lon")
        if lat is None or lon is None:
            continue
        duplicate = any(
            abs(lat - seen_lat) < DUPLICATE_DISTANCE and abs(lon - seen_lon) < DUPLICATE_DISTANCE
            for seen_lat, seen_lon in seen
        )
        seen.append((lat, lon))
        if not duplicate:
            unique.append(item)
    return unique


def is_relevant(item: dict) -> bool:
    return (
        _importance(item) > MIN_IMPORTANCE
        or item.get("type") in ALWAYS_KEPT_TYPES
        or item.get("category") in ALWAYS_KEPT_CATEGORIES
    )


def type_score(item: dict) -> int:
    score = TYPE_SCORES.get(item.get("type"))
    if score:
        return score
    return 6 if item.get("category") == "natural" else 0


def rank_results(results: list[dict]) -> list[dict]:
    """Relevant results, best type first then most important, capped at eight."""
    relevant = [item for item in dedupe_results(results) if is_relevant(item)]
    relevant.sort(key=lambda item: (-type_score(item), -_importance(item)))
    return relevant[:MAX_OPTIONS]


def to_option(item: dict) -> LocationOption:
    name = item.get("display_name") or ""
    return LocationOption(
        label=name,
        value=name,
        lat=float(item["lat"]),
        lon=float(item["lon"]),
        type=item.get("type"),
        importance=_importance(item),
        category=item.get("category"),
        address=item.get("address") or {},
    )


class LocationSearchService:
    """Cached multi-strategy geocoder search."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        retry_delay: Optional[float] = None
    ):
        self.url = settings.geocoder_url
        self.headers = {"User-Agent": settings.geocoder_user_agent}
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout
        self.retry_delay = retry_delay if retry_delay is not None else settings.search_retry_delay
        self.transport = transport
        self._cache: dict[str, list[LocationOption]] = {}

    async def search(self, query: str) -> list[LocationOption]:
        """
        Search for places matching free text.
        Short queries and timeouts yield no options; other failures are retried once.
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        cache_key = query.lower()
        if cache_key in self._cache:
            return self._cache[cache_key]

        for attempt in range(2):
            try:
                options = await asyncio.wait_for(self._search_once(query), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Location search timed out for '{query}'")
                return []
            except GeocoderUnavailable as e:
                logger.error(f"Location search failed for '{query}': {e}")
                if attempt == 0:
                    await asyncio.sleep(self.retry_delay)
                    continue
                return []
            self._cache[cache_key] = options
            return options
        return []

    async def _search_once(self, query: str) -> list[LocationOption]:
        results: list[dict] = []
        failures = 0
        strategies = search_strategies(query)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for params in strategies:
                try:
                    response = await client.get(self.url, params=params, headers=self.headers)
                    response.raise_for_status()
                    data = response.json()
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Geocoder strategy failed: {e}")
                    failures += 1
                    continue
                if isinstance(data, list):
                    results.extend(data)

        if failures == len(strategies):
            raise GeocoderUnavailable(f"all {failures} strategies failed")
        return [to_option(item) for item in rank_results(results)]


class SearchDebouncer:
    """Runs only the latest of rapidly submitted searches, after a quiet period."""

    def __init__(self, delay: Optional[float] = None):
        self.delay = delay if delay is not None else settings.search_debounce_seconds
        self._pending: Optional[asyncio.Task] = None

    def cancel(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def submit(self, factory: Callable[[], Awaitable]):
        """Wait out the delay and run the search; None if a newer submit superseded it."""
        self.cancel()
        task = asyncio.create_task(self._delayed(factory))
        self._pending = task
        await asyncio.wait([task])
        if task.cancelled():
            return None
        if self._pending is task:
            self._pending = None
        return task.result()

    async def _delayed(self, factory: Callable[[], Awaitable]):
        await asyncio.sleep(self.delay)
        return await factory()


def _parse_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class LocationPicker:
    """Map picker state: autocomplete, marker and map center."""

    def __init__(self, search: LocationSearchService, debouncer: Optional[SearchDebouncer] = None):
        self.searcher = search
        self.debouncer = debouncer or SearchDebouncer()
        self.state = PickerState()

    async def on_input(self, value: str, reason: str = "input") -> PickerState:
        """Typed input schedules a debounced search; clearing the box resets options."""
        self.state.query = value
        if reason == "input" and value.strip():
            self.state.loading = True
            options = await self.debouncer.submit(lambda: self.searcher.search(value.strip()))
            if options is None:
                return self.state
            self.state.options = options
            self.state.loading = False
        elif not value.strip():
            self.debouncer.cancel()
            self.state.options = []
            self.state.loading = False
        return self.state

    def select(self, option: LocationOption) -> Coordinates:
        """Center on a chosen option and drop the marker there."""
        position = (option.lat, option.lon)
        self.state.center = position
        self.state.zoom = SELECTED_ZOOM
        self.state.marker = position
        self.state.selected = option
        return Coordinates(latitude=str(option.lat), longitude=str(option.lon))

    def click(self, lat: float, lon: float) -> Optional[Coordinates]:
        """Move the marker to a clicked point; the view stays where it is.

        Clicks reporting a zero coordinate are ignored.
        """
        if not lat or not lon:
            return None
        self.state.marker = (lat, lon)
        return Coordinates(latitude=str(lat), longitude=str(lon))

    def sync(self, latitude, longitude) -> PickerState:
        """Follow coordinates typed into the owning form."""
        lat, lon = _parse_float(latitude), _parse_float(longitude)
        if lat is not None and lon is not None:
            self.state.marker = (lat, lon)
            self.state.center = (lat, lon)
            self.state.zoom = SELECTED_ZOOM
        return self.state

    def set_map_view(self, view: MapView) -> PickerState:
        self.state.map_view = view
        return self.state


# Global instance
_search_service: Optional[LocationSearchService] = None


def get_location_search() -> LocationSearchService:
    """Get or create the location search service."""
    global _search_service
    if _search_service is None:
        _search_service = LocationSearchService()
    return _search_service


def set_location_search(service: Optional[LocationSearchService]):
    global _search_service
    _search_service = service
