"""
Journey map rendering.

This module draws a bear's journey (origin marker, sighting markers, path line
and popups) onto a Leaflet map built with folium, and manages the lifetime of
the map surface: one surface per redraw, released before the next one is
acquired and whenever the owning view is closed.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import hashlib
import html
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import folium

from logic.config import load_config
from logic.journey import Journey, has_coordinates

logger = logging.getLogger(__name__)

MARKER_RADIUS = 8
LATEST_SCALE = 1.4
LINE_WEIGHT = 4
LINE_OPACITY = 0.8
POPUP_MAX_WIDTH = 300


class MapSurfaceReleased(RuntimeError):
    """Raised when a released map surface is used again."""


class MapSurface:
    """Owned handle on a folium map.

    Use as a context manager, or call release() on every exit path.
    """

    def __init__(self, center: Tuple[float, float], zoom_start: float, tiles: str = "OpenStreetMap"):
        self._map: Optional[folium.Map] = folium.Map(
            location=[center[0], center[1]],
            zoom_start=zoom_start,
            tiles=tiles,
        )
        logger.debug("Acquired map surface centred on %s", center)

    @property
    def released(self) -> bool:
        return self._map is None

    @property
    def map(self) -> folium.Map:
        if self._map is None:
            raise MapSurfaceReleased("Map surface has been released")
        return self._map

    def add(self, layer):
        """Add a folium layer (marker, line ...) to the surface."""
        layer.add_to(self.map)
        return layer

    def to_html(self) -> str:
        """Render the surface as a standalone HTML document."""
        return self.map.get_root().render()

    def release(self) -> None:
        if self._map is not None:
            self._map = None
            logger.debug("Released map surface")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def acquire_surface(center: Tuple[float, float], zoom_start: float = None, config: Dict[str, Any] = None) -> MapSurface:
    """Create a new map surface using the configured tiles and zoom."""
    map_config = (config or load_config())["map"]
    zoom = map_config["zoom_start"] if zoom_start is None else zoom_start
    return MapSurface(center, zoom, map_config["tiles"])


def bear_color(bear: Dict[str, Any], config: Dict[str, Any] = None) -> str:
    """Get the stable color assigned to a bear.

    An explicit ``color`` on the bear wins, then the ``bear_colors`` table in
    the config, then a palette entry chosen from a hash of the bear id.

    Args:
        bear: Bear dictionary.
        config: Configuration dictionary. Loaded when omitted.

    Returns:
        Hex color string.
    """
    config = config or load_config()
    if bear.get("color"):
        return bear["color"]

    bear_id = str(bear.get("id") or "")
    if bear_id in config["bear_colors"]:
        return config["bear_colors"][bear_id]
    if not bear_id:
        return config["default_color"]

    palette = config["palette"]
    digest = hashlib.sha1(bear_id.encode("utf-8")).hexdigest()
    return palette[int(digest, 16) % len(palette)]


def _place(city: Any, country: Any) -> str:
    return ", ".join(html.escape(str(p)) for p in (city, country) if p)


def origin_popup_html(bear: Dict[str, Any]) -> str:
    name = html.escape(str(bear.get("name") or "Bear"))
    return f"<strong>{name}'s Home</strong><br/>{_place(bear.get('city'), bear.get('country'))}"


def report_popup_html(report: Dict[str, Any], is_latest: bool = False) -> str:
    parts = [f"<strong>{_place(report.get('city'), report.get('country'))}</strong><br/>"]
    if is_latest:
        parts.append("&#128205; <strong>Current location</strong><br/>")
    if report.get("message"):
        parts.append(html.escape(str(report["message"])))
    return "".join(parts)


def _latest_index(valid: List[Dict[str, Any]], latest: Optional[Dict[str, Any]]) -> Optional[int]:
    if latest is None:
        return None
    for i, report in enumerate(valid):
        if report is latest:
            return i
    # Reports list may be a copy of the one the journey was built from
    for i, report in enumerate(valid):
        if report == latest:
            return i
    return None


def draw_journey(
    surface: MapSurface,
    bear: Dict[str, Any],
    journey: Journey,
    reports: Sequence[Dict[str, Any]],
    color: str,
) -> None:
    """Draw origin marker, sighting markers and the path line onto a surface.

    Reports lacking numeric coordinates are skipped. The most recent report
    according to the journey's ordering is drawn larger and labelled as the
    current location.

    Args:
        surface: Fresh map surface to draw on.
        bear: Bear dictionary (name, origin place).
        journey: Assembled journey for the bear.
        reports: Raw reports for the bear, in any order.
        color: Color assigned to the bear.
    """
    points = journey.points
    if len(points) >= 2:
        surface.add(folium.PolyLine(
            [list(p) for p in points],
            color=color,
            weight=LINE_WEIGHT,
            opacity=LINE_OPACITY,
        ))

    surface.add(folium.Marker(
        list(journey.origin),
        popup=folium.Popup(origin_popup_html(bear), max_width=POPUP_MAX_WIDTH),
        tooltip="Home",
        icon=folium.Icon(color="blue", icon="home", prefix="fa"),
    ))

    valid = [r for r in reports if has_coordinates(r)]
    skipped = len(reports) - len(valid)
    if skipped:
        logger.warning("Skipped %d report(s) without coordinates for bear %s", skipped, bear.get("id"))

    latest_index = _latest_index(valid, journey.latest)
    for i, report in enumerate(valid):
        is_latest = i == latest_index
        surface.add(folium.CircleMarker(
            [report["latitude"], report["longitude"]],
            radius=MARKER_RADIUS * (LATEST_SCALE if is_latest else 1),
            color=color,
            weight=3 if is_latest else 2,
            fill=True,
            fill_color=color,
            fill_opacity=0.9 if is_latest else 0.7,
            popup=folium.Popup(report_popup_html(report, is_latest), max_width=POPUP_MAX_WIDTH),
        ))


def draw_overview(surface: MapSurface, entries: Sequence[Tuple[Dict[str, Any], Journey]], config: Dict[str, Any]) -> None:
    """Draw every bear's current location and path onto a single surface.

    Args:
        surface: Fresh map surface to draw on.
        entries: (bear, journey) pairs.
        config: Configuration dictionary, used for colors.
    """
    for bear, journey in entries:
        color = bear_color(bear, config)
        points = journey.points
        if len(points) >= 2:
            surface.add(folium.PolyLine(
                [list(p) for p in points],
                color=color,
                weight=LINE_WEIGHT,
                opacity=LINE_OPACITY,
            ))

        latest = journey.latest or {}
        name = html.escape(str(bear.get("name") or "Bear"))
        place = _place(latest.get("city") or bear.get("city"), latest.get("country") or bear.get("country"))
        message = html.escape(str(latest.get("message") or ""))
        link = f"/bear/{html.escape(str(bear.get('id')), quote=True)}"
        popup = f"<strong>{name}</strong><br/>{place}<br/>{message}<br/><a href=\"{link}\" target=\"_top\">View journey</a>"

        surface.add(folium.CircleMarker(
            list(journey.current_location),
            radius=MARKER_RADIUS * LATEST_SCALE,
            color=color,
            fill=True,
            fill_color=color,
            fill_opacity=0.9,
            tooltip=bear.get("name"),
            popup=folium.Popup(popup, max_width=POPUP_MAX_WIDTH),
        ))


SurfaceFactory = Callable[[Tuple[float, float]], MapSurface]


class JourneyMapView:
    """Owner of the map surface for one bear's journey page.

    A redraw happens only when the journey or the report list passed to
    update() is a different object from the previous call. Every redraw
    releases the previous surface before acquiring a new one.

    Server-rendered pages build a fresh journey per request and render it
    through render_journey_html(), so they redraw on every request. Callers
    that hold a view across updates get the identity check.
    """

    def __init__(self, bear: Dict[str, Any], config: Dict[str, Any] = None, surface_factory: SurfaceFactory = None):
        self.bear = bear
        self.config = config or load_config()
        self.color = bear_color(bear, self.config)
        self._surface_factory = surface_factory or (lambda center: acquire_surface(center, config=self.config))
        self._surface: Optional[MapSurface] = None
        self._inputs: Optional[Tuple[Journey, Sequence[Dict[str, Any]]]] = None
        self._html: Optional[str] = None
        self._closed = False
        self.redraw_count = 0

    @property
    def surface(self) -> Optional[MapSurface]:
        return self._surface

    def update(self, journey: Journey, reports: Sequence[Dict[str, Any]]) -> str:
        """Redraw the map if its inputs changed, and return its HTML.

        Raises:
            MapSurfaceReleased: If the view has been closed.
        """
        if self._closed:
            raise MapSurfaceReleased("Map view has been closed")

        if self._inputs is not None and self._inputs[0] is journey and self._inputs[1] is reports:
            return self._html

        self._release_surface()
        self._surface = self._surface_factory(journey.origin)
        try:
            draw_journey(self._surface, self.bear, journey, reports, self.color)
            self._html = self._surface.to_html()
        except Exception:
            self._release_surface()
            self._inputs = None
            raise

        self._inputs = (journey, reports)
        self.redraw_count += 1
        return self._html

    def _release_surface(self) -> None:
        if self._surface is not None:
            self._surface.release()
            self._surface = None

    def close(self) -> None:
        self._release_surface()
        self._inputs = None
        self._html = None
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def render_journey_html(bear: Dict[str, Any], journey: Journey, reports: Sequence[Dict[str, Any]], config: Dict[str, Any] = None) -> str:
    """Render a bear's journey map to HTML inside a short-lived view.

    The view is closed before returning, so nothing is cached between calls.
    """
    with JourneyMapView(bear, config) as view:
        return view.update(journey, reports)


def render_overview_html(entries: Sequence[Tuple[Dict[str, Any], Journey]], config: Dict[str, Any] = None) -> str:
    """Render the all-bears overview map to HTML."""
    config = config or load_config()
    map_config = config["map"]
    with acquire_surface(tuple(map_config["overview_center"]), map_config["overview_zoom"], config) as surface:
        draw_overview(surface, entries, config)
        return surface.to_html()
