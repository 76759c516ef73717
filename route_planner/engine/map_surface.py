from __future__ import annotations

import html
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .formatting import marker_color, marker_label
from .models import Coordinate, MarkerStyle, Waypoint

BOUNDS_PADDING_RATIO = 0.1
MIN_BOUNDS_PADDING = 0.01


@dataclass(frozen=True, slots=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class Bounds:
    southwest: LatLng
    northeast: LatLng


@dataclass(frozen=True, slots=True)
class RouteLineStyle:
    color: str = "#4285F4"
    weight: float = 4
    opacity: float = 0.8


@dataclass(frozen=True, slots=True)
class MarkerColors:
    start: str | None = None
    waypoint: str | None = None
    end: str | None = None


class MapSurface(Protocol):
    """
    Whatever actually draws the map (Leaflet, Google Maps JS, a test double).

    Handles returned by the ``add_*``/``draw_route`` calls are opaque to the
    session and only ever passed back to ``clear_route``.
    """

    def add_marker(self, position: LatLng, *, label: str, color: str) -> Any: ...

    def add_popup(self, marker: Any, content: str) -> Any: ...

    def draw_route(self, path: Sequence[LatLng], style: RouteLineStyle) -> Any: ...

    def clear_route(self, handles: Sequence[Any]) -> None: ...

    def fit_bounds(self, bounds: Bounds) -> None: ...


def route_bounds(waypoints: Sequence[Waypoint]) -> Bounds | None:
    """Box around every waypoint, padded 10% per axis (0.01 degrees when flat)."""
    if not waypoints:
        return None
    lats = [wp.lat for wp in waypoints]
    lngs = [wp.lng for wp in waypoints]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)
    lat_padding = (max_lat - min_lat) * BOUNDS_PADDING_RATIO or MIN_BOUNDS_PADDING
    lng_padding = (max_lng - min_lng) * BOUNDS_PADDING_RATIO or MIN_BOUNDS_PADDING
    return Bounds(
        southwest=LatLng(min_lat - lat_padding, min_lng - lng_padding),
        northeast=LatLng(max_lat + lat_padding, max_lng + lng_padding),
    )


def popup_html(waypoint: Waypoint, *, view_label: str = "View") -> str:
    parts = [
        '<div class="route-popup">',
        f'<div class="route-popup-title">{html.escape(waypoint.display_name)}</div>',
    ]
    if waypoint.address:
        parts.append(f'<div class="route-popup-address">{html.escape(waypoint.address)}</div>')
    if waypoint.permalink:
        parts.append(
            f'<a href="{html.escape(waypoint.permalink, quote=True)}" class="route-popup-link" '
            f'target="_blank">{html.escape(view_label)}</a>'
        )
    parts.append("</div>")
    return "".join(parts)


class MapOverlay:
    """Tracks what a session drew on a MapSurface so it can all be removed again."""

    def __init__(
        self,
        surface: MapSurface,
        *,
        marker_style: MarkerStyle = MarkerStyle.NUMBERED,
        marker_colors: MarkerColors | None = None,
        line_style: RouteLineStyle | None = None,
    ) -> None:
        self.surface = surface
        self.marker_style = MarkerStyle(marker_style)
        self.marker_colors = marker_colors or MarkerColors()
        self.line_style = line_style or RouteLineStyle()
        self._handles: list[Any] = []

    @property
    def drawn(self) -> bool:
        return bool(self._handles)

    def render(self, waypoints: Sequence[Waypoint], geometry: Sequence[Coordinate]) -> None:
        self.clear()
        total = len(waypoints)
        for index, wp in enumerate(waypoints):
            marker = self.surface.add_marker(
                LatLng(wp.lat, wp.lng),
                label=marker_label(index, self.marker_style),
                color=marker_color(
                    index,
                    total,
                    start_color=self.marker_colors.start,
                    waypoint_color=self.marker_colors.waypoint,
                    end_color=self.marker_colors.end,
                ),
            )
            self._handles.append(marker)
            self._handles.append(self.surface.add_popup(marker, popup_html(wp)))
        if geometry:
            path = [LatLng(lat, lng) for lat, lng in geometry]
            self._handles.append(self.surface.draw_route(path, self.line_style))
        bounds = route_bounds(waypoints)
        if bounds is not None:
            self.surface.fit_bounds(bounds)

    def clear(self) -> None:
        if not self._handles:
            return
        handles, self._handles = self._handles, []
        self.surface.clear_route(handles)


__all__ = [
    "Bounds",
    "LatLng",
    "MapOverlay",
    "MapSurface",
    "MarkerColors",
    "RouteLineStyle",
    "popup_html",
    "route_bounds",
]
