from __future__ import annotations

import html
import re
from collections.abc import Sequence
from typing import Any

import polyline

from ..errors import InvalidRequest, NoRouteFound, ServiceUnavailable
from ..geo import format_coordinate
from ..models import ProviderKind, RouteResult, Step, TravelMode, Waypoint
from ..settings import settings
from .base import HttpProviderAdapter

GOOGLE_TRAVEL_MODES: dict[TravelMode, str] = {
    TravelMode.DRIVING: "DRIVING",
    TravelMode.WALKING: "WALKING",
    TravelMode.CYCLING: "BICYCLING",
    TravelMode.TRANSIT: "TRANSIT",
}

_BLOCK_TAG_RE = re.compile(r"<\s*(?:div|br)[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def _lat_lng(wp: Waypoint) -> str:
    return f"{format_coordinate(wp.lat)},{format_coordinate(wp.lng)}"


def strip_html_instructions(value: str) -> str:
    """Reduce Google's HTML step instructions to plain text."""
    text = _BLOCK_TAG_RE.sub(" ", value or "")
    text = _TAG_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


def normalize_google_response(payload: dict[str, Any]) -> RouteResult:
    """
    Convert a Directions web service response into a RouteResult.

    Distance and duration are summed over every leg; steps are flattened in
    leg order and tagged with their leg/step indices. The overview polyline is
    decoded into the geometry and also kept verbatim.
    """
    routes = payload.get("routes") or []
    if not routes:
        raise NoRouteFound("google returned no routes", provider=ProviderKind.GOOGLE.value)
    try:
        route = routes[0]
        distance = 0.0
        duration = 0.0
        steps: list[Step] = []
        for leg_index, leg in enumerate(route["legs"]):
            distance += float(leg["distance"]["value"])
            duration += float(leg["duration"]["value"])
            for step_index, raw_step in enumerate(leg.get("steps") or []):
                start = raw_step.get("start_location")
                steps.append(
                    Step(
                        instruction=strip_html_instructions(
                            raw_step.get("html_instructions") or raw_step.get("instructions") or ""
                        ),
                        distance_meters=float((raw_step.get("distance") or {}).get("value", 0)),
                        duration_seconds=float((raw_step.get("duration") or {}).get("value", 0)),
                        maneuver=raw_step.get("maneuver") or "",
                        leg_index=leg_index,
                        step_index=step_index,
                        start_location=(float(start["lat"]), float(start["lng"]))
                        if start
                        else None,
                    )
                )
        encoded = (route.get("overview_polyline") or {}).get("points")
        geometry: list[tuple[float, float]] = []
        if encoded:
            geometry = [(float(lat), float(lng)) for lat, lng in polyline.decode(encoded)]
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise ServiceUnavailable(
            f"google returned a malformed route: {exc!r}", provider=ProviderKind.GOOGLE.value
        ) from exc

    return RouteResult(
        provider=ProviderKind.GOOGLE,
        distance_meters=distance,
        duration_seconds=duration,
        geometry=geometry,
        steps=tuple(steps),
        overview_polyline=encoded or None,
    )


class GoogleDirectionsAdapter(HttpProviderAdapter):
    """
    Google Directions web service.

    Intermediate stops are sent as ordered stopovers. Google's own waypoint
    optimization stays off: the order handed in is authoritative.
    """

    kind = ProviderKind.GOOGLE
    status_field = "status"

    def build_request(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> tuple[str, dict[str, str]]:
        if not settings.GOOGLE_MAPS_API_KEY:
            raise InvalidRequest("GOOGLE_MAPS_API_KEY not configured", provider=self.kind.value)
        params = {
            "origin": _lat_lng(waypoints[0]),
            "destination": _lat_lng(waypoints[-1]),
            # The table holds API enum names; the web service takes them lower-cased
            "mode": GOOGLE_TRAVEL_MODES[TravelMode(travel_mode)].lower(),
            "units": self.distance_unit.value,
            "language": settings.DIRECTIONS_LANGUAGE,
            "key": settings.GOOGLE_MAPS_API_KEY,
        }
        intermediates = waypoints[1:-1]
        if intermediates:
            params["waypoints"] = "|".join(_lat_lng(wp) for wp in intermediates)
        return settings.GOOGLE_DIRECTIONS_URL, params

    def normalize(self, payload: dict[str, Any]) -> RouteResult:
        return normalize_google_response(payload)


__all__ = [
    "GOOGLE_TRAVEL_MODES",
    "GoogleDirectionsAdapter",
    "normalize_google_response",
    "strip_html_instructions",
]
