from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import InvalidRequest
from ..models import ProviderKind, RouteResult, TravelMode, Waypoint
from ..settings import settings
from .base import HttpProviderAdapter, lng_lat_path, parse_lng_lat_route

# Mapbox has no transit profile; transit requests are routed as driving.
MAPBOX_PROFILES: dict[TravelMode, str] = {
    TravelMode.DRIVING: "driving",
    TravelMode.WALKING: "walking",
    TravelMode.CYCLING: "cycling",
    TravelMode.TRANSIT: "driving",
}


def normalize_mapbox_response(payload: dict[str, Any]) -> RouteResult:
    return parse_lng_lat_route(payload, ProviderKind.MAPBOX)


class MapboxDirectionsAdapter(HttpProviderAdapter):
    kind = ProviderKind.MAPBOX

    def build_request(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> tuple[str, dict[str, str]]:
        if not settings.MAPBOX_ACCESS_TOKEN:
            raise InvalidRequest("MAPBOX_ACCESS_TOKEN not configured", provider=self.kind.value)
        profile = MAPBOX_PROFILES[TravelMode(travel_mode)]
        base = settings.MAPBOX_DIRECTIONS_URL.rstrip("/")
        url = f"{base}/{profile}/{lng_lat_path(waypoints)}"
        params = {
            "access_token": settings.MAPBOX_ACCESS_TOKEN,
            "geometries": "geojson",
            "steps": "true",
            "overview": "full",
            "language": settings.DIRECTIONS_LANGUAGE,
        }
        return url, params

    def normalize(self, payload: dict[str, Any]) -> RouteResult:
        return normalize_mapbox_response(payload)


__all__ = ["MAPBOX_PROFILES", "MapboxDirectionsAdapter", "normalize_mapbox_response"]
