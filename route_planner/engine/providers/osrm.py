from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models import ProviderKind, RouteResult, TravelMode, Waypoint
from ..settings import settings
from .base import HttpProviderAdapter, lng_lat_path, parse_lng_lat_route

OSRM_PROFILES: dict[TravelMode, str] = {
    TravelMode.DRIVING: "car",
    TravelMode.WALKING: "foot",
    TravelMode.CYCLING: "bike",
    TravelMode.TRANSIT: "car",
}


def _osrm_base() -> str:
    return settings.OSRM_BASE_URL.rstrip("/")


def normalize_osrm_response(payload: dict[str, Any]) -> RouteResult:
    """
    Convert an OSRM ``/route`` response into a RouteResult.

    OSRM steps frequently carry no text instruction; those read
    "Continue on {road name}" or plain "Continue".
    """
    return parse_lng_lat_route(payload, ProviderKind.OSRM, fill_missing_instructions=True)


class OsrmRouteAdapter(HttpProviderAdapter):
    kind = ProviderKind.OSRM

    def build_request(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> tuple[str, dict[str, str]]:
        profile = OSRM_PROFILES[TravelMode(travel_mode)]
        url = f"{_osrm_base()}/{profile}/{lng_lat_path(waypoints)}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        }
        return url, params

    def normalize(self, payload: dict[str, Any]) -> RouteResult:
        return normalize_osrm_response(payload)


__all__ = ["OSRM_PROFILES", "OsrmRouteAdapter", "normalize_osrm_response"]
