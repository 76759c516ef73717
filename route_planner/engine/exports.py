"""
Deep links into Google/Apple Maps and GPX 1.1 downloads.

Every export needs at least two waypoints; below that each builder returns
None instead of raising, so callers can hide the export actions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from urllib.parse import quote

import gpxpy
import gpxpy.gpx

from .geo import format_coordinate
from .models import TravelMode, Waypoint
from .settings import settings

GOOGLE_MAPS_DIR_URL = "https://www.google.com/maps/dir/"
APPLE_MAPS_URL = "https://maps.apple.com/"
GPX_MEDIA_TYPE = "application/gpx+xml"
DEFAULT_GPX_NAME = "route"

GOOGLE_URL_TRAVEL_MODES: dict[TravelMode, str] = {
    TravelMode.DRIVING: "driving",
    TravelMode.WALKING: "walking",
    TravelMode.CYCLING: "bicycling",
    TravelMode.TRANSIT: "transit",
}

# Apple Maps has no cycling directions; cyclists get walking directions.
APPLE_DIRECTION_FLAGS: dict[TravelMode, str] = {
    TravelMode.DRIVING: "d",
    TravelMode.WALKING: "w",
    TravelMode.CYCLING: "w",
    TravelMode.TRANSIT: "r",
}


def _encode(value: str) -> str:
    # Same reserved set as encodeURIComponent
    return quote(value, safe="!~*'()")


def _lat_lng(wp: Waypoint) -> str:
    return f"{format_coordinate(wp.lat)},{format_coordinate(wp.lng)}"


def can_export(waypoints: Sequence[Waypoint]) -> bool:
    return len(waypoints) >= 2


def google_maps_url(
    waypoints: Sequence[Waypoint], travel_mode: TravelMode | str = TravelMode.DRIVING
) -> str | None:
    if not can_export(waypoints):
        return None
    mode = GOOGLE_URL_TRAVEL_MODES[TravelMode(travel_mode)]
    url = (
        f"{GOOGLE_MAPS_DIR_URL}?api=1"
        f"&origin={_encode(_lat_lng(waypoints[0]))}"
        f"&destination={_encode(_lat_lng(waypoints[-1]))}"
        f"&travelmode={mode}"
    )
    if len(waypoints) > 2:
        intermediate = "|".join(_lat_lng(wp) for wp in waypoints[1:-1])
        url += f"&waypoints={_encode(intermediate)}"
    return url


def apple_maps_url(
    waypoints: Sequence[Waypoint], travel_mode: TravelMode | str = TravelMode.DRIVING
) -> str | None:
    """Apple Maps only takes a start and an end; intermediate stops are not carried."""
    if not can_export(waypoints):
        return None
    flag = APPLE_DIRECTION_FLAGS[TravelMode(travel_mode)]
    return (
        f"{APPLE_MAPS_URL}?saddr={_encode(_lat_lng(waypoints[0]))}"
        f"&daddr={_encode(_lat_lng(waypoints[-1]))}"
        f"&dirflg={flag}"
    )


def _gpx_time(now: datetime | None) -> datetime:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    # Millisecond precision is what map apps show; drop the rest
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def generate_gpx(
    waypoints: Sequence[Waypoint],
    *,
    name: str | None = None,
    now: datetime | None = None,
    creator: str | None = None,
) -> str | None:
    """
    Serialize waypoints as a GPX 1.1 document.

    One ``<wpt>`` per waypoint in list order; names fall back from label to
    address to "Waypoint {n}". gpxpy escapes text and attribute values.
    """
    if not can_export(waypoints):
        return None

    gpx = gpxpy.gpx.GPX()
    gpx.creator = creator or settings.GPX_CREATOR
    gpx.name = name or DEFAULT_GPX_NAME
    gpx.time = _gpx_time(now)
    for index, wp in enumerate(waypoints, start=1):
        gpx.waypoints.append(
            gpxpy.gpx.GPXWaypoint(
                latitude=wp.lat,
                longitude=wp.lng,
                name=wp.display_name or f"Waypoint {index}",
            )
        )
    return gpx.to_xml(version="1.1")


def gpx_filename(name: str | None = None) -> str:
    return f"{name or DEFAULT_GPX_NAME}.gpx"


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 filename."""
    fallback = filename.encode("ascii", "ignore").decode("ascii").strip()
    if not fallback or fallback.startswith("."):
        fallback = gpx_filename()
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


__all__ = [
    "APPLE_DIRECTION_FLAGS",
    "GOOGLE_URL_TRAVEL_MODES",
    "GPX_MEDIA_TYPE",
    "apple_maps_url",
    "can_export",
    "content_disposition",
    "generate_gpx",
    "google_maps_url",
    "gpx_filename",
]
