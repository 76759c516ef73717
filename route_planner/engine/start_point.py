from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .errors import GeolocationUnavailable
from .geo import validate_coordinates
from .models import StartPointMode, Waypoint
from .settings import MAX_GEOLOCATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

USER_LOCATION_LABEL = "Your location"
CUSTOM_START_LABEL = "Start"


class GeolocationSource(Protocol):
    async def current_position(self) -> tuple[float, float]:
        """Return the device position as ``(lat, lng)`` or raise GeolocationUnavailable."""
        ...


@dataclass(slots=True)
class CustomStart:
    lat: float
    lng: float
    address: str = ""

    def __post_init__(self) -> None:
        validate_coordinates(self.lat, self.lng, context="custom start")


@dataclass(slots=True)
class FixedPosition:
    """A position already known to the caller, e.g. one the browser sent along."""

    lat: float
    lng: float

    async def current_position(self) -> tuple[float, float]:
        return self.lat, self.lng


def _mark_first(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    if not waypoints:
        return []
    return [waypoints[0].as_start()] + [wp.without_start() for wp in waypoints[1:]]


def _prepend(start: Waypoint, waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    return [start] + [wp.without_start() for wp in waypoints]


async def _locate(geolocation: GeolocationSource, timeout: float) -> tuple[float, float] | None:
    bound = MAX_GEOLOCATION_TIMEOUT_SECONDS
    if timeout > 0:
        bound = min(timeout, MAX_GEOLOCATION_TIMEOUT_SECONDS)
    try:
        lat, lng = await asyncio.wait_for(geolocation.current_position(), timeout=bound)
        validate_coordinates(lat, lng, context="device position")
    except asyncio.TimeoutError:
        logger.warning("Geolocation timed out after %.1fs; starting at first stop", bound)
        return None
    except GeolocationUnavailable as exc:
        logger.warning("Geolocation unavailable (%s); starting at first stop", exc)
        return None
    except ValueError as exc:
        logger.warning("Geolocation returned an invalid position (%s); starting at first stop", exc)
        return None
    return lat, lng


async def resolve_start_point(
    mode: StartPointMode | str,
    waypoints: Sequence[Waypoint],
    *,
    custom_start: CustomStart | None = None,
    geolocation: GeolocationSource | None = None,
    timeout: float = MAX_GEOLOCATION_TIMEOUT_SECONDS,
) -> list[Waypoint]:
    """
    Decide where the route begins.

    - ``user_location``: prepend the device position; any failure to obtain it
      (denial, timeout, no source) falls back to ``first_stop``.
    - ``custom``: prepend the configured start, or leave the set unchanged
      when none is configured.
    - ``first_stop``: flag the first existing waypoint as the start.

    Returns a new list; the input is left untouched. At most one waypoint of
    the result carries ``is_start``.
    """
    mode = StartPointMode(mode)

    if mode is StartPointMode.USER_LOCATION:
        position = None
        if geolocation is None:
            logger.warning("No geolocation source configured; starting at first stop")
        else:
            position = await _locate(geolocation, timeout)
        if position is None:
            return _mark_first(waypoints)
        start = Waypoint(
            lat=position[0],
            lng=position[1],
            label=USER_LOCATION_LABEL,
            is_start=True,
            is_user_location=True,
        )
        return _prepend(start, waypoints)

    if mode is StartPointMode.CUSTOM:
        if custom_start is None:
            return list(waypoints)
        start = Waypoint(
            lat=custom_start.lat,
            lng=custom_start.lng,
            label=CUSTOM_START_LABEL,
            address=custom_start.address or CUSTOM_START_LABEL,
            is_start=True,
        )
        return _prepend(start, waypoints)

    return _mark_first(waypoints)


__all__ = [
    "CUSTOM_START_LABEL",
    "CustomStart",
    "FixedPosition",
    "GeolocationSource",
    "USER_LOCATION_LABEL",
    "resolve_start_point",
]
