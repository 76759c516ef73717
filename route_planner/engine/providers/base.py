from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any, ClassVar, Protocol

import httpx

from ..errors import (
    InvalidRequest,
    NoRouteFound,
    RoutingError,
    ServiceUnavailable,
)
from ..geo import format_coordinate
from ..http_client import get_async_client
from ..metrics import track_backend_call
from ..models import DistanceUnit, ProviderKind, RouteResult, Step, TravelMode, Waypoint

logger = logging.getLogger(__name__)

OK_CODES = frozenset({"Ok", "OK"})

# Backend status codes -> error class. Code names do not collide between backends.
CODE_ERRORS: dict[str, type[RoutingError]] = {
    "NoRoute": NoRouteFound,
    "NoSegment": NoRouteFound,
    "ZERO_RESULTS": NoRouteFound,
    "NOT_FOUND": NoRouteFound,
    "InvalidInput": InvalidRequest,
    "InvalidQuery": InvalidRequest,
    "InvalidValue": InvalidRequest,
    "InvalidUrl": InvalidRequest,
    "InvalidOptions": InvalidRequest,
    "ProfileNotFound": InvalidRequest,
    "TooBig": InvalidRequest,
    "INVALID_REQUEST": InvalidRequest,
    "MAX_WAYPOINTS_EXCEEDED": InvalidRequest,
    "MAX_ROUTE_LENGTH_EXCEEDED": InvalidRequest,
    "REQUEST_DENIED": InvalidRequest,
}

INVALID_REQUEST_STATUSES = frozenset({400, 401, 403, 422})


class ProviderAdapter(Protocol):
    kind: ProviderKind

    async def compute_route(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> RouteResult: ...


def error_for_code(code: str, message: str | None, provider: str) -> RoutingError:
    error_cls = CODE_ERRORS.get(code, ServiceUnavailable)
    detail = f"{provider} returned {code}"
    if message:
        detail = f"{detail}: {message}"
    return error_cls(detail, provider=provider)


def error_for_status(status_code: int, provider: str) -> RoutingError:
    detail = f"{provider} HTTP {status_code}"
    if status_code in INVALID_REQUEST_STATUSES:
        return InvalidRequest(detail, provider=provider)
    return ServiceUnavailable(detail, provider=provider)


def lng_lat_path(waypoints: Sequence[Waypoint]) -> str:
    return ";".join(f"{format_coordinate(wp.lng)},{format_coordinate(wp.lat)}" for wp in waypoints)


def parse_lng_lat_route(
    payload: dict[str, Any],
    provider: ProviderKind,
    *,
    fill_missing_instructions: bool = False,
) -> RouteResult:
    """
    Normalize a Mapbox/OSRM style response (GeoJSON geometry, legs of steps).

    Totals are summed across every leg. Raises NoRouteFound when the route list
    is empty and ServiceUnavailable when the payload does not have the
    expected shape; a RouteResult is only returned once every leg parsed.
    """
    routes = payload.get("routes") or []
    if not routes:
        raise NoRouteFound(f"{provider.value} returned no routes", provider=provider.value)
    try:
        route = routes[0]
        distance = 0.0
        duration = 0.0
        steps: list[Step] = []
        for leg_index, leg in enumerate(route["legs"]):
            distance += float(leg["distance"])
            duration += float(leg["duration"])
            for step_index, raw_step in enumerate(leg.get("steps") or []):
                maneuver = raw_step.get("maneuver") or {}
                instruction = maneuver.get("instruction") or ""
                if not instruction and fill_missing_instructions:
                    name = raw_step.get("name")
                    instruction = f"Continue on {name}" if name else "Continue"
                location = maneuver.get("location")
                steps.append(
                    Step(
                        instruction=instruction,
                        distance_meters=float(raw_step.get("distance", 0.0)),
                        duration_seconds=float(raw_step.get("duration", 0.0)),
                        maneuver=maneuver_kind(maneuver.get("type"), maneuver.get("modifier")),
                        leg_index=leg_index,
                        step_index=step_index,
                        start_location=(float(location[1]), float(location[0]))
                        if location
                        else None,
                    )
                )
        coordinates = (route.get("geometry") or {}).get("coordinates") or []
        geometry = [(float(lat), float(lng)) for lng, lat, *_ in coordinates]
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise ServiceUnavailable(
            f"{provider.value} returned a malformed route: {exc!r}", provider=provider.value
        ) from exc

    return RouteResult(
        provider=provider,
        distance_meters=distance,
        duration_seconds=duration,
        geometry=geometry,
        steps=tuple(steps),
    )


_TURN_TYPES = frozenset({"turn", "continue", "new name", "end of road", "notification", "depart"})
_ROUNDABOUT_TYPES = frozenset(
    {"roundabout", "rotary", "roundabout turn", "exit roundabout", "exit rotary"}
)
_MODIFIER_KINDS = {
    "left": "turn-left",
    "right": "turn-right",
    "slight left": "turn-slight-left",
    "slight right": "turn-slight-right",
    "sharp left": "turn-sharp-left",
    "sharp right": "turn-sharp-right",
    "straight": "straight",
    "uturn": "uturn",
}


def maneuver_kind(maneuver_type: str | None, modifier: str | None) -> str:
    """
    Collapse a Mapbox/OSRM ``type`` + ``modifier`` pair into one maneuver kind.

    Kinds follow the Google vocabulary (``turn-left``, ``straight``...) so the
    formatter can treat every backend alike. ``arrive`` and ``depart`` are
    kept as-is; roundabouts, merges, forks and ramps keep their side.
    """
    maneuver_type = (maneuver_type or "").lower()
    modifier = (modifier or "").lower()
    if maneuver_type == "arrive":
        return "arrive"
    if maneuver_type == "depart" and not modifier:
        return "depart"
    side = "left" if "left" in modifier else "right" if "right" in modifier else ""
    if maneuver_type in _ROUNDABOUT_TYPES:
        return f"roundabout-{side}" if side else "roundabout"
    if maneuver_type in {"merge", "fork", "on ramp", "off ramp"}:
        base = "ramp" if maneuver_type.endswith("ramp") else maneuver_type
        return f"{base}-{side}" if side else base
    if maneuver_type in _TURN_TYPES or not maneuver_type:
        kind = _MODIFIER_KINDS.get(modifier)
        if kind:
            return kind
        if maneuver_type in {"continue", "new name"}:
            return "straight"
    return maneuver_type


class HttpProviderAdapter:
    """
    Shared request/response plumbing for the HTTP routing backends.

    Subclasses provide ``build_request`` and ``normalize``. Every failure is
    raised as a RoutingError subclass; nothing partial is ever returned.
    """

    kind: ClassVar[ProviderKind]
    status_field: ClassVar[str] = "code"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        distance_unit: DistanceUnit = DistanceUnit.METRIC,
    ) -> None:
        self._client = client
        self.distance_unit = DistanceUnit(distance_unit)

    def build_request(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> tuple[str, dict[str, str]]:
        raise NotImplementedError

    def normalize(self, payload: dict[str, Any]) -> RouteResult:
        raise NotImplementedError

    async def compute_route(
        self, waypoints: Sequence[Waypoint], travel_mode: TravelMode
    ) -> RouteResult:
        provider = self.kind.value
        if len(waypoints) < 2:
            raise InvalidRequest("At least two waypoints are required", provider=provider)
        travel_mode = TravelMode(travel_mode)
        url, params = self.build_request(waypoints, travel_mode)

        started = time.perf_counter()
        outcome = "ok"
        try:
            payload = await self._get_json(url, params)
            result = self.normalize(payload)
        except RoutingError as exc:
            outcome = exc.kind.value
            raise
        finally:
            elapsed = time.perf_counter() - started
            track_backend_call(provider, outcome, elapsed)

        logger.info(
            "%s route stops=%d mode=%s distance=%.0fm duration=%.0fs steps=%d latency=%.1fms",
            provider,
            len(waypoints),
            travel_mode.value,
            result.distance_meters,
            result.duration_seconds,
            len(result.steps),
            elapsed * 1000,
        )
        return result

    async def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        provider = self.kind.value
        client = self._client or await get_async_client()
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("%s request timed out: %s", provider, exc)
            raise ServiceUnavailable(f"{provider} request timed out", provider=provider) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", provider, exc)
            raise ServiceUnavailable(
                f"{provider} request failed: {exc}", provider=provider
            ) from exc

        status_code = response.status_code
        if status_code == 429 or status_code >= 500:
            logger.warning("%s responded with HTTP %s", provider, status_code)
            raise error_for_status(status_code, provider)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            if status_code >= 400:
                raise error_for_status(status_code, provider)
            raise ServiceUnavailable(f"{provider} returned a non-JSON payload", provider=provider)

        code = payload.get(self.status_field)
        if code is not None and code not in OK_CODES:
            message = payload.get("message") or payload.get("error_message")
            logger.warning("%s returned code=%s message=%s", provider, code, message)
            raise error_for_code(str(code), message, provider)
        if status_code >= 400:
            raise error_for_status(status_code, provider)
        return payload


__all__ = [
    "CODE_ERRORS",
    "HttpProviderAdapter",
    "ProviderAdapter",
    "error_for_code",
    "error_for_status",
    "lng_lat_path",
    "maneuver_kind",
    "parse_lng_lat_route",
]
