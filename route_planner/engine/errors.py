from __future__ import annotations

from enum import Enum


class RoutingErrorKind(str, Enum):
    NO_ROUTE_FOUND = "no_route_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_REQUEST = "invalid_request"


class RoutingError(RuntimeError):
    """Raised when a routing backend cannot produce a path."""

    kind: RoutingErrorKind = RoutingErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class NoRouteFound(RoutingError):
    kind = RoutingErrorKind.NO_ROUTE_FOUND


class ServiceUnavailable(RoutingError):
    kind = RoutingErrorKind.SERVICE_UNAVAILABLE


class WaypointsUnavailable(ServiceUnavailable):
    """The content source for the stops could not be read."""


class InvalidRequest(RoutingError):
    kind = RoutingErrorKind.INVALID_REQUEST


class GeolocationUnavailable(RuntimeError):
    """Raised by a geolocation source on denial or when positioning is unsupported."""


__all__ = [
    "GeolocationUnavailable",
    "InvalidRequest",
    "NoRouteFound",
    "RoutingError",
    "RoutingErrorKind",
    "ServiceUnavailable",
    "WaypointsUnavailable",
]
