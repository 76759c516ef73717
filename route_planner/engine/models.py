"""
Core data structures shared by the route planning pipeline.

Rule: no network calls and no formatting here. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from .geo import validate_coordinates

Coordinate = tuple[float, float]


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    TRANSIT = "transit"


class ProviderKind(str, Enum):
    GOOGLE = "google"
    MAPBOX = "mapbox"
    OSRM = "osrm"


class DistanceUnit(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class StartPointMode(str, Enum):
    USER_LOCATION = "user_location"
    CUSTOM = "custom"
    FIRST_STOP = "first_stop"


class MarkerStyle(str, Enum):
    NUMBERED = "numbered"
    LETTERED = "lettered"


@dataclass(frozen=True, slots=True)
class Waypoint:
    """
    A single stop. Its position in a list is its place in the visiting order.

    Instances are immutable; flag changes go through ``replace`` so callers
    never see a list they handed over being rewritten underneath them.
    """

    lat: float
    lng: float
    label: str = ""
    address: str = ""
    permalink: str | None = None
    is_start: bool = False
    is_user_location: bool = False

    def __post_init__(self) -> None:
        validate_coordinates(self.lat, self.lng, context="waypoint")

    @property
    def coordinates(self) -> Coordinate:
        return (self.lat, self.lng)

    @property
    def display_name(self) -> str:
        return self.label or self.address

    def as_start(self) -> Waypoint:
        return self if self.is_start else replace(self, is_start=True)

    def without_start(self) -> Waypoint:
        return replace(self, is_start=False) if self.is_start else self


@dataclass(frozen=True, slots=True)
class Step:
    """One maneuver inside a leg; legs and steps keep backend order."""

    instruction: str
    distance_meters: float
    duration_seconds: float
    maneuver: str
    leg_index: int
    step_index: int
    start_location: Coordinate | None = None


@dataclass(frozen=True, slots=True)
class RouteResult:
    """
    Normalized backend answer.

    Only the provider normalization functions build these, and only once every
    leg parsed, so a RouteResult is never partially populated.
    """

    provider: ProviderKind
    distance_meters: float
    duration_seconds: float
    geometry: list[Coordinate] = field(default_factory=list)
    steps: tuple[Step, ...] = ()
    overview_polyline: str | None = None

    @property
    def leg_count(self) -> int:
        if not self.steps:
            return 0
        return max(step.leg_index for step in self.steps) + 1


__all__ = [
    "Coordinate",
    "DistanceUnit",
    "MarkerStyle",
    "ProviderKind",
    "RouteResult",
    "StartPointMode",
    "Step",
    "TravelMode",
    "Waypoint",
]
