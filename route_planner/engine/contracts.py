from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .formatting import (
    DEFAULT_END_MARKER_COLOR,
    DEFAULT_START_MARKER_COLOR,
    DEFAULT_WAYPOINT_MARKER_COLOR,
)
from .map_surface import MarkerColors, RouteLineStyle
from .models import (
    DistanceUnit,
    MarkerStyle,
    ProviderKind,
    StartPointMode,
    TravelMode,
    Waypoint,
)
from .start_point import CustomStart


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Widget options ---
class CustomStartOption(_CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str = ""


class PlannerOptions(_CamelModel):
    """Per-widget configuration; accepts the widget's camelCase keys or snake_case."""

    provider: ProviderKind | None = None
    travel_mode: TravelMode = TravelMode.DRIVING
    distance_unit: DistanceUnit = DistanceUnit.METRIC
    optimize_route: bool = False
    start_point_mode: StartPointMode = StartPointMode.FIRST_STOP
    custom_start: CustomStartOption | None = None
    marker_style: MarkerStyle = MarkerStyle.NUMBERED
    route_line_color: str = "#4285F4"
    route_line_weight: float = Field(4, gt=0)
    route_line_opacity: float = Field(0.8, ge=0, le=1)
    start_marker_color: str = DEFAULT_START_MARKER_COLOR
    waypoint_marker_color: str = DEFAULT_WAYPOINT_MARKER_COLOR
    end_marker_color: str = DEFAULT_END_MARKER_COLOR
    gpx_filename: str = Field("route", min_length=1, max_length=120)

    @field_validator("gpx_filename")
    @classmethod
    def _plain_filename(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch in value for ch in '/\\"'):
            raise ValueError("gpx_filename must be a plain file name")
        return value

    def custom_start_point(self) -> CustomStart | None:
        if self.custom_start is None:
            return None
        return CustomStart(
            lat=self.custom_start.lat,
            lng=self.custom_start.lng,
            address=self.custom_start.address,
        )

    def line_style(self) -> RouteLineStyle:
        return RouteLineStyle(
            color=self.route_line_color,
            weight=self.route_line_weight,
            opacity=self.route_line_opacity,
        )

    def marker_colors(self) -> MarkerColors:
        return MarkerColors(
            start=self.start_marker_color,
            waypoint=self.waypoint_marker_color,
            end=self.end_marker_color,
        )


# --- API payloads ---
class WaypointIn(_CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    label: str = Field("", max_length=200)
    address: str = Field("", max_length=300)
    permalink: str | None = Field(None, max_length=2048)

    def to_waypoint(self) -> Waypoint:
        return Waypoint(
            lat=self.lat,
            lng=self.lng,
            label=self.label,
            address=self.address,
            permalink=self.permalink,
        )


class PositionIn(_CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RouteRequest(_CamelModel):
    waypoints: list[WaypointIn] = Field(default_factory=list, max_length=100)
    options: PlannerOptions = Field(default_factory=PlannerOptions)
    # Device position reported by the browser for ``user_location`` starts
    user_location: PositionIn | None = None


class WaypointOut(BaseModel):
    lat: float
    lng: float
    label: str
    address: str = ""
    permalink: str | None = None
    is_start: bool = False
    is_user_location: bool = False
    marker_label: str
    marker_color: str


class StepOut(BaseModel):
    instruction: str
    distance: str
    duration: str
    maneuver: str
    icon: str | None = None
    leg_index: int
    step_index: int
    start_location: tuple[float, float] | None = None


class RouteSummaryOut(BaseModel):
    distance: str
    duration: str
    distance_meters: float
    duration_seconds: float
    stops: int


class ExportLinks(BaseModel):
    google_maps: str | None = None
    apple_maps: str | None = None


class RouteErrorOut(BaseModel):
    kind: Literal["no_route_found", "service_unavailable", "invalid_request"]
    message: str


class RouteResponse(BaseModel):
    state: str
    provider: ProviderKind
    travel_mode: TravelMode
    summary: RouteSummaryOut | None = None
    steps: list[StepOut] = Field(default_factory=list)
    geometry: list[tuple[float, float]] = Field(default_factory=list)
    overview_polyline: str | None = None
    waypoints: list[WaypointOut] = Field(default_factory=list)
    links: ExportLinks = Field(default_factory=ExportLinks)
    error: RouteErrorOut | None = None


__all__ = [
    "CustomStartOption",
    "ExportLinks",
    "PlannerOptions",
    "PositionIn",
    "RouteErrorOut",
    "RouteRequest",
    "RouteResponse",
    "RouteSummaryOut",
    "StepOut",
    "WaypointIn",
    "WaypointOut",
]
