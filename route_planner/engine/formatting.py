"""
Display rules for distances, durations, maneuvers and markers.

Numbers round the way the widget's browser code always has: half-up on the
exact binary value (``Math.round`` / ``toFixed``), so server-rendered text
matches what users saw before.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .models import Coordinate, DistanceUnit, MarkerStyle, Step

METERS_TO_MILES = 0.000621371
METERS_TO_FEET = 3.28084

DEFAULT_START_MARKER_COLOR = "#22c55e"
DEFAULT_WAYPOINT_MARKER_COLOR = "#3b82f6"
DEFAULT_END_MARKER_COLOR = "#ef4444"

_SVG_OPEN = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16" viewBox="0 0 24 24" '
    'fill="none" stroke="currentColor" stroke-width="2">'
)

MANEUVER_ICONS: dict[str, str] = {
    "turn-left": _SVG_OPEN + '<path d="m9 14-4-4 4-4"/><path d="M5 10h11a4 4 0 0 1 4 4v7"/></svg>',
    "turn-right": _SVG_OPEN
    + '<path d="m15 14 4-4-4-4"/><path d="M19 10H8a4 4 0 0 0-4 4v7"/></svg>',
    "straight": _SVG_OPEN + '<path d="M12 19V5"/><path d="m5 12 7-7 7 7"/></svg>',
    "arrive": _SVG_OPEN
    + '<path d="M20 10c0 6-8 12-8 12s-8-6-8-12a8 8 0 0 1 16 0Z"/>'
    + '<circle cx="12" cy="10" r="3"/></svg>',
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _fixed_1(value: float) -> str:
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_distance(meters: float, unit: DistanceUnit | str = DistanceUnit.METRIC) -> str:
    """
    Render a distance in the chosen unit system.

    Examples:
        950 metric -> "950 m"
        1500 metric -> "1.5 km"
        50 imperial -> "164 ft"
        1609 imperial -> "1.0 mi"
    """
    if DistanceUnit(unit) is DistanceUnit.IMPERIAL:
        miles = meters * METERS_TO_MILES
        if miles < 0.1:
            return f"{_round_half_up(meters * METERS_TO_FEET)} ft"
        return f"{_fixed_1(miles)} mi"
    if meters < 1000:
        return f"{_round_half_up(meters)} m"
    return f"{_fixed_1(meters / 1000)} km"


def format_duration(seconds: float) -> str:
    """Hours and minutes, truncated; ``"2 min"`` or ``"1 hr 5 min"``."""
    hours = math.floor(seconds / 3600)
    minutes = math.floor((seconds % 3600) / 60)
    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes} min"


def maneuver_icon(kind: str | None) -> str | None:
    if not kind:
        return None
    return MANEUVER_ICONS.get(kind)


@dataclass(frozen=True, slots=True)
class FormattedStep:
    instruction: str
    distance: str
    duration: str
    maneuver: str
    icon: str | None
    leg_index: int
    step_index: int
    start_location: Coordinate | None = None


def format_steps(
    steps: Iterable[Step], unit: DistanceUnit | str = DistanceUnit.METRIC
) -> list[FormattedStep]:
    return [
        FormattedStep(
            instruction=step.instruction,
            distance=format_distance(step.distance_meters, unit),
            duration=format_duration(step.duration_seconds),
            maneuver=step.maneuver,
            icon=maneuver_icon(step.maneuver),
            leg_index=step.leg_index,
            step_index=step.step_index,
            start_location=step.start_location,
        )
        for step in steps
    ]


def marker_label(index: int, style: MarkerStyle | str = MarkerStyle.NUMBERED) -> str:
    """Numbered markers count from 1; lettered markers run A..Z and wrap."""
    if MarkerStyle(style) is MarkerStyle.LETTERED:
        return chr(ord("A") + index % 26)
    return str(index + 1)


def marker_color(
    index: int,
    total: int,
    *,
    start_color: str | None = None,
    waypoint_color: str | None = None,
    end_color: str | None = None,
) -> str:
    if index == 0:
        return start_color or DEFAULT_START_MARKER_COLOR
    if index == total - 1:
        return end_color or DEFAULT_END_MARKER_COLOR
    return waypoint_color or DEFAULT_WAYPOINT_MARKER_COLOR


__all__ = [
    "DEFAULT_END_MARKER_COLOR",
    "DEFAULT_START_MARKER_COLOR",
    "DEFAULT_WAYPOINT_MARKER_COLOR",
    "FormattedStep",
    "MANEUVER_ICONS",
    "format_distance",
    "format_duration",
    "format_steps",
    "maneuver_icon",
    "marker_color",
    "marker_label",
]
