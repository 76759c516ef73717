from __future__ import annotations

import math
from decimal import Decimal

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate straight-line distance in km."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_valid_coordinate(lat: float, lng: float) -> bool:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return -90 <= lat_f <= 90 and -180 <= lng_f <= 180


def validate_coordinates(lat: float, lng: float, *, context: str = "coordinate") -> None:
    if not is_valid_coordinate(lat, lng):
        raise ValueError(f"{context} latitude/longitude out of range: ({lat}, {lng})")


def format_coordinate(value: float) -> str:
    """
    Render a degree value the way browsers print numbers.

    Integral values lose the trailing ".0" and small magnitudes are written
    out in positional notation, so 1.0 becomes "1" and 1e-05 "0.00001".
    """
    value = float(value)
    if value == 0:
        return "0"
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


__all__ = [
    "EARTH_RADIUS_KM",
    "format_coordinate",
    "haversine_km",
    "is_valid_coordinate",
    "validate_coordinates",
]
