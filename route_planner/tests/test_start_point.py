from __future__ import annotations

import asyncio

import pytest
from route_planner.engine.errors import GeolocationUnavailable
from route_planner.engine.models import StartPointMode, Waypoint
from route_planner.engine.start_point import (
    USER_LOCATION_LABEL,
    CustomStart,
    FixedPosition,
    resolve_start_point,
)


class DeniedGeolocation:
    async def current_position(self):
        raise GeolocationUnavailable("permission denied")


class HangingGeolocation:
    async def current_position(self):
        await asyncio.sleep(3600)


def _resolve(mode, waypoints, **kwargs):
    return asyncio.run(resolve_start_point(mode, waypoints, **kwargs))


def _starts(waypoints):
    return [wp for wp in waypoints if wp.is_start]


def test_first_stop_marks_first_waypoint(stops):
    result = _resolve(StartPointMode.FIRST_STOP, stops)

    assert len(result) == len(stops)
    assert result[0].is_start
    assert _starts(result) == [result[0]]
    assert not stops[0].is_start


def test_first_stop_moves_existing_start_flag(stops):
    flagged = [stops[0], stops[1].as_start(), stops[2]]

    result = _resolve("first_stop", flagged)

    assert _starts(result) == [result[0]]
    assert result[1].label == stops[1].label


def test_user_location_prepends_device_position(stops):
    result = _resolve(
        StartPointMode.USER_LOCATION, stops, geolocation=FixedPosition(40.41, 49.9)
    )

    assert len(result) == len(stops) + 1
    start = result[0]
    assert start.coordinates == (40.41, 49.9)
    assert start.label == USER_LOCATION_LABEL
    assert start.is_start and start.is_user_location
    assert _starts(result) == [start]
    assert result[1:] == stops


def test_denied_geolocation_falls_back_to_first_stop(stops, caplog):
    result = _resolve(StartPointMode.USER_LOCATION, stops, geolocation=DeniedGeolocation())

    assert len(result) == len(stops)
    assert result[0].is_start
    assert not any(wp.is_user_location for wp in result)
    assert "Geolocation unavailable" in caplog.text


def test_geolocation_timeout_falls_back_to_first_stop(stops):
    result = _resolve(
        StartPointMode.USER_LOCATION, stops, geolocation=HangingGeolocation(), timeout=0.05
    )

    assert len(result) == len(stops)
    assert result[0].is_start


def test_missing_geolocation_source_falls_back(stops):
    result = _resolve(StartPointMode.USER_LOCATION, stops)

    assert result[0].is_start
    assert len(result) == len(stops)


def test_invalid_device_position_falls_back(stops):
    result = _resolve(
        StartPointMode.USER_LOCATION, stops, geolocation=FixedPosition(123.0, 0.0)
    )

    assert len(result) == len(stops)


def test_custom_start_is_prepended(stops):
    custom = CustomStart(lat=40.38, lng=49.85, address="Baku Railway Station")

    result = _resolve(StartPointMode.CUSTOM, stops, custom_start=custom)

    assert result[0].coordinates == (40.38, 49.85)
    assert result[0].address == "Baku Railway Station"
    assert result[0].label == "Start"
    assert _starts(result) == [result[0]]
    assert not result[0].is_user_location


def test_custom_start_without_address_uses_start_label(stops):
    result = _resolve("custom", stops, custom_start=CustomStart(lat=1.0, lng=2.0))

    assert result[0].address == "Start"


def test_custom_mode_without_configured_start_is_unchanged(stops):
    result = _resolve(StartPointMode.CUSTOM, stops)

    assert result == stops
    assert result is not stops


def test_custom_start_validates_coordinates():
    with pytest.raises(ValueError):
        CustomStart(lat=91.0, lng=0.0)


def test_single_waypoint_with_user_location_makes_two(stops):
    result = _resolve(
        StartPointMode.USER_LOCATION, stops[:1], geolocation=FixedPosition(40.0, 49.0)
    )

    assert len(result) == 2


def test_empty_set_stays_empty():
    assert _resolve(StartPointMode.FIRST_STOP, []) == []


def test_waypoint_rejects_out_of_range_coordinates():
    with pytest.raises(ValueError):
        Waypoint(lat=0.0, lng=181.0)
