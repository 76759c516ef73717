from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from ... import exports
from ...contracts import (
    ExportLinks,
    RouteErrorOut,
    RouteRequest,
    RouteResponse,
    RouteSummaryOut,
    StepOut,
    WaypointOut,
)
from ...errors import RoutingErrorKind
from ...formatting import marker_color, marker_label
from ...http_client import get_async_client
from ...models import Waypoint
from ...providers import get_provider_adapter
from ...route_optimizer import optimize
from ...session import RoutePlanningSession, SessionState
from ...settings import settings
from ...start_point import FixedPosition, resolve_start_point

router = APIRouter(tags=["routes"])

ERROR_STATUS = {
    RoutingErrorKind.NO_ROUTE_FOUND: 404,
    RoutingErrorKind.INVALID_REQUEST: 400,
    RoutingErrorKind.SERVICE_UNAVAILABLE: 502,
}


async def routing_client() -> httpx.AsyncClient:
    return await get_async_client()


def _geolocation(payload: RouteRequest) -> FixedPosition | None:
    if payload.user_location is None:
        return None
    return FixedPosition(payload.user_location.lat, payload.user_location.lng)


def _waypoints_out(payload: RouteRequest, waypoints: list[Waypoint]) -> list[WaypointOut]:
    options = payload.options
    total = len(waypoints)
    return [
        WaypointOut(
            lat=wp.lat,
            lng=wp.lng,
            label=wp.label,
            address=wp.address,
            permalink=wp.permalink,
            is_start=wp.is_start,
            is_user_location=wp.is_user_location,
            marker_label=marker_label(index, options.marker_style),
            marker_color=marker_color(
                index,
                total,
                start_color=options.start_marker_color,
                waypoint_color=options.waypoint_marker_color,
                end_color=options.end_marker_color,
            ),
        )
        for index, wp in enumerate(waypoints)
    ]


async def _export_waypoints(payload: RouteRequest) -> list[Waypoint]:
    """Same stop order /routes would send to the backend, without calling it."""
    options = payload.options
    waypoints = await resolve_start_point(
        options.start_point_mode,
        [wp.to_waypoint() for wp in payload.waypoints],
        custom_start=options.custom_start_point(),
        geolocation=_geolocation(payload),
        timeout=settings.geolocation_timeout,
    )
    if options.optimize_route and len(waypoints) > 2:
        waypoints = optimize(waypoints)
    return waypoints


@router.post("/routes", response_model=RouteResponse)
async def compute_route(
    payload: RouteRequest, client: httpx.AsyncClient = Depends(routing_client)
):
    options = payload.options
    adapter = get_provider_adapter(
        options.provider, client=client, distance_unit=options.distance_unit
    )
    session = RoutePlanningSession(adapter, options, geolocation=_geolocation(payload))
    state = await session.set_waypoints([wp.to_waypoint() for wp in payload.waypoints])

    summary = session.summary()
    body = RouteResponse(
        state=state.value,
        provider=adapter.kind,
        travel_mode=options.travel_mode,
        summary=RouteSummaryOut(
            distance=summary.distance,
            duration=summary.duration,
            distance_meters=summary.distance_meters,
            duration_seconds=summary.duration_seconds,
            stops=summary.stops,
        )
        if summary
        else None,
        steps=[
            StepOut(
                instruction=step.instruction,
                distance=step.distance,
                duration=step.duration,
                maneuver=step.maneuver,
                icon=step.icon,
                leg_index=step.leg_index,
                step_index=step.step_index,
                start_location=step.start_location,
            )
            for step in session.directions()
        ],
        geometry=list(session.route.geometry) if session.route else [],
        overview_polyline=session.route.overview_polyline if session.route else None,
        waypoints=_waypoints_out(payload, session.route_waypoints),
        links=ExportLinks(
            google_maps=session.google_maps_url(),
            apple_maps=session.apple_maps_url(),
        ),
    )
    if state is SessionState.ROUTE_ERROR and session.error is not None:
        body.error = RouteErrorOut(kind=session.error.kind.value, message=str(session.error))
        return JSONResponse(
            status_code=ERROR_STATUS[session.error.kind],
            content=body.model_dump(mode="json"),
        )
    return body


@router.post("/routes/export/links", response_model=ExportLinks)
async def export_links(payload: RouteRequest):
    waypoints = await _export_waypoints(payload)
    travel_mode = payload.options.travel_mode
    return ExportLinks(
        google_maps=exports.google_maps_url(waypoints, travel_mode),
        apple_maps=exports.apple_maps_url(waypoints, travel_mode),
    )


@router.post("/routes/export/gpx")
async def export_gpx(payload: RouteRequest):
    waypoints = await _export_waypoints(payload)
    document = exports.generate_gpx(waypoints, name=payload.options.gpx_filename)
    if document is None:
        return Response(status_code=204)
    filename = exports.gpx_filename(payload.options.gpx_filename)
    return Response(
        content=document,
        media_type=exports.GPX_MEDIA_TYPE,
        headers={"Content-Disposition": exports.content_disposition(filename)},
    )


__all__ = ["router", "routing_client"]
