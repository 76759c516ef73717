"""
Route planning session: one per widget instance.

Pipeline: load waypoints -> resolve start -> [optimize] -> compute route.
Any waypoint or travel mode change starts a new generation; results that come
back for an older generation are dropped, so only the latest request ever
reaches ``route``/``error`` or the map.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from . import exports
from .contracts import PlannerOptions
from .errors import RoutingError, WaypointsUnavailable
from .formatting import FormattedStep, format_distance, format_duration, format_steps
from .map_surface import MapOverlay, MapSurface
from .metrics import route_results_total
from .models import RouteResult, StartPointMode, TravelMode, Waypoint
from .providers.base import ProviderAdapter
from .route_optimizer import optimize
from .settings import settings
from .start_point import FixedPosition, GeolocationSource, resolve_start_point
from .waypoint_provider import WaypointProvider, waypoints_from_records

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING_WAYPOINTS = "loading_waypoints"
    RESOLVING_START = "resolving_start"
    OPTIMIZING = "optimizing"
    COMPUTING_ROUTE = "computing_route"
    ROUTE_READY = "route_ready"
    ROUTE_ERROR = "route_error"
    EMPTY_ROUTE = "empty_route"


@dataclass(frozen=True, slots=True)
class RouteSummary:
    distance: str
    duration: str
    distance_meters: float
    duration_seconds: float
    stops: int


class RoutePlanningSession:
    """
    Orchestrates one widget's route.

    ``waypoints`` is the working set after start resolution, in the order the
    stops were authored. ``route_waypoints`` is the order actually sent to the
    backend (the optimized order when optimization is on); markers and
    exports follow it.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        options: PlannerOptions | None = None,
        *,
        waypoint_provider: WaypointProvider | None = None,
        geolocation: GeolocationSource | None = None,
        map_surface: MapSurface | None = None,
    ) -> None:
        self.adapter = adapter
        self.options = options or PlannerOptions()
        self.waypoint_provider = waypoint_provider
        self.geolocation = geolocation
        self.overlay: MapOverlay | None = None
        if map_surface is not None:
            self.overlay = MapOverlay(
                map_surface,
                marker_style=self.options.marker_style,
                marker_colors=self.options.marker_colors(),
                line_style=self.options.line_style(),
            )

        self.state = SessionState.IDLE
        self.waypoints: list[Waypoint] = []
        self.route_waypoints: list[Waypoint] = []
        self.route: RouteResult | None = None
        self.error: RoutingError | None = None
        self._source: list[Waypoint] = []
        self._device_position: tuple[float, float] | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def travel_mode(self) -> TravelMode:
        return self.options.travel_mode

    # ------------------------------------------------------------------
    # Change events
    # ------------------------------------------------------------------

    async def load(self, content_id: str, data_source: str) -> SessionState:
        """
        Fetch stops for a piece of content and plan the route through them.

        A failing content source ends in ``ROUTE_ERROR`` with a
        WaypointsUnavailable error rather than raising into the caller.
        """
        if self.waypoint_provider is None:
            raise RuntimeError("No waypoint provider configured for this session")
        generation = self._begin()
        self.state = SessionState.LOADING_WAYPOINTS
        try:
            records = await self.waypoint_provider.fetch_waypoints(content_id, data_source)
        except Exception as exc:
            if self._is_stale(generation):
                return self.state
            logger.warning(
                "Loading waypoints failed content_id=%s source=%s: %r", content_id, data_source, exc
            )
            self.waypoints = []
            self.error = WaypointsUnavailable(f"Could not load waypoints: {exc}")
            return self._finish(SessionState.ROUTE_ERROR)
        if self._is_stale(generation):
            return self.state
        return await self._plan(waypoints_from_records(records), generation)

    async def start(self, waypoints: Sequence[Waypoint]) -> SessionState:
        return await self.set_waypoints(waypoints)

    async def set_waypoints(self, waypoints: Sequence[Waypoint]) -> SessionState:
        generation = self._begin()
        return await self._plan(list(waypoints), generation)

    async def set_travel_mode(self, mode: TravelMode | str) -> SessionState:
        """Switch travel mode; the resolved stops are reused and only the route is recomputed."""
        mode = TravelMode(mode)
        self.options = self.options.model_copy(update={"travel_mode": mode})
        if self.state in {SessionState.IDLE, SessionState.LOADING_WAYPOINTS}:
            return self.state
        generation = self._begin()
        if self.state is SessionState.RESOLVING_START:
            return await self._plan(self._source, generation)
        return await self._compute(generation)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def summary(self) -> RouteSummary | None:
        if self.route is None:
            return None
        unit = self.options.distance_unit
        return RouteSummary(
            distance=format_distance(self.route.distance_meters, unit),
            duration=format_duration(self.route.duration_seconds),
            distance_meters=self.route.distance_meters,
            duration_seconds=self.route.duration_seconds,
            stops=len(self.route_waypoints),
        )

    def directions(self) -> list[FormattedStep]:
        if self.route is None:
            return []
        return format_steps(self.route.steps, self.options.distance_unit)

    @property
    def export_waypoints(self) -> list[Waypoint]:
        return self.route_waypoints or self.waypoints

    def google_maps_url(self) -> str | None:
        return exports.google_maps_url(self.export_waypoints, self.travel_mode)

    def apple_maps_url(self) -> str | None:
        return exports.apple_maps_url(self.export_waypoints, self.travel_mode)

    def gpx(self) -> str | None:
        return exports.generate_gpx(self.export_waypoints, name=self.options.gpx_filename)

    def gpx_filename(self) -> str:
        return exports.gpx_filename(self.options.gpx_filename)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _begin(self) -> int:
        self._generation += 1
        self.route = None
        self.error = None
        self.route_waypoints = []
        if self.overlay is not None:
            self.overlay.clear()
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug(
            "Dropping stale route result generation=%d current=%d", generation, self._generation
        )
        return True

    def _geolocation(self) -> GeolocationSource | None:
        if self._device_position is not None:
            return FixedPosition(*self._device_position)
        return self.geolocation

    async def _plan(self, source: list[Waypoint], generation: int) -> SessionState:
        self._source = source
        self.state = SessionState.RESOLVING_START
        resolved = await resolve_start_point(
            self.options.start_point_mode,
            source,
            custom_start=self.options.custom_start_point(),
            geolocation=self._geolocation(),
            timeout=settings.geolocation_timeout,
        )
        if self._is_stale(generation):
            return self.state
        if (
            self.options.start_point_mode is StartPointMode.USER_LOCATION
            and resolved
            and resolved[0].is_user_location
        ):
            self._device_position = resolved[0].coordinates
        self.waypoints = resolved
        return await self._compute(generation)

    async def _compute(self, generation: int) -> SessionState:
        if len(self.waypoints) < 2:
            self.route_waypoints = list(self.waypoints)
            return self._finish(SessionState.EMPTY_ROUTE)

        ordered = self.waypoints
        if self.options.optimize_route and len(ordered) > 2:
            self.state = SessionState.OPTIMIZING
            ordered = optimize(ordered)
        self.route_waypoints = ordered

        self.state = SessionState.COMPUTING_ROUTE
        try:
            result = await self.adapter.compute_route(ordered, self.travel_mode)
        except RoutingError as exc:
            if self._is_stale(generation):
                return self.state
            logger.warning(
                "Route computation failed provider=%s kind=%s: %s",
                self.adapter.kind.value,
                exc.kind.value,
                exc,
            )
            self.error = exc
            return self._finish(SessionState.ROUTE_ERROR)

        if self._is_stale(generation):
            return self.state
        self.route = result
        if self.overlay is not None:
            self.overlay.render(self.route_waypoints, result.geometry)
        return self._finish(SessionState.ROUTE_READY)

    def _finish(self, state: SessionState) -> SessionState:
        self.state = state
        route_results_total.labels(state=state.value).inc()
        return state


__all__ = ["RoutePlanningSession", "RouteSummary", "SessionState"]
