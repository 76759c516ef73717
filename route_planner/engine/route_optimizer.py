"""
Multi-stop visiting order heuristic.

Greedy nearest neighbor over straight-line (haversine) distance. This is an
approximation: it never promises the globally shortest tour, only a
deterministic, cheap ordering that is usually much better than the authored
order for a few dozen stops.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .geo import haversine_km
from .models import Waypoint

logger = logging.getLogger(__name__)


def _distance(a: Waypoint, b: Waypoint) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def optimize(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    """
    Reorder waypoints with the nearest neighbor heuristic.

    The first waypoint stays fixed as the anchor. From the remaining pool the
    closest waypoint to the last placed one is appended next; on equal
    distance the earliest candidate in input order wins.

    The input sequence is never modified; a new list is returned.
    """
    if len(waypoints) <= 2:
        return list(waypoints)

    route = [waypoints[0]]
    unvisited = list(waypoints[1:])

    while unvisited:
        current = route[-1]
        nearest_index = 0
        nearest_distance = _distance(current, unvisited[0])
        for index in range(1, len(unvisited)):
            distance = _distance(current, unvisited[index])
            if distance < nearest_distance:
                nearest_index = index
                nearest_distance = distance
        route.append(unvisited.pop(nearest_index))

    if logger.isEnabledFor(logging.DEBUG):
        naive = path_length_km(waypoints)
        optimized = path_length_km(route)
        logger.debug(
            "Nearest neighbor reorder stops=%d naive=%.3fkm optimized=%.3fkm savings=%.3fkm",
            len(route),
            naive,
            optimized,
            naive - optimized,
        )
    return route


def path_length_km(waypoints: Sequence[Waypoint]) -> float:
    """Straight-line length of visiting the waypoints in the given order."""
    return sum(_distance(a, b) for a, b in zip(waypoints, waypoints[1:]))


__all__ = ["optimize", "path_length_km"]
