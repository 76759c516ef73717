from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from .geo import is_valid_coordinate
from .models import Waypoint

logger = logging.getLogger(__name__)


class WaypointProvider(Protocol):
    async def fetch_waypoints(self, content_id: str, data_source: str) -> list[dict[str, Any]]:
        """Raw stop records ``{lat, lng, label, address, permalink?}`` for a piece of content."""
        ...


def waypoints_from_records(records: Iterable[Mapping[str, Any]]) -> list[Waypoint]:
    """
    Build Waypoints from raw records, keeping their order.

    Records with missing or out-of-range coordinates are skipped. Labels fall
    back to the address, then to "Stop {n}" where n counts kept records.
    """
    waypoints: list[Waypoint] = []
    for position, record in enumerate(records):
        lat = record.get("lat")
        lng = record.get("lng")
        if lat is None or lng is None or not is_valid_coordinate(lat, lng):
            logger.warning("Skipping waypoint record %d with invalid coordinates", position)
            continue
        address = str(record.get("address") or "").strip()
        label = str(record.get("label") or "").strip() or address
        waypoints.append(
            Waypoint(
                lat=float(lat),
                lng=float(lng),
                label=label or f"Stop {len(waypoints) + 1}",
                address=address,
                permalink=record.get("permalink") or None,
            )
        )
    return waypoints


__all__ = ["WaypointProvider", "waypoints_from_records"]
