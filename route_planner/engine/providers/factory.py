from __future__ import annotations

import httpx

from ..models import DistanceUnit, ProviderKind
from ..settings import settings
from .base import HttpProviderAdapter
from .google import GoogleDirectionsAdapter
from .mapbox import MapboxDirectionsAdapter
from .osrm import OsrmRouteAdapter

_ADAPTERS: dict[ProviderKind, type[HttpProviderAdapter]] = {
    ProviderKind.GOOGLE: GoogleDirectionsAdapter,
    ProviderKind.MAPBOX: MapboxDirectionsAdapter,
    ProviderKind.OSRM: OsrmRouteAdapter,
}


def get_provider_adapter(
    kind: ProviderKind | str | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    distance_unit: DistanceUnit | str = DistanceUnit.METRIC,
) -> HttpProviderAdapter:
    """Select the routing backend once; falls back to MAP_PROVIDER when no kind is given."""
    if isinstance(kind, ProviderKind):
        kind = kind.value
    provider_name = kind or settings.MAP_PROVIDER
    try:
        provider = ProviderKind(provider_name.lower())
    except ValueError as exc:
        raise RuntimeError(
            f"Unsupported MAP_PROVIDER '{provider_name}'. Expected one of: google, mapbox, osrm."
        ) from exc
    return _ADAPTERS[provider](client, distance_unit=DistanceUnit(distance_unit))


__all__ = ["get_provider_adapter"]
