"""Prometheus metrics for the route planning service."""

from __future__ import annotations

import time
from collections.abc import Callable

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging_config import SERVICE_NAME, SERVICE_VERSION

NAMESPACE = "route_planner"
# Probes and scrapes are not tracked
UNTRACKED_PATHS = frozenset({"/metrics", "/health"})

app_info = Info(NAMESPACE, "Route planner service information")
app_info.info({"version": SERVICE_VERSION, "service": SERVICE_NAME})

# --- API surface ---
http_requests_total = Counter(
    "http_requests_total",
    "Planner API requests by route template and status",
    ["method", "route", "status"],
    namespace=NAMESPACE,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "Planner API latency; route computations include the backend round trip",
    ["method", "route"],
    namespace=NAMESPACE,
    buckets=(0.005, 0.025, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# --- Routing backends ---
route_backend_requests_total = Counter(
    "route_backend_requests_total",
    "Total routing backend requests",
    ["provider", "outcome"],
)

route_backend_latency_seconds = Histogram(
    "route_backend_latency_seconds",
    "Routing backend round-trip latency in seconds",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
)

route_results_total = Counter(
    "route_results_total",
    "Route computations by terminal session state",
    ["state"],
)


def track_backend_call(provider: str, outcome: str, elapsed_seconds: float) -> None:
    route_backend_requests_total.labels(provider=provider, outcome=outcome).inc()
    route_backend_latency_seconds.labels(provider=provider).observe(elapsed_seconds)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Counts API calls per route template; unmatched paths share one label."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            route = _route_label(request)
            http_requests_total.labels(request.method, route, status).inc()
            http_request_duration_seconds.labels(request.method, route).observe(
                time.perf_counter() - started
            )


def get_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "get_metrics",
    "http_request_duration_seconds",
    "http_requests_total",
    "route_backend_latency_seconds",
    "route_backend_requests_total",
    "route_results_total",
    "track_backend_call",
]
