from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import routes as routes_routes
from .http_client import close_async_client
from .logging_config import SERVICE_NAME, SERVICE_VERSION, configure_structlog, get_logger
from .metrics import PrometheusMiddleware, get_metrics
from .settings import settings
from .utils import add_cors, add_request_id_tracing

API_PREFIX = "/v1"

# Must run before the first log call
configure_structlog(json_logs=not settings.DEBUG)
logger = get_logger(__name__)


def _init_sentry() -> None:
    if not settings.SENTRY_DSN:
        return
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"{SERVICE_NAME}@{SERVICE_VERSION}",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,
    )


def _provider_configured() -> bool:
    if settings.MAP_PROVIDER == "google":
        return bool(settings.GOOGLE_MAPS_API_KEY)
    if settings.MAP_PROVIDER == "mapbox":
        return bool(settings.MAPBOX_ACCESS_TOKEN)
    return True


_init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "planner_startup",
        provider=settings.MAP_PROVIDER,
        provider_configured=_provider_configured(),
        geolocation_timeout=settings.geolocation_timeout,
    )
    try:
        yield
    finally:
        await close_async_client()
        logger.info("planner_shutdown")


app = FastAPI(
    title="Route Planner API",
    version=SERVICE_VERSION,
    description="Multi-backend route planning: stop ordering, directions and map exports",
    lifespan=lifespan,
)
add_cors(app)
add_request_id_tracing(app)
app.add_middleware(PrometheusMiddleware)

app.include_router(routes_routes.router, prefix=API_PREFIX)


@app.get("/health")
async def health():
    """Service status plus the default routing backend and whether it has credentials."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "provider": settings.MAP_PROVIDER,
        "provider_configured": _provider_configured(),
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return get_metrics()
