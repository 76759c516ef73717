import os
import sys
from pathlib import Path

import httpx
import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""

from route_planner.engine.api.routes.routes import routing_client  # noqa: E402
from route_planner.engine.main import app  # noqa: E402
from route_planner.engine.models import Waypoint  # noqa: E402
from route_planner.engine.settings import settings  # noqa: E402


class BackendStub:
    """Canned routing backend behind an httpx.MockTransport; records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []
        self.default = httpx.Response(500, json={"code": "Unconfigured"})

    def queue(self, response: httpx.Response) -> None:
        self.responses.append(response)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return self.default

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def backend() -> BackendStub:
    return BackendStub()


@pytest.fixture(autouse=True)
def routing_settings():
    settings.MAP_PROVIDER = "osrm"
    settings.GOOGLE_MAPS_API_KEY = "test-google-key"
    settings.MAPBOX_ACCESS_TOKEN = "test-mapbox-token"
    settings.SENTRY_DSN = None
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(backend: BackendStub) -> TestClient:
    async def _client_override() -> httpx.AsyncClient:
        return backend.client()

    app.dependency_overrides[routing_client] = _client_override
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture
def stops() -> list[Waypoint]:
    return [
        Waypoint(lat=40.4093, lng=49.8671, label="Fountain Square"),
        Waypoint(lat=40.3667, lng=49.8352, label="Old City", address="Icherisheher"),
        Waypoint(lat=40.3953, lng=49.8822, label="Flame Towers"),
    ]
