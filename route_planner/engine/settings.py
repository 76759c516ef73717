from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"

# Browsers cap geolocation lookups at this bound; start resolution never waits longer.
MAX_GEOLOCATION_TIMEOUT_SECONDS = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Pages allowed to embed the planner, comma-separated or "*"; empty disables CORS
    CORS_ALLOW_ORIGINS: str = ""

    # Routing backend used when a request does not name one
    MAP_PROVIDER: Literal["google", "mapbox", "osrm"] = "osrm"

    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_DIRECTIONS_URL: str = "https://maps.googleapis.com/maps/api/directions/json"
    MAPBOX_ACCESS_TOKEN: str | None = None
    MAPBOX_DIRECTIONS_URL: str = "https://api.mapbox.com/directions/v5/mapbox"
    OSRM_BASE_URL: str = "https://router.project-osrm.org/route/v1"

    ROUTING_TIMEOUT_SECONDS: float = 10.0
    ROUTING_CONNECT_TIMEOUT_SECONDS: float = 5.0
    GEOLOCATION_TIMEOUT_SECONDS: float = MAX_GEOLOCATION_TIMEOUT_SECONDS
    DIRECTIONS_LANGUAGE: str = "en"

    # Exports
    GPX_CREATOR: str = "Route Planner"

    # Error reporting
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def geolocation_timeout(self) -> float:
        timeout = self.GEOLOCATION_TIMEOUT_SECONDS
        if timeout <= 0:
            return MAX_GEOLOCATION_TIMEOUT_SECONDS
        return min(timeout, MAX_GEOLOCATION_TIMEOUT_SECONDS)


settings = Settings()
