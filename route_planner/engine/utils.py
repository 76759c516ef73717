from __future__ import annotations

import re
from contextvars import ContextVar
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .settings import settings

REQUEST_ID_HEADER = "X-Request-ID"
# Incoming IDs end up in log lines; anything else is replaced with a fresh one
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def add_cors(app: FastAPI) -> None:
    """Let embedding pages call the planner; exports need Content-Disposition exposed."""
    origins = settings.allow_origins
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
    )


def clean_request_id(value: str | None) -> str:
    if value and _REQUEST_ID_RE.match(value):
        return value
    return uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to the log context for the lifetime of one HTTP call."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = clean_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_ctx.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def add_request_id_tracing(app: FastAPI) -> None:
    app.add_middleware(RequestIDMiddleware)


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIDMiddleware",
    "add_cors",
    "add_request_id_tracing",
    "clean_request_id",
    "request_id_ctx",
]
