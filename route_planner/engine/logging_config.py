"""
Structured logging for the planner.

Engine modules log through the standard library (``logging.getLogger``);
their records are rendered by the same structlog processor chain as
``get_logger`` loggers, so both end up as one JSON (or console) stream
carrying the request ID and service fields.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .settings import settings
from .utils import request_id_ctx

SERVICE_NAME = "route-planner"
SERVICE_VERSION = "0.1.0"

_HANDLER_NAME = "route_planner"
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    request_id = request_id_ctx.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = SERVICE_VERSION
    event_dict["environment"] = settings.SENTRY_ENVIRONMENT
    return event_dict


def drop_color_message_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    # uvicorn duplicates the message with ANSI codes
    event_dict.pop("color_message", None)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_service_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        drop_color_message_key,
    ]


def configure_structlog(json_logs: bool = True, level: str | None = None) -> None:
    """
    Route structlog and stdlib logging through one renderer on stdout.

    ``json_logs`` selects JSON lines over the console renderer; ``level``
    defaults to ``settings.LOG_LEVEL`` (DEBUG when ``settings.DEBUG``).
    Calling it again replaces the handler installed by the previous call.
    """
    shared = _shared_processors()
    if json_logs:
        shared.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        shared.append(structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False))
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level or ("DEBUG" if settings.DEBUG else settings.LOG_LEVEL))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Structured logger for key/value events.

    Usage:
        logger = get_logger(__name__)
        logger.info("startup", provider="osrm")
    """
    return structlog.get_logger(name)


__all__ = [
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "add_request_id",
    "add_service_context",
    "configure_structlog",
    "get_logger",
]
