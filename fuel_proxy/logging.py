from __future__ import annotations

"""
Structured logging setup for fuel-proxy.

This module configures **structlog** + the stdlib ``logging`` package so that:
- All logs (including uvicorn) are emitted as structured JSON by default, or
  through the console renderer in dev.
- Context variables (request id, trace id) are merged into each event.
- Exceptions include a structured stack trace.

Components never log through module-level state of their own; they receive a
bound logger (see ``get_logger``) at construction time.

Quick start
-----------
    from fuel_proxy.logging import setup_logging, get_logger

    setup_logging(level="INFO", log_format="json")  # once, on process start
    log = get_logger(__name__)
    log.info("server_started", port=4000)
"""

import logging
import logging.config
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

SERVICE_NAME = "fuel-proxy"


# ------------------------------ Redaction ------------------------------------


REDACT_KEYS = {"authorization", "token", "password", "secret", "api_key"}


def _redact_secrets(_: logging.Logger, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for k in list(event_dict.keys()):
        if k.lower() in REDACT_KEYS and event_dict[k] is not None:
            event_dict[k] = "***"
    return event_dict


# ------------------------------ Setup ----------------------------------------


def _base_processors(service_name: str, include_stacktrace: bool) -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    if include_stacktrace:
        yield structlog.processors.format_exc_info
    yield _redact_secrets
    yield structlog.processors.UnicodeDecoder()

    def _ensure_service(_: logging.Logger, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    yield _ensure_service


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = "json",
    service_name: str = SERVICE_NAME,
    include_stacktrace: Optional[bool] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once; the
    root handler is replaced each time.

    Parameters
    ----------
    level: str|int
        Log level (e.g., "INFO").
    log_format: str
        "json" (default) or "console".
    include_stacktrace: bool
        Render exc_info into the event. Defaults to True for JSON and False
        for console output (the console renderer prints tracebacks itself).
    """
    log_format = log_format.lower()
    if include_stacktrace is None:
        include_stacktrace = log_format == "json"

    processors = list(_base_processors(service_name, include_stacktrace))

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)
    else:
        renderer = JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    # structlog events and foreign stdlib records (uvicorn, httpx) share one renderer
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                *processors,
            ],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.propagate = False
        lg.setLevel(level)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structlog logger; bind module name if provided.
    """
    log = structlog.get_logger()
    if name:
        return log.bind(logger=name)
    return log


# ------------------------------ Context helpers -------------------------------


def bind_request_context(**kv: Any) -> None:
    """
    Bind request-scoped key/value pairs into the structlog contextvars store.
    """
    payload = {k: v for k, v in kv.items() if v}
    if payload:
        structlog.contextvars.bind_contextvars(**payload)


def clear_request_context(*keys: str) -> None:
    """
    Clear specific keys from contextvars, or clear all if no keys provided.
    """
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = [
    "SERVICE_NAME",
    "setup_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]
