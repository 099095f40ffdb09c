from __future__ import annotations

"""
Request ID & tracing middleware.

- Generates or propagates **X-Request-Id** for every request.
- Honours the W3C **traceparent** header: an incoming trace-id is kept and a
  fresh span-id assigned; otherwise a new trace is started.
- Exposes ids on ``request.state`` (request_id, trace_id, span_id,
  parent_span_id) and binds them into the structlog context for the duration
  of the request.
- Echoes X-Request-Id and traceparent on the response.
"""

import re
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..logging import bind_request_context, clear_request_context

_TRACEPARENT_RE = re.compile(
    r"^(?P<ver>[0-9a-f]{2})-(?P<trace_id>[0-9a-f]{32})-(?P<span_id>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)

_CONTEXT_KEYS = ("request_id", "trace_id", "span_id", "parent_span_id")


def parse_traceparent(value: str) -> Optional[Tuple[str, str, str]]:
    """
    Parse W3C traceparent. Returns (trace_id, parent_span_id, flags) or None.
    """
    m = _TRACEPARENT_RE.match(value.strip())
    if not m:
        return None
    trace_id = m.group("trace_id")
    span_id = m.group("span_id")
    # all-zero ids are invalid
    if trace_id == "0" * 32 or span_id == "0" * 16:
        return None
    return trace_id, span_id, m.group("flags")


def _format_traceparent(trace_id: str, span_id: str, flags: str = "01") -> str:
    return f"00-{trace_id}-{span_id}-{flags}"


@dataclass(frozen=True)
class RequestIdConfig:
    request_id_header: str = "X-Request-Id"
    traceparent_header: str = "traceparent"


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, config: Optional[RequestIdConfig] = None):
        super().__init__(app)
        self.cfg = config or RequestIdConfig()

    async def dispatch(self, request: Request, call_next):
        headers = request.headers
        req_id = headers.get(self.cfg.request_id_header) or uuid.uuid4().hex

        parent = headers.get(self.cfg.traceparent_header)
        parsed = parse_traceparent(parent) if parent else None
        if parsed:
            trace_id, parent_span_id, flags = parsed
        else:
            trace_id, parent_span_id, flags = secrets.token_hex(16), "", "01"
        span_id = secrets.token_hex(8)

        request.state.request_id = req_id
        request.state.trace_id = trace_id
        request.state.span_id = span_id
        request.state.parent_span_id = parent_span_id

        bind_request_context(request_id=req_id, trace_id=trace_id, span_id=span_id, parent_span_id=parent_span_id)
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_context(*_CONTEXT_KEYS)

        response.headers[self.cfg.request_id_header] = req_id
        response.headers[self.cfg.traceparent_header] = _format_traceparent(trace_id, span_id, flags)
        return response


def install_request_id_middleware(app: FastAPI, *, config: Optional[RequestIdConfig] = None) -> RequestIdConfig:
    cfg = config or RequestIdConfig()
    app.add_middleware(RequestIdMiddleware, config=cfg)
    return cfg


__all__ = [
    "RequestIdConfig",
    "RequestIdMiddleware",
    "install_request_id_middleware",
    "parse_traceparent",
]
