from __future__ import annotations

"""
Access logging middleware: one structured line per request with method,
path, route, status, latency and sizes. Request/trace ids come from the
structlog context bound by the request-id middleware.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..logging import get_logger

log = get_logger("fuel_proxy.access")


def _client_ip(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    real = request.headers.get("x-real-ip")
    if real:
        return real.strip()
    if request.client:
        return request.client.host
    return ""


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is None:
        return ""
    return getattr(route, "path_format", None) or getattr(route, "path", "") or ""


def _int_header(value) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def _level_for_status(status: int) -> str:
    if status >= 500:
        return "error"
    if status >= 400:
        return "warning"
    return "info"


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": _client_ip(request),
            "user_agent": request.headers.get("user-agent", ""),
            "rx_bytes": _int_header(request.headers.get("content-length")),
        }
        try:
            response = await call_next(request)
        except Exception:
            log.exception("access", status=500, latency_ms=round((time.perf_counter() - start) * 1e3, 3), **fields)
            raise

        status = response.status_code
        getattr(log, _level_for_status(status))(
            "access",
            status=status,
            route=_route_template(request),
            latency_ms=round((time.perf_counter() - start) * 1e3, 3),
            tx_bytes=_int_header(response.headers.get("content-length")),
            **fields,
        )
        return response


def install_access_log_middleware(app: FastAPI) -> None:
    app.add_middleware(AccessLogMiddleware)


__all__ = ["AccessLogMiddleware", "install_access_log_middleware"]
