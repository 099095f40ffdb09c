from __future__ import annotations

"""
Exception -> RFC 7807 "problem+json" mappers for the REST routes.

- ``ApiError`` subclasses (``fuel_proxy.errors``)
- Starlette/FastAPI ``HTTPException``
- ``RequestValidationError``
- Unhandled exceptions (500, stack trace logged, never returned)

GraphQL execution errors do not pass through here; they are reported inside
the GraphQL response envelope.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import ApiError
from ..logging import get_logger

PROBLEM_CT = "application/problem+json"

log = get_logger(__name__)

_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    415: "Unsupported Media Type",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def _state_ids(request: Request) -> Dict[str, str]:
    return {
        "request_id": getattr(request.state, "request_id", "") or "",
        "trace_id": getattr(request.state, "trace_id", "") or "",
    }


def _problem(
    request: Request,
    *,
    status: int,
    title: Optional[str] = None,
    detail: str = "",
    type_uri: str = "about:blank",
    extras: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    prob: Dict[str, Any] = {
        "type": type_uri,
        "title": title or _TITLES.get(status, "Error"),
        "status": status,
        "detail": detail,
        "instance": str(request.url.path),
        **_state_ids(request),
    }
    for k, v in (extras or {}).items():
        prob.setdefault(k, v)
    return prob


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    body = {**exc.to_problem(), "instance": str(request.url.path), **_state_ids(request)}
    (log.error if exc.status_code >= 500 else log.warning)("api_error", code=exc.code, status=exc.status_code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body, media_type=PROBLEM_CT)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status = int(exc.status_code)
    body = _problem(request, status=status, detail=str(exc.detail) if exc.detail else "")
    (log.warning if status < 500 else log.error)("http_exception", status=status, detail=body["detail"])
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT, headers=getattr(exc, "headers", None))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = _problem(request, status=422, detail="Request validation failed.", extras={"errors": exc.errors()})
    log.warning("validation_error", errors=len(body["errors"]))
    return JSONResponse(status_code=422, content=body, media_type=PROBLEM_CT)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    body = _problem(
        request,
        status=500,
        detail="An unexpected error occurred. Please retry or contact support with the request_id.",
    )
    log.exception("unhandled_exception", exc_type=exc.__class__.__name__)
    return JSONResponse(status_code=500, content=body, media_type=PROBLEM_CT)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers", "PROBLEM_CT"]
