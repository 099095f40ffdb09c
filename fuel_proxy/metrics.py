from __future__ import annotations

"""
Prometheus metrics setup and /metrics exporter for fuel-proxy.

Features
--------
- Single- *and* multi-process (uvicorn workers) support.
- Low-overhead ASGI middleware that records:
    - http_requests_total{method,path,status}
    - http_request_duration_seconds histogram
    - http_inprogress_requests gauge
- Dry-run counters used by the service layer:
    - dry_run_batches_total{outcome}
    - dry_run_transactions_total{status}
    - execution_rpc_duration_seconds{method}
- Router mounted at /metrics (configurable).

Every ``Metrics`` instance owns its own ``CollectorRegistry`` so several apps
(e.g. in tests) can coexist in one process.

Env
---
- PROMETHEUS_MULTIPROC_DIR: if set, use multiprocess registry/collectors.
- METRICS_PATH: override default /metrics path (optional).
"""

import os
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, FastAPI
from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, Info, PlatformCollector,
                               ProcessCollector, generate_latest, multiprocess)
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


# ------------------------------ Registry -------------------------------------


class Metrics:
    """
    Holder for registry and metric objects. Exposed via app.state.metrics.
    """

    def __init__(self, service_name: str = "fuel-proxy", service_version: Optional[str] = None) -> None:
        self.multiproc_dir = os.getenv("PROMETHEUS_MULTIPROC_DIR")
        self.registry = CollectorRegistry()

        if self.multiproc_dir:
            multiprocess.MultiProcessCollector(self.registry)
        else:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)

        # Gauges need an aggregation mode in multiprocess mode.
        gauge_kwargs: Dict[str, Any] = {"registry": self.registry}
        if self.multiproc_dir:
            gauge_kwargs["multiprocess_mode"] = "livesum"

        self.http_inprogress = Gauge(
            "http_inprogress_requests",
            "In-progress HTTP requests",
            ["method", "path"],
            **gauge_kwargs,
        )
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "path", "status"],
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )

        # Dry-run pipeline
        self.dry_run_batches_total = Counter(
            "dry_run_batches_total",
            "Dry-run batches by outcome (ok, failed, cancelled)",
            ["outcome"],
            registry=self.registry,
        )
        self.dry_run_transactions_total = Counter(
            "dry_run_transactions_total",
            "Simulated transactions by execution status (success, failure)",
            ["status"],
            registry=self.registry,
        )
        self.execution_rpc_duration_seconds = Histogram(
            "execution_rpc_duration_seconds",
            "Execution client RPC latency in seconds",
            ["method"],
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )

        # Info is not aggregated across processes
        self.service_info: Optional[Info] = None
        if not self.multiproc_dir:
            self.service_info = Info("service_info", "Service metadata", registry=self.registry)
            payload = {"name": service_name}
            if service_version:
                payload["version"] = service_version
            self.service_info.info(payload)

    # ---- domain helpers ----

    def observe_batch(self, outcome: str) -> None:
        self.dry_run_batches_total.labels(outcome).inc()

    def observe_transaction(self, status: str) -> None:
        self.dry_run_transactions_total.labels(status).inc()

    @contextmanager
    def time_rpc(self, method: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.execution_rpc_duration_seconds.labels(method).observe(time.perf_counter() - start)

    def render_latest(self) -> bytes:
        return generate_latest(self.registry)


# ------------------------------ Middleware -----------------------------------


def _extract_path_template(scope: Scope) -> str:
    """
    Low-cardinality path template from the matched route, falling back to the
    raw path.
    """
    route = scope.get("route")
    for attr in ("path_format", "path"):
        if route is not None and hasattr(route, attr):
            val = getattr(route, attr, None)
            if isinstance(val, str) and val:
                return val
    raw = scope.get("path") or (scope.get("raw_path") or b"").decode("latin-1", "ignore")
    return raw if isinstance(raw, str) else raw.decode("latin-1", "ignore")


class PrometheusMiddleware:
    """
    ASGI middleware recording HTTP request metrics.
    """

    def __init__(self, app: ASGIApp, metrics: Metrics):
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path_tmpl = _extract_path_template(scope)
        start = time.perf_counter()
        status_code = 500  # default in case of early error

        self.metrics.http_inprogress.labels(method, path_tmpl).inc()

        async def send_wrapped(message: Dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapped)
        finally:
            duration = time.perf_counter() - start
            labels = (method, path_tmpl, str(status_code))
            try:
                self.metrics.http_requests_total.labels(*labels).inc()
                self.metrics.http_request_duration_seconds.labels(*labels).observe(duration)
            finally:
                self.metrics.http_inprogress.labels(method, path_tmpl).dec()


# ------------------------------ Router ---------------------------------------


def create_metrics_router(metrics: Metrics, path: str = "/metrics") -> APIRouter:
    router = APIRouter()

    @router.get(path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        return Response(content=metrics.render_latest(), media_type=CONTENT_TYPE_LATEST)

    return router


# ------------------------------ Setup helper ---------------------------------


def setup_metrics(
    app: FastAPI,
    metrics: Metrics,
    *,
    path: Optional[str] = None,
) -> Metrics:
    """
    Wire an existing ``Metrics`` into a FastAPI app: add the HTTP middleware
    and mount the exporter. The instance is stored on ``app.state.metrics``.
    """
    app.add_middleware(PrometheusMiddleware, metrics=metrics)
    export_path = path or os.getenv("METRICS_PATH") or "/metrics"
    app.include_router(create_metrics_router(metrics, export_path))
    app.state.metrics = metrics
    return metrics


__all__ = [
    "Metrics",
    "PrometheusMiddleware",
    "create_metrics_router",
    "setup_metrics",
]
