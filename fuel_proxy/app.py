from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from .adapters.execution_client import ExecutionClient, from_config
from .config import Config, load_config
from .dry_run import DryRunService
from .logging import get_logger, setup_logging
from .metrics import Metrics, setup_metrics
from .middleware.errors import install_error_handlers
from .middleware.logging import install_access_log_middleware
from .middleware.request_id import install_request_id_middleware
from .routers.graphql import create_graphql_router
from .routers.health import router as health_router
from .schema import build_schema
from .version import __version__

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan: the execution client connects lazily, so startup only logs;
    shutdown closes the shared HTTP client when this app owns it.
    """
    cfg: Config = app.state.config
    log.info("startup", graphql_path=cfg.graphql_path, rpc_url=cfg.rpc_url, chain_id=cfg.chain_id)
    try:
        yield
    finally:
        client = app.state.execution_client
        close = getattr(client, "close", None)
        if app.state.owns_client and close is not None:
            await close()
        log.info("shutdown")


def create_app(config: Optional[Config] = None, client: Optional[ExecutionClient] = None) -> FastAPI:
    """
    FastAPI factory. Wires the execution client, dry-run service, GraphQL
    schema, middleware, metrics and health routes.

    ``client`` overrides the JSON-RPC client built from ``config`` (tests pass
    an in-memory fake).
    """
    cfg = config or load_config()
    setup_logging(level=cfg.log_level, log_format=cfg.log_format)

    app = FastAPI(
        title="Fuel Proxy",
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.config = cfg

    metrics: Optional[Metrics] = None
    if cfg.metrics_enabled:
        metrics = Metrics(service_name="fuel-proxy", service_version=__version__)

    app.state.owns_client = client is None
    app.state.execution_client = client if client is not None else from_config(cfg)
    app.state.dry_run_service = DryRunService.from_config(
        cfg,
        app.state.execution_client,
        logger=get_logger("fuel_proxy.dry_run"),
        metrics=metrics,
    )
    app.state.schema = build_schema()

    # Middleware (last added runs first)
    install_access_log_middleware(app)
    install_request_id_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors.allow_origins,
        allow_methods=cfg.cors.allow_methods,
        allow_headers=cfg.cors.allow_headers,
        allow_credentials=cfg.cors.allow_credentials,
        expose_headers=["X-Request-Id", "traceparent"],
    )

    install_error_handlers(app)

    if metrics is not None:
        setup_metrics(app, metrics)

    app.include_router(health_router)
    app.include_router(create_graphql_router(cfg.graphql_path))

    return app
