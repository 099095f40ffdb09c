"""
Uvicorn launcher for fuel-proxy.

Usage:
  fuel-proxy [--host 0.0.0.0] [--port 4000] [--workers 1] [--reload]
             [--log-level info]

Flags default to the FUEL_PROXY_* configuration (see fuel_proxy.config).
"""

from __future__ import annotations

import argparse
from typing import Optional

import uvicorn

from .config import load_config


def main(argv: Optional[list[str]] = None) -> None:
    cfg = load_config()

    parser = argparse.ArgumentParser(description="Run the fuel-proxy GraphQL dry-run bridge (uvicorn)")
    parser.add_argument("--host", default=cfg.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", default=False, help="Enable autoreload (dev only)")
    parser.add_argument("--log-level", default=cfg.log_level.lower(), help="Log level for uvicorn (default: %(default)s)")
    parser.add_argument("--forwarded-allow-ips", default="127.0.0.1", help="Comma list of trusted proxies (default: %(default)s)")

    args = parser.parse_args(argv)

    if args.reload and args.workers != 1:
        parser.error("--reload cannot be combined with --workers > 1")

    # Factory import string: each worker builds its own app and client.
    uvicorn.run(
        "fuel_proxy.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        proxy_headers=True,
        forwarded_allow_ips=args.forwarded_allow_ips,
        reload=args.reload,
        workers=args.workers,
    )


if __name__ == "__main__":
    main()
