"""
fuel-proxy
==========

GraphQL front-end that dry-runs Fuel VM transactions against an EVM execution
client hosting the FuelVM precompile.

This package exposes:

- ``__version__``: semantic version string
- ``build_app()``: convenience creator for a configured FastAPI app

Prefer importing submodules directly for specific concerns:
``fuel_proxy.config``, ``fuel_proxy.dry_run``, ``fuel_proxy.schema``, etc.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__", "build_app"]


def build_app():
    """
    Create and return a fully configured FastAPI application.

    Importing lazily keeps ``import fuel_proxy`` free of FastAPI and
    graphql-core when consumers only need version metadata.
    """
    from .app import create_app

    return create_app()
