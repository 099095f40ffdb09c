"""
HTTP routers: GraphQL endpoint and health/version probes.
"""

from .graphql import create_graphql_router  # noqa: F401
from .health import router as health_router  # noqa: F401
