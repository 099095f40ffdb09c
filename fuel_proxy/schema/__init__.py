"""
GraphQL schema (graphql-core) for the fuel-proxy endpoint.
"""

from .entrypoints import MutationType, QueryType, build_schema  # noqa: F401
from .scalars import Bytes32Scalar, HexStringScalar, U64Scalar  # noqa: F401
