"""
Dry-run bridge: GraphQL transaction batch -> precompile EVM calls -> typed results.
"""

from .call_builder import PrecompileCallBuilder  # noqa: F401
from .decoder import RequestDecoder  # noqa: F401
from .encoder import ResponseEncoder  # noqa: F401
from .executor import ExecutionClientAdapter  # noqa: F401
from .results import (OutputDecoder, PrecompileOutputDecoder,  # noqa: F401
                      ResultAggregator, transaction_id)
from .service import DryRunService  # noqa: F401
