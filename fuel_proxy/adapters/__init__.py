"""
Adapters to external systems (the EVM execution client).
"""

from .execution_client import (  # noqa: F401
    EthRpcClient,
    EthRpcConfig,
    ExecutionClient,
    NodeRpcError,
    RpcResponseError,
    RpcTransportError,
    from_config,
)
