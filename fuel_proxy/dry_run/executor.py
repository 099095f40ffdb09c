"""
Per-transaction execution against the node: estimate gas, then call.

``ExecutionClientAdapter`` wraps an ``ExecutionClient`` so that every failure
leaves this module as a ``GasEstimationFailed`` or ``SimulatedCallFailed``
tagged with the transaction's index and identifier. Cancellation is never
wrapped.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Dict, Optional, Tuple

from ..adapters.execution_client import ExecutionClient, RpcResponseError
from ..errors import GasEstimationFailed, SimulatedCallFailed
from ..metrics import Metrics
from ..types import HexTransaction, PrecompileCallMessage, hex_to_bytes
from .results import revert_reason


def _rpc_details(exc: Exception) -> Dict[str, Any]:
    if not isinstance(exc, RpcResponseError):
        return {}
    details: Dict[str, Any] = {"rpcCode": exc.code}
    data = exc.data
    if data is not None:
        details["rpcData"] = data
    if isinstance(data, str):
        try:
            reason = revert_reason(hex_to_bytes(data))
        except (TypeError, ValueError):
            reason = None
        if reason is not None:
            details["revertReason"] = reason
    return details


class ExecutionClientAdapter:
    def __init__(self, client: ExecutionClient, *, metrics: Optional[Metrics] = None):
        self.client = client
        self.metrics = metrics

    def _timer(self, method: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_rpc(method)

    async def estimate_gas(self, tx: HexTransaction, tx_id: str, msg: PrecompileCallMessage) -> int:
        try:
            with self._timer("eth_estimateGas"):
                return await self.client.estimate_gas(msg)
        except Exception as exc:
            raise GasEstimationFailed(index=tx.index, transaction_id=tx_id, cause=exc, details=_rpc_details(exc)) from exc

    async def call(self, tx: HexTransaction, tx_id: str, msg: PrecompileCallMessage) -> bytes:
        try:
            with self._timer("eth_call"):
                return await self.client.call(msg)
        except Exception as exc:
            raise SimulatedCallFailed(index=tx.index, transaction_id=tx_id, cause=exc, details=_rpc_details(exc)) from exc

    async def execute(self, tx: HexTransaction, tx_id: str, msg: PrecompileCallMessage) -> Tuple[int, bytes]:
        """Estimate, attach gas, call. Returns ``(gas, output)``."""
        gas = await self.estimate_gas(tx, tx_id, msg)
        output = await self.call(tx, tx_id, msg.with_gas(gas))
        return gas, output


__all__ = ["ExecutionClientAdapter"]
