"""
JSON-RPC client for the EVM execution client that hosts the FuelVM precompile.

The dry-run pipeline needs exactly two node operations per transaction:
  * eth_estimateGas(call)         -> gas units the call would consume
  * eth_call(call, "latest")      -> raw output bytes of the simulated call

plus eth_chainId for readiness probes. Anything that satisfies the
``ExecutionClient`` protocol can be plugged in (tests use an in-memory fake).

Notes
-----
* Calls are single-shot. A transient failure surfaces immediately as an error
  for the transaction that triggered it.
* Quantities come back as 0x-prefixed hex and are returned as ``int``; call
  output comes back as 0x hex and is returned as ``bytes``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from ..types import PrecompileCallMessage, hex_to_bytes

BLOCK_TAG = "latest"


# ----------------------------- Errors ---------------------------------------


class NodeRpcError(Exception):
    """Base class for all execution client RPC errors."""


class RpcTransportError(NodeRpcError):
    """Network/HTTP transport-level error."""


class RpcResponseError(NodeRpcError):
    """JSON-RPC error object returned from the node."""

    def __init__(self, code: int, message: str, data: Any | None = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


# ----------------------------- Protocol -------------------------------------


@runtime_checkable
class ExecutionClient(Protocol):
    async def estimate_gas(self, msg: PrecompileCallMessage) -> int:
        ...

    async def call(self, msg: PrecompileCallMessage) -> bytes:
        ...


# ----------------------------- Helpers --------------------------------------


def _quantity(value: Any, method: str) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError as e:
            raise RpcTransportError(f"{method}: malformed quantity {value!r}") from e
    raise RpcTransportError(f"{method}: expected quantity, got {type(value).__name__}")


def _build_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    hdrs = {
        "content-type": "application/json",
        "accept": "application/json",
    }
    if extra:
        hdrs.update(extra)
    return hdrs


# ----------------------------- Client ---------------------------------------


@dataclass
class EthRpcConfig:
    url: str
    timeout_s: float = 10.0
    headers: Optional[Dict[str, str]] = None


class EthRpcClient:
    """
    Minimal async JSON-RPC client for an Ethereum-compatible execution client.

    The underlying ``httpx.AsyncClient`` is created on first use so the client
    can be built before an event loop is running.
    """

    def __init__(self, config: EthRpcConfig):
        self._cfg = config
        self._id = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return self._cfg.url

    # ---------- lifecycle ----------

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._cfg.timeout_s,
                headers=_build_headers(self._cfg.headers),
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EthRpcClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------- core transport ----------

    async def _call(self, method: str, params: Any | None = None) -> Any:
        if self._client is None:
            await self.start()

        assert self._client is not None  # for type-checkers

        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params or []}

        try:
            resp = await self._client.post(self._cfg.url, json=payload)
        except httpx.TimeoutException as exc:
            raise RpcTransportError(f"{method}: timed out after {self._cfg.timeout_s:g}s") from exc
        except httpx.TransportError as exc:
            raise RpcTransportError(f"{method}: {exc}") from exc

        text = resp.content
        if resp.status_code != 200:
            raise RpcTransportError(f"{method}: HTTP {resp.status_code}: {text[:256]!r}")
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise RpcTransportError(f"{method}: invalid JSON response") from exc
        if not isinstance(data, dict):
            raise RpcTransportError(f"{method}: unexpected response shape")

        err = data.get("error")
        if err is not None:
            raise RpcResponseError(err.get("code", -32000), err.get("message", "Unknown error"), err.get("data"))
        return data.get("result")

    # ---------- typed methods ----------

    async def estimate_gas(self, msg: PrecompileCallMessage) -> int:
        result = await self._call("eth_estimateGas", [msg.to_call_object()])
        return _quantity(result, "eth_estimateGas")

    async def call(self, msg: PrecompileCallMessage) -> bytes:
        result = await self._call("eth_call", [msg.to_call_object(), BLOCK_TAG])
        if result is None:
            return b""
        try:
            return hex_to_bytes(result)
        except (TypeError, ValueError) as e:
            raise RpcTransportError(f"eth_call: malformed output {result!r}") from e

    async def chain_id(self) -> int:
        return _quantity(await self._call("eth_chainId"), "eth_chainId")


# ----------------------------- Factory --------------------------------------


def from_config(cfg) -> EthRpcClient:
    """Build a client from a ``fuel_proxy.config.Config``."""
    return EthRpcClient(EthRpcConfig(url=cfg.rpc_url, timeout_s=cfg.rpc_timeout_s))


__all__ = [
    "BLOCK_TAG",
    "ExecutionClient",
    "EthRpcClient",
    "EthRpcConfig",
    "NodeRpcError",
    "RpcTransportError",
    "RpcResponseError",
    "from_config",
]
