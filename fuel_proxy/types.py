"""
fuel_proxy.types: request-scoped data model for the dry-run bridge.

Every value here lives for a single GraphQL call and is immutable once built.
The only late-bound field, the estimated gas of a call message, is attached
with `PrecompileCallMessage.with_gas(...)`, which returns a new instance.

Types
-----
* HexString            : value produced by the `HexString` GraphQL scalar
* HexTransaction       : one raw Fuel transaction plus its input position
* DryRunRequest        : ordered transactions + utxo flag + gas-price hint
* PrecompileCallMessage: EVM call aimed at the FuelVM precompile
* Success / Failure    : the two `ExecutionStatus` variants
* Receipt              : opaque record emitted by simulated execution
* DryRunResult         : one per input transaction, same order
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

HexLike = Union[str, bytes, bytearray, memoryview]

U64_MAX = 2**64 - 1

_HEX_RE = re.compile(r"(?:0[xX])?((?:[0-9a-fA-F]{2})*)")


# ------------------------------ hex helpers ---------------------------------


def hex_to_bytes(v: HexLike) -> bytes:
    """
    Decode `0x`-optional, even-length hex (or pass raw bytes through).
    """
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if isinstance(v, str):
        m = _HEX_RE.fullmatch(v)
        if m is None:
            raise ValueError(f"invalid hex string (even number of hex digits, no whitespace): {v!r}")
        return bytes.fromhex(m.group(1))
    raise TypeError(f"expected hex-like value, got {type(v).__name__}")


def bytes_to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()


# ------------------------------ scalar values --------------------------------


@dataclass(frozen=True)
class HexString:
    """Decoded `HexString` scalar: raw bytes with a canonical 0x-lowercase form."""

    value: bytes

    @classmethod
    def parse(cls, raw: HexLike) -> "HexString":
        return cls(hex_to_bytes(raw))

    def hex(self) -> str:
        return bytes_to_hex(self.value)

    def __str__(self) -> str:
        return self.hex()


# ------------------------------ request side ---------------------------------


@dataclass(frozen=True)
class HexTransaction:
    index: int
    raw: bytes

    @property
    def hex(self) -> str:
        return bytes_to_hex(self.raw)

    def __len__(self) -> int:
        return len(self.raw)


@dataclass(frozen=True)
class DryRunRequest:
    transactions: Tuple[HexTransaction, ...] = ()
    utxo_validation: bool = False
    gas_price: int = 0

    def __len__(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class PrecompileConfig:
    """Fixed addressing for every simulated call (comes from configuration)."""

    relayer_address: str
    precompile_address: str
    selector: bytes
    chain_id: int = 0


@dataclass(frozen=True)
class PrecompileCallMessage:
    sender: str
    to: str
    data: bytes
    gas: Optional[int] = None

    def with_gas(self, gas: int) -> "PrecompileCallMessage":
        if self.gas is not None:
            raise ValueError("gas has already been set on this call message")
        if gas < 0:
            raise ValueError("gas must be >= 0")
        return replace(self, gas=int(gas))

    def to_call_object(self) -> dict[str, str]:
        """
        JSON-RPC call object as understood by eth_estimateGas / eth_call.
        """
        call = {"from": self.sender, "to": self.to, "data": bytes_to_hex(self.data)}
        if self.gas is not None:
            call["gas"] = hex(self.gas)
        return call


# ------------------------------ result side ----------------------------------


@dataclass(frozen=True)
class Success:
    return_data: bytes = b""

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str
    revert_data: bytes = b""

    @property
    def is_success(self) -> bool:
        return False


ExecutionStatus = Union[Success, Failure]


@dataclass(frozen=True)
class Receipt:
    receipt_type: str
    data: bytes = b""


@dataclass(frozen=True)
class DryRunResult:
    id: str
    status: ExecutionStatus
    receipts: Tuple[Receipt, ...] = ()
    total_gas: int = 0
    total_fee: int = 0


__all__ = [
    "HexLike",
    "U64_MAX",
    "hex_to_bytes",
    "bytes_to_hex",
    "HexString",
    "HexTransaction",
    "DryRunRequest",
    "PrecompileConfig",
    "PrecompileCallMessage",
    "Success",
    "Failure",
    "ExecutionStatus",
    "Receipt",
    "DryRunResult",
]
