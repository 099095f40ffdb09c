"""
Argument decoding for the ``dryRun`` field.

The GraphQL layer hands resolvers loosely typed values (scalars already
parsed, but list shape and nullability only partially enforced). This module
turns them into a ``DryRunRequest`` or raises ``InvalidArgumentShape``; it
never touches the network.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..errors import InvalidArgumentShape
from ..types import U64_MAX, DryRunRequest, HexString, HexTransaction


def _decode_tx(index: int, value: Any) -> HexTransaction:
    if isinstance(value, HexString):
        return HexTransaction(index=index, raw=value.value)
    if isinstance(value, str):
        try:
            return HexTransaction(index=index, raw=HexString.parse(value).value)
        except ValueError as e:
            raise InvalidArgumentShape(
                "each transaction must be a hex string",
                details={"index": index, "cause": str(e)},
            ) from e
    raise InvalidArgumentShape(
        "each transaction must be a hex string",
        details={"index": index, "got": type(value).__name__},
    )


def _decode_flag(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidArgumentShape("utxoValidation must be a boolean", details={"got": type(value).__name__})
    return value


def _decode_gas_price(value: Any) -> int:
    if value is None:
        return 0
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentShape("gasPrice must be an unsigned 64-bit integer", details={"got": type(value).__name__})
    if value < 0 or value > U64_MAX:
        raise InvalidArgumentShape("gasPrice must be an unsigned 64-bit integer", details={"got": str(value)})
    return value


class RequestDecoder:
    """Validate raw ``dryRun`` arguments into a ``DryRunRequest``."""

    def decode(
        self,
        txs: Any = None,
        utxo_validation: Any = None,
        gas_price: Any = None,
    ) -> DryRunRequest:
        if txs is None:
            txs = []
        if not isinstance(txs, (list, tuple)):
            raise InvalidArgumentShape("transactions must be a list", details={"got": type(txs).__name__})

        transactions = tuple(_decode_tx(i, v) for i, v in enumerate(txs))
        return DryRunRequest(
            transactions=transactions,
            utxo_validation=_decode_flag(utxo_validation),
            gas_price=_decode_gas_price(gas_price),
        )

    def decode_args(self, args: Optional[Mapping[str, Any]]) -> DryRunRequest:
        """Decode a resolver's ``**args`` mapping (GraphQL argument names)."""
        args = args or {}
        return self.decode(
            txs=args.get("txs"),
            utxo_validation=args.get("utxoValidation"),
            gas_price=args.get("gasPrice"),
        )


__all__ = ["RequestDecoder", "U64_MAX"]
