"""
Result aggregation: raw precompile output -> typed ``DryRunResult``.

Output decoding is pluggable through the ``OutputDecoder`` protocol. The
default ``PrecompileOutputDecoder`` understands the two standard Solidity
revert payloads and treats everything else as successful return data:

    0x08c379a0 ‖ abi(string)    Error(string)   -> Failure(reason)
    0x4e487b71 ‖ abi(uint256)   Panic(uint256)  -> Failure("panic: 0x..")
    anything else                               -> Success

Transaction identifiers are ``sha256(chain_id as u64 BE ‖ raw tx)``.
``total_fee`` is ``gas * gas_price`` saturated at the U64 maximum.
"""

from __future__ import annotations

import hashlib
from typing import List, Optional, Protocol, Sequence, Tuple

from ..errors import ServerError
from ..types import (U64_MAX, DryRunRequest, DryRunResult, ExecutionStatus,
                     Failure, HexTransaction, Receipt, Success)

ERROR_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

RECEIPT_RETURN_DATA = "ReturnData"
RECEIPT_REVERT = "Revert"

GENERIC_REVERT_REASON = "execution reverted"


def transaction_id(chain_id: int, raw: bytes) -> str:
    digest = hashlib.sha256(int(chain_id).to_bytes(8, "big") + bytes(raw)).hexdigest()
    return "0x" + digest


# ------------------------------ revert payloads -------------------------------


def decode_error_string(raw: bytes) -> Optional[str]:
    """
    Decode an ABI ``Error(string)`` payload. Returns None when ``raw`` is not
    one or is truncated.
    """
    if len(raw) < 4 + 32 + 32 or raw[:4] != ERROR_SELECTOR:
        return None
    body = raw[4:]
    offset = int.from_bytes(body[0:32], "big")
    if offset + 32 > len(body):
        return None
    strlen = int.from_bytes(body[offset : offset + 32], "big")
    start = offset + 32
    if start + strlen > len(body):
        return None
    return body[start : start + strlen].decode("utf-8", errors="replace")


def decode_panic_code(raw: bytes) -> Optional[int]:
    if len(raw) < 4 + 32 or raw[:4] != PANIC_SELECTOR:
        return None
    return int.from_bytes(raw[4:36], "big")


def revert_reason(raw: bytes) -> Optional[str]:
    """Human-readable reason for a revert payload, or None if unrecognised."""
    reason = decode_error_string(raw)
    if reason is not None:
        return reason
    code = decode_panic_code(raw)
    if code is not None:
        return f"panic: {code:#x}"
    return None


# ------------------------------ decoders --------------------------------------


class OutputDecoder(Protocol):
    def decode(self, output: bytes) -> Tuple[ExecutionStatus, Tuple[Receipt, ...]]:
        ...


class PrecompileOutputDecoder:
    def decode(self, output: bytes) -> Tuple[ExecutionStatus, Tuple[Receipt, ...]]:
        output = bytes(output)
        if output[:4] in (ERROR_SELECTOR, PANIC_SELECTOR):
            reason = revert_reason(output) or GENERIC_REVERT_REASON
            return Failure(reason=reason, revert_data=output), (Receipt(RECEIPT_REVERT, output),)
        if not output:
            return Success(), ()
        return Success(return_data=output), (Receipt(RECEIPT_RETURN_DATA, output),)


# ------------------------------ aggregation -----------------------------------


class ResultAggregator:
    """
    Turns per-transaction execution outcomes into ordered results.

    ``result_for`` builds one ``DryRunResult``; ``collect`` checks that every
    input position has exactly one result and returns them in input order.
    """

    def __init__(self, decoder: Optional[OutputDecoder] = None, *, chain_id: int = 0):
        self.decoder = decoder or PrecompileOutputDecoder()
        self.chain_id = chain_id

    def id_for(self, tx: HexTransaction) -> str:
        return transaction_id(self.chain_id, tx.raw)

    def result_for(self, tx: HexTransaction, *, gas: int, output: bytes, gas_price: int = 0) -> DryRunResult:
        status, receipts = self.decoder.decode(output)
        return DryRunResult(
            id=self.id_for(tx),
            status=status,
            receipts=tuple(receipts),
            total_gas=gas,
            total_fee=min(gas * gas_price, U64_MAX),
        )

    def collect(self, request: DryRunRequest, slots: Sequence[Optional[DryRunResult]]) -> List[DryRunResult]:
        if len(slots) != len(request.transactions):
            raise ServerError(
                "dry-run result count does not match the request",
                details={"results": len(slots), "transactions": len(request.transactions)},
            )
        missing = [i for i, r in enumerate(slots) if r is None]
        if missing:
            raise ServerError("missing dry-run results", details={"missing": missing})
        return list(slots)  # type: ignore[arg-type]


__all__ = [
    "ERROR_SELECTOR",
    "PANIC_SELECTOR",
    "RECEIPT_RETURN_DATA",
    "RECEIPT_REVERT",
    "GENERIC_REVERT_REASON",
    "OutputDecoder",
    "PrecompileOutputDecoder",
    "ResultAggregator",
    "decode_error_string",
    "decode_panic_code",
    "revert_reason",
    "transaction_id",
]
