from __future__ import annotations

"""
Error hierarchy and helpers for fuel-proxy.

Every error has:
  - ``status_code`` (int): HTTP status for REST surfaces
  - ``code`` (str): stable machine code (e.g., "gas_estimation_failed")
  - ``message`` (str): human-friendly summary
  - ``details`` (dict|None): structured diagnostics

Two views are provided:
  - ``to_problem()`` renders an RFC 7807 "problem+json" body (REST routes).
  - ``extensions`` is picked up by graphql-core when an error escapes a
    resolver, so GraphQL field errors carry the same code and diagnostics.

Dry-run taxonomy
----------------
    InvalidArgumentShape   malformed GraphQL arguments, raised before any RPC
    GasEstimationFailed    eth_estimateGas failed for one transaction
    SimulatedCallFailed    eth_call failed for one transaction
    DryRunCancelled        the batch deadline expired

The last three abort the whole batch; none of them is fatal to the process.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

DEFAULT_ERROR_DOCS_BASE = "https://docs.fuel.network/errors"


@dataclass(eq=False)
class ApiError(Exception):
    message: str
    status_code: int = 400
    code: str = "bad_request"
    details: Optional[Mapping[str, Any]] = None
    type_uri_base: str = DEFAULT_ERROR_DOCS_BASE

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    # --- RFC 7807 helpers -------------------------------------------------- #

    def type_uri(self) -> str:
        return f"{self.type_uri_base}#{self.code}"

    def title(self) -> str:
        return {
            "bad_request": "Bad Request",
            "invalid_argument_shape": "Invalid Argument Shape",
            "gas_estimation_failed": "Gas Estimation Failed",
            "simulated_call_failed": "Simulated Call Failed",
            "cancelled": "Dry Run Cancelled",
            "server_error": "Internal Server Error",
        }.get(self.code, self.message or "Error")

    def to_problem(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.type_uri(),
            "title": self.title(),
            "status": self.status_code,
            "code": self.code,
            "detail": self.message,
        }
        if self.details:
            body["details"] = dict(self.details)
        return body

    # --- GraphQL bridge ---------------------------------------------------- #

    @property
    def extensions(self) -> Dict[str, Any]:
        ext: Dict[str, Any] = {"code": self.code}
        if self.details:
            ext.update(self.details)
        return ext


# ------------------------------ Concrete types ------------------------------- #


class BadRequest(ApiError):
    def __init__(self, message: str = "Bad request", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=400, code="bad_request", details=details)


class InvalidArgumentShape(ApiError):
    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=400, code="invalid_argument_shape", details=details)


class ServerError(ApiError):
    def __init__(self, message: str = "Internal server error", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=500, code="server_error", details=details)


class DryRunFailed(ApiError):
    """
    Base for per-transaction failures that abort a dry-run batch.

    Carries the failing transaction's position and identifier plus the
    underlying cause (kept as ``__cause__`` as well).
    """

    stage = "dry_run"
    default_code = "dry_run_failed"

    def __init__(
        self,
        *,
        index: int,
        transaction_id: str,
        cause: BaseException,
        details: Optional[Mapping[str, Any]] = None,
    ):
        self.index = index
        self.transaction_id = transaction_id
        self.cause = cause
        merged: Dict[str, Any] = {
            "index": index,
            "transactionId": transaction_id,
            "cause": str(cause),
        }
        if details:
            merged.update(details)
        super().__init__(
            message=f"DryRun: failed to {self.stage} for transaction {index} ({transaction_id}): {cause}",
            status_code=502,
            code=self.default_code,
            details=merged,
        )
        self.__cause__ = cause


class GasEstimationFailed(DryRunFailed):
    stage = "estimate gas"
    default_code = "gas_estimation_failed"


class SimulatedCallFailed(DryRunFailed):
    stage = "call contract"
    default_code = "simulated_call_failed"


class DryRunCancelled(ApiError):
    def __init__(self, timeout_s: float, *, pending: int = 0):
        super().__init__(
            message=f"DryRun: cancelled after {timeout_s:g}s deadline",
            status_code=504,
            code="cancelled",
            details={"timeoutSeconds": timeout_s, "pending": pending},
        )


__all__ = [
    "ApiError",
    "BadRequest",
    "InvalidArgumentShape",
    "ServerError",
    "DryRunFailed",
    "GasEstimationFailed",
    "SimulatedCallFailed",
    "DryRunCancelled",
]
