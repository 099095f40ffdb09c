"""
Shapes ``DryRunResult`` values into plain dicts keyed by GraphQL field name.

The status dict carries ``__typename`` so the union's ``resolve_type`` can
pick the concrete object type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..types import DryRunResult, ExecutionStatus, Failure, Receipt

SUCCESS_TYPENAME = "DryRunSuccessStatus"
FAILURE_TYPENAME = "DryRunFailureStatus"


def encode_status(status: ExecutionStatus) -> Dict[str, Any]:
    if isinstance(status, Failure):
        return {"__typename": FAILURE_TYPENAME, "reason": status.reason, "revertData": status.revert_data}
    return {"__typename": SUCCESS_TYPENAME, "returnData": status.return_data}


def encode_receipt(receipt: Receipt) -> Dict[str, Any]:
    return {"receiptType": receipt.receipt_type, "data": receipt.data}


class ResponseEncoder:
    def encode_one(self, result: DryRunResult) -> Dict[str, Any]:
        return {
            "id": result.id,
            "status": encode_status(result.status),
            "receipts": [encode_receipt(r) for r in result.receipts],
            "totalGas": result.total_gas,
            "totalFee": result.total_fee,
        }

    def encode(self, results: Sequence[DryRunResult]) -> List[Dict[str, Any]]:
        return [self.encode_one(r) for r in results]


__all__ = ["ResponseEncoder", "encode_status", "encode_receipt", "SUCCESS_TYPENAME", "FAILURE_TYPENAME"]
