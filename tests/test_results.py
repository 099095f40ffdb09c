from __future__ import annotations

import hashlib

import pytest

from fuel_proxy.dry_run.results import (ERROR_SELECTOR, GENERIC_REVERT_REASON,
                                        PANIC_SELECTOR,
                                        PrecompileOutputDecoder,
                                        ResultAggregator, revert_reason,
                                        transaction_id)
from fuel_proxy.errors import ServerError
from fuel_proxy.types import (U64_MAX, DryRunRequest, Failure, HexTransaction,
                              Receipt, Success)


def abi_error(reason: str) -> bytes:
    raw = reason.encode("utf-8")
    padded = raw + b"\x00" * (-len(raw) % 32)
    return ERROR_SELECTOR + (32).to_bytes(32, "big") + len(raw).to_bytes(32, "big") + padded


def abi_panic(code: int) -> bytes:
    return PANIC_SELECTOR + code.to_bytes(32, "big")


def test_error_string_output_is_failure():
    out = abi_error("insufficient balance")
    status, receipts = PrecompileOutputDecoder().decode(out)

    assert status == Failure(reason="insufficient balance", revert_data=out)
    assert receipts == (Receipt("Revert", out),)


def test_panic_output_is_failure():
    status, receipts = PrecompileOutputDecoder().decode(abi_panic(0x11))
    assert isinstance(status, Failure)
    assert status.reason == "panic: 0x11"
    assert receipts[0].receipt_type == "Revert"


def test_truncated_revert_falls_back_to_generic_reason():
    status, _ = PrecompileOutputDecoder().decode(ERROR_SELECTOR + b"\x00" * 8)
    assert status == Failure(reason=GENERIC_REVERT_REASON, revert_data=ERROR_SELECTOR + b"\x00" * 8)


def test_plain_output_is_success_with_return_data_receipt():
    status, receipts = PrecompileOutputDecoder().decode(b"\x00\x00\x00\x2a")
    assert status == Success(return_data=b"\x00\x00\x00\x2a")
    assert receipts == (Receipt("ReturnData", b"\x00\x00\x00\x2a"),)


def test_empty_output_is_success_without_receipts():
    status, receipts = PrecompileOutputDecoder().decode(b"")
    assert status.is_success
    assert receipts == ()


def test_revert_reason_unrecognised_payload():
    assert revert_reason(b"\x01\x02") is None
    assert revert_reason(abi_error("nope")) == "nope"


def test_transaction_id_binds_chain_and_bytes():
    raw = bytes.fromhex("abc123")
    expected = "0x" + hashlib.sha256((9889).to_bytes(8, "big") + raw).hexdigest()

    assert transaction_id(9889, raw) == expected
    assert transaction_id(1, raw) != expected
    assert transaction_id(9889, raw + b"\x00") != expected


def test_result_for_computes_fee_and_id():
    agg = ResultAggregator(chain_id=7)
    tx = HexTransaction(index=0, raw=b"\x01")
    result = agg.result_for(tx, gas=100, output=b"\x05", gas_price=3)

    assert result.id == transaction_id(7, b"\x01")
    assert result.total_gas == 100
    assert result.total_fee == 300
    assert result.status == Success(return_data=b"\x05")


def test_total_fee_saturates_at_u64_max():
    agg = ResultAggregator()
    tx = HexTransaction(index=0, raw=b"\x01")

    assert agg.result_for(tx, gas=21001, output=b"", gas_price=U64_MAX).total_fee == U64_MAX
    assert agg.result_for(tx, gas=1, output=b"", gas_price=U64_MAX).total_fee == U64_MAX
    assert agg.result_for(tx, gas=2, output=b"", gas_price=2**63).total_fee == U64_MAX


def test_custom_output_decoder_is_used():
    class AlwaysFail:
        def decode(self, output):
            return Failure("custom"), ()

    result = ResultAggregator(AlwaysFail()).result_for(HexTransaction(0, b""), gas=1, output=b"\x00")
    assert result.status == Failure("custom")


def test_collect_requires_every_slot():
    agg = ResultAggregator()
    req = DryRunRequest(transactions=(HexTransaction(0, b"\x01"), HexTransaction(1, b"\x02")))
    first = agg.result_for(req.transactions[0], gas=1, output=b"")

    with pytest.raises(ServerError) as ei:
        agg.collect(req, [first, None])
    assert ei.value.extensions == {"code": "server_error", "missing": [1]}
    with pytest.raises(ServerError):
        agg.collect(req, [first])
