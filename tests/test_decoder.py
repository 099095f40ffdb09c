from __future__ import annotations

import pytest

from fuel_proxy.dry_run.decoder import U64_MAX, RequestDecoder
from fuel_proxy.errors import InvalidArgumentShape
from fuel_proxy.types import HexString


@pytest.fixture
def decoder() -> RequestDecoder:
    return RequestDecoder()


def test_decodes_transactions_in_input_order(decoder):
    req = decoder.decode([HexString.parse("0x01"), HexString.parse("0x0203"), HexString.parse("0x")])

    assert len(req) == 3
    assert [tx.raw for tx in req.transactions] == [b"\x01", b"\x02\x03", b""]
    assert [tx.index for tx in req.transactions] == [0, 1, 2]
    assert req.transactions[1].hex == "0x0203"


def test_defaults_when_arguments_omitted(decoder):
    req = decoder.decode()
    assert req.transactions == ()
    assert req.utxo_validation is False
    assert req.gas_price == 0


def test_null_flag_and_gas_price_fall_back_to_defaults(decoder):
    req = decoder.decode(["0xab"], None, None)
    assert req.utxo_validation is False
    assert req.gas_price == 0


def test_passes_flag_and_gas_price_through(decoder):
    req = decoder.decode(["abcd"], True, 42)
    assert req.transactions[0].raw == b"\xab\xcd"
    assert req.utxo_validation is True
    assert req.gas_price == 42


def test_decode_args_uses_graphql_names(decoder):
    req = decoder.decode_args({"txs": ["0x00"], "utxoValidation": True, "gasPrice": 3})
    assert len(req) == 1
    assert req.utxo_validation is True
    assert req.gas_price == 3


@pytest.mark.parametrize("txs", ["0xabc123", 7, {"tx": "0x00"}])
def test_non_list_transactions_rejected(decoder, txs):
    with pytest.raises(InvalidArgumentShape) as ei:
        decoder.decode(txs)
    assert str(ei.value) == "transactions must be a list"
    assert ei.value.code == "invalid_argument_shape"


def test_non_hex_element_rejected_with_index(decoder):
    with pytest.raises(InvalidArgumentShape) as ei:
        decoder.decode(["0x00", "0xnothex"])
    assert str(ei.value) == "each transaction must be a hex string"
    assert ei.value.extensions["index"] == 1


def test_odd_length_hex_rejected(decoder):
    with pytest.raises(InvalidArgumentShape):
        decoder.decode(["0xabc"])


@pytest.mark.parametrize("value", ["0xab  cd", " 0xab ", "0xab\ncd", "ab cd", "0x 00", "0xx00"])
def test_whitespace_or_stray_characters_rejected(decoder, value):
    with pytest.raises(InvalidArgumentShape) as ei:
        decoder.decode(["0x00", value])
    assert ei.value.extensions["index"] == 1


def test_bare_prefix_is_empty_transaction(decoder):
    assert decoder.decode(["0x", "0X"]).transactions[1].raw == b""


def test_non_string_element_rejected(decoder):
    with pytest.raises(InvalidArgumentShape) as ei:
        decoder.decode([b"\x00"])
    assert ei.value.extensions["index"] == 0


@pytest.mark.parametrize("gas_price", [-1, U64_MAX + 1, True, 1.5, "10"])
def test_bad_gas_price_rejected(decoder, gas_price):
    with pytest.raises(InvalidArgumentShape):
        decoder.decode([], False, gas_price)


def test_gas_price_upper_bound_accepted(decoder):
    assert decoder.decode([], False, U64_MAX).gas_price == U64_MAX


def test_non_boolean_flag_rejected(decoder):
    with pytest.raises(InvalidArgumentShape):
        decoder.decode([], "yes", 0)
