from __future__ import annotations

import pytest
from pydantic import ValidationError

from fuel_proxy.config import Config, CorsConfig

from .conftest import PRECOMPILE, RELAYER, make_config


def test_hex_fields_are_normalised():
    cfg = make_config(relayer_address="0X" + "AB" * 20, dry_run_selector="DEADBEEF")
    assert cfg.relayer_address == "0x" + "ab" * 20
    assert cfg.dry_run_selector == "0xdeadbeef"


def test_precompile_config():
    pc = make_config().precompile()
    assert pc.relayer_address == RELAYER
    assert pc.precompile_address == PRECOMPILE
    assert pc.selector == b"\x00\x00\x00\x01"
    assert pc.chain_id == 9889


@pytest.mark.parametrize(
    "override",
    [
        {"relayer_address": "0x1234"},
        {"precompile_address": "0x" + "00" * 21},
        {"dry_run_selector": "0x000001"},
        {"base_asset_id": "0x00"},
        {"max_concurrency": 0},
        {"request_timeout_s": 0},
        {"log_format": "xml"},
        {"relayer_address": "0x" + "zz" * 20},
        {"relayer_address": " 0x" + "11" * 20},
        {"dry_run_selector": "0x0000 0001"},
    ],
)
def test_invalid_values_rejected(override):
    with pytest.raises(ValidationError):
        make_config(**override)


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("FUEL_PROXY_RELAYER_ADDRESS", RELAYER)
    monkeypatch.setenv("FUEL_PROXY_PRECOMPILE_ADDRESS", PRECOMPILE)
    monkeypatch.setenv("FUEL_PROXY_DRY_RUN_SELECTOR", "0x00000002")
    monkeypatch.setenv("FUEL_PROXY_MAX_CONCURRENCY", "8")
    monkeypatch.setenv("FUEL_PROXY_GRAPHQL_PATH", "graphql")
    monkeypatch.setenv("FUEL_PROXY_LOG_LEVEL", "debug")

    cfg = Config()  # type: ignore[call-arg]
    assert cfg.dry_run_selector == "0x00000002"
    assert cfg.max_concurrency == 8
    assert cfg.graphql_path == "/graphql"
    assert cfg.log_level == "DEBUG"


def test_required_addressing_missing(monkeypatch):
    monkeypatch.delenv("FUEL_PROXY_RELAYER_ADDRESS", raising=False)
    with pytest.raises(ValidationError):
        Config(precompile_address=PRECOMPILE, dry_run_selector="0x00000001")  # type: ignore[call-arg]


def test_cors_lists_accept_csv_and_json():
    assert CorsConfig(allow_origins="https://a.example, https://b.example").allow_origins == [
        "https://a.example",
        "https://b.example",
    ]
    assert CorsConfig(allow_methods='["GET", "POST"]').allow_methods == ["GET", "POST"]
