from __future__ import annotations

import json

import httpx
import pytest
import respx

from fuel_proxy.adapters.execution_client import (EthRpcClient, EthRpcConfig,
                                                  RpcResponseError,
                                                  RpcTransportError,
                                                  from_config)
from fuel_proxy.types import PrecompileCallMessage

from .conftest import PRECOMPILE, RELAYER, RPC_URL, make_config

MSG = PrecompileCallMessage(sender=RELAYER, to=PRECOMPILE, data=bytes.fromhex("00000001abc123"))


def rpc_result(result) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def sent(route) -> dict:
    return json.loads(route.calls.last.request.content)


@pytest.mark.asyncio
async def test_estimate_gas_sends_call_object():
    with respx.mock:
        route = respx.post(RPC_URL).mock(return_value=rpc_result("0x5208"))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            gas = await client.estimate_gas(MSG)
        body = sent(route)

    assert gas == 21000
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "eth_estimateGas"
    assert body["params"] == [{"from": RELAYER, "to": PRECOMPILE, "data": "0x00000001abc123"}]


@pytest.mark.asyncio
async def test_call_sends_gas_and_latest_tag():
    with respx.mock:
        route = respx.post(RPC_URL).mock(return_value=rpc_result("0xdeadbeef"))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            out = await client.call(MSG.with_gas(21000))
        body = sent(route)

    assert out == bytes.fromhex("deadbeef")
    assert body["method"] == "eth_call"
    assert body["params"] == [
        {"from": RELAYER, "to": PRECOMPILE, "data": "0x00000001abc123", "gas": "0x5208"},
        "latest",
    ]


@pytest.mark.asyncio
async def test_empty_call_output():
    with respx.mock:
        respx.post(RPC_URL).mock(return_value=rpc_result("0x"))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            assert await client.call(MSG) == b""


@pytest.mark.asyncio
async def test_json_rpc_error_object_raised():
    payload = {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted", "data": "0x08c379a0"}}
    with respx.mock:
        respx.post(RPC_URL).mock(return_value=httpx.Response(200, json=payload))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            with pytest.raises(RpcResponseError) as ei:
                await client.estimate_gas(MSG)

    assert ei.value.code == 3
    assert ei.value.message == "execution reverted"
    assert ei.value.data == "0x08c379a0"


@pytest.mark.asyncio
async def test_http_error_status_is_transport_error():
    with respx.mock:
        route = respx.post(RPC_URL).mock(return_value=httpx.Response(503, text="unavailable"))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            with pytest.raises(RpcTransportError):
                await client.estimate_gas(MSG)
        # single shot, no retries
        assert route.call_count == 1


@pytest.mark.asyncio
async def test_connection_error_is_transport_error():
    with respx.mock:
        respx.post(RPC_URL).mock(side_effect=httpx.ConnectError)
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            with pytest.raises(RpcTransportError):
                await client.call(MSG)


@pytest.mark.asyncio
async def test_malformed_quantity_is_transport_error():
    with respx.mock:
        respx.post(RPC_URL).mock(return_value=rpc_result("0xnope"))
        async with EthRpcClient(EthRpcConfig(url=RPC_URL)) as client:
            with pytest.raises(RpcTransportError):
                await client.estimate_gas(MSG)


@pytest.mark.asyncio
async def test_chain_id_and_factory():
    client = from_config(make_config(rpc_timeout_s=2.5))
    assert client.url == RPC_URL
    with respx.mock:
        route = respx.post(RPC_URL).mock(return_value=rpc_result("0x1"))
        try:
            assert await client.chain_id() == 1
        finally:
            await client.close()
        assert sent(route)["method"] == "eth_chainId"
