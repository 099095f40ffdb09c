from __future__ import annotations

import asyncio
from typing import AsyncIterator, Dict, List, Mapping, Optional, Tuple

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fuel_proxy.adapters.execution_client import NodeRpcError
from fuel_proxy.app import create_app
from fuel_proxy.config import Config
from fuel_proxy.types import PrecompileCallMessage

RELAYER = "0x" + "11" * 20
PRECOMPILE = "0x" + "00" * 19 + "52"
SELECTOR = "0x00000001"
CHAIN_ID = 9889
RPC_URL = "http://node.test/rpc"


class FakeExecutionClient:
    """
    In-memory ExecutionClient that records every call.

    Behaviour is keyed by the raw transaction bytes (call data minus the
    4-byte selector) so tests can target one transaction of a batch.
    """

    def __init__(
        self,
        *,
        gas: Optional[Mapping[bytes, int]] = None,
        outputs: Optional[Mapping[bytes, bytes]] = None,
        delays: Optional[Mapping[bytes, float]] = None,
        fail_estimate: Optional[Mapping[bytes, Exception]] = None,
        fail_call: Optional[Mapping[bytes, Exception]] = None,
        default_delay: float = 0.0,
        evm_chain_id: Optional[int] = 1,
    ):
        self.gas = dict(gas or {})
        self.outputs = dict(outputs or {})
        self.delays = dict(delays or {})
        self.fail_estimate = dict(fail_estimate or {})
        self.fail_call = dict(fail_call or {})
        self.default_delay = default_delay
        self.evm_chain_id = evm_chain_id
        self.calls: List[Tuple[str, PrecompileCallMessage]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def tx_of(msg: PrecompileCallMessage) -> bytes:
        return msg.data[4:]

    def calls_of(self, method: str) -> List[PrecompileCallMessage]:
        return [m for name, m in self.calls if name == method]

    def gas_for(self, raw: bytes) -> int:
        return self.gas.get(raw, 21000 + len(raw))

    async def _enter(self, raw: bytes) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(raw, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
        finally:
            self.in_flight -= 1

    async def estimate_gas(self, msg: PrecompileCallMessage) -> int:
        self.calls.append(("estimate_gas", msg))
        raw = self.tx_of(msg)
        await self._enter(raw)
        if raw in self.fail_estimate:
            raise self.fail_estimate[raw]
        return self.gas_for(raw)

    async def call(self, msg: PrecompileCallMessage) -> bytes:
        self.calls.append(("call", msg))
        raw = self.tx_of(msg)
        if raw in self.fail_call:
            raise self.fail_call[raw]
        return self.outputs.get(raw, b"")

    async def chain_id(self) -> int:
        if self.evm_chain_id is None:
            raise NodeRpcError("node unreachable")
        return self.evm_chain_id


def make_config(**overrides) -> Config:
    kwargs: Dict[str, object] = dict(
        relayer_address=RELAYER,
        precompile_address=PRECOMPILE,
        dry_run_selector=SELECTOR,
        rpc_url=RPC_URL,
        chain_id=CHAIN_ID,
        log_level="WARNING",
        log_format="console",
    )
    kwargs.update(overrides)
    return Config(**kwargs)  # type: ignore[arg-type]


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def fake_client() -> FakeExecutionClient:
    return FakeExecutionClient()


@pytest.fixture
def app(config: Config, fake_client: FakeExecutionClient) -> FastAPI:
    return create_app(config, client=fake_client)


@pytest_asyncio.fixture
async def aclient(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
