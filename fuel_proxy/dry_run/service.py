"""
Dry-run orchestration.

    RequestDecoder -> (per tx) PrecompileCallBuilder -> ExecutionClientAdapter
                   -> ResultAggregator -> ResponseEncoder

Transactions of one request are simulated by a bounded pool of asyncio
workers pulling from a shared iterator. Results land in a pre-sized slot list
by input position, so output order never depends on completion order.

Failure policy
--------------
* The first failing transaction aborts the batch: no worker picks up another
  transaction, in-flight ones are cancelled, and that failure is raised.
* The whole batch runs under ``timeout_s``; expiry raises ``DryRunCancelled``.
* Cancellation of the caller propagates unchanged.
Partial results are never returned.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..adapters.execution_client import ExecutionClient
from ..errors import DryRunCancelled, DryRunFailed
from ..logging import get_logger
from ..metrics import Metrics
from ..types import DryRunRequest, DryRunResult, HexTransaction, PrecompileConfig
from .call_builder import PrecompileCallBuilder
from .decoder import RequestDecoder
from .encoder import ResponseEncoder
from .executor import ExecutionClientAdapter
from .results import OutputDecoder, ResultAggregator


class _Batch:
    """Mutable state shared by the workers of one request."""

    def __init__(self, request: DryRunRequest):
        self.items: Iterator[Tuple[int, HexTransaction]] = iter(enumerate(request.transactions))
        self.slots: List[Optional[DryRunResult]] = [None] * len(request.transactions)
        self.aborted = False
        self.error: Optional[BaseException] = None

    def abort(self, exc: BaseException) -> None:
        self.aborted = True
        if self.error is None and not isinstance(exc, asyncio.CancelledError):
            self.error = exc

    @property
    def completed(self) -> int:
        return sum(1 for s in self.slots if s is not None)


class DryRunService:
    def __init__(
        self,
        client: ExecutionClient,
        precompile: PrecompileConfig,
        *,
        max_concurrency: int = 4,
        timeout_s: float = 30.0,
        decoder: Optional[OutputDecoder] = None,
        logger: Any = None,
        metrics: Optional[Metrics] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self.max_concurrency = max_concurrency
        self.timeout_s = timeout_s
        self.log = logger or get_logger(__name__)
        self.metrics = metrics

        self.request_decoder = RequestDecoder()
        self.builder = PrecompileCallBuilder(precompile)
        self.executor = ExecutionClientAdapter(client, metrics=metrics)
        self.aggregator = ResultAggregator(decoder, chain_id=precompile.chain_id)
        self.encoder = ResponseEncoder()

    @classmethod
    def from_config(cls, config, client: ExecutionClient, **kwargs: Any) -> "DryRunService":
        return cls(
            client,
            config.precompile(),
            max_concurrency=config.max_concurrency,
            timeout_s=config.request_timeout_s,
            **kwargs,
        )

    # ---------------------------------------------------------------- public

    async def resolve(self, txs: Any = None, utxo_validation: Any = None, gas_price: Any = None) -> List[Dict[str, Any]]:
        """GraphQL entry point: decode arguments, run, encode."""
        request = self.request_decoder.decode(txs, utxo_validation, gas_price)
        return self.encoder.encode(await self.dry_run(request))

    async def dry_run(self, request: DryRunRequest) -> List[DryRunResult]:
        n = len(request.transactions)
        if request.utxo_validation:
            self.log.debug("dry_run.utxo_validation_ignored", count=n)
        if n == 0:
            self._observe_batch("ok")
            return []

        self.log.info("dry_run.start", count=n, gas_price=request.gas_price, workers=min(n, self.max_concurrency))
        batch = _Batch(request)
        try:
            await asyncio.wait_for(self._run_batch(batch, request), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            self._observe_batch("cancelled")
            pending = n - batch.completed
            self.log.warning("dry_run.cancelled", count=n, pending=pending, timeout_s=self.timeout_s)
            raise DryRunCancelled(self.timeout_s, pending=pending) from None
        except DryRunFailed as e:
            self._observe_batch("failed")
            self.log.warning(
                "dry_run.failed",
                code=e.code,
                index=e.index,
                transaction_id=e.transaction_id,
                cause=str(e.cause),
            )
            raise
        except Exception as e:
            self._record_error(e, n)
            raise

        try:
            results = self.aggregator.collect(request, batch.slots)
        except Exception as e:
            self._record_error(e, n)
            raise
        self._observe_batch("ok")
        self.log.info("dry_run.done", count=n, total_gas=sum(r.total_gas for r in results))
        return results

    # --------------------------------------------------------------- workers

    async def _run_batch(self, batch: _Batch, request: DryRunRequest) -> None:
        workers = min(self.max_concurrency, len(batch.slots))
        tasks = [asyncio.ensure_future(self._worker(batch, request.gas_price)) for _ in range(workers)]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for t in tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        if batch.error is not None:
            raise batch.error

    async def _worker(self, batch: _Batch, gas_price: int) -> None:
        while not batch.aborted:
            try:
                pos, tx = next(batch.items)
            except StopIteration:
                return
            try:
                batch.slots[pos] = await self._run_one(tx, gas_price)
            except BaseException as exc:
                batch.abort(exc)
                raise

    async def _run_one(self, tx: HexTransaction, gas_price: int) -> DryRunResult:
        tx_id = self.aggregator.id_for(tx)
        msg = self.builder.build(tx)
        gas, output = await self.executor.execute(tx, tx_id, msg)
        result = self.aggregator.result_for(tx, gas=gas, output=output, gas_price=gas_price)
        status = "success" if result.status.is_success else "failure"
        self.log.debug("dry_run.tx", index=tx.index, id=tx_id, gas=gas, output_size=len(output), status=status)
        if self.metrics is not None:
            self.metrics.observe_transaction(status)
        return result

    def _observe_batch(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.observe_batch(outcome)

    def _record_error(self, exc: Exception, count: int) -> None:
        self._observe_batch("failed")
        self.log.warning("dry_run.error", count=count, exc_type=exc.__class__.__name__, error=str(exc))


__all__ = ["DryRunService"]
