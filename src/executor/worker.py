"""
Off-thread estimation.

Estimation is pure over its request payload, so it can run in a separate
process while the replica stores keep applying stream updates. The boundary
is message passing: an ``EstimateRequest`` goes in, a ``{"result": ...}`` or
``{"error": ...}`` dict comes out. A timeout stops the wait and reports a
failure; work already running in the pool is not interrupted.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.base_types import Coin, Pool
from core.errors import EstimationError
from pricing.price_oracle import (
    DEFAULT_FALLBACK_PRICE_USD,
    DEFAULT_QUOTE_TICKER,
    DEFAULT_STABLE_TICKER,
)
from pricing.pricing_engine import SwapEstimator

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class EstimateRequest:
    input_coin: str
    output_coin: str
    amount_in: str
    pools: tuple[Pool, ...]
    coins: tuple[Coin, ...]
    max_hops: int = 6
    algorithm: str = "dfs"
    quote_ticker: str = DEFAULT_QUOTE_TICKER
    stable_ticker: str = DEFAULT_STABLE_TICKER
    fallback_price_usd: Decimal = DEFAULT_FALLBACK_PRICE_USD


def run_estimate_request(request: EstimateRequest) -> dict:
    """Worker entrypoint. Must stay module-level so process pools can pickle it."""
    estimator = SwapEstimator(
        request.pools,
        request.coins,
        quote_ticker=request.quote_ticker,
        stable_ticker=request.stable_ticker,
        fallback_price_usd=request.fallback_price_usd,
    )
    try:
        estimate = estimator.estimate(
            request.input_coin,
            request.output_coin,
            request.amount_in,
            request.max_hops,
            request.algorithm,
        )
    except EstimationError as exc:
        return {"error": str(exc), "kind": type(exc).__name__}
    return {"result": estimate.to_dict()}


class EstimationWorker:
    """Runs ``run_estimate_request`` in an executor with a bounded wait."""

    def __init__(
        self,
        executor: Optional[Executor] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._executor = executor
        self._owns_executor = executor is None
        self._timeout = timeout_seconds

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=1)
        return self._executor

    async def submit(
        self, request: EstimateRequest, timeout: Optional[float] = None
    ) -> dict:
        wait_for = self._timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._get_executor(), run_estimate_request, request
        )
        try:
            return await asyncio.wait_for(future, timeout=wait_for)
        except asyncio.TimeoutError:
            logger.warning(
                "estimate %s -> %s abandoned after %.1fs",
                request.input_coin,
                request.output_coin,
                wait_for,
            )
            return {
                "error": f"Estimation timed out after {wait_for}s",
                "kind": "TimeoutError",
            }
        except Exception as exc:
            # e.g. BrokenProcessPool; reported, never raised to the caller.
            logger.error("estimation worker failed: %s", exc)
            return {"error": str(exc), "kind": type(exc).__name__}

    def shutdown(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
