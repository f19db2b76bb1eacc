"""Facade that owns the replica stores and exposes estimation over them."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from config import SWAP_CONFIG
from core.base_types import Coin, CoinRef, Pool
from core.errors import EstimationError, TransportError
from executor.worker import EstimateRequest, EstimationWorker
from liquidity import (
    ComplianceResult,
    LiquidityEstimate,
    ShareAmount,
    calculate_share_amounts,
    check_compliance,
    estimate_liquidity_deposit,
)
from pricing.price_oracle import PriceOracle
from pricing.pricing_engine import SwapEstimate, SwapEstimator
from store import CoinStore, PoolStore, UserShareStore, WalletStore
from stream.sync import StoreSync, wait_for_stores

logger = logging.getLogger(__name__)


class SwapClient:
    def __init__(
        self,
        quote_ticker: str | None = None,
        stable_ticker: str | None = None,
        fallback_price_usd: Decimal | None = None,
        worker: Optional[EstimationWorker] = None,
    ) -> None:
        self.quote_ticker = quote_ticker or SWAP_CONFIG["quoteTicker"]
        self.stable_ticker = stable_ticker or SWAP_CONFIG["stableTicker"]
        self.fallback_price_usd = (
            fallback_price_usd
            if fallback_price_usd is not None
            else SWAP_CONFIG["fallbackQuotePriceUsd"]
        )
        self.pools = PoolStore()
        self.coins = CoinStore()
        self.wallets = WalletStore()
        self.user_shares = UserShareStore()
        self.sync = StoreSync(self.pools, self.coins, self.wallets, self.user_shares)
        self._worker = worker

    @property
    def worker(self) -> EstimationWorker:
        if self._worker is None:
            self._worker = EstimationWorker(
                timeout_seconds=SWAP_CONFIG["estimateTimeoutSeconds"]
            )
        return self._worker

    def _oracle(self, pools: Iterable[Pool] | None = None) -> PriceOracle:
        return PriceOracle(
            self.pools.get_all() if pools is None else pools,
            quote_ticker=self.quote_ticker,
            stable_ticker=self.stable_ticker,
            fallback_price_usd=self.fallback_price_usd,
        )

    async def wait_ready(self, timeout: float = 30.0):
        return await wait_for_stores(self.pools, self.coins, self.wallets, timeout)

    def estimate_swap(
        self,
        input_coin: object,
        output_coin: object,
        amount_in: str | Decimal | int,
        max_hops: int = 6,
        algorithm: str = "dfs",
    ) -> SwapEstimate:
        estimator = SwapEstimator(
            self.pools.get_all(),
            self.coins.get_all(),
            quote_ticker=self.quote_ticker,
            stable_ticker=self.stable_ticker,
            fallback_price_usd=self.fallback_price_usd,
        )
        return estimator.estimate(
            input_coin, output_coin, amount_in, max_hops, algorithm
        )

    async def estimate_swap_async(
        self,
        input_coin: str,
        output_coin: str,
        amount_in: str,
        max_hops: int = 6,
        algorithm: str = "dfs",
        timeout: float | None = None,
    ) -> dict:
        """Estimate on the worker over a copy of the current stores."""
        request = EstimateRequest(
            input_coin=input_coin,
            output_coin=output_coin,
            amount_in=str(amount_in),
            pools=tuple(self.pools.get_all()),
            coins=tuple(self.coins.get_all()),
            max_hops=max_hops,
            algorithm=algorithm,
            quote_ticker=self.quote_ticker,
            stable_ticker=self.stable_ticker,
            fallback_price_usd=self.fallback_price_usd,
        )
        message = await self.worker.submit(request, timeout)
        if "error" in message:
            if message.get("kind") == "TimeoutError":
                raise TransportError(message["error"])
            raise EstimationError(message["error"])
        return message["result"]

    def check_compliance(self, coin_a: object, coin_b: object) -> ComplianceResult:
        return check_compliance(
            coin_a,
            coin_b,
            self.pools.get_all(),
            self.coins.get_all(),
            quote_ticker=self.quote_ticker,
        )

    def estimate_liquidity_deposit(
        self,
        coin_a: Coin | CoinRef,
        coin_b: Coin | CoinRef,
        amount_a: str | Decimal | None = None,
        amount_b: str | Decimal | None = None,
    ) -> LiquidityEstimate:
        return estimate_liquidity_deposit(
            coin_a,
            coin_b,
            self.pools.get_all(),
            amount_a=amount_a,
            amount_b=amount_b,
            quote_ticker=self.quote_ticker,
        )

    def calculate_share_amounts(self) -> list[ShareAmount]:
        return calculate_share_amounts(self.user_shares.get_all(), self.pools.get_all())

    def prices(self) -> dict[str, Decimal]:
        """USD price for every known coin."""
        oracle = self._oracle()
        return oracle.prices(coin.ticker for coin in self.coins.get_all())

    def disconnected(self) -> None:
        self.sync.disconnected()

    def close(self) -> None:
        if self._worker is not None:
            self._worker.shutdown()
