from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Iterable, Optional

from core.base_types import (
    Coin,
    Hop,
    Pool,
    format_amount,
    format_decimal,
    to_decimal,
    to_raw,
)
from core.errors import EstimationError, NoPathFound, NoProfitablePath, ValidationError

from .path_simulator import IntermediateAmount, PathResult, simulate_path
from .price_oracle import (
    DEFAULT_FALLBACK_PRICE_USD,
    DEFAULT_QUOTE_TICKER,
    DEFAULT_STABLE_TICKER,
    PriceOracle,
)
from .route import RouteFinder, validate_algorithm, validate_max_hops

logger = logging.getLogger(__name__)


class EstimationState(Enum):
    VALIDATING = auto()
    PATH_SEARCH = auto()
    PER_PATH_SIMULATION = auto()
    BEST_SELECTION = auto()
    PRICE_ANNOTATION = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class AssetQuote:
    token: str
    amount: str
    price_usd: Decimal
    value_usd: Decimal
    price_in_quote: Decimal

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "amount": self.amount,
            "priceUSD": format_decimal(self.price_usd),
            "valueUSD": format_decimal(self.value_usd),
            "priceInRunes": format_decimal(self.price_in_quote),
        }


@dataclass
class SwapEstimate:
    input: AssetQuote
    output: AssetQuote
    amount_out_raw: int
    price_impact_pct: Decimal
    intermediate_amounts: list[IntermediateAmount]
    path: tuple[Hop, ...]
    algorithm: str
    after_swap_prices: dict[str, Decimal] = field(default_factory=dict)
    # Endpoints whose pricing pools the route never touches; their projected
    # price is simply the current one.
    after_swap_unchanged: list[str] = field(default_factory=list)
    paths_found: int = 0
    paths_simulated: int = 0

    def to_dict(self) -> dict:
        return {
            "input": self.input.to_dict(),
            "output": self.output.to_dict(),
            "slippage": {
                "priceImpact": format_decimal(self.price_impact_pct),
                "intermediateAmounts": [
                    item.to_dict() for item in self.intermediate_amounts
                ],
            },
            "afterSwapPrices": {
                ticker: format_decimal(price)
                for ticker, price in self.after_swap_prices.items()
            },
            "afterSwapUnchanged": list(self.after_swap_unchanged),
            "path": [hop.to_dict() for hop in self.path],
            "algorithm": self.algorithm,
        }


def _ticker_of(coin: object) -> Optional[str]:
    if coin is None:
        return None
    if isinstance(coin, str):
        return coin
    if isinstance(coin, dict):
        return coin.get("ticker")
    return getattr(coin, "ticker", None)


class SwapEstimator:
    """
    Estimates the best route and output for a swap over a fixed snapshot.

    Validating -> PathSearch -> PerPathSimulation -> BestSelection ->
    PriceAnnotation -> Done. Any failure raises an ``EstimationError``
    carrying the state it failed in.
    """

    def __init__(
        self,
        pools: Iterable[Pool],
        coins: Iterable[Coin],
        quote_ticker: str = DEFAULT_QUOTE_TICKER,
        stable_ticker: str = DEFAULT_STABLE_TICKER,
        fallback_price_usd: Decimal = DEFAULT_FALLBACK_PRICE_USD,
    ):
        self.pools = list(pools)
        self.coins = list(coins)
        self.quote_ticker = quote_ticker
        self.stable_ticker = stable_ticker
        self.fallback_price_usd = fallback_price_usd
        self.state: Optional[EstimationState] = None

    def _oracle(self, pools: Iterable[Pool]) -> PriceOracle:
        return PriceOracle(
            pools,
            quote_ticker=self.quote_ticker,
            stable_ticker=self.stable_ticker,
            fallback_price_usd=self.fallback_price_usd,
        )

    def _find_coin(self, ticker: Optional[str]) -> Optional[Coin]:
        return next((c for c in self.coins if c.ticker == ticker), None)

    def estimate(
        self,
        input_coin: object,
        output_coin: object,
        amount_in: str | Decimal | int,
        max_hops: int = 6,
        algorithm: str = "dfs",
    ) -> SwapEstimate:
        state = self.state = EstimationState.VALIDATING
        try:
            coin_in, coin_out, raw_in = self._validate(
                input_coin, output_coin, amount_in, max_hops, algorithm
            )

            state = self.state = EstimationState.PATH_SEARCH
            routes = RouteFinder(self.pools).find_all_routes(
                coin_in.ticker, coin_out.ticker, max_hops, algorithm
            )
            if not routes:
                raise NoPathFound(
                    f"No valid swap paths found from {coin_in.ticker} to "
                    f"{coin_out.ticker} with compliant pools"
                )

            state = self.state = EstimationState.PER_PATH_SIMULATION
            results: list[tuple[tuple[Hop, ...], PathResult]] = []
            for route in routes:
                result = simulate_path(
                    self.pools, route.hops, coin_in, amount_in, self.coins
                )
                if result is not None:
                    results.append((route.hops, result))

            state = self.state = EstimationState.BEST_SELECTION
            best: Optional[tuple[tuple[Hop, ...], PathResult]] = None
            for hops, result in results:
                if best is None or result.amount_out > best[1].amount_out:
                    best = (hops, result)
            if best is None:
                raise NoProfitablePath(
                    "No valid swap path with positive output using compliant pools"
                )

            state = self.state = EstimationState.PRICE_ANNOTATION
            estimate = self._annotate(
                coin_in, coin_out, amount_in, raw_in, best[0], best[1], algorithm
            )
            estimate.paths_found = len(routes)
            estimate.paths_simulated = len(results)
        except EstimationError as exc:
            if exc.state is None:
                exc.state = state
            self.state = EstimationState.FAILED
            logger.info("estimate failed in %s: %s", state.name, exc)
            raise

        self.state = EstimationState.DONE
        logger.debug(
            "estimate %s -> %s: %d paths, %d simulated, best out=%s",
            coin_in.ticker,
            coin_out.ticker,
            estimate.paths_found,
            estimate.paths_simulated,
            estimate.output.amount,
        )
        return estimate

    def _validate(
        self,
        input_coin: object,
        output_coin: object,
        amount_in: object,
        max_hops: object,
        algorithm: object,
    ) -> tuple[Coin, Coin, int]:
        in_ticker = _ticker_of(input_coin)
        out_ticker = _ticker_of(output_coin)
        if not in_ticker or not out_ticker:
            raise ValidationError("Input or output coin not provided")
        validate_max_hops(max_hops)
        validate_algorithm(algorithm)

        coin_in = self._find_coin(in_ticker)
        coin_out = self._find_coin(out_ticker)
        if coin_in is None or coin_out is None:
            raise ValidationError(f"Coin not found: {in_ticker} or {out_ticker}")
        if coin_in.ticker == coin_out.ticker:
            raise ValidationError("Input and output coin must differ")

        try:
            amount = to_decimal(amount_in)
        except TypeError as exc:
            raise ValidationError(f"Invalid amountIn: {exc}") from exc
        if not amount.is_finite() or amount <= 0:
            raise ValidationError(
                f"Invalid amountIn: {amount_in} must be a positive number"
            )
        # Raises on excess precision instead of truncating.
        raw_in = to_raw(amount, coin_in.dp)
        if raw_in < 1:
            raise ValidationError(
                f"Input amount {amount_in} {coin_in.ticker} is less than the "
                f"smallest unit (10^-{coin_in.dp})"
            )
        return coin_in, coin_out, raw_in

    def _annotate(
        self,
        coin_in: Coin,
        coin_out: Coin,
        amount_in: str | Decimal | int,
        raw_in: int,
        path: tuple[Hop, ...],
        result: PathResult,
        algorithm: str,
    ) -> SwapEstimate:
        oracle = self._oracle(self.pools)
        price_in = oracle.price_usd(coin_in.ticker)
        price_out = oracle.price_usd(coin_out.ticker)
        amount_in_text = format_amount(raw_in, coin_in.dp)
        amount_out_text = format_amount(result.amount_out, coin_out.dp)

        # Re-run the winner on a fresh copy and price against the pools it left.
        replay = simulate_path(self.pools, path, coin_in, amount_in, self.coins)
        after_pools = replay.pools if replay is not None else result.pools
        touched = {hop.pool.id for hop in result.hop_results}
        after_oracle = self._oracle(after_pools.values())
        # The quote asset keeps its pre-swap USD price.
        quote_usd = oracle.quote_price_usd()

        after_prices: dict[str, Decimal] = {}
        unchanged: list[str] = []
        for coin in (coin_in, coin_out):
            after_prices[coin.ticker] = after_oracle.price_usd(
                coin.ticker, quote_price_usd=quote_usd
            )
            if not (oracle.quote_pool_ids(coin.ticker) & touched):
                unchanged.append(coin.ticker)

        return SwapEstimate(
            input=AssetQuote(
                token=coin_in.ticker,
                amount=amount_in_text,
                price_usd=price_in,
                value_usd=to_decimal(amount_in_text) * price_in,
                price_in_quote=oracle.price_in_quote(coin_in.ticker),
            ),
            output=AssetQuote(
                token=coin_out.ticker,
                amount=amount_out_text,
                price_usd=price_out,
                value_usd=to_decimal(amount_out_text) * price_out,
                price_in_quote=oracle.price_in_quote(coin_out.ticker),
            ),
            amount_out_raw=result.amount_out,
            price_impact_pct=result.price_impact * 100,
            intermediate_amounts=list(result.intermediate_amounts),
            path=path,
            algorithm=algorithm,
            after_swap_prices=after_prices,
            after_swap_unchanged=unchanged,
        )


def estimate_swap(
    input_coin: object,
    output_coin: object,
    amount_in: str | Decimal | int,
    pools: Iterable[Pool],
    coins: Iterable[Coin],
    max_hops: int = 6,
    algorithm: str = "dfs",
    **oracle_options,
) -> SwapEstimate:
    return SwapEstimator(pools, coins, **oracle_options).estimate(
        input_coin, output_coin, amount_in, max_hops, algorithm
    )
