from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from core.base_types import Coin, Hop, Pool, format_amount, to_raw
from core.errors import SimulationGuardError

from .pool_math import HopResult, price_impact, simulate_one_hop

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntermediateAmount:
    ticker: str
    amount: str  # human-readable

    def to_dict(self) -> dict:
        return {"ticker": self.ticker, "amount": self.amount}


@dataclass
class PathResult:
    amount_out: int  # smallest units of the output coin
    price_impact: Decimal  # mean of per-hop samples, 0.01 == 1%
    intermediate_amounts: list[IntermediateAmount] = field(default_factory=list)
    hop_results: list[HopResult] = field(default_factory=list)
    pools: dict[str, Pool] = field(default_factory=dict)


def index_pools(pools: Iterable[Pool]) -> dict[str, Pool]:
    return {pool.id: pool for pool in pools}


def locate_pool(pools: dict[str, Pool], hop: Hop) -> Optional[Pool]:
    if hop.pool_id is not None:
        pool = pools.get(hop.pool_id)
        if pool is not None and pool.joins(hop.from_ticker, hop.to_ticker):
            return pool
        return None
    return next(
        (p for p in pools.values() if p.joins(hop.from_ticker, hop.to_ticker)), None
    )


def simulate_path(
    pools: Iterable[Pool] | dict[str, Pool],
    hops: Sequence[Hop],
    input_coin: Coin,
    amount_in: str | Decimal | int,
    coins: Iterable[Coin],
) -> Optional[PathResult]:
    """
    Chain single-hop simulations along ``hops``.

    Runs against a private copy of the pool mapping, so several paths can be
    evaluated from the same snapshot. Returns ``None`` when any hop is
    rejected or the running amount drops below one smallest unit.
    """
    if not hops:
        return None
    working = dict(pools) if isinstance(pools, dict) else index_pools(pools)
    coins_by_ticker = {coin.ticker: coin for coin in coins}

    current = to_raw(amount_in, input_coin.dp)
    samples: list[Decimal] = []
    intermediate: list[IntermediateAmount] = []
    hop_results: list[HopResult] = []

    for index, hop in enumerate(hops):
        pool = locate_pool(working, hop)
        if pool is None or not pool.runes_compliant:
            return None
        output_coin = coins_by_ticker.get(hop.to_ticker)
        if output_coin is None:
            return None
        if current < 1:
            return None

        is_coin_a_input = pool.coin_a.ticker == hop.from_ticker
        try:
            result = simulate_one_hop(pool, current, is_coin_a_input)
        except SimulationGuardError as exc:
            logger.debug("path %s dropped at hop %d: %s", hops, index, exc)
            return None

        samples.append(price_impact(pool, current, result.amount_out, is_coin_a_input))
        hop_results.append(result)
        working[pool.id] = result.pool
        current = result.amount_out

        if index < len(hops) - 1:
            intermediate.append(
                IntermediateAmount(
                    ticker=hop.to_ticker,
                    amount=format_amount(current, output_coin.dp),
                )
            )

    if current < 1:
        return None

    return PathResult(
        amount_out=current,
        price_impact=sum(samples, Decimal(0)) / len(samples),
        intermediate_amounts=intermediate,
        hop_results=hop_results,
        pools=working,
    )
