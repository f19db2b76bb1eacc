from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Union

from core.base_types import (
    Coin,
    CoinRef,
    Pool,
    UserShare,
    format_amount,
    format_decimal,
    round_down,
    to_decimal,
)
from core.errors import EstimationError, ValidationError
from pricing.price_oracle import DEFAULT_QUOTE_TICKER

from .compliance import get_pool_ratio

CoinLike = Union[Coin, CoinRef]


@dataclass
class LiquidityEstimate:
    coin_a: CoinLike
    coin_b: CoinLike
    is_pool_empty: bool
    flipped: bool
    amount_a: Optional[str] = None
    amount_b: Optional[str] = None

    def to_dict(self) -> dict:
        payload: dict = {
            "coinA": _coin_summary(self.coin_a),
            "coinB": _coin_summary(self.coin_b),
            "isPoolEmpty": self.is_pool_empty,
            "flipped": self.flipped,
        }
        if self.amount_a is not None:
            payload["amountA"] = self.amount_a
            payload["amountB"] = self.amount_b
        return payload


@dataclass
class ShareAmount:
    pool_id: str
    shares: int
    amount_a: str
    amount_b: str
    total_shares: int
    reserve_a: int
    reserve_b: int
    coin_a: Optional[CoinRef]
    coin_b: Optional[CoinRef]

    @property
    def pair(self) -> str:
        if self.coin_a is None or self.coin_b is None:
            return "Unknown/Unknown"
        return f"{self.coin_a.ticker}/{self.coin_b.ticker}"

    def to_dict(self) -> dict:
        return {
            "poolId": self.pool_id,
            "shares": str(self.shares),
            "amountA": self.amount_a,
            "amountB": self.amount_b,
            "totalShares": str(self.total_shares),
            "reserveA": str(self.reserve_a),
            "reserveB": str(self.reserve_b),
            "pair": self.pair,
        }


def _coin_summary(coin: CoinLike) -> dict:
    return {"ticker": coin.ticker, "dp": coin.dp, "projectName": coin.project_name}


def _find_pair_pool(pools: Iterable[Pool], ticker_x: str, ticker_y: str):
    return next((p for p in pools if p.joins(ticker_x, ticker_y)), None)


def normalize_token_pair(
    coin_a: CoinLike,
    coin_b: CoinLike,
    pools: Iterable[Pool],
    quote_ticker: str = DEFAULT_QUOTE_TICKER,
) -> tuple[CoinLike, CoinLike, bool]:
    """
    Order a pair the way the server stores it: quote asset first, otherwise
    the orientation of the existing pool. Returns (token_a, token_b, flipped).
    """
    if not coin_a or not coin_b or not coin_a.ticker or not coin_b.ticker:
        raise ValidationError("Invalid token objects")
    if coin_a.ticker == quote_ticker:
        return coin_a, coin_b, False
    if coin_b.ticker == quote_ticker:
        return coin_b, coin_a, True

    pool = _find_pair_pool(pools, coin_a.ticker, coin_b.ticker)
    if pool is not None and pool.coin_a.ticker != coin_a.ticker:
        return coin_b, coin_a, True
    return coin_a, coin_b, False


def estimate_liquidity_deposit(
    coin_a: CoinLike,
    coin_b: CoinLike,
    pools: Iterable[Pool],
    amount_a: Optional[str | Decimal | int] = None,
    amount_b: Optional[str | Decimal | int] = None,
    quote_ticker: str = DEFAULT_QUOTE_TICKER,
) -> LiquidityEstimate:
    """
    Given one side of a deposit, compute the counterpart that keeps the pool
    ratio. Amounts are rounded down to each coin's precision.
    """
    if (amount_a is None) == (amount_b is None):
        raise ValidationError(
            "Provide either amountA or amountB, but not both or neither"
        )
    if amount_a is not None and to_decimal(amount_a) <= 0:
        raise ValidationError(f"{coin_a.ticker} amount must be positive")
    if amount_b is not None and to_decimal(amount_b) <= 0:
        raise ValidationError(f"{coin_b.ticker} amount must be positive")

    pools = list(pools)
    token_a, token_b, flipped = normalize_token_pair(
        coin_a, coin_b, pools, quote_ticker
    )
    if flipped:
        amount_a, amount_b = amount_b, amount_a

    pool = _find_pair_pool(pools, token_a.ticker, token_b.ticker)
    if pool is None or (pool.reserve_a == 0 and pool.reserve_b == 0):
        return LiquidityEstimate(
            coin_a=token_a, coin_b=token_b, is_pool_empty=True, flipped=flipped
        )

    ratio = get_pool_ratio(pool)
    if ratio is None or ratio == 0:
        raise EstimationError(f"Invalid pool ratio for pool {pool.id}")
    if pool.coin_a.ticker != token_a.ticker:
        ratio = 1 / ratio

    if amount_a is not None:
        out_a = round_down(to_decimal(amount_a), token_a.dp)
        out_b = round_down(out_a / ratio, token_b.dp)
    else:
        out_b = round_down(to_decimal(amount_b), token_b.dp)
        out_a = round_down(out_b * ratio, token_a.dp)

    return LiquidityEstimate(
        coin_a=token_a,
        coin_b=token_b,
        is_pool_empty=False,
        flipped=flipped,
        amount_a=format_decimal(out_a),
        amount_b=format_decimal(out_b),
    )


def calculate_share_amounts(
    user_shares: Iterable[UserShare], pools: Iterable[Pool]
) -> list[ShareAmount]:
    """Underlying coin amounts for each LP position, rounded down."""
    pools_by_id = {pool.id: pool for pool in pools}
    amounts = []
    for share in user_shares:
        pool = pools_by_id.get(share.pool_id)
        if pool is None or pool.total_shares == 0:
            amounts.append(
                ShareAmount(
                    pool_id=share.pool_id,
                    shares=share.shares,
                    amount_a="0",
                    amount_b="0",
                    total_shares=0,
                    reserve_a=0,
                    reserve_b=0,
                    coin_a=None,
                    coin_b=None,
                )
            )
            continue

        raw_a = share.shares * pool.reserve_a // pool.total_shares
        raw_b = share.shares * pool.reserve_b // pool.total_shares
        amounts.append(
            ShareAmount(
                pool_id=share.pool_id,
                shares=share.shares,
                amount_a=format_amount(raw_a, pool.coin_a.dp),
                amount_b=format_amount(raw_b, pool.coin_b.dp),
                total_shares=pool.total_shares,
                reserve_a=pool.reserve_a,
                reserve_b=pool.reserve_b,
                coin_a=pool.coin_a,
                coin_b=pool.coin_b,
            )
        )
    return amounts
