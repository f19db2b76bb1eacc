from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from core.base_types import Coin, Pool, format_decimal, to_human
from pricing.price_oracle import DEFAULT_QUOTE_TICKER, PriceOracle

PERIODIC_CHECK_NOTICE = (
    "Pools are periodically checked, and non-compliant pools will be disabled "
    "for trading."
)


@dataclass(frozen=True)
class ComplianceWarning:
    message: str
    is_list_item: bool = True

    def to_dict(self) -> dict:
        return {"message": self.message, "isListItem": self.is_list_item}


@dataclass
class ComplianceResult:
    is_compliant: bool
    warnings: list[ComplianceWarning] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isCompliant": self.is_compliant,
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def _ticker(coin: object) -> str:
    if isinstance(coin, str):
        return coin
    if isinstance(coin, dict):
        return coin["ticker"]
    return getattr(coin, "ticker")


def check_compliance(
    coin_a: object,
    coin_b: object,
    pools: Iterable[Pool],
    coins: Iterable[Coin],
    quote_ticker: str = DEFAULT_QUOTE_TICKER,
) -> ComplianceResult:
    """
    A pair is routable when each side has enough quote-asset liquidity.

    Pairs that include the quote asset are always compliant. Otherwise every
    coin needs a QUOTE/coin pool (quote asset on side A) whose quote reserve
    is at least the coin's compliance requirement.
    """
    ticker_a, ticker_b = _ticker(coin_a), _ticker(coin_b)
    if quote_ticker in (ticker_a, ticker_b):
        return ComplianceResult(is_compliant=True)

    pools = list(pools)
    coins = list(coins)
    quote_coin = next((c for c in coins if c.ticker == quote_ticker), None)
    if quote_coin is None:
        return ComplianceResult(
            is_compliant=False,
            warnings=[ComplianceWarning(f"{quote_ticker} coin not found")],
        )

    warnings: list[ComplianceWarning] = []
    for ticker in (ticker_a, ticker_b):
        coin = next((c for c in coins if c.ticker == ticker), None)
        if coin is None:
            warnings.append(ComplianceWarning(f"Token {ticker} not found"))
            continue

        required = coin.compliance_requirement
        quote_pool = next(
            (
                p
                for p in pools
                if p.coin_a.ticker == quote_ticker and p.coin_b.ticker == ticker
            ),
            None,
        )
        if (
            quote_pool is None
            or quote_pool.reserve_a == 0
            or quote_pool.reserve_a < required
        ):
            required_text = format_decimal(to_human(required, quote_coin.dp))
            warnings.append(
                ComplianceWarning(
                    f"A {quote_ticker}/{ticker} pool with at least {required_text} "
                    f"{quote_ticker} liquidity is required"
                )
            )

    if warnings:
        warnings.append(ComplianceWarning(PERIODIC_CHECK_NOTICE, is_list_item=False))
        return ComplianceResult(is_compliant=False, warnings=warnings)
    return ComplianceResult(is_compliant=True)


def get_pool_ratio(pool: Optional[Pool]) -> Optional[Decimal]:
    """reserveA / reserveB in human units, or None for an empty pool."""
    if pool is None or pool.has_zero_reserve:
        return None
    return to_human(pool.reserve_a, pool.coin_a.dp) / to_human(
        pool.reserve_b, pool.coin_b.dp
    )


def pool_liquidity_usd(
    pool: Optional[Pool], coins: Iterable[Coin], oracle: PriceOracle
) -> tuple[Decimal, Optional[str]]:
    """Total USD value locked in ``pool`` as (value, error)."""
    if pool is None or not pool.runes_compliant:
        return Decimal(0), "Pool or coin data missing or not compliant"
    tickers = {coin.ticker for coin in coins}
    if pool.coin_a.ticker not in tickers or pool.coin_b.ticker not in tickers:
        return (
            Decimal(0),
            f"Coins not found: {pool.coin_a.ticker}/{pool.coin_b.ticker}",
        )
    if pool.has_zero_reserve:
        return Decimal(0), "Zero reserves in pool"

    price_a = oracle.price_usd(pool.coin_a.ticker)
    price_b = oracle.price_usd(pool.coin_b.ticker)
    if price_a == 0 or price_b == 0:
        return Decimal(0), "Invalid liquidity data (zero price)"

    value_a = price_a * to_human(pool.reserve_a, pool.coin_a.dp)
    value_b = price_b * to_human(pool.reserve_b, pool.coin_b.dp)
    return value_a + value_b, None
