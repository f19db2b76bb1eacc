from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from core.base_types import Pool, round_down, to_decimal, to_human

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_TICKER = "RUNES"
DEFAULT_STABLE_TICKER = "USDC"
DEFAULT_FALLBACK_PRICE_USD = Decimal("0.01")


class PriceOracle:
    """
    Prices derived from pool reserves.

    Only directly pooled prices are trusted: a coin without a pool against
    the quote asset is priced at 0 rather than inferred through other hops.
    Price discovery never raises.
    """

    def __init__(
        self,
        pools: Iterable[Pool],
        quote_ticker: str = DEFAULT_QUOTE_TICKER,
        stable_ticker: str = DEFAULT_STABLE_TICKER,
        fallback_price_usd: Decimal = DEFAULT_FALLBACK_PRICE_USD,
    ):
        self.pools = list(pools)
        self.quote_ticker = quote_ticker
        self.stable_ticker = stable_ticker
        self.fallback_price_usd = fallback_price_usd

    def _find_pool(self, ticker_x: str, ticker_y: str) -> Optional[Pool]:
        return next((p for p in self.pools if p.joins(ticker_x, ticker_y)), None)

    def quote_pool(self, ticker: str) -> Optional[Pool]:
        return self._find_pool(self.quote_ticker, ticker)

    def quote_price_usd(self) -> Decimal:
        """USD price of the quote asset from the quote/stable pool."""
        pool = self._find_pool(self.quote_ticker, self.stable_ticker)
        if pool is None:
            logger.warning(
                "%s/%s pool not found, using fallback price of $%s",
                self.quote_ticker,
                self.stable_ticker,
                self.fallback_price_usd,
            )
            return self.fallback_price_usd
        if pool.has_zero_reserve:
            logger.warning(
                "%s/%s pool has zero reserves, using fallback price of $%s",
                self.quote_ticker,
                self.stable_ticker,
                self.fallback_price_usd,
            )
            return self.fallback_price_usd

        reserve_a = to_human(pool.reserve_a, pool.coin_a.dp)
        reserve_b = to_human(pool.reserve_b, pool.coin_b.dp)
        if pool.coin_a.ticker == self.quote_ticker:
            price = reserve_b / reserve_a
        else:
            price = reserve_a / reserve_b
        if price <= 0:
            logger.warning(
                "Invalid %s/%s price calculated, using fallback price of $%s",
                self.quote_ticker,
                self.stable_ticker,
                self.fallback_price_usd,
            )
            return self.fallback_price_usd
        return price

    def price_in_quote(self, ticker: str) -> Decimal:
        """Quote-asset units per one unit of ``ticker``; 0 when not pooled."""
        if ticker == self.quote_ticker:
            return Decimal(1)
        pool = self.quote_pool(ticker)
        if pool is None or pool.has_zero_reserve:
            return Decimal(0)
        reserve_a = to_human(pool.reserve_a, pool.coin_a.dp)
        reserve_b = to_human(pool.reserve_b, pool.coin_b.dp)
        if pool.coin_a.ticker == self.quote_ticker:
            return reserve_a / reserve_b
        return reserve_b / reserve_a

    def price_usd(
        self, ticker: str, quote_price_usd: Optional[Decimal] = None
    ) -> Decimal:
        """USD price of ``ticker``.

        ``quote_price_usd`` pins the quote asset's USD price instead of reading
        it from this oracle's quote/stable pool.
        """
        if ticker == self.stable_ticker:
            return Decimal(1)
        price_in_quote = self.price_in_quote(ticker)
        if price_in_quote == 0:
            return Decimal(0)
        if quote_price_usd is None:
            quote_price_usd = self.quote_price_usd()
        return price_in_quote * quote_price_usd

    def prices(self, tickers: Iterable[str]) -> dict[str, Decimal]:
        return {ticker: self.price_usd(ticker) for ticker in tickers}

    def usd_value(
        self,
        amount: str | Decimal | int,
        ticker: str,
        decimals: Optional[int] = None,
    ) -> Decimal:
        price = self.price_usd(ticker)
        if price == 0:
            return Decimal(0)
        value = to_decimal(amount) * price
        if decimals is not None:
            value = round_down(value, decimals)
        return value

    def quote_pool_ids(self, ticker: str) -> set[str]:
        """Pools whose reserves determine the quote-asset price of ``ticker``."""
        if ticker in (self.stable_ticker, self.quote_ticker):
            return set()
        pool = self.quote_pool(ticker)
        return set() if pool is None else {pool.id}
