from decimal import Decimal

from market import RUNES, USDC, make_pool
from pricing.price_oracle import PriceOracle


def test_quote_price_from_stable_pool(pools):
    oracle = PriceOracle(pools)
    assert oracle.quote_price_usd() == Decimal("0.01")


def test_prices_through_quote_pool(pools):
    oracle = PriceOracle(pools)
    assert oracle.price_in_quote("DOG") == Decimal("0.01")
    assert oracle.price_usd("DOG") == Decimal("0.0001")
    assert oracle.price_usd("CAT") == Decimal("0.2")
    assert oracle.price_usd("USDC") == Decimal(1)
    assert oracle.price_in_quote("RUNES") == Decimal(1)


def test_unpooled_coin_is_zero(pools):
    oracle = PriceOracle(pools)
    assert oracle.price_usd("LONE") == 0
    assert oracle.usd_value("10", "LONE") == 0


def test_fallback_without_stable_pool(pools):
    oracle = PriceOracle(
        [p for p in pools if p.id != "runes-usdc"],
        fallback_price_usd=Decimal("0.05"),
    )
    assert oracle.quote_price_usd() == Decimal("0.05")
    assert oracle.price_usd("CAT") == Decimal("1")


def test_fallback_on_zero_reserve():
    drained = [make_pool("runes-usdc", RUNES, USDC, 0, 10)]
    oracle = PriceOracle(drained, fallback_price_usd=Decimal(2))
    assert oracle.quote_price_usd() == Decimal(2)


def test_usd_value_rounds_down(pools):
    oracle = PriceOracle(pools)
    assert oracle.usd_value("1234", "DOG", decimals=2) == Decimal("0.12")
    assert oracle.usd_value("1234", "DOG") == Decimal("0.1234")


def test_quote_pools(pools):
    oracle = PriceOracle(pools)
    assert oracle.quote_pool_ids("DOG") == {"runes-dog"}
    assert oracle.quote_pool_ids("RUNES") == set()
    assert oracle.quote_pool_ids("USDC") == set()
    assert oracle.quote_pool_ids("LONE") == set()


def test_pinned_quote_price(pools):
    oracle = PriceOracle(pools)
    assert oracle.price_usd("DOG", quote_price_usd=Decimal("2")) == Decimal("0.02")
    assert oracle.price_usd("RUNES", quote_price_usd=Decimal("2")) == Decimal("2")
    assert oracle.price_usd("USDC", quote_price_usd=Decimal("2")) == Decimal("1")
