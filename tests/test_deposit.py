import pytest

from core.base_types import UserShare
from core.errors import ValidationError
from liquidity import (
    calculate_share_amounts,
    estimate_liquidity_deposit,
    normalize_token_pair,
)
from market import CAT, DOG, LONE, RUNES, make_pool


def test_counterpart_from_amount_a(pools):
    result = estimate_liquidity_deposit(RUNES, DOG, pools, amount_a="100")
    assert not result.is_pool_empty
    assert not result.flipped
    assert result.amount_a == "100"
    assert result.amount_b == "10000"


def test_counterpart_from_amount_b(pools):
    result = estimate_liquidity_deposit(RUNES, DOG, pools, amount_b="250")
    assert result.amount_a == "2.5"
    assert result.amount_b == "250"


def test_pair_is_flipped_to_quote_first(pools):
    result = estimate_liquidity_deposit(DOG, RUNES, pools, amount_a="500")
    assert result.flipped
    assert result.coin_a.ticker == "RUNES"
    assert result.amount_a == "5"
    assert result.amount_b == "500"


def test_amounts_round_down_to_coin_precision(pools):
    result = estimate_liquidity_deposit(RUNES, DOG, pools, amount_a="1.23456789")
    assert result.amount_b == "123.45678"


def test_empty_pool_reports_no_amounts(pools):
    result = estimate_liquidity_deposit(RUNES, LONE, pools, amount_a="1")
    assert result.is_pool_empty
    assert result.amount_a is None
    assert "amountA" not in result.to_dict()


@pytest.mark.parametrize(
    "amounts",
    [{}, {"amount_a": "1", "amount_b": "2"}, {"amount_a": "0"}, {"amount_b": "-3"}],
)
def test_invalid_amounts(pools, amounts):
    with pytest.raises(ValidationError):
        estimate_liquidity_deposit(RUNES, DOG, pools, **amounts)


def test_normalize_follows_pool_orientation():
    pools = [make_pool("cat-dog", CAT, DOG, 10, 10)]
    token_a, token_b, flipped = normalize_token_pair(DOG, CAT, pools)
    assert (token_a.ticker, token_b.ticker, flipped) == ("CAT", "DOG", True)


def test_share_amounts(pools):
    shares = [UserShare(pool_id="runes-dog", shares=100), UserShare("gone", 5)]
    first, missing = calculate_share_amounts(shares, pools)

    assert first.amount_a == "1000"
    assert first.amount_b == "100000"
    assert first.pair == "RUNES/DOG"
    assert first.to_dict()["totalShares"] == "1000"

    assert missing.amount_a == "0"
    assert missing.pair == "Unknown/Unknown"
