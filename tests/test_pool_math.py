from decimal import Decimal

import pytest

from core.base_types import CoinRef, Pool
from core.errors import SimulationGuardError
from pricing.pool_math import price_impact, simulate_one_hop, split_fee

RUNES = CoinRef("RUNES", 8)
DOG = CoinRef("DOG", 8)


def _make_pool(
    reserve_a: int = 1_000_000_000,
    reserve_b: int = 2_000_000_000,
    lp_fee_rate: str = "30",
    treasury_fee_rate: str = "5",
    compliant: bool = True,
) -> Pool:
    return Pool(
        id="p1",
        coin_a=RUNES,
        coin_b=DOG,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=1_000,
        lp_fee_rate=Decimal(lp_fee_rate),
        treasury_fee_rate=Decimal(treasury_fee_rate),
        runes_compliant=compliant,
    )


def test_pinned_one_hop_value():
    result = simulate_one_hop(_make_pool(), 10_000_000, True)
    assert result.total_fee == 35_000
    assert result.amount_in_net == 9_965_000
    assert result.amount_out == 19_733_357


def test_fee_split_and_reserve_update():
    result = simulate_one_hop(_make_pool(), 10_000_000, True)
    assert result.treasury_fee == 5_000
    assert result.lp_fee == 30_000
    # LP fee stays in the pool, treasury fee leaves it.
    assert result.pool.reserve_a == 1_000_000_000 + 9_965_000 + 30_000
    assert result.pool.reserve_b == 2_000_000_000 - 19_733_357


def test_reverse_direction_updates_side_b():
    pool = _make_pool()
    result = simulate_one_hop(pool, 10_000_000, False)
    assert result.pool.reserve_b > pool.reserve_b
    assert result.pool.reserve_a == pool.reserve_a - result.amount_out


def test_simulation_is_immutable():
    pool = _make_pool()
    simulate_one_hop(pool, 10_000_000, True)
    assert pool.reserve_a == 1_000_000_000
    assert pool.reserve_b == 2_000_000_000


def test_fee_monotonicity():
    outputs = [
        simulate_one_hop(_make_pool(lp_fee_rate=fee), 10_000_000, True).amount_out
        for fee in ("0", "10", "30", "100", "300")
    ]
    assert outputs == sorted(outputs, reverse=True)
    assert len(set(outputs)) == len(outputs)


def test_integer_math_no_floats():
    result = simulate_one_hop(_make_pool(10**30, 10**30), 10**25, True)
    assert isinstance(result.amount_out, int)
    with pytest.raises(TypeError):
        simulate_one_hop(_make_pool(), 1.5, True)


def test_split_fee_floors():
    assert split_fee(999, Decimal("30"), Decimal("5")) == (3, 3, 0)
    assert split_fee(1_000, Decimal("0"), Decimal("0")) == (0, 0, 0)


@pytest.mark.parametrize(
    "pool, amount",
    [
        (_make_pool(compliant=False), 10_000),
        (_make_pool(reserve_a=0), 10_000),
        (_make_pool(), 0),
        (_make_pool(lp_fee_rate="10000", treasury_fee_rate="0"), 10_000),
        (_make_pool(reserve_b=1), 10),
    ],
)
def test_guards(pool, amount):
    with pytest.raises(SimulationGuardError):
        simulate_one_hop(pool, amount, True)


def test_price_impact_grows_with_size():
    pool = _make_pool()
    small = simulate_one_hop(pool, 1_000, True)
    large = simulate_one_hop(pool, 100_000_000, True)
    small_impact = price_impact(pool, 1_000, small.amount_out, True)
    large_impact = price_impact(pool, 100_000_000, large.amount_out, True)
    assert small_impact < large_impact
    assert large_impact < Decimal("0.1")
