from core.base_types import Hop
from market import CAT, DOG, RUNES
from pricing.path_simulator import simulate_path
from pricing.pool_math import simulate_one_hop


def test_two_hop_path_chains_outputs(pools, coins):
    hops = (Hop("DOG", "RUNES"), Hop("RUNES", "CAT"))
    result = simulate_path(pools, hops, DOG, "1000", coins)

    by_id = {pool.id: pool for pool in pools}
    first = simulate_one_hop(by_id["runes-dog"], 1000 * 10**5, False)
    second = simulate_one_hop(by_id["runes-cat"], first.amount_out, True)

    assert result.amount_out == second.amount_out
    assert [item.ticker for item in result.intermediate_amounts] == ["RUNES"]
    assert result.pools["runes-dog"] == first.pool
    assert result.pools["runes-cat"] == second.pool
    assert result.price_impact > 0


def test_snapshot_is_not_mutated(pools, coins):
    before = list(pools)
    simulate_path(pools, (Hop("DOG", "RUNES"),), DOG, "1000", coins)
    assert pools == before


def test_missing_pool_drops_path(pools, coins):
    assert simulate_path(pools, (Hop("DOG", "CAT"),), DOG, "1", coins) is None


def test_dust_output_drops_path(pools, coins):
    # 1 raw DOG buys 9 raw RUNES, which buys nothing of CAT.
    hops = (Hop("DOG", "RUNES"), Hop("RUNES", "CAT"))
    assert simulate_path(pools, hops, DOG, "0.00001", coins) is None


def test_reused_pool_sees_updated_reserves(pools, coins):
    there_and_back = (Hop("RUNES", "DOG"), Hop("DOG", "RUNES"))
    result = simulate_path(pools, there_and_back, RUNES, "100", coins)
    assert result.amount_out < 100 * 10**8


def test_empty_path(pools, coins):
    assert simulate_path(pools, (), CAT, "1", coins) is None
