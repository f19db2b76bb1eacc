from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import Decimal
from fractions import Fraction

from core.base_types import BPS_DENOMINATOR, Pool
from core.errors import SimulationGuardError


@dataclass(frozen=True)
class HopResult:
    amount_in: int
    amount_in_net: int
    amount_out: int
    total_fee: int
    lp_fee: int
    treasury_fee: int
    pool: Pool  # reserves after the swap


def split_fee(
    amount_in: int, lp_fee_rate: Decimal, treasury_fee_rate: Decimal
) -> tuple[int, int, int]:
    """
    Returns (total_fee, lp_fee, treasury_fee) in smallest units.

    total_fee    = floor(amount_in * (lp + treasury) / 10000)
    treasury_fee = floor(total_fee * treasury / (lp + treasury))
    lp_fee       = total_fee - treasury_fee
    """
    lp_bps = Fraction(lp_fee_rate)
    treasury_bps = Fraction(treasury_fee_rate)
    total_bps = lp_bps + treasury_bps
    if total_bps == 0:
        return 0, 0, 0
    total_fee = math.floor(amount_in * total_bps / BPS_DENOMINATOR)
    treasury_fee = math.floor(total_fee * treasury_bps / total_bps)
    return total_fee, total_fee - treasury_fee, treasury_fee


def simulate_one_hop(pool: Pool, amount_in: int, is_coin_a_input: bool) -> HopResult:
    """
    Swap ``amount_in`` smallest units through ``pool``.

    Must match the remote matching engine exactly: the fee is taken from the
    input first, the constant-product formula runs on the net amount, and
    the LP part of the fee stays in the pool while the treasury part leaves.
    Integers and exact fractions only, no floats anywhere.
    """
    if not isinstance(amount_in, int):
        raise TypeError("amount_in must be int")
    if not pool.runes_compliant:
        raise SimulationGuardError(f"pool {pool.id} is not compliant")
    if amount_in < 1:
        raise SimulationGuardError("amount_in is below one smallest unit")
    if pool.has_zero_reserve:
        raise SimulationGuardError(f"pool {pool.id} has a zero reserve")

    if is_coin_a_input:
        reserve_in, reserve_out = pool.reserve_a, pool.reserve_b
    else:
        reserve_in, reserve_out = pool.reserve_b, pool.reserve_a

    total_fee, lp_fee, treasury_fee = split_fee(
        amount_in, pool.lp_fee_rate, pool.treasury_fee_rate
    )
    amount_in_net = amount_in - total_fee
    if amount_in_net < 1:
        raise SimulationGuardError("amount after fees is below one smallest unit")

    amount_out = (amount_in_net * reserve_out) // (reserve_in + amount_in_net)
    if amount_out < 1:
        raise SimulationGuardError("output rounds down to zero")

    new_reserve_in = reserve_in + amount_in_net + lp_fee
    new_reserve_out = reserve_out - amount_out
    if is_coin_a_input:
        updated = replace(pool, reserve_a=new_reserve_in, reserve_b=new_reserve_out)
    else:
        updated = replace(pool, reserve_a=new_reserve_out, reserve_b=new_reserve_in)

    return HopResult(
        amount_in=amount_in,
        amount_in_net=amount_in_net,
        amount_out=amount_out,
        total_fee=total_fee,
        lp_fee=lp_fee,
        treasury_fee=treasury_fee,
        pool=updated,
    )


def spot_price(pool: Pool, is_coin_a_input: bool) -> Decimal:
    """Output units per input unit before the trade (raw units, display only)."""
    reserve_in, reserve_out = (
        (pool.reserve_a, pool.reserve_b)
        if is_coin_a_input
        else (pool.reserve_b, pool.reserve_a)
    )
    if reserve_in == 0:
        raise SimulationGuardError("reserve_in is zero")
    return Decimal(reserve_out) / Decimal(reserve_in)


def price_impact(
    pool: Pool, amount_in: int, amount_out: int, is_coin_a_input: bool
) -> Decimal:
    """
    |spot - effective| / spot, with the fee factored out of the effective
    price so that only the curve movement counts. 0.01 == 1%.
    """
    spot = spot_price(pool, is_coin_a_input)
    if spot == 0:
        return Decimal(0)
    effective = Decimal(amount_out) / (
        Decimal(amount_in) * (Decimal(1) - pool.total_fee_rate)
    )
    return abs(spot - effective) / spot
