from __future__ import annotations

from dataclasses import replace
from typing import Optional

from core.base_types import (
    DEFAULT_LP_FEE_RATE,
    DEFAULT_TREASURY_FEE_RATE,
    LiquidityShare,
    Pool,
    PoolPatch,
)

from .replica import ReplicaStore


def merge_liquidity_shares(
    existing: tuple[LiquidityShare, ...], incoming: tuple[LiquidityShare, ...]
) -> tuple[LiquidityShare, ...]:
    """Upsert provider records by id; a zero-share record removes that provider."""
    merged = list(existing)
    for share in incoming:
        index = next((i for i, s in enumerate(merged) if s.id == share.id), None)
        if share.shares == 0:
            if index is not None:
                merged.pop(index)
            continue
        if index is None:
            merged.append(share)
        else:
            merged[index] = share
    return tuple(merged)


class PoolStore(ReplicaStore[str, Pool, PoolPatch]):
    """Pools keyed by pool id."""

    name = "pools"
    patch_type = PoolPatch

    def _key(self, patch: PoolPatch) -> str:
        return patch.id

    def _build(self, patch: PoolPatch) -> Optional[Pool]:
        if patch.coin_a is None or patch.coin_b is None:
            return None
        if patch.total_shares is None or patch.total_shares <= 0:
            return None
        return Pool(
            id=patch.id,
            coin_a=patch.coin_a,
            coin_b=patch.coin_b,
            reserve_a=patch.reserve_a or 0,
            reserve_b=patch.reserve_b or 0,
            total_shares=patch.total_shares,
            lp_fee_rate=(
                patch.lp_fee_rate
                if patch.lp_fee_rate is not None
                else DEFAULT_LP_FEE_RATE
            ),
            treasury_fee_rate=(
                patch.treasury_fee_rate
                if patch.treasury_fee_rate is not None
                else DEFAULT_TREASURY_FEE_RATE
            ),
            runes_compliant=bool(patch.runes_compliant),
            active_liquidity_providers=patch.active_liquidity_providers or 0,
            liquidity_shares=patch.liquidity_shares or (),
            updated_at=patch.updated_at,
        )

    def _merge(self, existing: Pool, patch: PoolPatch) -> Pool:
        changes: dict = {"updated_at": patch.updated_at}
        for name in (
            "reserve_a",
            "reserve_b",
            "total_shares",
            "lp_fee_rate",
            "treasury_fee_rate",
            "runes_compliant",
            "active_liquidity_providers",
            "coin_a",
            "coin_b",
        ):
            value = getattr(patch, name)
            if value is not None:
                changes[name] = value
        if patch.liquidity_shares is not None:
            changes["liquidity_shares"] = merge_liquidity_shares(
                existing.liquidity_shares, patch.liquidity_shares
            )
        return replace(existing, **changes)

    def _is_void(self, entity: Pool) -> bool:
        return entity.total_shares == 0
