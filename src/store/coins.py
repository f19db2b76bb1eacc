from __future__ import annotations

from dataclasses import replace
from typing import Optional

from core.base_types import DEFAULT_COMPLIANCE_REQUIREMENT, Coin, CoinPatch

from .replica import ReplicaStore


class CoinStore(ReplicaStore[str, Coin, CoinPatch]):
    """Coins keyed by coin id, with a ticker lookup."""

    name = "coins"
    patch_type = CoinPatch

    def _key(self, patch: CoinPatch) -> str:
        return patch.id

    def _build(self, patch: CoinPatch) -> Optional[Coin]:
        if not patch.ticker or not patch.status:
            return None
        if patch.dp is None or patch.dp < 0:
            return None
        return Coin(
            id=patch.id,
            ticker=patch.ticker,
            dp=patch.dp,
            status=patch.status,
            project_name=patch.project_name,
            compliance_requirement=(
                patch.compliance_requirement
                if patch.compliance_requirement is not None
                else DEFAULT_COMPLIANCE_REQUIREMENT
            ),
            chains=patch.chains or (),
            updated_at=patch.updated_at,
        )

    def _merge(self, existing: Coin, patch: CoinPatch) -> Coin:
        changes: dict = {"updated_at": patch.updated_at}
        for name in (
            "ticker",
            "dp",
            "status",
            "project_name",
            "compliance_requirement",
            "chains",
        ):
            value = getattr(patch, name)
            if value is not None:
                changes[name] = value
        return replace(existing, **changes)

    def get_by_ticker(self, ticker: str) -> Optional[Coin]:
        with self._lock:
            return next(
                (coin for coin in self._items.values() if coin.ticker == ticker), None
            )
