from __future__ import annotations

from dataclasses import replace
from typing import Optional

from core.base_types import Wallet, WalletPatch

from .replica import ReplicaStore


class WalletStore(ReplicaStore[str, Wallet, WalletPatch]):
    """Balances keyed by ticker."""

    name = "wallets"
    patch_type = WalletPatch

    def _key(self, patch: WalletPatch) -> str:
        return patch.ticker

    def _build(self, patch: WalletPatch) -> Optional[Wallet]:
        if not patch.ticker or patch.available is None or patch.locked is None:
            return None
        if patch.available < 0 or patch.locked < 0:
            return None
        return Wallet(
            ticker=patch.ticker,
            available=patch.available,
            locked=patch.locked,
            id=patch.id,
            updated_at=patch.updated_at,
        )

    def _merge(self, existing: Wallet, patch: WalletPatch) -> Wallet:
        changes: dict = {"updated_at": patch.updated_at}
        if patch.available is not None:
            changes["available"] = patch.available
        if patch.locked is not None:
            changes["locked"] = patch.locked
        if patch.id is not None:
            changes["id"] = patch.id
        return replace(existing, **changes)

    def _is_valid(self, entity: Wallet) -> bool:
        return entity.available >= 0 and entity.locked >= 0
