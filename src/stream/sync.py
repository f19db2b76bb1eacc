from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from core.base_types import Coin, Pool, Wallet
from core.errors import TransportError
from store import CoinStore, PoolStore, UserShareStore, WalletStore
from store.replica import ReplicaStore

logger = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT_SECONDS = 30.0


class StoreSync:
    """
    Routes transport events into the replica stores.

    Each ``*_updated`` event carries a list of records plus ``isInitial``:
    initial batches replace the store, later batches are applied as patches.
    """

    def __init__(
        self,
        pools: PoolStore,
        coins: CoinStore,
        wallets: WalletStore,
        user_shares: UserShareStore,
    ) -> None:
        self.pools = pools
        self.coins = coins
        self.wallets = wallets
        self.user_shares = user_shares
        self._routes: dict[str, tuple[str, ReplicaStore]] = {
            "pools_updated": ("pools", pools),
            "coins_updated": ("coins", coins),
            "wallets_updated": ("wallets", wallets),
            "user_shares_updated": ("userShares", user_shares),
        }

    @property
    def stores(self) -> tuple[ReplicaStore, ...]:
        return (self.pools, self.coins, self.wallets, self.user_shares)

    def handle_event(self, event: str, payload: Any) -> bool:
        """Apply one event. Returns False when the event is not a store event."""
        route = self._routes.get(event)
        if route is None:
            logger.debug("ignoring unknown event %s", event)
            return False
        if not isinstance(payload, dict):
            logger.warning("%s: payload is not an object, dropping", event)
            return False

        field_name, store = route
        items = payload.get(field_name) or []
        if not isinstance(items, list):
            logger.warning("%s: %s is not a list, dropping", event, field_name)
            return False

        if payload.get("isInitial"):
            store.apply_snapshot(items)
        else:
            store.apply_updates(items)
        return True

    def disconnected(self) -> None:
        for store in self.stores:
            store.reset()


async def wait_for_stores(
    pools: PoolStore,
    coins: CoinStore,
    wallets: WalletStore,
    timeout: Optional[float] = DEFAULT_WAIT_TIMEOUT_SECONDS,
) -> tuple[list[Pool], list[Coin], list[Wallet]]:
    """Resolve once pools, coins and wallets have each received a snapshot."""
    stores = (pools, coins, wallets)

    async def _wait_all() -> None:
        await asyncio.gather(
            *(asyncio.to_thread(store.wait_initial, timeout) for store in stores)
        )

    try:
        await asyncio.wait_for(_wait_all(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        missing = [store.name for store in stores if not store.is_initial_received]
        raise TransportError(
            f"Timed out waiting for initial data: {', '.join(missing)}"
        ) from exc

    missing = [store.name for store in stores if not store.is_initial_received]
    if missing:
        raise TransportError(
            f"Timed out waiting for initial data: {', '.join(missing)}"
        )
    return pools.get_all(), coins.get_all(), wallets.get_all()
