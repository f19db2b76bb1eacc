from .coins import CoinStore
from .pools import PoolStore
from .replica import ReplicaStore, UpdateOutcome
from .user_shares import UserShareStore
from .wallets import WalletStore

__all__ = [
    "ReplicaStore",
    "UpdateOutcome",
    "PoolStore",
    "CoinStore",
    "WalletStore",
    "UserShareStore",
]
