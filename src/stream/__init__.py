from .replica_ws import ReplicaStream
from .rest_client import RunesClient
from .sync import StoreSync, wait_for_stores

__all__ = [
    "ReplicaStream",
    "RunesClient",
    "StoreSync",
    "wait_for_stores",
]
