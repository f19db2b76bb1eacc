from __future__ import annotations

from dataclasses import replace
from typing import Optional

from core.base_types import UserShare, UserSharePatch

from .replica import ReplicaStore


class UserShareStore(ReplicaStore[str, UserShare, UserSharePatch]):
    """LP shares owned by the local user, keyed by pool id. Never stores zero."""

    name = "user_shares"
    patch_type = UserSharePatch

    def _key(self, patch: UserSharePatch) -> str:
        return patch.pool_id

    def _build(self, patch: UserSharePatch) -> Optional[UserShare]:
        if patch.shares is None or patch.shares <= 0:
            return None
        return UserShare(
            pool_id=patch.pool_id, shares=patch.shares, updated_at=patch.updated_at
        )

    def _merge(self, existing: UserShare, patch: UserSharePatch) -> UserShare:
        if patch.shares is None:
            return replace(existing, updated_at=patch.updated_at)
        return replace(existing, shares=patch.shares, updated_at=patch.updated_at)

    def _is_void(self, entity: UserShare) -> bool:
        return entity.shares <= 0
