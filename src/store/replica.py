"""
Replica store: keyed local copy of remote state.

Snapshot / delta semantics
~~~~~~~~~~~~~~~~~~~~~~~~~~
* ``apply_snapshot`` atomically replaces the whole map, marks the store as
  initialised and replays every update that arrived before it, in order.
* ``apply_update`` buffers while the store is uninitialised. Afterwards it
  inserts complete new records, drops incomplete ones, and merges into
  existing records only when the incoming ``updatedAt`` is strictly newer
  (last-write-wins, ties keep the stored record). A merge that would leave
  an invalid record is rejected and the stored record kept.
* ``reset`` forgets everything so that nothing stale survives a reconnect.

Entities are frozen dataclasses: a merge builds a new object and swaps it in
under the store lock, so a reader never sees a half-merged record.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from enum import Enum, auto
from typing import Any, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
E = TypeVar("E")
P = TypeVar("P")


class UpdateOutcome(Enum):
    BUFFERED = auto()  # store not initialised yet
    INSERTED = auto()
    MERGED = auto()
    EVICTED = auto()  # merge left the record void
    STALE = auto()  # updatedAt not newer than stored
    INCOMPLETE = auto()  # unknown key without the data to create it
    REJECTED = auto()  # merge would leave an invalid record


def is_newer(incoming: Optional[float], stored: Optional[float]) -> bool:
    if incoming is None:
        return False
    if stored is None:
        return True
    return incoming > stored


class ReplicaStore(Generic[K, E, P]):
    """Generic keyed cache. Subclasses define parsing, completeness and merge."""

    name = "replica"
    patch_type: Any = None

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._items: dict[K, E] = {}
        self._initial = threading.Event()
        self._pending: deque[P] = deque()

    # -- hooks -------------------------------------------------------------

    def _key(self, patch: P) -> K:
        raise NotImplementedError

    def _build(self, patch: P) -> Optional[E]:
        """Create a new entity, or ``None`` if the patch is incomplete."""
        raise NotImplementedError

    def _merge(self, existing: E, patch: P) -> E:
        raise NotImplementedError

    def _is_void(self, entity: E) -> bool:
        return False

    def _is_valid(self, entity: E) -> bool:
        return True

    # -- parsing -----------------------------------------------------------

    def _parse(self, item: Any) -> Optional[P]:
        if self.patch_type is not None and isinstance(item, self.patch_type):
            return item
        if not isinstance(item, dict):
            logger.warning("%s: dropping non-object item %r", self.name, item)
            return None
        try:
            return self.patch_type.from_payload(item)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("%s: dropping malformed item %r: %s", self.name, item, exc)
            return None

    # -- transport-facing API ----------------------------------------------

    def apply_snapshot(self, items: Iterable[Any]) -> None:
        with self._lock:
            fresh: dict[K, E] = {}
            for item in items:
                patch = self._parse(item)
                if patch is None:
                    continue
                entity = self._build(patch)
                if entity is None:
                    logger.warning(
                        "%s: skipping incomplete snapshot record %s",
                        self.name,
                        self._key(patch),
                    )
                    continue
                fresh[self._key(patch)] = entity
            self._items = fresh
            self._initial.set()
            logger.info("%s: initialized with %d records", self.name, len(fresh))

            if self._pending:
                logger.info(
                    "%s: replaying %d buffered updates", self.name, len(self._pending)
                )
            while self._pending:
                self._apply(self._pending.popleft())

    def apply_update(self, item: Any) -> UpdateOutcome:
        patch = self._parse(item)
        if patch is None:
            return UpdateOutcome.INCOMPLETE
        with self._lock:
            if not self._initial.is_set():
                logger.debug(
                    "%s: buffering update for %s, no snapshot yet",
                    self.name,
                    self._key(patch),
                )
                self._pending.append(patch)
                return UpdateOutcome.BUFFERED
            return self._apply(patch)

    def apply_updates(self, items: Iterable[Any]) -> list[UpdateOutcome]:
        return [self.apply_update(item) for item in items]

    def reset(self) -> None:
        with self._lock:
            self._items = {}
            self._pending.clear()
            self._initial.clear()
        logger.info("%s: reset state due to disconnect or error", self.name)

    # -- reads -------------------------------------------------------------

    def get_all(self) -> list[E]:
        with self._lock:
            return list(self._items.values())

    def get(self, key: K) -> Optional[E]:
        with self._lock:
            return self._items.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def is_initial_received(self) -> bool:
        return self._initial.is_set()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait_initial(self, timeout: Optional[float] = None) -> bool:
        """Block until the first snapshot arrives. Returns False on timeout."""
        return self._initial.wait(timeout)

    # -- internals ---------------------------------------------------------

    def _apply(self, patch: P) -> UpdateOutcome:
        key = self._key(patch)
        existing = self._items.get(key)

        if existing is None:
            entity = self._build(patch)
            if entity is None:
                logger.debug("%s: ignoring incomplete update for %s", self.name, key)
                return UpdateOutcome.INCOMPLETE
            self._items[key] = entity
            logger.debug("%s: added %s", self.name, key)
            return UpdateOutcome.INSERTED

        incoming_at = getattr(patch, "updated_at", None)
        if not is_newer(incoming_at, getattr(existing, "updated_at", None)):
            logger.debug("%s: skipping stale update for %s", self.name, key)
            return UpdateOutcome.STALE

        merged = self._merge(existing, patch)
        if not self._is_valid(merged):
            logger.warning(
                "%s: rejecting update for %s, keeping stored record: %r",
                self.name,
                key,
                patch,
            )
            return UpdateOutcome.REJECTED
        if self._is_void(merged):
            del self._items[key]
            logger.info("%s: removed %s", self.name, key)
            return UpdateOutcome.EVICTED
        self._items[key] = merged
        return UpdateOutcome.MERGED
