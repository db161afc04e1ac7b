"""In-memory activity store and its load-generation publisher."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .models import ALL_ACTIVITY_TYPES, ActivityRecord

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestionStats:
    rows_seen: int = 0
    stored: int = 0
    skipped_no_geometry: int = 0
    skipped_bad_geometry: int = 0
    skipped_no_date: int = 0


class ActivityStore:
    """Immutable snapshot mapping activity type -> records in ingestion order.

    Buckets keep the order in which their type was first seen. A bucket may be
    empty when every row of that type was dropped after its type was
    registered.
    """

    __slots__ = ("_buckets", "_stats")

    def __init__(
        self,
        buckets: Mapping[str, Sequence[ActivityRecord]] | None = None,
        stats: IngestionStats | None = None,
    ) -> None:
        self._buckets: Dict[str, Tuple[ActivityRecord, ...]] = {
            sport: tuple(records) for sport, records in (buckets or {}).items()
        }
        self._stats = stats or IngestionStats()

    @property
    def activity_types(self) -> Tuple[str, ...]:
        return tuple(self._buckets)

    @property
    def stats(self) -> IngestionStats:
        return self._stats

    def records(self, activity_type: str) -> Tuple[ActivityRecord, ...]:
        return self._buckets.get(activity_type, ())

    def selector_options(self) -> List[str]:
        """Options for the type selector: ``"all"`` followed by known types."""

        return [ALL_ACTIVITY_TYPES, *self._buckets]

    def __contains__(self, activity_type: object) -> bool:
        return activity_type in self._buckets

    def __len__(self) -> int:
        return sum(len(records) for records in self._buckets.values())

    def __repr__(self) -> str:
        sizes = ", ".join(f"{k}={len(v)}" for k, v in self._buckets.items())
        return f"ActivityStore({sizes})"


StoreListener = Callable[[ActivityStore], None]


class StorePublisher:
    """Owns the published store; only the newest load may replace it.

    Each load calls :meth:`begin_load` when it starts and hands the returned
    generation back to :meth:`publish` once its store is built. A load that
    was overtaken by a later one is discarded, so a slow default fetch cannot
    overwrite data from a faster upload.
    """

    def __init__(self, store: ActivityStore | None = None) -> None:
        self._log = logging.getLogger(self.__class__.__name__)
        self._store = store or ActivityStore()
        self._latest_generation = 0
        self._published_generation = 0
        self._listeners: List[StoreListener] = []
        self._lock = RLock()

    @property
    def store(self) -> ActivityStore:
        with self._lock:
            return self._store

    @property
    def published_generation(self) -> int:
        return self._published_generation

    def begin_load(self) -> int:
        with self._lock:
            self._latest_generation += 1
            return self._latest_generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._latest_generation

    def publish(self, generation: int, store: ActivityStore) -> bool:
        with self._lock:
            if generation != self._latest_generation:
                self._log.info(
                    "Discarding stale load generation=%d (latest=%d)",
                    generation,
                    self._latest_generation,
                )
                return False
            self._store = store
            self._published_generation = generation
            listeners = list(self._listeners)
        self._log.info("Published store generation=%d: %r", generation, store)
        for listener in listeners:
            listener(store)
        return True

    def subscribe(self, listener: StoreListener) -> None:
        with self._lock:
            self._listeners.append(listener)


__all__ = ["ActivityStore", "IngestionStats", "StorePublisher"]
