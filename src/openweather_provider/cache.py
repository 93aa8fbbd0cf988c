"""Position-keyed cache of weather service responses."""

import math
import time
import sqlite3
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import CACHE_PRECISION
from .database import CacheDatabase
from .models import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Payload fetched for a spatial cell."""
    key: str
    payload: Any
    fetched_at: float


def derive_cell_key(position: Position, precision: int = CACHE_PRECISION) -> str:
    """
    Map a position to the key of the grid cell containing it.

    Coordinates are snapped down onto a grid of ``10 ** -precision`` degrees,
    so every position inside a cell yields the same key.

    Examples:
        >>> derive_cell_key(Position(10.04, 20.09), 1)
        '10.0:20.0'
        >>> derive_cell_key(Position(-0.01, -179.95), 1)
        '-0.1:-180.0'
    """
    scale = 10 ** precision
    # round first so 0.7 * 10 style float noise cannot drop a cell
    lat_index = math.floor(round(position.latitude * scale, 9))
    lon_index = math.floor(round(position.longitude * scale, 9))
    return f"{lat_index / scale:.{precision}f}:{lon_index / scale:.{precision}f}"


class WeatherCache:
    """
    Area-keyed weather response cache with age-bounded reuse.

    Entries are keyed by spatial cell. A lookup only succeeds while the
    entry is younger than ``max_age`` seconds; staleness, not absence, is
    the usual miss. ``max_age`` is set from the poll interval so the cache
    and the scheduler agree on what "fresh" means.

    Attributes:
        max_age: Freshness window in seconds (<= 0 disables reuse)
        precision: Cell precision in decimal degrees, fixed for the cache lifetime

    Note:
        Safe for concurrent use: ``put`` is last-writer-wins per key and
        replaces entries whole. Stale entries are evicted on every ``put``.
        When a ``CacheDatabase`` is given, fresh entries are loaded from it at
        start and written through on ``put``; store writes happen outside the
        lock, and store failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        max_age: float,
        precision: int = CACHE_PRECISION,
        store: Optional[CacheDatabase] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_age = max_age
        self._precision = precision
        self._store = store
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        if store is not None:
            self._load_from_store()

    @property
    def precision(self) -> int:
        return self._precision

    def derive(self, position: Position) -> str:
        """Return the cell key for a position."""
        return derive_cell_key(position, self._precision)

    def lookup(self, position: Position) -> Optional[CacheEntry]:
        """
        Find a fresh entry covering a position.

        Returns:
            The entry if one exists for the position's cell and is younger
            than max_age, None otherwise (stale or missing).
        """
        key = self.derive(position)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for cell {key}")
            return None
        if not self.is_fresh(entry):
            logger.debug(f"Cache entry for cell {key} is stale")
            return None
        logger.debug(f"Cache hit for cell {key}")
        return entry

    def is_fresh(self, entry: CacheEntry) -> bool:
        """Check an entry against max_age (boundary exclusive)."""
        if self.max_age <= 0:
            return False
        return self._clock() - entry.fetched_at < self.max_age

    def get(self, entry: CacheEntry) -> Any:
        """Return the payload of an entry obtained from lookup."""
        return entry.payload

    def put(self, position: Position, payload: Any) -> CacheEntry:
        """Store a payload for the position's cell, replacing any previous entry."""
        key = self.derive(position)
        entry = CacheEntry(key=key, payload=payload, fetched_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        self._persist(entry)
        logger.debug(f"Cached weather data for cell {key}")
        self.purge()
        return entry

    def purge(self) -> int:
        """Drop stale entries. Returns number of entries removed."""
        now = self._clock()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if self._is_stale(entry, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} stale cache entries")
            self._purge_store(now)
        return len(stale)

    def _is_stale(self, entry: CacheEntry, now: float) -> bool:
        return self.max_age <= 0 or now - entry.fetched_at >= self.max_age

    def _purge_store(self, now: float):
        if self._store is None:
            return
        try:
            self._store.delete_fetched_before(now - max(self.max_age, 0))
        except sqlite3.Error as e:
            logger.warning(f"Could not purge persisted cache: {e}")

    def clear(self):
        """Drop all entries."""
        with self._lock:
            self._entries.clear()
        if self._store is not None:
            try:
                self._store.clear()
            except sqlite3.Error as e:
                logger.warning(f"Could not clear persisted cache: {e}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _persist(self, entry: CacheEntry):
        if self._store is None:
            return
        try:
            self._store.save_entry(entry.key, entry.payload, entry.fetched_at)
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.warning(f"Could not persist cache entry {entry.key}: {e}")

    def _load_from_store(self):
        try:
            rows = self._store.load_entries()
        except sqlite3.Error as e:
            logger.warning(f"Starting with empty cache, store unreadable: {e}")
            return
        now = self._clock()
        loaded = 0
        with self._lock:
            for row in rows:
                entry = CacheEntry(
                    key=row["cell_key"],
                    payload=row["payload"],
                    fetched_at=row["fetched_at"],
                )
                if self._is_stale(entry, now):
                    continue
                self._entries[entry.key] = entry
                loaded += 1
        if loaded < len(rows):
            self._purge_store(now)
        logger.info(f"Loaded {loaded} cached weather entries ({len(rows) - loaded} stale dropped)")
