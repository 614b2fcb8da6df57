"""
Score Cache - MEDDPICC Scoring Engine
meddpicc_scoring/services/score_cache.py

In-process get-or-compute cache for qualification scores.

Key:   (entity_id, organization_id, config_version, responses digest)
Entry: score payload, last_calculated (UTC), expiry (monotonic seconds)

Invalidation is implicit: new responses or a newly activated configuration
produce a different key, and the orphaned entry ages out. A background sweep
removes expired entries and trims the map to max_entries, evicting the
least-recently-calculated entries first.
"""

import hashlib
import json
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from time import monotonic
from typing import Callable, Dict, List, Optional, Sequence

import structlog

from meddpicc_scoring.models.assessment import QualificationScore
from meddpicc_scoring.models.response import Response

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheKey:
    entity_id: str
    organization_id: str
    config_version: int
    responses_digest: str


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    payload: QualificationScore
    last_calculated: datetime
    expires_at: float


def responses_digest(responses: Sequence[Response]) -> str:
    """Stable digest of a response list; order is significant."""
    document = json.dumps(
        [r.model_dump(mode="json") for r in responses],
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(document.encode("utf-8")).hexdigest()


class ScoreCache:
    """Thread-safe TTL + size-bounded score cache."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 1000,
        clock: Callable[[], float] = monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._now = now
        self._lock = threading.Lock()
        # Ordered oldest-calculated first
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._last_stamp: Optional[datetime] = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @staticmethod
    def make_key(
        entity_id: str,
        organization_id: str,
        config_version: int,
        responses: Sequence[Response],
    ) -> CacheKey:
        return CacheKey(entity_id, organization_id, config_version, responses_digest(responses))

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return a fresh entry, or None on miss or expiry."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= now:
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._hits += 1
            return entry

    def put(self, key: CacheKey, payload: QualificationScore) -> CacheEntry:
        """Store a freshly computed score. Last write wins."""
        with self._lock:
            stamp = self._now()
            # Keep last_calculated non-decreasing so map order matches calculation order
            if self._last_stamp is not None and stamp < self._last_stamp:
                stamp = self._last_stamp
            self._last_stamp = stamp

            entry = CacheEntry(
                key=key,
                payload=payload,
                last_calculated=stamp,
                expires_at=self._clock() + self.ttl_seconds,
            )
            self._entries[key] = entry
            self._entries.move_to_end(key)
            self._evict_overflow()
        return entry

    def sweep(self) -> int:
        """
        Remove expired entries, then trim to max_entries.

        Expiry is decided on a snapshot taken under the lock; the lock is held
        again only while removing.
        """
        now = self._clock()
        with self._lock:
            snapshot = [(key, entry.expires_at) for key, entry in self._entries.items()]

        expired = [key for key, expires_at in snapshot if expires_at <= now]

        removed = 0
        with self._lock:
            for key in expired:
                entry = self._entries.get(key)
                # Re-check: the key may have been refreshed since the snapshot
                if entry is not None and entry.expires_at <= now:
                    del self._entries[key]
                    removed += 1
            self._expirations += removed
            evicted = self._evict_overflow()

        if removed or evicted:
            logger.info("score_cache_swept", expired=removed, evicted=evicted, size=len(self))
        return removed + evicted

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("score_cache_cleared", entries=count)
        return count

    def keys(self) -> List[CacheKey]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> Dict[str, float]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_overflow(self) -> int:
        # Caller holds the lock
        evicted = 0
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            evicted += 1
        self._evictions += evicted
        return evicted


class CacheSweeper(threading.Thread):
    """Daemon thread that sweeps a ScoreCache at a fixed interval."""

    def __init__(self, cache: ScoreCache, interval_seconds: float = 60.0):
        super().__init__(name="score-cache-sweeper", daemon=True)
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()

    def run(self) -> None:
        logger.info("score_cache_sweeper_started", interval_seconds=self.interval_seconds)
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.cache.sweep()
            except Exception:
                logger.exception("score_cache_sweep_failed")
        logger.info("score_cache_sweeper_stopped")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)
