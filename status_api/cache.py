from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from status_api.checks.results import ProbeResult
from status_api.config import settings
from status_api.ops_logic import age_ms, is_fresh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    result: ProbeResult
    stored_at: float


class ResultCache:
    """In-memory probe results keyed by the raw URL string.

    Entries expire ``ttl_ms`` after they are stored. Once the cache grows past
    ``max_entries``, the ``evict_count`` oldest entries by insertion order are
    dropped in one go. Callers are expected to share one event loop; there is
    no locking.
    """

    def __init__(
        self,
        ttl_ms: int = settings.CACHE_TTL_MS,
        max_entries: int = settings.CACHE_MAX_ENTRIES,
        evict_count: int = settings.CACHE_EVICT_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl_ms = ttl_ms
        self._max_entries = max_entries
        self._evict_count = evict_count
        self._clock = clock

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> ProbeResult | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if not is_fresh(entry.stored_at, self._clock(), self._ttl_ms):
            return None
        return entry.result

    def put(self, url: str, result: ProbeResult) -> None:
        self._entries[url] = CacheEntry(result=result, stored_at=self._clock())

        if len(self._entries) > self._max_entries:
            oldest = list(self._entries)[: self._evict_count]
            for key in oldest:
                del self._entries[key]
            logger.info(
                "Evicted %s oldest cache entries, %s remain",
                len(oldest),
                len(self._entries),
            )

    def snapshot(self) -> list[dict[str, Any]]:
        now = self._clock()
        return [
            {
                "url": url,
                "online": entry.result.online,
                "age": age_ms(entry.stored_at, now),
            }
            for url, entry in self._entries.items()
        ]

    def purge_expired(self) -> int:
        now = self._clock()
        stale = [
            url
            for url, entry in self._entries.items()
            if not is_fresh(entry.stored_at, now, self._ttl_ms)
        ]
        for url in stale:
            del self._entries[url]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
