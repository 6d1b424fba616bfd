"""
In-memory TTL cache sitting in front of the WeatherManager.

A plain key -> CacheEntry map. Expired entries are never purged; they are
ignored on lookup and overwritten by the next successful fetch.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from weather_dash import config
from weather_dash.registry import utc_now

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached data with metadata."""
    data: Any
    timestamp: datetime

    def age_seconds(self, now: datetime) -> float:
        return (now - self.timestamp).total_seconds()


def normalize_key(query: str) -> str:
    return query.strip().lower()


class WeatherCache:
    """Process-wide weather cache keyed by query string."""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.get_cache_ttl_seconds()
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, query: str) -> Optional[Any]:
        key = normalize_key(query)
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = entry.age_seconds(self.clock())
        if age >= self.ttl_seconds:
            logger.debug(f"[WeatherCache] {key!r} expired ({age:.0f}s old)")
            return None

        logger.info(f"[WeatherCache] CACHE HIT {key!r} ({age:.0f}s old)")
        return entry.data

    def set(self, query: str, data: Any) -> None:
        self._entries[normalize_key(query)] = CacheEntry(data=data, timestamp=self.clock())

    def __len__(self) -> int:
        return len(self._entries)
