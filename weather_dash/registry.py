"""
Provider Registry for Weather Dash

Holds one ProviderRecord per weather provider with statistics learned over
the process lifetime, and decides which providers to try for a request and
in which order.

Ranking (lower is better):
    score = priority + avg_response_time_ms / 1000 + (1 - success_rate) * 10

Exclusions:
- is_available is False
- daily_used >= daily_limit (after the lazy UTC-midnight reset)
- failed less than FAILURE_COOLDOWN ago

Nothing is persisted: a restart returns every record to its seed values.
Concurrent requests share these records without locking; a lost update only
nudges a heuristic.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, TypedDict

logger = logging.getLogger(__name__)

FAILURE_COOLDOWN = timedelta(minutes=5)

SUCCESS_RATE_FLOOR = 0.1
SUCCESS_RATE_CEILING = 0.99

# EMA weight given to a new latency sample
LATENCY_ALPHA = 0.2
FAILURE_LATENCY_PENALTY = 1.1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for the non-negative figures shown in status reports."""
    return int(math.floor(value + 0.5))


def next_utc_midnight(now: datetime) -> datetime:
    """UTC midnight at the start of the day after now."""
    now_utc = now.astimezone(timezone.utc)
    tomorrow = now_utc.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=timezone.utc)


@dataclass
class ProviderRecord:
    """Runtime statistics for one provider."""
    name: str
    priority: int
    avg_response_time_ms: float
    success_rate: float
    daily_limit: int
    reset_at: datetime
    is_available: bool = True
    daily_used: int = 0
    last_failure_at: Optional[datetime] = None

    @property
    def score(self) -> float:
        return (
            self.priority
            + self.avg_response_time_ms / 1000
            + (1 - self.success_rate) * 10
        )

    def in_cooldown(self, now: datetime) -> bool:
        return (
            self.last_failure_at is not None
            and now - self.last_failure_at < FAILURE_COOLDOWN
        )


class ProviderSeed(TypedDict):
    name: str
    priority: int
    avg_response_time_ms: float
    success_rate: float
    daily_limit: int


# Sorted by expected speed and reliability
DEFAULT_PROVIDER_SEEDS: List[ProviderSeed] = [
    {"name": "WeatherAPI", "priority": 1, "avg_response_time_ms": 800,
     "success_rate": 0.95, "daily_limit": 10000},
    {"name": "OpenWeatherMap", "priority": 2, "avg_response_time_ms": 1200,
     "success_rate": 0.90, "daily_limit": 1000},
    {"name": "VisualCrossing", "priority": 3, "avg_response_time_ms": 1500,
     "success_rate": 0.85, "daily_limit": 1000},
    {"name": "Tomorrow", "priority": 4, "avg_response_time_ms": 2000,
     "success_rate": 0.80, "daily_limit": 500},
]


class ProviderStatus(TypedDict):
    name: str
    status: str
    success_rate: int
    avg_response_time_ms: int
    daily_used: int
    daily_limit: int


class ProviderRegistry:
    """
    Registry of ProviderRecords.

    Create one per process (or per test) and hand it to the WeatherManager.
    """

    def __init__(self, records: Iterable[ProviderRecord] = ()):
        self._records: Dict[str, ProviderRecord] = {}
        for record in records:
            self.add(record)

    @classmethod
    def from_seeds(
        cls,
        seeds: Iterable[ProviderSeed] = DEFAULT_PROVIDER_SEEDS,
        now: Optional[datetime] = None,
    ) -> "ProviderRegistry":
        now = now or utc_now()
        reset_at = next_utc_midnight(now)
        return cls(
            ProviderRecord(
                name=seed["name"],
                priority=seed["priority"],
                avg_response_time_ms=float(seed["avg_response_time_ms"]),
                success_rate=float(seed["success_rate"]),
                daily_limit=seed["daily_limit"],
                reset_at=reset_at,
            )
            for seed in seeds
        )

    def add(self, record: ProviderRecord) -> None:
        if record.name in self._records:
            raise ValueError(f"Duplicate provider name: {record.name}")
        self._records[record.name] = record

    def get(self, name: str) -> Optional[ProviderRecord]:
        return self._records.get(name)

    def names(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records.values())

    def _maybe_reset_quota(self, record: ProviderRecord, now: datetime) -> None:
        # Lazy: several missed midnights still collapse into one reset
        if now > record.reset_at:
            logger.info(f"[ProviderRegistry] {record.name}: daily quota reset "
                        f"({record.daily_used}/{record.daily_limit} used)")
            record.daily_used = 0
            record.reset_at = next_utc_midnight(now)

    def _is_candidate(self, record: ProviderRecord, now: datetime) -> bool:
        if not record.is_available:
            return False

        self._maybe_reset_quota(record, now)

        if record.daily_used >= record.daily_limit:
            logger.debug(f"[ProviderRegistry] {record.name}: daily limit reached")
            return False

        if record.in_cooldown(now):
            logger.debug(f"[ProviderRegistry] {record.name}: cooling down since "
                         f"{record.last_failure_at.isoformat()}")
            return False

        return True

    def select_candidates(self, now: Optional[datetime] = None) -> List[ProviderRecord]:
        """
        Providers eligible at now, best composite score first.

        Returns:
            Ordered list, possibly empty. Ties keep registration order.
        """
        now = now or utc_now()
        candidates = [r for r in self._records.values() if self._is_candidate(r, now)]
        candidates.sort(key=lambda r: r.score)
        return candidates

    def record_outcome(
        self,
        name: str,
        success: bool,
        response_time_ms: float,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Update statistics after one attempt. Call exactly once per attempt.

        Success: latency EMA, success rate up (max 0.99), failure mark cleared.
        Failure: failure mark set, success rate down (min 0.1), latency x1.1.
        """
        record = self._records.get(name)
        if record is None:
            logger.warning(f"[ProviderRegistry] Outcome for unknown provider {name!r} ignored")
            return

        record.daily_used += 1

        if success:
            record.avg_response_time_ms = (
                record.avg_response_time_ms * (1 - LATENCY_ALPHA)
                + response_time_ms * LATENCY_ALPHA
            )
            record.success_rate = min(SUCCESS_RATE_CEILING, record.success_rate * 0.95 + 0.05)
            record.last_failure_at = None
        else:
            record.last_failure_at = now or utc_now()
            record.success_rate = max(SUCCESS_RATE_FLOOR, record.success_rate * 0.9)
            record.avg_response_time_ms *= FAILURE_LATENCY_PENALTY

        logger.debug(f"[ProviderRegistry] {name}: success_rate={record.success_rate:.3f}, "
                     f"avg={record.avg_response_time_ms:.0f}ms, "
                     f"used={record.daily_used}/{record.daily_limit}")

    def get_provider_status(self) -> List[ProviderStatus]:
        """Read-only projection for monitoring."""
        return [
            {
                "name": r.name,
                "status": "available" if r.is_available else "unavailable",
                "success_rate": round_half_up(r.success_rate * 100),
                "avg_response_time_ms": round_half_up(r.avg_response_time_ms),
                "daily_used": r.daily_used,
                "daily_limit": r.daily_limit,
            }
            for r in self._records.values()
        ]
