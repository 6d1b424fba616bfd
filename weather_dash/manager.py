"""
Weather Manager - multi-provider selection with transparent fallback.

fetch_weather_data(query):
1. Ask the registry for candidates (quota / cooldown / availability filtered,
   sorted by composite score)
2. Try each candidate's adapter in order; the first success wins
3. Record exactly one outcome per attempted provider
4. If every candidate fails, surface the last failure reason

Only total exhaustion reaches the caller as an error. A provider is never
retried within one call here; adapter-local retries live in the adapters.
"""

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from weather_dash.providers.base import AdapterResult, NormalizedWeather, WeatherAdapter
from weather_dash.providers.openweathermap import OpenWeatherMapAdapter
from weather_dash.providers.tomorrow import TomorrowAdapter
from weather_dash.providers.visual_crossing import VisualCrossingAdapter
from weather_dash.providers.weatherapi import WeatherAPIAdapter
from weather_dash.registry import ProviderRegistry, ProviderStatus, utc_now
from weather_dash.resilience import ErrorType

logger = logging.getLogger(__name__)

NO_PROVIDERS_MESSAGE = "All weather providers are temporarily unavailable, please retry later"
ALL_FAILED_MESSAGE = "All weather providers failed"


@dataclass
class WeatherAPIResult:
    """Outcome of fetch_weather_data()."""
    success: bool
    response_time_ms: float
    provider_used: str
    data: Optional[NormalizedWeather] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["error_type"] = self.error_type.value if self.error_type else None
        return result


def default_adapters() -> List[WeatherAdapter]:
    return [
        WeatherAPIAdapter(),
        OpenWeatherMapAdapter(),
        VisualCrossingAdapter(),
        TomorrowAdapter(),
    ]


class WeatherManager:
    """
    Owns a ProviderRegistry and one adapter per registered provider.

    Lives from process start to process end; statistics learned by the
    registry persist only for that lifetime.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        adapters: Optional[Iterable[WeatherAdapter]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.clock = clock
        self.registry = registry if registry is not None else ProviderRegistry.from_seeds(now=clock())
        self.adapters: Dict[str, WeatherAdapter] = {
            adapter.NAME: adapter
            for adapter in (adapters if adapters is not None else default_adapters())
        }

        missing = [name for name in self.registry.names() if name not in self.adapters]
        if missing:
            raise ValueError(f"No adapter registered for provider(s): {', '.join(missing)}")

        logger.info(f"[WeatherManager] Initialized with {len(self.adapters)} providers: "
                    f"{', '.join(self.registry.names())}")

    async def fetch_weather_data(self, query: str) -> WeatherAPIResult:
        """
        Fetch normalized weather for a city name or "lat,lon" string.

        Raises:
            ValueError: if query is empty.
        """
        if not query or not query.strip():
            raise ValueError("query must be a non-empty location")
        query = query.strip()

        candidates = self.registry.select_candidates(self.clock())
        if not candidates:
            logger.warning("[WeatherManager] No providers available (quota/cooldown)")
            return WeatherAPIResult(
                success=False,
                response_time_ms=0,
                provider_used="none",
                error=NO_PROVIDERS_MESSAGE,
                error_type=ErrorType.NO_PROVIDERS,
            )

        last_error = ""

        for record in candidates:
            adapter = self.adapters.get(record.name)
            if adapter is None:
                # Registered after this manager was built
                self.registry.record_outcome(record.name, False, 0, self.clock())
                last_error = f"{record.name} has no adapter"
                logger.error(f"[WeatherManager] {last_error}")
                continue

            logger.info(f"[WeatherManager] Trying {record.name} "
                        f"(priority {record.priority}, success rate {record.success_rate * 100:.1f}%)")

            start = time.perf_counter()
            try:
                result: AdapterResult = await adapter.try_fetch(query)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                self.registry.record_outcome(record.name, False, elapsed_ms, self.clock())
                last_error = f"{record.name} unexpected error: {e}"
                logger.error(f"[WeatherManager] {record.name} raised: {e}", exc_info=True)
                continue

            elapsed_ms = (time.perf_counter() - start) * 1000

            if result.success:
                self.registry.record_outcome(record.name, True, elapsed_ms, self.clock())
                logger.info(f"[WeatherManager] [OK] {record.name} succeeded ({elapsed_ms:.0f}ms)")
                return WeatherAPIResult(
                    success=True,
                    response_time_ms=elapsed_ms,
                    provider_used=record.name,
                    data=result.data,
                )

            self.registry.record_outcome(record.name, False, elapsed_ms, self.clock())
            last_error = result.error or f"{record.name} call failed"
            if result.error_type == ErrorType.CREDENTIAL_MISSING:
                logger.warning(f"[WeatherManager] {record.name} skipped: {last_error}")
            else:
                logger.warning(f"[WeatherManager] {record.name} failed: {last_error}")

        logger.error(f"[WeatherManager] All {len(candidates)} candidates failed. Last error: {last_error}")
        return WeatherAPIResult(
            success=False,
            response_time_ms=0,
            provider_used="failed",
            error=last_error or ALL_FAILED_MESSAGE,
            error_type=ErrorType.EXHAUSTED,
        )

    def get_provider_status(self) -> List[ProviderStatus]:
        return self.registry.get_provider_status()
