"""
Adapter contract shared by every weather provider.

Each provider subclasses WeatherAdapter and supplies:
- the request it issues (_build_params / _build_url)
- the mapping from its proprietary JSON into NormalizedWeather (normalize)

The base class owns everything else: the credential check, the single
bounded HTTP GET, status/timeout/parse handling and the conversion of every
failure into an AdapterResult. try_fetch() never raises.
"""

import httpx
import logging
import math
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from weather_dash import config
from weather_dash.resilience import ErrorType, RetryConfig, categorize_error, with_retry

logger = logging.getLogger(__name__)

# Current-conditions endpoints carry no daily extremes; min/max are estimated
# as current temperature plus/minus this spread.
TEMP_SPREAD_C = 2.0

KMH_PER_MS = 3.6
METERS_PER_KM = 1000


class Coordinates(TypedDict):
    lat: float
    lon: float


class Condition(TypedDict):
    main: str
    description: str
    icon: str


class TemperatureBlock(TypedDict):
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    humidity: float
    pressure: float


class Wind(TypedDict):
    speed: float  # m/s
    deg: float


class CountryInfo(TypedDict):
    country: str


class NormalizedWeather(TypedDict):
    """The single canonical shape produced regardless of provider."""
    coord: Coordinates
    weather: List[Condition]
    main: TemperatureBlock
    wind: Wind
    visibility: float  # meters
    name: str
    sys: CountryInfo
    source: str


@dataclass
class AdapterResult:
    """Success/failure outcome of one adapter attempt."""
    success: bool
    data: Optional[NormalizedWeather] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None

    @classmethod
    def ok(cls, data: NormalizedWeather) -> "AdapterResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_type: ErrorType = ErrorType.UNKNOWN) -> "AdapterResult":
        return cls(success=False, error=error, error_type=error_type)


def kmh_to_ms(speed_kmh: float) -> float:
    return float(speed_kmh) / KMH_PER_MS


def km_to_m(distance_km: float) -> float:
    return float(distance_km) * METERS_PER_KM


def parse_coordinates(lat: Any, lon: Any) -> Tuple[float, float]:
    """
    Parse a latitude/longitude pair.

    Raises:
        ValueError: if either value is missing, non-numeric or not finite
            ("nan", "inf").
    """
    if lat is None or lon is None or str(lat).strip() == "" or str(lon).strip() == "":
        raise ValueError("Missing latitude/longitude parameters")
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError):
        raise ValueError("Invalid latitude/longitude parameters")
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise ValueError("Invalid latitude/longitude parameters")
    return lat_f, lon_f


def parse_lat_lon(query: str) -> Optional[Tuple[float, float]]:
    """Return (lat, lon) if query is a "lat,lon" composite, else None."""
    parts = query.split(",")
    if len(parts) != 2:
        return None
    try:
        return parse_coordinates(parts[0].strip(), parts[1].strip())
    except ValueError:
        return None


def estimated_temperature_block(
    temp: float,
    feels_like: float,
    humidity: float,
    pressure: float,
) -> TemperatureBlock:
    temp = float(temp)
    return {
        "temp": temp,
        "feels_like": float(feels_like),
        "temp_min": temp - TEMP_SPREAD_C,
        "temp_max": temp + TEMP_SPREAD_C,
        "humidity": float(humidity),
        "pressure": float(pressure),
    }


class WeatherAdapter:
    """
    Base class for provider adapters.

    Subclasses set NAME, BASE_URL, API_KEY_ENV and TIMEOUT_SECONDS, and
    implement _build_params() and normalize(). Adapters that retry the same
    provider on transient errors set RETRY_CONFIG.
    """

    NAME = ""
    BASE_URL = ""
    API_KEY_ENV = ""
    TIMEOUT_SECONDS = 10.0
    RETRY_CONFIG: Optional[RetryConfig] = None

    HEADERS = {
        "User-Agent": config.USER_AGENT,
        "Accept": "application/json",
    }

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.transport = transport
        self.retry_config = retry_config if retry_config is not None else self.RETRY_CONFIG

    @property
    def log_prefix(self) -> str:
        return f"[{type(self).__name__}]"

    def get_api_key(self) -> Optional[str]:
        return os.getenv(self.API_KEY_ENV) or None

    def _build_url(self, query: str) -> str:
        return self.BASE_URL

    def _build_params(self, query: str, api_key: str) -> Dict[str, Any]:
        raise NotImplementedError

    def normalize(self, payload: Dict[str, Any]) -> NormalizedWeather:
        """Map the provider's JSON into NormalizedWeather. May raise on missing fields."""
        raise NotImplementedError

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.TIMEOUT_SECONDS,
            transport=self.transport,
            verify=not config.skip_ssl_verify(),
        )

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        async with self._client() as client:
            resp = await client.get(url, params=params, headers=self.HEADERS)
            resp.raise_for_status()
            return resp.json()

    async def try_fetch(self, query: str) -> AdapterResult:
        """
        Fetch current weather for query and normalize it.

        Returns:
            AdapterResult; failures carry a human-readable reason.
        """
        api_key = self.get_api_key()
        if not api_key:
            logger.warning(f"{self.log_prefix} No API key found in env ({self.API_KEY_ENV})")
            return AdapterResult.fail(
                f"{self.NAME} API key not configured",
                ErrorType.CREDENTIAL_MISSING,
            )

        url = self._build_url(query)
        params = self._build_params(query, api_key)

        get_json = self._get_json
        if self.retry_config is not None:
            get_json = with_retry(config=self.retry_config, provider_name=self.NAME)(get_json)

        try:
            logger.debug(f"{self.log_prefix} GET {url}")
            payload = await get_json(url, params)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error_type, _ = categorize_error(e)
            logger.warning(f"{self.log_prefix} HTTP {status}: {e.response.text[:100]}")
            return AdapterResult.fail(f"{self.NAME} HTTP {status}", error_type)
        except httpx.TimeoutException:
            logger.warning(f"{self.log_prefix} Request timed out after {self.TIMEOUT_SECONDS}s")
            return AdapterResult.fail(f"{self.NAME} request timed out", ErrorType.TIMEOUT)
        except httpx.RequestError as e:
            logger.warning(f"{self.log_prefix} Request error: {e}")
            return AdapterResult.fail(f"{self.NAME} request error: {e}", ErrorType.API_ERROR)
        except ValueError as e:
            # Body was not JSON
            logger.warning(f"{self.log_prefix} Malformed response body: {e}")
            return AdapterResult.fail(f"{self.NAME} parse error: {e}", ErrorType.PARSE_ERROR)
        except Exception as e:
            logger.error(f"{self.log_prefix} Fetch failed: {e}", exc_info=True)
            return AdapterResult.fail(f"{self.NAME} error: {e}", ErrorType.UNKNOWN)

        try:
            data = self.normalize(payload)
        except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
            logger.warning(f"{self.log_prefix} Could not map response: {e!r}")
            return AdapterResult.fail(f"{self.NAME} parse error: {e!r}", ErrorType.PARSE_ERROR)

        logger.info(f"{self.log_prefix} [OK] {data['name']}: {data['main']['temp']:.1f}C")
        return AdapterResult.ok(data)
