"""
Air quality for Weather Dash

Four sources tried in fixed order for a lat/lon pair; the first one that
reports an AQI wins:
1. IQAir AirVisual  /v2/nearest_city          (AIR_QUALITY_API_KEY, US AQI)
2. WAQI             /feed/geo:{lat};{lon}/    (AIR_QUALITY_API_KEY)
3. AirNow           /aq/observation/latLong/  (AIR_QUALITY_API_KEY, US only)
4. OpenWeatherMap   /data/2.5/air_pollution   (OPENWEATHERMAP_API_KEY, 1-5 index)

A source whose key is not configured is skipped. A source that errors, or
answers without an AQI, hands over to the next one.
"""

import httpx
import logging
import os
from typing import Any, Callable, Dict, List, NamedTuple, Optional, TypedDict

from weather_dash import config
from weather_dash.providers.base import parse_coordinates

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
AIRNOW_DISTANCE_MILES = 25


class AirQualityReading(TypedDict):
    aqi: Optional[float]
    source: str
    location: str
    country: str


def _as_aqi(value: Any) -> Optional[float]:
    # WAQI reports "-" when a station has no current reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_airvisual(payload: Dict[str, Any]) -> AirQualityReading:
    data = payload.get("data") or {}
    pollution = (data.get("current") or {}).get("pollution") or {}
    return {
        "aqi": _as_aqi(pollution.get("aqius")),
        "source": "AirVisual",
        "location": data.get("city") or UNKNOWN,
        "country": data.get("country") or UNKNOWN,
    }


def parse_waqi(payload: Dict[str, Any]) -> AirQualityReading:
    data = payload.get("data")
    # On errors WAQI puts a message string in "data"
    if not isinstance(data, dict):
        data = {}
    city = data.get("city") or {}
    return {
        "aqi": _as_aqi(data.get("aqi")),
        "source": "WAQI",
        "location": city.get("name") or UNKNOWN,
        "country": city.get("country") or UNKNOWN,
    }


def parse_airnow(payload: List[Dict[str, Any]]) -> AirQualityReading:
    observation = payload[0] if payload else {}
    return {
        "aqi": _as_aqi(observation.get("AQI")),
        "source": "AirNow",
        "location": observation.get("ReportingArea") or UNKNOWN,
        "country": "US",
    }


def parse_openweathermap(payload: Dict[str, Any]) -> AirQualityReading:
    entries = payload.get("list") or [{}]
    return {
        "aqi": _as_aqi((entries[0].get("main") or {}).get("aqi")),
        "source": "OpenWeatherMap",
        "location": UNKNOWN,
        "country": UNKNOWN,
    }


class AirQualitySource(NamedTuple):
    name: str
    key_env: str
    build_request: Callable[[float, float, str], tuple]
    parse: Callable[[Any], AirQualityReading]


def _airvisual_request(lat: float, lon: float, key: str) -> tuple:
    return "https://api.airvisual.com/v2/nearest_city", {"lat": lat, "lon": lon, "key": key}


def _waqi_request(lat: float, lon: float, key: str) -> tuple:
    return f"https://api.waqi.info/feed/geo:{lat};{lon}/", {"token": key}


def _airnow_request(lat: float, lon: float, key: str) -> tuple:
    return "https://www.airnowapi.org/aq/observation/latLong/current/", {
        "format": "application/json",
        "latitude": lat,
        "longitude": lon,
        "distance": AIRNOW_DISTANCE_MILES,
        "API_KEY": key,
    }


def _openweathermap_request(lat: float, lon: float, key: str) -> tuple:
    return "https://api.openweathermap.org/data/2.5/air_pollution", {"lat": lat, "lon": lon, "appid": key}


AIR_QUALITY_SOURCES = [
    AirQualitySource("AirVisual", config.AIR_QUALITY_KEY_ENV, _airvisual_request, parse_airvisual),
    AirQualitySource("WAQI", config.AIR_QUALITY_KEY_ENV, _waqi_request, parse_waqi),
    AirQualitySource("AirNow", config.AIR_QUALITY_KEY_ENV, _airnow_request, parse_airnow),
    AirQualitySource("OpenWeatherMap", config.OPENWEATHERMAP_KEY_ENV, _openweathermap_request, parse_openweathermap),
]


class AirQualityFetcher:
    """Current AQI for a coordinate pair, falling back across AIR_QUALITY_SOURCES."""

    TIMEOUT_SECONDS = 10.0

    HEADERS = {
        "User-Agent": config.USER_AGENT,
        "Accept": "application/json",
    }

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sources: Optional[List[AirQualitySource]] = None,
    ):
        self.transport = transport
        self.sources = sources if sources is not None else AIR_QUALITY_SOURCES

    def has_credentials(self) -> bool:
        return any(os.getenv(source.key_env) for source in self.sources)

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

    async def _try_source(self, source: AirQualitySource, lat: float, lon: float) -> Optional[AirQualityReading]:
        api_key = os.getenv(source.key_env)
        if not api_key:
            logger.debug(f"[AirQualityFetcher] {source.name} skipped: {source.key_env} not set")
            return None

        url, params = source.build_request(lat, lon, api_key)
        logger.info(f"[AirQualityFetcher] Trying {source.name}: {url}")
        try:
            payload = await self._get_json(url, params)
            reading = source.parse(payload)
        except httpx.HTTPStatusError as e:
            logger.warning(f"[AirQualityFetcher] {source.name} HTTP {e.response.status_code}")
            return None
        except httpx.RequestError as e:
            logger.warning(f"[AirQualityFetcher] {source.name} request error: {e!r}")
            return None
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[AirQualityFetcher] {source.name} parse error: {e!r}")
            return None

        if reading["aqi"] is None:
            logger.warning(f"[AirQualityFetcher] {source.name} returned no AQI")
            return None
        return reading

    async def fetch(self, lat: Any, lon: Any) -> Optional[AirQualityReading]:
        """
        Fetch the current air quality at lat/lon.

        Returns:
            AirQualityReading from the first source with an AQI, or None if
            every source failed.

        Raises:
            ValueError: missing or invalid coordinates.
        """
        lat_f, lon_f = parse_coordinates(lat, lon)

        for source in self.sources:
            reading = await self._try_source(source, lat_f, lon_f)
            if reading is not None:
                logger.info(f"[AirQualityFetcher] [OK] {source.name}: AQI {reading['aqi']:.0f}")
                return reading

        logger.error(f"[AirQualityFetcher] All sources failed for {lat_f},{lon_f}")
        return None
