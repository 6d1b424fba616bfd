"""
Hourly forecast for Weather Dash

Two sources in fixed order:
1. WeatherAPI.com forecast.json - 24 hourly entries from the current local hour
2. OpenWeatherMap /data/2.5/forecast - first 8 three-hour slots

No synthetic data: if both fail the result says so.
"""

import httpx
import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypedDict

from weather_dash import config
from weather_dash.providers.base import kmh_to_ms
from weather_dash.registry import utc_now

logger = logging.getLogger(__name__)

HOURS = 24
OWM_SLOTS = 8  # 8 x 3h = 24h


class HourlyEntry(TypedDict):
    time: int  # epoch milliseconds
    temperature: float
    condition: str
    precipitation_probability: float  # percent
    wind_speed: float  # m/s
    humidity: float


class HourlyForecastFetcher:
    """Fetches a 24-hour outlook, falling back from WeatherAPI.com to OpenWeatherMap."""

    WEATHERAPI_URL = "https://api.weatherapi.com/v1/forecast.json"
    OPENWEATHERMAP_URL = "https://api.openweathermap.org/data/2.5/forecast"
    TIMEOUT_SECONDS = 8.0

    HEADERS = {"User-Agent": config.USER_AGENT}

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.transport = transport
        self.clock = clock

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

    def _current_local_hour(self, payload: Dict[str, Any]) -> int:
        # WeatherAPI reports the location's local time as "YYYY-MM-DD HH:MM"
        localtime = (payload.get("location") or {}).get("localtime")
        if localtime:
            try:
                return datetime.strptime(localtime, "%Y-%m-%d %H:%M").hour
            except ValueError:
                pass
        return self.clock().hour

    def parse_weatherapi(self, payload: Dict[str, Any]) -> List[HourlyEntry]:
        hours = payload["forecast"]["forecastday"][0]["hour"]
        if not hours:
            return []

        start_hour = self._current_local_hour(payload)
        entries: List[HourlyEntry] = []

        for i in range(HOURS):
            index = (start_hour + i) % HOURS
            if index >= len(hours):
                continue
            hour = hours[index]
            entries.append({
                "time": int(hour["time_epoch"]) * 1000,
                "temperature": float(hour["temp_c"]),
                "condition": hour["condition"]["text"],
                "precipitation_probability": float(
                    hour.get("chance_of_rain") or hour.get("chance_of_snow") or 0
                ),
                "wind_speed": kmh_to_ms(hour["wind_kph"]),
                "humidity": float(hour["humidity"]),
            })

        return entries

    def parse_openweathermap(self, payload: Dict[str, Any]) -> List[HourlyEntry]:
        return [
            {
                "time": int(item["dt"]) * 1000,
                "temperature": float(item["main"]["temp"]),
                "condition": item["weather"][0]["description"],
                "precipitation_probability": float(item.get("pop") or 0) * 100,
                "wind_speed": float(item["wind"]["speed"]),
                "humidity": float(item["main"]["humidity"]),
            }
            for item in payload["list"][:OWM_SLOTS]
        ]

    async def _from_weatherapi(self, city: str, lat: Optional[str], lon: Optional[str]) -> List[HourlyEntry]:
        api_key = os.getenv(config.WEATHERAPI_KEY_ENV)
        if not api_key:
            logger.warning("[HourlyForecastFetcher] WeatherAPI.com key not configured")
            return []

        params = {
            "key": api_key,
            "q": f"{lat},{lon}" if lat and lon else city,
            "hours": HOURS,
            "aqi": "no",
            "alerts": "no",
            "lang": config.get_language(),
        }
        try:
            payload = await self._get_json(self.WEATHERAPI_URL, params)
            return self.parse_weatherapi(payload)
        except httpx.HTTPStatusError as e:
            logger.warning(f"[HourlyForecastFetcher] WeatherAPI.com HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            logger.warning(f"[HourlyForecastFetcher] WeatherAPI.com request error: {e!r}")
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[HourlyForecastFetcher] WeatherAPI.com parse error: {e!r}")
        return []

    async def _from_openweathermap(self, city: str, lat: Optional[str], lon: Optional[str]) -> List[HourlyEntry]:
        api_key = os.getenv(config.OPENWEATHERMAP_KEY_ENV)
        if not api_key:
            logger.warning("[HourlyForecastFetcher] OpenWeatherMap key not configured")
            return []

        params: Dict[str, Any] = {"appid": api_key, "units": "metric"}
        if lat and lon:
            params["lat"], params["lon"] = lat, lon
        else:
            params["q"] = city
        try:
            payload = await self._get_json(self.OPENWEATHERMAP_URL, params)
            return self.parse_openweathermap(payload)
        except httpx.HTTPStatusError as e:
            logger.warning(f"[HourlyForecastFetcher] OpenWeatherMap HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            logger.warning(f"[HourlyForecastFetcher] OpenWeatherMap request error: {e!r}")
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[HourlyForecastFetcher] OpenWeatherMap parse error: {e!r}")
        return []

    async def fetch(
        self,
        city: str,
        lat: Optional[str] = None,
        lon: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Fetch the hourly outlook for city (or lat/lon when both are given).

        Returns:
            dict with success, hourly, location, data_source, api_used,
            total_hours, last_updated, api_status (and error on failure)
        """
        logger.info(f"[HourlyForecastFetcher] Request: city={city}, lat={lat}, lon={lon}")

        data_source, api_used = None, "none"

        hourly: List[HourlyEntry] = await self._from_weatherapi(city, lat, lon)
        if hourly:
            data_source, api_used = "WeatherAPI.com", "weatherapi"
        else:
            hourly = await self._from_openweathermap(city, lat, lon)
            if hourly:
                data_source, api_used = "OpenWeatherMap", "openweathermap"

        result: Dict[str, Any] = {
            "success": bool(hourly),
            "hourly": hourly,
            "location": city,
            "data_source": data_source,
            "api_used": api_used,
            "total_hours": len(hourly),
            "last_updated": self.clock().isoformat(),
            "api_status": {
                "weatherapi_key": bool(os.getenv(config.WEATHERAPI_KEY_ENV)),
                "openweathermap_key": bool(os.getenv(config.OPENWEATHERMAP_KEY_ENV)),
            },
        }

        if hourly:
            logger.info(f"[HourlyForecastFetcher] [OK] {data_source}: {len(hourly)} entries")
        else:
            result["error"] = "No hourly forecast provider returned data"
            logger.error(f"[HourlyForecastFetcher] All sources failed for {city!r}")

        return result
