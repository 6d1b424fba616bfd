"""
Request-level facade over the WeatherManager.

Validates city / lat / lon parameters, consults the cache, and maps
manager results to HTTP-style status codes:
    200 success, 400 bad parameters, 429 no provider available, 500 all failed

Air quality goes through AirQualityFetcher and uses the same codes
(without 429).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from weather_dash.cache import WeatherCache
from weather_dash.manager import WeatherManager
from weather_dash.providers.air_quality import AirQualityFetcher
from weather_dash.providers.base import parse_coordinates
from weather_dash.resilience import ErrorType
from weather_dash.status import build_status_report

logger = logging.getLogger(__name__)


@dataclass
class ServiceResponse:
    status_code: int
    body: Dict[str, Any]


def build_query(
    city: Optional[str] = None,
    lat: Optional[str] = None,
    lon: Optional[str] = None,
) -> str:
    """
    Turn request parameters into a location query.

    Raises:
        ValueError: missing parameters or non-numeric coordinates.
    """
    if lat and lon:
        lat_f, lon_f = parse_coordinates(lat, lon)
        return f"{lat_f},{lon_f}"

    if lat or lon:
        # Only one coordinate given: still validate before falling back to city
        value = lat or lon
        parse_coordinates(value, value)

    if city and city.strip():
        return city.strip()

    raise ValueError("Missing query parameter (city or lat/lon)")


class WeatherService:
    """What an HTTP route handler would call."""

    def __init__(
        self,
        manager: Optional[WeatherManager] = None,
        cache: Optional[WeatherCache] = None,
        air_quality: Optional[AirQualityFetcher] = None,
    ):
        self.manager = manager or WeatherManager()
        self.cache = cache or WeatherCache()
        self.air_quality = air_quality or AirQualityFetcher()

    async def get_weather(
        self,
        city: Optional[str] = None,
        lat: Optional[str] = None,
        lon: Optional[str] = None,
    ) -> ServiceResponse:
        try:
            query = build_query(city, lat, lon)
        except ValueError as e:
            return ServiceResponse(400, {"error": str(e)})

        cached = self.cache.get(query)
        if cached is not None:
            return ServiceResponse(200, {**cached, "cached": True})

        result = await self.manager.fetch_weather_data(query)

        if result.success:
            body = {
                "data": result.data,
                "provider_used": result.provider_used,
                "response_time_ms": round(result.response_time_ms),
            }
            self.cache.set(query, body)
            return ServiceResponse(200, {**body, "cached": False})

        if result.error_type == ErrorType.NO_PROVIDERS:
            return ServiceResponse(429, {"error": result.error})

        logger.error(f"[WeatherService] Weather lookup failed for {query!r}: {result.error}")
        return ServiceResponse(500, {"error": result.error})

    def get_status(self) -> ServiceResponse:
        return ServiceResponse(200, build_status_report(self.manager.get_provider_status()))

    async def get_air_quality(self, lat: Optional[str] = None, lon: Optional[str] = None) -> ServiceResponse:
        if not self.air_quality.has_credentials():
            return ServiceResponse(500, {"error": "Air quality API key not configured"})

        try:
            reading = await self.air_quality.fetch(lat, lon)
        except ValueError as e:
            return ServiceResponse(400, {"error": str(e)})

        if reading is None:
            return ServiceResponse(500, {
                "error": "Unable to fetch air quality data",
                "hint": "Check the network connection or retry later",
            })
        return ServiceResponse(200, dict(reading))
