"""
Tomorrow.io Provider for Weather Dash

Fetches realtime conditions from api.tomorrow.io (v4/weather/realtime).
The slowest provider in the chain, so it is tried last by default and is
the only adapter that retries once on transient errors.

RATE LIMITING:
- Seed quota: 500 calls/day (free tier)
- Timeout: 15 seconds
"""

import logging
from typing import Any, Dict

from weather_dash import config
from weather_dash.providers.base import (
    NormalizedWeather,
    WeatherAdapter,
    estimated_temperature_block,
    km_to_m,
)
from weather_dash.resilience import RetryConfig

logger = logging.getLogger(__name__)

# https://docs.tomorrow.io/reference/data-layers-weather-codes
WEATHER_CODES = {
    1000: "Clear",
    1100: "Mostly Clear",
    1101: "Partly Cloudy",
    1102: "Mostly Cloudy",
    1001: "Cloudy",
    2000: "Fog",
    2100: "Light Fog",
    4000: "Drizzle",
    4001: "Rain",
    4200: "Light Rain",
    4201: "Heavy Rain",
    5000: "Snow",
    5001: "Flurries",
    5100: "Light Snow",
    5101: "Heavy Snow",
    6000: "Freezing Drizzle",
    6001: "Freezing Rain",
    6200: "Light Freezing Rain",
    6201: "Heavy Freezing Rain",
    7000: "Ice Pellets",
    7101: "Heavy Ice Pellets",
    7102: "Light Ice Pellets",
    8000: "Thunderstorm",
}


def describe_weather_code(code: Any) -> str:
    try:
        return WEATHER_CODES.get(int(code), "Unknown")
    except (TypeError, ValueError):
        return "Unknown"


class TomorrowAdapter(WeatherAdapter):
    """Provider for Tomorrow.io realtime weather."""

    NAME = "Tomorrow"
    BASE_URL = "https://api.tomorrow.io/v4/weather/realtime"
    API_KEY_ENV = config.TOMORROW_KEY_ENV
    TIMEOUT_SECONDS = 15.0
    RETRY_CONFIG = RetryConfig(max_retries=1, base_delay_seconds=1.0, max_delay_seconds=2.0)

    def _build_params(self, query: str, api_key: str) -> Dict[str, Any]:
        return {
            "location": query,
            "apikey": api_key,
            "units": "metric",
        }

    def normalize(self, payload: Dict[str, Any]) -> NormalizedWeather:
        values = payload["data"]["values"]
        location = payload["location"]
        condition = describe_weather_code(values.get("weatherCode"))

        return {
            "coord": {"lat": float(location["lat"]), "lon": float(location["lon"])},
            "weather": [{
                "main": condition,
                "description": condition,
                "icon": str(values.get("weatherCode", "")),
            }],
            "main": estimated_temperature_block(
                temp=values["temperature"],
                feels_like=values["temperatureApparent"],
                humidity=values["humidity"],
                pressure=values["pressureSeaLevel"],
            ),
            # units=metric already reports m/s
            "wind": {
                "speed": float(values["windSpeed"]),
                "deg": float(values["windDirection"]),
            },
            "visibility": km_to_m(values["visibility"]),
            "name": location.get("name", "Unknown"),
            "sys": {"country": "Unknown"},
            "source": "Tomorrow.io",
        }
