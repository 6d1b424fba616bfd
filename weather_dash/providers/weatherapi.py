"""
WeatherAPI.com Provider for Weather Dash

Fetches current conditions from api.weatherapi.com (current.json).
Accepts city names and "lat,lon" queries natively via the q parameter.

RATE LIMITING:
- Seed quota: 10,000 calls/day
- Timeout: 8 seconds
"""

import logging
from typing import Any, Dict

from weather_dash import config
from weather_dash.providers.base import (
    NormalizedWeather,
    WeatherAdapter,
    estimated_temperature_block,
    km_to_m,
    kmh_to_ms,
)

logger = logging.getLogger(__name__)


class WeatherAPIAdapter(WeatherAdapter):
    """Provider for WeatherAPI.com current conditions."""

    NAME = "WeatherAPI"
    BASE_URL = "https://api.weatherapi.com/v1/current.json"
    API_KEY_ENV = config.WEATHERAPI_KEY_ENV
    TIMEOUT_SECONDS = 8.0

    def _build_params(self, query: str, api_key: str) -> Dict[str, Any]:
        return {
            "key": api_key,
            "q": query,
            "aqi": "yes",
            "lang": config.get_language(),
        }

    def normalize(self, payload: Dict[str, Any]) -> NormalizedWeather:
        location = payload["location"]
        current = payload["current"]
        condition = current["condition"]

        return {
            "coord": {"lat": float(location["lat"]), "lon": float(location["lon"])},
            "weather": [{
                "main": condition["text"],
                "description": condition["text"],
                "icon": condition.get("icon", ""),
            }],
            "main": estimated_temperature_block(
                temp=current["temp_c"],
                feels_like=current["feelslike_c"],
                humidity=current["humidity"],
                pressure=current["pressure_mb"],
            ),
            "wind": {
                "speed": kmh_to_ms(current["wind_kph"]),
                "deg": float(current["wind_degree"]),
            },
            "visibility": km_to_m(current["vis_km"]),
            "name": location["name"],
            "sys": {"country": location.get("country", "Unknown")},
            "source": "WeatherAPI.com",
        }
