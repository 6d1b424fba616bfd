"""
Visual Crossing Provider for Weather Dash

Fetches today's timeline with current conditions from
weather.visualcrossing.com. Requested with unitGroup=metric, so wind comes
back in km/h and visibility in km.

RATE LIMITING:
- Seed quota: 1,000 records/day (free tier)
- Timeout: 12 seconds
"""

import logging
from typing import Any, Dict
from urllib.parse import quote

from weather_dash import config
from weather_dash.providers.base import (
    NormalizedWeather,
    WeatherAdapter,
    estimated_temperature_block,
    km_to_m,
    kmh_to_ms,
)

logger = logging.getLogger(__name__)


class VisualCrossingAdapter(WeatherAdapter):
    """Provider for the Visual Crossing Timeline API."""

    NAME = "VisualCrossing"
    BASE_URL = "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline"
    API_KEY_ENV = config.VISUAL_CROSSING_KEY_ENV
    TIMEOUT_SECONDS = 12.0

    def _build_url(self, query: str) -> str:
        # Location is a path segment, not a parameter
        return f"{self.BASE_URL}/{quote(query, safe='')}/today"

    def _build_params(self, query: str, api_key: str) -> Dict[str, Any]:
        return {
            "key": api_key,
            "include": "current",
            "unitGroup": "metric",
            "lang": config.get_language(),
        }

    def normalize(self, payload: Dict[str, Any]) -> NormalizedWeather:
        current = payload["currentConditions"]

        return {
            "coord": {"lat": float(payload["latitude"]), "lon": float(payload["longitude"])},
            "weather": [{
                "main": current["conditions"],
                "description": current["conditions"],
                "icon": current.get("icon", ""),
            }],
            "main": estimated_temperature_block(
                temp=current["temp"],
                feels_like=current["feelslike"],
                humidity=current["humidity"],
                pressure=current["pressure"],
            ),
            "wind": {
                "speed": kmh_to_ms(current["windspeed"]),
                "deg": float(current["winddir"]),
            },
            "visibility": km_to_m(current["visibility"]),
            "name": payload["resolvedAddress"],
            "sys": {"country": "Unknown"},
            "source": "Visual Crossing",
        }
