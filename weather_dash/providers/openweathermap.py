"""
OpenWeatherMap Provider for Weather Dash

Fetches current conditions from api.openweathermap.org (/data/2.5/weather).
OpenWeatherMap's metric response is already in canonical units (m/s, meters),
so normalization only selects the canonical fields.

RATE LIMITING:
- Seed quota: 1,000 calls/day (free tier)
- Timeout: 10 seconds
"""

import logging
from typing import Any, Dict

from weather_dash import config
from weather_dash.providers.base import NormalizedWeather, WeatherAdapter, parse_lat_lon

logger = logging.getLogger(__name__)

# OpenWeatherMap wants zh_cn rather than zh, etc.
LANGUAGE_ALIASES = {
    "zh": "zh_cn",
}


class OpenWeatherMapAdapter(WeatherAdapter):
    """Provider for OpenWeatherMap current weather."""

    NAME = "OpenWeatherMap"
    BASE_URL = "https://api.openweathermap.org/data/2.5/weather"
    API_KEY_ENV = config.OPENWEATHERMAP_KEY_ENV
    TIMEOUT_SECONDS = 10.0

    def _build_params(self, query: str, api_key: str) -> Dict[str, Any]:
        lang = config.get_language()
        params: Dict[str, Any] = {
            "appid": api_key,
            "units": "metric",
            "lang": LANGUAGE_ALIASES.get(lang, lang),
        }

        coords = parse_lat_lon(query)
        if coords is not None:
            params["lat"], params["lon"] = coords
        else:
            params["q"] = query
        return params

    def normalize(self, payload: Dict[str, Any]) -> NormalizedWeather:
        main = payload["main"]
        wind = payload.get("wind", {})

        return {
            "coord": {
                "lat": float(payload["coord"]["lat"]),
                "lon": float(payload["coord"]["lon"]),
            },
            "weather": [
                {
                    "main": w["main"],
                    "description": w.get("description", w["main"]),
                    "icon": w.get("icon", ""),
                }
                for w in payload["weather"]
            ],
            "main": {
                "temp": float(main["temp"]),
                "feels_like": float(main["feels_like"]),
                "temp_min": float(main.get("temp_min", main["temp"])),
                "temp_max": float(main.get("temp_max", main["temp"])),
                "humidity": float(main["humidity"]),
                "pressure": float(main["pressure"]),
            },
            "wind": {
                "speed": float(wind.get("speed", 0.0)),
                "deg": float(wind.get("deg", 0.0)),
            },
            # Omitted by OWM when visibility is unlimited; the API caps it at 10 km
            "visibility": float(payload.get("visibility", 10000)),
            "name": payload["name"],
            "sys": {"country": payload.get("sys", {}).get("country", "Unknown")},
            "source": "OpenWeatherMap",
        }
