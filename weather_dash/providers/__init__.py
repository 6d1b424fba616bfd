"""
Providers package for Weather Dash

Upstream weather APIs, tried by the WeatherManager in composite-score order:

1. WeatherAPI.com  - priority 1, 10,000 calls/day, 8s timeout
2. OpenWeatherMap  - priority 2, 1,000 calls/day, 10s timeout
3. Visual Crossing - priority 3, 1,000 calls/day, 12s timeout
4. Tomorrow.io     - priority 4, 500 calls/day, 15s timeout (retries once)

Every adapter returns an AdapterResult wrapping the same NormalizedWeather
shape, so callers never see provider-specific field names.

Air quality (AirVisual, WAQI, AirNow, OpenWeatherMap) is a separate
fixed-order chain in air_quality.py.
"""

from weather_dash.providers.base import (
    AdapterResult,
    NormalizedWeather,
    WeatherAdapter,
)

from weather_dash.providers.weatherapi import WeatherAPIAdapter
from weather_dash.providers.openweathermap import OpenWeatherMapAdapter
from weather_dash.providers.visual_crossing import VisualCrossingAdapter
from weather_dash.providers.tomorrow import TomorrowAdapter

from weather_dash.providers.hourly import (
    HourlyForecastFetcher,
    HourlyEntry,
)

from weather_dash.providers.air_quality import (
    AirQualityFetcher,
    AirQualityReading,
)

__all__ = [
    # Contract
    "AdapterResult",
    "NormalizedWeather",
    "WeatherAdapter",
    # Current conditions
    "WeatherAPIAdapter",
    "OpenWeatherMapAdapter",
    "VisualCrossingAdapter",
    "TomorrowAdapter",
    # Hourly outlook
    "HourlyForecastFetcher",
    "HourlyEntry",
    # Air quality
    "AirQualityFetcher",
    "AirQualityReading",
]
