"""
Environment-backed settings for Weather Dash.

Credentials are NOT cached here: adapters read their API key with os.getenv
at call time, so a key added to the environment is picked up on the next
request without a restart.
"""

import os

# Provider credentials (one env var per provider)
WEATHERAPI_KEY_ENV = "WEATHERAPI_KEY"
OPENWEATHERMAP_KEY_ENV = "OPENWEATHERMAP_API_KEY"
VISUAL_CROSSING_KEY_ENV = "VISUAL_CROSSING_API_KEY"
TOMORROW_KEY_ENV = "TOMORROW_API_KEY"

# Shared by AirVisual, WAQI and AirNow; OpenWeatherMap air_pollution reuses
# OPENWEATHERMAP_KEY_ENV
AIR_QUALITY_KEY_ENV = "AIR_QUALITY_API_KEY"

# User-Agent sent to every provider
USER_AGENT = "WeatherDash/1.0"

DEFAULT_CACHE_TTL_SECONDS = 600


def get_language() -> str:
    """Language code passed to providers that localize condition text."""
    return os.getenv("WEATHER_DASH_LANG", "en")


def get_cache_ttl_seconds() -> int:
    raw = os.getenv("WEATHER_DASH_CACHE_TTL_SECONDS")
    if not raw:
        return DEFAULT_CACHE_TTL_SECONDS
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_CACHE_TTL_SECONDS


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")


def skip_ssl_verify() -> bool:
    """SSL verification toggle for corporate proxy environments."""
    return os.getenv("WEATHER_DASH_SKIP_SSL_VERIFY", "").lower() in ("1", "true", "yes")
