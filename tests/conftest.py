"""
Shared fixtures for the Weather Dash test suite.

Provider responses are served by httpx.MockTransport; time-dependent
behavior is driven by FakeClock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from weather_dash.providers.base import AdapterResult, WeatherAdapter
from weather_dash.resilience import ErrorType


T0 = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def sample_weather(source: str, temp: float = 20.0, name: str = "Testville") -> dict:
    return {
        "coord": {"lat": 1.0, "lon": 2.0},
        "weather": [{"main": "Clear", "description": "Clear", "icon": ""}],
        "main": {"temp": temp, "feels_like": temp, "temp_min": temp - 2, "temp_max": temp + 2,
                 "humidity": 50.0, "pressure": 1013.0},
        "wind": {"speed": 1.0, "deg": 90.0},
        "visibility": 10000.0,
        "name": name,
        "sys": {"country": "TV"},
        "source": source,
    }


class ScriptedAdapter(WeatherAdapter):
    """Adapter that replays a scripted outcome and counts calls."""

    def __init__(self, name: str, result: Optional[AdapterResult] = None, raises: Optional[Exception] = None):
        super().__init__()
        self.NAME = name
        self.result = result
        self.raises = raises
        self.queries: List[str] = []

    @classmethod
    def succeeding(cls, name: str, temp: float = 20.0) -> "ScriptedAdapter":
        return cls(name, AdapterResult.ok(sample_weather(name, temp)))

    @classmethod
    def failing(cls, name: str, error: Optional[str] = None,
                error_type: ErrorType = ErrorType.API_ERROR) -> "ScriptedAdapter":
        return cls(name, AdapterResult.fail(error or f"{name} HTTP 500", error_type))

    async def try_fetch(self, query: str) -> AdapterResult:
        self.queries.append(query)
        if self.raises is not None:
            raise self.raises
        return self.result

    @property
    def calls(self) -> int:
        return len(self.queries)


def json_transport(payload, status_code: int = 200, requests: Optional[list] = None) -> httpx.MockTransport:
    """MockTransport answering every request with the same JSON payload."""
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, json=payload)
    return httpx.MockTransport(handler)


def timeout_transport(requests: Optional[list] = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        raise httpx.ReadTimeout("timed out", request=request)
    return httpx.MockTransport(handler)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def all_keys(monkeypatch):
    """Configure every provider credential."""
    for env in ("WEATHERAPI_KEY", "OPENWEATHERMAP_API_KEY",
                "VISUAL_CROSSING_API_KEY", "TOMORROW_API_KEY"):
        monkeypatch.setenv(env, f"test-{env.lower()}")


@pytest.fixture
def no_keys(monkeypatch):
    for env in ("WEATHERAPI_KEY", "OPENWEATHERMAP_API_KEY",
                "VISUAL_CROSSING_API_KEY", "TOMORROW_API_KEY"):
        monkeypatch.delenv(env, raising=False)


# --- Provider fixture payloads (trimmed real responses) ---

@pytest.fixture
def weatherapi_payload():
    return {
        "location": {
            "name": "London", "region": "City of London, Greater London",
            "country": "United Kingdom", "lat": 51.52, "lon": -0.11,
            "localtime": "2026-10-17 13:45",
        },
        "current": {
            "temp_c": 14.0, "feelslike_c": 12.9, "humidity": 72,
            "pressure_mb": 1016.0, "wind_kph": 36.0, "wind_degree": 230,
            "vis_km": 10.0,
            "condition": {"text": "Partly cloudy",
                          "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png"},
        },
    }


@pytest.fixture
def openweathermap_payload():
    return {
        "coord": {"lon": 139.6917, "lat": 35.6895},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "base": "stations",
        "main": {"temp": 21.3, "feels_like": 21.0, "temp_min": 19.8, "temp_max": 22.6,
                 "pressure": 1012, "humidity": 60},
        "visibility": 10000,
        "wind": {"speed": 4.1, "deg": 180},
        "dt": 1792224000,
        "sys": {"country": "JP", "sunrise": 1792185600, "sunset": 1792227000},
        "timezone": 32400,
        "id": 1850147,
        "name": "Tokyo",
        "cod": 200,
    }


@pytest.fixture
def visual_crossing_payload():
    return {
        "latitude": 48.8566, "longitude": 2.3522,
        "resolvedAddress": "Paris, Île-de-France, France",
        "currentConditions": {
            "temp": 16.5, "feelslike": 16.5, "humidity": 68.2, "pressure": 1018.0,
            "windspeed": 18.0, "winddir": 250.0, "visibility": 24.1,
            "conditions": "Partially cloudy", "icon": "partly-cloudy-day",
        },
    }


@pytest.fixture
def tomorrow_payload():
    return {
        "data": {
            "time": "2026-10-17T12:00:00Z",
            "values": {
                "temperature": 9.4, "temperatureApparent": 7.1, "humidity": 81,
                "pressureSeaLevel": 1009.5, "windSpeed": 5.2, "windDirection": 300,
                "visibility": 16, "weatherCode": 4200,
            },
        },
        "location": {"lat": 59.91, "lon": 10.75, "name": "Oslo, Norway", "type": "administrative"},
    }
