"""
Tests for the air quality fallback chain

These tests verify that:
1. Sources are tried in order AirVisual -> WAQI -> AirNow -> OpenWeatherMap
2. A source that errors, or answers without an AQI, hands over to the next
3. Each source is mapped into {aqi, source, location, country}
4. Missing or invalid coordinates are rejected before any request

Run with: python -m pytest tests/test_air_quality.py -v
"""

import logging

import httpx
import pytest

from weather_dash.manager import WeatherManager
from weather_dash.providers.air_quality import AirQualityFetcher
from weather_dash.service import WeatherService
from tests.conftest import ScriptedAdapter
from tests.test_manager import make_registry

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

AIRVISUAL = "api.airvisual.com"
WAQI = "api.waqi.info"
AIRNOW = "www.airnowapi.org"
OPENWEATHERMAP = "api.openweathermap.org"

AIRVISUAL_OK = {
    "status": "success",
    "data": {
        "city": "London", "state": "England", "country": "United Kingdom",
        "current": {"pollution": {"ts": "2026-10-17T12:00:00.000Z", "aqius": 42, "mainus": "p2"}},
    },
}
WAQI_OK = {"status": "ok", "data": {"aqi": 57, "city": {"name": "London", "geo": [51.5, -0.12]}}}
AIRNOW_OK = [{"ReportingArea": "Los Angeles", "StateCode": "CA", "AQI": 61, "ParameterName": "PM2.5"}]
OPENWEATHERMAP_OK = {"coord": {"lon": -0.12, "lat": 51.5}, "list": [{"main": {"aqi": 2}, "components": {}}]}


def routed_transport(routes, requests):
    """MockTransport answering by host; routes maps host -> (status, payload)."""
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status_code, payload = routes.get(request.url.host, (404, {}))
        return httpx.Response(status_code, json=payload)
    return httpx.MockTransport(handler)


@pytest.fixture
def air_keys(monkeypatch):
    monkeypatch.setenv("AIR_QUALITY_API_KEY", "test-air-quality")
    monkeypatch.setenv("OPENWEATHERMAP_API_KEY", "test-owm")


@pytest.fixture
def no_air_keys(monkeypatch):
    monkeypatch.delenv("AIR_QUALITY_API_KEY", raising=False)
    monkeypatch.delenv("OPENWEATHERMAP_API_KEY", raising=False)


def hosts(requests):
    return [r.url.host for r in requests]


class TestAirQualityFetcher:

    @pytest.mark.asyncio
    async def test_airvisual_first(self, air_keys):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({AIRVISUAL: (200, AIRVISUAL_OK)}, requests))

        reading = await fetcher.fetch("51.5", "-0.12")
        logger.info(f"[TEST] Reading: {reading}")

        assert reading == {"aqi": 42.0, "source": "AirVisual", "location": "London", "country": "United Kingdom"}
        assert hosts(requests) == [AIRVISUAL]
        params = requests[0].url.params
        assert params["lat"] == "51.5"
        assert params["lon"] == "-0.12"
        assert params["key"] == "test-air-quality"

    @pytest.mark.asyncio
    async def test_falls_back_to_waqi(self, air_keys):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({
            AIRVISUAL: (500, {}),
            WAQI: (200, WAQI_OK),
        }, requests))

        reading = await fetcher.fetch("51.5", "-0.12")

        assert reading == {"aqi": 57.0, "source": "WAQI", "location": "London", "country": "Unknown"}
        assert hosts(requests) == [AIRVISUAL, WAQI]
        assert requests[1].url.path == "/feed/geo:51.5;-0.12/"
        assert requests[1].url.params["token"] == "test-air-quality"

    @pytest.mark.asyncio
    async def test_missing_aqi_falls_back_to_airnow(self, air_keys):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({
            AIRVISUAL: (200, {"status": "success", "data": {"city": "London"}}),
            WAQI: (200, {"status": "ok", "data": {"aqi": "-", "city": {"name": "London"}}}),
            AIRNOW: (200, AIRNOW_OK),
        }, requests))

        reading = await fetcher.fetch(34.05, -118.24)

        assert reading == {"aqi": 61.0, "source": "AirNow", "location": "Los Angeles", "country": "US"}
        assert hosts(requests) == [AIRVISUAL, WAQI, AIRNOW]
        params = requests[2].url.params
        assert params["latitude"] == "34.05"
        assert params["distance"] == "25"
        assert params["API_KEY"] == "test-air-quality"

    @pytest.mark.asyncio
    async def test_falls_back_to_openweathermap(self, air_keys):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({
            AIRVISUAL: (403, {"status": "fail", "data": {"message": "permission_denied"}}),
            WAQI: (200, {"status": "error", "data": "Unknown station"}),
            AIRNOW: (200, []),
            OPENWEATHERMAP: (200, OPENWEATHERMAP_OK),
        }, requests))

        reading = await fetcher.fetch("51.5", "-0.12")

        assert reading == {"aqi": 2.0, "source": "OpenWeatherMap", "location": "Unknown", "country": "Unknown"}
        assert hosts(requests) == [AIRVISUAL, WAQI, AIRNOW, OPENWEATHERMAP]
        assert requests[3].url.params["appid"] == "test-owm"

    @pytest.mark.asyncio
    async def test_timeout_falls_through(self, air_keys):
        requests = []

        def handler(request):
            requests.append(request)
            if request.url.host == AIRVISUAL:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=WAQI_OK)

        fetcher = AirQualityFetcher(transport=httpx.MockTransport(handler))
        reading = await fetcher.fetch("51.5", "-0.12")

        assert reading["source"] == "WAQI"

    @pytest.mark.asyncio
    async def test_sources_without_key_are_skipped(self, no_air_keys, monkeypatch):
        monkeypatch.setenv("OPENWEATHERMAP_API_KEY", "test-owm")
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({OPENWEATHERMAP: (200, OPENWEATHERMAP_OK)}, requests))

        reading = await fetcher.fetch("51.5", "-0.12")

        assert reading["source"] == "OpenWeatherMap"
        assert hosts(requests) == [OPENWEATHERMAP]

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, air_keys):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({}, requests))

        assert await fetcher.fetch("51.5", "-0.12") is None
        assert len(requests) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat,lon", [
        (None, "-0.12"),
        ("51.5", ""),
        ("north", "-0.12"),
        ("nan", "-0.12"),
        ("51.5", "inf"),
    ])
    async def test_invalid_coordinates(self, air_keys, lat, lon):
        requests = []
        fetcher = AirQualityFetcher(transport=routed_transport({AIRVISUAL: (200, AIRVISUAL_OK)}, requests))

        with pytest.raises(ValueError):
            await fetcher.fetch(lat, lon)
        assert requests == []

    def test_has_credentials(self, no_air_keys, monkeypatch):
        fetcher = AirQualityFetcher()
        assert not fetcher.has_credentials()

        monkeypatch.setenv("AIR_QUALITY_API_KEY", "k")
        assert fetcher.has_credentials()


class TestAirQualityService:

    @pytest.fixture
    def make_service(self, clock):
        def _make(routes, requests):
            manager = WeatherManager(make_registry(clock, "A"), [ScriptedAdapter.succeeding("A")], clock=clock)
            return WeatherService(manager, air_quality=AirQualityFetcher(transport=routed_transport(routes, requests)))
        return _make

    @pytest.mark.asyncio
    async def test_success(self, air_keys, make_service):
        service = make_service({AIRVISUAL: (200, AIRVISUAL_OK)}, [])

        response = await service.get_air_quality(lat="51.5", lon="-0.12")

        assert response.status_code == 200
        assert response.body["aqi"] == 42.0
        assert response.body["source"] == "AirVisual"

    @pytest.mark.asyncio
    async def test_bad_coordinates_is_400(self, air_keys, make_service):
        requests = []
        service = make_service({}, requests)

        response = await service.get_air_quality(lat="51.5")

        assert response.status_code == 400
        assert "error" in response.body
        assert requests == []

    @pytest.mark.asyncio
    async def test_no_key_is_500(self, no_air_keys, make_service):
        service = make_service({}, [])

        response = await service.get_air_quality(lat="51.5", lon="-0.12")

        assert response.status_code == 500
        assert response.body == {"error": "Air quality API key not configured"}

    @pytest.mark.asyncio
    async def test_all_failed_is_500(self, air_keys, make_service):
        service = make_service({}, [])

        response = await service.get_air_quality(lat="51.5", lon="-0.12")

        assert response.status_code == 500
        assert response.body["error"] == "Unable to fetch air quality data"
        assert "hint" in response.body


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
