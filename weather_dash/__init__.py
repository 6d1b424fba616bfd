"""
Weather Dash: Multi-Provider Edition

Current weather, hourly outlooks and provider health for a weather dashboard,
backed by several third-party weather APIs with transparent fallback.

Architecture:
    providers/     - One adapter per upstream API, all producing the same
                     normalized shape:
                     * weatherapi.py      - WeatherAPI.com
                     * openweathermap.py  - OpenWeatherMap
                     * visual_crossing.py - Visual Crossing
                     * tomorrow.py        - Tomorrow.io
                     * hourly.py          - 24h outlook (WeatherAPI -> OWM)
    registry.py    - Provider stats, quota, cooldown and ranking
    manager.py     - Fallback orchestration (fetch_weather_data)
    resilience.py  - Error taxonomy + adapter-local retry
    cache.py       - In-memory TTL cache
    service.py     - Request-level facade (status codes, cache)
    status.py      - Provider status report

Entry Points:
    main.py        - Command-line dashboard
"""

__version__ = "1.0.0"
__author__ = "Weather Dash"
