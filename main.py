"""
Weather Dash: Command-Line Dashboard

Looks up current weather through the multi-provider fallback chain,
prints a 24-hour outlook, or shows provider health.

Sources: WeatherAPI.com + OpenWeatherMap + Visual Crossing + Tomorrow.io
Fallback: composite score = priority + latency(s) + 10 x (1 - success rate)

Usage:
    python main.py London
    python main.py "48.85,2.35" --json
    python main.py Tokyo --hourly
    python main.py --status
    python main.py --air-quality --lat 51.5 --lon -0.12
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime

from colorama import Fore, Style, init
from dotenv import load_dotenv

from weather_dash import config
from weather_dash.manager import WeatherManager
from weather_dash.providers.hourly import HourlyForecastFetcher
from weather_dash.service import WeatherService, build_query

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Weather Dash - multi-provider weather lookup with automatic fallback'
    )
    parser.add_argument('query', nargs='?', help='City name or "lat,lon"')
    parser.add_argument('--lat', help='Latitude (use with --lon instead of a city)')
    parser.add_argument('--lon', help='Longitude (use with --lat instead of a city)')
    parser.add_argument('--hourly', action='store_true', help='Show the 24-hour outlook')
    parser.add_argument('--air-quality', action='store_true', help='Show the air quality index (needs --lat and --lon)')
    parser.add_argument('--status', action='store_true', help='Show provider status')
    parser.add_argument('--json', action='store_true', help='Print raw JSON')
    return parser.parse_args(argv)


def configure_logging():
    """Log to logs/weather_dash.log and stdout."""
    os.makedirs("logs", exist_ok=True)
    logging.basicConfig(
        level=config.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler("logs/weather_dash.log", mode='a', encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )


def print_banner():
    print(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    print(f"{Fore.CYAN}   WEATHER DASH: MULTI-PROVIDER EDITION{Style.RESET_ALL}")
    print(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    print(f"{Fore.WHITE}   [SOURCES] WeatherAPI + OpenWeatherMap + VisualCrossing + Tomorrow{Style.RESET_ALL}")
    print()


def print_weather(body: dict):
    data = body["data"]
    temps = data["main"]
    wind = data["wind"]
    condition = data["weather"][0]["description"] if data["weather"] else "Unknown"
    cached = " (cached)" if body.get("cached") else ""

    print(f"{Fore.GREEN}{data['name']}, {data['sys']['country']}{Style.RESET_ALL}{cached}")
    print(f"  Condition:   {condition}")
    print(f"  Temperature: {temps['temp']:.1f}C (feels like {temps['feels_like']:.1f}C, "
          f"{temps['temp_min']:.1f}..{temps['temp_max']:.1f}C)")
    print(f"  Humidity:    {temps['humidity']:.0f}%   Pressure: {temps['pressure']:.0f} hPa")
    print(f"  Wind:        {wind['speed']:.1f} m/s @ {wind['deg']:.0f} deg")
    print(f"  Visibility:  {data['visibility'] / 1000:.1f} km")
    print(f"  {Fore.WHITE}Source: {data['source']} via {body['provider_used']} "
          f"({body['response_time_ms']}ms){Style.RESET_ALL}")


def print_hourly(result: dict):
    print(f"{Fore.GREEN}{result['location']}{Style.RESET_ALL} - "
          f"{result['total_hours']} entries from {result['data_source']}")
    for entry in result["hourly"]:
        when = datetime.fromtimestamp(entry["time"] / 1000).strftime("%a %H:%M")
        print(f"  {when}  {entry['temperature']:5.1f}C  {entry['precipitation_probability']:3.0f}%  "
              f"{entry['wind_speed']:4.1f} m/s  {entry['condition']}")


def print_air_quality(reading: dict):
    print(f"{Fore.GREEN}{reading['location']}, {reading['country']}{Style.RESET_ALL}")
    print(f"  AQI: {reading['aqi']:.0f}   Source: {reading['source']}")


def print_status(report: dict):
    summary = report["summary"]
    for api in report["apis"]:
        color = Fore.GREEN if api["status"] == "available" else Fore.RED
        print(f"  {color}{api['name']:<16}{Style.RESET_ALL} {api['success_rate']:3d}%  "
              f"{api['avg_response_time_ms']:5d}ms  {api['daily_used']}/{api['daily_limit']}")
    print(f"  Available: {summary['available_apis']}/{summary['total_apis']}   "
          f"Avg success: {summary['average_success_rate']}%")
    if summary["fastest_api"]:
        print(f"  Fastest: {summary['fastest_api']['name']}   "
              f"Most reliable: {summary['most_reliable_api']['name']}")


async def run(args) -> int:
    service = WeatherService(manager=WeatherManager())

    if args.status:
        response = service.get_status()
        if args.json:
            print(json.dumps(response.body, indent=2, default=str))
        else:
            print_status(response.body)
        return 0

    if args.air_quality:
        response = await service.get_air_quality(args.lat, args.lon)
        if args.json:
            print(json.dumps(response.body, indent=2, default=str))
        elif response.status_code == 200:
            print_air_quality(response.body)
        else:
            print(f"{Fore.RED}[ERROR {response.status_code}] {response.body['error']}{Style.RESET_ALL}")
        return 0 if response.status_code == 200 else 1

    if args.hourly:
        try:
            query = build_query(args.query, args.lat, args.lon)
        except ValueError as e:
            print(f"{Fore.RED}[ERROR] {e}{Style.RESET_ALL}")
            return 1
        result = await HourlyForecastFetcher().fetch(query, args.lat, args.lon)
        if args.json:
            print(json.dumps(result, indent=2, default=str))
        elif result["success"]:
            print_hourly(result)
        else:
            print(f"{Fore.RED}[ERROR] {result['error']}{Style.RESET_ALL}")
        return 0 if result["success"] else 1

    response = await service.get_weather(args.query, args.lat, args.lon)
    if args.json:
        print(json.dumps(response.body, indent=2, default=str))
    elif response.status_code == 200:
        print_weather(response.body)
    else:
        print(f"{Fore.RED}[ERROR {response.status_code}] {response.body['error']}{Style.RESET_ALL}")
    return 0 if response.status_code == 200 else 1


def main(argv=None) -> int:
    args = parse_args(argv)

    load_dotenv()
    configure_logging()

    if not args.json:
        print_banner()

    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.error(f"FAILED: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    # Windows terminal colors
    init()
    sys.exit(main())
