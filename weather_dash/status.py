"""
Provider status report for operational visibility.

Aggregates are derived from the registry projection only; nothing here
touches provider statistics.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from weather_dash.registry import ProviderStatus, round_half_up, utc_now


def summarize_status(statuses: List[ProviderStatus]) -> Dict[str, Any]:
    if not statuses:
        return {
            "total_apis": 0,
            "available_apis": 0,
            "total_daily_usage": 0,
            "average_success_rate": 0,
            "fastest_api": None,
            "most_reliable_api": None,
        }

    # min()/max() keep the first of equal entries
    return {
        "total_apis": len(statuses),
        "available_apis": sum(1 for s in statuses if s["status"] == "available"),
        "total_daily_usage": sum(s["daily_used"] for s in statuses),
        "average_success_rate": round_half_up(sum(s["success_rate"] for s in statuses) / len(statuses)),
        "fastest_api": min(statuses, key=lambda s: s["avg_response_time_ms"]),
        "most_reliable_api": max(statuses, key=lambda s: s["success_rate"]),
    }


def build_status_report(
    statuses: List[ProviderStatus],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Status payload: {timestamp, apis, summary}."""
    now = now or utc_now()
    return {
        "timestamp": now.isoformat(),
        "apis": statuses,
        "summary": summarize_status(statuses),
    }
