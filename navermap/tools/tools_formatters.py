"""
Formatting helpers for tool results.
"""

from datetime import datetime
from typing import Optional


ROUTE_OPTION_NAMES = {
    "trafast": "Fastest (real-time)",
    "tracomfort": "Comfortable",
    "traoptimal": "Optimal",
    "traavoidtoll": "Toll-free first",
    "traavoidcaronly": "Avoid motorways",
}

ADDRESS_TYPE_NAMES = {
    "roadaddr": "Road address",
    "addr": "Lot-number address",
    "admcode": "Administrative dong",
    "legalcode": "Legal dong",
}


def format_duration(ms: float) -> str:
    """Milliseconds to e.g. '1h 30m' or '45m'."""
    total_minutes = round(ms / 60000)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_distance(meters: float) -> str:
    """Meters to e.g. '1.5km' or '500m'."""
    if meters >= 1000:
        return f"{meters / 1000:.1f}km"
    return f"{meters}m"


def format_number(value: float) -> str:
    return f"{value:,}"


def format_currency(amount: float) -> str:
    return f"{amount:,} KRW"


def route_option_name(option: str) -> str:
    return ROUTE_OPTION_NAMES.get(option, option)


def address_type_name(name: str) -> str:
    return ADDRESS_TYPE_NAMES.get(name, name)


def current_month(now: Optional[datetime] = None) -> str:
    """Current month as YYYY-MM."""
    now = now or datetime.now()
    return now.strftime("%Y-%m")


def to_yyyymm(year_month: str) -> str:
    return year_month.replace("-", "")
