"""
Lookup tools backed by the Naver Maps APIs.

Main functions:
- geocode: address to coordinates
- reverse_geocode: coordinates to address
- get_directions: driving route planning
- get_static_map: static map image
- get_usage: monthly usage, cost and free-tier rate
"""

from .tools_maps import geocode, get_directions, get_static_map, reverse_geocode
from .tools_schemas import (
    DirectionsInput,
    GeocodeInput,
    ReverseGeocodeInput,
    StaticMapInput,
    UsageInput,
)
from .tools_usage import get_usage

__all__ = [
    "geocode",
    "reverse_geocode",
    "get_directions",
    "get_static_map",
    "get_usage",
    "GeocodeInput",
    "ReverseGeocodeInput",
    "DirectionsInput",
    "StaticMapInput",
    "UsageInput",
]
