"""
Maps lookup tools: geocode, reverse geocode, directions and static map.

Each tool calls one endpoint through MapsApiClient, checks the envelope's
own status field, and reduces the payload to a plain dictionary.
"""

import base64
from typing import Any, Dict, List

from ..config.logger_module import log_info
from ..gateway.gateway_client import (
    DIRECTIONS_URL,
    GEOCODE_URL,
    REVERSE_GEOCODE_URL,
    STATIC_MAP_URL,
    MapsApiClient,
)
from ..gateway.gateway_errors import ProviderResponseError
from .tools_formatters import (
    address_type_name,
    format_currency,
    format_distance,
    format_duration,
    route_option_name,
)
from .tools_schemas import DirectionsInput, GeocodeInput, ReverseGeocodeInput, StaticMapInput


DEFAULT_ORDERS = "roadaddr,addr,admcode,legalcode"
DEFAULT_ROUTE_OPTION = "traoptimal"
MAX_SECTIONS = 5

DIRECTIONS_ERRORS = {
    1: "The start or goal coordinates are invalid. Please check the coordinates.",
    2: "The start and goal are too close to each other.",
    3: "No drivable route was found between the start and goal.",
    4: "The waypoint coordinates are invalid. Please check the waypoints.",
    5: "The request is too complex. Please reduce the number of waypoints.",
}


def geocode(client: MapsApiClient, args: GeocodeInput) -> Dict[str, Any]:
    """
    Convert an address into coordinates.

    Raises:
        ProviderResponseError: When status is not "OK"
        MapsApiError: On gateway failures
    """
    response = client.get_json(GEOCODE_URL, {
        "query": args.query,
        "coordinate": args.coordinate,
        "filter": args.filter,
        "page": args.page,
        "count": args.count,
        "language": args.language,
    })

    status = response.get("status")
    if status != "OK":
        raise ProviderResponseError(
            f"Address search failed: {response.get('errorMessage') or 'unknown error'}",
            code=status
        )

    addresses = response.get("addresses") or []
    meta = response.get("meta") or {}
    log_info(f"Geocoded '{args.query}': {len(addresses)} result(s)")

    return {
        "query": args.query,
        "total_count": meta.get("totalCount", len(addresses)),
        "page": meta.get("page", 1),
        "results": [
            {
                "index": index + 1,
                "road_address": address.get("roadAddress") or "(none)",
                "jibun_address": address.get("jibunAddress") or "(none)",
                "longitude": address.get("x"),
                "latitude": address.get("y"),
            }
            for index, address in enumerate(addresses)
        ],
    }


def _land_number(land: Dict[str, Any]) -> str:
    number = land.get("number1") or ""
    if number and land.get("number2"):
        number += f"-{land['number2']}"
    return number


def format_address(result: Dict[str, Any]) -> str:
    """Join region areas and land parts of a reverse geocode result."""
    region = result.get("region") or {}
    parts: List[str] = []

    for area in ("area1", "area2", "area3", "area4"):
        name = (region.get(area) or {}).get("name")
        if name:
            parts.append(name)

    land = result.get("land")
    if land:
        if result.get("name") == "roadaddr" and land.get("name"):
            parts.append(land["name"])
        number = _land_number(land)
        if number:
            parts.append(number)

    return " ".join(parts)


def reverse_geocode(client: MapsApiClient, args: ReverseGeocodeInput) -> Dict[str, Any]:
    """
    Convert coordinates into addresses.

    Raises:
        ProviderResponseError: When status.code is not 0
        MapsApiError: On gateway failures
    """
    response = client.get_json(REVERSE_GEOCODE_URL, {
        "coords": args.coords,
        "sourcecrs": args.sourcecrs,
        "targetcrs": args.targetcrs,
        "orders": args.orders or DEFAULT_ORDERS,
        "output": args.output or "json",
    })

    status = response.get("status") or {}
    if status.get("code") != 0:
        raise ProviderResponseError(
            f"Coordinate lookup failed: {status.get('message') or 'unknown error'}",
            code=status.get("code")
        )

    return {
        "coords": args.coords,
        "results": [
            {
                "type": address_type_name(result.get("name", "")),
                "code": (result.get("code") or {}).get("id"),
                "address": format_address(result),
            }
            for result in response.get("results") or []
        ],
    }


def get_directions(client: MapsApiClient, args: DirectionsInput) -> Dict[str, Any]:
    """
    Plan a driving route.

    Raises:
        ProviderResponseError: When code is not 0
        MapsApiError: On gateway failures
    """
    option = args.option or DEFAULT_ROUTE_OPTION

    response = client.get_json(DIRECTIONS_URL, {
        "start": args.start,
        "goal": args.goal,
        "waypoints": args.waypoints,
        "option": option,
        "cartype": args.cartype,
        "fueltype": args.fueltype,
        "mileage": args.mileage,
    })

    code = response.get("code")
    if code != 0:
        raise ProviderResponseError(
            DIRECTIONS_ERRORS.get(code, f"Route search failed: {response.get('message') or code}"),
            code=code
        )

    routes = (response.get("route") or {}).get(option) or []
    if not routes:
        return {
            "start": args.start,
            "goal": args.goal,
            "found": False,
            "message": f"No route found with the '{route_option_name(option)}' option.",
        }

    route = routes[0]
    summary = route.get("summary") or {}

    return {
        "start": args.start,
        "goal": args.goal,
        "waypoints": args.waypoints,
        "found": True,
        "summary": {
            "option": route_option_name(option),
            "distance": format_distance(summary.get("distance", 0)),
            "duration": format_duration(summary.get("duration", 0)),
            "toll_fare": format_currency(summary.get("tollFare", 0)),
            "taxi_fare": format_currency(summary.get("taxiFare", 0)),
            "fuel_price": format_currency(summary.get("fuelPrice", 0)),
        },
        "sections": [
            {
                "order": index + 1,
                "name": section.get("name") or "(unnamed)",
                "distance": format_distance(section.get("distance", 0)),
                "congestion": section.get("congestion"),
            }
            for index, section in enumerate((route.get("section") or [])[:MAX_SECTIONS])
        ],
    }


def get_static_map(client: MapsApiClient, args: StaticMapInput) -> Dict[str, Any]:
    """
    Render a static map image.

    Returns:
        Dictionary with base64 PNG data and the effective parameters

    Raises:
        MapsApiError: On gateway failures (HTTP status is the only signal)
    """
    params = {
        "center": args.center,
        "level": args.level or 16,
        "w": args.w or 300,
        "h": args.h or 300,
        "maptype": args.maptype or "basic",
        "scale": args.scale or 1,
        "markers": args.markers,
        "path": args.path,
    }

    image = client.get_binary(STATIC_MAP_URL, params)

    return {
        "image_base64": base64.b64encode(image).decode("ascii"),
        "mime_type": "image/png",
        "center": args.center,
        "level": params["level"],
        "size": f"{params['w']}x{params['h']}",
        "maptype": params["maptype"],
    }
