"""
MCP server exposing the Naver Maps lookup tools over stdio.

Tools are coroutines; each gateway call runs on a worker thread so a slow
request or a retry backoff never stalls other tool calls.

Run with:  python -m navermap.server   (or the `navermap-server` script)
"""

import asyncio
import base64
import json
import sys
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP, Image
from mcp.server.fastmcp.exceptions import ToolError

from .config.config_module import ConfigError, Settings, get_settings
from .config.logger_module import initialize_logger, log_info, log_error
from .gateway.gateway_client import BillingApiClient, MapsApiClient
from .gateway.gateway_errors import format_error_response
from .gateway.gateway_executor import RequestExecutor
from .tools import tools_maps, tools_usage
from .tools.tools_schemas import (
    CarType,
    Coordinate,
    CoordinateSystem,
    DirectionsInput,
    FuelType,
    GeocodeInput,
    Language,
    MapScale,
    MapType,
    Mileage,
    Month,
    OutputFormat,
    PageNumber,
    PixelSize,
    Query,
    ResultCount,
    ReverseGeocodeInput,
    RouteOption,
    StaticMapInput,
    UsageInput,
    ZoomLevel,
)


SERVER_NAME = "navermap-mcp-server"


def _fail(error: Exception) -> ToolError:
    log_error(f"Tool call failed: {type(error).__name__}: {error}")
    return ToolError(format_error_response(error))


def _to_json(result: Dict[str, Any]) -> str:
    return json.dumps(result, ensure_ascii=False, indent=2)


def create_server(settings: Settings) -> FastMCP:
    """
    Build the MCP server and register the tools.

    The usage tool is registered only when billing credentials are set.
    """
    server = FastMCP(SERVER_NAME)
    executor = RequestExecutor()
    maps_client = MapsApiClient(settings.maps_credential, settings.retry_policy, executor)

    @server.tool(name="navermap_geocode")
    async def navermap_geocode(query: Query,
                               coordinate: Optional[Coordinate] = None,
                               filter: Optional[str] = None,
                               language: Optional[Language] = None,
                               page: Optional[PageNumber] = None,
                               count: Optional[ResultCount] = None) -> str:
        """Convert an address (road or lot-number) into longitude/latitude."""
        try:
            args = GeocodeInput(query=query, coordinate=coordinate, filter=filter,
                                language=language, page=page, count=count)
            result = await asyncio.to_thread(tools_maps.geocode, maps_client, args)
        except Exception as e:
            raise _fail(e) from e
        return _to_json(result)

    @server.tool(name="navermap_reverse_geocode")
    async def navermap_reverse_geocode(coords: Coordinate,
                                       sourcecrs: Optional[CoordinateSystem] = None,
                                       targetcrs: Optional[CoordinateSystem] = None,
                                       orders: Optional[str] = None,
                                       output: Optional[OutputFormat] = None) -> str:
        """Convert 'lng,lat' coordinates into legal/administrative/road addresses."""
        try:
            args = ReverseGeocodeInput(coords=coords, sourcecrs=sourcecrs, targetcrs=targetcrs,
                                       orders=orders, output=output)
            result = await asyncio.to_thread(tools_maps.reverse_geocode, maps_client, args)
        except Exception as e:
            raise _fail(e) from e
        return _to_json(result)

    @server.tool(name="navermap_get_directions")
    async def navermap_get_directions(start: Coordinate,
                                      goal: Coordinate,
                                      waypoints: Optional[str] = None,
                                      option: Optional[RouteOption] = None,
                                      cartype: Optional[CarType] = None,
                                      fueltype: Optional[FuelType] = None,
                                      mileage: Optional[Mileage] = None) -> str:
        """Plan a driving route with distance, duration, tolls, taxi fare and fuel cost."""
        try:
            args = DirectionsInput(start=start, goal=goal, waypoints=waypoints, option=option,
                                   cartype=cartype, fueltype=fueltype, mileage=mileage)
            result = await asyncio.to_thread(tools_maps.get_directions, maps_client, args)
        except Exception as e:
            raise _fail(e) from e
        return _to_json(result)

    @server.tool(name="navermap_get_static_map")
    async def navermap_get_static_map(center: Coordinate,
                                      level: Optional[ZoomLevel] = None,
                                      w: Optional[PixelSize] = None,
                                      h: Optional[PixelSize] = None,
                                      maptype: Optional[MapType] = None,
                                      markers: Optional[str] = None,
                                      path: Optional[str] = None,
                                      scale: Optional[MapScale] = None) -> list:
        """Render a static map image centered on 'lng,lat', with optional markers and path."""
        try:
            args = StaticMapInput(center=center, level=level, w=w, h=h, maptype=maptype,
                                  markers=markers, path=path, scale=scale)
            result = await asyncio.to_thread(tools_maps.get_static_map, maps_client, args)
        except Exception as e:
            raise _fail(e) from e

        image = Image(data=base64.b64decode(result.pop("image_base64")), format="png")
        result.pop("mime_type")
        return [image, _to_json(result)]

    if settings.billing_available:
        billing_client = BillingApiClient(settings.billing_credential, settings.retry_policy, executor)

        @server.tool(name="navermap_get_usage")
        async def navermap_get_usage(month: Optional[Month] = None) -> str:
            """Report monthly Maps API usage, cost and free-tier usage rate with warnings."""
            try:
                result = await asyncio.to_thread(tools_usage.get_usage, billing_client,
                                                 UsageInput(month=month))
            except Exception as e:
                raise _fail(e) from e
            return result["text"]

        log_info("Billing API available - navermap_get_usage enabled")
    else:
        log_info("Billing API keys not set - navermap_get_usage disabled")

    return server


def main() -> None:
    """Load settings, set up logging and serve over stdio."""
    try:
        settings = get_settings()
    except ConfigError as e:
        print(f"[{SERVER_NAME}] Initialization failed: {e}", file=sys.stderr)
        sys.exit(1)

    initialize_logger(settings.log_level, log_file=None)
    log_info(f"Starting {SERVER_NAME}")

    create_server(settings).run()


if __name__ == "__main__":
    main()
