"""
Input models for the lookup tools.

Coordinates are always "longitude,latitude" strings, as the Naver APIs
expect them. The constrained field types below are shared with the server
signatures so the advertised tool schemas carry the same bounds.
"""

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


COORDINATE_PATTERN = r"^-?\d+\.?\d*,-?\d+\.?\d*$"
MONTH_PATTERN = r"^\d{4}-\d{2}$"

Coordinate = Annotated[str, Field(pattern=COORDINATE_PATTERN, description="Coordinates as 'lng,lat'")]
Query = Annotated[str, Field(min_length=1, description="Address to search for")]
Language = Literal["ko", "en", "ja", "zh"]
PageNumber = Annotated[int, Field(ge=1)]
ResultCount = Annotated[int, Field(ge=1, le=100)]
CoordinateSystem = Literal["epsg:4326", "nhn:2048", "nhn:128"]
OutputFormat = Literal["json", "xml"]
RouteOption = Literal["trafast", "tracomfort", "traoptimal", "traavoidtoll", "traavoidcaronly"]
CarType = Annotated[int, Field(ge=1, le=6)]
FuelType = Literal["gasoline", "highgradegasoline", "diesel", "lpg"]
Mileage = Annotated[float, Field(gt=0, description="Fuel efficiency in km/L")]
ZoomLevel = Annotated[int, Field(ge=1, le=20)]
PixelSize = Annotated[int, Field(ge=1, le=1024)]
MapType = Literal["basic", "traffic", "satellite", "satellite_base", "terrain"]
MapScale = Annotated[int, Field(ge=1, le=2)]
Month = Annotated[str, Field(pattern=MONTH_PATTERN, description="Month as YYYY-MM")]


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class GeocodeInput(ToolInput):
    """Address search."""
    query: Query
    coordinate: Optional[Coordinate] = Field(default=None, description="Search center as 'lng,lat'")
    filter: Optional[str] = Field(default=None, description="Result filter, e.g. 'HCODE:1168000000'")
    language: Optional[Language] = None
    page: Optional[PageNumber] = None
    count: Optional[ResultCount] = None


class ReverseGeocodeInput(ToolInput):
    """Coordinate to address lookup."""
    coords: Coordinate
    sourcecrs: Optional[CoordinateSystem] = None
    targetcrs: Optional[CoordinateSystem] = None
    orders: Optional[str] = Field(default=None,
                                  description="Comma separated: legalcode,admcode,addr,roadaddr")
    output: Optional[OutputFormat] = None


class DirectionsInput(ToolInput):
    """Driving route between two points."""
    start: Coordinate
    goal: Coordinate
    waypoints: Optional[str] = Field(default=None, description="Up to 5, separated by '|'")
    option: Optional[RouteOption] = None
    cartype: Optional[CarType] = None
    fueltype: Optional[FuelType] = None
    mileage: Optional[Mileage] = None


class StaticMapInput(ToolInput):
    """Static map rendering."""
    center: Coordinate
    level: Optional[ZoomLevel] = None
    w: Optional[PixelSize] = None
    h: Optional[PixelSize] = None
    maptype: Optional[MapType] = None
    markers: Optional[str] = None
    path: Optional[str] = None
    scale: Optional[MapScale] = None


class UsageInput(ToolInput):
    month: Optional[Month] = Field(default=None,
                                   description="Month as YYYY-MM (defaults to the current month)")
