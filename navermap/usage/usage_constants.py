"""
Fixed free-tier table for the Naver Maps billable services.

The declaration order of FREE_LIMITS is the categorization order and the
tie-break order when sorting by usage rate.
"""

from typing import Dict


# Monthly free quota per canonical service
FREE_LIMITS: Dict[str, int] = {
    "Dynamic Map": 6_000_000,
    "Static Map": 3_000_000,
    "Geocoding": 3_000_000,
    "Reverse Geocoding": 3_000_000,
    "Directions 5": 60_000,
    "Directions 15": 3_000,
}

CANONICAL_SERVICES = tuple(FREE_LIMITS)

# Usage rate (%) at or above which a warning is raised
WARNING_THRESHOLD = 70

MAPS_PRODUCT_CATEGORY = "Maps"
