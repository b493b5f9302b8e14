"""
Usage module for the Naver Maps gateway.

Turns billing API line items into per-service usage against the
fixed monthly free quotas, with threshold warnings.
"""

from .usage_aggregator import (
    AggregatedUsage,
    UsageLineItem,
    UsageReport,
    aggregate_usage,
    is_maps_product,
    line_items_from_records,
    match_service,
    usage_rate,
)
from .usage_constants import CANONICAL_SERVICES, FREE_LIMITS, WARNING_THRESHOLD

__all__ = [
    "AggregatedUsage",
    "UsageLineItem",
    "UsageReport",
    "aggregate_usage",
    "is_maps_product",
    "line_items_from_records",
    "match_service",
    "usage_rate",
    "CANONICAL_SERVICES",
    "FREE_LIMITS",
    "WARNING_THRESHOLD",
]
