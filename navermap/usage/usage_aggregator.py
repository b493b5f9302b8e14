"""
Aggregates raw billing line items into per-service usage rates.

Each line item is assigned to a canonical service by first-match substring
containment over SERVICE_MATCHERS, summed per service, and compared with
the fixed monthly free quota. Items that match nothing, or that carry
malformed numbers, are dropped instead of failing the report.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..config.logger_module import log_debug, log_warning
from .usage_constants import FREE_LIMITS, MAPS_PRODUCT_CATEGORY, WARNING_THRESHOLD


@dataclass(frozen=True)
class UsageLineItem:
    """One billing record reduced to label, quantity and cost."""

    category_label: str
    quantity: float
    cost: float


@dataclass(frozen=True)
class AggregatedUsage:
    """Usage of one canonical service against its free quota."""

    service: str
    usage: float
    free_limit: int
    rate_percent: float
    cost: float


@dataclass(frozen=True)
class UsageReport:
    services: Tuple[AggregatedUsage, ...]
    warnings: Tuple[str, ...]
    total_cost: float


def _contains(name: str) -> Callable[[str], bool]:
    return lambda label: name in label


# Evaluated in order; first match wins
SERVICE_MATCHERS: List[Tuple[str, Callable[[str], bool]]] = [
    (name, _contains(name)) for name in FREE_LIMITS
]


def match_service(label: str) -> Optional[str]:
    """
    Find the canonical service for a free-text billing label.

    Args:
        label: productItemKindDetailName from the billing API

    Returns:
        Canonical service name, or None when nothing matches
    """
    for name, matcher in SERVICE_MATCHERS:
        if matcher(label):
            return name
    return None


def usage_rate(usage: float, free_limit: int) -> float:
    """
    Usage as a percentage of the free quota, rounded half-up to one decimal.

    A quotient too large for a float is reported as infinity; it never raises.
    """
    if free_limit <= 0:
        return 0.0
    try:
        scaled = usage / free_limit * 1000
    except OverflowError:
        scaled = math.inf if usage > 0 else -math.inf
    if math.isnan(scaled):
        return 0.0
    if math.isinf(scaled):
        return scaled
    return math.floor(scaled + 0.5) / 10


def is_maps_product(record: Mapping[str, Any]) -> bool:
    """True for billing records of the Maps product family."""
    product_name = record.get("productName") or ""
    return (
        record.get("productCategory") == MAPS_PRODUCT_CATEGORY
        or "Map" in product_name
    )


def _add(total: float, value: float) -> float:
    # int + float raises once the int is beyond float range; saturate instead
    try:
        return total + value
    except OverflowError:
        larger = total if abs(total) >= abs(value) else value
        return math.inf if larger > 0 else -math.inf


def _is_number(value: Any) -> bool:
    # Plain finite ints and floats only; bools, Decimals, NaN and infinities are dropped
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def line_items_from_records(records: Iterable[Mapping[str, Any]]) -> List[UsageLineItem]:
    """
    Convert raw billing records into line items.

    Records missing a label or carrying non-numeric quantity/cost are skipped.

    Args:
        records: productDemandCostList entries

    Returns:
        List of UsageLineItem
    """
    items = []
    for record in records:
        label = record.get("productItemKindDetailName")
        quantity = record.get("useQuantity")
        cost = record.get("useAmount")

        if not isinstance(label, str) or not _is_number(quantity) or not _is_number(cost):
            log_warning(f"Skipping malformed billing record: {label!r}")
            continue

        items.append(UsageLineItem(category_label=label, quantity=quantity, cost=cost))
    return items


def aggregate_usage(line_items: Iterable[UsageLineItem],
                    free_limits: Mapping[str, int] = FREE_LIMITS,
                    threshold: float = WARNING_THRESHOLD) -> UsageReport:
    """
    Aggregate line items into a per-service usage report.

    Args:
        line_items: Items already filtered to the Maps product family
        free_limits: Canonical service -> monthly free quota, in order
        threshold: Warning threshold in percent

    Returns:
        UsageReport with services sorted by rate (descending, stable),
        warnings, and total cost
    """
    totals: Dict[str, Dict[str, float]] = {}

    for item in line_items:
        if not isinstance(item.category_label, str):
            continue
        if not _is_number(item.quantity) or not _is_number(item.cost):
            continue

        service = match_service(item.category_label)
        if service is None or service not in free_limits:
            log_debug(f"Unmatched billing item: {item.category_label}")
            continue

        bucket = totals.setdefault(service, {"usage": 0, "cost": 0})
        bucket["usage"] = _add(bucket["usage"], item.quantity)
        bucket["cost"] = _add(bucket["cost"], item.cost)

    services = []
    warnings = []
    total_cost = 0

    for name, limit in free_limits.items():
        bucket = totals.get(name, {"usage": 0, "cost": 0})
        rate = usage_rate(bucket["usage"], limit)

        services.append(AggregatedUsage(
            service=name,
            usage=bucket["usage"],
            free_limit=limit,
            rate_percent=rate,
            cost=bucket["cost"],
        ))
        total_cost = _add(total_cost, bucket["cost"])

        if rate >= threshold:
            warnings.append(f"{name} usage is at {rate:.1f}% of the free tier. Watch the limit.")

    services.sort(key=lambda entry: entry.rate_percent, reverse=True)

    return UsageReport(
        services=tuple(services),
        warnings=tuple(warnings),
        total_cost=total_cost,
    )
