"""
Test suite for the usage module.

To run tests:
- Command line: python -m pytest navermap/usage/test_usage.py -v
"""

import math
from decimal import Decimal
from unittest.mock import patch

import pytest

from .usage_aggregator import (
    SERVICE_MATCHERS,
    UsageLineItem,
    aggregate_usage,
    is_maps_product,
    line_items_from_records,
    match_service,
    usage_rate,
)
from .usage_constants import CANONICAL_SERVICES, FREE_LIMITS, WARNING_THRESHOLD


@pytest.fixture(autouse=True)
def mock_logging():
    """Mock all logging functions to prevent actual logging during tests."""
    with patch('navermap.usage.usage_aggregator.log_debug'):
        with patch('navermap.usage.usage_aggregator.log_warning'):
            yield


def by_service(report):
    return {entry.service: entry for entry in report.services}


class TestConstants:
    """Test the fixed free-tier table."""

    def test_six_services_in_order(self):
        assert CANONICAL_SERVICES == (
            "Dynamic Map",
            "Static Map",
            "Geocoding",
            "Reverse Geocoding",
            "Directions 5",
            "Directions 15",
        )
        assert [name for name, _ in SERVICE_MATCHERS] == list(CANONICAL_SERVICES)

    def test_limits(self):
        assert FREE_LIMITS["Dynamic Map"] == 6_000_000
        assert FREE_LIMITS["Directions 5"] == 60_000
        assert FREE_LIMITS["Directions 15"] == 3_000
        assert WARNING_THRESHOLD == 70


class TestMatchService:
    """Test first-match substring categorization."""

    def test_exact_and_partial_labels(self):
        assert match_service("Dynamic Map Usage") == "Dynamic Map"
        assert match_service("Static Map X") == "Static Map"
        assert match_service("Directions 15 (requests)") == "Directions 15"
        assert match_service("Directions 5") == "Directions 5"

    def test_unmatched(self):
        assert match_service("Unrelated Product") is None
        assert match_service("") is None

    def test_first_declared_name_wins(self):
        # "Geocoding" is declared before "Reverse Geocoding"
        assert match_service("Reverse Geocoding") == "Geocoding"


class TestUsageRate:
    """Test rate rounding."""

    def test_one_decimal(self):
        assert usage_rate(4_800_000, 6_000_000) == 80.0
        assert usage_rate(100, 3_000_000) == 0.0
        assert usage_rate(1_234, 3_000) == 41.1

    def test_rounds_half_up(self):
        assert usage_rate(1, 2_000) == 0.1
        assert usage_rate(3, 2_000) == 0.2

    def test_zero_limit(self):
        assert usage_rate(500, 0) == 0.0


class TestAggregateUsage:
    """Test aggregation into a usage report."""

    def test_reference_example(self):
        items = [
            UsageLineItem("Dynamic Map Usage", 4_800_000, 1000),
            UsageLineItem("Static Map X", 100, 5),
        ]

        report = aggregate_usage(items)
        services = by_service(report)

        assert services["Dynamic Map"].rate_percent == 80.0
        assert services["Dynamic Map"].usage == 4_800_000
        assert services["Static Map"].rate_percent == 0.0
        assert services["Static Map"].cost == 5
        assert len(report.warnings) == 1
        assert report.warnings[0].startswith("Dynamic Map")
        assert report.total_cost == 1005

    def test_always_reports_every_service(self):
        report = aggregate_usage([])

        assert [entry.service for entry in report.services] == list(CANONICAL_SERVICES)
        assert all(entry.usage == 0 and entry.cost == 0 for entry in report.services)
        assert report.warnings == ()
        assert report.total_cost == 0

    def test_sums_per_service(self):
        items = [
            UsageLineItem("Geocoding", 1_000_000, 10),
            UsageLineItem("Geocoding API calls", 500_000, 20),
        ]

        services = by_service(aggregate_usage(items))

        assert services["Geocoding"].usage == 1_500_000
        assert services["Geocoding"].cost == 30
        assert services["Geocoding"].rate_percent == 50.0

    def test_unmatched_item_dropped(self):
        base = [UsageLineItem("Static Map", 10, 7)]
        with_unrelated = base + [UsageLineItem("Unrelated Product", 999, 123)]

        assert aggregate_usage(with_unrelated) == aggregate_usage(base)
        assert aggregate_usage(with_unrelated).total_cost == 7

    def test_malformed_items_dropped(self):
        items = [
            UsageLineItem("Static Map", "lots", 5),
            UsageLineItem(None, 10, 5),
            UsageLineItem("Static Map", 10, float("nan")),
            UsageLineItem("Static Map", 10, 2),
        ]

        report = aggregate_usage(items)

        assert by_service(report)["Static Map"].usage == 10
        assert report.total_cost == 2

    def test_sorted_by_rate_descending_stable(self):
        items = [
            UsageLineItem("Directions 15", 3_000, 0),
            UsageLineItem("Static Map", 1_500_000, 0),
        ]

        order = [entry.service for entry in aggregate_usage(items).services]

        assert order[:2] == ["Directions 15", "Static Map"]
        # Zero-rate services keep declaration order
        assert order[2:] == ["Dynamic Map", "Geocoding", "Reverse Geocoding", "Directions 5"]

    def test_warning_at_threshold(self):
        items = [UsageLineItem("Directions 5", 42_000, 0)]

        report = aggregate_usage(items)

        assert by_service(report)["Directions 5"].rate_percent == 70.0
        assert report.warnings == ("Directions 5 usage is at 70.0% of the free tier. Watch the limit.",)

    def test_idempotent(self):
        items = [
            UsageLineItem("Dynamic Map Usage", 4_800_000, 1000),
            UsageLineItem("Static Map X", 100, 5),
        ]

        assert aggregate_usage(items) == aggregate_usage(items)

    def test_custom_limits(self):
        items = [UsageLineItem("Static Map", 50, 1)]

        report = aggregate_usage(items, free_limits={"Static Map": 100}, threshold=40)

        assert len(report.services) == 1
        assert report.services[0].rate_percent == 50.0
        assert len(report.warnings) == 1


class TestRecords:
    """Test conversion and filtering of raw billing records."""

    def test_line_items_from_records(self):
        records = [
            {"productItemKindDetailName": "Dynamic Map", "useQuantity": 10, "useAmount": 0},
            {"productItemKindDetailName": "Geocoding", "useQuantity": "10", "useAmount": 0},
            {"useQuantity": 5, "useAmount": 1},
        ]

        items = line_items_from_records(records)

        assert items == [UsageLineItem("Dynamic Map", 10, 0)]

    def test_is_maps_product(self):
        assert is_maps_product({"productCategory": "Maps", "productName": "x"})
        assert is_maps_product({"productCategory": "AI", "productName": "Static Map"})
        assert is_maps_product({"productName": "Maps"})
        assert not is_maps_product({"productCategory": "Compute", "productName": "Server"})
        assert not is_maps_product({})


class TestNonFiniteValues:
    """Test that extreme billing numbers never make the report raise."""

    @pytest.mark.parametrize("quantity", [float("inf"), float("-inf"), Decimal("10")])
    def test_unusable_quantities_dropped_from_records(self, quantity):
        records = [{"productItemKindDetailName": "Dynamic Map", "useQuantity": quantity, "useAmount": 1}]

        assert line_items_from_records(records) == []

    def test_infinite_item_dropped_from_aggregation(self):
        items = [
            UsageLineItem("Static Map", float("inf"), 1),
            UsageLineItem("Static Map", 10, float("-inf")),
            UsageLineItem("Static Map", 10, 2),
        ]

        report = aggregate_usage(items)

        assert by_service(report)["Static Map"].usage == 10
        assert report.total_cost == 2

    def test_float_overflow_reports_infinite_rate(self):
        items = [UsageLineItem("Geocoding", 1e308, 0), UsageLineItem("Geocoding", 1e308, 0)]

        report = aggregate_usage(items)

        assert report.services[0].service == "Geocoding"
        assert math.isinf(report.services[0].rate_percent)
        assert report.warnings[0].startswith("Geocoding usage is at inf%")

    def test_huge_integers(self):
        items = [UsageLineItem("Geocoding", 10 ** 400, 0), UsageLineItem("Geocoding", 1.5, 0)]

        report = aggregate_usage(items)

        assert by_service(report)["Geocoding"].rate_percent == math.inf

    def test_usage_rate_never_raises(self):
        assert usage_rate(10 ** 400, 3_000_000) == math.inf
        assert usage_rate(-(10 ** 400), 3_000_000) == -math.inf
        assert usage_rate(float("inf"), 3_000_000) == math.inf
