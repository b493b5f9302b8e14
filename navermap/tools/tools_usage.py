"""
Usage tool: monthly Maps API usage, cost and free-tier rate.
"""

from typing import Any, Dict

from ..config.logger_module import log_info
from ..gateway.gateway_client import BillingApiClient
from ..gateway.gateway_errors import ProviderResponseError
from ..usage.usage_aggregator import (
    UsageReport,
    aggregate_usage,
    is_maps_product,
    line_items_from_records,
)
from .tools_formatters import current_month, format_currency, format_number, to_yyyymm
from .tools_schemas import UsageInput


RESPONSE_ENVELOPE = "getProductDemandCostListResponse"


def render_usage_markdown(month: str, report: UsageReport) -> str:
    """Render a usage report as a markdown summary."""
    lines = [f"## {month} Naver Maps API usage", ""]

    if report.warnings:
        lines.append("### Warnings")
        lines.extend(f"- {warning}" for warning in report.warnings)
        lines.append("")

    lines.append("### Usage by service")
    lines.append("")
    lines.append("| Service | Usage | Free limit | Rate | Cost |")
    lines.append("|---------|-------|------------|------|------|")
    for entry in report.services:
        lines.append(
            f"| {entry.service} | {format_number(entry.usage)} | "
            f"{format_number(entry.free_limit)} | {entry.rate_percent}% | "
            f"{format_currency(entry.cost)} |"
        )

    lines.append("")
    lines.append(f"### Total cost: {format_currency(report.total_cost)}")
    return "\n".join(lines) + "\n"


def get_usage(client: BillingApiClient, args: UsageInput) -> Dict[str, Any]:
    """
    Report usage against the free tier for one month.

    Raises:
        ProviderResponseError: When returnCode is not "0"
        BillingApiError: On gateway failures
    """
    month = args.month or current_month()
    yyyymm = to_yyyymm(month)

    response = client.get_product_demand_cost_list(yyyymm, yyyymm)
    envelope = response.get(RESPONSE_ENVELOPE) or {}

    if envelope.get("returnCode") != "0":
        raise ProviderResponseError(
            f"Usage lookup failed: {envelope.get('returnMessage') or 'unknown error'}",
            code=envelope.get("returnCode")
        )

    records = [
        record for record in envelope.get("productDemandCostList") or []
        if is_maps_product(record)
    ]
    report = aggregate_usage(line_items_from_records(records))
    log_info(f"Usage for {month}: {len(records)} Maps record(s), {len(report.warnings)} warning(s)")

    return {
        "month": month,
        "services": [
            {
                "name": entry.service,
                "usage": entry.usage,
                "free_limit": entry.free_limit,
                "usage_rate": entry.rate_percent,
                "cost": entry.cost,
            }
            for entry in report.services
        ],
        "total_cost": report.total_cost,
        "warnings": list(report.warnings),
        "text": render_usage_markdown(month, report),
    }
