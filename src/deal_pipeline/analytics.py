"""Stage analytics and performance metrics over stored deals."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from .models import STAGES, PerformanceMetrics, SalesRepSummary

Record = Mapping[str, Any]

SEARCH_FIELDS = ("company_name", "contact_name", "deal_id", "sales_rep", "stage", "transportation_mode")
SORTABLE_FIELDS = (
    "deal_id",
    "company_name",
    "contact_name",
    "stage",
    "transportation_mode",
    "value",
    "probability",
    "sales_rep",
    "created_date",
    "updated_date",
    "expected_close_date",
    "origin_city",
    "destination_city",
    "cargo_type",
)
DEFAULT_SORT_FIELD = "created_date"
DEFAULT_SORT_DIRECTION = "desc"
MIN_FUNNEL_WIDTH = 5


def _percentage(count: int, total: int) -> int:
    """Whole-number share of ``count`` in ``total``, rounding halves up."""

    if total <= 0:
        return 0
    share = Decimal(100 * count) / Decimal(total)
    return int(share.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def group_by_stage(deals: Iterable[Record]) -> dict[str, list[Record]]:
    grouped: dict[str, list[Record]] = {}
    for deal in deals:
        grouped.setdefault(deal["stage"], []).append(deal)
    return grouped


def get_stage_analytics(deals: Sequence[Record]) -> dict[str, Any]:
    """Group ``deals`` by stage with a count and percentage for each stage.

    Only stages that have deals appear in the mapping. Percentages are rounded
    independently, so they do not always add up to exactly 100.
    """

    total = len(deals)
    stage_analytics = {
        stage: {
            "deals": list(stage_deals),
            "count": len(stage_deals),
            "percentage": _percentage(len(stage_deals), total),
        }
        for stage, stage_deals in group_by_stage(deals).items()
    }
    return {"totalDeals": total, "stageAnalytics": stage_analytics}


def flatten_stage_analytics(stage_analytics: Mapping[str, Mapping[str, Any]]) -> list[Record]:
    deals: list[Record] = []
    for stage_data in stage_analytics.values():
        deals.extend(stage_data["deals"])
    return deals


def compute_performance_metrics(deals: Sequence[Record]) -> PerformanceMetrics:
    total_value = sum(deal["value"] for deal in deals)

    won = sum(1 for deal in deals if deal["stage"] == "closed_won")
    lost = sum(1 for deal in deals if deal["stage"] == "closed_lost")
    win_rate = won / (won + lost) * 100 if won + lost > 0 else 0

    avg_deal_size = total_value / len(deals) if deals else 0
    weighted_value = sum(deal["value"] * (deal["probability"] / 100) for deal in deals)

    deals_by_mode: dict[str, int] = {}
    by_rep: dict[str, SalesRepSummary] = {}
    for deal in deals:
        mode = deal["transportation_mode"]
        deals_by_mode[mode] = deals_by_mode.get(mode, 0) + 1
        rep = by_rep.setdefault(deal["sales_rep"], SalesRepSummary(name=deal["sales_rep"]))
        rep.count += 1
        rep.value += deal["value"]

    # Strictly greater, so the first rep seen keeps a tie.
    top_rep = SalesRepSummary()
    for rep in by_rep.values():
        if rep.value > top_rep.value:
            top_rep = rep

    return PerformanceMetrics(
        total_pipeline_value=total_value,
        win_rate=win_rate,
        avg_deal_size=avg_deal_size,
        weighted_pipeline_value=weighted_value,
        total_deals=len(deals),
        deals_by_mode=deals_by_mode,
        top_sales_rep=top_rep,
    )


def funnel_rows(analytics: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Rows for the pipeline funnel, in canonical stage order."""

    rows = []
    for stage in STAGES:
        stage_data = analytics["stageAnalytics"].get(stage)
        if not stage_data:
            continue
        rows.append(
            {
                "stage": stage,
                "label": stage.replace("_", " "),
                "count": stage_data["count"],
                "percentage": stage_data["percentage"],
                "width": max(stage_data["percentage"], MIN_FUNNEL_WIDTH),
            }
        )
    return rows


def _sort_key(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def filter_and_sort_deals(
    deals: Iterable[Record],
    search: str = "",
    sort_field: str = DEFAULT_SORT_FIELD,
    direction: str = DEFAULT_SORT_DIRECTION,
) -> list[Record]:
    """Case-insensitive search across the list columns, then a stable sort.

    Missing values sort before present ones when ascending. Unknown sort
    fields and directions fall back to the defaults.
    """

    if sort_field not in SORTABLE_FIELDS:
        sort_field = DEFAULT_SORT_FIELD
    if direction not in ("asc", "desc"):
        direction = DEFAULT_SORT_DIRECTION

    term = search.strip().lower()
    matches = [
        deal
        for deal in deals
        if not term or any(term in str(deal.get(name) or "").lower() for name in SEARCH_FIELDS)
    ]

    present = [deal for deal in matches if deal.get(sort_field) is not None]
    missing = [deal for deal in matches if deal.get(sort_field) is None]
    present.sort(key=lambda deal: _sort_key(deal[sort_field]), reverse=direction == "desc")
    if direction == "asc":
        return missing + present
    return present + missing


__all__ = [
    "DEFAULT_SORT_DIRECTION",
    "DEFAULT_SORT_FIELD",
    "SORTABLE_FIELDS",
    "compute_performance_metrics",
    "filter_and_sort_deals",
    "flatten_stage_analytics",
    "funnel_rows",
    "get_stage_analytics",
    "group_by_stage",
]
