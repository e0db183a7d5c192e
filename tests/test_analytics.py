"""Tests for stage analytics, performance metrics and the deal list view."""

from __future__ import annotations

from typing import Any

import pytest

from deal_pipeline.analytics import (
    compute_performance_metrics,
    filter_and_sort_deals,
    flatten_stage_analytics,
    funnel_rows,
    get_stage_analytics,
)


def _deal(deal_id: str, stage: str, value: float = 1000, **extra: Any) -> dict[str, Any]:
    row = {
        "deal_id": deal_id,
        "company_name": f"Company {deal_id}",
        "contact_name": "Pat Lee",
        "transportation_mode": "trucking",
        "stage": stage,
        "value": value,
        "probability": 50,
        "created_date": "2024-01-01",
        "sales_rep": "Rep A",
        "cargo_type": None,
    }
    row.update(extra)
    return row


class TestStageAnalytics:
    def test_groups_and_computes_percentages(self):
        deals = [
            _deal("1", "prospect"),
            _deal("2", "prospect"),
            _deal("3", "qualified"),
            _deal("4", "closed_won"),
            _deal("5", "closed_lost"),
        ]

        result = get_stage_analytics(deals)

        assert result["totalDeals"] == 5
        summary = {stage: (data["count"], data["percentage"]) for stage, data in result["stageAnalytics"].items()}
        assert summary == {
            "prospect": (2, 40),
            "qualified": (1, 20),
            "closed_won": (1, 20),
            "closed_lost": (1, 20),
        }
        assert [deal["deal_id"] for deal in result["stageAnalytics"]["prospect"]["deals"]] == ["1", "2"]

    def test_independent_rounding_can_sum_below_100(self):
        result = get_stage_analytics([_deal("1", "prospect"), _deal("2", "proposal"), _deal("3", "negotiation")])

        percentages = [data["percentage"] for data in result["stageAnalytics"].values()]
        assert percentages == [33, 33, 33]
        assert sum(percentages) == 99

    def test_halves_round_up(self):
        deals = [_deal("1", "prospect")] + [_deal(str(i), "qualified") for i in range(2, 9)]

        result = get_stage_analytics(deals)

        # 1/8 = 12.5% and 7/8 = 87.5%
        assert result["stageAnalytics"]["prospect"]["percentage"] == 13
        assert result["stageAnalytics"]["qualified"]["percentage"] == 88

    def test_empty_collection(self):
        assert get_stage_analytics([]) == {"totalDeals": 0, "stageAnalytics": {}}

    def test_counts_sum_to_total(self):
        deals = [_deal(str(i), stage) for i, stage in enumerate(["prospect", "proposal", "proposal", "closed_won"])]

        result = get_stage_analytics(deals)

        assert sum(data["count"] for data in result["stageAnalytics"].values()) == result["totalDeals"]
        assert "qualified" not in result["stageAnalytics"]

    def test_flatten_recovers_every_deal(self):
        deals = [_deal("1", "prospect"), _deal("2", "closed_won"), _deal("3", "prospect")]

        flattened = flatten_stage_analytics(get_stage_analytics(deals)["stageAnalytics"])

        assert sorted(deal["deal_id"] for deal in flattened) == ["1", "2", "3"]


class TestPerformanceMetrics:
    def test_headline_figures(self):
        deals = [
            _deal("1", "closed_won", 10000, probability=100, sales_rep="Mike", transportation_mode="ocean"),
            _deal("2", "closed_lost", 5000, probability=0, sales_rep="Jen"),
            _deal("3", "closed_won", 20000, probability=100, sales_rep="Jen", transportation_mode="ocean"),
            _deal("4", "proposal", 5000, probability=50, sales_rep="Mike", transportation_mode="air"),
        ]

        metrics = compute_performance_metrics(deals)

        assert metrics.total_pipeline_value == 40000
        assert metrics.win_rate == pytest.approx(200 / 3)
        assert metrics.avg_deal_size == 10000
        assert metrics.weighted_pipeline_value == pytest.approx(32500)
        assert metrics.total_deals == 4
        assert metrics.deals_by_mode == {"ocean": 2, "trucking": 1, "air": 1}
        assert (metrics.top_sales_rep.name, metrics.top_sales_rep.count, metrics.top_sales_rep.value) == (
            "Jen",
            2,
            25000,
        )

    def test_win_rate_zero_without_closed_deals(self):
        metrics = compute_performance_metrics([_deal("1", "prospect"), _deal("2", "negotiation")])

        assert metrics.win_rate == 0

    def test_empty_collection(self):
        metrics = compute_performance_metrics([])

        assert metrics.as_dict() == {
            "totalPipelineValue": 0,
            "winRate": 0,
            "avgDealSize": 0,
            "weightedPipelineValue": 0,
            "totalDeals": 0,
            "dealsByMode": {},
            "topSalesRep": {"name": "", "count": 0, "value": 0},
        }

    def test_top_rep_tie_goes_to_first_seen(self):
        deals = [_deal("1", "prospect", 500, sales_rep="Zoe"), _deal("2", "prospect", 500, sales_rep="Adam")]

        assert compute_performance_metrics(deals).top_sales_rep.name == "Zoe"


def test_funnel_rows_follow_stage_order_and_minimum_width():
    deals = [_deal(str(i), "closed_won") for i in range(30)] + [_deal("x", "prospect")]

    rows = funnel_rows(get_stage_analytics(deals))

    assert [row["stage"] for row in rows] == ["prospect", "closed_won"]
    assert rows[0]["percentage"] == 3
    assert rows[0]["width"] == 5
    assert rows[0]["label"] == "prospect"
    assert rows[1]["label"] == "closed won"


class TestDealList:
    @pytest.fixture
    def deals(self):
        return [
            _deal("RV-1", "prospect", 300, company_name="beta freight", created_date="2024-03-01", cargo_type="Steel"),
            _deal("RV-2", "proposal", 100, company_name="Alpha Cargo", created_date="2024-01-01"),
            _deal("RV-3", "closed_won", 200, company_name="Gamma Rail", created_date="2024-02-01", sales_rep="Tom"),
        ]

    def test_default_is_newest_created_first(self, deals):
        assert [deal["deal_id"] for deal in filter_and_sort_deals(deals)] == ["RV-1", "RV-3", "RV-2"]

    def test_string_sort_ignores_case(self, deals):
        ordered = filter_and_sort_deals(deals, sort_field="company_name", direction="asc")

        assert [deal["company_name"] for deal in ordered] == ["Alpha Cargo", "beta freight", "Gamma Rail"]

    def test_numeric_sort(self, deals):
        ordered = filter_and_sort_deals(deals, sort_field="value", direction="desc")

        assert [deal["value"] for deal in ordered] == [300, 200, 100]

    def test_missing_values_first_when_ascending(self, deals):
        ascending = filter_and_sort_deals(deals, sort_field="cargo_type", direction="asc")
        descending = filter_and_sort_deals(deals, sort_field="cargo_type", direction="desc")

        assert ascending[-1]["deal_id"] == "RV-1"
        assert descending[0]["deal_id"] == "RV-1"

    def test_search_matches_any_listed_field(self, deals):
        assert [deal["deal_id"] for deal in filter_and_sort_deals(deals, search="TOM")] == ["RV-3"]
        assert [deal["deal_id"] for deal in filter_and_sort_deals(deals, search="closed")] == ["RV-3"]
        assert filter_and_sort_deals(deals, search="nothing matches") == []

    def test_unknown_sort_field_falls_back(self, deals):
        ordered = filter_and_sort_deals(deals, sort_field="id; drop table", direction="sideways")

        assert [deal["deal_id"] for deal in ordered] == ["RV-1", "RV-3", "RV-2"]
