"""Tests for the energy series builders and weight distribution."""

import datetime

import pytest

from growlitics.processor.distribution import build_distribution, selected_pair
from growlitics.processor.energy import (
    available_weeks,
    build_cumulative_series,
    build_daily_metric_series,
    build_energy_index,
    build_weekly_series,
    coerce_energy_index,
    iso_week_number,
    max_day_offset,
    parse_date,
    week_days,
    week_label,
    week_start,
    weekly_max,
)
from growlitics.schema.design_system import CATEGORY_COLORS, FALLBACK_COLOR
from growlitics.schema.models import DistributionStatus, EnergyMetric


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store():
    """One cultivation, two strategies, daily energy entries in week 19 of 2024."""
    return {
        "C1": [
            {
                "name": "S1",
                "daily": [
                    {"date": "2024-05-06", "cost": 2, "consumption": 10,
                     "avg_energy_price": 0.2, "radiation": 300},
                    {"date": "2024-05-07", "cost": 3},
                    {"date": "not a date", "cost": 99},
                ],
            },
            {
                "name": "S2",
                "daily": [
                    {"date": "2024-05-06", "cost": 4, "consumption": 10,
                     "avg_energy_price": 0.4},
                    {"date": "2024-05-09", "total_energy_cost": 1,
                     "total_energy_consumption": 0},
                ],
            },
        ],
    }


@pytest.fixture
def energy(store):
    return build_energy_index(store)


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

class TestDates:
    def test_parse_date_string(self):
        assert parse_date("2024-05-06") == datetime.date(2024, 5, 6)

    def test_parse_date_invalid(self):
        assert parse_date("garbage") is None
        assert parse_date(None) is None
        assert parse_date("") is None

    def test_monday_is_own_week(self):
        assert week_start("2024-05-06") == "2024-05-06"

    def test_sunday_buckets_to_previous_monday(self):
        assert week_start("2024-05-12") == "2024-05-06"

    def test_iso_week_number(self):
        assert iso_week_number("2024-05-06") == 19

    def test_week_label(self):
        assert week_label("2024-05-06") == "Week 19"
        assert week_label("bad") == "bad"

    def test_week_days(self):
        days = week_days("2024-05-06")
        assert len(days) == 7
        assert days[0] == "2024-05-06"
        assert days[-1] == "2024-05-12"

    def test_week_days_invalid(self):
        assert week_days("nope") == []


# ---------------------------------------------------------------------------
# Energy index
# ---------------------------------------------------------------------------

class TestEnergyIndex:
    def test_buckets_by_week(self, energy):
        assert list(energy["C1"]) == ["2024-05-06"]
        days = energy["C1"]["2024-05-06"]
        assert set(days) == {"2024-05-06", "2024-05-07", "2024-05-09"}

    def test_cells(self, energy):
        day = energy["C1"]["2024-05-06"]["2024-05-06"]
        assert day["S1"] == {"cost": 2.0, "consumption": 10.0}
        assert day["S2"] == {"cost": 4.0, "consumption": 10.0}

    def test_alias_keys(self, energy):
        cell = energy["C1"]["2024-05-06"]["2024-05-09"]["S2"]
        assert cell == {"cost": 1.0, "consumption": 0.0}

    def test_missing_consumption_is_none(self, energy):
        assert energy["C1"]["2024-05-06"]["2024-05-07"]["S1"]["consumption"] is None

    def test_coerce_rebuckets(self):
        raw = {"C1": {"2024-05-13": {"2024-05-12": {"S1": 5}}}}
        energy = coerce_energy_index(raw)
        assert energy == {
            "C1": {"2024-05-06": {"2024-05-12": {"S1": {"cost": 5.0,
                                                         "consumption": None}}}}
        }

    def test_coerce_rejects_non_mapping(self):
        assert coerce_energy_index(None) is None
        assert coerce_energy_index([1, 2]) is None

    def test_coerce_skips_bad_dates(self):
        energy = coerce_energy_index({"C1": {"w": {"nope": {"S1": 1}}}})
        assert energy == {}

    def test_available_weeks(self, energy):
        assert available_weeks(energy, ["C1"]) == ["2024-05-06"]
        assert available_weeks(energy) == ["2024-05-06"]
        assert available_weeks(energy, ["other"]) == []


# ---------------------------------------------------------------------------
# Weekly series
# ---------------------------------------------------------------------------

class TestWeekly:
    def test_seven_rows(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert [r["date"] for r in rows] == week_days("2024-05-06")

    def test_costs_per_strategy(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert rows[0]["costs"] == {"S1": 2.0, "S2": 4.0}
        assert rows[1]["costs"] == {"S1": 3.0, "S2": 0.0}

    def test_avg_price(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert rows[0]["avg_price"] == pytest.approx(0.3)

    def test_avg_price_none_without_consumption(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert rows[1]["avg_price"] is None

    def test_avg_price_none_on_zero_consumption(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert rows[3]["costs"]["S2"] == 1.0
        assert rows[3]["avg_price"] is None

    def test_hidden_strategy_excluded(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1"])
        assert rows[0]["costs"] == {"S1": 2.0}
        assert rows[0]["avg_price"] == pytest.approx(0.2)

    def test_other_week_has_zero_costs(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-13", ["S1", "S2"])
        assert len(rows) == 7
        assert all(r["costs"] == {"S1": 0.0, "S2": 0.0} for r in rows)
        assert all(r["avg_price"] is None for r in rows)

    def test_mid_week_date_selects_its_week(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-08", ["S1", "S2"])
        assert rows[0]["date"] == "2024-05-06"
        assert rows[0]["costs"] == {"S1": 2.0, "S2": 4.0}
        assert rows[3]["costs"]["S2"] == 1.0

    def test_mid_week_single_entry(self):
        store = {"C": [{"name": "S", "daily": [
            {"date": "2024-05-08", "total_energy_cost": 4},
        ]}]}
        rows = build_weekly_series(build_energy_index(store), ["C"],
                                   "2024-05-08", ["S"])
        by_date = {r["date"]: r["costs"]["S"] for r in rows}
        assert by_date["2024-05-08"] == 4.0
        assert by_date["2024-05-06"] == 0.0

    def test_visible_strategy_without_cells(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "Absent"])
        assert rows[0]["costs"] == {"S1": 2.0, "Absent": 0.0}

    def test_empty_selection_uses_all(self, energy):
        rows = build_weekly_series(energy, [], "2024-05-06", ["S1"])
        assert rows[0]["costs"] == {"S1": 2.0}

    def test_invalid_week(self, energy):
        assert build_weekly_series(energy, ["C1"], "bad", ["S1"]) == []

    def test_weekly_max(self, energy):
        rows = build_weekly_series(energy, ["C1"], "2024-05-06", ["S1", "S2"])
        assert weekly_max(rows) == 4.0
        assert weekly_max([]) == 0.0

    def test_sums_across_cultivations(self, store):
        store = dict(store)
        store["C2"] = [{"name": "S1", "daily": [{"date": "2024-05-06", "cost": 5}]}]
        energy = build_energy_index(store)
        rows = build_weekly_series(energy, ["C1", "C2"], "2024-05-06", ["S1"])
        assert rows[0]["costs"] == {"S1": 7.0}


# ---------------------------------------------------------------------------
# Cumulative series
# ---------------------------------------------------------------------------

class TestCumulative:
    def test_running_totals(self, energy):
        series = build_cumulative_series(energy, ["C1"], ["S1", "S2"])
        assert series["S1"] == [(0, 2.0), (1, 5.0), (3, 5.0)]
        assert series["S2"] == [(0, 4.0), (1, 4.0), (3, 5.0)]

    def test_monotonic(self, energy):
        series = build_cumulative_series(energy, ["C1"], ["S1", "S2"])
        for points in series.values():
            values = [v for _, v in points]
            assert values == sorted(values)

    def test_hidden_strategy(self, energy):
        series = build_cumulative_series(energy, ["C1"], ["S2"])
        assert list(series) == ["S2"]

    def test_empty(self):
        assert build_cumulative_series({}, ["C1"], ["S1"]) == {}

    def test_max_day_offset(self, energy):
        series = build_cumulative_series(energy, ["C1"], ["S1", "S2"])
        assert max_day_offset(series) == 3
        assert max_day_offset({}) == 0


# ---------------------------------------------------------------------------
# Daily metric line
# ---------------------------------------------------------------------------

class TestDailyMetric:
    def test_energy_price_average(self, store):
        rows = build_daily_metric_series(store, ["C1"], ["S1", "S2"], "2024-05-06")
        assert rows[0]["value"] == pytest.approx(0.3)
        assert rows[0]["weekday"] == "Mon"
        assert rows[1]["value"] is None

    def test_radiation(self, store):
        rows = build_daily_metric_series(store, ["C1"], ["S1", "S2"], "2024-05-06",
                                         EnergyMetric.RADIATION)
        assert rows[0]["value"] == 300.0

    def test_metric_by_value(self, store):
        rows = build_daily_metric_series(store, ["C1"], ["S2"], "2024-05-06", "energy")
        assert rows[0]["value"] == pytest.approx(0.4)

    def test_unknown_metric(self, store):
        with pytest.raises(ValueError, match="Unknown energy metric"):
            build_daily_metric_series(store, ["C1"], ["S1"], "2024-05-06", "wind")


# ---------------------------------------------------------------------------
# Weight distribution
# ---------------------------------------------------------------------------

class TestDistribution:
    def test_no_selection(self):
        dist = build_distribution({}, None, "S1")
        assert dist.status == DistributionStatus.NO_SELECTION
        assert not dist.has_data

    def test_missing_record(self):
        dist = build_distribution({"C1": []}, "C1", "S1")
        assert dist.status == DistributionStatus.NO_DATA

    def test_record_without_bins(self):
        dist = build_distribution({"C1": [{"name": "S1"}]}, "C1", "S1")
        assert dist.status == DistributionStatus.NO_DATA

    def test_mapping_sorted_numerically(self):
        store = {"C1": [{"name": "S1",
                         "distribution": {"100": 1, "45": 2, "40": 3, "x": 1}}]}
        dist = build_distribution(store, "C1", "S1")
        assert dist.status == DistributionStatus.OK
        assert [b["bin"] for b in dist.bins] == [40, 45, 100, "x"]
        assert dist.bins[0]["count"] == 3.0

    def test_bin_list_with_categories(self):
        record = {
            "name": "S1",
            "weight_distribution_data": {
                "weight_bin_distribution": [
                    {"bin": "40-45", "count": 3, "category": "a", "revenue": 1.2},
                    {"bin": "45-50", "count": 5, "category": "Q"},
                ],
                "target_weight": 47,
                "lower_cap": "40",
                "upper_cap": None,
            },
        }
        dist = build_distribution({"C1": [record]}, "C1", "S1")
        assert dist.has_data
        assert dist.bins[0]["color"] == CATEGORY_COLORS["A"]
        assert dist.bins[1]["color"] == FALLBACK_COLOR
        assert dist.bins[1]["revenue"] == 0.0
        assert dist.target_weight == 47.0
        assert dist.lower_cap == 40.0
        assert dist.upper_cap is None

    def test_to_dict(self):
        store = {"C1": [{"name": "S1", "distribution": {"40": 1}}]}
        d = build_distribution(store, "C1", "S1").to_dict()
        assert d["status"] == "ok"
        assert d["bins"] == [{"bin": 40, "count": 1.0}]

    def test_selected_pair(self):
        assert selected_pair(["C1"], ["S1"]) == ("C1", "S1")
        assert selected_pair(["C1", "C2"], ["S1"]) == (None, "S1")
        assert selected_pair(["C1"], []) == ("C1", None)
