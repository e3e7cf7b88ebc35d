"""KPI aggregator - averages strategy KPIs across selected cultivations.

For every strategy found in the selection, each numeric KPI is averaged over
the cultivations where that strategy actually appears (not over the whole
selection), then rounded half-up to the configured precision.

Usage::

    from growlitics.processor.aggregate import aggregate

    rows = aggregate(store, ["2024-5, Vak 11, Serenity"], config)
    # [{"name": "Default", "bonus_penalty": -1.0, "profit": 12.0, ...}, ...]
"""

import pandas as pd

from growlitics.schema.config import DashboardConfig
from growlitics.schema.fields import (
    KPI_FIELD_KEYS,
    parse_numeric,
    record_base_revenue,
    resolve_field,
    round_half_up,
)

from .normalize import find_record


EFFICIENCY_KEYS = ("euro_per_kwh", "kwh_per_gram", "euro_per_gram", "profit")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def kpi_fields(profit_field: str = "profit") -> list[str]:
    """Aggregated field names with the active profit metric substituted."""
    return [profit_field if k == "profit" else k for k in KPI_FIELD_KEYS]


def _unique_selection(store: dict, selected) -> list[str]:
    """Selected cultivations present in the store, without repeats."""
    seen: dict[str, None] = {}
    for c in selected or []:
        if c in store:
            seen.setdefault(c, None)
    return list(seen)


def record_values(record: dict, fields: list[str]) -> dict[str, float]:
    """Resolve one record's numeric KPI values (non-numeric -> 0)."""
    values = {}
    for f in fields:
        if f == "base_revenue":
            values[f] = record_base_revenue(record)
        else:
            values[f] = resolve_field(record, f)
    return values


def kpi_frame(store: dict, selected, profit_field: str = "profit") -> pd.DataFrame:
    """One row per (cultivation, strategy) in the selection.

    Duplicate strategy names within a cultivation keep the first record.
    """
    fields = kpi_fields(profit_field)
    rows = []
    for c in _unique_selection(store, selected):
        seen = set()
        for record in store[c] or []:
            if not isinstance(record, dict) or record.get("name") is None:
                continue
            name = str(record["name"])
            if name in seen:
                continue
            seen.add(name)
            rows.append({"cultivation": c, "name": name,
                         **record_values(record, fields)})
    return pd.DataFrame(rows, columns=["cultivation", "name", *fields])


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def aggregate(store: dict, selected, config: DashboardConfig | None = None) -> list[dict]:
    """Average every KPI per strategy across the selected cultivations.

    Args:
        store: CultivationKpiStore (cultivation -> list of records).
        selected: Ordered selected cultivation keys.  Unknown keys are
            ignored.
        config: Supplies the active profit field and rounding precision.

    Returns:
        One dict per strategy, in first-encounter order.  Strategies absent
        from every selected cultivation are omitted.
    """
    config = config or DashboardConfig()
    fields = kpi_fields(config.profit_field)
    frame = kpi_frame(store, selected, config.profit_field)
    if frame.empty:
        return []

    means = frame.groupby("name", sort=False)[fields].mean()
    result = []
    for name, row in means.iterrows():
        entry = {"name": name}
        for f in fields:
            entry[f] = round_half_up(float(row[f]), config.precision)
        result.append(entry)
    return result


def profits_by_strategy(aggregated: list[dict],
                        profit_field: str = "profit") -> dict[str, float]:
    """Map strategy name -> aggregated profit, for color ranking."""
    return {row["name"]: float(row.get(profit_field) or 0.0)
            for row in aggregated}


# ---------------------------------------------------------------------------
# Efficiency summary (stat boxes)
# ---------------------------------------------------------------------------

def summarize_efficiency(store: dict, selected, visible,
                         precision: int = 3) -> dict[str, dict[str, float | None]]:
    """Average efficiency ratios per visible strategy.

    Every record found counts toward the denominator; non-numeric values
    add nothing to the total.  A strategy with no records in the selection
    gets ``None`` for every ratio.
    """
    cultivations = _unique_selection(store, selected)
    result = {}
    for strategy in visible:
        totals = dict.fromkeys(EFFICIENCY_KEYS, 0.0)
        count = 0
        for c in cultivations:
            record = find_record(store, c, strategy)
            if record is None:
                continue
            for key in EFFICIENCY_KEYS:
                value = parse_numeric(record.get(key))
                if value is not None:
                    totals[key] += value
            count += 1
        result[strategy] = {
            key: round_half_up(totals[key] / count, precision) if count else None
            for key in EFFICIENCY_KEYS
        }
    return result
