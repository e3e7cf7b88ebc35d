"""Chart series builder - radar rows with normalized and raw KPI values.

Each KPI axis becomes one row::

    {"metric": "Profit", "Default": 0.24, "Default-raw": 12.0, ...}

Values are scaled by the axis domain, ``(raw - min) / (max - min)``, and not
clamped, so out-of-domain values fall outside [0, 1].
"""

from growlitics.schema.config import DashboardConfig
from growlitics.schema.fields import round_half_up, to_number


RAW_SUFFIX = "-raw"


def build_series(aggregated: list[dict],
                 config: DashboardConfig | None = None) -> list[dict]:
    """Build one chart row per configured KPI metric."""
    config = config or DashboardConfig()
    rows = []
    for metric in config.metrics:
        entry = {"metric": metric.label}
        for strategy in aggregated:
            name = strategy["name"]
            raw = to_number(strategy.get(metric.key))
            entry[name] = metric.scale(raw)
            entry[f"{name}{RAW_SUFFIX}"] = round_half_up(raw, config.precision)
        rows.append(entry)
    return rows


def series_for(rows: list[dict], strategy: str) -> list[tuple[str, float]]:
    """Extract one strategy's ``(metric, scaled)`` points from chart rows."""
    return [(row["metric"], row[strategy]) for row in rows if strategy in row]
