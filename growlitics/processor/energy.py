"""Energy series builder - weekly and cumulative energy cost per strategy.

Works on an *energy index*::

    {cultivation: {week_start: {date: {strategy: {"cost": float,
                                                  "consumption": float | None}}}}}

where ``week_start`` is the ISO date of the Monday of the date's week.  The
index is either built from the ``daily`` records in a CultivationKpiStore
(:func:`build_energy_index`) or supplied by the payload
(:func:`coerce_energy_index`).

Outputs:
    build_weekly_series      -> 7 day rows with per-strategy cost totals
    build_cumulative_series  -> {strategy: [(day_offset, cumulative_cost)]}
    build_daily_metric_series -> 7 day rows of average energy price/radiation
"""

import datetime
from collections.abc import Iterable

import pandas as pd

from growlitics.schema.fields import first_present, parse_numeric, to_number
from growlitics.schema.models import EnergyMetric
from growlitics.shared.logger import get_logger

logger = get_logger(__name__)


COST_KEYS = ("cost", "total_energy_cost")
CONSUMPTION_KEYS = ("consumption", "total_energy_consumption")

DAILY_METRIC_KEYS = {
    EnergyMetric.ENERGY_PRICE: (
        "avg_energy_price", "energy_price", "energy_price_avg", "euro_per_kwh",
    ),
    EnergyMetric.RADIATION: ("radiation", "avg_radiation", "daily_radiation"),
}

_FRAME_COLUMNS = ["cultivation", "week", "date", "strategy", "cost", "consumption"]


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

def parse_date(value) -> datetime.date | None:
    """Parse a date-like value, returning None when it is not a date."""
    if value is None or value == "":
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def week_start(value) -> str | None:
    """ISO date of the Monday starting the week that contains *value*.

    A Sunday buckets to the Monday six days earlier.
    """
    d = parse_date(value)
    if d is None:
        return None
    return (d - datetime.timedelta(days=d.weekday())).isoformat()


def iso_week_number(value) -> int | None:
    """ISO-8601 (Thursday-anchored) week number, for labels."""
    d = parse_date(value)
    if d is None:
        return None
    return d.isocalendar()[1]


def week_label(value) -> str:
    number = iso_week_number(value)
    return f"Week {number}" if number is not None else str(value)


def week_days(week) -> list[str]:
    """The 7 consecutive ISO dates starting at *week*."""
    start = parse_date(week)
    if start is None:
        return []
    return [(start + datetime.timedelta(days=i)).isoformat() for i in range(7)]


# ---------------------------------------------------------------------------
# Energy index
# ---------------------------------------------------------------------------

def _cell(value) -> dict:
    """Normalize an energy cell: bare numbers are costs."""
    if isinstance(value, dict):
        return {
            "cost": to_number(first_present(value, COST_KEYS)),
            "consumption": parse_numeric(first_present(value, CONSUMPTION_KEYS)),
        }
    return {"cost": to_number(value), "consumption": None}


def build_energy_index(store: dict) -> dict:
    """Bucket every record's ``daily`` entries by cultivation/week/date/strategy."""
    energy: dict = {}
    for cultivation, records in store.items():
        for record in records or []:
            if not isinstance(record, dict) or record.get("name") is None:
                continue
            strategy = str(record["name"])
            for entry in record.get("daily") or []:
                if not isinstance(entry, dict):
                    continue
                d = parse_date(entry.get("date"))
                if d is None:
                    continue
                week = week_start(d)
                days = energy.setdefault(cultivation, {}).setdefault(week, {})
                days.setdefault(d.isoformat(), {})[strategy] = _cell(entry)
    return energy


def coerce_energy_index(raw) -> dict | None:
    """Validate and normalize a payload-supplied energy index.

    Dates are re-bucketed to their Monday week start.  Returns None when
    *raw* is not a mapping.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Ignoring energy data of type %s", type(raw).__name__)
        return None

    energy: dict = {}
    for cultivation, weeks in raw.items():
        if not isinstance(weeks, dict):
            logger.warning("Ignoring energy data for %r: not a mapping",
                           cultivation)
            continue
        for week, days in weeks.items():
            if not isinstance(days, dict):
                continue
            for date, strategies in days.items():
                if not isinstance(strategies, dict):
                    continue
                d = parse_date(date)
                if d is None:
                    logger.warning("Ignoring energy entry with bad date %r", date)
                    continue
                bucket = energy.setdefault(str(cultivation), {}).setdefault(
                    week_start(d), {}
                ).setdefault(d.isoformat(), {})
                for strategy, value in strategies.items():
                    bucket[str(strategy)] = _cell(value)
    return energy


def _cultivations(energy: dict, selected) -> list[str]:
    """Selected cultivations, or every indexed one when nothing is selected."""
    return list(selected) if selected else list(energy)


def energy_frame(energy: dict, selected) -> pd.DataFrame:
    """Flatten the index for the selected cultivations into a long table."""
    rows = []
    for c in dict.fromkeys(_cultivations(energy, selected)):
        for week, days in (energy.get(c) or {}).items():
            for date, strategies in days.items():
                for strategy, cell in strategies.items():
                    rows.append({
                        "cultivation": c,
                        "week": week,
                        "date": date,
                        "strategy": strategy,
                        "cost": cell.get("cost", 0.0),
                        "consumption": cell.get("consumption"),
                    })
    frame = pd.DataFrame(rows, columns=_FRAME_COLUMNS)
    frame["cost"] = pd.to_numeric(frame["cost"], errors="coerce").fillna(0.0)
    frame["consumption"] = pd.to_numeric(frame["consumption"], errors="coerce")
    return frame


def available_weeks(energy: dict, selected=None) -> list[str]:
    """Sorted week starts present for the selected cultivations."""
    weeks = set()
    for c in _cultivations(energy, selected):
        weeks.update((energy.get(c) or {}).keys())
    return sorted(weeks)


def _present_strategies(frame: pd.DataFrame, visible: Iterable[str]) -> list[str]:
    present = set(frame["strategy"])
    return [s for s in dict.fromkeys(visible) if s in present]


# ---------------------------------------------------------------------------
# Weekly series
# ---------------------------------------------------------------------------

def build_weekly_series(energy: dict, selected, week,
                        visible: Iterable[str]) -> list[dict]:
    """Per-day energy cost totals for one week.

    Returns 7 rows ``{"date", "costs": {strategy: total}, "avg_price"}``.
    ``avg_price`` is total cost over total consumption, or None when no
    consumption was recorded that day.  Any date within the week selects it;
    every visible strategy gets a cost, 0.0 on days without data.  Returns []
    when *week* is not a date.
    """
    days = week_days(week_start(week))
    if not days:
        return []
    week_key = days[0]

    frame = energy_frame(energy, selected)
    frame = frame[frame["week"] == week_key]
    strategies = list(dict.fromkeys(visible))
    frame = frame[frame["strategy"].isin(strategies)]

    costs = dict(frame.groupby(["date", "strategy"])["cost"].sum().items())
    consumption = dict(
        frame.groupby("date")["consumption"].sum(min_count=1).items()
    )

    rows = []
    for date in days:
        day_costs = {s: float(costs.get((date, s), 0.0)) for s in strategies}
        total_cost = sum(day_costs.values())
        total_consumption = consumption.get(date)
        if total_consumption is not None and not pd.isna(total_consumption) \
                and total_consumption > 0:
            avg_price = total_cost / float(total_consumption)
        else:
            avg_price = None
        rows.append({"date": date, "costs": day_costs, "avg_price": avg_price})
    return rows


def weekly_max(rows: list[dict]) -> float:
    """Largest single-strategy daily cost in a weekly series."""
    return max((v for row in rows for v in row["costs"].values()), default=0.0)


# ---------------------------------------------------------------------------
# Cumulative series
# ---------------------------------------------------------------------------

def build_cumulative_series(energy: dict, selected,
                            visible: Iterable[str]) -> dict[str, list[tuple[int, float]]]:
    """Running energy cost per strategy across every recorded date.

    Day offsets count days since the first date present for the selected
    cultivations.  Dates without a value for a strategy repeat its running
    total.
    """
    frame = energy_frame(energy, selected)
    if frame.empty:
        return {}
    dates = sorted(frame["date"].unique())
    strategies = _present_strategies(frame, visible)
    if not strategies:
        return {}

    frame = frame[frame["strategy"].isin(strategies)]
    totals = frame.pivot_table(index="date", columns="strategy", values="cost",
                               aggfunc="sum", fill_value=0.0)
    totals = totals.reindex(index=dates, columns=strategies, fill_value=0.0)
    running = totals.cumsum()

    start = parse_date(dates[0])
    offsets = [(parse_date(d) - start).days for d in dates]
    return {
        s: [(offset, float(value)) for offset, value in zip(offsets, running[s])]
        for s in strategies
    }


def max_day_offset(series: dict[str, list[tuple[int, float]]]) -> int:
    return max((points[-1][0] for points in series.values() if points), default=0)


# ---------------------------------------------------------------------------
# Daily metric line (energy price / radiation)
# ---------------------------------------------------------------------------

def build_daily_metric_series(store: dict, selected, visible: Iterable[str],
                              week, metric=EnergyMetric.ENERGY_PRICE) -> list[dict]:
    """Average a daily metric across selected cultivations and visible strategies.

    Returns 7 rows ``{"date", "weekday", "value"}``; ``value`` is None on
    days without a reading.

    Raises:
        ValueError: If *metric* is not a known EnergyMetric.
    """
    try:
        metric = EnergyMetric(metric)
    except ValueError:
        raise ValueError(
            f"Unknown energy metric '{metric}'. "
            f"Valid metrics: {', '.join(m.value for m in EnergyMetric)}"
        ) from None
    keys = DAILY_METRIC_KEYS[metric]
    strategies = list(dict.fromkeys(visible))

    sums: dict[str, list[float]] = {}
    for c in dict.fromkeys(selected or []):
        for record in store.get(c) or []:
            if not isinstance(record, dict) or record.get("name") not in strategies:
                continue
            for entry in record.get("daily") or []:
                if not isinstance(entry, dict):
                    continue
                d = parse_date(entry.get("date"))
                if d is None:
                    continue
                value = next((v for v in (parse_numeric(entry.get(k)) for k in keys)
                              if v is not None), None)
                if value is None:
                    continue
                acc = sums.setdefault(d.isoformat(), [0.0, 0])
                acc[0] += value
                acc[1] += 1

    rows = []
    for date in week_days(week):
        total, count = sums.get(date, (0.0, 0))
        rows.append({
            "date": date,
            "weekday": parse_date(date).strftime("%a"),
            "value": total / count if count else None,
        })
    return rows
