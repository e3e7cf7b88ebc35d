"""Weight distribution - harvest-weight histogram for one cultivation/strategy.

Two record layouts are understood:

- ``distribution``: mapping of weight bin -> count, e.g. ``{"40": 3, "45": 8}``
- ``weight_bin_distribution``: list of ``{bin, count, category, revenue}``
  alongside ``target_weight``, ``lower_cap`` and ``upper_cap``, optionally
  nested under ``weight_distribution_data``

Missing data is a result (``DistributionStatus.NO_DATA``), not an error.
"""

from growlitics.schema.design_system import category_color
from growlitics.schema.fields import parse_numeric, to_number
from growlitics.schema.models import DistributionStatus, WeightDistribution

from .normalize import find_record


def _bin_sort_key(label) -> tuple:
    value = parse_numeric(label)
    if value is None:
        return (1, 0.0, str(label))
    return (0, value, str(label))


def _bins_from_mapping(dist: dict) -> list[dict]:
    bins = []
    for label in sorted(dist, key=_bin_sort_key):
        value = parse_numeric(label)
        bins.append({
            "bin": int(value) if value is not None and value == int(value) else label,
            "count": to_number(dist[label]),
        })
    return bins


def _bins_from_list(items: list) -> list[dict]:
    bins = []
    for item in items:
        if not isinstance(item, dict):
            continue
        category = item.get("category")
        bins.append({
            "bin": item.get("bin"),
            "count": to_number(item.get("count")),
            "category": category,
            "revenue": to_number(item.get("revenue")),
            "color": category_color(category),
        })
    return bins


def build_distribution(store: dict, cultivation: str | None,
                       strategy: str | None) -> WeightDistribution:
    """Histogram bins for a single cultivation and strategy.

    Returns:
        WeightDistribution whose status is NO_SELECTION when either argument
        is missing, NO_DATA when the record has no usable bins.
    """
    if not cultivation or not strategy:
        return WeightDistribution(status=DistributionStatus.NO_SELECTION)

    record = find_record(store, cultivation, strategy)
    if record is None:
        return WeightDistribution(status=DistributionStatus.NO_DATA)

    source = record.get("weight_distribution_data")
    if not isinstance(source, dict):
        source = record

    items = source.get("weight_bin_distribution")
    if isinstance(items, list) and items:
        bins = _bins_from_list(items)
    elif isinstance(record.get("distribution"), dict) and record["distribution"]:
        bins = _bins_from_mapping(record["distribution"])
    else:
        bins = []

    if not bins:
        return WeightDistribution(status=DistributionStatus.NO_DATA)

    return WeightDistribution(
        status=DistributionStatus.OK,
        bins=bins,
        target_weight=parse_numeric(source.get("target_weight")),
        lower_cap=parse_numeric(source.get("lower_cap")),
        upper_cap=parse_numeric(source.get("upper_cap")),
    )


def selected_pair(selected_cultivations: list[str],
                  visible_strategies: list[str]) -> tuple[str | None, str | None]:
    """The single cultivation/strategy pair, when exactly one of each is active."""
    cultivation = selected_cultivations[0] if len(selected_cultivations) == 1 else None
    strategy = visible_strategies[0] if len(visible_strategies) == 1 else None
    return cultivation, strategy
