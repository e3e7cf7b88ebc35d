"""Color assigner - stable display colors per strategy name.

Rules:
- A name containing "optimized" (any case) always gets palette[0].
- Other names are ranked by profit (highest first) when profits are given,
  alphabetically otherwise; ties fall back to alphabetical order.
- Ranked names take palette colors in order, starting after palette[0]
  when an optimized strategy holds it, wrapping around when they run out.

The mapping depends only on the set of names (and their profits), never on
input order.
"""

from collections.abc import Iterable, Mapping

from growlitics.schema.design_system import COLOR_PALETTE


OPTIMIZED_MARKER = "optimized"


def is_optimized(name: str) -> bool:
    return OPTIMIZED_MARKER in name.lower()


def assign_colors(names: Iterable[str],
                  profits: Mapping[str, float] | None = None,
                  palette=COLOR_PALETTE) -> dict[str, str]:
    """Map each strategy name to a hex color.

    Args:
        names: Strategy names; order and duplicates are irrelevant.
        profits: Optional ranking metric per name.  Missing names rank as 0.
        palette: Ordered colors, first entry reserved for the optimized
            strategy.

    Returns:
        Dict mapping name -> hex color.
    """
    unique = sorted({n for n in names if n})
    if not unique:
        return {}

    optimized = next((n for n in unique if is_optimized(n)), None)
    others = [n for n in unique if n != optimized]

    if profits is not None:
        others.sort(key=lambda n: (-float(profits.get(n) or 0.0), n))

    colors = list(palette)
    if optimized is not None and len(colors) > 1:
        colors = colors[1:]

    result = {name: colors[i % len(colors)] for i, name in enumerate(others)}
    if optimized is not None:
        result[optimized] = palette[0]
    return result


def colors_for(aggregated: list[dict], profit_field: str = "profit",
               palette=COLOR_PALETTE) -> dict[str, str]:
    """Profit-ranked colors for an aggregated KPI list."""
    profits = {row["name"]: float(row.get(profit_field) or 0.0)
               for row in aggregated}
    return assign_colors(profits.keys(), profits, palette)
