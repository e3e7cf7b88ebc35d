"""Design system utilities - strategy palette and value formatting.

Formatting rules used by the CLI tables:
- Euro amounts: €X.X (€X.XXX below one euro)
- Plain KPI values: X.X
- Ratios (€/kWh, kWh/g, €/g): X.XXX
- Missing values: N/A
"""

import math


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

# Ordered by profit rank; the first entry is reserved for the optimized
# strategy.
COLOR_PALETTE = (
    "#FFD700",
    "#2ca02c",
    "#d62728",
    "#1f77b4",
    "#ff7f0e",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#17becf",
)

# Weight-bin categories in the distribution chart.
CATEGORY_COLORS = {
    "A": "#f44336",
    "B": "#ff9800",
    "C": "#4caf50",
    "D": "#2196f3",
}

FALLBACK_COLOR = "#999999"


def category_color(category: str | None) -> str:
    """Color for a weight-bin category, grey when unknown."""
    if category is None:
        return FALLBACK_COLOR
    return CATEGORY_COLORS.get(str(category).upper(), FALLBACK_COLOR)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_euro(value: float | int | None) -> str:
    if _missing(value):
        return "N/A"
    sign = "-" if value < 0 else ""
    v = abs(value)
    if 0 < v < 1:
        return f"{sign}€{v:.3f}"
    return f"{sign}€{v:,.1f}"


def format_kpi(value: float | int | None) -> str:
    """Format a KPI value with one decimal."""
    if _missing(value):
        return "N/A"
    return f"{value:.1f}"


def format_ratio(value: float | int | None) -> str:
    """Format an efficiency ratio with three decimals."""
    if _missing(value):
        return "N/A"
    return f"{value:.3f}"


# Which formatter the summary table applies to each KPI field.
FIELD_FORMATS = {
    "bonus_penalty": format_kpi,
    "profit": format_euro,
    "profit_per_m2": format_euro,
    "energy_cost": format_euro,
    "weight_achieved": format_kpi,
    "base_revenue_a": format_euro,
    "base_revenue_b": format_euro,
    "base_revenue": format_euro,
    "euro_per_kwh": format_ratio,
    "kwh_per_gram": format_ratio,
    "euro_per_gram": format_ratio,
}


def format_field(field_name: str, value) -> str:
    """Format a value by KPI field name."""
    if isinstance(value, str):
        return value
    return FIELD_FORMATS.get(field_name, format_kpi)(value)
