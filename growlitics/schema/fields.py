"""Field aliases and numeric coercion for KPI records.

Upstream exports spell the same KPI several ways (``profit`` vs
``profit_per_m2``, four names for the harvested weight).  Every consumer
resolves fields through :data:`FIELD_ALIASES` instead of branching on
spellings locally.

Coercion rules:
    42, 42.0, "42"      -> 42.0
    None, "", "abc"     -> default (0.0)
    NaN, inf, True      -> default (0.0)
"""

import math
import numbers
from typing import Any


# ---------------------------------------------------------------------------
# Alias table
# ---------------------------------------------------------------------------

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "bonus_penalty": ("bonus_penalty",),
    "profit": ("profit", "profit_per_m2"),
    "profit_per_m2": ("profit_per_m2", "profit"),
    "energy_cost": ("energy_cost",),
    "weight_achieved": ("weight_achieved", "weight", "total_weight",
                        "harvest_weight_g"),
    "base_revenue_a": ("base_revenue_a",),
    "base_revenue_b": ("base_revenue_b",),
}

# Aggregated numeric fields, in output order.  ``profit`` is swapped for
# ``profit_per_m2`` when that is the active profit metric.
KPI_FIELD_KEYS = (
    "bonus_penalty",
    "profit",
    "energy_cost",
    "weight_achieved",
    "base_revenue_a",
    "base_revenue_b",
    "base_revenue",
)

PROFIT_FIELDS = ("profit", "profit_per_m2")


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------

def parse_numeric(value: Any) -> float | None:
    """Parse a KPI value into a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        f = float(value)
        return f if math.isfinite(f) else None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce *value* to a float, falling back to *default*."""
    parsed = parse_numeric(value)
    return default if parsed is None else parsed


def resolve_field(record: dict, field_name: str, default: float = 0.0) -> float:
    """Resolve a logical field through its alias list.

    The first alias holding a numeric value wins; aliases that are present
    but non-numeric are skipped.
    """
    for key in FIELD_ALIASES.get(field_name, (field_name,)):
        parsed = parse_numeric(record.get(key))
        if parsed is not None:
            return parsed
    return default


def record_base_revenue(record: dict) -> float:
    """Explicit ``base_revenue`` when present, else ``a + b``."""
    if record.get("base_revenue") is not None:
        return to_number(record.get("base_revenue"))
    return to_number(record.get("base_revenue_a")) + to_number(
        record.get("base_revenue_b")
    )


def round_half_up(value: float, precision: int) -> float:
    """Round half-up on ``value * 10**precision``, then scale back."""
    factor = 10 ** precision
    return math.floor(value * factor + 0.5) / factor


def first_present(mapping: dict, keys: tuple[str, ...] | list[str]) -> Any:
    """Return the first value under *keys* that is not None."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None
