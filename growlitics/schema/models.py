"""Data models - the contract between normalizer, aggregator, and chart builders.

The store itself stays JSON-shaped (``dict[str, list[dict]]``) so payloads
round-trip untouched; the dataclasses here give typed views over records,
selection state, and derived results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .fields import resolve_field, to_number


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DistributionStatus(Enum):
    """Outcome of a weight-distribution lookup."""
    OK = "ok"
    NO_SELECTION = "no_selection"    # Not exactly one cultivation + strategy
    NO_DATA = "no_data"              # Record found but no bins


class EnergyMetric(Enum):
    """Daily metrics plotted on the energy line chart."""
    ENERGY_PRICE = "energy"
    RADIATION = "radiation"


class EnergyMode(Enum):
    """Energy cost chart modes."""
    WEEKLY = "weekly"
    CUMULATIVE = "cumulative"


# ---------------------------------------------------------------------------
# KPI metric definition
# ---------------------------------------------------------------------------

@dataclass
class KpiMetric:
    """One radar axis: the KPI field, its label, and its display domain."""
    key: str
    label: str
    domain: tuple[float, float]

    def scale(self, value: float) -> float:
        """Map *value* into the domain's unit interval (not clamped)."""
        lo, hi = self.domain
        return (value - lo) / (hi - lo)

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label,
                "domain": [self.domain[0], self.domain[1]]}

    @classmethod
    def from_dict(cls, d: dict) -> "KpiMetric":
        lo, hi = d["domain"]
        return cls(key=d["key"], label=d["label"], domain=(float(lo), float(hi)))


# ---------------------------------------------------------------------------
# Strategy KPI record
# ---------------------------------------------------------------------------

@dataclass
class StrategyKPI:
    """Typed view over one strategy's KPI record within a cultivation."""
    name: str
    bonus_penalty: float = 0.0
    profit: float = 0.0
    energy_cost: float = 0.0
    weight_achieved: float = 0.0
    base_revenue_a: float = 0.0
    base_revenue_b: float = 0.0
    base_revenue: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def total_base_revenue(self) -> float:
        """Explicit base revenue, or the sum of its two components."""
        if self.base_revenue is not None:
            return self.base_revenue
        return self.base_revenue_a + self.base_revenue_b

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "name": self.name,
            "bonus_penalty": self.bonus_penalty,
            "profit": self.profit,
            "energy_cost": self.energy_cost,
            "weight_achieved": self.weight_achieved,
            "base_revenue_a": self.base_revenue_a,
            "base_revenue_b": self.base_revenue_b,
        }
        if self.base_revenue is not None:
            d["base_revenue"] = self.base_revenue
        d.update(self.extra)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "StrategyKPI":
        known = {
            "name", "bonus_penalty", "profit", "profit_per_m2", "energy_cost",
            "weight_achieved", "weight", "total_weight", "harvest_weight_g",
            "base_revenue_a", "base_revenue_b", "base_revenue",
        }
        explicit = d.get("base_revenue")
        return cls(
            name=str(d.get("name", "")),
            bonus_penalty=to_number(d.get("bonus_penalty")),
            profit=resolve_field(d, "profit"),
            energy_cost=to_number(d.get("energy_cost")),
            weight_achieved=resolve_field(d, "weight_achieved"),
            base_revenue_a=to_number(d.get("base_revenue_a")),
            base_revenue_b=to_number(d.get("base_revenue_b")),
            base_revenue=None if explicit is None else to_number(explicit),
            extra={k: v for k, v in d.items() if k not in known},
        )


# ---------------------------------------------------------------------------
# Selection state
# ---------------------------------------------------------------------------

@dataclass
class SelectionState:
    """Which cultivations are selected and which strategies are visible."""
    selected_cultivations: list[str] = field(default_factory=list)
    visible: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def initial(cls, cultivations: list[str],
                size: int | None = None) -> "SelectionState":
        """Fresh selection: the first *size* cultivations (all when None)."""
        keys = list(cultivations)
        if size is not None:
            keys = keys[:size]
        return cls(selected_cultivations=keys, visible={})

    def toggle_cultivation(self, name: str) -> None:
        if name in self.selected_cultivations:
            self.selected_cultivations = [
                c for c in self.selected_cultivations if c != name
            ]
        else:
            self.selected_cultivations = self.selected_cultivations + [name]

    def toggle_strategy(self, name: str) -> None:
        self.visible = {**self.visible, name: not self.visible.get(name, True)}

    def sync_strategies(self, names: list[str]) -> None:
        """Make newly seen strategies visible; keep earlier choices."""
        vis = dict(self.visible)
        for name in names:
            vis.setdefault(name, True)
        self.visible = vis

    def is_visible(self, name: str) -> bool:
        return self.visible.get(name, True)

    def visible_strategies(self) -> list[str]:
        return [name for name, on in self.visible.items() if on]

    def to_dict(self) -> dict:
        return {"selected_cultivations": list(self.selected_cultivations),
                "visible": dict(self.visible)}


# ---------------------------------------------------------------------------
# Weight distribution
# ---------------------------------------------------------------------------

@dataclass
class WeightDistribution:
    """Histogram of harvested-plant weights for one cultivation/strategy."""
    status: DistributionStatus
    bins: list[dict[str, Any]] = field(default_factory=list)
    target_weight: float | None = None
    lower_cap: float | None = None
    upper_cap: float | None = None

    @property
    def has_data(self) -> bool:
        return self.status == DistributionStatus.OK

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "bins": [dict(b) for b in self.bins],
            "target_weight": self.target_weight,
            "lower_cap": self.lower_cap,
            "upper_cap": self.upper_cap,
        }
