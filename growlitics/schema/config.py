"""Dashboard configuration - KPI axes, palette, and pipeline policies.

One ``DashboardConfig`` is built per session, either from the built-in
defaults or from a YAML file (see loader.py).  Environment variables
override the data sources:

    GROWLITICS_GIST_ID   gist to fetch when no other source is given
    GROWLITICS_DATA_URL  JSON document to fetch when no other source is given
"""

import os
from dataclasses import dataclass, field

from .design_system import COLOR_PALETTE
from .fields import PROFIT_FIELDS
from .models import KpiMetric


# ---------------------------------------------------------------------------
# Radar axes
# ---------------------------------------------------------------------------

def build_default_metrics(profit_field: str = "profit") -> list[KpiMetric]:
    """The five radar axes, in display order.

    The per-m² profile plots weight from zero instead of from 20.
    """
    weight_min = 0.0 if profit_field == "profit_per_m2" else 20.0
    return [
        KpiMetric("bonus_penalty", "Bonus/Penalty", (-3.0, 5.0)),
        KpiMetric(profit_field, "Profit", (0.0, 50.0)),
        KpiMetric("energy_cost", "Energy Cost", (0.0, 8.0)),
        KpiMetric("weight_achieved", "Weight", (weight_min, 100.0)),
        KpiMetric("base_revenue", "Base Revenue", (0.0, 35.0)),
    ]


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class DashboardConfig:
    """Settings shared by every stage of the pipeline."""
    profit_field: str = "profit"
    precision: int = 1
    efficiency_precision: int = 3
    default_selection_size: int | None = None   # None = all cultivations
    fetch_timeout: float = 10.0
    gist_id: str | None = None
    data_url: str | None = None
    palette: list[str] = field(default_factory=lambda: list(COLOR_PALETTE))
    metrics: list[KpiMetric] | None = None     # None = axes for profit_field

    def __post_init__(self):
        if self.profit_field not in PROFIT_FIELDS:
            raise ValueError(
                f"Unknown profit field '{self.profit_field}'. "
                f"Valid fields: {', '.join(PROFIT_FIELDS)}"
            )
        if not self.palette:
            raise ValueError("Palette must contain at least one color")
        if self.metrics is None:
            self.metrics = build_default_metrics(self.profit_field)
        for metric in self.metrics:
            lo, hi = metric.domain
            if hi == lo:
                raise ValueError(f"Empty domain for metric '{metric.key}'")

    def metric(self, key: str) -> KpiMetric | None:
        for m in self.metrics:
            if m.key == key:
                return m
        return None

    def to_dict(self) -> dict:
        d = {
            "profit_field": self.profit_field,
            "precision": self.precision,
            "efficiency_precision": self.efficiency_precision,
            "default_selection_size": self.default_selection_size,
            "fetch_timeout": self.fetch_timeout,
            "palette": list(self.palette),
            "metrics": [m.to_dict() for m in self.metrics],
        }
        if self.gist_id:
            d["gist_id"] = self.gist_id
        if self.data_url:
            d["data_url"] = self.data_url
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "DashboardConfig":
        profit_field = d.get("profit_field", "profit")
        metrics = d.get("metrics")
        return cls(
            profit_field=profit_field,
            precision=int(d.get("precision", 1)),
            efficiency_precision=int(d.get("efficiency_precision", 3)),
            default_selection_size=d.get("default_selection_size"),
            fetch_timeout=float(d.get("fetch_timeout", 10.0)),
            gist_id=d.get("gist_id"),
            data_url=d.get("data_url"),
            palette=list(d.get("palette") or COLOR_PALETTE),
            metrics=(
                [KpiMetric.from_dict(m) for m in metrics]
                if metrics else build_default_metrics(profit_field)
            ),
        )


def build_default_config(profit_field: str = "profit",
                         environ=None) -> DashboardConfig:
    """Built-in configuration with environment overrides applied."""
    env = os.environ if environ is None else environ
    config = DashboardConfig(
        profit_field=profit_field,
        metrics=build_default_metrics(profit_field),
    )
    return apply_environment(config, env)


def apply_environment(config: DashboardConfig, environ=None) -> DashboardConfig:
    """Fill unset data sources from ``GROWLITICS_*`` environment variables."""
    env = os.environ if environ is None else environ
    if not config.gist_id and env.get("GROWLITICS_GIST_ID"):
        config.gist_id = env["GROWLITICS_GIST_ID"]
    if not config.data_url and env.get("GROWLITICS_DATA_URL"):
        config.data_url = env["GROWLITICS_DATA_URL"]
    return config
