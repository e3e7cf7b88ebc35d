"""Schema package - typed models and configuration for the KPI pipeline.

- models.py: Dataclasses (KpiMetric, StrategyKPI, SelectionState, ...)
- fields.py: Field alias table and numeric coercion
- config.py: DashboardConfig and the default radar axes
- defaults.py: Built-in sample dataset
- design_system.py: Palette and value formatting
- loader.py: YAML serialization/deserialization of DashboardConfig
"""

from .config import (
    DashboardConfig,
    apply_environment,
    build_default_config,
    build_default_metrics,
)
from .defaults import DEFAULT_CULTIVATION, DEFAULT_STRATEGIES
from .design_system import (
    CATEGORY_COLORS,
    COLOR_PALETTE,
    category_color,
    format_euro,
    format_field,
    format_kpi,
    format_ratio,
)
from .fields import (
    FIELD_ALIASES,
    KPI_FIELD_KEYS,
    parse_numeric,
    record_base_revenue,
    resolve_field,
    round_half_up,
    to_number,
)
from .loader import dump_config, load_config, save_config
from .models import (
    DistributionStatus,
    EnergyMetric,
    EnergyMode,
    KpiMetric,
    SelectionState,
    StrategyKPI,
    WeightDistribution,
)

__all__ = [
    # Models
    "DistributionStatus",
    "EnergyMetric",
    "EnergyMode",
    "KpiMetric",
    "SelectionState",
    "StrategyKPI",
    "WeightDistribution",
    # Config
    "DashboardConfig",
    "apply_environment",
    "build_default_config",
    "build_default_metrics",
    "dump_config",
    "load_config",
    "save_config",
    # Data
    "DEFAULT_CULTIVATION",
    "DEFAULT_STRATEGIES",
    # Fields
    "FIELD_ALIASES",
    "KPI_FIELD_KEYS",
    "parse_numeric",
    "record_base_revenue",
    "resolve_field",
    "round_half_up",
    "to_number",
    # Formatting
    "CATEGORY_COLORS",
    "COLOR_PALETTE",
    "category_color",
    "format_euro",
    "format_field",
    "format_kpi",
    "format_ratio",
]
