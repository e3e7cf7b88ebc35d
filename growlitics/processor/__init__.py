"""Data processor package for the Growlitics KPI pipeline."""

from .aggregate import aggregate, kpi_fields, summarize_efficiency
from .colors import assign_colors, colors_for, is_optimized
from .dashboard import Dashboard
from .distribution import build_distribution
from .energy import (
    available_weeks,
    build_cumulative_series,
    build_daily_metric_series,
    build_energy_index,
    build_weekly_series,
    coerce_energy_index,
    iso_week_number,
    week_start,
)
from .ingestion import (
    FetchError,
    LoadResult,
    decode_strategies_param,
    fetch_gist,
    fetch_json,
    load_dashboard_data,
    params_from_url,
    split_payload,
)
from .normalize import CULTIVATION_KEYS, normalize
from .series import build_series
