"""Dashboard state - selection handling and derived-value recomputation.

``Dashboard`` owns the current CultivationKpiStore, its energy index, and the
SelectionState, and recomputes every derived value (aggregated KPIs, color
map, radar rows) whenever either changes.  Consumers receive those values
explicitly; nothing is shared through globals.

Loads are guarded by a generation counter: only the result of the most
recent :meth:`Dashboard.begin_load` is applied, so a slow response cannot
overwrite a newer one.

Usage::

    dashboard = Dashboard(config)
    token = dashboard.begin_load()
    dashboard.apply_load(token, load_dashboard_data(params, config))
    dashboard.toggle_cultivation("2024-5, Vak 12, Baltica")
    payload = dashboard.snapshot()
"""

from growlitics.schema.config import DashboardConfig
from growlitics.schema.defaults import DEFAULT_STRATEGIES
from growlitics.schema.models import SelectionState, WeightDistribution
from growlitics.shared.logger import get_logger

from .aggregate import aggregate, summarize_efficiency
from .colors import colors_for
from .distribution import build_distribution, selected_pair
from .energy import (
    available_weeks,
    build_cumulative_series,
    build_daily_metric_series,
    build_energy_index,
    build_weekly_series,
    week_label,
)
from .ingestion import LoadResult
from .normalize import strategy_names
from .series import build_series

logger = get_logger(__name__)


class Dashboard:
    """Holds the KPI store and selection, and the values derived from them.

    Args:
        config: DashboardConfig; built-in defaults when omitted.
        store: Initial CultivationKpiStore; the default dataset when omitted.
        energy: Energy index for *store*; built from its daily records when
            omitted.
    """

    def __init__(self, config: DashboardConfig | None = None,
                 store: dict | None = None, energy: dict | None = None):
        self.config = config or DashboardConfig()
        self._generation = 0
        self.batches: list[str] = []
        self.source = "default"
        self._replace(store if store is not None else DEFAULT_STRATEGIES, energy)

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def begin_load(self) -> int:
        """Start a load; returns the token to pass to :meth:`apply_load`."""
        self._generation += 1
        return self._generation

    def apply_load(self, token: int, result: LoadResult) -> bool:
        """Replace the store with *result* unless a newer load has started.

        Returns:
            True when applied, False when *token* is stale.
        """
        if token != self._generation:
            logger.info("Discarding stale load %d (current %d)",
                        token, self._generation)
            return False
        for warning in result.warnings:
            logger.warning("%s", warning)
        self.batches = list(result.batches)
        self.source = result.source
        self._replace(result.store, result.energy)
        return True

    def load(self, result: LoadResult) -> bool:
        """Apply *result* as a fresh load."""
        return self.apply_load(self.begin_load(), result)

    def _replace(self, store: dict, energy: dict | None) -> None:
        self.store = store
        self.energy = energy if energy is not None else build_energy_index(store)
        self.selection = SelectionState.initial(
            list(store), self.config.default_selection_size
        )
        self._recompute()

    # -------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------

    @property
    def cultivations(self) -> list[str]:
        return list(self.store)

    def toggle_cultivation(self, name: str) -> None:
        if name not in self.store:
            raise KeyError(f"Unknown cultivation: {name!r}")
        self.selection.toggle_cultivation(name)
        self._recompute()

    def toggle_strategy(self, name: str) -> None:
        self.selection.toggle_strategy(name)

    def select(self, cultivations: list[str]) -> None:
        """Replace the cultivation selection."""
        unknown = [c for c in cultivations if c not in self.store]
        if unknown:
            raise KeyError(f"Unknown cultivation(s): {', '.join(map(repr, unknown))}")
        self.selection.selected_cultivations = list(dict.fromkeys(cultivations))
        self._recompute()

    def hide(self, strategies: list[str]) -> None:
        for name in strategies:
            if self.selection.is_visible(name):
                self.selection.toggle_strategy(name)

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------

    def _recompute(self) -> None:
        selected = self.selection.selected_cultivations
        self.aggregated = aggregate(self.store, selected, self.config)
        self.selection.sync_strategies([row["name"] for row in self.aggregated])
        self.color_map = colors_for(self.aggregated, self.config.profit_field,
                                    self.config.palette)
        self.chart_rows = build_series(self.aggregated, self.config)

    @property
    def visible_strategies(self) -> list[str]:
        return [row["name"] for row in self.aggregated
                if self.selection.is_visible(row["name"])]

    @property
    def all_strategies(self) -> list[str]:
        return strategy_names(self.store)

    def weeks(self) -> list[str]:
        return available_weeks(self.energy, self.selection.selected_cultivations)

    def weekly(self, week: str | None = None) -> list[dict]:
        """Weekly energy rows; defaults to the first available week."""
        if week is None:
            weeks = self.weeks()
            if not weeks:
                return []
            week = weeks[0]
        return build_weekly_series(self.energy, self.selection.selected_cultivations,
                                   week, self.visible_strategies)

    def cumulative(self) -> dict[str, list[tuple[int, float]]]:
        return build_cumulative_series(self.energy,
                                       self.selection.selected_cultivations,
                                       self.visible_strategies)

    def daily_metric(self, week: str, metric="energy") -> list[dict]:
        return build_daily_metric_series(self.store,
                                         self.selection.selected_cultivations,
                                         self.visible_strategies, week, metric)

    def efficiency(self) -> dict:
        return summarize_efficiency(self.store,
                                    self.selection.selected_cultivations,
                                    self.visible_strategies,
                                    self.config.efficiency_precision)

    def distribution(self, cultivation: str | None = None,
                     strategy: str | None = None) -> WeightDistribution:
        """Weight distribution for an explicit pair, or the single active one."""
        if cultivation is None and strategy is None:
            cultivation, strategy = selected_pair(
                self.selection.selected_cultivations, self.visible_strategies
            )
        return build_distribution(self.store, cultivation, strategy)

    # -------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------

    def snapshot(self) -> dict:
        """JSON-safe payload of the current state and derived values."""
        return {
            "source": self.source,
            "batches": list(self.batches),
            "cultivations": self.cultivations,
            "selection": self.selection.to_dict(),
            "aggregated": [dict(row) for row in self.aggregated],
            "colors": dict(self.color_map),
            "radar": [dict(row) for row in self.chart_rows],
            "efficiency": self.efficiency(),
            "weeks": [{"week": w, "label": week_label(w)} for w in self.weeks()],
        }
