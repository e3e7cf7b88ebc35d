"""CLI entry point for Growlitics KPI.

Loads a KPI payload (local file, URL parameters, remote JSON, or gist),
applies a cultivation/strategy selection, and prints the derived chart data.

Usage::

    # Averaged KPIs and strategy colors for the built-in sample data
    python -m growlitics.cli summary

    # Same, from a local export, selecting two cultivations
    python -m growlitics.cli summary --input data/kpis.json \\
        --select "2024-5, Vak 11, Serenity" --select "2024-5, Vak 12, Baltica"

    # Radar rows from a dashboard link
    python -m growlitics.cli radar --url "https://dash.example/?strategies=..."

    # Weekly / cumulative energy cost
    python -m growlitics.cli energy --input data/kpis.json --week 2024-05-06
    python -m growlitics.cli energy --input data/kpis.json --mode cumulative

    # Check a payload against the store invariants
    python -m growlitics.cli validate --input data/kpis.json

    # Dump the effective configuration
    python -m growlitics.cli config > growlitics.yaml
"""

import argparse
import json
import sys
from pathlib import Path

from growlitics.processor.dashboard import Dashboard
from growlitics.processor.energy import week_label
from growlitics.processor.ingestion import (
    LoadResult,
    load_dashboard_data,
    params_from_url,
    split_payload,
)
from growlitics.qa.validator import validate_store
from growlitics.schema.config import build_default_config
from growlitics.schema.design_system import format_field
from growlitics.schema.fields import PROFIT_FIELDS
from growlitics.schema.loader import dump_config, load_config
from growlitics.schema.models import EnergyMetric, EnergyMode
from growlitics.shared.logger import setup_logging


# ---------------------------------------------------------------------------
# Config and data loading
# ---------------------------------------------------------------------------

def _load_config(args):
    """Load a DashboardConfig from CLI args (--config or built-in)."""
    path = getattr(args, "config", None)
    if path:
        p = Path(path)
        if not p.exists():
            _error(f"Config file not found: {p}")
        try:
            config = load_config(p)
        except ValueError as err:
            _error(str(err))
    else:
        config = build_default_config(getattr(args, "profit_field", None) or "profit")
    return config


def _source_params(args):
    """Collect dashboard query parameters from --url and explicit flags."""
    params = params_from_url(args.url) if getattr(args, "url", None) else {}
    for flag, param in (("strategies", "strategies"), ("data", "data"),
                        ("data_url", "data_url"), ("gist", "gist"),
                        ("batches", "batches")):
        value = getattr(args, flag, None)
        if value:
            params[param] = value
    return params


def _load_data(args, config):
    """Resolve the KPI payload: --input file first, then URL-style sources."""
    path = getattr(args, "input", None)
    if path:
        p = Path(path)
        if not p.exists():
            _error(f"Data file not found: {p}")
        try:
            parsed = json.loads(p.read_text(encoding="utf-8"))
        except ValueError as err:
            _error(f"Invalid JSON in {p}: {err}")
        _info(f"Loading KPI records from {p}")
        store, energy = split_payload(parsed)
        return LoadResult(store=store, energy=energy, source=str(p))

    result = load_dashboard_data(_source_params(args), config)
    for w in result.warnings:
        _warn(w)
    if result.is_default:
        _info("Using built-in default dataset")
    else:
        _info(f"Loaded KPI records from {result.source}")
    return result


def _build_dashboard(args):
    """Build a Dashboard with the selection requested on the command line."""
    config = _load_config(args)
    dashboard = Dashboard(config)
    dashboard.load(_load_data(args, config))

    if getattr(args, "select", None):
        try:
            dashboard.select(args.select)
        except KeyError as err:
            _error(f"{err.args[0]}. Available: {', '.join(dashboard.cultivations)}")
    if getattr(args, "hide", None):
        dashboard.hide(args.hide)
    return dashboard


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_summary(args):
    """Print averaged KPIs per strategy with their colors."""
    dashboard = _build_dashboard(args)
    if args.json:
        _write(args, {
            "aggregated": dashboard.aggregated,
            "colors": dashboard.color_map,
            "efficiency": dashboard.efficiency(),
        })
        return

    rows = dashboard.aggregated
    if not rows:
        _warn("No strategies in the current selection")
        return
    fields = [k for k in rows[0] if k != "name"]
    header = ["strategy", "color", *fields]
    table = [header]
    for row in rows:
        table.append([row["name"], dashboard.color_map.get(row["name"], "")]
                     + [format_field(f, row[f]) for f in fields])
    widths = [max(len(str(r[i])) for r in table) for i in range(len(header))]
    lines = ["  ".join(str(cell).ljust(w) for cell, w in zip(r, widths)).rstrip()
             for r in table]
    _write_text(args, "\n".join(lines))


def cmd_radar(args):
    """Print radar chart rows (scaled and raw value per strategy)."""
    dashboard = _build_dashboard(args)
    _write(args, {
        "rows": dashboard.chart_rows,
        "colors": dashboard.color_map,
        "visible": dashboard.visible_strategies,
    })


def cmd_energy(args):
    """Print weekly or cumulative energy cost series."""
    dashboard = _build_dashboard(args)
    mode = EnergyMode(args.mode)

    if mode == EnergyMode.CUMULATIVE:
        series = dashboard.cumulative()
        _write(args, {
            "mode": mode.value,
            "series": {s: [list(p) for p in points] for s, points in series.items()},
        })
        return

    weeks = dashboard.weeks()
    week = args.week or (weeks[0] if weeks else None)
    if week is None:
        _warn("No energy data for the selected cultivations")
        _write(args, {"mode": mode.value, "week": None, "days": []})
        return
    payload = {
        "mode": mode.value,
        "week": week,
        "label": week_label(week),
        "weeks": weeks,
        "days": dashboard.weekly(week),
    }
    if args.metric:
        payload["line"] = {
            "metric": args.metric,
            "days": dashboard.daily_metric(week, args.metric),
        }
    _write(args, payload)


def cmd_distribution(args):
    """Print the weight distribution for one cultivation and strategy."""
    dashboard = _build_dashboard(args)
    dist = dashboard.distribution(args.cultivation, args.strategy)
    if not dist.has_data:
        _warn(f"No distribution data ({dist.status.value})")
    _write(args, dist.to_dict())


def cmd_validate(args):
    """Validate a KPI payload against the store invariants."""
    config = _load_config(args)
    result = _load_data(args, config)
    qa = validate_store(result.store, check_fields=not args.skip_fields)
    print(qa.report())
    sys.exit(0 if qa.passed else 1)


def cmd_inspect(args):
    """Show cultivations, strategies, and energy weeks in a payload."""
    dashboard = _build_dashboard(args)

    print(f"Source:        {dashboard.source}")
    print(f"Cultivations:  {len(dashboard.cultivations)}")
    for c in dashboard.cultivations:
        mark = "*" if c in dashboard.selection.selected_cultivations else " "
        print(f"  {mark} {c}")
    print(f"Strategies:    {', '.join(dashboard.all_strategies) or '-'}")
    weeks = dashboard.weeks()
    print(f"Energy weeks:  {len(weeks)}")
    if args.verbose:
        for w in weeks:
            print(f"    {w}  {week_label(w)}")
    if dashboard.batches:
        print(f"Batches:       {', '.join(dashboard.batches)}")


def cmd_config(args):
    """Print the effective configuration as YAML."""
    config = _load_config(args)
    _write_text(args, dump_config(config).rstrip())


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _write(args, payload):
    _write_text(args, json.dumps(payload, indent=2, ensure_ascii=False))


def _write_text(args, text):
    output = getattr(args, "output", None)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        _info(f"Written: {path}")
    else:
        print(text)


def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="growlitics",
        description="Aggregate cultivation strategy KPIs into chart data.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for pipeline diagnostics (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- summary ----
    summ = subparsers.add_parser(
        "summary",
        help="Averaged KPIs per strategy, with colors.",
    )
    _add_common_args(summ)
    summ.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Emit JSON instead of a table.",
    )
    summ.set_defaults(func=cmd_summary)

    # ---- radar ----
    radar = subparsers.add_parser(
        "radar",
        help="Radar chart rows (scaled and raw values).",
    )
    _add_common_args(radar)
    radar.set_defaults(func=cmd_radar)

    # ---- energy ----
    energy = subparsers.add_parser(
        "energy",
        help="Weekly or cumulative energy cost series.",
    )
    _add_common_args(energy)
    energy.add_argument(
        "--mode",
        choices=[m.value for m in EnergyMode],
        default=EnergyMode.WEEKLY.value,
        help="Series mode (default: weekly).",
    )
    energy.add_argument(
        "--week",
        help="Week start date, YYYY-MM-DD (default: first available week).",
    )
    energy.add_argument(
        "--metric",
        choices=[m.value for m in EnergyMetric],
        help="Also emit the daily energy price or radiation line.",
    )
    energy.set_defaults(func=cmd_energy)

    # ---- distribution ----
    dist = subparsers.add_parser(
        "distribution",
        help="Harvest-weight distribution for one cultivation/strategy.",
    )
    _add_common_args(dist)
    dist.add_argument("--cultivation", help="Cultivation name.")
    dist.add_argument("--strategy", help="Strategy name.")
    dist.set_defaults(func=cmd_distribution)

    # ---- validate ----
    val = subparsers.add_parser(
        "validate",
        help="Check a KPI payload against the store invariants.",
    )
    _add_config_args(val)
    _add_data_args(val)
    val.add_argument(
        "--skip-fields",
        action="store_true",
        default=False,
        help="Only check structure, not individual KPI fields.",
    )
    val.set_defaults(func=cmd_validate)

    # ---- inspect ----
    insp = subparsers.add_parser(
        "inspect",
        help="Show cultivations, strategies, and energy weeks.",
    )
    _add_common_args(insp)
    insp.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="List every energy week.",
    )
    insp.set_defaults(func=cmd_inspect)

    # ---- config ----
    conf = subparsers.add_parser(
        "config",
        help="Print the effective configuration as YAML.",
    )
    _add_config_args(conf)
    conf.add_argument("-o", "--output", help="Write to a file instead of stdout.")
    conf.set_defaults(func=cmd_config)

    return parser


def _add_common_args(parser):
    _add_config_args(parser)
    _add_data_args(parser)
    _add_selection_args(parser)
    parser.add_argument(
        "-o", "--output",
        help="Write output to a file instead of stdout.",
    )


def _add_config_args(parser):
    """Add --config / --profit-field args to a subparser."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--config",
        help="Path to a YAML configuration file.",
    )
    group.add_argument(
        "--profit-field",
        dest="profit_field",
        choices=list(PROFIT_FIELDS),
        help="Profit metric to aggregate (default: profit).",
    )


def _add_data_args(parser):
    """Add data source arguments."""
    data = parser.add_argument_group("data sources")
    data.add_argument(
        "--input",
        help="Local JSON file with KPI records.",
    )
    data.add_argument(
        "--url",
        help="Dashboard link whose query parameters name the data source.",
    )
    data.add_argument(
        "--strategies",
        help="Percent-encoded or base64 JSON KPI payload.",
    )
    data.add_argument(
        "--data",
        help="Inline JSON payload, or a URL to fetch it from.",
    )
    data.add_argument(
        "--data-url",
        dest="data_url",
        help="URL of a JSON KPI payload.",
    )
    data.add_argument(
        "--gist",
        help="GitHub gist id whose first file holds the payload.",
    )
    data.add_argument(
        "--batches",
        help="Comma-separated batch names to carry along.",
    )


def _add_selection_args(parser):
    """Add --select / --hide args."""
    sel = parser.add_argument_group("selection")
    sel.add_argument(
        "--select",
        action="append",
        metavar="CULTIVATION",
        help="Cultivation to include (repeatable; default: configured policy).",
    )
    sel.add_argument(
        "--hide",
        action="append",
        metavar="STRATEGY",
        help="Strategy to hide from energy series (repeatable).",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
