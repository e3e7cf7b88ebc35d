"""Config loader - YAML serialization and deserialization for DashboardConfig.

Provides round-trip save/load so KPI domains, palette, and rounding policy
can be reviewed and version-controlled as human-readable YAML.
"""

from pathlib import Path

import yaml

from .config import DashboardConfig, apply_environment


def save_config(config: DashboardConfig, path: str | Path) -> None:
    """Serialize a DashboardConfig to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(dump_config(config))


def dump_config(config: DashboardConfig) -> str:
    """Render a DashboardConfig as YAML text."""
    return yaml.dump(config.to_dict(), default_flow_style=False,
                     sort_keys=False, allow_unicode=True, width=120)


def load_config(path: str | Path, environ=None) -> DashboardConfig:
    """Deserialize a DashboardConfig from a YAML file.

    An empty file yields the built-in defaults.
    """
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return apply_environment(DashboardConfig.from_dict(data), environ)
