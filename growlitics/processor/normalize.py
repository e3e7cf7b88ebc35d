"""Record normalizer - turns raw KPI payloads into a CultivationKpiStore.

Accepted input shapes:
- JSON text of any shape below
- Flat list of records carrying a cultivation-like key
  (``cultivation``, ``cultivation_name``, ``cultivationName``, ``batch``,
  ``batch_name``, ``batchName``)
- Flat list without such a key (one "All Cultivations" group)
- Canonical mapping ``{cultivation: [record, ...]}`` (passed through)
- Pre-indexed mapping ``{"cultivations": [...], "kpis": {"c|s": record}}``

Anything else falls back to the built-in default dataset.  Failures are
logged, never raised.
"""

import json
from typing import Any

from growlitics.schema.defaults import DEFAULT_CULTIVATION, DEFAULT_STRATEGIES
from growlitics.shared.logger import get_logger

logger = get_logger(__name__)


CULTIVATION_KEYS = (
    "cultivation",
    "cultivation_name",
    "cultivationName",
    "batch",
    "batch_name",
    "batchName",
)


# ---------------------------------------------------------------------------
# Shape detection
# ---------------------------------------------------------------------------

def detect_cultivation_key(records: list) -> str | None:
    """First candidate key for which any record holds a string value."""
    for key in CULTIVATION_KEYS:
        if any(isinstance(r, dict) and isinstance(r.get(key), str)
               for r in records):
            return key
    return None


def is_canonical(raw: Any) -> bool:
    """True when *raw* is a mapping of string to list."""
    return (
        isinstance(raw, dict)
        and all(isinstance(k, str) and isinstance(v, list)
                for k, v in raw.items())
    )


def _is_indexed(raw: dict) -> bool:
    return isinstance(raw.get("kpis"), dict) and isinstance(
        raw.get("cultivations"), list
    )


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def _strategy_record(item: dict, drop_key: str | None = None) -> dict:
    """Copy a flat record, stripping the grouping key and aliasing ``strategy``."""
    record = {k: v for k, v in item.items() if k != drop_key}
    if "name" not in record and "strategy" in record:
        record["name"] = record.pop("strategy")
    return record


def group_records(records: list) -> dict[str, list[dict]]:
    """Group a flat record list by its detected cultivation key."""
    items = []
    for i, item in enumerate(records):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object record at index %d: %r", i, item)
            continue
        items.append(item)

    key = detect_cultivation_key(items)
    if key is None:
        return {DEFAULT_CULTIVATION: [_strategy_record(item) for item in items]}

    grouped: dict[str, list[dict]] = {}
    for item in items:
        value = item.get(key)
        cultivation = value if isinstance(value, str) else DEFAULT_CULTIVATION
        grouped.setdefault(cultivation, []).append(_strategy_record(item, key))
    return grouped


def _from_index(raw: dict) -> dict[str, list[dict]]:
    """Rebuild the canonical store from a ``c|s``-keyed KPI index."""
    store: dict[str, list[dict]] = {str(c): [] for c in raw["cultivations"]}
    for composite, record in raw["kpis"].items():
        if not isinstance(record, dict) or "|" not in str(composite):
            logger.warning("Skipping malformed KPI index entry %r", composite)
            continue
        cultivation, strategy = str(composite).split("|", 1)
        entry = dict(record)
        entry.setdefault("name", strategy)
        store.setdefault(cultivation, []).append(entry)
    return store


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def normalize(raw: Any) -> dict[str, list[dict]]:
    """Normalize any supported input shape into a CultivationKpiStore.

    ``normalize(normalize(x)) == normalize(x)`` for every input.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError) as err:
            logger.warning("Failed to parse KPI payload: %s", err)
            return DEFAULT_STRATEGIES

    if raw is None:
        return DEFAULT_STRATEGIES

    if isinstance(raw, list):
        if not raw:
            logger.warning("Empty KPI record list, using default dataset")
            return DEFAULT_STRATEGIES
        return group_records(raw)

    if isinstance(raw, dict):
        if not raw:
            logger.warning("Empty KPI payload, using default dataset")
            return DEFAULT_STRATEGIES
        if is_canonical(raw):
            return raw
        if _is_indexed(raw):
            return _from_index(raw)
        kept = {k: v for k, v in raw.items()
                if isinstance(k, str) and isinstance(v, list)}
        dropped = sorted(str(k) for k in raw if k not in kept)
        if dropped:
            logger.warning("Ignoring non-list payload entries: %s",
                           ", ".join(dropped))
        if kept:
            return kept
        logger.warning("No cultivation groups in KPI payload, "
                       "using default dataset")
        return DEFAULT_STRATEGIES

    logger.warning("Unsupported KPI payload type %s, using default dataset",
                   type(raw).__name__)
    return DEFAULT_STRATEGIES


def find_record(store: dict[str, list[dict]], cultivation: str,
                strategy: str) -> dict | None:
    """First record named *strategy* within *cultivation*."""
    for record in store.get(cultivation) or []:
        if isinstance(record, dict) and record.get("name") == strategy:
            return record
    return None


def strategy_names(store: dict[str, list[dict]],
                   cultivations: list[str] | None = None) -> list[str]:
    """Distinct strategy names in first-encounter order."""
    keys = list(store) if cultivations is None else cultivations
    seen: dict[str, None] = {}
    for c in keys:
        for record in store.get(c) or []:
            if isinstance(record, dict) and record.get("name") is not None:
                seen.setdefault(str(record["name"]), None)
    return list(seen)
