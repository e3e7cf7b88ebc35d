"""Data ingestion - resolves dashboard input sources into a KPI store.

Sources, tried in order (first one that yields data wins):
- ``strategies`` parameter: percent-encoded or base64 JSON
- ``data`` parameter: inline JSON, or a URL to fetch
- ``data_url`` / ``dataUrl`` parameter, then the configured data URL
- ``gist`` parameter, then the configured gist id (first file's content)
- Built-in default dataset

Every failure is logged and recorded as a warning; nothing here raises on
bad input.  HTTP goes through ``requests`` with the configured timeout.
"""

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

import requests

from growlitics.schema.config import DashboardConfig
from growlitics.schema.defaults import DEFAULT_STRATEGIES
from growlitics.shared.logger import get_logger

from .energy import build_energy_index, coerce_energy_index
from .normalize import normalize

logger = get_logger(__name__)


GIST_API_URL = "https://api.github.com/gists/{gist_id}"

ENERGY_FIELDS = (
    "daily_energy_cost",
    "energy_cost_daily",
    "energyData",
    "dailyEnergyCost",
)

DATA_URL_PARAMS = ("data_url", "dataUrl")


class FetchError(Exception):
    """A remote JSON document could not be fetched or parsed."""


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass
class LoadResult:
    """Output of :func:`load_dashboard_data`."""
    store: dict[str, list[dict]]
    energy: dict = field(default_factory=dict)
    source: str = "default"
    batches: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_default(self) -> bool:
        return self.source == "default"


# ---------------------------------------------------------------------------
# Parameter decoding
# ---------------------------------------------------------------------------

def _percent_decode(value: str) -> str:
    return unquote(value)


def _base64_decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.b64decode(padded, validate=True).decode("utf-8")


_DECODERS = (
    ("percent", _percent_decode),
    ("base64", _base64_decode),
)


def decode_strategies_param(value: str) -> Any:
    """Decode the ``strategies`` parameter.

    Percent-decoding is tried before base64; the first decoding that yields
    a JSON array or object wins.  Returns None when none does.
    """
    for label, decode in _DECODERS:
        try:
            parsed = json.loads(decode(value))
        except (ValueError, binascii.Error, UnicodeDecodeError):
            logger.debug("strategies parameter is not %s-encoded JSON", label)
            continue
        if isinstance(parsed, (list, dict)):
            return parsed
    logger.warning("Failed to parse strategies parameter")
    return None


def parse_data_param(value: str) -> Any:
    """Parse an inline JSON ``data`` parameter; None on failure."""
    try:
        return json.loads(_percent_decode(value))
    except ValueError as err:
        logger.warning("Failed to parse data parameter: %s", err)
        return None


def looks_like_url(value: str) -> bool:
    return urlsplit(value.strip()).scheme in ("http", "https")


def parse_batches(value: str | None) -> list[str]:
    """Split a comma-separated ``batches`` parameter."""
    if not value:
        return []
    return [b.strip() for b in value.split(",") if b.strip()]


def params_from_url(url: str) -> dict[str, str]:
    """Query parameters of *url*, keeping the first value of each."""
    query = urlsplit(url).query
    return {k: v[0] for k, v in parse_qs(query, keep_blank_values=True).items()}


# ---------------------------------------------------------------------------
# Remote fetch
# ---------------------------------------------------------------------------

def fetch_json(url: str, timeout: float = 10.0, session=None) -> Any:
    """GET *url* and decode its JSON body.

    Raises:
        FetchError: On network errors, non-2xx status, or invalid JSON.
    """
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as err:
        raise FetchError(f"Failed to fetch {url}: {err}") from err
    except ValueError as err:
        raise FetchError(f"Invalid JSON from {url}: {err}") from err


def fetch_gist(gist_id: str, timeout: float = 10.0, session=None) -> Any:
    """Fetch a gist and parse its first file's content as JSON.

    Raises:
        FetchError: When the gist cannot be fetched, has no files, or its
            first file is not JSON.
    """
    gist = fetch_json(GIST_API_URL.format(gist_id=gist_id), timeout, session)
    files = gist.get("files") if isinstance(gist, dict) else None
    if not isinstance(files, dict) or not files:
        raise FetchError(f"Gist {gist_id} has no files")
    first = next(iter(files.values()))
    content = first.get("content") if isinstance(first, dict) else None
    if not content:
        raise FetchError(f"Gist {gist_id} first file is empty")
    try:
        return json.loads(content)
    except ValueError as err:
        raise FetchError(f"Gist {gist_id} is not JSON: {err}") from err


# ---------------------------------------------------------------------------
# Payload splitting
# ---------------------------------------------------------------------------

def split_payload(parsed: Any) -> tuple[dict[str, list[dict]], dict]:
    """Separate KPI records from bundled energy series.

    Objects may carry the energy index under any of :data:`ENERGY_FIELDS`
    (first present wins); otherwise it is built from the records' ``daily``
    entries.
    """
    energy_raw = None
    if isinstance(parsed, dict):
        energy_raw = next(
            (parsed[k] for k in ENERGY_FIELDS if parsed.get(k) is not None), None
        )
        parsed = {k: v for k, v in parsed.items() if k not in ENERGY_FIELDS}

    store = normalize(parsed)
    energy = coerce_energy_index(energy_raw)
    if energy is None:
        energy = build_energy_index(store)
    return store, energy


# ---------------------------------------------------------------------------
# Source resolution
# ---------------------------------------------------------------------------

def _result(parsed: Any, source: str, batches, warnings) -> LoadResult | None:
    if parsed is None:
        return None
    store, energy = split_payload(parsed)
    if store is DEFAULT_STRATEGIES:
        warnings.append(f"{source}: no usable KPI records")
        return None
    return LoadResult(store=store, energy=energy, source=source,
                      batches=batches, warnings=warnings)


def _try_fetch(fetch, source: str, warnings: list[str]) -> Any:
    try:
        return fetch()
    except FetchError as err:
        logger.warning("%s", err)
        warnings.append(f"{source}: {err}")
        return None


def load_dashboard_data(params: Mapping[str, str] | None = None,
                        config: DashboardConfig | None = None,
                        session=None) -> LoadResult:
    """Resolve the dashboard's KPI store from request parameters.

    Args:
        params: Query parameters (``strategies``, ``data``, ``data_url``,
            ``dataUrl``, ``gist``, ``batches``).
        config: Supplies fetch timeout and fallback data URL / gist id.
        session: Optional ``requests.Session`` (or compatible) for fetches.

    Returns:
        LoadResult; ``source`` names the input that won, ``"default"`` when
        every source failed or none was given.
    """
    params = params or {}
    config = config or DashboardConfig()
    timeout = config.fetch_timeout
    batches = parse_batches(params.get("batches"))
    warnings: list[str] = []

    raw = params.get("strategies")
    if raw:
        parsed = decode_strategies_param(raw)
        if parsed is None:
            warnings.append("strategies: could not decode parameter")
        result = _result(parsed, "strategies", batches, warnings)
        if result:
            return result

    raw = params.get("data")
    if raw:
        if looks_like_url(raw):
            parsed = _try_fetch(lambda: fetch_json(raw, timeout, session),
                                "data", warnings)
        else:
            parsed = parse_data_param(raw)
            if parsed is None:
                warnings.append("data: could not parse parameter")
        result = _result(parsed, "data", batches, warnings)
        if result:
            return result

    url = next((params[k] for k in DATA_URL_PARAMS if params.get(k)), None)
    url = url or config.data_url
    if url:
        parsed = _try_fetch(lambda: fetch_json(url, timeout, session),
                            "data_url", warnings)
        result = _result(parsed, "data_url", batches, warnings)
        if result:
            return result

    gist_id = params.get("gist") or config.gist_id
    if gist_id:
        parsed = _try_fetch(lambda: fetch_gist(gist_id, timeout, session),
                            "gist", warnings)
        result = _result(parsed, "gist", batches, warnings)
        if result:
            return result

    return LoadResult(store=DEFAULT_STRATEGIES,
                      energy=build_energy_index(DEFAULT_STRATEGIES),
                      source="default", batches=batches, warnings=warnings)


SOURCE_PARAMS = ("strategies", "data", *DATA_URL_PARAMS, "gist", "batches")
