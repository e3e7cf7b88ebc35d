"""Tests for data source resolution (parameters, remote JSON, gists)."""

import base64
import json
from unittest.mock import MagicMock
from urllib.parse import quote

import pytest
import requests

from growlitics.processor.ingestion import (
    GIST_API_URL,
    FetchError,
    LoadResult,
    decode_strategies_param,
    fetch_gist,
    fetch_json,
    load_dashboard_data,
    looks_like_url,
    params_from_url,
    parse_batches,
    parse_data_param,
    split_payload,
)
from growlitics.schema.config import DashboardConfig
from growlitics.schema.defaults import DEFAULT_STRATEGIES


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def payload():
    return {
        "C1": [{"name": "Default", "profit": 10},
               {"name": "Optimized", "profit": 15}],
    }


@pytest.fixture
def config():
    return DashboardConfig(fetch_timeout=3.0)


def _session(body=None, error=None, json_error=None):
    """A requests.Session stand-in whose GET returns *body*."""
    session = MagicMock()
    response = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return session


def _gist(content):
    return {"files": {"kpis.json": {"content": content}}}


# ---------------------------------------------------------------------------
# Parameter decoding
# ---------------------------------------------------------------------------

class TestDecodeStrategies:
    def test_percent_encoded(self, payload):
        assert decode_strategies_param(quote(json.dumps(payload))) == payload

    def test_plain_json(self, payload):
        assert decode_strategies_param(json.dumps(payload)) == payload

    def test_base64(self, payload):
        encoded = base64.b64encode(json.dumps(payload).encode()).decode()
        assert decode_strategies_param(encoded) == payload

    def test_base64_without_padding(self):
        encoded = base64.b64encode(b'[{"name": "AB"}]').decode().rstrip("=")
        assert decode_strategies_param(encoded) == [{"name": "AB"}]

    def test_garbage(self):
        assert decode_strategies_param("%%%") is None

    def test_scalar_json_rejected(self):
        assert decode_strategies_param("42") is None


class TestParams:
    def test_parse_data_param(self):
        assert parse_data_param('{"C1": []}') == {"C1": []}
        assert parse_data_param("{oops") is None

    def test_looks_like_url(self):
        assert looks_like_url("https://example.com/kpis.json")
        assert looks_like_url(" http://host/x ")
        assert not looks_like_url('{"a": 1}')
        assert not looks_like_url("ftp://host/x")

    def test_parse_batches(self):
        assert parse_batches("a, b,,c ") == ["a", "b", "c"]
        assert parse_batches(None) == []
        assert parse_batches("") == []

    def test_params_from_url(self):
        params = params_from_url("https://dash.example/?strategies=abc&batches=a,b&gist=")
        assert params == {"strategies": "abc", "batches": "a,b", "gist": ""}

    def test_params_from_url_first_value(self):
        assert params_from_url("https://x/?gist=1&gist=2") == {"gist": "1"}


# ---------------------------------------------------------------------------
# Remote fetch
# ---------------------------------------------------------------------------

class TestFetch:
    def test_fetch_json(self, payload):
        session = _session(payload)
        assert fetch_json("https://x/kpis.json", 4.0, session) == payload
        session.get.assert_called_once_with("https://x/kpis.json", timeout=4.0)

    def test_network_error(self):
        session = _session(error=requests.ConnectionError("down"))
        with pytest.raises(FetchError, match="Failed to fetch"):
            fetch_json("https://x/kpis.json", session=session)

    def test_http_error(self):
        session = _session({})
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("404")
        with pytest.raises(FetchError):
            fetch_json("https://x/kpis.json", session=session)

    def test_invalid_json(self):
        session = _session(json_error=ValueError("bad"))
        with pytest.raises(FetchError, match="Invalid JSON"):
            fetch_json("https://x/kpis.json", session=session)

    def test_fetch_gist(self, payload):
        session = _session(_gist(json.dumps(payload)))
        assert fetch_gist("abc123", session=session) == payload
        session.get.assert_called_once_with(
            GIST_API_URL.format(gist_id="abc123"), timeout=10.0
        )

    def test_gist_without_files(self):
        with pytest.raises(FetchError, match="no files"):
            fetch_gist("abc", session=_session({"files": {}}))

    def test_gist_files_not_a_mapping(self):
        with pytest.raises(FetchError, match="no files"):
            fetch_gist("abc", session=_session({"files": ["x"]}))

    def test_gist_empty_content(self):
        with pytest.raises(FetchError, match="empty"):
            fetch_gist("abc", session=_session(_gist("")))

    def test_gist_not_json(self):
        with pytest.raises(FetchError, match="not JSON"):
            fetch_gist("abc", session=_session(_gist("<html>")))


# ---------------------------------------------------------------------------
# Payload splitting
# ---------------------------------------------------------------------------

class TestSplitPayload:
    def test_bundled_energy(self, payload):
        bundled = dict(payload, energyData={"C1": {"2024-05-06": {"2024-05-06": {"Default": 2}}}})
        store, energy = split_payload(bundled)
        assert store == payload
        assert energy["C1"]["2024-05-06"]["2024-05-06"]["Default"]["cost"] == 2.0

    def test_energy_from_daily(self):
        store, energy = split_payload(
            {"C1": [{"name": "A", "daily": [{"date": "2024-05-07", "cost": 1}]}]}
        )
        assert list(energy["C1"]) == ["2024-05-06"]

    def test_list_payload(self):
        store, energy = split_payload([{"cultivation": "C1", "name": "A"}])
        assert store == {"C1": [{"name": "A"}]}
        assert energy == {}


# ---------------------------------------------------------------------------
# load_dashboard_data
# ---------------------------------------------------------------------------

class TestLoadDashboardData:
    def test_no_params_default(self):
        result = load_dashboard_data({}, DashboardConfig())
        assert isinstance(result, LoadResult)
        assert result.is_default
        assert result.store is DEFAULT_STRATEGIES
        assert result.warnings == []

    def test_strategies_param(self, payload, config):
        session = _session()
        result = load_dashboard_data({"strategies": quote(json.dumps(payload))},
                                     config, session)
        assert result.source == "strategies"
        assert result.store == payload
        session.get.assert_not_called()

    def test_strategies_wins_over_data(self, payload, config):
        params = {"strategies": quote(json.dumps(payload)),
                  "data": json.dumps({"Other": [{"name": "X"}]})}
        result = load_dashboard_data(params, config)
        assert list(result.store) == ["C1"]

    def test_bad_strategies_falls_through(self, payload, config):
        params = {"strategies": "%%%", "data": json.dumps(payload)}
        result = load_dashboard_data(params, config)
        assert result.source == "data"
        assert any("strategies" in w for w in result.warnings)

    def test_inline_data(self, payload, config):
        result = load_dashboard_data({"data": json.dumps(payload)}, config)
        assert result.source == "data"
        assert result.store == payload

    def test_data_url_value_fetched(self, payload, config):
        session = _session(payload)
        result = load_dashboard_data({"data": "https://x/kpis.json"}, config, session)
        assert result.source == "data"
        session.get.assert_called_once_with("https://x/kpis.json", timeout=3.0)

    @pytest.mark.parametrize("key", ["data_url", "dataUrl"])
    def test_data_url_params(self, key, payload, config):
        session = _session(payload)
        result = load_dashboard_data({key: "https://x/kpis.json"}, config, session)
        assert result.source == "data_url"
        assert result.store == payload

    def test_configured_data_url(self, payload):
        config = DashboardConfig(data_url="https://x/default.json")
        session = _session(payload)
        result = load_dashboard_data({}, config, session)
        assert result.source == "data_url"

    def test_gist_param(self, payload, config):
        session = _session(_gist(json.dumps(payload)))
        result = load_dashboard_data({"gist": "abc"}, config, session)
        assert result.source == "gist"
        assert result.store == payload

    def test_configured_gist(self, payload):
        config = DashboardConfig(gist_id="cfg")
        session = _session(_gist(json.dumps(payload)))
        result = load_dashboard_data({}, config, session)
        assert result.source == "gist"
        url = session.get.call_args[0][0]
        assert url == GIST_API_URL.format(gist_id="cfg")

    def test_fetch_failure_falls_back_to_default(self, config):
        session = _session(error=requests.Timeout("slow"))
        result = load_dashboard_data({"data_url": "https://x/kpis.json"},
                                     config, session)
        assert result.is_default
        assert result.store is DEFAULT_STRATEGIES
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("data_url:")

    def test_empty_payload_falls_through(self, config):
        result = load_dashboard_data({"data": "[]"}, config)
        assert result.is_default
        assert "data: no usable KPI records" in result.warnings

    def test_batches_carried(self, payload, config):
        result = load_dashboard_data({"data": json.dumps(payload), "batches": "B1,B2"},
                                     config)
        assert result.batches == ["B1", "B2"]

    def test_default_energy_index(self):
        result = load_dashboard_data()
        assert result.energy == {}

    def test_malformed_gist_falls_back_to_default(self, config):
        session = _session({"files": ["x"]})
        result = load_dashboard_data({"gist": "abc"}, config, session)
        assert result.is_default
        assert any("no files" in w for w in result.warnings)
