"""Tests for Opinion indicator parsing and OpinionClient fetch handling."""

from unittest.mock import MagicMock

import httpx
import pytest

from arbmonitor.models import Platform
from arbmonitor.opinion_client import OpinionClient, parse_opinion_markets, to_float


# --- Fixtures ---

def _make_child(topic_id=1001, title="25 bps decrease", yes="0.41", no="0.61", volume="125000", status=2):
    return {
        "topicId": topic_id,
        "title": title,
        "yesMarketPrice": yes,
        "noMarketPrice": no,
        "volume": volume,
        "status": status,
    }


def _make_indicator(children=None, title="US FOMC Interest Rate", period="MAR", country="US"):
    if children is None:
        children = [_make_child()]
    return {
        "title": title,
        "period": period,
        "countryCode": country,
        "topic": {"childList": children},
    }


def _mock_response(payload):
    resp = MagicMock()
    resp.raise_for_status = MagicMock()
    resp.json.return_value = payload
    return resp


# --- to_float ---

class TestToFloat:
    @pytest.mark.parametrize("value, expected", [
        ("0.42", 0.42),
        (0.42, 0.42),
        (3, 3.0),
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
        ({}, 0.0),
    ])
    def test_lenient_parse(self, value, expected):
        assert to_float(value) == expected


# --- parse_opinion_markets ---

class TestParseOpinionMarkets:
    def test_single_option(self):
        markets = parse_opinion_markets([_make_indicator()])
        assert len(markets) == 1
        m = markets[0]
        assert m.platform == Platform.OPINION
        assert m.id == "1001"
        assert m.title == "25 bps decrease"
        assert m.parent_title == "US FOMC Interest Rate"
        assert m.full_title == "US FOMC Interest Rate MAR - 25 bps decrease"
        assert m.period == "MAR"
        assert m.country_code == "US"
        assert m.yes_price == 0.41
        assert m.no_price == 0.61
        assert m.volume == 125000.0
        assert {"fed", "25bps", "decrease", "mar", "us"} <= m.keywords

    def test_inactive_options_skipped(self):
        children = [_make_child(1, status=2), _make_child(2, status=3), _make_child(3, status=2)]
        markets = parse_opinion_markets([_make_indicator(children)])
        assert [m.id for m in markets] == ["1", "3"]

    def test_malformed_numbers_become_zero(self):
        children = [_make_child(yes="n/a", no=None, volume="")]
        m = parse_opinion_markets([_make_indicator(children)])[0]
        assert m.yes_price == 0.0
        assert m.no_price == 0.0
        assert m.volume == 0.0

    def test_missing_topic(self):
        assert parse_opinion_markets([{"title": "X", "period": "JAN"}]) == []

    def test_multiple_indicators_flattened(self):
        ecb = _make_indicator(
            [_make_child(2001, "No change")], title="ECB Rates Decision (DFR)", period="DEC", country="EU",
        )
        markets = parse_opinion_markets([_make_indicator(), ecb])
        assert [m.id for m in markets] == ["1001", "2001"]
        assert "ecb" in markets[1].keywords


# --- OpinionClient ---

class TestOpinionClient:
    def _client(self, payload=None, error=None):
        client = OpinionClient()
        client._http = MagicMock()
        if error is not None:
            client._http.get.side_effect = error
        else:
            client._http.get.return_value = _mock_response(payload)
        return client

    def test_get_all_markets(self):
        client = self._client({"errno": 0, "result": {"list": [_make_indicator()]}})
        markets = client.get_all_markets()
        assert len(markets) == 1
        _, kwargs = client._http.get.call_args
        assert kwargs["params"]["chainId"] == 56
        assert kwargs["params"]["limit"] == 100

    def test_api_error_returns_empty(self):
        client = self._client({"errno": 10403, "errmsg": "region blocked"})
        assert client.get_all_markets() == []

    def test_http_error_returns_empty(self):
        client = self._client(error=httpx.ConnectError("boom"))
        assert client.get_all_markets() == []

    def test_bad_status_returns_empty(self):
        client = self._client({"errno": 0})
        client._http.get.return_value.raise_for_status.side_effect = httpx.HTTPError("503")
        assert client.fetch_indicators() == []

    def test_missing_result_returns_empty(self):
        client = self._client({"errno": 0, "result": None})
        assert client.fetch_indicators() == []
