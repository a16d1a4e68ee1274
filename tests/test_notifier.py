"""Tests for Telegram message formatting and sending."""

from unittest.mock import MagicMock

import httpx

from arbmonitor.config import Settings
from arbmonitor.economics import get_full_analysis
from arbmonitor.models import ArbType, MarketRecord, MatchedPair, Opportunity, Platform
from arbmonitor.notifier import (
    TelegramNotifier,
    format_opportunity_message,
    format_status_message,
    format_summary_message,
)


# --- Fixtures ---

def _make_analyzed(title="25 bps decrease", op_id="1001"):
    om = MarketRecord(
        platform=Platform.OPINION, id=op_id, title=title,
        parent_title="US FOMC Interest Rate", volume=150_000,
    )
    pm = MarketRecord(
        platform=Platform.POLYMARKET, id="pm1", title=title,
        event_slug="fed-decision-in-march", volume=200_000,
    )
    opp = Opportunity(
        type=ArbType.OPINION_YES_POLY_NO,
        pair=MatchedPair(opinion=om, polymarket=pm, match_score=10, match_reason="manual mapping"),
        opinion_side="YES",
        polymarket_side="NO",
        opinion_price=0.40,
        polymarket_price=0.50,
        total_cost=0.90,
        profit=0.10,
        profit_percent=11.11,
        description="Buy Opinion YES @0.400 + Buy Polymarket NO @0.500",
    )
    return get_full_analysis(opp)


def _make_notifier(max_details=3, ok=True):
    notifier = TelegramNotifier("TOKEN", "42", max_details=max_details, spacing_seconds=0)
    notifier._http = MagicMock()
    resp = MagicMock()
    resp.json.return_value = {"ok": ok, "result": {}}
    notifier._http.post.return_value = resp
    return notifier


# --- Formatting ---

class TestFormatting:
    def test_opportunity_message(self):
        text = format_opportunity_message(_make_analyzed())
        assert "US FOMC Interest Rate" in text
        assert "buy <b>YES</b> @ <code>0.4000</code>" in text
        assert "buy <b>NO</b> @ <code>0.5000</code>" in text
        assert "11.11%" in text
        assert "https://app.opinion.trade/topic/1001" in text
        assert "https://polymarket.com/event/fed-decision-in-march" in text
        assert "HIGH" in text

    def test_html_escaped(self):
        text = format_opportunity_message(_make_analyzed(title="<50 bps & more>"))
        assert "&lt;50 bps &amp; more&gt;" in text

    def test_summary_empty(self):
        assert format_summary_message([]) is None

    def test_summary_truncates(self):
        items = [_make_analyzed(op_id=str(i)) for i in range(7)]
        text = format_summary_message(items)
        assert text.startswith("🎰 <b>7 arbitrage opportunities found!</b>")
        assert "5. 25 bps decrease" in text
        assert "6. " not in text
        assert "... and 2 more" in text

    def test_summary_singular(self):
        assert "1 arbitrage opportunity found" in format_summary_message([_make_analyzed()])

    def test_status_message_defaults(self):
        text = format_status_message({"uptime": "1h 2m", "scan_count": 5})
        assert "1h 2m" in text
        assert "Scans: 5" in text
        assert "none yet" in text
        assert "not started" in text


# --- Sending ---

class TestTelegramNotifier:
    def test_disabled_without_credentials(self):
        notifier = TelegramNotifier("", "")
        notifier._http = MagicMock()
        assert notifier.enabled is False
        assert notifier.send_message("hi") is None
        notifier._http.post.assert_not_called()

    def test_send_message_payload(self):
        notifier = _make_notifier()
        result = notifier.send_message("hello")
        assert result == {"ok": True, "result": {}}
        args, kwargs = notifier._http.post.call_args
        assert args[0] == "https://api.telegram.org/botTOKEN/sendMessage"
        assert kwargs["json"]["chat_id"] == "42"
        assert kwargs["json"]["parse_mode"] == "HTML"
        assert kwargs["json"]["disable_web_page_preview"] is True

    def test_send_message_api_error_still_returns_result(self):
        notifier = _make_notifier(ok=False)
        assert notifier.send_message("hello") == {"ok": False, "result": {}}

    def test_send_message_http_error(self):
        notifier = _make_notifier()
        notifier._http.post.side_effect = httpx.ConnectError("down")
        assert notifier.send_message("hello") is None

    def test_send_message_non_object_body(self):
        notifier = _make_notifier()
        notifier._http.post.return_value.json.return_value = ["not", "an", "object"]
        assert notifier.send_message("hello") is None

    def test_get_updates_non_object_body(self):
        notifier = _make_notifier()
        resp = MagicMock()
        resp.json.return_value = "oops"
        notifier._http.get.return_value = resp
        assert notifier.get_updates() == []

    def test_notify_opportunities_limits_details(self):
        notifier = _make_notifier(max_details=3)
        items = [_make_analyzed(op_id=str(i)) for i in range(5)]
        sent = notifier.notify_opportunities(items)
        assert sent == 3
        assert notifier._http.post.call_count == 4   # summary + 3 details

    def test_notify_opportunities_empty(self):
        notifier = _make_notifier()
        assert notifier.notify_opportunities([]) == 0
        notifier._http.post.assert_not_called()

    def test_notify_startup(self):
        notifier = _make_notifier()
        notifier.notify_startup(Settings())
        _, kwargs = notifier._http.post.call_args
        assert "≤97¢" in kwargs["json"]["text"]
        assert "30s" in kwargs["json"]["text"]

    def test_notify_error_escapes(self):
        notifier = _make_notifier()
        notifier.notify_error(ValueError("bad <thing>"))
        _, kwargs = notifier._http.post.call_args
        assert "bad &lt;thing&gt;" in kwargs["json"]["text"]

    def test_get_updates(self):
        notifier = _make_notifier()
        resp = MagicMock()
        resp.json.return_value = {"ok": True, "result": [{"update_id": 7}]}
        notifier._http.get.return_value = resp
        assert notifier.get_updates(offset=5) == [{"update_id": 7}]
        _, kwargs = notifier._http.get.call_args
        assert kwargs["params"]["offset"] == 5

    def test_get_updates_disabled(self):
        notifier = TelegramNotifier("", "")
        assert notifier.get_updates() == []
