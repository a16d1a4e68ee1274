"""Tests for Telegram bot command handling."""

from unittest.mock import MagicMock

import pytest

from arbmonitor.commands import CommandHandler
from arbmonitor.config import Settings
from arbmonitor.runner import ScanStats


# --- Fixtures ---

def _update(update_id, text, chat_id=42):
    return {"update_id": update_id, "message": {"text": text, "chat": {"id": chat_id}}}


def _make_handler(updates=None):
    notifier = MagicMock()
    notifier.get_updates.return_value = updates or []
    settings = Settings(telegram_bot_token="TOKEN", telegram_chat_id="42")
    stats = ScanStats(scan_count=12, total_opportunities=3, notifications_sent=2,
                      opinion_markets=40, polymarket_markets=300, matched_pairs=9)
    return CommandHandler(notifier, settings, stats)


# --- dispatch ---

class TestDispatch:
    @pytest.mark.parametrize("text, marker", [
        ("/arb_status", "Arbitrage monitor status"),
        ("/arb_markets", "Matched pairs: 9"),
        ("/arb_threshold", "Current threshold: ≤<b>97¢</b>"),
        ("/arb_help", "Commands:"),
        ("/arb", "Commands:"),
    ])
    def test_commands(self, text, marker):
        assert marker in _make_handler().dispatch(text)

    def test_unknown_command(self):
        assert _make_handler().dispatch("/start") is None

    def test_status_reports_stats(self):
        reply = _make_handler().dispatch("/arb_status")
        assert "Scans: 12" in reply
        assert "Opportunities found: 3" in reply
        assert "Fee rate: 2%" in reply

    def test_status_escapes_last_opportunity(self):
        handler = _make_handler()
        handler.stats.last_opportunity = "<25 bps & more>"
        reply = handler.dispatch("/arb_status")
        assert "&lt;25 bps &amp; more&gt;" in reply
        assert "<25 bps" not in reply

    def test_prefix_with_bot_suffix(self):
        assert "Matched pairs" in _make_handler().dispatch("/arb_markets@my_bot")


# --- check / init ---

class TestCheck:
    def test_answers_configured_chat(self):
        handler = _make_handler([_update(5, "/arb_status")])
        assert handler.check() == 1
        handler.notifier.get_updates.assert_called_once_with(offset=1)
        handler.notifier.send_message.assert_called_once()
        assert handler.last_update_id == 5

    def test_ignores_other_chats(self):
        handler = _make_handler([_update(6, "/arb_status", chat_id=999)])
        assert handler.check() == 0
        handler.notifier.send_message.assert_not_called()
        assert handler.last_update_id == 6

    def test_ignores_plain_text_and_empty(self):
        handler = _make_handler([_update(7, "hello"), {"update_id": 8}])
        assert handler.check() == 0
        assert handler.last_update_id == 8

    def test_no_updates(self):
        handler = _make_handler()
        assert handler.check() == 0
        assert handler.last_update_id == 0

    def test_init_skips_backlog(self):
        handler = _make_handler([_update(3, "/arb"), _update(4, "/arb_status")])
        handler.init()
        assert handler.last_update_id == 4
        handler.notifier.get_updates.assert_called_with(offset=5)
        handler.notifier.send_message.assert_not_called()
