"""Tests for environment-driven settings."""

import pytest

from arbmonitor.config import (
    FEE_RATE,
    MAX_NOTIFICATIONS_PER_CYCLE,
    NOTIFICATION_COOLDOWN_MS,
    POLL_INTERVAL_MS,
    THRESHOLD,
    Settings,
    load_settings,
)


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings({})
        assert s.threshold == THRESHOLD
        assert s.fee_rate == FEE_RATE
        assert s.poll_interval_ms == POLL_INTERVAL_MS
        assert s.notification_cooldown_ms == NOTIFICATION_COOLDOWN_MS
        assert s.max_notifications_per_cycle == MAX_NOTIFICATIONS_PER_CYCLE
        assert s.telegram_enabled is False

    def test_values_parsed(self):
        s = load_settings({
            "ARBITRAGE_THRESHOLD": "0.95",
            "FEE_RATE": "0.01",
            "ARBITRAGE_POLL_INTERVAL": "60000",
            "NOTIFICATION_COOLDOWN": "120000",
            "MAX_NOTIFICATIONS": "5",
            "MIN_PROFIT_PERCENT": "2.5",
            "TELEGRAM_BOT_TOKEN": " abc:123 ",
            "TELEGRAM_CHAT_ID": "42",
        })
        assert s.threshold == 0.95
        assert s.fee_rate == 0.01
        assert s.poll_interval_ms == 60000
        assert s.notification_cooldown_ms == 120000
        assert s.max_notifications_per_cycle == 5
        assert s.min_profit_percent == 2.5
        assert s.telegram_bot_token == "abc:123"
        assert s.telegram_enabled is True

    @pytest.mark.parametrize("raw", ["", "abc", "0", "nan"])
    def test_bad_threshold_falls_back(self, raw):
        assert load_settings({"ARBITRAGE_THRESHOLD": raw}).threshold == THRESHOLD

    @pytest.mark.parametrize("raw", ["", "soon", "0", "1.5"])
    def test_bad_interval_falls_back(self, raw):
        assert load_settings({"ARBITRAGE_POLL_INTERVAL": raw}).poll_interval_ms == POLL_INTERVAL_MS


class TestSettings:
    def test_telegram_needs_both_fields(self):
        assert Settings(telegram_bot_token="t").telegram_enabled is False
        assert Settings(telegram_chat_id="c").telegram_enabled is False
        assert Settings(telegram_bot_token="t", telegram_chat_id="c").telegram_enabled is True
