"""Telegram bot commands: /arb_help, /arb_status, /arb_markets, /arb_threshold."""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Callable

from arbmonitor.config import Settings
from arbmonitor.notifier import TelegramNotifier

if TYPE_CHECKING:
    from arbmonitor.runner import ScanStats

log = logging.getLogger(__name__)


class CommandHandler:
    """
    Polls getUpdates and answers commands from the configured chat only.

    Telegram confirms updates by requesting offset = last update_id + 1,
    so last_update_id is tracked across polls.
    """

    def __init__(self, notifier: TelegramNotifier, settings: Settings, stats: "ScanStats") -> None:
        self.notifier = notifier
        self.settings = settings
        self.stats = stats
        self.last_update_id = 0
        # Longer prefixes first: "/arb" alone must not shadow "/arb_status"
        self._handlers: list[tuple[str, Callable[[], str]]] = [
            ("/arb_status", self.status_text),
            ("/arb_markets", self.markets_text),
            ("/arb_threshold", self.threshold_text),
            ("/arb_help", self.help_text),
            ("/arb", self.help_text),
        ]

    def init(self) -> None:
        """Skip any backlog so old commands are not answered on startup."""
        updates = self.notifier.get_updates()
        if updates:
            self.last_update_id = updates[-1]["update_id"]
            self.notifier.get_updates(offset=self.last_update_id + 1)
            log.info("Commands: cleared %d old updates", len(updates))

    def check(self) -> int:
        """Process pending updates. Returns the number of commands answered."""
        updates = self.notifier.get_updates(offset=self.last_update_id + 1)
        if not updates:
            return 0
        self.last_update_id = updates[-1]["update_id"]

        answered = 0
        for update in updates:
            message = update.get("message") or {}
            text = (message.get("text") or "").strip()
            if not text:
                continue
            chat_id = str((message.get("chat") or {}).get("id", ""))
            if chat_id != self.settings.telegram_chat_id:
                log.debug("Commands: ignoring message from chat %s", chat_id)
                continue

            reply = self.dispatch(text)
            if reply is not None:
                self.notifier.send_message(reply)
                answered += 1
        return answered

    def dispatch(self, text: str) -> str | None:
        for prefix, handler in self._handlers:
            if text.startswith(prefix):
                log.info("Commands: %s", prefix)
                return handler()
        return None

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def help_text(self) -> str:
        return (
            "🎰 <b>Arbitrage monitor bot</b>\n\n"
            "Commands:\n"
            "/arb_help - show this help\n"
            "/arb_status - monitor status\n"
            "/arb_markets - matched market counts\n"
            "/arb_threshold - current threshold settings\n\n"
            "Automatic alerts:\n"
            f"• combined cost ≤{self.settings.threshold * 100:g}¢\n"
            "• profit between 3% and 50%\n\n"
            "Venues:\n"
            "• Opinion.trade\n"
            "• Polymarket"
        )

    def status_text(self) -> str:
        s = self.stats
        return (
            "📊 <b>Arbitrage monitor status</b>\n\n"
            "✅ State: running\n"
            f"⏱️ Uptime: {s.uptime()}\n"
            f"🔍 Scans: {s.scan_count}\n"
            f"💰 Opportunities found: {s.total_opportunities}\n"
            f"📨 Notifications sent: {s.notifications_sent}\n\n"
            "⚙️ Config:\n"
            f"├ Threshold: ≤{self.settings.threshold * 100:g}¢\n"
            f"├ Poll interval: {self.settings.poll_interval_ms / 1000:g}s\n"
            f"└ Fee rate: {self.settings.fee_rate * 100:g}%\n\n"
            f"📈 Last opportunity: {html.escape(s.last_opportunity or 'none yet')}\n"
            f"⏰ Last scan: {s.last_scan_time or 'not started'}"
        )

    def markets_text(self) -> str:
        s = self.stats
        return (
            "📊 <b>Market matching</b>\n\n"
            f"Opinion markets: {s.opinion_markets}\n"
            f"Polymarket markets: {s.polymarket_markets}\n"
            f"Matched pairs: {s.matched_pairs}\n\n"
            "Main event types:\n"
            "• Fed (FOMC) rate decisions\n"
            "• ECB rate decisions\n"
            "• BoJ rate decisions"
        )

    def threshold_text(self) -> str:
        t = self.settings.threshold
        return (
            "⚙️ <b>Arbitrage threshold</b>\n\n"
            f"Current threshold: ≤<b>{t * 100:g}¢</b>\n\n"
            f"• Alert when YES + NO ≤ {t * 100:g}¢\n"
            f"• Leaves {(1 - t) * 100:.0f}% profit room\n"
            f"• Must cover ~{self.settings.fee_rate * 100:g}% fees\n\n"
            "Change it with the environment variable:\n"
            "<code>ARBITRAGE_THRESHOLD=0.95</code>"
        )
