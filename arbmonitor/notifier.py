"""Telegram notifications for arbitrage opportunities and monitor status."""

from __future__ import annotations

import html
import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from arbmonitor.config import (
    HTTP_TIMEOUT,
    MAX_NOTIFICATIONS_PER_CYCLE,
    NOTIFICATION_SPACING_SECONDS,
    OPINION_MARKET_URL,
    POLY_MARKET_URL,
    SUMMARY_MAX_ITEMS,
    TELEGRAM_API_URL,
    Settings,
)
from arbmonitor.models import AnalyzedOpportunity

log = logging.getLogger(__name__)


class TelegramNotifier:
    """
    Sends HTML-formatted messages through the Telegram Bot API.

    With no bot token or chat id the notifier is disabled: messages are
    logged at DEBUG and nothing is sent.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        max_details: int = MAX_NOTIFICATIONS_PER_CYCLE,
        spacing_seconds: float = NOTIFICATION_SPACING_SECONDS,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.max_details = max_details
        self.spacing_seconds = spacing_seconds
        self._http = httpx.Client(timeout=HTTP_TIMEOUT)

        if not self.enabled:
            log.warning("Telegram not configured (bot token / chat id missing) — notifications disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @property
    def api_base(self) -> str:
        return f"{TELEGRAM_API_URL}/bot{self.bot_token}"

    def send_message(self, text: str, chat_id: str | None = None) -> dict[str, Any] | None:
        """POST sendMessage. Returns the API response, or None if sending failed."""
        if not self.enabled:
            log.debug("Telegram disabled, not sending: %s", text[:80])
            return None

        payload = {
            "chat_id": chat_id or self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            resp = self._http.post(f"{self.api_base}/sendMessage", json=payload)
            result = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Telegram: send error: %s", exc)
            return None

        if not isinstance(result, dict):
            log.error("Telegram: unexpected response: %r", result)
            return None
        if not result.get("ok"):
            log.error("Telegram: API error: %s", result)
        return result

    def get_updates(self, offset: int | None = None, timeout: int = 1) -> list[dict[str, Any]]:
        """GET getUpdates. Returns [] when disabled or on any failure."""
        if not self.enabled:
            return []
        params: dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            params["offset"] = offset
        try:
            resp = self._http.get(f"{self.api_base}/getUpdates", params=params)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Telegram: getUpdates failed: %s", exc)
            return []
        if not isinstance(data, dict) or not data.get("ok"):
            return []
        return data.get("result") or []

    # ------------------------------------------------------------------
    # Opportunity notifications
    # ------------------------------------------------------------------

    def notify_opportunities(self, analyzed: list[AnalyzedOpportunity]) -> int:
        """
        Send one summary message, then detail messages for the first
        max_details opportunities. Returns the number of detail messages sent.
        """
        summary = format_summary_message(analyzed)
        if summary is None:
            return 0
        self.send_message(summary)

        sent = 0
        for item in analyzed[: self.max_details]:
            if sent:
                time.sleep(self.spacing_seconds)
            self.send_message(format_opportunity_message(item))
            sent += 1
        return sent

    def notify_startup(self, settings: Settings) -> dict[str, Any] | None:
        return self.send_message(
            "🚀 <b>Arbitrage monitor started</b>\n\n"
            "📡 Venues: Opinion ↔ Polymarket\n"
            f"💰 Threshold: ≤{settings.threshold * 100:g}¢\n"
            f"⏱️ Poll interval: {settings.poll_interval_ms / 1000:g}s\n\n"
            "Send /arb_status for status"
        )

    def notify_status(self, status: dict[str, Any]) -> dict[str, Any] | None:
        return self.send_message(format_status_message(status))

    def notify_error(self, error: BaseException | str) -> dict[str, Any] | None:
        return self.send_message(
            "⚠️ <b>Arbitrage monitor error</b>\n\n"
            f"{html.escape(str(error))}\n\n"
            f"⏰ {_timestamp()}"
        )

    def close(self) -> None:
        self._http.close()


# ------------------------------------------------------------------
# Formatting
# ------------------------------------------------------------------

def format_opportunity_message(item: AnalyzedOpportunity) -> str:
    opp = item.opportunity
    om = opp.pair.opinion
    pm = opp.pair.polymarket
    emoji = "🔥" if opp.profit_percent >= 3 else "💰"
    opinion_url = OPINION_MARKET_URL.format(topic_id=om.id)
    poly_url = POLY_MARKET_URL.format(slug=pm.event_slug or pm.slug)

    return (
        f"{emoji} <b>Arbitrage opportunity!</b>\n\n"
        f"📊 <b>Market:</b> {html.escape(om.parent_title)}\n"
        f"🎯 <b>Option:</b> {html.escape(om.title)}\n\n"
        f"<b>Strategy:</b>\n"
        f"├ Opinion: buy <b>{opp.opinion_side}</b> @ <code>{opp.opinion_price:.4f}</code>\n"
        f"└ Polymarket: buy <b>{opp.polymarket_side}</b> @ <code>{opp.polymarket_price:.4f}</code>\n\n"
        f"💵 <b>Total cost:</b> <code>${opp.total_cost:.4f}</code>\n"
        f"📈 <b>Profit:</b> <code>${opp.profit:.4f}</code> (<b>{opp.profit_percent:.2f}%</b>)\n"
        f"🧾 <b>Net on ${item.returns.investment:g}:</b> "
        f"<code>${item.returns.net_profit:.2f}</code> ({item.returns.net_profit_percent:.2f}%) "
        f"after ${item.returns.fees:.2f} fees\n"
        f"💧 <b>Liquidity:</b> {item.liquidity.rating.value}\n"
        f"{item.recommendation.value}\n\n"
        f'🔗 <a href="{opinion_url}">Opinion</a> | <a href="{poly_url}">Polymarket</a>\n\n'
        f"⏰ {_timestamp()}"
    )


def format_summary_message(analyzed: list[AnalyzedOpportunity]) -> str | None:
    if not analyzed:
        return None

    header = f"🎰 <b>{len(analyzed)} arbitrage opportunit{'y' if len(analyzed) == 1 else 'ies'} found!</b>\n"
    items = "\n\n".join(
        f"{i}. {html.escape(item.opportunity.pair.opinion.title)}\n"
        f"   Cost: ${item.opportunity.total_cost:.3f} | Profit: {item.opportunity.profit_percent:.2f}%"
        for i, item in enumerate(analyzed[:SUMMARY_MAX_ITEMS], start=1)
    )
    footer = ""
    if len(analyzed) > SUMMARY_MAX_ITEMS:
        footer = f"\n\n... and {len(analyzed) - SUMMARY_MAX_ITEMS} more"
    return header + "\n" + items + footer


def format_status_message(status: dict[str, Any]) -> str:
    return (
        "📊 <b>Arbitrage monitor status</b>\n\n"
        f"✅ Uptime: {status.get('uptime', '?')}\n"
        f"🔍 Scans: {status.get('scan_count', 0)}\n"
        f"💰 Opportunities found: {status.get('total_opportunities', 0)}\n"
        f"📨 Notifications sent: {status.get('notifications_sent', 0)}\n\n"
        f"📈 Last opportunity: {html.escape(str(status.get('last_opportunity') or 'none yet'))}\n"
        f"⏰ Last scan: {status.get('last_scan_time') or 'not started'}"
    )


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
