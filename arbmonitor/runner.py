"""
Arbitrage monitor — fixed-interval scan loop.

Each scan cycle:
  → Fetches Opinion and Polymarket markets concurrently
  → Matches records that describe the same event outcome
  → Detects cross-venue arbitrage on every matched pair
  → Drops opportunities notified within the cooldown window
  → Adds fee-adjusted returns and keeps the ones worth sending
  → Sends a Telegram summary plus a few detailed alerts

A cycle with no data from either venue is skipped; the next tick is the retry.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone

from dotenv import load_dotenv

from arbmonitor.commands import CommandHandler
from arbmonitor.config import (
    COMMAND_POLL_SECONDS,
    ERROR_NOTIFY_EVERY,
    LOG_FILE,
    OPPS_LOG_FILE,
    STATUS_REPORT_SECONDS,
    Settings,
    load_settings,
)
from arbmonitor.dedup import NotificationStore
from arbmonitor.economics import get_full_analysis
from arbmonitor.market_matcher import MarketMatcher
from arbmonitor.models import AnalyzedOpportunity, MarketRecord
from arbmonitor.notifier import TelegramNotifier
from arbmonitor.opinion_client import OpinionClient
from arbmonitor.opportunity_finder import OpportunityFinder, format_opportunity_log
from arbmonitor.poly_client import PolyClient

log = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Log filter — only pass opportunity/match lines to opportunities.log
# ------------------------------------------------------------------

class _OppsFilter(logging.Filter):
    _KEYWORDS = (
        "MATCH |", "ARB OPPORTUNITY", "SCAN CYCLE", "NOTIFY |",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return any(kw in msg for kw in self._KEYWORDS)


# ------------------------------------------------------------------
# Stats
# ------------------------------------------------------------------

@dataclass
class ScanStats:
    start_time: float = field(default_factory=time.time)
    scan_count: int = 0
    total_opportunities: int = 0
    notifications_sent: int = 0
    last_opportunity: str | None = None
    last_scan_time: str | None = None
    errors: int = 0
    opinion_markets: int = 0
    polymarket_markets: int = 0
    matched_pairs: int = 0

    def uptime(self, now: float | None = None) -> str:
        elapsed = int((now if now is not None else time.time()) - self.start_time)
        hours, rem = divmod(elapsed, 3600)
        minutes, seconds = divmod(rem, 60)
        if hours:
            return f"{hours}h {minutes}m"
        if minutes:
            return f"{minutes}m {seconds}s"
        return f"{seconds}s"

    def as_dict(self) -> dict:
        return {
            "uptime": self.uptime(),
            "scan_count": self.scan_count,
            "total_opportunities": self.total_opportunities,
            "notifications_sent": self.notifications_sent,
            "last_opportunity": self.last_opportunity,
            "last_scan_time": self.last_scan_time,
        }


# ------------------------------------------------------------------
# Scanner
# ------------------------------------------------------------------

class Scanner:
    """One instance per process. Holds the only cross-cycle state: dedup store and stats."""

    def __init__(
        self,
        settings: Settings,
        opinion: OpinionClient,
        poly: PolyClient,
        notifier: TelegramNotifier,
        store: NotificationStore | None = None,
        matcher: MarketMatcher | None = None,
        finder: OpportunityFinder | None = None,
    ) -> None:
        self.settings = settings
        self.opinion = opinion
        self.poly = poly
        self.notifier = notifier
        self.store = store if store is not None else NotificationStore(cooldown_ms=settings.notification_cooldown_ms)
        self.matcher = matcher if matcher is not None else MarketMatcher()
        self.finder = finder if finder is not None else OpportunityFinder(threshold=settings.threshold)
        self.stats = ScanStats()

    def run_cycle(self) -> list[AnalyzedOpportunity]:
        """
        Run one full scan. Returns the opportunities that were notified.
        Exceptions are logged and counted, never raised.
        """
        log.info("Starting scan cycle #%d", self.stats.scan_count + 1)
        try:
            return self._scan()
        except Exception as exc:
            self.stats.errors += 1
            log.exception("Scan cycle failed (%d errors so far)", self.stats.errors)
            if self.stats.errors % ERROR_NOTIFY_EVERY == 1:
                self.notifier.notify_error(exc)
            return []

    def _scan(self) -> list[AnalyzedOpportunity]:
        cycle_start = time.monotonic()
        opinion_markets, poly_markets = self.fetch_markets()

        if not opinion_markets or not poly_markets:
            log.info(
                "No markets found (O:%d P:%d), skipping this cycle",
                len(opinion_markets), len(poly_markets),
            )
            return []

        self.stats.opinion_markets = len(opinion_markets)
        self.stats.polymarket_markets = len(poly_markets)

        pairs = self.matcher.find_matches(opinion_markets, poly_markets)
        self.stats.matched_pairs = len(pairs)

        if not pairs:
            log.info("No matched markets, skipping this cycle")
            self._finish_cycle()
            return []

        if self.stats.scan_count == 0:
            for i, pair in enumerate(pairs[:10], start=1):
                log.info(
                    "  %d. %s\n     ↔ %s\n     Score: %g, Reason: %s",
                    i, pair.opinion.full_title, pair.polymarket.full_title,
                    pair.match_score, pair.match_reason,
                )

        opportunities = self.finder.find_opportunities(pairs)
        for opp in opportunities:
            log.info("%s", format_opportunity_log(opp))

        new_opps = self.store.filter_new(opportunities)
        log.info("%d new opportunities (%d on cooldown)", len(new_opps), len(opportunities) - len(new_opps))

        worthy = self.select_worthy([
            get_full_analysis(opp, fee_rate=self.settings.fee_rate) for opp in new_opps
        ])

        if worthy:
            self.notifier.notify_opportunities(worthy)
            self.stats.notifications_sent += len(worthy)
            self.stats.last_opportunity = worthy[0].opportunity.pair.opinion.title
            log.info("NOTIFY | %d opportunities sent", len(worthy))

        self.stats.total_opportunities += len(opportunities)
        self._finish_cycle()

        log.info(
            "SCAN CYCLE #%d | %.3fs | %d pairs | %d opportunities | %d notified | %d lifetime",
            self.stats.scan_count, time.monotonic() - cycle_start, len(pairs),
            len(opportunities), len(worthy), self.stats.total_opportunities,
        )
        return worthy

    def fetch_markets(self) -> tuple[list[MarketRecord], list[MarketRecord]]:
        """Fetch both venues in parallel; the two requests are independent."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            f_opinion = pool.submit(self.opinion.get_all_markets)
            f_poly = pool.submit(self.poly.get_all_markets)
            return f_opinion.result(), f_poly.result()

    def select_worthy(self, analyzed: list[AnalyzedOpportunity]) -> list[AnalyzedOpportunity]:
        """Keep opportunities that stay profitable after fees by at least MIN_PROFIT_PERCENT."""
        return [
            a for a in analyzed
            if a.returns.is_profitable
            and a.returns.net_profit_percent >= self.settings.min_profit_percent
        ]

    def _finish_cycle(self) -> None:
        self.stats.scan_count += 1
        self.stats.last_scan_time = datetime.now(timezone.utc).isoformat()


# ------------------------------------------------------------------
# Setup
# ------------------------------------------------------------------

def _load_env() -> None:
    """Load .env file from project root if present."""
    env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
    load_dotenv(env_path)


def _setup_logging() -> None:
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")

    main_handler = logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8")
    main_handler.setFormatter(fmt)

    opps_handler = logging.FileHandler(OPPS_LOG_FILE, mode="a", encoding="utf-8")
    opps_handler.setFormatter(fmt)
    opps_handler.addFilter(_OppsFilter())

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(fmt)

    logging.basicConfig(
        level=logging.INFO,
        handlers=[main_handler, opps_handler, console_handler],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _log_config(settings: Settings) -> None:
    log.info("=" * 50)
    log.info("Arbitrage monitor configuration")
    log.info("=" * 50)
    log.info("Threshold: %g¢", settings.threshold * 100)
    log.info("Fee rate: %g%%", settings.fee_rate * 100)
    log.info("Poll interval: %gs", settings.poll_interval_ms / 1000)
    log.info("Notification cooldown: %gs", settings.notification_cooldown_ms / 1000)
    log.info("Max notifications/cycle: %d", settings.max_notifications_per_cycle)
    log.info("Min net profit: %g%%", settings.min_profit_percent)
    log.info("Telegram: %s", "enabled" if settings.telegram_enabled else "DISABLED")
    log.info("=" * 50)


# ------------------------------------------------------------------
# Main loop
# ------------------------------------------------------------------

def main() -> None:
    _load_env()
    _setup_logging()

    settings = load_settings()
    _log_config(settings)

    notifier = TelegramNotifier(
        bot_token=settings.telegram_bot_token,
        chat_id=settings.telegram_chat_id,
        max_details=settings.max_notifications_per_cycle,
    )
    scanner = Scanner(settings, OpinionClient(), PolyClient(), notifier)
    commands = CommandHandler(notifier, settings, scanner.stats)
    commands.init()
    notifier.notify_startup(settings)

    poll_seconds = settings.poll_interval_ms / 1000
    last_status = time.monotonic()

    try:
        while True:
            cycle_start = time.monotonic()
            scanner.run_cycle()

            if STATUS_REPORT_SECONDS and time.monotonic() - last_status >= STATUS_REPORT_SECONDS:
                notifier.notify_status(scanner.stats.as_dict())
                last_status = time.monotonic()

            # Answer bot commands while waiting for the next cycle
            while time.monotonic() - cycle_start < poll_seconds:
                commands.check()
                remaining = poll_seconds - (time.monotonic() - cycle_start)
                time.sleep(max(0.0, min(COMMAND_POLL_SECONDS, remaining)))

    except KeyboardInterrupt:
        log.info(
            "Arbitrage monitor stopped by user. Final stats: %d scans, %d opportunities found",
            scanner.stats.scan_count, scanner.stats.total_opportunities,
        )


if __name__ == "__main__":
    main()
