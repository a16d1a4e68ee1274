"""Constants and configuration for the Opinion ↔ Polymarket arbitrage monitor."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from arbmonitor.models import ManualMapping

log = logging.getLogger(__name__)

# --- Loop timing ---
POLL_INTERVAL_MS = 30_000               # 30 seconds between scan cycles
COMMAND_POLL_SECONDS = 2                # How often to check Telegram for bot commands
STATUS_REPORT_SECONDS = 3600            # Periodic status report (0 = disabled)

# --- Arbitrage thresholds ---
# A strategy is an opportunity when YES + NO across venues <= THRESHOLD.
# 0.97 = 97c, leaves ~3% room for fees.
THRESHOLD = 0.97
MIN_TOTAL_COST = 0.50                   # Below this the quotes are treated as bad data
MIN_PROFIT_PCT = 3.0                    # Profit band lower bound (inclusive)
MAX_PROFIT_PCT = 50.0                   # Profit band upper bound (inclusive)
MIN_PRICE = 0.001                       # Any leg below this = no market / stale quote

# --- Fees ---
# Polymarket ~2%, Opinion ~1%; one blended rate is applied to both legs.
FEE_RATE = 0.02
DEFAULT_INVESTMENT_USD = 100.0

# --- Liquidity rating (USD volume on BOTH venues must exceed) ---
LIQUIDITY_HIGH_VOLUME = 100_000.0
LIQUIDITY_MEDIUM_VOLUME = 10_000.0
RECOMMEND_NET_PROFIT_PCT = 3.0

# --- Notifications ---
NOTIFICATION_COOLDOWN_MS = 5 * 60 * 1000    # Same opportunity re-notified at most every 5 min
NOTIFICATION_MAX_AGE_MS = 24 * 60 * 60 * 1000  # Dedup entries older than this are purged
MAX_NOTIFICATIONS_PER_CYCLE = 3         # Detail messages per cycle (a summary is always sent)
SUMMARY_MAX_ITEMS = 5
NOTIFICATION_SPACING_SECONDS = 0.5      # Gap between detail messages (Telegram rate limit)
MIN_PROFIT_PERCENT = 1.0                # Net (after fees) profit % required to notify
ERROR_NOTIFY_EVERY = 10                 # Notify on the 1st, 11th, 21st... cycle error

# Declared for parity with deployment env files. Nothing enforces it yet.
MIN_LIQUIDITY = 1000

# --- Matching ---
MANUAL_MATCH_SCORE = 10
MIN_MATCH_SCORE = 5

# Known recurring events: Opinion (parent title substring + period) → Polymarket event slug.
MANUAL_MAPPINGS: list[ManualMapping] = [
    ManualMapping(parent_title="US FOMC Interest Rate", period="JAN", event_slug="fed-decision-in-january"),
    ManualMapping(parent_title="US FOMC Interest Rate", period="MAR", event_slug="fed-decision-in-march"),
    ManualMapping(parent_title="ECB Rates Decision (DFR)", period="DEC", event_slug="ecb-rate-decision"),
    ManualMapping(parent_title="BoJ Rate Decision", period="DEC", event_slug="boj-rate-decision"),
]

# --- Opinion API ---
OPINION_API_URL = "https://proxy.opinion.trade:8443/api/bsc/api/v2"
OPINION_CHAIN_ID = 56
OPINION_PAGE_LIMIT = 100
OPINION_ACTIVE_STATUS = 2               # childList status code for tradable topics
OPINION_HEADERS = {
    "x-device-kind": "web",
    "Referer": "https://app.opinion.trade/",
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Accept": "application/json",
}

# --- Polymarket APIs ---
GAMMA_API_URL = "https://gamma-api.polymarket.com"
GAMMA_EVENTS_LIMIT = 200
POLY_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Accept": "application/json",
}

# --- Telegram ---
TELEGRAM_API_URL = "https://api.telegram.org"

# --- HTTP ---
HTTP_TIMEOUT = 15.0                     # Seconds for httpx requests

# --- Output files ---
LOG_FILE = "arbmonitor.log"
OPPS_LOG_FILE = "opportunities.log"     # Filtered: matched pairs + arb opportunities only

# --- Environment variable names ---
ENV_TELEGRAM_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"
ENV_TELEGRAM_CHAT_ID = "TELEGRAM_CHAT_ID"
ENV_THRESHOLD = "ARBITRAGE_THRESHOLD"
ENV_FEE_RATE = "FEE_RATE"
ENV_POLL_INTERVAL = "ARBITRAGE_POLL_INTERVAL"
ENV_NOTIFICATION_COOLDOWN = "NOTIFICATION_COOLDOWN"
ENV_MAX_NOTIFICATIONS = "MAX_NOTIFICATIONS"
ENV_MIN_LIQUIDITY = "MIN_LIQUIDITY"
ENV_MIN_PROFIT_PERCENT = "MIN_PROFIT_PERCENT"

# --- Market URL templates ---
OPINION_MARKET_URL = "https://app.opinion.trade/topic/{topic_id}"
POLY_MARKET_URL = "https://polymarket.com/event/{slug}"


@dataclass
class Settings:
    """Runtime settings resolved from the environment (see load_settings)."""
    threshold: float = THRESHOLD
    fee_rate: float = FEE_RATE
    poll_interval_ms: int = POLL_INTERVAL_MS
    notification_cooldown_ms: int = NOTIFICATION_COOLDOWN_MS
    max_notifications_per_cycle: int = MAX_NOTIFICATIONS_PER_CYCLE
    min_liquidity: int = MIN_LIQUIDITY
    min_profit_percent: float = MIN_PROFIT_PERCENT
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from environment variables.

    Missing, empty, unparseable or zero values fall back to the defaults above,
    so ARBITRAGE_THRESHOLD=0 behaves the same as leaving it unset.
    """
    env = os.environ if environ is None else environ
    return Settings(
        threshold=_env_float(env, ENV_THRESHOLD, THRESHOLD),
        fee_rate=_env_float(env, ENV_FEE_RATE, FEE_RATE),
        poll_interval_ms=_env_int(env, ENV_POLL_INTERVAL, POLL_INTERVAL_MS),
        notification_cooldown_ms=_env_int(env, ENV_NOTIFICATION_COOLDOWN, NOTIFICATION_COOLDOWN_MS),
        max_notifications_per_cycle=_env_int(env, ENV_MAX_NOTIFICATIONS, MAX_NOTIFICATIONS_PER_CYCLE),
        min_liquidity=_env_int(env, ENV_MIN_LIQUIDITY, MIN_LIQUIDITY),
        min_profit_percent=_env_float(env, ENV_MIN_PROFIT_PERCENT, MIN_PROFIT_PERCENT),
        telegram_bot_token=(env.get(ENV_TELEGRAM_BOT_TOKEN) or "").strip(),
        telegram_chat_id=(env.get(ENV_TELEGRAM_CHAT_ID) or "").strip(),
    )


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("Config: %s=%r is not a number, using default %s", name, raw, default)
        return default
    if value != value or value == 0:  # NaN or zero
        return default
    return value


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        log.warning("Config: %s=%r is not an integer, using default %s", name, raw, default)
        return default
    return value or default
