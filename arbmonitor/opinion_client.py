"""Opinion.trade connector — indicator list → one MarketRecord per active option.

An Opinion "indicator" is an event such as "ECB Rates Decision (DFR)" for a
period ("DEC"). Its topic.childList holds the tradable options
("50+ bps decrease", "No change", ...), each a binary YES/NO market.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from arbmonitor.config import (
    HTTP_TIMEOUT,
    OPINION_ACTIVE_STATUS,
    OPINION_API_URL,
    OPINION_CHAIN_ID,
    OPINION_HEADERS,
    OPINION_PAGE_LIMIT,
)
from arbmonitor.keywords import extract_opinion_keywords
from arbmonitor.models import MarketRecord, Platform

log = logging.getLogger(__name__)


class OpinionClient:
    """
    Fetches and normalizes Opinion indicator markets.

    Failures never raise: an empty list means "no data this cycle" and the
    scan loop simply skips.
    """

    def __init__(self) -> None:
        self._http = httpx.Client(
            timeout=HTTP_TIMEOUT,
            headers=OPINION_HEADERS,
            follow_redirects=True,
        )

    def get_all_markets(self) -> list[MarketRecord]:
        """Fetch the first indicator page and flatten it into MarketRecords."""
        log.info("Opinion: fetching indicators...")
        indicators = self.fetch_indicators(limit=OPINION_PAGE_LIMIT, page=1)
        if not indicators:
            log.info("Opinion: no indicators found")
            return []

        markets = parse_opinion_markets(indicators)
        log.info("Opinion: %d indicators → %d option markets", len(indicators), len(markets))
        return markets

    def fetch_indicators(self, limit: int = 50, page: int = 1) -> list[dict[str, Any]]:
        params = {
            "sortDirection": 0,
            "limit": limit,
            "page": page,
            "chainId": OPINION_CHAIN_ID,
        }
        try:
            resp = self._http.get(f"{OPINION_API_URL}/indicator", params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Opinion: fetch error: %s", exc)
            return []

        if not isinstance(data, dict) or data.get("errno") != 0:
            log.error("Opinion: API error: %s", data.get("errmsg") if isinstance(data, dict) else data)
            return []

        return (data.get("result") or {}).get("list") or []

    def close(self) -> None:
        self._http.close()


# ------------------------------------------------------------------
# Normalization
# ------------------------------------------------------------------

def parse_opinion_markets(indicators: list[dict[str, Any]]) -> list[MarketRecord]:
    """Convert raw indicators to MarketRecords, keeping only active options."""
    markets: list[MarketRecord] = []

    for indicator in indicators:
        base_title = indicator.get("title") or ""
        period = indicator.get("period") or ""
        country_code = indicator.get("countryCode") or ""
        children = (indicator.get("topic") or {}).get("childList") or []

        for child in children:
            if child.get("status") != OPINION_ACTIVE_STATUS:
                continue

            title = child.get("title") or ""
            markets.append(MarketRecord(
                platform=Platform.OPINION,
                id=str(child.get("topicId", "")),
                title=title,
                parent_title=base_title,
                full_title=f"{base_title} {period} - {title}",
                period=period,
                country_code=country_code,
                yes_price=to_float(child.get("yesMarketPrice")),
                no_price=to_float(child.get("noMarketPrice")),
                volume=to_float(child.get("volume")),
                keywords=extract_opinion_keywords(base_title, title, period, country_code),
            ))

    return markets


def to_float(value: Any) -> float:
    """Lenient numeric parse: None, '', 'abc' and NaN all become 0.0."""
    if value is None:
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if result != result:  # NaN
        return 0.0
    return result
