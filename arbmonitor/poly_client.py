"""Polymarket connector — Gamma events API → one MarketRecord per open sub-market.

A Gamma event ("Fed decision in March?") groups several binary markets, one
per outcome option. groupItemTitle names the option ("25 bps decrease") and
outcomePrices holds ["<yes>", "<no>"] as a JSON string.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from arbmonitor.config import GAMMA_API_URL, GAMMA_EVENTS_LIMIT, HTTP_TIMEOUT, POLY_HEADERS
from arbmonitor.keywords import extract_polymarket_keywords
from arbmonitor.models import MarketRecord, Platform
from arbmonitor.opinion_client import to_float

log = logging.getLogger(__name__)


class PolyClient:
    """
    Fetches and normalizes Polymarket event markets from the Gamma API.

    No authentication needed for read operations.
    """

    def __init__(self) -> None:
        self._http = httpx.Client(
            timeout=HTTP_TIMEOUT,
            headers=POLY_HEADERS,
            follow_redirects=True,
        )

    def get_all_markets(self) -> list[MarketRecord]:
        log.info("Polymarket: fetching events from Gamma API...")
        events = self.fetch_events(limit=GAMMA_EVENTS_LIMIT, offset=0)
        if not events:
            log.info("Polymarket: no events found")
            return []

        markets = parse_polymarket_markets(events)
        log.info("Polymarket: %d events → %d option markets", len(events), len(markets))
        return markets

    def fetch_events(self, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        params = {
            "limit": limit,
            "active": "true",
            "closed": "false",
            "offset": offset,
        }
        return self._get_events(params)

    def search_markets(self, query: str) -> list[MarketRecord]:
        """Search active events by title and return their normalized markets."""
        params = {
            "limit": 50,
            "active": "true",
            "closed": "false",
            "title": query,
        }
        return parse_polymarket_markets(self._get_events(params))

    def close(self) -> None:
        self._http.close()

    def _get_events(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            resp = self._http.get(f"{GAMMA_API_URL}/events", params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Polymarket: Gamma fetch error: %s", exc)
            return []
        return data if isinstance(data, list) else []


# ------------------------------------------------------------------
# Normalization
# ------------------------------------------------------------------

def parse_polymarket_markets(events: list[dict[str, Any]]) -> list[MarketRecord]:
    """Convert Gamma events to MarketRecords, skipping closed or inactive markets."""
    markets: list[MarketRecord] = []

    for event in events:
        event_title = event.get("title") or ""
        event_slug = event.get("slug") or ""

        for market in event.get("markets") or []:
            if market.get("closed") or not market.get("active"):
                continue

            prices = _parse_json_field(market.get("outcomePrices")) or []
            yes_price = to_float(prices[0]) if len(prices) > 0 else 0.0
            no_price = to_float(prices[1]) if len(prices) > 1 else 0.0

            option_title = market.get("groupItemTitle") or market.get("question") or ""
            volume = to_float(market.get("volumeNum")) or to_float(market.get("volume"))

            markets.append(MarketRecord(
                platform=Platform.POLYMARKET,
                id=str(market.get("id", "")),
                title=option_title,
                parent_title=event_title,
                full_title=f"{event_title} - {option_title}",
                event_slug=event_slug,
                slug=market.get("slug") or "",
                yes_price=yes_price,
                no_price=no_price,
                volume=volume,
                liquidity=to_float(market.get("liquidityNum")),
                keywords=extract_polymarket_keywords(event_title, option_title),
            ))

    return markets


def _parse_json_field(value: Any) -> list | None:
    """Gamma returns some list fields as JSON strings."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, list) else None
    return None
