"""
Notification dedup / cooldown store.

Remembers when each opportunity key was last notified so the same arb is not
re-sent every scan cycle. Memory is bounded by purging entries older than
max_age_ms after every filter call, independent of how often keys fire.

Scan cycles never overlap, so no locking is needed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from arbmonitor.config import NOTIFICATION_COOLDOWN_MS, NOTIFICATION_MAX_AGE_MS
from arbmonitor.models import Opportunity

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def opportunity_key(opp: Opportunity) -> str:
    """'<opinion_id>-<polymarket_id>-<type>' — stable across scan cycles."""
    return f"{opp.pair.opinion.id}-{opp.pair.polymarket.id}-{opp.type.value}"


class NotificationStore:
    """
    key → last-notified timestamp (epoch ms).

    `clock` returns the current time in epoch ms; tests pass a fake one.
    """

    def __init__(
        self,
        cooldown_ms: int = NOTIFICATION_COOLDOWN_MS,
        max_age_ms: int = NOTIFICATION_MAX_AGE_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.cooldown_ms = cooldown_ms
        self.max_age_ms = max_age_ms
        self._clock = clock
        self._last_notified: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._last_notified)

    def __contains__(self, key: str) -> bool:
        return key in self._last_notified

    def filter_new(self, opportunities: list[Opportunity]) -> list[Opportunity]:
        """
        Return the opportunities that were never notified, or whose last
        notification is older than the cooldown. Returned ones are stamped now.
        Order is preserved.
        """
        now = self._clock()
        new: list[Opportunity] = []

        for opp in opportunities:
            key = opportunity_key(opp)
            last = self._last_notified.get(key)
            if last is None or now - last > self.cooldown_ms:
                new.append(opp)
                self._last_notified[key] = now
            else:
                log.debug("DEDUP | %s on cooldown (%.0fs left)", key, (self.cooldown_ms - (now - last)) / 1000)

        self.purge_expired(now)
        return new

    def purge_expired(self, now: int | None = None) -> int:
        """Drop entries older than max_age_ms. Returns the number removed."""
        if now is None:
            now = self._clock()
        expired = [k for k, ts in self._last_notified.items() if now - ts > self.max_age_ms]
        for key in expired:
            del self._last_notified[key]
        if expired:
            log.debug("DEDUP | purged %d expired entries, %d remain", len(expired), len(self._last_notified))
        return len(expired)
