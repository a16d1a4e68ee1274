"""
Cross-venue market matching engine.

Two phases, results concatenated in this order:

  1. Manual mappings — known recurring events (Fed / ECB / BoJ decisions) are
     selected on both venues from a declarative table, then their outcome
     options are paired by normalized title, falling back to a fuzzy option
     match (same bps figure + same direction, or both "no change").
     Every manual pair scores MANUAL_MATCH_SCORE. Records consumed here are
     excluded from phase 2.

  2. Keyword scoring — every remaining Opinion × Polymarket combination is
     scored on shared keyword tags and title similarity. A pair is accepted
     when score >= MIN_MATCH_SCORE AND both gates pass:
       - institution: identical central-bank family on both sides, or none on either
       - month: equal when both sides carry one

Unlike one-to-one matchers, a record may appear in several pairs: an event
with several priced options legitimately produces one pair per option.
"""

from __future__ import annotations

import logging
from typing import Iterable

from arbmonitor.config import MANUAL_MAPPINGS, MANUAL_MATCH_SCORE, MIN_MATCH_SCORE
from arbmonitor.keywords import (
    DIRECTION_TAGS,
    INSTITUTION_TAGS,
    MAGNITUDE_MARKER,
    first_month,
    institution_families,
    is_similar_option,
    normalize_option_title,
)
from arbmonitor.models import ManualMapping, MarketRecord, MatchedPair

log = logging.getLogger(__name__)

MANUAL_REASON = "manual mapping"


class MarketMatcher:
    """
    Finds matched pairs between Opinion and Polymarket records.

    The manual mapping table is injectable so tests (or deployments) can
    substitute their own event list.
    """

    def __init__(self, mappings: Iterable[ManualMapping] | None = None) -> None:
        self.mappings: list[ManualMapping] = list(MANUAL_MAPPINGS if mappings is None else mappings)

    def find_matches(
        self,
        opinion_markets: list[MarketRecord],
        poly_markets: list[MarketRecord],
    ) -> list[MatchedPair]:
        """Run both phases and return manual pairs followed by keyword pairs."""
        if not opinion_markets or not poly_markets:
            log.info("MarketMatcher: empty input — O:%d P:%d", len(opinion_markets), len(poly_markets))
            return []

        manual = self.match_manual(opinion_markets, poly_markets)

        used_opinion = {p.opinion.id for p in manual}
        used_poly = {p.polymarket.id for p in manual}
        remaining_opinion = [m for m in opinion_markets if m.id not in used_opinion]
        remaining_poly = [m for m in poly_markets if m.id not in used_poly]

        auto = self.match_keywords(remaining_opinion, remaining_poly)

        log.info(
            "MarketMatcher: O:%d × P:%d → %d pairs (%d manual, %d keyword)",
            len(opinion_markets), len(poly_markets), len(manual) + len(auto), len(manual), len(auto),
        )
        return manual + auto

    def match_manual(
        self,
        opinion_markets: list[MarketRecord],
        poly_markets: list[MarketRecord],
    ) -> list[MatchedPair]:
        """Phase 1: pair options inside events listed in the mapping table."""
        pairs: list[MatchedPair] = []

        for mapping in self.mappings:
            op_options = [
                m for m in opinion_markets
                if mapping.parent_title in m.parent_title and m.period == mapping.period
            ]
            poly_options = [m for m in poly_markets if m.event_slug == mapping.event_slug]
            if not op_options or not poly_options:
                continue

            for om in op_options:
                pm = _find_option_match(om, poly_options)
                if pm is None:
                    log.debug("MANUAL | no option match for %r in %s", om.title, mapping.event_slug)
                    continue
                pairs.append(MatchedPair(
                    opinion=om,
                    polymarket=pm,
                    match_score=MANUAL_MATCH_SCORE,
                    match_reason=MANUAL_REASON,
                ))
                log.info(
                    "MATCH | MANUAL | %s %s | %s ↔ %s",
                    mapping.parent_title, mapping.period, om.title, pm.title,
                )

        return pairs

    def match_keywords(
        self,
        opinion_markets: list[MarketRecord],
        poly_markets: list[MarketRecord],
    ) -> list[MatchedPair]:
        """
        Phase 2: score every combination, keep accepted pairs, sort by score
        descending and drop repeated (opinion.id, polymarket.id) combinations.
        """
        accepted: list[MatchedPair] = []
        rejected: dict[str, int] = {}

        for om in opinion_markets:
            for pm in poly_markets:
                score = calculate_match_score(om, pm)
                if score < MIN_MATCH_SCORE:
                    rejected["score"] = rejected.get("score", 0) + 1
                    continue
                reason = check_gates(om, pm)
                if reason is not None:
                    rejected[reason] = rejected.get(reason, 0) + 1
                    continue
                accepted.append(MatchedPair(
                    opinion=om,
                    polymarket=pm,
                    match_score=score,
                    match_reason=match_reason(om, pm),
                ))

        # Stable sort with an explicit id tie-break so ties resolve the same way every run
        accepted.sort(key=lambda p: (-p.match_score, p.opinion.id, p.polymarket.id))

        pairs: list[MatchedPair] = []
        seen: set[tuple[str, str]] = set()
        for pair in accepted:
            key = (pair.opinion.id, pair.polymarket.id)
            if key in seen:
                continue
            seen.add(key)
            pairs.append(pair)
            log.info(
                "MATCH | KEYWORD | score=%g | %s ↔ %s | %s",
                pair.match_score, pair.opinion.full_title or pair.opinion.title,
                pair.polymarket.full_title or pair.polymarket.title, pair.match_reason,
            )

        log.info(
            "Keyword matching: %d × %d → %d pairs | rejections: %s",
            len(opinion_markets), len(poly_markets), len(pairs),
            ", ".join(f"{k}={v}" for k, v in rejected.items()) or "none",
        )
        return pairs


# ------------------------------------------------------------------
# Scoring and gating
# ------------------------------------------------------------------

def calculate_match_score(om: MarketRecord, pm: MarketRecord) -> float:
    """
    +1 per shared keyword, plus bonuses on the shared token:
      institution tag +2, magnitude tag (contains "bps") +2, direction tag +1.
    Titles: +5 if equal (case-insensitive), else +2 if one contains the other.
    """
    score = 0
    for kw in om.keywords & pm.keywords:
        score += 1
        if kw in INSTITUTION_TAGS:
            score += 2
        if MAGNITUDE_MARKER in kw:
            score += 2
        if kw in DIRECTION_TAGS:
            score += 1

    op_title = (om.title or "").lower()
    poly_title = (pm.title or "").lower()
    if op_title == poly_title:
        score += 5
    elif op_title in poly_title or poly_title in op_title:
        score += 2

    return score


def check_gates(om: MarketRecord, pm: MarketRecord) -> str | None:
    """
    Hard rejection rules applied regardless of score.
    Returns None if both pass, or the name of the failing gate.
    """
    if institution_families(om.keywords) != institution_families(pm.keywords):
        return "institution"

    op_month = first_month(om.keywords)
    poly_month = first_month(pm.keywords)
    if op_month and poly_month and op_month != poly_month:
        return "month"

    return None


def match_reason(om: MarketRecord, pm: MarketRecord) -> str:
    """Shared keywords, sorted, comma-separated."""
    return ", ".join(sorted(om.keywords & pm.keywords))


def _find_option_match(om: MarketRecord, poly_options: list[MarketRecord]) -> MarketRecord | None:
    """Exact normalized-title match first, then the fuzzy option rule."""
    op_title = normalize_option_title(om.title)
    for pm in poly_options:
        if normalize_option_title(pm.title) == op_title:
            return pm
    for pm in poly_options:
        if is_similar_option(om.title, pm.title):
            return pm
    return None
