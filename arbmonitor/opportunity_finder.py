"""
Arbitrage opportunity detection and formatting.

For each matched pair, evaluates two cross-venue strategies:
  opinion_yes_poly_no: Buy Opinion YES + Buy Polymarket NO
  opinion_no_poly_yes: Buy Opinion NO  + Buy Polymarket YES

A strategy is reported when its combined cost is within
[MIN_TOTAL_COST, threshold] and its profit % is within [MIN_PROFIT_PCT, MAX_PROFIT_PCT].
Anything cheaper than MIN_TOTAL_COST or more profitable than MAX_PROFIT_PCT is
almost always a stale or broken quote rather than a real mispricing.
"""

from __future__ import annotations

import logging

from arbmonitor.config import (
    MAX_PROFIT_PCT,
    MIN_PRICE,
    MIN_PROFIT_PCT,
    MIN_TOTAL_COST,
    THRESHOLD,
)
from arbmonitor.models import ArbType, MatchedPair, Opportunity

log = logging.getLogger(__name__)

# Absorbs float noise so a cost of exactly `threshold` (e.g. 0.47 + 0.50) is kept
_COST_EPSILON = 1e-9


class OpportunityFinder:
    """
    Evaluates matched pairs for cross-venue arbitrage.

    An opportunity exists when:
      opinion_side_price + polymarket_other_side_price <= threshold
    """

    def __init__(self, threshold: float = THRESHOLD) -> None:
        self.threshold = threshold

    def find_opportunities(self, pairs: list[MatchedPair]) -> list[Opportunity]:
        """
        Evaluate both strategies for every matched pair.
        Returns opportunities sorted by absolute profit descending (best first).
        """
        opportunities: list[Opportunity] = []
        skipped = 0

        for pair in pairs:
            om = pair.opinion
            pm = pair.polymarket

            if min(om.yes_price, om.no_price, pm.yes_price, pm.no_price) < MIN_PRICE:
                skipped += 1
                continue

            opp_1 = self._evaluate_strategy(
                pair,
                arb_type=ArbType.OPINION_YES_POLY_NO,
                opinion_price=om.yes_price,
                polymarket_price=pm.no_price,
                opinion_side="YES",
                polymarket_side="NO",
            )
            if opp_1 is not None:
                opportunities.append(opp_1)

            opp_2 = self._evaluate_strategy(
                pair,
                arb_type=ArbType.OPINION_NO_POLY_YES,
                opinion_price=om.no_price,
                polymarket_price=pm.yes_price,
                opinion_side="NO",
                polymarket_side="YES",
            )
            if opp_2 is not None:
                opportunities.append(opp_2)

        opportunities.sort(key=lambda o: o.profit, reverse=True)

        log.info(
            "OpportunityFinder: %d pairs (%d without market) → %d opportunities",
            len(pairs), skipped, len(opportunities),
        )
        return opportunities

    def _evaluate_strategy(
        self,
        pair: MatchedPair,
        arb_type: ArbType,
        opinion_price: float,
        polymarket_price: float,
        opinion_side: str,
        polymarket_side: str,
    ) -> Opportunity | None:
        """Evaluate one strategy direction. Returns Opportunity or None."""
        total_cost = opinion_price + polymarket_price
        if total_cost > self.threshold + _COST_EPSILON:
            return None
        if total_cost < MIN_TOTAL_COST:
            return None

        profit = 1.0 - total_cost
        raw_percent = profit / total_cost * 100
        if not MIN_PROFIT_PCT <= raw_percent <= MAX_PROFIT_PCT:
            return None

        return Opportunity(
            type=arb_type,
            pair=pair,
            opinion_side=opinion_side,
            polymarket_side=polymarket_side,
            opinion_price=opinion_price,
            polymarket_price=polymarket_price,
            total_cost=total_cost,
            profit=profit,
            profit_percent=round(raw_percent, 2),
            description=(
                f"Buy Opinion {opinion_side} @{opinion_price:.3f} + "
                f"Buy Polymarket {polymarket_side} @{polymarket_price:.3f}"
            ),
        )


def format_opportunity_log(opp: Opportunity) -> str:
    """
    Format an opportunity as a multi-line log string.

    Example:
    ARB OPPORTUNITY | opinion_yes_poly_no | US FOMC Interest Rate MAR - 25 bps decrease | profit=11.11%
      Strategy: Buy Opinion YES @0.400 + Buy Polymarket NO @0.500
      Polymarket: Fed decision in March? - 25 bps decrease
      Cost: 0.9000 → profit=$0.1000 per $1 | match score=10 (manual mapping)
    """
    om = opp.pair.opinion
    pm = opp.pair.polymarket
    return (
        f"ARB OPPORTUNITY | {opp.type.value} | {om.full_title or om.title} | "
        f"profit={opp.profit_percent:.2f}%\n"
        f"  Strategy: {opp.description}\n"
        f"  Polymarket: {pm.full_title or pm.title}\n"
        f"  Cost: {opp.total_cost:.4f} → profit=${opp.profit:.4f} per $1 | "
        f"match score={opp.pair.match_score:g} ({opp.pair.match_reason})"
    )
