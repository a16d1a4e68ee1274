"""Shared data models for the arbitrage monitor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Platform(str, Enum):
    OPINION = "opinion"
    POLYMARKET = "polymarket"


class ArbType(str, Enum):
    OPINION_YES_POLY_NO = "opinion_yes_poly_no"
    OPINION_NO_POLY_YES = "opinion_no_poly_yes"


class LiquidityRating(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Recommendation(str, Enum):
    NOT_PROFITABLE = "⚠️ Not profitable after fees"
    LOW_LIQUIDITY = "⚠️ Low liquidity, trade with caution"
    RECOMMENDED = "✅ Recommended"
    MARGINAL = "🔍 Worth a look, thin margin"


@dataclass
class MarketRecord:
    """
    One tradable binary outcome on one venue.

    Both Opinion and Polymarket payloads are converted to this shape before
    matching. Prices are probabilities in [0, 1] and need not sum to 1.

    Opinion records carry period / country_code; Polymarket records carry
    event_slug / slug. keywords is derived once by the venue normalizer.
    """
    # --- Identity ---
    platform: Platform
    id: str
    title: str                  # Outcome option, e.g. "25 bps decrease"
    parent_title: str = ""      # Event, e.g. "US FOMC Interest Rate"
    full_title: str = ""

    # --- Matching aids ---
    period: str = ""            # Opinion: "MAR", "DEC"
    country_code: str = ""      # Opinion: "US", "EU", "JP"
    event_slug: str = ""        # Polymarket: parent event slug
    slug: str = ""              # Polymarket: market slug

    # --- Prices ---
    yes_price: float = 0.0
    no_price: float = 0.0

    # --- Metadata ---
    volume: float = 0.0
    liquidity: float = 0.0
    keywords: frozenset[str] = field(default_factory=frozenset)


@dataclass
class ManualMapping:
    """A known recurring event: Opinion event selector → Polymarket event slug."""
    parent_title: str           # Substring of the Opinion parent_title
    period: str                 # Exact Opinion period
    event_slug: str             # Exact Polymarket event_slug


@dataclass
class MatchedPair:
    """
    An Opinion record and a Polymarket record believed to represent the
    same event outcome. A record may appear in several pairs.
    """
    opinion: MarketRecord
    polymarket: MarketRecord
    match_score: float
    match_reason: str


@dataclass
class Opportunity:
    """
    A cross-venue arbitrage opportunity.

    opinion_yes_poly_no: Buy Opinion YES + Buy Polymarket NO
    opinion_no_poly_yes: Buy Opinion NO  + Buy Polymarket YES

    total_cost < 1.0 = guaranteed payout of $1 for every share pair held.
    """
    type: ArbType
    pair: MatchedPair

    opinion_side: str           # "YES" or "NO"
    polymarket_side: str        # "YES" or "NO"
    opinion_price: float
    polymarket_price: float

    total_cost: float
    profit: float               # = 1 - total_cost, dollars per $1 payout
    profit_percent: float       # = profit / total_cost * 100, 2 decimals
    description: str


@dataclass
class ExpectedReturn:
    investment: float
    shares: float
    gross_profit: float
    fees: float
    net_profit: float
    net_profit_percent: float
    is_profitable: bool


@dataclass
class LiquidityReport:
    opinion_volume: float
    polymarket_volume: float
    polymarket_liquidity: float
    rating: LiquidityRating


@dataclass
class AnalyzedOpportunity:
    """An Opportunity enriched with fee-adjusted returns and a recommendation."""
    opportunity: Opportunity
    returns: ExpectedReturn
    liquidity: LiquidityReport
    recommendation: Recommendation
