"""
Fee-adjusted return and liquidity analysis for arbitrage opportunities.

Presentation only: nothing here drops an opportunity. The runner decides what
to notify based on the returned figures.
"""

from __future__ import annotations

from arbmonitor.config import (
    DEFAULT_INVESTMENT_USD,
    FEE_RATE,
    LIQUIDITY_HIGH_VOLUME,
    LIQUIDITY_MEDIUM_VOLUME,
    RECOMMEND_NET_PROFIT_PCT,
)
from arbmonitor.models import (
    AnalyzedOpportunity,
    ExpectedReturn,
    LiquidityRating,
    LiquidityReport,
    Opportunity,
    Recommendation,
)


def calculate_expected_return(
    opp: Opportunity,
    investment: float = DEFAULT_INVESTMENT_USD,
    fee_rate: float = FEE_RATE,
) -> ExpectedReturn:
    """
    Spend `investment` USD across both legs in proportion to their prices.

    Each leg pays fee_rate on the dollars it receives:
      leg_fee = investment * (leg_price / total_cost) * fee_rate
    """
    shares = investment / opp.total_cost
    gross_profit = shares * opp.profit

    opinion_fee = investment * (opp.opinion_price / opp.total_cost) * fee_rate
    polymarket_fee = investment * (opp.polymarket_price / opp.total_cost) * fee_rate
    fees = opinion_fee + polymarket_fee

    net_profit = gross_profit - fees
    return ExpectedReturn(
        investment=investment,
        shares=round(shares, 2),
        gross_profit=round(gross_profit, 2),
        fees=round(fees, 2),
        net_profit=round(net_profit, 2),
        net_profit_percent=round(net_profit / investment * 100, 2),
        is_profitable=net_profit > 0,
    )


def analyze_liquidity(opp: Opportunity) -> LiquidityReport:
    opinion_volume = opp.pair.opinion.volume or 0.0
    polymarket_volume = opp.pair.polymarket.volume or 0.0

    if opinion_volume > LIQUIDITY_HIGH_VOLUME and polymarket_volume > LIQUIDITY_HIGH_VOLUME:
        rating = LiquidityRating.HIGH
    elif opinion_volume > LIQUIDITY_MEDIUM_VOLUME and polymarket_volume > LIQUIDITY_MEDIUM_VOLUME:
        rating = LiquidityRating.MEDIUM
    else:
        rating = LiquidityRating.LOW

    return LiquidityReport(
        opinion_volume=opinion_volume,
        polymarket_volume=polymarket_volume,
        polymarket_liquidity=opp.pair.polymarket.liquidity or 0.0,
        rating=rating,
    )


def generate_recommendation(returns: ExpectedReturn, liquidity: LiquidityReport) -> Recommendation:
    if not returns.is_profitable:
        return Recommendation.NOT_PROFITABLE
    if liquidity.rating == LiquidityRating.LOW:
        return Recommendation.LOW_LIQUIDITY
    if returns.net_profit_percent > RECOMMEND_NET_PROFIT_PCT:
        return Recommendation.RECOMMENDED
    return Recommendation.MARGINAL


def get_full_analysis(
    opp: Opportunity,
    investment: float = DEFAULT_INVESTMENT_USD,
    fee_rate: float = FEE_RATE,
) -> AnalyzedOpportunity:
    returns = calculate_expected_return(opp, investment, fee_rate)
    liquidity = analyze_liquidity(opp)
    return AnalyzedOpportunity(
        opportunity=opp,
        returns=returns,
        liquidity=liquidity,
        recommendation=generate_recommendation(returns, liquidity),
    )
