"""Strategy Advisor for multi-jurisdiction pricing.

Positions each jurisdiction's recommended charge against the average of
the compared set and gives short pricing advice.
"""

from typing import Optional, Sequence

import structlog

from models.comparison import (
    ComparisonAnalysis,
    ComparisonEntry,
    CompetitivePosition,
    Strategy,
    StrategyEntry,
    StrategySummary,
)
from services.jurisdiction_comparison import compare_jurisdictions, parse_processing_weeks
from services.pricing_engine import PricingEngine
from utils.currency import round_currency

logger = structlog.get_logger(__name__)

BUDGET_THRESHOLD = 0.9
PREMIUM_THRESHOLD = 1.1
ALIGNED_TOLERANCE = 50


def get_competitive_position(entry: ComparisonEntry, analysis: ComparisonAnalysis) -> CompetitivePosition:
    """Classify a charge as below 90%, above 110%, or near the average."""
    charge = entry.pricing.recommended_charge
    average = analysis.average_recommended_charge

    if charge < average * BUDGET_THRESHOLD:
        return CompetitivePosition.BUDGET_FRIENDLY
    if charge > average * PREMIUM_THRESHOLD:
        return CompetitivePosition.PREMIUM
    return CompetitivePosition.COMPETITIVE


def get_pricing_advice(entry: ComparisonEntry, analysis: ComparisonAnalysis) -> str:
    charge = entry.pricing.recommended_charge
    average = analysis.average_recommended_charge
    diff = charge - average

    if abs(diff) < ALIGNED_TOLERANCE:
        return "Pricing is aligned with market average"

    percent = round_currency(abs(diff) / average * 100)
    if diff > 0:
        return f"{percent}% above average - justify with faster service or premium quality"
    return f"{percent}% below average - opportunity to increase margins"


def calculate_optimal_strategy(
    jurisdictions: Sequence[str],
    job_type,
    engine: Optional[PricingEngine] = None,
) -> Strategy:
    """Build a pricing strategy across jurisdictions.

    Args:
        jurisdictions: Locations to compare.
        job_type: Free-form job type or Trade.
        engine: PricingEngine to use; the default database when omitted.

    Returns:
        Strategy with per-jurisdiction positioning and a market summary.
        Margins and the fastest jurisdiction are None for an empty set.
    """
    comparison = compare_jurisdictions(jurisdictions, job_type, engine=engine)
    entries = comparison.comparisons

    positioned = [
        StrategyEntry(
            location=entry.location,
            recommended_charge=entry.pricing.recommended_charge,
            competitive_position=get_competitive_position(entry, comparison.analysis),
            pricing_advice=get_pricing_advice(entry, comparison.analysis),
        )
        for entry in entries
    ]

    margins = [entry.pricing.profit_margin for entry in entries]
    fastest = None
    if entries:
        # min() returns the first of equal keys
        fastest = min(entries, key=lambda e: parse_processing_weeks(e.pricing.processing_time)).location

    summary = StrategySummary(
        total_market_size=len(entries),
        average_charge=comparison.analysis.average_recommended_charge,
        best_margin=max(margins) if margins else None,
        worst_margin=min(margins) if margins else None,
        fastest_processing=fastest,
    )

    logger.info(
        "strategy_calculated",
        jurisdictions=len(entries),
        trade=comparison.job_type,
        fastest=fastest,
    )

    return Strategy(jurisdictions=positioned, summary=summary, job_type=comparison.job_type)
