"""Multi-Jurisdiction Comparison Engine.

Prices one job type across several jurisdictions at a common reference
project value, then summarizes and ranks the results so a contractor can
see where permit work costs more and where review is slower.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence

import structlog

from config.settings import settings
from models.comparison import (
    ComparisonAnalysis,
    ComparisonEntry,
    ComparisonPricing,
    ComparisonResult,
    Difference,
    PermitDetails,
    QuickReferenceEntry,
    Severity,
    SupportedJurisdiction,
)
from services.fee_database import FeeDatabase, get_fee_database
from services.pricing_engine import PricingEngine, normalize_job_type
from services.regional_resolver import is_fallback_jurisdiction
from utils.currency import average_currency, round_currency

logger = structlog.get_logger(__name__)

# Rank of a processing time that cannot be parsed
UNPARSEABLE_WEEKS = 999

PERMIT_FEE_SPREAD_THRESHOLD = 50
CHARGE_SPREAD_THRESHOLD = 100
EXPEDITE_FEE_SPREAD_THRESHOLD = 100

_FIRST_INTEGER = re.compile(r"(\d+)")

NEARBY_JURISDICTIONS: Dict[str, List[str]] = {
    "Los Angeles, CA": ["San Diego, CA", "San Francisco, CA"],
    "San Diego, CA": ["Los Angeles, CA"],
    "San Francisco, CA": ["Los Angeles, CA", "San Diego, CA"],
    "Austin, TX": ["Houston, TX"],
    "Houston, TX": ["Austin, TX"],
    "Miami, FL": [],
    "Chicago, IL": ["Milwaukee, WI"],
    "Milwaukee, WI": ["Chicago, IL"],
    "Phoenix, AZ": [],
    "New York, NY": [],
}


def parse_processing_weeks(processing_time: Optional[str]) -> int:
    """Convert a processing time like "2-4 weeks" to its lower bound in weeks.

    Months count as four weeks. Strings with no week/month unit or no
    integer return UNPARSEABLE_WEEKS so they sort last.
    """
    if not processing_time:
        return UNPARSEABLE_WEEKS

    match = _FIRST_INTEGER.search(processing_time)
    if not match:
        return UNPARSEABLE_WEEKS

    if "week" in processing_time:
        return int(match.group(1))
    if "month" in processing_time:
        return int(match.group(1)) * 4
    return UNPARSEABLE_WEEKS


def _assign_ranks(
    entries: List[ComparisonEntry],
    key: Callable[[ComparisonEntry], float],
    attr: str,
) -> None:
    # sorted() is stable, so ties keep input order
    for position, entry in enumerate(sorted(entries, key=key), start=1):
        setattr(entry.rank, attr, position)


def _build_entry(location: str, engine: PricingEngine, job_type, project_value: float) -> ComparisonEntry:
    result = engine.price(location, job_type, project_value)
    return ComparisonEntry(
        location=location,
        pricing=ComparisonPricing(
            permit_fee=result.permit_fee.permit_fee,
            labor_cost=result.labor.labor_cost,
            total_cost=result.summary.total_cost,
            recommended_charge=result.summary.recommended_charge,
            profit=result.summary.your_profit,
            profit_margin=result.summary.profit_margin,
            processing_time=result.summary.processing_time,
            time_investment=result.summary.time_investment,
        ),
        permit_details=PermitDetails(
            base_fee=result.permit_fee.base_fee,
            valuation_rate=result.permit_fee.valuation_rate,
            expedite_fee=result.permit_fee.expedite_fee,
            expedite_time=result.permit_fee.expedite_time,
            processing_time=result.permit_fee.processing_time,
        ),
        is_estimated=result.data_quality.is_estimated,
    )


def compare_jurisdictions(
    jurisdictions: Sequence[str],
    job_type,
    engine: Optional[PricingEngine] = None,
    project_value: Optional[float] = None,
) -> ComparisonResult:
    """Compare pricing for one job type across jurisdictions.

    Args:
        jurisdictions: Locations to compare, in display order.
        job_type: Free-form job type or Trade.
        engine: PricingEngine to use; the default database when omitted.
        project_value: Reference value; Settings.comparison_project_value
            when omitted.

    Returns:
        ComparisonResult with entries in input order. Each axis of rank
        is a permutation of 1..N.
    """
    engine = engine or PricingEngine()
    if project_value is None:
        project_value = settings.comparison_project_value
    trade_label = normalize_job_type(job_type).value

    entries = [_build_entry(location, engine, job_type, project_value) for location in jurisdictions]

    if not entries:
        return ComparisonResult(
            comparisons=[],
            analysis=ComparisonAnalysis(),
            job_type=trade_label,
            project_value=project_value,
        )

    permit_fees = [entry.pricing.permit_fee for entry in entries]
    charges = [entry.pricing.recommended_charge for entry in entries]
    analysis = ComparisonAnalysis(
        lowest_permit_fee=min(permit_fees),
        highest_permit_fee=max(permit_fees),
        average_permit_fee=average_currency(permit_fees),
        lowest_recommended_charge=min(charges),
        highest_recommended_charge=max(charges),
        average_recommended_charge=average_currency(charges),
        variance=max(charges) - min(charges),
    )

    _assign_ranks(entries, lambda e: e.pricing.permit_fee, "by_permit_fee")
    _assign_ranks(entries, lambda e: e.pricing.recommended_charge, "by_total_charge")
    _assign_ranks(entries, lambda e: parse_processing_weeks(e.pricing.processing_time), "by_processing_time")

    logger.info(
        "jurisdictions_compared",
        count=len(entries),
        trade=trade_label,
        variance=analysis.variance,
    )

    return ComparisonResult(
        comparisons=entries,
        analysis=analysis,
        job_type=trade_label,
        project_value=project_value,
    )


def identify_key_differences(comparisons: Sequence[ComparisonEntry]) -> List[Difference]:
    """Flag the significant differences across compared jurisdictions.

    Spreads are max - min over the set. Fewer than two entries have no
    differences.
    """
    if len(comparisons) < 2:
        return []

    differences: List[Difference] = []

    permit_fees = [c.pricing.permit_fee for c in comparisons]
    permit_spread = max(permit_fees) - min(permit_fees)
    if permit_spread > PERMIT_FEE_SPREAD_THRESHOLD:
        differences.append(Difference(
            type="permitFee",
            severity=Severity.HIGH,
            message=f"Permit fees vary by ${permit_spread} across jurisdictions",
            details={"lowest": min(permit_fees), "highest": max(permit_fees), "spread": permit_spread},
        ))

    processing_times = [c.pricing.processing_time for c in comparisons]
    if len(set(processing_times)) > 1:
        weeks = [parse_processing_weeks(t) for t in processing_times]
        differences.append(Difference(
            type="processingTime",
            severity=Severity.MEDIUM,
            message="Processing times vary significantly",
            details={"fastestWeeks": min(weeks), "slowestWeeks": max(weeks)},
        ))

    charges = [c.pricing.recommended_charge for c in comparisons]
    charge_spread = max(charges) - min(charges)
    if charge_spread > CHARGE_SPREAD_THRESHOLD:
        differences.append(Difference(
            type="totalCharge",
            severity=Severity.HIGH,
            message=f"You should charge ${charge_spread} more in some jurisdictions",
            details={
                "lowest": min(charges),
                "highest": max(charges),
                "spread": charge_spread,
                "percentDifference": round_currency(charge_spread / min(charges) * 100),
            },
        ))

    expedite_fees = [c.permit_details.expedite_fee for c in comparisons]
    expedite_spread = max(expedite_fees) - min(expedite_fees)
    if expedite_spread > EXPEDITE_FEE_SPREAD_THRESHOLD:
        differences.append(Difference(
            type="expediteFee",
            severity=Severity.LOW,
            message=f"Expedite fees vary by ${expedite_spread:g}",
            details={"lowest": min(expedite_fees), "highest": max(expedite_fees), "spread": expedite_spread},
        ))

    return differences


# =============================================================================
# Reference Helpers
# =============================================================================


def get_supported_jurisdictions(fee_database: Optional[FeeDatabase] = None) -> List[SupportedJurisdiction]:
    """List named jurisdictions with their own schedules (fallback buckets excluded)."""
    fee_database = fee_database or get_fee_database()
    supported = []
    for location in fee_database.jurisdiction_keys():
        if is_fallback_jurisdiction(location):
            continue
        city, _, state = location.partition(", ")
        supported.append(SupportedJurisdiction(
            location=location,
            city=city,
            state=state,
            display_name=location,
        ))
    return supported


def generate_quick_reference(
    jurisdictions: Sequence[str],
    job_types: Sequence[str],
    engine: Optional[PricingEngine] = None,
) -> Dict[str, List[QuickReferenceEntry]]:
    """Permit fee and charge for each job type in each jurisdiction.

    Keyed by the job type exactly as passed in.
    """
    engine = engine or PricingEngine()
    reference: Dict[str, List[QuickReferenceEntry]] = {}

    for job_type in job_types:
        rows = []
        for location in jurisdictions:
            result = engine.price(location, job_type, settings.comparison_project_value)
            rows.append(QuickReferenceEntry(
                location=location,
                permit_fee=result.permit_fee.permit_fee,
                recommended_charge=result.summary.recommended_charge,
                processing_time=result.permit_fee.processing_time,
            ))
        reference[job_type] = rows

    return reference


def suggest_nearby_jurisdictions(location: str) -> List[str]:
    """Supported jurisdictions close to a location, empty when none are known."""
    return list(NEARBY_JURISDICTIONS.get(location, []))
