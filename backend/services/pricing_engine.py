"""Pricing Engine for permit pricing.

Computes, for one (jurisdiction, trade, project value):
- Permit fee from the jurisdiction's schedule, clamped to its bounds
- Contractor labor for the permit process
- Recommended client charge with markup and minimum
- Profit summary and competitor benchmarks

Formulas:
    raw_fee = base_fee + project_value * valuation_rate   (nulls count as 0)
    permit_fee = round(max(min_fee, min(raw_fee, max_fee)))
    labor_cost = round(total_hours * labor_rate)
    charge = max(permit_fee + round(permit_fee * markup) + labor_cost, minimum_charge)

All money rounds half-up to whole dollars.
"""

from typing import Dict, Optional

import structlog

from config.settings import Settings, settings as default_settings
from models.pricing import (
    LABOR_TASKS,
    TRADE_FEE_CATEGORIES,
    ClientChargeDetails,
    ClientExplanation,
    CompetitiveBenchmarks,
    ExplanationLineItem,
    LaborCostDetails,
    LaborTaskCost,
    PermitFeeDetails,
    PricingDataQuality,
    PricingResult,
    PricingSummary,
    Trade,
    TradeResolution,
)
from services.fee_database import FeeDatabase, get_fee_database
from services.regional_resolver import DEFAULT_JURISDICTION, is_fallback_jurisdiction, resolve_jurisdiction
from utils.currency import round_currency

logger = structlog.get_logger(__name__)


# =============================================================================
# JOB TYPE NORMALIZATION
# =============================================================================

# Job type labels used by the intake forms -> canonical trade
JOB_TYPE_ALIASES: Dict[str, Trade] = {
    "Electrical Work": Trade.ELECTRICAL,
    "Electrical": Trade.ELECTRICAL,
    "Plumbing": Trade.PLUMBING,
    "HVAC": Trade.HVAC,
    "General Construction": Trade.GENERAL_CONSTRUCTION,
    "Remodeling": Trade.REMODELING,
    "Remodeling/Renovation": Trade.REMODELING,
    "Solar Installation": Trade.SOLAR,
    "Solar": Trade.SOLAR,
    "Roofing": Trade.ROOFING,
    "Pool/Spa": Trade.POOL,
    "Pool": Trade.POOL,
    "Fence/Deck": Trade.FENCE,
    "Fence": Trade.FENCE,
    "Demolition": Trade.DEMOLITION,
}

FALLBACK_TRADE = Trade.GENERAL_CONSTRUCTION

CLIENT_VALUE_PROPOSITION = (
    "Licensed and insured contractor",
    "Proper permit pulled and passed inspection",
    "Increased home value and insurability",
    "Legal protection for homeowner",
    "Code-compliant work guaranteed",
)


def resolve_trade(job_type) -> TradeResolution:
    """Map a free-form job type to a canonical trade.

    Matching is exact on the alias table. Anything else is priced as
    General Construction and reported as unrecognized.
    """
    if isinstance(job_type, Trade):
        return TradeResolution(trade=job_type, recognized=True, raw_job_type=job_type.value)

    trade = JOB_TYPE_ALIASES.get(job_type) if isinstance(job_type, str) else None
    if trade is not None:
        return TradeResolution(trade=trade, recognized=True, raw_job_type=job_type)

    logger.info(
        "job_type_defaulted",
        job_type=job_type,
        trade=FALLBACK_TRADE.value,
    )
    return TradeResolution(trade=FALLBACK_TRADE, recognized=False, raw_job_type=str(job_type))


def normalize_job_type(job_type) -> Trade:
    """Canonical trade for a job type, General Construction when unknown."""
    return resolve_trade(job_type).trade


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


# =============================================================================
# Pricing Engine
# =============================================================================


class PricingEngine:
    """Prices permit work against a FeeDatabase snapshot.

    Never raises for unknown jurisdictions, unknown trades, or
    non-positive project values; those degrade to estimated results.
    """

    def __init__(self, fee_database: Optional[FeeDatabase] = None, settings: Optional[Settings] = None):
        self.fee_database = fee_database or get_fee_database()
        self.settings = settings or default_settings

    def price(self, jurisdiction: str, job_type, project_value: Optional[float] = None) -> PricingResult:
        """Full pricing for a jurisdiction, job type and declared project value.

        Args:
            jurisdiction: "City, ST" string, resolved to a fee table key.
            job_type: Free-form job type or Trade.
            project_value: Declared project value ($). Defaults to
                Settings.default_project_value.

        Returns:
            PricingResult with every monetary figure in whole dollars.
        """
        if project_value is None:
            project_value = self.settings.default_project_value

        resolution = resolve_trade(job_type)
        trade = resolution.trade

        snapshot = self.fee_database.snapshot()
        resolved = resolve_jurisdiction(jurisdiction, snapshot.permit_fees)
        if resolved not in snapshot.permit_fees:
            resolved = DEFAULT_JURISDICTION

        permit_fee = self._calculate_permit_fee(snapshot.permit_fees[resolved], trade, project_value)
        labor = self._calculate_labor(trade)
        client_charge = self._calculate_client_charge(permit_fee.permit_fee, labor.labor_cost, trade)

        total_cost = permit_fee.permit_fee + labor.labor_cost
        profit = client_charge.recommended_charge - total_cost
        summary = PricingSummary(
            total_cost=total_cost,
            recommended_charge=client_charge.recommended_charge,
            your_profit=profit,
            profit_margin=round_currency(profit / client_charge.recommended_charge * 100),
            time_investment=f"{_format_hours(labor.hours)} hours",
            processing_time=permit_fee.processing_time,
        )

        competitive = CompetitiveBenchmarks(
            unlicensed_contractor_price=round_currency(
                permit_fee.permit_fee * self.settings.unlicensed_price_multiplier
            ),
            expediter_service_price=round_currency(
                permit_fee.permit_fee * self.settings.expediter_price_multiplier
                + self.settings.expediter_base_fee
            ),
        )

        data_quality = PricingDataQuality(
            resolved_jurisdiction=resolved,
            record=snapshot.data_quality[resolved],
            is_fallback=is_fallback_jurisdiction(resolved),
        )

        logger.debug(
            "pricing_calculated",
            jurisdiction=jurisdiction,
            resolved=resolved,
            trade=trade.value,
            project_value=project_value,
            permit_fee=permit_fee.permit_fee,
            recommended_charge=client_charge.recommended_charge,
        )

        return PricingResult(
            jurisdiction=jurisdiction,
            job_type=trade,
            job_type_recognized=resolution.recognized,
            project_value=project_value,
            permit_fee=permit_fee,
            labor=labor,
            client_charge=client_charge,
            summary=summary,
            competitive=competitive,
            data_quality=data_quality,
        )

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    def _calculate_permit_fee(self, profile, trade: Trade, project_value: float) -> PermitFeeDetails:
        category = TRADE_FEE_CATEGORIES[trade]
        fees = profile.fees_for(category)

        raw_fee = (fees.base_fee or 0) + project_value * (fees.valuation_rate or 0)
        # With inverted bounds this yields min_fee
        clamped = max(fees.min_fee, min(raw_fee, fees.max_fee))

        return PermitFeeDetails(
            permit_fee=round_currency(clamped),
            base_fee=fees.base_fee,
            valuation_rate=fees.valuation_rate,
            min_fee=fees.min_fee,
            max_fee=fees.max_fee,
            raw_fee=raw_fee,
            fee_category=category,
            processing_time=profile.processing_time,
            expedite_fee=profile.expedite_fee,
            expedite_time=profile.expedite_time,
            notes=fees.notes or "",
        )

    def _calculate_labor(self, trade: Trade) -> LaborCostDetails:
        profile = self.fee_database.get_labor_profile(trade)
        rate = self.fee_database.get_markup_profile(trade).labor_rate

        breakdown = {}
        for task in LABOR_TASKS:
            hours = getattr(profile, task)
            breakdown[task] = LaborTaskCost(hours=hours, cost=round_currency(hours * rate))

        return LaborCostDetails(
            hours=profile.total,
            hourly_rate=rate,
            labor_cost=round_currency(profile.total * rate),
            breakdown=breakdown,
        )

    def _calculate_client_charge(self, permit_fee: int, labor_cost: int, trade: Trade) -> ClientChargeDetails:
        markup = self.fee_database.get_markup_profile(trade)

        permit_fee_markup = round_currency(permit_fee * markup.permit_fee_markup)
        subtotal = permit_fee + permit_fee_markup + labor_cost
        recommended = max(subtotal, round_currency(markup.minimum_charge))

        return ClientChargeDetails(
            permit_fee=permit_fee,
            permit_fee_markup=permit_fee_markup,
            permit_fee_markup_percent=round_currency(markup.permit_fee_markup * 100),
            labor_cost=labor_cost,
            subtotal=subtotal,
            recommended_charge=recommended,
            minimum_charge=markup.minimum_charge,
            notes=markup.notes,
        )


# =============================================================================
# Client Communication
# =============================================================================


def generate_client_explanation(result: PricingResult) -> ClientExplanation:
    """Turn a pricing result into a line-item explanation for the client.

    Correction handling and the permit fee markup are rolled into a
    single administrative line so the items sum to the recommended charge
    (up to per-task rounding).
    """
    labor = result.labor
    rate = f"{labor.hourly_rate:g}"

    def labor_line(item: str, task: str) -> ExplanationLineItem:
        task_cost = labor.breakdown[task]
        return ExplanationLineItem(
            item=item,
            description=f"{_format_hours(task_cost.hours)} hrs @ ${rate}/hr",
            cost=task_cost.cost,
        )

    breakdown = [
        ExplanationLineItem(
            item="Permit Fee",
            description=f"{result.jurisdiction} building department fee",
            cost=result.permit_fee.permit_fee,
        ),
        labor_line("Document Preparation", "document_prep"),
        labor_line("Plan Drawing", "plan_drawing"),
        labor_line("Permit Submission", "submission"),
        labor_line("Inspection Attendance", "inspection"),
        ExplanationLineItem(
            item="Administrative Costs",
            description="Processing, follow-up, corrections",
            cost=labor.breakdown["corrections"].cost + result.client_charge.permit_fee_markup,
        ),
    ]

    return ClientExplanation(
        breakdown=breakdown,
        total=result.client_charge.recommended_charge,
        timeline=result.permit_fee.processing_time,
        value_proposition=list(CLIENT_VALUE_PROPOSITION),
    )


# =============================================================================
# Convenience Functions
# =============================================================================


def calculate_full_pricing(jurisdiction: str, job_type, project_value: Optional[float] = None) -> PricingResult:
    """Price against the default fee database.

    Args:
        jurisdiction: "City, ST" string.
        job_type: Free-form job type or Trade.
        project_value: Declared project value ($).

    Returns:
        PricingResult.
    """
    return PricingEngine().price(jurisdiction, job_type, project_value)
