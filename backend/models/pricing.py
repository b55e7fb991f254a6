"""Pricing result models.

Trade enumeration plus the dataclasses returned by the pricing engine.
Results are ephemeral and recomputed on every call; to_dict() renders
the camelCase structure the HTTP layer serializes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.fee_schedule import DataQualityRecord, FeeCategory


class Trade(str, Enum):
    """Canonical trades of permitted work."""

    ELECTRICAL = "Electrical"
    PLUMBING = "Plumbing"
    HVAC = "HVAC"
    GENERAL_CONSTRUCTION = "General Construction"
    REMODELING = "Remodeling"
    SOLAR = "Solar"
    ROOFING = "Roofing"
    POOL = "Pool"
    FENCE = "Fence"
    DEMOLITION = "Demolition"


# Many-to-one: every trade without its own schedule is priced as general work
TRADE_FEE_CATEGORIES: Dict[Trade, FeeCategory] = {
    Trade.ELECTRICAL: FeeCategory.ELECTRICAL,
    Trade.PLUMBING: FeeCategory.PLUMBING,
    Trade.HVAC: FeeCategory.HVAC,
    Trade.GENERAL_CONSTRUCTION: FeeCategory.GENERAL,
    Trade.REMODELING: FeeCategory.GENERAL,
    Trade.SOLAR: FeeCategory.SOLAR,
    Trade.ROOFING: FeeCategory.GENERAL,
    Trade.POOL: FeeCategory.GENERAL,
    Trade.FENCE: FeeCategory.GENERAL,
    Trade.DEMOLITION: FeeCategory.GENERAL,
}

LABOR_TASKS = ("document_prep", "plan_drawing", "submission", "inspection", "corrections")

_TASK_KEYS = {
    "document_prep": "documentPrep",
    "plan_drawing": "planDrawing",
    "submission": "submission",
    "inspection": "inspection",
    "corrections": "corrections",
}


@dataclass
class TradeResolution:
    """Outcome of normalizing a free-form job type."""

    trade: Trade
    recognized: bool
    raw_job_type: str


@dataclass
class PermitFeeDetails:
    """Computed permit fee with the schedule that produced it."""

    permit_fee: int
    base_fee: Optional[float]
    valuation_rate: Optional[float]
    min_fee: float
    max_fee: float
    raw_fee: float
    fee_category: FeeCategory
    processing_time: str
    expedite_fee: float
    expedite_time: str
    notes: str = ""

    @property
    def was_clamped(self) -> bool:
        return self.raw_fee < self.min_fee or self.raw_fee > self.max_fee

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permitFee": self.permit_fee,
            "baseFee": self.base_fee,
            "valuationRate": self.valuation_rate,
            "minFee": self.min_fee,
            "maxFee": self.max_fee,
            "feeCategory": self.fee_category.value,
            "processingTime": self.processing_time,
            "expediteFee": self.expedite_fee,
            "expediteTime": self.expedite_time,
            "notes": self.notes,
        }


@dataclass
class LaborTaskCost:
    hours: float
    cost: int


@dataclass
class LaborCostDetails:
    """Labor cost and its five-task breakdown.

    Each task cost is rounded independently, so the breakdown may differ
    from labor_cost by a few dollars.
    """

    hours: float
    hourly_rate: float
    labor_cost: int
    breakdown: Dict[str, LaborTaskCost]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hours": self.hours,
            "hourlyRate": self.hourly_rate,
            "laborCost": self.labor_cost,
            "breakdown": {
                _TASK_KEYS[task]: {"hours": item.hours, "cost": item.cost}
                for task, item in self.breakdown.items()
            },
        }


@dataclass
class ClientChargeDetails:
    """What to charge the client."""

    permit_fee: int
    permit_fee_markup: int
    permit_fee_markup_percent: float
    labor_cost: int
    subtotal: int
    recommended_charge: int
    minimum_charge: float
    notes: str = ""

    @property
    def minimum_applied(self) -> bool:
        return self.subtotal < self.minimum_charge

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permitFee": self.permit_fee,
            "permitFeeMarkup": self.permit_fee_markup,
            "permitFeeMarkupPercent": self.permit_fee_markup_percent,
            "laborCost": self.labor_cost,
            "subtotal": self.subtotal,
            "recommendedCharge": self.recommended_charge,
            "minimumCharge": self.minimum_charge,
            "notes": self.notes,
        }


@dataclass
class PricingSummary:
    total_cost: int
    recommended_charge: int
    your_profit: int
    profit_margin: int
    time_investment: str
    processing_time: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCost": self.total_cost,
            "recommendedCharge": self.recommended_charge,
            "yourProfit": self.your_profit,
            "profitMargin": self.profit_margin,
            "timeInvestment": self.time_investment,
            "processingTime": self.processing_time,
        }


@dataclass
class CompetitiveBenchmarks:
    """Illustrative competitor prices derived from the permit fee."""

    unlicensed_contractor_price: int
    expediter_service_price: int
    your_advantage: str = "Licensed, insured, and properly permitted work"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unlicensedContractorPrice": self.unlicensed_contractor_price,
            "expediterServicePrice": self.expediter_service_price,
            "yourAdvantage": self.your_advantage,
        }


@dataclass
class PricingDataQuality:
    """Data quality of the schedule a result was priced from.

    is_estimated tells callers the figure is a regional approximation.
    """

    resolved_jurisdiction: str
    record: DataQualityRecord
    is_fallback: bool

    @property
    def is_estimated(self) -> bool:
        return self.record.is_estimated

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "resolvedJurisdiction": self.resolved_jurisdiction,
            "isEstimated": self.is_estimated,
            "isFallback": self.is_fallback,
        }


@dataclass
class PricingResult:
    """Full pricing for one (jurisdiction, trade, project value) evaluation."""

    jurisdiction: str
    job_type: Trade
    job_type_recognized: bool
    project_value: float
    permit_fee: PermitFeeDetails
    labor: LaborCostDetails
    client_charge: ClientChargeDetails
    summary: PricingSummary
    competitive: CompetitiveBenchmarks
    data_quality: PricingDataQuality

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jurisdiction": self.jurisdiction,
            "jobType": self.job_type.value,
            "jobTypeRecognized": self.job_type_recognized,
            "projectValue": self.project_value,
            "permitFee": self.permit_fee.to_dict(),
            "labor": self.labor.to_dict(),
            "clientCharge": self.client_charge.to_dict(),
            "summary": self.summary.to_dict(),
            "competitive": self.competitive.to_dict(),
            "dataQuality": self.data_quality.to_dict(),
        }


@dataclass
class ExplanationLineItem:
    item: str
    description: str
    cost: int

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item, "description": self.description, "cost": self.cost}


@dataclass
class ClientExplanation:
    """Client-facing breakdown of a recommended charge."""

    breakdown: List[ExplanationLineItem]
    total: int
    timeline: str
    value_proposition: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breakdown": [line.to_dict() for line in self.breakdown],
            "total": self.total,
            "timeline": self.timeline,
            "valueProposition": list(self.value_proposition),
        }
