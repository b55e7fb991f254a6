"""Jurisdiction comparison and strategy models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    """Severity of a cross-jurisdiction difference."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CompetitivePosition(str, Enum):
    """Charge position relative to the compared set's average."""

    BUDGET_FRIENDLY = "budget-friendly"
    COMPETITIVE = "competitive"
    PREMIUM = "premium"


@dataclass
class ComparisonPricing:
    permit_fee: int
    labor_cost: int
    total_cost: int
    recommended_charge: int
    profit: int
    profit_margin: int
    processing_time: str
    time_investment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permitFee": self.permit_fee,
            "laborCost": self.labor_cost,
            "totalCost": self.total_cost,
            "recommendedCharge": self.recommended_charge,
            "profit": self.profit,
            "profitMargin": self.profit_margin,
            "processingTime": self.processing_time,
            "timeInvestment": self.time_investment,
        }


@dataclass
class PermitDetails:
    base_fee: Optional[float]
    valuation_rate: Optional[float]
    expedite_fee: float
    expedite_time: str
    processing_time: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseFee": self.base_fee,
            "valuationRate": self.valuation_rate,
            "expediteFee": self.expedite_fee,
            "expediteTime": self.expedite_time,
            "processingTime": self.processing_time,
        }


@dataclass
class Rank:
    """1-based rank positions; each axis is a permutation of 1..N."""

    by_permit_fee: int = 0
    by_total_charge: int = 0
    by_processing_time: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "byPermitFee": self.by_permit_fee,
            "byTotalCharge": self.by_total_charge,
            "byProcessingTime": self.by_processing_time,
        }


@dataclass
class ComparisonEntry:
    location: str
    pricing: ComparisonPricing
    permit_details: PermitDetails
    is_estimated: bool
    rank: Rank = field(default_factory=Rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "pricing": self.pricing.to_dict(),
            "permitDetails": self.permit_details.to_dict(),
            "isEstimated": self.is_estimated,
            "rank": self.rank.to_dict(),
        }


@dataclass
class ComparisonAnalysis:
    lowest_permit_fee: int = 0
    highest_permit_fee: int = 0
    average_permit_fee: int = 0
    lowest_recommended_charge: int = 0
    highest_recommended_charge: int = 0
    average_recommended_charge: int = 0
    variance: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "lowestPermitFee": self.lowest_permit_fee,
            "highestPermitFee": self.highest_permit_fee,
            "averagePermitFee": self.average_permit_fee,
            "lowestRecommendedCharge": self.lowest_recommended_charge,
            "highestRecommendedCharge": self.highest_recommended_charge,
            "averageRecommendedCharge": self.average_recommended_charge,
            "variance": self.variance,
        }


@dataclass
class ComparisonResult:
    """Entries in input order, each carrying its three ranks."""

    comparisons: List[ComparisonEntry]
    analysis: ComparisonAnalysis
    job_type: str
    project_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparisons": [entry.to_dict() for entry in self.comparisons],
            "analysis": self.analysis.to_dict(),
            "jobType": self.job_type,
            "projectValue": self.project_value,
        }


@dataclass
class Difference:
    """A significant difference found across compared jurisdictions."""

    type: str
    severity: Severity
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "details": self.details,
        }


@dataclass
class SupportedJurisdiction:
    location: str
    city: str
    state: str
    display_name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "location": self.location,
            "city": self.city,
            "state": self.state,
            "displayName": self.display_name,
        }


@dataclass
class QuickReferenceEntry:
    location: str
    permit_fee: int
    recommended_charge: int
    processing_time: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "permitFee": self.permit_fee,
            "recommendedCharge": self.recommended_charge,
            "processingTime": self.processing_time,
        }


@dataclass
class StrategyEntry:
    location: str
    recommended_charge: int
    competitive_position: CompetitivePosition
    pricing_advice: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "recommendedCharge": self.recommended_charge,
            "competitivePosition": self.competitive_position.value,
            "pricingAdvice": self.pricing_advice,
        }


@dataclass
class StrategySummary:
    total_market_size: int
    average_charge: int
    best_margin: Optional[int]
    worst_margin: Optional[int]
    fastest_processing: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMarketSize": self.total_market_size,
            "averageCharge": self.average_charge,
            "bestMargin": self.best_margin,
            "worstMargin": self.worst_margin,
            "fastestProcessing": self.fastest_processing,
        }


@dataclass
class Strategy:
    jurisdictions: List[StrategyEntry]
    summary: StrategySummary
    job_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jurisdictions": [entry.to_dict() for entry in self.jurisdictions],
            "summary": self.summary.to_dict(),
            "jobType": self.job_type,
        }
