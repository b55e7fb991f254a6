"""Fee schedule Pydantic models.

This module defines the static table models: per-trade fee parameters,
jurisdiction profiles, data quality annotations, and the labor/markup
profiles shared across all jurisdictions.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class FeeCategory(str, Enum):
    """Fee categories carried by every jurisdiction profile."""

    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    HVAC = "hvac"
    GENERAL = "general"
    SOLAR = "solar"


class DataQuality(str, Enum):
    """How a jurisdiction's fee figures were obtained."""

    VERIFIED = "verified"
    PARTIALLY_VERIFIED = "partially-verified"
    ESTIMATED = "estimated"


class ConfidenceLevel(str, Enum):
    """Confidence in a jurisdiction's fee figures."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Only these categories are ever replaced by scraped data
OVERLAY_CATEGORIES = (FeeCategory.ELECTRICAL, FeeCategory.PLUMBING, FeeCategory.HVAC)


# =============================================================================
# FEE PARAMETERS
# =============================================================================


class TradeFeeParameters(BaseModel):
    """Fee parameters for one trade in one jurisdiction.

    Either component of the additive formula may be null: flat-fee
    schedules carry only base_fee, pure valuation schedules only
    valuation_rate. min_fee <= max_fee is intentionally not enforced
    because one upstream schedule publishes inverted bounds.
    """

    base_fee: Optional[float] = Field(None, ge=0, description="Flat component of the fee ($)")
    valuation_rate: Optional[float] = Field(
        None, ge=0, lt=1, description="Fraction of declared project value"
    )
    min_fee: float = Field(..., gt=0, description="Minimum fee ($)")
    max_fee: float = Field(..., gt=0, description="Maximum fee ($)")
    notes: Optional[str] = Field(None, description="Free-text schedule notes")

    @property
    def has_inverted_bounds(self) -> bool:
        """True when the published minimum exceeds the maximum."""
        return self.min_fee > self.max_fee

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "baseFee": self.base_fee,
            "valuationRate": self.valuation_rate,
            "minFee": self.min_fee,
            "maxFee": self.max_fee,
            "notes": self.notes or "",
        }


class JurisdictionProfile(BaseModel):
    """Complete fee record for a jurisdiction."""

    electrical: TradeFeeParameters
    plumbing: TradeFeeParameters
    hvac: TradeFeeParameters
    general: TradeFeeParameters
    solar: TradeFeeParameters
    processing_time: str = Field(..., min_length=1, description="Typical review duration")
    expedite_fee: float = Field(..., gt=0, description="Expedited review fee ($)")
    expedite_time: str = Field(..., min_length=1, description="Expedited review duration")

    def fees_for(self, category: FeeCategory) -> TradeFeeParameters:
        """Get the fee parameters for a fee category."""
        return getattr(self, category.value)

    def with_fees(self, category: FeeCategory, fees: TradeFeeParameters) -> "JurisdictionProfile":
        """Return a copy with one category's parameters replaced."""
        return self.model_copy(update={category.value: fees})


class DataQualityRecord(BaseModel):
    """Provenance annotation for a jurisdiction's fee figures."""

    quality: DataQuality
    source: str = Field(..., min_length=1)
    last_verified: str = Field(..., description="ISO date (YYYY-MM-DD)")
    confidence: ConfidenceLevel
    url: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_estimated(self) -> bool:
        return self.quality == DataQuality.ESTIMATED

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "quality": self.quality.value,
            "source": self.source,
            "lastVerified": self.last_verified,
            "confidence": self.confidence.value,
            "url": self.url,
            "notes": self.notes,
        }


# =============================================================================
# LABOR AND MARKUP PROFILES
# =============================================================================


class LaborProfile(BaseModel):
    """Hours of permit-related work for a trade."""

    document_prep: float = Field(..., gt=0, description="Research requirements, fill out forms")
    plan_drawing: float = Field(..., ge=0, description="Simple plan/diagram if required")
    submission: float = Field(..., gt=0, description="Online or counter submission")
    inspection: float = Field(..., gt=0, description="Be present for inspection")
    corrections: float = Field(..., ge=0, description="Handle corrections if needed")
    total: float = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_total(self) -> "LaborProfile":
        """Ensure total equals the sum of the five tasks."""
        if abs(self.total - self.component_sum) > 0.01:
            raise ValueError(
                f"Labor total {self.total} does not match task sum {self.component_sum}"
            )
        return self

    @property
    def component_sum(self) -> float:
        return (
            self.document_prep
            + self.plan_drawing
            + self.submission
            + self.inspection
            + self.corrections
        )


class MarkupProfile(BaseModel):
    """Recommended markup and labor rate for a trade."""

    permit_fee_markup: float = Field(..., gt=0, lt=1, description="Markup on the permit fee")
    labor_rate: float = Field(..., gt=0, lt=500, description="Permit labor rate ($/hr)")
    minimum_charge: float = Field(..., gt=0, description="Floor on the recommended charge ($)")
    notes: str = ""

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str) -> str:
        return v.strip()
