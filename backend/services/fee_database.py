"""Fee Database for permit pricing.

Curated permit fees by jurisdiction and trade, data quality annotations,
and the labor/markup profiles shared across jurisdictions.

FeeDatabase owns a cached snapshot of the curated tables with the
scraper overlay applied. The snapshot lives for a short TTL, can be
refreshed or cleared explicitly, and is never written back to the
curated tables.

Sources: Municipal building department fee schedules (2024-2025).
"""

import threading
import time
from typing import Callable, Dict, List, Optional

import structlog

from config.errors import ErrorCode, FeeTableError, ScrapeHistoryError
from config.settings import settings
from models.fee_schedule import (
    ConfidenceLevel,
    DataQuality,
    DataQualityRecord,
    FeeCategory,
    JurisdictionProfile,
    LaborProfile,
    MarkupProfile,
    TradeFeeParameters,
)
from models.pricing import TRADE_FEE_CATEGORIES, Trade
from services.regional_resolver import (
    DEFAULT_JURISDICTION,
    is_fallback_jurisdiction,
)
from services.scraper_overlay import MergeResult, load_scrape_history, merge_scraped_fees

logger = structlog.get_logger(__name__)


def _fees(base_fee, valuation_rate, min_fee, max_fee, notes=None) -> TradeFeeParameters:
    return TradeFeeParameters(
        base_fee=base_fee,
        valuation_rate=valuation_rate,
        min_fee=min_fee,
        max_fee=max_fee,
        notes=notes,
    )


# =============================================================================
# CURATED PERMIT FEES - NAMED CITIES
# =============================================================================

PERMIT_FEES: Dict[str, JurisdictionProfile] = {
    # California
    "Los Angeles, CA": JurisdictionProfile(
        electrical=_fees(150, 0.008, 150, 2500, "Additional $50 for plan check over $500 valuation"),
        plumbing=_fees(135, 0.008, 135, 2500),
        hvac=_fees(165, 0.008, 165, 2500),
        general=_fees(200, 0.015, 200, 5000),
        solar=_fees(350, 0.01, 350, 3500),
        processing_time="2-4 weeks",
        expedite_fee=250,
        expedite_time="3-5 days",
    ),
    "San Diego, CA": JurisdictionProfile(
        electrical=_fees(125, 0.007, 125, 2000),
        plumbing=_fees(115, 0.007, 115, 2000),
        hvac=_fees(145, 0.007, 145, 2000),
        general=_fees(180, 0.012, 180, 4500),
        solar=_fees(300, 0.009, 300, 3000),
        processing_time="3-5 weeks",
        expedite_fee=200,
        expedite_time="5-7 days",
    ),
    "San Francisco, CA": JurisdictionProfile(
        electrical=_fees(200, 0.01, 200, 3500),
        plumbing=_fees(185, 0.01, 185, 3500),
        hvac=_fees(210, 0.01, 210, 3500),
        general=_fees(275, 0.018, 275, 6000),
        solar=_fees(450, 0.012, 450, 4500),
        processing_time="6-12 weeks",
        expedite_fee=400,
        expedite_time="7-10 days",
    ),

    # Texas
    "Austin, TX": JurisdictionProfile(
        electrical=_fees(85, 0.006, 85, 1800),
        plumbing=_fees(75, 0.006, 75, 1800),
        hvac=_fees(95, 0.006, 95, 1800),
        general=_fees(120, 0.01, 120, 3500),
        solar=_fees(250, 0.008, 250, 2800),
        processing_time="2-3 weeks",
        expedite_fee=150,
        expedite_time="2-4 days",
    ),
    "Houston, TX": JurisdictionProfile(
        electrical=_fees(75, 0.005, 75, 1600),
        plumbing=_fees(70, 0.005, 70, 1600),
        hvac=_fees(85, 0.005, 85, 1600),
        general=_fees(110, 0.009, 110, 3200),
        solar=_fees(225, 0.007, 225, 2500),
        processing_time="1-2 weeks",
        expedite_fee=125,
        expedite_time="1-3 days",
    ),

    # Florida
    "Miami, FL": JurisdictionProfile(
        electrical=_fees(110, 0.007, 110, 2200),
        plumbing=_fees(100, 0.007, 100, 2200),
        hvac=_fees(120, 0.007, 120, 2200),
        general=_fees(155, 0.011, 155, 4000),
        solar=_fees(275, 0.009, 275, 3200),
        processing_time="2-4 weeks",
        expedite_fee=175,
        expedite_time="3-5 days",
    ),

    # Illinois
    # The published electrical/plumbing/hvac minimums exceed the caps; kept as
    # published until the schedule is re-verified with the Department of Buildings.
    "Chicago, IL": JurisdictionProfile(
        electrical=_fees(302, 0.005, 3550, 2400, "Published minimum exceeds maximum; pending re-verification"),
        plumbing=_fees(275, 0.005, 3550, 2400, "Published minimum exceeds maximum; pending re-verification"),
        hvac=_fees(None, 0.008, 3550, 2400, "Fee assessed per unit of equipment; minimum exceeds maximum as published"),
        general=_fees(190, 0.013, 190, 4800),
        solar=_fees(325, 0.01, 325, 3600),
        processing_time="3-6 weeks",
        expedite_fee=225,
        expedite_time="5-7 days",
    ),

    # Wisconsin
    "Milwaukee, WI": JurisdictionProfile(
        electrical=_fees(95, None, 95, 1500, "Flat fee per circuit schedule"),
        plumbing=_fees(90, None, 90, 1500, "Flat fee per fixture schedule"),
        hvac=_fees(105, 0.006, 105, 1500),
        general=_fees(140, 0.01, 140, 3800),
        solar=_fees(240, 0.008, 240, 2600),
        processing_time="2-3 weeks",
        expedite_fee=150,
        expedite_time="3-5 days",
    ),

    # Arizona
    "Phoenix, AZ": JurisdictionProfile(
        electrical=_fees(90, 0.006, 90, 1800),
        plumbing=_fees(None, 0.006, 80, 1800, "Valuation-based only"),
        hvac=_fees(None, 0.0065, 95, 1800, "Valuation-based only"),
        general=_fees(130, 0.01, 130, 3600),
        solar=_fees(260, 0.008, 260, 2700),
        processing_time="1-3 weeks",
        expedite_fee=175,
        expedite_time="2-4 days",
    ),

    # New York
    "New York, NY": JurisdictionProfile(
        electrical=_fees(None, 0.0249, 250, 4500, "2.49% of estimated cost of work; no base fee"),
        plumbing=_fees(None, 0.0249, 235, 4500, "2.49% of estimated cost of work; no base fee"),
        hvac=_fees(None, 0.0249, 265, 4500, "2.49% of estimated cost of work; no base fee"),
        general=_fees(350, 0.02, 350, 8000),
        solar=_fees(550, 0.015, 550, 6000),
        processing_time="8-16 weeks",
        expedite_fee=500,
        expedite_time="2-3 weeks",
    ),
}


# =============================================================================
# REGIONAL DEFAULTS - ESTIMATED
# =============================================================================
# Fallback buckets must carry both formula components.

PERMIT_FEES.update({
    "default-midwest": JurisdictionProfile(
        electrical=_fees(95, 0.006, 95, 1800),
        plumbing=_fees(85, 0.006, 85, 1800),
        hvac=_fees(105, 0.006, 105, 1800),
        general=_fees(140, 0.011, 140, 3800),
        solar=_fees(250, 0.008, 250, 2800),
        processing_time="2-4 weeks",
        expedite_fee=150,
        expedite_time="3-5 days",
    ),
    "default-texas": JurisdictionProfile(
        electrical=_fees(80, 0.0055, 80, 1700),
        plumbing=_fees(72, 0.0055, 72, 1700),
        hvac=_fees(90, 0.0055, 90, 1700),
        general=_fees(115, 0.0095, 115, 3300),
        solar=_fees(235, 0.0075, 235, 2600),
        processing_time="1-3 weeks",
        expedite_fee=135,
        expedite_time="2-4 days",
    ),
    "default-california": JurisdictionProfile(
        electrical=_fees(150, 0.008, 150, 2500),
        plumbing=_fees(135, 0.008, 135, 2500),
        hvac=_fees(165, 0.008, 165, 2500),
        general=_fees(210, 0.014, 210, 5000),
        solar=_fees(350, 0.01, 350, 3500),
        processing_time="3-6 weeks",
        expedite_fee=275,
        expedite_time="5-7 days",
    ),
    "default-mountain-west": JurisdictionProfile(
        electrical=_fees(100, 0.0065, 100, 1900),
        plumbing=_fees(90, 0.0065, 90, 1900),
        hvac=_fees(110, 0.0065, 110, 1900),
        general=_fees(145, 0.011, 145, 3800),
        solar=_fees(265, 0.0085, 265, 2800),
        processing_time="2-4 weeks",
        expedite_fee=175,
        expedite_time="3-5 days",
    ),
    "default-southeast": JurisdictionProfile(
        electrical=_fees(95, 0.0065, 95, 2000),
        plumbing=_fees(88, 0.0065, 88, 2000),
        hvac=_fees(105, 0.0065, 105, 2000),
        general=_fees(140, 0.01, 140, 3800),
        solar=_fees(255, 0.0085, 255, 3000),
        processing_time="2-4 weeks",
        expedite_fee=150,
        expedite_time="3-5 days",
    ),
    "default-northeast": JurisdictionProfile(
        electrical=_fees(150, 0.01, 150, 3000),
        plumbing=_fees(140, 0.01, 140, 3000),
        hvac=_fees(160, 0.01, 160, 3000),
        general=_fees(225, 0.016, 225, 6000),
        solar=_fees(400, 0.012, 400, 4500),
        processing_time="4-8 weeks",
        expedite_fee=300,
        expedite_time="1-2 weeks",
    ),
    DEFAULT_JURISDICTION: JurisdictionProfile(
        electrical=_fees(100, 0.007, 100, 2000),
        plumbing=_fees(90, 0.007, 90, 2000),
        hvac=_fees(110, 0.007, 110, 2000),
        general=_fees(150, 0.012, 150, 4000),
        solar=_fees(275, 0.009, 275, 3000),
        processing_time="2-4 weeks",
        expedite_fee=150,
        expedite_time="3-5 days",
    ),
})


# =============================================================================
# DATA QUALITY
# =============================================================================


def _verified(source, url, last_verified="2025-01-15", notes=None) -> DataQualityRecord:
    return DataQualityRecord(
        quality=DataQuality.VERIFIED,
        source=source,
        last_verified=last_verified,
        confidence=ConfidenceLevel.HIGH,
        url=url,
        notes=notes,
    )


def _partially_verified(source, url, last_verified="2025-01-15", notes=None) -> DataQualityRecord:
    return DataQualityRecord(
        quality=DataQuality.PARTIALLY_VERIFIED,
        source=source,
        last_verified=last_verified,
        confidence=ConfidenceLevel.MEDIUM,
        url=url,
        notes=notes,
    )


def _estimated(notes: str) -> DataQualityRecord:
    return DataQualityRecord(
        quality=DataQuality.ESTIMATED,
        source="Regional average of verified jurisdictions",
        last_verified="2025-01-15",
        confidence=ConfidenceLevel.LOW,
        notes=notes,
    )


DATA_QUALITY: Dict[str, DataQualityRecord] = {
    "Los Angeles, CA": _verified(
        "LADBS Fee Schedule",
        "https://www.ladbs.org/services/core-services/plan-check-permit/plan-check-permit-fees",
    ),
    "San Diego, CA": _verified(
        "San Diego Development Services Fee Schedule",
        "https://www.sandiego.gov/development-services/fees",
    ),
    "San Francisco, CA": _verified(
        "SF DBI Fee Tables",
        "https://sf.gov/information/building-permit-fees",
    ),
    "Austin, TX": _verified(
        "Austin Development Services Fee Schedule",
        "https://www.austintexas.gov/department/development-services-fees",
    ),
    "Houston, TX": _verified(
        "Houston Permitting Center Fee Schedule",
        "https://www.houstonpermittingcenter.org/fees",
    ),
    "Miami, FL": _verified(
        "City of Miami Building Department Fee Schedule",
        "https://www.miami.gov/Permits-Construction/Building-Permit-Fees",
    ),
    "Chicago, IL": _partially_verified(
        "Chicago Department of Buildings Permit Fee Table",
        "https://www.chicago.gov/city/en/depts/bldgs/provdrs/permits.html",
        notes="Trade minimums exceed maximums as published",
    ),
    "Milwaukee, WI": _partially_verified(
        "Milwaukee DNS Permit Fee Schedule",
        "https://city.milwaukee.gov/DNS/permits",
    ),
    "Phoenix, AZ": _partially_verified(
        "Phoenix Planning & Development Fee Schedule",
        "https://www.phoenix.gov/pdd/fees",
    ),
    "New York, NY": _verified(
        "NYC DOB Fee Schedule",
        "https://www.nyc.gov/site/buildings/dob/fees.page",
    ),
    "default-midwest": _estimated("Midwest regional estimate"),
    "default-texas": _estimated("Texas / south-central regional estimate"),
    "default-california": _estimated("California regional estimate"),
    "default-mountain-west": _estimated("Mountain West and Pacific Northwest regional estimate"),
    "default-southeast": _estimated("Southeast regional estimate"),
    "default-northeast": _estimated("Northeast regional estimate"),
    DEFAULT_JURISDICTION: _estimated("National estimate for jurisdictions outside the partitioned regions"),
}


# =============================================================================
# LABOR TIMES (hours of permit-related work)
# =============================================================================

LABOR_TIMES: Dict[Trade, LaborProfile] = {
    Trade.ELECTRICAL: LaborProfile(
        document_prep=1.5, plan_drawing=2.0, submission=0.5,
        inspection=1.0, corrections=1.0, total=6.0,
    ),
    Trade.PLUMBING: LaborProfile(
        document_prep=1.5, plan_drawing=2.0, submission=0.5,
        inspection=1.0, corrections=1.0, total=6.0,
    ),
    Trade.HVAC: LaborProfile(
        document_prep=2.0, plan_drawing=2.5, submission=0.5,  # Load calcs
        inspection=1.5, corrections=1.0, total=7.5,
    ),
    Trade.GENERAL_CONSTRUCTION: LaborProfile(
        document_prep=3.0, plan_drawing=4.0, submission=0.5,
        inspection=2.0, corrections=2.0, total=11.5,
    ),
    Trade.REMODELING: LaborProfile(
        document_prep=2.5, plan_drawing=3.5, submission=0.5,
        inspection=1.5, corrections=1.5, total=9.5,
    ),
    Trade.SOLAR: LaborProfile(
        document_prep=3.0, plan_drawing=3.0, submission=0.5,
        inspection=1.5, corrections=1.0, total=9.0,
    ),
    Trade.ROOFING: LaborProfile(
        document_prep=1.5, plan_drawing=1.5, submission=0.5,
        inspection=1.0, corrections=0.5, total=5.0,
    ),
    Trade.POOL: LaborProfile(
        document_prep=2.5, plan_drawing=3.0, submission=0.5,
        inspection=2.0, corrections=1.5, total=9.5,
    ),
    Trade.FENCE: LaborProfile(
        document_prep=1.0, plan_drawing=0.5, submission=0.5,
        inspection=0.5, corrections=0.5, total=3.0,
    ),
    Trade.DEMOLITION: LaborProfile(
        document_prep=1.5, plan_drawing=1.0, submission=0.5,
        inspection=1.0, corrections=0.5, total=4.5,
    ),
}


# =============================================================================
# MARKUP RECOMMENDATIONS
# =============================================================================

MARKUP_RECOMMENDATIONS: Dict[Trade, MarkupProfile] = {
    Trade.ELECTRICAL: MarkupProfile(
        permit_fee_markup=0.15, labor_rate=85, minimum_charge=250,
        notes="Industry standard: 15-25% markup on permit fees",
    ),
    Trade.PLUMBING: MarkupProfile(
        permit_fee_markup=0.15, labor_rate=80, minimum_charge=225,
        notes="Industry standard: 15-25% markup on permit fees",
    ),
    Trade.HVAC: MarkupProfile(
        permit_fee_markup=0.18, labor_rate=90, minimum_charge=300,
        notes="Industry standard: 18-30% markup on permit fees",
    ),
    Trade.GENERAL_CONSTRUCTION: MarkupProfile(
        permit_fee_markup=0.20, labor_rate=95, minimum_charge=400,
        notes="Industry standard: 20-35% markup on permit fees",
    ),
    Trade.REMODELING: MarkupProfile(
        permit_fee_markup=0.20, labor_rate=90, minimum_charge=350,
        notes="Industry standard: 20-30% markup on permit fees",
    ),
    Trade.SOLAR: MarkupProfile(
        permit_fee_markup=0.12, labor_rate=85, minimum_charge=400,
        notes="Industry standard: 12-20% markup on permit fees",
    ),
    Trade.ROOFING: MarkupProfile(
        permit_fee_markup=0.15, labor_rate=75, minimum_charge=200,
        notes="Industry standard: 15-25% markup on permit fees",
    ),
    Trade.POOL: MarkupProfile(
        permit_fee_markup=0.18, labor_rate=85, minimum_charge=350,
        notes="Industry standard: 18-25% markup on permit fees",
    ),
    Trade.FENCE: MarkupProfile(
        permit_fee_markup=0.15, labor_rate=70, minimum_charge=150,
        notes="Industry standard: 15-20% markup on permit fees",
    ),
    Trade.DEMOLITION: MarkupProfile(
        permit_fee_markup=0.15, labor_rate=75, minimum_charge=200,
        notes="Industry standard: 15-25% markup on permit fees",
    ),
}


# =============================================================================
# Table Validation
# =============================================================================


def validate_fee_tables(
    permit_fees: Dict[str, JurisdictionProfile],
    data_quality: Dict[str, DataQualityRecord],
    labor_times: Dict[Trade, LaborProfile],
    markups: Dict[Trade, MarkupProfile],
    trade_categories: Optional[Dict[Trade, FeeCategory]] = None,
) -> None:
    """Check the structural invariants the pricing engine relies on.

    Raises:
        FeeTableError: If the generic bucket, a data quality record, an
            estimated fallback annotation, a trade fee category or a trade
            profile is missing.
    """
    if trade_categories is None:
        trade_categories = TRADE_FEE_CATEGORIES

    if DEFAULT_JURISDICTION not in permit_fees:
        raise FeeTableError(
            code=ErrorCode.FEE_TABLE_INVALID,
            message="Fee table has no generic fallback bucket",
            jurisdiction=DEFAULT_JURISDICTION,
        )

    for key in permit_fees:
        record = data_quality.get(key)
        if record is None:
            raise FeeTableError(
                code=ErrorCode.MISSING_DATA_QUALITY,
                message=f"No data quality record for {key}",
                jurisdiction=key,
            )
        if is_fallback_jurisdiction(key) and not record.is_estimated:
            raise FeeTableError(
                code=ErrorCode.FEE_TABLE_INVALID,
                message=f"Fallback bucket {key} must be marked estimated",
                jurisdiction=key,
                details={"quality": record.quality.value},
            )

    for trade in Trade:
        if trade not in trade_categories:
            raise FeeTableError(
                code=ErrorCode.MISSING_TRADE_CATEGORY,
                message=f"No fee category for {trade.value}",
                details={"trade": trade.value},
            )
        if trade not in labor_times or trade not in markups:
            raise FeeTableError(
                code=ErrorCode.MISSING_LABOR_PROFILE,
                message=f"No labor or markup profile for {trade.value}",
                details={"trade": trade.value},
            )


# =============================================================================
# Fee Database Service
# =============================================================================


class FeeDatabase:
    """Cached, scraper-overlaid view of the curated fee tables.

    The snapshot is a single process-wide entry rebuilt when older than
    the TTL. The rebuild happens under a lock so concurrent callers past
    the TTL do not merge twice.
    """

    def __init__(
        self,
        permit_fees: Optional[Dict[str, JurisdictionProfile]] = None,
        data_quality: Optional[Dict[str, DataQualityRecord]] = None,
        labor_times: Optional[Dict[Trade, LaborProfile]] = None,
        markups: Optional[Dict[Trade, MarkupProfile]] = None,
        history_path: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
        deviation_tolerance: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._static_fees = permit_fees if permit_fees is not None else PERMIT_FEES
        self._static_quality = data_quality if data_quality is not None else DATA_QUALITY
        self._labor_times = labor_times if labor_times is not None else LABOR_TIMES
        self._markups = markups if markups is not None else MARKUP_RECOMMENDATIONS

        validate_fee_tables(self._static_fees, self._static_quality, self._labor_times, self._markups)

        self.history_path = history_path or settings.scrape_history_path
        self.ttl_seconds = settings.fee_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.deviation_tolerance = (
            settings.scrape_deviation_tolerance if deviation_tolerance is None else deviation_tolerance
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[MergeResult] = None
        self._snapshot_time: Optional[float] = None

        logger.info(
            "fee_database_initialized",
            jurisdictions=len(self._static_fees),
            history_path=self.history_path,
            ttl_seconds=self.ttl_seconds,
        )

    # -------------------------------------------------------------------------
    # Snapshot lifecycle
    # -------------------------------------------------------------------------

    def _is_fresh(self, now: float) -> bool:
        return (
            self._snapshot is not None
            and self._snapshot_time is not None
            and now - self._snapshot_time < self.ttl_seconds
        )

    def _build_snapshot(self) -> MergeResult:
        try:
            history = load_scrape_history(self.history_path)
        except ScrapeHistoryError as e:
            logger.warning(
                "scrape_history_unavailable",
                path=self.history_path,
                code=e.code,
                error=e.message,
            )
            history = None

        if history is None:
            logger.info("fee_snapshot_static", path=self.history_path)

        return merge_scraped_fees(
            self._static_fees,
            self._static_quality,
            history,
            tolerance=self.deviation_tolerance,
        )

    def snapshot(self) -> MergeResult:
        """Get the merged tables, rebuilding them once the TTL has expired."""
        with self._lock:
            now = self._clock()
            if self._is_fresh(now):
                return self._snapshot

            self._snapshot = self._build_snapshot()
            self._snapshot_time = now
            logger.info(
                "fee_snapshot_loaded",
                jurisdictions=len(self._snapshot.permit_fees),
                scrape_applied=self._snapshot.scrape_applied,
            )
            return self._snapshot

    def refresh(self) -> MergeResult:
        """Rebuild the snapshot immediately."""
        self.clear_cache()
        return self.snapshot()

    def clear_cache(self) -> None:
        """Drop the cached snapshot; the next read rebuilds it."""
        with self._lock:
            self._snapshot = None
            self._snapshot_time = None
        logger.info("fee_cache_cleared")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def static_fees(self) -> Dict[str, JurisdictionProfile]:
        """The curated baseline, without any scraper overlay."""
        return self._static_fees

    @property
    def static_quality(self) -> Dict[str, DataQualityRecord]:
        return self._static_quality

    def get_permit_fees(self) -> Dict[str, JurisdictionProfile]:
        return self.snapshot().permit_fees

    def get_data_quality(self) -> Dict[str, DataQualityRecord]:
        return self.snapshot().data_quality

    def jurisdiction_keys(self) -> List[str]:
        return list(self.get_permit_fees().keys())

    def get_profile(self, jurisdiction: str) -> Optional[JurisdictionProfile]:
        return self.get_permit_fees().get(jurisdiction)

    def get_quality(self, jurisdiction: str) -> Optional[DataQualityRecord]:
        return self.get_data_quality().get(jurisdiction)

    def get_trade_fees(self, jurisdiction: str, category: FeeCategory) -> Optional[TradeFeeParameters]:
        profile = self.get_profile(jurisdiction)
        return profile.fees_for(category) if profile else None

    def get_labor_profile(self, trade: Trade) -> LaborProfile:
        return self._labor_times[trade]

    def get_markup_profile(self, trade: Trade) -> MarkupProfile:
        return self._markups[trade]


# =============================================================================
# Default Instance
# =============================================================================

_fee_database: Optional[FeeDatabase] = None
_fee_database_lock = threading.Lock()


def get_fee_database() -> FeeDatabase:
    """Get the process-wide FeeDatabase, creating it on first use."""
    global _fee_database
    with _fee_database_lock:
        if _fee_database is None:
            _fee_database = FeeDatabase()
        return _fee_database


def clear_cache() -> None:
    """Force the default database to re-merge scraper data on next read."""
    get_fee_database().clear_cache()
