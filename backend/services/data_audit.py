"""Data audit reports for the fee tables.

Admin-facing diagnostics over the curated tables and the scraper overlay:
- Which fields the scraper actually changed
- How fresh each city's scraper data is
- Offline checks on verified cities (coverage, verification age, URLs)

All functions take their inputs explicitly and accept a reference time,
so reports are reproducible.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from config.settings import settings
from models.comparison import Severity
from models.fee_schedule import (
    DataQuality,
    DataQualityRecord,
    FeeCategory,
    JurisdictionProfile,
    OVERLAY_CATEGORIES,
)
from services.scraper_overlay import NUMERIC_FIELDS

logger = structlog.get_logger(__name__)

# Cities with a fee schedule scraper
SCRAPER_CITIES = (
    "Los Angeles, CA",
    "San Diego, CA",
    "San Francisco, CA",
    "Austin, TX",
    "Houston, TX",
    "Miami, FL",
    "Chicago, IL",
    "Milwaukee, WI",
    "Phoenix, AZ",
    "New York, NY",
)

STATUS_HEALTHY = "healthy"
STATUS_STALE = "stale"
STATUS_OUTDATED = "outdated"
STATUS_NEVER_RUN = "never_run"

OVERALL_GOOD = "good"
OVERALL_CAUTION = "caution"
OVERALL_WARNING = "warning"


# =============================================================================
# Report Models
# =============================================================================


@dataclass
class FieldChange:
    """One fee field whose merged value differs from the curated one."""

    jurisdiction: str
    trade: str
    field: str
    static_value: Optional[float]
    merged_value: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jurisdiction": self.jurisdiction,
            "trade": self.trade,
            "field": self.field,
            "staticValue": self.static_value,
            "mergedValue": self.merged_value,
        }


@dataclass
class CityScraperStatus:
    city: str
    status: str
    last_run: Optional[str] = None
    days_since_run: Optional[int] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    trades_covered: List[str] = field(default_factory=list)
    data_quality: str = "unknown"
    has_fee_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "status": self.status,
            "lastRun": self.last_run,
            "daysSinceRun": self.days_since_run,
            "source": self.source,
            "sourceUrl": self.source_url,
            "tradesCovered": list(self.trades_covered),
            "dataQuality": self.data_quality,
            "hasFeeData": self.has_fee_data,
        }


@dataclass
class Recommendation:
    severity: Severity
    message: str
    action: str
    cities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "action": self.action,
            "cities": list(self.cities),
        }


@dataclass
class ScraperHealthReport:
    total: int
    healthy: int
    stale: int
    outdated: int
    never_run: int
    overall_status: str
    cities: List[CityScraperStatus]
    last_full_run: Optional[str]
    recommendations: List[Recommendation]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "total": self.total,
                "healthy": self.healthy,
                "stale": self.stale,
                "outdated": self.outdated,
                "neverRun": self.never_run,
                "overallStatus": self.overall_status,
            },
            "cities": [c.to_dict() for c in self.cities],
            "lastFullRun": self.last_full_run,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class VerificationAudit:
    """Offline audit of the cities marked verified."""

    verified_cities: List[str]
    missing_fee_data: List[str]
    outdated_verifications: Dict[str, int]
    missing_urls: List[str]

    @property
    def passed(self) -> bool:
        return not (self.missing_fee_data or self.outdated_verifications or self.missing_urls)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verifiedCities": list(self.verified_cities),
            "missingFeeData": list(self.missing_fee_data),
            "outdatedVerifications": dict(self.outdated_verifications),
            "missingUrls": list(self.missing_urls),
            "passed": self.passed,
        }


# =============================================================================
# Static vs Merged
# =============================================================================


def compare_static_to_merged(
    static_fees: Dict[str, JurisdictionProfile],
    merged_fees: Dict[str, JurisdictionProfile],
) -> List[FieldChange]:
    """List every overlay-trade fee field the scraper changed."""
    changes: List[FieldChange] = []

    for jurisdiction, static_profile in static_fees.items():
        merged_profile = merged_fees.get(jurisdiction)
        if merged_profile is None:
            continue
        for category in OVERLAY_CATEGORIES:
            static_trade = static_profile.fees_for(category)
            merged_trade = merged_profile.fees_for(category)
            for field_name, attr in NUMERIC_FIELDS.items():
                before = getattr(static_trade, attr)
                after = getattr(merged_trade, attr)
                if before != after:
                    changes.append(FieldChange(jurisdiction, category.value, field_name, before, after))

    logger.info("static_merged_compared", changes=len(changes))
    return changes


# =============================================================================
# Scraper Health
# =============================================================================


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _classify(days_since_run: Optional[int]) -> str:
    if days_since_run is None:
        return STATUS_OUTDATED
    if days_since_run <= settings.scraper_healthy_days:
        return STATUS_HEALTHY
    if days_since_run <= settings.scraper_stale_days:
        return STATUS_STALE
    return STATUS_OUTDATED


def _city_status(
    city: str,
    scrape: Optional[Dict[str, Any]],
    data_quality: Dict[str, DataQualityRecord],
    permit_fees: Optional[Dict[str, JurisdictionProfile]],
    now: datetime,
) -> CityScraperStatus:
    quality = data_quality.get(city)
    status = CityScraperStatus(
        city=city,
        status=STATUS_NEVER_RUN,
        data_quality=quality.quality.value if quality else "unknown",
        has_fee_data=city in permit_fees if permit_fees is not None else quality is not None,
    )
    if not isinstance(scrape, dict):
        return status

    status.last_run = scrape.get("scrapedAt")
    status.source = scrape.get("source")
    status.source_url = scrape.get("sourceUrl")
    status.trades_covered = [c.value for c in OVERLAY_CATEGORIES if scrape.get(c.value)]

    scraped_at = _parse_timestamp(status.last_run)
    if scraped_at is not None:
        status.days_since_run = (now - scraped_at).days
    status.status = _classify(status.days_since_run)
    return status


def _recommendations(cities: List[CityScraperStatus]) -> List[Recommendation]:
    needs_run = [c.city for c in cities if c.status in (STATUS_OUTDATED, STATUS_NEVER_RUN)]
    stale = [c.city for c in cities if c.status == STATUS_STALE]
    recs = []

    if needs_run:
        recs.append(Recommendation(
            severity=Severity.HIGH,
            message=f"{len(needs_run)} scrapers need immediate attention",
            action="Run scrapers for these cities to update fee data",
            cities=needs_run,
        ))
    if stale:
        recs.append(Recommendation(
            severity=Severity.MEDIUM,
            message=(
                f"{len(stale)} scrapers have stale data "
                f"({settings.scraper_healthy_days}-{settings.scraper_stale_days} days old)"
            ),
            action="Schedule a scrape run within the next week",
            cities=stale,
        ))
    if not needs_run and not stale:
        recs.append(Recommendation(
            severity=Severity.LOW,
            message="All scrapers are healthy and up to date",
            action="No action needed",
        ))
    return recs


def get_scraper_health(
    history: Optional[Dict[str, Any]],
    data_quality: Dict[str, DataQualityRecord],
    now: Optional[datetime] = None,
    permit_fees: Optional[Dict[str, JurisdictionProfile]] = None,
    cities: Optional[List[str]] = None,
) -> ScraperHealthReport:
    """Freshness of each scraper city's data.

    Args:
        history: Parsed scrape history (None when absent).
        data_quality: Data quality records, merged or curated.
        now: Reference time; current UTC time when omitted.
        permit_fees: Fee table used for the has_fee_data flag.
        cities: Cities to report on; SCRAPER_CITIES by default.

    Returns:
        ScraperHealthReport. Overall status is "warning" when any city has
        never run or more than two are outdated, "caution" when more than
        three are stale, else "good".
    """
    history = history or {}
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    statuses = [
        _city_status(city, history.get(city), data_quality, permit_fees, now)
        for city in (cities or SCRAPER_CITIES)
    ]

    healthy = sum(1 for s in statuses if s.status == STATUS_HEALTHY)
    stale = sum(1 for s in statuses if s.status == STATUS_STALE)
    outdated = sum(1 for s in statuses if s.status == STATUS_OUTDATED)
    never_run = sum(1 for s in statuses if s.status == STATUS_NEVER_RUN)

    if never_run > 0 or outdated > 2:
        overall = OVERALL_WARNING
    elif stale > 3:
        overall = OVERALL_CAUTION
    else:
        overall = OVERALL_GOOD

    run_dates = sorted(
        (entry["scrapedAt"] for entry in history.values()
         if isinstance(entry, dict) and isinstance(entry.get("scrapedAt"), str)),
        reverse=True,
    )

    report = ScraperHealthReport(
        total=len(statuses),
        healthy=healthy,
        stale=stale,
        outdated=outdated,
        never_run=never_run,
        overall_status=overall,
        cities=statuses,
        last_full_run=run_dates[0] if run_dates else None,
        recommendations=_recommendations(statuses),
    )

    logger.info(
        "scraper_health_checked",
        total=report.total,
        healthy=healthy,
        stale=stale,
        outdated=outdated,
        never_run=never_run,
        overall_status=overall,
    )
    return report


def get_city_scraper_detail(
    city: str,
    history: Optional[Dict[str, Any]],
    permit_fees: Dict[str, JurisdictionProfile],
    data_quality: Dict[str, DataQualityRecord],
) -> Dict[str, Any]:
    """Scraped values next to the current fees for one city."""
    scrape = (history or {}).get(city)
    if not isinstance(scrape, dict):
        return {"city": city, "found": False, "message": f"No scraper data for {city}"}

    def summarize(trade_data: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(trade_data, dict):
            return None
        raw = trade_data.get("raw")
        return {
            **{name: trade_data.get(name) for name in NUMERIC_FIELDS},
            "rawDataPoints": len(raw) if isinstance(raw, list) else 0,
        }

    profile = permit_fees.get(city)
    quality = data_quality.get(city)
    return {
        "city": city,
        "found": True,
        "scrapedAt": scrape.get("scrapedAt"),
        "source": scrape.get("source"),
        "sourceUrl": scrape.get("sourceUrl"),
        "dataQuality": quality.to_dict() if quality else None,
        "trades": {c.value: summarize(scrape.get(c.value)) for c in OVERLAY_CATEGORIES},
        "currentFees": (
            {c.value: profile.fees_for(c).to_dict() for c in OVERLAY_CATEGORIES}
            if profile else None
        ),
    }


# =============================================================================
# Verified City Audit
# =============================================================================


def audit_verified_cities(
    permit_fees: Dict[str, JurisdictionProfile],
    data_quality: Dict[str, DataQualityRecord],
    today: Optional[date] = None,
) -> VerificationAudit:
    """Check every verified city for fee coverage, verification age and a source URL.

    Verification ages are in days; -1 marks a date that cannot be parsed.
    """
    today = today or date.today()
    verified = [key for key, record in data_quality.items() if record.quality == DataQuality.VERIFIED]

    missing_fee_data = []
    outdated: Dict[str, int] = {}
    missing_urls = []

    for city in verified:
        record = data_quality[city]
        profile = permit_fees.get(city)
        if profile is None or any(profile.fees_for(c) is None for c in FeeCategory):
            missing_fee_data.append(city)

        try:
            verified_on = date.fromisoformat(record.last_verified)
        except ValueError:
            verified_on = None
        if verified_on is None:
            outdated[city] = -1
        else:
            age = (today - verified_on).days
            if age > settings.verification_max_age_days:
                outdated[city] = age

        if not record.url:
            missing_urls.append(city)

    audit = VerificationAudit(
        verified_cities=verified,
        missing_fee_data=missing_fee_data,
        outdated_verifications=outdated,
        missing_urls=missing_urls,
    )
    logger.info(
        "verified_cities_audited",
        verified=len(verified),
        missing_fee_data=len(missing_fee_data),
        outdated=len(outdated),
        missing_urls=len(missing_urls),
        passed=audit.passed,
    )
    return audit
