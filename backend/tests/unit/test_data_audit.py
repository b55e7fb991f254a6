"""
Unit Tests for the data audit reports.

Tests the admin diagnostics:
- Static vs merged field diff
- Scraper freshness classification and overall status
- City detail lookup
- Verified city audit
"""

from datetime import date, datetime, timezone

import pytest

from models.comparison import Severity
from services.data_audit import (
    SCRAPER_CITIES,
    audit_verified_cities,
    compare_static_to_merged,
    get_city_scraper_detail,
    get_scraper_health,
)
from services.fee_database import DATA_QUALITY, PERMIT_FEES
from services.scraper_overlay import merge_scraped_fees
from tests.fixtures.mock_scrape_history import LA_SMALL_DRIFT, full_history

SCRAPED_AT = "2025-03-01T08:00:00Z"


def _at(year, month, day):
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Static vs Merged
# =============================================================================


class TestCompareStaticToMerged:

    def test_no_changes_without_history(self):
        merged = merge_scraped_fees(PERMIT_FEES, DATA_QUALITY, None)
        assert compare_static_to_merged(PERMIT_FEES, merged.permit_fees) == []

    def test_changed_fields_listed(self):
        merged = merge_scraped_fees(PERMIT_FEES, DATA_QUALITY, {"Los Angeles, CA": LA_SMALL_DRIFT})
        changes = compare_static_to_merged(PERMIT_FEES, merged.permit_fees)

        assert [(c.jurisdiction, c.trade, c.field) for c in changes] == [
            ("Los Angeles, CA", "electrical", "baseFee"),
            ("Los Angeles, CA", "electrical", "valuationRate"),
        ]
        assert changes[0].static_value == 150
        assert changes[0].merged_value == 155
        assert changes[0].to_dict()["mergedValue"] == 155


# =============================================================================
# Scraper Health
# =============================================================================


class TestScraperHealth:

    def test_all_healthy(self):
        report = get_scraper_health(full_history(SCRAPED_AT), DATA_QUALITY, now=_at(2025, 3, 15))
        assert report.total == len(SCRAPER_CITIES)
        assert report.healthy == len(SCRAPER_CITIES)
        assert report.overall_status == "good"
        assert [r.severity for r in report.recommendations] == [Severity.LOW]

    def test_all_stale_is_caution(self):
        report = get_scraper_health(full_history(SCRAPED_AT), DATA_QUALITY, now=_at(2025, 5, 1))
        assert report.stale == len(SCRAPER_CITIES)
        assert report.overall_status == "caution"
        assert report.recommendations[0].severity == Severity.MEDIUM

    def test_outdated_is_warning(self):
        report = get_scraper_health(full_history(SCRAPED_AT), DATA_QUALITY, now=_at(2025, 12, 1))
        assert report.outdated == len(SCRAPER_CITIES)
        assert report.overall_status == "warning"
        assert report.recommendations[0].severity == Severity.HIGH

    def test_never_run_is_warning(self):
        history = full_history(SCRAPED_AT)
        del history["Phoenix, AZ"]

        report = get_scraper_health(history, DATA_QUALITY, now=_at(2025, 3, 15))

        phoenix = next(c for c in report.cities if c.city == "Phoenix, AZ")
        assert phoenix.status == "never_run"
        assert phoenix.days_since_run is None
        assert report.never_run == 1
        assert report.overall_status == "warning"
        assert report.recommendations[0].cities == ["Phoenix, AZ"]

    @pytest.mark.parametrize("days,expected", [(30, "healthy"), (31, "stale"), (90, "stale"), (91, "outdated")])
    def test_status_boundaries(self, days, expected):
        scraped = datetime(2025, 1, 1, tzinfo=timezone.utc)
        history = {"Miami, FL": {"scrapedAt": scraped.isoformat()}}
        now = datetime.fromordinal(scraped.toordinal() + days).replace(tzinfo=timezone.utc)

        report = get_scraper_health(history, DATA_QUALITY, now=now, cities=["Miami, FL"])

        assert report.cities[0].status == expected
        assert report.cities[0].days_since_run == days

    def test_no_history(self):
        report = get_scraper_health(None, DATA_QUALITY, now=_at(2025, 3, 15))
        assert report.never_run == len(SCRAPER_CITIES)
        assert report.last_full_run is None

    def test_trades_covered_and_last_run(self):
        history = full_history(SCRAPED_AT)
        history["Los Angeles, CA"] = dict(LA_SMALL_DRIFT, scrapedAt="2025-03-02T09:00:00Z")

        report = get_scraper_health(history, DATA_QUALITY, now=_at(2025, 3, 15), permit_fees=PERMIT_FEES)

        la = next(c for c in report.cities if c.city == "Los Angeles, CA")
        assert la.trades_covered == ["electrical"]
        assert la.has_fee_data is True
        assert la.data_quality == "verified"
        assert report.last_full_run == "2025-03-02T09:00:00Z"

    def test_to_dict(self):
        data = get_scraper_health(full_history(SCRAPED_AT), DATA_QUALITY, now=_at(2025, 3, 15)).to_dict()
        assert data["summary"]["overallStatus"] == "good"
        assert data["summary"]["neverRun"] == 0


class TestCityScraperDetail:

    def test_found(self):
        detail = get_city_scraper_detail(
            "Los Angeles, CA", {"Los Angeles, CA": LA_SMALL_DRIFT}, PERMIT_FEES, DATA_QUALITY
        )
        assert detail["found"] is True
        assert detail["trades"]["electrical"]["baseFee"] == 155
        assert detail["trades"]["plumbing"] is None
        assert detail["currentFees"]["electrical"]["baseFee"] == 150

    def test_not_found(self):
        detail = get_city_scraper_detail("Miami, FL", {}, PERMIT_FEES, DATA_QUALITY)
        assert detail == {"city": "Miami, FL", "found": False, "message": "No scraper data for Miami, FL"}


# =============================================================================
# Verified City Audit
# =============================================================================


class TestAuditVerifiedCities:

    def test_recent_verification_passes(self):
        audit = audit_verified_cities(PERMIT_FEES, DATA_QUALITY, today=date(2025, 6, 1))
        assert "Los Angeles, CA" in audit.verified_cities
        assert "Chicago, IL" not in audit.verified_cities
        assert audit.passed is True

    def test_old_verification_flagged(self):
        audit = audit_verified_cities(PERMIT_FEES, DATA_QUALITY, today=date(2026, 6, 1))
        assert set(audit.outdated_verifications) == set(audit.verified_cities)
        assert audit.passed is False

    def test_missing_url_flagged(self):
        quality = dict(DATA_QUALITY)
        quality["Miami, FL"] = DATA_QUALITY["Miami, FL"].model_copy(update={"url": None})

        audit = audit_verified_cities(PERMIT_FEES, quality, today=date(2025, 6, 1))

        assert audit.missing_urls == ["Miami, FL"]

    def test_missing_fee_data_flagged(self):
        fees = {k: v for k, v in PERMIT_FEES.items() if k != "Austin, TX"}
        audit = audit_verified_cities(fees, DATA_QUALITY, today=date(2025, 6, 1))
        assert audit.missing_fee_data == ["Austin, TX"]
