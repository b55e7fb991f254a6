"""
Unit Tests for the Jurisdiction Comparison Engine.

Tests compare_jurisdictions() and identify_key_differences():
- Analysis figures and exact variance
- Ranks form a permutation per axis, ties keep input order
- Entries stay in input order
- Difference detection thresholds
"""

import pytest

from models.comparison import Severity
from services.jurisdiction_comparison import (
    UNPARSEABLE_WEEKS,
    compare_jurisdictions,
    generate_quick_reference,
    get_supported_jurisdictions,
    identify_key_differences,
    parse_processing_weeks,
    suggest_nearby_jurisdictions,
)

THREE_CITIES = ["Los Angeles, CA", "Houston, TX", "San Francisco, CA"]


@pytest.fixture
def three_city_comparison(engine):
    return compare_jurisdictions(THREE_CITIES, "Electrical", engine=engine)


# =============================================================================
# Processing Time Parsing
# =============================================================================


class TestParseProcessingWeeks:

    @pytest.mark.parametrize("processing_time,expected", [
        ("2-4 weeks", 2),
        ("1-2 weeks", 1),
        ("6-12 weeks", 6),
        ("3 months", 12),
        ("2-3 months", 8),
        ("5-7 days", UNPARSEABLE_WEEKS),
        ("weeks", UNPARSEABLE_WEEKS),
        ("varies", UNPARSEABLE_WEEKS),
        ("", UNPARSEABLE_WEEKS),
        (None, UNPARSEABLE_WEEKS),
    ])
    def test_parse(self, processing_time, expected):
        assert parse_processing_weeks(processing_time) == expected


# =============================================================================
# Comparison
# =============================================================================


class TestCompareJurisdictions:

    def test_entries_in_input_order(self, three_city_comparison):
        assert [c.location for c in three_city_comparison.comparisons] == THREE_CITIES

    def test_pricing_values(self, three_city_comparison):
        fees = [c.pricing.permit_fee for c in three_city_comparison.comparisons]
        charges = [c.pricing.recommended_charge for c in three_city_comparison.comparisons]
        assert fees == [190, 100, 250]
        assert charges == [729, 625, 798]

    def test_analysis(self, three_city_comparison):
        analysis = three_city_comparison.analysis
        assert analysis.lowest_permit_fee == 100
        assert analysis.highest_permit_fee == 250
        assert analysis.average_permit_fee == 180
        assert analysis.lowest_recommended_charge == 625
        assert analysis.highest_recommended_charge == 798
        assert analysis.average_recommended_charge == 717

    def test_variance_is_exact_spread(self, three_city_comparison):
        assert three_city_comparison.analysis.variance == 798 - 625

    def test_ranks(self, three_city_comparison):
        ranks = {c.location: c.rank for c in three_city_comparison.comparisons}
        assert ranks["Houston, TX"].by_permit_fee == 1
        assert ranks["Los Angeles, CA"].by_permit_fee == 2
        assert ranks["San Francisco, CA"].by_total_charge == 3
        assert ranks["Houston, TX"].by_processing_time == 1
        assert ranks["San Francisco, CA"].by_processing_time == 3

    def test_ranks_are_permutations(self, engine):
        cities = ["New York, NY", "Austin, TX", "Chicago, IL", "Miami, FL", "Dallas, TX", "Phoenix, AZ"]
        result = compare_jurisdictions(cities, "Plumbing", engine=engine)
        expected = list(range(1, len(cities) + 1))
        for axis in ("by_permit_fee", "by_total_charge", "by_processing_time"):
            assert sorted(getattr(c.rank, axis) for c in result.comparisons) == expected

    def test_ties_keep_input_order(self, engine):
        result = compare_jurisdictions(["Austin, TX", "Austin, TX"], "Electrical", engine=engine)
        assert [c.rank.by_permit_fee for c in result.comparisons] == [1, 2]
        assert [c.rank.by_processing_time for c in result.comparisons] == [1, 2]

    def test_single_jurisdiction(self, engine):
        result = compare_jurisdictions(["Miami, FL"], "HVAC", engine=engine)
        entry = result.comparisons[0]
        assert result.analysis.variance == 0
        assert entry.rank.by_permit_fee == 1
        assert entry.rank.by_total_charge == 1
        assert entry.rank.by_processing_time == 1
        assert identify_key_differences(result.comparisons) == []

    def test_empty_input(self, engine):
        result = compare_jurisdictions([], "Electrical", engine=engine)
        assert result.comparisons == []
        assert result.analysis.variance == 0
        assert result.analysis.average_recommended_charge == 0

    def test_estimated_flag(self, engine):
        result = compare_jurisdictions(["Los Angeles, CA", "Boise, ID"], "Electrical", engine=engine)
        assert [c.is_estimated for c in result.comparisons] == [False, True]

    def test_job_type_label_and_value(self, three_city_comparison):
        assert three_city_comparison.job_type == "Electrical"
        assert three_city_comparison.project_value == 5000

    def test_permit_details(self, three_city_comparison):
        details = three_city_comparison.comparisons[0].permit_details
        assert details.base_fee == 150
        assert details.valuation_rate == 0.008
        assert details.expedite_fee == 250
        assert details.expedite_time == "3-5 days"

    def test_to_dict(self, three_city_comparison):
        data = three_city_comparison.to_dict()
        assert data["comparisons"][1]["rank"]["byPermitFee"] == 1
        assert data["analysis"]["variance"] == 173


# =============================================================================
# Key Differences
# =============================================================================


class TestIdentifyKeyDifferences:

    def test_all_differences_found(self, three_city_comparison):
        differences = identify_key_differences(three_city_comparison.comparisons)
        assert [d.type for d in differences] == ["permitFee", "processingTime", "totalCharge", "expediteFee"]
        assert [d.severity for d in differences] == [Severity.HIGH, Severity.MEDIUM, Severity.HIGH, Severity.LOW]

    def test_difference_details(self, three_city_comparison):
        differences = {d.type: d for d in identify_key_differences(three_city_comparison.comparisons)}
        assert differences["permitFee"].details == {"lowest": 100, "highest": 250, "spread": 150}
        assert differences["permitFee"].message == "Permit fees vary by $150 across jurisdictions"
        assert differences["totalCharge"].details["spread"] == 173
        assert differences["expediteFee"].details["spread"] == 275

    def test_similar_jurisdictions_have_no_differences(self, engine):
        result = compare_jurisdictions(["Austin, TX", "Austin, TX"], "Electrical", engine=engine)
        assert identify_key_differences(result.comparisons) == []

    def test_empty(self):
        assert identify_key_differences([]) == []


# =============================================================================
# Reference Helpers
# =============================================================================


class TestReferenceHelpers:

    def test_supported_jurisdictions_exclude_fallbacks(self, fee_database):
        supported = get_supported_jurisdictions(fee_database)
        assert len(supported) == 10
        assert all(not s.location.startswith("default") for s in supported)

    def test_supported_jurisdiction_split(self, fee_database):
        supported = {s.location: s for s in get_supported_jurisdictions(fee_database)}
        assert supported["New York, NY"].city == "New York"
        assert supported["New York, NY"].state == "NY"
        assert supported["New York, NY"].display_name == "New York, NY"

    def test_quick_reference(self, engine):
        reference = generate_quick_reference(["Los Angeles, CA", "Houston, TX"], ["Electrical Work", "Plumbing"], engine=engine)
        assert list(reference) == ["Electrical Work", "Plumbing"]
        assert reference["Electrical Work"][0].permit_fee == 190
        assert reference["Electrical Work"][1].processing_time == "1-2 weeks"

    @pytest.mark.parametrize("location,expected", [
        ("Los Angeles, CA", ["San Diego, CA", "San Francisco, CA"]),
        ("Chicago, IL", ["Milwaukee, WI"]),
        ("Miami, FL", []),
        ("Atlantis, XX", []),
    ])
    def test_nearby(self, location, expected):
        assert suggest_nearby_jurisdictions(location) == expected
