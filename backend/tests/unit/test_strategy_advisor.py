"""
Unit Tests for the Strategy Advisor.

Tests calculate_optimal_strategy() positioning and advice.
"""

import pytest

from models.comparison import (
    ComparisonAnalysis,
    ComparisonEntry,
    ComparisonPricing,
    CompetitivePosition,
    PermitDetails,
)
from services.strategy_advisor import (
    calculate_optimal_strategy,
    get_competitive_position,
    get_pricing_advice,
)


def _entry(charge: int) -> ComparisonEntry:
    return ComparisonEntry(
        location="Test, ST",
        pricing=ComparisonPricing(
            permit_fee=100, labor_cost=400, total_cost=500, recommended_charge=charge,
            profit=charge - 500, profit_margin=0, processing_time="2-4 weeks", time_investment="6 hours",
        ),
        permit_details=PermitDetails(
            base_fee=100, valuation_rate=0.01, expedite_fee=150,
            expedite_time="3-5 days", processing_time="2-4 weeks",
        ),
        is_estimated=False,
    )


# =============================================================================
# Positioning
# =============================================================================


class TestCompetitivePosition:

    @pytest.mark.parametrize("charge,expected", [
        (899, CompetitivePosition.BUDGET_FRIENDLY),
        (900, CompetitivePosition.COMPETITIVE),
        (1100, CompetitivePosition.COMPETITIVE),
        (1101, CompetitivePosition.PREMIUM),
    ])
    def test_thresholds(self, charge, expected):
        analysis = ComparisonAnalysis(average_recommended_charge=1000)
        assert get_competitive_position(_entry(charge), analysis) == expected


class TestPricingAdvice:

    @pytest.mark.parametrize("charge,expected", [
        (1049, "Pricing is aligned with market average"),
        (951, "Pricing is aligned with market average"),
        (1200, "20% above average - justify with faster service or premium quality"),
        (850, "15% below average - opportunity to increase margins"),
    ])
    def test_advice(self, charge, expected):
        analysis = ComparisonAnalysis(average_recommended_charge=1000)
        assert get_pricing_advice(_entry(charge), analysis) == expected


# =============================================================================
# Strategy
# =============================================================================


class TestCalculateOptimalStrategy:

    @pytest.fixture
    def strategy(self, engine):
        return calculate_optimal_strategy(
            ["Los Angeles, CA", "Houston, TX", "San Francisco, CA"], "Electrical", engine=engine
        )

    def test_positions(self, strategy):
        positions = {j.location: j.competitive_position for j in strategy.jurisdictions}
        assert positions == {
            "Los Angeles, CA": CompetitivePosition.COMPETITIVE,
            "Houston, TX": CompetitivePosition.BUDGET_FRIENDLY,
            "San Francisco, CA": CompetitivePosition.PREMIUM,
        }

    def test_advice(self, strategy):
        advice = {j.location: j.pricing_advice for j in strategy.jurisdictions}
        assert advice["Los Angeles, CA"] == "Pricing is aligned with market average"
        assert advice["Houston, TX"] == "13% below average - opportunity to increase margins"
        assert advice["San Francisco, CA"].startswith("11% above average")

    def test_summary(self, strategy):
        summary = strategy.summary
        assert summary.total_market_size == 3
        assert summary.average_charge == 717
        assert summary.best_margin == 5
        assert summary.worst_margin == 2
        assert summary.fastest_processing == "Houston, TX"

    def test_fastest_first_occurrence_wins(self, engine):
        strategy = calculate_optimal_strategy(["Miami, FL", "Los Angeles, CA"], "Plumbing", engine=engine)
        assert strategy.summary.fastest_processing == "Miami, FL"

    def test_empty(self, engine):
        strategy = calculate_optimal_strategy([], "Electrical", engine=engine)
        assert strategy.jurisdictions == []
        assert strategy.summary.total_market_size == 0
        assert strategy.summary.best_margin is None
        assert strategy.summary.fastest_processing is None

    def test_to_dict(self, strategy):
        data = strategy.to_dict()
        assert data["jobType"] == "Electrical"
        assert data["jurisdictions"][1]["competitivePosition"] == "budget-friendly"
