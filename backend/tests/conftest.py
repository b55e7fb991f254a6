"""Pytest configuration and shared fixtures for permit pricing tests."""

import json
import os
import sys
import pytest


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from services...`.
# This guarantees that `backend/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Clock
# ============================================================================

class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


# ============================================================================
# Scrape History Files
# ============================================================================

@pytest.fixture
def history_path(tmp_path):
    """Location for a scrape history file; nothing is written there by default."""
    return tmp_path / "scrape-history.json"


@pytest.fixture
def write_history(history_path):
    """Write a scrape history dict to history_path and return the path."""
    def _write(history):
        history_path.write_text(json.dumps(history), encoding="utf-8")
        return history_path
    return _write


# ============================================================================
# Services
# ============================================================================

@pytest.fixture
def fee_database(history_path, fake_clock):
    """FeeDatabase over the curated tables with no scrape history."""
    from services.fee_database import FeeDatabase

    return FeeDatabase(history_path=str(history_path), ttl_seconds=60, clock=fake_clock)


@pytest.fixture
def engine(fee_database):
    """PricingEngine bound to the isolated fee database."""
    from services.pricing_engine import PricingEngine

    return PricingEngine(fee_database=fee_database)
