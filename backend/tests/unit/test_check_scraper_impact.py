"""
Unit Tests for the scraper impact report (report logger and CLI).
"""

import logging
import sys
from datetime import datetime, timezone

import pytest
import structlog

from config.settings import settings
from services.data_audit import compare_static_to_merged, get_scraper_health
from services.fee_database import DATA_QUALITY, PERMIT_FEES
from services.scraper_overlay import merge_scraped_fees
from tests.fixtures.mock_scrape_history import LA_SMALL_DRIFT, full_history
from utils.report_logger import log_field_changes, log_report_start, log_scraper_health


# =============================================================================
# Report Logger
# =============================================================================


class TestReportLogger:

    def test_banner(self, capsys):
        log_report_start("Scraper Impact Report", scraped=3)
        out = capsys.readouterr().out
        assert "SCRAPER IMPACT REPORT" in out
        assert "Scraped" in out

    def test_no_changes(self, capsys):
        log_field_changes([])
        assert "not changing any values" in capsys.readouterr().out

    def test_changes_grouped_by_trade(self, capsys):
        merged = merge_scraped_fees(PERMIT_FEES, DATA_QUALITY, {"Los Angeles, CA": LA_SMALL_DRIFT})
        log_field_changes(compare_static_to_merged(PERMIT_FEES, merged.permit_fees))

        out = capsys.readouterr().out
        assert "baseFee: 150 -> 155 | valuationRate: 0.008 -> 0.0081" in out
        assert "Trade/field combos changed by scraper: 1" in out

    def test_scraper_health(self, capsys):
        now = datetime(2025, 3, 15, tzinfo=timezone.utc)
        log_scraper_health(get_scraper_health(full_history(), DATA_QUALITY, now=now))

        out = capsys.readouterr().out
        assert "SCRAPER HEALTH: GOOD" in out
        assert "All scrapers are healthy" in out


# =============================================================================
# CLI
# =============================================================================


@pytest.fixture
def restore_structlog():
    yield
    structlog.reset_defaults()


class TestCheckScraperImpactCli:

    def test_runs_against_history_file(self, write_history, monkeypatch, capsys, restore_structlog):
        path = write_history({"Los Angeles, CA": LA_SMALL_DRIFT})
        monkeypatch.setattr(sys, "argv", ["check_scraper_impact.py", "--history", str(path), "--json"])

        from scripts.check_scraper_impact import main

        exit_code = main()

        out = capsys.readouterr().out
        assert exit_code in (0, 1)
        assert "SCRAPER IMPACT REPORT" in out
        assert "Los Angeles, CA" in out
        assert '"mergedValue": 155' in out

    def test_log_level_applied(self, write_history, monkeypatch, restore_structlog):
        path = write_history({})
        monkeypatch.setattr(settings, "log_level", "warning")
        monkeypatch.setattr(sys, "argv", ["check_scraper_impact.py", "--history", str(path)])

        from scripts.check_scraper_impact import main

        main()

        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(logging.WARNING)

    def test_invalid_settings_rejected(self, write_history, monkeypatch, restore_structlog):
        path = write_history({})
        monkeypatch.setattr(settings, "scrape_deviation_tolerance", 2.0)
        monkeypatch.setattr(sys, "argv", ["check_scraper_impact.py", "--history", str(path)])

        from scripts.check_scraper_impact import main

        with pytest.raises(ValueError):
            main()
