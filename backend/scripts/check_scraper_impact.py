"""
Compare the curated fee tables against the scraper-overlaid tables.

Shows exactly where scraper data is changing curated values, how fresh
each city's scraper data is, and whether verified cities still pass the
offline audit.

Usage:
  python scripts/check_scraper_impact.py
  python scripts/check_scraper_impact.py --history scraper-results/scrape-history.json --json
"""

import argparse
import logging
import os
import sys

import structlog

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.errors import ScrapeHistoryError  # noqa: E402
from config.settings import settings  # noqa: E402
from services.data_audit import (  # noqa: E402
    audit_verified_cities,
    compare_static_to_merged,
    get_scraper_health,
)
from services.fee_database import FeeDatabase  # noqa: E402
from services.scraper_overlay import load_scrape_history  # noqa: E402
from utils.report_logger import (  # noqa: E402
    log_field_changes,
    log_report_json,
    log_report_start,
    log_scraper_health,
    log_verification_audit,
)

logger = structlog.get_logger()


def configure_logging(level: str) -> None:
    """Console logging filtered at the configured LOG_LEVEL."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Show how scraper data changes the curated fee tables")
    parser.add_argument(
        "--history",
        required=False,
        help=f"Scrape history JSON (defaults to {settings.scrape_history_path})",
    )
    parser.add_argument("--json", action="store_true", help="Also print each report as JSON")
    args = parser.parse_args()

    settings.validate()
    configure_logging(settings.log_level)

    history_path = args.history or settings.scrape_history_path
    database = FeeDatabase(history_path=history_path)
    snapshot = database.refresh()

    try:
        history = load_scrape_history(history_path)
    except ScrapeHistoryError as e:
        logger.warning("scrape_history_unavailable", path=history_path, code=e.code, error=e.message)
        history = None

    log_report_start(
        "Scraper Impact Report",
        history=history_path,
        scraped=len(snapshot.raw_scrapes),
        reverted=len(snapshot.reverted_trades),
    )

    changes = compare_static_to_merged(database.static_fees, snapshot.permit_fees)
    log_field_changes(changes)

    if snapshot.reverted_trades:
        print(f"  Trades restored from curated data: {', '.join(snapshot.reverted_trades)}")

    health = get_scraper_health(history, snapshot.data_quality, permit_fees=snapshot.permit_fees)
    log_scraper_health(health)

    audit = audit_verified_cities(snapshot.permit_fees, snapshot.data_quality)
    log_verification_audit(audit)

    if args.json:
        log_report_json("Field changes", {"changes": [c.to_dict() for c in changes]})
        log_report_json("Scraper health", health.to_dict())
        log_report_json("Verified city audit", audit.to_dict())

    return 0 if audit.passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
