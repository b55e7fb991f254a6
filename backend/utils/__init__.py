"""Utility modules for permit pricing."""

from utils.currency import average_currency, round_currency
from utils.report_logger import (
    log_field_changes,
    log_report_json,
    log_report_start,
    log_scraper_health,
    log_verification_audit,
)

__all__ = [
    "average_currency",
    "round_currency",
    "log_field_changes",
    "log_report_json",
    "log_report_start",
    "log_scraper_health",
    "log_verification_audit",
]
