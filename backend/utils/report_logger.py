"""Report Logger for permit pricing admin tools.

Prints highly visible, formatted reports (scraper impact, scraper health,
verified city audit) with banner markers that stand out in a terminal,
and mirrors each report as a structured log event.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

import structlog

logger = structlog.get_logger()

# Visual markers for different report types
BANNER_WIDTH = 95
REPORT_BANNER_CHAR = "═"
SECTION_BANNER_CHAR = "─"
WARNING_BANNER_CHAR = "!"

STATUS_MARKERS = {
    "healthy": "✓",
    "stale": "~",
    "outdated": "✗",
    "never_run": "?",
}


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _format_value(value: Any) -> str:
    return "null" if value is None else f"{value:g}" if isinstance(value, float) else str(value)


def log_report_start(title: str, **context: Any) -> None:
    """Print a report header banner."""
    timestamp = datetime.now(timezone.utc).isoformat()

    print("\n")
    print(REPORT_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(REPORT_BANNER_CHAR, title.upper()))
    print(REPORT_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Timestamp   : {timestamp}")
    for key, value in context.items():
        print(f"║ {key.replace('_', ' ').title():<12}: {value}")
    print(REPORT_BANNER_CHAR * BANNER_WIDTH)


def log_field_changes(changes: Sequence[Any]) -> None:
    """Print the fields the scraper overlay changed, one row per trade.

    Args:
        changes: FieldChange records from compare_static_to_merged.
    """
    print(_create_banner(SECTION_BANNER_CHAR, "STATIC vs MERGED (fields changed by scraper)"))

    rows: Dict[tuple, List[str]] = {}
    for change in changes:
        key = (change.jurisdiction, change.trade)
        rows.setdefault(key, []).append(
            f"{change.field}: {_format_value(change.static_value)} -> {_format_value(change.merged_value)}"
        )

    for (jurisdiction, trade), diffs in rows.items():
        print(f"  {jurisdiction:<22}{trade:<12}{' | '.join(diffs)}")

    print(SECTION_BANNER_CHAR * BANNER_WIDTH)
    print(f"  Trade/field combos changed by scraper: {len(rows)}")
    if not rows:
        print("  Scraper is not changing any values from the static database.")
    else:
        print("  Review above changes - any that look wrong should be investigated.")
    print(SECTION_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "field_changes_logged",
        trades_changed=len(rows),
        fields_changed=len(changes),
    )


def log_scraper_health(report: Any) -> None:
    """Print per-city scraper freshness and recommendations."""
    print(_create_banner(SECTION_BANNER_CHAR, f"SCRAPER HEALTH: {report.overall_status.upper()}"))

    for city in report.cities:
        marker = STATUS_MARKERS.get(city.status, " ")
        days = "-" if city.days_since_run is None else f"{city.days_since_run}d"
        trades = ", ".join(city.trades_covered) or "none"
        print(f"  {marker} {city.city:<22}{city.status:<11}{days:>6}   trades: {trades}")

    print(SECTION_BANNER_CHAR * BANNER_WIDTH)
    print(
        f"  Healthy: {report.healthy}  Stale: {report.stale}  "
        f"Outdated: {report.outdated}  Never run: {report.never_run}"
    )
    print(f"  Last full run: {report.last_full_run or 'never'}")

    for rec in report.recommendations:
        char = WARNING_BANNER_CHAR if rec.severity.value == "high" else SECTION_BANNER_CHAR
        print(char * BANNER_WIDTH)
        print(f"  [{rec.severity.value.upper()}] {rec.message}")
        print(f"  Action: {rec.action}")
        if rec.cities:
            print(f"  Cities: {', '.join(rec.cities)}")
    print(SECTION_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "scraper_health_logged",
        overall_status=report.overall_status,
        recommendations=len(report.recommendations),
    )


def log_verification_audit(audit: Any) -> None:
    """Print the verified city audit."""
    print(_create_banner(SECTION_BANNER_CHAR, "VERIFIED CITY AUDIT"))
    print(f"  Verified cities : {len(audit.verified_cities)}")
    print(f"  Missing data    : {', '.join(audit.missing_fee_data) or 'none'}")
    outdated = ", ".join(f"{city} ({days}d)" for city, days in audit.outdated_verifications.items())
    print(f"  Outdated        : {outdated or 'none'}")
    print(f"  Missing URLs    : {', '.join(audit.missing_urls) or 'none'}")
    print(f"  Result          : {'PASSED' if audit.passed else 'NEEDS ATTENTION'}")
    print(SECTION_BANNER_CHAR * BANNER_WIDTH)

    logger.info("verification_audit_logged", passed=audit.passed)


def log_report_json(title: str, data: Dict[str, Any]) -> None:
    """Print a report as formatted JSON under a banner."""
    print(_create_banner(SECTION_BANNER_CHAR, title.upper()))
    for line in _format_json(data).split("\n"):
        print(f"  {line}")
    print(SECTION_BANNER_CHAR * BANNER_WIDTH)
