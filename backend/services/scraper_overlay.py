"""Scraper Overlay Merger for permit pricing.

Reconciles freshly scraped fee values against the curated baseline.

A scraped numeric field replaces the curated value only when it passes a
field-specific plausibility check AND, when a curated value exists, stays
within the deviation tolerance of it. After a trade's four fields are
merged, a consistency guard restores the whole trade from the baseline if
the merged bounds are inverted. Metadata (notes, source, dates, URLs) is
overlaid without gating. The baseline is never mutated.

Scrape history format (one entry per jurisdiction):
    {
        "Los Angeles, CA": {
            "scrapedAt": "2025-01-15T08:00:00Z",
            "source": "LADBS Fee Schedule",
            "sourceUrl": "https://...",
            "electrical": {"baseFee": 152, "valuationRate": 0.008, "minFee": 150, "maxFee": 2500},
            ...
        }
    }
"""

import copy
import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog

from config.errors import ErrorCode, ScrapeHistoryError
from models.fee_schedule import (
    DataQualityRecord,
    FeeCategory,
    JurisdictionProfile,
    OVERLAY_CATEGORIES,
    TradeFeeParameters,
)

logger = structlog.get_logger(__name__)

DEFAULT_DEVIATION_TOLERANCE = 0.10
VALUATION_RATE_PRECISION = 6

# Scraped field name -> model attribute
NUMERIC_FIELDS = {
    "baseFee": "base_fee",
    "valuationRate": "valuation_rate",
    "minFee": "min_fee",
    "maxFee": "max_fee",
}


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class FieldDecision:
    """Audit record for one scraped field."""

    jurisdiction: str
    trade: str
    field: str
    curated: Optional[float]
    scraped: Any
    accepted: bool
    reason: str


@dataclass
class MergeResult:
    """Merged fee table plus everything needed to audit it.

    raw_scrapes holds the untouched scrape records and is never used in
    pricing computations.
    """

    permit_fees: Dict[str, JurisdictionProfile]
    data_quality: Dict[str, DataQualityRecord]
    raw_scrapes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    decisions: List[FieldDecision] = field(default_factory=list)
    reverted_trades: List[str] = field(default_factory=list)

    @property
    def scrape_applied(self) -> bool:
        return bool(self.raw_scrapes)


# =============================================================================
# Plausibility / Deviation Gates
# =============================================================================


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    # Integers past float range come straight out of json.load
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def is_plausible(field_name: str, value: Any) -> bool:
    """Field-specific type and range check for a scraped value.

    Args:
        field_name: Scraped field name (baseFee, valuationRate, minFee, maxFee).
        value: Raw scraped value.

    Returns:
        True if the value is a finite number in the field's plausible range.
    """
    if not _is_number(value):
        return False
    if field_name == "baseFee":
        return value > 0
    if field_name == "valuationRate":
        return 0 <= value < 0.1
    if field_name == "minFee":
        return value >= 10
    if field_name == "maxFee":
        return value > 0
    return False


def within_deviation(curated: float, scraped: float, tolerance: float = DEFAULT_DEVIATION_TOLERANCE) -> bool:
    """Check |scraped - curated| / |curated| <= tolerance.

    A curated value of zero only accepts an identical scraped value.
    """
    if curated == 0:
        return scraped == 0
    return abs(scraped - curated) / abs(curated) <= tolerance


def _evaluate_field(
    jurisdiction: str,
    trade: str,
    field_name: str,
    curated: Optional[float],
    scraped: Any,
    tolerance: float,
) -> FieldDecision:
    if not is_plausible(field_name, scraped):
        return FieldDecision(jurisdiction, trade, field_name, curated, scraped, False, "implausible")

    if field_name == "valuationRate":
        scraped = round(float(scraped), VALUATION_RATE_PRECISION)

    if curated is not None and not within_deviation(curated, scraped, tolerance):
        return FieldDecision(jurisdiction, trade, field_name, curated, scraped, False, "deviation")

    return FieldDecision(jurisdiction, trade, field_name, curated, scraped, True, "accepted")


def merge_trade_fees(
    jurisdiction: str,
    category: FeeCategory,
    curated: TradeFeeParameters,
    scraped: Dict[str, Any],
    tolerance: float = DEFAULT_DEVIATION_TOLERANCE,
) -> Tuple[TradeFeeParameters, List[FieldDecision], bool]:
    """Merge one trade's scraped fields into its curated parameters.

    Returns:
        (merged parameters, field decisions, reverted flag). When the
        merged bounds are inverted the curated parameters come back
        verbatim and reverted is True.
    """
    updates: Dict[str, Any] = {}
    decisions: List[FieldDecision] = []

    for scraped_name, attr in NUMERIC_FIELDS.items():
        if scraped_name not in scraped or scraped[scraped_name] is None:
            continue
        decision = _evaluate_field(
            jurisdiction,
            category.value,
            scraped_name,
            getattr(curated, attr),
            scraped[scraped_name],
            tolerance,
        )
        decisions.append(decision)
        if decision.accepted:
            updates[attr] = decision.scraped
        logger.debug(
            "scrape_field_accepted" if decision.accepted else "scrape_field_rejected",
            jurisdiction=jurisdiction,
            trade=category.value,
            field=scraped_name,
            curated=decision.curated,
            scraped=decision.scraped,
            reason=decision.reason,
        )

    notes = scraped.get("notes")
    if isinstance(notes, str) and notes:
        updates["notes"] = notes

    merged = curated.model_copy(update=updates)

    if merged.min_fee > merged.max_fee:
        logger.warning(
            "scrape_trade_reverted",
            jurisdiction=jurisdiction,
            trade=category.value,
            min_fee=merged.min_fee,
            max_fee=merged.max_fee,
        )
        return curated.model_copy(), decisions, True

    return merged, decisions, False


def _merge_quality(record: DataQualityRecord, scrape: Dict[str, Any]) -> DataQualityRecord:
    updates: Dict[str, Any] = {}

    source = scrape.get("source")
    if isinstance(source, str) and source:
        updates["source"] = source

    scraped_at = scrape.get("scrapedAt")
    if isinstance(scraped_at, str) and scraped_at:
        updates["last_verified"] = scraped_at.split("T")[0]

    url = scrape.get("sourceUrl")
    if isinstance(url, str) and url:
        updates["url"] = url

    return record.model_copy(update=updates)


# =============================================================================
# Main Merge Function
# =============================================================================


def merge_scraped_fees(
    static_fees: Dict[str, JurisdictionProfile],
    static_quality: Dict[str, DataQualityRecord],
    scrape_history: Optional[Dict[str, Any]],
    tolerance: float = DEFAULT_DEVIATION_TOLERANCE,
) -> MergeResult:
    """Overlay scraped fee data onto a copy of the curated baseline.

    Args:
        static_fees: Curated jurisdiction profiles (not modified).
        static_quality: Curated data quality records (not modified).
        scrape_history: Parsed scrape history; None or empty is allowed.
        tolerance: Maximum relative deviation from a curated value.

    Returns:
        MergeResult with merged profiles, quality records and audit data.
    """
    permit_fees = {key: profile.model_copy(deep=True) for key, profile in static_fees.items()}
    data_quality = {key: record.model_copy(deep=True) for key, record in static_quality.items()}
    result = MergeResult(permit_fees=permit_fees, data_quality=data_quality)

    if not scrape_history:
        return result

    for jurisdiction, scrape in scrape_history.items():
        if jurisdiction not in permit_fees or not isinstance(scrape, dict):
            continue

        result.raw_scrapes[jurisdiction] = copy.deepcopy(scrape)
        profile = permit_fees[jurisdiction]

        for category in OVERLAY_CATEGORIES:
            scraped_trade = scrape.get(category.value)
            if not isinstance(scraped_trade, dict):
                continue

            merged, decisions, reverted = merge_trade_fees(
                jurisdiction,
                category,
                static_fees[jurisdiction].fees_for(category),
                scraped_trade,
                tolerance,
            )
            profile = profile.with_fees(category, merged)
            result.decisions.extend(decisions)
            if reverted:
                result.reverted_trades.append(f"{jurisdiction}/{category.value}")

        permit_fees[jurisdiction] = profile
        if jurisdiction in data_quality:
            data_quality[jurisdiction] = _merge_quality(data_quality[jurisdiction], scrape)

    accepted = sum(1 for d in result.decisions if d.accepted)
    logger.info(
        "scrape_overlay_merged",
        jurisdictions=len(result.raw_scrapes),
        fields_accepted=accepted,
        fields_rejected=len(result.decisions) - accepted,
        trades_reverted=len(result.reverted_trades),
    )
    return result


# =============================================================================
# History Loading
# =============================================================================


def load_scrape_history(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """Read the scrape history JSON file.

    Args:
        path: Location of scrape-history.json.

    Returns:
        Parsed history dict, or None if the file does not exist.

    Raises:
        ScrapeHistoryError: If the file cannot be read or is not a JSON object.
    """
    history_path = Path(path)
    if not history_path.exists():
        return None

    try:
        with open(history_path, "r", encoding="utf-8") as f:
            history = json.load(f)
    except OSError as e:
        raise ScrapeHistoryError(
            code=ErrorCode.SCRAPE_HISTORY_UNREADABLE,
            message=f"Could not read scrape history: {e}",
            path=str(history_path),
        ) from e
    except ValueError as e:
        raise ScrapeHistoryError(
            code=ErrorCode.SCRAPE_HISTORY_MALFORMED,
            message=f"Scrape history is not valid JSON: {e}",
            path=str(history_path),
        ) from e

    if not isinstance(history, dict):
        raise ScrapeHistoryError(
            code=ErrorCode.SCRAPE_HISTORY_MALFORMED,
            message="Scrape history must be a JSON object keyed by jurisdiction",
            path=str(history_path),
            details={"type": type(history).__name__},
        )

    return history
