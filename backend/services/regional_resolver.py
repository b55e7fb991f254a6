"""Regional Resolver for permit pricing.

Maps an arbitrary "City, ST" string to a jurisdiction key in the fee
table. Cities without their own schedule fall back to a regional bucket
derived from the state code, and anything unparseable falls back to the
generic bucket.
"""

import re
from enum import Enum
from typing import Collection, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_JURISDICTION = "default"
FALLBACK_PREFIX = "default"

_STATE_CODE_PATTERN = re.compile(r",\s*([A-Za-z]{2})\s*$")


class FeeRegion(str, Enum):
    """Regional fallback buckets in the fee table."""

    MIDWEST = "midwest"
    TEXAS = "texas"
    CALIFORNIA = "california"
    MOUNTAIN_WEST = "mountain-west"
    SOUTHEAST = "southeast"
    NORTHEAST = "northeast"

    @property
    def jurisdiction_key(self) -> str:
        return f"{FALLBACK_PREFIX}-{self.value}"


# =============================================================================
# STATE TO REGION MAPPING
# =============================================================================
# HI and AK are not partitioned; they resolve to the generic bucket.

STATE_REGIONS: Dict[str, FeeRegion] = {
    # Midwest
    "IL": FeeRegion.MIDWEST, "IN": FeeRegion.MIDWEST, "IA": FeeRegion.MIDWEST,
    "KS": FeeRegion.MIDWEST, "MI": FeeRegion.MIDWEST, "MN": FeeRegion.MIDWEST,
    "MO": FeeRegion.MIDWEST, "NE": FeeRegion.MIDWEST, "ND": FeeRegion.MIDWEST,
    "OH": FeeRegion.MIDWEST, "SD": FeeRegion.MIDWEST, "WI": FeeRegion.MIDWEST,
    # Texas and the south-central states priced like it
    "TX": FeeRegion.TEXAS, "OK": FeeRegion.TEXAS, "LA": FeeRegion.TEXAS,
    "AR": FeeRegion.TEXAS,
    # California
    "CA": FeeRegion.CALIFORNIA, "NV": FeeRegion.CALIFORNIA,
    # Mountain West
    "AZ": FeeRegion.MOUNTAIN_WEST, "CO": FeeRegion.MOUNTAIN_WEST, "ID": FeeRegion.MOUNTAIN_WEST,
    "MT": FeeRegion.MOUNTAIN_WEST, "NM": FeeRegion.MOUNTAIN_WEST, "UT": FeeRegion.MOUNTAIN_WEST,
    "WY": FeeRegion.MOUNTAIN_WEST,
    # Pacific Northwest shares the Mountain West bucket
    "OR": FeeRegion.MOUNTAIN_WEST, "WA": FeeRegion.MOUNTAIN_WEST,
    # Southeast
    "AL": FeeRegion.SOUTHEAST, "FL": FeeRegion.SOUTHEAST, "GA": FeeRegion.SOUTHEAST,
    "KY": FeeRegion.SOUTHEAST, "MS": FeeRegion.SOUTHEAST, "NC": FeeRegion.SOUTHEAST,
    "SC": FeeRegion.SOUTHEAST, "TN": FeeRegion.SOUTHEAST, "VA": FeeRegion.SOUTHEAST,
    "WV": FeeRegion.SOUTHEAST,
    # Northeast
    "CT": FeeRegion.NORTHEAST, "DC": FeeRegion.NORTHEAST, "DE": FeeRegion.NORTHEAST,
    "MA": FeeRegion.NORTHEAST, "MD": FeeRegion.NORTHEAST, "ME": FeeRegion.NORTHEAST,
    "NH": FeeRegion.NORTHEAST, "NJ": FeeRegion.NORTHEAST, "NY": FeeRegion.NORTHEAST,
    "PA": FeeRegion.NORTHEAST, "RI": FeeRegion.NORTHEAST, "VT": FeeRegion.NORTHEAST,
}

REGIONAL_JURISDICTIONS = tuple(region.jurisdiction_key for region in FeeRegion)
FALLBACK_JURISDICTIONS = REGIONAL_JURISDICTIONS + (DEFAULT_JURISDICTION,)


# =============================================================================
# Helper Functions
# =============================================================================


def is_fallback_jurisdiction(key: str) -> bool:
    """Check whether a key is one of the reserved fallback tokens."""
    return key == DEFAULT_JURISDICTION or key.startswith(f"{FALLBACK_PREFIX}-")


def extract_state_code(jurisdiction: Optional[str]) -> Optional[str]:
    """Extract the two-letter state code from a trailing ", XX".

    Args:
        jurisdiction: Free-form location string, e.g. "Dallas, TX".

    Returns:
        Upper-cased state code, or None when no trailing code is present.
    """
    if not isinstance(jurisdiction, str) or not jurisdiction:
        return None
    match = _STATE_CODE_PATTERN.search(jurisdiction)
    if not match:
        return None
    return match.group(1).upper()


def get_region_for_state(state_code: Optional[str]) -> Optional[FeeRegion]:
    """Map a state code to its fee region, None for unpartitioned states."""
    if not state_code:
        return None
    return STATE_REGIONS.get(state_code.upper())


def resolve_jurisdiction(jurisdiction: Optional[str], known_jurisdictions: Collection[str]) -> str:
    """Resolve a location string to a fee table key.

    Args:
        jurisdiction: Free-form location string.
        known_jurisdictions: Keys present in the fee table.

    Returns:
        The exact key when present (case-sensitive), otherwise the
        regional fallback key for its state, otherwise "default".
    """
    if isinstance(jurisdiction, str) and jurisdiction in known_jurisdictions:
        return jurisdiction

    state_code = extract_state_code(jurisdiction)
    region = get_region_for_state(state_code)

    if region is None:
        logger.debug(
            "jurisdiction_generic_fallback",
            jurisdiction=jurisdiction,
            state=state_code,
        )
        return DEFAULT_JURISDICTION

    logger.debug(
        "jurisdiction_regional_fallback",
        jurisdiction=jurisdiction,
        state=state_code,
        region=region.value,
    )
    return region.jurisdiction_key
