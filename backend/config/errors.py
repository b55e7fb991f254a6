"""Permit pricing error handling.

Custom exceptions and error codes. Pricing and comparison never raise for
unknown input; these are used for table integrity checks at startup and for
scraper history failures that the fee database recovers from.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Fee Table Errors (1xxx)
    FEE_TABLE_INVALID = "FEE_TABLE_INVALID"
    MISSING_DATA_QUALITY = "MISSING_DATA_QUALITY"
    MISSING_TRADE_CATEGORY = "MISSING_TRADE_CATEGORY"
    MISSING_LABOR_PROFILE = "MISSING_LABOR_PROFILE"

    # Scraper History Errors (2xxx)
    SCRAPE_HISTORY_UNREADABLE = "SCRAPE_HISTORY_UNREADABLE"
    SCRAPE_HISTORY_MALFORMED = "SCRAPE_HISTORY_MALFORMED"


class PermitPricingError(Exception):
    """Base exception for permit pricing errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"PermitPricingError(code={self.code!r}, message={self.message!r})"


class FeeTableError(PermitPricingError):
    """Static fee table violates a structural invariant."""

    def __init__(
        self,
        code: str,
        message: str,
        jurisdiction: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "jurisdiction": jurisdiction}
        )
        self.jurisdiction = jurisdiction


class ScrapeHistoryError(PermitPricingError):
    """Scraper history could not be read or parsed."""

    def __init__(
        self,
        code: str,
        message: str,
        path: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "path": path}
        )
        self.path = path
