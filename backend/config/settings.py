"""Permit pricing configuration settings.

Loads configuration from environment variables with sensible defaults.
The scraper history location, cache lifetime and the heuristic pricing
constants can all be recalibrated without a code change.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Load .env file for local overrides (history path, cache TTL, multipliers, etc.)
load_dotenv()

BACKEND_ROOT = Path(__file__).resolve().parent.parent


def _get_default_history_path() -> str:
    """Get the default scraper history file location."""
    return str(BACKEND_ROOT / "scraper-results" / "scrape-history.json")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Scraper overlay
    scrape_history_path: str = field(default_factory=lambda: os.getenv("SCRAPE_HISTORY_PATH", _get_default_history_path()))
    fee_cache_ttl_seconds: float = field(default_factory=lambda: float(os.getenv("FEE_CACHE_TTL_SECONDS", "60")))
    scrape_deviation_tolerance: float = field(default_factory=lambda: float(os.getenv("SCRAPE_DEVIATION_TOLERANCE", "0.10")))

    # Pricing
    default_project_value: float = field(default_factory=lambda: float(os.getenv("DEFAULT_PROJECT_VALUE", "5000")))
    comparison_project_value: float = field(default_factory=lambda: float(os.getenv("COMPARISON_PROJECT_VALUE", "5000")))

    # Competitive benchmarks (heuristics, not derived from jurisdiction data)
    unlicensed_price_multiplier: float = field(default_factory=lambda: float(os.getenv("UNLICENSED_PRICE_MULTIPLIER", "0.5")))
    expediter_price_multiplier: float = field(default_factory=lambda: float(os.getenv("EXPEDITER_PRICE_MULTIPLIER", "2.5")))
    expediter_base_fee: float = field(default_factory=lambda: float(os.getenv("EXPEDITER_BASE_FEE", "500")))

    # Admin reporting
    scraper_healthy_days: int = field(default_factory=lambda: int(os.getenv("SCRAPER_HEALTHY_DAYS", "30")))
    scraper_stale_days: int = field(default_factory=lambda: int(os.getenv("SCRAPER_STALE_DAYS", "90")))
    verification_max_age_days: int = field(default_factory=lambda: int(os.getenv("VERIFICATION_MAX_AGE_DAYS", "365")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def validate(self) -> None:
        """Validate settings values are usable.

        Raises:
            ValueError: If a setting is outside its meaningful range.
        """
        if self.fee_cache_ttl_seconds < 0:
            raise ValueError("FEE_CACHE_TTL_SECONDS must be >= 0")
        if not 0 <= self.scrape_deviation_tolerance < 1:
            raise ValueError("SCRAPE_DEVIATION_TOLERANCE must be in [0, 1)")
        if self.comparison_project_value <= 0:
            raise ValueError("COMPARISON_PROJECT_VALUE must be positive")
        if self.scraper_stale_days < self.scraper_healthy_days:
            raise ValueError("SCRAPER_STALE_DAYS must be >= SCRAPER_HEALTHY_DAYS")

    @property
    def history_file(self) -> Path:
        """Scraper history location as a Path."""
        return Path(self.scrape_history_path)


# Singleton settings instance
settings = Settings()
