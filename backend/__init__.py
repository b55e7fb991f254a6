"""Permit Pricing Engine.

Prices the permit portion of construction jobs (building department fee,
contractor paperwork labor, recommended client charge) and compares that
pricing across jurisdictions.

Layout:
- config: settings and error types
- models: fee schedule and result models
- services: fee database, scraper overlay, pricing, comparison, strategy, audit
- utils: currency rounding and report output
"""

__version__ = "1.0.0"
