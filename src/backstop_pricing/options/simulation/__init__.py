"""
Monte Carlo collateral price simulation.

Provides:
- GBM daily price paths on a calendar-day grid (single path or batch)
"""

from backstop_pricing.options.simulation.price_path import (
    PricePath,
    generate_price_path,
    generate_price_paths,
)

__all__ = [
    "PricePath",
    "generate_price_path",
    "generate_price_paths",
]
