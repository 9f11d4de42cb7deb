"""
Option pricing implementations.

Provides:
- Abramowitz-Stegun normal CDF/PDF used by every pricing path
- Black-Scholes adapted reversible call pricing (λ*) with Greeks
"""

from backstop_pricing.options.pricing.normal import normal_cdf, normal_pdf
from backstop_pricing.options.pricing.reversible_call import (
    GreeksResult,
    PricingResult,
    ReversibleCallParams,
    compute_greeks,
    price_option,
)

__all__ = [
    # Normal distribution
    "normal_cdf",
    "normal_pdf",
    # Reversible call
    "GreeksResult",
    "PricingResult",
    "ReversibleCallParams",
    "compute_greeks",
    "price_option",
]
