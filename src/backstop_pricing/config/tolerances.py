"""
Centralized tolerance framework for backstop pricing.

Tolerance Tiers:
    Tier 1 (Analytical): closed-form identities and round-trips
    Tier 2 (Approximation): error bounds of fixed approximations
    Tier 3 (Regression): pinned reference values

References:
    [T1] Abramowitz & Stegun (1964) Handbook of Mathematical Functions, 7.1.26
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
"""

from typing import Final

# =============================================================================
# Tier 1: Analytical Tolerances
# =============================================================================

#: Restraint round-trip: λ -> λ·C·S -> λ
ROUND_TRIP_TOLERANCE: Final[float] = 1e-12

#: Non-negativity of λ* and other clamped outputs
ANTI_PATTERN_TOLERANCE: Final[float] = 1e-10


# =============================================================================
# Tier 2: Approximation Tolerances
# =============================================================================

#: Abramowitz-Stegun 7.1.26 maximum absolute error on erf: 1.5e-7
NORMAL_CDF_APPROX_TOLERANCE: Final[float] = 1.5e-7

#: N(x) + N(-x) == 1
CDF_SYMMETRY_TOLERANCE: Final[float] = 1e-6


# =============================================================================
# Tier 3: Regression Tolerances
# =============================================================================

#: Pinned λ* reference values
LAMBDA_STAR_GOLDEN_TOLERANCE: Final[float] = 1e-4

#: Pinned eligibility factors
ELIGIBILITY_GOLDEN_TOLERANCE: Final[float] = 1e-3


TOLERANCE_REGISTRY: dict[str, float] = {
    "round_trip": ROUND_TRIP_TOLERANCE,
    "anti_pattern": ANTI_PATTERN_TOLERANCE,
    "normal_cdf_approx": NORMAL_CDF_APPROX_TOLERANCE,
    "cdf_symmetry": CDF_SYMMETRY_TOLERANCE,
    "lambda_star_golden": LAMBDA_STAR_GOLDEN_TOLERANCE,
    "eligibility_golden": ELIGIBILITY_GOLDEN_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
