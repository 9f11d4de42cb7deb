"""
Tests for Tolerance Framework - config/tolerances.py.

Verifies tier ordering and the tolerance registry.
"""

import pytest

from backstop_pricing.config.tolerances import (
    ANTI_PATTERN_TOLERANCE,
    CDF_SYMMETRY_TOLERANCE,
    ELIGIBILITY_GOLDEN_TOLERANCE,
    LAMBDA_STAR_GOLDEN_TOLERANCE,
    NORMAL_CDF_APPROX_TOLERANCE,
    ROUND_TRIP_TOLERANCE,
    TOLERANCE_REGISTRY,
    get_tolerance,
)


class TestTierValues:
    """Tests for individual tolerance values."""

    def test_analytical_tier_tight(self) -> None:
        """Tier 1 tolerances are near machine precision."""
        assert ROUND_TRIP_TOLERANCE <= 1e-12
        assert ANTI_PATTERN_TOLERANCE <= 1e-10

    def test_cdf_approximation_bound(self) -> None:
        """A&S 7.1.26 bound is 1.5e-7."""
        assert NORMAL_CDF_APPROX_TOLERANCE == 1.5e-7

    def test_tier_ordering(self) -> None:
        """Analytical < approximation < regression."""
        assert ROUND_TRIP_TOLERANCE < NORMAL_CDF_APPROX_TOLERANCE
        assert CDF_SYMMETRY_TOLERANCE < LAMBDA_STAR_GOLDEN_TOLERANCE
        assert LAMBDA_STAR_GOLDEN_TOLERANCE < ELIGIBILITY_GOLDEN_TOLERANCE


class TestRegistry:
    """Tests for TOLERANCE_REGISTRY and get_tolerance."""

    @pytest.mark.parametrize("name", sorted(TOLERANCE_REGISTRY))
    def test_lookup(self, name: str) -> None:
        """Every registered name resolves to a positive value."""
        assert get_tolerance(name) == TOLERANCE_REGISTRY[name]
        assert get_tolerance(name) > 0

    def test_unknown_name(self) -> None:
        """Unknown names list the available keys."""
        with pytest.raises(KeyError, match="round_trip"):
            get_tolerance("does_not_exist")
