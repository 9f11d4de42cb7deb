"""
Tests for support eligibility and restraint - backstop/eligibility.py.

[T2] k_SF = (P / (C·p)) · (θ + B), eligible iff k_SF < 1.
"""

import pytest

from backstop_pricing.backstop.eligibility import (
    EligibilityResult,
    check_eligibility,
    early_termination_cost,
    health_factor,
    lambda_from_restraint,
    recovered_health_factor,
    restraint_amount,
)
from backstop_pricing.config.tolerances import ROUND_TRIP_TOLERANCE
from backstop_pricing.errors import InvalidParametersError, NotEligibleError


class TestHealthFactor:
    """Tests for health_factor."""

    def test_value(self) -> None:
        """HF = C·p / P."""
        assert health_factor(2.0, 60_000.0, 80_000.0) == pytest.approx(1.5)

    def test_zero_borrowed_raises(self) -> None:
        """A zero loan has no health factor."""
        with pytest.raises(InvalidParametersError):
            health_factor(2.0, 60_000.0, 0.0)


class TestCheckEligibility:
    """Tests for check_eligibility."""

    def test_eligible_position(self) -> None:
        """CR = 2/3, θ + B = 1.4 gives k_SF ≈ 0.933 < 1."""
        result = check_eligibility(80_000, 2.0, 60_000, 0.30)
        assert result.k_sf == pytest.approx(80_000 / 120_000 * 1.4)
        assert result.eligible is True
        assert result.collateral_ratio == pytest.approx(2 / 3)

    def test_not_eligible_position(self) -> None:
        """Heavily borrowed position should fail the gate."""
        result = check_eligibility(150_000, 2.5, 67_420, 0.85)
        assert result.eligible is False
        assert result.k_sf > 1

    def test_exactly_one_is_not_eligible(self) -> None:
        """k_SF == 1 is not eligible (strict inequality)."""
        result = check_eligibility(100.0, 1.0, 200.0, 0.5, buffer=1.5)
        assert result.k_sf == 1.0
        assert result.eligible is False

    def test_buffer_raises_factor(self) -> None:
        """A larger buffer should raise k_SF."""
        low = check_eligibility(80_000, 2.0, 60_000, 0.30, buffer=1.0)
        high = check_eligibility(80_000, 2.0, 60_000, 0.30, buffer=1.5)
        assert high.k_sf > low.k_sf

    def test_require_passes_through(self) -> None:
        """require() returns the result when eligible."""
        result = check_eligibility(80_000, 2.0, 60_000, 0.30)
        assert result.require() is result

    def test_require_raises_with_factor(self) -> None:
        """require() raises NotEligibleError carrying k_SF."""
        result = check_eligibility(150_000, 2.5, 67_420, 0.85)
        with pytest.raises(NotEligibleError) as exc_info:
            result.require()
        assert exc_info.value.k_sf == pytest.approx(result.k_sf)

    @pytest.mark.parametrize("threshold", [0.0, 1.0, -0.2, 1.5])
    def test_invalid_threshold(self, threshold: float) -> None:
        """θ must lie strictly inside (0, 1)."""
        with pytest.raises(InvalidParametersError, match="threshold"):
            check_eligibility(80_000, 2.0, 60_000, threshold)

    def test_buffer_below_one_raises(self) -> None:
        """B must be >= 1."""
        with pytest.raises(InvalidParametersError, match="buffer"):
            check_eligibility(80_000, 2.0, 60_000, 0.3, buffer=0.9)

    @pytest.mark.parametrize(
        "args",
        [(0.0, 2.0, 60_000.0), (80_000.0, 0.0, 60_000.0), (80_000.0, 2.0, -1.0)],
    )
    def test_non_positive_amounts(self, args) -> None:
        """Borrowed, collateral and price must be positive."""
        with pytest.raises(InvalidParametersError):
            check_eligibility(*args, 0.3)

    def test_result_is_frozen(self) -> None:
        """Results are immutable."""
        result = EligibilityResult(k_sf=0.5, eligible=True, collateral_ratio=0.3)
        with pytest.raises(AttributeError):
            result.k_sf = 2.0  # type: ignore[misc]


class TestRestraint:
    """Tests for restraint_amount and its inverse."""

    def test_restraint_value(self) -> None:
        """restraint = λ·C·p."""
        assert restraint_amount(0.05, 2.0, 60_000.0) == pytest.approx(6_000.0)

    def test_round_trip(self) -> None:
        """λ -> restraint -> λ recovers the input."""
        restraint = restraint_amount(0.0734, 2.5, 67_420.0)
        assert lambda_from_restraint(restraint, 2.5, 67_420.0) == pytest.approx(
            0.0734, abs=ROUND_TRIP_TOLERANCE
        )


class TestEarlyTerminationCost:
    """Tests for early_termination_cost."""

    def test_value(self) -> None:
        """cost = premium × k_re."""
        assert early_termination_cost(1_000.0, 0.8) == pytest.approx(800.0)

    @pytest.mark.parametrize("k_re", [0.0, 1.0, 1.2])
    def test_invalid_multiplier(self, k_re: float) -> None:
        """k_re must lie strictly inside (0, 1)."""
        with pytest.raises(InvalidParametersError):
            early_termination_cost(1_000.0, k_re)


class TestRecoveredHealthFactor:
    """Tests for recovered_health_factor."""

    def test_linear_model(self) -> None:
        """HF' = HF·(1 + λ)."""
        assert recovered_health_factor(1.5, 0.05) == pytest.approx(1.575)

    def test_zero_lambda(self) -> None:
        """No support leaves HF unchanged."""
        assert recovered_health_factor(1.1, 0.0) == 1.1
