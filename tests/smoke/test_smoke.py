"""
Smoke tests for quick CI validation.

These tests verify basic functionality without full coverage.
Run these first to catch obvious breakages before full test suite.

Usage:
    pytest tests/smoke/ -v
"""

import pytest


# =============================================================================
# Import Smoke Tests
# =============================================================================

class TestImportSmoke:
    """Verify core modules import successfully."""

    def test_import_core_package(self):
        """Top-level package should import without error."""
        import backstop_pricing

        assert backstop_pricing.__version__ == "0.1.0"

    def test_import_pricing_modules(self):
        """Pricing modules should import successfully."""
        from backstop_pricing.options.pricing import normal, reversible_call

        assert normal.normal_cdf is not None
        assert reversible_call.price_option is not None

    def test_import_lifecycle_modules(self):
        """Eligibility and lifecycle modules should import."""
        from backstop_pricing.backstop.eligibility import check_eligibility
        from backstop_pricing.backstop.manager import VaultManager

        assert check_eligibility is not None
        assert VaultManager is not None

    def test_import_stress_testing(self):
        """Stress testing modules should import."""
        from backstop_pricing.stress_testing import (
            ALL_STANDARD_SCENARIOS,
            run_stress_test,
            value_at_risk,
        )

        assert len(ALL_STANDARD_SCENARIOS) == 4
        assert run_stress_test is not None
        assert value_at_risk is not None


# =============================================================================
# Quick Pricing Smoke Tests
# =============================================================================

class TestPricingSmoke:
    """Quick pricing functionality tests."""

    def test_lambda_star(self):
        """Reference position should price."""
        from backstop_pricing import ReversibleCallParams, price_option

        params = ReversibleCallParams.for_position(67_420.0, 0.85, 5 / 365)
        result = price_option(params, collateral_amount=2.5)

        assert 0 < result.lambda_star < 1

    def test_greeks(self):
        """Greeks should compute."""
        from backstop_pricing import ReversibleCallParams, compute_greeks

        greeks = compute_greeks(ReversibleCallParams.for_position(60_000.0, 0.5, 30 / 365))

        assert greeks.delta >= 0
        assert greeks.gamma >= 0
        assert greeks.vega >= 0

    def test_eligibility(self):
        """Eligibility should evaluate."""
        from backstop_pricing import check_eligibility

        assert check_eligibility(80_000, 2.0, 60_000, 0.3).eligible


# =============================================================================
# Lifecycle Smoke Tests
# =============================================================================

class TestLifecycleSmoke:
    """Quick lifecycle functionality tests."""

    def test_support_vault(self):
        """A vault can be created and supported."""
        from backstop_pricing import VaultManager, VaultPhase

        now = 1_700_000_000.0
        manager = VaultManager(clock=lambda: now)
        manager.create_vault("v1", "0xa", 2.0, 60_000.0, 80_000.0, 0.3, now + 5 * 86_400)
        manager.add_support("v1", "0xb", lambda_=0.05)

        assert manager.get_vault("v1").phase is VaultPhase.PRE_MATURITY

    def test_unknown_vault(self):
        """Unknown vaults raise NotFoundError."""
        from backstop_pricing import NotFoundError, VaultManager

        with pytest.raises(NotFoundError):
            VaultManager().get_vault("missing")
