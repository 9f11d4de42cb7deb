"""
End-to-end backstop workflows.

Drives the lifecycle manager, the simulation engine and the stress
module together the way the presentation layer does.
"""

import numpy as np
import pytest

from backstop_pricing.backstop.manager import VaultManager
from backstop_pricing.data.schemas import SupportStatus, VaultPhase
from backstop_pricing.options.simulation.price_path import generate_price_path, generate_price_paths
from backstop_pricing.simulation.engine import (
    aggregate_protocol_metrics,
    results_to_frame,
    run_simulation_batch,
)
from backstop_pricing.stress_testing import (
    ALL_STANDARD_SCENARIOS,
    format_stress_table,
    run_stress_test,
    stress_results_to_frame,
    supporter_risk_metrics,
)

T0 = 1_700_000_000.0
DAY = 86_400.0


@pytest.fixture
def book(clock, vault_registrar) -> VaultManager:
    """Three supported vaults with different leverage."""
    manager = VaultManager(clock=clock)
    for vault_id, borrowed, lam in (("a", 60_000.0, 0.03), ("b", 80_000.0, 0.05), ("c", 84_000.0, 0.08)):
        vault_registrar(manager, vault_id, borrowed_amount=borrowed)
        manager.add_support(vault_id, f"0x{vault_id}", lambda_=lam)
    return manager


class TestLifecycleWorkflow:
    """Support, rescue, re-support, mature, settle."""

    def test_full_lifecycle(self, manager, clock, vault_registrar) -> None:
        """A vault can be rescued and supported again before settling."""
        vault_registrar(manager)
        first = manager.add_support("v1", "0xalice", lambda_=0.05)
        assert manager.get_vault("v1").phase is VaultPhase.PRE_MATURITY

        clock.advance(10 * DAY)
        manager.update_price("v1", 62_000.0)
        rescue = manager.rescue("v1", first.support_id)
        assert rescue.termination_cost > 0
        assert manager.get_support(first.support_id).status is SupportStatus.TERMINATED
        assert manager.get_vault("v1").phase is VaultPhase.INITIALIZATION

        second = manager.add_support("v1", "0xbob", lambda_=0.06)
        assert second.support_id != first.support_id
        assert second.collateral_deposited == pytest.approx(0.06 * 2.0 * 62_000.0)

        clock.advance(25 * DAY)
        assert manager.update_phase("v1") is VaultPhase.MATURITY
        settled = manager.settle("v1", second.support_id, exercise=True)

        assert settled.status is SupportStatus.EXERCISED
        assert manager.list_supports("v1", SupportStatus.ACTIVE) == []
        assert [s.status for s in manager.list_supports("v1")] == [
            SupportStatus.TERMINATED,
            SupportStatus.EXERCISED,
        ]

    def test_metrics_follow_price(self, supported_manager, clock) -> None:
        """A price drop lowers the recovered health factor."""
        before = supported_manager.vault_metrics("v1")
        clock.advance(DAY)
        supported_manager.update_price("v1", 45_000.0)
        after = supported_manager.vault_metrics("v1")
        assert after.health_factor_recovery < before.health_factor_recovery


class TestSimulationWorkflow:
    """Price paths replayed against managed vaults."""

    def test_replay_generated_path(self, supported_manager) -> None:
        """A 20-day path replays sample by sample."""
        path = generate_price_path(60_000.0, days=20, volatility=0.4, start_time=T0, seed=11)
        results = supported_manager.simulate("v1", path.prices, path.timestamps)

        df = results_to_frame(results)
        assert len(df) == 20
        np.testing.assert_allclose(df["price"], path.prices)
        assert (df["lambda_star"] >= 0).all()
        assert (df["collateral_restraint"] > 0).all()

    def test_batch_replay(self, supported_manager) -> None:
        """Each path of a batch replays independently."""
        batch = generate_price_paths(60_000.0, days=10, volatility=0.4, n_paths=5, start_time=T0, seed=3)
        vault = supported_manager.get_vault("v1")
        replays = run_simulation_batch(
            vault, supported_manager.active_support("v1"), batch.prices, batch.timestamps
        )
        assert len(replays) == 5
        assert all(len(r) == 10 for r in replays)

    def test_protocol_metrics(self, book) -> None:
        """Every vault in the book is supported."""
        metrics = aggregate_protocol_metrics(book.list_vaults(), book.list_supports(), 60_000.0)
        expected_restrained = (0.03 + 0.05 + 0.08) * 2.0 * 60_000.0
        assert metrics.total_collateral_restrained == pytest.approx(expected_restrained)
        assert 0.0 <= metrics.liquidation_avoidance_rate <= 1.0


class TestStressWorkflow:
    """Stress and VaR over a managed book."""

    def test_standard_scenarios(self, book) -> None:
        """Standard drawdowns run in order with bounded health."""
        results = run_stress_test(book.list_vaults(), book.list_supports(), ALL_STANDARD_SCENARIOS)

        assert [r.scenario for r in results] == [s.name for s in ALL_STANDARD_SCENARIOS]
        assert all(0.0 <= r.protocol_health <= 1.0 for r in results)
        assert results[-1].total_losses >= results[0].total_losses

        df = stress_results_to_frame(results)
        assert len(df) == len(ALL_STANDARD_SCENARIOS)
        assert format_stress_table(results).count("\n") == len(results) + 1

    def test_supporter_var(self, book) -> None:
        """VaR/ES of the book's supports are reproducible and ordered."""
        supports = book.list_supports(status=SupportStatus.ACTIVE)
        first = supporter_risk_metrics(supports, seed=42)
        again = supporter_risk_metrics(supports, seed=42)

        assert first == again
        assert first.expected_shortfall <= first.value_at_risk
