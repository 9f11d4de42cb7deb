#!/usr/bin/env python3
"""
Backstop Lifecycle Demo - Reference BTC Position.

This example walks one vault through the full support lifecycle:

    register -> support -> rescue -> support again -> maturity -> settle

Key Concepts:
- λ*: fair premium factor of the reversible call
- k_SF: eligibility factor, support is allowed only while k_SF < 1
- Rescue: the borrower terminates early and pays premium × k_re

Usage:
    python examples/01_backstop_lifecycle.py          # Full demo
    python examples/01_backstop_lifecycle.py --ci     # CI mode (short path)
"""

import argparse
import sys

# Add src to path if running as script
sys.path.insert(0, "src")

from backstop_pricing import (
    ReversibleCallParams,
    VaultManager,
    check_eligibility,
    compare_lambda,
    compute_greeks,
    generate_price_path,
    price_option,
)
from backstop_pricing.simulation.engine import results_to_frame

DAY = 86_400.0
START = 1_700_000_000.0


class ManualClock:
    """Clock the demo advances explicitly."""

    def __init__(self, start: float):
        self.now = start

    def __call__(self) -> float:
        return self.now


def print_section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def show_reference_pricing() -> None:
    """Price the reference 2.5 BTC position."""
    print_section("REFERENCE PRICING")

    params = ReversibleCallParams.for_position(67_420.0, 0.85, 5 / 365)
    result = price_option(params, collateral_amount=2.5)
    greeks = compute_greeks(params)

    print(f"\n  Spot:       ${params.spot:,.0f}")
    print(f"  Strike:     ${params.strike:,.0f} (θ = 0.85)")
    print(f"  d1 / d2:    {result.d1:.4f} / {result.d2:.4f}")
    print(f"  λ*:         {result.lambda_star:.5f}")
    print(f"  Premium:    ${result.premium:,.2f}")
    print(f"  Delta:      {greeks.delta:.3e}")
    print(f"  Vega:       {greeks.vega:,.2f}")

    collateral_value = 2.5 * params.spot
    for offered in (0.05, result.lambda_star, 0.07):
        quote = compare_lambda(offered, result, collateral_value)
        print(
            f"  Offer λ = {offered:.4f}: {quote.describe()}, "
            f"expected profit ${quote.expected_profit:,.0f}, max loss ${quote.max_loss:,.0f}"
        )

    eligibility = check_eligibility(150_000, 2.5, 67_420, 0.85)
    verdict = "eligible" if eligibility.eligible else "NOT eligible"
    print(f"\n  Borrowing 150,000 against it: k_SF = {eligibility.k_sf:.3f} ({verdict})")


def run_lifecycle(days: int, seed: int) -> None:
    """Drive one vault through support, rescue and settlement."""
    clock = ManualClock(START)
    manager = VaultManager(clock=clock)

    print_section("LIFECYCLE")

    vault = manager.create_vault(
        "demo",
        "0xborrower",
        collateral_amount=2.0,
        collateral_price=60_000.0,
        borrowed_amount=80_000.0,
        liquidation_threshold=0.30,
        maturity_time=START + 30 * DAY,
    )
    print(f"\n  Registered vault {vault.vault_id}: HF = {vault.health_factor:.3f}")

    first = manager.add_support("demo", "0xalice", lambda_=0.05)
    print(f"  0xalice supports with λ = {first.lambda_:.2f} (λ* = {first.lambda_star:.5f})")
    print(f"  Collateral deposited: ${first.collateral_deposited:,.0f}")

    metrics = manager.vault_metrics("demo")
    print(f"  Recovered HF: {metrics.health_factor_recovery:.3f}")

    clock.now += 10 * DAY
    manager.update_price("demo", 62_000.0)
    rescue = manager.rescue("demo", first.support_id)
    print(f"\n  Day 10: borrower rescues, cost = ${rescue.termination_cost:,.2f}")

    second = manager.add_support("demo", "0xbob", lambda_=0.06)
    print(f"  0xbob supports with λ = {second.lambda_:.2f}")

    path = generate_price_path(62_000.0, days=days, volatility=0.4, start_time=clock.now, seed=seed)
    df = results_to_frame(manager.simulate("demo", path.prices, path.timestamps))
    print(f"\n  Replayed {len(df)} days:")
    print(f"    price range      ${df['price'].min():,.0f} - ${df['price'].max():,.0f}")
    print(f"    min HF           {df['health_factor'].min():.3f}")
    print(f"    final profit     ${df['supporter_profit'].iloc[-1]:,.2f}")

    clock.now = START + 30 * DAY
    phase = manager.update_phase("demo")
    settled = manager.settle("demo", second.support_id, exercise=True)
    print(f"\n  Day 30: vault is {phase.value}, support {settled.status.value}")


def main() -> None:
    """Run lifecycle demo."""
    parser = argparse.ArgumentParser(description="Backstop Lifecycle Demo")
    parser.add_argument("--ci", action="store_true", help="CI mode (short path)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    days = 5 if args.ci else 20

    show_reference_pricing()
    run_lifecycle(days, args.seed)

    print_section("DEMO COMPLETE")


if __name__ == "__main__":
    main()
