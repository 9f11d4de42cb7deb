"""
Stress testing and supporter risk metrics.

[T2] Provides price-shock scenarios, the stress test runner, Monte Carlo
VaR / Expected Shortfall, and reporting.

- Scenarios: standard BTC drawdowns (-10% to -50%) plus custom shocks
- Runner: liquidation vs. penalty loss classification per vault
- Metrics: VaR, ES, risk level bands
- Reporting: DataFrame and Markdown tables
"""

from .scenarios import (
    ALL_STANDARD_SCENARIOS,
    BTC_EXTREME_CRASH,
    BTC_MILD_DRAWDOWN,
    BTC_MODERATE_DRAWDOWN,
    BTC_SEVERE_CRASH,
    PriceShockScenario,
    coerce_scenarios,
    create_scenario,
)
from .runner import StressTestResult, results_by_scenario, run_stress_test
from .metrics import (
    RiskLevel,
    SupporterRiskMetrics,
    classify_risk_level,
    expected_shortfall,
    simulate_support_profits,
    supporter_risk_metrics,
    value_at_risk,
)
from .reporting import format_stress_row, format_stress_table, stress_results_to_frame

__all__ = [
    # Scenarios
    "ALL_STANDARD_SCENARIOS",
    "BTC_EXTREME_CRASH",
    "BTC_MILD_DRAWDOWN",
    "BTC_MODERATE_DRAWDOWN",
    "BTC_SEVERE_CRASH",
    "PriceShockScenario",
    "coerce_scenarios",
    "create_scenario",
    # Runner
    "StressTestResult",
    "results_by_scenario",
    "run_stress_test",
    # Metrics
    "RiskLevel",
    "SupporterRiskMetrics",
    "classify_risk_level",
    "expected_shortfall",
    "simulate_support_profits",
    "supporter_risk_metrics",
    "value_at_risk",
    # Reporting
    "format_stress_row",
    "format_stress_table",
    "stress_results_to_frame",
]
