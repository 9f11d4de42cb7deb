"""
Stress test reporting.

Tabular (pandas) and Markdown renderings of stress results for the
presentation layer. No file or network output.
"""

from typing import List, Sequence

import pandas as pd

from backstop_pricing.stress_testing.metrics import classify_risk_level
from backstop_pricing.stress_testing.runner import StressTestResult

STRESS_COLUMNS = [
    "scenario",
    "price_shock",
    "vaults_affected",
    "total_losses",
    "supporter_default_rate",
    "protocol_health",
    "risk_level",
]


def stress_results_to_frame(results: Sequence[StressTestResult]) -> pd.DataFrame:
    """
    Convert stress results to a DataFrame.

    Parameters
    ----------
    results : Sequence[StressTestResult]
        Results in scenario order

    Returns
    -------
    pd.DataFrame
        One row per scenario; ``risk_level`` classifies the supporter
        default rate
    """
    rows = [
        {
            "scenario": r.scenario,
            "price_shock": r.price_shock,
            "vaults_affected": r.vaults_affected,
            "total_losses": r.total_losses,
            "supporter_default_rate": r.supporter_default_rate,
            "protocol_health": r.protocol_health,
            "risk_level": classify_risk_level(r.supporter_default_rate).value,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=STRESS_COLUMNS)


def format_stress_row(result: StressTestResult) -> str:
    """Format one result as a Markdown table row."""
    level = classify_risk_level(result.supporter_default_rate)
    return (
        f"| {result.scenario} | "
        f"{result.price_shock * 100:+.1f}% | "
        f"{result.vaults_affected} | "
        f"${result.total_losses:,.0f} | "
        f"{result.supporter_default_rate * 100:.1f}% | "
        f"{result.protocol_health * 100:.1f}% | "
        f"{level.value.upper()} |"
    )


def format_stress_table(results: Sequence[StressTestResult], worst_first: bool = False) -> str:
    """
    Format stress results as a Markdown table.

    Parameters
    ----------
    results : Sequence[StressTestResult]
        Results to render
    worst_first : bool
        Sort by protocol health ascending instead of input order

    Returns
    -------
    str
        Markdown table (header only when ``results`` is empty)
    """
    lines: List[str] = [
        "| Scenario | Shock | Vaults Affected | Losses | Supporter Defaults | Protocol Health | Risk |",
        "|----------|-------|-----------------|--------|--------------------|-----------------|------|",
    ]

    ordered = sorted(results, key=lambda r: r.protocol_health) if worst_first else list(results)
    lines.extend(format_stress_row(r) for r in ordered)

    return "\n".join(lines)
