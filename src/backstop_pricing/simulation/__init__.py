"""
Vault replay and protocol-wide backstop metrics.
"""

from .engine import (
    ProtocolMetrics,
    SimulationResult,
    active_support_by_vault,
    aggregate_protocol_metrics,
    results_to_frame,
    run_simulation,
    run_simulation_batch,
)

__all__ = [
    "ProtocolMetrics",
    "SimulationResult",
    "active_support_by_vault",
    "aggregate_protocol_metrics",
    "results_to_frame",
    "run_simulation",
    "run_simulation_batch",
]
