"""
backstop-pricing: Reversible call option pricing and risk for backstopped loans.

Quick Start
-----------
>>> from backstop_pricing import ReversibleCallParams, price_option, check_eligibility
>>> params = ReversibleCallParams.for_position(67_420.0, 0.85, 5 / 365)
>>> round(price_option(params, collateral_amount=2.5).lambda_star, 4)
0.0598
>>> check_eligibility(150_000, 2.5, 67_420, 0.85).eligible
False

See Also
--------
- examples/01_backstop_lifecycle.py for a lifecycle walkthrough

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Options Pricing
# =============================================================================
from backstop_pricing.options.pricing import (
    GreeksResult,
    PricingResult,
    ReversibleCallParams,
    compute_greeks,
    normal_cdf,
    normal_pdf,
    price_option,
)

# =============================================================================
# Eligibility & Lifecycle
# =============================================================================
from backstop_pricing.backstop.eligibility import (
    EligibilityResult,
    check_eligibility,
    early_termination_cost,
    recovered_health_factor,
    restraint_amount,
)
from backstop_pricing.backstop.manager import RescueResult, VaultManager, VaultMetrics
from backstop_pricing.backstop.quotes import LambdaComparison, LambdaVerdict, compare_lambda
from backstop_pricing.data.schemas import Support, SupportStatus, Vault, VaultPhase

# =============================================================================
# Simulation
# =============================================================================
from backstop_pricing.options.simulation import PricePath, generate_price_path, generate_price_paths
from backstop_pricing.simulation.engine import (
    ProtocolMetrics,
    SimulationResult,
    aggregate_protocol_metrics,
    run_simulation,
)

# =============================================================================
# Stress Testing
# =============================================================================
from backstop_pricing.stress_testing import (
    ALL_STANDARD_SCENARIOS,
    PriceShockScenario,
    StressTestResult,
    expected_shortfall,
    run_stress_test,
    value_at_risk,
)

# =============================================================================
# Configuration & Errors
# =============================================================================
from backstop_pricing.config.settings import SETTINGS, MarketDefaults
from backstop_pricing.errors import (
    BackstopError,
    InvalidParametersError,
    InvalidPhaseError,
    NotEligibleError,
    NotFoundError,
)

__all__ = [
    # Version
    "__version__",
    # Options
    "GreeksResult",
    "PricingResult",
    "ReversibleCallParams",
    "compute_greeks",
    "normal_cdf",
    "normal_pdf",
    "price_option",
    # Eligibility
    "EligibilityResult",
    "check_eligibility",
    "early_termination_cost",
    "recovered_health_factor",
    "restraint_amount",
    # Quotes
    "LambdaComparison",
    "LambdaVerdict",
    "compare_lambda",
    # Lifecycle
    "RescueResult",
    "VaultManager",
    "VaultMetrics",
    "Support",
    "SupportStatus",
    "Vault",
    "VaultPhase",
    # Simulation
    "PricePath",
    "generate_price_path",
    "generate_price_paths",
    "ProtocolMetrics",
    "SimulationResult",
    "aggregate_protocol_metrics",
    "run_simulation",
    # Stress Testing
    "ALL_STANDARD_SCENARIOS",
    "PriceShockScenario",
    "StressTestResult",
    "expected_shortfall",
    "run_stress_test",
    "value_at_risk",
    # Config
    "SETTINGS",
    "MarketDefaults",
    # Errors
    "BackstopError",
    "InvalidParametersError",
    "InvalidPhaseError",
    "NotEligibleError",
    "NotFoundError",
]
