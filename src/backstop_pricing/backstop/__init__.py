"""
Backstop support eligibility and vault lifecycle.

The lifecycle manager lives in ``backstop_pricing.backstop.manager``; it
is not re-exported here because it depends on the simulation engine,
which itself depends on the eligibility helpers below.
"""

from .eligibility import (
    EligibilityResult,
    check_eligibility,
    early_termination_cost,
    health_factor,
    lambda_from_restraint,
    recovered_health_factor,
    restraint_amount,
)
from .quotes import LambdaComparison, LambdaVerdict, compare_lambda

__all__ = [
    "EligibilityResult",
    "LambdaComparison",
    "LambdaVerdict",
    "check_eligibility",
    "compare_lambda",
    "early_termination_cost",
    "health_factor",
    "lambda_from_restraint",
    "recovered_health_factor",
    "restraint_amount",
]
