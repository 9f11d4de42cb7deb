"""
Supporter quotes: an offered λ compared against the fair λ*.

[T3] The figures are the simplified supporter-side view shown before a
support is placed, for collateral value V = C · p:

    deviation          = (λ - λ*) / λ*
    expected profit    = (λ* - λ) · V
    profit probability = clip(1 - λ / λ*, 0, 1)
    max loss           = λ · V            (the premium paid)
    risk/reward        = expected profit / max loss

An offer within ±band of λ* (SimulationConfig.lambda_optimal_band, 5% by
default) is OPTIMAL; otherwise it is OVERPRICED or UNDERPRICED.

When λ* = 0 the relative deviation is undefined: any positive λ is
OVERPRICED with infinite deviation, λ = 0 is OPTIMAL, and the profit
probability is 0.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from backstop_pricing.config.settings import SETTINGS, SimulationConfig
from backstop_pricing.errors import InvalidParametersError
from backstop_pricing.options.pricing.reversible_call import PricingResult


class LambdaVerdict(Enum):
    """Position of an offered λ relative to λ*."""

    OPTIMAL = "optimal"
    OVERPRICED = "overpriced"
    UNDERPRICED = "underpriced"


@dataclass(frozen=True)
class LambdaComparison:
    """
    An offered premium factor compared with the fair one.

    Attributes
    ----------
    lambda_ : float
        Offered premium factor λ
    lambda_star : float
        Fair premium factor λ*
    deviation : float
        (λ - λ*) / λ*; +inf when λ* = 0 < λ
    verdict : LambdaVerdict
        OPTIMAL, OVERPRICED or UNDERPRICED
    expected_profit : float
        (λ* - λ) · collateral value
    profit_probability : float
        clip(1 - λ/λ*, 0, 1)
    max_loss : float
        Premium paid, λ · collateral value
    risk_reward_ratio : float, optional
        expected_profit / max_loss; None when nothing is paid
    """

    lambda_: float
    lambda_star: float
    deviation: float
    verdict: LambdaVerdict
    expected_profit: float
    profit_probability: float
    max_loss: float
    risk_reward_ratio: Optional[float]

    @property
    def deviation_pct(self) -> float:
        """Absolute deviation in percent, as displayed next to the verdict."""
        return abs(self.deviation) * 100.0

    def describe(self) -> str:
        """
        One-line summary of the verdict.

        Examples
        --------
        >>> from backstop_pricing.options.pricing import PricingResult
        >>> fair = PricingResult(0.05, 0.0, 0.0, 0.5, 0.5, 0.0)
        >>> compare_lambda(0.06, fair, 100_000.0).describe()
        '20.0% above optimal'
        """
        if self.verdict is LambdaVerdict.OPTIMAL:
            return "Near optimal pricing"
        direction = "above" if self.verdict is LambdaVerdict.OVERPRICED else "below"
        return f"{self.deviation_pct:.1f}% {direction} optimal"


def compare_lambda(
    lambda_: float,
    pricing: PricingResult,
    collateral_value: float,
    config: Optional[SimulationConfig] = None,
) -> LambdaComparison:
    """
    Compare an offered λ with the priced λ*.

    Parameters
    ----------
    lambda_ : float
        Offered premium factor, >= 0
    pricing : PricingResult
        Pricing of the vault being supported
    collateral_value : float
        C · p in the quote currency, > 0
    config : SimulationConfig, optional
        Supplies lambda_optimal_band

    Returns
    -------
    LambdaComparison
        Verdict and supporter profit figures

    Raises
    ------
    InvalidParametersError
        If lambda_ is negative/non-finite or collateral_value <= 0
    """
    if config is None:
        config = SETTINGS.simulation

    if not np.isfinite(lambda_) or lambda_ < 0:
        raise InvalidParametersError(f"CRITICAL: lambda_ must be >= 0, got {lambda_}")
    if not np.isfinite(collateral_value) or collateral_value <= 0:
        raise InvalidParametersError(
            f"CRITICAL: collateral_value must be > 0, got {collateral_value}"
        )

    lambda_star = pricing.lambda_star
    band = config.lambda_optimal_band

    if lambda_star > 0:
        deviation = (lambda_ - lambda_star) / lambda_star
        profit_probability = float(np.clip(1.0 - lambda_ / lambda_star, 0.0, 1.0))
    else:
        deviation = np.inf if lambda_ > 0 else 0.0
        profit_probability = 0.0

    if abs(deviation) < band:
        verdict = LambdaVerdict.OPTIMAL
    elif deviation > 0:
        verdict = LambdaVerdict.OVERPRICED
    else:
        verdict = LambdaVerdict.UNDERPRICED

    expected_profit = (lambda_star - lambda_) * collateral_value
    max_loss = lambda_ * collateral_value
    risk_reward = expected_profit / max_loss if max_loss > 0 else None

    return LambdaComparison(
        lambda_=float(lambda_),
        lambda_star=float(lambda_star),
        deviation=float(deviation),
        verdict=verdict,
        expected_profit=float(expected_profit),
        profit_probability=profit_probability,
        max_loss=float(max_loss),
        risk_reward_ratio=risk_reward,
    )
