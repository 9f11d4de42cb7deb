"""
Support eligibility and collateral restraint.

[T2] A position may receive support only while

    k_SF = CR · (θ + B) < 1,    CR = P / (C · p)

where P is the borrowed amount, C the collateral units, p the collateral
price, θ the liquidation threshold and B >= 1 a safety buffer.

The health-factor recovery model is linear, HF' = HF·(1 + λ). It is an
approximation of the effect of restrained collateral, not a guarantee.
"""

from dataclasses import dataclass

import numpy as np

from backstop_pricing.config.settings import SETTINGS
from backstop_pricing.errors import InvalidParametersError, NotEligibleError


@dataclass(frozen=True)
class EligibilityResult:
    """
    Outcome of the support eligibility gate.

    Attributes
    ----------
    k_sf : float
        Support eligibility factor
    eligible : bool
        True iff k_sf < 1
    collateral_ratio : float
        Borrowed / collateral value
    """

    k_sf: float
    eligible: bool
    collateral_ratio: float

    def require(self) -> "EligibilityResult":
        """
        Return self, or raise if the position is not eligible.

        Raises
        ------
        NotEligibleError
            If k_sf >= 1
        """
        if not self.eligible:
            raise NotEligibleError(
                f"Vault not eligible for support: k_SF = {self.k_sf:.6f} >= 1",
                k_sf=self.k_sf,
            )
        return self


def _require_positive(name: str, value: float) -> None:
    if not np.isfinite(value) or value <= 0:
        raise InvalidParametersError(f"CRITICAL: {name} must be > 0, got {value}")


def health_factor(collateral_amount: float, collateral_price: float, borrowed_amount: float) -> float:
    """
    Health factor HF = (C · p) / P.

    Parameters
    ----------
    collateral_amount : float
        Collateral units C
    collateral_price : float
        Price per collateral unit p
    borrowed_amount : float
        Borrowed amount P (quote currency)

    Returns
    -------
    float
        Health factor; < 1 means undercollateralized
    """
    _require_positive("borrowed_amount", borrowed_amount)
    return collateral_amount * collateral_price / borrowed_amount


def check_eligibility(
    borrowed: float,
    collateral_amount: float,
    collateral_price: float,
    threshold: float,
    buffer: float = SETTINGS.lifecycle.default_buffer,
) -> EligibilityResult:
    """
    Evaluate the support eligibility factor k_SF.

    [T2] k_SF = (P / (C·p)) · (θ + B); eligible iff k_SF < 1

    Parameters
    ----------
    borrowed : float
        Borrowed amount P
    collateral_amount : float
        Collateral units C
    collateral_price : float
        Collateral price p
    threshold : float
        Liquidation threshold θ in (0, 1)
    buffer : float, default 1.1
        Safety buffer B >= 1

    Returns
    -------
    EligibilityResult
        Factor and verdict; call ``.require()`` to enforce

    Examples
    --------
    >>> result = check_eligibility(150_000, 2.5, 67_420, 0.85)
    >>> round(result.k_sf, 3), result.eligible
    (1.735, False)
    """
    _require_positive("borrowed", borrowed)
    _require_positive("collateral_amount", collateral_amount)
    _require_positive("collateral_price", collateral_price)
    if not 0 < threshold < 1:
        raise InvalidParametersError(f"CRITICAL: threshold must be in (0, 1), got {threshold}")
    if not np.isfinite(buffer) or buffer < 1:
        raise InvalidParametersError(f"CRITICAL: buffer must be >= 1, got {buffer}")

    collateral_ratio = borrowed / (collateral_amount * collateral_price)
    k_sf = collateral_ratio * (threshold + buffer)

    return EligibilityResult(
        k_sf=float(k_sf),
        eligible=bool(k_sf < 1),
        collateral_ratio=float(collateral_ratio),
    )


def restraint_amount(lambda_: float, collateral_amount: float, collateral_price: float) -> float:
    """
    Collateral restrained by a supporter: λ · C · p.

    Parameters
    ----------
    lambda_ : float
        Premium factor λ
    collateral_amount : float
        Collateral units C
    collateral_price : float
        Collateral price p

    Returns
    -------
    float
        Restrained value (quote currency)
    """
    return lambda_ * collateral_amount * collateral_price


def lambda_from_restraint(restraint: float, collateral_amount: float, collateral_price: float) -> float:
    """Invert ``restraint_amount``: λ = restraint / (C · p)."""
    _require_positive("collateral_amount", collateral_amount)
    _require_positive("collateral_price", collateral_price)
    return restraint / (collateral_amount * collateral_price)


def early_termination_cost(premium: float, k_re: float) -> float:
    """
    Cost paid by a borrower who rescues the vault early: premium · k_re.

    Parameters
    ----------
    premium : float
        Option premium at current market
    k_re : float
        Early-termination multiplier in (0, 1)

    Returns
    -------
    float
        Termination cost
    """
    if not 0 < k_re < 1:
        raise InvalidParametersError(f"CRITICAL: k_re must be in (0, 1), got {k_re}")
    return premium * k_re


def recovered_health_factor(original_hf: float, lambda_: float) -> float:
    """
    Linear recovery model HF' = HF · (1 + λ).

    Approximation only; the true effect depends on how the restrained
    collateral is applied to the loan.
    """
    return original_hf * (1 + lambda_)
