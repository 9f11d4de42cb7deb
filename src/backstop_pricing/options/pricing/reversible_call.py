"""
Black-Scholes adapted pricing for reversible call options.

A supporter restrains collateral against a loan and receives the right to
take over the position at maturity. The option is priced as a call on the
collateral struck at the liquidation price, discounting the spot leg at the
risk-free rate and the strike leg at the impermanent-loss (carry) rate:

    λ* = (S·e^(-r_f·T)·N(d1) - K·e^(-IL·T)·N(d2)) / (C·S)

References
----------
[T1] Black, F., & Scholes, M. (1973). The pricing of options and corporate liabilities.
[T1] Hull, J. C. (2018). Options, Futures, and Other Derivatives (10th ed.).
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from backstop_pricing.config.settings import SETTINGS, MarketDefaults
from backstop_pricing.errors import InvalidParametersError
from backstop_pricing.options.pricing.normal import normal_cdf, normal_pdf


@dataclass(frozen=True)
class ReversibleCallParams:
    """
    Market inputs for pricing one reversible call.

    Attributes
    ----------
    spot : float
        Collateral spot price S (quote currency per unit)
    strike : float
        Strike K, the liquidation price S·θ
    time_to_maturity : float
        Time to maturity T (years)
    risk_free_rate : float
        Risk-free rate r_f (decimal)
    il_rate : float
        Impermanent-loss / carry rate IL (decimal)
    volatility : float
        Collateral volatility σ (decimal)
    """

    spot: float
    strike: float
    time_to_maturity: float
    risk_free_rate: float
    il_rate: float
    volatility: float

    @classmethod
    def for_position(
        cls,
        spot: float,
        liquidation_threshold: float,
        time_to_maturity: float,
        market: Optional[MarketDefaults] = None,
    ) -> "ReversibleCallParams":
        """
        Build params for a collateral position struck at its liquidation price.

        Parameters
        ----------
        spot : float
            Collateral spot price
        liquidation_threshold : float
            Threshold θ; strike = spot × θ
        time_to_maturity : float
            Time to maturity (years)
        market : MarketDefaults, optional
            Rates and volatility (default: SETTINGS.market)

        Returns
        -------
        ReversibleCallParams
        """
        market = market or SETTINGS.market
        return cls(
            spot=spot,
            strike=spot * liquidation_threshold,
            time_to_maturity=time_to_maturity,
            risk_free_rate=market.risk_free_rate,
            il_rate=market.il_rate,
            volatility=market.volatility,
        )


@dataclass(frozen=True)
class PricingResult:
    """
    Immutable reversible call pricing result.

    Attributes
    ----------
    lambda_star : float
        Fair premium factor λ*, clamped to >= 0
    d1 : float
        d1 parameter
    d2 : float
        d2 parameter
    cdf_d1 : float
        N(d1)
    cdf_d2 : float
        N(d2)
    premium : float
        Unclamped option premium (quote currency)
    """

    lambda_star: float
    d1: float
    d2: float
    cdf_d1: float
    cdf_d2: float
    premium: float


@dataclass(frozen=True)
class GreeksResult:
    """
    Sensitivities of the reversible call.

    Attributes
    ----------
    delta : float
        ∂λ*/∂S
    gamma : float
        ∂²λ*/∂S²
    theta : float
        ∂λ*/∂T
    vega : float
        ∂λ*/∂σ
    """

    delta: float
    gamma: float
    theta: float
    vega: float


def _calculate_d1_d2(params: ReversibleCallParams) -> tuple[float, float]:
    """
    Calculate d1 and d2 parameters.

    [T1] d1 = (ln(S/K) + (r_f - IL + σ²/2)T) / (σ√T)
    [T1] d2 = d1 - σ√T
    """
    sqrt_t = np.sqrt(params.time_to_maturity)
    vol_sqrt_t = params.volatility * sqrt_t

    d1 = (
        np.log(params.spot / params.strike)
        + (params.risk_free_rate - params.il_rate + 0.5 * params.volatility**2)
        * params.time_to_maturity
    ) / vol_sqrt_t

    d2 = d1 - vol_sqrt_t

    return float(d1), float(d2)


def price_option(params: ReversibleCallParams, collateral_amount: float) -> PricingResult:
    """
    Price a reversible call and derive the fair premium factor λ*.

    [T1] premium = S·e^(-r_f·T)·N(d1) - K·e^(-IL·T)·N(d2)
    [T1] λ* = max(0, premium / (C·S))

    Parameters
    ----------
    params : ReversibleCallParams
        Market inputs
    collateral_amount : float
        Collateral units C backing the loan

    Returns
    -------
    PricingResult
        λ* with the intermediate values for display

    Raises
    ------
    InvalidParametersError
        If S, K, T, σ or C is non-positive or non-finite

    Examples
    --------
    >>> params = ReversibleCallParams.for_position(67420.0, 0.85, 5 / 365)
    >>> result = price_option(params, collateral_amount=2.5)
    >>> round(result.lambda_star, 4)
    0.0598
    """
    _validate_inputs(params)
    if not np.isfinite(collateral_amount) or collateral_amount <= 0:
        raise InvalidParametersError(
            f"CRITICAL: collateral_amount must be > 0, got {collateral_amount}"
        )

    d1, d2 = _calculate_d1_d2(params)
    cdf_d1 = normal_cdf(d1)
    cdf_d2 = normal_cdf(d2)

    T = params.time_to_maturity
    spot_leg = params.spot * np.exp(-params.risk_free_rate * T) * cdf_d1
    strike_leg = params.strike * np.exp(-params.il_rate * T) * cdf_d2
    premium = float(spot_leg - strike_leg)

    # Negative premia are economically meaningless; this is the one clamp
    lambda_star = max(0.0, premium / (collateral_amount * params.spot))

    return PricingResult(
        lambda_star=lambda_star,
        d1=d1,
        d2=d2,
        cdf_d1=cdf_d1,
        cdf_d2=cdf_d2,
        premium=premium,
    )


def compute_greeks(params: ReversibleCallParams) -> GreeksResult:
    """
    Closed-form sensitivities of the reversible call.

    [T1] Delta = e^(-r_f·T)·N(d1) / (S·σ·√(2πT))
    [T1] Gamma = e^(-r_f·T)·n(d1) / (S²·σ·√T)
    [T1] Theta = -S·e^(-r_f·T)·n(d1)·σ/(2√T) + r_f·S·e^(-r_f·T)·N(d1) - IL·K·e^(-IL·T)·N(d2)
    [T1] Vega = S·e^(-r_f·T)·n(d1)·√T

    Parameters
    ----------
    params : ReversibleCallParams
        Market inputs

    Returns
    -------
    GreeksResult
        Delta, gamma, theta and vega (unscaled)

    Raises
    ------
    InvalidParametersError
        If S, K, T or σ is non-positive or non-finite
    """
    _validate_inputs(params)

    d1, d2 = _calculate_d1_d2(params)

    S = params.spot
    K = params.strike
    T = params.time_to_maturity
    sigma = params.volatility
    sqrt_t = np.sqrt(T)
    exp_rate = np.exp(-params.risk_free_rate * T)
    exp_il = np.exp(-params.il_rate * T)

    n_d1 = normal_pdf(d1)
    N_d1 = normal_cdf(d1)
    N_d2 = normal_cdf(d2)

    delta = exp_rate * N_d1 / (S * np.sqrt(2 * np.pi * T) * sigma)
    gamma = exp_rate * n_d1 / (S * S * sigma * sqrt_t)
    theta = (
        -(S * exp_rate * n_d1 * sigma) / (2 * sqrt_t)
        + params.risk_free_rate * S * exp_rate * N_d1
        - params.il_rate * K * exp_il * N_d2
    )
    vega = S * exp_rate * n_d1 * sqrt_t

    return GreeksResult(
        delta=float(delta),
        gamma=float(gamma),
        theta=float(theta),
        vega=float(vega),
    )


def _validate_inputs(params: ReversibleCallParams) -> None:
    """Validate reversible call inputs."""
    checks = (
        ("spot", params.spot),
        ("strike", params.strike),
        ("time_to_maturity", params.time_to_maturity),
        ("volatility", params.volatility),
    )
    for name, value in checks:
        if not np.isfinite(value) or value <= 0:
            raise InvalidParametersError(f"CRITICAL: {name} must be > 0, got {value}")
    for name, value in (("risk_free_rate", params.risk_free_rate), ("il_rate", params.il_rate)):
        if not np.isfinite(value):
            raise InvalidParametersError(f"CRITICAL: {name} must be finite, got {value}")
