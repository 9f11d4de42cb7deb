"""
Supporter risk metrics: Monte Carlo VaR / Expected Shortfall.

[T2] Each trial draws one terminal price shock per support,

    shock ~ U[-w, +w],   w = var_shock_range (10%)

and scores profit = λ · shock · notional, summed over supports. The
notional (1000) and the ±10% band are reference-model policy constants,
not calibrated quantities. The band does not scale with the horizon;
``horizon_days`` is carried on the result for labelling only.

    VaR = sorted_profits[floor((1 - α) · n)]
    ES  = mean(sorted_profits[:max(1, floor((1 - α) · n))])

Both are Monte Carlo estimators: pass ``seed`` or ``rng`` to reproduce.

See: Hull (2018) "Risk Management and Financial Institutions", Ch. 12
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from backstop_pricing.config.settings import SETTINGS, SimulationConfig
from backstop_pricing.data.schemas import Support
from backstop_pricing.errors import InvalidParametersError


class RiskLevel(Enum):
    """
    Risk classification of a liquidation/default probability.
    """

    LOW = "low"  # p < 10%
    MEDIUM = "medium"  # 10% <= p < 30%
    HIGH = "high"  # 30% <= p < 60%
    CRITICAL = "critical"  # p >= 60%


@dataclass(frozen=True)
class SupporterRiskMetrics:
    """
    VaR and ES from a single set of Monte Carlo trials.

    Attributes
    ----------
    value_at_risk : float
        Profit at the (1 - confidence) quantile
    expected_shortfall : float
        Mean profit of the tail below the VaR index
    confidence : float
        Confidence level α
    horizon_days : float
        Horizon label reported with the estimate
    n_paths : int
        Number of trials
    """

    value_at_risk: float
    expected_shortfall: float
    confidence: float
    horizon_days: float
    n_paths: int


def classify_risk_level(probability: float) -> RiskLevel:
    """
    Classify a probability into a risk band.

    Examples
    --------
    >>> classify_risk_level(0.05)
    <RiskLevel.LOW: 'low'>
    >>> classify_risk_level(0.10)
    <RiskLevel.MEDIUM: 'medium'>
    >>> classify_risk_level(0.45)
    <RiskLevel.HIGH: 'high'>
    >>> classify_risk_level(0.60)
    <RiskLevel.CRITICAL: 'critical'>
    """
    if probability < 0.1:
        return RiskLevel.LOW
    elif probability < 0.3:
        return RiskLevel.MEDIUM
    elif probability < 0.6:
        return RiskLevel.HIGH
    else:
        return RiskLevel.CRITICAL


def simulate_support_profits(
    supports: Sequence[Support],
    n_paths: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> np.ndarray:
    """
    Simulate total supporter profit per trial.

    Parameters
    ----------
    supports : Sequence[Support]
        Supports to score (all are included regardless of status)
    n_paths : int, optional
        Number of trials (default: config.var_n_paths)
    seed : int, optional
        Random seed; ignored when ``rng`` is given
    rng : np.random.Generator, optional
        Random source to draw from
    config : SimulationConfig, optional
        Policy constants (default: SETTINGS.simulation)

    Returns
    -------
    np.ndarray
        Unsorted total profit per trial, shape (n_paths,)
    """
    config = config or SETTINGS.simulation
    n_paths = config.var_n_paths if n_paths is None else n_paths
    if n_paths <= 0:
        raise InvalidParametersError(f"CRITICAL: n_paths must be > 0, got {n_paths}")

    w = config.var_shock_range
    rng = rng if rng is not None else np.random.default_rng(seed)

    lambdas = np.array([s.lambda_ for s in supports], dtype=float)
    shocks = rng.uniform(-w, w, size=(n_paths, lambdas.shape[0]))

    return shocks @ lambdas * config.var_notional


def _tail_index(confidence: float, n: int) -> int:
    if not 0 < confidence < 1:
        raise InvalidParametersError(f"CRITICAL: confidence must be in (0, 1), got {confidence}")
    return int(np.floor((1 - confidence) * n))


def _check_horizon(horizon_days: float) -> None:
    if not np.isfinite(horizon_days) or horizon_days <= 0:
        raise InvalidParametersError(f"CRITICAL: horizon_days must be > 0, got {horizon_days}")


def value_at_risk(
    supports: Sequence[Support],
    confidence: Optional[float] = None,
    horizon_days: float = 30,
    n_paths: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> float:
    """
    Monte Carlo Value at Risk of supporter profit.

    Parameters
    ----------
    supports : Sequence[Support]
        Supports to score
    confidence : float, optional
        Confidence level α in (0, 1) (default: config.var_confidence)
    horizon_days : float
        Horizon label (> 0); the shock band is fixed by config
    n_paths : int, optional
        Number of trials (default: config.var_n_paths)
    seed, rng
        Random source, see ``simulate_support_profits``

    Returns
    -------
    float
        Profit at sorted index floor((1 - α) · n); negative means a loss

    Examples
    --------
    >>> var = value_at_risk(supports, confidence=0.95, seed=42)
    """
    config = config or SETTINGS.simulation
    confidence = config.var_confidence if confidence is None else confidence
    _check_horizon(horizon_days)
    profits = np.sort(
        simulate_support_profits(supports, n_paths, seed=seed, rng=rng, config=config)
    )
    return float(profits[_tail_index(confidence, len(profits))])


def expected_shortfall(
    supports: Sequence[Support],
    confidence: Optional[float] = None,
    horizon_days: float = 30,
    n_paths: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> float:
    """
    Monte Carlo Expected Shortfall of supporter profit.

    Mean of the sorted profits strictly below the VaR index, using at least
    the single worst trial when that tail is empty.

    Returns
    -------
    float
        Mean tail profit; always <= the VaR of the same draws
    """
    config = config or SETTINGS.simulation
    confidence = config.var_confidence if confidence is None else confidence
    _check_horizon(horizon_days)
    profits = np.sort(
        simulate_support_profits(supports, n_paths, seed=seed, rng=rng, config=config)
    )
    n_tail = max(1, _tail_index(confidence, len(profits)))
    return float(np.mean(profits[:n_tail]))


def supporter_risk_metrics(
    supports: Sequence[Support],
    confidence: Optional[float] = None,
    horizon_days: float = 30,
    n_paths: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> SupporterRiskMetrics:
    """
    VaR and ES computed from one shared set of trials.

    With the same seed this matches ``value_at_risk`` and
    ``expected_shortfall`` called separately.
    """
    config = config or SETTINGS.simulation
    confidence = config.var_confidence if confidence is None else confidence
    _check_horizon(horizon_days)
    profits = np.sort(
        simulate_support_profits(supports, n_paths, seed=seed, rng=rng, config=config)
    )
    index = _tail_index(confidence, len(profits))

    return SupporterRiskMetrics(
        value_at_risk=float(profits[index]),
        expected_shortfall=float(np.mean(profits[: max(1, index)])),
        confidence=confidence,
        horizon_days=horizon_days,
        n_paths=len(profits),
    )
