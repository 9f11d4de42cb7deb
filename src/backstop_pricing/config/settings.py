"""
Frozen configuration settings for backstop option pricing.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
Callers override a default by building a new record with
``dataclasses.replace`` and passing it explicitly; nothing here is mutated
at runtime.
"""

import os
from dataclasses import dataclass
from typing import Optional

# =============================================================================
# Market Defaults
# =============================================================================


def _env_float(name: str, default: float) -> float:
    """
    Read a float override from the environment.

    Parameters
    ----------
    name : str
        Environment variable name
    default : float
        Value used when the variable is unset or empty

    Returns
    -------
    float
        Parsed override or the default
    """
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"CRITICAL: {name} must be a float, got {raw!r}") from e


@dataclass(frozen=True)
class MarketDefaults:
    """
    Default market inputs for BTC collateral. [T3: Assumptions]

    Attributes
    ----------
    risk_free_rate : float
        Annualized risk-free rate r_f (decimal)
    il_rate : float
        Impermanent-loss / carry rate IL (decimal)
    volatility : float
        Annualized collateral volatility σ (decimal)
    """

    risk_free_rate: float = 0.05
    il_rate: float = 0.02
    volatility: float = 0.40

    @classmethod
    def from_env(cls) -> "MarketDefaults":
        """
        Build defaults with environment overrides applied.

        Reads BACKSTOP_RISK_FREE_RATE, BACKSTOP_IL_RATE and
        BACKSTOP_VOLATILITY; unset variables keep the class defaults.
        """
        base = cls()
        return cls(
            risk_free_rate=_env_float("BACKSTOP_RISK_FREE_RATE", base.risk_free_rate),
            il_rate=_env_float("BACKSTOP_IL_RATE", base.il_rate),
            volatility=_env_float("BACKSTOP_VOLATILITY", base.volatility),
        )


# =============================================================================
# Lifecycle Configuration
# =============================================================================


@dataclass(frozen=True)
class LifecycleConfig:
    """
    Immutable vault/support lifecycle configuration.

    Attributes
    ----------
    default_buffer : float
        Safety buffer B used in the eligibility factor
    default_k_re : float
        Early-termination cost multiplier k_re
    support_trigger_health_factor : float, optional
        When set, vaults are only registered while their health factor is
        below it. None disables the check (the loan collaborator decides).
    """

    default_buffer: float = 1.1
    default_k_re: float = 0.8
    support_trigger_health_factor: Optional[float] = None


# =============================================================================
# Simulation Configuration
# =============================================================================


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable simulation and risk-policy configuration.

    The avoidance threshold, penalty rate and VaR notional are policy
    constants of the reference risk model, not calibrated quantities.

    Attributes
    ----------
    days_per_year : int
        Calendar days per year (crypto markets trade every day)
    seconds_per_day : int
        Seconds per simulation step
    default_drift : float
        Annual drift of generated price paths
    avoidance_health_factor : float
        Recovered health factor above which liquidation counts as avoided
    penalty_loss_rate : float
        Flat loss (fraction of borrowed) for stressed but unliquidated vaults
    var_notional : float
        Scaling constant applied to simulated supporter profits
    var_shock_range : float
        Half-width of the uniform terminal price shock (any horizon)
    var_n_paths : int
        Default number of Monte Carlo trials for VaR/ES
    var_confidence : float
        Default VaR/ES confidence level
    lambda_optimal_band : float
        Relative distance from λ* within which an offered λ is optimal
    """

    days_per_year: int = 365
    seconds_per_day: int = 86_400
    default_drift: float = 0.10

    # Risk policy [T3: reference model constants]
    avoidance_health_factor: float = 1.2
    penalty_loss_rate: float = 0.10

    # VaR / ES
    var_notional: float = 1000.0
    var_shock_range: float = 0.10
    var_n_paths: int = 1000
    var_confidence: float = 0.95

    # Supporter quotes
    lambda_optimal_band: float = 0.05

    @property
    def year_seconds(self) -> float:
        """Seconds in one simulation year."""
        return float(self.days_per_year * self.seconds_per_day)

    @property
    def dt(self) -> float:
        """Daily time step in years."""
        return 1.0 / self.days_per_year


# =============================================================================
# Master Configuration
# =============================================================================


@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from backstop_pricing.config.settings import SETTINGS
    >>> SETTINGS.market.volatility
    0.4
    """

    market: MarketDefaults = MarketDefaults()
    lifecycle: LifecycleConfig = LifecycleConfig()
    simulation: SimulationConfig = SimulationConfig()


# Default instance - import this
SETTINGS = Settings()
