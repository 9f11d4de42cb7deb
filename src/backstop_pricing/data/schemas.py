"""
Vault and support records.

Records are frozen dataclasses. The lifecycle manager never mutates a
record in place; it builds the next version with ``dataclasses.replace``
and swaps it into its registry, so failed operations leave no trace.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from backstop_pricing.config.settings import SETTINGS
from backstop_pricing.errors import InvalidParametersError


class VaultPhase(Enum):
    """Lifecycle phase of a backstopped vault."""

    INITIALIZATION = "initialization"  # Accepting support
    PRE_MATURITY = "pre-maturity"  # Supported; borrower may rescue
    MATURITY = "maturity"  # Option expired; support must be settled


class SupportStatus(Enum):
    """Status of a supporter's position. Only ACTIVE is non-terminal."""

    ACTIVE = "active"
    TERMINATED = "terminated"  # Rescued early by the borrower
    EXERCISED = "exercised"  # Supporter took over the position
    DEFAULTED = "defaulted"  # Supporter walked away at maturity

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed."""
        return self is not SupportStatus.ACTIVE


@dataclass(frozen=True)
class Vault:
    """
    Loan position eligible for backstop support.

    Attributes
    ----------
    vault_id : str
        Unique vault identifier
    borrower : str
        Borrower identity (opaque address)
    collateral_amount : float
        Collateral units C (e.g., BTC)
    collateral_price : float
        Collateral price p (quote currency per unit)
    borrowed_amount : float
        Borrowed amount P (quote currency)
    liquidation_threshold : float
        Threshold θ in (0, 1)
    created_at : float
        Creation time t0 (epoch seconds)
    maturity_time : float
        Option maturity T (epoch seconds)
    current_time : float
        Time of the last lifecycle update t (defaults to created_at)
    phase : VaultPhase
        Lifecycle phase
    """

    vault_id: str
    borrower: str
    collateral_amount: float
    collateral_price: float
    borrowed_amount: float
    liquidation_threshold: float
    created_at: float
    maturity_time: float
    current_time: float = None  # type: ignore[assignment]  # Set in __post_init__
    phase: VaultPhase = VaultPhase.INITIALIZATION

    def __post_init__(self) -> None:
        """Validate vault parameters."""
        if not self.vault_id:
            raise InvalidParametersError("CRITICAL: vault_id must be non-empty")
        for name in ("collateral_amount", "collateral_price", "borrowed_amount"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidParametersError(f"CRITICAL: {name} must be > 0, got {value}")
        if not 0 < self.liquidation_threshold < 1:
            raise InvalidParametersError(
                f"CRITICAL: liquidation_threshold must be in (0, 1), "
                f"got {self.liquidation_threshold}"
            )
        if not self.created_at < self.maturity_time:
            raise InvalidParametersError(
                f"CRITICAL: created_at must precede maturity_time, "
                f"got {self.created_at} >= {self.maturity_time}"
            )
        # Frozen dataclass workaround: use object.__setattr__
        if self.current_time is None:
            object.__setattr__(self, "current_time", self.created_at)

    @property
    def collateral_value(self) -> float:
        """Collateral value C · p."""
        return self.collateral_amount * self.collateral_price

    @property
    def health_factor(self) -> float:
        """Health factor (C · p) / P, always from the current price."""
        return self.collateral_value / self.borrowed_amount

    @property
    def liquidation_price(self) -> float:
        """Strike of the backstop option: p · θ."""
        return self.collateral_price * self.liquidation_threshold

    def time_to_maturity(self, at: float, year_seconds: float = SETTINGS.simulation.year_seconds) -> float:
        """
        Remaining option life in years at time ``at``.

        Parameters
        ----------
        at : float
            Evaluation time (epoch seconds)
        year_seconds : float
            Seconds per year

        Returns
        -------
        float
            (maturity_time - at) / year_seconds; may be <= 0 after maturity
        """
        return (self.maturity_time - at) / year_seconds


@dataclass(frozen=True)
class Support:
    """
    A supporter's position against one vault.

    Attributes
    ----------
    support_id : str
        Unique support identifier
    vault_id : str
        Owning vault (lookup reference only)
    supporter : str
        Supporter identity
    lambda_ : float
        Chosen premium factor λ (> 0)
    lambda_star : float
        Black-Scholes fair factor λ* at creation (informational)
    collateral_deposited : float
        λ · C · p at creation
    k_re : float
        Early-termination multiplier in (0, 1)
    k_sf : float
        Eligibility factor at creation (< 1)
    buffer : float
        Safety buffer B used for eligibility
    created_at : float
        Creation time (epoch seconds)
    status : SupportStatus
        Position status
    """

    support_id: str
    vault_id: str
    supporter: str
    lambda_: float
    lambda_star: float
    collateral_deposited: float
    k_re: float
    k_sf: float
    buffer: float
    created_at: float
    status: SupportStatus = SupportStatus.ACTIVE

    def __post_init__(self) -> None:
        """Validate support parameters."""
        if not np.isfinite(self.lambda_) or self.lambda_ <= 0:
            raise InvalidParametersError(f"CRITICAL: lambda must be > 0, got {self.lambda_}")
        if not 0 < self.k_re < 1:
            raise InvalidParametersError(f"CRITICAL: k_re must be in (0, 1), got {self.k_re}")
        if self.buffer < 1:
            raise InvalidParametersError(f"CRITICAL: buffer must be >= 1, got {self.buffer}")

    @property
    def is_active(self) -> bool:
        """Whether the support still backs its vault."""
        return self.status is SupportStatus.ACTIVE
