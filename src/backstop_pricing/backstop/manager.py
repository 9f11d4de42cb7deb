"""
Vault/support lifecycle manager.

[T2] Three-phase backstop state machine:

    INITIALIZATION --add_support--> PRE_MATURITY --rescue--> INITIALIZATION
          |                              |
          +------- update_phase (now >= maturity) -------> MATURITY --settle

Design:
- The manager owns two registries (vaults, supports) keyed by id. Each
  instance is independent; there is no process-wide registry.
- A vault holds at most one ACTIVE support at a time.
- A rescued vault returns to INITIALIZATION and can be supported again.
- MATURITY is terminal for the option. Phase changes are pull-based:
  callers poll ``update_phase``; there is no background clock.
- Records are frozen; operations validate first and then swap new
  records in, so a failed call leaves both registries unchanged.

The manager performs no locking. Concurrent mutation of the same vault
must be serialized by the caller.
"""

import itertools
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from backstop_pricing.backstop.eligibility import (
    check_eligibility,
    early_termination_cost,
    recovered_health_factor,
    restraint_amount,
)
from backstop_pricing.config.settings import (
    SETTINGS,
    LifecycleConfig,
    MarketDefaults,
    SimulationConfig,
)
from backstop_pricing.data.schemas import Support, SupportStatus, Vault, VaultPhase
from backstop_pricing.errors import (
    InvalidParametersError,
    InvalidPhaseError,
    NotEligibleError,
    NotFoundError,
)
from backstop_pricing.options.pricing.reversible_call import (
    PricingResult,
    ReversibleCallParams,
    price_option,
)
from backstop_pricing.simulation.engine import SimulationResult, run_simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescueResult:
    """
    Outcome of a borrower rescue.

    Attributes
    ----------
    support : Support
        The support, now TERMINATED
    termination_cost : float
        premium × k_re paid by the borrower
    pricing : PricingResult
        Pricing at the rescue time used for the cost
    """

    support: Support
    termination_cost: float
    pricing: PricingResult


@dataclass(frozen=True)
class VaultMetrics:
    """
    Per-vault backstop metrics.

    Attributes
    ----------
    collateral_restraint : float
        Collateral deposited by active supports
    health_factor_recovery : float
        HF·(1 + mean active λ)
    supporter_default_probability : float
        max(0, 1 - recovery); a coarse proxy
    expected_supporter_profit : float
        (λ* - λ)·restraint at current market, summed over active supports
    liquidation_avoided : bool
        Whether recovery clears the avoidance threshold
    """

    collateral_restraint: float
    health_factor_recovery: float
    supporter_default_probability: float
    expected_supporter_profit: float
    liquidation_avoided: bool


class VaultManager:
    """
    In-memory registry driving the vault/support lifecycle.

    Parameters
    ----------
    market : MarketDefaults, optional
        Market inputs for pricing (default: SETTINGS.market)
    lifecycle : LifecycleConfig, optional
        Buffers, k_re and the vault registration trigger
    simulation : SimulationConfig, optional
        Time conventions and policy thresholds
    clock : Callable[[], float], default time.time
        Source of "now" (epoch seconds) when a call omits ``now``

    Examples
    --------
    >>> manager = VaultManager(clock=lambda: 1_700_000_000.0)
    >>> vault = manager.create_vault(
    ...     "v1", "0xabc", collateral_amount=2.0, collateral_price=60_000,
    ...     borrowed_amount=80_000, liquidation_threshold=0.30,
    ...     maturity_time=1_700_000_000.0 + 5 * 86_400,
    ... )
    >>> support = manager.add_support("v1", "0xdef", lambda_=0.05)
    >>> manager.get_vault("v1").phase
    <VaultPhase.PRE_MATURITY: 'pre-maturity'>
    """

    def __init__(
        self,
        market: Optional[MarketDefaults] = None,
        lifecycle: Optional[LifecycleConfig] = None,
        simulation: Optional[SimulationConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.market = market or SETTINGS.market
        self.lifecycle = lifecycle or SETTINGS.lifecycle
        self.simulation = simulation or SETTINGS.simulation
        self._clock = clock
        self._vaults: Dict[str, Vault] = {}
        self._supports: Dict[str, Support] = {}
        self._sequence = itertools.count()

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_vault(self, vault_id: str) -> Vault:
        """Get vault by id, raising NotFoundError if unknown."""
        try:
            return self._vaults[vault_id]
        except KeyError:
            raise NotFoundError(f"Unknown vault: {vault_id}") from None

    def get_support(self, support_id: str) -> Support:
        """Get support by id, raising NotFoundError if unknown."""
        try:
            return self._supports[support_id]
        except KeyError:
            raise NotFoundError(f"Unknown support: {support_id}") from None

    def list_vaults(self) -> List[Vault]:
        """All registered vaults, in registration order."""
        return list(self._vaults.values())

    def list_supports(
        self,
        vault_id: Optional[str] = None,
        status: Optional[SupportStatus] = None,
    ) -> List[Support]:
        """
        Registered supports, optionally filtered.

        Parameters
        ----------
        vault_id : str, optional
            Only supports of this vault
        status : SupportStatus, optional
            Only supports with this status

        Returns
        -------
        List[Support]
            Matching supports, in creation order
        """
        return [
            s
            for s in self._supports.values()
            if (vault_id is None or s.vault_id == vault_id)
            and (status is None or s.status is status)
        ]

    def active_support(self, vault_id: str) -> Optional[Support]:
        """The vault's ACTIVE support, or None."""
        for support in self._supports.values():
            if support.vault_id == vault_id and support.is_active:
                return support
        return None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_vault(
        self,
        vault_id: str,
        borrower: str,
        collateral_amount: float,
        collateral_price: float,
        borrowed_amount: float,
        liquidation_threshold: float,
        maturity_time: float,
        created_at: Optional[float] = None,
    ) -> Vault:
        """
        Register a vault in INITIALIZATION.

        Parameters
        ----------
        vault_id : str
            Unique vault id
        borrower : str
            Borrower identity
        collateral_amount : float
            Collateral units
        collateral_price : float
            Collateral price
        borrowed_amount : float
            Borrowed amount
        liquidation_threshold : float
            Threshold θ in (0, 1)
        maturity_time : float
            Option maturity (epoch seconds)
        created_at : float, optional
            Creation time (default: clock)

        Returns
        -------
        Vault
            The registered vault

        Raises
        ------
        InvalidParametersError
            Duplicate id or invalid vault fields
        NotEligibleError
            Health factor at or above the configured support trigger
        """
        if vault_id in self._vaults:
            raise InvalidParametersError(f"CRITICAL: vault {vault_id} already registered")

        now = self._clock() if created_at is None else created_at
        vault = Vault(
            vault_id=vault_id,
            borrower=borrower,
            collateral_amount=collateral_amount,
            collateral_price=collateral_price,
            borrowed_amount=borrowed_amount,
            liquidation_threshold=liquidation_threshold,
            created_at=now,
            maturity_time=maturity_time,
        )

        trigger = self.lifecycle.support_trigger_health_factor
        if trigger is not None and vault.health_factor >= trigger:
            raise NotEligibleError(
                f"Vault {vault_id} health factor {vault.health_factor:.4f} "
                f"is not below the support trigger {trigger}"
            )

        self._vaults[vault_id] = vault
        logger.info(f"Vault {vault_id} registered (HF={vault.health_factor:.4f})")
        return vault

    def add_support(
        self,
        vault_id: str,
        supporter: str,
        lambda_: float,
        k_re: Optional[float] = None,
        buffer: Optional[float] = None,
        now: Optional[float] = None,
    ) -> Support:
        """
        Attach a supporter to a vault in INITIALIZATION.

        The supporter deposits λ·C·p. λ* is priced for comparison only;
        the caller's λ is never overridden.

        Parameters
        ----------
        vault_id : str
            Target vault
        supporter : str
            Supporter identity
        lambda_ : float
            Chosen premium factor (> 0)
        k_re : float, optional
            Early-termination multiplier (default: lifecycle config)
        buffer : float, optional
            Eligibility buffer (default: lifecycle config)
        now : float, optional
            Call time (default: clock)

        Returns
        -------
        Support
            The new ACTIVE support

        Raises
        ------
        NotFoundError
            Unknown vault
        InvalidPhaseError
            Vault not in INITIALIZATION, or already supported
        InvalidParametersError
            Invalid λ/k_re/buffer, or maturity already reached
        NotEligibleError
            k_SF >= 1
        """
        vault = self.get_vault(vault_id)
        if vault.phase is not VaultPhase.INITIALIZATION:
            raise InvalidPhaseError(
                f"Vault {vault_id} is in {vault.phase.value}, support requires initialization"
            )
        if self.active_support(vault_id) is not None:
            raise InvalidPhaseError(f"Vault {vault_id} already has an active support")

        k_re = self.lifecycle.default_k_re if k_re is None else k_re
        buffer = self.lifecycle.default_buffer if buffer is None else buffer
        if not np.isfinite(lambda_) or lambda_ <= 0:
            raise InvalidParametersError(f"CRITICAL: lambda must be > 0, got {lambda_}")
        if not 0 < k_re < 1:
            raise InvalidParametersError(f"CRITICAL: k_re must be in (0, 1), got {k_re}")

        now = self._now(now)
        eligibility = check_eligibility(
            vault.borrowed_amount,
            vault.collateral_amount,
            vault.collateral_price,
            vault.liquidation_threshold,
            buffer,
        ).require()

        pricing = self._price(vault, now)

        support = Support(
            support_id=f"{vault_id}-{supporter}-{now:.0f}-{next(self._sequence)}",
            vault_id=vault_id,
            supporter=supporter,
            lambda_=lambda_,
            lambda_star=pricing.lambda_star,
            collateral_deposited=restraint_amount(
                lambda_, vault.collateral_amount, vault.collateral_price
            ),
            k_re=k_re,
            k_sf=eligibility.k_sf,
            buffer=buffer,
            created_at=now,
        )

        self._supports[support.support_id] = support
        self._vaults[vault_id] = replace(vault, phase=VaultPhase.PRE_MATURITY, current_time=now)
        logger.info(
            f"Support {support.support_id} added: λ={lambda_:.4f}, "
            f"λ*={pricing.lambda_star:.4f}, k_SF={eligibility.k_sf:.4f}"
        )
        return support

    def rescue(self, vault_id: str, support_id: str, now: Optional[float] = None) -> RescueResult:
        """
        Borrower terminates the support early (PRE_MATURITY only).

        The borrower pays premium × k_re at current market. The support
        becomes TERMINATED and the vault returns to INITIALIZATION.

        Parameters
        ----------
        vault_id : str
            Supported vault
        support_id : str
            Support to terminate
        now : float, optional
            Call time (default: clock)

        Returns
        -------
        RescueResult
            Terminated support and the cost paid

        Raises
        ------
        NotFoundError
            Unknown vault or support
        InvalidPhaseError
            Vault not in PRE_MATURITY, maturity reached, or support not ACTIVE
        InvalidParametersError
            Support belongs to another vault
        """
        vault = self.get_vault(vault_id)
        now = self._now(now)
        if vault.phase is not VaultPhase.PRE_MATURITY:
            raise InvalidPhaseError(
                f"Vault {vault_id} is in {vault.phase.value}, rescue requires pre-maturity"
            )
        if now >= vault.maturity_time:
            raise InvalidPhaseError(f"Vault {vault_id} has reached maturity; settle instead")

        support = self._support_for(vault_id, support_id)

        pricing = self._price(vault, now)
        cost = early_termination_cost(pricing.premium, support.k_re)

        terminated = replace(support, status=SupportStatus.TERMINATED)
        self._supports[support_id] = terminated
        self._vaults[vault_id] = replace(vault, phase=VaultPhase.INITIALIZATION, current_time=now)
        logger.info(f"Vault {vault_id} rescued from {support_id}: cost={cost:,.2f}")
        return RescueResult(support=terminated, termination_cost=cost, pricing=pricing)

    def update_phase(self, vault_id: str, now: Optional[float] = None) -> VaultPhase:
        """
        Advance the vault phase for the current time.

        Parameters
        ----------
        vault_id : str
            Vault to update
        now : float, optional
            Call time (default: clock)

        Returns
        -------
        VaultPhase
            Phase after the update
        """
        vault = self.get_vault(vault_id)
        now = self._now(now)

        phase = vault.phase
        if now >= vault.maturity_time:
            phase = VaultPhase.MATURITY
        elif phase is VaultPhase.INITIALIZATION and self.active_support(vault_id) is not None:
            phase = VaultPhase.PRE_MATURITY

        if phase is not vault.phase:
            logger.info(f"Vault {vault_id}: {vault.phase.value} -> {phase.value}")
        self._vaults[vault_id] = replace(vault, phase=phase, current_time=now)
        return phase

    def settle(
        self,
        vault_id: str,
        support_id: str,
        exercise: bool,
        now: Optional[float] = None,
    ) -> Support:
        """
        Settle the support at maturity.

        Parameters
        ----------
        vault_id : str
            Matured vault
        support_id : str
            Support to settle
        exercise : bool
            True: supporter takes the position (EXERCISED).
            False: collateral returns to the borrower (DEFAULTED); the
            fallback liquidation path is handled outside the engine.
        now : float, optional
            Call time (default: clock)

        Returns
        -------
        Support
            Settled support

        Raises
        ------
        NotFoundError
            Unknown vault or support
        InvalidPhaseError
            Vault not in MATURITY, or support not ACTIVE
        """
        vault = self.get_vault(vault_id)
        if vault.phase is not VaultPhase.MATURITY:
            raise InvalidPhaseError(
                f"Vault {vault_id} is in {vault.phase.value}, settlement requires maturity"
            )
        support = self._support_for(vault_id, support_id)
        now = self._now(now)

        status = SupportStatus.EXERCISED if exercise else SupportStatus.DEFAULTED
        settled = replace(support, status=status)
        self._supports[support_id] = settled
        self._vaults[vault_id] = replace(vault, current_time=now)
        logger.info(f"Support {support_id} settled: {status.value}")
        return settled

    def update_price(self, vault_id: str, price: float, now: Optional[float] = None) -> Vault:
        """
        Apply a collateral price update from the market-data collaborator.

        Parameters
        ----------
        vault_id : str
            Vault to reprice
        price : float
            New collateral price (> 0)
        now : float, optional
            Call time (default: clock)

        Returns
        -------
        Vault
            Updated vault; its health factor reflects the new price
        """
        vault = self.get_vault(vault_id)
        updated = replace(vault, collateral_price=price, current_time=self._now(now))
        self._vaults[vault_id] = updated
        return updated

    # =========================================================================
    # Analytics
    # =========================================================================

    def vault_metrics(self, vault_id: str, now: Optional[float] = None) -> VaultMetrics:
        """
        Backstop metrics for one vault from its active supports.

        Parameters
        ----------
        vault_id : str
            Vault to analyze
        now : float, optional
            Pricing time (default: vault.current_time)

        Returns
        -------
        VaultMetrics
        """
        vault = self.get_vault(vault_id)
        active = self.list_supports(vault_id, SupportStatus.ACTIVE)

        restraint = sum(s.collateral_deposited for s in active)
        avg_lambda = float(np.mean([s.lambda_ for s in active])) if active else 0.0
        recovery = recovered_health_factor(vault.health_factor, avg_lambda)

        expected_profit = 0.0
        at = vault.current_time if now is None else now
        if active and at < vault.maturity_time:
            lambda_star = self._price(vault, at).lambda_star
            expected_profit = sum(
                (lambda_star - s.lambda_)
                * restraint_amount(s.lambda_, vault.collateral_amount, vault.collateral_price)
                for s in active
            )

        return VaultMetrics(
            collateral_restraint=restraint,
            health_factor_recovery=recovery,
            supporter_default_probability=max(0.0, 1.0 - recovery),
            expected_supporter_profit=expected_profit,
            liquidation_avoided=recovery > self.simulation.avoidance_health_factor,
        )

    def simulate(
        self,
        vault_id: str,
        prices: Sequence[float],
        timestamps: Sequence[float],
    ) -> List[SimulationResult]:
        """Replay a price series against the vault and its active support."""
        vault = self.get_vault(vault_id)
        return run_simulation(
            vault,
            self.active_support(vault_id),
            prices,
            timestamps,
            market=self.market,
            config=self.simulation,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    def _support_for(self, vault_id: str, support_id: str) -> Support:
        """Resolve an ACTIVE support attached to ``vault_id``."""
        support = self.get_support(support_id)
        if support.vault_id != vault_id:
            raise InvalidParametersError(
                f"CRITICAL: support {support_id} belongs to vault {support.vault_id}, not {vault_id}"
            )
        if not support.is_active:
            raise InvalidPhaseError(f"Support {support_id} is already {support.status.value}")
        return support

    def _price(self, vault: Vault, at: float) -> PricingResult:
        """Price the vault's option at time ``at`` and the vault's current price."""
        params = ReversibleCallParams.for_position(
            spot=vault.collateral_price,
            liquidation_threshold=vault.liquidation_threshold,
            time_to_maturity=vault.time_to_maturity(at, self.simulation.year_seconds),
            market=self.market,
        )
        return price_option(params, vault.collateral_amount)
