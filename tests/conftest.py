"""
Centralized pytest fixtures for backstop-pricing test suite.

Fixture Categories:
1. Market Parameters - default market inputs
2. Clock - controllable time source for the lifecycle manager
3. Records - vaults and supports in known states
4. Managers - VaultManager instances at each lifecycle phase
5. Randomness - reproducible generators
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pytest

from backstop_pricing.backstop.manager import VaultManager
from backstop_pricing.config.settings import MarketDefaults
from backstop_pricing.data.schemas import Support, SupportStatus, Vault

# =============================================================================
# TIME CONSTANTS
# =============================================================================

T0 = 1_700_000_000.0
DAY = 86_400.0


# =============================================================================
# MARKET PARAMETERS
# =============================================================================


@pytest.fixture
def market() -> MarketDefaults:
    """Default market inputs (r_f=5%, IL=2%, σ=40%)."""
    return MarketDefaults()


@dataclass(frozen=True)
class PricingScenario:
    """Reference pricing inputs with the position they came from."""

    spot: float
    threshold: float
    days: float
    collateral_amount: float
    borrowed_amount: float


#: Reference BTC position: 2.5 BTC at 67,420, θ = 0.85, 5 days to maturity
BTC_REFERENCE = PricingScenario(
    spot=67_420.0,
    threshold=0.85,
    days=5.0,
    collateral_amount=2.5,
    borrowed_amount=150_000.0,
)


@pytest.fixture
def btc_reference() -> PricingScenario:
    """Reference BTC position used by golden tests."""
    return BTC_REFERENCE


# =============================================================================
# CLOCK
# =============================================================================


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at T0."""
    return FakeClock()


# =============================================================================
# RECORDS
# =============================================================================


def make_vault(
    vault_id: str = "v1",
    collateral_amount: float = 2.0,
    collateral_price: float = 60_000.0,
    borrowed_amount: float = 80_000.0,
    liquidation_threshold: float = 0.30,
    created_at: float = T0,
    maturity_days: float = 30.0,
) -> Vault:
    """Build a vault; defaults give HF = 1.5 and k_SF ≈ 0.933 (eligible)."""
    return Vault(
        vault_id=vault_id,
        borrower="0xborrower",
        collateral_amount=collateral_amount,
        collateral_price=collateral_price,
        borrowed_amount=borrowed_amount,
        liquidation_threshold=liquidation_threshold,
        created_at=created_at,
        maturity_time=created_at + maturity_days * DAY,
    )


def make_support(
    vault_id: str = "v1",
    lambda_: float = 0.05,
    status: SupportStatus = SupportStatus.ACTIVE,
    support_id: Optional[str] = None,
) -> Support:
    """Build a support record directly (bypassing the manager)."""
    return Support(
        support_id=support_id or f"{vault_id}-0xsupporter-0",
        vault_id=vault_id,
        supporter="0xsupporter",
        lambda_=lambda_,
        lambda_star=0.06,
        collateral_deposited=lambda_ * 120_000.0,
        k_re=0.8,
        k_sf=0.9,
        buffer=1.1,
        created_at=T0,
        status=status,
    )


@pytest.fixture
def vault_factory():
    """Factory for vaults, see make_vault."""
    return make_vault


@pytest.fixture
def support_factory():
    """Factory for supports, see make_support."""
    return make_support


@pytest.fixture
def vault() -> Vault:
    """Eligible vault: 2 BTC at 60,000, borrowed 80,000, θ = 0.30, 30 days."""
    return make_vault()


@pytest.fixture
def support() -> Support:
    """Active support on vault v1 with λ = 0.05."""
    return make_support()


# =============================================================================
# MANAGERS
# =============================================================================


def register_vault(manager: VaultManager, vault_id: str = "v1", **overrides) -> Vault:
    """Register a vault through the manager using make_vault defaults."""
    template = make_vault(vault_id=vault_id, **overrides)
    return manager.create_vault(
        vault_id=template.vault_id,
        borrower=template.borrower,
        collateral_amount=template.collateral_amount,
        collateral_price=template.collateral_price,
        borrowed_amount=template.borrowed_amount,
        liquidation_threshold=template.liquidation_threshold,
        maturity_time=template.maturity_time,
        created_at=template.created_at,
    )


@pytest.fixture
def vault_registrar():
    """Register a template vault through a manager, see register_vault."""
    return register_vault


@pytest.fixture
def manager(clock: FakeClock) -> VaultManager:
    """Empty manager driven by the fake clock."""
    return VaultManager(clock=clock)


@pytest.fixture
def initialized_manager(manager: VaultManager) -> VaultManager:
    """Manager holding vault v1 in INITIALIZATION."""
    register_vault(manager)
    return manager


@pytest.fixture
def supported_manager(initialized_manager: VaultManager) -> VaultManager:
    """Manager holding vault v1 in PRE_MATURITY with one active support (λ = 0.05)."""
    initialized_manager.add_support("v1", "0xsupporter", lambda_=0.05)
    return initialized_manager


# =============================================================================
# RANDOMNESS
# =============================================================================


@pytest.fixture
def reproducible_rng() -> np.random.Generator:
    """Reproducible numpy random generator."""
    return np.random.default_rng(seed=42)
