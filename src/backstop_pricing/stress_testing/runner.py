"""
Stress Test Runner.

[T2] Applies uniform collateral price shocks to a vault book and classifies
each vault's loss:

    shocked price <  original price · θ  ->  full liquidation,
                                             loss = max(0, P - C·p')
    otherwise, HF' < avoidance threshold ->  flat penalty, loss = rate · P

Design:
- Scenarios are validated as a batch before the first one runs
- Scenario runs are pure and independent, so they can fan out to a
  process pool; results always come back in scenario order
- The loss model is a simplification, not a liquidation-engine replica
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from backstop_pricing.config.settings import SETTINGS, SimulationConfig
from backstop_pricing.data.schemas import Support, Vault
from backstop_pricing.simulation.engine import active_support_by_vault
from backstop_pricing.stress_testing.scenarios import PriceShockScenario, coerce_scenarios

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StressTestResult:
    """
    Outcome of one price-shock scenario.

    Attributes
    ----------
    scenario : str
        Scenario name
    price_shock : float
        Applied relative price move
    vaults_affected : int
        Vaults liquidated or penalized
    total_losses : float
        Sum of liquidation and penalty losses
    supporter_default_rate : float
        Liquidated supported vaults / number of supports
    protocol_health : float
        1 - total_losses / total borrowed (1.0 for an empty book)
    """

    scenario: str
    price_shock: float
    vaults_affected: int
    total_losses: float
    supporter_default_rate: float
    protocol_health: float


def _shock_vault(
    vault: Vault,
    scenario: PriceShockScenario,
    config: SimulationConfig,
) -> Tuple[bool, float, bool]:
    """Return (affected, loss, liquidated) for one vault under a shock."""
    shocked_price = scenario.apply(vault.collateral_price)
    shocked_value = vault.collateral_amount * shocked_price

    # Strict: a price exactly at the liquidation price survives
    if shocked_price < vault.liquidation_price:
        return True, max(0.0, vault.borrowed_amount - shocked_value), True

    if shocked_value / vault.borrowed_amount < config.avoidance_health_factor:
        return True, config.penalty_loss_rate * vault.borrowed_amount, False

    return False, 0.0, False


def _run_single_scenario(
    scenario: PriceShockScenario,
    vaults: Sequence[Vault],
    supported_vault_ids: frozenset,
    n_supports: int,
    config: SimulationConfig,
) -> StressTestResult:
    """Evaluate one scenario; module level so worker processes can pickle it."""
    vaults_affected = 0
    total_losses = 0.0
    supporter_defaults = 0

    for vault in vaults:
        affected, loss, liquidated = _shock_vault(vault, scenario, config)
        if affected:
            vaults_affected += 1
            total_losses += loss
        if liquidated and vault.vault_id in supported_vault_ids:
            supporter_defaults += 1

    total_borrowed = sum(v.borrowed_amount for v in vaults)

    return StressTestResult(
        scenario=scenario.name,
        price_shock=scenario.price_shock,
        vaults_affected=vaults_affected,
        total_losses=total_losses,
        supporter_default_rate=supporter_defaults / n_supports if n_supports > 0 else 0.0,
        protocol_health=1.0 - total_losses / total_borrowed if total_borrowed > 0 else 1.0,
    )


def run_stress_test(
    vaults: Sequence[Vault],
    supports: Sequence[Support],
    scenarios: Iterable,
    config: Optional[SimulationConfig] = None,
    parallel: bool = False,
    n_workers: Optional[int] = None,
) -> List[StressTestResult]:
    """
    Run price-shock scenarios against a vault book.

    Parameters
    ----------
    vaults : Sequence[Vault]
        Vault snapshots; every vault is shocked
    supports : Sequence[Support]
        Supports; a liquidated vault with an ACTIVE support counts as a
        supporter default
    scenarios : Iterable
        ``PriceShockScenario`` objects or ``{"name", "price_shock"}`` dicts
    config : SimulationConfig, optional
        Avoidance threshold and penalty rate (default: SETTINGS.simulation)
    parallel : bool
        Fan scenarios out to a process pool
    n_workers : int, optional
        Worker processes (None = executor default)

    Returns
    -------
    List[StressTestResult]
        One result per scenario, in input order

    Raises
    ------
    InvalidParametersError
        Any malformed scenario; raised before any scenario runs

    Examples
    --------
    >>> from backstop_pricing.stress_testing.scenarios import ALL_STANDARD_SCENARIOS
    >>> results = run_stress_test(vaults, supports, ALL_STANDARD_SCENARIOS)
    >>> [r.scenario for r in results]
    ['btc_mild', 'btc_moderate', 'btc_severe', 'btc_extreme']
    """
    config = config or SETTINGS.simulation
    validated = coerce_scenarios(scenarios)
    if not validated:
        return []

    vaults = tuple(vaults)
    supported_ids = frozenset(active_support_by_vault(supports))
    n_supports = len(supports)

    start_time = time.time()
    logger.info(f"Running {len(validated)} stress scenarios over {len(vaults)} vaults")

    if parallel and len(validated) > 1:
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = [
                executor.submit(
                    _run_single_scenario, scenario, vaults, supported_ids, n_supports, config
                )
                for scenario in validated
            ]
            # Collected in submission order, not completion order
            results = [future.result() for future in futures]
    else:
        results = [
            _run_single_scenario(scenario, vaults, supported_ids, n_supports, config)
            for scenario in validated
        ]

    logger.info(f"Stress test completed in {time.time() - start_time:.2f}s")
    worst = min(results, key=lambda r: r.protocol_health)
    logger.info(f"Worst case: {worst.scenario} (protocol health {worst.protocol_health:.3f})")

    return results


def results_by_scenario(results: Sequence[StressTestResult]) -> Dict[str, StressTestResult]:
    """Index stress results by scenario name."""
    return {r.scenario: r for r in results}
