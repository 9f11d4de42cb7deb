"""
Simulation engine for backstopped vaults.

Replays the reversible call pricer along a price series and aggregates
protocol-wide backstop metrics.

[T2] Per sample t with price p_t:
    HF_t = C·p_t / P
    λ*_t = price_option(S=p_t, K=p_t·θ, T=(maturity - t)/year)
    restraint_t = λ·C·p_t            (0 without support)
    profit_t = (λ*_t - λ)·restraint_t

Design: pure functions over their inputs; no registry access. Results are
frozen dataclasses, one per input sample, in input order.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from backstop_pricing.backstop.eligibility import recovered_health_factor, restraint_amount
from backstop_pricing.config.settings import SETTINGS, MarketDefaults, SimulationConfig
from backstop_pricing.data.schemas import Support, Vault
from backstop_pricing.errors import InvalidParametersError
from backstop_pricing.options.pricing.reversible_call import ReversibleCallParams, price_option


@dataclass(frozen=True)
class SimulationResult:
    """
    One time-step of a vault replay.

    Attributes
    ----------
    timestamp : float
        Sample time (epoch seconds)
    price : float
        Collateral price at the sample
    health_factor : float
        C·p / P at the sample
    lambda_star : float
        Fair premium factor at the sample
    collateral_restraint : float
        λ·C·p, or 0 without support
    supporter_profit : float
        (λ* - λ)·restraint, or 0 without support
    """

    timestamp: float
    price: float
    health_factor: float
    lambda_star: float
    collateral_restraint: float
    supporter_profit: float


@dataclass(frozen=True)
class ProtocolMetrics:
    """
    Protocol-wide backstop metrics at a reference price.

    Attributes
    ----------
    collateral_release_reduction : float
        Restrained value / total collateral value
    health_factor_recovery : float
        Sum of recovered health factors / number of vaults
    liquidation_avoidance_rate : float
        Vaults whose recovered HF clears the threshold / number of vaults
    supporter_default_probability : float
        1 - avoidance rate (simplification)
    average_supporter_profit : float
        Total (λ* - λ)·restraint / number of supports
    total_collateral_restrained : float
        Sum of restrained value over active supports
    """

    collateral_release_reduction: float
    health_factor_recovery: float
    liquidation_avoidance_rate: float
    supporter_default_probability: float
    average_supporter_profit: float
    total_collateral_restrained: float


def active_support_by_vault(supports: Iterable[Support]) -> Dict[str, Support]:
    """First ACTIVE support per vault id."""
    by_vault: Dict[str, Support] = {}
    for support in supports:
        if support.is_active and support.vault_id not in by_vault:
            by_vault[support.vault_id] = support
    return by_vault


def run_simulation(
    vault: Vault,
    support: Optional[Support],
    prices: Sequence[float],
    timestamps: Sequence[float],
    market: Optional[MarketDefaults] = None,
    config: Optional[SimulationConfig] = None,
) -> List[SimulationResult]:
    """
    Replay pricing and restraint along a price series.

    Parameters
    ----------
    vault : Vault
        Vault snapshot (collateral, debt, threshold, maturity)
    support : Support, optional
        Support to replay; None gives zero restraint and profit
    prices : Sequence[float]
        Collateral prices, one per timestamp
    timestamps : Sequence[float]
        Sample times (epoch seconds), ascending
    market : MarketDefaults, optional
        Rates and volatility (default: SETTINGS.market)
    config : SimulationConfig, optional
        Time conventions (default: SETTINGS.simulation)

    Returns
    -------
    List[SimulationResult]
        One result per sample, in input order

    Raises
    ------
    InvalidParametersError
        Mismatched lengths, non-positive prices, descending timestamps,
        or any sample at/after maturity (T <= 0)
    """
    config = config or SETTINGS.simulation
    price_arr = np.asarray(prices, dtype=float)
    time_arr = np.asarray(timestamps, dtype=float)

    if price_arr.shape != time_arr.shape or price_arr.ndim != 1:
        raise InvalidParametersError(
            f"CRITICAL: prices and timestamps must be 1-D and equal length, "
            f"got {price_arr.shape} and {time_arr.shape}"
        )
    if not np.all(np.isfinite(price_arr)) or np.any(price_arr <= 0):
        raise InvalidParametersError("CRITICAL: prices must be finite and > 0")
    if np.any(np.diff(time_arr) < 0):
        raise InvalidParametersError("CRITICAL: timestamps must be ascending")

    # Validate the whole series before producing any output
    times_to_maturity = (vault.maturity_time - time_arr) / config.year_seconds
    if np.any(times_to_maturity <= 0):
        first_bad = float(time_arr[np.argmax(times_to_maturity <= 0)])
        raise InvalidParametersError(
            f"CRITICAL: time_to_maturity must be > 0, sample at {first_bad} "
            f"is at or after maturity {vault.maturity_time}"
        )

    results: List[SimulationResult] = []
    for price, timestamp, T in zip(price_arr, time_arr, times_to_maturity):
        params = ReversibleCallParams.for_position(
            spot=float(price),
            liquidation_threshold=vault.liquidation_threshold,
            time_to_maturity=float(T),
            market=market,
        )
        lambda_star = price_option(params, vault.collateral_amount).lambda_star

        if support is not None:
            restraint = restraint_amount(support.lambda_, vault.collateral_amount, float(price))
            profit = (lambda_star - support.lambda_) * restraint
        else:
            restraint = 0.0
            profit = 0.0

        results.append(
            SimulationResult(
                timestamp=float(timestamp),
                price=float(price),
                health_factor=vault.collateral_amount * float(price) / vault.borrowed_amount,
                lambda_star=lambda_star,
                collateral_restraint=restraint,
                supporter_profit=profit,
            )
        )

    return results


def run_simulation_batch(
    vault: Vault,
    support: Optional[Support],
    price_paths: np.ndarray,
    timestamps: Sequence[float],
    market: Optional[MarketDefaults] = None,
    config: Optional[SimulationConfig] = None,
) -> List[List[SimulationResult]]:
    """
    Replay several price paths sharing one timestamp grid.

    Paths are independent; results are returned in path order.

    Parameters
    ----------
    price_paths : np.ndarray
        Paths, shape (n_paths, n_samples)
    timestamps : Sequence[float]
        Shared sample times, length n_samples

    Returns
    -------
    List[List[SimulationResult]]
        One replay per path
    """
    paths = np.atleast_2d(np.asarray(price_paths, dtype=float))
    return [
        run_simulation(vault, support, path, timestamps, market=market, config=config)
        for path in paths
    ]


def results_to_frame(results: Sequence[SimulationResult]) -> pd.DataFrame:
    """
    Convert a replay to a DataFrame for the presentation layer.

    Returns
    -------
    pd.DataFrame
        One row per sample, columns named after SimulationResult fields,
        plus a UTC ``datetime`` column derived from ``timestamp``
    """
    df = pd.DataFrame(
        [
            {
                "timestamp": r.timestamp,
                "price": r.price,
                "health_factor": r.health_factor,
                "lambda_star": r.lambda_star,
                "collateral_restraint": r.collateral_restraint,
                "supporter_profit": r.supporter_profit,
            }
            for r in results
        ],
        columns=[
            "timestamp",
            "price",
            "health_factor",
            "lambda_star",
            "collateral_restraint",
            "supporter_profit",
        ],
    )
    df["datetime"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    return df


def aggregate_protocol_metrics(
    vaults: Sequence[Vault],
    supports: Sequence[Support],
    reference_price: float,
    market: Optional[MarketDefaults] = None,
    config: Optional[SimulationConfig] = None,
) -> ProtocolMetrics:
    """
    Aggregate backstop metrics across vaults at a reference price.

    Only ACTIVE supports contribute. Per supported vault:
    restraint = λ·C·p_ref, recovered HF = HF·(1 + λ), and profit
    (λ* - λ)·restraint with λ* priced over the full option life.

    Parameters
    ----------
    vaults : Sequence[Vault]
        Vault snapshots
    supports : Sequence[Support]
        Supports (any status; non-active are ignored)
    reference_price : float
        Collateral price for valuation (> 0)
    market : MarketDefaults, optional
        Rates and volatility (default: SETTINGS.market)
    config : SimulationConfig, optional
        Avoidance threshold and time conventions

    Returns
    -------
    ProtocolMetrics
        Aggregate metrics; rates are 0 for an empty vault set
    """
    config = config or SETTINGS.simulation
    if not np.isfinite(reference_price) or reference_price <= 0:
        raise InvalidParametersError(
            f"CRITICAL: reference_price must be > 0, got {reference_price}"
        )

    active = active_support_by_vault(supports)

    total_restrained = 0.0
    total_recovery = 0.0
    total_profit = 0.0
    avoided = 0

    for vault in vaults:
        support = active.get(vault.vault_id)
        if support is None:
            continue

        restraint = restraint_amount(support.lambda_, vault.collateral_amount, reference_price)
        total_restrained += restraint

        recovered = recovered_health_factor(vault.health_factor, support.lambda_)
        total_recovery += recovered

        params = ReversibleCallParams.for_position(
            spot=reference_price,
            liquidation_threshold=vault.liquidation_threshold,
            time_to_maturity=(vault.maturity_time - vault.created_at) / config.year_seconds,
            market=market,
        )
        lambda_star = price_option(params, vault.collateral_amount).lambda_star
        total_profit += (lambda_star - support.lambda_) * restraint

        if recovered > config.avoidance_health_factor:
            avoided += 1

    n_vaults = len(vaults)
    avoidance_rate = avoided / n_vaults if n_vaults > 0 else 0.0
    total_collateral_value = sum(v.collateral_amount * reference_price for v in vaults)

    return ProtocolMetrics(
        collateral_release_reduction=(
            total_restrained / total_collateral_value if total_collateral_value > 0 else 0.0
        ),
        health_factor_recovery=total_recovery / n_vaults if n_vaults > 0 else 0.0,
        liquidation_avoidance_rate=avoidance_rate,
        supporter_default_probability=max(0.0, 1.0 - avoidance_rate),
        average_supporter_profit=total_profit / len(supports) if supports else 0.0,
        total_collateral_restrained=total_restrained,
    )
