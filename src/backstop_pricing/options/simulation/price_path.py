"""
Geometric Brownian Motion (GBM) collateral price paths.

Daily log-normal steps on a calendar-day grid:

    p[i] = p[i-1] · exp(μ·dt + σ·√dt·Z),   dt = 1/365,  Z ~ N(0, 1)

μ is applied as given (no -σ²/2 correction), matching the protocol's
reference simulator. Randomness comes from ``numpy.random.Generator``;
pass ``seed`` or ``rng`` for reproducible paths.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering"
"""

import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from backstop_pricing.config.settings import SETTINGS, SimulationConfig
from backstop_pricing.errors import InvalidParametersError


@dataclass(frozen=True)
class PricePath:
    """
    Result of price path generation.

    Attributes
    ----------
    prices : np.ndarray
        Simulated prices, shape (days,) or (n_paths, days)
    timestamps : np.ndarray
        Sample times (epoch seconds), shape (days,)
    seed : int, optional
        Random seed used
    """

    prices: np.ndarray
    timestamps: np.ndarray
    seed: Optional[int] = None

    @property
    def n_steps(self) -> int:
        """Number of daily steps after the start sample."""
        return self.timestamps.shape[0] - 1

    @property
    def terminal_prices(self) -> np.ndarray:
        """Last price of each path."""
        return self.prices[..., -1]

    def __iter__(self):
        # Allows ``prices, timestamps = generate_price_path(...)``
        yield self.prices
        yield self.timestamps


def _is_integer(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _validate(start_price: float, days: int, volatility: float) -> None:
    if not np.isfinite(start_price) or start_price <= 0:
        raise InvalidParametersError(f"CRITICAL: start_price must be > 0, got {start_price}")
    if not _is_integer(days):
        raise InvalidParametersError(f"CRITICAL: days must be an integer, got {days!r}")
    if days < 1:
        raise InvalidParametersError(f"CRITICAL: days must be >= 1, got {days}")
    if not np.isfinite(volatility) or volatility < 0:
        raise InvalidParametersError(f"CRITICAL: volatility must be >= 0, got {volatility}")


def _timestamps(days: int, start_time: Optional[float], config: SimulationConfig) -> np.ndarray:
    start = time.time() if start_time is None else start_time
    return start + config.seconds_per_day * np.arange(days, dtype=float)


def generate_price_paths(
    start_price: float,
    days: int,
    volatility: float,
    n_paths: int,
    drift: Optional[float] = None,
    start_time: Optional[float] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> PricePath:
    """
    Generate independent GBM price paths on a shared daily grid.

    Parameters
    ----------
    start_price : float
        Price at the first sample (> 0)
    days : int
        Samples per path, including the start
    volatility : float
        Annualized volatility σ (>= 0)
    n_paths : int
        Number of paths
    drift : float, optional
        Annual drift μ (default: config.default_drift)
    start_time : float, optional
        First timestamp (default: wall clock)
    seed : int, optional
        Random seed; ignored when ``rng`` is given
    rng : np.random.Generator, optional
        Random source to draw from
    config : SimulationConfig, optional
        Day count conventions (default: SETTINGS.simulation)

    Returns
    -------
    PricePath
        prices of shape (n_paths, days)
    """
    _validate(start_price, days, volatility)
    if not _is_integer(n_paths) or n_paths <= 0:
        raise InvalidParametersError(f"CRITICAL: n_paths must be a positive integer, got {n_paths!r}")

    config = config or SETTINGS.simulation
    drift = config.default_drift if drift is None else drift
    rng = rng if rng is not None else np.random.default_rng(seed)

    dt = config.dt
    z = rng.standard_normal((n_paths, days - 1))
    log_returns = drift * dt + volatility * np.sqrt(dt) * z

    paths = np.empty((n_paths, days))
    paths[:, 0] = start_price
    paths[:, 1:] = start_price * np.exp(np.cumsum(log_returns, axis=1))

    return PricePath(
        prices=paths,
        timestamps=_timestamps(days, start_time, config),
        seed=seed,
    )


def generate_price_path(
    start_price: float,
    days: int,
    volatility: float,
    drift: Optional[float] = None,
    start_time: Optional[float] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> PricePath:
    """
    Generate a single GBM price path.

    Each call draws a fresh independent path unless seeded.

    Examples
    --------
    >>> path = generate_price_path(67_420.0, days=30, volatility=0.4, seed=42)
    >>> float(path.prices[0]), len(path.prices)
    (67420.0, 30)
    """
    batch = generate_price_paths(
        start_price,
        days,
        volatility,
        n_paths=1,
        drift=drift,
        start_time=start_time,
        seed=seed,
        rng=rng,
        config=config,
    )
    return PricePath(prices=batch.prices[0], timestamps=batch.timestamps, seed=seed)
