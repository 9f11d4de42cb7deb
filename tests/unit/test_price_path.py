"""
Tests for GBM price path generation - options/simulation/price_path.py.

[T1] p[i] = p[i-1] · exp(μ·dt + σ·√dt·Z), dt = 1/365
"""

import numpy as np
import pytest

from backstop_pricing.errors import InvalidParametersError
from backstop_pricing.options.simulation import price_path as price_path_module
from backstop_pricing.options.simulation.price_path import (
    PricePath,
    generate_price_path,
    generate_price_paths,
)

T0 = 1_700_000_000.0


class TestGeneratePricePath:
    """Tests for generate_price_path."""

    def test_shape_and_start(self) -> None:
        """First sample is the start price; one sample per day."""
        path = generate_price_path(67_420.0, days=30, volatility=0.4, start_time=T0, seed=1)
        assert path.prices.shape == (30,)
        assert path.prices[0] == 67_420.0
        assert path.n_steps == 29

    def test_timestamps_step_one_day(self) -> None:
        """Timestamps start at start_time and advance 86,400 s."""
        path = generate_price_path(100.0, days=4, volatility=0.4, start_time=T0, seed=1)
        np.testing.assert_array_equal(path.timestamps, T0 + 86_400.0 * np.arange(4))

    def test_default_start_time_is_wall_clock(self, monkeypatch) -> None:
        """Without start_time the first timestamp is the call time."""
        monkeypatch.setattr(price_path_module.time, "time", lambda: 123.0)
        path = generate_price_path(100.0, days=2, volatility=0.4, seed=1)
        assert path.timestamps[0] == 123.0

    def test_seeded_determinism(self) -> None:
        """Same seed, same path."""
        a = generate_price_path(100.0, days=50, volatility=0.4, start_time=T0, seed=7)
        b = generate_price_path(100.0, days=50, volatility=0.4, start_time=T0, seed=7)
        np.testing.assert_array_equal(a.prices, b.prices)

    def test_different_seeds_differ(self) -> None:
        """Different seeds give different paths."""
        a = generate_price_path(100.0, days=50, volatility=0.4, start_time=T0, seed=7)
        b = generate_price_path(100.0, days=50, volatility=0.4, start_time=T0, seed=8)
        assert not np.array_equal(a.prices, b.prices)

    def test_rng_matches_seed(self) -> None:
        """An injected generator is equivalent to the same seed."""
        a = generate_price_path(100.0, days=20, volatility=0.4, start_time=T0, seed=11)
        b = generate_price_path(
            100.0, days=20, volatility=0.4, start_time=T0, rng=np.random.default_rng(11)
        )
        np.testing.assert_array_equal(a.prices, b.prices)

    def test_zero_volatility_is_pure_drift(self) -> None:
        """σ = 0 leaves exp(μ·dt·i) growth."""
        path = generate_price_path(100.0, days=10, volatility=0.0, drift=0.10, start_time=T0)
        expected = 100.0 * np.exp(0.10 / 365 * np.arange(10))
        np.testing.assert_allclose(path.prices, expected, rtol=1e-12)

    def test_prices_positive(self) -> None:
        """GBM prices stay positive even at high volatility."""
        path = generate_price_path(100.0, days=365, volatility=3.0, start_time=T0, seed=3)
        assert np.all(path.prices > 0)

    def test_single_day(self) -> None:
        """days = 1 returns only the start sample."""
        path = generate_price_path(100.0, days=1, volatility=0.4, start_time=T0, seed=1)
        np.testing.assert_array_equal(path.prices, [100.0])

    def test_unpacking(self) -> None:
        """PricePath unpacks to (prices, timestamps)."""
        prices, timestamps = generate_price_path(100.0, days=3, volatility=0.4, start_time=T0, seed=1)
        assert len(prices) == len(timestamps) == 3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_price": 0.0, "days": 10, "volatility": 0.4},
            {"start_price": 100.0, "days": 0, "volatility": 0.4},
            {"start_price": 100.0, "days": 10, "volatility": -0.1},
        ],
    )
    def test_invalid_inputs(self, kwargs) -> None:
        """Invalid inputs raise InvalidParametersError."""
        with pytest.raises(InvalidParametersError):
            generate_price_path(**kwargs)

    @pytest.mark.parametrize("days", [30.0, 2.5, "30", True])
    def test_non_integer_days(self, days) -> None:
        """days is a sample count and must be an integer."""
        with pytest.raises(InvalidParametersError, match="days must be an integer"):
            generate_price_path(100.0, days=days, volatility=0.4, seed=1)

    def test_numpy_integer_days(self) -> None:
        """NumPy integers are valid sample counts."""
        path = generate_price_path(100.0, days=np.int64(4), volatility=0.4, start_time=T0, seed=1)
        assert path.prices.shape == (4,)


class TestGeneratePricePaths:
    """Tests for the batch generator."""

    def test_batch_shape(self, reproducible_rng) -> None:
        """Batch prices are (n_paths, days) on a shared grid."""
        batch = generate_price_paths(100.0, days=15, volatility=0.4, n_paths=8, rng=reproducible_rng)
        assert isinstance(batch, PricePath)
        assert batch.prices.shape == (8, 15)
        assert batch.timestamps.shape == (15,)
        np.testing.assert_array_equal(batch.prices[:, 0], 100.0)
        assert batch.terminal_prices.shape == (8,)

    def test_paths_independent(self) -> None:
        """Paths in one batch are distinct draws."""
        batch = generate_price_paths(100.0, days=15, volatility=0.4, n_paths=2, seed=5)
        assert not np.array_equal(batch.prices[0], batch.prices[1])

    def test_log_return_moments(self) -> None:
        """Daily log returns have mean μ·dt and std σ·√dt."""
        batch = generate_price_paths(100.0, days=101, volatility=0.4, n_paths=2_000, drift=0.1, seed=42)
        log_returns = np.diff(np.log(batch.prices), axis=1)
        assert log_returns.mean() == pytest.approx(0.1 / 365, abs=5e-4)
        assert log_returns.std() == pytest.approx(0.4 / np.sqrt(365), rel=0.01)

    def test_invalid_path_count(self) -> None:
        """n_paths must be positive."""
        with pytest.raises(InvalidParametersError):
            generate_price_paths(100.0, days=5, volatility=0.4, n_paths=0)

    def test_fractional_path_count(self) -> None:
        """n_paths must be an integer."""
        with pytest.raises(InvalidParametersError, match="n_paths"):
            generate_price_paths(100.0, days=5, volatility=0.4, n_paths=2.0)
