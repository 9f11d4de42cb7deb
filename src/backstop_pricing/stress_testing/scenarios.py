"""
Price-shock stress scenarios.

[T2] A scenario is a uniform multiplicative shock applied to every vault's
collateral price: p' = p · (1 + shock).

Design: scenarios are validated as a batch before any stress run starts,
so a malformed entry never biases a partially completed result set.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from backstop_pricing.errors import InvalidParametersError


@dataclass(frozen=True)
class PriceShockScenario:
    """
    Collateral price shock definition.

    Attributes
    ----------
    name : str
        Scenario identifier
    price_shock : float
        Relative price move (decimal, e.g., -0.30 = -30%); must be > -1
    notes : str
        Additional context
    """

    name: str
    price_shock: float
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate scenario parameters."""
        if not self.name:
            raise InvalidParametersError("CRITICAL: scenario name must be non-empty")
        if not np.isfinite(self.price_shock) or self.price_shock <= -1:
            raise InvalidParametersError(
                f"CRITICAL: price_shock must be > -1, got {self.price_shock}"
            )

    def apply(self, price: float) -> float:
        """Shocked price p · (1 + shock)."""
        return price * (1 + self.price_shock)


# =============================================================================
# Standard Scenarios
# =============================================================================
# Calibrated loosely to BTC drawdowns; a -30% day is rare but observed.

BTC_MILD_DRAWDOWN = PriceShockScenario(
    name="btc_mild",
    price_shock=-0.10,
    notes="Routine weekly drawdown.",
)

BTC_MODERATE_DRAWDOWN = PriceShockScenario(
    name="btc_moderate",
    price_shock=-0.20,
    notes="Sharp correction, comparable to mid-cycle sell-offs.",
)

BTC_SEVERE_CRASH = PriceShockScenario(
    name="btc_severe",
    price_shock=-0.30,
    notes="Crash day, comparable to March 2020.",
)

BTC_EXTREME_CRASH = PriceShockScenario(
    name="btc_extreme",
    price_shock=-0.50,
    notes="Tail event; halving of collateral value.",
)

ALL_STANDARD_SCENARIOS: Tuple[PriceShockScenario, ...] = (
    BTC_MILD_DRAWDOWN,
    BTC_MODERATE_DRAWDOWN,
    BTC_SEVERE_CRASH,
    BTC_EXTREME_CRASH,
)


# =============================================================================
# Conversion Functions
# =============================================================================


def create_scenario(name: str, price_shock: float, notes: str = "") -> PriceShockScenario:
    """Create a custom price-shock scenario."""
    return PriceShockScenario(name=name, price_shock=price_shock, notes=notes)


def coerce_scenarios(scenarios: Iterable) -> Tuple[PriceShockScenario, ...]:
    """
    Normalize and validate a scenario batch.

    Accepts ``PriceShockScenario`` objects or mappings with ``name`` and
    ``price_shock`` keys (the presentation layer's wire shape).

    Parameters
    ----------
    scenarios : Iterable
        Scenario objects or dicts

    Returns
    -------
    Tuple[PriceShockScenario, ...]
        Validated scenarios, input order preserved

    Raises
    ------
    InvalidParametersError
        Malformed entry, invalid shock, or duplicate names
    """
    validated = []
    for entry in scenarios:
        if isinstance(entry, PriceShockScenario):
            validated.append(entry)
            continue
        try:
            name, raw_shock = entry["name"], entry["price_shock"]
            notes = entry.get("notes", "")
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidParametersError(
                f"CRITICAL: scenario must provide name and price_shock, got {entry!r}"
            ) from e
        try:
            price_shock = float(raw_shock)
        except (TypeError, ValueError) as e:
            raise InvalidParametersError(
                f"CRITICAL: price_shock must be a number, got {raw_shock!r}"
            ) from e
        validated.append(PriceShockScenario(name=name, price_shock=price_shock, notes=notes))

    _check_unique_names(validated)
    return tuple(validated)


def _check_unique_names(scenarios: Sequence[PriceShockScenario]) -> None:
    seen = set()
    for scenario in scenarios:
        if scenario.name in seen:
            raise InvalidParametersError(f"CRITICAL: duplicate scenario name {scenario.name!r}")
        seen.add(scenario.name)
