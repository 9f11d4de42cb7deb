"""
Error taxonomy for the backstop engine.

Pricing and eligibility functions fail fast with these errors instead of
clamping or substituting defaults. Lifecycle operations raise them before
touching any registry state.
"""

from typing import Optional


class BackstopError(Exception):
    """Base class for all engine errors."""

    pass


class InvalidParametersError(BackstopError, ValueError):
    """Raised for non-positive or non-finite pricing/simulation inputs."""

    pass


class NotEligibleError(BackstopError):
    """
    Raised when a position fails the support eligibility gate.

    Attributes
    ----------
    k_sf : float, optional
        Eligibility factor that failed (k_SF >= 1), when one was computed
    """

    def __init__(self, message: str, k_sf: Optional[float] = None):
        super().__init__(message)
        self.k_sf = k_sf


class InvalidPhaseError(BackstopError):
    """Raised when a lifecycle operation is attempted outside its phase."""

    pass


class NotFoundError(BackstopError, KeyError):
    """Raised when a vault or support id does not resolve."""

    def __str__(self) -> str:
        # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else ""
