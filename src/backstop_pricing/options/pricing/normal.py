"""
Standard normal distribution utilities.

The CDF is the Abramowitz-Stegun 7.1.26 rational approximation with its
published coefficients. Premium comparisons (λ vs λ*) are sensitive at the
1e-7 level, so this approximation is used everywhere instead of an exact
library CDF.

References
----------
[T1] Abramowitz, M., & Stegun, I. A. (1964). Handbook of Mathematical
     Functions, formula 7.1.26. Maximum absolute error 1.5e-7.
"""

from typing import Union

import numpy as np

ArrayLike = Union[float, np.ndarray]

# Abramowitz-Stegun 7.1.26 coefficients
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

_SQRT_2 = np.sqrt(2.0)
_SQRT_2PI = np.sqrt(2.0 * np.pi)


def normal_cdf(x: ArrayLike) -> ArrayLike:
    """
    Standard normal CDF N(x).

    [T1] N(x) = 0.5 * (1 + sign(x) * erf(|x| / √2)),
    erf(z) ≈ 1 - (a1·t + a2·t² + a3·t³ + a4·t⁴ + a5·t⁵)·e^(-z²), t = 1/(1 + p·z)

    Parameters
    ----------
    x : float or np.ndarray
        Evaluation point(s)

    Returns
    -------
    float or np.ndarray
        N(x), same shape as the input

    Examples
    --------
    >>> round(normal_cdf(0.0), 6)
    0.5
    >>> round(normal_cdf(1.96), 4)
    0.975
    """
    values = np.asarray(x, dtype=float)
    sign = np.where(values >= 0, 1.0, -1.0)
    z = np.abs(values) / _SQRT_2

    t = 1.0 / (1.0 + _P * z)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    erf = 1.0 - poly * np.exp(-z * z)

    cdf = 0.5 * (1.0 + sign * erf)
    if cdf.ndim == 0:
        return float(cdf)
    return cdf


def normal_pdf(x: ArrayLike) -> ArrayLike:
    """
    Standard normal PDF n(x) = exp(-x²/2) / √(2π).

    Parameters
    ----------
    x : float or np.ndarray
        Evaluation point(s)

    Returns
    -------
    float or np.ndarray
        n(x), same shape as the input
    """
    values = np.asarray(x, dtype=float)
    pdf = np.exp(-0.5 * values * values) / _SQRT_2PI
    if pdf.ndim == 0:
        return float(pdf)
    return pdf
