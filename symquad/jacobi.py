"""Jacobi polynomials in homogeneous form.

Collapsed-coordinate bases on simplices and the pyramid contain factors of
the form ``s**n * P_n(x / s)``, which are polynomials in ``(x, s)`` but blow
up numerically when evaluated through the quotient at ``s = 0``.  This
module evaluates them straight from the three-term recurrence scaled by
``s``, so no division ever happens.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


def jacobi_homogeneous(
    n: int,
    alpha: float,
    beta: float,
    x: ArrayLike,
    s: Optional[ArrayLike] = None,
) -> np.ndarray:
    """Return ``s**k * P_k^(alpha, beta)(x / s)`` for ``k = 0..n``.

    The result has shape ``(n + 1,) + shape(x)``.  With ``s`` omitted this is
    the ordinary Jacobi polynomial.
    """

    return jacobi_homogeneous_with_derivatives(n, alpha, beta, x, s)[0]


def jacobi_homogeneous_with_derivatives(
    n: int,
    alpha: float,
    beta: float,
    x: ArrayLike,
    s: Optional[ArrayLike] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Values and partial derivatives in ``x`` and ``s`` of the scaled family.

    Returns ``(values, d_dx, d_ds)``, each of shape ``(n + 1,) + shape(x)``.
    """

    if n < 0:
        raise ValueError(f"polynomial order must be non-negative, got {n}")

    x = np.asarray(x, dtype=float)
    s = np.ones_like(x) if s is None else np.broadcast_to(np.asarray(s, dtype=float), x.shape)

    shape = (n + 1,) + x.shape
    vals = np.zeros(shape)
    d_dx = np.zeros(shape)
    d_ds = np.zeros(shape)

    vals[0] = 1.0
    if n == 0:
        return vals, d_dx, d_ds

    apb = alpha + beta
    vals[1] = 0.5 * ((apb + 2.0) * x + (alpha - beta) * s)
    d_dx[1] = 0.5 * (apb + 2.0)
    d_ds[1] = 0.5 * (alpha - beta)

    s2 = s * s
    for k in range(2, n + 1):
        two_k = 2.0 * k + apb
        denom = 2.0 * k * (k + apb) * (two_k - 2.0)
        a = (two_k - 1.0) * two_k * (two_k - 2.0) / denom
        b = (two_k - 1.0) * (alpha * alpha - beta * beta) / denom
        c = 2.0 * (k + alpha - 1.0) * (k + beta - 1.0) * two_k / denom

        lin = a * x + b * s
        vals[k] = lin * vals[k - 1] - c * s2 * vals[k - 2]
        d_dx[k] = a * vals[k - 1] + lin * d_dx[k - 1] - c * s2 * d_dx[k - 2]
        d_ds[k] = (
            b * vals[k - 1]
            + lin * d_ds[k - 1]
            - 2.0 * c * s * vals[k - 2]
            - c * s2 * d_ds[k - 2]
        )

    return vals, d_dx, d_ds


def legendre(n: int, x: ArrayLike) -> np.ndarray:
    """Legendre polynomials ``P_0..P_n`` at ``x``."""

    return jacobi_homogeneous(n, 0.0, 0.0, x)


__all__ = [
    "jacobi_homogeneous",
    "jacobi_homogeneous_with_derivatives",
    "legendre",
]
