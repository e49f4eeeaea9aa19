"""Orthonormal polynomial bases on the reference domains.

Every evaluator takes an ``(N, D)`` point matrix and a tuple of basis
indices and returns ``(values, gradients)`` with shapes ``(N, M)`` and
``(N, M, D)``; ``gradients`` is ``None`` unless ``derivative=True``.  All
bases are orthonormal with respect to the plain Lebesgue measure on the
reference domain, so the constant function is ``1 / sqrt(volume)``.
"""

from __future__ import annotations

import math
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .jacobi import jacobi_homogeneous_with_derivatives
from .types import BasisIndex

BasisResult = Tuple[np.ndarray, Optional[np.ndarray]]


# Index sets ----------------------------------------------------------------


def hypercube_indices(dim: int, degree: int) -> Tuple[BasisIndex, ...]:
    """Even, non-decreasing multi-indices with total order at most ``degree``.

    Odd orders integrate to zero against any rule invariant under axis
    reflections, and permuted indices give identical moments for rules
    invariant under axis permutations, so only these survive.
    """

    out = []

    def _extend(prefix: Tuple[int, ...], start: int, remaining: int) -> None:
        if len(prefix) == dim:
            out.append(prefix)
            return
        for order in range(start, remaining + 1, 2):
            _extend(prefix + (order,), order, remaining - order)

    if degree >= 0:
        _extend((), 0, degree)
    return tuple(out)


def simplex_indices(dim: int, degree: int) -> Tuple[BasisIndex, ...]:
    """All multi-indices of length ``dim`` with total order at most ``degree``."""

    out = []

    def _extend(prefix: Tuple[int, ...], remaining: int) -> None:
        if len(prefix) == dim:
            out.append(prefix)
            return
        for order in range(remaining + 1):
            _extend(prefix + (order,), remaining - order)

    if degree >= 0:
        _extend((), degree)
    return tuple(out)


def prism_indices(degree: int) -> Tuple[BasisIndex, ...]:
    return tuple(
        (i, j, k)
        for i, j in simplex_indices(2, degree)
        for k in range(0, degree - i - j + 1, 2)
    )


def pyramid_indices(degree: int) -> Tuple[BasisIndex, ...]:
    return tuple(
        (i, j, k)
        for i in range(0, degree + 1, 2)
        for j in range(i, degree - i + 1, 2)
        for k in range(degree - i - j + 1)
    )


# Helpers -------------------------------------------------------------------


def _as_points(points: np.ndarray, dim: int) -> np.ndarray:
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != dim:
        raise ValueError(f"expected an (N, {dim}) point matrix, got shape {pts.shape}")
    return pts


def _max_order(indices: Sequence[BasisIndex]) -> int:
    return max((max(idx) for idx in indices), default=0)


def _triangle_factors(
    x: np.ndarray, y: np.ndarray, indices: Sequence[BasisIndex]
) -> Tuple[np.ndarray, np.ndarray]:
    """PKD triangle values and (d/dx, d/dy) gradients for ``indices``."""

    n = x.shape[0]
    m = len(indices)
    vals = np.empty((n, m))
    grads = np.empty((n, m, 2))
    if not indices:
        return vals, grads

    top = max(i + j for i, j in indices)
    u = 0.5 * (1.0 + 2.0 * x + y)
    s = 0.5 * (1.0 - y)
    q, dq_du, dq_ds = jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, u, s)

    radial: Dict[int, Tuple[np.ndarray, np.ndarray, np.ndarray]] = {}
    for col, (i, j) in enumerate(indices):
        if i not in radial:
            radial[i] = jacobi_homogeneous_with_derivatives(top - i, 2.0 * i + 1.0, 0.0, y)
        r, dr, _ = radial[i]
        c = math.sqrt((i + 0.5) * (i + j + 1.0))
        vals[:, col] = c * q[i] * r[j]
        grads[:, col, 0] = c * dq_du[i] * r[j]
        grads[:, col, 1] = c * (0.5 * dq_du[i] - 0.5 * dq_ds[i]) * r[j] + c * q[i] * dr[j]
    return vals, grads


# Evaluators ----------------------------------------------------------------


def eval_hypercube(
    points: np.ndarray, indices: Sequence[BasisIndex], derivative: bool = False
) -> BasisResult:
    """Tensor-product Legendre basis on ``[-1, 1]^D``."""

    dim = len(indices[0]) if indices else np.asarray(points).shape[-1]
    pts = _as_points(points, dim)
    top = _max_order(indices)

    legendre = [jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, pts[:, d]) for d in range(dim)]
    idx = np.asarray(indices, dtype=int).reshape(len(indices), dim)
    norm = np.sqrt(np.prod(idx + 0.5, axis=1))

    factors = np.stack([legendre[d][0][idx[:, d]] for d in range(dim)])  # (D, M, N)
    vals = (norm[:, None] * np.prod(factors, axis=0)).T
    if not derivative:
        return vals, None

    grads = np.empty(vals.shape + (dim,))
    for d in range(dim):
        partial = factors.copy()
        partial[d] = legendre[d][1][idx[:, d]]
        grads[:, :, d] = (norm[:, None] * np.prod(partial, axis=0)).T
    return vals, grads


def eval_triangle(
    points: np.ndarray, indices: Sequence[BasisIndex], derivative: bool = False
) -> BasisResult:
    """Orthonormal PKD basis on the triangle ``(-1,-1), (1,-1), (-1,1)``."""

    pts = _as_points(points, 2)
    vals, grads = _triangle_factors(pts[:, 0], pts[:, 1], indices)
    return vals, (grads if derivative else None)


def eval_tetrahedron(
    points: np.ndarray, indices: Sequence[BasisIndex], derivative: bool = False
) -> BasisResult:
    """Orthonormal PKD basis on the tetrahedron with vertices at ``-1``/``1``."""

    pts = _as_points(points, 3)
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    n = pts.shape[0]
    m = len(indices)
    vals = np.empty((n, m))
    grads = np.empty((n, m, 3)) if derivative else None
    if not indices:
        return vals, grads

    top = max(sum(idx) for idx in indices)
    p = 0.5 * (2.0 + 2.0 * x + y + z)
    u = -0.5 * (y + z)
    q = 0.5 * (1.0 + 2.0 * y + z)
    t = 0.5 * (1.0 - z)

    grad_p = np.array([1.0, 0.5, 0.5])
    grad_u = np.array([0.0, -0.5, -0.5])
    grad_q = np.array([0.0, 1.0, 0.5])
    grad_t = np.array([0.0, 0.0, -0.5])
    grad_z = np.array([0.0, 0.0, 1.0])

    a_vals, a_dx, a_ds = jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, p, u)
    b_cache: Dict[int, Tuple[np.ndarray, ...]] = {}
    c_cache: Dict[int, Tuple[np.ndarray, ...]] = {}

    for col, (i, j, k) in enumerate(indices):
        if i not in b_cache:
            b_cache[i] = jacobi_homogeneous_with_derivatives(top - i, 2.0 * i + 1.0, 0.0, q, t)
        if i + j not in c_cache:
            c_cache[i + j] = jacobi_homogeneous_with_derivatives(
                top - i - j, 2.0 * (i + j) + 2.0, 0.0, z
            )
        b_vals, b_dx, b_ds = b_cache[i]
        c_vals, c_dx, _ = c_cache[i + j]

        norm = math.sqrt((i + 0.5) * (i + j + 1.0) * (i + j + k + 1.5))
        fa, fb, fc = a_vals[i], b_vals[j], c_vals[k]
        vals[:, col] = norm * fa * fb * fc
        if grads is not None:
            ga = np.outer(a_dx[i], grad_p) + np.outer(a_ds[i], grad_u)
            gb = np.outer(b_dx[j], grad_q) + np.outer(b_ds[j], grad_t)
            gc = np.outer(c_dx[k], grad_z)
            grads[:, col, :] = norm * (
                ga * (fb * fc)[:, None] + gb * (fa * fc)[:, None] + gc * (fa * fb)[:, None]
            )
    return vals, grads


def eval_prism(
    points: np.ndarray, indices: Sequence[BasisIndex], derivative: bool = False
) -> BasisResult:
    """Triangle PKD basis times Legendre polynomials along the prism axis."""

    pts = _as_points(points, 3)
    tri_indices = tuple(sorted({(i, j) for i, j, _ in indices}))
    tri_col = {idx: col for col, idx in enumerate(tri_indices)}
    tri_vals, tri_grads = _triangle_factors(pts[:, 0], pts[:, 1], tri_indices)

    top = max((k for _, _, k in indices), default=0)
    leg, dleg, _ = jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, pts[:, 2])

    n = pts.shape[0]
    vals = np.empty((n, len(indices)))
    grads = np.empty((n, len(indices), 3)) if derivative else None
    for col, (i, j, k) in enumerate(indices):
        tc = tri_col[(i, j)]
        norm = math.sqrt(k + 0.5)
        vals[:, col] = norm * tri_vals[:, tc] * leg[k]
        if grads is not None:
            grads[:, col, 0] = norm * tri_grads[:, tc, 0] * leg[k]
            grads[:, col, 1] = norm * tri_grads[:, tc, 1] * leg[k]
            grads[:, col, 2] = norm * tri_vals[:, tc] * dleg[k]
    return vals, grads


def eval_pyramid(
    points: np.ndarray, indices: Sequence[BasisIndex], derivative: bool = False
) -> BasisResult:
    """Orthonormal polynomial basis on the pyramid with apex ``(0, 0, 1)``."""

    pts = _as_points(points, 3)
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    n = pts.shape[0]
    vals = np.empty((n, len(indices)))
    grads = np.empty((n, len(indices), 3)) if derivative else None
    if not indices:
        return vals, grads

    top = max(sum(idx) for idx in indices)
    s = 0.5 * (1.0 - z)
    qx, qx_dx, qx_ds = jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, x, s)
    qy, qy_dy, qy_ds = jacobi_homogeneous_with_derivatives(top, 0.0, 0.0, y, s)
    axial: Dict[int, Tuple[np.ndarray, ...]] = {}

    for col, (i, j, k) in enumerate(indices):
        if i + j not in axial:
            axial[i + j] = jacobi_homogeneous_with_derivatives(
                top - i - j, 2.0 * (i + j) + 2.0, 0.0, z
            )
        r, dr, _ = axial[i + j]
        norm = math.sqrt((i + 0.5) * (j + 0.5) * (i + j + k + 1.5))
        vals[:, col] = norm * qx[i] * qy[j] * r[k]
        if grads is not None:
            grads[:, col, 0] = norm * qx_dx[i] * qy[j] * r[k]
            grads[:, col, 1] = norm * qx[i] * qy_dy[j] * r[k]
            grads[:, col, 2] = norm * (
                -0.5 * (qx_ds[i] * qy[j] + qx[i] * qy_ds[j]) * r[k] + qx[i] * qy[j] * dr[k]
            )
    return vals, grads


__all__ = [
    "eval_hypercube",
    "eval_prism",
    "eval_pyramid",
    "eval_tetrahedron",
    "eval_triangle",
    "hypercube_indices",
    "prism_indices",
    "pyramid_indices",
    "simplex_indices",
]
