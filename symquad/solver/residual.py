"""Moment residuals and their analytic Jacobian for a candidate rule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..domains import Domain
from ..types import ArgumentLengthError, OrbitSelection, SelectionError, as_selection


@dataclass(frozen=True)
class OrbitLayout:
    """Placement of each chosen orbit inside the unknown vector and point matrix.

    The unknown vector stores all orbit arguments first (in orbit order),
    followed by one weight per orbit.
    """

    selection: OrbitSelection
    orbit_types: Tuple[int, ...]
    arg_offsets: Tuple[int, ...]
    arg_counts: Tuple[int, ...]
    point_offsets: Tuple[int, ...]
    point_counts: Tuple[int, ...]
    nargs: int
    npts: int

    @property
    def norbits(self) -> int:
        return len(self.orbit_types)

    @property
    def nunknowns(self) -> int:
        return self.nargs + self.norbits

    def split(self, x: np.ndarray) -> Tuple[List[np.ndarray], np.ndarray]:
        x = np.asarray(x, dtype=float)
        if x.shape != (self.nunknowns,):
            raise ArgumentLengthError(
                f"unknown vector has shape {x.shape}, expected ({self.nunknowns},)"
            )
        args = [x[off : off + n] for off, n in zip(self.arg_offsets, self.arg_counts)]
        return args, x[self.nargs :]

    def join(self, args: Sequence[np.ndarray], weights: np.ndarray) -> np.ndarray:
        x = np.empty(self.nunknowns)
        for off, n, vec in zip(self.arg_offsets, self.arg_counts, args):
            x[off : off + n] = vec
        x[self.nargs :] = weights
        return x

    def point_weights(self, orbit_weights: np.ndarray) -> np.ndarray:
        return np.repeat(np.asarray(orbit_weights, dtype=float), self.point_counts)


def build_layout(domain: Domain, selection: Sequence[int]) -> OrbitLayout:
    counts = as_selection(selection, domain.norbits)
    if not any(counts):
        raise SelectionError("orbit selection must contain at least one orbit")

    orbit_types: List[int] = []
    arg_offsets: List[int] = []
    arg_counts: List[int] = []
    point_offsets: List[int] = []
    point_counts: List[int] = []
    nargs = npts = 0
    for orbit_type, count in enumerate(counts):
        for _ in range(count):
            orbit_types.append(orbit_type)
            arg_offsets.append(nargs)
            arg_counts.append(domain.arg_count(orbit_type))
            point_offsets.append(npts)
            point_counts.append(domain.point_count(orbit_type))
            nargs += arg_counts[-1]
            npts += point_counts[-1]

    return OrbitLayout(
        selection=counts,
        orbit_types=tuple(orbit_types),
        arg_offsets=tuple(arg_offsets),
        arg_counts=tuple(arg_counts),
        point_offsets=tuple(point_offsets),
        point_counts=tuple(point_counts),
        nargs=nargs,
        npts=npts,
    )


@dataclass
class ResidualEvaluation:
    points: np.ndarray
    residual: np.ndarray
    moment_matrix: np.ndarray
    jacobian: Optional[np.ndarray] = None

    @property
    def norm(self) -> float:
        return float(np.linalg.norm(self.residual))


def expand_points(domain: Domain, layout: OrbitLayout, args: Sequence[np.ndarray]) -> np.ndarray:
    points = np.empty((layout.npts, domain.dim))
    for orbit_type, offset, vec in zip(layout.orbit_types, layout.point_offsets, args):
        domain.expand_orbit(orbit_type, vec, offset, points)
    return points


def orbit_moment_matrix(layout: OrbitLayout, basis_values: np.ndarray) -> np.ndarray:
    """Sum basis values over each orbit: ``A[m, k] = sum_{p in k} psi_m(x_p)``."""

    return np.add.reduceat(basis_values, list(layout.point_offsets), axis=0).T


def assemble(
    domain: Domain,
    layout: OrbitLayout,
    degree: int,
    x: np.ndarray,
    *,
    jacobian: bool = True,
) -> ResidualEvaluation:
    """Expand ``x`` into a rule and evaluate its moment residual.

    Entry 0 of the residual is the volume constraint ``sum(w) - V`` scaled
    by the constant basis function; later entries are the higher moments.
    """

    args, weights = layout.split(x)
    points = expand_points(domain, layout, args)
    moments = domain.reference_moments(degree)

    if not jacobian:
        basis = domain.eval_basis(points, degree)
        amat = orbit_moment_matrix(layout, basis)
        return ResidualEvaluation(points=points, residual=amat @ weights - moments, moment_matrix=amat)

    basis, grads = domain.eval_basis_with_gradient(points, degree)
    amat = orbit_moment_matrix(layout, basis)
    jac = np.zeros((moments.size, layout.nunknowns))
    jac[:, layout.nargs :] = amat

    for k, orbit_type in enumerate(layout.orbit_types):
        nargs = layout.arg_counts[k]
        if not nargs:
            continue
        poff, npts = layout.point_offsets[k], layout.point_counts[k]
        aoff = layout.arg_offsets[k]
        dpoints = domain.orbit_jacobian(orbit_type, args[k])
        jac[:, aoff : aoff + nargs] = weights[k] * np.einsum(
            "pmd,pda->ma", grads[poff : poff + npts], dpoints
        )

    return ResidualEvaluation(
        points=points,
        residual=amat @ weights - moments,
        moment_matrix=amat,
        jacobian=jac,
    )


def moment_residual(
    domain: Domain, points: np.ndarray, weights: np.ndarray, degree: int
) -> np.ndarray:
    """Residual of an explicit rule against the exact basis moments."""

    pts = np.asarray(points, dtype=float)
    wts = np.asarray(weights, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != domain.dim or wts.shape != (pts.shape[0],):
        raise ArgumentLengthError(
            f"rule shapes {pts.shape} / {wts.shape} do not match a {domain.dim}-D domain"
        )
    return domain.eval_basis(pts, degree).T @ wts - domain.reference_moments(degree)


__all__ = [
    "OrbitLayout",
    "ResidualEvaluation",
    "assemble",
    "build_layout",
    "expand_points",
    "moment_residual",
    "orbit_moment_matrix",
]
