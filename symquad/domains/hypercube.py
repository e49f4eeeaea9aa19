"""Quadrilateral and hexahedron, both ``[-1, 1]^D``."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from ..basis import eval_hypercube, hypercube_indices
from ..types import AffineMap, BasisIndex
from .base import Domain, Orbit, constant_generator, identity_generator, signed_permutation_maps


def _hypercube_orbit(name: str, pattern: Sequence[int]) -> Orbit:
    nargs = max(pattern)
    generator = identity_generator(nargs) if nargs else constant_generator()
    return Orbit(
        name=name,
        nargs=nargs,
        maps=signed_permutation_maps(pattern, len(pattern)),
        generator=generator,
    )


class _HypercubeDomain(Domain):
    _basis_evaluator = staticmethod(eval_hypercube)

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        return hypercube_indices(self.dim, degree)

    def symmetry_generators(self) -> List[AffineMap]:
        zero = np.zeros(self.dim)
        flip = np.eye(self.dim)
        flip[0, 0] = -1.0
        swap = np.eye(self.dim)[[1, 0] + list(range(2, self.dim))]
        generators = [(flip, zero), (swap, zero)]
        if self.dim > 2:
            cycle = np.roll(np.eye(self.dim), 1, axis=0)
            generators.append((cycle, zero))
        return generators

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        return np.all(np.abs(pts) <= 1.0 + tol, axis=1)


class QuadDomain(_HypercubeDomain):
    name = "quad"
    dim = 2
    volume = 4.0

    def __init__(self) -> None:
        super().__init__(
            [
                _hypercube_orbit("(0,0)", (0, 0)),
                _hypercube_orbit("(a,0)", (1, 0)),
                _hypercube_orbit("(a,a)", (1, 1)),
                _hypercube_orbit("(a,b)", (1, 2)),
            ]
        )


class HexDomain(_HypercubeDomain):
    name = "hex"
    dim = 3
    volume = 8.0

    def __init__(self) -> None:
        super().__init__(
            [
                _hypercube_orbit("(0,0,0)", (0, 0, 0)),
                _hypercube_orbit("(a,0,0)", (1, 0, 0)),
                _hypercube_orbit("(a,a,a)", (1, 1, 1)),
                _hypercube_orbit("(a,a,0)", (1, 1, 0)),
                _hypercube_orbit("(a,b,0)", (1, 2, 0)),
                _hypercube_orbit("(a,a,b)", (1, 1, 2)),
                _hypercube_orbit("(a,b,c)", (1, 2, 3)),
            ]
        )


__all__ = ["HexDomain", "QuadDomain"]
