"""Triangular prism: the reference triangle extruded over ``z in [-1, 1]``."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ..basis import eval_prism, prism_indices
from ..types import AffineMap, BasisIndex, GeneratorFunc
from .base import Domain, Orbit, barycentric_maps, constant_generator
from .simplex import TRI_VERTICES, TriDomain, _s21, _s111

_TRIANGLE = TriDomain()


def _with_height(tri_generator: GeneratorFunc, tri_nargs: int) -> GeneratorFunc:
    """Append the last argument, unchanged, as the ``z`` generator component."""

    def generator(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        g, dg = tri_generator(args[:tri_nargs])
        out = np.concatenate([g, args[tri_nargs:]])
        jac = np.zeros((out.size, tri_nargs + 1))
        jac[: g.size, :tri_nargs] = dg
        jac[-1, -1] = 1.0
        return out, jac

    return generator


class PriDomain(Domain):
    name = "pri"
    dim = 3
    volume = 4.0
    _basis_evaluator = staticmethod(eval_prism)

    def __init__(self) -> None:
        centroid = constant_generator(1.0 / 3.0)
        super().__init__(
            [
                Orbit("S3", 0, barycentric_maps((1, 1, 1), TRI_VERTICES, axial=0), centroid),
                Orbit("S3xZ", 1, barycentric_maps((1, 1, 1), TRI_VERTICES, axial=2), _with_height(centroid, 0)),
                Orbit("S21", 1, barycentric_maps((1, 1, 2), TRI_VERTICES, axial=0), _s21),
                Orbit("S21xZ", 2, barycentric_maps((1, 1, 2), TRI_VERTICES, axial=3), _with_height(_s21, 1)),
                Orbit("S111", 2, barycentric_maps((1, 2, 3), TRI_VERTICES, axial=0), _s111),
                Orbit("S111xZ", 3, barycentric_maps((1, 2, 3), TRI_VERTICES, axial=4), _with_height(_s111, 2)),
            ]
        )

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        return prism_indices(degree)

    def symmetry_generators(self) -> List[AffineMap]:
        generators = []
        for mat, shift in _TRIANGLE.symmetry_generators():
            lifted = np.eye(3)
            lifted[:2, :2] = mat
            generators.append((lifted, np.concatenate([shift, [0.0]])))
        generators.append((np.diag([1.0, 1.0, -1.0]), np.zeros(3)))
        return generators

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        in_tri = _TRIANGLE.contains(pts[:, :2], tol)
        return in_tri & (np.abs(pts[:, 2]) <= 1.0 + tol)


__all__ = ["PriDomain"]
