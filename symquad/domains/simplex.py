"""Triangle and tetrahedron.

Orbits are written in barycentric coordinates.  Free arguments live in the
unit box and are mapped onto the simplex by stick-breaking, so clamping to
``[0, 1]`` always keeps every image inside the element.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ..basis import eval_tetrahedron, eval_triangle, simplex_indices
from ..types import AffineMap, BasisIndex
from .base import Domain, Orbit, affine_from_vertices, barycentric_maps, constant_generator, stick_breaking

TRI_VERTICES = np.array([[-1.0, -1.0], [1.0, -1.0], [-1.0, 1.0]])
TET_VERTICES = np.array(
    [[-1.0, -1.0, -1.0], [1.0, -1.0, -1.0], [-1.0, 1.0, -1.0], [-1.0, -1.0, 1.0]]
)


def _s21(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    a = args[0]
    return np.array([0.5 * a, 1.0 - a]), np.array([[0.5], [-1.0]])


def _s111(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    return stick_breaking(args)


def _s31(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    a = args[0]
    return np.array([a / 3.0, 1.0 - a]), np.array([[1.0 / 3.0], [-1.0]])


def _s22(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    a = args[0]
    return np.array([0.5 * a, 0.5 * (1.0 - a)]), np.array([[0.5], [-0.5]])


def _s211(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # (a/2, a/2) on the repeated pair; the remaining 1 - a split by b.
    a = args[0]
    rest, drest = stick_breaking(args[1:])
    g = np.concatenate([[0.5 * a], (1.0 - a) * rest])
    dg = np.zeros((3, 2))
    dg[0, 0] = 0.5
    dg[1:, 0] = -rest
    dg[1:, 1:] = (1.0 - a) * drest
    return g, dg


def _simplex_generators(vertices: np.ndarray) -> List[AffineMap]:
    nverts = vertices.shape[0]
    swap = [1, 0] + list(range(2, nverts))
    cycle = list(range(1, nverts)) + [0]
    return [affine_from_vertices(vertices, vertices[perm]) for perm in (swap, cycle)]


def _barycentric(points: np.ndarray, vertices: np.ndarray) -> np.ndarray:
    pts = np.asarray(points, dtype=float)
    lhs = np.vstack([vertices.T, np.ones(vertices.shape[0])])
    rhs = np.vstack([pts.T, np.ones(pts.shape[0])])
    return np.linalg.solve(lhs, rhs).T


class TriDomain(Domain):
    name = "tri"
    dim = 2
    volume = 2.0
    _basis_evaluator = staticmethod(eval_triangle)

    def __init__(self) -> None:
        super().__init__(
            [
                Orbit("S3", 0, barycentric_maps((1, 1, 1), TRI_VERTICES), constant_generator(1.0 / 3.0)),
                Orbit("S21", 1, barycentric_maps((1, 1, 2), TRI_VERTICES), _s21),
                Orbit("S111", 2, barycentric_maps((1, 2, 3), TRI_VERTICES), _s111),
            ]
        )

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        return simplex_indices(2, degree)

    def symmetry_generators(self) -> List[AffineMap]:
        return _simplex_generators(TRI_VERTICES)

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        return np.all(_barycentric(points, TRI_VERTICES) >= -tol, axis=1)


class TetDomain(Domain):
    name = "tet"
    dim = 3
    volume = 4.0 / 3.0
    _basis_evaluator = staticmethod(eval_tetrahedron)

    def __init__(self) -> None:
        super().__init__(
            [
                Orbit("S4", 0, barycentric_maps((1, 1, 1, 1), TET_VERTICES), constant_generator(0.25)),
                Orbit("S31", 1, barycentric_maps((1, 1, 1, 2), TET_VERTICES), _s31),
                Orbit("S22", 1, barycentric_maps((1, 1, 2, 2), TET_VERTICES), _s22),
                Orbit("S211", 2, barycentric_maps((1, 1, 2, 3), TET_VERTICES), _s211),
                Orbit("S1111", 3, barycentric_maps((1, 2, 3, 4), TET_VERTICES), _s111),
            ]
        )

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        return simplex_indices(3, degree)

    def symmetry_generators(self) -> List[AffineMap]:
        return _simplex_generators(TET_VERTICES)

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        return np.all(_barycentric(points, TET_VERTICES) >= -tol, axis=1)


__all__ = ["TET_VERTICES", "TRI_VERTICES", "TetDomain", "TriDomain"]
