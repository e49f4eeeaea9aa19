"""Square pyramid with base ``[-1, 1]^2`` at ``z = -1`` and apex ``(0, 0, 1)``."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ..basis import eval_pyramid, pyramid_indices
from ..types import AffineMap, BasisIndex
from .base import Domain, Orbit, signed_permutation_maps


def _lateral_and_height(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Map ``(a, [b,] c)`` to ``(a s, [b s,] 2c - 1)`` with ``s = 1 - c``.

    ``s`` is the half-width of the horizontal cross-section at height
    ``z = 2c - 1``, so lateral arguments in ``[0, 1]`` stay inside.
    """

    lateral = args[:-1]
    c = args[-1]
    nlat = lateral.size
    g = np.concatenate([lateral * (1.0 - c), [2.0 * c - 1.0]])
    dg = np.zeros((nlat + 1, nlat + 1))
    dg[:nlat, :nlat] = np.eye(nlat) * (1.0 - c)
    dg[:nlat, -1] = -lateral
    dg[-1, -1] = 2.0
    return g, dg


class PyrDomain(Domain):
    """Pyramid descriptor.

    The axis orbit carries a free height, so unlike the other shapes there
    is no single centroid orbit and it may be used any number of times.
    """

    name = "pyr"
    dim = 3
    volume = 8.0 / 3.0
    has_centroid = False
    _basis_evaluator = staticmethod(eval_pyramid)

    def __init__(self) -> None:
        super().__init__(
            [
                Orbit("(0,0,z)", 1, signed_permutation_maps((0, 0, 1), 2), _lateral_and_height),
                Orbit("(x,0,z)", 2, signed_permutation_maps((1, 0, 2), 2), _lateral_and_height),
                Orbit("(x,x,z)", 2, signed_permutation_maps((1, 1, 2), 2), _lateral_and_height),
                Orbit("(x,y,z)", 3, signed_permutation_maps((1, 2, 3), 2), _lateral_and_height),
            ]
        )

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        return pyramid_indices(degree)

    def symmetry_generators(self) -> List[AffineMap]:
        zero = np.zeros(3)
        return [
            (np.diag([-1.0, 1.0, 1.0]), zero),
            (np.eye(3)[[1, 0, 2]], zero),
        ]

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        half = 0.5 * (1.0 - pts[:, 2])
        lateral = np.max(np.abs(pts[:, :2]), axis=1)
        return (np.abs(pts[:, 2]) <= 1.0 + tol) & (lateral <= half + tol)


__all__ = ["PyrDomain"]
