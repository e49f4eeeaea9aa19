"""Orbit tables and the shared domain descriptor behaviour."""

from __future__ import annotations

import itertools
import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..types import (
    AffineMap,
    ArgumentLengthError,
    BasisIndex,
    GeneratorFunc,
    OrbitIndexError,
    OrbitSelection,
    as_selection,
)

logger = logging.getLogger(__name__)

BasisEvaluator = Callable[..., Tuple[np.ndarray, Optional[np.ndarray]]]


@dataclass(frozen=True, eq=False)
class Orbit:
    """One orbit type: a generator plus a fixed table of linear images.

    ``generator`` maps the free arguments to a short vector ``g`` of
    generator components (and its Jacobian ``dg/dargs``); image ``p`` of the
    orbit is ``maps[p] @ g``.
    """

    name: str
    nargs: int
    maps: np.ndarray
    generator: GeneratorFunc

    def __post_init__(self) -> None:
        maps = np.array(self.maps, dtype=float)
        maps.flags.writeable = False
        object.__setattr__(self, "maps", maps)

    @property
    def npts(self) -> int:
        return int(self.maps.shape[0])

    @property
    def dim(self) -> int:
        return int(self.maps.shape[1])

    def expand(self, args: np.ndarray) -> np.ndarray:
        g, _ = self.generator(args)
        return np.einsum("pdg,g->pd", self.maps, g)

    def jacobian(self, args: np.ndarray) -> np.ndarray:
        _, dg = self.generator(args)
        return np.einsum("pdg,ga->pda", self.maps, dg)


# Table builders ------------------------------------------------------------


def signed_permutation_maps(pattern: Sequence[int], naxes: int) -> np.ndarray:
    """Images of a symbolic point under signed permutations of leading axes.

    ``pattern`` holds one code per coordinate: ``0`` for a zero coordinate,
    ``k > 0`` for generator component ``k - 1``.  The group permutes and
    reflects the first ``naxes`` coordinates; the rest are left in place.
    Symbolically identical images are kept once, so the row count depends
    only on the pattern.
    """

    pattern = tuple(int(code) for code in pattern)
    images: List[Tuple[int, ...]] = []
    seen = set()
    for perm in itertools.permutations(range(naxes)):
        for signs in itertools.product((1, -1), repeat=naxes):
            code = tuple(signs[d] * pattern[perm[d]] for d in range(naxes)) + pattern[naxes:]
            if code not in seen:
                seen.add(code)
                images.append(code)

    ngen = max((abs(code) for code in pattern), default=0)
    maps = np.zeros((len(images), len(pattern), ngen))
    for row, image in enumerate(images):
        for d, code in enumerate(image):
            if code:
                maps[row, d, abs(code) - 1] = math.copysign(1.0, code)
    return maps


def barycentric_maps(
    pattern: Sequence[int], vertices: np.ndarray, axial: Optional[int] = None
) -> np.ndarray:
    """Images of a barycentric pattern under all vertex permutations.

    ``pattern`` assigns a generator label (1-based) to every vertex; the
    point is ``sum(g[label_v - 1] * vertex_v)``.  With ``axial`` set, an
    extra coordinate is appended that is zero (``axial == 0``) or
    ``+/- g[axial - 1]``, as for the prism.
    """

    vertices = np.asarray(vertices, dtype=float)
    nverts, vdim = vertices.shape
    if len(pattern) != nverts:
        raise ValueError("barycentric pattern must have one label per vertex")

    labels: List[Tuple[int, ...]] = []
    for perm in itertools.permutations(pattern):
        if perm not in labels:
            labels.append(perm)

    zsigns: Tuple[int, ...] = (1,) if not axial else (1, -1)
    ngen = max(max(pattern), axial or 0)
    dim = vdim + (0 if axial is None else 1)

    maps = np.zeros((len(labels) * len(zsigns), dim, ngen))
    row = 0
    for perm in labels:
        for sign in zsigns:
            for vertex, label in enumerate(perm):
                maps[row, :vdim, label - 1] += vertices[vertex]
            if axial:
                maps[row, vdim, axial - 1] = sign
            row += 1
    return maps


def affine_from_vertices(src: np.ndarray, dst: np.ndarray) -> AffineMap:
    """Return ``(A, t)`` with ``A @ src[v] + t == dst[v]`` for every vertex."""

    src = np.asarray(src, dtype=float)
    dst = np.asarray(dst, dtype=float)
    lhs = np.hstack([src, np.ones((src.shape[0], 1))])
    coeffs = np.linalg.solve(lhs, dst)
    return coeffs[:-1].T.copy(), coeffs[-1].copy()


# Generator helpers ---------------------------------------------------------


def constant_generator(*values: float) -> GeneratorFunc:
    g = np.asarray(values, dtype=float)
    dg = np.zeros((g.size, 0))

    def generator(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return g, dg

    return generator


def identity_generator(nargs: int) -> GeneratorFunc:
    eye = np.eye(nargs)

    def generator(args: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return np.asarray(args, dtype=float), eye

    return generator


def stick_breaking(params: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Map ``k`` parameters in ``[0, 1]`` onto ``k + 1`` barycentric weights.

    ``l_0 = t_0``, ``l_1 = (1 - t_0) t_1``, ..., ``l_k = prod(1 - t_i)``; the
    unit box covers the whole simplex.
    """

    params = np.asarray(params, dtype=float)
    k = params.size
    out = np.empty(k + 1)
    jac = np.zeros((k + 1, k))
    remaining = 1.0
    d_remaining = np.zeros(k)
    for idx in range(k):
        t = params[idx]
        out[idx] = remaining * t
        jac[idx] = d_remaining * t
        jac[idx, idx] += remaining
        d_remaining = d_remaining * (1.0 - t)
        d_remaining[idx] -= remaining
        remaining *= 1.0 - t
    out[k] = remaining
    jac[k] = d_remaining
    return out, jac


# Domain --------------------------------------------------------------------


class Domain:
    """Descriptor of one reference shape and its symmetry orbits.

    Subclasses set ``name``, ``dim``, ``volume``, ``has_centroid`` and the
    basis hooks, and pass their orbit table to ``__init__``.
    """

    name: str = ""
    dim: int = 0
    volume: float = 0.0
    has_centroid: bool = True

    def __init__(self, orbits: Sequence[Orbit]):
        self.orbits: Tuple[Orbit, ...] = tuple(orbits)
        for orbit in self.orbits:
            if orbit.dim != self.dim:
                raise ValueError(f"orbit {orbit.name} has dimension {orbit.dim}, expected {self.dim}")
        self.scale = math.sqrt(self.volume)
        self._indices: Dict[int, Tuple[BasisIndex, ...]] = {}
        self._indices_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, norbits={self.norbits})"

    @property
    def norbits(self) -> int:
        return len(self.orbits)

    # Orbit contract --------------------------------------------------------

    def orbit(self, i: int) -> Orbit:
        if isinstance(i, (bool, np.bool_)) or not isinstance(i, (int, np.integer)):
            raise OrbitIndexError(self.name, i, self.norbits)
        if not 0 <= i < self.norbits:
            raise OrbitIndexError(self.name, i, self.norbits)
        return self.orbits[int(i)]

    def point_count(self, i: int) -> int:
        return self.orbit(i).npts

    def arg_count(self, i: int) -> int:
        return self.orbit(i).nargs

    def _check_args(self, orbit: Orbit, args: Sequence[float]) -> np.ndarray:
        vec = np.asarray(args, dtype=float)
        if vec.ndim != 1 or vec.size != orbit.nargs:
            raise ArgumentLengthError(
                f"orbit {orbit.name} of domain '{self.name}' takes {orbit.nargs} "
                f"argument(s), got shape {vec.shape}"
            )
        return vec

    def expand_orbit(
        self,
        i: int,
        args: Sequence[float],
        point_offset: int = 0,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Write the ``point_count(i)`` images of ``args`` into ``out``.

        Rows ``point_offset`` to ``point_offset + point_count(i)`` are
        overwritten; ``out`` is allocated when omitted and returned.
        """

        orbit = self.orbit(i)
        vec = self._check_args(orbit, args)
        if out is None:
            out = np.zeros((point_offset + orbit.npts, self.dim))
        if (
            point_offset < 0
            or out.ndim != 2
            or out.shape[1] != self.dim
            or out.shape[0] < point_offset + orbit.npts
        ):
            raise ArgumentLengthError(
                f"cannot write {orbit.npts} row(s) at offset {point_offset} "
                f"into a matrix of shape {out.shape}"
            )
        out[point_offset : point_offset + orbit.npts] = orbit.expand(vec)
        return out

    def orbit_jacobian(self, i: int, args: Sequence[float]) -> np.ndarray:
        """Derivative of the expanded points, shape ``(P, D, A)``."""

        orbit = self.orbit(i)
        return orbit.jacobian(self._check_args(orbit, args))

    def arg_bounds(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        nargs = self.orbit(i).nargs
        return np.zeros(nargs), np.ones(nargs)

    def seed_orbit(
        self, i: int, rng: np.random.Generator, out: Optional[np.ndarray] = None
    ) -> np.ndarray:
        lower, upper = self.arg_bounds(i)
        draw = rng.uniform(lower, upper)
        if out is None:
            return draw
        if out.shape != draw.shape:
            raise ArgumentLengthError(
                f"seed buffer has shape {out.shape}, expected {draw.shape}"
            )
        out[...] = draw
        return out

    def clamp_args(self, i: int, args: Sequence[float]) -> np.ndarray:
        vec = self._check_args(self.orbit(i), args)
        lower, upper = self.arg_bounds(i)
        return np.clip(vec, lower, upper)

    def validate_orbit_selection(self, selection: Sequence[int]) -> bool:
        """Return whether ``selection`` describes an admissible candidate rule."""

        counts = as_selection(selection, self.norbits)
        if not any(counts):
            return False
        if self.has_centroid and counts[0] > 1:
            return False
        return True

    def selection_point_count(self, selection: Sequence[int]) -> int:
        counts = as_selection(selection, self.norbits)
        return sum(n * orbit.npts for n, orbit in zip(counts, self.orbits))

    def selection_unknown_count(self, selection: Sequence[int]) -> int:
        counts = as_selection(selection, self.norbits)
        return sum(n * (orbit.nargs + 1) for n, orbit in zip(counts, self.orbits))

    # Basis contract --------------------------------------------------------

    _basis_evaluator: BasisEvaluator

    def _build_basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        raise NotImplementedError

    @staticmethod
    def _check_degree(degree: int) -> int:
        if isinstance(degree, bool) or not isinstance(degree, (int, np.integer)) or degree < 0:
            raise ValueError(f"degree must be a non-negative integer, got {degree!r}")
        return int(degree)

    def basis_indices(self, degree: int) -> Tuple[BasisIndex, ...]:
        degree = self._check_degree(degree)
        with self._indices_lock:
            if degree not in self._indices:
                self._indices[degree] = self._build_basis_indices(degree)
            return self._indices[degree]

    def basis_count(self, degree: int) -> int:
        return len(self.basis_indices(degree))

    def eval_basis(self, points: np.ndarray, degree: int) -> np.ndarray:
        vals, _ = type(self)._basis_evaluator(points, self.basis_indices(degree))
        return vals

    def eval_basis_with_gradient(
        self, points: np.ndarray, degree: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        vals, grads = type(self)._basis_evaluator(
            points, self.basis_indices(degree), derivative=True
        )
        assert grads is not None
        return vals, grads

    def reference_moments(self, degree: int) -> np.ndarray:
        """Exact integrals of the basis; only the constant term is non-zero."""

        moments = np.zeros(self.basis_count(degree))
        moments[0] = self.scale
        return moments

    # Geometry --------------------------------------------------------------

    def symmetry_generators(self) -> List[AffineMap]:
        raise NotImplementedError

    def contains(self, points: np.ndarray, tol: float = 1e-12) -> np.ndarray:
        raise NotImplementedError


__all__ = [
    "Domain",
    "Orbit",
    "affine_from_vertices",
    "barycentric_maps",
    "constant_generator",
    "identity_generator",
    "signed_permutation_maps",
    "stick_breaking",
]
