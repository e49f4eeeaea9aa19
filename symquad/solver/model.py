"""Core data structures for the rule search pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional

import numpy as np

from ..types import OrbitSelection

TrialStatus = Literal[
    "seeded",
    "iterating",
    "converged",
    "stalled",
    "singular",
    "budget_exhausted",
]

TERMINAL_STATUSES = ("converged", "stalled", "singular", "budget_exhausted")


@dataclass
class SolverOptions:
    """Knobs for a single Levenberg-Marquardt trial."""

    tol: float = 1e-11
    max_iterations: int = 100
    damping: float = 1e-3
    damping_decrease: float = 1.0 / 3.0
    damping_increase: float = 4.0
    min_damping: float = 1e-12
    max_damping: float = 1e8
    stall_patience: int = 12
    stall_rtol: float = 1e-3
    singular_tol: float = 1e-13
    polish: bool = True

    def validate(self) -> None:
        if self.tol <= 0.0:
            raise ValueError("tol must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.stall_patience < 1:
            raise ValueError("stall_patience must be at least 1")
        if not 0.0 < self.damping_decrease < 1.0 < self.damping_increase:
            raise ValueError("damping factors must satisfy 0 < decrease < 1 < increase")
        if not 0.0 < self.min_damping <= self.damping <= self.max_damping:
            raise ValueError("damping must lie within [min_damping, max_damping]")


@dataclass
class SearchOptions:
    """Bounds and budgets for :func:`symquad.solver.search.find_rule`."""

    max_points: int = 64
    min_points: int = 1
    trials_per_selection: int = 20
    seed: Optional[int] = None
    workers: int = 1
    time_limit: Optional[float] = None
    positive_weights: bool = True
    solver: SolverOptions = field(default_factory=SolverOptions)

    def validate(self) -> None:
        if self.min_points < 1:
            raise ValueError("min_points must be at least 1")
        if self.max_points < self.min_points:
            raise ValueError("max_points must not be smaller than min_points")
        if self.trials_per_selection < 1:
            raise ValueError("trials_per_selection must be at least 1")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.time_limit is not None and self.time_limit <= 0.0:
            raise ValueError("time_limit must be positive when given")
        self.solver.validate()


@dataclass
class QuadratureRule:
    """A materialised symmetric rule.

    ``points``/``weights`` hold every image; ``orbit_args``/``orbit_weights``
    keep the compact per-orbit description in layout order.
    """

    domain: str
    degree: int
    selection: OrbitSelection
    points: np.ndarray
    weights: np.ndarray
    orbit_types: List[int]
    orbit_args: List[np.ndarray]
    orbit_weights: np.ndarray
    residual_norm: float

    @property
    def npts(self) -> int:
        return int(self.points.shape[0])

    def integrate(self, func: Callable[[np.ndarray], np.ndarray]) -> float:
        """Apply the rule to ``func``, which maps an ``(N, D)`` matrix to ``N`` values."""

        values = np.asarray(func(self.points), dtype=float)
        return float(self.weights @ values)


@dataclass
class TrialResult:
    status: TrialStatus
    selection: OrbitSelection
    x: np.ndarray
    residual_norm: float
    iterations: int
    rule: Optional[QuadratureRule] = None
    message: str = ""

    @property
    def converged(self) -> bool:
        return self.status == "converged"


@dataclass
class SearchResult:
    success: bool
    domain: str
    degree: int
    rule: Optional[QuadratureRule]
    trials: int
    selections_tried: int
    reason: str
    seed_entropy: int
    statuses: Dict[str, int] = field(default_factory=dict)


__all__ = [
    "QuadratureRule",
    "SearchOptions",
    "SearchResult",
    "SolverOptions",
    "TERMINAL_STATUSES",
    "TrialResult",
    "TrialStatus",
]
