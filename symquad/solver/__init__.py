"""Solver façade: orbit-parameterised rule search on the reference domains."""

from __future__ import annotations

import logging

from .config import (
    get_default_search_options,
    reset_default_search_options,
    set_default_search_options,
)
from .model import (
    TERMINAL_STATUSES,
    QuadratureRule,
    SearchOptions,
    SearchResult,
    SolverOptions,
    TrialResult,
    TrialStatus,
)
from .residual import OrbitLayout, ResidualEvaluation, assemble, build_layout, moment_residual
from .search import find_rule, orbit_decompositions, orbit_selections
from .seed import initial_guess, resolve_entropy, trial_rng
from .solver_core import polish, run_trial

logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:  # pragma: no cover - depends on host application
    logging.basicConfig(level=logging.INFO)


__all__ = [
    "OrbitLayout",
    "QuadratureRule",
    "ResidualEvaluation",
    "SearchOptions",
    "SearchResult",
    "SolverOptions",
    "TERMINAL_STATUSES",
    "TrialResult",
    "TrialStatus",
    "assemble",
    "build_layout",
    "find_rule",
    "get_default_search_options",
    "initial_guess",
    "moment_residual",
    "orbit_decompositions",
    "orbit_selections",
    "polish",
    "reset_default_search_options",
    "resolve_entropy",
    "run_trial",
    "set_default_search_options",
    "trial_rng",
]
