"""Minimal fully-symmetric cubature rules on reference domains."""

from .domains import (
    DOMAINS,
    Domain,
    HexDomain,
    PriDomain,
    PyrDomain,
    QuadDomain,
    TetDomain,
    TriDomain,
    get_domain,
)
from .solver import (
    QuadratureRule,
    SearchOptions,
    SearchResult,
    SolverOptions,
    TrialResult,
    find_rule,
    get_default_search_options,
    moment_residual,
    orbit_decompositions,
    orbit_selections,
    reset_default_search_options,
    run_trial,
    set_default_search_options,
)
from .types import (
    ArgumentLengthError,
    OrbitIndexError,
    PreconditionError,
    SelectionError,
    UnknownDomainError,
)

__all__ = [
    "ArgumentLengthError",
    "DOMAINS",
    "Domain",
    "HexDomain",
    "OrbitIndexError",
    "PreconditionError",
    "PriDomain",
    "PyrDomain",
    "QuadDomain",
    "QuadratureRule",
    "SearchOptions",
    "SearchResult",
    "SelectionError",
    "SolverOptions",
    "TetDomain",
    "TriDomain",
    "TrialResult",
    "UnknownDomainError",
    "find_rule",
    "get_default_search_options",
    "get_domain",
    "moment_residual",
    "orbit_decompositions",
    "orbit_selections",
    "reset_default_search_options",
    "run_trial",
    "set_default_search_options",
]
