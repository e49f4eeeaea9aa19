from __future__ import annotations

import logging
import time
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from scipy.linalg import cho_factor, cho_solve
from scipy.optimize import least_squares

from ..domains import Domain, get_domain
from ..logging_utils import apply_debug_logging
from ..types import SelectionError, as_selection
from .model import QuadratureRule, SolverOptions, TrialResult, TrialStatus
from .residual import OrbitLayout, ResidualEvaluation, assemble, build_layout, expand_points
from .seed import initial_guess

logger = logging.getLogger(__name__)


def clamp_unknowns(domain: Domain, layout: OrbitLayout, x: np.ndarray) -> np.ndarray:
    """Project every orbit's arguments onto its feasible box; weights are free."""

    args, weights = layout.split(x)
    clamped = [domain.clamp_args(t, vec) for t, vec in zip(layout.orbit_types, args)]
    return layout.join(clamped, weights)


def unknown_bounds(domain: Domain, layout: OrbitLayout) -> Tuple[np.ndarray, np.ndarray]:
    lower = np.full(layout.nunknowns, -np.inf)
    upper = np.full(layout.nunknowns, np.inf)
    for orbit_type, off, n in zip(layout.orbit_types, layout.arg_offsets, layout.arg_counts):
        lower[off : off + n], upper[off : off + n] = domain.arg_bounds(orbit_type)
    return lower, upper


def _singular_reason(jac: np.ndarray, singular_tol: float) -> Optional[str]:
    if not np.all(np.isfinite(jac)):
        return "non-finite Jacobian"
    columns = np.linalg.norm(jac, axis=0)
    largest = float(columns.max()) if columns.size else 0.0
    if largest == 0.0:
        return "Jacobian vanishes identically"
    dead = np.flatnonzero(columns <= singular_tol * largest)
    if dead.size:
        return f"unknown(s) {dead.tolist()} have no influence on the residual"
    return None


def _damped_step(jac: np.ndarray, residual: np.ndarray, mu: float) -> np.ndarray:
    """Solve ``(J^T J + mu diag(J^T J)) d = -J^T r`` by Cholesky."""

    normal = jac.T @ jac
    lhs = normal + mu * np.diag(np.diag(normal))
    factor = cho_factor(lhs)
    return cho_solve(factor, -(jac.T @ residual))


def materialize_rule(
    domain: Domain, layout: OrbitLayout, degree: int, x: np.ndarray, residual_norm: float
) -> QuadratureRule:
    args, weights = layout.split(x)
    return QuadratureRule(
        domain=domain.name,
        degree=degree,
        selection=layout.selection,
        points=expand_points(domain, layout, args),
        weights=layout.point_weights(weights),
        orbit_types=list(layout.orbit_types),
        orbit_args=[vec.copy() for vec in args],
        orbit_weights=weights.copy(),
        residual_norm=float(residual_norm),
    )


def polish(
    domain: Domain, layout: OrbitLayout, degree: int, x: np.ndarray, residual_norm: float
) -> Tuple[np.ndarray, float]:
    """Refine a converged vector with a bounded trust-region least-squares pass.

    The refined vector is returned only when it does not increase the
    residual norm.
    """

    lower, upper = unknown_bounds(domain, layout)

    def fun(vec: np.ndarray) -> np.ndarray:
        return assemble(domain, layout, degree, vec, jacobian=False).residual

    def jac(vec: np.ndarray) -> np.ndarray:
        return assemble(domain, layout, degree, vec).jacobian

    try:
        result = least_squares(
            fun,
            x,
            jac=jac,
            bounds=(lower, upper),
            method="trf",
            xtol=1e-15,
            ftol=1e-15,
            gtol=1e-15,
            max_nfev=20,
        )
    except (ValueError, np.linalg.LinAlgError):
        logger.debug("polish: refinement failed", exc_info=True)
        return x, residual_norm

    candidate = clamp_unknowns(domain, layout, result.x)
    candidate_norm = float(np.linalg.norm(fun(candidate)))
    if np.isfinite(candidate_norm) and candidate_norm <= residual_norm:
        return candidate, candidate_norm
    return x, residual_norm


def run_trial(
    domain: Union[str, Domain],
    degree: int,
    selection: Sequence[int],
    rng: np.random.Generator,
    options: Optional[SolverOptions] = None,
    *,
    deadline: Optional[float] = None,
) -> TrialResult:
    """Run one seeded Levenberg-Marquardt search for the given orbit selection.

    ``deadline`` is an absolute :func:`time.monotonic` value checked between
    iterations.  Every numerical outcome is reported through
    ``TrialResult.status``; only malformed inputs raise.
    """

    domain = get_domain(domain)
    options = options or SolverOptions()
    options.validate()
    counts = as_selection(selection, domain.norbits)
    if not domain.validate_orbit_selection(counts):
        raise SelectionError(f"selection {counts} is not admissible for domain '{domain.name}'")
    domain.basis_indices(degree)

    layout = build_layout(domain, counts)
    status: TrialStatus = "seeded"
    x = clamp_unknowns(domain, layout, initial_guess(domain, layout, degree, rng))
    ev: ResidualEvaluation = assemble(domain, layout, degree, x)
    norm = ev.norm
    mu = options.damping
    stall = 0
    iterations = 0
    message = ""

    status = "iterating"
    while status == "iterating":
        if not np.isfinite(norm):
            status, message = "singular", "non-finite residual"
        elif norm <= options.tol:
            status = "converged"
        elif iterations >= options.max_iterations:
            status, message = "budget_exhausted", f"iteration cap {options.max_iterations} reached"
        elif deadline is not None and time.monotonic() >= deadline:
            status, message = "budget_exhausted", "wall-clock deadline reached"
        else:
            reason = _singular_reason(ev.jacobian, options.singular_tol)
            if reason is not None:
                status, message = "singular", reason
                break

            iterations += 1
            try:
                delta = _damped_step(ev.jacobian, ev.residual, mu)
            except np.linalg.LinAlgError:
                delta = None

            if delta is None or not np.all(np.isfinite(delta)):
                mu *= options.damping_increase
                if mu > options.max_damping:
                    status, message = "singular", "damped normal matrix is not positive definite"
                continue

            candidate = clamp_unknowns(domain, layout, x + delta)
            candidate_ev = assemble(domain, layout, degree, candidate)
            candidate_norm = candidate_ev.norm
            if np.isfinite(candidate_norm) and candidate_norm < norm:
                gain = (norm - candidate_norm) / norm
                x, ev, norm = candidate, candidate_ev, candidate_norm
                mu = max(mu * options.damping_decrease, options.min_damping)
                stall = 0 if gain >= options.stall_rtol else stall + 1
            else:
                mu *= options.damping_increase
                stall += 1
                if mu > options.max_damping:
                    status, message = "stalled", "damping limit exceeded"

            if status == "iterating" and stall >= options.stall_patience:
                status, message = "stalled", f"no progress in {stall} iteration(s)"

    rule = None
    if status == "converged":
        expired = deadline is not None and time.monotonic() >= deadline
        if options.polish and not expired:
            x, norm = polish(domain, layout, degree, x, norm)
        rule = materialize_rule(domain, layout, degree, x, norm)

    logger.debug(
        "run_trial: domain=%s degree=%d selection=%s status=%s iterations=%d norm=%.3e %s",
        domain.name,
        degree,
        counts,
        status,
        iterations,
        norm,
        message,
    )
    return TrialResult(
        status=status,
        selection=counts,
        x=x,
        residual_norm=float(norm),
        iterations=iterations,
        rule=rule,
        message=message,
    )


apply_debug_logging(
    globals(),
    logger=logger,
    skip={"clamp_unknowns", "unknown_bounds", "_damped_step", "_singular_reason"},
)


__all__ = [
    "clamp_unknowns",
    "materialize_rule",
    "polish",
    "run_trial",
    "unknown_bounds",
]
