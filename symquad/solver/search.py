"""Combinatorial search for a minimal symmetric rule.

Candidate orbit selections are visited in tiers of equal point count.  Each
selection receives a fixed number of independently seeded solver trials; the
first acceptable trial in (tier, selection, trial) order wins, whether the
trials run inline or on a thread pool.
"""

from __future__ import annotations

import copy
import itertools
import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import numpy as np

from ..domains import Domain, get_domain
from ..types import OrbitSelection
from .config import get_default_search_options
from .model import SearchOptions, SearchResult, SolverOptions, TrialResult
from .seed import resolve_entropy, trial_rng
from .solver_core import run_trial

logger = logging.getLogger(__name__)

INSIDE_TOL = 1e-9

TrialKey = Tuple[int, int]


def orbit_selections(
    domain: Union[str, Domain], max_points: int, min_points: int = 1
) -> List[OrbitSelection]:
    """Admissible selections with ``min_points <= points <= max_points``.

    Ordered by point count, then unknown count, then the selection tuple.
    """

    domain = get_domain(domain)
    if max_points < 0 or min_points < 0:
        raise ValueError("point bounds must be non-negative")
    sizes = [domain.point_count(i) for i in range(domain.norbits)]
    found: List[OrbitSelection] = []

    def extend(prefix: List[int], npts: int) -> None:
        i = len(prefix)
        if i == len(sizes):
            selection = tuple(prefix)
            if npts >= min_points and domain.validate_orbit_selection(selection):
                found.append(selection)
            return
        limit = (max_points - npts) // sizes[i]
        if i == 0 and domain.has_centroid:
            limit = min(limit, 1)
        for n in range(limit + 1):
            prefix.append(n)
            extend(prefix, npts + n * sizes[i])
            prefix.pop()

    extend([], 0)
    found.sort(
        key=lambda s: (domain.selection_point_count(s), domain.selection_unknown_count(s), s)
    )
    return found


def orbit_decompositions(domain: Union[str, Domain], npts: int) -> List[OrbitSelection]:
    """Admissible selections with exactly ``npts`` points."""

    return orbit_selections(domain, npts, npts)


def rejection_reason(
    domain: Domain, result: TrialResult, positive_weights: bool
) -> Optional[str]:
    """Why a trial cannot be accepted, or None when it can."""

    if not result.converged or result.rule is None:
        return f"trial {result.status}"
    rule = result.rule
    if not np.all(domain.contains(rule.points, INSIDE_TOL)):
        return "rule has points outside the domain"
    if positive_weights and not np.all(rule.orbit_weights > 0.0):
        return "rule has non-positive weights"
    return None


@dataclass
class _SearchState:
    domain: Domain
    degree: int
    entropy: int
    solver: SolverOptions
    positive_weights: bool
    deadline: Optional[float]
    trials: int = 0
    statuses: Counter = field(default_factory=Counter)
    selections: Set[int] = field(default_factory=set)

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def attempt(self, index: int, selection: OrbitSelection, trial: int) -> Optional[TrialResult]:
        if self.expired():
            return None
        rng = trial_rng(self.entropy, index, trial)
        return run_trial(
            self.domain, self.degree, selection, rng, self.solver, deadline=self.deadline
        )

    def record(self, index: int, result: TrialResult) -> Optional[str]:
        self.trials += 1
        self.statuses[result.status] += 1
        self.selections.add(index)
        reason = rejection_reason(self.domain, result, self.positive_weights)
        if reason is not None and result.converged:
            logger.debug("Converged trial for %s rejected: %s", result.selection, reason)
        return reason


def _tiers(
    domain: Domain, selections: List[OrbitSelection]
) -> Iterable[Tuple[int, List[Tuple[int, OrbitSelection]]]]:
    indexed = list(enumerate(selections))

    def points(item: Tuple[int, OrbitSelection]) -> int:
        return domain.selection_point_count(item[1])

    for npts, group in itertools.groupby(indexed, key=points):
        yield npts, list(group)


def _run_tier_inline(
    state: _SearchState, tier: List[Tuple[int, OrbitSelection]], trials: int
) -> Tuple[Optional[TrialResult], bool]:
    for index, selection in tier:
        for trial in range(trials):
            result = state.attempt(index, selection, trial)
            if result is None:
                return None, True
            if state.record(index, result) is None:
                return result, False
            if state.expired():
                return None, True
    return None, False


def _run_tier_pooled(
    state: _SearchState,
    tier: List[Tuple[int, OrbitSelection]],
    trials: int,
    executor: ThreadPoolExecutor,
) -> Tuple[Optional[TrialResult], bool]:
    futures = {
        executor.submit(state.attempt, index, selection, trial): (position, trial, index)
        for position, (index, selection) in enumerate(tier)
        for trial in range(trials)
    }
    best: Optional[TrialResult] = None
    best_key: Optional[TrialKey] = None
    timed_out = False
    try:
        for future in as_completed(futures):
            if future.cancelled():
                continue
            position, trial, index = futures[future]
            result = future.result()
            if result is None:
                timed_out = True
                continue
            reason = state.record(index, result)
            key = (position, trial)
            if reason is not None or (best_key is not None and key > best_key):
                continue
            best, best_key = result, key
            for other, (other_pos, other_trial, _) in futures.items():
                if (other_pos, other_trial) > key:
                    other.cancel()
    finally:
        for future in futures:
            future.cancel()
    return best, timed_out and best is None


def find_rule(
    domain: Union[str, Domain], degree: int, options: Optional[SearchOptions] = None
) -> SearchResult:
    """Search for the rule of ``degree`` with the fewest points on ``domain``.

    Running out of candidates or time yields ``success=False``; malformed
    inputs raise.
    """

    domain = get_domain(domain)
    options = copy.deepcopy(options) if options is not None else get_default_search_options()
    options.validate()
    domain.basis_indices(degree)

    entropy = resolve_entropy(options.seed)
    deadline = time.monotonic() + options.time_limit if options.time_limit is not None else None
    state = _SearchState(
        domain=domain,
        degree=degree,
        entropy=entropy,
        solver=options.solver,
        positive_weights=options.positive_weights,
        deadline=deadline,
    )

    def finish(found: Optional[TrialResult], reason: str) -> SearchResult:
        statuses: Dict[str, int] = dict(state.statuses)
        return SearchResult(
            success=found is not None,
            domain=domain.name,
            degree=degree,
            rule=found.rule if found is not None else None,
            trials=state.trials,
            selections_tried=len(state.selections),
            reason=reason,
            seed_entropy=entropy,
            statuses=statuses,
        )

    # Selection indices are taken over the full list from one point upward so
    # that every selection keeps its random streams when min_points changes.
    selections = orbit_selections(domain, options.max_points)
    logger.info(
        "Searching degree %d rule on %s: %d candidate selection(s) up to %d points",
        degree,
        domain.name,
        len(selections),
        options.max_points,
    )

    executor = ThreadPoolExecutor(max_workers=options.workers) if options.workers > 1 else None
    try:
        for npts, tier in _tiers(domain, selections):
            if npts < options.min_points:
                continue
            if state.expired():
                logger.info("Time limit reached before the %d-point tier", npts)
                return finish(None, f"time limit of {options.time_limit}s reached")
            logger.info("Trying %d-point tier (%d selection(s))", npts, len(tier))
            if executor is None:
                found, timed_out = _run_tier_inline(state, tier, options.trials_per_selection)
            else:
                found, timed_out = _run_tier_pooled(
                    state, tier, options.trials_per_selection, executor
                )
            if found is not None:
                assert found.rule is not None
                logger.info(
                    "Found %d-point rule %s (residual %.3e) after %d trial(s)",
                    found.rule.npts,
                    found.selection,
                    found.residual_norm,
                    state.trials,
                )
                return finish(found, "converged")
            if timed_out:
                logger.info("Time limit reached in the %d-point tier", npts)
                return finish(None, f"time limit of {options.time_limit}s reached")
    finally:
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    logger.info(
        "No degree %d rule on %s with at most %d points (%d trial(s))",
        degree,
        domain.name,
        options.max_points,
        state.trials,
    )
    return finish(None, f"no rule found with at most {options.max_points} points")


__all__ = [
    "find_rule",
    "orbit_decompositions",
    "orbit_selections",
    "rejection_reason",
]
