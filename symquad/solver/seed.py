"""Trial seeding: independent random streams and starting vectors."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from ..domains import Domain
from .residual import OrbitLayout, expand_points, orbit_moment_matrix

logger = logging.getLogger(__name__)


def resolve_entropy(seed: Optional[int]) -> int:
    """Return the root entropy for a search; fresh OS entropy when ``seed`` is None."""

    return int(np.random.SeedSequence(seed).entropy)


def trial_rng(entropy: int, selection_index: int, trial: int) -> np.random.Generator:
    """Independent, reproducible stream for one (selection, trial) pair.

    The stream depends only on its spawn key, never on which other trials
    ran before it or on which worker executes it.
    """

    seq = np.random.SeedSequence(entropy, spawn_key=(int(selection_index), int(trial)))
    return np.random.default_rng(seq)


def seed_arguments(domain: Domain, layout: OrbitLayout, rng: np.random.Generator) -> List[np.ndarray]:
    return [domain.seed_orbit(orbit_type, rng) for orbit_type in layout.orbit_types]


def initial_weights(
    domain: Domain, layout: OrbitLayout, degree: int, args: List[np.ndarray]
) -> np.ndarray:
    """Least-squares orbit weights for fixed arguments.

    Falls back to spreading the volume evenly over the points when the
    linear solve does not produce finite weights.
    """

    points = expand_points(domain, layout, args)
    amat = orbit_moment_matrix(layout, domain.eval_basis(points, degree))
    try:
        weights, *_ = np.linalg.lstsq(amat, domain.reference_moments(degree), rcond=None)
    except np.linalg.LinAlgError:
        weights = None
    if weights is None or not np.all(np.isfinite(weights)) or not np.any(weights):
        logger.debug("initial_weights: least-squares weights unusable, using uniform split")
        weights = np.full(layout.norbits, domain.volume / layout.npts)
    return weights


def initial_guess(
    domain: Domain, layout: OrbitLayout, degree: int, rng: np.random.Generator
) -> np.ndarray:
    args = seed_arguments(domain, layout, rng)
    weights = initial_weights(domain, layout, degree, args)
    return layout.join(args, weights)


__all__ = [
    "initial_guess",
    "initial_weights",
    "resolve_entropy",
    "seed_arguments",
    "trial_rng",
]
