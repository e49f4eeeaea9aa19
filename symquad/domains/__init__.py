"""Reference domains with their symmetry-orbit tables.

The set of shapes is closed: ``DOMAINS`` maps each short name to a shared,
immutable descriptor instance.
"""

from __future__ import annotations

from typing import Dict, Union

from ..types import UnknownDomainError
from .base import Domain, Orbit
from .hypercube import HexDomain, QuadDomain
from .prism import PriDomain
from .pyramid import PyrDomain
from .simplex import TetDomain, TriDomain

DOMAINS: Dict[str, Domain] = {
    domain.name: domain
    for domain in (
        QuadDomain(),
        TriDomain(),
        HexDomain(),
        TetDomain(),
        PriDomain(),
        PyrDomain(),
    )
}


def get_domain(domain: Union[str, Domain]) -> Domain:
    """Return the registered descriptor for ``domain`` (name or instance)."""

    if isinstance(domain, Domain):
        return domain
    try:
        return DOMAINS[str(domain).lower()]
    except KeyError as exc:
        raise UnknownDomainError(
            f"unknown domain {domain!r}; expected one of {', '.join(sorted(DOMAINS))}"
        ) from exc


__all__ = [
    "DOMAINS",
    "Domain",
    "HexDomain",
    "Orbit",
    "PriDomain",
    "PyrDomain",
    "QuadDomain",
    "TetDomain",
    "TriDomain",
    "get_domain",
]
