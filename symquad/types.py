from __future__ import annotations

from typing import Callable, Sequence, Tuple

import numpy as np

OrbitSelection = Tuple[int, ...]
BasisIndex = Tuple[int, ...]
AffineMap = Tuple[np.ndarray, np.ndarray]
GeneratorFunc = Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]


class PreconditionError(RuntimeError):
    """Raised when a descriptor or driver is wired with invalid inputs.

    These errors signal a programming defect, not a numerical failure, and
    are never caught by the search driver.
    """


class OrbitIndexError(PreconditionError, IndexError):
    """Raised for an orbit type index outside ``range(domain.norbits)``."""

    def __init__(self, domain: str, index: object, norbits: int):
        super().__init__(
            f"orbit index {index!r} out of range for domain '{domain}' "
            f"(valid: 0..{norbits - 1})"
        )
        self.domain = domain
        self.index = index


class ArgumentLengthError(PreconditionError, ValueError):
    """Raised when an argument vector does not match the orbit's arity."""


class SelectionError(PreconditionError, ValueError):
    """Raised for a malformed orbit-selection vector."""


class UnknownDomainError(PreconditionError, KeyError):
    """Raised when a domain name is not one of the registered shapes."""

    def __str__(self) -> str:  # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ""


def as_selection(selection: Sequence[int], norbits: int) -> OrbitSelection:
    """Return ``selection`` as a tuple of ints or raise :class:`SelectionError`."""

    try:
        values = tuple(selection)
    except TypeError as exc:
        raise SelectionError(f"orbit selection must be a sequence, got {selection!r}") from exc
    if len(values) != norbits:
        raise SelectionError(
            f"orbit selection has {len(values)} entries, expected {norbits}"
        )
    out = []
    for value in values:
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
            raise SelectionError(f"orbit multiplicities must be integers, got {value!r}")
        if value < 0:
            raise SelectionError(f"orbit multiplicities must be non-negative, got {value!r}")
        out.append(int(value))
    return tuple(out)


__all__ = [
    "OrbitSelection",
    "BasisIndex",
    "AffineMap",
    "GeneratorFunc",
    "PreconditionError",
    "OrbitIndexError",
    "ArgumentLengthError",
    "SelectionError",
    "UnknownDomainError",
    "as_selection",
]
