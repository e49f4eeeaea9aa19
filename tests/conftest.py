import numpy as np
import pytest
from numpy.polynomial.legendre import leggauss
from scipy.special import roots_jacobi


def _tensor(*rules):
    grids = np.meshgrid(*[r[0] for r in rules], indexing="ij")
    weights = np.meshgrid(*[r[1] for r in rules], indexing="ij")
    pts = np.stack([g.ravel() for g in grids], axis=1)
    wts = np.prod(np.stack([w.ravel() for w in weights]), axis=0)
    return pts, wts


def _gauss_rule(name: str, n: int = 8):
    """Collapsed tensor Gauss rule exact far beyond the degrees used in tests."""

    gl = leggauss(n)
    if name == "quad":
        return _tensor(gl, gl)
    if name == "hex":
        return _tensor(gl, gl, gl)

    j1 = roots_jacobi(n, 1.0, 0.0)
    j2 = roots_jacobi(n, 2.0, 0.0)

    if name in ("tri", "pri"):
        raw, w = _tensor(gl, j1)
        a, b = raw.T
        x = 0.5 * (1.0 + a) * (1.0 - b) - 1.0
        pts, wts = np.stack([x, b], axis=1), 0.5 * w
        if name == "tri":
            return pts, wts
        z, wz = gl
        return (
            np.column_stack([np.repeat(pts, n, axis=0), np.tile(z, pts.shape[0])]),
            np.repeat(wts, n) * np.tile(wz, pts.shape[0]),
        )

    if name == "tet":
        raw, w = _tensor(gl, j1, j2)
        a, b, c = raw.T
        y = 0.5 * (1.0 + b) * (1.0 - c) - 1.0
        x = -0.5 * (1.0 + a) * (y + c) - 1.0
        return np.stack([x, y, c], axis=1), w / 8.0

    if name == "pyr":
        raw, w = _tensor(gl, gl, j2)
        a, b, c = raw.T
        s = 0.5 * (1.0 - c)
        return np.stack([a * s, b * s, c], axis=1), w / 4.0

    raise KeyError(name)


@pytest.fixture
def gauss_rule():
    return _gauss_rule
