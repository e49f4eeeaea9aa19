import numpy as np
import pytest
from scipy.special import eval_jacobi, eval_legendre

from symquad.jacobi import jacobi_homogeneous, jacobi_homogeneous_with_derivatives, legendre


@pytest.mark.parametrize("alpha,beta", [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (5.0, 0.0), (0.5, 1.5)])
def test_matches_scipy_without_scaling(alpha, beta):
    x = np.linspace(-1.0, 1.0, 17)
    vals = jacobi_homogeneous(7, alpha, beta, x)
    assert vals.shape == (8, 17)
    for k in range(8):
        np.testing.assert_allclose(vals[k], eval_jacobi(k, alpha, beta, x), rtol=1e-12, atol=1e-12)


def test_legendre_matches_scipy():
    x = np.linspace(-1.0, 1.0, 11)
    vals = legendre(6, x)
    for k in range(7):
        np.testing.assert_allclose(vals[k], eval_legendre(k, x), atol=1e-13)


def test_homogeneous_form_equals_scaled_polynomial():
    rng = np.random.default_rng(3)
    s = rng.uniform(0.1, 1.0, size=9)
    x = s * rng.uniform(-1.0, 1.0, size=9)
    vals = jacobi_homogeneous(6, 3.0, 0.0, x, s)
    for k in range(7):
        expected = s**k * eval_jacobi(k, 3.0, 0.0, x / s)
        np.testing.assert_allclose(vals[k], expected, rtol=1e-11, atol=1e-13)


def test_homogeneous_form_is_finite_at_collapsed_point():
    vals, d_dx, d_ds = jacobi_homogeneous_with_derivatives(5, 1.0, 0.0, np.zeros(3), np.zeros(3))
    assert np.all(np.isfinite(vals))
    assert np.all(np.isfinite(d_dx))
    assert np.all(np.isfinite(d_ds))
    np.testing.assert_array_equal(vals[1:], 0.0)


def test_derivatives_match_finite_differences():
    rng = np.random.default_rng(11)
    x = rng.uniform(-0.8, 0.8, size=6)
    s = rng.uniform(0.2, 1.0, size=6)
    h = 1e-6
    _, d_dx, d_ds = jacobi_homogeneous_with_derivatives(5, 2.0, 0.0, x, s)
    fd_x = (jacobi_homogeneous(5, 2.0, 0.0, x + h, s) - jacobi_homogeneous(5, 2.0, 0.0, x - h, s)) / (2 * h)
    fd_s = (jacobi_homogeneous(5, 2.0, 0.0, x, s + h) - jacobi_homogeneous(5, 2.0, 0.0, x, s - h)) / (2 * h)
    np.testing.assert_allclose(d_dx, fd_x, rtol=1e-6, atol=1e-7)
    np.testing.assert_allclose(d_ds, fd_s, rtol=1e-6, atol=1e-7)


def test_negative_order_is_rejected():
    with pytest.raises(ValueError):
        jacobi_homogeneous(-1, 0.0, 0.0, 0.5)
