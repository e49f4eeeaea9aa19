import numpy as np
import pytest

from symquad import get_domain
from symquad.basis import hypercube_indices, prism_indices, pyramid_indices, simplex_indices

DOMAIN_NAMES = ["quad", "tri", "hex", "tet", "pri", "pyr"]


def _interior_points(domain, rng, count=7):
    pts = []
    for _ in range(count):
        i = int(rng.integers(domain.norbits))
        args = rng.uniform(0.1, 0.9, size=domain.arg_count(i))
        pts.append(domain.expand_orbit(i, args)[0])
    return np.array(pts)


def test_hypercube_indices_are_even_and_sorted():
    assert hypercube_indices(3, 3) == ((0, 0, 0), (0, 0, 2))
    assert hypercube_indices(3, 5) == ((0, 0, 0), (0, 0, 2), (0, 0, 4), (0, 2, 2))
    assert hypercube_indices(2, 5) == ((0, 0), (0, 2), (0, 4), (2, 2))


@pytest.mark.parametrize("degree", range(0, 7))
def test_simplex_index_counts(degree):
    assert len(simplex_indices(2, degree)) == (degree + 1) * (degree + 2) // 2
    assert len(simplex_indices(3, degree)) == (degree + 1) * (degree + 2) * (degree + 3) // 6


def test_prism_and_pyramid_index_sets():
    assert len(prism_indices(2)) == 7
    assert all(k % 2 == 0 for _, _, k in prism_indices(6))
    assert pyramid_indices(2) == ((0, 0, 0), (0, 0, 1), (0, 0, 2), (0, 2, 0))
    assert all(i % 2 == 0 and j % 2 == 0 and i <= j for i, j, _ in pyramid_indices(8))


def test_basis_count_rejects_negative_degree():
    with pytest.raises(ValueError):
        get_domain("hex").basis_count(-1)


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_basis_is_orthonormal(name, gauss_rule):
    domain = get_domain(name)
    pts, wts = gauss_rule(name, 9)
    vals = domain.eval_basis(pts, 6)
    gram = vals.T @ (wts[:, None] * vals)
    np.testing.assert_allclose(gram, np.eye(vals.shape[1]), atol=1e-11)


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_reference_moments_match_quadrature(name, gauss_rule):
    domain = get_domain(name)
    pts, wts = gauss_rule(name, 8)
    exact = domain.eval_basis(pts, 5).T @ wts
    np.testing.assert_allclose(exact, domain.reference_moments(5), atol=1e-12)
    assert domain.reference_moments(5)[0] == pytest.approx(np.sqrt(domain.volume))


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_evaluation_is_deterministic(name):
    domain = get_domain(name)
    pts = _interior_points(domain, np.random.default_rng(5))
    first = domain.eval_basis_with_gradient(pts, 5)
    second = domain.eval_basis_with_gradient(pts, 5)
    np.testing.assert_array_equal(first[0], second[0])
    np.testing.assert_array_equal(first[1], second[1])
    np.testing.assert_array_equal(domain.eval_basis(pts, 5), first[0])


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_gradient_matches_finite_differences(name):
    domain = get_domain(name)
    pts = _interior_points(domain, np.random.default_rng(8), count=4)
    _, grads = domain.eval_basis_with_gradient(pts, 5)
    h = 1e-6
    for d in range(domain.dim):
        step = np.zeros(domain.dim)
        step[d] = h
        fd = (domain.eval_basis(pts + step, 5) - domain.eval_basis(pts - step, 5)) / (2 * h)
        np.testing.assert_allclose(grads[:, :, d], fd, rtol=1e-5, atol=1e-6)


def test_collapsed_vertices_evaluate_finitely():
    apex = np.array([[0.0, 0.0, 1.0]])
    vals, grads = get_domain("pyr").eval_basis_with_gradient(apex, 6)
    assert np.all(np.isfinite(vals)) and np.all(np.isfinite(grads))

    top = np.array([[-1.0, -1.0, 1.0]])
    vals, grads = get_domain("tet").eval_basis_with_gradient(top, 6)
    assert np.all(np.isfinite(vals)) and np.all(np.isfinite(grads))

    corner = np.array([[-1.0, 1.0]])
    vals, grads = get_domain("tri").eval_basis_with_gradient(corner, 6)
    assert np.all(np.isfinite(vals)) and np.all(np.isfinite(grads))


def test_point_matrix_shape_is_checked():
    with pytest.raises(ValueError):
        get_domain("hex").eval_basis(np.zeros((3, 2)), 2)
