from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from symquad import (
    DOMAINS,
    ArgumentLengthError,
    OrbitIndexError,
    PreconditionError,
    SelectionError,
    TetDomain,
    UnknownDomainError,
    get_domain,
)

DOMAIN_NAMES = ["quad", "tri", "hex", "tet", "pri", "pyr"]

ORBIT_TABLE = {
    "quad": [(1, 0), (4, 1), (4, 1), (8, 2)],
    "hex": [(1, 0), (6, 1), (8, 1), (12, 1), (24, 2), (24, 2), (48, 3)],
    "tri": [(1, 0), (3, 1), (6, 2)],
    "tet": [(1, 0), (4, 1), (6, 1), (12, 2), (24, 3)],
    "pri": [(1, 0), (2, 1), (3, 1), (6, 2), (6, 2), (12, 3)],
    "pyr": [(1, 1), (4, 2), (4, 2), (8, 3)],
}

VOLUMES = {"quad": 4.0, "hex": 8.0, "tri": 2.0, "tet": 4.0 / 3.0, "pri": 4.0, "pyr": 8.0 / 3.0}


def _matches(a: np.ndarray, b: np.ndarray, tol: float = 1e-12) -> bool:
    dist = np.linalg.norm(a[:, None, :] - b[None, :, :], axis=2)
    return bool(np.all(dist.min(axis=1) <= tol))


def test_registry_holds_every_domain():
    assert sorted(DOMAINS) == sorted(DOMAIN_NAMES)
    assert get_domain("HEX") is DOMAINS["hex"]
    assert get_domain(DOMAINS["tri"]) is DOMAINS["tri"]


def test_unknown_domain_raises():
    with pytest.raises(UnknownDomainError) as excinfo:
        get_domain("octahedron")
    assert isinstance(excinfo.value, KeyError)
    assert "octahedron" in str(excinfo.value)


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_orbit_tables(name):
    domain = get_domain(name)
    assert domain.volume == pytest.approx(VOLUMES[name])
    assert domain.scale == pytest.approx(np.sqrt(VOLUMES[name]))
    table = [(domain.point_count(i), domain.arg_count(i)) for i in range(domain.norbits)]
    assert table == ORBIT_TABLE[name]


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_expansion_emits_exactly_point_count_rows(name):
    domain = get_domain(name)
    rng = np.random.default_rng(1)
    for i in range(domain.norbits):
        for args in (
            rng.uniform(0.05, 0.95, size=domain.arg_count(i)),
            np.zeros(domain.arg_count(i)),
            np.ones(domain.arg_count(i)),
        ):
            pts = domain.expand_orbit(i, args)
            assert pts.shape == (domain.point_count(i), domain.dim)
            assert np.all(domain.contains(pts, 1e-12))


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_generic_images_are_distinct(name):
    domain = get_domain(name)
    rng = np.random.default_rng(2)
    for i in range(domain.norbits):
        pts = domain.expand_orbit(i, rng.uniform(0.1, 0.4, size=domain.arg_count(i)))
        dist = np.linalg.norm(pts[:, None, :] - pts[None, :, :], axis=2)
        np.fill_diagonal(dist, np.inf)
        assert dist.min() > 1e-6


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_orbits_are_closed_under_symmetry(name):
    domain = get_domain(name)
    rng = np.random.default_rng(4)
    generators = domain.symmetry_generators()
    assert generators
    for i in range(domain.norbits):
        pts = domain.expand_orbit(i, rng.uniform(0.0, 1.0, size=domain.arg_count(i)))
        for mat, shift in generators:
            assert _matches(pts @ mat.T + shift, pts)


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_symmetry_generators_preserve_the_domain(name):
    domain = get_domain(name)
    rng = np.random.default_rng(6)
    for mat, shift in domain.symmetry_generators():
        assert abs(np.linalg.det(mat)) == pytest.approx(1.0)
        for i in range(domain.norbits):
            pts = domain.expand_orbit(i, rng.uniform(size=domain.arg_count(i)))
            assert np.all(domain.contains(pts @ mat.T + shift, 1e-12))


def test_expand_orbit_writes_at_offset():
    hex_domain = get_domain("hex")
    out = np.full((10, 3), 7.0)
    hex_domain.expand_orbit(1, [0.5], 2, out)
    np.testing.assert_array_equal(out[:2], 7.0)
    np.testing.assert_array_equal(out[8:], 7.0)
    assert sorted(np.abs(out[2:8]).sum(axis=1)) == [0.5] * 6


def test_centroid_images_are_exact():
    np.testing.assert_array_equal(get_domain("hex").expand_orbit(0, []), [[0.0, 0.0, 0.0]])
    np.testing.assert_allclose(get_domain("tri").expand_orbit(0, []), [[-1.0 / 3.0, -1.0 / 3.0]])
    np.testing.assert_allclose(get_domain("tet").expand_orbit(0, []), [[-0.5, -0.5, -0.5]])


def test_hex_face_orbit_at_unit_argument():
    pts = get_domain("hex").expand_orbit(1, [1.0])
    expected = np.vstack([np.eye(3), -np.eye(3)])
    assert _matches(pts, expected) and _matches(expected, pts)


@pytest.mark.parametrize("index", [7, -1, 100, 1.5, "1", True])
def test_orbit_index_out_of_range(index):
    hex_domain = get_domain("hex")
    with pytest.raises(OrbitIndexError) as excinfo:
        hex_domain.point_count(index)
    assert isinstance(excinfo.value, IndexError)
    assert isinstance(excinfo.value, PreconditionError)
    with pytest.raises(OrbitIndexError):
        hex_domain.arg_count(index)
    with pytest.raises(OrbitIndexError):
        hex_domain.expand_orbit(index, [0.5])
    with pytest.raises(OrbitIndexError):
        hex_domain.seed_orbit(index, np.random.default_rng(0))
    with pytest.raises(OrbitIndexError):
        hex_domain.clamp_args(index, [0.5])
    with pytest.raises(OrbitIndexError):
        hex_domain.orbit_jacobian(index, [0.5])


def test_wrong_argument_length_raises():
    hex_domain = get_domain("hex")
    with pytest.raises(ArgumentLengthError):
        hex_domain.expand_orbit(6, [0.1, 0.2])
    with pytest.raises(ArgumentLengthError):
        hex_domain.clamp_args(1, [])
    with pytest.raises(ArgumentLengthError):
        hex_domain.expand_orbit(6, [0.1, 0.2, 0.3], 0, np.zeros((40, 3)))


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_clamp_is_a_projection(name):
    domain = get_domain(name)
    rng = np.random.default_rng(9)
    for i in range(domain.norbits):
        raw = rng.normal(0.5, 2.0, size=domain.arg_count(i))
        once = domain.clamp_args(i, raw)
        np.testing.assert_array_equal(domain.clamp_args(i, once), once)
        assert np.all((once >= 0.0) & (once <= 1.0))
        inside = rng.uniform(size=domain.arg_count(i))
        np.testing.assert_array_equal(domain.clamp_args(i, inside), inside)


def test_seed_orbit_uses_the_given_generator():
    tet = get_domain("tet")
    a = tet.seed_orbit(4, np.random.default_rng(123))
    b = tet.seed_orbit(4, np.random.default_rng(123))
    np.testing.assert_array_equal(a, b)
    assert a.shape == (3,)
    assert np.all((a >= 0.0) & (a <= 1.0))

    buf = np.empty(3)
    assert tet.seed_orbit(4, np.random.default_rng(123), buf) is buf
    np.testing.assert_array_equal(buf, a)
    with pytest.raises(ArgumentLengthError):
        tet.seed_orbit(4, np.random.default_rng(0), np.empty(2))


def test_selection_feasibility():
    hex_domain = get_domain("hex")
    assert hex_domain.validate_orbit_selection((1, 0, 0, 0, 0, 0, 0))
    assert hex_domain.validate_orbit_selection((1, 2, 0, 0, 0, 0, 1))
    assert not hex_domain.validate_orbit_selection((2, 0, 0, 0, 0, 0, 0))
    assert not hex_domain.validate_orbit_selection((0,) * 7)
    assert get_domain("pyr").validate_orbit_selection((3, 0, 0, 0))


def test_malformed_selection_raises():
    hex_domain = get_domain("hex")
    with pytest.raises(SelectionError):
        hex_domain.validate_orbit_selection((1, 0, 0))
    with pytest.raises(SelectionError):
        hex_domain.validate_orbit_selection((0, -1, 0, 0, 0, 0, 0))
    with pytest.raises(SelectionError):
        hex_domain.validate_orbit_selection((0, 1.5, 0, 0, 0, 0, 0))


def test_selection_counts():
    hex_domain = get_domain("hex")
    assert hex_domain.selection_point_count((1, 1, 0, 0, 0, 0, 1)) == 55
    assert hex_domain.selection_unknown_count((1, 1, 0, 0, 0, 0, 1)) == 1 + 2 + 4


@pytest.mark.parametrize("name", DOMAIN_NAMES)
def test_orbit_tables_are_read_only(name):
    domain = get_domain(name)
    for orbit in domain.orbits:
        assert not orbit.maps.flags.writeable
        if orbit.maps.size:
            with pytest.raises(ValueError):
                orbit.maps[0, 0, 0] = 5.0


def test_basis_index_cache_is_shared_across_threads():
    tet = TetDomain()
    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: tet.basis_indices(9), range(32)))
    assert all(indices is results[0] for indices in results)
    assert len(results[0]) == 220
