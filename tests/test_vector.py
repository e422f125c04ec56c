import numpy as np
import pytest

from kitesim.utils import vector as vec


def test_normalize_unit_length():
    n = vec.normalize([3.0, 4.0, 0.0])
    assert np.allclose(n, [0.6, 0.8, 0.0])
    assert vec.magnitude(n) == pytest.approx(1.0)


@pytest.mark.parametrize("v", [
    [0.0, 0.0, 0.0],
    [1e-6, 0.0, 0.0],
    [np.nan, 1.0, 0.0],
    [np.inf, 0.0, 0.0],
])
def test_normalize_degenerate_is_zero(v):
    n = vec.normalize(v)
    assert np.all(np.isfinite(n))
    assert np.array_equal(n, np.zeros(3))


def test_normalize_never_nan_on_random_inputs():
    rng = np.random.default_rng(3)
    for _ in range(200):
        v = rng.normal(size=3) * 10.0 ** rng.integers(-8, 8)
        assert not np.any(np.isnan(vec.normalize(v)))


def test_basic_operations():
    a = vec.vector(1.0, 2.0, 3.0)
    b = vec.vector(-1.0, 0.5, 2.0)
    assert np.allclose(vec.add(a, b), [0.0, 2.5, 5.0])
    assert np.allclose(vec.subtract(a, b), [2.0, 1.5, 1.0])
    assert np.allclose(vec.scale(a, 2.0), [2.0, 4.0, 6.0])
    assert vec.dot(a, b) == pytest.approx(-1.0 + 1.0 + 6.0)
    assert np.allclose(vec.cross([1, 0, 0], [0, 1, 0]), [0, 0, 1])
    assert vec.distance(a, a) == 0.0
    assert vec.distance([0, 0, 0], [0, 3, 4]) == pytest.approx(5.0)


def test_inputs_not_mutated():
    a = np.array([3.0, 4.0, 0.0])
    vec.normalize(a)
    vec.clamp_magnitude(a, 1.0)
    assert np.array_equal(a, [3.0, 4.0, 0.0])


def test_clamp_magnitude():
    assert vec.magnitude(vec.clamp_magnitude([30.0, 40.0, 0.0], 20.0)) == pytest.approx(20.0)
    assert np.array_equal(vec.clamp_magnitude([1.0, 0.0, 0.0], 20.0), [1.0, 0.0, 0.0])


def test_as_vector_shape():
    with pytest.raises(ValueError):
        vec.as_vector([1.0, 2.0])
    assert vec.is_finite([1.0, 2.0, 3.0])
    assert not vec.is_finite([1.0, np.nan, 3.0])
