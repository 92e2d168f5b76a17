"""
Tests for the distance functions.

Covers identity, non-negativity, Minkowski consistency and the handling of
missing cells.
"""

import numpy as np
import pytest

from distances import (Minkowski, Euclidean, Manhattan, Cosine, Correlation,
                       get_distance_function, as_vector)
from errors import ShapeMismatch


METRICS = [Euclidean(), Manhattan(), Minkowski(1), Minkowski(2), Minkowski(3), Minkowski(7)]


@pytest.fixture
def samples():
    rng = np.random.RandomState(7)
    return rng.randn(20, 6) * 5


class TestMinkowskiFamily:

    @pytest.mark.parametrize('metric', METRICS, ids=repr)
    def test_identity(self, metric, samples):
        for a in samples:
            assert metric.distance(a, a) == 0.0

    @pytest.mark.parametrize('metric', METRICS, ids=repr)
    def test_non_negative(self, metric, samples):
        for a in samples:
            for b in samples:
                assert metric.distance(a, b) >= 0.0

    def test_euclidean_is_minkowski_2(self, samples):
        columns = [0, 2, 3, 5]
        for a in samples:
            for b in samples:
                assert Euclidean().distance(a, b) == Minkowski(2).distance(a, b)
                assert Euclidean().distance(a, b, columns) == Minkowski(2).distance(a, b, columns)

    def test_manhattan_is_minkowski_1(self, samples):
        columns = [1, 4]
        for a in samples:
            for b in samples:
                assert Manhattan().distance(a, b) == Minkowski(1).distance(a, b)
                assert Manhattan().distance(a, b, columns) == Minkowski(1).distance(a, b, columns)

    def test_known_values(self):
        a = [0, 0, 0]
        b = [3, 4, 0]
        assert Euclidean().distance(a, b) == pytest.approx(5.0)
        assert Manhattan().distance(a, b) == pytest.approx(7.0)
        assert Minkowski(3).distance(a, b) == pytest.approx((27 + 64) ** (1 / 3))

    def test_absolute_differences_for_odd_powers(self):
        """Negative differences must not cancel positive ones."""
        assert Minkowski(3).distance([0, 0], [1, -1]) == pytest.approx(2 ** (1 / 3))

    def test_included_columns(self):
        a = [1, 100, 1]
        b = [4, -100, 5]
        assert Euclidean().distance(a, b, [0, 2]) == pytest.approx(5.0)
        assert Euclidean().distance(a, b, []) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            Euclidean().distance([1, 2], [1, 2, 3])

    @pytest.mark.parametrize('p', [0, -1, 1.5, 'two', True])
    def test_invalid_power(self, p):
        with pytest.raises(ValueError):
            Minkowski(p)

    def test_integral_float_power(self):
        assert Minkowski(3.0) == Minkowski(3)


class TestMissingValues:

    def test_missing_cell_removes_its_term(self):
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([4.0, 6.0, 8.0])
        b_missing = b.copy()
        b_missing[1] = np.nan

        full = Manhattan().distance(a, b)
        reduced = Manhattan().distance(a, b_missing)
        assert full - reduced == pytest.approx(abs(a[1] - b[1]))

        full = Euclidean().distance(a, b)
        reduced = Euclidean().distance(a, b_missing)
        assert full ** 2 - reduced ** 2 == pytest.approx((a[1] - b[1]) ** 2)

    def test_missing_on_either_side(self):
        a = [np.nan, 2.0, 3.0]
        b = [4.0, 6.0, np.nan]
        assert Manhattan().distance(a, b) == pytest.approx(4.0)

    def test_none_and_strings_are_missing(self):
        a = [1.0, None, 'text', 2.0]
        b = [2.0, 5.0, 7.0, 4.0]
        assert Manhattan().distance(a, b) == pytest.approx(3.0)
        assert np.isnan(as_vector(a)[1])
        assert np.isnan(as_vector(a)[2])

    def test_all_missing_is_zero(self):
        a = [np.nan, np.nan]
        b = [1.0, 2.0]
        for metric in METRICS:
            assert metric.distance(a, b) == 0.0


class TestVectorized:

    @pytest.mark.parametrize('metric', [Euclidean(), Manhattan(), Minkowski(3), Cosine(), Correlation()], ids=repr)
    def test_pairwise_matches_distance(self, metric, samples):
        data = samples[:8].copy()
        data[2, 1] = np.nan
        data[5, :] = np.nan

        d = metric.pairwise(data)
        assert d.shape == (8, 8)
        assert np.all(np.diag(d) == 0)
        for i in range(8):
            for j in range(8):
                if i != j:
                    assert d[i, j] == pytest.approx(metric.distance(data[i], data[j]), abs=1e-12)

    def test_to_all(self, samples):
        d = Euclidean().to_all(samples, 3)
        assert d[3] == 0.0
        np.testing.assert_allclose(d, np.linalg.norm(samples - samples[3], axis=1))

    def test_pairwise_is_symmetric(self, samples):
        d = Minkowski(3).pairwise(samples)
        np.testing.assert_array_equal(d, d.T)


class TestOtherDistances:

    def test_cosine(self):
        assert Cosine().distance([1, 0], [0, 1]) == pytest.approx(1.0)
        assert Cosine().distance([1, 1], [2, 2]) == pytest.approx(0.0, abs=1e-12)
        assert Cosine().distance([1, 0], [-1, 0]) == pytest.approx(2.0)

    def test_cosine_zero_length(self):
        assert Cosine().distance([0, 0], [1, 2]) == 1.0
        assert Cosine(offset=2.0).distance([0, 0], [1, 2]) == 2.0

    def test_correlation(self):
        assert Correlation().distance([1, 2, 3], [2, 4, 6]) == pytest.approx(0.0, abs=1e-12)
        assert Correlation().distance([1, 2, 3], [3, 2, 1]) == pytest.approx(2.0)
        assert Correlation(absolute=True).distance([1, 2, 3], [3, 2, 1]) == pytest.approx(2.0)
        assert Correlation(offset=0.0, absolute=True).distance([1, 2, 3], [3, 2, 1]) == pytest.approx(1.0)

    def test_correlation_is_non_negative(self):
        assert Correlation(offset=0.5).distance([1, 2, 3], [2, 4, 6]) == 0.0
        assert Correlation(offset=0.5).distance([1, 2, 3], [3, 2, 1]) == pytest.approx(1.5)
        assert Correlation(offset=0.5, absolute=True).distance([1, 2, 3], [2, 4, 6]) == pytest.approx(0.5)

    def test_correlation_constant(self):
        assert Correlation().distance([1, 1, 1], [1, 2, 3]) == 1.0
        assert Correlation().distance([1, np.nan], [1, 2]) == 1.0


class TestEquality:

    def test_same_metric_is_equal(self):
        assert Euclidean() == Euclidean()
        assert Manhattan() == Manhattan()
        assert Minkowski(3) == Minkowski(3)
        assert Cosine() == Cosine()

    def test_different_metrics_are_not_equal(self):
        assert Minkowski(2) != Minkowski(3)
        assert Euclidean() != Manhattan()
        assert Euclidean() != Minkowski(2)
        assert Cosine(1.0) != Cosine(2.0)

    def test_deduplication(self):
        metrics = {Euclidean(), Euclidean(), Minkowski(3), Minkowski(3), Minkowski(4)}
        assert len(metrics) == 3


class TestRegistry:

    def test_lookup(self):
        assert get_distance_function('euclidean') == Euclidean()
        assert get_distance_function('Manhattan') == Manhattan()
        assert get_distance_function('minkowski', 4) == Minkowski(4)
        assert get_distance_function('minkowski') == Minkowski(2)
        assert get_distance_function('cosine') == Cosine()

    def test_instances_pass_through(self):
        metric = Minkowski(5)
        assert get_distance_function(metric) is metric

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_distance_function('hamming')
