"""
Unit tests for the truncated RGB distance metric.
"""
import numpy as np

from themepalette.services.colors.distance import (
    MAX_DISTANCE, dist, distance_matrix, first_within, nearest_index
)


class TestDist:
    """Scalar distance"""

    def test_known_values(self):
        assert dist((0, 0, 0), (3, 4, 0)) == 5
        assert dist((0, 0, 0), (255, 255, 255)) == 441
        assert MAX_DISTANCE == 441

    def test_truncates_instead_of_rounding(self):
        # sqrt(3) = 1.73 and sqrt(2) = 1.41 both truncate to 1
        assert dist((0, 0, 0), (1, 1, 1)) == 1
        assert dist((0, 0, 0), (1, 1, 0)) == 1
        # sqrt(80) = 8.94
        assert dist((0, 0, 0), (4, 8, 0)) == 8

    def test_no_underflow_on_uint8_inputs(self):
        a = np.array([0, 0, 0], dtype=np.uint8)
        b = np.array([255, 0, 0], dtype=np.uint8)
        assert dist(a, b) == 255
        assert dist(b, a) == 255

    def test_symmetry_identity_non_negative(self):
        rng = np.random.default_rng(7)
        colors = rng.integers(0, 256, size=(50, 3))
        for a in colors:
            assert dist(a, a) == 0
            for b in colors[:10]:
                assert dist(a, b) == dist(b, a)
                assert dist(a, b) >= 0


class TestDistanceMatrix:
    """Vectorised distances"""

    def test_matches_scalar_metric(self):
        rng = np.random.default_rng(11)
        colors = rng.integers(0, 256, size=(40, 3)).astype(np.uint8)
        palette = rng.integers(0, 256, size=(6, 3)).astype(np.uint8)

        matrix = distance_matrix(colors, palette)

        assert matrix.shape == (40, 6)
        for i, c in enumerate(colors):
            for j, p in enumerate(palette):
                assert matrix[i, j] == dist(c, p)

    def test_perfect_squares_are_exact(self):
        colors = np.array([[0, 0, 0]], dtype=np.uint8)
        palette = np.array([[3, 4, 0], [6, 8, 0], [255, 255, 255]], dtype=np.uint8)
        np.testing.assert_array_equal(distance_matrix(colors, palette), [[5, 10, 441]])


class TestNearestIndex:
    """Nearest-entry selection and tie-breaking"""

    def test_unique_minimum(self):
        np.testing.assert_array_equal(nearest_index(np.array([[1, 2, 3], [9, 0, 4]])), [0, 1])

    def test_ties_prefer_later_entry(self):
        distances = np.array([[5, 3, 3], [4, 4, 4], [2, 2, 7]])
        np.testing.assert_array_equal(nearest_index(distances), [2, 2, 1])


class TestFirstWithin:
    """First entry strictly closer than a threshold"""

    def test_first_match_not_nearest(self):
        distances = np.array([[20, 10, 5]])
        np.testing.assert_array_equal(first_within(distances, 16), [1])

    def test_no_match_returns_minus_one(self):
        distances = np.array([[20, 30], [16, 16]])
        np.testing.assert_array_equal(first_within(distances, 16), [-1, -1])

    def test_zero_threshold_never_matches(self):
        distances = np.array([[0, 0]])
        np.testing.assert_array_equal(first_within(distances, 0), [-1])
