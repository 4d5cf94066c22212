"""
Unit tests for the exact-color histogram and aggregates.
"""
import numpy as np
import pytest

from themepalette.services.colors.histogram import (
    build_histogram, mean_color, most_common, pack_colors, unique_colors, unpack_colors
)
from themepalette.services.colors.models import HistogramEntry, PixelBuffer


def test_histogram_counts_sorted_ascending():
    buffer = PixelBuffer.from_colors(3, 2, [
        (1, 1, 1), (2, 2, 2), (1, 1, 1), (3, 3, 3), (2, 2, 2), (1, 1, 1)
    ])

    histogram = build_histogram(buffer)

    assert histogram == [
        HistogramEntry((3, 3, 3), 1),
        HistogramEntry((2, 2, 2), 2),
        HistogramEntry((1, 1, 1), 3),
    ]
    assert sum(e.count for e in histogram) == len(buffer)


def test_histogram_ties_visit_ascending_color_in_reverse():
    buffer = PixelBuffer.from_colors(2, 2, [(5, 0, 0), (1, 0, 0), (5, 0, 0), (1, 0, 0)])

    ranked = most_common(build_histogram(buffer))

    assert [entry.color for entry in ranked] == [(1, 0, 0), (5, 0, 0)]


def test_most_common_truncates():
    buffer = PixelBuffer.from_colors(4, 1, [(9, 9, 9), (9, 9, 9), (8, 8, 8), (7, 7, 7)])

    top = most_common(build_histogram(buffer), 2)

    assert len(top) == 2
    assert top[0].color == (9, 9, 9)
    assert top[0].weight == 2


class TestMeanColor:
    """Truncating per-channel mean"""

    def test_mean_truncates(self):
        buffer = PixelBuffer.from_colors(3, 1, [(0, 0, 0), (1, 1, 1), (2, 2, 5)])
        assert mean_color(buffer) == (1, 1, 2)

    def test_mean_rounds_down_not_nearest(self):
        buffer = PixelBuffer.from_colors(2, 1, [(0, 0, 0), (1, 2, 3)])
        assert mean_color(buffer) == (0, 1, 1)

    def test_mean_matches_integer_division(self, noisy_buffer):
        expected = tuple(int(s) // len(noisy_buffer) for s in noisy_buffer.pixels.astype(np.int64).sum(axis=0))
        assert mean_color(noisy_buffer) == expected

    def test_mean_of_four_color_image(self, four_color_buffer):
        assert mean_color(four_color_buffer) == (127, 127, 127)


def test_pack_and_unpack_colors():
    pixels = np.array([[255, 0, 16], [1, 2, 3]], dtype=np.uint8)
    keys = pack_colors(pixels)
    assert list(keys) == [0xFF0010, 0x010203]
    np.testing.assert_array_equal(unpack_colors(keys), pixels)


def test_unique_colors_inverse_rebuilds_pixels(noisy_buffer):
    colors, counts, inverse = unique_colors(noisy_buffer.pixels)
    np.testing.assert_array_equal(colors[inverse], noisy_buffer.pixels)
    assert counts.sum() == len(noisy_buffer)


def test_pixel_buffer_rejects_mismatched_shape():
    with pytest.raises(ValueError):
        PixelBuffer(width=2, height=2, pixels=np.zeros((3, 3), dtype=np.uint8))
