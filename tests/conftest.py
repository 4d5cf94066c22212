"""
Test configuration and fixtures for Theme Palette tests.
"""
import numpy as np
import pytest
from PIL import Image

from themepalette.services.colors.models import PixelBuffer

FOUR_COLORS = [(0, 0, 0), (255, 255, 255), (10, 10, 10), (245, 245, 245)]


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from themepalette.utils.metrics import reset_metrics
    reset_metrics()


@pytest.fixture
def four_color_buffer():
    """2×2 buffer with two near-black and two near-white pixels."""
    return PixelBuffer.from_colors(2, 2, FOUR_COLORS)


@pytest.fixture
def four_color_png(tmp_path):
    """The 2×2 four-color image written as a PNG file."""
    path = tmp_path / "tiny.png"
    arr = np.array(FOUR_COLORS, dtype=np.uint8).reshape(2, 2, 3)
    Image.fromarray(arr).save(path)
    return path


@pytest.fixture
def noisy_buffer():
    """20×15 buffer of five base colors with small per-pixel noise."""
    rng = np.random.default_rng(1234)
    base = np.array([
        (200, 30, 40), (30, 160, 60), (20, 40, 180), (240, 240, 230), (15, 15, 20)
    ], dtype=np.int16)
    labels = rng.integers(0, len(base), size=20 * 15)
    noise = rng.integers(-4, 5, size=(20 * 15, 3))
    pixels = np.clip(base[labels] + noise, 0, 255).astype(np.uint8)
    return PixelBuffer(width=20, height=15, pixels=pixels)
