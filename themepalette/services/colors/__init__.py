"""
Theme Palette Colors Module

Provides the distance metric, exact-color histogram, distance-threshold
grouping, seeded k-means clustering, quantization and swatch rendering.
"""

__version__ = "1.0.0"
