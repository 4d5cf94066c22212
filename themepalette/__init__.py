"""
Theme Palette

Extracts a representative color palette from an image with a greedy
distance-threshold grouper and a seeded k-means clusterer, and renders
quantized images plus a swatch chart for comparison.
"""

__version__ = "1.0.0"
