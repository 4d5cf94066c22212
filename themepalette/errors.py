"""
Theme Palette Errors
Typed failures raised by the palette pipeline.
"""


class PaletteError(Exception):
    """Base class for every failure of a palette run."""
    pass


class InvalidConfigurationError(PaletteError):
    """Raised when a setting is out of range before any processing starts."""
    pass


class ImageDecodeError(PaletteError):
    """Raised when the source image cannot be read or decoded."""
    pass


class DegenerateClusteringError(PaletteError):
    """
    Raised when k-means cannot produce a meaningful clustering.

    Covers requesting more clusters than distinct colors, a seeding pass with
    no remaining probability mass, and empty clusters in strict mode. Callers
    may reseed and retry.
    """
    pass


class OutputWriteError(PaletteError):
    """Raised when a rendered artifact cannot be encoded or written."""
    pass


class EmptyClusterError(DegenerateClusteringError):
    """Raised in strict mode when a centroid receives no pixels in an update round."""
    pass
