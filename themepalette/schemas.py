"""
Theme Palette Report Schemas
Pydantic models describing the outcome of a palette run.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from themepalette.services.colors.models import Palette, rgb_to_hex


class PaletteEntry(BaseModel):
    """One ranked palette color."""
    rank: int = Field(..., ge=1, description="1-based rank, heaviest first")
    hex: str = Field(..., description="Lowercase #rrggbb color")
    rgb: List[int] = Field(..., min_length=3, max_length=3, description="RGB channel values")
    weight: int = Field(..., ge=0, description="Number of pixels represented by the color")
    ratio: float = Field(..., ge=0.0, le=1.0, description="Weight as a share of all pixels")


class RenderedArtifact(BaseModel):
    """A raster file written by the renderer."""
    name: str = Field(..., description="Artifact kind ('grouped', 'kmeans' or 'swatch')")
    path: str = Field(..., description="Output file path")
    width: int = Field(..., description="Image width in pixels")
    height: int = Field(..., description="Image height in pixels")


class PaletteReport(BaseModel):
    """Complete result of one palette extraction."""
    source: str = Field(..., description="Input image path")
    width: int = Field(..., description="Source image width in pixels")
    height: int = Field(..., description="Source image height in pixels")
    mean_color: str = Field(..., description="Per-channel truncated mean as #rrggbb")
    results: int = Field(..., ge=1, description="Requested palette size")
    distance: int = Field(..., ge=0, description="Grouping distance threshold")
    seed: Optional[int] = Field(None, description="Seed of the k-means random source, if any")
    kmeans_iterations: int = Field(..., description="Lloyd iterations until convergence")
    most_common: List[PaletteEntry] = Field(default_factory=list, description="Top exact colors")
    grouped: List[PaletteEntry] = Field(default_factory=list, description="Top distance-threshold groups")
    kmeans: List[PaletteEntry] = Field(default_factory=list, description="Centroids ranked by size")
    artifacts: List[RenderedArtifact] = Field(default_factory=list, description="Written images")


def palette_entries(palette: Palette, total_pixels: int) -> List[PaletteEntry]:
    """Convert a ranked palette into report entries."""
    return [
        PaletteEntry(
            rank=rank,
            hex=rgb_to_hex(entry.color),
            rgb=list(entry.color),
            weight=entry.weight,
            ratio=entry.weight / total_pixels if total_pixels else 0.0,
        )
        for rank, entry in enumerate(palette, start=1)
    ]


def _ranked_lines(title: str, entries: List[PaletteEntry]) -> List[str]:
    return [title] + [f"{entry.rank:>2}: {entry.hex}" for entry in entries]


def format_text_report(report: PaletteReport) -> str:
    """Render the plain-text report printed by the CLI."""
    lines = [f"Mean color: {report.mean_color}"]
    lines += _ranked_lines("Most common colors", report.most_common)
    lines += _ranked_lines("Grouped most common colors", report.grouped)
    lines += _ranked_lines("K-means colors", report.kmeans)
    return "\n".join(lines)
