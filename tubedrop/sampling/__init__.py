"""Raster sampling: target picture -> ink intensity along the path."""

from tubedrop.sampling.raster import (
    adjust_raster,
    fit_raster,
    grayscale_at,
    ink_intensity,
    load_raster,
    sample_intensity,
)

__all__ = [
    "grayscale_at",
    "ink_intensity",
    "sample_intensity",
    "load_raster",
    "fit_raster",
    "adjust_raster",
]
