"""
Path geometry module.

Catmull-Rom smoothing, arc-length resampling, and fill-pattern
generators for the operator's tube path.  Coordinates are canvas pixels.
"""

from tubedrop.path.patterns import (
    PatternParams,
    generate_pattern,
    parallel,
    physical_pattern_params,
    wave,
    zigzag,
)
from tubedrop.path.spline import (
    Point,
    evaluate_spline,
    polyline_length,
    resample_uniform,
    sample_spline,
)

__all__ = [
    "Point",
    "evaluate_spline",
    "sample_spline",
    "polyline_length",
    "resample_uniform",
    "PatternParams",
    "physical_pattern_params",
    "zigzag",
    "parallel",
    "wave",
    "generate_pattern",
]
