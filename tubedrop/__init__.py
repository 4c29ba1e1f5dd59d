"""
TubeDrop Package.

Drop schedule generation for a fluid-filled tube display.  A tube is fed
along an operator-drawn path over a target picture; droplets are
scheduled so that the ink laid down reproduces the picture's darkness.

Subpackages:
    path: Catmull-Rom smoothing, arc-length resampling, fill patterns
    sampling: Raster loading and ink intensity lookup
    synthesis: PWM / AM / DITHER droplet synthesis and full recompute
    segments: Operator-authored density regions along the tube
    compiler: Calibration and segment -> hardware step compilation
    export: JSON / CSV export, device messages, import validation
    configs: Schedule configuration loading and validation
"""

__version__ = "0.1.0"

__all__ = [
    "path",
    "sampling",
    "synthesis",
    "segments",
    "compiler",
    "export",
    "configs",
    "utils",
]
