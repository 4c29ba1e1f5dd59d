"""
Continuous schedule synthesis module.

Turns the ink intensity sampled along the path into droplet events
(PWM / AM / DITHER) and wraps the full path + raster recompute.
"""

from tubedrop.synthesis.continuous import (
    DropletRecord,
    SynthesisMode,
    SynthesisParams,
    SynthesisResult,
    synthesize,
)
from tubedrop.synthesis.pipeline import (
    ContinuousSchedule,
    compute_schedule,
    empty_schedule,
)

__all__ = [
    "DropletRecord",
    "SynthesisMode",
    "SynthesisParams",
    "SynthesisResult",
    "synthesize",
    "ContinuousSchedule",
    "compute_schedule",
    "empty_schedule",
]
