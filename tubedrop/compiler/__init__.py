"""
Segment-mode compiler.

Maps density levels to actuation values through a two-point calibration
and walks a segment set into the hardware step list.
"""

from tubedrop.compiler.calibration import (
    DEFAULT_PROFILE,
    CalibrationPreset,
    CalibrationProfile,
    SegmentParameters,
    derive_segment_parameters,
)
from tubedrop.compiler.steps import (
    DEFAULT_MAX_STEPS,
    EMPTY_SCHEDULE_DURATION_MS,
    MIN_STEP_DURATION_MS,
    REST_CH0,
    REST_CH1,
    ActuationStep,
    CompiledSchedule,
    StepError,
    compile_droplets,
    compile_segments,
    empty_schedule,
    segments_from_droplets,
    step_duration_ms,
)

__all__ = [
    "DEFAULT_PROFILE",
    "CalibrationPreset",
    "CalibrationProfile",
    "SegmentParameters",
    "derive_segment_parameters",
    "DEFAULT_MAX_STEPS",
    "EMPTY_SCHEDULE_DURATION_MS",
    "MIN_STEP_DURATION_MS",
    "REST_CH0",
    "REST_CH1",
    "ActuationStep",
    "CompiledSchedule",
    "StepError",
    "compile_droplets",
    "compile_segments",
    "empty_schedule",
    "segments_from_droplets",
    "step_duration_ms",
]
