"""Full continuous-mode recompute: path + raster -> drop schedule.

Every call re-derives the whole schedule from its inputs; nothing is
cached or updated incrementally.  Steps:

    1. Catmull-Rom smoothing (``samples_per_segment`` per control pair)
    2. Uniform resampling every ``max(1, sample_step_px)`` pixels
    3. Ink intensity ``1 - luma`` under each sample
    4. PWM / AM / DITHER synthesis

A missing raster or a path with fewer than two control points is not an
error: the result is an empty schedule.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from tubedrop.path.spline import Point, resample_uniform, sample_spline
from tubedrop.sampling.raster import sample_intensity
from tubedrop.synthesis.continuous import (
    DropletRecord,
    SynthesisParams,
    synthesize,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContinuousSchedule:
    """Derived continuous-mode outputs for one set of inputs.

    Parameters
    ----------
    uniform_path : tuple[Point, ...]
        Arc-length resampled path (canvas px).
    intensity : tuple[float, ...]
        Target ink per uniform sample.
    signal : tuple[float, ...]
        Synthesized signal per uniform sample.
    drops : tuple[DropletRecord, ...]
        Scheduled droplets.
    params : SynthesisParams
        Settings the schedule was derived with.
    """

    uniform_path: tuple[Point, ...]
    intensity: tuple[float, ...]
    signal: tuple[float, ...]
    drops: tuple[DropletRecord, ...]
    params: SynthesisParams

    @property
    def is_empty(self) -> bool:
        return not self.uniform_path

    @property
    def curve_length_mm(self) -> float:
        """Exported curve length: ``samples * sample_step_px * mm_per_pixel``."""
        return (len(self.uniform_path) * self.params.sample_step_px) * self.params.mm_per_pixel


def empty_schedule(params: SynthesisParams) -> ContinuousSchedule:
    return ContinuousSchedule(
        uniform_path=(), intensity=(), signal=(), drops=(), params=params,
    )


def compute_schedule(
    points: Sequence[Point],
    raster: np.ndarray | None,
    params: SynthesisParams,
    samples_per_segment: int = 24,
) -> ContinuousSchedule:
    """Derive the continuous drop schedule for a path over a target image.

    Parameters
    ----------
    points : Sequence[Point]
        Operator control points (canvas px), in feed order.
    raster : np.ndarray | None
        Target image in the canvas frame; ``None`` when nothing is loaded.
    params : SynthesisParams
        Scale and waveform settings.
    samples_per_segment : int
        Spline samples per control-point pair.

    Returns
    -------
    ContinuousSchedule
        Empty when *raster* is ``None`` or fewer than 2 points are given.
    """
    if raster is None or len(points) < 2:
        logger.debug(
            "No schedule: raster=%s, points=%d",
            "absent" if raster is None else "present", len(points),
        )
        return empty_schedule(params)

    smooth = sample_spline(points, samples_per_segment)
    uniform = resample_uniform(smooth, max(1, params.sample_step_px))
    intensity = sample_intensity(raster, uniform)
    result = synthesize(intensity, params)

    logger.info(
        "Recomputed schedule: %d samples, %d drops (mode=%s)",
        len(uniform), len(result.drops), params.mode,
    )
    return ContinuousSchedule(
        uniform_path=tuple(uniform),
        intensity=tuple(intensity),
        signal=result.signal,
        drops=result.drops,
        params=params,
    )
