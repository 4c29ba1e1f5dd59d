"""Segment -> actuation step compiler.

Walks a :class:`~tubedrop.segments.model.SegmentSet` from the tube start
and emits hardware-facing :class:`ActuationStep` records:

    gap before a segment  -> rest step   {ch0: 0, ch1: 70, duration(gap)}
    segment               -> active step {ch0, ch1, duration(segment)}
    remainder after last  -> rest step   {ch0: 0, ch1: 70, duration(rest)}

``duration(length_cm) = max(1000, round(length_cm * 10 / feed_speed * 1000))``
with feed speed in mm/s and duration in ms.

An empty segment set compiles to the single step ``{0, 70, 1500}``: the
device always needs at least one step.

Once ``max_steps`` steps have been emitted, the remaining segments are
dropped without error (``CompiledSchedule.truncated`` is set); the tail
of the tube is then covered by the trailing rest step.

Continuous-mode output can be compiled too: :func:`segments_from_droplets`
quantizes a droplet list into density regions first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tubedrop.compiler.calibration import (
    DEFAULT_PROFILE,
    CalibrationProfile,
    derive_segment_parameters,
)
from tubedrop.segments.model import MAX_DENSITY, Segment, SegmentSet
from tubedrop.synthesis.continuous import DropletRecord, SynthesisParams
from tubedrop.utils.compute import clamp, cm_to_mm, round_half_up

logger = logging.getLogger(__name__)

REST_CH0 = 0
REST_CH1 = 70
MIN_STEP_DURATION_MS = 1000
EMPTY_SCHEDULE_DURATION_MS = 1500
DEFAULT_MAX_STEPS = 100

# Drop positions closer than this (cm) to the previous region end are contiguous
_CONTIGUOUS_EPS_CM = 1e-9


class StepError(ValueError):
    """Raised when an actuation step violates the hardware contract."""

    pass


@dataclass(frozen=True, slots=True)
class ActuationStep:
    """One hardware actuation step.

    Parameters
    ----------
    ch0, ch1 : int
        Channel levels in [0, 100].
    duration_ms : int
        Step duration, >= 1 ms.
    """

    ch0: int
    ch1: int
    duration_ms: int

    def __post_init__(self) -> None:
        for name in ("ch0", "ch1"):
            val = getattr(self, name)
            if not 0 <= val <= 100:
                raise StepError(f"{name} must be in [0, 100], got {val}")
        if self.duration_ms < 1:
            raise StepError(f"duration_ms must be >= 1, got {self.duration_ms}")

    def to_dict(self) -> dict[str, Any]:
        """Export form ``{ch0, ch1, duration}``."""
        return {"ch0": self.ch0, "ch1": self.ch1, "duration": self.duration_ms}


@dataclass(frozen=True, slots=True)
class CompiledSchedule:
    """Result of a compilation.

    Parameters
    ----------
    steps : tuple[ActuationStep, ...]
        Ordered, non-empty step list.
    spans : tuple[tuple[float, float], ...]
        Tube interval ``[start_cm, end_cm)`` covered by each step.  Empty
        for the degenerate single-step schedule of an empty segment set.
    truncated : bool
        True when segments were dropped by the ``max_steps`` cap.
    """

    steps: tuple[ActuationStep, ...]
    spans: tuple[tuple[float, float], ...] = ()
    truncated: bool = False

    def __post_init__(self) -> None:
        if not self.steps:
            raise StepError("A compiled schedule must contain at least one step")

    @property
    def total_duration_ms(self) -> int:
        return sum(s.duration_ms for s in self.steps)


def step_duration_ms(length_cm: float, feed_speed_mm_s: float) -> int:
    """Duration of a step covering *length_cm* of tube (>= 1000 ms)."""
    return max(
        MIN_STEP_DURATION_MS,
        round_half_up(cm_to_mm(length_cm) / feed_speed_mm_s * 1000),
    )


def _rest_step(length_cm: float, feed_speed_mm_s: float) -> ActuationStep:
    return ActuationStep(
        ch0=REST_CH0,
        ch1=REST_CH1,
        duration_ms=step_duration_ms(length_cm, feed_speed_mm_s),
    )


def empty_schedule() -> CompiledSchedule:
    """The single rest step emitted when there is nothing to compile."""
    return CompiledSchedule(
        steps=(ActuationStep(ch0=REST_CH0, ch1=REST_CH1,
                             duration_ms=EMPTY_SCHEDULE_DURATION_MS),),
    )


def compile_segments(
    segment_set: SegmentSet,
    feed_speed_mm_s: float,
    profile: CalibrationProfile = DEFAULT_PROFILE,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> CompiledSchedule:
    """Compile a segment set into actuation steps.

    Parameters
    ----------
    segment_set : SegmentSet
        Non-overlapping, start-sorted density regions.
    feed_speed_mm_s : float
        Constant tube feed speed.
    profile : CalibrationProfile
        Sparse / dense calibration used to derive ``ch0`` and ``ch1``.
    max_steps : int
        Step count after which remaining segments are dropped.  The cap is
        checked before each segment, so the result holds at most
        ``max_steps + 2`` steps: the last compiled segment may add a gap
        step and its own step, and the trailing rest step always follows.

    Returns
    -------
    CompiledSchedule
        Steps tiling ``[0, tube_length_cm]`` (gaps + segments), or the
        single ``{0, 70, 1500}`` step for an empty set.
    """
    if not feed_speed_mm_s > 0:
        raise ValueError(f"feed_speed_mm_s must be > 0, got {feed_speed_mm_s}")
    if max_steps < 1:
        raise ValueError(f"max_steps must be >= 1, got {max_steps}")

    if not segment_set.segments:
        return empty_schedule()

    steps: list[ActuationStep] = []
    spans: list[tuple[float, float]] = []
    cursor = 0.0
    compiled = 0
    truncated = False

    for seg in segment_set.segments:
        if len(steps) >= max_steps:
            truncated = True
            break

        if seg.start_cm > cursor:
            steps.append(_rest_step(seg.start_cm - cursor, feed_speed_mm_s))
            spans.append((cursor, seg.start_cm))

        params = derive_segment_parameters(seg.density_level, profile)
        steps.append(ActuationStep(
            ch0=params.ch0,
            ch1=params.ch1,
            duration_ms=step_duration_ms(seg.length_cm, feed_speed_mm_s),
        ))
        spans.append((seg.start_cm, seg.end_cm))
        cursor = seg.end_cm
        compiled += 1

    if cursor < segment_set.tube_length_cm:
        steps.append(_rest_step(segment_set.tube_length_cm - cursor, feed_speed_mm_s))
        spans.append((cursor, segment_set.tube_length_cm))

    if truncated:
        logger.debug(
            "Step cap %d reached: dropped %d segment(s)",
            max_steps,
            len(segment_set.segments) - compiled,
        )

    return CompiledSchedule(steps=tuple(steps), spans=tuple(spans), truncated=truncated)


# ---------------------------------------------------------------------------
# Continuous-mode fallback
# ---------------------------------------------------------------------------


def _drop_strength(drop: DropletRecord, params: SynthesisParams) -> float:
    """Ink strength in [0, 1] carried by a droplet."""
    if params.mode == "PWM":
        width_range = params.width_max_mm - params.width_min_mm
        if width_range <= 0:
            return 0.0
        return clamp((drop.width_mm - params.width_min_mm) / width_range, 0, 1)
    return clamp(drop.amplitude, 0, 1)


def segments_from_droplets(
    drops: Sequence[DropletRecord],
    tube_length_cm: float,
    params: SynthesisParams,
) -> SegmentSet:
    """Quantize continuous-mode droplets into density regions.

    Each droplet covers ``[s_mm, s_mm + pitch)`` where the pitch is the
    emission spacing ``step_idx * sample_step_px * mm_per_pixel``,
    clipped to the next droplet and the tube end.  Its level is
    ``1 + round(9 * strength)`` (strength: normalized width for PWM,
    amplitude otherwise).  Droplets without ink become rest, and
    touching regions of equal level are merged.
    """
    pitch_cm = (params.step_idx * params.sample_step_px * params.mm_per_pixel) / 10
    ordered = sorted(drops, key=lambda d: d.s_mm)

    regions: list[Segment] = []
    for i, drop in enumerate(ordered):
        start = drop.s_mm / 10
        if start >= tube_length_cm:
            break
        strength = _drop_strength(drop, params)
        if strength <= 0:
            continue

        end = min(start + pitch_cm, tube_length_cm)
        if i + 1 < len(ordered):
            next_start = ordered[i + 1].s_mm / 10
            if next_start - end <= _CONTIGUOUS_EPS_CM:
                end = min(next_start, tube_length_cm)
        if not start < end:
            continue

        level = min(MAX_DENSITY, 1 + round_half_up(9 * strength))
        prev = regions[-1] if regions else None
        if (
            prev is not None
            and prev.density_level == level
            and abs(prev.end_cm - start) <= _CONTIGUOUS_EPS_CM
        ):
            regions[-1] = Segment(start_cm=prev.start_cm, end_cm=end, density_level=level)
        else:
            regions.append(Segment(start_cm=start, end_cm=end, density_level=level))

    return SegmentSet(tube_length_cm=tube_length_cm, segments=tuple(regions))


def compile_droplets(
    drops: Sequence[DropletRecord],
    tube_length_cm: float,
    params: SynthesisParams,
    profile: CalibrationProfile = DEFAULT_PROFILE,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> CompiledSchedule:
    """Compile a continuous-mode droplet list via :func:`segments_from_droplets`.

    Uses the continuous run's feed speed.  No droplets or a zero-length
    curve give the single-step empty schedule.
    """
    if not drops or not tube_length_cm > 0:
        return empty_schedule()
    segment_set = segments_from_droplets(drops, tube_length_cm, params)
    logger.info(
        "Quantized %d drops into %d regions", len(drops), len(segment_set),
    )
    return compile_segments(segment_set, params.feed_speed_mm_s, profile, max_steps)
