"""Schedule serialization and import validation.

Continuous mode
    ``drop_schedule.json`` / ``drop_schedule.csv``: droplet records with
    rounded positions, times and widths plus the physical constraints the
    schedule was synthesized under.

Segment mode
    ``{tubeLengthCm, segments, ehdSteps, calibration, timestamp}``.  The
    ``ehdSteps`` list is the authoritative hardware schedule.

Import accepts a segment-mode document.  Unparsable or structurally
unusable input fails as a whole with :class:`ScheduleImportError`;
individual invalid steps are filtered out.  A document without a step
list is compiled from its embedded segments and calibration.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from tubedrop.compiler.calibration import (
    DEFAULT_PROFILE,
    CalibrationPreset,
    CalibrationProfile,
)
from tubedrop.compiler.steps import (
    DEFAULT_MAX_STEPS,
    ActuationStep,
    CompiledSchedule,
    compile_segments,
)
from tubedrop.configs.loader import load_config
from tubedrop.export.schemas import (
    CalibrationModel,
    PresetModel,
    SegmentModel,
    SegmentScheduleFile,
    StepModel,
)
from tubedrop.segments.model import Segment, SegmentError, SegmentSet
from tubedrop.synthesis.pipeline import ContinuousSchedule
from tubedrop.utils.compute import round_half_up, to_fixed
from tubedrop.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

CSV_HEADER = ("s_mm", "t_ms", "width_mm", "amplitude")


class ScheduleImportError(Exception):
    """Raised when an imported schedule cannot be used at all."""

    pass


# ---------------------------------------------------------------------------
# Continuous mode
# ---------------------------------------------------------------------------


def continuous_schedule_payload(schedule: ContinuousSchedule) -> dict[str, Any]:
    """JSON-ready continuous schedule.

    Drop fields are rounded to 3 / 2 / 3 / 3 decimals
    (``s_mm`` / ``t_ms`` / ``width_mm`` / ``amplitude``).
    """
    params = schedule.params
    return {
        "curve_length_mm": schedule.curve_length_mm,
        "feed_speed_mm_per_s": params.feed_speed_mm_s,
        "drops": [
            {
                "s_mm": float(to_fixed(d.s_mm, 3)),
                "t_ms": float(to_fixed(d.t_ms, 2)),
                "width_mm": float(to_fixed(d.width_mm, 3)),
                "amplitude": float(to_fixed(d.amplitude, 3)),
            }
            for d in schedule.drops
        ],
        "constraints": {
            "min_spacing_mm": params.min_spacing_mm,
            "width_range_mm": [params.width_min_mm, params.width_max_mm],
            "diffusion_sigma_mm": params.diffusion_sigma_mm,
        },
        "mode": params.mode,
        "mm_per_pixel": params.mm_per_pixel,
    }


def export_continuous_json(
    schedule: ContinuousSchedule,
    path: Union[str, Path, None] = None,
) -> str:
    """Serialize *schedule* as indented JSON; also written to *path* if given."""
    text = json.dumps(continuous_schedule_payload(schedule), indent=2)
    if path is not None:
        atomic_write_text(path, text)
        logger.info("Wrote %d drops to %s", len(schedule.drops), path)
    return text


def export_continuous_csv(
    schedule: ContinuousSchedule,
    path: Union[str, Path, None] = None,
) -> str:
    """Serialize the droplet list as CSV (every field quoted)."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for d in schedule.drops:
        writer.writerow((
            to_fixed(d.s_mm, 3),
            to_fixed(d.t_ms, 2),
            to_fixed(d.width_mm, 3),
            to_fixed(d.amplitude, 3),
        ))
    text = buf.getvalue()
    if path is not None:
        atomic_write_text(path, text)
        logger.info("Wrote %d drops to %s", len(schedule.drops), path)
    return text


# ---------------------------------------------------------------------------
# Segment mode
# ---------------------------------------------------------------------------


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def segment_schedule_payload(
    segment_set: SegmentSet,
    compiled: CompiledSchedule,
    profile: CalibrationProfile = DEFAULT_PROFILE,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    """JSON-ready segment schedule.

    Parameters
    ----------
    segment_set : SegmentSet
        Regions the schedule was compiled from.
    compiled : CompiledSchedule
        Output of :func:`~tubedrop.compiler.steps.compile_segments`.
    profile : CalibrationProfile
        Calibration used for the compilation.
    timestamp : str, optional
        ISO-8601 export time; current UTC time when omitted.
    """
    return {
        "tubeLengthCm": segment_set.tube_length_cm,
        "segments": [
            {
                "startCm": seg.start_cm,
                "endCm": seg.end_cm,
                "densityLevel": seg.density_level,
            }
            for seg in segment_set
        ],
        "ehdSteps": [step.to_dict() for step in compiled.steps],
        "calibration": profile.to_dict(),
        "timestamp": timestamp if timestamp is not None else _iso_now(),
    }


def export_segment_json(
    segment_set: SegmentSet,
    compiled: CompiledSchedule,
    profile: CalibrationProfile = DEFAULT_PROFILE,
    path: Union[str, Path, None] = None,
    timestamp: Optional[str] = None,
) -> str:
    """Serialize a segment schedule; also written to *path* if given."""
    payload = segment_schedule_payload(segment_set, compiled, profile, timestamp)
    text = json.dumps(payload, indent=2)
    if path is not None:
        atomic_write_text(path, text)
        logger.info(
            "Wrote %d segments / %d steps to %s",
            len(segment_set), len(compiled.steps), path,
        )
    return text


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImportedSchedule:
    """Validated result of :func:`import_segment_schedule`.

    ``segments`` is ``None`` when the document carried no usable segment
    list.  ``derived`` is True when the steps were compiled from segments
    rather than read from the document.
    """

    steps: tuple[ActuationStep, ...]
    segments: Optional[SegmentSet]
    profile: CalibrationProfile
    derived: bool = False


def validate_step(raw: Any) -> Optional[ActuationStep]:
    """Return the step described by *raw*, or ``None`` if it is invalid.

    A step is valid iff ``ch0`` and ``ch1`` are in [0, 100] and
    ``duration`` (or ``duration_ms``) is >= 1.  Fractional values are
    rounded half-up to the integer levels and milliseconds the device
    takes.
    """
    if not isinstance(raw, dict):
        return None
    try:
        model = StepModel.model_validate(raw)
    except ValidationError:
        return None
    return ActuationStep(
        ch0=round_half_up(model.ch0),
        ch1=round_half_up(model.ch1),
        duration_ms=round_half_up(model.duration),
    )


def _preset(model: PresetModel) -> CalibrationPreset:
    return CalibrationPreset(
        ch0=model.ch0,
        ch1=model.ch1,
        duration_base=model.duration_base,
        resistance_factor=model.resistance_factor,
    )


def _profile(model: Optional[CalibrationModel], default: CalibrationProfile) -> CalibrationProfile:
    if model is None:
        return default
    return CalibrationProfile(dense=_preset(model.dense), sparse=_preset(model.sparse))


def _segments(
    raw: Iterable[Any],
    tube_length_cm: Optional[float],
) -> Optional[SegmentSet]:
    valid: list[Segment] = []
    for entry in raw:
        try:
            model = SegmentModel.model_validate(entry)
        except ValidationError as exc:
            logger.debug("Skipping invalid segment %r: %s", entry, exc.errors()[0]["msg"])
            continue
        valid.append(Segment(
            start_cm=model.start_cm,
            end_cm=model.end_cm,
            density_level=model.density_level,
        ))

    length = tube_length_cm
    if length is None:
        if not valid:
            return None
        length = max(seg.end_cm for seg in valid)

    try:
        return SegmentSet(tube_length_cm=length, segments=tuple(valid))
    except SegmentError as exc:
        raise ScheduleImportError(f"Embedded segments are unusable: {exc}") from exc


def import_segment_schedule(
    text: str,
    default_profile: Optional[CalibrationProfile] = None,
    feed_speed_mm_s: Optional[float] = None,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> ImportedSchedule:
    """Parse and validate an exported segment schedule.

    Parameters
    ----------
    text : str
        JSON document.
    default_profile : CalibrationProfile, optional
        Calibration used when the document has none
        (``DEFAULT_PROFILE`` if omitted).
    feed_speed_mm_s : float, optional
        Feed speed for deriving steps when the document has no
        ``feedSpeed`` key; the configured default when omitted.
    max_steps : int
        Step cap for derivation.

    Returns
    -------
    ImportedSchedule

    Raises
    ------
    ScheduleImportError
        If the text is not a JSON object, a section is structurally
        unusable, or no valid step can be read or derived.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScheduleImportError(f"Schedule is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ScheduleImportError(
            f"Schedule root must be an object, got {type(data).__name__}"
        )

    try:
        header = SegmentScheduleFile.model_validate(data)
    except ValidationError as exc:
        raise ScheduleImportError(f"Invalid schedule header: {exc}") from exc

    profile = _profile(header.calibration, default_profile or DEFAULT_PROFILE)

    raw_segments = data.get("segments")
    segment_set: Optional[SegmentSet] = None
    if raw_segments is not None:
        if not isinstance(raw_segments, list):
            raise ScheduleImportError("'segments' must be a list")
        segment_set = _segments(raw_segments, header.tube_length_cm)

    raw_steps = data.get("ehdSteps", data.get("steps"))
    steps: Sequence[ActuationStep] = ()
    if raw_steps is not None:
        if not isinstance(raw_steps, list):
            raise ScheduleImportError("'ehdSteps' must be a list")
        steps = [s for s in (validate_step(r) for r in raw_steps) if s is not None]
        dropped = len(raw_steps) - len(steps)
        if dropped:
            logger.debug("Filtered %d invalid step(s) of %d", dropped, len(raw_steps))
        if steps:
            return ImportedSchedule(
                steps=tuple(steps), segments=segment_set, profile=profile,
            )

    if segment_set is None:
        raise ScheduleImportError(
            "Schedule has no valid steps and no segments to derive them from"
        )

    feed = header.feed_speed_mm_s or feed_speed_mm_s
    if feed is None:
        feed = load_config().segments.feed_speed_mm_s

    compiled = compile_segments(segment_set, feed, profile, max_steps)
    logger.info(
        "Derived %d steps from %d embedded segments", len(compiled.steps), len(segment_set),
    )
    return ImportedSchedule(
        steps=compiled.steps, segments=segment_set, profile=profile, derived=True,
    )
