"""Segment model -- operator-authored density regions over one tube.

A :class:`SegmentSet` is an immutable, start-sorted collection of
:class:`Segment` regions in tube centimetres.  Segments are half-open
intervals ``[start_cm, end_cm)``: touching endpoints do not overlap.

Edits (add / move / resize / remove / set density) are pure functions
that return a new set.  An edit whose candidate state would overlap
another segment, leave the tube, or find no free slot is *rejected*: the
original set is returned unchanged and the rejection is logged at DEBUG.
Rejections are not errors; malformed arguments (an invalid density
level, a non-positive length) are.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Literal

logger = logging.getLogger(__name__)

MIN_DENSITY = 1
MAX_DENSITY = 10

ResizeHandle = Literal["start", "end"]


class SegmentError(ValueError):
    """Raised when a segment or segment set violates its invariants."""

    pass


def _check_density(level: int) -> None:
    if isinstance(level, bool) or not isinstance(level, int):
        raise SegmentError(f"density_level must be an integer, got {level!r}")
    if not MIN_DENSITY <= level <= MAX_DENSITY:
        raise SegmentError(
            f"density_level must be in [{MIN_DENSITY}, {MAX_DENSITY}], got {level}"
        )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Segment:
    """One density region.

    Parameters
    ----------
    start_cm, end_cm : float
        Region bounds along the tube, ``0 <= start_cm < end_cm``.
    density_level : int
        Integer density in [1, 10]; mapped to actuation values by the
        calibration profile.
    """

    start_cm: float
    end_cm: float
    density_level: int

    def __post_init__(self) -> None:
        if self.start_cm < 0:
            raise SegmentError(f"start_cm must be >= 0, got {self.start_cm}")
        if not self.start_cm < self.end_cm:
            raise SegmentError(
                f"Segment requires start_cm < end_cm, got "
                f"[{self.start_cm}, {self.end_cm})"
            )
        _check_density(self.density_level)

    @property
    def length_cm(self) -> float:
        return self.end_cm - self.start_cm


@dataclass(frozen=True, slots=True)
class SegmentSet:
    """All segments of one tube, sorted by start, pairwise non-overlapping.

    Parameters
    ----------
    tube_length_cm : float
        Tube length; every segment must end at or before it.
    segments : tuple[Segment, ...]
        Regions in any order; stored sorted by ``start_cm``.

    Raises
    ------
    SegmentError
        If the tube length is not positive, a segment runs past the tube
        end, or two segments overlap.
    """

    tube_length_cm: float
    segments: tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        if not self.tube_length_cm > 0:
            raise SegmentError(
                f"tube_length_cm must be > 0, got {self.tube_length_cm}"
            )
        ordered = tuple(sorted(self.segments, key=lambda s: s.start_cm))
        object.__setattr__(self, "segments", ordered)

        for seg in ordered:
            if seg.end_cm > self.tube_length_cm:
                raise SegmentError(
                    f"Segment [{seg.start_cm}, {seg.end_cm}) exceeds tube "
                    f"length {self.tube_length_cm}"
                )
        for a, b in zip(ordered, ordered[1:]):
            if segments_overlap(a, b):
                raise SegmentError(
                    f"Segments [{a.start_cm}, {a.end_cm}) and "
                    f"[{b.start_cm}, {b.end_cm}) overlap"
                )

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def __getitem__(self, index: int) -> Segment:
        return self.segments[index]


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


def segments_overlap(a: Segment, b: Segment) -> bool:
    """Half-open overlap test; touching endpoints do not overlap."""
    return a.start_cm < b.end_cm and b.start_cm < a.end_cm


def _fits(
    segments: Iterable[Segment],
    candidate: Segment,
    tube_length: float,
    ignore: Segment | None = None,
) -> bool:
    if candidate.end_cm > tube_length:
        return False
    return not any(
        segments_overlap(candidate, other)
        for other in segments
        if other is not ignore
    )


def find_next_available_position(
    segments: Iterable[Segment],
    preferred_start: float,
    length: float,
    tube_length: float,
) -> float | None:
    """Find a start position for a new segment of *length* cm.

    Tries, in order: the preferred slot; the first gap of at least
    *length* between segments sorted by start (scanning from 0); the
    space after the last segment.

    Parameters
    ----------
    segments : Iterable[Segment]
        Existing segments, any order.
    preferred_start : float
        Requested start (cm).
    length : float
        Required segment length (cm), must be > 0.
    tube_length : float
        Tube length (cm).

    Returns
    -------
    float | None
        Start position, or ``None`` if no slot is large enough.
    """
    if not length > 0:
        raise SegmentError(f"Segment length must be > 0, got {length}")

    ordered = sorted(segments, key=lambda s: s.start_cm)

    preferred_end = preferred_start + length
    if preferred_start >= 0 and preferred_end <= tube_length:
        if not any(
            preferred_start < s.end_cm and s.start_cm < preferred_end
            for s in ordered
        ):
            return preferred_start

    cursor = 0.0
    for seg in ordered:
        if cursor + length <= seg.start_cm:
            return cursor
        cursor = max(cursor, seg.end_cm)

    if cursor + length <= tube_length:
        return cursor
    return None


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def _with_segments(segment_set: SegmentSet, segments: Iterable[Segment]) -> SegmentSet:
    return SegmentSet(tube_length_cm=segment_set.tube_length_cm, segments=tuple(segments))


def add_segment(
    segment_set: SegmentSet,
    length_cm: float,
    density_level: int,
    preferred_start: float = 0.0,
) -> SegmentSet:
    """Add a segment at the preferred or next free position.

    Returns the unchanged set when no slot is large enough.
    """
    _check_density(density_level)
    start = find_next_available_position(
        segment_set.segments, preferred_start, length_cm,
        segment_set.tube_length_cm,
    )
    if start is None:
        logger.debug(
            "add_segment rejected: no %.3f cm slot in %.3f cm tube",
            length_cm, segment_set.tube_length_cm,
        )
        return segment_set

    new = Segment(start_cm=start, end_cm=start + length_cm, density_level=density_level)
    if not _fits(segment_set.segments, new, segment_set.tube_length_cm):
        logger.debug(
            "add_segment rejected: [%.3f, %.3f) conflicts", new.start_cm, new.end_cm,
        )
        return segment_set
    return _with_segments(segment_set, (*segment_set.segments, new))


def move_segment(
    segment_set: SegmentSet,
    index: int,
    new_start_cm: float,
) -> SegmentSet:
    """Move segment *index* to *new_start_cm*, keeping its length.

    Rejected (set unchanged) if the moved segment would leave the tube or
    overlap another segment.
    """
    old = segment_set.segments[index]
    if new_start_cm < 0:
        logger.debug("move_segment rejected: start %.3f < 0", new_start_cm)
        return segment_set

    candidate = replace(
        old, start_cm=new_start_cm, end_cm=new_start_cm + old.length_cm,
    )
    if not _fits(segment_set.segments, candidate, segment_set.tube_length_cm, ignore=old):
        logger.debug(
            "move_segment rejected: [%.3f, %.3f) conflicts",
            candidate.start_cm, candidate.end_cm,
        )
        return segment_set

    return _with_segments(
        segment_set,
        (candidate if s is old else s for s in segment_set.segments),
    )


def resize_segment(
    segment_set: SegmentSet,
    index: int,
    handle: ResizeHandle,
    position_cm: float,
) -> SegmentSet:
    """Drag the start or end handle of segment *index* to *position_cm*.

    Rejected (set unchanged) if the result is empty or inverted, leaves
    the tube, or overlaps another segment.
    """
    if handle not in ("start", "end"):
        raise SegmentError(f"handle must be 'start' or 'end', got {handle!r}")

    old = segment_set.segments[index]
    start = position_cm if handle == "start" else old.start_cm
    end = position_cm if handle == "end" else old.end_cm

    if start < 0 or not start < end:
        logger.debug("resize_segment rejected: [%.3f, %.3f) invalid", start, end)
        return segment_set

    candidate = replace(old, start_cm=start, end_cm=end)
    if not _fits(segment_set.segments, candidate, segment_set.tube_length_cm, ignore=old):
        logger.debug("resize_segment rejected: [%.3f, %.3f) conflicts", start, end)
        return segment_set

    return _with_segments(
        segment_set,
        (candidate if s is old else s for s in segment_set.segments),
    )


def remove_segment(segment_set: SegmentSet, index: int) -> SegmentSet:
    """Remove segment *index*."""
    old = segment_set.segments[index]
    return _with_segments(segment_set, (s for s in segment_set.segments if s is not old))


def set_density(segment_set: SegmentSet, index: int, density_level: int) -> SegmentSet:
    """Change the density level of segment *index*."""
    _check_density(density_level)
    old = segment_set.segments[index]
    new = replace(old, density_level=density_level)
    return _with_segments(
        segment_set,
        (new if s is old else s for s in segment_set.segments),
    )
