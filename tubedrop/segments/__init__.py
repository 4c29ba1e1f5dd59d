"""Segment model: non-overlapping density regions over the tube length."""

from tubedrop.segments.model import (
    MAX_DENSITY,
    MIN_DENSITY,
    Segment,
    SegmentError,
    SegmentSet,
    add_segment,
    find_next_available_position,
    move_segment,
    remove_segment,
    resize_segment,
    segments_overlap,
    set_density,
)

__all__ = [
    "MIN_DENSITY",
    "MAX_DENSITY",
    "Segment",
    "SegmentError",
    "SegmentSet",
    "segments_overlap",
    "find_next_available_position",
    "add_segment",
    "move_segment",
    "resize_segment",
    "remove_segment",
    "set_density",
]
