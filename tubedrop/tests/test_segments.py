"""Tests for the segment model and its edit operations.

Validates that:
    - Overlap uses half-open semantics (touching is not overlap)
    - SegmentSet enforces sorting, tube bounds and non-overlap
    - Placement search order: preferred slot, first gap, trailing space
    - Rejected edits return the original set unchanged
"""

from __future__ import annotations

import pytest

from tubedrop.segments.model import (
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


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def two_segments() -> SegmentSet:
    """[10, 20) and [30, 40) on a 50 cm tube."""
    return SegmentSet(
        tube_length_cm=50.0,
        segments=(
            Segment(start_cm=30.0, end_cm=40.0, density_level=3),
            Segment(start_cm=10.0, end_cm=20.0, density_level=7),
        ),
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class TestSegment:
    def test_length(self) -> None:
        assert Segment(start_cm=1.5, end_cm=4.0, density_level=1).length_cm == 2.5

    @pytest.mark.parametrize(
        "start, end, level, match",
        [
            (5.0, 5.0, 5, "start_cm < end_cm"),
            (6.0, 5.0, 5, "start_cm < end_cm"),
            (-1.0, 5.0, 5, ">= 0"),
            (0.0, 5.0, 0, r"\[1, 10\]"),
            (0.0, 5.0, 11, r"\[1, 10\]"),
            (0.0, 5.0, 2.5, "integer"),
            (0.0, 5.0, True, "integer"),
        ],
    )
    def test_invalid(self, start, end, level, match) -> None:
        with pytest.raises(SegmentError, match=match):
            Segment(start_cm=start, end_cm=end, density_level=level)

    def test_segment_error_is_value_error(self) -> None:
        assert issubclass(SegmentError, ValueError)


class TestOverlap:
    def test_touching_is_not_overlap(self) -> None:
        a = Segment(start_cm=0.0, end_cm=5.0, density_level=1)
        b = Segment(start_cm=5.0, end_cm=10.0, density_level=1)
        assert not segments_overlap(a, b)
        assert not segments_overlap(b, a)

    def test_overlap(self) -> None:
        a = Segment(start_cm=0.0, end_cm=5.0, density_level=1)
        b = Segment(start_cm=4.0, end_cm=10.0, density_level=1)
        assert segments_overlap(a, b)
        assert segments_overlap(b, a)

    def test_containment(self) -> None:
        a = Segment(start_cm=0.0, end_cm=10.0, density_level=1)
        b = Segment(start_cm=2.0, end_cm=3.0, density_level=1)
        assert segments_overlap(a, b)


class TestSegmentSet:
    def test_sorted_by_start(self, two_segments) -> None:
        assert [s.start_cm for s in two_segments] == [10.0, 30.0]
        assert len(two_segments) == 2
        assert two_segments[0].density_level == 7

    def test_touching_allowed(self) -> None:
        s = SegmentSet(
            tube_length_cm=10.0,
            segments=(
                Segment(start_cm=0.0, end_cm=5.0, density_level=1),
                Segment(start_cm=5.0, end_cm=10.0, density_level=2),
            ),
        )
        assert len(s) == 2

    def test_overlap_rejected(self) -> None:
        with pytest.raises(SegmentError, match="overlap"):
            SegmentSet(
                tube_length_cm=10.0,
                segments=(
                    Segment(start_cm=0.0, end_cm=5.0, density_level=1),
                    Segment(start_cm=4.0, end_cm=8.0, density_level=2),
                ),
            )

    def test_past_tube_end_rejected(self) -> None:
        with pytest.raises(SegmentError, match="exceeds tube"):
            SegmentSet(
                tube_length_cm=10.0,
                segments=(Segment(start_cm=8.0, end_cm=12.0, density_level=1),),
            )

    def test_non_positive_tube(self) -> None:
        with pytest.raises(SegmentError, match="tube_length_cm"):
            SegmentSet(tube_length_cm=0.0)


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class TestFindNextAvailablePosition:
    def test_preferred_slot_free(self, two_segments) -> None:
        pos = find_next_available_position(two_segments.segments, 20.0, 10.0, 50.0)
        assert pos == 20.0

    def test_first_gap_when_preferred_blocked(self, two_segments) -> None:
        pos = find_next_available_position(two_segments.segments, 15.0, 8.0, 50.0)
        assert pos == 0.0

    def test_gap_between_segments(self) -> None:
        segs = [
            Segment(start_cm=0.0, end_cm=10.0, density_level=1),
            Segment(start_cm=30.0, end_cm=40.0, density_level=1),
        ]
        assert find_next_available_position(segs, 5.0, 15.0, 50.0) == 10.0

    def test_trailing_space(self) -> None:
        segs = [
            Segment(start_cm=0.0, end_cm=20.0, density_level=1),
            Segment(start_cm=25.0, end_cm=40.0, density_level=1),
        ]
        assert find_next_available_position(segs, 0.0, 10.0, 50.0) == 40.0
        assert find_next_available_position(segs, 0.0, 10.000001, 50.0) is None

    def test_slot_checked_on_candidate_end(self) -> None:
        segs = [Segment(start_cm=0.0, end_cm=0.6, density_level=1)]
        assert find_next_available_position(segs, 0.0, 1.1, 1.7) is None
        assert find_next_available_position(segs, 0.0, 1.0, 1.7) == 0.6

    def test_preferred_past_tube_end(self) -> None:
        pos = find_next_available_position([], 45.0, 10.0, 50.0)
        assert pos == 0.0

    def test_no_space(self) -> None:
        full = [Segment(start_cm=0.0, end_cm=50.0, density_level=1)]
        assert find_next_available_position(full, 0.0, 1.0, 50.0) is None

    def test_invalid_length(self) -> None:
        with pytest.raises(SegmentError, match="length"):
            find_next_available_position([], 0.0, 0.0, 50.0)


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


class TestAddSegment:
    def test_add_at_preferred(self, two_segments) -> None:
        out = add_segment(two_segments, 5.0, 4, preferred_start=22.0)
        assert [(s.start_cm, s.end_cm) for s in out] == [
            (10.0, 20.0), (22.0, 27.0), (30.0, 40.0),
        ]
        assert len(two_segments) == 2

    def test_add_without_space_is_noop(self, two_segments) -> None:
        out = add_segment(two_segments, 45.0, 4)
        assert out is two_segments

    def test_trailing_space_short_by_float_error_is_noop(self) -> None:
        # 1.7 - 0.6 >= 1.1 holds, but 0.6 + 1.1 lands past 1.7
        segment_set = SegmentSet(
            tube_length_cm=1.7,
            segments=(Segment(start_cm=0.0, end_cm=0.6, density_level=5),),
        )
        out = add_segment(segment_set, 1.1, 5, preferred_start=0.0)
        assert out is segment_set

    def test_gap_short_by_float_error_is_noop(self) -> None:
        segment_set = SegmentSet(
            tube_length_cm=2.0,
            segments=(
                Segment(start_cm=0.0, end_cm=0.6, density_level=5),
                Segment(start_cm=1.7, end_cm=2.0, density_level=5),
            ),
        )
        out = add_segment(segment_set, 1.1, 5, preferred_start=0.0)
        assert out is segment_set

    def test_added_segment_fits_exact_gap(self) -> None:
        segment_set = SegmentSet(
            tube_length_cm=10.0,
            segments=(
                Segment(start_cm=0.0, end_cm=2.0, density_level=5),
                Segment(start_cm=5.0, end_cm=10.0, density_level=5),
            ),
        )
        out = add_segment(segment_set, 3.0, 4, preferred_start=6.0)
        assert [(s.start_cm, s.end_cm) for s in out] == [
            (0.0, 2.0), (2.0, 5.0), (5.0, 10.0),
        ]

    def test_add_invalid_density(self, two_segments) -> None:
        with pytest.raises(SegmentError):
            add_segment(two_segments, 5.0, 12)


class TestMoveSegment:
    def test_move(self, two_segments) -> None:
        out = move_segment(two_segments, 0, 0.0)
        assert out[0] == Segment(start_cm=0.0, end_cm=10.0, density_level=7)

    def test_move_onto_neighbour_is_noop(self, two_segments) -> None:
        assert move_segment(two_segments, 0, 25.0) is two_segments

    def test_move_touching_neighbour(self, two_segments) -> None:
        out = move_segment(two_segments, 0, 20.0)
        assert (out[0].start_cm, out[0].end_cm) == (20.0, 30.0)

    def test_move_past_tube_end_is_noop(self, two_segments) -> None:
        assert move_segment(two_segments, 1, 45.0) is two_segments

    def test_move_negative_is_noop(self, two_segments) -> None:
        assert move_segment(two_segments, 0, -1.0) is two_segments

    def test_move_reorders(self, two_segments) -> None:
        out = move_segment(two_segments, 0, 40.0)
        assert [s.density_level for s in out] == [3, 7]


class TestResizeSegment:
    def test_resize_end(self, two_segments) -> None:
        out = resize_segment(two_segments, 0, "end", 25.0)
        assert (out[0].start_cm, out[0].end_cm) == (10.0, 25.0)

    def test_resize_start(self, two_segments) -> None:
        out = resize_segment(two_segments, 1, "start", 20.0)
        assert (out[1].start_cm, out[1].end_cm) == (20.0, 40.0)

    def test_resize_into_neighbour_is_noop(self, two_segments) -> None:
        assert resize_segment(two_segments, 0, "end", 31.0) is two_segments

    def test_resize_inverted_is_noop(self, two_segments) -> None:
        assert resize_segment(two_segments, 0, "end", 10.0) is two_segments
        assert resize_segment(two_segments, 0, "start", 21.0) is two_segments

    def test_resize_past_tube_is_noop(self, two_segments) -> None:
        assert resize_segment(two_segments, 1, "end", 51.0) is two_segments

    def test_invalid_handle(self, two_segments) -> None:
        with pytest.raises(SegmentError, match="handle"):
            resize_segment(two_segments, 0, "middle", 12.0)


class TestRemoveAndDensity:
    def test_remove(self, two_segments) -> None:
        out = remove_segment(two_segments, 0)
        assert [s.start_cm for s in out] == [30.0]
        assert len(two_segments) == 2

    def test_set_density(self, two_segments) -> None:
        out = set_density(two_segments, 1, 10)
        assert out[1].density_level == 10
        assert two_segments[1].density_level == 3

    def test_set_density_invalid(self, two_segments) -> None:
        with pytest.raises(SegmentError):
            set_density(two_segments, 1, 0)
