"""Tests for Catmull-Rom smoothing and arc-length resampling.

Validates that:
    - The spline passes through every control point
    - End segments do not overshoot the first / last control point
    - Uniform resampling spaces points exactly ``step_px`` apart,
      including across polyline joins
    - Degenerate inputs return without raising
"""

from __future__ import annotations

import math

import pytest

from tubedrop.path.spline import (
    distance,
    evaluate_spline,
    polyline_length,
    resample_uniform,
    sample_spline,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def s_curve() -> list[tuple[float, float]]:
    return [(0.0, 0.0), (40.0, 30.0), (80.0, -10.0), (120.0, 20.0)]


# ---------------------------------------------------------------------------
# Spline evaluation
# ---------------------------------------------------------------------------


class TestEvaluateSpline:
    def test_endpoints(self) -> None:
        p0, p1, p2, p3 = (0.0, 0.0), (1.0, 2.0), (3.0, 5.0), (4.0, 4.0)
        assert evaluate_spline(p0, p1, p2, p3, 0.0) == pytest.approx(p1)
        assert evaluate_spline(p0, p1, p2, p3, 1.0) == pytest.approx(p2)

    def test_collinear_points_stay_on_line(self) -> None:
        pts = [(0.0, 0.0), (1.0, 1.0), (2.0, 2.0), (3.0, 3.0)]
        for t in (0.1, 0.5, 0.9):
            x, y = evaluate_spline(*pts, t)
            assert x == pytest.approx(y)


class TestSampleSpline:
    def test_sample_count(self, s_curve) -> None:
        out = sample_spline(s_curve, 24)
        assert len(out) == (len(s_curve) - 1) * 24 + 1

    def test_passes_through_control_points(self, s_curve) -> None:
        out = sample_spline(s_curve, 10)
        for i, p in enumerate(s_curve):
            assert out[i * 10] == pytest.approx(p)

    def test_last_point_is_exact_endpoint(self, s_curve) -> None:
        assert sample_spline(s_curve, 7)[-1] == s_curve[-1]

    def test_two_points_no_overshoot(self) -> None:
        out = sample_spline([(0.0, 0.0), (10.0, 0.0)], 24)
        xs = [p[0] for p in out]
        assert min(xs) >= 0.0
        assert max(xs) <= 10.0
        assert xs == sorted(xs)

    @pytest.mark.parametrize("points", [[], [(3.0, 4.0)]])
    def test_fewer_than_two_points_unchanged(self, points) -> None:
        assert sample_spline(points, 24) == points

    def test_invalid_samples(self, s_curve) -> None:
        with pytest.raises(ValueError, match="samples_per_segment"):
            sample_spline(s_curve, 0)

    def test_deterministic(self, s_curve) -> None:
        assert sample_spline(s_curve, 24) == sample_spline(s_curve, 24)


# ---------------------------------------------------------------------------
# Arc-length resampling
# ---------------------------------------------------------------------------


class TestResampleUniform:
    def test_straight_segment(self) -> None:
        out = resample_uniform([(0.0, 0.0), (10.0, 0.0)], 2.0)
        assert out == [(0.0, 0.0), (2.0, 0.0), (4.0, 0.0), (6.0, 0.0),
                       (8.0, 0.0), (10.0, 0.0)]

    def test_trailing_fragment_dropped(self) -> None:
        out = resample_uniform([(0.0, 0.0), (7.0, 0.0)], 2.0)
        # floor(7 / 2) = 3 steps after the start point
        assert len(out) == 4
        assert out[-1] == pytest.approx((6.0, 0.0))

    def test_spacing_carried_across_joins(self) -> None:
        out = resample_uniform([(0.0, 0.0), (3.0, 0.0), (10.0, 0.0)], 2.0)
        xs = [p[0] for p in out]
        assert xs == pytest.approx([0.0, 2.0, 4.0, 6.0, 8.0, 10.0])

    def test_spacing_around_corner(self) -> None:
        out = resample_uniform([(0.0, 0.0), (5.0, 0.0), (5.0, 5.0)], 1.0)
        assert len(out) == 11
        assert out[5] == pytest.approx((5.0, 0.0))
        assert out[6] == pytest.approx((5.0, 1.0))

    def test_chords_never_exceed_step(self, s_curve) -> None:
        dense = sample_spline(s_curve, 24)
        out = resample_uniform(dense, 2.0)
        for a, b in zip(out, out[1:]):
            assert distance(a, b) <= 2.0 + 1e-9

    def test_count_matches_length(self, s_curve) -> None:
        dense = sample_spline(s_curve, 24)
        out = resample_uniform(dense, 2.0)
        expected = math.floor(polyline_length(dense) / 2.0) + 1
        assert abs(len(out) - expected) <= 1

    def test_zero_length_segments(self) -> None:
        out = resample_uniform([(0.0, 0.0), (0.0, 0.0), (4.0, 0.0)], 2.0)
        assert [p[0] for p in out] == pytest.approx([0.0, 2.0, 4.0])

    def test_empty(self) -> None:
        assert resample_uniform([], 2.0) == []

    def test_invalid_step(self) -> None:
        with pytest.raises(ValueError, match="step_px"):
            resample_uniform([(0.0, 0.0), (1.0, 0.0)], 0.0)


class TestPolylineLength:
    def test_length(self) -> None:
        assert polyline_length([(0.0, 0.0), (3.0, 4.0), (3.0, 10.0)]) == pytest.approx(11.0)

    def test_degenerate(self) -> None:
        assert polyline_length([]) == 0.0
        assert polyline_length([(1.0, 1.0)]) == 0.0
