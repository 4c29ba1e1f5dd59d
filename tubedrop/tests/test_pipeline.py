"""Tests for the full continuous-mode recompute."""

from __future__ import annotations

import numpy as np
import pytest

from tubedrop.synthesis.continuous import SynthesisParams
from tubedrop.synthesis.pipeline import compute_schedule, empty_schedule


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def black() -> np.ndarray:
    return np.zeros((50, 50, 3), dtype=np.uint8)


@pytest.fixture()
def split() -> np.ndarray:
    """Black left half, white right half."""
    raster = np.zeros((50, 50, 3), dtype=np.uint8)
    raster[:, 25:] = 255
    return raster


@pytest.fixture()
def params() -> SynthesisParams:
    return SynthesisParams()


# ---------------------------------------------------------------------------
# Degenerate inputs
# ---------------------------------------------------------------------------


class TestDegenerate:
    def test_no_raster(self, params) -> None:
        schedule = compute_schedule([(0.0, 0.0), (10.0, 0.0)], None, params)
        assert schedule.is_empty
        assert schedule.drops == ()
        assert schedule.curve_length_mm == 0.0

    @pytest.mark.parametrize("points", [[], [(5.0, 5.0)]])
    def test_too_few_points(self, black, params, points) -> None:
        schedule = compute_schedule(points, black, params)
        assert schedule.is_empty
        assert schedule.intensity == ()
        assert schedule.signal == ()

    def test_empty_schedule_keeps_params(self, params) -> None:
        assert empty_schedule(params).params is params


# ---------------------------------------------------------------------------
# Recompute
# ---------------------------------------------------------------------------


class TestComputeSchedule:
    def test_straight_path_on_black(self, black, params) -> None:
        schedule = compute_schedule([(0.0, 10.0), (41.0, 10.0)], black, params)
        assert len(schedule.uniform_path) == 21
        assert all(v == 1.0 for v in schedule.intensity)
        assert len(schedule.drops) == 21
        assert all(d.width_mm == pytest.approx(1.0) for d in schedule.drops)

    def test_curve_length(self, black, params) -> None:
        schedule = compute_schedule([(0.0, 10.0), (41.0, 10.0)], black, params)
        assert schedule.curve_length_mm == pytest.approx(21 * 2.0 * 0.2)

    def test_intensity_follows_image(self, split, params) -> None:
        schedule = compute_schedule([(0.0, 10.0), (48.0, 10.0)], split, params)
        xs = [p[0] for p in schedule.uniform_path]
        for x, v in zip(xs, schedule.intensity):
            assert v == pytest.approx(1.0 if x < 25 else 0.0)

    def test_sub_pixel_step_clamped_to_one(self, black) -> None:
        p = SynthesisParams(sample_step_px=0.5)
        schedule = compute_schedule([(0.0, 0.0), (10.5, 0.0)], black, p)
        assert len(schedule.uniform_path) == 11

    def test_deterministic(self, split) -> None:
        pts = [(2.0, 2.0), (20.0, 40.0), (45.0, 5.0)]
        for mode in ("PWM", "AM", "DITHER"):
            p = SynthesisParams(mode=mode)
            assert compute_schedule(pts, split, p) == compute_schedule(pts, split, p)

    def test_mode_changes_encoding(self, split) -> None:
        pts = [(0.0, 10.0), (48.0, 10.0)]
        pwm = compute_schedule(pts, split, SynthesisParams(mode="PWM"))
        am = compute_schedule(pts, split, SynthesisParams(mode="AM"))
        assert pwm.uniform_path == am.uniform_path
        assert {d.amplitude for d in pwm.drops} == {1.0}
        amplitudes = [d.amplitude for d in am.drops]
        assert max(amplitudes) == 1.0
        assert min(amplitudes) == pytest.approx(0.0, abs=1e-9)
