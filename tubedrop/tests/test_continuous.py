"""Tests for PWM / AM / DITHER drop synthesis.

Validates that:
    - Emission cadence follows ``step_idx``
    - PWM: amplitude 1.0, width non-decreasing in intensity
    - AM: constant width, amplitude equals the sampled intensity
    - DITHER: quantized output conserves ink within one unit on any window
    - Parameter validation rejects impossible settings
"""

from __future__ import annotations

import pytest

from tubedrop.synthesis.continuous import (
    DropletRecord,
    SynthesisParams,
    synthesize,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ramp() -> list[float]:
    return [i / 19 for i in range(20)]


def _params(**overrides) -> SynthesisParams:
    return SynthesisParams(**overrides)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestSynthesisParams:
    def test_defaults(self) -> None:
        p = SynthesisParams()
        assert p.mode == "PWM"
        assert p.mm_per_pixel == 0.2
        assert p.feed_speed_mm_s == 80.0
        assert p.sample_step_px == 2.0

    def test_step_idx_default_is_one(self) -> None:
        # 0.3 mm / 0.2 mm/px = 1.5 px < 2 px sample step
        assert SynthesisParams().step_idx == 1

    def test_step_idx_rounds_half_up(self) -> None:
        # 1.0 mm -> 5 px -> 2.5 samples -> 3
        assert _params(min_spacing_mm=1.0).step_idx == 3

    def test_pixel_conversions(self) -> None:
        p = SynthesisParams()
        assert p.width_min_px == pytest.approx(1.0)
        assert p.width_max_px == pytest.approx(5.0)
        assert p.min_spacing_px == pytest.approx(1.5)

    @pytest.mark.parametrize(
        "overrides, match",
        [
            ({"mode": "FM"}, "mode"),
            ({"mm_per_pixel": 0.0}, "mm_per_pixel"),
            ({"feed_speed_mm_s": -1.0}, "feed_speed_mm_s"),
            ({"sample_step_px": 0.0}, "sample_step_px"),
            ({"width_min_mm": 2.0, "width_max_mm": 1.0}, "width range"),
            ({"threshold": 1.5}, "threshold"),
            ({"min_spacing_mm": -0.1}, "min_spacing_mm"),
        ],
    )
    def test_invalid(self, overrides, match) -> None:
        with pytest.raises(ValueError, match=match):
            _params(**overrides)


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestCadenceAndTiming:
    @pytest.mark.parametrize("mode", ["PWM", "AM"])
    def test_one_drop_per_grid_index(self, mode) -> None:
        result = synthesize([0.5] * 10, _params(mode=mode, min_spacing_mm=1.0))
        assert [d.s_px for d in result.drops] == [0.0, 6.0, 12.0, 18.0]

    def test_positions_and_time(self) -> None:
        p = _params(feed_speed_mm_s=10.0)
        drops = synthesize([1.0, 1.0, 1.0], p).drops
        d = drops[2]
        assert d.s_px == 4.0
        assert d.s_mm == pytest.approx(0.8)
        assert d.t_ms == pytest.approx(80.0)

    def test_signal_length_matches_input(self, ramp) -> None:
        for mode in ("PWM", "AM", "DITHER"):
            assert len(synthesize(ramp, _params(mode=mode)).signal) == len(ramp)

    def test_empty_input(self) -> None:
        result = synthesize([], SynthesisParams())
        assert result.drops == ()
        assert result.signal == ()

    def test_records_are_immutable(self) -> None:
        drop = synthesize([0.5], SynthesisParams()).drops[0]
        assert isinstance(drop, DropletRecord)
        with pytest.raises(AttributeError):
            drop.width_mm = 2.0

    def test_out_of_range_intensity_clamped(self) -> None:
        drops = synthesize([-0.5, 1.7], _params(mode="AM")).drops
        assert [d.amplitude for d in drops] == [0.0, 1.0]


# ---------------------------------------------------------------------------
# PWM
# ---------------------------------------------------------------------------


class TestPWM:
    def test_amplitude_is_one(self, ramp) -> None:
        drops = synthesize(ramp, _params(mode="PWM")).drops
        assert all(d.amplitude == 1.0 for d in drops)

    def test_width_monotone_in_intensity(self, ramp) -> None:
        drops = synthesize(ramp, _params(mode="PWM")).drops
        widths = [d.width_mm for d in drops]
        assert widths == sorted(widths)
        assert widths[0] == pytest.approx(0.2)
        assert widths[-1] == pytest.approx(1.0)

    def test_signal_is_normalized_width(self) -> None:
        result = synthesize([0.25, 0.75], _params(mode="PWM"))
        assert result.signal == pytest.approx((0.25, 0.75))

    def test_zero_width_range(self) -> None:
        p = _params(mode="PWM", width_min_mm=0.5, width_max_mm=0.5)
        result = synthesize([0.3, 0.9], p)
        assert [d.width_mm for d in result.drops] == pytest.approx([0.5, 0.5])
        assert result.signal == (0.0, 0.0)


# ---------------------------------------------------------------------------
# AM
# ---------------------------------------------------------------------------


class TestAM:
    def test_constant_width(self, ramp) -> None:
        drops = synthesize(ramp, _params(mode="AM")).drops
        assert len({d.width_mm for d in drops}) == 1
        assert drops[0].width_mm == pytest.approx(0.6)

    def test_amplitude_equals_intensity(self, ramp) -> None:
        p = _params(mode="AM", min_spacing_mm=1.0)
        drops = synthesize(ramp, p).drops
        for d in drops:
            i = int(d.s_px / p.sample_step_px)
            assert d.amplitude == ramp[i]


# ---------------------------------------------------------------------------
# DITHER
# ---------------------------------------------------------------------------


class TestDither:
    @pytest.mark.parametrize("v", [0.0, 0.25, 0.5, 0.75, 1.0])
    def test_prefix_conservation(self, v) -> None:
        n = 64
        signal = synthesize([v] * n, _params(mode="DITHER")).signal
        for k in range(1, n + 1):
            assert abs(sum(signal[:k]) - k * v) <= 0.5 + 1e-9

    @pytest.mark.parametrize("v", [0.25, 0.5, 0.75])
    def test_window_conservation(self, v) -> None:
        n = 48
        signal = synthesize([v] * n, _params(mode="DITHER")).signal
        for a in range(n):
            for b in range(a + 1, n + 1):
                assert abs(sum(signal[a:b]) - (b - a) * v) <= 1 + 1e-9

    def test_output_is_binary(self, ramp) -> None:
        signal = synthesize(ramp, _params(mode="DITHER")).signal
        assert set(signal) <= {0.0, 1.0}

    def test_drops_only_where_on(self) -> None:
        result = synthesize([0.5] * 16, _params(mode="DITHER"))
        on = [i for i, g in enumerate(result.signal) if g == 1.0]
        assert [int(d.s_px / 2.0) for d in result.drops] == on
        assert all(d.amplitude == 1.0 for d in result.drops)

    def test_gating_skips_off_grid_decisions(self) -> None:
        p = _params(mode="DITHER", min_spacing_mm=1.0)
        result = synthesize([0.5] * 30, p)
        on_grid = [
            i for i, g in enumerate(result.signal) if g == 1.0 and i % p.step_idx == 0
        ]
        assert [int(d.s_px / p.sample_step_px) for d in result.drops] == on_grid
        assert len(result.drops) < sum(result.signal)

    def test_threshold(self) -> None:
        high = synthesize([0.4] * 4, _params(mode="DITHER", threshold=0.3))
        assert high.signal[0] == 1.0
        low = synthesize([0.4] * 4, _params(mode="DITHER", threshold=0.5))
        assert low.signal[0] == 0.0
