"""Continuous-mode drop synthesis -- intensity sequence to droplet events.

Three encodings of the 1-D ink intensity sampled along the path:

PWM
    Fixed cadence, pulse width proportional to intensity, amplitude 1.0.
AM
    Fixed cadence, constant mid-range pulse width, amplitude = intensity.
DITHER
    1-D error diffusion (weights 7/16, 5/16, 3/16, 1/16 to the next four
    samples) binarized at ``threshold``.  Error diffuses over *every*
    sample, but a droplet is only placed on the emission grid
    (``i % step_idx == 0``).  "On" decisions off the grid are skipped, so
    emitted ink can fall short of the target when ``min_spacing_mm``
    exceeds the sample step.  This is the reference behaviour.

Emission cadence::

    step_idx = max(1, round(max(min_spacing_px, sample_step_px) / sample_step_px))

Timing assumes a constant feed speed: ``t_ms = s_mm / feed_speed * 1000``.

``synthesize`` is pure; the returned records are immutable.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from tubedrop.utils.compute import clamp, mm_to_px, px_to_mm, round_half_up

logger = logging.getLogger(__name__)

SynthesisMode = Literal["PWM", "AM", "DITHER"]

MODES: tuple[str, ...] = ("PWM", "AM", "DITHER")

DITHER_WEIGHTS: tuple[float, ...] = (7 / 16, 5 / 16, 3 / 16, 1 / 16)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SynthesisParams:
    """Physical scale and waveform settings for one run.

    Parameters
    ----------
    mode : ``"PWM"`` | ``"AM"`` | ``"DITHER"``
        Encoding strategy.
    mm_per_pixel : float
        Canvas scale.
    feed_speed_mm_s : float
        Constant tube feed speed.
    min_spacing_mm : float
        Minimum distance between emitted droplets.
    width_min_mm, width_max_mm : float
        Pulse-width range.
    diffusion_sigma_mm : float
        Ink spread of a droplet.  Exported as a constraint; not used by
        the synthesis itself.
    sample_step_px : float
        Arc-length step of the uniformly resampled path.
    threshold : float
        DITHER binarization threshold in [0, 1].
    """

    mode: SynthesisMode = "PWM"
    mm_per_pixel: float = 0.2
    feed_speed_mm_s: float = 80.0
    min_spacing_mm: float = 0.3
    width_min_mm: float = 0.2
    width_max_mm: float = 1.0
    diffusion_sigma_mm: float = 0.25
    sample_step_px: float = 2.0
    threshold: float = 0.5

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(
                f"mode must be one of {', '.join(MODES)}, got {self.mode!r}"
            )
        for name in ("mm_per_pixel", "feed_speed_mm_s", "sample_step_px"):
            val = getattr(self, name)
            if not val > 0:
                raise ValueError(f"{name} must be > 0, got {val}")
        if self.min_spacing_mm < 0:
            raise ValueError(
                f"min_spacing_mm must be >= 0, got {self.min_spacing_mm}"
            )
        if not 0 <= self.width_min_mm <= self.width_max_mm:
            raise ValueError(
                f"width range must satisfy 0 <= min <= max, got "
                f"[{self.width_min_mm}, {self.width_max_mm}]"
            )
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")

    @property
    def min_spacing_px(self) -> float:
        return mm_to_px(self.min_spacing_mm, self.mm_per_pixel)

    @property
    def width_min_px(self) -> float:
        return mm_to_px(self.width_min_mm, self.mm_per_pixel)

    @property
    def width_max_px(self) -> float:
        return mm_to_px(self.width_max_mm, self.mm_per_pixel)

    @property
    def step_idx(self) -> int:
        """Emission cadence in samples (>= 1)."""
        step_px = max(self.min_spacing_px, self.sample_step_px)
        return max(1, round_half_up(step_px / self.sample_step_px))


@dataclass(frozen=True, slots=True)
class DropletRecord:
    """One scheduled continuous-mode droplet.

    Parameters
    ----------
    s_px, s_mm : float
        Arc-length position from the path start.
    t_ms : float
        Emission time at constant feed speed.
    width_mm : float
        Pulse width.
    amplitude : float
        Pulse amplitude in [0, 1].
    """

    s_px: float
    s_mm: float
    t_ms: float
    width_mm: float
    amplitude: float


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    """Droplets plus the synthesized signal (one value per input sample)."""

    drops: tuple[DropletRecord, ...]
    signal: tuple[float, ...]


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------


def _droplet(i: int, params: SynthesisParams, width_mm: float, amplitude: float) -> DropletRecord:
    s_px = i * params.sample_step_px
    s_mm = px_to_mm(s_px, params.mm_per_pixel)
    t_ms = (s_mm / params.feed_speed_mm_s) * 1000
    return DropletRecord(
        s_px=s_px, s_mm=s_mm, t_ms=t_ms, width_mm=width_mm, amplitude=amplitude,
    )


def _synthesize_pwm(
    f: Sequence[float], params: SynthesisParams, step_idx: int,
) -> tuple[list[DropletRecord], list[float]]:
    drops: list[DropletRecord] = []
    g = [0.0] * len(f)
    width_min_px = params.width_min_px
    range_px = max(0.0, params.width_max_px - width_min_px)
    for i in range(0, len(f), step_idx):
        v = clamp(f[i], 0, 1)
        w_px = width_min_px + v * range_px
        drops.append(_droplet(i, params, px_to_mm(w_px, params.mm_per_pixel), 1.0))
        g[i] = (w_px - width_min_px) / range_px if range_px > 0 else 0
    return drops, g


def _synthesize_am(
    f: Sequence[float], params: SynthesisParams, step_idx: int,
) -> tuple[list[DropletRecord], list[float]]:
    drops: list[DropletRecord] = []
    g = [0.0] * len(f)
    w0_mm = 0.5 * (params.width_min_mm + params.width_max_mm)
    for i in range(0, len(f), step_idx):
        v = clamp(f[i], 0, 1)
        drops.append(_droplet(i, params, w0_mm, v))
        g[i] = v
    return drops, g


def _synthesize_dither(
    f: Sequence[float], params: SynthesisParams, step_idx: int,
) -> tuple[list[DropletRecord], list[float]]:
    drops: list[DropletRecord] = []
    work = list(f)
    n = len(work)
    g = [0.0] * n
    w0_mm = 0.5 * (params.width_min_mm + params.width_max_mm)
    for i in range(n):
        v = clamp(work[i], 0, 1)
        out = 1 if v >= params.threshold else 0
        err = v - out
        g[i] = out
        for k, weight in enumerate(DITHER_WEIGHTS, start=1):
            if i + k < n:
                work[i + k] += err * weight
        if i % step_idx == 0 and out > 0:
            drops.append(_droplet(i, params, w0_mm, 1.0))
    return drops, g


_SYNTHESIZERS = {
    "PWM": _synthesize_pwm,
    "AM": _synthesize_am,
    "DITHER": _synthesize_dither,
}


def synthesize(intensity: Sequence[float], params: SynthesisParams) -> SynthesisResult:
    """Turn an ink-intensity sequence into droplet events.

    Parameters
    ----------
    intensity : Sequence[float]
        Ink intensity per uniformly resampled path sample (values outside
        [0, 1] are clamped before use).
    params : SynthesisParams
        Mode, scale and waveform settings.

    Returns
    -------
    SynthesisResult
        Droplets in ascending arc-length order and the synthesized signal
        (PWM: normalized width, AM: amplitude, DITHER: quantized output;
        zero where nothing was emitted).
    """
    step_idx = params.step_idx
    drops, g = _SYNTHESIZERS[params.mode](intensity, params, step_idx)
    logger.debug(
        "Synthesized %d drops from %d samples (mode=%s, step_idx=%d)",
        len(drops), len(intensity), params.mode, step_idx,
    )
    return SynthesisResult(drops=tuple(drops), signal=tuple(float(v) for v in g))
