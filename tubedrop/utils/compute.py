"""Scalar numerics and unit conversions shared by the schedule pipeline.

Core utilities:
    - clamp(), lerp(): bounded interpolation
    - round_half_up(): integer rounding with ties toward +inf
    - mm_to_px(), px_to_mm(): canvas scale conversions
    - cm_to_mm()
    - to_fixed(): fixed-point formatting for exported numbers

Invariants:
    - Path geometry is in canvas pixels; tube positions are mm (continuous
      mode) or cm (segment mode); conversions happen at boundaries only
    - Everything here is plain ``float`` arithmetic so that the order of
      operations, and therefore every output bit, is reproducible

Rounding:
    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``).
    Hardware channel values and emission cadence use ties-up rounding
    (``round_half_up(2.5) == 3``) everywhere in this package.
"""

import math
from decimal import ROUND_HALF_UP, Decimal


def clamp(v: float, lo: float, hi: float) -> float:
    """Clamp *v* into ``[lo, hi]``."""
    return max(lo, min(hi, v))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation ``a + (b - a) * t``."""
    return a + (b - a) * t


def round_half_up(x: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    Examples
    --------
    >>> round_half_up(2.5), round_half_up(-2.5), round_half_up(55.0)
    (3, -2, 55)
    """
    return math.floor(x + 0.5)


def mm_to_px(mm: float, mm_per_pixel: float) -> float:
    """Convert a length in mm to canvas pixels."""
    return mm / mm_per_pixel


def px_to_mm(px: float, mm_per_pixel: float) -> float:
    """Convert a length in canvas pixels to mm."""
    return px * mm_per_pixel


def cm_to_mm(cm: float) -> float:
    """Convert tube centimetres to millimetres."""
    return cm * 10


def to_fixed(x: float, digits: int) -> str:
    """Format *x* with *digits* decimals, rounding the exact binary value half-up.

    ``format(x, ".2f")`` rounds ties to even; exported schedules use
    ties-away-from-zero on the exact value instead (``0.125 -> "0.13"``).
    """
    quantum = Decimal(1).scaleb(-digits)
    return format(Decimal(x).quantize(quantum, rounding=ROUND_HALF_UP), "f")
