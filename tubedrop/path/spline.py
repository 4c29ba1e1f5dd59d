"""Spline smoothing and arc-length resampling of operator paths.

A *path* is the ordered list of control points the operator drew on the
editing canvas (pixels, top-left origin, +Y down).  Its first point is
the arc-length origin; the tube is fed in that direction.

Pipeline::

    control points --sample_spline--> dense smoothed polyline
                   --resample_uniform--> points every ``step_px`` of travel

The Catmull-Rom evaluation is uniform (tension 0.5).  End segments reuse
the nearest endpoint as their missing neighbour, so the curve never
extrapolates past the first or last control point.

All functions are pure and keep the same floating-point order of
operations on every call, so identical inputs give identical outputs.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from tubedrop.utils.compute import lerp

Point = tuple[float, float]
"""``(x, y)`` in path-editing pixels."""


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def evaluate_spline(
    p0: Point,
    p1: Point,
    p2: Point,
    p3: Point,
    t: float,
) -> Point:
    """Evaluate the uniform Catmull-Rom segment between *p1* and *p2*.

    Parameters
    ----------
    p0, p3 : Point
        Neighbouring control points that set the end tangents.
    p1, p2 : Point
        Segment endpoints (``t=0`` gives *p1*, ``t=1`` gives *p2*).
    t : float
        Curve parameter in ``[0, 1]``.

    Returns
    -------
    Point
        Interpolated position.
    """
    t2 = t * t
    t3 = t2 * t
    x = 0.5 * (
        (2 * p1[0])
        + (-p0[0] + p2[0]) * t
        + (2 * p0[0] - 5 * p1[0] + 4 * p2[0] - p3[0]) * t2
        + (-p0[0] + 3 * p1[0] - 3 * p2[0] + p3[0]) * t3
    )
    y = 0.5 * (
        (2 * p1[1])
        + (-p0[1] + p2[1]) * t
        + (2 * p0[1] - 5 * p1[1] + 4 * p2[1] - p3[1]) * t2
        + (-p0[1] + 3 * p1[1] - 3 * p2[1] + p3[1]) * t3
    )
    return (x, y)


def sample_spline(
    points: Sequence[Point],
    samples_per_segment: int = 24,
) -> list[Point]:
    """Densify a control polygon with Catmull-Rom interpolation.

    Emits ``samples_per_segment`` points per control-point pair
    (``t = j / samples_per_segment``) followed by the final control
    point.  Paths with fewer than two points are returned unchanged.

    Parameters
    ----------
    points : Sequence[Point]
        Control points in traversal order.
    samples_per_segment : int
        Interpolated samples per segment, must be >= 1.

    Returns
    -------
    list[Point]
        Dense smoothed polyline.
    """
    if samples_per_segment < 1:
        raise ValueError(
            f"samples_per_segment must be >= 1, got {samples_per_segment}"
        )
    if len(points) < 2:
        return [tuple(p) for p in points]

    n = len(points)
    out: list[Point] = []
    for i in range(n - 1):
        p0 = points[0] if i == 0 else points[i - 1]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[i + 2] if i + 2 < n else points[n - 1]
        for j in range(samples_per_segment):
            out.append(evaluate_spline(p0, p1, p2, p3, j / samples_per_segment))
    out.append(tuple(points[-1]))
    return out


def polyline_length(points: Sequence[Point]) -> float:
    """Total arc length of a polyline (0.0 for fewer than two points)."""
    total = 0.0
    for i in range(1, len(points)):
        total += distance(points[i - 1], points[i])
    return total


def resample_uniform(points: Sequence[Point], step_px: float = 2.0) -> list[Point]:
    """Resample a polyline at a fixed arc-length step.

    The distance travelled since the last emitted point is carried across
    segment joins, so spacing is exact along the whole path, not only
    within one segment.  The first point is always emitted; the trailing
    fragment shorter than *step_px* is not.

    Parameters
    ----------
    points : Sequence[Point]
        Dense polyline (usually from :func:`sample_spline`).
    step_px : float
        Arc-length spacing in pixels, must be > 0.

    Returns
    -------
    list[Point]
        Uniformly spaced points; empty for empty input.

    Raises
    ------
    ValueError
        If *step_px* is not positive.
    """
    if step_px <= 0:
        raise ValueError(f"step_px must be > 0, got {step_px}")
    if not points:
        return []

    out: list[Point] = [tuple(points[0])]
    acc = 0.0
    for i in range(1, len(points)):
        a = points[i - 1]
        b = points[i]
        seg_len = distance(a, b)
        t = step_px - acc
        while t <= seg_len:
            u = t / seg_len
            out.append((lerp(a[0], b[0], u), lerp(a[1], b[1], u)))
            t += step_px
        acc = math.fmod(seg_len + acc, step_px)
    return out
