"""Fill-pattern path generators.

Each generator lays a single continuous tube path over the rectangle
spanned by *start* and *end* and returns it as a control-point list for
:func:`tubedrop.path.spline.sample_spline`.  All dimensions are in
**pixels** of the path-editing canvas; use :func:`physical_pattern_params`
to derive them from millimetre settings.

Available patterns:

    zigzag    alternating top / bottom fold columns, one tube width per row
    parallel  straight runs between the top and bottom edge
    wave      stacked sine lines
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from tubedrop.path.spline import Point
from tubedrop.utils.compute import mm_to_px

PatternKind = Literal["zigzag", "parallel", "wave"]

# Upper bound on zigzag rows for very small tube widths
_MAX_ZIGZAG_STEPS = 1000


@dataclass(frozen=True)
class PatternParams:
    """Pattern settings in canvas pixels.

    Parameters
    ----------
    top_folds, bottom_folds : int
        Fold columns along the top / bottom edge (zigzag).  ``top_folds``
        doubles as the fold count for ``parallel``.
    tube_width : float
        Row advance per zigzag step.
    spacing : float
        Distance between wave lines.
    amplitude : float
        Wave amplitude.
    frequency : float
        Wave angular frequency per pixel.
    """

    top_folds: int = 5
    bottom_folds: int = 5
    tube_width: float = 4.0
    spacing: float = 8.0
    amplitude: float = 20.0
    frequency: float = 0.1


def physical_pattern_params(
    tube_spacing_mm: float,
    amplitude_mm: float,
    frequency_per_mm: float,
    mm_per_pixel: float,
    top_folds: int = 5,
    bottom_folds: int = 5,
) -> PatternParams:
    """Convert millimetre pattern settings to canvas pixels."""
    if mm_per_pixel <= 0:
        raise ValueError(f"mm_per_pixel must be > 0, got {mm_per_pixel}")
    spacing_px = mm_to_px(tube_spacing_mm, mm_per_pixel)
    return PatternParams(
        top_folds=top_folds,
        bottom_folds=bottom_folds,
        tube_width=spacing_px,
        spacing=spacing_px,
        amplitude=mm_to_px(amplitude_mm, mm_per_pixel),
        frequency=frequency_per_mm * mm_per_pixel,
    )


def zigzag(
    start: Point,
    end: Point,
    top_folds: int,
    bottom_folds: int,
    tube_width: float,
) -> list[Point]:
    """Zigzag between top and bottom fold columns.

    Every step moves down by *tube_width* and jumps to the next fold
    column of the alternating edge.  The final point is pinned to
    ``end[1]``.
    """
    if top_folds < 1 or bottom_folds < 1:
        raise ValueError("zigzag requires at least one top and bottom fold")
    if tube_width <= 0:
        raise ValueError(f"tube_width must be > 0, got {tube_width}")

    start_x, start_y = start
    end_y = end[1]
    width = end[0] - start_x

    top_xs = [start_x + (width * i) / top_folds for i in range(top_folds + 1)]
    bottom_xs = [
        start_x + (width * i) / bottom_folds for i in range(bottom_folds + 1)
    ]

    points: list[Point] = []
    current_y = start_y
    going_down = True
    top_idx = 0
    bottom_idx = 0
    steps = 0

    while current_y <= end_y and steps < _MAX_ZIGZAG_STEPS:
        if going_down:
            x = top_xs[top_idx % len(top_xs)]
            top_idx += 1
        else:
            x = bottom_xs[bottom_idx % len(bottom_xs)]
            bottom_idx += 1
        points.append((x, current_y))

        current_y += tube_width
        if current_y >= end_y:
            points.append((x, end_y))
            break

        going_down = not going_down
        steps += 1

    return points


def parallel(start: Point, end: Point, folds: int) -> list[Point]:
    """Straight runs alternating between the top and bottom edge."""
    if folds < 1:
        raise ValueError(f"folds must be >= 1, got {folds}")

    start_x, start_y = start
    end_y = end[1]
    width = end[0] - start_x
    total = folds * 2

    return [
        (start_x + (width * i) / total, start_y if i % 2 == 0 else end_y)
        for i in range(total + 1)
    ]


def wave(
    start: Point,
    end: Point,
    spacing: float,
    amplitude: float,
    frequency: float,
) -> list[Point]:
    """Stacked sine lines ``spacing`` apart.

    Samples falling outside the ``[start_y, end_y]`` band are dropped.
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be > 0, got {spacing}")

    start_x, start_y = start
    end_x, end_y = end
    width = end_x - start_x
    height = end_y - start_y
    num_lines = math.floor(height / spacing)
    step = max(1.0, width / 100)

    points: list[Point] = []
    for i in range(num_lines):
        line_y = start_y + i * spacing
        j = 0.0
        while j <= width:
            y = line_y + math.sin(j * frequency) * amplitude
            if start_y <= y <= end_y:
                points.append((start_x + j, y))
            j += step
        if width > 0:
            y_end = line_y + math.sin(width * frequency) * amplitude
            if start_y <= y_end <= end_y:
                points.append((end_x, y_end))

    return points


def generate_pattern(
    kind: str,
    start: Point,
    end: Point,
    params: PatternParams | None = None,
) -> list[Point]:
    """Dispatch to a pattern generator by name.

    Unknown pattern names yield an empty path.
    """
    p = params or PatternParams()
    if kind == "zigzag":
        return zigzag(start, end, p.top_folds, p.bottom_folds, p.tube_width)
    if kind == "parallel":
        return parallel(start, end, p.top_folds)
    if kind == "wave":
        return wave(start, end, p.spacing, p.amplitude, p.frequency)
    return []
