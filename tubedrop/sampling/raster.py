"""Raster preparation and per-sample ink intensity.

The target picture is a ``numpy`` raster in the path-editing frame
(one pixel per canvas pixel, top-left origin):

    - ``(H, W)``     uint8 grayscale
    - ``(H, W, 3)``  uint8 RGB
    - ``(H, W, 4)``  uint8 RGBA (alpha ignored)

Intensity convention:
    ``grayscale_at`` returns perceptual luma in [0, 1] (1 = white).
    Ink intensity is ``1 - luma``, so 1.0 means maximal ink.

Sampling never indexes out of bounds: coordinates are clamped into the
raster, then floored to a pixel index.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image

from tubedrop.path.spline import Point

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
_LUMA_R = 0.299
_LUMA_G = 0.587
_LUMA_B = 0.114


def _check_raster(raster: np.ndarray) -> None:
    if raster.ndim not in (2, 3):
        raise ValueError(f"raster must be (H, W) or (H, W, C), got {raster.shape}")
    if raster.ndim == 3 and raster.shape[2] not in (3, 4):
        raise ValueError(f"raster must have 3 or 4 channels, got {raster.shape[2]}")
    if raster.shape[0] == 0 or raster.shape[1] == 0:
        raise ValueError(f"raster must not be empty, got {raster.shape}")


def grayscale_at(raster: np.ndarray, x: float, y: float) -> float:
    """Perceptual grayscale of the pixel under ``(x, y)``.

    Parameters
    ----------
    raster : np.ndarray
        Target image, see module docstring for accepted layouts.
    x, y : float
        Canvas position in pixels; clamped into
        ``[0, W-1] x [0, H-1]`` before flooring.

    Returns
    -------
    float
        ``(0.299 R + 0.587 G + 0.114 B) / 255`` in [0, 1].
    """
    _check_raster(raster)
    height, width = raster.shape[0], raster.shape[1]
    xi = math.floor(min(max(x, 0), width - 1))
    yi = math.floor(min(max(y, 0), height - 1))

    if raster.ndim == 2:
        r = g = b = int(raster[yi, xi])
    else:
        r = int(raster[yi, xi, 0])
        g = int(raster[yi, xi, 1])
        b = int(raster[yi, xi, 2])
    return (_LUMA_R * r + _LUMA_G * g + _LUMA_B * b) / 255


def ink_intensity(raster: np.ndarray, x: float, y: float) -> float:
    """Target ink at ``(x, y)``: ``1 - grayscale_at(raster, x, y)``."""
    return 1 - grayscale_at(raster, x, y)


def sample_intensity(raster: np.ndarray, points: Sequence[Point]) -> list[float]:
    """Ink intensity for every point of a uniformly resampled path."""
    return [ink_intensity(raster, p[0], p[1]) for p in points]


# ---------------------------------------------------------------------------
# Raster preparation
# ---------------------------------------------------------------------------


def load_raster(path: str | Path) -> np.ndarray:
    """Load an image file as an ``(H, W, 3)`` uint8 RGB raster.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as img:
        raster = np.array(img.convert("RGB"), dtype=np.uint8)
    logger.info("Loaded raster %s (%dx%d)", path, raster.shape[1], raster.shape[0])
    return raster


def fit_raster(
    raster: np.ndarray,
    width: int,
    height: int,
    offset: tuple[float, float] = (0.0, 0.0),
) -> np.ndarray:
    """Letterbox *raster* into a white ``width x height`` canvas.

    The image is scaled to fit while keeping its aspect ratio, centred,
    then shifted by *offset* (pixels).  Parts pushed off-canvas are cut.

    Returns
    -------
    np.ndarray
        ``(height, width, 3)`` uint8 RGB.
    """
    _check_raster(raster)
    if width <= 0 or height <= 0:
        raise ValueError(f"canvas size must be positive, got {width}x{height}")

    src = Image.fromarray(raster).convert("RGB")
    scale = min(width / src.width, height / src.height)
    w = max(1, round(src.width * scale))
    h = max(1, round(src.height * scale))
    resized = src.resize((w, h), Image.Resampling.BILINEAR)

    canvas = Image.new("RGB", (width, height), (255, 255, 255))
    x = round((width - w) / 2 + offset[0])
    y = round((height - h) / 2 + offset[1])
    canvas.paste(resized, (x, y))
    return np.array(canvas, dtype=np.uint8)


def adjust_raster(
    raster: np.ndarray,
    brightness: float = 1.0,
    contrast: float = 1.0,
) -> np.ndarray:
    """Grayscale the raster and apply contrast, then brightness.

    Per pixel: ``g = luma``, ``g = (g - 128) * contrast + 128``,
    ``g = g * brightness``, clamped to [0, 255] and written to R, G and B.
    Alpha, if present, is preserved.

    Parameters
    ----------
    raster : np.ndarray
        Source raster (not modified).
    brightness : float
        Multiplier, 0.0 (black) .. 2.0 (white); 1.0 is neutral.
    contrast : float
        Multiplier around mid-grey, 0.5 .. 2.0; 1.0 is neutral.

    Returns
    -------
    np.ndarray
        New uint8 raster with the same shape as the input.
    """
    _check_raster(raster)
    if raster.ndim == 2:
        gray = raster.astype(np.float64)
    else:
        rgb = raster[..., :3].astype(np.float64)
        gray = rgb[..., 0] * _LUMA_R + rgb[..., 1] * _LUMA_G + rgb[..., 2] * _LUMA_B

    gray = (gray - 128) * contrast + 128
    gray = gray * brightness
    gray = np.rint(np.clip(gray, 0, 255)).astype(np.uint8)

    if raster.ndim == 2:
        return gray

    out = raster.copy()
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    return out
