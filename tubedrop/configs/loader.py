"""Configuration loader for schedule generation.

Loads and validates ``tube.yaml`` into typed, frozen dataclasses.  Scale,
waveform defaults, tube geometry and calibration presets all come from
the config; the dataclass defaults elsewhere in the package only mirror
the shipped file.

Feed speeds are stored in **mm/s**.  Tube geometry is in **cm**.

Usage::

    from tubedrop.configs.loader import load_config
    cfg = load_config()                    # default path
    cfg = load_config("/custom/tube.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tubedrop.compiler.calibration import CalibrationPreset, CalibrationProfile
from tubedrop.segments.model import MAX_DENSITY, MIN_DENSITY
from tubedrop.synthesis.continuous import SynthesisParams
from tubedrop.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResampleConfig:
    """Spline smoothing density."""

    samples_per_segment: int


@dataclass(frozen=True)
class SegmentsConfig:
    """Segment-mode tube geometry and compiler limits."""

    tube_length_cm: float
    default_segment_length_cm: float
    default_density_level: int
    max_steps: int
    feed_speed_mm_s: float


@dataclass(frozen=True)
class LoggingConfig:
    """Log level, format and optional file sink."""

    level: str = "INFO"
    json: bool = False
    file: str | None = None


@dataclass(frozen=True)
class TubeConfig:
    """Top-level configuration."""

    synthesis: SynthesisParams
    resample: ResampleConfig
    segments: SegmentsConfig
    calibration: CalibrationProfile
    logging: LoggingConfig


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_synthesis(data: dict[str, Any]) -> SynthesisParams:
    return SynthesisParams(
        mode=str(data["mode"]).upper(),
        mm_per_pixel=float(data["mm_per_pixel"]),
        feed_speed_mm_s=float(data["feed_speed_mm_s"]),
        min_spacing_mm=float(data["min_spacing_mm"]),
        width_min_mm=float(data["width_min_mm"]),
        width_max_mm=float(data["width_max_mm"]),
        diffusion_sigma_mm=float(data.get("diffusion_sigma_mm", 0.25)),
        sample_step_px=float(data["sample_step_px"]),
        threshold=float(data.get("threshold", 0.5)),
    )


def _parse_preset(name: str, data: dict[str, Any]) -> CalibrationPreset:
    if not isinstance(data, dict):
        raise ConfigError(f"calibration.{name} must be a mapping, got {type(data)}")
    return CalibrationPreset(
        ch0=int(data["ch0"]),
        ch1=int(data["ch1"]),
        duration_base=int(data["duration_base"]),
        resistance_factor=float(data.get("resistance_factor", 1.0)),
    )


def _validate_config(cfg: TubeConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    seg = cfg.segments
    if seg.tube_length_cm <= 0:
        raise ConfigError(f"tube_length_cm must be > 0, got {seg.tube_length_cm}")
    if not 0 < seg.default_segment_length_cm <= seg.tube_length_cm:
        raise ConfigError(
            f"default_segment_length_cm must be in (0, {seg.tube_length_cm}], "
            f"got {seg.default_segment_length_cm}"
        )
    if not MIN_DENSITY <= seg.default_density_level <= MAX_DENSITY:
        raise ConfigError(
            f"default_density_level must be in [{MIN_DENSITY}, {MAX_DENSITY}], "
            f"got {seg.default_density_level}"
        )
    if seg.max_steps < 1:
        raise ConfigError(f"max_steps must be >= 1, got {seg.max_steps}")
    if seg.feed_speed_mm_s <= 0:
        raise ConfigError(f"segments.feed_speed_mm_s must be > 0, got {seg.feed_speed_mm_s}")

    if cfg.resample.samples_per_segment < 1:
        raise ConfigError(
            f"samples_per_segment must be >= 1, got {cfg.resample.samples_per_segment}"
        )

    if cfg.calibration.dense.ch1 != cfg.calibration.sparse.ch1:
        logger.warning(
            "Calibration presets disagree on ch1 (dense=%d, sparse=%d); "
            "dense value is used",
            cfg.calibration.dense.ch1, cfg.calibration.sparse.ch1,
        )

    level = cfg.logging.level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"Unknown logging level {cfg.logging.level!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> TubeConfig:
    """Load and validate schedule configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``tube.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    TubeConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is not valid YAML, or any field is missing or fails
        validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "tube.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug("Loading configuration from %s", path)

    try:
        data: dict[str, Any] = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed configuration file {path}: {exc}") from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        # -- synthesis ------------------------------------------------------
        synthesis = _parse_synthesis(data["synthesis"])

        # -- resample -------------------------------------------------------
        resample = ResampleConfig(
            samples_per_segment=int(data["resample"]["samples_per_segment"]),
        )

        # -- segments -------------------------------------------------------
        seg_data = data["segments"]
        segments = SegmentsConfig(
            tube_length_cm=float(seg_data["tube_length_cm"]),
            default_segment_length_cm=float(seg_data["default_segment_length_cm"]),
            default_density_level=int(seg_data["default_density_level"]),
            max_steps=int(seg_data.get("max_steps", 100)),
            feed_speed_mm_s=float(seg_data["feed_speed_mm_s"]),
        )

        # -- calibration ----------------------------------------------------
        cal_data = data["calibration"]
        calibration = CalibrationProfile(
            dense=_parse_preset("dense", cal_data["dense"]),
            sparse=_parse_preset("sparse", cal_data["sparse"]),
        )

        # -- logging --------------------------------------------------------
        log_data = data.get("logging") or {}
        log_file = log_data.get("file")
        logging_cfg = LoggingConfig(
            level=str(log_data.get("level", "INFO")),
            json=bool(log_data.get("json", False)),
            file=str(log_file) if log_file else None,
        )

        config = TubeConfig(
            synthesis=synthesis,
            resample=resample,
            segments=segments,
            calibration=calibration,
            logging=logging_cfg,
        )

        _validate_config(config)
        logger.debug("Configuration loaded successfully")
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc
