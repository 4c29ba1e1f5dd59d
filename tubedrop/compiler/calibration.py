"""Two-point (sparse / dense) calibration for segment actuation values.

A :class:`CalibrationProfile` holds two measured presets.  Density level
1 maps to the sparse preset, level 10 to the dense preset, and levels in
between are linearly interpolated::

    ratio         = (level - 1) / 9
    ch0           = round(lerp(sparse.ch0, dense.ch0, ratio))
    duration_base = round(lerp(sparse.duration_base, dense.duration_base, ratio))

``ch1`` is shared by both presets and is not interpolated.
``resistance_factor`` is interpolated and carried along with the other
parameters, but no duration or level computation consumes it yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tubedrop.segments.model import MAX_DENSITY, MIN_DENSITY, SegmentError
from tubedrop.utils.compute import lerp, round_half_up


@dataclass(frozen=True, slots=True)
class CalibrationPreset:
    """One calibrated reference point.

    Parameters
    ----------
    ch0, ch1 : int
        Channel levels in [0, 100].
    duration_base : int
        Reference step duration in ms, >= 1.
    resistance_factor : float
        Measured flow resistance, > 0.
    """

    ch0: int
    ch1: int
    duration_base: int
    resistance_factor: float

    def __post_init__(self) -> None:
        for name in ("ch0", "ch1"):
            val = getattr(self, name)
            if not 0 <= val <= 100:
                raise ValueError(f"Preset {name} must be in [0, 100], got {val}")
        if self.duration_base < 1:
            raise ValueError(
                f"Preset duration_base must be >= 1, got {self.duration_base}"
            )
        if not self.resistance_factor > 0:
            raise ValueError(
                f"Preset resistance_factor must be > 0, got {self.resistance_factor}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ch0": self.ch0,
            "ch1": self.ch1,
            "duration_base": self.duration_base,
            "resistance_factor": self.resistance_factor,
        }


@dataclass(frozen=True, slots=True)
class CalibrationProfile:
    """Dense and sparse presets for one tube / fluid combination."""

    dense: CalibrationPreset
    sparse: CalibrationPreset

    @property
    def ch1(self) -> int:
        """Shared ``ch1`` value (taken from the dense preset)."""
        return self.dense.ch1

    def to_dict(self) -> dict[str, Any]:
        return {"dense": self.dense.to_dict(), "sparse": self.sparse.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CalibrationProfile:
        """Build a profile from ``{"dense": {...}, "sparse": {...}}``.

        Raises
        ------
        KeyError
            If a preset or preset field is missing.
        ValueError
            If a value is out of range.
        """
        def preset(raw: dict[str, Any]) -> CalibrationPreset:
            return CalibrationPreset(
                ch0=int(raw["ch0"]),
                ch1=int(raw["ch1"]),
                duration_base=int(raw["duration_base"]),
                resistance_factor=float(raw["resistance_factor"]),
            )

        return cls(dense=preset(data["dense"]), sparse=preset(data["sparse"]))


DEFAULT_PROFILE = CalibrationProfile(
    dense=CalibrationPreset(ch0=80, ch1=70, duration_base=1500, resistance_factor=1.0),
    sparse=CalibrationPreset(ch0=30, ch1=70, duration_base=3000, resistance_factor=0.5),
)


@dataclass(frozen=True, slots=True)
class SegmentParameters:
    """Actuation parameters derived for one density level."""

    ch0: int
    ch1: int
    duration_base: int
    resistance_factor: float


def derive_segment_parameters(
    density_level: int,
    profile: CalibrationProfile,
) -> SegmentParameters:
    """Interpolate actuation parameters for *density_level*.

    Parameters
    ----------
    density_level : int
        Integer level in [1, 10].
    profile : CalibrationProfile
        Sparse (level 1) and dense (level 10) presets.

    Returns
    -------
    SegmentParameters
    """
    if not MIN_DENSITY <= density_level <= MAX_DENSITY:
        raise SegmentError(
            f"density_level must be in [{MIN_DENSITY}, {MAX_DENSITY}], "
            f"got {density_level}"
        )
    ratio = (density_level - 1) / 9
    sparse, dense = profile.sparse, profile.dense
    return SegmentParameters(
        ch0=round_half_up(lerp(sparse.ch0, dense.ch0, ratio)),
        ch1=profile.ch1,
        duration_base=round_half_up(
            lerp(sparse.duration_base, dense.duration_base, ratio)
        ),
        resistance_factor=lerp(
            sparse.resistance_factor, dense.resistance_factor, ratio
        ),
    )
