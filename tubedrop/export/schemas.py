"""Pydantic schemas for imported schedule files.

The exported segment schedule uses camelCase keys; these models accept
them as aliases so that a file written by :mod:`tubedrop.export.schedule_io`
validates without translation.

Schemas:
    - StepModel: one ``ehdSteps`` entry (``duration`` or ``duration_ms``)
    - SegmentModel: one ``segments`` entry
    - CalibrationModel: ``{dense, sparse}`` presets

Every model is checked in isolation.  Whether a failure filters one entry
or fails the whole import is decided by the caller.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class StepModel(BaseModel):
    """Hardware actuation step: both channels in [0, 100], duration >= 1 ms.

    Fractional values are accepted; the importer rounds them half-up.
    """
    model_config = ConfigDict(populate_by_name=True)

    ch0: float = Field(..., ge=0, le=100, allow_inf_nan=False, description="Channel 0 level")
    ch1: float = Field(..., ge=0, le=100, allow_inf_nan=False, description="Channel 1 level")
    duration: float = Field(
        ...,
        ge=1,
        allow_inf_nan=False,
        validation_alias=AliasChoices("duration", "duration_ms"),
        description="Step duration (ms)",
    )


class SegmentModel(BaseModel):
    """Density region in tube centimetres."""
    model_config = ConfigDict(populate_by_name=True)

    start_cm: float = Field(..., ge=0.0, alias="startCm")
    end_cm: float = Field(..., alias="endCm")
    density_level: int = Field(..., ge=1, le=10, alias="densityLevel")

    @model_validator(mode='after')
    def validate_bounds(self) -> 'SegmentModel':
        if not self.start_cm < self.end_cm:
            raise ValueError(
                f"startCm must be < endCm, got [{self.start_cm}, {self.end_cm})"
            )
        return self


class PresetModel(BaseModel):
    """One calibration reference point."""
    model_config = ConfigDict(populate_by_name=True)

    ch0: int = Field(..., ge=0, le=100)
    ch1: int = Field(..., ge=0, le=100)
    duration_base: int = Field(
        ..., ge=1, validation_alias=AliasChoices("duration_base", "durationBase"),
    )
    resistance_factor: float = Field(
        1.0, gt=0.0,
        validation_alias=AliasChoices("resistance_factor", "resistanceFactor"),
    )


class CalibrationModel(BaseModel):
    """Sparse / dense preset pair."""
    dense: PresetModel
    sparse: PresetModel


class SegmentScheduleFile(BaseModel):
    """Top-level segment schedule document (unknown keys ignored)."""
    model_config = ConfigDict(populate_by_name=True)

    tube_length_cm: Optional[float] = Field(None, gt=0.0, alias="tubeLengthCm")
    feed_speed_mm_s: Optional[float] = Field(None, gt=0.0, alias="feedSpeed")
    calibration: Optional[CalibrationModel] = None
