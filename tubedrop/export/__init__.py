"""
Schedule export and import.

Continuous-mode JSON / CSV, the segment-mode document, the device wire
messages and the import validation that guards them.
"""

from tubedrop.export.schedule_io import (
    CSV_HEADER,
    ImportedSchedule,
    ScheduleImportError,
    continuous_schedule_payload,
    export_continuous_csv,
    export_continuous_json,
    export_segment_json,
    import_segment_schedule,
    segment_schedule_payload,
    validate_step,
)
from tubedrop.export.wire import CONTROL_COMMANDS, control_message, pattern_message

__all__ = [
    "CSV_HEADER",
    "ImportedSchedule",
    "ScheduleImportError",
    "continuous_schedule_payload",
    "export_continuous_csv",
    "export_continuous_json",
    "export_segment_json",
    "import_segment_schedule",
    "segment_schedule_payload",
    "validate_step",
    "CONTROL_COMMANDS",
    "control_message",
    "pattern_message",
]
