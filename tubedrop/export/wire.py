"""Message shapes consumed by the device transport.

The transport itself lives outside this package; only the JSON objects
it sends are built here::

    {"type": "pattern", "steps": [{"ch0": 80, "ch1": 70, "duration_ms": 5000}, ...]}
    {"type": "start"} | {"type": "stop"} | {"type": "clear"}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tubedrop.compiler.steps import ActuationStep

CONTROL_COMMANDS: tuple[str, ...] = ("start", "stop", "clear")


def pattern_message(steps: Iterable[ActuationStep]) -> dict[str, Any]:
    """Pattern upload carrying the full step list."""
    return {
        "type": "pattern",
        "steps": [
            {"ch0": s.ch0, "ch1": s.ch1, "duration_ms": s.duration_ms}
            for s in steps
        ],
    }


def control_message(command: str) -> dict[str, Any]:
    """Playback control message (``start``, ``stop`` or ``clear``)."""
    if command not in CONTROL_COMMANDS:
        raise ValueError(
            f"Unknown control command {command!r}; "
            f"expected one of {', '.join(CONTROL_COMMANDS)}"
        )
    return {"type": command}
