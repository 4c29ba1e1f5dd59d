#!/usr/bin/env python3
"""
Run Schedule Script.

Derive drop schedules from a path over an image, compile segment files
into hardware steps, or validate an exported schedule.

Usage:
    python -m tubedrop.scripts.run_schedule continuous --path path.yaml --image target.png --json out.json
    python -m tubedrop.scripts.run_schedule continuous --pattern zigzag --start 10 10 --end 300 200 --image target.png --csv out.csv
    python -m tubedrop.scripts.run_schedule segments --segments tube.json --out schedule.json --wire
    python -m tubedrop.scripts.run_schedule import schedule.json

Path files are YAML (or JSON) with a ``points`` list of ``[x, y]`` pairs in
canvas pixels.  Segment files carry ``tube_length_cm`` (or
``tubeLengthCm``) and a ``segments`` list of ``{start_cm, end_cm,
density_level}`` records (camelCase keys accepted).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tubedrop.compiler.steps import compile_droplets, compile_segments
from tubedrop.configs.loader import ConfigError, TubeConfig, load_config
from tubedrop.export.schedule_io import (
    ScheduleImportError,
    export_continuous_csv,
    export_continuous_json,
    export_segment_json,
    import_segment_schedule,
)
from tubedrop.export.schemas import SegmentModel
from tubedrop.export.wire import pattern_message
from tubedrop.path.patterns import PatternParams, generate_pattern
from tubedrop.path.spline import Point
from tubedrop.sampling.raster import adjust_raster, fit_raster, load_raster
from tubedrop.segments.model import Segment, SegmentError, SegmentSet
from tubedrop.synthesis.continuous import MODES
from tubedrop.synthesis.pipeline import compute_schedule
from tubedrop.utils.fs import atomic_write_text, load_yaml
from tubedrop.utils.logging_config import install_excepthook, setup_logging

logger = logging.getLogger(__name__)

PATTERNS = ("zigzag", "parallel", "wave")


# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------


def _load_document(path: Path) -> Any:
    if path.suffix.lower() == ".json":
        return json.loads(path.read_text(encoding="utf-8"))
    return load_yaml(path)


def _load_points(path: Path) -> list[Point]:
    data = _load_document(path)
    raw = data.get("points") if isinstance(data, dict) else data
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a 'points' list")
    return [(float(p[0]), float(p[1])) for p in raw]


def _load_segment_set(path: Path, default_length_cm: float) -> SegmentSet:
    data = _load_document(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with a 'segments' list")
    length = data.get("tube_length_cm", data.get("tubeLengthCm", default_length_cm))
    segments = []
    for entry in data.get("segments") or []:
        model = SegmentModel.model_validate(entry)
        segments.append(Segment(
            start_cm=model.start_cm,
            end_cm=model.end_cm,
            density_level=model.density_level,
        ))
    return SegmentSet(tube_length_cm=float(length), segments=tuple(segments))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _run_continuous(args: argparse.Namespace, config: TubeConfig) -> int:
    params = config.synthesis
    if args.mode:
        params = replace(params, mode=args.mode)
    if args.feed:
        params = replace(params, feed_speed_mm_s=args.feed)

    if args.pattern:
        pattern_params = PatternParams(
            top_folds=args.folds, bottom_folds=args.folds,
        )
        points = generate_pattern(
            args.pattern, tuple(args.start), tuple(args.end), pattern_params,
        )
        print(f"Generated {args.pattern} pattern: {len(points)} control points")
    else:
        points = _load_points(Path(args.path))

    raster = load_raster(args.image)
    if args.canvas:
        raster = fit_raster(raster, args.canvas[0], args.canvas[1])
    if args.brightness != 1.0 or args.contrast != 1.0:
        raster = adjust_raster(raster, args.brightness, args.contrast)

    schedule = compute_schedule(
        points, raster, params, config.resample.samples_per_segment,
    )
    if schedule.is_empty:
        print("No schedule: the path needs at least two control points.")
        return 1

    print(
        f"Mode {params.mode}: {len(schedule.drops)} drops over "
        f"{schedule.curve_length_mm:.1f} mm"
    )
    if args.json:
        export_continuous_json(schedule, args.json)
        print(f"JSON written to: {args.json}")
    if args.csv:
        export_continuous_csv(schedule, args.csv)
        print(f"CSV written to: {args.csv}")
    if args.steps:
        tube_length_cm = schedule.curve_length_mm / 10
        compiled = compile_droplets(
            schedule.drops, tube_length_cm, params,
            config.calibration, config.segments.max_steps,
        )
        atomic_write_text(args.steps, json.dumps(pattern_message(compiled.steps), indent=2))
        print(f"{len(compiled.steps)} steps written to: {args.steps}")
    return 0


def _run_segments(args: argparse.Namespace, config: TubeConfig) -> int:
    segment_set = _load_segment_set(
        Path(args.segments), config.segments.tube_length_cm,
    )
    feed = args.feed or config.segments.feed_speed_mm_s
    compiled = compile_segments(
        segment_set, feed, config.calibration, config.segments.max_steps,
    )

    print(
        f"{len(segment_set)} segments over {segment_set.tube_length_cm:g} cm "
        f"-> {len(compiled.steps)} steps ({compiled.total_duration_ms / 1000:.1f} s)"
    )
    if compiled.truncated:
        print(f"Warning: step cap {config.segments.max_steps} reached, trailing segments dropped")

    for i, step in enumerate(compiled.steps):
        print(f"  {i:3d}: ch0={step.ch0:3d} ch1={step.ch1:3d} duration={step.duration_ms} ms")

    if args.out:
        export_segment_json(segment_set, compiled, config.calibration, path=args.out)
        print(f"Schedule written to: {args.out}")
    if args.wire:
        print(json.dumps(pattern_message(compiled.steps)))
    return 0


def _run_import(args: argparse.Namespace, config: TubeConfig) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    imported = import_segment_schedule(
        text,
        default_profile=config.calibration,
        feed_speed_mm_s=config.segments.feed_speed_mm_s,
        max_steps=config.segments.max_steps,
    )
    source = "derived from segments" if imported.derived else "read"
    print(f"{len(imported.steps)} valid steps {source}")
    for i, step in enumerate(imported.steps):
        print(f"  {i:3d}: ch0={step.ch0:3d} ch1={step.ch1:3d} duration={step.duration_ms} ms")
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Derive, compile and validate tube drop schedules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Modes: {', '.join(MODES)}.  Patterns: {', '.join(PATTERNS)}.",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit JSON log lines",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # -- continuous ---------------------------------------------------------
    cont = sub.add_parser("continuous", help="Path + image -> droplet schedule")
    source = cont.add_mutually_exclusive_group(required=True)
    source.add_argument("--path", type=str, help="Control point file (YAML/JSON)")
    source.add_argument("--pattern", type=str, choices=PATTERNS, help="Generated fill pattern")
    cont.add_argument("--start", type=float, nargs=2, metavar=("X", "Y"), default=(0.0, 0.0))
    cont.add_argument("--end", type=float, nargs=2, metavar=("X", "Y"), default=(100.0, 100.0))
    cont.add_argument("--folds", type=int, default=5, help="Pattern fold count")
    cont.add_argument("--image", type=str, required=True, help="Target image")
    cont.add_argument(
        "--canvas", type=int, nargs=2, metavar=("W", "H"),
        help="Letterbox the image into a W x H canvas first",
    )
    cont.add_argument("--brightness", type=float, default=1.0)
    cont.add_argument("--contrast", type=float, default=1.0)
    cont.add_argument("--mode", type=str.upper, choices=MODES, help="Synthesis mode override")
    cont.add_argument("--feed", type=float, help="Feed speed override (mm/s)")
    cont.add_argument("--json", type=str, help="Write drop_schedule.json here")
    cont.add_argument("--csv", type=str, help="Write drop_schedule.csv here")
    cont.add_argument("--steps", type=str, help="Compile drops to a device pattern message")

    # -- segments -----------------------------------------------------------
    seg = sub.add_parser("segments", help="Segment file -> hardware steps")
    seg.add_argument("--segments", type=str, required=True, help="Segment file (YAML/JSON)")
    seg.add_argument("--feed", type=float, help="Feed speed override (mm/s)")
    seg.add_argument("--out", type=str, help="Write the schedule JSON here")
    seg.add_argument("--wire", action="store_true", help="Print the device pattern message")

    # -- import -------------------------------------------------------------
    imp = sub.add_parser("import", help="Validate an exported segment schedule")
    imp.add_argument("file", type=str, help="Schedule JSON")

    return parser


_COMMANDS = {
    "continuous": _run_continuous,
    "segments": _run_segments,
    "import": _run_import,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error loading config: {e}")
        return 1

    setup_logging(
        log_level=args.log_level or config.logging.level,
        log_file=config.logging.file,
        json=args.log_json or config.logging.json,
        quiet_libs=["PIL"],
        context={"app": "run_schedule", "command": args.command},
    )
    install_excepthook()

    try:
        return _COMMANDS[args.command](args, config)
    except ScheduleImportError as e:
        print(f"Import failed: {e}")
        return 1
    except (SegmentError, ValidationError) as e:
        print(f"Invalid segments: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        logger.debug("Command failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
