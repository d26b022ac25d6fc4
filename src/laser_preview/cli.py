# src/laser_preview/cli.py
"""Command line entry point: render a G-code program as a PNG burn preview.

Usage:
    laser-preview [options] [FILE]

Reads the program from FILE, or from stdin when FILE is omitted or "-", and
writes the PNG to --output, or to stdout.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from laser_preview.core.canvas import CanvasAllocationError
from laser_preview.core.config import PreviewConfig
from laser_preview.integrator.runner import PreviewRunner, build_run_meta
from laser_preview.physics.material import MATERIAL_PRESETS
from laser_preview.schemas.artifacts import ArtifactConfig
from laser_preview.schemas.diagnostics import DiagnosticsConfig
from laser_preview.schemas.tracking import TrackingConfig
from laser_preview.tracking.run_context import RunContext
from laser_preview.viz.preview_artifacts import PreviewArtifactBuilder

logger = logging.getLogger("laser_preview")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="laser-preview",
        description="Simulate a laser engraving G-code program and render the burn as a grayscale PNG.",
    )
    p.add_argument("file", nargs="?", default="-", help="G-code file (default: stdin)")

    canvas = p.add_argument_group("canvas")
    canvas.add_argument("-W", "--width", type=int, help="output image minimum width in pixels (def: 0)")
    canvas.add_argument("-H", "--height", type=int, help="output image minimum height in pixels (def: 0)")
    canvas.add_argument("-p", "--pixel-size", type=float, help="pixel size in millimeters (def: 0.1)")
    canvas.add_argument("--grid", type=int, help="sub-pixel steps used to round X/Y (def: 1)")
    canvas.add_argument("--max-cells", type=int, help="fail if the canvas grows beyond this many pixels")
    canvas.add_argument("--float64", action="store_true", help="accumulate energy in double precision")

    material = p.add_argument_group("material")
    material.add_argument("--material", choices=sorted(MATERIAL_PRESETS), help="material preset (def: clear_wood)")
    material.add_argument("-a", "--absorption", type=float, help="absorption (def: 0.75 for clear wood)")
    material.add_argument("-A", "--absorption-factor", type=float, help="absorption factor once marked (def: 2.0 for wood)")
    material.add_argument("-d", "--diffusion", type=float, help="linear diffusion ratio (def: 0.25)")
    material.add_argument("-e", "--energy-density", type=float, help="minimum energy density in J/mm^2 (def: 0.5)")

    beam = p.add_argument_group("beam")
    beam.add_argument("-P", "-b", "--beam-power", type=float, help="beam power in Watts (def: 10)")
    beam.add_argument("-m", "--multiply", type=float, help="multiply spindle values by this (def: 1.0)")
    beam.add_argument("--feed", type=float, help="feed rate in mm/min assumed before the first F word")

    out = p.add_argument_group("output")
    out.add_argument("-o", "--output", type=Path, help="output PNG file name (def: stdout)")
    out.add_argument("--crop", type=int, nargs=4, metavar=("X0", "Y0", "X1", "Y1"), help="keep only this pixel rectangle")
    out.add_argument("--no-flip", action="store_true", help="write rows in canvas order (+Y down)")
    out.add_argument("--plot", type=Path, help="also save a heat map of the raw energy")
    out.add_argument("--save-raw", type=Path, help="also save the raw result (torch .pt)")

    run = p.add_argument_group("run")
    run.add_argument("--config", type=Path, help="JSON file with a full PreviewConfig")
    run.add_argument("--progress", action="store_true", help="show a progress bar")
    run.add_argument("--track", action="store_true", help="log the run to MLflow")
    run.add_argument("--run-name", help="MLflow run name")
    run.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def build_config(args: argparse.Namespace) -> PreviewConfig:
    """
    Merge the optional JSON config, the material preset and the explicit options.

    Explicit options win over the preset, which wins over the file.

    Raises:
        pydantic.ValidationError: If the merged values are invalid.
    """
    base = PreviewConfig.from_json_file(args.config) if args.config else PreviewConfig()
    data = base.model_dump()

    if args.material:
        data["material"] = MATERIAL_PRESETS[args.material]().model_dump()

    overrides = {
        ("width",): args.width,
        ("height",): args.height,
        ("coordinate_grid",): args.grid,
        ("max_cells",): args.max_cells,
        ("initial_feed",): args.feed,
        ("material", "absorption"): args.absorption,
        ("material", "absorption_factor"): args.absorption_factor,
        ("material", "diffusion_lin"): args.diffusion,
        ("material", "energy_density"): args.energy_density,
        ("beam", "power"): args.beam_power,
        ("beam", "multiply"): args.multiply,
    }
    # a non-positive pixel size is ignored, as it always was
    if args.pixel_size is not None and args.pixel_size > 0.0:
        overrides[("beam", "pixel_size")] = args.pixel_size

    for keys, value in overrides.items():
        if value is None:
            continue
        target = data
        for k in keys[:-1]:
            target = target[k]
        target[keys[-1]] = value

    if args.float64:
        data["dtype"] = "float64"
    return PreviewConfig.model_validate(data)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
        artifacts = ArtifactConfig(
            output=args.output,
            flip_y=not args.no_flip,
            crop=tuple(args.crop) if args.crop else None,
            plot_path=args.plot,
            raw_path=args.save_raw,
        )
    except (ValidationError, FileNotFoundError) as e:
        print(f"laser-preview: invalid configuration: {e}", file=sys.stderr)
        return 2

    source = "<stdin>" if args.file == "-" else args.file
    tracking = TrackingConfig(
        enabled=args.track,
        backend="mlflow" if args.track else "none",
        run_name=args.run_name,
    )
    run_context = RunContext(
        tracking_cfg=tracking,
        diagnostics_cfg=DiagnosticsConfig(enabled=args.track or args.log_level == "DEBUG"),
        run_meta=build_run_meta(config, source),
        config=config.model_dump(),
        artifact_builder=PreviewArtifactBuilder(artifacts, pixel_size=config.beam.pixel_size),
    )
    runner = PreviewRunner(config, run_context=run_context, progress=args.progress)

    try:
        if args.file == "-":
            result = runner.run(sys.stdin, source=source)
        else:
            result = runner.run_file(args.file)
    except CanvasAllocationError as e:
        print(f"laser-preview: out of memory: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError, OSError) as e:
        print(f"laser-preview: {e}", file=sys.stderr)
        return 1

    logger.info(
        f"{result.stats.segments} segments, {result.stats.burns} burns, "
        f"{result.width}x{result.height} px"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
