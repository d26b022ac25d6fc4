# tests/preview/test_runner.py
from unittest.mock import MagicMock

import pytest
import torch

from laser_preview.core.canvas import CanvasAllocationError
from laser_preview.core.config import PreviewConfig
from laser_preview.integrator.runner import PreviewRunner, build_run_meta
from laser_preview.physics.material import MaterialConfig
from laser_preview.schemas.artifacts import ArtifactConfig
from laser_preview.schemas.diagnostics import DiagnosticsConfig
from laser_preview.schemas.state import PreviewResult
from laser_preview.schemas.tracking import TrackingConfig
from laser_preview.tracking.run_context import RunContext
from laser_preview.utils.io import load_state
from laser_preview.viz.preview_artifacts import PreviewArtifactBuilder

PROGRAM = ["G21", "G1 F600", "M3 S255", "X1", "Y0.5", "M5", "G0 X0 Y0"]


def test_run_marks_the_path():
    result = PreviewRunner(PreviewConfig()).run(PROGRAM)

    assert result.stats.lines == len(PROGRAM)
    assert result.stats.segments == 2
    assert result.stats.burns == 15
    assert result.pixels.shape == (result.height, result.width)
    assert result.pixels.dtype == torch.uint8
    assert int(result.pixels.min()) < 255
    assert result.energy.sum().item() == pytest.approx(result.stats.retained_energy, rel=1e-4)
    assert result.stats.elapsed_ms is not None


def test_empty_program_renders_one_white_pixel():
    result = PreviewRunner(PreviewConfig()).run([])
    assert result.bounds.model_dump() == {"x0": 0, "y0": 0, "x1": 0, "y1": 0}
    assert result.pixels.tolist() == [[255]]


def test_minimum_size_is_kept():
    result = PreviewRunner(PreviewConfig(width=20, height=10)).run(["M3", "X0.5"])
    assert result.width >= 20
    assert result.height >= 10


def test_no_feed_no_marks():
    result = PreviewRunner(PreviewConfig()).run(["M3 S255", "X1"])
    assert result.stats.segments == 1
    assert result.stats.accepted_cells == 0
    assert (result.pixels == 255).all()


def test_initial_feed_marks_without_f_word():
    result = PreviewRunner(PreviewConfig(initial_feed=600.0)).run(["M3 S255", "X1"])
    assert result.stats.accepted_cells > 0


def test_zero_diffusion_keeps_all_energy():
    cfg = PreviewConfig(
        initial_feed=600.0,
        material=MaterialConfig(absorption=0.5, absorption_factor=0.0, diffusion_lin=0.0),
    )
    runner = PreviewRunner(cfg)
    result = runner.run(["M3 S255", "X1 Y0.3"])
    assert result.stats.retained_energy == pytest.approx(result.stats.accepted_energy, rel=1e-5)
    assert runner.energy.report()["energy/retention"] == pytest.approx(1.0, rel=1e-5)


def test_paint_saturates():
    cfg = PreviewConfig(
        initial_feed=600.0,
        material=MaterialConfig(absorption=1.0, absorption_factor=-1.0, diffusion_lin=0.0),
    )
    result = PreviewRunner(cfg).run(["M3 S255", "X1", "X0", "X1", "X0"])
    assert float(result.energy.max()) <= 1.0 + 1e-5


def test_allocation_failure_propagates():
    cfg = PreviewConfig(max_cells=50, initial_feed=600.0)
    with pytest.raises(CanvasAllocationError):
        PreviewRunner(cfg).run(["M3 S255", "X10"])


def test_run_with_context_writes_artifacts(tmp_path):
    cfg = PreviewConfig(initial_feed=600.0)
    artifacts = ArtifactConfig(
        output=tmp_path / "preview.png",
        raw_path=tmp_path / "raw" / "result.pt",
    )
    rc = RunContext(
        tracking_cfg=TrackingConfig(log_every_n_lines=1),
        diagnostics_cfg=DiagnosticsConfig(enabled=True),
        run_meta=build_run_meta(cfg, "test.gcode"),
        config=cfg.model_dump(),
        artifact_builder=PreviewArtifactBuilder(artifacts, pixel_size=cfg.beam.pixel_size),
    )
    result = PreviewRunner(cfg, run_context=rc).run(PROGRAM, source="test.gcode")

    assert (tmp_path / "preview.png").exists()
    loaded = load_state(tmp_path / "raw" / "result.pt", PreviewResult)
    assert loaded.bounds == result.bounds
    assert torch.equal(loaded.pixels, result.pixels)
    assert rc.last_metrics["canvas/cells"] == result.width * result.height


def test_failure_closes_run_context(tmp_path):
    cfg = PreviewConfig(max_cells=50, initial_feed=600.0)
    rc = RunContext(
        tracking_cfg=TrackingConfig(),
        diagnostics_cfg=DiagnosticsConfig(enabled=False),
        run_meta=build_run_meta(cfg, "<stdin>"),
        artifact_builder=PreviewArtifactBuilder(ArtifactConfig(output=tmp_path / "x.png")),
    )
    with pytest.raises(CanvasAllocationError):
        PreviewRunner(cfg, run_context=rc).run(["M3 S255", "X10"])
    assert rc._tracker_ctx is None
    assert not (tmp_path / "x.png").exists()


def test_run_meta():
    meta = build_run_meta(PreviewConfig(width=3, height=4), "job.nc")
    assert meta.source == "job.nc"
    assert meta.min_shape == [3, 4]
    assert meta.material_summary["absorption"] == 0.75


def test_run_file(tmp_path):
    path = tmp_path / "job.gcode"
    path.write_text("\n".join(PROGRAM) + "\n")
    result = PreviewRunner(PreviewConfig()).run_file(path)
    assert result.stats.lines == len(PROGRAM)
    assert result.stats.segments == 2

    with pytest.raises(FileNotFoundError):
        PreviewRunner(PreviewConfig()).run_file(tmp_path / "missing.gcode")


def test_run_file_feeds_progress(tmp_path):
    path = tmp_path / "job.gcode"
    path.write_text("\n".join(PROGRAM) + "\n")
    cfg = PreviewConfig()
    rc = RunContext(
        tracking_cfg=TrackingConfig(log_every_n_lines=3),
        diagnostics_cfg=DiagnosticsConfig(enabled=True),
        run_meta=build_run_meta(cfg, str(path)),
    )
    rc.log_progress = MagicMock(wraps=rc.log_progress)
    PreviewRunner(cfg, run_context=rc).run_file(path)
    assert [c.args[0] for c in rc.log_progress.call_args_list] == list(range(1, len(PROGRAM) + 1))
