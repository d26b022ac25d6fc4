# tests/preview/test_material.py
import math

import pytest
import torch
from pydantic import ValidationError

from laser_preview.core.config import PreviewConfig
from laser_preview.physics.material import (
    MATERIAL_PRESETS,
    MaterialConfig,
    absorbed_weight,
    clear_wood,
    marking_threshold,
    painted_aluminum,
)
from laser_preview.scan.sources import BeamConfig


@pytest.mark.parametrize("lin", [0.0, 0.1, 0.25, 0.5, 1.0])
def test_kernel_sums_to_one(lin):
    mat = MaterialConfig(diffusion_lin=lin)
    k = mat.kernel()
    assert k.shape == (3, 3)
    assert k.sum().item() == pytest.approx(1.0)
    assert mat.diffusion * (1 + 4 * lin + 4 * mat.diffusion_dia) == pytest.approx(1.0)


def test_default_diffusion_coefficients():
    mat = MaterialConfig()
    assert mat.diffusion_dia == pytest.approx(0.25 ** math.sqrt(2.0))
    k = mat.kernel(dtype=torch.float32)
    assert k[1, 1].item() == pytest.approx(mat.diffusion)
    assert k[0, 1].item() == pytest.approx(0.25 * mat.diffusion)
    assert k[0, 0].item() == pytest.approx(mat.diffusion_dia * mat.diffusion)


def test_zero_diffusion_keeps_everything_in_the_center():
    mat = MaterialConfig(diffusion_lin=0.0)
    assert mat.diffusion == 1.0
    assert mat.diffusion_dia == 0.0


def test_presets():
    assert set(MATERIAL_PRESETS) == {"clear_wood", "painted_aluminum"}
    assert clear_wood().absorption_factor > 0
    alu = painted_aluminum()
    assert alu.absorption == 1.0
    assert alu.absorption_factor == -1.0


def test_material_validation():
    with pytest.raises(ValidationError):
        MaterialConfig(absorption=1.5)
    with pytest.raises(ValidationError):
        MaterialConfig(diffusion_lin=-0.1)
    with pytest.raises(ValidationError):
        MaterialConfig(unknown=1.0)


def test_absorbed_weight_grows_on_marked_wood():
    mat = MaterialConfig(absorption=0.5, absorption_factor=2.0)
    assert absorbed_weight(1.0, 0.0, mat) == pytest.approx(0.5)
    assert absorbed_weight(1.0, 0.5, mat) == pytest.approx(1.5)
    assert absorbed_weight(0.25, 0.5, mat) == pytest.approx(0.375)


def test_absorbed_weight_clamped_for_negative_factor():
    mat = painted_aluminum()
    assert absorbed_weight(1.0, 0.25, mat) == pytest.approx(0.75)
    assert absorbed_weight(1.0, 1.0, mat) == 0.0
    assert absorbed_weight(1.0, 3.0, mat) == 0.0


def test_absorbed_weight_not_clamped_for_positive_factor():
    mat = MaterialConfig(absorption=0.0, absorption_factor=1.0)
    assert absorbed_weight(1.0, -1.0, mat) == pytest.approx(-1.0)


def test_marking_threshold():
    assert marking_threshold(0.0, 0.005) == pytest.approx(0.005)
    assert marking_threshold(0.25, 0.005) == pytest.approx(0.0025)
    assert marking_threshold(1.0, 0.005) == pytest.approx(0.0)
    assert marking_threshold(4.0, 0.005) < 0.0
    # negative residue counts as unmarked
    assert marking_threshold(-1.0, 0.005) == pytest.approx(0.005)


def test_beam_pixel_energy():
    beam = BeamConfig()
    assert beam.zoom == pytest.approx(10.0)
    assert beam.pixel_energy(600.0) == pytest.approx(0.1)
    assert beam.intensity(255.0) == pytest.approx(1.0)
    assert BeamConfig(multiply=2.0).intensity(127.5) == pytest.approx(1.0)
    with pytest.raises(ValueError):
        beam.pixel_energy(0.0)


def test_preview_config_defaults_and_json(tmp_path):
    cfg = PreviewConfig()
    assert cfg.energy_density_px == pytest.approx(0.005)
    assert cfg.torch_dtype == torch.float32

    path = tmp_path / "preview.json"
    custom = PreviewConfig(width=10, material=painted_aluminum(), dtype="float64")
    path.write_text(custom.model_dump_json())
    loaded = PreviewConfig.from_json_file(path)
    assert loaded == custom
    assert loaded.torch_dtype == torch.float64


def test_preview_config_validation(tmp_path):
    with pytest.raises(ValidationError):
        PreviewConfig(width=10, height=10, max_cells=50)
    with pytest.raises(ValidationError):
        PreviewConfig(beam={"pixel_size": 0.0})
    with pytest.raises(ValidationError):
        PreviewConfig(coordinate_grid=0)
    with pytest.raises(FileNotFoundError):
        PreviewConfig.from_json_file(tmp_path / "missing.json")
