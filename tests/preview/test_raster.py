# tests/preview/test_raster.py
import pytest

from laser_preview.core.config import PreviewConfig
from laser_preview.core.state import BurnContext
from laser_preview.physics.deposit import EnergyDepositor
from laser_preview.physics.material import MaterialConfig
from laser_preview.scan.engine import BurnSegment
from laser_preview.scan.raster import VectorRasterizer


class RecordingDepositor:
    def __init__(self):
        self.calls = []

    def burn(self, x, y, intensity):
        self.calls.append((x, y, intensity))
        return []


def test_first_step_center():
    dep = RecordingDepositor()
    n = VectorRasterizer(dep).draw(0, 0, 4, 2, 1.0)

    assert n == 4
    assert dep.calls[0] == (1.0, 0.75, 1.0)
    assert dep.calls[1] == (2.0, 1.25, 1.0)
    assert dep.calls[-1] == (4.0, 2.25, 1.0)


@pytest.mark.parametrize(
    "move, expected",
    [
        ((0, 0, 2.5, 1), 3),
        ((0, 0, -3, 0.5), 3),
        ((0, 0, 0.2, -7.1), 8),
        ((5, 5, 5, 6), 1),
        ((1, 1, 1, 1), 0),
    ],
)
def test_step_count(move, expected):
    dep = RecordingDepositor()
    assert VectorRasterizer(dep).draw(*move, 0.5) == expected
    assert len(dep.calls) == expected


def test_vertical_move():
    dep = RecordingDepositor()
    VectorRasterizer(dep).draw(0, 0, 0, 3, 1.0)
    assert [(x, y) for x, y, _ in dep.calls] == [(0.5, 1.0), (0.5, 2.0), (0.5, 3.0)]


def test_reverse_direction_burns_same_spots():
    forward = RecordingDepositor()
    backward = RecordingDepositor()
    VectorRasterizer(forward).draw(0, 0, 4, 2, 1.0)
    VectorRasterizer(backward).draw(4, 2, 0, 0, 1.0)
    assert sorted(forward.calls) == sorted(backward.calls)


def test_draw_segment():
    dep = RecordingDepositor()
    seg = BurnSegment(x_start=0, y_start=0, x_end=-2, y_end=-5, intensity=0.25, line_no=3)
    assert seg.steps == 5
    assert VectorRasterizer(dep).draw_segment(seg) == seg.steps
    assert all(i == 0.25 for _, _, i in dep.calls)


def test_segment_properties():
    seg = BurnSegment(x_start=1, y_start=1, x_end=4, y_end=5, intensity=1.0)
    assert seg.length == pytest.approx(5.0)
    assert seg.steps == 4
    assert not seg.is_point
    assert BurnSegment(x_start=1, y_start=1, x_end=1, y_end=1, intensity=1.0).is_point


def test_diagonal_line_energy():
    cfg = PreviewConfig(
        material=MaterialConfig(
            absorption=1.0, absorption_factor=0.0, diffusion_lin=0.0, energy_density=0.0
        )
    )
    ctx = BurnContext.from_config(cfg)
    ctx.pixel_energy = 1.0

    VectorRasterizer(EnergyDepositor(ctx)).draw(0, 0, 4, 2, 1.0)

    expected = {
        (0, 0): 0.375,
        (1, 0): 0.5,
        (2, 0): 0.125,
        (0, 1): 0.125,
        (1, 1): 0.5,
        (2, 1): 0.75,
        (3, 1): 0.5,
        (4, 1): 0.125,
        (2, 2): 0.125,
        (3, 2): 0.5,
        (4, 2): 0.375,
    }
    canvas = ctx.canvas
    for (x, y), v in expected.items():
        assert canvas.read(x, y) == pytest.approx(v)
    assert canvas.total() == pytest.approx(4.0)
    assert ctx.stats.burns == 4
