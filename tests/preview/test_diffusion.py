# tests/preview/test_diffusion.py
import pytest

from laser_preview.core.canvas import CanvasAllocationError
from laser_preview.core.config import PreviewConfig
from laser_preview.core.state import BurnContext
from laser_preview.physics.diffusion import DIFFUSION_CUTOFF, DiffusionPropagator
from laser_preview.physics.material import MaterialConfig


def make_ctx(lin):
    cfg = PreviewConfig(material=MaterialConfig(diffusion_lin=lin))
    return BurnContext.from_config(cfg)


def test_small_value_stays_in_place():
    ctx = make_ctx(0.25)
    written = DiffusionPropagator(ctx).spread(3, -2, DIFFUSION_CUTOFF * 0.8)

    assert written == 1
    assert ctx.canvas.bounds == (3, -2, 3, -2)
    assert ctx.canvas.read(3, -2) == pytest.approx(0.04 * ctx.config.material.diffusion)


def test_spread_is_symmetric_and_bounded():
    ctx = make_ctx(0.25)
    written = DiffusionPropagator(ctx).spread(0, 0, 1.0)

    # every neighbour of the center still carries more than the cutoff,
    # none of theirs does
    assert written == 1 + 8 + 64
    assert ctx.canvas.bounds == (-2, -2, 2, 2)

    c = ctx.canvas
    center = c.read(0, 0)
    for x, y in [(1, 0), (-1, 0), (0, 1), (0, -1)]:
        assert c.read(x, y) == pytest.approx(c.read(1, 0))
        assert c.read(x, y) < center
    for x, y in [(1, 1), (-1, 1), (1, -1), (-1, -1)]:
        assert c.read(x, y) == pytest.approx(c.read(1, 1))
        assert c.read(x, y) < c.read(1, 0)
    assert c.read(2, 0) == pytest.approx(c.read(0, -2))


def test_spread_loses_leaf_residue():
    ctx = make_ctx(0.25)
    DiffusionPropagator(ctx).spread(0, 0, 1.0)
    total = ctx.canvas.total()
    assert 0.0 < total < 1.0


def test_zero_diffusion_extends_but_keeps_energy():
    ctx = make_ctx(0.0)
    DiffusionPropagator(ctx).spread(0, 0, 0.5)

    assert ctx.canvas.read(0, 0) == pytest.approx(0.5)
    assert ctx.canvas.bounds == (-1, -1, 1, 1)
    assert ctx.canvas.total() == pytest.approx(0.5)


def test_max_items_guard():
    ctx = make_ctx(0.25)
    with pytest.raises(CanvasAllocationError, match="exceeded"):
        DiffusionPropagator(ctx, max_items=5).spread(0, 0, 1.0)


def test_max_items_guard_is_an_allocation_failure():
    ctx = make_ctx(0.25)
    with pytest.raises(MemoryError):
        DiffusionPropagator(ctx, max_items=1).spread(0, 0, 1.0)
