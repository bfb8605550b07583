import dataclasses

import numpy as np
import pytest

from partogram_canvas.geometry import ChartGeometry


def test_transform_inverse_scalars(g):
    for x, y in [(0.0, 0.0), (524.925, 1211.165), (1805.482, 2994.665), (-100.5, 4000.25)]:
        vx, vy = g.to_visual(x, y)
        ix, iy = g.to_internal(vx, vy)
        assert ix == pytest.approx(x)
        assert iy == pytest.approx(y)


def test_transform_inverse_arrays(g):
    rng = np.random.default_rng(0)
    xs = rng.uniform(-500, 3000, 200)
    ys = rng.uniform(-500, 4000, 200)
    ix, iy = g.to_internal(*g.to_visual(xs, ys))
    np.testing.assert_allclose(ix, xs)
    np.testing.assert_allclose(iy, ys)


def test_visual_transform_constants(g):
    vx, vy = g.to_visual(100.0, 1000.0)
    assert vx == pytest.approx(100.0 * 1.04175 - 50.052284)
    assert vy == pytest.approx(1000.0 * 1.04175 - 610.189202)


def test_screen_to_canvas_rescales(g):
    vx, vy = g.screen_to_canvas(100.0, 200.0, g.canvas_w / 2, g.canvas_h / 4)
    assert vx == pytest.approx(200.0)
    assert vy == pytest.approx(800.0)
    sx, sy = g.canvas_to_screen(vx, vy, g.canvas_w / 2, g.canvas_h / 4)
    assert (sx, sy) == (pytest.approx(100.0), pytest.approx(200.0))


@pytest.mark.parametrize("w,h", [(0, 100), (100, 0), (-1, 10)])
def test_screen_to_canvas_rejects_empty_render(g, w, h):
    with pytest.raises(ValueError):
        g.screen_to_canvas(1, 1, w, h)


def test_band_mappings(g):
    assert g.dilation_to_y(10) == pytest.approx(g.dilation_top)
    assert g.dilation_to_y(0) == pytest.approx(g.dilation_bottom)
    assert g.heart_rate_to_y(180) == pytest.approx(g.heart_rate_top)
    assert g.heart_rate_to_y(80) == pytest.approx(g.heart_rate_bottom)
    assert g.contraction_slot_top(0) == pytest.approx(g.contraction_bottom - g.contraction_row_height)
    assert g.contraction_slot_top(4) == pytest.approx(g.contraction_top)


def test_columns(g):
    assert g.column_left(0) == pytest.approx(g.grid_x_start)
    assert g.column_center(3) == pytest.approx(g.grid_x_start + 3.5 * g.column_width)
    assert g.column_left(g.num_columns) == pytest.approx(g.grid_x_end, abs=0.01)


def test_geometry_is_immutable(g):
    with pytest.raises(dataclasses.FrozenInstanceError):
        g.scale = 2.0
    assert ChartGeometry(scale=2.0).scale == 2.0
