"""Tests for screen <-> math mapping, zoom, pan and grid lines."""

import math

import numpy as np
import pytest

from formula_plotter.coordinates import (
    CanvasRegion,
    clamp_zoom,
    grid_line_positions,
    grid_step,
    pan,
    to_math,
    to_screen,
    visible_x_range,
    visible_y_range,
    zoom_about,
)
from formula_plotter.models import CanvasSize, GridFrame, Point


class TestMapping:
    """Tests for to_screen / to_math."""

    def test_origin_and_unit(self, frame):
        assert to_screen(Point(0, 0), frame) == Point(500.0, 400.0)
        assert to_screen(Point(1, 1), frame) == Point(560.0, 340.0)
        assert to_math(Point(440.0, 460.0), frame) == Point(-1.0, -1.0)

    @pytest.mark.parametrize(
        "frame",
        [
            GridFrame(Point(500, 400), 60.0),
            GridFrame(Point(-1234.5, 987.25), 18.0),
            GridFrame(Point(0.1, 0.2), 180.0),
            GridFrame(Point(3e4, -2e4), 0.37),
        ],
    )
    @pytest.mark.parametrize(
        "point",
        [Point(0, 0), Point(1.5, -2.25), Point(-1e3, 7e2), Point(math.pi, math.e)],
    )
    def test_round_trip(self, frame, point):
        """Test that to_math(to_screen(p)) returns p within 1e-9."""
        back = to_math(to_screen(point, frame), frame)
        assert back.x == pytest.approx(point.x, abs=1e-9)
        assert back.y == pytest.approx(point.y, abs=1e-9)

    def test_visible_ranges(self, frame, canvas):
        lo, hi = visible_x_range(frame, canvas)
        assert lo == pytest.approx(-500 / 60)
        assert hi == pytest.approx(500 / 60)
        lo, hi = visible_y_range(frame, canvas)
        assert lo == pytest.approx(-400 / 60)
        assert hi == pytest.approx(400 / 60)


class TestCanvasRegion:
    """Tests for CanvasRegion containment."""

    def test_contains_with_margin(self, canvas):
        region = CanvasRegion.around(canvas, x_margin=100, y_margin=800)
        assert region.contains(-100, -800)
        assert region.contains(1100, 1600)
        assert not region.contains(-101, 0)
        assert not region.contains(0, 1601)

    def test_contains_many_rejects_nan(self, canvas):
        region = CanvasRegion.around(canvas)
        xs = np.array([10.0, np.nan, 2000.0])
        ys = np.array([10.0, 10.0, 10.0])
        assert region.contains_many(xs, ys).tolist() == [True, False, False]


class TestZoomAndPan:
    """Tests for clamp_zoom, zoom_about and pan."""

    def test_clamp_zoom(self):
        assert clamp_zoom(10.0) == 3.0
        assert clamp_zoom(0.01) == 0.3
        assert clamp_zoom(1.5) == 1.5
        assert clamp_zoom(float("nan")) == 1.0

    def test_zoom_keeps_anchor_fixed(self, frame):
        anchor = Point(700.0, 300.0)
        under = to_math(anchor, frame)
        zoomed = zoom_about(frame, anchor, 2.0)
        assert zoomed.pixels_per_unit == pytest.approx(120.0)
        back = to_screen(under, zoomed)
        assert back.x == pytest.approx(anchor.x)
        assert back.y == pytest.approx(anchor.y)

    def test_zoom_is_clamped(self, frame):
        assert zoom_about(frame, Point(0, 0), 10.0).pixels_per_unit == pytest.approx(180.0)
        assert zoom_about(frame, Point(0, 0), 0.0).pixels_per_unit == pytest.approx(18.0)

    def test_pan(self, frame):
        moved = pan(frame, 25.0, -10.0)
        assert moved.origin == Point(525.0, 390.0)
        assert moved.pixels_per_unit == frame.pixels_per_unit


class TestGridLines:
    """Tests for grid_step and grid_line_positions."""

    def test_grid_step(self):
        assert grid_step(60.0, 20.0) == pytest.approx(0.5)
        assert grid_step(18.0, 20.0) == pytest.approx(2.0)
        assert grid_step(180.0, 20.0) == pytest.approx(0.2)

    def test_grid_step_rejects_bad_scale(self):
        with pytest.raises(ValueError):
            grid_step(0.0, 20.0)

    def test_positions(self, frame, canvas):
        xs, ys = grid_line_positions(frame, canvas)
        assert np.any(np.isclose(xs, 500.0))
        assert np.any(np.isclose(ys, 400.0))
        assert np.all((xs >= 0) & (xs <= canvas.width))
        assert np.all((ys >= 0) & (ys <= canvas.height))
        assert np.allclose(np.diff(xs), 30.0)

    def test_degenerate(self, canvas):
        xs, ys = grid_line_positions(GridFrame(Point(0, 0), 0.0), canvas)
        assert xs.size == 0 and ys.size == 0

    def test_wide_canvas_area(self):
        frame = GridFrame(Point(0, 0), 60.0)
        xs, _ = grid_line_positions(frame, CanvasSize(120, 10))
        assert xs.tolist() == pytest.approx([0.0, 30.0, 60.0, 90.0, 120.0])
