"""Shared fixtures: a 1000x800 canvas with the origin centred at 100 % zoom."""

import pytest

from formula_plotter.coordinates import centered_frame, to_screen
from formula_plotter.models import CanvasSize, Formula, Point, SampledPoint
from formula_plotter.sampler import AdaptiveSampler


@pytest.fixture
def canvas():
    return CanvasSize(1000, 800)


@pytest.fixture
def frame(canvas):
    # origin (500, 400), 60 px per unit
    return centered_frame(canvas)


@pytest.fixture
def sampler(canvas):
    return AdaptiveSampler(canvas=canvas)


@pytest.fixture
def make_formula():
    def _make(expression, **kwargs):
        kwargs.setdefault("id", "f1")
        return Formula(expression=expression, **kwargs)
    return _make


@pytest.fixture
def math_point(frame):
    """Build a valid SampledPoint from math coordinates."""
    def _make(x, y, on=None):
        p = to_screen(Point(x, y), on or frame)
        return SampledPoint(p.x, p.y, True)
    return _make
