"""Screen-pixel <-> math coordinate mapping for a :class:`GridFrame`."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .config import CALIBRATION_PIXELS_PER_UNIT, MAX_ZOOM, MIN_ZOOM
from .models import CanvasSize, GridFrame, Point

FloatArray = NDArray[np.float64]


def to_screen(point: Point, frame: GridFrame) -> Point:
    return Point(
        frame.origin.x + point.x * frame.pixels_per_unit,
        frame.origin.y - point.y * frame.pixels_per_unit,
    )


def to_math(point: Point, frame: GridFrame) -> Point:
    return Point(
        (point.x - frame.origin.x) / frame.pixels_per_unit,
        (frame.origin.y - point.y) / frame.pixels_per_unit,
    )


def xs_to_screen(xs: FloatArray, frame: GridFrame) -> FloatArray:
    return frame.origin.x + xs * frame.pixels_per_unit


def ys_to_screen(ys: FloatArray, frame: GridFrame) -> FloatArray:
    return frame.origin.y - ys * frame.pixels_per_unit


def screen_x_to_math(sx: float, frame: GridFrame) -> float:
    return (sx - frame.origin.x) / frame.pixels_per_unit


def screen_y_to_math(sy: float, frame: GridFrame) -> float:
    return (frame.origin.y - sy) / frame.pixels_per_unit


def visible_x_range(frame: GridFrame, canvas: CanvasSize) -> tuple[float, float]:
    """Math x covered by the canvas, without any margin."""
    return (
        screen_x_to_math(0.0, frame),
        screen_x_to_math(float(canvas.width), frame),
    )


def visible_y_range(frame: GridFrame, canvas: CanvasSize) -> tuple[float, float]:
    return (
        screen_y_to_math(float(canvas.height), frame),
        screen_y_to_math(0.0, frame),
    )


@dataclass(frozen=True, slots=True)
class CanvasRegion:
    """Canvas rectangle grown by a pixel margin on each side."""

    width: float
    height: float
    x_margin: float = 0.0
    y_margin: float = 0.0

    @classmethod
    def around(cls, canvas: CanvasSize, x_margin: float = 0.0, y_margin: float = 0.0) -> "CanvasRegion":
        return cls(float(canvas.width), float(canvas.height), float(x_margin), float(y_margin))

    def contains(self, x: float, y: float) -> bool:
        return (
            -self.x_margin <= x <= self.width + self.x_margin
            and -self.y_margin <= y <= self.height + self.y_margin
        )

    def contains_many(self, xs: FloatArray, ys: FloatArray) -> NDArray[np.bool_]:
        with np.errstate(invalid="ignore"):
            return (
                (xs >= -self.x_margin)
                & (xs <= self.width + self.x_margin)
                & (ys >= -self.y_margin)
                & (ys <= self.height + self.y_margin)
            )


# ---------------------------------------------------------------------------
# Zoom / pan
# ---------------------------------------------------------------------------

def clamp_zoom(zoom: float) -> float:
    if not math.isfinite(zoom):
        return 1.0
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


def zoom_about(
    frame: GridFrame,
    anchor: Point,
    zoom: float,
    calibration: float = CALIBRATION_PIXELS_PER_UNIT,
) -> GridFrame:
    """New frame at *zoom* keeping the math point under *anchor* fixed on screen."""
    ppu = calibration * clamp_zoom(zoom)
    fixed = to_math(anchor, frame)
    origin = Point(anchor.x - fixed.x * ppu, anchor.y + fixed.y * ppu)
    return GridFrame(origin=origin, pixels_per_unit=ppu)


def pan(frame: GridFrame, dx: float, dy: float) -> GridFrame:
    return GridFrame(
        origin=Point(frame.origin.x + dx, frame.origin.y + dy),
        pixels_per_unit=frame.pixels_per_unit,
    )


def centered_frame(canvas: CanvasSize, zoom: float = 1.0) -> GridFrame:
    return GridFrame.from_zoom(Point(canvas.width / 2.0, canvas.height / 2.0), clamp_zoom(zoom))


# ---------------------------------------------------------------------------
# Grid lines
# ---------------------------------------------------------------------------

def grid_step(pixels_per_unit: float, min_spacing_px: float) -> float:
    """Smallest 1-2-5 unit step whose on-screen spacing is >= *min_spacing_px*."""
    if pixels_per_unit <= 0:
        raise ValueError(f"pixels_per_unit must be positive, got {pixels_per_unit}")
    raw = min_spacing_px / pixels_per_unit
    exponent = math.floor(math.log10(raw)) if raw > 0 else 0
    for mult in (1.0, 2.0, 5.0, 10.0):
        step = mult * 10.0 ** exponent
        if step * pixels_per_unit >= min_spacing_px:
            return step
    return 10.0 ** (exponent + 1)


def grid_line_positions(
    frame: GridFrame, canvas: CanvasSize, min_spacing_px: float = 20.0
) -> tuple[FloatArray, FloatArray]:
    """Screen x of vertical lines and screen y of horizontal lines."""
    if frame.is_degenerate or canvas.is_degenerate:
        empty = np.empty(0, dtype=np.float64)
        return empty, empty
    step = grid_step(frame.pixels_per_unit, min_spacing_px)
    x_lo, x_hi = visible_x_range(frame, canvas)
    y_lo, y_hi = visible_y_range(frame, canvas)
    mx = np.arange(math.ceil(x_lo / step), math.floor(x_hi / step) + 1, dtype=np.float64) * step
    my = np.arange(math.ceil(y_lo / step), math.floor(y_hi / step) + 1, dtype=np.float64) * step
    return xs_to_screen(mx, frame), ys_to_screen(my, frame)
