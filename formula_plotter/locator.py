"""Click-to-point lookup and keyboard navigation along a sampled curve."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .config import LOCATE_THRESHOLD_PX, NAVIGATION_STEP
from .coordinates import screen_x_to_math, to_math
from .models import GridFrame, Point, PointLocation, SampledPoint


def locate(
    screen_point: Point,
    points: Sequence[SampledPoint],
    threshold: float = LOCATE_THRESHOLD_PX,
) -> Optional[PointLocation]:
    """Nearest valid point within *threshold* pixels of *screen_point*."""
    best_index = -1
    best_dist = math.inf
    for i, p in enumerate(points):
        if not p.is_valid:
            continue
        d = math.hypot(p.x - screen_point.x, p.y - screen_point.y)
        if d < best_dist:
            best_index, best_dist = i, d
    if best_index < 0 or best_dist > threshold:
        return None
    return PointLocation(best_index, points[best_index])


def navigate(
    points: Sequence[SampledPoint],
    current_index: int,
    direction: int,
    frame: GridFrame,
    step_size: float = NAVIGATION_STEP,
) -> int:
    """Index of the next valid point about *step_size* math units away.

    Walks in *direction* (+1 forward, -1 backward) and stops at the first
    valid point whose math x differs from the current one by at least
    *step_size*.  At either end of the sequence the last valid index reached
    is returned; the walk never wraps.

    Points hold screen coordinates, so *frame* is needed to turn their x
    back into math units before comparing against *step_size*.
    """
    if not points:
        return current_index
    current_index = min(max(current_index, 0), len(points) - 1)
    if direction == 0:
        return current_index
    direction = 1 if direction > 0 else -1

    start_x = screen_x_to_math(points[current_index].x, frame)
    result = current_index
    i = current_index + direction
    while 0 <= i < len(points):
        p = points[i]
        if p.is_valid:
            result = i
            if abs(screen_x_to_math(p.x, frame) - start_x) >= step_size - 1e-12:
                break
        i += direction
    return result


def readout(point: SampledPoint, frame: GridFrame) -> tuple[float, float]:
    """Math ``(x, y)`` under a sampled point."""
    m = to_math(Point(point.x, point.y), frame)
    return m.x, m.y


def format_number(value: float) -> str:
    magnitude = abs(value)
    if magnitude >= 100:
        return f"{value:.1f}"
    if magnitude >= 10:
        return f"{value:.2f}"
    if magnitude >= 1:
        return f"{value:.3f}"
    return f"{value:.4f}"
