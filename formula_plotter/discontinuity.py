"""Pen-up decisions between adjacent sampled points.

Ambiguous pairs are split rather than joined: a spurious gap is a smaller
error than a vertical line drawn through an asymptote.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .config import SamplerSettings
from .coordinates import CanvasRegion, screen_x_to_math, screen_y_to_math
from .families import FamilyProfile, classify
from .models import CanvasSize, GridFrame, SampledPoint


class DiscontinuityClassifier:
    """Decides whether the curve must break between two consecutive points.

    Args:
        expression: Source expression, used only to pick a family profile.
        frame: Grid frame the points were mapped with.
        canvas: Visible canvas size in pixels.
        settings: Numeric thresholds.
        profile: Overrides the profile chosen from *expression*.
    """

    def __init__(
        self,
        expression: str,
        frame: GridFrame,
        canvas: CanvasSize,
        settings: Optional[SamplerSettings] = None,
        profile: Optional[FamilyProfile] = None,
    ) -> None:
        self._frame = frame
        self._settings = settings or SamplerSettings()
        self._profile = profile or classify(expression)
        self._region = CanvasRegion.around(
            canvas,
            x_margin=self._profile.x_margin * canvas.width,
            y_margin=self._profile.y_margin * canvas.height,
        )

    @property
    def profile(self) -> FamilyProfile:
        return self._profile

    @property
    def region(self) -> CanvasRegion:
        return self._region

    def in_canvas(self, point: SampledPoint) -> bool:
        return self._region.contains(point.x, point.y)

    def is_break(self, a: SampledPoint, b: SampledPoint) -> bool:
        if not (a.is_valid and b.is_valid):
            return True
        if not (self.in_canvas(a) and self.in_canvas(b)):
            return True
        if self.is_jump(a, b):
            return True
        return self._profile.tangent_checks and self.crosses_tangent_asymptote(a, b)

    def is_jump(self, a: SampledPoint, b: SampledPoint) -> bool:
        """Large vertical move over a small horizontal one."""
        s = self._settings
        return (
            abs(b.y - a.y) > self._profile.jump_threshold
            and abs(b.x - a.x) < s.jump_dx_px
        )

    def crosses_tangent_asymptote(self, a: SampledPoint, b: SampledPoint) -> bool:
        s = self._settings
        ax = screen_x_to_math(a.x, self._frame)
        bx = screen_x_to_math(b.x, self._frame)
        ay = screen_y_to_math(a.y, self._frame)
        by = screen_y_to_math(b.y, self._frame)
        lo, hi = min(ax, bx), max(ax, bx)

        period = self._profile.asymptote_period
        if period is not None and self._asymptote_between(lo, hi, period):
            return True

        dx = hi - lo
        if (
            ay * by < 0
            and abs(ay) > s.tangent_magnitude
            and abs(by) > s.tangent_magnitude
            and dx < s.tangent_window
        ):
            return True

        return dx > 0 and abs(by - ay) / dx > s.tangent_slope

    def _asymptote_between(self, lo: float, hi: float, period: float) -> bool:
        """True when ``(n + offset) * period`` lies strictly inside (lo, hi)."""
        offset = self._profile.asymptote_offset
        n = math.floor(lo / period - offset) + 1
        candidate = (n + offset) * period
        if candidate <= lo:
            candidate += period
        return candidate < hi

    def verdicts(self, points: Sequence[SampledPoint]) -> list[bool]:
        """One verdict per adjacent pair; ``len(points) - 1`` entries."""
        return [self.is_break(a, b) for a, b in zip(points, points[1:])]
