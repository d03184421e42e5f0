"""Adaptive sampling of formulas over the visible part of the grid.

The sampler walks the visible x-range at a base step derived from the
formula's sample hint, the zoom level and how demanding the expression looks,
then bisects intervals that are steep, sharply curved or that cross a domain
boundary until they settle or the depth limit is hit.  While the user drags
the grid a coarse pass without refinement is produced instead.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .config import DEFAULT_T_RANGE, DRAG_SAMPLES, SamplerSettings, clamp_samples
from .coordinates import CanvasRegion, visible_x_range, xs_to_screen, ys_to_screen
from .evaluator import CompiledExpression, ExpressionError, split_parametric, try_compile
from .families import FamilyProfile, adjust_samples, classify, detect_characteristics
from .models import CanvasSize, Formula, FormulaType, GridFrame, SampledPoint

log = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]
BoolArray = NDArray[np.bool_]


class AdaptiveSampler:
    """Produces ordered :class:`SampledPoint` sequences for formulas.

    The only state kept between calls is the last full-fidelity result per
    formula id, returned while dragging when the coarse pass yields nothing.
    """

    def __init__(
        self,
        settings: Optional[SamplerSettings] = None,
        canvas: Optional[CanvasSize] = None,
    ) -> None:
        self._settings = settings or SamplerSettings()
        self._canvas = canvas or CanvasSize()
        self._full_passes: dict[str, list[SampledPoint]] = {}

    @property
    def settings(self) -> SamplerSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sample(
        self,
        formula: Formula,
        frame: GridFrame,
        canvas: Optional[CanvasSize] = None,
        dragging: bool = False,
    ) -> list[SampledPoint]:
        canvas = canvas or self._canvas
        if formula.type is FormulaType.PARAMETRIC:
            points = self._sample_parametric(formula, frame)
        elif formula.type is FormulaType.POLAR:
            points = self._sample_polar(formula, frame)
        else:
            points = self._sample_function(formula, frame, canvas, dragging)

        if dragging:
            if not points:
                return list(self._full_passes.get(formula.id, ()))
            return points
        self._full_passes[formula.id] = points
        return points

    def last_full_pass(self, formula_id: str) -> list[SampledPoint]:
        return list(self._full_passes.get(formula_id, ()))

    def forget(self, formula_id: str) -> None:
        self._full_passes.pop(formula_id, None)

    def sampling_range(
        self,
        formula: Formula,
        frame: GridFrame,
        canvas: Optional[CanvasSize] = None,
        profile: Optional[FamilyProfile] = None,
    ) -> Optional[tuple[float, float]]:
        """Visible math x-range plus the family margin, clipped to ``x_range``."""
        canvas = canvas or self._canvas
        if frame.is_degenerate or canvas.is_degenerate:
            return None
        profile = profile or classify(formula.expression)
        lo, hi = visible_x_range(frame, canvas)
        margin = profile.x_margin * (hi - lo)
        lo = max(lo - margin, formula.x_range[0])
        hi = min(hi + margin, formula.x_range[1])
        if not hi > lo:
            return None
        return lo, hi

    def base_step(
        self,
        formula: Formula,
        frame: GridFrame,
        canvas: Optional[CanvasSize] = None,
        dragging: bool = False,
    ) -> float:
        """Math distance between consecutive base samples."""
        canvas = canvas or self._canvas
        hint = min(formula.samples, DRAG_SAMPLES) if dragging else formula.samples
        target = float(adjust_samples(clamp_samples(hint), detect_characteristics(formula.expression)))
        if not dragging:
            # keep pixel density constant or higher when zoomed in
            target *= max(1.0, frame.zoom)
        return (canvas.width / frame.pixels_per_unit) / target

    # ------------------------------------------------------------------
    # y = f(x)
    # ------------------------------------------------------------------

    def _sample_function(
        self, formula: Formula, frame: GridFrame, canvas: CanvasSize, dragging: bool
    ) -> list[SampledPoint]:
        compiled = try_compile(formula.expression, "x")
        if compiled is None:
            return []
        profile = classify(formula.expression)
        x_range = self.sampling_range(formula, frame, canvas, profile)
        if x_range is None:
            return []
        lo, hi = x_range

        step = self.base_step(formula, frame, canvas, dragging)
        n = int(math.ceil((hi - lo) / step)) if step > 0 else 1
        n = min(max(n, 1), self._settings.max_samples - 1)
        xs = np.unique(np.linspace(lo, hi, n + 1, dtype=np.float64))
        sy = self._screen_ys(compiled, xs, formula, frame)

        refined = 0
        if not dragging:
            region = CanvasRegion.around(
                canvas,
                x_margin=profile.x_margin * canvas.width,
                y_margin=profile.y_margin * canvas.height,
            )
            before = xs.size
            xs, sy = self._refine(compiled, xs, sy, formula, frame, region)
            refined = xs.size - before

        sx = xs_to_screen(xs, frame)
        keep = np.concatenate(([True], np.diff(sx) > 0))
        sx, sy = sx[keep], sy[keep]
        log.debug(
            "sampled %r (%s): %d points, %d refined, dragging=%s",
            formula.expression, profile.name, sx.size, refined, dragging,
        )
        return _to_points(sx, sy)

    @staticmethod
    def _screen_ys(
        compiled: CompiledExpression, xs: FloatArray, formula: Formula, frame: GridFrame
    ) -> FloatArray:
        with np.errstate(all="ignore"):
            sy = ys_to_screen(compiled(xs, formula.parameters) * formula.scale_factor, frame)
        sy[~np.isfinite(sy)] = np.nan
        return sy

    def _refine(
        self,
        compiled: CompiledExpression,
        xs: FloatArray,
        sy: FloatArray,
        formula: Formula,
        frame: GridFrame,
        region: CanvasRegion,
    ) -> tuple[FloatArray, FloatArray]:
        s = self._settings
        for _ in range(s.max_refine_depth):
            flags = self._refinement_flags(xs, sy, frame.pixels_per_unit, region)
            idx = np.flatnonzero(flags)
            if idx.size == 0:
                break
            left, right = xs[idx], xs[idx + 1]
            mids = 0.5 * (left + right)
            ok = (mids > left) & (mids < right)
            idx, mids = idx[ok], mids[ok]
            if mids.size == 0:
                break

            budget = s.max_samples - xs.size
            if budget <= 0:
                log.info("refinement budget of %d samples exhausted", s.max_samples)
                break
            if mids.size > budget:
                with np.errstate(invalid="ignore"):
                    weight = np.nan_to_num(np.abs(sy[idx + 1] - sy[idx]), nan=np.inf)
                chosen = np.sort(np.argsort(-weight, kind="stable")[:budget])
                mids = mids[chosen]

            new_sy = self._screen_ys(compiled, mids, formula, frame)
            xs = np.concatenate((xs, mids))
            sy = np.concatenate((sy, new_sy))
            order = np.argsort(xs, kind="stable")
            xs, sy = xs[order], sy[order]
        return xs, sy

    def _refinement_flags(
        self, xs: FloatArray, sy: FloatArray, ppu: float, region: CanvasRegion
    ) -> BoolArray:
        """Intervals to bisect: steep, sharply turning, or crossing validity."""
        s = self._settings
        valid = np.isfinite(sy)
        both = valid[:-1] & valid[1:]
        dx_px = np.diff(xs) * ppu
        with np.errstate(invalid="ignore"):
            dy_px = np.diff(sy)
            above = sy < -region.y_margin
            below = sy > region.height + region.y_margin
        off_same_side = (above[:-1] & above[1:]) | (below[:-1] & below[1:])
        visible = both & ~off_same_side

        flags = valid[:-1] != valid[1:]
        with np.errstate(invalid="ignore"):
            flags |= visible & (np.abs(dy_px) > s.refine_pixel_threshold)

        if xs.size >= 3:
            seg_len = np.hypot(dx_px, np.nan_to_num(dy_px))
            usable = visible & (seg_len > s.min_segment_px)
            pair = usable[:-1] & usable[1:]
            with np.errstate(invalid="ignore"):
                cross = dx_px[:-1] * dy_px[1:] - dy_px[:-1] * dx_px[1:]
                dot = dx_px[:-1] * dx_px[1:] + dy_px[:-1] * dy_px[1:]
                turning = np.abs(np.arctan2(cross, dot))
            sharp = pair & (np.nan_to_num(turning) > s.curvature_angle)
            flags[:-1] |= sharp
            flags[1:] |= sharp
        return flags

    # ------------------------------------------------------------------
    # Parametric / polar
    # ------------------------------------------------------------------

    def _parameter_values(self, formula: Formula) -> Optional[FloatArray]:
        t_lo, t_hi = formula.t_range or DEFAULT_T_RANGE
        if not (math.isfinite(t_lo) and math.isfinite(t_hi)) or t_hi <= t_lo:
            return None
        n = clamp_samples(formula.samples) * 2
        return np.linspace(t_lo, t_hi, n + 1, dtype=np.float64)

    def _sample_parametric(self, formula: Formula, frame: GridFrame) -> list[SampledPoint]:
        if frame.is_degenerate:
            return []
        try:
            x_src, y_src = split_parametric(formula.expression)
        except ExpressionError:
            return []
        fx, fy = try_compile(x_src, "t"), try_compile(y_src, "t")
        ts = self._parameter_values(formula)
        if fx is None or fy is None or ts is None:
            return []
        with np.errstate(all="ignore"):
            mx = fx(ts, formula.parameters)
            my = fy(ts, formula.parameters) * formula.scale_factor
        return self._curve_points(mx, my, frame)

    def _sample_polar(self, formula: Formula, frame: GridFrame) -> list[SampledPoint]:
        if frame.is_degenerate:
            return []
        fr = try_compile(formula.expression, "t")
        ts = self._parameter_values(formula)
        if fr is None or ts is None:
            return []
        with np.errstate(all="ignore"):
            r = fr(ts, formula.parameters) * formula.scale_factor
            mx = r * np.cos(ts)
            my = r * np.sin(ts)
        return self._curve_points(mx, my, frame)

    @staticmethod
    def _curve_points(mx: FloatArray, my: FloatArray, frame: GridFrame) -> list[SampledPoint]:
        with np.errstate(all="ignore"):
            sx = xs_to_screen(mx, frame)
            sy = ys_to_screen(my, frame)
        bad = ~(np.isfinite(sx) & np.isfinite(sy))
        sy[bad] = np.nan
        return _to_points(sx, sy)


def _to_points(sx: FloatArray, sy: FloatArray) -> list[SampledPoint]:
    valid = np.isfinite(sx) & np.isfinite(sy)
    return [
        SampledPoint(float(x), float(y), bool(v))
        for x, y, v in zip(sx.tolist(), sy.tolist(), valid.tolist())
    ]
