"""Adaptive plotting core for user-typed formulas.

The Qt window lives in :mod:`formula_plotter.app` and is not imported here,
so the core can be used without a display.
"""

from .config import SamplerSettings
from .coordinates import to_math, to_screen
from .discontinuity import DiscontinuityClassifier
from .evaluator import ExpressionError, compile_expression, evaluate, validate_expression
from .locator import locate, navigate
from .models import CanvasSize, Formula, FormulaType, GridFrame, PathSegment, Point, SampledPoint
from .path_builder import PathBuilder, to_path_string
from .sampler import AdaptiveSampler

__all__ = [
    "AdaptiveSampler",
    "CanvasSize",
    "DiscontinuityClassifier",
    "ExpressionError",
    "Formula",
    "FormulaType",
    "GridFrame",
    "PathBuilder",
    "PathSegment",
    "Point",
    "SampledPoint",
    "SamplerSettings",
    "compile_expression",
    "evaluate",
    "locate",
    "navigate",
    "to_math",
    "to_path_string",
    "to_screen",
    "validate_expression",
]
