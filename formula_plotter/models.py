"""Data model shared by the sampling engine and the plotting window."""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from .config import (
    CALIBRATION_PIXELS_PER_UNIT,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_SAMPLES,
    DEFAULT_T_RANGE,
    DEFAULT_X_RANGE,
)


class FormulaType(str, Enum):
    FUNCTION = "function"
    PARAMETRIC = "parametric"
    POLAR = "polar"


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class CanvasSize:
    width: float = DEFAULT_CANVAS_WIDTH
    height: float = DEFAULT_CANVAS_HEIGHT

    @property
    def is_degenerate(self) -> bool:
        return not (self.width > 0 and self.height > 0)


@dataclass(frozen=True, slots=True)
class GridFrame:
    """Screen/math transform snapshot.

    ``origin`` is the screen-pixel position of mathematical (0, 0).  Screen y
    grows downward, math y grows upward.
    """

    origin: Point
    pixels_per_unit: float

    @classmethod
    def from_zoom(
        cls,
        origin: Point,
        zoom: float = 1.0,
        calibration: float = CALIBRATION_PIXELS_PER_UNIT,
    ) -> "GridFrame":
        return cls(origin=origin, pixels_per_unit=calibration * zoom)

    @property
    def zoom(self) -> float:
        return self.pixels_per_unit / CALIBRATION_PIXELS_PER_UNIT

    @property
    def is_degenerate(self) -> bool:
        ppu = self.pixels_per_unit
        return (
            not math.isfinite(ppu)
            or ppu <= 0
            or not math.isfinite(self.origin.x)
            or not math.isfinite(self.origin.y)
        )


@dataclass(frozen=True, slots=True)
class Formula:
    id: str
    expression: str
    type: FormulaType = FormulaType.FUNCTION
    name: Optional[str] = None
    color: str = "#1f77b4"
    stroke_width: float = 2.0
    x_range: tuple[float, float] = DEFAULT_X_RANGE
    t_range: Optional[tuple[float, float]] = None
    samples: int = DEFAULT_SAMPLES
    scale_factor: float = 1.0
    parameters: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive, got {self.scale_factor}")
        if self.x_range[0] > self.x_range[1]:
            raise ValueError(f"x_range must be ordered, got {self.x_range}")
        if self.stroke_width <= 0:
            raise ValueError(f"stroke_width must be positive, got {self.stroke_width}")


@dataclass(frozen=True, slots=True)
class SampledPoint:
    """One evaluated point in screen pixels; ``y`` is NaN when invalid."""

    x: float
    y: float
    is_valid: bool


@dataclass(frozen=True, slots=True)
class PathSegment:
    points: tuple[SampledPoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def commands(self, precision: int = 2) -> str:
        if not self.points:
            return ""
        first, *rest = self.points
        parts = [f"M {first.x:.{precision}f},{first.y:.{precision}f}"]
        parts.extend(f"L {p.x:.{precision}f},{p.y:.{precision}f}" for p in rest)
        return " ".join(parts)


@dataclass(frozen=True, slots=True)
class PointLocation:
    index: int
    point: SampledPoint


@dataclass(frozen=True, slots=True)
class FormulaExample:
    name: str
    expression: str
    category: str
    description: str
    type: FormulaType = FormulaType.FUNCTION
    x_range: tuple[float, float] = DEFAULT_X_RANGE
    t_range: Optional[tuple[float, float]] = None


_EXAMPLES: tuple[FormulaExample, ...] = (
    FormulaExample("Linear function", "2*x + 1", "basic", "f(x) = 2x + 1"),
    FormulaExample("Quadratic function", "x*x", "basic", "f(x) = x²"),
    FormulaExample("Cubic function", "x*x*x", "basic", "f(x) = x³"),
    FormulaExample("Sine function", "sin(x)", "trigonometric", "f(x) = sin(x)"),
    FormulaExample("Cosine function", "cos(x)", "trigonometric", "f(x) = cos(x)"),
    FormulaExample("Tangent function", "tan(x)", "trigonometric", "f(x) = tan(x)"),
    FormulaExample("Exponential function", "exp(x)", "exponential", "f(x) = e^x"),
    FormulaExample("Natural logarithm", "log(abs(x))", "exponential", "f(x) = ln|x|"),
    FormulaExample("Absolute value", "abs(x)", "special", "f(x) = |x|"),
    FormulaExample("Square root", "sqrt(abs(x))", "special", "f(x) = √|x|"),
    FormulaExample("Sigmoid function", "1 / (1 + exp(-x))", "special", "f(x) = 1/(1+e^(-x))"),
    FormulaExample("Quartic function", "x*x*x*x - 3*x*x", "polynomial", "f(x) = x⁴ - 3x²"),
    FormulaExample(
        "Quintic function", "x*x*x*x*x - 5*x*x*x + 4*x", "polynomial", "f(x) = x⁵ - 5x³ + 4x"
    ),
    FormulaExample(
        "Circle", "cos(t); sin(t)", "parametric", "x = cos t, y = sin t",
        type=FormulaType.PARAMETRIC, t_range=DEFAULT_T_RANGE,
    ),
    FormulaExample(
        "Rose", "cos(3*t)", "polar", "r = cos 3θ",
        type=FormulaType.POLAR, t_range=(0.0, math.pi),
    ),
)


def formula_examples() -> tuple[FormulaExample, ...]:
    return _EXAMPLES


def generate_formula_id() -> str:
    return f"formula-{int(time.time() * 1000)}-{random.randrange(1000)}"


def random_color() -> str:
    return f"#{random.randrange(0x1000000):06x}"


def create_default_formula(kind: FormulaType = FormulaType.FUNCTION) -> Formula:
    expression = {
        FormulaType.FUNCTION: "x*x",
        FormulaType.PARAMETRIC: "cos(t); sin(t)",
        FormulaType.POLAR: "1",
    }[kind]
    return Formula(
        id=generate_formula_id(),
        expression=expression,
        type=kind,
        color=random_color(),
        stroke_width=2.0,
        x_range=DEFAULT_X_RANGE,
        t_range=None if kind is FormulaType.FUNCTION else DEFAULT_T_RANGE,
        samples=DEFAULT_SAMPLES,
        scale_factor=1.0,
    )


def formula_from_example(example: FormulaExample) -> Formula:
    return Formula(
        id=generate_formula_id(),
        expression=example.expression,
        type=example.type,
        name=example.name,
        color=random_color(),
        x_range=example.x_range,
        t_range=example.t_range,
    )
