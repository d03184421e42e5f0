"""Constants and tunable thresholds for the sampling engine."""

from __future__ import annotations

import math
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Grid / zoom
# ---------------------------------------------------------------------------

CALIBRATION_PIXELS_PER_UNIT: float = 60.0
MIN_ZOOM: float = 0.3   # 30 %
MAX_ZOOM: float = 3.0   # 300 %
WHEEL_ZOOM_STEP: float = 0.05

DEFAULT_CANVAS_WIDTH: int = 1000
DEFAULT_CANVAS_HEIGHT: int = 800

# ---------------------------------------------------------------------------
# Formula defaults
# ---------------------------------------------------------------------------

MIN_SAMPLES: int = 20
MAX_SAMPLES: int = 100_000
DEFAULT_SAMPLES: int = 500
DRAG_SAMPLES: int = 100

DEFAULT_X_RANGE: tuple[float, float] = (-10000.0, 10000.0)
DEFAULT_T_RANGE: tuple[float, float] = (0.0, 2.0 * math.pi)

# ---------------------------------------------------------------------------
# Interaction
# ---------------------------------------------------------------------------

LOCATE_THRESHOLD_PX: float = 15.0
NAVIGATION_STEP: float = 0.1
NAVIGATION_STEP_FAST: float = 1.0
FULL_PASS_DEBOUNCE_MS: int = 150


def clamp_samples(samples: float) -> int:
    return int(min(max(int(samples), MIN_SAMPLES), MAX_SAMPLES))


@dataclass(frozen=True, slots=True)
class SamplerSettings:
    refine_pixel_threshold: float = 6.0     # |dy| in px that triggers bisection
    curvature_angle: float = 0.35           # turning angle (rad) that triggers bisection
    max_refine_depth: int = 8
    max_samples: int = MAX_SAMPLES
    min_segment_px: float = 0.5             # shorter segments are ignored by the curvature test
    jump_threshold: float = 60.0            # generic vertical jump in px
    jump_dx_px: float = 8.0                 # horizontal window for a jump
    tangent_magnitude: float = 10.0         # |y| both sides of a sign flip
    tangent_window: float = math.pi / 4     # max |dx| for a sign flip
    tangent_slope: float = 500.0            # |dy/dx| in math units

    def __post_init__(self) -> None:
        if self.refine_pixel_threshold <= 0:
            raise ValueError(
                f"refine_pixel_threshold must be positive, got {self.refine_pixel_threshold}"
            )
        if not (0.0 < self.curvature_angle < math.pi):
            raise ValueError(f"curvature_angle must be in (0, pi), got {self.curvature_angle}")
        if not (0 <= self.max_refine_depth <= 20):
            raise ValueError(f"max_refine_depth must be in [0, 20], got {self.max_refine_depth}")
        if self.max_samples < MIN_SAMPLES:
            raise ValueError(f"max_samples must be >= {MIN_SAMPLES}, got {self.max_samples}")
        if self.min_segment_px < 0:
            raise ValueError(f"min_segment_px cannot be negative: {self.min_segment_px}")
        if self.jump_threshold <= 0 or self.jump_dx_px <= 0:
            raise ValueError("jump thresholds must be positive")
        if self.tangent_magnitude <= 0 or self.tangent_window <= 0 or self.tangent_slope <= 0:
            raise ValueError("tangent thresholds must be positive")
