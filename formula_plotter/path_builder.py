"""Turn sampled points into pen-down runs and drawable path strings."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .coordinates import CanvasRegion
from .discontinuity import DiscontinuityClassifier
from .models import PathSegment, SampledPoint

log = logging.getLogger(__name__)


class PathBuilder:
    """Splits a sampled sequence into :class:`PathSegment` runs.

    With a *classifier* the pen also lifts on detected discontinuities and
    points are gated on the classifier's canvas region.  Without one only
    validity and the optional *region* are checked, which is what
    parametric and polar curves need.
    """

    def __init__(
        self,
        classifier: Optional[DiscontinuityClassifier] = None,
        region: Optional[CanvasRegion] = None,
    ) -> None:
        self._classifier = classifier
        if region is None and classifier is not None:
            region = classifier.region
        self._region = region

    def _drawable(self, point: SampledPoint) -> bool:
        if not point.is_valid:
            return False
        return self._region is None or self._region.contains(point.x, point.y)

    def build(self, points: Sequence[SampledPoint]) -> list[PathSegment]:
        segments: list[PathSegment] = []
        current: list[SampledPoint] = []

        for point in points:
            if not self._drawable(point):
                if current:
                    segments.append(PathSegment(tuple(current)))
                    current = []
                continue
            if current and self._classifier is not None and self._classifier.is_break(current[-1], point):
                segments.append(PathSegment(tuple(current)))
                current = []
            current.append(point)

        if current:
            segments.append(PathSegment(tuple(current)))
        log.debug("built %d segments from %d points", len(segments), len(points))
        return segments


def to_path_string(segments: Sequence[PathSegment], precision: int = 2) -> str:
    """SVG-style ``M x,y L x,y ...`` commands for all segments, in order."""
    return " ".join(cmd for cmd in (s.commands(precision) for s in segments) if cmd)
