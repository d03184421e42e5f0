"""Tests for DiscontinuityClassifier pen-up decisions."""

import math

from formula_plotter.discontinuity import DiscontinuityClassifier
from formula_plotter.models import SampledPoint


class TestBasicBreaks:
    """Tests for validity, canvas and jump breaks."""

    def test_invalid_point_breaks(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("x", frame, canvas)
        invalid = SampledPoint(510.0, float("nan"), False)
        assert clf.is_break(math_point(0.0, 0.0), invalid)
        assert clf.is_break(invalid, math_point(0.0, 0.0))

    def test_out_of_canvas_breaks(self, frame, canvas):
        clf = DiscontinuityClassifier("x", frame, canvas)
        inside = SampledPoint(500.0, 400.0, True)
        above = SampledPoint(501.0, -900.0, True)
        assert not clf.in_canvas(above)
        assert clf.is_break(inside, above)

    def test_jump(self, frame, canvas):
        clf = DiscontinuityClassifier("abs(x)/x", frame, canvas)
        left = SampledPoint(499.0, 460.0, True)
        right = SampledPoint(501.0, 340.0, True)
        assert clf.is_jump(left, right)
        assert clf.is_break(left, right)

    def test_wide_step_is_not_a_jump(self, frame, canvas):
        clf = DiscontinuityClassifier("abs(x)/x", frame, canvas)
        assert not clf.is_jump(SampledPoint(480.0, 460.0, True), SampledPoint(500.0, 340.0, True))

    def test_continuous_pair(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("sin(x)", frame, canvas)
        a = math_point(1.0, math.sin(1.0))
        b = math_point(1.03, math.sin(1.03))
        assert not clf.is_break(a, b)

    def test_polynomial_tolerates_large_steps(self, frame, canvas):
        """A 200 px rise is a jump for generic input but not for x^3."""
        a = SampledPoint(600.0, 300.0, True)
        b = SampledPoint(602.0, 100.0, True)
        assert DiscontinuityClassifier("sin(x)", frame, canvas).is_break(a, b)
        assert not DiscontinuityClassifier("x^3", frame, canvas).is_break(a, b)

    def test_verdicts(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("x", frame, canvas)
        pts = [math_point(0.0, 0.0), math_point(0.1, 0.1), SampledPoint(0, float("nan"), False)]
        assert clf.verdicts(pts) == [False, True]
        assert clf.verdicts([]) == []


class TestTangent:
    """Tests for the tangent-specific asymptote checks."""

    def test_asymptote_between_points(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("tan(x)", frame, canvas)
        a = math_point(1.5, math.tan(1.5))
        b = math_point(1.65, math.tan(1.65))
        assert clf.in_canvas(a) and clf.in_canvas(b)
        assert not clf.is_jump(a, b)
        assert clf.crosses_tangent_asymptote(a, b)
        assert clf.is_break(a, b)

    def test_negative_asymptote(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("tan(x)", frame, canvas)
        a = math_point(-2.0, math.tan(-2.0))
        b = math_point(-1.0, math.tan(-1.0))
        assert clf.crosses_tangent_asymptote(a, b)

    def test_same_branch(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("tan(x)", frame, canvas)
        a = math_point(2.0, math.tan(2.0))
        b = math_point(3.0, math.tan(3.0))
        assert not clf.crosses_tangent_asymptote(a, b)
        assert not clf.is_break(a, b)

    def test_sign_flip_on_composite_tangent(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("tan(2*x)", frame, canvas)
        assert clf.profile.asymptote_period is None
        a = math_point(0.78, 15.0)
        b = math_point(0.80, -15.0)
        assert clf.crosses_tangent_asymptote(a, b)
        assert clf.is_break(a, b)

    def test_steep_slope(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("tan(2*x)", frame, canvas)
        a = math_point(0.700, 2.0)
        b = math_point(0.701, 5.0)
        assert clf.crosses_tangent_asymptote(a, b)

    def test_checks_disabled_for_other_families(self, frame, canvas, math_point):
        clf = DiscontinuityClassifier("sin(x)", frame, canvas)
        a = math_point(1.5, 0.5)
        b = math_point(1.65, 0.6)
        assert not clf.is_break(a, b)
