"""Tests for the textual family heuristics."""

import pytest

from formula_plotter.families import (
    FamilyProfile,
    adjust_samples,
    classify,
    detect_characteristics,
    polynomial_degree,
)


class TestClassify:
    """Tests for classify and the family table."""

    @pytest.mark.parametrize(
        "expression, family",
        [
            ("tan(x)", "tangent"),
            ("2*tan(x) + 1", "tangent"),
            ("tan(2*x)", "tangent-composite"),
            ("exp(x)", "exponential"),
            ("2^x", "exponential"),
            ("log(x)", "logarithmic"),
            ("ln(abs(x))", "logarithmic"),
            ("1/(x-2)", "rational"),
            ("1/x", "rational"),
            ("x^2 + x", "polynomial"),
            ("x*x*x", "polynomial"),
            ("sin(x)", "generic"),
            ("2*x + 1", "generic"),
        ],
    )
    def test_families(self, expression, family):
        assert classify(expression).name == family

    def test_tangent_profile(self):
        profile = classify("tan(x)")
        assert profile.tangent_checks
        assert profile.asymptote_period is not None
        assert classify("tan(3*x)").asymptote_period is None

    def test_rewritten_tangent_is_not_recognised(self):
        """A tangent written as sin/cos is matched on text, not meaning."""
        profile = classify("sin(x)/cos(x)")
        assert profile.name != "tangent"
        assert not profile.tangent_checks

    def test_custom_table(self):
        custom = FamilyProfile("custom", jump_threshold=5.0)
        table = [(lambda s: "sin" in s, custom)]
        assert classify("sin(x)", table=table) is custom
        assert classify("cos(x)", table=table).name == "generic"

    def test_larger_thresholds_for_steep_families(self):
        generic = classify("sin(x)").jump_threshold
        for expression in ("tan(x)", "exp(x)", "x^3"):
            assert classify(expression).jump_threshold > generic


class TestCharacteristics:
    """Tests for detect_characteristics and adjust_samples."""

    @pytest.mark.parametrize(
        "expression, degree",
        [("x*x*x", 3), ("x^4 - 3*x", 4), ("pow(x, 5)", 5), ("x**2", 2), ("2*x + 1", 1), ("5", 0)],
    )
    def test_polynomial_degree(self, expression, degree):
        assert polynomial_degree(expression) == degree

    def test_flags(self):
        chars = detect_characteristics("sin(x*10)")
        assert chars.is_high_frequency
        assert chars.is_very_high_frequency
        assert detect_characteristics("tan(x)").is_tangent
        assert detect_characteristics("log(x)").is_logarithmic
        assert detect_characteristics("1/(x-2)").has_singularity
        assert detect_characteristics("sqrt(abs(x))").is_sqrt_abs

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("sin(x)", 500),
            ("sin(x*10)", 6000),
            ("1/(x-2)", 5000),
            ("sin(2*x)", 4000),
        ],
    )
    def test_adjust_samples(self, expression, expected):
        assert adjust_samples(500, detect_characteristics(expression)) == expected

    def test_adjust_samples_clamped(self):
        assert adjust_samples(50_000, detect_characteristics("1/x")) == 100_000
