"""Tests for the data model and formula defaults."""

import pytest

from formula_plotter.evaluator import validate_expression
from formula_plotter.models import (
    Formula,
    FormulaType,
    GridFrame,
    PathSegment,
    Point,
    SampledPoint,
    create_default_formula,
    formula_examples,
    formula_from_example,
)


class TestFormula:
    """Tests for Formula validation."""

    def test_defaults(self):
        f = Formula(id="a", expression="x")
        assert f.type is FormulaType.FUNCTION
        assert f.samples == 500
        assert f.scale_factor == 1.0
        assert f.x_range == (-10000.0, 10000.0)
        assert dict(f.parameters) == {}

    def test_non_positive_scale_rejected(self):
        with pytest.raises(ValueError):
            Formula(id="a", expression="x", scale_factor=0.0)

    def test_reversed_range_rejected(self):
        with pytest.raises(ValueError):
            Formula(id="a", expression="x", x_range=(5.0, -5.0))

    def test_non_positive_stroke_rejected(self):
        with pytest.raises(ValueError):
            Formula(id="a", expression="x", stroke_width=0.0)


class TestGridFrame:
    """Tests for GridFrame construction and degeneracy."""

    def test_from_zoom(self):
        frame = GridFrame.from_zoom(Point(10, 20), zoom=2.0)
        assert frame.pixels_per_unit == 120.0
        assert frame.zoom == pytest.approx(2.0)

    @pytest.mark.parametrize("ppu", [0.0, -5.0, float("nan"), float("inf")])
    def test_degenerate_scale(self, ppu):
        assert GridFrame(Point(0, 0), ppu).is_degenerate

    def test_degenerate_origin(self):
        assert GridFrame(Point(float("nan"), 0), 60.0).is_degenerate
        assert not GridFrame(Point(0, 0), 60.0).is_degenerate


class TestPathSegment:
    """Tests for PathSegment drawing commands."""

    def test_commands(self):
        seg = PathSegment((SampledPoint(0, 0, True), SampledPoint(1.5, 2.25, True)))
        assert len(seg) == 2
        assert seg.commands() == "M 0.00,0.00 L 1.50,2.25"

    def test_empty(self):
        assert PathSegment(()).commands() == ""


class TestDefaults:
    """Tests for default formulas and the example catalogue."""

    @pytest.mark.parametrize(
        "kind, expression",
        [
            (FormulaType.FUNCTION, "x*x"),
            (FormulaType.PARAMETRIC, "cos(t); sin(t)"),
            (FormulaType.POLAR, "1"),
        ],
    )
    def test_create_default_formula(self, kind, expression):
        f = create_default_formula(kind)
        assert f.type is kind
        assert f.expression == expression
        assert f.id.startswith("formula-")
        assert f.color.startswith("#") and len(f.color) == 7
        assert f.stroke_width == 2.0
        assert f.samples == 500

    def test_examples_all_validate(self):
        examples = formula_examples()
        assert "sin(x)" in [e.expression for e in examples]
        for example in examples:
            ok, message = validate_expression(example.expression, example.type)
            assert ok, (example.name, message)

    def test_formula_from_example(self):
        example = formula_examples()[0]
        f = formula_from_example(example)
        assert f.expression == example.expression
        assert f.name == example.name
