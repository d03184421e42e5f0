"""LaTeX and plain-text rendering of formula expressions."""

from __future__ import annotations

import logging
import re

import sympy as sp

from .evaluator import ExpressionError, compile_expression, normalize_expression, split_parametric
from .models import FormulaType

log = logging.getLogger(__name__)


class LaTeXFormatter:
    """Render expressions as display-math LaTeX.

    Approx mode rounds every float literal to ``decimals`` places; exact mode
    turns them into nearby rationals with ``nsimplify``.
    """

    def __init__(self, approx: bool = True, decimals: int = 3) -> None:
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))

    def reconfigure(self, approx: bool, decimals: int) -> None:
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))

    def generate(self, expression: str, kind: FormulaType = FormulaType.FUNCTION) -> str:
        try:
            if kind is FormulaType.PARAMETRIC:
                x_src, y_src = split_parametric(expression)
                body = rf"x(t) = {self._latex(x_src, 't')}, \quad y(t) = {self._latex(y_src, 't')}"
            elif kind is FormulaType.POLAR:
                body = f"r(t) = {self._latex(expression, 't')}"
            else:
                body = f"f(x) = {self._latex(expression, 'x')}"
        except ExpressionError as exc:
            log.debug("cannot render %r as LaTeX: %s", expression, exc)
            return self._fallback(expression)
        return f"$${body}$$"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _round_floats(self, expr: sp.Basic) -> sp.Basic:
        """Round every sp.Float leaf of *expr* to self.decimals places."""
        if isinstance(expr, sp.Float):
            return sp.Float(f"{float(expr):.{self.decimals}f}")
        if expr.args:
            return expr.func(*[self._round_floats(a) for a in expr.args])
        return expr

    def _latex(self, source: str, variable: str) -> str:
        expr = compile_expression(source, variable).expr
        exact = {} if self.approx else {
            f: sp.nsimplify(f, rational=False, tolerance=1e-6) for f in expr.atoms(sp.Float)
        }
        # the compiled tree is unevaluated; rebuilding it must not fold it
        with sp.evaluate(False):
            if self.approx:
                rendered = sp.latex(self._round_floats(expr))
            else:
                rendered = sp.latex(expr.xreplace(exact))
        return rendered.replace(r"\log", r"\ln")

    @staticmethod
    def _fallback(expression: str) -> str:
        text = normalize_expression(expression).replace("\\", "")
        return rf"$$\text{{{text}}}$$"


def format_for_display(expression: str) -> str:
    """Readable plain-text form: ``pow(x, 2)`` as ``x²``, ``pi`` as ``π``, ``*`` as ``×``."""
    if not expression:
        return ""
    s = normalize_expression(expression)
    s = re.sub(r"\bpow\(([^,()]+),\s*2\)", r"\1²", s)
    s = re.sub(r"\bpow\(([^,()]+),\s*([^()]+)\)", r"\1^\2", s)
    s = s.replace("**", "^")
    s = re.sub(r"\^2\b", "²", s)
    s = re.sub(r"\^3\b", "³", s)
    s = re.sub(r"\b(pi|PI)\b", "π", s)
    return s.replace("*", "×")
