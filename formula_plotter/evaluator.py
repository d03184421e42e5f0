"""Safe numeric evaluation of user expressions.

An expression is parsed once with SymPy against a whitelist of names and
compiled with ``sympy.lambdify`` into a NumPy-vectorised closure.  The
closure is cached per source string, so a render pass evaluates thousands of
points without re-parsing.

Only the compile step raises (:class:`ExpressionError`); every evaluation
entry point turns failures, NaN, ±inf and complex results into invalid
values instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from tokenize import TokenError
from typing import Any, Callable, Mapping, Optional

import numpy as np
import sympy as sp
from numpy.typing import ArrayLike, NDArray
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .models import FormulaType

log = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]


class ExpressionError(ValueError):
    """Raised when an expression cannot be compiled."""


_FUNCTIONS: dict[str, Any] = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "sqrt": sp.sqrt,
    "abs": sp.Abs,
    "Abs": sp.Abs,
    "log": sp.log,
    "ln": sp.log,
    "log10": lambda a: sp.log(a) / sp.log(10),
    "log2": lambda a: sp.log(a) / sp.log(2),
    "exp": sp.exp,
    "pow": sp.Pow,
    "floor": sp.floor,
    "ceil": sp.ceiling,
    "sign": sp.sign,
}

_CONSTANTS: dict[str, Any] = {
    "pi": sp.pi,
    "PI": sp.pi,
    "e": sp.E,
    "E": sp.E,
}

_TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)

_ALLOWED_CHARS = re.compile(r"[0-9A-Za-z_+\-*/^().,\s]")
_NUMBER = re.compile(r"(?<![A-Za-z_0-9])\d*\.?\d+(?:[eE][+-]?\d+)?")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_PARAMETER = re.compile(r"^[A-Za-z]$")

_MAX_MESSAGE = 100


def normalize_expression(expression: str) -> str:
    """Strip the legacy ``Math.`` prefix and map unicode operators."""
    s = expression.strip()
    s = re.sub(r"\bMath\.", "", s)
    return s.replace("π", "pi").replace("×", "*").replace("−", "-").replace("·", "*")


def _identifiers(expression: str) -> list[str]:
    seen: list[str] = []
    for name in _IDENTIFIER.findall(_NUMBER.sub(" ", expression)):
        if name not in seen:
            seen.append(name)
    return seen


def _is_parameter(name: str, variable: str) -> bool:
    return bool(_PARAMETER.match(name)) and name != variable and name not in _CONSTANTS


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    name: str
    default: float = 1.0
    min_value: float = -10.0
    max_value: float = 10.0
    step: float = 0.1


def detect_parameters(expression: str, variable: str = "x") -> list[ParameterSpec]:
    """Single-letter names other than the free variable, in order of appearance."""
    source = normalize_expression(expression)
    return [
        ParameterSpec(name)
        for name in _identifiers(source)
        if name not in _FUNCTIONS and _is_parameter(name, variable)
    ]


@dataclass(frozen=True, slots=True)
class CompiledExpression:
    source: str
    variable: str
    parameters: tuple[str, ...]
    expr: sp.Expr
    fn: Callable[..., Any]

    def __call__(
        self, xs: ArrayLike, parameters: Optional[Mapping[str, float]] = None
    ) -> FloatArray:
        """Evaluate at every x; invalid results come back as NaN."""
        x_arr = np.atleast_1d(np.asarray(xs, dtype=np.float64))
        values = [float((parameters or {}).get(name, 1.0)) for name in self.parameters]
        try:
            with np.errstate(all="ignore"):
                raw = np.asarray(self.fn(x_arr, *values))
                if np.iscomplexobj(raw):
                    real = raw.real.astype(np.float64)
                    real[np.abs(raw.imag) > 1e-12] = np.nan
                    raw = real
                ys = np.array(np.broadcast_to(raw.astype(np.float64), x_arr.shape))
        except (ArithmeticError, TypeError, ValueError, NameError, AttributeError) as exc:
            log.debug("evaluation of %r failed: %s", self.source, exc)
            return np.full(x_arr.shape, np.nan, dtype=np.float64)
        ys[~np.isfinite(ys)] = np.nan
        return ys


def _as_floats(expr: sp.Expr) -> sp.Expr:
    """Integer literals as floats, so huge powers overflow to inf instead of growing."""
    return expr.xreplace({n: sp.Float(n) for n in expr.atoms(sp.Integer)})


@lru_cache(maxsize=256)
def compile_expression(expression: str, variable: str = "x") -> CompiledExpression:
    """Parse and compile *expression* in *variable*.

    Raises:
        ExpressionError: empty input, characters or names outside the
            whitelist, a syntax error, or a result that is not a single
            number. The expression is compiled as written, without
            simplification.
    """
    source = normalize_expression(expression or "")
    if not source:
        raise ExpressionError("Expression cannot be empty")

    for ch in source:
        if not _ALLOWED_CHARS.match(ch):
            raise ExpressionError(f"Unexpected character '{ch}'. Check your formula syntax.")

    var = sp.Symbol(variable)
    local_dict: dict[str, Any] = {variable: var}
    param_symbols: list[sp.Symbol] = []
    for name in _identifiers(source):
        if name == variable:
            continue
        if name in _FUNCTIONS:
            local_dict[name] = _FUNCTIONS[name]
        elif name in _CONSTANTS:
            local_dict[name] = _CONSTANTS[name]
        elif _is_parameter(name, variable):
            sym = sp.Symbol(name)
            local_dict[name] = sym
            param_symbols.append(sym)
        else:
            raise ExpressionError(f"Unknown function or variable: '{name}'")

    # Nothing is simplified: sqrt(x)**2 must stay invalid for x < 0 and
    # 9^9^9^9 must not be expanded as an exact integer.
    with sp.evaluate(False):
        try:
            expr = parse_expr(
                source, local_dict=local_dict, transformations=_TRANSFORMATIONS, evaluate=False
            )
        except (SyntaxError, TokenError, TypeError, ValueError, AttributeError,
                NameError, ZeroDivisionError, sp.SympifyError) as exc:
            log.debug("parse of %r failed: %s", source, exc)
            raise ExpressionError(
                "Syntax error: check for missing parentheses or invalid characters"
            ) from exc

        if not isinstance(expr, sp.Expr):
            raise ExpressionError("Expression must evaluate to a single number")

        try:
            fn = sp.lambdify([var, *param_symbols], _as_floats(expr), modules=["numpy"])
        except (SyntaxError, TypeError, ValueError, NameError) as exc:
            raise ExpressionError(f"Cannot compile expression: {exc}") from exc

    return CompiledExpression(
        source=source,
        variable=variable,
        parameters=tuple(str(s) for s in param_symbols),
        expr=expr,
        fn=fn,
    )


def try_compile(expression: str, variable: str = "x") -> Optional[CompiledExpression]:
    try:
        return compile_expression(expression, variable)
    except ExpressionError as exc:
        log.debug("expression %r rejected: %s", expression, exc)
        return None


def evaluate(
    expression: str,
    x: float,
    parameters: Optional[Mapping[str, float]] = None,
    variable: str = "x",
) -> Optional[float]:
    """Value of *expression* at *x*, or ``None`` when the result is invalid."""
    compiled = try_compile(expression, variable)
    if compiled is None:
        return None
    y = float(compiled(np.array([x], dtype=np.float64), parameters)[0])
    return y if np.isfinite(y) else None


def evaluate_many(
    expression: str,
    xs: ArrayLike,
    parameters: Optional[Mapping[str, float]] = None,
    variable: str = "x",
) -> FloatArray:
    """Vectorised :func:`evaluate`; invalid entries are NaN."""
    compiled = try_compile(expression, variable)
    x_arr = np.atleast_1d(np.asarray(xs, dtype=np.float64))
    if compiled is None:
        return np.full(x_arr.shape, np.nan, dtype=np.float64)
    return compiled(x_arr, parameters)


def split_parametric(expression: str) -> tuple[str, str]:
    parts = [p.strip() for p in expression.split(";")]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ExpressionError('Parametric expression must be in format "x(t); y(t)"')
    return parts[0], parts[1]


def _shorten(message: str) -> str:
    if len(message) > _MAX_MESSAGE:
        return message[: _MAX_MESSAGE - 3] + "..."
    return message


def validate_expression(
    expression: str, kind: FormulaType = FormulaType.FUNCTION
) -> tuple[bool, str]:
    """Check that *expression* compiles for *kind*; returns (ok, message)."""
    if not expression or not expression.strip():
        return False, "Expression cannot be empty"
    try:
        if kind is FormulaType.PARAMETRIC:
            for part in split_parametric(expression):
                compile_expression(part, "t")
        elif kind is FormulaType.POLAR:
            compile_expression(expression, "t")
        else:
            compile_expression(expression, "x")
    except ExpressionError as exc:
        return False, _shorten(str(exc))
    return True, ""
