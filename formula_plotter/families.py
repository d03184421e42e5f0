"""Expression-family heuristics.

Classification is purely textual: an expression is matched against regular
expressions, not analysed symbolically.  ``sin(x)/cos(x)`` is therefore *not*
recognised as a tangent.  The matching lives in :data:`FAMILY_TABLE`, an
ordered list of ``(predicate, profile)`` pairs, so a numeric classifier can
replace it without touching the sampler or the discontinuity classifier.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .config import clamp_samples
from .evaluator import normalize_expression

Predicate = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class FunctionCharacteristics:
    is_tangent: bool = False
    is_logarithmic: bool = False
    allows_negative_x: bool = False
    is_high_frequency: bool = False
    is_very_high_frequency: bool = False
    is_complex: bool = False
    is_combined: bool = False
    is_sqrt_abs: bool = False
    has_singularity: bool = False
    has_pow: bool = False
    has_pow_with_x: bool = False
    has_trig_pow_combination: bool = False
    polynomial_degree: int = 0


@dataclass(frozen=True, slots=True)
class FamilyProfile:
    """Sampling and break parameters for one expression family.

    Margins are fractions of the visible canvas (width for x, height for y).
    ``jump_threshold`` is a vertical pixel distance.
    """

    name: str
    x_margin: float = 0.1
    y_margin: float = 1.0
    jump_threshold: float = 60.0
    tangent_checks: bool = False
    asymptote_period: Optional[float] = None
    asymptote_offset: float = 0.5


_TRIG = re.compile(r"\b(sin|cos|tan)\(")
_TANGENT = re.compile(r"\btan\(")
_PURE_TANGENT = re.compile(r"\btan\(x\)")
_LOG = re.compile(r"\b(log|ln|log10|log2)\(")
_EXP = re.compile(r"\bexp\(|(\*\*|\^)(x\b|\([^()]*x)|\bpow\([^,]+,[^)]*x")
_POW = re.compile(r"\bpow\(")
_POW_WITH_X = re.compile(r"\bpow\(x,|\bpow\([^,]+,x\)")
_HIGH_FREQ = re.compile(r"\*x|x\*")
_QUADRATIC = re.compile(r"x\*x|x\^2|x\*\*2|pow\(x,2\)")
_CUBIC = re.compile(r"x\*x\*x|x\^3|x\*\*3|pow\(x,3\)")
_BIG_FREQ = re.compile(r"\d{2,}\*x|x\*\d{2,}|\d{2,}\*pi")
_SINGULARITY = re.compile(r"/x|/\([^)]*x|x\^-1|x\*\*-1|x\*\*\(-1\)|pow\([^,]*x[^,]*,-1\)")
_COMPLEX_OPS = re.compile(r"\b(pow|sqrt)\(|\*\*|[+\-*/]{2,}")
_NEGATIVE_X = re.compile(r"abs\(x\)|-x|\(-x\)")
_SQRT_ABS = re.compile(r"sqrt\(abs\(x\)\)")
_POWER_TERM = re.compile(r"x(?:\^|\*\*)\(?(\d+)\)?|pow\(x,(\d+)\)")
_X_CHAIN = re.compile(r"x(?:\*x)+")


def _compact(expression: str) -> str:
    return re.sub(r"\s+", "", normalize_expression(expression))


def polynomial_degree(expression: str) -> int:
    """Highest power of x written literally (``x*x*x``, ``x^3``, ``pow(x,3)``)."""
    s = _compact(expression)
    degree = 1 if re.search(r"\bx\b", s) else 0
    for m in _POWER_TERM.finditer(s):
        degree = max(degree, int(m.group(1) or m.group(2)))
    for m in _X_CHAIN.finditer(s):
        degree = max(degree, m.group(0).count("x"))
    return degree


def detect_characteristics(expression: str) -> FunctionCharacteristics:
    s = _compact(expression)
    has_trig = bool(_TRIG.search(s))
    has_pow = bool(_POW.search(s))
    has_pow_with_x = bool(_POW_WITH_X.search(s))
    has_quadratic_trig = has_trig and bool(_QUADRATIC.search(s) or _CUBIC.search(s))
    trig_pow = has_trig and has_pow
    operator_parts = len(re.split(r"[+\-*/]", s))
    complex_ops = bool(_COMPLEX_OPS.search(s))
    return FunctionCharacteristics(
        is_tangent=bool(_TANGENT.search(s)),
        is_logarithmic=bool(_LOG.search(s)),
        allows_negative_x=bool(_NEGATIVE_X.search(s)),
        is_high_frequency=(has_trig and bool(_HIGH_FREQ.search(s))) or has_quadratic_trig or has_pow_with_x,
        is_very_high_frequency=has_quadratic_trig or trig_pow or (has_trig and bool(_BIG_FREQ.search(s))),
        is_complex=complex_ops or operator_parts > 3,
        is_combined=(has_trig and complex_ops) or trig_pow,
        is_sqrt_abs=bool(_SQRT_ABS.search(s)),
        has_singularity=bool(_SINGULARITY.search(s)),
        has_pow=has_pow,
        has_pow_with_x=has_pow_with_x,
        has_trig_pow_combination=trig_pow,
        polynomial_degree=polynomial_degree(s),
    )


def adjust_samples(base: int, chars: FunctionCharacteristics) -> int:
    """Scale the base sample count by how demanding the expression looks."""
    if chars.has_trig_pow_combination or chars.has_singularity:
        return clamp_samples(base * 10)
    if chars.is_very_high_frequency:
        return clamp_samples(base * 12)
    if chars.is_high_frequency:
        return clamp_samples(base * 8)
    if chars.has_pow_with_x:
        return clamp_samples(base * 6)
    if chars.has_pow:
        return clamp_samples(base * 4)
    if chars.is_combined:
        return clamp_samples(base * 5)
    if chars.is_complex:
        return clamp_samples(base * 3)
    return clamp_samples(base)


# ---------------------------------------------------------------------------
# Family table
# ---------------------------------------------------------------------------

def _matches(pattern: re.Pattern[str]) -> Predicate:
    return lambda s: bool(pattern.search(s))


def _is_polynomial(s: str) -> bool:
    return polynomial_degree(s) >= 2 and not _TRIG.search(s) and not _LOG.search(s)


PURE_TANGENT = FamilyProfile(
    "tangent", x_margin=0.5, y_margin=1.0, jump_threshold=2000.0,
    tangent_checks=True, asymptote_period=math.pi,
)
TANGENT = FamilyProfile("tangent-composite", x_margin=0.5, y_margin=1.0,
                        jump_threshold=2000.0, tangent_checks=True)
EXPONENTIAL = FamilyProfile("exponential", x_margin=0.5, y_margin=2.0, jump_threshold=1000.0)
LOGARITHMIC = FamilyProfile("logarithmic", x_margin=0.1, y_margin=1.0, jump_threshold=60.0)
POLYNOMIAL = FamilyProfile("polynomial", x_margin=0.1, y_margin=2.0, jump_threshold=2000.0)
RATIONAL = FamilyProfile("rational", x_margin=0.1, y_margin=1.0, jump_threshold=60.0)
GENERIC = FamilyProfile("generic")

FAMILY_TABLE: list[tuple[Predicate, FamilyProfile]] = [
    (_matches(_PURE_TANGENT), PURE_TANGENT),
    (_matches(_TANGENT), TANGENT),
    (_matches(_EXP), EXPONENTIAL),
    (_matches(_LOG), LOGARITHMIC),
    (_matches(_SINGULARITY), RATIONAL),
    (_is_polynomial, POLYNOMIAL),
]


def classify(
    expression: str,
    table: Optional[list[tuple[Predicate, FamilyProfile]]] = None,
) -> FamilyProfile:
    """First profile in *table* whose predicate matches, else :data:`GENERIC`."""
    s = _compact(expression)
    for predicate, profile in (FAMILY_TABLE if table is None else table):
        if predicate(s):
            return profile
    return GENERIC
