import math
import time
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Optional, Union

from somnipump.amounts import TokenAmount
from somnipump.errors import InvalidTolerance

MAX_TOLERANCE_PCT = 50
BPS = 10_000

Tolerance = Union[int, float, str, Decimal]
Quoted = Union[int, TokenAmount]


def tolerance_fraction(tolerance_pct: Tolerance) -> Fraction:
    """Exact rational value of a percentage, validated against [0, 50].

    Floats go through their shortest repr so ``0.3`` means 3/10, not the
    binary approximation.
    """
    if isinstance(tolerance_pct, bool):
        raise InvalidTolerance(f"not a number: {tolerance_pct!r}")
    try:
        value = Decimal(str(tolerance_pct).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidTolerance(f"not a number: {tolerance_pct!r}") from e
    if not value.is_finite():
        raise InvalidTolerance(f"not a finite number: {tolerance_pct!r}")
    if value < 0 or value > MAX_TOLERANCE_PCT:
        raise InvalidTolerance(
            f"slippage tolerance must be within [0, {MAX_TOLERANCE_PCT}]%, got {tolerance_pct}"
        )
    return Fraction(value)


def to_bps(tolerance_pct: Tolerance) -> int:
    """Tolerance in whole basis points, rounded down."""
    return math.floor(tolerance_fraction(tolerance_pct) * 100)


def _raw(quoted: Quoted) -> int:
    return quoted.raw if isinstance(quoted, TokenAmount) else int(quoted)


def min_output(quoted_output: Quoted, tolerance_pct: Tolerance) -> int:
    """floor(quoted * (10000 - tol*100) / 10000): the least a trade may return."""
    keep = BPS - tolerance_fraction(tolerance_pct) * 100
    return math.floor(_raw(quoted_output) * keep / BPS)


def max_input(quoted_input: Quoted, tolerance_pct: Tolerance) -> int:
    """ceil(quoted * (10000 + tol*100) / 10000): the most a trade may spend."""
    allow = BPS + tolerance_fraction(tolerance_pct) * 100
    return math.ceil(_raw(quoted_input) * allow / BPS)


def deadline(seconds: int, now: Optional[float] = None) -> int:
    """Unix deadline ``seconds`` from now; call it when the step is built."""
    return int(now if now is not None else time.time()) + int(seconds)
