"""
Native implementations of the letlang builtins.

Each function receives the already evaluated arguments as a sequence and
returns a ``Value``. The type checker has proven that the argument types
match one of the builtin's signatures, so the fallback branches only fire
when an unchecked tree is evaluated; they raise ``InternalError``.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Callable, Sequence
from typing import Optional, TextIO

from letlang.runtime.values import (
    VOID,
    ArrayValue,
    BoolValue,
    FloatValue,
    IntegerValue,
    StrValue,
    TupleValue,
    Value,
)
from letlang.utils.errors import InternalError

NativeFunction = Callable[[Sequence[Value]], Value]

# Float equality tolerance, as used by `=`
EPSILON = sys.float_info.epsilon


def _arity(name: str, args: Sequence[Value], expected: int) -> None:
    if len(args) != expected:
        raise InternalError(
            f"Wrong number of arguments in `{name}`: expected {expected}, got {len(args)}"
        )


def _wrong_types(name: str, args: Sequence[Value]) -> InternalError:
    types = ", ".join(str(arg.type) for arg in args)
    return InternalError(f"Wrong type of arguments in `{name}`: {types}")


# =============================================================================
# Output
# =============================================================================


def make_print(stream: Optional[TextIO] = None, newline: bool = False) -> NativeFunction:
    """
    Build a `print` / `println` implementation writing to ``stream``.

    The stream is looked up on every call when not given, so redirecting
    ``sys.stdout`` (as pytest's ``capsys`` does) is honoured.
    """
    name = "println" if newline else "print"

    def _print(args: Sequence[Value]) -> Value:
        _arity(name, args, 1)
        out = stream if stream is not None else sys.stdout
        out.write(str(args[0]))
        if newline:
            out.write("\n")
        return VOID

    return _print


# =============================================================================
# Arithmetic
# =============================================================================


def un_plus(args: Sequence[Value]) -> Value:
    _arity("un+", args, 1)
    (val,) = args
    if isinstance(val, (IntegerValue, FloatValue)):
        return val
    raise _wrong_types("un+", args)


def un_minus(args: Sequence[Value]) -> Value:
    _arity("un-", args, 1)
    (val,) = args
    if isinstance(val, IntegerValue):
        return IntegerValue(-val.value)
    if isinstance(val, FloatValue):
        return FloatValue(-val.value)
    raise _wrong_types("un-", args)


def plus(args: Sequence[Value]) -> Value:
    _arity("+", args, 2)
    lhs, rhs = args
    if isinstance(lhs, IntegerValue) and isinstance(rhs, IntegerValue):
        return IntegerValue(lhs.value + rhs.value)
    if isinstance(lhs, FloatValue) and isinstance(rhs, FloatValue):
        return FloatValue(lhs.value + rhs.value)
    if isinstance(lhs, StrValue) and isinstance(rhs, StrValue):
        return StrValue(lhs.value + rhs.value)
    raise _wrong_types("+", args)


def minus(args: Sequence[Value]) -> Value:
    _arity("-", args, 2)
    lhs, rhs = args
    if isinstance(lhs, IntegerValue) and isinstance(rhs, IntegerValue):
        return IntegerValue(lhs.value - rhs.value)
    if isinstance(lhs, FloatValue) and isinstance(rhs, FloatValue):
        return FloatValue(lhs.value - rhs.value)
    raise _wrong_types("-", args)


def mul(args: Sequence[Value]) -> Value:
    _arity("*", args, 2)
    lhs, rhs = args
    if isinstance(lhs, IntegerValue) and isinstance(rhs, IntegerValue):
        return IntegerValue(lhs.value * rhs.value)
    if isinstance(lhs, FloatValue) and isinstance(rhs, FloatValue):
        return FloatValue(lhs.value * rhs.value)
    raise _wrong_types("*", args)


def _float_div(lhs: float, rhs: float) -> float:
    if rhs != 0.0:
        return lhs / rhs
    if lhs == 0.0 or math.isnan(lhs):
        return math.nan
    return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)


def div(args: Sequence[Value]) -> Value:
    """
    Divide two numbers.

    Integer division truncates toward zero and raises ``ZeroDivisionError``
    on a zero divisor; float division follows IEEE 754.
    """
    _arity("/", args, 2)
    lhs, rhs = args
    if isinstance(lhs, IntegerValue) and isinstance(rhs, IntegerValue):
        quotient = abs(lhs.value) // abs(rhs.value)
        if (lhs.value < 0) != (rhs.value < 0):
            quotient = -quotient
        return IntegerValue(quotient)
    if isinstance(lhs, FloatValue) and isinstance(rhs, FloatValue):
        return FloatValue(_float_div(lhs.value, rhs.value))
    raise _wrong_types("/", args)


# =============================================================================
# Comparison
# =============================================================================


def compare(lhs: Value, rhs: Value) -> Optional[int]:
    """
    Order two values of the same shape.

    Returns -1, 0 or 1, or None when the values are not comparable (different
    shapes, or a NaN is involved). Arrays and tuples compare
    lexicographically.
    """
    if isinstance(lhs, ArrayValue) and isinstance(rhs, ArrayValue):
        return _compare_sequences(lhs.values, rhs.values)
    if isinstance(lhs, TupleValue) and isinstance(rhs, TupleValue):
        return _compare_sequences(lhs.values, rhs.values)
    scalar_kinds = (IntegerValue, FloatValue, BoolValue, StrValue)
    if isinstance(lhs, scalar_kinds) and type(lhs) is type(rhs):
        a, b = lhs.value, rhs.value
        if a < b:
            return -1
        if a > b:
            return 1
        if a == b:
            return 0
    return None


def _compare_sequences(lhs: Sequence[Value], rhs: Sequence[Value]) -> Optional[int]:
    for a, b in zip(lhs, rhs):
        ordering = compare(a, b)
        if ordering != 0:
            return ordering
    return (len(lhs) > len(rhs)) - (len(lhs) < len(rhs))


def lower(args: Sequence[Value]) -> Value:
    _arity("<", args, 2)
    return BoolValue(compare(*args) == -1)


def lower_eq(args: Sequence[Value]) -> Value:
    _arity("<=", args, 2)
    return BoolValue(compare(*args) in (-1, 0))


def greater(args: Sequence[Value]) -> Value:
    _arity(">", args, 2)
    return BoolValue(compare(*args) == 1)


def greater_eq(args: Sequence[Value]) -> Value:
    _arity(">=", args, 2)
    return BoolValue(compare(*args) in (1, 0))


def equal(args: Sequence[Value]) -> Value:
    """Structural equality; two floats are equal within ``EPSILON``."""
    _arity("=", args, 2)
    lhs, rhs = args
    if isinstance(lhs, FloatValue) and isinstance(rhs, FloatValue):
        return BoolValue(abs(lhs.value - rhs.value) < EPSILON)
    return BoolValue(lhs == rhs)


def not_equal(args: Sequence[Value]) -> Value:
    _arity("<>", args, 2)
    lhs, rhs = args
    return BoolValue(lhs != rhs)
