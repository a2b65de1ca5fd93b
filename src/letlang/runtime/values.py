"""
Runtime values for the letlang evaluator.

Values mirror the concrete types one to one. Arrays and tuples carry their
element type(s) explicitly, so an empty array still knows its type.

Values are immutable; a variable is rebound by replacing the value stored in
its binding, never by mutating the value itself.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from letlang.compiler.type_system import (
    BOOL_TYPE,
    FLOAT_TYPE,
    INTEGER_TYPE,
    STR_TYPE,
    VOID_TYPE,
    ArrayType,
    BoolType,
    FloatType,
    IntegerType,
    StrType,
    TupleType,
    Type,
    VoidType,
)
from letlang.utils.errors import InternalError

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


def wrap_i64(value: int) -> int:
    """Wrap an arbitrary Python int to a signed 64-bit integer."""
    return (value - I64_MIN) % 2**64 + I64_MIN


def float_to_i64(value: float) -> int:
    """Truncate a float toward zero, saturating at the 64-bit bounds."""
    if math.isnan(value):
        return 0
    if value >= I64_MAX:
        return I64_MAX
    if value <= I64_MIN:
        return I64_MIN
    return int(value)


def format_float(value: float) -> str:
    """Format a float the way `as Str` does: no trailing `.0`."""
    if math.isfinite(value) and value == math.floor(value):
        return str(int(value))
    if math.isnan(value):
        return "NaN"
    return repr(value)


def _unnatural(value: Value, dest: Type) -> InternalError:
    return InternalError(f"Unnatural conversion at runtime: {value.type} to {dest}")


class Value(ABC):
    """Base class for all runtime values."""

    @property
    @abstractmethod
    def type(self) -> Type:
        """The concrete type of this value."""
        pass

    @abstractmethod
    def __str__(self) -> str:
        pass

    def truthy(self) -> bool:
        """Evaluate this value as a condition."""
        raise InternalError(f"Invalid value truthy-checked: {self.type}")

    def convert_to(self, dest: Type) -> Value:
        """
        Structurally convert this value to ``dest``.

        Only conversions accepted by ``Type.is_convertible_to`` are supported;
        anything else raises ``InternalError``.
        """
        if isinstance(dest, VoidType):
            return VOID
        raise _unnatural(self, dest)


@dataclass(frozen=True)
class VoidValue(Value):
    @property
    def type(self) -> Type:
        return VOID_TYPE

    def __str__(self) -> str:
        return "nil"


@dataclass(frozen=True)
class IntegerValue(Value):
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", wrap_i64(self.value))

    @property
    def type(self) -> Type:
        return INTEGER_TYPE

    def __str__(self) -> str:
        return str(self.value)

    def truthy(self) -> bool:
        return self.value != 0

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, IntegerType):
            return self
        if isinstance(dest, FloatType):
            return FloatValue(float(self.value))
        if isinstance(dest, BoolType):
            return BoolValue(self.value != 0)
        if isinstance(dest, StrType):
            return StrValue(str(self.value))
        return super().convert_to(dest)


@dataclass(frozen=True)
class FloatValue(Value):
    value: float

    @property
    def type(self) -> Type:
        return FLOAT_TYPE

    def __str__(self) -> str:
        # Integral floats keep a trailing dot to stay distinguishable from integers
        if math.isfinite(self.value) and self.value == math.floor(self.value):
            return f"{int(self.value)}."
        return format_float(self.value)

    def truthy(self) -> bool:
        return self.value != 0.0

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, IntegerType):
            return IntegerValue(float_to_i64(self.value))
        if isinstance(dest, FloatType):
            return self
        if isinstance(dest, BoolType):
            return BoolValue(self.value != 0.0)
        if isinstance(dest, StrType):
            return StrValue(format_float(self.value))
        return super().convert_to(dest)


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool

    @property
    def type(self) -> Type:
        return BOOL_TYPE

    def __str__(self) -> str:
        return "true" if self.value else "false"

    def truthy(self) -> bool:
        return self.value

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, BoolType):
            return self
        if isinstance(dest, StrType):
            return StrValue(str(self))
        return super().convert_to(dest)


@dataclass(frozen=True)
class StrValue(Value):
    value: str

    @property
    def type(self) -> Type:
        return STR_TYPE

    def __str__(self) -> str:
        return self.value

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, StrType):
            return self
        return super().convert_to(dest)


@dataclass(frozen=True)
class ArrayValue(Value):
    """An array value; ``element_type`` is kept even when empty."""

    element_type: Type
    values: tuple[Value, ...] = ()

    @property
    def type(self) -> Type:
        return ArrayType(self.element_type)

    def __str__(self) -> str:
        return f"[{', '.join(str(v) for v in self.values)}]"

    def truthy(self) -> bool:
        return len(self.values) > 0

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, ArrayType):
            if dest.element == self.element_type:
                return self
            return ArrayValue(
                dest.element,
                tuple(v.convert_to(dest.element) for v in self.values),
            )
        return super().convert_to(dest)


@dataclass(frozen=True)
class TupleValue(Value):
    """A tuple value with one recorded type per element."""

    element_types: tuple[Type, ...] = ()
    values: tuple[Value, ...] = ()

    @property
    def type(self) -> Type:
        return TupleType(self.element_types)

    def __str__(self) -> str:
        return "{" + ", ".join(str(v) for v in self.values) + "}"

    def convert_to(self, dest: Type) -> Value:
        if isinstance(dest, TupleType):
            if dest.elements == self.element_types:
                return self
            if len(dest.elements) != len(self.values):
                raise _unnatural(self, dest)
            return TupleValue(
                dest.elements,
                tuple(v.convert_to(t) for v, t in zip(self.values, dest.elements)),
            )
        if isinstance(dest, ArrayType):
            return ArrayValue(
                dest.element,
                tuple(v.convert_to(dest.element) for v in self.values),
            )
        return super().convert_to(dest)


VOID = VoidValue()


def array_of(element_type: Type, *values: Value) -> ArrayValue:
    """Build an array value from its element type and elements."""
    return ArrayValue(element_type, tuple(values))


def tuple_of(*values: Value) -> TupleValue:
    """Build a tuple value, recording each element's own type."""
    return TupleValue(tuple(v.type for v in values), tuple(values))
