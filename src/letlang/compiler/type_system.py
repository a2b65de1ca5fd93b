"""
Type System Representation for the letlang core.

Two languages of types live here:

1. Concrete types (``Type``): the structural, recursively comparable types
   every checked expression has: Void, Integer, Float, Bool, Str,
   Array(T) and Tuple(T1, ..., Tn).
2. Generic types (``Generic``): patterns over concrete types, used only to
   resolve polymorphic builtin signatures such as
   ``(Comparable, Comparable) -> Bool``.

Matching a generic against a concrete type is pure and recursive; named
generics are resolved through a table supplied by the environment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass


# =============================================================================
# Concrete Types
# =============================================================================


class Type(ABC):
    """
    Base class for all concrete types.

    Types are immutable and compare structurally.
    """

    @abstractmethod
    def __str__(self) -> str:
        """Return a human-readable string representation of the type."""
        pass

    def may_be_condition(self) -> bool:
        """Whether a value of this type may be tested in an `if` or `while`."""
        return False

    def is_convertible_to(self, dest: Type) -> bool:
        """Whether an explicit cast from this type to ``dest`` is allowed."""
        return isinstance(dest, VoidType)


@dataclass(frozen=True)
class VoidType(Type):
    def __str__(self) -> str:
        return "Void"


@dataclass(frozen=True)
class IntegerType(Type):
    def __str__(self) -> str:
        return "Integer"

    def may_be_condition(self) -> bool:
        return True

    def is_convertible_to(self, dest: Type) -> bool:
        return isinstance(dest, (VoidType, IntegerType, FloatType, BoolType, StrType))


@dataclass(frozen=True)
class FloatType(Type):
    def __str__(self) -> str:
        return "Float"

    def may_be_condition(self) -> bool:
        return True

    def is_convertible_to(self, dest: Type) -> bool:
        return isinstance(dest, (VoidType, IntegerType, FloatType, BoolType, StrType))


@dataclass(frozen=True)
class BoolType(Type):
    def __str__(self) -> str:
        return "Bool"

    def may_be_condition(self) -> bool:
        return True

    def is_convertible_to(self, dest: Type) -> bool:
        return isinstance(dest, (VoidType, BoolType, StrType))


@dataclass(frozen=True)
class StrType(Type):
    def __str__(self) -> str:
        return "Str"

    def is_convertible_to(self, dest: Type) -> bool:
        return isinstance(dest, (VoidType, StrType))


@dataclass(frozen=True)
class ArrayType(Type):
    """
    An homogeneous array type.

    Example: Array(Integer)
    """

    element: Type

    def __str__(self) -> str:
        return f"Array({self.element})"

    def may_be_condition(self) -> bool:
        # An empty array is falsy
        return True

    def is_convertible_to(self, dest: Type) -> bool:
        if isinstance(dest, VoidType):
            return True
        if isinstance(dest, ArrayType):
            return self.element.is_convertible_to(dest.element)
        return False


@dataclass(frozen=True)
class TupleType(Type):
    """
    An heterogeneous, fixed-arity tuple type.

    Example: Tuple(Integer, Bool)
    """

    elements: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"Tuple({', '.join(str(t) for t in self.elements)})"

    def is_convertible_to(self, dest: Type) -> bool:
        if isinstance(dest, VoidType):
            return True
        if isinstance(dest, ArrayType):
            # Decay to an array when every element converts to one element type
            return all(t.is_convertible_to(dest.element) for t in self.elements)
        if isinstance(dest, TupleType):
            return len(self.elements) == len(dest.elements) and all(
                mine.is_convertible_to(theirs)
                for mine, theirs in zip(self.elements, dest.elements)
            )
        return False


# Singleton instances for the scalar types
VOID_TYPE = VoidType()
INTEGER_TYPE = IntegerType()
FLOAT_TYPE = FloatType()
BOOL_TYPE = BoolType()
STR_TYPE = StrType()


def may_be_condition(type_: Type) -> bool:
    """Integer, Float, Bool and Array values may serve as conditions."""
    return type_.may_be_condition()


def is_convertible_to(src: Type, dest: Type) -> bool:
    """Check the explicit-cast graph: can ``src`` be cast to ``dest``?"""
    return src.is_convertible_to(dest)


# =============================================================================
# Generic Types (builtin signature patterns)
# =============================================================================


class Generic(ABC):
    """
    A structural pattern over concrete types.

    ``named_types`` maps names to generics for ``NamedGeneric`` resolution.
    """

    @abstractmethod
    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        """Check whether ``type_`` is an instance of this pattern."""
        pass

    @abstractmethod
    def __str__(self) -> str:
        pass


@dataclass(frozen=True)
class BuiltinGeneric(Generic):
    """Matches exactly one concrete type."""

    type_: Type

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        return self.type_ == type_

    def __str__(self) -> str:
        return str(self.type_)


@dataclass(frozen=True)
class AbstractArray(Generic):
    """Matches any array whose element type matches ``element``."""

    element: Generic

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        if not isinstance(type_, ArrayType):
            return False
        return self.element.matches(type_.element, named_types)

    def __str__(self) -> str:
        return f"Array({self.element})"


@dataclass(frozen=True)
class AbstractTuple(Generic):
    """Matches any tuple whose every element type matches ``element``."""

    element: Generic

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        if not isinstance(type_, TupleType):
            return False
        return all(self.element.matches(t, named_types) for t in type_.elements)

    def __str__(self) -> str:
        return f"Tuple({self.element}...)"


@dataclass(frozen=True)
class SumGeneric(Generic):
    """Matches if any alternative matches."""

    alternatives: tuple[Generic, ...]

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        return any(alt.matches(type_, named_types) for alt in self.alternatives)

    def __str__(self) -> str:
        return " | ".join(str(alt) for alt in self.alternatives)


@dataclass(frozen=True)
class NamedGeneric(Generic):
    """
    A reference to a named generic type.

    An unknown name never matches; it is not an error.
    """

    name: str

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        candidate = named_types.get(self.name)
        if candidate is None:
            return False
        return candidate.matches(type_, named_types)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AnyGeneric(Generic):
    """Matches every type."""

    def matches(self, type_: Type, named_types: Mapping[str, Generic]) -> bool:
        return True

    def __str__(self) -> str:
        return "Any"


ANY = AnyGeneric()


def generic(type_: Type) -> BuiltinGeneric:
    """Lift a concrete type into the generic language."""
    return BuiltinGeneric(type_)
