"""
Error types and source span tracking for the letlang core.

Two disjoint families live here:

- ``TypeCheckError`` and its subclasses are user-facing. They are raised by
  the type checker, carry every name, type and span a diagnostic needs, and
  abort checking on the first failure.
- ``InternalError`` signals a broken invariant: evaluating a tree that was
  never checked, leaving a scope that was never entered, and so on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from letlang.compiler.ast_nodes import Declaration
    from letlang.compiler.type_system import Generic, Type


@dataclass(frozen=True, slots=True)
class Span:
    """
    A half-open range of byte offsets in the source text.

    Attributes:
        start: 0-indexed offset of the first byte
        end: 0-indexed offset one past the last byte
    """

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


class LetLangError(Exception):
    """Base exception for all letlang errors."""

    def __init__(self, message: str, span: Optional[Span] = None) -> None:
        self.message = message
        self.span = span
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.span:
            return f"[{self.span}] {self.message}"
        return self.message


class InternalError(LetLangError):
    """
    Raised when an invariant of the core is broken.

    The type checker rules these situations out for well-formed callers, so
    they are never reported to the user as program errors.
    """

    pass


# =============================================================================
# Type Checking Errors
# =============================================================================


class TypeCheckError(LetLangError):
    """Base class for every error the type checker can report."""

    pass


class ConversionError(TypeCheckError):
    """A value cannot be converted (cast or used as a condition)."""

    def __init__(self, from_type: Type, to_type: Type, span: Optional[Span] = None) -> None:
        self.from_type = from_type
        self.to_type = to_type
        super().__init__(f"Unnatural conversion from {from_type} to {to_type}", span)


class AlreadyDeclaredError(TypeCheckError):
    """A name is declared twice in the same scope."""

    def __init__(
        self,
        name: str,
        orig_declaration: Declaration,
        span: Optional[Span] = None,
    ) -> None:
        self.name = name
        self.orig_declaration = orig_declaration
        super().__init__(f"`{name}` was already declared", span)


class NoSuchSignatureError(TypeCheckError):
    """No signature of a function accepts the given argument types."""

    def __init__(
        self,
        func_name: str,
        arg_types: Sequence[Type],
        span: Optional[Span] = None,
    ) -> None:
        self.func_name = func_name
        self.arg_types = list(arg_types)
        args = ", ".join(str(t) for t in self.arg_types)
        super().__init__(f"No such signature: {func_name}({args})", span)


class UnboundedVarError(TypeCheckError):
    """
    A variable is read or assigned without being declared.

    ``candidates`` lists the variable names visible where the lookup failed.
    """

    def __init__(
        self,
        name: str,
        span: Optional[Span] = None,
        candidates: Sequence[str] = (),
    ) -> None:
        self.name = name
        self.candidates = list(candidates)
        super().__init__(f"Unbounded variable: {name}", span)


class UndefinedFunctionError(TypeCheckError):
    """
    A function (or operator) name is neither user-defined nor builtin.

    ``candidates`` lists the function and builtin names visible where the
    lookup failed.
    """

    def __init__(
        self,
        name: str,
        span: Optional[Span] = None,
        candidates: Sequence[str] = (),
    ) -> None:
        self.name = name
        self.candidates = list(candidates)
        super().__init__(f"Undefined function: {name}", span)


class MismatchedTypesError(TypeCheckError):
    """
    A type differs from the one required.

    ``binding`` is set when the expectation comes from a declaration (the
    declared type of a variable or argument, or a function's return type).
    """

    def __init__(
        self,
        expected: Generic,
        got: Type,
        span: Optional[Span] = None,
        binding: Optional[Declaration] = None,
    ) -> None:
        self.expected = expected
        self.got = got
        self.binding = binding
        super().__init__(f"Mismatched types: expected `{expected}`, got `{got}`", span)


class VoidVarDeclarationError(TypeCheckError):
    """A variable is initialised with an expression of type Void."""

    def __init__(self, name: str, span: Optional[Span] = None) -> None:
        self.name = name
        super().__init__(f"Variable `{name}` cannot be declared with a Void value", span)


class IncompatibleArmTypesError(TypeCheckError):
    """The two arms of an `if` have different types."""

    def __init__(
        self,
        expected: Type,
        got: Type,
        true_branch_span: Optional[Span] = None,
        false_branch_span: Optional[Span] = None,
    ) -> None:
        self.expected = expected
        self.got = got
        self.true_branch_span = true_branch_span
        self.false_branch_span = false_branch_span
        super().__init__(
            f"If arms have incompatible types: true branch `{expected}`, "
            f"false branch `{got}`",
            false_branch_span,
        )


class UntypedEmptyArrayError(TypeCheckError):
    """An empty array literal gives no way to infer its element type."""

    def __init__(self, span: Optional[Span] = None) -> None:
        super().__init__("Cannot infer the type of an empty array", span)


class ArrayTypeOrigin(Enum):
    """Where the expected element type of an array literal came from."""

    EXPLICIT = "explicit"
    FIRST_ELEMENT = "first element"


@dataclass(frozen=True, slots=True)
class ArrayTypeDecl:
    """The origin of an array's element type, with the span to point at."""

    origin: ArrayTypeOrigin
    span: Optional[Span] = None

    @classmethod
    def explicit(cls, span: Optional[Span]) -> "ArrayTypeDecl":
        return cls(ArrayTypeOrigin.EXPLICIT, span)

    @classmethod
    def first_element(cls, span: Optional[Span]) -> "ArrayTypeDecl":
        return cls(ArrayTypeOrigin.FIRST_ELEMENT, span)


class InconsistentArrayTypingError(TypeCheckError):
    """An array element does not have the array's element type."""

    def __init__(
        self,
        expected: Type,
        got: Type,
        argument_id: int,
        type_decl: ArrayTypeDecl,
        span: Optional[Span] = None,
    ) -> None:
        self.expected = expected
        self.got = got
        self.argument_id = argument_id
        self.type_decl = type_decl
        super().__init__(
            f"Array element {argument_id} has type `{got}`, expected `{expected}` "
            f"(from the {type_decl.origin.value})",
            span,
        )
