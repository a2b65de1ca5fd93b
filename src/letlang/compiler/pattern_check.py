"""
Type checking of `match pattern := value` expressions.

A bare variable pattern checks as an assignment of the value to that
variable. Array, tuple and literal patterns must have exactly the type of the
matched value. No other expression shape may appear in a pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from letlang.compiler.ast_nodes import (
    ArrayLiteral,
    Assign,
    Expression,
    Literal,
    TupleLiteral,
    Variable,
)
from letlang.compiler.type_system import generic
from letlang.utils.errors import InternalError, MismatchedTypesError

if TYPE_CHECKING:
    from letlang.compiler.type_checker import TypeChecker


def validate_pattern_shape(pattern: Expression) -> None:
    """
    Ensure a pattern only uses variables, literals, arrays and tuples.

    Raises:
        InternalError: On any other expression shape, at any depth
    """
    if isinstance(pattern, (Variable, Literal)):
        return
    if isinstance(pattern, (ArrayLiteral, TupleLiteral)):
        for element in pattern.values:
            validate_pattern_shape(element)
        return
    raise InternalError(f"Forbidden pattern: {type(pattern).__name__}", pattern.span)


def check_pattern(pattern: Expression, value: Expression, checker: TypeChecker) -> None:
    """
    Check that ``value`` can be matched against ``pattern``.

    Args:
        pattern: The left-hand side of the match
        value: The expression being matched
        checker: The type checker whose environment the match lives in

    Raises:
        TypeCheckError: If the pattern and value types disagree
        InternalError: If the pattern has a forbidden shape
    """
    validate_pattern_shape(pattern)

    if isinstance(pattern, Variable):
        checker.visit(Assign(pattern.name, value, name_span=pattern.span, span=value.span))
        return

    pattern_type = checker.visit(pattern)
    value_type = checker.visit(value)
    if pattern_type != value_type:
        raise MismatchedTypesError(generic(pattern_type), value_type, value.span)
