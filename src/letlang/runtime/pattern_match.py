"""
Runtime pattern matching for `match pattern := value`.

A match either succeeds as a whole or leaves the environment untouched: the
scope stack is snapshotted before the attempt and restored when it fails, so
a partially successful match never leaks bindings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from letlang.compiler.ast_nodes import (
    ArrayLiteral,
    Assign,
    Expression,
    Literal,
    TupleLiteral,
    Variable,
)
from letlang.runtime.values import ArrayValue, TupleValue, Value
from letlang.utils.errors import InternalError

if TYPE_CHECKING:
    from letlang.runtime.evaluator import Evaluator

logger = logging.getLogger(__name__)


def pattern_match(pattern: Expression, value: Value, evaluator: Evaluator) -> bool:
    """
    Match ``value`` against ``pattern``, binding variables on success.

    Args:
        pattern: A variable, literal, array or tuple pattern
        value: The already evaluated candidate
        evaluator: The evaluator whose environment receives the bindings

    Returns:
        True if the whole pattern matched; False otherwise, in which case
        every binding the attempt performed has been undone
    """
    env = evaluator.env
    snapshot = env.snapshot()
    if match_value(pattern, value, evaluator):
        return True
    logger.debug("Pattern match failed, restoring bindings")
    env.restore(snapshot)
    return False


def match_value(pattern: Expression, value: Value, evaluator: Evaluator) -> bool:
    """
    Match without backtracking; bindings made before a failure are kept.

    Raises:
        InternalError: On a forbidden pattern shape, or when an array or tuple
            pattern meets a value of another shape
    """
    if isinstance(pattern, Variable):
        # A variable always matches; the binding goes through ordinary assignment
        evaluator.visit(Assign(pattern.name, Literal(value), name_span=pattern.span))
        return True

    if isinstance(pattern, ArrayLiteral):
        if not isinstance(value, ArrayValue):
            raise InternalError(f"Wrong pattern: array against {value.type}", pattern.span)
        return _match_elements(pattern.values, value.values, evaluator)

    if isinstance(pattern, TupleLiteral):
        if not isinstance(value, TupleValue):
            raise InternalError(f"Wrong pattern: tuple against {value.type}", pattern.span)
        return _match_elements(pattern.values, value.values, evaluator)

    if isinstance(pattern, Literal):
        return pattern.value == value

    raise InternalError(f"Forbidden pattern: {type(pattern).__name__}", pattern.span)


def _match_elements(
    patterns: tuple[Expression, ...],
    values: tuple[Value, ...],
    evaluator: Evaluator,
) -> bool:
    if len(patterns) != len(values):
        return False
    return all(match_value(p, v, evaluator) for p, v in zip(patterns, values))
