"""
Tests for letlang pattern matching.

Tests cover:
- Type Checker: pattern shapes, variable patterns as assignments, type equality
- Evaluator: binding on success, atomic rollback on failure
"""

import pytest

from letlang.compiler.pattern_check import validate_pattern_shape
from letlang.compiler.type_system import BOOL_TYPE, FLOAT_TYPE, INTEGER_TYPE, BuiltinGeneric
from letlang.runtime.values import BoolValue, IntegerValue, StrValue
from letlang.utils.errors import InternalError, MismatchedTypesError, UnboundedVarError

from builders import (
    array,
    binop,
    bool_,
    call,
    decl,
    float_,
    if_,
    int_,
    let,
    match,
    str_,
    tuple_,
    var,
)

# =============================================================================
# Type Checker
# =============================================================================


class TestPatternShape:
    """Tests for the allowed pattern shapes."""

    def test_allowed_shapes(self):
        validate_pattern_shape(var("x"))
        validate_pattern_shape(int_(1))
        validate_pattern_shape(array(var("x"), tuple_(int_(1), var("y"))))

    def test_forbidden_top_level(self):
        with pytest.raises(InternalError):
            validate_pattern_shape(call("f"))

    def test_forbidden_nested(self):
        with pytest.raises(InternalError):
            validate_pattern_shape(tuple_(var("x"), binop(int_(1), "+", int_(1))))


class TestPatternTypeCheck:
    """Tests for type checking `match`."""

    def test_match_is_bool(self, check):
        assert check(match(int_(1), int_(1))) == BOOL_TYPE

    def test_literal_type_mismatch(self, check):
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(match(int_(1), float_(1.0)))
        err = exc_info.value
        assert err.expected == BuiltinGeneric(INTEGER_TYPE)
        assert err.got == FLOAT_TYPE

    def test_variable_pattern_checks_as_assignment(self, check):
        tree = let([decl("x", int_(0))], body=[match(var("x"), bool_(True))])
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(tree)
        assert exc_info.value.got == BOOL_TYPE

    def test_variable_pattern_requires_declaration(self, check):
        with pytest.raises(UnboundedVarError):
            check(match(var("x"), int_(1)))

    def test_array_pattern_with_variable(self, check):
        tree = let([decl("x", int_(0))], body=[match(array(var("x"), int_(1)), array(int_(4), int_(1)))])
        assert check(tree) == BOOL_TYPE

    def test_tuple_pattern_arity_mismatch(self, check):
        """Tuples of different arity have different types."""
        with pytest.raises(MismatchedTypesError):
            check(match(tuple_(int_(1)), tuple_(int_(1), int_(2))))

    def test_forbidden_shape(self, check):
        with pytest.raises(InternalError):
            check(match(call("println", int_(1)), int_(1)))


# =============================================================================
# Evaluator
# =============================================================================


class TestPatternEvaluation:
    """Tests for running `match`."""

    def test_literal_match(self, run):
        assert run(match(int_(1), int_(1))) == BoolValue(True)
        assert run(match(str_("a"), str_("b"))) == BoolValue(False)

    def test_variable_binds(self, run):
        tree = let([decl("x", int_(0))], body=[match(var("x"), int_(42)), var("x")])
        assert run(tree) == IntegerValue(42)

    def test_array_pattern_binds_on_success(self, run):
        tree = let(
            [decl("x", int_(0))],
            body=[match(array(var("x"), int_(1)), array(int_(42), int_(1))), var("x")],
        )
        assert run(tree) == IntegerValue(42)

    def test_failed_match_rolls_back(self, run):
        """A partially successful match leaves no binding behind."""
        tree = let(
            [decl("x", int_(1))],
            body=[
                match(array(var("x"), int_(1)), array(int_(42), int_(2))),
            ],
        )
        assert run(tree) == BoolValue(False)

        tree = let(
            [decl("x", int_(1))],
            body=[match(array(var("x"), int_(1)), array(int_(42), int_(2))), var("x")],
        )
        assert run(tree) == IntegerValue(1)

    def test_array_length_mismatch(self, run):
        tree = let(
            [decl("x", int_(0))],
            body=[match(array(var("x")), array(int_(1), int_(2))), var("x")],
        )
        assert run(tree) == IntegerValue(0)

    def test_nested_tuple_pattern(self, run):
        tree = let(
            [decl("a", int_(0)), decl("b", str_(""))],
            body=[
                match(tuple_(var("a"), tuple_(bool_(True), var("b"))), tuple_(int_(7), tuple_(bool_(True), str_("z")))),
                var("b"),
            ],
        )
        assert run(tree) == StrValue("z")

    def test_match_result_usable_as_condition(self, run):
        tree = let(
            [decl("x", int_(0))],
            body=[if_(match(array(var("x"), int_(5)), array(int_(3), int_(5))), var("x"), int_(-1))],
        )
        assert run(tree) == IntegerValue(3)
