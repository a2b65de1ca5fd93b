"""
Tests for the letlang type checker.

Tests cover:
- Literals, blocks, groupings and let scoping
- Function declarations, recursion and calls
- Control flow conditions and arms
- Array and tuple literals
- Every user-facing error kind
"""

import pytest

from letlang.compiler.type_checker import type_check
from letlang.compiler.type_system import (
    BOOL_TYPE,
    FLOAT_TYPE,
    INTEGER_TYPE,
    STR_TYPE,
    VOID_TYPE,
    ArrayType,
    BuiltinGeneric,
    TupleType,
)
from letlang.utils.errors import (
    AlreadyDeclaredError,
    ArrayTypeOrigin,
    ConversionError,
    IncompatibleArmTypesError,
    InconsistentArrayTypingError,
    MismatchedTypesError,
    NoSuchSignatureError,
    Span,
    UnboundedVarError,
    UndefinedFunctionError,
    UntypedEmptyArrayError,
    VoidVarDeclarationError,
)

from builders import (
    arg,
    array,
    assign,
    binop,
    block,
    bool_,
    call,
    cast,
    decl,
    float_,
    for_,
    func,
    group,
    if_,
    int_,
    let,
    neg,
    str_,
    tuple_,
    var,
    while_,
)

# =============================================================================
# Basics
# =============================================================================


class TestLiteralsAndBlocks:
    """Tests for the simplest forms."""

    def test_literals(self, check):
        assert check(int_(1)) == INTEGER_TYPE
        assert check(float_(1.0)) == FLOAT_TYPE
        assert check(bool_(True)) == BOOL_TYPE
        assert check(str_("a")) == STR_TYPE

    def test_empty_block_is_void(self, check):
        assert check(block()) == VOID_TYPE

    def test_block_takes_last_type(self, check):
        assert check(block(int_(1), str_("x"))) == STR_TYPE

    def test_grouping(self, check):
        assert check(group(int_(1), bool_(False))) == BOOL_TYPE
        assert check(group()) == VOID_TYPE

    def test_unary(self, check):
        assert check(neg(float_(1.0))) == FLOAT_TYPE

    def test_unary_on_bool(self, check):
        with pytest.raises(NoSuchSignatureError) as exc_info:
            check(neg(bool_(True)))
        assert exc_info.value.func_name == "un-"

    def test_builtin_polymorphism(self, check):
        """The same comparison signature accepts several concrete types."""
        assert check(binop(str_("hello"), "=", str_("world"))) == BOOL_TYPE
        assert check(binop(int_(2), "=", int_(2))) == BOOL_TYPE

    def test_comparison_of_different_types(self, check):
        with pytest.raises(NoSuchSignatureError) as exc_info:
            check(binop(int_(2), "=", str_("x")))
        assert exc_info.value.arg_types == [INTEGER_TYPE, STR_TYPE]


# =============================================================================
# Let and Bindings
# =============================================================================


class TestLet:
    """Tests for `let` scoping and variable declarations."""

    def test_variable_visible_in_body(self, check):
        tree = let([decl("x", int_(2))], body=[var("x")])
        assert check(tree) == INTEGER_TYPE

    def test_later_declaration_sees_earlier(self, check):
        tree = let(
            [decl("x", int_(2)), decl("y", binop(var("x"), "*", int_(3)))],
            body=[var("y")],
        )
        assert check(tree) == INTEGER_TYPE

    def test_declaration_cannot_see_itself(self, check):
        with pytest.raises(UnboundedVarError):
            check(let([decl("x", var("x"))], body=[var("x")]))

    def test_variable_does_not_escape(self, check):
        tree = block(let([decl("x", int_(2))]), var("x"))
        with pytest.raises(UnboundedVarError) as exc_info:
            check(tree)
        assert exc_info.value.name == "x"

    def test_duplicate_variable(self, check):
        first = decl("x", int_(1), span=Span(4, 13))
        tree = let([first, decl("x", int_(2), span=Span(14, 23))])
        with pytest.raises(AlreadyDeclaredError) as exc_info:
            check(tree)
        assert exc_info.value.orig_declaration is first
        assert exc_info.value.span == Span(14, 23)

    def test_shadowing_in_nested_let(self, check):
        inner = let([decl("x", str_("s"))], body=[var("x")])
        tree = let([decl("x", int_(1))], body=[inner])
        assert check(tree) == STR_TYPE

    def test_void_declaration(self, check):
        tree = let([decl("x", call("println", int_(1)))])
        with pytest.raises(VoidVarDeclarationError) as exc_info:
            check(tree)
        assert exc_info.value.name == "x"

    def test_let_with_empty_body(self, check):
        assert check(let([decl("x", int_(1))])) == VOID_TYPE


class TestAssign:
    """Tests for assignment typing."""

    def test_assign_yields_declared_type(self, check):
        tree = let([decl("x", int_(1))], body=[assign("x", int_(5))])
        assert check(tree) == INTEGER_TYPE

    def test_assign_requires_exact_type(self, check):
        binding = decl("x", int_(1))
        tree = let([binding], body=[assign("x", float_(1.0))])
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(tree)
        err = exc_info.value
        assert err.expected == BuiltinGeneric(INTEGER_TYPE)
        assert err.got == FLOAT_TYPE
        assert err.binding is binding

    def test_assign_to_function_name(self, check):
        """Functions and variables live in separate namespaces."""
        f = func("f", [], INTEGER_TYPE, int_(1))
        tree = let(functions=[f], body=[assign("f", int_(2))])
        with pytest.raises(UnboundedVarError):
            check(tree)


# =============================================================================
# Functions
# =============================================================================


class TestFunctions:
    """Tests for function declarations and calls."""

    def test_call_user_function(self, check):
        f = func("double", [arg("n", INTEGER_TYPE)], INTEGER_TYPE, binop(var("n"), "*", int_(2)))
        tree = let(functions=[f], body=[call("double", int_(4))])
        assert check(tree) == INTEGER_TYPE

    def test_direct_recursion(self, check):
        fact = func(
            "fact",
            [arg("n", INTEGER_TYPE)],
            INTEGER_TYPE,
            if_(
                binop(var("n"), "<=", int_(1)),
                int_(1),
                binop(var("n"), "*", call("fact", binop(var("n"), "-", int_(1)))),
            ),
        )
        assert check(let(functions=[fact], body=[call("fact", int_(5))])) == INTEGER_TYPE

    def test_mutual_recursion(self, check):
        """A function may call one declared after it in the same let."""
        is_even = func(
            "is_even",
            [arg("n", INTEGER_TYPE)],
            BOOL_TYPE,
            if_(binop(var("n"), "=", int_(0)), bool_(True), call("is_odd", binop(var("n"), "-", int_(1)))),
        )
        is_odd = func(
            "is_odd",
            [arg("n", INTEGER_TYPE)],
            BOOL_TYPE,
            if_(binop(var("n"), "=", int_(0)), bool_(False), call("is_even", binop(var("n"), "-", int_(1)))),
        )
        tree = let(functions=[is_even, is_odd], body=[call("is_even", int_(4))])
        assert check(tree) == BOOL_TYPE

    def test_function_sees_let_variables(self, check):
        f = func("get", [], INTEGER_TYPE, var("x"))
        tree = let([decl("x", int_(3))], [f], [call("get")])
        assert check(tree) == INTEGER_TYPE

    def test_return_type_mismatch(self, check):
        body = str_("oops", span=Span(30, 36))
        f = func("f", [], INTEGER_TYPE, body)
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(let(functions=[f]))
        err = exc_info.value
        assert err.expected == BuiltinGeneric(INTEGER_TYPE)
        assert err.got == STR_TYPE
        assert err.span == Span(30, 36)
        assert err.binding is f

    def test_user_function_requires_exact_arguments(self, check):
        f = func("f", [arg("x", FLOAT_TYPE)], FLOAT_TYPE, var("x"))
        with pytest.raises(NoSuchSignatureError):
            check(let(functions=[f], body=[call("f", int_(1))]))

    def test_user_function_shadows_builtin(self, check):
        """A user function named like a builtin wins over it."""
        f = func("println", [arg("x", INTEGER_TYPE)], INTEGER_TYPE, var("x"))
        tree = let(functions=[f], body=[call("println", int_(1))])
        assert check(tree) == INTEGER_TYPE

    def test_duplicate_argument(self, check):
        f = func("f", [arg("a", INTEGER_TYPE), arg("a", INTEGER_TYPE)], INTEGER_TYPE, var("a"))
        with pytest.raises(AlreadyDeclaredError):
            check(let(functions=[f]))

    def test_duplicate_function(self, check):
        first = func("f", [], INTEGER_TYPE, int_(1))
        second = func("f", [], INTEGER_TYPE, int_(2))
        with pytest.raises(AlreadyDeclaredError) as exc_info:
            check(let(functions=[first, second]))
        assert exc_info.value.orig_declaration is first

    def test_println_without_arguments(self, check):
        with pytest.raises(NoSuchSignatureError) as exc_info:
            check(call("println"))
        assert exc_info.value.arg_types == []

    def test_undefined_function(self, check):
        f = func("compute", [], INTEGER_TYPE, int_(1))
        with pytest.raises(UndefinedFunctionError) as exc_info:
            check(let(functions=[f], body=[call("compte")]))
        err = exc_info.value
        assert err.name == "compte"
        assert "compute" in err.candidates
        assert "println" in err.candidates

    def test_print_returns_void(self, check):
        assert check(call("print", tuple_(int_(1), str_("a")))) == VOID_TYPE


# =============================================================================
# Control Flow
# =============================================================================


class TestControlFlow:
    """Tests for if, while and for."""

    def test_if_arms_agree(self, check):
        assert check(if_(bool_(True), int_(1), int_(2))) == INTEGER_TYPE

    @pytest.mark.parametrize(
        "cond",
        [int_(1), float_(0.5), array(int_(1))],
        ids=["integer", "float", "array"],
    )
    def test_non_bool_conditions(self, check, cond):
        assert check(if_(cond, int_(1), int_(2))) == INTEGER_TYPE

    def test_str_condition(self, check):
        with pytest.raises(ConversionError) as exc_info:
            check(if_(str_("hello"), int_(1), int_(2)))
        assert exc_info.value.from_type == STR_TYPE
        assert exc_info.value.to_type == BOOL_TYPE

    def test_tuple_condition_in_while(self, check):
        with pytest.raises(ConversionError):
            check(while_(tuple_(int_(1)), int_(1)))

    def test_incompatible_arms(self, check):
        tree = if_(bool_(True), int_(1, span=Span(8, 9)), str_("a", span=Span(15, 18)))
        with pytest.raises(IncompatibleArmTypesError) as exc_info:
            check(tree)
        err = exc_info.value
        assert err.expected == INTEGER_TYPE
        assert err.got == STR_TYPE
        assert err.true_branch_span == Span(8, 9)
        assert err.span == Span(15, 18)

    def test_while_is_void(self, check):
        assert check(while_(bool_(False), int_(1))) == VOID_TYPE

    def test_for_is_void(self, check):
        tree = for_("i", int_(0), int_(3), call("println", var("i")))
        assert check(tree) == VOID_TYPE

    def test_for_variable_does_not_escape(self, check):
        with pytest.raises(UnboundedVarError):
            check(block(for_("i", int_(0), int_(3), var("i")), var("i")))

    def test_for_goal_cannot_see_variable(self, check):
        with pytest.raises(UnboundedVarError):
            check(for_("i", int_(0), var("i"), int_(1)))

    def test_for_requires_integer_start(self, check):
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(for_("i", float_(0.0), int_(3), int_(1)))
        assert exc_info.value.got == FLOAT_TYPE

    def test_for_requires_integer_goal(self, check):
        with pytest.raises(MismatchedTypesError) as exc_info:
            check(for_("i", int_(0), str_("3"), int_(1)))
        assert exc_info.value.got == STR_TYPE

    def test_scopes_are_left_after_error(self, type_env):
        """A failed check leaves no scope behind."""
        tree = let([decl("x", int_(1))], body=[for_("i", int_(0), int_(1), var("nope"))])
        with pytest.raises(UnboundedVarError):
            type_check(tree, type_env)
        assert type_env.depth == 0


# =============================================================================
# Values
# =============================================================================


class TestCasts:
    """Tests for explicit casts."""

    def test_allowed_casts(self, check):
        assert check(cast(float_(1.7), INTEGER_TYPE)) == INTEGER_TYPE
        assert check(cast(array(type_=INTEGER_TYPE), ArrayType(FLOAT_TYPE))) == ArrayType(FLOAT_TYPE)
        assert check(cast(tuple_(int_(1), int_(2)), ArrayType(FLOAT_TYPE))) == ArrayType(FLOAT_TYPE)

    def test_forbidden_cast(self, check):
        with pytest.raises(ConversionError) as exc_info:
            check(cast(str_("1"), INTEGER_TYPE))
        assert exc_info.value.to_type == INTEGER_TYPE


class TestArrayLiterals:
    """Tests for array literal typing."""

    def test_inferred_from_first_element(self, check):
        assert check(array(int_(1), int_(2))) == ArrayType(INTEGER_TYPE)

    def test_explicit_empty(self, check):
        assert check(array(type_=STR_TYPE)) == ArrayType(STR_TYPE)

    def test_nested(self, check):
        tree = array(array(int_(1)), array(type_=INTEGER_TYPE))
        assert check(tree) == ArrayType(ArrayType(INTEGER_TYPE))

    def test_untyped_empty(self, check):
        with pytest.raises(UntypedEmptyArrayError):
            check(array())

    def test_explicit_type_mismatch(self, check):
        tree = array(bool_(True), type_=INTEGER_TYPE, type_span=Span(0, 7))
        with pytest.raises(InconsistentArrayTypingError) as exc_info:
            check(tree)
        err = exc_info.value
        assert err.argument_id == 0
        assert err.expected == INTEGER_TYPE
        assert err.got == BOOL_TYPE
        assert err.type_decl.origin == ArrayTypeOrigin.EXPLICIT
        assert err.type_decl.span == Span(0, 7)

    def test_first_element_mismatch(self, check):
        tree = array(bool_(True, span=Span(1, 5)), int_(1, span=Span(7, 8)))
        with pytest.raises(InconsistentArrayTypingError) as exc_info:
            check(tree)
        err = exc_info.value
        assert err.argument_id == 1
        assert err.expected == BOOL_TYPE
        assert err.got == INTEGER_TYPE
        assert err.type_decl.origin == ArrayTypeOrigin.FIRST_ELEMENT
        assert err.type_decl.span == Span(1, 5)
        assert err.span == Span(7, 8)


class TestTupleLiterals:
    """Tests for tuple literal typing."""

    def test_heterogeneous(self, check):
        assert check(tuple_(int_(1), bool_(True))) == TupleType((INTEGER_TYPE, BOOL_TYPE))

    def test_empty(self, check):
        assert check(tuple_()) == TupleType(())
