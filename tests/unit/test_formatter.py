"""
Tests for the letlang code formatter.
"""

from letlang.compiler.type_system import FLOAT_TYPE, INTEGER_TYPE, ArrayType
from letlang.formatter import FormatConfig, format_expression, quote_string

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
    match,
    neg,
    str_,
    tuple_,
    var,
    while_,
)


class TestSingleLineForms:
    """Forms that always stay on one line."""

    def test_literals(self):
        assert format_expression(int_(42)) == "42"
        assert format_expression(float_(1.0)) == "1."
        assert format_expression(float_(2.5)) == "2.5"
        assert format_expression(bool_(False)) == "false"
        assert format_expression(str_("hi")) == '"hi"'

    def test_string_escapes(self):
        assert quote_string('say "hi"\n') == '"say \\"hi\\"\\n"'

    def test_operators(self):
        assert format_expression(binop(var("a"), "+", int_(1))) == "a + 1"
        assert format_expression(binop(var("a"), "<>", var("b"))) == "a <> b"
        assert format_expression(neg(var("x"))) == "-x"

    def test_call_and_assign(self):
        assert format_expression(call("f", int_(1), var("y"))) == "f(1, y)"
        assert format_expression(assign("x", int_(3))) == "x := 3"

    def test_control_flow(self):
        assert format_expression(if_(var("c"), int_(1), int_(2))) == "if c then 1 else 2"
        assert format_expression(while_(var("c"), call("f"))) == "while c do f()"
        tree = for_("i", int_(0), int_(5), call("println", var("i")))
        assert format_expression(tree) == "for var i := 0 to 5 do println(i)"

    def test_casts(self):
        assert format_expression(cast(float_(1.7), INTEGER_TYPE)) == "1.7 as Integer"
        tree = cast(var("xs"), ArrayType(FLOAT_TYPE))
        assert format_expression(tree) == "xs as Array(Float)"

    def test_compound_literals(self):
        assert format_expression(array(int_(1), int_(2))) == "[1, 2]"
        assert format_expression(array(type_=INTEGER_TYPE)) == "Integer[]"
        assert format_expression(tuple_(int_(1), bool_(True))) == "{1, true}"

    def test_match(self):
        tree = match(array(var("x"), int_(1)), var("ys"))
        assert format_expression(tree) == "match [x, 1] := ys"


class TestBlockLayout:
    """Blocks are laid out one expression per line."""

    def test_top_level_block(self):
        assert format_expression(block(int_(1), call("f"))) == "1,\nf()"

    def test_grouping(self):
        assert format_expression(group(int_(1), int_(2))) == "(\n  1,\n  2\n)"

    def test_let(self):
        tree = let([decl("x", int_(2))], body=[var("x")])
        assert format_expression(tree) == "let\n  var x := 2\nin\n  x\nend"

    def test_let_with_function(self):
        f = func("f", [arg("a", INTEGER_TYPE)], INTEGER_TYPE, var("a"))
        tree = let(functions=[f], body=[call("f", int_(1))])
        assert format_expression(tree) == (
            "let\n"
            "  function f(a: Integer): Integer := a\n"
            "in\n"
            "  f(1)\n"
            "end"
        )

    def test_nested_let(self):
        inner = let([decl("y", int_(1))], body=[var("y")])
        tree = let([decl("x", int_(1))], body=[inner])
        assert format_expression(tree) == (
            "let\n"
            "  var x := 1\n"
            "in\n"
            "  let\n"
            "    var y := 1\n"
            "  in\n"
            "    y\n"
            "  end\n"
            "end"
        )

    def test_custom_indent(self):
        tree = let([decl("x", int_(2))], body=[var("x")])
        assert format_expression(tree, FormatConfig(indent_size=4)) == (
            "let\n    var x := 2\nin\n    x\nend"
        )

    def test_tabs(self):
        tree = let([decl("x", int_(2))], body=[var("x")])
        assert format_expression(tree, FormatConfig(use_spaces=False)) == (
            "let\n\tvar x := 2\nin\n\tx\nend"
        )
