"""
letlang Code Formatter.

Turns an expression tree back into canonical source text. Blocks nested in
`let` and parenthesised groupings are laid out one expression per line; every
other form stays on one line.

Usage:
    format_expression(tree)
    format_expression(tree, FormatConfig(indent_size=4))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from letlang.compiler.ast_nodes import (
    ArgumentDecl,
    ArrayLiteral,
    Assign,
    ASTVisitor,
    BinaryOp,
    Block,
    Cast,
    Expression,
    For,
    FunctionCall,
    FunctionDecl,
    Grouping,
    If,
    Let,
    Literal,
    PatternMatch,
    TupleLiteral,
    UnaryOp,
    Variable,
    VariableDecl,
    While,
)
from letlang.runtime.values import StrValue

# =============================================================================
# Formatter Configuration
# =============================================================================


@dataclass
class FormatConfig:
    """Configuration for the code formatter."""

    indent_size: int = 2
    use_spaces: bool = True


_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def quote_string(value: str) -> str:
    """Quote a string literal, escaping backslashes, quotes and control characters."""
    return '"' + "".join(_STRING_ESCAPES.get(c, c) for c in value) + '"'


# =============================================================================
# Code Formatter
# =============================================================================


class Formatter(ASTVisitor):
    """
    Tree-based code formatter for letlang.

    Each ``visit_*`` method returns the text of the node, assuming it starts
    at the current indentation level.
    """

    def __init__(self, config: Optional[FormatConfig] = None) -> None:
        """Initialize the formatter with optional configuration."""
        self.config = config or FormatConfig()
        self._indent_level = 0

    def format(self, tree: Union[Block, Expression]) -> str:
        """Format a top-level block or expression."""
        self._indent_level = 0
        if isinstance(tree, Block):
            return ",\n".join(self.visit(expr) for expr in tree.expressions)
        return self.visit(tree)

    def _indent(self) -> str:
        """Get the current indentation string."""
        char = " " if self.config.use_spaces else "\t"
        width = self.config.indent_size if self.config.use_spaces else 1
        return char * (self._indent_level * width)

    # -------------------------------------------------------------------------
    # Blocks and Scopes
    # -------------------------------------------------------------------------

    def visit_block(self, node: Block) -> str:
        """Format a nested block, one indented expression per line."""
        self._indent_level += 1
        ws = self._indent()
        lines = [ws + self.visit(expr) for expr in node.expressions]
        self._indent_level -= 1
        return ",\n".join(lines) + "\n"

    def visit_grouping(self, node: Grouping) -> str:
        return f"(\n{self.visit(node.block)}{self._indent()})"

    def visit_let(self, node: Let) -> str:
        ws = self._indent()
        self._indent_level += 1
        decls = "".join(
            f"{self._indent()}{self._format_variable_decl(decl)}\n" for decl in node.variables
        )
        decls += "".join(
            f"{self._indent()}{self._format_function_decl(decl)}\n" for decl in node.functions
        )
        self._indent_level -= 1
        return f"let\n{decls}{ws}in\n{self.visit(node.body)}{ws}end"

    def _format_variable_decl(self, decl: VariableDecl) -> str:
        return f"var {decl.name} := {self.visit(decl.value)}"

    def _format_argument(self, arg: ArgumentDecl) -> str:
        return f"{arg.name}: {arg.type_}"

    def _format_function_decl(self, decl: FunctionDecl) -> str:
        args = ", ".join(self._format_argument(arg) for arg in decl.args)
        return f"function {decl.name}({args}): {decl.return_type} := {self.visit(decl.body)}"

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_assign(self, node: Assign) -> str:
        return f"{node.name} := {self.visit(node.value)}"

    def visit_pattern_match(self, node: PatternMatch) -> str:
        return f"match {self.visit(node.pattern)} := {self.visit(node.value)}"

    def visit_function_call(self, node: FunctionCall) -> str:
        args = ", ".join(self.visit(arg) for arg in node.args)
        return f"{node.name}({args})"

    def visit_if(self, node: If) -> str:
        cond = self.visit(node.cond)
        then = self.visit(node.true_branch)
        els = self.visit(node.false_branch)
        return f"if {cond} then {then} else {els}"

    def visit_while(self, node: While) -> str:
        return f"while {self.visit(node.cond)} do {self.visit(node.body)}"

    def visit_for(self, node: For) -> str:
        binding = self._format_variable_decl(node.binding)
        return f"for {binding} to {self.visit(node.goal)} do {self.visit(node.body)}"

    def visit_binary_op(self, node: BinaryOp) -> str:
        return f"{self.visit(node.lhs)} {node.op.value} {self.visit(node.rhs)}"

    def visit_unary_op(self, node: UnaryOp) -> str:
        return f"{node.op.value}{self.visit(node.operand)}"

    def visit_cast(self, node: Cast) -> str:
        return f"{self.visit(node.expr)} as {node.dest}"

    def visit_variable(self, node: Variable) -> str:
        return node.name

    def visit_array_literal(self, node: ArrayLiteral) -> str:
        elements = ", ".join(self.visit(value) for value in node.values)
        prefix = str(node.declared_type) if node.declared_type is not None else ""
        return f"{prefix}[{elements}]"

    def visit_tuple_literal(self, node: TupleLiteral) -> str:
        elements = ", ".join(self.visit(value) for value in node.values)
        return "{" + elements + "}"

    def visit_literal(self, node: Literal) -> str:
        if isinstance(node.value, StrValue):
            return quote_string(node.value.value)
        return str(node.value)


def format_expression(
    tree: Union[Block, Expression],
    config: Optional[FormatConfig] = None,
) -> str:
    """
    Format an expression tree as source text.

    Args:
        tree: The block or expression to format
        config: Formatting configuration

    Returns:
        The formatted source text
    """
    return Formatter(config).format(tree)
