"""
Tree-walking evaluator for letlang.

The evaluator trusts the type checker: it performs no type validation and
treats any shape mismatch it runs into as an ``InternalError``. A caller must
never evaluate a tree that has not been checked successfully.

Usage:
    env = value_environment()
    with env.scope():
        result = evaluate(tree, env)
"""

from __future__ import annotations

import logging
from typing import Union

from letlang.compiler.ast_nodes import (
    ArrayLiteral,
    Assign,
    ASTVisitor,
    BinaryOp,
    BinaryOperator,
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
    While,
)
from letlang.compiler.environment import Environment, ValueInfo
from letlang.runtime.pattern_match import pattern_match
from letlang.runtime.values import (
    VOID,
    ArrayValue,
    BoolValue,
    IntegerValue,
    TupleValue,
    Value,
)
from letlang.utils.errors import InternalError

logger = logging.getLogger(__name__)


class Evaluator(ASTVisitor):
    """
    Computes the value of every expression form.

    Each ``visit_*`` method returns a ``Value``; side effects (assignments,
    printing) happen on the environment and the configured output stream.
    """

    def __init__(self, env: Environment[ValueInfo]) -> None:
        self.env = env

    # -------------------------------------------------------------------------
    # Blocks and Scopes
    # -------------------------------------------------------------------------

    def visit_block(self, node: Block) -> Value:
        value: Value = VOID
        for expr in node.expressions:
            value = self.visit(expr)
        return value

    def visit_grouping(self, node: Grouping) -> Value:
        return self.visit(node.block)

    def visit_let(self, node: Let) -> Value:
        with self.env.scope():
            for decl in node.variables:
                # Evaluate before declaring: a binding never sees itself
                value = self.visit(decl.value)
                self.env.declare_variable(decl, ValueInfo(value))

            for function in node.functions:
                self.env.declare_function(function)

            return self.visit(node.body)

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def visit_assign(self, node: Assign) -> Value:
        value = self.visit(node.value)
        self.env.assign(node.name, value)
        return value

    def visit_pattern_match(self, node: PatternMatch) -> Value:
        value = self.visit(node.value)
        return BoolValue(pattern_match(node.pattern, value, self))

    def visit_variable(self, node: Variable) -> Value:
        binding = self.env.find_variable(node.name)
        if binding is None:
            raise InternalError(f"Unbounded variable at runtime: {node.name}", node.span)
        return binding.info.value

    # -------------------------------------------------------------------------
    # Calls and Operators
    # -------------------------------------------------------------------------

    def visit_function_call(self, node: FunctionCall) -> Value:
        args = [self.visit(arg) for arg in node.args]

        resolved = self.env.resolve_function(node.name)
        if resolved is not None:
            function, defining_depth = resolved
            return self.call_function(function, args, defining_depth)
        return self.env.call_builtin(node.name, args)

    def call_function(
        self, function: FunctionDecl, args: list[Value], defining_depth: int
    ) -> Value:
        """
        Call a user function with already evaluated arguments.

        The body sees the scopes up to and including the one that declared
        the function, plus a scope holding its arguments. Names resolve the
        way the checker resolved them, whatever the caller has declared since.
        """
        if len(args) != len(function.args):
            raise InternalError(
                f"Wrong number of arguments in `{function.name}`: "
                f"expected {len(function.args)}, got {len(args)}"
            )
        logger.debug(f"Calling {function.name} (depth {self.env.depth})")
        with self.env.call_frame(defining_depth):
            for decl, value in zip(function.args, args):
                self.env.declare_variable(decl, ValueInfo(value))
            return self.visit(function.body)

    def visit_binary_op(self, node: BinaryOp) -> Value:
        args = [self.visit(node.lhs), self.visit(node.rhs)]
        return self.env.call_builtin(node.op.builtin_name, args)

    def visit_unary_op(self, node: UnaryOp) -> Value:
        return self.env.call_builtin(node.op.builtin_name, [self.visit(node.operand)])

    # -------------------------------------------------------------------------
    # Control Flow
    # -------------------------------------------------------------------------

    def visit_if(self, node: If) -> Value:
        if self.visit(node.cond).truthy():
            return self.visit(node.true_branch)
        return self.visit(node.false_branch)

    def visit_while(self, node: While) -> Value:
        while self.visit(node.cond).truthy():
            self.visit(node.body)
        return VOID

    def visit_for(self, node: For) -> Value:
        """
        Run a `for` loop.

        The goal is evaluated once, before the loop variable is declared. The
        loop runs while the variable is lower than the goal and advances it
        with an ordinary assignment of `variable + 1`, so a body that
        reassigns the variable changes where the next iteration starts.
        """
        name = node.binding.name
        with self.env.scope():
            start = self.visit(node.binding.value)
            goal = self.visit(node.goal)
            self.env.declare_variable(node.binding, ValueInfo(start))

            variable = Variable(name, node.binding.span)
            condition = BinaryOp(variable, BinaryOperator.LT, Literal(goal))
            advance = Assign(
                name,
                BinaryOp(variable, BinaryOperator.ADD, Literal(IntegerValue(1))),
                name_span=node.binding.span,
            )

            while self.visit(condition).truthy():
                self.visit(node.body)
                self.visit(advance)
        return VOID

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def visit_cast(self, node: Cast) -> Value:
        return self.visit(node.expr).convert_to(node.dest)

    def visit_array_literal(self, node: ArrayLiteral) -> Value:
        values = tuple(self.visit(value) for value in node.values)
        if node.declared_type is not None:
            return ArrayValue(node.declared_type, values)
        if not values:
            raise InternalError("Untyped empty array at runtime", node.span)
        # Checked arrays are homogeneous, so the first element carries the type
        return ArrayValue(values[0].type, values)

    def visit_tuple_literal(self, node: TupleLiteral) -> Value:
        values = tuple(self.visit(value) for value in node.values)
        return TupleValue(tuple(v.type for v in values), values)

    def visit_literal(self, node: Literal) -> Value:
        return node.value


def evaluate(tree: Union[Block, Expression], env: Environment[ValueInfo]) -> Value:
    """
    Evaluate an expression tree that has already been type checked.

    Args:
        tree: The block or expression to evaluate
        env: The environment to evaluate in; it keeps any top-level effects

    Returns:
        The value of the tree

    Raises:
        InternalError: If the tree was not well typed
    """
    return Evaluator(env).visit(tree)
