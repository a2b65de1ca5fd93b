"""
Type checker for letlang.

Walks an expression tree with an ``Environment[TypeInfo]`` and returns the
concrete type of the tree, raising a ``TypeCheckError`` subclass on the first
failure. No partial checking happens after an error: the exception unwinds
every ancestor, and every scope entered on the way is left again.

Usage:
    tree = Block((Literal(IntegerValue(1)),))
    type_check(tree)  # -> Integer
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from letlang.compiler.ast_nodes import (
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
    While,
)
from letlang.compiler.environment import Environment, TypeInfo, type_environment
from letlang.compiler.pattern_check import check_pattern
from letlang.compiler.type_system import (
    BOOL_TYPE,
    INTEGER_TYPE,
    VOID_TYPE,
    ArrayType,
    TupleType,
    Type,
    generic,
)
from letlang.utils.errors import (
    ArrayTypeDecl,
    ConversionError,
    IncompatibleArmTypesError,
    InconsistentArrayTypingError,
    MismatchedTypesError,
    NoSuchSignatureError,
    Span,
    UndefinedFunctionError,
    UntypedEmptyArrayError,
    VoidVarDeclarationError,
)

logger = logging.getLogger(__name__)


class TypeChecker(ASTVisitor):
    """
    Infers and checks the type of every expression form.

    Each ``visit_*`` method returns the concrete ``Type`` of the node or
    raises a ``TypeCheckError``.

    Usage:
        checker = TypeChecker(type_environment())
        result_type = checker.visit(tree)
    """

    def __init__(self, env: Environment[TypeInfo]) -> None:
        self.env = env

    # -------------------------------------------------------------------------
    # Blocks and Scopes
    # -------------------------------------------------------------------------

    def visit_block(self, node: Block) -> Type:
        final_type: Type = VOID_TYPE
        for expr in node.expressions:
            final_type = self.visit(expr)
        return final_type

    def visit_grouping(self, node: Grouping) -> Type:
        return self.visit(node.block)

    def visit_let(self, node: Let) -> Type:
        """
        Check a `let` expression.

        Variables are checked then declared one after another, so a
        declaration sees the previous ones but never itself. All functions
        are declared before any body is checked, which allows direct and
        mutual recursion.
        """
        with self.env.scope():
            for decl in node.variables:
                value_type = self.visit(decl.value)
                if value_type == VOID_TYPE:
                    raise VoidVarDeclarationError(decl.name, decl.value_span)
                self.env.declare_variable(decl, TypeInfo(value_type))

            for function in node.functions:
                self.env.declare_function(function)

            for function in node.functions:
                self.check_function(function)

            return self.visit(node.body)

    def check_function(self, decl: FunctionDecl) -> Type:
        """
        Check a function body against its declared return type.

        Arguments are declared in a fresh scope; a duplicate argument name
        raises ``AlreadyDeclaredError``.
        """
        with self.env.scope():
            for arg in decl.args:
                self.env.declare_variable(arg, TypeInfo(arg.type_))

            body_type = self.visit(decl.body)
            if body_type != decl.return_type:
                raise MismatchedTypesError(
                    generic(decl.return_type),
                    body_type,
                    decl.body_span,
                    binding=decl,
                )
        return decl.return_type

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def visit_assign(self, node: Assign) -> Type:
        """Assignments require exact type equality; there is no widening."""
        value_type = self.visit(node.value)
        binding = self.env.lookup_variable(node.name, node.name_span)
        declared_type = binding.info.type_

        if declared_type != value_type:
            raise MismatchedTypesError(
                generic(declared_type),
                value_type,
                node.value.span,
                binding=binding.declaration,
            )
        return declared_type

    def visit_pattern_match(self, node: PatternMatch) -> Type:
        check_pattern(node.pattern, node.value, self)
        return BOOL_TYPE

    def visit_variable(self, node: Variable) -> Type:
        return self.env.lookup_variable(node.name, node.span).info.type_

    # -------------------------------------------------------------------------
    # Calls and Operators
    # -------------------------------------------------------------------------

    def visit_function_call(self, node: FunctionCall) -> Type:
        """
        Resolve a call.

        A user function of that name wins over a builtin and must match the
        argument types exactly; builtins are resolved through their generic
        signatures.
        """
        arg_types = [self.visit(arg) for arg in node.args]

        user_function = self.env.find_function(node.name)
        if user_function is not None:
            return_type = user_function.return_type_for(arg_types)
            if return_type is None:
                raise NoSuchSignatureError(node.name, arg_types, node.span)
            return return_type

        return self._resolve_builtin(node.name, arg_types, node.span)

    def visit_binary_op(self, node: BinaryOp) -> Type:
        arg_types = [self.visit(node.lhs), self.visit(node.rhs)]
        return self._resolve_builtin(node.op.builtin_name, arg_types, node.span)

    def visit_unary_op(self, node: UnaryOp) -> Type:
        arg_types = [self.visit(node.operand)]
        return self._resolve_builtin(node.op.builtin_name, arg_types, node.span)

    def _resolve_builtin(self, name: str, arg_types: list[Type], span: Optional[Span]) -> Type:
        builtin = self.env.get_builtin(name)
        if builtin is None:
            raise UndefinedFunctionError(name, span, self.env.visible_function_names())

        return_type = builtin.return_type(arg_types, self.env.named_types)
        if return_type is None:
            raise NoSuchSignatureError(name, arg_types, span)
        return return_type

    # -------------------------------------------------------------------------
    # Control Flow
    # -------------------------------------------------------------------------

    def _check_condition(self, cond: Expression) -> None:
        cond_type = self.visit(cond)
        if not cond_type.may_be_condition():
            raise ConversionError(cond_type, BOOL_TYPE, cond.span)

    def visit_if(self, node: If) -> Type:
        self._check_condition(node.cond)

        true_type = self.visit(node.true_branch)
        false_type = self.visit(node.false_branch)
        if true_type != false_type:
            raise IncompatibleArmTypesError(
                true_type,
                false_type,
                node.true_branch.span,
                node.false_branch.span,
            )
        return true_type

    def visit_while(self, node: While) -> Type:
        self._check_condition(node.cond)
        self.visit(node.body)
        return VOID_TYPE

    def visit_for(self, node: For) -> Type:
        """
        Check a `for` loop.

        The start value and the goal must both be Integer; the goal is
        checked before the loop variable is declared, so it cannot see it.
        """
        with self.env.scope():
            binding_type = self.visit(node.binding.value)
            if binding_type != INTEGER_TYPE:
                raise MismatchedTypesError(
                    generic(INTEGER_TYPE),
                    binding_type,
                    node.binding.value_span,
                )

            goal_type = self.visit(node.goal)
            if goal_type != INTEGER_TYPE:
                raise MismatchedTypesError(generic(INTEGER_TYPE), goal_type, node.goal.span)

            self.env.declare_variable(node.binding, TypeInfo(binding_type))
            self.visit(node.body)
        return VOID_TYPE

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def visit_cast(self, node: Cast) -> Type:
        src_type = self.visit(node.expr)
        if not src_type.is_convertible_to(node.dest):
            raise ConversionError(src_type, node.dest, node.expr.span)
        return node.dest

    def visit_array_literal(self, node: ArrayLiteral) -> Type:
        """
        Check an array literal.

        The element type is the declared one, else the type of the first
        element; every element must have exactly that type.
        """
        if node.declared_type is not None:
            element_type = node.declared_type
            type_decl = ArrayTypeDecl.explicit(node.declared_type_span)
            element_types = [self.visit(value) for value in node.values]
        else:
            if not node.values:
                raise UntypedEmptyArrayError(node.span)
            element_types = [self.visit(value) for value in node.values]
            element_type = element_types[0]
            type_decl = ArrayTypeDecl.first_element(node.values[0].span)

        for index, got in enumerate(element_types):
            if got != element_type:
                raise InconsistentArrayTypingError(
                    element_type,
                    got,
                    index,
                    type_decl,
                    node.values[index].span,
                )

        return ArrayType(element_type)

    def visit_tuple_literal(self, node: TupleLiteral) -> Type:
        return TupleType(tuple(self.visit(value) for value in node.values))

    def visit_literal(self, node: Literal) -> Type:
        return node.value.type


def type_check(
    tree: Union[Block, Expression],
    env: Optional[Environment[TypeInfo]] = None,
) -> Type:
    """
    Type check an expression tree.

    Args:
        tree: The block or expression to check
        env: The environment to check in (default: a fresh one)

    Returns:
        The concrete type of the tree

    Raises:
        TypeCheckError: On the first type error found
    """
    if env is None:
        env = type_environment()
    result = TypeChecker(env).visit(tree)
    logger.debug(f"Type checked {type(tree).__name__}: {result}")
    return result


