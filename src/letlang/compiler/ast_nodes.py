"""
Expression tree definitions for letlang.

The parser (an external collaborator) hands the core a ``Block`` built from
these nodes. Every node is immutable, exclusively owns its children and
carries the source span it was parsed from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Union

from letlang.compiler.type_system import Type
from letlang.runtime.values import Value
from letlang.utils.errors import Span


class ASTNode(ABC):
    """Base class for all tree nodes."""

    span: Optional[Span]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for tree traversal.

    The type checker, the evaluator and the formatter all implement this, one
    ``visit_*`` method per expression form.
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)

    @abstractmethod
    def visit_block(self, node: Block) -> Any: ...

    @abstractmethod
    def visit_grouping(self, node: Grouping) -> Any: ...

    @abstractmethod
    def visit_let(self, node: Let) -> Any: ...

    @abstractmethod
    def visit_assign(self, node: Assign) -> Any: ...

    @abstractmethod
    def visit_pattern_match(self, node: PatternMatch) -> Any: ...

    @abstractmethod
    def visit_function_call(self, node: FunctionCall) -> Any: ...

    @abstractmethod
    def visit_if(self, node: If) -> Any: ...

    @abstractmethod
    def visit_while(self, node: While) -> Any: ...

    @abstractmethod
    def visit_for(self, node: For) -> Any: ...

    @abstractmethod
    def visit_binary_op(self, node: BinaryOp) -> Any: ...

    @abstractmethod
    def visit_unary_op(self, node: UnaryOp) -> Any: ...

    @abstractmethod
    def visit_cast(self, node: Cast) -> Any: ...

    @abstractmethod
    def visit_variable(self, node: Variable) -> Any: ...

    @abstractmethod
    def visit_array_literal(self, node: ArrayLiteral) -> Any: ...

    @abstractmethod
    def visit_tuple_literal(self, node: TupleLiteral) -> Any: ...

    @abstractmethod
    def visit_literal(self, node: Literal) -> Any: ...


# -----------------------------------------------------------------------------
# Operators
# -----------------------------------------------------------------------------


class BinaryOperator(Enum):
    """Binary operators; the value is the builtin the operator resolves to."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    EQ = "="
    NE = "<>"

    @property
    def builtin_name(self) -> str:
        return self.value


class UnaryOperator(Enum):
    """Unary operators; their builtins are registered with an `un` prefix."""

    PLUS = "+"
    MINUS = "-"

    @property
    def builtin_name(self) -> str:
        return f"un{self.value}"


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class Expression(ASTNode):
    """Base class for all expressions."""

    pass


@dataclass(frozen=True, slots=True)
class Block(ASTNode):
    """
    An ordered sequence of expressions.

    Its value is the value of the last expression, Void if empty; earlier
    expressions are evaluated for their effects only.
    """

    expressions: tuple[Expression, ...] = ()
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_block(self)


@dataclass(frozen=True, slots=True)
class Grouping(Expression):
    """
    A parenthesised block.

    Example:
        (println(1), 2)
    """

    block: Block
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_grouping(self)


@dataclass(frozen=True, slots=True)
class Let(Expression):
    """
    A `let` expression, introducing exactly one new scope.

    Example:
        let var x := 1 function f(): Integer := x in f() end
    """

    variables: tuple[VariableDecl, ...]
    functions: tuple[FunctionDecl, ...]
    body: Block
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_let(self)


@dataclass(frozen=True, slots=True)
class Assign(Expression):
    """
    An assignment; itself an expression producing the assigned value.

    Example:
        x := x + 1
    """

    name: str
    value: Expression
    name_span: Optional[Span] = None
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_assign(self)


@dataclass(frozen=True, slots=True)
class PatternMatch(Expression):
    """
    A pattern match, evaluating to whether the pattern matched.

    Example:
        match [x, 1] := [42, 1]
    """

    pattern: Expression
    value: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_pattern_match(self)


@dataclass(frozen=True, slots=True)
class FunctionCall(Expression):
    """
    A call to a user-defined function or a builtin.

    Example:
        fact(5), println("hello")
    """

    name: str
    args: tuple[Expression, ...] = ()
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_function_call(self)


@dataclass(frozen=True, slots=True)
class If(Expression):
    """An `if cond then a else b` expression."""

    cond: Expression
    true_branch: Expression
    false_branch: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if(self)


@dataclass(frozen=True, slots=True)
class While(Expression):
    """A `while cond do body` loop; always Void."""

    cond: Expression
    body: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_while(self)


@dataclass(frozen=True, slots=True)
class For(Expression):
    """
    A `for var x := start to goal do body` loop; always Void.

    The bound variable lives in a fresh scope around the body.
    """

    binding: VariableDecl
    goal: Expression
    body: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_for(self)


@dataclass(frozen=True, slots=True)
class BinaryOp(Expression):
    """
    A binary operation, resolved through the builtin registry.

    Example:
        a + b, x <> y
    """

    lhs: Expression
    op: BinaryOperator
    rhs: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_op(self)


@dataclass(frozen=True, slots=True)
class UnaryOp(Expression):
    """A unary operation such as `-x`."""

    op: UnaryOperator
    operand: Expression
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_op(self)


@dataclass(frozen=True, slots=True)
class Cast(Expression):
    """
    An explicit conversion.

    Example:
        1.7 as Integer, {1, 2} as Array(Float)
    """

    expr: Expression
    dest: Type
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_cast(self)


@dataclass(frozen=True, slots=True)
class Variable(Expression):
    """A variable read."""

    name: str
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_variable(self)


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Expression):
    """
    An array literal, with an optional explicit element type.

    Examples:
        [1, 2, 3], Integer[], Float[1., 2.]
    """

    values: tuple[Expression, ...] = ()
    declared_type: Optional[Type] = None
    declared_type_span: Optional[Span] = None
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_array_literal(self)


@dataclass(frozen=True, slots=True)
class TupleLiteral(Expression):
    """
    A tuple literal; elements may have different types.

    Example:
        {1, true, "three"}
    """

    values: tuple[Expression, ...] = ()
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_tuple_literal(self)


@dataclass(frozen=True, slots=True)
class Literal(Expression):
    """A literal value: integer, float, boolean or string."""

    value: Value
    span: Optional[Span] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_literal(self)


# -----------------------------------------------------------------------------
# Declarations
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VariableDecl:
    """
    A `var name := value` declaration.

    Attributes:
        name: The variable name
        value: The initial value expression
        span: The whole declaration
    """

    name: str
    value: Expression
    span: Optional[Span] = None

    @property
    def value_span(self) -> Optional[Span]:
        return self.value.span


@dataclass(frozen=True, slots=True)
class ArgumentDecl:
    """A function argument: `name: Type`."""

    name: str
    type_: Type
    span: Optional[Span] = None


@dataclass(frozen=True, slots=True)
class FunctionDecl:
    """
    A `function name(args): ReturnType := body` declaration.

    Attributes:
        name: The function name
        args: Ordered argument declarations
        return_type: The declared return type
        body: The body expression
        signature_span: Span of everything before `:=`
    """

    name: str
    args: tuple[ArgumentDecl, ...]
    return_type: Type
    body: Expression
    signature_span: Optional[Span] = None

    @property
    def body_span(self) -> Optional[Span]:
        return self.body.span

    @property
    def arg_types(self) -> tuple[Type, ...]:
        return tuple(arg.type_ for arg in self.args)

    def return_type_for(self, arg_types: Sequence[Type]) -> Optional[Type]:
        """The return type if the arguments match exactly, else None."""
        if tuple(arg_types) != self.arg_types:
            return None
        return self.return_type


# Where a diagnostic can point back to "first declared here"
Declaration = Union[VariableDecl, FunctionDecl, ArgumentDecl]


def declaration_span(declaration: Declaration) -> Optional[Span]:
    """The span to mark when pointing at a declaration."""
    if isinstance(declaration, FunctionDecl):
        return declaration.signature_span
    return declaration.span
