"""
Scoped environment shared by the type checker and the evaluator.

``Environment[T]`` is one scope-stack engine instantiated twice: with a
``TypeInfo`` payload while type checking and with a ``ValueInfo`` payload
while evaluating. It also owns the builtin registry and the table of named
generic types used to resolve builtin signatures.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, TextIO, TypeVar, Union

from letlang.compiler.ast_nodes import ArgumentDecl, FunctionDecl, VariableDecl
from letlang.compiler.type_system import (
    ANY,
    BOOL_TYPE,
    FLOAT_TYPE,
    INTEGER_TYPE,
    STR_TYPE,
    VOID_TYPE,
    AbstractArray,
    Generic,
    NamedGeneric,
    SumGeneric,
    Type,
    generic,
)
from letlang.runtime import builtins
from letlang.runtime.builtins import NativeFunction
from letlang.runtime.values import Value
from letlang.utils.errors import (
    AlreadyDeclaredError,
    InternalError,
    Span,
    UnboundedVarError,
    UndefinedFunctionError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

BindingDeclaration = Union[VariableDecl, ArgumentDecl]


# =============================================================================
# Binding Payloads
# =============================================================================


@dataclass
class TypeInfo:
    """The inferred type of a binding (type checking pass)."""

    type_: Type


@dataclass
class ValueInfo:
    """The current value of a binding (evaluation pass); updated in place."""

    value: Value


@dataclass
class BindingInfo(typing.Generic[T]):
    """A variable or argument declaration paired with its pass payload."""

    declaration: BindingDeclaration
    info: T


@dataclass
class Scope(typing.Generic[T]):
    """A single scope level: variables and functions declared in it."""

    variables: dict[str, BindingInfo[T]] = field(default_factory=dict)
    functions: dict[str, FunctionDecl] = field(default_factory=dict)

    def copy(self) -> Scope[T]:
        """Copy the scope and its payloads; declarations are shared."""
        return Scope(
            variables={
                name: BindingInfo(binding.declaration, _copy_payload(binding.info))
                for name, binding in self.variables.items()
            },
            functions=dict(self.functions),
        )


def _copy_payload(info: T) -> T:
    if isinstance(info, ValueInfo):
        return ValueInfo(info.value)  # type: ignore[return-value]
    if isinstance(info, TypeInfo):
        return TypeInfo(info.type_)  # type: ignore[return-value]
    return info


# =============================================================================
# Builtin Registry
# =============================================================================


Signature = tuple[tuple[Generic, ...], Type]


@dataclass
class BuiltinInfo:
    """
    A builtin function: its signatures and its native implementation.

    Attributes:
        name: The builtin name (an operator symbol, `un`-prefixed for unary
            operators, or a plain name such as `println`)
        signatures: Ordered (argument patterns, return type) entries
        call: The native implementation
        same_types: Whether all arguments must share one concrete type
    """

    name: str
    signatures: list[Signature]
    call: NativeFunction
    same_types: bool = False

    def return_type(
        self,
        arg_types: Sequence[Type],
        named_types: Mapping[str, Generic],
    ) -> Optional[Type]:
        """Resolve the return type of the first signature the arguments match."""
        if self.same_types and len(set(arg_types)) > 1:
            return None
        for params, return_type in self.signatures:
            if len(params) != len(arg_types):
                continue
            if all(param.matches(arg, named_types) for param, arg in zip(params, arg_types)):
                return return_type
        return None


def _default_named_types() -> dict[str, Generic]:
    return {
        "Number": SumGeneric((generic(INTEGER_TYPE), generic(FLOAT_TYPE))),
        "Printable": SumGeneric(
            (
                generic(INTEGER_TYPE),
                generic(FLOAT_TYPE),
                generic(BOOL_TYPE),
                generic(STR_TYPE),
                AbstractArray(NamedGeneric("Printable")),
            )
        ),
        "Comparable": SumGeneric(
            (
                generic(INTEGER_TYPE),
                generic(FLOAT_TYPE),
                generic(BOOL_TYPE),
                generic(STR_TYPE),
                AbstractArray(NamedGeneric("Comparable")),
            )
        ),
    }


def _default_builtins(output: Optional[TextIO]) -> dict[str, BuiltinInfo]:
    integer, float_, str_ = generic(INTEGER_TYPE), generic(FLOAT_TYPE), generic(STR_TYPE)
    comparable = NamedGeneric("Comparable")

    plus_sig: list[Signature] = [
        ((integer, integer), INTEGER_TYPE),
        ((float_, float_), FLOAT_TYPE),
        ((str_, str_), STR_TYPE),
    ]
    arit_sig: list[Signature] = [
        ((integer, integer), INTEGER_TYPE),
        ((float_, float_), FLOAT_TYPE),
    ]
    # Both operands are Comparable and must have the same concrete type
    cmp_sig: list[Signature] = [((comparable, comparable), BOOL_TYPE)]
    unary_sig: list[Signature] = [((integer,), INTEGER_TYPE), ((float_,), FLOAT_TYPE)]
    print_sig: list[Signature] = [((ANY,), VOID_TYPE)]

    table = [
        BuiltinInfo("+", plus_sig, builtins.plus),
        BuiltinInfo("-", arit_sig, builtins.minus),
        BuiltinInfo("*", arit_sig, builtins.mul),
        BuiltinInfo("/", arit_sig, builtins.div),
        BuiltinInfo("<", cmp_sig, builtins.lower, same_types=True),
        BuiltinInfo("<=", cmp_sig, builtins.lower_eq, same_types=True),
        BuiltinInfo(">", cmp_sig, builtins.greater, same_types=True),
        BuiltinInfo(">=", cmp_sig, builtins.greater_eq, same_types=True),
        BuiltinInfo("=", cmp_sig, builtins.equal, same_types=True),
        BuiltinInfo("<>", cmp_sig, builtins.not_equal, same_types=True),
        BuiltinInfo("un+", unary_sig, builtins.un_plus),
        BuiltinInfo("un-", unary_sig, builtins.un_minus),
        BuiltinInfo("print", print_sig, builtins.make_print(output)),
        BuiltinInfo("println", print_sig, builtins.make_print(output, newline=True)),
    ]
    return {info.name: info for info in table}


# =============================================================================
# Environment
# =============================================================================


class Environment(typing.Generic[T]):
    """
    A stack of scopes, innermost last, plus the global builtin tables.

    Usage:
        env: Environment[TypeInfo] = Environment()
        with env.scope():
            env.declare_variable(decl, TypeInfo(INTEGER_TYPE))
            env.lookup_variable("x")
    """

    def __init__(self, output: Optional[TextIO] = None) -> None:
        """
        Create an environment with no scope, the default builtins and the
        default named types.

        Args:
            output: Stream `print` and `println` write to (default: stdout)
        """
        self._scopes: list[Scope[T]] = []
        self.builtins: dict[str, BuiltinInfo] = _default_builtins(output)
        self.named_types: dict[str, Generic] = _default_named_types()

    @property
    def depth(self) -> int:
        """Number of scopes currently pushed."""
        return len(self._scopes)

    # -------------------------------------------------------------------------
    # Scope Management
    # -------------------------------------------------------------------------

    def enter_scope(self) -> None:
        """Push a new, empty innermost scope."""
        self._scopes.append(Scope())

    def leave_scope(self) -> None:
        """Pop the innermost scope."""
        if not self._scopes:
            raise InternalError("Tried to leave a scope when not in a scope")
        self._scopes.pop()

    @contextmanager
    def scope(self) -> Iterator[None]:
        """Enter a scope for the duration of the block, leaving it on every exit path."""
        self.enter_scope()
        try:
            yield
        finally:
            self.leave_scope()

    def _innermost(self) -> Scope[T]:
        if not self._scopes:
            raise InternalError("Trying to declare out of scope")
        return self._scopes[-1]

    def snapshot(self) -> list[Scope[T]]:
        """Copy the whole scope stack, for backtracking."""
        return [scope.copy() for scope in self._scopes]

    def restore(self, snapshot: list[Scope[T]]) -> None:
        """
        Put back the contents of a snapshot taken earlier.

        Scopes are refilled in place so that every stack sharing them (a
        caller suspended under a function call) sees the restored state.
        """
        if len(snapshot) != len(self._scopes):
            raise InternalError(
                f"Snapshot depth {len(snapshot)} does not match current depth {len(self._scopes)}"
            )
        logger.debug(f"Restoring environment snapshot ({len(snapshot)} scopes)")
        for live, saved in zip(self._scopes, snapshot):
            live.variables = saved.variables
            live.functions = saved.functions

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def declare_variable(self, declaration: BindingDeclaration, info: T) -> None:
        """
        Declare a variable (or argument) in the innermost scope.

        Raises:
            AlreadyDeclaredError: If the name exists in the innermost scope
        """
        variables = self._innermost().variables
        existing = variables.get(declaration.name)
        if existing is not None:
            raise AlreadyDeclaredError(
                declaration.name,
                existing.declaration,
                declaration.span,
            )
        variables[declaration.name] = BindingInfo(declaration, info)

    def find_variable(self, name: str) -> Optional[BindingInfo[T]]:
        """Look a variable up from the innermost scope outward."""
        for scope in reversed(self._scopes):
            binding = scope.variables.get(name)
            if binding is not None:
                return binding
        return None

    def lookup_variable(self, name: str, span: Optional[Span] = None) -> BindingInfo[T]:
        """
        Look a variable up from the innermost scope outward.

        Raises:
            UnboundedVarError: If no scope declares it
        """
        binding = self.find_variable(name)
        if binding is None:
            raise UnboundedVarError(name, span, self.visible_variable_names())
        return binding

    def visible_variable_names(self) -> list[str]:
        """Names of all variables visible from the innermost scope."""
        names: list[str] = []
        for scope in reversed(self._scopes):
            names.extend(n for n in scope.variables if n not in names)
        return names

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def declare_function(self, declaration: FunctionDecl) -> None:
        """
        Declare a user function in the innermost scope.

        Raises:
            AlreadyDeclaredError: If the name exists in the innermost scope
        """
        functions = self._innermost().functions
        existing = functions.get(declaration.name)
        if existing is not None:
            raise AlreadyDeclaredError(
                declaration.name,
                existing,
                declaration.signature_span,
            )
        functions[declaration.name] = declaration

    def find_function(self, name: str) -> Optional[FunctionDecl]:
        """Look a user function up from the innermost scope outward."""
        resolved = self.resolve_function(name)
        return resolved[0] if resolved is not None else None

    def resolve_function(self, name: str) -> Optional[tuple[FunctionDecl, int]]:
        """
        Look a user function up along with the depth of its declaring scope.

        The depth counts the declaring scope itself, so
        ``self._scopes[:depth]`` is everything the function body can see.
        """
        for index in range(len(self._scopes) - 1, -1, -1):
            decl = self._scopes[index].functions.get(name)
            if decl is not None:
                return decl, index + 1
        return None

    @contextmanager
    def call_frame(self, defining_depth: int) -> Iterator[None]:
        """
        Run a function body against the scopes visible where it was declared.

        The caller's stack is set aside and replaced by its first
        ``defining_depth`` scopes plus a fresh scope for the arguments. The
        kept scopes are shared, not copied, so assignments to outer ``let``
        variables are seen by the caller once the stack is put back.
        """
        if not 0 < defining_depth <= len(self._scopes):
            raise InternalError(
                f"Invalid defining depth {defining_depth} for a stack of {len(self._scopes)} scopes"
            )
        caller = self._scopes
        self._scopes = caller[:defining_depth] + [Scope()]
        try:
            yield
        finally:
            self._scopes = caller

    def lookup_function(self, name: str, span: Optional[Span] = None) -> FunctionDecl:
        """
        Look a user function up from the innermost scope outward.

        Raises:
            UndefinedFunctionError: If no scope declares it
        """
        decl = self.find_function(name)
        if decl is None:
            raise UndefinedFunctionError(name, span, self.visible_function_names())
        return decl

    def visible_function_names(self) -> list[str]:
        """Names of all user functions visible plus every builtin name."""
        names: list[str] = []
        for scope in reversed(self._scopes):
            names.extend(n for n in scope.functions if n not in names)
        names.extend(n for n in self.builtins if n not in names)
        return names

    # -------------------------------------------------------------------------
    # Builtins
    # -------------------------------------------------------------------------

    def get_builtin(self, name: str) -> Optional[BuiltinInfo]:
        return self.builtins.get(name)

    def call_builtin(self, name: str, args: Sequence[Value]) -> Value:
        """Call a builtin's native implementation by name."""
        builtin = self.builtins.get(name)
        if builtin is None:
            raise InternalError(f"No such builtin: {name}")
        return builtin.call(args)

    # -------------------------------------------------------------------------
    # Evaluation Helpers
    # -------------------------------------------------------------------------

    def assign(self, name: str, value: Value) -> None:
        """
        Overwrite a variable's value in whichever scope owns it.

        Only meaningful for ``Environment[ValueInfo]``.
        """
        binding = self.find_variable(name)
        if binding is None:
            raise InternalError(f"Could not find variable {name} in current scope")
        if not isinstance(binding.info, ValueInfo):
            raise InternalError(f"Cannot assign a value to `{name}` outside evaluation")
        binding.info.value = value


def type_environment() -> Environment[TypeInfo]:
    """A fresh environment for the type checking pass."""
    return Environment()


def value_environment(output: Optional[TextIO] = None) -> Environment[ValueInfo]:
    """A fresh environment for the evaluation pass."""
    return Environment(output)
