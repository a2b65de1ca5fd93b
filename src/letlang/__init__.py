"""
letlang - the semantic core of a small statically typed expression language.

letlang decides whether an expression tree is well typed and, given a well
typed tree, computes its value. The lexer and parser are external: they hand
the core a ``Block`` of nodes from ``letlang.compiler.ast_nodes``.
"""

from letlang.compiler.environment import Environment, type_environment, value_environment
from letlang.compiler.type_checker import type_check
from letlang.formatter import FormatConfig, format_expression
from letlang.interpreter import Interpreter, InterpreterConfig
from letlang.runtime.evaluator import evaluate

__version__ = "0.1.0"
__all__ = [
    "type_check",
    "evaluate",
    "Environment",
    "type_environment",
    "value_environment",
    "Interpreter",
    "InterpreterConfig",
    "format_expression",
    "FormatConfig",
]
