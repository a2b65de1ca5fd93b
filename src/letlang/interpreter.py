"""
letlang interpreter session.

Runs the two-pass pipeline on trees handed over by a parser: each tree is
type checked against a fresh environment and, if accepted, evaluated against
the session's long-lived environment.

Example session:
    interpreter = Interpreter(InterpreterConfig(output=io.StringIO()))
    interpreter.run(tree)      # -> IntegerValue(120)
    interpreter.diagnose(bad)  # -> Diagnostic(code="E0104", ...)
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Union

from letlang.compiler.ast_nodes import Block, Expression
from letlang.compiler.environment import Environment, ValueInfo, type_environment, value_environment
from letlang.compiler.type_checker import type_check
from letlang.compiler.type_system import Type
from letlang.runtime.evaluator import evaluate
from letlang.runtime.values import Value
from letlang.utils.diagnostics import Diagnostic, diagnostic_from_error
from letlang.utils.errors import TypeCheckError

logger = logging.getLogger(__name__)

Tree = Union[Block, Expression]


@dataclass
class InterpreterConfig:
    """
    Configuration for an interpreter session.

    Attributes:
        output: Stream `print` and `println` write to (default: stdout)
        recursion_limit: Raise Python's recursion limit to at least this
            value, for deeply recursive programs
        log_level: Level for the ``letlang`` logger (e.g. "DEBUG")
    """

    output: Optional[TextIO] = None
    recursion_limit: Optional[int] = None
    log_level: Optional[Union[int, str]] = None


class Interpreter:
    """
    A check-then-evaluate session.

    Evaluation state (the value environment) persists across ``run`` calls
    until ``reset`` is called; type checking always starts from scratch.
    """

    def __init__(self, config: Optional[InterpreterConfig] = None) -> None:
        self.config = config or InterpreterConfig()

        if self.config.log_level is not None:
            logging.getLogger("letlang").setLevel(self.config.log_level)

        limit = self.config.recursion_limit
        if limit is not None and limit > sys.getrecursionlimit():
            logger.debug(f"Raising recursion limit to {limit}")
            sys.setrecursionlimit(limit)

        self.env: Environment[ValueInfo] = value_environment(self.config.output)

    def reset(self) -> None:
        """Discard all evaluation state."""
        logger.debug("Resetting interpreter session")
        self.env = value_environment(self.config.output)

    def check(self, tree: Tree) -> Type:
        """
        Type check a tree against a fresh environment.

        Raises:
            TypeCheckError: On the first type error
        """
        try:
            return type_check(tree, type_environment())
        except TypeCheckError as e:
            logger.info(f"Type check failed: {e}")
            raise

    def run(self, tree: Tree) -> Value:
        """
        Type check a tree, then evaluate it in the session environment.

        Raises:
            TypeCheckError: If the tree does not type check; nothing is
                evaluated in that case
        """
        result_type = self.check(tree)
        logger.debug(f"Evaluating tree of type {result_type}")
        return evaluate(tree, self.env)

    def diagnose(self, tree: Tree) -> Optional[Diagnostic]:
        """Type check a tree and return the diagnostic of its error, if any."""
        try:
            self.check(tree)
        except TypeCheckError as e:
            return diagnostic_from_error(e)
        return None
