"""
Pytest configuration and shared fixtures for letlang tests.
"""

import io

import pytest

from letlang.compiler.environment import type_environment, value_environment
from letlang.compiler.type_checker import type_check
from letlang.interpreter import Interpreter, InterpreterConfig
from letlang.runtime.evaluator import evaluate


@pytest.fixture
def output():
    """In-memory stream receiving `print` and `println` output."""
    return io.StringIO()


@pytest.fixture
def type_env():
    """A fresh type checking environment."""
    return type_environment()


@pytest.fixture
def value_env(output):
    """A fresh evaluation environment printing to ``output``."""
    return value_environment(output)


@pytest.fixture
def check():
    """Fixture to type check a tree in a fresh environment."""

    def _check(tree):
        return type_check(tree, type_environment())

    return _check


@pytest.fixture
def run(check, value_env):
    """Fixture to type check a tree, then evaluate it."""

    def _run(tree):
        check(tree)
        return evaluate(tree, value_env)

    return _run


@pytest.fixture
def interpreter(output):
    """An interpreter session printing to ``output``."""
    return Interpreter(InterpreterConfig(output=output))
