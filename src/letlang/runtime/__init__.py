"""
letlang Runtime Package.

This package contains the dynamic half of the core:
- values: Runtime values
- builtins: Native implementations of the builtin functions and operators
- evaluator: The tree-walking evaluator
- pattern_match: Runtime pattern matching with backtracking
"""
