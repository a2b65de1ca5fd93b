"""
letlang Compiler Package.

This package contains the static half of the core:
- ast_nodes: Expression tree node definitions and the visitor base
- type_system: Concrete types and the generic patterns for builtin signatures
- environment: The scoped environment shared by both passes
- type_checker: Type inference and checking
- pattern_check: Type checking of `match` patterns
"""
