"""
letlang Utilities Package.

Common utilities for error handling and source spans. Structured
diagnostics live in ``letlang.utils.diagnostics``, which depends on the
expression tree and is therefore not re-exported here.
"""

from letlang.utils.errors import (
    AlreadyDeclaredError,
    ConversionError,
    IncompatibleArmTypesError,
    InconsistentArrayTypingError,
    InternalError,
    LetLangError,
    MismatchedTypesError,
    NoSuchSignatureError,
    Span,
    TypeCheckError,
    UnboundedVarError,
    UndefinedFunctionError,
    UntypedEmptyArrayError,
    VoidVarDeclarationError,
)

__all__ = [
    "Span",
    # Base errors
    "LetLangError",
    "TypeCheckError",
    "InternalError",
    # Type errors
    "AlreadyDeclaredError",
    "ConversionError",
    "IncompatibleArmTypesError",
    "InconsistentArrayTypingError",
    "MismatchedTypesError",
    "NoSuchSignatureError",
    "UnboundedVarError",
    "UndefinedFunctionError",
    "UntypedEmptyArrayError",
    "VoidVarDeclarationError",
]
