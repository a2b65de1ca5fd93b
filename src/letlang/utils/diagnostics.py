"""
Structured diagnostics for letlang type errors.

This module turns a ``TypeCheckError`` into a ``Diagnostic``: an error code,
a message, a primary label on the offending span, secondary labels on the
declarations involved, and "did you mean" help. Rendering (colors, source
excerpts) belongs to the caller; the LSP adaptor in ``letlang.lsp`` is one
such caller.

Example:
    error[E0106]: `x` was already declared
      primary label:   the second `var x := ...`
      secondary label: "first declared here" on the first one
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from letlang.compiler.ast_nodes import FunctionDecl, declaration_span
from letlang.utils.errors import (
    AlreadyDeclaredError,
    ArrayTypeOrigin,
    ConversionError,
    IncompatibleArmTypesError,
    InconsistentArrayTypingError,
    InternalError,
    LetLangError,
    MismatchedTypesError,
    NoSuchSignatureError,
    Span,
    UnboundedVarError,
    UndefinedFunctionError,
    UntypedEmptyArrayError,
    VoidVarDeclarationError,
)


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for letlang diagnostics.

    Error codes are organized by category:
    - E01xx: Type errors
    - E09xx: Internal errors
    """

    # Type errors: E01xx
    E0101 = "E0101"  # mismatched types
    E0102 = "E0102"  # unbounded variable
    E0103 = "E0103"  # undefined function
    E0104 = "E0104"  # no such signature
    E0105 = "E0105"  # unnatural conversion
    E0106 = "E0106"  # already declared
    E0107 = "E0107"  # void variable declaration
    E0108 = "E0108"  # incompatible if arms
    E0109 = "E0109"  # untyped empty array
    E0110 = "E0110"  # inconsistent array typing

    # Internal errors: E09xx
    E0901 = "E0901"  # internal error


ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "mismatched types",
    ErrorCode.E0102: "unbounded variable",
    ErrorCode.E0103: "undefined function",
    ErrorCode.E0104: "no such signature",
    ErrorCode.E0105: "unnatural conversion",
    ErrorCode.E0106: "already declared",
    ErrorCode.E0107: "void variable declaration",
    ErrorCode.E0108: "incompatible if arms",
    ErrorCode.E0109: "untyped empty array",
    ErrorCode.E0110: "inconsistent array typing",
    ErrorCode.E0901: "internal error",
}


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"


@dataclass(slots=True)
class DiagnosticLabel:
    """
    A label pointing to a span of source code.

    Attributes:
        span: The source span this label points to
        message: Optional message to display with the label
        is_primary: Whether this is the primary ("here") label
    """

    span: Span
    message: str = ""
    is_primary: bool = True


@dataclass
class Diagnostic:
    """
    A structured diagnostic, ready to be rendered by a front end.

    Attributes:
        code: Error code (e.g., "E0102")
        level: Severity level
        message: The main diagnostic message
        labels: Source code labels, primary first
        notes: Additional notes
        helps: Help messages with suggestions
    """

    code: str
    level: DiagnosticLevel
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def primary_label(self) -> Optional[DiagnosticLabel]:
        return next((label for label in self.labels if label.is_primary), None)

    @property
    def secondary_labels(self) -> list[DiagnosticLabel]:
        return [label for label in self.labels if not label.is_primary]

    def to_simple_message(self) -> str:
        """Get a simple one-line error message."""
        return f"[{self.code}] {self.message}"


# =============================================================================
# Diagnostic Builder (Fluent API)
# =============================================================================


class DiagnosticBuilder:
    """
    Fluent builder for constructing Diagnostic objects.

        DiagnosticBuilder(ErrorCode.E0102, "unbounded variable `x`", span)
            .help("did you mean `y`?")
            .build()

    Labels with no span are dropped, so callers need not test for missing
    spans themselves.
    """

    def __init__(
        self,
        code: str,
        message: str,
        primary_span: Optional[Span] = None,
        level: DiagnosticLevel = DiagnosticLevel.ERROR,
    ) -> None:
        self._code = code
        self._level = level
        self._message = message
        self._labels: list[DiagnosticLabel] = []
        self._notes: list[str] = []
        self._helps: list[str] = []

        if primary_span is not None:
            self._labels.append(DiagnosticLabel(primary_span, "", True))

    def primary_label(self, span: Optional[Span], message: str = "") -> DiagnosticBuilder:
        """Set the primary label (replaces any existing primary)."""
        self._labels = [label for label in self._labels if not label.is_primary]
        if span is not None:
            self._labels.insert(0, DiagnosticLabel(span, message, True))
        return self

    def secondary_label(self, span: Optional[Span], message: str = "") -> DiagnosticBuilder:
        """Add a secondary label."""
        if span is not None:
            self._labels.append(DiagnosticLabel(span, message, False))
        return self

    def note(self, message: str) -> DiagnosticBuilder:
        self._notes.append(message)
        return self

    def help(self, message: str) -> DiagnosticBuilder:
        self._helps.append(message)
        return self

    def build(self) -> Diagnostic:
        return Diagnostic(
            code=self._code,
            level=self._level,
            message=self._message,
            labels=self._labels,
            notes=self._notes,
            helps=self._helps,
        )


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        The minimum number of single-character insertions, deletions or
        substitutions turning one string into the other
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: Iterable[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find names close to ``name`` for "did you mean?" help.

    Returns:
        Similar names, closest first, ties broken alphabetically
    """
    scored = []
    for candidate in candidates:
        if candidate == name or abs(len(candidate) - len(name)) > max_distance:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((candidate, distance))

    scored.sort(key=lambda x: (x[1], x[0]))
    return [candidate for candidate, _ in scored[:max_suggestions]]


def _did_you_mean(builder: DiagnosticBuilder, name: str, candidates: Iterable[str]) -> None:
    similar = suggest_similar(name, candidates)
    if len(similar) == 1:
        builder.help(f"did you mean `{similar[0]}`?")
    elif similar:
        suggestions_str = ", ".join(f"`{s}`" for s in similar)
        builder.help(f"did you mean one of: {suggestions_str}?")


# =============================================================================
# Error Conversion
# =============================================================================


def diagnostic_from_error(err: LetLangError, candidates: Iterable[str] = ()) -> Diagnostic:
    """
    Build the diagnostic describing a letlang error.

    Args:
        err: The error raised by the type checker (or an internal error)
        candidates: Names to suggest for an unknown variable or function
            (default: the names the error recorded as visible)

    Returns:
        The structured diagnostic
    """
    candidates = list(candidates)

    if isinstance(err, MismatchedTypesError):
        builder = DiagnosticBuilder(ErrorCode.E0101, err.message).primary_label(
            err.span, f"expected `{err.expected}`, found `{err.got}`"
        )
        if isinstance(err.binding, FunctionDecl):
            builder.secondary_label(
                declaration_span(err.binding),
                f"return type `{err.binding.return_type}` declared here",
            )
        elif err.binding is not None:
            builder.secondary_label(declaration_span(err.binding), "declared here")
        return builder.build()

    if isinstance(err, UnboundedVarError):
        builder = DiagnosticBuilder(ErrorCode.E0102, err.message).primary_label(
            err.span, "not found in this scope"
        )
        _did_you_mean(builder, err.name, candidates or err.candidates)
        return builder.build()

    if isinstance(err, UndefinedFunctionError):
        builder = DiagnosticBuilder(ErrorCode.E0103, err.message).primary_label(
            err.span, "no function or builtin with this name"
        )
        _did_you_mean(builder, err.name, candidates or err.candidates)
        return builder.build()

    if isinstance(err, NoSuchSignatureError):
        return (
            DiagnosticBuilder(ErrorCode.E0104, err.message)
            .primary_label(err.span, "no signature accepts these arguments")
            .build()
        )

    if isinstance(err, ConversionError):
        return (
            DiagnosticBuilder(ErrorCode.E0105, err.message)
            .primary_label(err.span, f"this is `{err.from_type}`")
            .build()
        )

    if isinstance(err, AlreadyDeclaredError):
        return (
            DiagnosticBuilder(ErrorCode.E0106, err.message)
            .primary_label(err.span, "declared again here")
            .secondary_label(declaration_span(err.orig_declaration), "first declared here")
            .build()
        )

    if isinstance(err, VoidVarDeclarationError):
        return (
            DiagnosticBuilder(ErrorCode.E0107, err.message)
            .primary_label(err.span, "this expression has type `Void`")
            .build()
        )

    if isinstance(err, IncompatibleArmTypesError):
        return (
            DiagnosticBuilder(ErrorCode.E0108, err.message)
            .primary_label(err.false_branch_span, f"this is `{err.got}`")
            .secondary_label(err.true_branch_span, f"this is `{err.expected}`")
            .build()
        )

    if isinstance(err, UntypedEmptyArrayError):
        return (
            DiagnosticBuilder(ErrorCode.E0109, err.message)
            .primary_label(err.span)
            .help("give the element type explicitly, e.g. `Integer[]`")
            .build()
        )

    if isinstance(err, InconsistentArrayTypingError):
        if err.type_decl.origin is ArrayTypeOrigin.EXPLICIT:
            origin_message = f"`{err.expected}` declared here"
        else:
            origin_message = f"`{err.expected}` inferred from the first element"
        return (
            DiagnosticBuilder(ErrorCode.E0110, err.message)
            .primary_label(err.span, f"this is `{err.got}`")
            .secondary_label(err.type_decl.span, origin_message)
            .build()
        )

    builder = DiagnosticBuilder(ErrorCode.E0901, err.message, err.span)
    if isinstance(err, InternalError):
        builder.note("this is a bug in the caller or in letlang, not in the program")
    return builder.build()
