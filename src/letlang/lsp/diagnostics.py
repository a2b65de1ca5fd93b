"""
LSP diagnostics for letlang.

Converts letlang ``Diagnostic`` objects, whose spans are byte offsets into
the program text, into ``lsprotocol`` diagnostics with line/character
positions for display in editors.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from lsprotocol import types

from letlang.compiler.ast_nodes import Block, Expression
from letlang.compiler.type_checker import type_check
from letlang.utils.diagnostics import Diagnostic, DiagnosticLevel, diagnostic_from_error
from letlang.utils.errors import Span, TypeCheckError

logger = logging.getLogger(__name__)

SOURCE_NAME = "letlang"

_SEVERITY_MAP = {
    DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
    DiagnosticLevel.WARNING: types.DiagnosticSeverity.Warning,
    DiagnosticLevel.NOTE: types.DiagnosticSeverity.Information,
    DiagnosticLevel.HELP: types.DiagnosticSeverity.Hint,
}


def offset_to_position(source: str, offset: int) -> types.Position:
    """
    Convert a UTF-8 byte offset into an LSP position.

    Lines are 0-indexed; characters are counted in UTF-16 code units, the
    LSP default encoding. Offsets past the end clamp to the end of the text.
    """
    prefix = source.encode("utf-8")[: max(0, offset)].decode("utf-8", errors="ignore")
    line = prefix.count("\n")
    line_text = prefix.rsplit("\n", 1)[-1]
    character = len(line_text.encode("utf-16-le")) // 2
    return types.Position(line=line, character=character)


def span_to_range(source: str, span: Span) -> types.Range:
    """Convert a byte-offset span into an LSP range."""
    return types.Range(
        start=offset_to_position(source, span.start),
        end=offset_to_position(source, span.end),
    )


def to_lsp_diagnostic(
    diagnostic: Diagnostic,
    source: str,
    uri: Optional[str] = None,
) -> types.Diagnostic:
    """
    Convert a letlang diagnostic into an LSP diagnostic.

    Args:
        diagnostic: The structured diagnostic
        source: The program text the spans point into
        uri: The document URI; when given, secondary labels become related
            information entries

    Returns:
        The LSP diagnostic
    """
    primary = diagnostic.primary_label
    if primary is not None:
        range_ = span_to_range(source, primary.span)
    else:
        zero = types.Position(line=0, character=0)
        range_ = types.Range(start=zero, end=zero)

    message_parts = [diagnostic.message]
    for note in diagnostic.notes:
        message_parts.append(f"note: {note}")
    for help_msg in diagnostic.helps:
        message_parts.append(f"help: {help_msg}")

    related: Optional[list[types.DiagnosticRelatedInformation]] = None
    if uri is not None and diagnostic.secondary_labels:
        related = [
            types.DiagnosticRelatedInformation(
                location=types.Location(uri=uri, range=span_to_range(source, label.span)),
                message=label.message,
            )
            for label in diagnostic.secondary_labels
        ]

    return types.Diagnostic(
        range=range_,
        message="\n".join(message_parts),
        severity=_SEVERITY_MAP.get(diagnostic.level, types.DiagnosticSeverity.Error),
        source=SOURCE_NAME,
        code=diagnostic.code,
        related_information=related,
    )


def get_diagnostics_for_tree(
    tree: Union[Block, Expression],
    source: str,
    uri: Optional[str] = None,
) -> list[types.Diagnostic]:
    """
    Type check a parsed document and report its diagnostics.

    Args:
        tree: The tree the parser built from ``source``
        source: The document text
        uri: The document URI

    Returns:
        An empty list if the tree checks, else the diagnostic of the first
        type error
    """
    try:
        type_check(tree)
    except TypeCheckError as e:
        logger.debug(f"Type error in {uri or '<input>'}: {e}")
        return [to_lsp_diagnostic(diagnostic_from_error(e), source, uri)]
    return []
