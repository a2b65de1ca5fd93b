"""
letlang Language Server Protocol support.

Converts letlang diagnostics into ``lsprotocol`` types for editors.
"""
