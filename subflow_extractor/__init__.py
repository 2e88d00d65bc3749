"""Extracts workflow node selections into standalone sub-workflows."""

from .engine import (
    apply_access_patterns,
    backslash_escape,
    dollar_escape,
    extract_references_in_node_expressions,
    has_dot_notation_banned_char,
)

__version__ = "0.1.0"

__all__ = [
    "apply_access_patterns",
    "backslash_escape",
    "dollar_escape",
    "extract_references_in_node_expressions",
    "has_dot_notation_banned_char",
]
