"""Reference extraction engine components."""

from .types import (
    Accessor,
    Connection,
    ExtractionResult,
    NodeDefinition,
    ReferenceOccurrence,
    VariableSignature,
    Workflow,
)
from .identifiers import (
    backslash_escape,
    dollar_escape,
    has_dot_notation_banned_char,
    sanitize_identifier,
    single_quote_escape,
)
from .access_patterns import (
    ACCESS_PATTERNS,
    AccessKind,
    AccessPattern,
    apply_access_patterns,
    references_node,
)
from .reference_scanner import scan_nodes, scan_text
from .variable_names import VariableNameResolver
from .reference_extractor import extract_references_in_node_expressions

__all__ = [
    "Accessor",
    "Connection",
    "ExtractionResult",
    "NodeDefinition",
    "ReferenceOccurrence",
    "VariableSignature",
    "Workflow",
    "backslash_escape",
    "dollar_escape",
    "has_dot_notation_banned_char",
    "sanitize_identifier",
    "single_quote_escape",
    "ACCESS_PATTERNS",
    "AccessKind",
    "AccessPattern",
    "apply_access_patterns",
    "references_node",
    "scan_nodes",
    "scan_text",
    "VariableNameResolver",
    "extract_references_in_node_expressions",
]
