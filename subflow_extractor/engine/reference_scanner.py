"""
Finds references to other nodes inside node parameters.

Every reference head ($("A"), $node["A"], $node.A, $items("A")) is located for
each known node name. References to nodes outside the subgraph are parsed
further: the accessor (.item, .first(), .last(), .all(), .itemMatching(x))
and the `.json` field chain that follows it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from ..core.exceptions import UnknownNodeReferenceError
from .access_patterns import ACCESS_PATTERNS, AccessKind
from .identifiers import has_dot_notation_banned_char, sanitize_identifier
from .parameters import is_scannable, iter_string_parameters
from .types import Accessor, NodeDefinition, ParameterPath, ReferenceOccurrence

logger = logging.getLogger(__name__)

_QUOTED = r"""(['"])((?:\\.|(?!\1).)*)\1"""

_NODE_DOT_REFERENCE = re.compile(r"\$node\.([A-Za-z_$][A-Za-z0-9_$]*)")

# Reference heads for any name, used to detect references to unknown nodes
_ANY_REFERENCE = (
    re.compile(rf"\$\({_QUOTED}\)"),
    re.compile(rf"\$node\[{_QUOTED}\]"),
    re.compile(rf"\$items\({_QUOTED}\s*[,)]"),
    _NODE_DOT_REFERENCE,
)

_SIMPLE_ACCESSOR = re.compile(r"\.(first|last|all)\(\s*\)")
_ITEM_MATCHING = re.compile(r"\.itemMatching\(")
_ITEM = re.compile(r"\.item(?![A-Za-z0-9_$])")
_JSON = re.compile(r"\.json(?![A-Za-z0-9_$])")
_DOT_SEGMENT = re.compile(r"\.([A-Za-z_$][A-Za-z0-9_$]*)")
_BRACKET_SEGMENT = re.compile(rf"\[\s*{_QUOTED}\s*\]")
_CALL_FOLLOWS = re.compile(r"\s*\(")

_QUOTES = "'\"`"

FALLBACK_KEY_STEM = "value"


@dataclass
class _Head:
    start: int
    end: int
    name: str
    kind: AccessKind


def find_closing_paren(text: str, open_index: int) -> int | None:
    """
    Index of the parenthesis closing the one at `open_index`.

    Parentheses inside quoted strings are ignored. Returns None when the
    parenthesis is never closed.
    """
    depth = 0
    quote: str | None = None
    i = open_index
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 1
            elif char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def accessor_suffix(accessor: Accessor, argument: str | None = None) -> str:
    """Suffix appended to a variable key for the given accessor."""
    if accessor is Accessor.ITEM:
        return ""
    if accessor is Accessor.ITEM_MATCHING:
        return f"_itemMatching_{sanitize_identifier(argument or '')}"
    return f"_{accessor.value}"


def _find_heads(text: str, node_names: Iterable[str]) -> list[_Head]:
    heads: list[_Head] = []
    for name in node_names:
        if not name or name not in text:
            continue
        for pattern in ACCESS_PATTERNS:
            if pattern.check not in text or not pattern.applies_to(name):
                continue
            for match in pattern.compile(name).finditer(text):
                heads.append(_Head(match.start(), match.end(), name, pattern.kind))
    heads.sort(key=lambda h: (h.start, -h.end))
    return heads


def _check_unknown_references(text: str, known: set[str], source_node: str) -> None:
    for regex in _ANY_REFERENCE:
        for match in regex.finditer(text):
            name = match.group(match.lastindex or 0)
            # $node.<name> never resolves to a name that dot notation cannot spell
            if regex is _NODE_DOT_REFERENCE and has_dot_notation_banned_char(name):
                raise UnknownNodeReferenceError(name, source_node=source_node)
            if name not in known:
                raise UnknownNodeReferenceError(name, source_node=source_node)


def _parse_accessor(text: str, pos: int) -> tuple[Accessor, str | None, int]:
    """Accessor at `pos`, its argument source, and the position after it."""
    match = _SIMPLE_ACCESSOR.match(text, pos)
    if match:
        return Accessor(match.group(1)), None, match.end()

    match = _ITEM_MATCHING.match(text, pos)
    if match:
        close = find_closing_paren(text, match.end() - 1)
        if close is not None:
            argument = text[match.end():close].strip()
            return Accessor.ITEM_MATCHING, argument, close + 1

    match = _ITEM.match(text, pos)
    if match:
        return Accessor.ITEM, None, match.end()

    # Implicit .item
    return Accessor.ITEM, None, pos


def _parse_field_chain(text: str, pos: int) -> tuple[list[str], int]:
    """Segments of `.json.a["b"]...` at `pos`, and the position after the last one."""
    match = _JSON.match(text, pos)
    if not match:
        return [], pos

    segments: list[str] = []
    end = cursor = match.end()
    while True:
        match = _DOT_SEGMENT.match(text, cursor)
        if match:
            segment = match.group(1)
        else:
            match = _BRACKET_SEGMENT.match(text, cursor)
            if not match:
                break
            segment = match.group(2)
        # A method call ends the chain
        if _CALL_FOLLOWS.match(text, match.end()):
            break
        segments.append(segment)
        end = cursor = match.end()

    return segments, end


def _parse_external(
    text: str,
    head: _Head,
    source_node: str,
    parameter_path: ParameterPath,
) -> ReferenceOccurrence:
    argument: str | None = None
    if head.kind is AccessKind.ITEMS_CALL:
        close = find_closing_paren(text, head.start + len("$items"))
        accessor_end = head.end if close is None else close + 1
        accessor = Accessor.ALL
    else:
        accessor, argument, accessor_end = _parse_accessor(text, head.end)

    segments, chain_end = _parse_field_chain(text, accessor_end)
    # Nothing to drill into: the variable holds the item itself
    end = chain_end if segments else accessor_end
    field_key = "_".join(part for part in map(sanitize_identifier, segments) if part)
    # Segments or names without a single identifier character still need a usable key
    stem = field_key or sanitize_identifier(head.name) or FALLBACK_KEY_STEM
    key = stem + accessor_suffix(accessor, argument)

    return ReferenceOccurrence(
        source_node=source_node,
        parameter_path=parameter_path,
        start=head.start,
        end=end,
        node_name=head.name,
        raw_text=text[head.start:end],
        internal=False,
        accessor=accessor,
        accessor_argument=argument,
        field_path=tuple(segments),
        key=key,
    )


def scan_text(
    text: str,
    source_node: str,
    parameter_path: ParameterPath,
    node_names: list[str],
    subgraph_names: set[str],
) -> list[ReferenceOccurrence]:
    """All non-overlapping references in `text`, left to right."""
    _check_unknown_references(text, set(node_names), source_node)

    occurrences: list[ReferenceOccurrence] = []
    consumed = 0
    for head in _find_heads(text, node_names):
        # Nested inside an external reference already taken verbatim
        if head.start < consumed:
            continue

        if head.name in subgraph_names:
            occurrence = ReferenceOccurrence(
                source_node=source_node,
                parameter_path=parameter_path,
                start=head.start,
                end=head.end,
                node_name=head.name,
                raw_text=text[head.start:head.end],
                internal=True,
            )
        else:
            occurrence = _parse_external(text, head, source_node, parameter_path)

        logger.debug(
            "Found %s reference %r in node %r",
            "internal" if occurrence.internal else "external",
            occurrence.raw_text,
            source_node,
        )
        occurrences.append(occurrence)
        consumed = occurrence.end

    return occurrences


def scan_nodes(
    nodes: list[NodeDefinition],
    node_names: list[str],
) -> dict[str, list[ReferenceOccurrence]]:
    """
    Scan every expression parameter of every node.

    Returns occurrences per node name, in node order and then parameter order.
    """
    subgraph_names = {node.name for node in nodes}
    found: dict[str, list[ReferenceOccurrence]] = {}
    for node in nodes:
        occurrences: list[ReferenceOccurrence] = []
        for path, value in iter_string_parameters(node.parameters):
            if is_scannable(node, value):
                occurrences.extend(scan_text(value, node.name, path, node_names, subgraph_names))
        found[node.name] = occurrences
    return found
