"""
Rewrites references to nodes outside a subgraph so they point at a single
start node instead.

Used when a selection of nodes is extracted into a sub-workflow: every value
the selection reads from the rest of the workflow becomes an input field of
the sub-workflow's start node.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace

from ..core.exceptions import StartNodeNameConflictError, UnknownNodeReferenceError
from .identifiers import single_quote_escape
from .parameters import map_string_parameters
from .reference_scanner import scan_nodes
from .types import ExtractionResult, NodeDefinition, ParameterPath, ReferenceOccurrence
from .variable_names import VariableNameResolver

logger = logging.getLogger(__name__)


def _validate(nodes: list[NodeDefinition], node_names: list[str], start_node_name: str) -> None:
    subgraph_names = [node.name for node in nodes]
    if start_node_name in subgraph_names:
        raise StartNodeNameConflictError(start_node_name, subgraph_names)

    known = set(node_names)
    for name in subgraph_names:
        if name not in known:
            raise UnknownNodeReferenceError(name)


def _rewrite_text(
    text: str,
    occurrences: list[ReferenceOccurrence],
    names: list[str],
    start_node_name: str,
) -> str:
    head = f"$('{single_quote_escape(start_node_name)}')"
    parts: list[str] = []
    cursor = 0
    for occurrence, name in zip(occurrences, names):
        parts.append(text[cursor:occurrence.start])
        parts.append(f"{head}{occurrence.accessor_source}.json.{name}")
        cursor = occurrence.end
    parts.append(text[cursor:])
    return "".join(parts)


def extract_references_in_node_expressions(
    nodes: list[NodeDefinition],
    node_names: list[str],
    start_node_name: str,
) -> ExtractionResult:
    """
    Replace references to nodes outside `nodes` with start node fields.

    Args:
        nodes: The subgraph being extracted
        node_names: All node names of the surrounding workflow
        start_node_name: Name of the start node that will provide the inputs

    Returns:
        New nodes with rewritten parameters, and the variables the start node
        must provide mapped to the expressions they replace.

    Raises:
        StartNodeNameConflictError: A subgraph node already uses start_node_name
        UnknownNodeReferenceError: A subgraph node or a referenced node is not
            in node_names
    """
    _validate(nodes, node_names, start_node_name)

    # Pass 1: find everything before touching anything, so errors leave no partial result
    occurrences_by_node = scan_nodes(nodes, node_names)

    # Pass 2: names in first-seen order
    resolver = VariableNameResolver()
    external: dict[str, dict[ParameterPath, list[ReferenceOccurrence]]] = {}
    for node in nodes:
        by_path: dict[ParameterPath, list[ReferenceOccurrence]] = defaultdict(list)
        for occurrence in occurrences_by_node[node.name]:
            if occurrence.internal:
                continue
            resolver.resolve(occurrence)
            by_path[occurrence.parameter_path].append(occurrence)
        external[node.name] = by_path

    # Pass 3: substitute external references, keep everything else verbatim
    rewritten: list[NodeDefinition] = []
    for node in nodes:
        by_path = external[node.name]

        def transform(path: ParameterPath, value: str) -> str:
            occurrences = by_path.get(path)
            if not occurrences:
                return value
            names = [resolver.resolve(o) for o in occurrences]
            return _rewrite_text(value, occurrences, names, start_node_name)

        rewritten.append(replace(node, parameters=map_string_parameters(node.parameters, transform)))

    logger.info(
        "Extracted %d variable(s) from %d node(s) for start node %r",
        len(resolver.variables),
        len(nodes),
        start_node_name,
    )
    return ExtractionResult(nodes=rewritten, variables=dict(resolver.variables))
