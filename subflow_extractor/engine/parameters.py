"""Walking and rewriting string values inside nested node parameters."""

from __future__ import annotations

from typing import Any, Callable, Iterator

from ..core.config import settings
from .types import NodeDefinition, ParameterPath


def iter_string_parameters(
    value: Any, path: ParameterPath = ()
) -> Iterator[tuple[ParameterPath, str]]:
    """Yield (path, string) for every string leaf, depth first, in insertion order."""
    if isinstance(value, str):
        yield path, value
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from iter_string_parameters(item, (*path, index))
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from iter_string_parameters(item, (*path, key))


def map_string_parameters(
    value: Any,
    transform: Callable[[ParameterPath, str], str],
    path: ParameterPath = (),
) -> Any:
    """
    Return a copy of `value` with every string leaf replaced by transform(path, leaf).

    Handles strings, objects, and arrays recursively. Other values are
    returned as they are.
    """
    if isinstance(value, str):
        return transform(path, value)

    if isinstance(value, list):
        return [map_string_parameters(item, transform, (*path, i)) for i, item in enumerate(value)]

    if isinstance(value, dict):
        return {key: map_string_parameters(val, transform, (*path, key)) for key, val in value.items()}

    return value


def is_code_node(node: NodeDefinition) -> bool:
    return node.type in settings.code_node_types


def is_scannable(node: NodeDefinition, value: str) -> bool:
    """Expressions start with the expression prefix; code nodes hold raw source."""
    return value.startswith(settings.expression_prefix) or is_code_node(node)
