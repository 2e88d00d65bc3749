"""Core type definitions for reference extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

ParameterPath = tuple[Union[str, int], ...]


@dataclass
class NodeDefinition:
    """Definition of a node in a workflow."""

    name: str
    type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    position: dict[str, float] | None = None
    type_version: float | None = None
    id: str | None = None


@dataclass
class Connection:
    """Connection between two nodes."""

    source_node: str
    target_node: str
    source_output: str = "main"
    target_input: str = "main"


@dataclass
class Workflow:
    """Workflow definition."""

    name: str
    nodes: list[NodeDefinition]
    connections: list[Connection]
    id: str | None = None
    description: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)

    def node_names(self) -> list[str]:
        return [n.name for n in self.nodes]

    def get_node(self, name: str) -> NodeDefinition | None:
        for node in self.nodes:
            if node.name == name:
                return node
        return None


class Accessor(str, Enum):
    """Data-selection method applied to a referenced node's output."""

    ITEM = "item"
    FIRST = "first"
    LAST = "last"
    ALL = "all"
    ITEM_MATCHING = "itemMatching"


@dataclass(frozen=True)
class VariableSignature:
    """Canonical identity of an external reference."""

    node_name: str
    field_path: tuple[str, ...]
    accessor: Accessor
    accessor_argument: str | None = None


@dataclass
class ReferenceOccurrence:
    """
    One reference to a node found inside a parameter value.

    `start`/`end` delimit `raw_text` inside the parameter string. For internal
    references only the reference head is covered; nothing is parsed beyond it.
    """

    source_node: str
    parameter_path: ParameterPath
    start: int
    end: int
    node_name: str
    raw_text: str
    internal: bool
    accessor: Accessor = Accessor.ITEM
    accessor_argument: str | None = None
    field_path: tuple[str, ...] = ()
    key: str = ""

    @property
    def signature(self) -> VariableSignature:
        return VariableSignature(
            node_name=self.node_name,
            field_path=self.field_path,
            accessor=self.accessor,
            accessor_argument=self.accessor_argument,
        )

    @property
    def accessor_source(self) -> str:
        """Accessor call as written after the start node reference."""
        if self.accessor is Accessor.ITEM:
            return ".item"
        if self.accessor is Accessor.ITEM_MATCHING:
            return f".itemMatching({self.accessor_argument})"
        return f".{self.accessor.value}()"


@dataclass
class ExtractionResult:
    """Rewritten nodes plus the variables the start node has to provide."""

    nodes: list[NodeDefinition]
    # variable name -> original expression text, in first-seen order
    variables: dict[str, str] = field(default_factory=dict)
