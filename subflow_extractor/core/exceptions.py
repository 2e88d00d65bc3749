"""Custom exceptions for the sub-workflow extractor."""

from typing import Any


class SubflowExtractorError(Exception):
    """Base exception for all extractor errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StartNodeNameConflictError(SubflowExtractorError):
    """Raised when a node in the subgraph already carries the start node name."""

    def __init__(self, start_node_name: str, subgraph_names: list[str]) -> None:
        super().__init__(
            message=(
                f"Start node name {start_node_name!r} already exists in subgraph: "
                f"{subgraph_names!r}"
            ),
            details={"start_node_name": start_node_name, "subgraph_names": subgraph_names},
        )
        self.start_node_name = start_node_name


class UnknownNodeReferenceError(SubflowExtractorError):
    """Raised when a node name is missing from the known node names."""

    def __init__(self, node_name: str, source_node: str | None = None) -> None:
        if source_node is None:
            message = f"Subgraph node {node_name!r} is not in the provided node names"
        else:
            message = f"Node {source_node!r} references unknown node {node_name!r}"
        super().__init__(
            message=message,
            details={"node_name": node_name, "source_node": source_node},
        )
        self.node_name = node_name
        self.source_node = source_node


class ValidationError(SubflowExtractorError):
    """Raised when validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )
        self.field = field


class InvalidSelectionError(SubflowExtractorError):
    """Raised when a node selection cannot be extracted into a sub-workflow."""

    def __init__(self, message: str, boundary: str, node_names: list[str]) -> None:
        super().__init__(
            message=message,
            details={"boundary": boundary, "node_names": node_names},
        )
        self.boundary = boundary
        self.node_names = node_names
