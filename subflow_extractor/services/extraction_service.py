"""Service that turns a node selection into a standalone sub-workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from ..core.config import settings
from ..core.exceptions import InvalidSelectionError, ValidationError
from ..engine.access_patterns import apply_access_patterns, references_node
from ..engine.parameters import is_scannable, iter_string_parameters, map_string_parameters
from ..engine.reference_extractor import extract_references_in_node_expressions
from ..engine.types import Connection, NodeDefinition, Workflow
from ..schemas.extraction import (
    ExtractedVariable,
    SubworkflowExtractionRequest,
    SubworkflowExtractionResponse,
)
from .workflow_service import WorkflowService

logger = logging.getLogger(__name__)

# Horizontal gap between the start node and the first extracted node
START_NODE_OFFSET = 200.0


@dataclass
class SubworkflowExtraction:
    """Outcome of extracting a selection out of a workflow."""

    sub_workflow: Workflow
    parent_workflow: Workflow
    execute_node_name: str
    variables: dict[str, str] = field(default_factory=dict)


@dataclass
class _Boundary:
    incoming: list[Connection]
    outgoing: list[Connection]
    internal: list[Connection]
    # Selected node whose output leaves the selection, if any
    output_node: str | None = None


def _unique_name(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    counter = 1
    while f"{base} {counter}" in taken:
        counter += 1
    return f"{base} {counter}"


def _append_unique(connections: list[Connection], connection: Connection) -> None:
    if connection not in connections:
        connections.append(connection)


class SubworkflowExtractionService:
    """Service for sub-workflow extraction."""

    def __init__(self, workflow_service: WorkflowService | None = None) -> None:
        self._workflow_service = workflow_service or WorkflowService()

    def extract(self, request: SubworkflowExtractionRequest) -> SubworkflowExtractionResponse:
        """Extract the requested selection and return both resulting workflows."""
        workflow = self._workflow_service.schema_to_workflow(request.workflow)
        extraction = self.extract_workflow(
            workflow,
            request.node_names,
            start_node_name=request.start_node_name,
            sub_workflow_name=request.sub_workflow_name,
        )

        return SubworkflowExtractionResponse(
            sub_workflow=self._workflow_service.workflow_to_schema(extraction.sub_workflow),
            parent_workflow=self._workflow_service.workflow_to_schema(extraction.parent_workflow),
            execute_node_name=extraction.execute_node_name,
            variables=[
                ExtractedVariable(name=name, expression=expression)
                for name, expression in extraction.variables.items()
            ],
        )

    def extract_workflow(
        self,
        workflow: Workflow,
        node_names: list[str],
        start_node_name: str | None = None,
        sub_workflow_name: str | None = None,
    ) -> SubworkflowExtraction:
        """
        Move the selected nodes into a new sub-workflow.

        The sub-workflow starts with a trigger node that declares one input per
        external reference. In the parent workflow the selection is replaced by
        a single node executing the sub-workflow, which passes the original
        expressions as inputs.
        """
        start_node_name = start_node_name or settings.default_start_node_name
        sub_workflow_name = sub_workflow_name or f"{workflow.name} sub-workflow"

        selected = self._select_nodes(workflow, node_names)
        selected_names = {node.name for node in selected}
        boundary = self._find_boundary(workflow, selected_names)
        self._check_remaining_references(workflow, selected_names, boundary.output_node)

        result = extract_references_in_node_expressions(
            selected, workflow.node_names(), start_node_name
        )

        sub_workflow = self._build_sub_workflow(
            sub_workflow_name, start_node_name, result.nodes, result.variables, boundary
        )
        parent_workflow, execute_node_name = self._build_parent_workflow(
            workflow, selected, sub_workflow_name, result.variables, boundary
        )

        logger.info(
            "Extracted %d node(s) from workflow %r into %r with %d input(s)",
            len(selected),
            workflow.name,
            sub_workflow_name,
            len(result.variables),
        )
        return SubworkflowExtraction(
            sub_workflow=sub_workflow,
            parent_workflow=parent_workflow,
            execute_node_name=execute_node_name,
            variables=result.variables,
        )

    def _select_nodes(self, workflow: Workflow, node_names: list[str]) -> list[NodeDefinition]:
        """Selected nodes in workflow order."""
        if not node_names:
            raise ValidationError("Selection must contain at least one node", field="node_names")

        existing = set(workflow.node_names())
        for name in node_names:
            if name not in existing:
                raise ValidationError(f"Selected node not found: {name}", field="node_names")

        wanted = set(node_names)
        return [node for node in workflow.nodes if node.name in wanted]

    def _find_boundary(self, workflow: Workflow, selected_names: set[str]) -> _Boundary:
        """Split connections by how they cross the selection, and check they can be re-routed."""
        boundary = _Boundary(incoming=[], outgoing=[], internal=[])
        for conn in workflow.connections:
            source_inside = conn.source_node in selected_names
            target_inside = conn.target_node in selected_names
            if source_inside and target_inside:
                boundary.internal.append(conn)
            elif target_inside:
                boundary.incoming.append(conn)
            elif source_inside:
                boundary.outgoing.append(conn)

        input_sources = sorted({c.source_node for c in boundary.incoming})
        if len(input_sources) > 1:
            raise InvalidSelectionError(
                f"Selection has more than one input node: {input_sources}",
                boundary="input",
                node_names=input_sources,
            )

        output_sources = sorted({c.source_node for c in boundary.outgoing})
        if len(output_sources) > 1:
            raise InvalidSelectionError(
                f"Selection has more than one output node: {output_sources}",
                boundary="output",
                node_names=output_sources,
            )
        if output_sources:
            boundary.output_node = output_sources[0]

        return boundary

    def _check_remaining_references(
        self, workflow: Workflow, selected_names: set[str], output_node: str | None
    ) -> None:
        """
        Reject selections whose nodes are read by nodes left in the parent.

        Only the output node survives the extraction, as the execute node
        taking its place. Any other selected node would leave the parent with
        a reference to a node that no longer exists.
        """
        hidden = sorted(selected_names - {output_node})
        for node in workflow.nodes:
            if node.name in selected_names:
                continue
            for _, value in iter_string_parameters(node.parameters):
                if not is_scannable(node, value):
                    continue
                referenced = [name for name in hidden if references_node(value, name)]
                if referenced:
                    raise InvalidSelectionError(
                        f"Node {node.name!r} references selected node(s) {referenced} "
                        "that will not exist after extraction",
                        boundary="reference",
                        node_names=referenced,
                    )

    def _build_sub_workflow(
        self,
        name: str,
        start_node_name: str,
        nodes: list[NodeDefinition],
        variables: dict[str, str],
        boundary: _Boundary,
    ) -> Workflow:
        # Entry nodes: fed from outside, or with no predecessor inside the selection
        entry_names = [c.target_node for c in boundary.incoming]
        if not entry_names:
            fed_internally = {c.target_node for c in boundary.internal}
            entry_names = [n.name for n in nodes if n.name not in fed_internally]
        entry_names = list(dict.fromkeys(entry_names))

        positions = [n.position for n in nodes if n.position]
        start_position = None
        if positions:
            start_position = {
                "x": min(p["x"] for p in positions) - START_NODE_OFFSET,
                "y": positions[0]["y"],
            }

        start_node = NodeDefinition(
            name=start_node_name,
            type=settings.trigger_node_type,
            parameters={
                "workflowInputs": {
                    "values": [{"name": variable, "type": "any"} for variable in variables]
                }
            },
            position=start_position,
        )

        connections = [Connection(source_node=start_node_name, target_node=t) for t in entry_names]
        connections.extend(boundary.internal)

        return Workflow(name=name, nodes=[start_node, *nodes], connections=connections)

    def _build_parent_workflow(
        self,
        workflow: Workflow,
        selected: list[NodeDefinition],
        sub_workflow_name: str,
        variables: dict[str, str],
        boundary: _Boundary,
    ) -> tuple[Workflow, str]:
        selected_names = {node.name for node in selected}
        remaining = [node for node in workflow.nodes if node.name not in selected_names]
        execute_node_name = _unique_name(
            f"Execute {sub_workflow_name}", {node.name for node in remaining}
        )

        execute_node = NodeDefinition(
            name=execute_node_name,
            type=settings.execute_workflow_node_type,
            parameters={
                "workflowName": sub_workflow_name,
                "workflowInputs": {
                    "value": {
                        variable: f"={{{{ {expression} }}}}"
                        for variable, expression in variables.items()
                    }
                },
            },
            position=selected[0].position,
        )

        # Readers of the output node now read the execute node instead
        if boundary.output_node:
            output_node = boundary.output_node
            remaining = [
                replace(
                    node,
                    parameters=map_string_parameters(
                        node.parameters,
                        lambda _, value: apply_access_patterns(value, output_node, execute_node_name),
                    ),
                )
                for node in remaining
            ]

        # Keep the new node where the selection used to start
        first_index = next(i for i, node in enumerate(workflow.nodes) if node.name in selected_names)
        nodes = remaining[:first_index]
        nodes.append(execute_node)
        nodes.extend(remaining[first_index:])

        connections: list[Connection] = []
        for conn in workflow.connections:
            if conn in boundary.incoming:
                _append_unique(
                    connections,
                    Connection(
                        source_node=conn.source_node,
                        target_node=execute_node_name,
                        source_output=conn.source_output,
                    ),
                )
            elif conn in boundary.outgoing:
                _append_unique(
                    connections,
                    Connection(
                        source_node=execute_node_name,
                        target_node=conn.target_node,
                        target_input=conn.target_input,
                    ),
                )
            elif conn not in boundary.internal:
                connections.append(conn)

        return (
            Workflow(
                name=workflow.name,
                nodes=nodes,
                connections=connections,
                id=workflow.id,
                description=workflow.description,
                settings=workflow.settings,
            ),
            execute_node_name,
        )
