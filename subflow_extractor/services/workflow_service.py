"""Workflow service for conversion, validation and renaming."""

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.exceptions import ValidationError
from ..engine.access_patterns import apply_access_patterns
from ..engine.parameters import map_string_parameters
from ..engine.types import Connection, NodeDefinition, Workflow
from ..schemas.workflow import ConnectionSchema, NodeDefinitionSchema, WorkflowSchema

logger = logging.getLogger(__name__)


class WorkflowService:
    """Service for workflow operations."""

    def validate_workflow(self, schema: WorkflowSchema) -> None:
        """Validate workflow definition."""
        if not schema.nodes:
            raise ValidationError("Workflow must have at least one node", field="nodes")

        node_names = [n.name for n in schema.nodes]
        if len(node_names) != len(set(node_names)):
            raise ValidationError("Node names must be unique", field="nodes")

        # Validate connections reference valid nodes
        for conn in schema.connections:
            if conn.source_node not in node_names:
                raise ValidationError(
                    f"Connection references unknown source node: {conn.source_node}",
                    field="connections",
                )
            if conn.target_node not in node_names:
                raise ValidationError(
                    f"Connection references unknown target node: {conn.target_node}",
                    field="connections",
                )

    def schema_to_workflow(self, schema: WorkflowSchema) -> Workflow:
        """Convert schema to internal Workflow type."""
        self.validate_workflow(schema)
        return Workflow(
            name=schema.name,
            nodes=[
                NodeDefinition(
                    name=n.name,
                    type=n.type,
                    parameters=n.parameters,
                    position=n.position,
                    type_version=n.type_version,
                    id=n.id,
                )
                for n in schema.nodes
            ],
            connections=[
                Connection(
                    source_node=c.source_node,
                    target_node=c.target_node,
                    source_output=c.source_output,
                    target_input=c.target_input,
                )
                for c in schema.connections
            ],
            id=schema.id,
            description=schema.description,
            settings=schema.settings,
        )

    def workflow_to_schema(self, workflow: Workflow) -> WorkflowSchema:
        """Convert internal Workflow to its schema."""
        return WorkflowSchema(
            name=workflow.name,
            id=workflow.id,
            description=workflow.description,
            nodes=[
                NodeDefinitionSchema(
                    name=n.name,
                    type=n.type,
                    parameters=n.parameters,
                    position=n.position,
                    type_version=n.type_version,
                    id=n.id,
                )
                for n in workflow.nodes
            ],
            connections=[
                ConnectionSchema(
                    source_node=c.source_node,
                    target_node=c.target_node,
                    source_output=c.source_output,
                    target_input=c.target_input,
                )
                for c in workflow.connections
            ],
            settings=workflow.settings,
        )

    def rename_node(self, workflow: Workflow, old_name: str, new_name: str) -> Workflow:
        """
        Rename a node and every reference to it.

        Connections are re-pointed and every string parameter of every node
        has its references to `old_name` rewritten.
        """
        names = workflow.node_names()
        if old_name not in names:
            raise ValidationError(f"Node not found: {old_name}", field="old_name")
        if new_name != old_name and new_name in names:
            raise ValidationError(f"Node name already in use: {new_name}", field="new_name")

        def rewrite(path, value: str) -> str:
            return apply_access_patterns(value, old_name, new_name)

        nodes = [
            replace(
                node,
                name=new_name if node.name == old_name else node.name,
                parameters=map_string_parameters(node.parameters, rewrite),
            )
            for node in workflow.nodes
        ]
        connections = [
            replace(
                conn,
                source_node=new_name if conn.source_node == old_name else conn.source_node,
                target_node=new_name if conn.target_node == old_name else conn.target_node,
            )
            for conn in workflow.connections
        ]

        logger.debug("Renamed node %r to %r in workflow %r", old_name, new_name, workflow.name)
        return replace(workflow, nodes=nodes, connections=connections)
