"""Workflow-related Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NodeDefinitionSchema(BaseModel):
    """Schema for node definition in a workflow."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Set Fields",
                "type": "n8n-nodes-base.set",
                "parameters": {"value": "={{ $('Fetch').item.json.id }}"},
                "position": {"x": 100, "y": 200},
            }
        },
    )

    name: str = Field(..., min_length=1, description="Unique name for this node in the workflow")
    type: str = Field(..., description="Node type identifier")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Node parameters")
    position: dict[str, float] | None = Field(None, description="UI position {x, y}")
    type_version: float | None = Field(None, alias="typeVersion", description="Node type version")
    id: str | None = Field(None, description="Node id")


class ConnectionSchema(BaseModel):
    """Schema for connection between nodes."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "source_node": "Fetch",
                "target_node": "Set Fields",
                "source_output": "main",
                "target_input": "main",
            }
        }
    )

    source_node: str = Field(..., description="Source node name")
    target_node: str = Field(..., description="Target node name")
    source_output: str = Field("main", description="Source output name")
    target_input: str = Field("main", description="Target input name")


class WorkflowSchema(BaseModel):
    """Schema for a complete workflow definition."""

    name: str = Field(..., min_length=1, max_length=255, description="Workflow name")
    nodes: list[NodeDefinitionSchema] = Field(..., min_length=1, description="List of nodes")
    connections: list[ConnectionSchema] = Field(
        default_factory=list, description="List of connections"
    )
    id: str | None = Field(None, description="Workflow id")
    description: str | None = Field(None, max_length=1000, description="Workflow description")
    settings: dict[str, Any] = Field(default_factory=dict, description="Workflow settings")
