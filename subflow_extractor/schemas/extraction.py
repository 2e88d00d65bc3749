"""Sub-workflow extraction Pydantic schemas."""

from pydantic import BaseModel, Field

from .workflow import WorkflowSchema


class SubworkflowExtractionRequest(BaseModel):
    """Request schema for extracting a node selection into a sub-workflow."""

    workflow: WorkflowSchema = Field(..., description="Workflow the selection belongs to")
    node_names: list[str] = Field(..., min_length=1, description="Names of the selected nodes")
    start_node_name: str | None = Field(
        None, min_length=1, description="Name of the sub-workflow start node"
    )
    sub_workflow_name: str | None = Field(
        None, min_length=1, max_length=255, description="Name of the new sub-workflow"
    )


class ExtractedVariable(BaseModel):
    """One input of the sub-workflow and the expression that feeds it."""

    name: str
    expression: str


class SubworkflowExtractionResponse(BaseModel):
    """Result of a sub-workflow extraction."""

    sub_workflow: WorkflowSchema
    parent_workflow: WorkflowSchema
    execute_node_name: str
    variables: list[ExtractedVariable] = Field(default_factory=list)
