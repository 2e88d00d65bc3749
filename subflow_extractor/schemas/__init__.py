"""Pydantic schemas for workflow and extraction payloads."""

from .workflow import (
    NodeDefinitionSchema,
    ConnectionSchema,
    WorkflowSchema,
)
from .extraction import (
    SubworkflowExtractionRequest,
    SubworkflowExtractionResponse,
    ExtractedVariable,
)

__all__ = [
    # Workflow schemas
    "NodeDefinitionSchema",
    "ConnectionSchema",
    "WorkflowSchema",
    # Extraction schemas
    "SubworkflowExtractionRequest",
    "SubworkflowExtractionResponse",
    "ExtractedVariable",
]
