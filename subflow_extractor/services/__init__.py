"""Service layer for workflow operations and sub-workflow extraction."""

from .workflow_service import WorkflowService
from .extraction_service import SubworkflowExtraction, SubworkflowExtractionService

__all__ = [
    "WorkflowService",
    "SubworkflowExtraction",
    "SubworkflowExtractionService",
]
