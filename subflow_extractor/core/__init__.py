"""Core module for the extractor - config and exceptions."""

from .config import settings, Settings, get_settings
from .exceptions import (
    SubflowExtractorError,
    StartNodeNameConflictError,
    UnknownNodeReferenceError,
    ValidationError,
    InvalidSelectionError,
)

__all__ = [
    # Config
    "settings",
    "Settings",
    "get_settings",
    # Exceptions
    "SubflowExtractorError",
    "StartNodeNameConflictError",
    "UnknownNodeReferenceError",
    "ValidationError",
    "InvalidSelectionError",
]
