"""Assigns collision-free variable names to external references."""

from __future__ import annotations

import logging

from .identifiers import sanitize_identifier
from .types import ReferenceOccurrence, VariableSignature

logger = logging.getLogger(__name__)


class VariableNameResolver:
    """
    Maps reference signatures to variable names for one extraction run.

    Candidates are tried in order: the bare key ("myField"), the key prefixed
    with the sanitized node name ("D_myField"), then that name with a numeric
    suffix ("D_myField_1", "D_myField_2", ...).
    """

    def __init__(self) -> None:
        self._names: dict[VariableSignature, str] = {}
        self._signatures: dict[str, VariableSignature] = {}
        # name -> original expression, in first-seen order
        self.variables: dict[str, str] = {}

    def _is_free(self, name: str, signature: VariableSignature) -> bool:
        bound = self._signatures.get(name)
        return bound is None or bound == signature

    def _candidate(self, occurrence: ReferenceOccurrence) -> str:
        signature = occurrence.signature
        if self._is_free(occurrence.key, signature):
            return occurrence.key

        prefixed = f"{sanitize_identifier(occurrence.node_name)}_{occurrence.key}"
        if self._is_free(prefixed, signature):
            return prefixed

        counter = 1
        while not self._is_free(f"{prefixed}_{counter}", signature):
            counter += 1
        return f"{prefixed}_{counter}"

    def resolve(self, occurrence: ReferenceOccurrence) -> str:
        """Name for the occurrence's signature, binding a new one if unseen."""
        signature = occurrence.signature
        existing = self._names.get(signature)
        if existing is not None:
            return existing

        name = self._candidate(occurrence)
        self._names[signature] = name
        self._signatures[name] = signature
        self.variables[name] = occurrence.raw_text
        logger.debug("Assigned variable %r to %r", name, occurrence.raw_text)
        return name
