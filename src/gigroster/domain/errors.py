"""Error taxonomy of the reconciliation engine."""

from __future__ import annotations


class RosterError(RuntimeError):
    """Base class for reconciliation engine failures."""


class GraphUnavailableError(RosterError):
    """Raised when the knowledge graph cannot answer (transport, status, payload, timeout).

    Always recoverable: callers degrade to empty results instead of aborting.
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class ValidationError(RosterError):
    """Raised when pending-entity input or a lifecycle transition is invalid."""


class NotFoundError(RosterError):
    """Raised when an organization or entity identifier does not resolve."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Identifier does not resolve: {identifier}")
        self.identifier = identifier
