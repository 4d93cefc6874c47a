"""
Exception hierarchy for the work-note knowledge base.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class WorkNoteException(Exception):
    """Base exception for all knowledge-base application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ChunkIdFormatError(WorkNoteException):
    """Raised when a chunk id cannot be generated or parsed. Never retried."""

    def __init__(self, chunk_id: str, reason: str) -> None:
        super().__init__(
            f"Invalid chunk ID format: {chunk_id!r} ({reason})",
            {"chunk_id": chunk_id},
        )


class EmbeddingError(WorkNoteException):
    """Base class for embedding generation failures."""

    def __init__(
        self,
        message: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize embedding error.

        Args:
            message: Error message
            entity_id: Entity whose content was being embedded
            details: Additional context
        """
        details = details or {}
        if entity_id:
            details["entity_id"] = entity_id
        super().__init__(message, details)


class TransientProviderError(EmbeddingError):
    """Network, timeout or rate-limit failure. Retryable."""

    retryable = True


class PermanentValidationError(EmbeddingError):
    """Content that can never be embedded (empty, wrong dimension). Not retried."""

    retryable = False


class VectorStoreError(WorkNoteException):
    """Raised when vector store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, query, delete, list)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class RetryItemNotFoundError(WorkNoteException):
    """Raised when a retry queue item does not exist."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Retry queue item not found: {item_id}", {"item_id": item_id})
        self.item_id = item_id


class RetryItemInvalidStateError(WorkNoteException):
    """Raised when a retry queue transition is not allowed from the current status."""

    def __init__(self, item_id: str, status: str, expected: str) -> None:
        super().__init__(
            f"Retry queue item {item_id} is not in {expected} state (current: {status})",
            {"item_id": item_id, "status": status, "expected": expected},
        )
        self.item_id = item_id
        self.status = status


class EntityNotFoundError(WorkNoteException):
    """Raised when the content owning an index entry cannot be found."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Entity not found: {entity_id}", {"entity_id": entity_id})
        self.entity_id = entity_id
