"""
Exception hierarchy for the HR assistant.

Every error raised by the core derives from HRAssistantError and carries a
human-readable message plus a dictionary of context for logging.
"""

from typing import Any, Dict, Optional


class HRAssistantError(Exception):
    """Base exception for all HR assistant errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(HRAssistantError):
    """Raised when caller input fails validation."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class UnsupportedFileTypeError(HRAssistantError):
    """Raised when a document cannot be parsed (unknown extension or corrupt file)."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"Cannot extract text from '{filename}': {reason}", {"filename": filename})
        self.filename = filename


class EmptyDocumentError(HRAssistantError):
    """Raised when a document contains no extractable text."""

    def __init__(self, filename: str):
        super().__init__(f"No text could be extracted from '{filename}'", {"filename": filename})
        self.filename = filename


class EmbeddingProviderError(HRAssistantError):
    """Raised when the embedding provider fails or returns a malformed payload."""


class VectorStoreError(HRAssistantError):
    """Raised when a vector store operation fails."""

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        if operation:
            details["operation"] = operation
        self.operation = operation
        super().__init__(message, details)


class ChatProviderError(HRAssistantError):
    """Raised when the chat model fails, times out or returns an unusable response."""


class DocumentNotFoundError(HRAssistantError):
    """Raised when a knowledge-base document id is unknown."""

    def __init__(self, document_id: str):
        super().__init__(f"Document '{document_id}' not found", {"document_id": document_id})
        self.document_id = document_id


class EmployeeNotFoundError(HRAssistantError):
    """Raised when an employee lookup fails."""

    def __init__(self, key: str):
        super().__init__(f"Employee '{key}' not found", {"key": key})
        self.key = key
