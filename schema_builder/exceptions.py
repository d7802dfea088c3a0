"""
Custom exception classes for the JSON schema builder.

Each exception carries a user-facing message, optional context and a list
of suggested recovery actions so the view layer can present them uniformly.
"""

import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class SchemaBuilderError(Exception):
    """
    Base exception for schema builder errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class InvalidSchemaInput(SchemaBuilderError):
    """
    Raised when pasted JSON Schema text cannot be imported.

    Covers malformed JSON and documents that yield no fields.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error

        context: Dict[str, Any] = {}
        if original_error is not None:
            context['original_error_type'] = type(original_error).__name__
            context['original_error_message'] = str(original_error)

        recovery_suggestions = [
            "Check that the text is valid JSON",
            "Ensure the root schema has \"type\": \"object\" and a \"properties\" mapping"
        ]

        super().__init__(message, context, recovery_suggestions)


class HistoryEntryNotFound(SchemaBuilderError):
    """Raised when a history entry id is not in the retained log."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(
            f"History entry not found: {entry_id}",
            {'entry_id': entry_id},
            ["The entry may have been dropped from the history window"]
        )


class SchemaStoreError(SchemaBuilderError):
    """
    Raised when a saved schema file cannot be read or written.
    """

    def __init__(self, path: str, original_error: Exception, message: Optional[str] = None):
        self.path = path
        self.original_error = original_error

        if message is None:
            message = f"Failed to access saved schema {path}: {str(original_error)}"

        context = {
            'path': path,
            'original_error_type': type(original_error).__name__,
            'original_error_message': str(original_error)
        }

        recovery_suggestions = [
            "Check that the saved schemas directory exists and is writable",
            "Verify the file contains valid JSON"
        ]

        super().__init__(message, context, recovery_suggestions)
