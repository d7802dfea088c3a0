"""
Error handling utilities for the JSON schema builder.
Maps exceptions raised around the editor to user-friendly messages.
"""

import streamlit as st
import logging
import traceback
from typing import Any, Callable, Optional
from datetime import datetime
from pathlib import Path
import json

from schema_builder.exceptions import SchemaBuilderError, HistoryEntryNotFound, SchemaStoreError

logger = logging.getLogger(__name__)

ANALYTICS_LOG = Path("logs/error_analytics.jsonl")


class ErrorType:
    """Error type constants."""
    FILE_SYSTEM = "file_system"
    HISTORY = "history"
    USER_INPUT = "user_input"
    SYSTEM = "system"


ERROR_MESSAGES = {
    ErrorType.FILE_SYSTEM: {
        SchemaStoreError: "📁 The saved schema could not be read or written.",
        FileNotFoundError: "📁 The requested file could not be found. It may have been moved or deleted.",
        PermissionError: "🔒 Permission denied. Please check file permissions.",
        OSError: "💾 File system error occurred. Please try again.",
        "default": "📁 A file system error occurred. Please try again."
    },

    ErrorType.HISTORY: {
        HistoryEntryNotFound: "🕘 That history entry is no longer available.",
        "default": "🕘 The schema history could not be used. Please try again."
    },

    ErrorType.USER_INPUT: {
        ValueError: "⚠️ Invalid input provided. Please check your data and try again.",
        TypeError: "⚠️ Incorrect data format. Please ensure your input matches the expected format.",
        "default": "⚠️ Input error. Please review your data and try again."
    },

    ErrorType.SYSTEM: {
        MemoryError: "💻 System is running low on memory. Please try again.",
        ImportError: "💻 Required system component is missing.",
        "default": "💻 System error occurred. Please try again."
    }
}


class ErrorHandler:
    """Error handling for the schema builder editor."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> None:
        """
        Handle errors with user-friendly messages.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
            user_message: Custom user-friendly message
            show_details: Whether to show technical details
        """
        logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        if not user_message:
            user_message = ErrorHandler._get_user_friendly_message(error, error_type)

        ErrorHandler._display_error(user_message, error, context, show_details)
        ErrorHandler._log_error_analytics(error, context, error_type)

    @staticmethod
    def _get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Generate user-friendly error messages based on error type."""
        error_type_messages = ERROR_MESSAGES.get(error_type, ERROR_MESSAGES[ErrorType.SYSTEM])

        for exception_type, message in error_type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return error_type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def _display_error(
        user_message: str,
        error: Exception,
        context: str,
        show_details: bool = False
    ) -> None:
        """Display error message to user with recovery suggestions."""
        st.error(user_message)

        if isinstance(error, SchemaBuilderError) and error.recovery_suggestions:
            st.markdown("**🔧 Suggested Actions:**")
            for suggestion in error.recovery_suggestions:
                st.write(f"• {suggestion}")

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {type(error).__name__}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {str(error)}")
                st.code(traceback.format_exc())

    @staticmethod
    def _log_error_analytics(error: Exception, context: str, error_type: str) -> None:
        """Append the error to the analytics log."""
        error_data = {
            'timestamp': datetime.now().isoformat(),
            'error_type': error_type,
            'exception_type': type(error).__name__,
            'context': context,
            'message': str(error)
        }
        if isinstance(error, SchemaBuilderError):
            error_data['details'] = error.get_full_details()['context']

        try:
            ANALYTICS_LOG.parent.mkdir(exist_ok=True)
            with open(ANALYTICS_LOG, 'a', encoding='utf-8') as f:
                json.dump(error_data, f)
                f.write('\n')
        except OSError as e:
            logger.error(f"Failed to log error analytics: {e}")

    @staticmethod
    def with_error_handling(
        func: Callable,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        default_return: Any = None
    ) -> Any:
        """
        Run an operation and report any exception instead of raising it.

        Args:
            func: Function to execute
            context: Context description
            error_type: Type of error expected
            user_message: Custom user message
            default_return: Value to return on error

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message)
            return default_return
