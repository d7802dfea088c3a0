"""
Session state management for the Streamlit schema builder.
Holds the live field tree, its edit history and the validation panel inputs.
"""

import streamlit as st
from typing import List, Optional
from datetime import datetime
import logging

from schema_builder.config_loader import get_config_value
from schema_builder.field_model import SchemaField
from schema_builder.history_tracker import HistoryTracker, DEFAULT_MAX_ENTRIES, DEFAULT_ACTION_LABEL
from schema_builder.validation_engine import ValidationReport

logger = logging.getLogger(__name__)

FIELDS_KEY = 'schema_fields'
HISTORY_KEY = 'schema_history'
JSON_INPUT_KEY = 'validation_json_input'
SCHEMA_INPUT_KEY = 'validation_schema_input'
VALIDATION_RESULT_KEY = 'validation_result'


class SessionManager:
    """Manages Streamlit session state for the schema builder."""

    @staticmethod
    def initialize():
        """Initialize all session state variables with default values."""
        defaults = {
            FIELDS_KEY: [],
            JSON_INPUT_KEY: '',
            SCHEMA_INPUT_KEY: '',
            VALIDATION_RESULT_KEY: None,
            'schema_name': '',
            'session_id': None,
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        if HISTORY_KEY not in st.session_state:
            st.session_state[HISTORY_KEY] = HistoryTracker(
                max_entries=int(get_config_value('history', 'max_entries', DEFAULT_MAX_ENTRIES)),
                action_label=get_config_value('history', 'action_label', DEFAULT_ACTION_LABEL)
            )

        if not st.session_state.session_id:
            st.session_state.session_id = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        logger.info(f"Session initialized: {st.session_state.session_id}")

    @staticmethod
    def get_fields() -> List[SchemaField]:
        """Get the live field tree."""
        return st.session_state.get(FIELDS_KEY, [])

    @staticmethod
    def set_fields(fields: List[SchemaField]):
        """Replace the whole field tree and record the change in history."""
        st.session_state[FIELDS_KEY] = fields
        SessionManager.get_history().observe(fields)
        # A new tree invalidates the last validation outcome
        st.session_state[VALIDATION_RESULT_KEY] = None

    @staticmethod
    def reset_fields():
        """Clear every field. An empty tree is not recorded in history."""
        logger.info("Resetting schema fields")
        SessionManager.set_fields([])

    @staticmethod
    def get_history() -> HistoryTracker:
        """Get the session's history tracker, creating it if needed."""
        if HISTORY_KEY not in st.session_state:
            st.session_state[HISTORY_KEY] = HistoryTracker()
        return st.session_state[HISTORY_KEY]

    @staticmethod
    def restore_from_history(entry_id: str) -> List[SchemaField]:
        """
        Replace the live tree with a historical snapshot.

        The restore is itself observed, so it becomes the newest entry.

        Raises:
            HistoryEntryNotFound: If the entry is no longer retained
        """
        fields = SessionManager.get_history().restore(entry_id)
        SessionManager.set_fields(fields)
        return fields

    @staticmethod
    def get_json_input() -> str:
        return st.session_state.get(JSON_INPUT_KEY, '')

    @staticmethod
    def set_json_input(text: str):
        st.session_state[JSON_INPUT_KEY] = text

    @staticmethod
    def get_schema_input() -> str:
        return st.session_state.get(SCHEMA_INPUT_KEY, '')

    @staticmethod
    def set_schema_input(text: str):
        st.session_state[SCHEMA_INPUT_KEY] = text

    @staticmethod
    def get_validation_result() -> Optional[ValidationReport]:
        return st.session_state.get(VALIDATION_RESULT_KEY)

    @staticmethod
    def set_validation_result(report: Optional[ValidationReport]):
        st.session_state[VALIDATION_RESULT_KEY] = report
