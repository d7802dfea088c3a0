"""
Unit tests for session_manager module.
"""

from unittest.mock import patch

import pytest

from schema_builder.exceptions import HistoryEntryNotFound
from schema_builder.field_model import SchemaField, FieldType
from schema_builder.history_tracker import HistoryTracker
from schema_builder.session_manager import (
    SessionManager,
    FIELDS_KEY,
    HISTORY_KEY,
    VALIDATION_RESULT_KEY,
)
from schema_builder.validation_engine import ValidationReport


class MockSessionState(dict):
    def __setattr__(self, key, value):
        self[key] = value

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{key}'")


@pytest.fixture
def mock_session_state():
    """Patch Streamlit session state with a plain dict-backed mock."""
    mock_state = MockSessionState()

    with patch('streamlit.session_state', mock_state), \
         patch('schema_builder.session_manager.get_config_value',
               side_effect=lambda section, key, default=None: default):
        yield mock_state


def make_tree(name):
    return [SchemaField(name=name, type=FieldType.STRING, value="")]


class TestSessionManager:
    """Test cases for SessionManager."""

    def test_initialize_defaults(self, mock_session_state):
        SessionManager.initialize()

        assert mock_session_state[FIELDS_KEY] == []
        assert mock_session_state[VALIDATION_RESULT_KEY] is None
        assert isinstance(mock_session_state[HISTORY_KEY], HistoryTracker)
        assert mock_session_state[HISTORY_KEY].max_entries == 20
        assert mock_session_state.session_id.startswith("session_")

    def test_initialize_keeps_existing_state(self, mock_session_state):
        """Test that a rerun does not wipe the live tree."""
        SessionManager.initialize()
        SessionManager.set_fields(make_tree("a"))
        history = SessionManager.get_history()

        SessionManager.initialize()

        assert SessionManager.get_fields()[0].name == "a"
        assert SessionManager.get_history() is history

    def test_set_fields_records_history(self, mock_session_state):
        SessionManager.initialize()

        SessionManager.set_fields(make_tree("a"))
        SessionManager.set_fields(make_tree("b"))

        entries = SessionManager.get_history().list_entries()
        assert [e.fields[0].name for e in entries] == ["b", "a"]

    def test_set_fields_clears_validation_result(self, mock_session_state):
        SessionManager.initialize()
        SessionManager.set_validation_result(ValidationReport(is_valid=True))

        SessionManager.set_fields(make_tree("a"))

        assert SessionManager.get_validation_result() is None

    def test_reset_fields_not_recorded(self, mock_session_state):
        SessionManager.initialize()
        SessionManager.set_fields(make_tree("a"))

        SessionManager.reset_fields()

        assert SessionManager.get_fields() == []
        assert len(SessionManager.get_history()) == 1

    def test_restore_from_history(self, mock_session_state):
        """Test that restoring replaces the tree and becomes the newest entry."""
        SessionManager.initialize()
        SessionManager.set_fields(make_tree("a"))
        SessionManager.set_fields(make_tree("b"))
        old_entry = SessionManager.get_history().list_entries()[-1]

        restored = SessionManager.restore_from_history(old_entry.id)

        assert restored[0].name == "a"
        assert SessionManager.get_fields()[0].name == "a"
        entries = SessionManager.get_history().list_entries()
        assert len(entries) == 3
        assert entries[0].fields[0].name == "a"

    def test_restore_unknown_entry(self, mock_session_state):
        SessionManager.initialize()

        with pytest.raises(HistoryEntryNotFound):
            SessionManager.restore_from_history("missing")

    def test_get_history_creates_tracker(self, mock_session_state):
        history = SessionManager.get_history()
        assert isinstance(history, HistoryTracker)
        assert mock_session_state[HISTORY_KEY] is history

    def test_validation_inputs(self, mock_session_state):
        SessionManager.initialize()

        SessionManager.set_json_input('{"a": 1}')
        SessionManager.set_schema_input('{"type": "object"}')

        assert SessionManager.get_json_input() == '{"a": 1}'
        assert SessionManager.get_schema_input() == '{"type": "object"}'
