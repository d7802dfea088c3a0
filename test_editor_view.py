"""
Unit tests for the schema builder view event handlers.
"""

import json
from unittest.mock import patch, MagicMock

import pytest

from schema_builder.error_handler import ErrorType
from schema_builder.editor_view import (
    SchemaBuilderView,
    IMPORT_TEXT_KEY,
    IMPORT_ERROR_KEY,
    SAVE_NAME_KEY,
    _widget_key,
)
from schema_builder.exceptions import SchemaStoreError
from schema_builder.field_model import SchemaField, FieldType
from schema_builder.import_parser import INVALID_JSON_MESSAGE, NO_FIELDS_MESSAGE
from schema_builder.schema_store import SchemaStore, EMPTY_NAME_ERROR
from schema_builder.session_manager import SessionManager
from schema_builder.validation_engine import MISSING_INPUT_ERROR


class MockSessionState(dict):
    def __setattr__(self, key, value):
        self[key] = value

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{key}'")


@pytest.fixture
def mock_streamlit():
    """Patch session state and notifications, then initialize the session."""
    mock_state = MockSessionState()

    with patch('streamlit.session_state', mock_state), \
         patch('schema_builder.session_manager.get_config_value',
               side_effect=lambda section, key, default=None: default), \
         patch('schema_builder.editor_view.Notify') as mock_notify:
        SessionManager.initialize()
        yield {
            'session_state': mock_state,
            'notify': mock_notify
        }


@pytest.fixture
def sample_fields():
    return [
        SchemaField(name="title", type=FieldType.STRING, required=True, value="x"),
        SchemaField(name="count", type=FieldType.NUMBER, required=True, value=1),
    ]


class TestImport:
    """Test cases for importing pasted schemas."""

    def test_import_replaces_tree(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        state[_widget_key('name', sample_fields[0].id)] = "title"
        state[IMPORT_TEXT_KEY] = json.dumps({
            "type": "object",
            "properties": {"city": {"type": "string"}}
        })

        SchemaBuilderView.handle_import()

        fields = SessionManager.get_fields()
        assert [f.name for f in fields] == ["city"]
        assert state[IMPORT_TEXT_KEY] == ''
        assert state[IMPORT_ERROR_KEY] == ''
        assert _widget_key('name', sample_fields[0].id) not in state
        mock_streamlit['notify'].success.assert_called_once_with("Imported 1 field(s)")

    def test_import_invalid_json(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        state[IMPORT_TEXT_KEY] = "{nope"

        SchemaBuilderView.handle_import()

        assert state[IMPORT_ERROR_KEY] == INVALID_JSON_MESSAGE
        assert SessionManager.get_fields() is sample_fields
        mock_streamlit['notify'].success.assert_not_called()

    def test_import_deeply_nested_text(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        state[IMPORT_TEXT_KEY] = "[" * 100000 + "]" * 100000

        SchemaBuilderView.handle_import()

        assert state[IMPORT_ERROR_KEY] == INVALID_JSON_MESSAGE
        assert SessionManager.get_fields() is sample_fields

    def test_import_without_fields(self, mock_streamlit):
        state = mock_streamlit['session_state']
        state[IMPORT_TEXT_KEY] = '{"type": "string"}'

        SchemaBuilderView.handle_import()

        assert state[IMPORT_ERROR_KEY] == NO_FIELDS_MESSAGE


class TestFieldEvents:
    """Test cases for field editing callbacks."""

    def test_add_field(self, mock_streamlit):
        SchemaBuilderView._on_add_field(FieldType.NUMBER)

        fields = SessionManager.get_fields()
        assert len(fields) == 1
        assert fields[0].type == FieldType.NUMBER
        assert len(SessionManager.get_history()) == 1

    def test_add_child_field(self, mock_streamlit):
        SchemaBuilderView._on_add_field(FieldType.NESTED)
        parent_id = SessionManager.get_fields()[0].id

        SchemaBuilderView._on_add_field(FieldType.STRING, parent_id)

        assert len(SessionManager.get_fields()[0].children) == 1

    def test_field_name_change(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        field_id = sample_fields[0].id
        state[_widget_key('name', field_id)] = "heading"

        SchemaBuilderView._on_field_change(field_id, 'name')

        assert SessionManager.get_fields()[0].name == "heading"

    def test_whole_number_value_stored_as_int(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        field_id = sample_fields[1].id
        state[_widget_key('value', field_id)] = 5.0

        SchemaBuilderView._on_field_change(field_id, 'value')

        value = SessionManager.get_fields()[1].value
        assert value == 5
        assert isinstance(value, int)

    def test_type_change_resets_value_widget(self, mock_streamlit, sample_fields):
        state = mock_streamlit['session_state']
        SessionManager.set_fields(sample_fields)
        field_id = sample_fields[0].id
        state[_widget_key('value', field_id)] = "x"
        state[_widget_key('type', field_id)] = FieldType.NUMBER

        SchemaBuilderView._on_field_change(field_id, 'type')

        assert _widget_key('value', field_id) not in state
        assert SessionManager.get_fields()[0].type == FieldType.NUMBER
        assert SessionManager.get_fields()[0].value == 0

    @patch('schema_builder.editor_view.ErrorHandler.handle_error')
    def test_failed_operation_reported(self, mock_handle_error, mock_streamlit):
        """Test that a failing tree operation is routed to the error handler."""
        SchemaBuilderView._on_move_field("missing", 1)

        mock_handle_error.assert_called_once()
        assert SessionManager.get_fields() == []

    def test_remove_and_duplicate(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)

        SchemaBuilderView._on_duplicate_field(sample_fields[0].id)
        assert [f.name for f in SessionManager.get_fields()] == ["title", "title_copy", "count"]

        SchemaBuilderView._on_remove_field(sample_fields[0].id)
        assert [f.name for f in SessionManager.get_fields()] == ["title_copy", "count"]

    def test_move_field(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)

        SchemaBuilderView._on_move_field(sample_fields[1].id, -1)

        assert [f.name for f in SessionManager.get_fields()] == ["count", "title"]

    def test_reset(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)

        SchemaBuilderView._on_reset()

        assert SessionManager.get_fields() == []
        mock_streamlit['notify'].info.assert_called_once_with("Schema reset")


class TestValidationPanel:
    """Test cases for the validation panel callbacks."""

    def test_generate_sample_input(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)

        SchemaBuilderView.generate_sample_input()

        assert json.loads(SessionManager.get_json_input()) == {"title": "x", "count": 1}

    def test_validation_valid(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)
        SchemaBuilderView.generate_sample_input()

        SchemaBuilderView.handle_validation()

        assert SessionManager.get_validation_result().is_valid
        mock_streamlit['notify'].success.assert_called_once_with("JSON is valid!")

    def test_validation_missing_input(self, mock_streamlit):
        SchemaBuilderView.handle_validation()

        assert SessionManager.get_validation_result().errors == [MISSING_INPUT_ERROR]
        mock_streamlit['notify'].error.assert_called_once_with("Please enter JSON data to validate")

    def test_validation_errors(self, mock_streamlit, sample_fields):
        SessionManager.set_fields(sample_fields)
        SessionManager.set_json_input("{}")

        SchemaBuilderView.handle_validation()

        mock_streamlit['notify'].error.assert_called_once_with("Validation failed with 2 error(s)")


class TestHistoryPanel:
    """Test cases for restoring history entries."""

    def test_restore(self, mock_streamlit):
        SessionManager.set_fields([SchemaField(name="a", type=FieldType.STRING, value="")])
        SessionManager.set_fields([SchemaField(name="b", type=FieldType.STRING, value="")])
        old_entry = SessionManager.get_history().list_entries()[-1]

        SchemaBuilderView.handle_restore(old_entry.id)

        assert SessionManager.get_fields()[0].name == "a"
        mock_streamlit['notify'].success.assert_called_once_with("Schema restored from history")

    def test_restore_goes_through_session_manager(self, mock_streamlit):
        """Test that restoring records a new head entry and clears stale widgets."""
        state = mock_streamlit['session_state']
        first = [SchemaField(name="a", type=FieldType.STRING, value="")]
        SessionManager.set_fields(first)
        SessionManager.set_fields([SchemaField(name="b", type=FieldType.STRING, value="")])
        old_entry = SessionManager.get_history().list_entries()[-1]
        state[_widget_key('name', first[0].id)] = "stale"

        with patch('schema_builder.editor_view.SessionManager.restore_from_history',
                   wraps=SessionManager.restore_from_history) as mock_restore:
            SchemaBuilderView.handle_restore(old_entry.id)

        mock_restore.assert_called_once_with(old_entry.id)
        history = SessionManager.get_history()
        assert len(history) == 3
        assert history.list_entries()[0].fields[0].name == "a"
        assert _widget_key('name', first[0].id) not in state

    @patch('schema_builder.editor_view.ErrorHandler.handle_error')
    def test_restore_unknown_entry(self, mock_handle_error, mock_streamlit):
        SchemaBuilderView.handle_restore("missing")

        mock_handle_error.assert_called_once()
        mock_streamlit['notify'].success.assert_not_called()


class TestSavedSchemasPanel:
    """Test cases for saving and loading named schemas."""

    def test_save_and_load(self, mock_streamlit, sample_fields, tmp_path):
        state = mock_streamlit['session_state']
        store = SchemaStore(tmp_path)
        SessionManager.set_fields(sample_fields)
        state[SAVE_NAME_KEY] = "Invoice"

        SchemaBuilderView.handle_save(store)

        assert state[SAVE_NAME_KEY] == ''
        mock_streamlit['notify'].success.assert_called_with("Schema saved successfully!")

        SessionManager.reset_fields()
        SchemaBuilderView.handle_load(store, "Invoice")

        assert [f.name for f in SessionManager.get_fields()] == ["title", "count"]
        mock_streamlit['notify'].success.assert_called_with("Loaded schema: Invoice")

    def test_save_without_name(self, mock_streamlit, sample_fields, tmp_path):
        SessionManager.set_fields(sample_fields)
        mock_streamlit['session_state'][SAVE_NAME_KEY] = ""

        SchemaBuilderView.handle_save(SchemaStore(tmp_path))

        mock_streamlit['notify'].error.assert_called_once_with(EMPTY_NAME_ERROR)

    def test_load_missing(self, mock_streamlit, tmp_path):
        SchemaBuilderView.handle_load(SchemaStore(tmp_path), "nothing")

        mock_streamlit['notify'].error.assert_called_once_with("Failed to load schema: nothing")

    def test_delete(self, mock_streamlit, sample_fields, tmp_path):
        store = SchemaStore(tmp_path)
        store.save_schema("Invoice", sample_fields)

        SchemaBuilderView.handle_delete(store, "Invoice")

        assert store.list_schemas() == []
        mock_streamlit['notify'].info.assert_called_once_with("Deleted schema: Invoice")

    @patch('schema_builder.editor_view.ErrorHandler.handle_error')
    def test_load_unreadable_file(self, mock_handle_error, mock_streamlit, sample_fields, tmp_path):
        """Test that a corrupted saved schema is reported as a file system error."""
        (tmp_path / "broken.json").write_text("{", encoding='utf-8')
        SessionManager.set_fields(sample_fields)

        SchemaBuilderView.handle_load(SchemaStore(tmp_path), "broken")

        mock_handle_error.assert_called_once()
        args = mock_handle_error.call_args[0]
        assert isinstance(args[0], SchemaStoreError)
        assert args[1] == "loading saved schema"
        assert args[2] == ErrorType.FILE_SYSTEM
        assert SessionManager.get_fields() is sample_fields
        mock_streamlit['notify'].error.assert_not_called()

    def test_load_and_delete_by_listed_key(self, mock_streamlit, sample_fields, tmp_path):
        """Test that a file whose name differs from its stored name loads and deletes."""
        store = SchemaStore(tmp_path)
        store.save_schema("Invoice", sample_fields)
        (tmp_path / "invoice.json").rename(tmp_path / "q3 invoices.json")
        listed = store.list_schemas()[0]

        SchemaBuilderView.handle_load(store, listed.key)

        assert [f.name for f in SessionManager.get_fields()] == ["title", "count"]
        mock_streamlit['notify'].success.assert_called_with("Loaded schema: Invoice")

        SchemaBuilderView.handle_delete(store, listed.key, listed.name)

        assert store.list_schemas() == []
        mock_streamlit['notify'].info.assert_called_once_with("Deleted schema: Invoice")

    @patch('streamlit.button')
    @patch('streamlit.columns', side_effect=lambda spec: [MagicMock() for _ in spec])
    @patch('streamlit.container')
    @patch('streamlit.caption')
    @patch('streamlit.markdown')
    @patch('streamlit.text_input')
    def test_saved_list_widget_keys_unique(self, mock_text_input, mock_markdown, mock_caption,
                                           mock_container, mock_columns, mock_button,
                                           mock_streamlit, sample_fields, tmp_path):
        """Test that records sharing a name still get distinct button keys."""
        store = SchemaStore(tmp_path)
        store.save_schema("Invoice", sample_fields)
        record = (tmp_path / "invoice.json").read_text(encoding='utf-8')
        (tmp_path / "invoice_copy.json").write_text(record, encoding='utf-8')

        SchemaBuilderView._render_saved_schemas(store)

        keys = [c.kwargs['key'] for c in mock_button.call_args_list if 'key' in c.kwargs]
        assert len(keys) == 4
        assert len(set(keys)) == 4
        assert "load_invoice_copy" in keys
