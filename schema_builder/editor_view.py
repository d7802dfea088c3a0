"""
Schema Builder view for the Streamlit app.
Provides the visual field editor, JSON preview, validation panel, edit
history and saved schemas.
"""

import streamlit as st
import logging
from typing import Callable, List, Optional

from schema_builder.error_handler import ErrorHandler, ErrorType
from schema_builder.exceptions import InvalidSchemaInput, HistoryEntryNotFound, SchemaStoreError
from schema_builder.field_model import (
    SchemaField,
    FieldType,
    add_field,
    update_field,
    remove_field,
    move_field,
    duplicate_field,
    find_duplicate_names,
)
from schema_builder.history_tracker import format_relative_time
from schema_builder.import_parser import parse_json_schema
from schema_builder.schema_converter import fields_to_json_schema, generate_sample, schema_to_json_text
from schema_builder.schema_store import SchemaStore
from schema_builder.session_manager import SessionManager, JSON_INPUT_KEY, SCHEMA_INPUT_KEY
from schema_builder.ui_feedback import Notify
from schema_builder.validation_engine import validate_json, MISSING_INPUT_ERROR

logger = logging.getLogger(__name__)

WIDGET_PREFIX = 'fld_'
IMPORT_TEXT_KEY = 'import_schema_text'
IMPORT_ERROR_KEY = 'import_schema_error'
SAVE_NAME_KEY = 'schema_name'


def _widget_key(attribute: str, field_id: str) -> str:
    return f"{WIDGET_PREFIX}{attribute}_{field_id}"


def _clear_field_widgets() -> None:
    """Drop per-field widget state so a replaced tree renders its own values."""
    for key in [k for k in st.session_state.keys() if str(k).startswith(WIDGET_PREFIX)]:
        del st.session_state[key]


class SchemaBuilderView:
    """Streamlit rendering and event handlers for the schema builder."""

    @staticmethod
    def render(store: SchemaStore) -> None:
        """Render the complete builder page."""
        SchemaBuilderView._render_actions()

        builder_tab, preview_tab, validate_tab, history_tab, saved_tab = st.tabs(
            ["Schema Builder", "JSON Preview", "Validate JSON", "History", "Saved Schemas"]
        )

        with builder_tab:
            SchemaBuilderView._render_builder()
        with preview_tab:
            SchemaBuilderView._render_preview()
        with validate_tab:
            SchemaBuilderView._render_validation()
        with history_tab:
            SchemaBuilderView._render_history()
        with saved_tab:
            SchemaBuilderView._render_saved_schemas(store)

    # ------------------------------------------------------------------
    # Tree updates
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(operation: Callable[[List[SchemaField]], List[SchemaField]], context: str) -> None:
        """Run a tree operation against the live fields and store the result."""
        updated = ErrorHandler.with_error_handling(
            lambda: operation(SessionManager.get_fields()),
            context,
            ErrorType.USER_INPUT
        )
        if updated is not None:
            SessionManager.set_fields(updated)

    @staticmethod
    def replace_tree(fields: List[SchemaField]) -> None:
        """Replace the whole tree (import, load)."""
        _clear_field_widgets()
        SessionManager.set_fields(fields)

    @staticmethod
    def _on_field_change(field_id: str, attribute: str) -> None:
        value = st.session_state.get(_widget_key(attribute, field_id))
        if attribute == 'value' and isinstance(value, float) and value.is_integer():
            value = int(value)
        if attribute == 'type':
            # The value widget changes kind with the type
            st.session_state.pop(_widget_key('value', field_id), None)
        SchemaBuilderView._apply(
            lambda fields: update_field(fields, field_id, **{attribute: value}),
            f"updating field {attribute}"
        )

    @staticmethod
    def _on_add_field(field_type: str, parent_id: Optional[str] = None) -> None:
        SchemaBuilderView._apply(
            lambda fields: add_field(fields, field_type, parent_id=parent_id),
            "adding field"
        )

    @staticmethod
    def _on_remove_field(field_id: str) -> None:
        SchemaBuilderView._apply(lambda fields: remove_field(fields, field_id), "removing field")

    @staticmethod
    def _on_move_field(field_id: str, offset: int) -> None:
        SchemaBuilderView._apply(lambda fields: move_field(fields, field_id, offset), "moving field")

    @staticmethod
    def _on_duplicate_field(field_id: str) -> None:
        SchemaBuilderView._apply(lambda fields: duplicate_field(fields, field_id), "duplicating field")

    @staticmethod
    def _on_reset() -> None:
        _clear_field_widgets()
        SessionManager.reset_fields()
        Notify.info("Schema reset")

    # ------------------------------------------------------------------
    # Header actions
    # ------------------------------------------------------------------

    @staticmethod
    def _render_actions() -> None:
        fields = SessionManager.get_fields()
        col1, col2, col3 = st.columns([1, 1, 2])

        with col1:
            st.button("Reset", on_click=SchemaBuilderView._on_reset, width='stretch')

        with col2:
            st.download_button(
                "Export",
                data=schema_to_json_text(fields_to_json_schema(fields)),
                file_name="schema.json",
                mime="application/json",
                disabled=not fields,
                width='stretch'
            )

        with col3:
            with st.expander("Import 3rd Party JSON Schema"):
                st.text_area(
                    "JSON Schema",
                    key=IMPORT_TEXT_KEY,
                    placeholder="Paste your JSON Schema here...",
                    height=150
                )
                st.button("Import", on_click=SchemaBuilderView.handle_import)
                if st.session_state.get(IMPORT_ERROR_KEY):
                    st.error(st.session_state[IMPORT_ERROR_KEY])

    @staticmethod
    def handle_import() -> None:
        """Import the pasted JSON Schema, replacing the current tree."""
        st.session_state[IMPORT_ERROR_KEY] = ''
        try:
            fields = parse_json_schema(st.session_state.get(IMPORT_TEXT_KEY, ''))
        except InvalidSchemaInput as e:
            st.session_state[IMPORT_ERROR_KEY] = e.message
            return

        SchemaBuilderView.replace_tree(fields)
        st.session_state[IMPORT_TEXT_KEY] = ''
        Notify.success(f"Imported {len(fields)} field(s)")

    # ------------------------------------------------------------------
    # Builder tab
    # ------------------------------------------------------------------

    @staticmethod
    def _render_builder() -> None:
        st.subheader("Build Your Schema")
        st.caption("Add, edit, and organize your JSON schema fields")

        fields = SessionManager.get_fields()
        duplicates = find_duplicate_names(fields)
        if duplicates:
            st.warning(
                f"⚠️ Duplicate field names: {', '.join(duplicates)}. "
                "Only the last field with each name appears in the JSON Schema."
            )

        if not fields:
            st.info("No fields yet. Add a field to get started.")

        SchemaBuilderView._render_field_list(fields, level=0)
        SchemaBuilderView._render_add_buttons(parent_id=None, key_suffix="root")

    @staticmethod
    def _render_add_buttons(parent_id: Optional[str], key_suffix: str) -> None:
        columns = st.columns(len(FieldType.ALL))
        for column, field_type in zip(columns, FieldType.ALL):
            with column:
                st.button(
                    f"➕ {field_type}",
                    key=f"add_{field_type}_{key_suffix}",
                    on_click=SchemaBuilderView._on_add_field,
                    args=(field_type, parent_id)
                )

    @staticmethod
    def _render_field_list(fields: List[SchemaField], level: int) -> None:
        for index, field in enumerate(fields):
            SchemaBuilderView._render_field(field, index, len(fields), level)

    @staticmethod
    def _render_field(field: SchemaField, index: int, sibling_count: int, level: int) -> None:
        """Render editor controls for one field and, for Nested fields, its children."""
        field_id = field.id
        indent = "　" * level

        with st.container(border=True):
            col_name, col_type, col_required, col_value = st.columns([3, 2, 1, 3])

            with col_name:
                st.text_input(
                    f"{indent}Field Name",
                    value=field.name,
                    key=_widget_key('name', field_id),
                    on_change=SchemaBuilderView._on_field_change,
                    args=(field_id, 'name')
                )

            with col_type:
                st.selectbox(
                    "Type",
                    options=list(FieldType.ALL),
                    index=FieldType.ALL.index(field.type),
                    key=_widget_key('type', field_id),
                    on_change=SchemaBuilderView._on_field_change,
                    args=(field_id, 'type')
                )

            with col_required:
                st.checkbox(
                    "Required",
                    value=field.required is not False,
                    key=_widget_key('required', field_id),
                    on_change=SchemaBuilderView._on_field_change,
                    args=(field_id, 'required')
                )

            with col_value:
                if field.type == FieldType.STRING:
                    st.text_input(
                        "Default Value",
                        value=str(field.value) if field.value is not None else '',
                        key=_widget_key('value', field_id),
                        on_change=SchemaBuilderView._on_field_change,
                        args=(field_id, 'value')
                    )
                elif field.type == FieldType.NUMBER:
                    st.number_input(
                        "Default Value",
                        value=float(field.value) if isinstance(field.value, (int, float)) else 0.0,
                        key=_widget_key('value', field_id),
                        on_change=SchemaBuilderView._on_field_change,
                        args=(field_id, 'value')
                    )
                else:
                    st.caption(f"{len(field.children or [])} child field(s)")

            col1, col2, col3, col4 = st.columns(4)
            with col1:
                st.button("🔼", key=f"move_up_{field_id}", help="Move field up",
                          disabled=(index == 0),
                          on_click=SchemaBuilderView._on_move_field, args=(field_id, -1))
            with col2:
                st.button("🔽", key=f"move_down_{field_id}", help="Move field down",
                          disabled=(index == sibling_count - 1),
                          on_click=SchemaBuilderView._on_move_field, args=(field_id, 1))
            with col3:
                st.button("📋", key=f"duplicate_{field_id}", help="Duplicate this field",
                          on_click=SchemaBuilderView._on_duplicate_field, args=(field_id,))
            with col4:
                st.button("🗑️", key=f"delete_{field_id}", help="Delete this field",
                          on_click=SchemaBuilderView._on_remove_field, args=(field_id,))

            if field.is_nested:
                SchemaBuilderView._render_field_list(field.children or [], level + 1)
                SchemaBuilderView._render_add_buttons(parent_id=field_id, key_suffix=field_id)

    # ------------------------------------------------------------------
    # Preview tab
    # ------------------------------------------------------------------

    @staticmethod
    def _render_preview() -> None:
        fields = SessionManager.get_fields()
        st.code(schema_to_json_text(fields_to_json_schema(fields)), language='json')

    # ------------------------------------------------------------------
    # Validation tab
    # ------------------------------------------------------------------

    @staticmethod
    def generate_sample_input() -> None:
        """Pre-fill the JSON data input with a sample built from the fields."""
        sample = generate_sample(SessionManager.get_fields())
        SessionManager.set_json_input(schema_to_json_text(sample))

    @staticmethod
    def handle_validation() -> None:
        """Validate the entered JSON and store the report for display."""
        report = validate_json(
            SessionManager.get_json_input(),
            SessionManager.get_schema_input(),
            SessionManager.get_fields()
        )
        SessionManager.set_validation_result(report)

        if report.is_valid:
            Notify.success("JSON is valid!")
        elif report.errors == [MISSING_INPUT_ERROR]:
            Notify.error("Please enter JSON data to validate")
        else:
            Notify.error(f"Validation failed with {len(report.errors)} error(s)")

    @staticmethod
    def _clear_json_input() -> None:
        SessionManager.set_json_input('')

    @staticmethod
    def _render_validation() -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.caption("Enter JSON data to validate against your schema or a custom JSON Schema")
        with col2:
            st.button("Generate Sample", on_click=SchemaBuilderView.generate_sample_input)

        schema_col, data_col = st.columns(2)
        with schema_col:
            st.text_area(
                "JSON Schema (optional)",
                key=SCHEMA_INPUT_KEY,
                placeholder="Paste your JSON Schema here (optional, overrides builder schema)",
                height=220
            )
        with data_col:
            st.text_area(
                "JSON Data",
                key=JSON_INPUT_KEY,
                placeholder="Enter your JSON data here...",
                help="If no schema is provided, validates against the builder schema",
                height=220
            )

        col1, col2 = st.columns([1, 1])
        with col1:
            st.button("Validate JSON", type="primary", on_click=SchemaBuilderView.handle_validation)
        with col2:
            st.button("Clear", on_click=SchemaBuilderView._clear_json_input)

        report = SessionManager.get_validation_result()
        if report is None:
            return

        if report.is_valid:
            st.success("✅ Valid")
        else:
            st.error("❌ Invalid")
        st.caption(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")

        for error in report.errors:
            st.markdown(f"- :red[{error}]")
        for warning in report.warnings:
            st.markdown(f"- :orange[{warning}]")

    # ------------------------------------------------------------------
    # History tab
    # ------------------------------------------------------------------

    @staticmethod
    def handle_restore(entry_id: str) -> None:
        """Restore a history entry into the live tree."""
        try:
            SessionManager.restore_from_history(entry_id)
        except HistoryEntryNotFound as e:
            ErrorHandler.handle_error(e, "restoring history entry", ErrorType.HISTORY)
            return

        _clear_field_widgets()
        Notify.success("Schema restored from history")

    @staticmethod
    def _render_history() -> None:
        history = SessionManager.get_history()
        entries = history.list_entries()

        if not entries:
            st.info("No history yet. Changes to the schema are recorded here.")
            return

        st.caption(f"{len(entries)} of {history.max_entries} versions kept")
        current_fields = SessionManager.get_fields()

        for entry in entries:
            summary = entry.summary
            is_current = history.is_current(entry.id)

            with st.container(border=True):
                col1, col2 = st.columns([4, 1])
                with col1:
                    label = f"**{entry.action}**"
                    if is_current:
                        label += " · Current"
                    st.markdown(label)
                    st.caption(f"🕘 {format_relative_time(entry.timestamp)}")

                    parts = [f"{summary.total} total fields"]
                    if summary.nested > 0:
                        parts.append(f"{summary.nested} nested")
                    parts.append(f"{summary.string} strings")
                    parts.append(f"{summary.number} numbers")
                    st.caption(" · ".join(parts))

                with col2:
                    if not is_current:
                        st.button("↩️ Restore", key=f"restore_{entry.id}",
                                  on_click=SchemaBuilderView.handle_restore, args=(entry.id,))

                if not is_current:
                    with st.expander("Changes since this version"):
                        changes = history.diff_from(entry.id, current_fields)
                        if changes:
                            for change in changes:
                                st.write(f"• {change}")
                        else:
                            st.caption("No differences")

    # ------------------------------------------------------------------
    # Saved schemas tab
    # ------------------------------------------------------------------

    @staticmethod
    def handle_save(store: SchemaStore) -> None:
        """Save the live tree under the name entered in the save form."""
        name = st.session_state.get(SAVE_NAME_KEY, '')
        ok, error_message = store.save_schema(name, SessionManager.get_fields())
        if ok:
            st.session_state[SAVE_NAME_KEY] = ''
            Notify.success("Schema saved successfully!")
        else:
            Notify.error(error_message or "Failed to save schema")

    @staticmethod
    def handle_load(store: SchemaStore, key: str) -> None:
        """Replace the live tree with a saved schema."""
        try:
            saved = store.load_schema(key)
        except SchemaStoreError as e:
            ErrorHandler.handle_error(e, "loading saved schema", ErrorType.FILE_SYSTEM)
            return

        if saved is None:
            Notify.error(f"Failed to load schema: {key}")
            return

        SchemaBuilderView.replace_tree(saved.fields)
        Notify.success(f"Loaded schema: {saved.name}")

    @staticmethod
    def handle_delete(store: SchemaStore, key: str, name: Optional[str] = None) -> None:
        ok, error_message = store.delete_schema(key)
        if ok:
            Notify.info(f"Deleted schema: {name or key}")
        else:
            Notify.error(error_message or "Failed to delete schema")

    @staticmethod
    def _render_saved_schemas(store: SchemaStore) -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.text_input("Schema Name", key=SAVE_NAME_KEY, placeholder="Enter schema name...")
        with col2:
            st.button("💾 Save Schema", on_click=SchemaBuilderView.handle_save, args=(store,),
                      disabled=not SessionManager.get_fields())

        saved_schemas = store.list_schemas()
        if not saved_schemas:
            st.info("No saved schemas yet.")
            return

        for saved in saved_schemas:
            with st.container(border=True):
                col1, col2, col3 = st.columns([3, 1, 1])
                with col1:
                    st.markdown(f"**{saved.name}**")
                    st.caption(f"{len(saved.fields)} top-level field(s)")
                with col2:
                    st.button("📂 Load", key=f"load_{saved.key}",
                              on_click=SchemaBuilderView.handle_load, args=(store, saved.key))
                with col3:
                    st.button("🗑️ Delete", key=f"delete_saved_{saved.key}",
                              on_click=SchemaBuilderView.handle_delete,
                              args=(store, saved.key, saved.name))
