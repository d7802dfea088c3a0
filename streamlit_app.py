"""
Main Streamlit application for the JSON schema builder.
Build a JSON Schema from typed fields, validate JSON against it, import
existing schemas and restore earlier versions from the edit history.
"""

import streamlit as st
import logging

from schema_builder.config_loader import load_config, validate_config, get_config_value
from schema_builder.editor_view import SchemaBuilderView
from schema_builder.error_handler import ErrorHandler, ErrorType
from schema_builder.schema_store import SchemaStore
from schema_builder.session_manager import SessionManager


def get_logging_level(level_str):
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


# Configure logging dynamically from config
log_level_str = get_config_value('logging', 'level', 'INFO')
logging.basicConfig(level=get_logging_level(log_level_str))
logger = logging.getLogger(__name__)
logger.info(f"Logging configured to level: {log_level_str}")

page_title = get_config_value('ui', 'page_title', 'JSON Schema Builder')
app_version = get_config_value('app', 'version', 'Unknown')
logger.info(f"Starting app version: {app_version}")


def validate_configuration():
    """Validate configuration and warn the user about invalid settings."""
    if not validate_config(load_config()):
        logger.warning("Configuration is invalid, falling back to defaults where necessary")
        st.warning("⚠️ Some configuration settings are invalid, using defaults where necessary.")


def main():
    """Main application entry point."""
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon="🧩",
            layout="wide",
            initial_sidebar_state="collapsed"
        )

        validate_configuration()
        SessionManager.initialize()
        store = SchemaStore(get_config_value('storage', 'schemas_dir', 'saved_schemas'))

        st.title(page_title)
        SchemaBuilderView.render(store)

    except Exception as e:
        ErrorHandler.handle_error(
            e, "application startup", ErrorType.SYSTEM,
            show_details=bool(get_config_value('app', 'debug', False))
        )


if __name__ == "__main__":
    main()
