"""
Import of externally authored JSON Schema documents into the field model.

The mapping is lossy but total: any property the builder cannot represent
becomes an empty String field instead of aborting the import.
"""

import json
import logging
from typing import Dict, Any, List

from schema_builder.exceptions import InvalidSchemaInput
from schema_builder.field_model import SchemaField, FieldType

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON Schema."
NO_FIELDS_MESSAGE = "No valid fields found in schema."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _string_default(prop: Dict[str, Any]) -> Any:
    default = prop.get('default')
    if isinstance(default, str) or _is_number(default):
        return default
    return ''


def _number_default(prop: Dict[str, Any]) -> Any:
    default = prop.get('default')
    if _is_number(default):
        return default
    return 0


def _is_object_schema(schema: Any) -> bool:
    return (
        isinstance(schema, dict)
        and schema.get('type') == 'object'
        and isinstance(schema.get('properties'), dict)
    )


def convert_json_schema(schema: Any) -> List[SchemaField]:
    """
    Convert a parsed JSON Schema object node to a list of fields.

    Properties are mapped in enumeration order. A property is required only
    if it is listed in the parent's ``required`` array; this is the opposite
    default to the one used when converting fields back to JSON Schema.

    Args:
        schema: Parsed JSON value

    Returns:
        List of fields; empty when ``schema`` is not an object schema with
        a ``properties`` mapping
    """
    if not _is_object_schema(schema):
        return []

    required = schema.get('required')
    if not isinstance(required, list):
        required = []

    fields = []
    for name, prop in schema['properties'].items():
        is_required = name in required

        if _is_object_schema(prop):
            field = SchemaField(
                name=name,
                type=FieldType.NESTED,
                required=is_required,
                children=convert_json_schema(prop)
            )
        elif isinstance(prop, dict) and prop.get('type') == 'string':
            field = SchemaField(
                name=name,
                type=FieldType.STRING,
                required=is_required,
                value=_string_default(prop)
            )
        elif isinstance(prop, dict) and prop.get('type') in ('number', 'integer'):
            field = SchemaField(
                name=name,
                type=FieldType.NUMBER,
                required=is_required,
                value=_number_default(prop)
            )
        else:
            logger.debug(f"Unsupported schema for property '{name}', importing as String")
            field = SchemaField(
                name=name,
                type=FieldType.STRING,
                required=is_required,
                value=''
            )
        fields.append(field)

    return fields


def parse_json_schema(schema_text: str) -> List[SchemaField]:
    """
    Parse pasted JSON Schema text into a new field tree.

    Args:
        schema_text: JSON Schema document as text

    Returns:
        Non-empty list of fields with freshly generated ids

    Raises:
        InvalidSchemaInput: If the text is not valid JSON or yields no fields
    """
    try:
        schema = json.loads(schema_text)
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        logger.warning(f"Schema import failed: {e}")
        raise InvalidSchemaInput(INVALID_JSON_MESSAGE, e) from e

    try:
        fields = convert_json_schema(schema)
    except RecursionError as e:
        logger.warning("Schema import failed: schema is nested too deeply")
        raise InvalidSchemaInput(INVALID_JSON_MESSAGE, e) from e

    if not fields:
        logger.warning("Schema import produced no fields")
        raise InvalidSchemaInput(NO_FIELDS_MESSAGE)

    logger.info(f"Imported {len(fields)} top-level fields from JSON Schema")
    return fields
