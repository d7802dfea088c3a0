"""
Conversion from the builder's field tree to JSON Schema.

Also hosts the sample generator used to pre-fill the validation panel and
the JSON text rendering shared by the preview and export views.
"""

import json
import logging
from typing import Dict, Any, List

from schema_builder.field_model import SchemaField, FieldType

logger = logging.getLogger(__name__)


def fields_to_json_schema(fields: List[SchemaField]) -> Dict[str, Any]:
    """
    Convert a list of sibling fields to a JSON Schema object node.

    Fields whose ``required`` attribute is absent are treated as required;
    only ``required=False`` leaves a name out of the ``required`` list, which
    itself is omitted when empty. A later sibling with the same name replaces
    the earlier property.

    Args:
        fields: Ordered sibling fields

    Returns:
        Dictionary of the form ``{"type": "object", "properties": {...}, "required": [...]}``
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for field in fields:
        if field.type == FieldType.NESTED:
            nested_schema = fields_to_json_schema(field.children or [])
            nested_node: Dict[str, Any] = {
                'type': 'object',
                'properties': nested_schema['properties']
            }
            if nested_schema.get('required'):
                nested_node['required'] = nested_schema['required']
            properties[field.name] = nested_node

        elif field.type == FieldType.STRING:
            properties[field.name] = {
                'type': 'string',
                'default': field.value if field.value is not None else ''
            }

        elif field.type == FieldType.NUMBER:
            properties[field.name] = {
                'type': 'number',
                'default': field.value if field.value is not None else 0
            }

        if field.required is not False:
            required.append(field.name)

    schema: Dict[str, Any] = {
        'type': 'object',
        'properties': properties
    }
    if required:
        schema['required'] = required

    return schema


def generate_sample(fields: List[SchemaField]) -> Dict[str, Any]:
    """
    Build an example JSON value from a field tree.

    Leaf values are emitted exactly as stored, with no default substitution.
    """
    sample: Dict[str, Any] = {}
    for field in fields:
        if field.type == FieldType.NESTED:
            sample[field.name] = generate_sample(field.children or [])
        else:
            sample[field.name] = field.value
    return sample


def schema_to_json_text(document: Any) -> str:
    """Render a JSON-compatible value as indented JSON text."""
    return json.dumps(document, indent=2, ensure_ascii=False)
