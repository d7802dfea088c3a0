"""
Field model for the JSON schema builder.

A schema is an ordered list of SchemaField nodes. String and Number fields
carry a scalar default in ``value``; Nested fields own an ordered list of
child fields. The editing helpers in this module never mutate their input:
each returns a new tree so callers can treat every edit as a whole-tree
replacement.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple, Union, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

logger = logging.getLogger(__name__)


class FieldType:
    """Field type constants."""
    STRING = "String"
    NUMBER = "Number"
    NESTED = "Nested"

    ALL = (STRING, NUMBER, NESTED)


EDITABLE_ATTRIBUTES = ('name', 'type', 'required', 'value')


def generate_id() -> str:
    """Return a new opaque field identifier."""
    return str(uuid.uuid4())


def default_value_for(field_type: str) -> Union[str, int, None]:
    """Scalar default used when a leaf field is created or retyped."""
    if field_type == FieldType.STRING:
        return ''
    if field_type == FieldType.NUMBER:
        return 0
    return None


class SchemaField(BaseModel):
    """
    One node of the schema tree.

    ``required`` left as None means "required" to the JSON Schema converter;
    only an explicit False makes a field optional.
    """
    model_config = ConfigDict(extra='ignore')

    id: str = Field(default_factory=generate_id)
    name: str = ''
    type: Literal['String', 'Number', 'Nested'] = FieldType.STRING
    required: Optional[bool] = None
    value: Optional[Union[str, int, float]] = None
    children: Optional[List['SchemaField']] = None

    @model_validator(mode='after')
    def _normalize_variant(self) -> 'SchemaField':
        # Nested nodes own children and no value; leaves own a value and no children.
        if self.type == FieldType.NESTED:
            if self.children is None:
                self.children = []
            self.value = None
        else:
            self.children = None
        return self

    @property
    def is_nested(self) -> bool:
        return self.type == FieldType.NESTED


_FIELD_LIST_ADAPTER = TypeAdapter(List[SchemaField])


@dataclass
class FieldSummary:
    """Counts of fields in a tree, nested levels included."""
    total: int = 0
    nested: int = 0
    string: int = 0
    number: int = 0


def create_field(field_type: str = FieldType.STRING, name: str = '',
                 required: Optional[bool] = True) -> SchemaField:
    """
    Create a new field with a fresh id and the default value for its type.

    Args:
        field_type: One of the FieldType constants
        name: Property name for the field
        required: Required flag (None keeps the converter's default-required policy)

    Returns:
        New SchemaField instance
    """
    if field_type not in FieldType.ALL:
        raise ValueError(f"Unsupported field type: {field_type}")

    return SchemaField(
        name=name,
        type=field_type,
        required=required,
        value=default_value_for(field_type)
    )


def fields_from_payload(payload: List[Dict[str, Any]]) -> List[SchemaField]:
    """Build a field tree from its JSON-compatible payload (saved schemas, session restores)."""
    return _FIELD_LIST_ADAPTER.validate_python(payload)


def fields_to_payload(fields: List[SchemaField]) -> List[Dict[str, Any]]:
    """Serialize a field tree to plain dictionaries, omitting absent attributes."""
    return [field.model_dump(exclude_none=True) for field in fields]


def clone_fields(fields: List[SchemaField]) -> List[SchemaField]:
    """Deep copy a field tree. Ids are preserved."""
    return [field.model_copy(deep=True) for field in fields]


def _locate(fields: List[SchemaField], field_id: str) -> Optional[Tuple[List[SchemaField], int]]:
    for index, field in enumerate(fields):
        if field.id == field_id:
            return fields, index
        if field.children:
            found = _locate(field.children, field_id)
            if found is not None:
                return found
    return None


def find_field(fields: List[SchemaField], field_id: str) -> Optional[SchemaField]:
    """
    Find a field anywhere in the tree by id.

    Args:
        fields: Root sibling list
        field_id: Id to look for

    Returns:
        The matching field, or None if it is not in the tree
    """
    located = _locate(fields, field_id)
    if located is None:
        return None
    siblings, index = located
    return siblings[index]


def _next_field_name(siblings: List[SchemaField]) -> str:
    existing = {field.name for field in siblings}
    counter = len(siblings) + 1
    while f"field_{counter}" in existing:
        counter += 1
    return f"field_{counter}"


def add_field(fields: List[SchemaField], field_type: str = FieldType.STRING,
              parent_id: Optional[str] = None, name: Optional[str] = None) -> List[SchemaField]:
    """
    Append a new field at the root or under a Nested parent.

    Args:
        fields: Current tree
        field_type: Type of the new field
        parent_id: Id of a Nested field to add into, or None for the root
        name: Explicit name; generated as ``field_<n>`` when omitted

    Returns:
        New tree containing the added field

    Raises:
        ValueError: If the parent does not exist or is not Nested
    """
    updated = clone_fields(fields)

    if parent_id is None:
        siblings = updated
    else:
        parent = find_field(updated, parent_id)
        if parent is None:
            raise ValueError(f"Parent field not found: {parent_id}")
        if not parent.is_nested:
            raise ValueError(f"Field '{parent.name}' is not a Nested field")
        siblings = parent.children

    new_field = create_field(field_type, name if name is not None else _next_field_name(siblings))
    siblings.append(new_field)

    logger.debug(f"Added {field_type} field '{new_field.name}' (parent={parent_id})")
    return updated


def update_field(fields: List[SchemaField], field_id: str, **changes: Any) -> List[SchemaField]:
    """
    Change editable attributes of one field.

    Changing ``type`` resets ``value`` to the new type's default unless a value
    is passed too; retyping to Nested starts with an empty child list and
    retyping a Nested field to a leaf drops its children.

    Raises:
        ValueError: If the field does not exist or an unknown attribute is given
    """
    unknown = set(changes) - set(EDITABLE_ATTRIBUTES)
    if unknown:
        raise ValueError(f"Cannot update attributes: {', '.join(sorted(unknown))}")

    updated = clone_fields(fields)
    located = _locate(updated, field_id)
    if located is None:
        raise ValueError(f"Field not found: {field_id}")
    siblings, index = located
    current = siblings[index]

    data = current.model_dump()
    new_type = changes.get('type', current.type)
    if new_type != current.type:
        data['value'] = default_value_for(new_type)
        data['children'] = None
    data.update(changes)

    siblings[index] = SchemaField.model_validate(data)
    return updated


def remove_field(fields: List[SchemaField], field_id: str) -> List[SchemaField]:
    """Remove a field (and its subtree). Unknown ids leave the tree unchanged."""
    updated = clone_fields(fields)
    located = _locate(updated, field_id)
    if located is None:
        logger.warning(f"remove_field: field not found: {field_id}")
        return updated
    siblings, index = located
    removed = siblings.pop(index)
    logger.debug(f"Removed field '{removed.name}'")
    return updated


def move_field(fields: List[SchemaField], field_id: str, offset: int) -> List[SchemaField]:
    """
    Move a field among its siblings by ``offset`` positions.

    Moves that would leave the sibling list are ignored.
    """
    updated = clone_fields(fields)
    located = _locate(updated, field_id)
    if located is None:
        raise ValueError(f"Field not found: {field_id}")
    siblings, index = located

    target = index + offset
    if target < 0 or target >= len(siblings):
        return updated

    siblings.insert(target, siblings.pop(index))
    return updated


def _reassign_ids(field: SchemaField) -> None:
    field.id = generate_id()
    for child in field.children or []:
        _reassign_ids(child)


def duplicate_field(fields: List[SchemaField], field_id: str) -> List[SchemaField]:
    """
    Insert a copy of a field right after the original.

    The copy and every node below it receive new ids, and the copy's name
    gets a ``_copy`` suffix.
    """
    updated = clone_fields(fields)
    located = _locate(updated, field_id)
    if located is None:
        raise ValueError(f"Field not found: {field_id}")
    siblings, index = located

    copy = siblings[index].model_copy(deep=True)
    _reassign_ids(copy)
    copy.name = f"{copy.name}_copy"
    siblings.insert(index + 1, copy)
    return updated


def summarize_fields(fields: List[SchemaField]) -> FieldSummary:
    """Count fields by type across the whole tree."""
    summary = FieldSummary()
    for field in fields:
        summary.total += 1
        if field.is_nested:
            summary.nested += 1
            child_summary = summarize_fields(field.children or [])
            summary.total += child_summary.total
            summary.nested += child_summary.nested
            summary.string += child_summary.string
            summary.number += child_summary.number
        elif field.type == FieldType.STRING:
            summary.string += 1
        elif field.type == FieldType.NUMBER:
            summary.number += 1
    return summary


def find_duplicate_names(fields: List[SchemaField], prefix: str = '') -> List[str]:
    """
    Report sibling names that occur more than once.

    Nothing is rejected: JSON Schema conversion lets the later sibling win.
    This is only used to warn in the editor.

    Returns:
        Dotted paths of duplicated names, e.g. ``["address.street"]``
    """
    duplicates = []
    counts = Counter(field.name for field in fields)
    for name, count in counts.items():
        if count > 1:
            duplicates.append(f"{prefix}{name}")

    for field in fields:
        if field.is_nested and field.children:
            duplicates.extend(find_duplicate_names(field.children, f"{prefix}{field.name}."))
    return duplicates
