"""
Unit tests for schema_converter module.
"""

import json

from schema_builder.field_model import SchemaField, FieldType
from schema_builder.schema_converter import (
    fields_to_json_schema,
    generate_sample,
    schema_to_json_text,
)


class TestFieldsToJsonSchema:
    """Test cases for converting field trees to JSON Schema."""

    def test_empty_tree(self):
        """Test that no fields produce an object schema without a required list."""
        assert fields_to_json_schema([]) == {"type": "object", "properties": {}}

    def test_worked_example(self):
        """Test a string field plus a nested object with one child."""
        fields = [
            SchemaField(name="title", type=FieldType.STRING, required=True, value="x"),
            SchemaField(
                name="tags",
                type=FieldType.NESTED,
                children=[SchemaField(name="label", type=FieldType.STRING, required=True, value="")]
            ),
        ]

        schema = fields_to_json_schema(fields)

        expected = (
            '{"type":"object","properties":{"title":{"type":"string","default":"x"},'
            '"tags":{"type":"object","properties":{"label":{"type":"string","default":""}},'
            '"required":["label"]}},"required":["title","tags"]}'
        )
        assert json.dumps(schema, separators=(',', ':')) == expected

    def test_absent_required_means_required(self):
        """Test that only required=False keeps a field out of the required list."""
        fields = [
            SchemaField(name="a", type=FieldType.STRING, value=""),
            SchemaField(name="b", type=FieldType.STRING, required=False, value=""),
            SchemaField(name="c", type=FieldType.NUMBER, required=True, value=1),
        ]

        schema = fields_to_json_schema(fields)

        assert schema["required"] == ["a", "c"]

    def test_all_optional_omits_required(self):
        fields = [SchemaField(name="a", type=FieldType.NUMBER, required=False, value=1)]

        schema = fields_to_json_schema(fields)

        assert "required" not in schema

    def test_nested_all_optional_omits_required(self):
        fields = [
            SchemaField(
                name="obj",
                type=FieldType.NESTED,
                required=False,
                children=[SchemaField(name="x", type=FieldType.STRING, required=False, value="")]
            )
        ]

        schema = fields_to_json_schema(fields)

        assert schema["properties"]["obj"] == {
            "type": "object",
            "properties": {"x": {"type": "string", "default": ""}}
        }

    def test_missing_values_get_defaults(self):
        """Test that absent values become "" for strings and 0 for numbers."""
        fields = [
            SchemaField(name="s", type=FieldType.STRING),
            SchemaField(name="n", type=FieldType.NUMBER),
        ]

        properties = fields_to_json_schema(fields)["properties"]

        assert properties["s"] == {"type": "string", "default": ""}
        assert properties["n"] == {"type": "number", "default": 0}

    def test_values_are_copied_verbatim(self):
        """Test that defaults are not coerced to the field's kind."""
        fields = [
            SchemaField(name="s", type=FieldType.STRING, value=5),
            SchemaField(name="n", type=FieldType.NUMBER, value=2.5),
        ]

        properties = fields_to_json_schema(fields)["properties"]

        assert properties["s"]["default"] == 5
        assert properties["n"]["default"] == 2.5

    def test_duplicate_names_last_wins(self):
        """Test that a later sibling replaces an earlier one with the same name."""
        fields = [
            SchemaField(name="a", type=FieldType.STRING, value="first"),
            SchemaField(name="a", type=FieldType.NUMBER, value=2),
        ]

        schema = fields_to_json_schema(fields)

        assert schema["properties"] == {"a": {"type": "number", "default": 2}}
        assert schema["required"] == ["a", "a"]

    def test_property_order_follows_fields(self):
        fields = [
            SchemaField(name="z", type=FieldType.STRING, value=""),
            SchemaField(name="a", type=FieldType.STRING, value=""),
            SchemaField(name="m", type=FieldType.STRING, value=""),
        ]

        schema = fields_to_json_schema(fields)

        assert list(schema["properties"]) == ["z", "a", "m"]


class TestGenerateSample:
    """Test cases for sample generation."""

    def test_sample_mirrors_tree(self):
        fields = [
            SchemaField(name="title", type=FieldType.STRING, value="x"),
            SchemaField(name="count", type=FieldType.NUMBER, value=3),
            SchemaField(
                name="address",
                type=FieldType.NESTED,
                children=[SchemaField(name="city", type=FieldType.STRING, value="Oslo")]
            ),
        ]

        assert generate_sample(fields) == {
            "title": "x",
            "count": 3,
            "address": {"city": "Oslo"}
        }

    def test_missing_values_are_not_substituted(self):
        """Test that an absent value is emitted as null."""
        fields = [SchemaField(name="s", type=FieldType.STRING)]

        assert generate_sample(fields) == {"s": None}

    def test_empty_nested(self):
        fields = [SchemaField(name="obj", type=FieldType.NESTED)]
        assert generate_sample(fields) == {"obj": {}}


class TestSchemaToJsonText:
    """Test cases for JSON text rendering."""

    def test_indented_output(self):
        text = schema_to_json_text({"a": 1})
        assert text == '{\n  "a": 1\n}'

    def test_non_ascii_kept(self):
        text = schema_to_json_text({"name": "Zürich"})
        assert "Zürich" in text
