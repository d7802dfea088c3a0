"""
JSON validation against the builder's schema or a pasted JSON Schema.

Schema compilation and keyword evaluation are delegated to the jsonschema
library. This module decides which schema applies, turns parse and compile
failures into report errors and formats each violation for display.
"""

import json
import logging
from typing import Dict, Any, List, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel, Field
from referencing.exceptions import Unresolvable

from schema_builder.field_model import SchemaField
from schema_builder.schema_converter import fields_to_json_schema

logger = logging.getLogger(__name__)

MISSING_INPUT_ERROR = "missing input"
INVALID_SCHEMA_ERROR = "invalid schema format"
INVALID_JSON_ERROR = "invalid JSON format"


class ValidationReport(BaseModel):
    """Outcome of one validation call. ``warnings`` is currently always empty."""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def failure(cls, *errors: str) -> 'ValidationReport':
        return cls(is_valid=False, errors=list(errors))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings)
        }


class SchemaCompileError(Exception):
    """Raised when a schema cannot be turned into a validator."""


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {token}")


def _parse_json(text: str) -> Any:
    # NaN and Infinity are not JSON.
    return json.loads(text, parse_constant=_reject_constant)


def format_instance_path(path) -> str:
    """
    Render a jsonschema instance path as a JSON pointer.

    The document root is rendered as ``/``.
    """
    segments = [str(segment).replace('~', '~0').replace('/', '~1') for segment in path]
    if not segments:
        return '/'
    return '/' + '/'.join(segments)


def compile_schema(schema: Any):
    """
    Build a reusable validator for a JSON Schema document.

    The validator class follows the schema's ``$schema`` keyword and falls
    back to draft-07. Unknown keywords are tolerated and ``format`` is not
    asserted.

    Raises:
        SchemaCompileError: If the schema is not a valid JSON Schema
    """
    if isinstance(schema, dict) and isinstance(schema.get('$schema', ''), str):
        validator_class = validator_for(schema, default=Draft7Validator)
    else:
        validator_class = Draft7Validator

    try:
        validator_class.check_schema(schema)
    except SchemaError as e:
        raise SchemaCompileError(e.message) from e
    except RecursionError as e:
        raise SchemaCompileError("Schema is nested too deeply") from e

    return validator_class(schema)


def collect_errors(validator, data: Any) -> List[str]:
    """
    Run a compiled validator and format every violation.

    Errors keep the validator's own evaluation order.

    Raises:
        SchemaCompileError: If a ``$ref`` in the schema cannot be resolved
    """
    try:
        return [
            f"At {format_instance_path(error.absolute_path)}: {error.message}"
            for error in validator.iter_errors(data)
        ]
    except Unresolvable as e:
        raise SchemaCompileError(str(e)) from e


def validate_json(json_text: str, schema_text: Optional[str],
                  builder_fields: List[SchemaField]) -> ValidationReport:
    """
    Validate JSON text against a custom schema or the builder's schema.

    Args:
        json_text: JSON data entered by the user
        schema_text: Optional JSON Schema text; when blank the schema is
            derived from ``builder_fields``
        builder_fields: Current field tree of the builder

    Returns:
        ValidationReport with one error per violation, or a single error for
        missing input, an unparseable or invalid schema, or unparseable data
    """
    if not json_text or not json_text.strip():
        logger.info("Validation skipped: no JSON data provided")
        return ValidationReport.failure(MISSING_INPUT_ERROR)

    if schema_text and schema_text.strip():
        try:
            schema = _parse_json(schema_text)
        except (ValueError, RecursionError) as e:
            logger.info(f"Custom schema could not be parsed: {e}")
            return ValidationReport.failure(INVALID_SCHEMA_ERROR)
        source = "custom schema"
    else:
        schema = fields_to_json_schema(builder_fields)
        source = "builder schema"

    try:
        data = _parse_json(json_text)
    except (ValueError, RecursionError) as e:
        logger.info(f"JSON data could not be parsed: {e}")
        return ValidationReport.failure(INVALID_JSON_ERROR)

    try:
        validator = compile_schema(schema)
        errors = collect_errors(validator, data)
    except SchemaCompileError as e:
        logger.info(f"Schema compilation failed: {e}")
        return ValidationReport.failure(INVALID_SCHEMA_ERROR)
    except RecursionError:
        # Data nested deeper than the validator can descend
        logger.info("JSON data is nested too deeply to validate")
        return ValidationReport.failure(INVALID_JSON_ERROR)

    if errors:
        logger.info(f"Validation against {source} failed with {len(errors)} error(s)")
        return ValidationReport(is_valid=False, errors=errors)

    logger.info(f"Validation against {source} passed")
    return ValidationReport(is_valid=True)
